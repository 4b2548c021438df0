"""API endpoint detection from route files, client call sites, and API specifications."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

import yaml

from ..logging import get_logger
from ..models import ApiEndpoint, RepositoryIndex
from .base import Detector, has_suffix, iter_texts

_SOURCE_SUFFIXES = (".ts", ".tsx", ".js", ".jsx")
_PYTHON_SUFFIXES = (".py",)
_HTTP_VERBS = {"GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"}
_BODY_VERBS = {"POST", "PUT", "PATCH"}

_TEMPLATE_EXPR = re.compile(r"\$\{[^}]+\}")
_CATCH_ALL = re.compile(r"\[{1,2}\.\.\.([^\]]+)\]{1,2}")
_DYNAMIC = re.compile(r"\[([^\]]+)\]")
_BRACED_PARAM = re.compile(r"\{(\w+)\}")
_FLASK_PARAM = re.compile(r"<(?:\w+:)?(\w+)>")

_ROUTE_EXPORT = re.compile(r"export\s+(?:async\s+)?function\s+(GET|POST|PUT|DELETE|PATCH)\s*\(")
_REQ_METHOD = re.compile(r"req(?:uest)?\.method\s*={2,3}\s*['\"`](\w+)['\"`]")
_PAYLOAD = re.compile(r"const\s*\{([^}]+)\}\s*=\s*await\s+req(?:uest)?\.json\s*\(\s*\)")
_AUTH_MARKERS = re.compile(
    r"getServerSession|\bauth\s*\(|requireAuth|Depends\(\s*get_current_user|Authorization"
)

_FETCH = re.compile(
    r"fetch\s*\(\s*['\"`]([^'\"`]+)['\"`]\s*(?:,\s*\{[^}]*method:\s*['\"`](\w+)['\"`])?",
    re.IGNORECASE,
)
_AXIOS = re.compile(r"axios\.(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)['\"`]", re.IGNORECASE)
_QUERY_HOOK = re.compile(r"use(?:Query|Mutation)\s*\([^)]*['\"`]([^'\"`]+)['\"`]", re.IGNORECASE)
_API_CLIENT = re.compile(
    r"(?:api|apiClient|client)\.\w+\.(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)['\"`]",
    re.IGNORECASE,
)
_GRAPHQL_TEMPLATE = re.compile(r"\b(?:gql|graphql)\s*`([^`]*)`")
_GRAPHQL_OPERATION = re.compile(r"\b(?:query|mutation)\s+(\w+)")
_EXPRESS = re.compile(
    r"\b(?:router|app)\.(get|post|put|delete|patch)\s*\(\s*['\"`]([^'\"`]+)['\"`]",
    re.IGNORECASE,
)

_FASTAPI = re.compile(
    r"@(?P<router>\w+)\.(?P<verb>get|post|put|delete|patch)\((['\"])(?P<path>[^'\"]+)\3",
    re.IGNORECASE,
)
_FLASK = re.compile(
    r"@(?P<router>\w+)\.route\((['\"])(?P<path>[^'\"]+)\2(?:\s*,\s*methods\s*=\s*\[(?P<methods>[^\]]*)\])?"
)

_APP_ROUTE_HANDLER = re.compile(r"/app/(?:.+/)?route\.(ts|js)$")
_SPEC_FILE = re.compile(r"(openapi|swagger).*?\.(json|ya?ml)$", re.IGNORECASE)

# Filename verb conventions for handlers that do not declare a method.
_FILENAME_VERBS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("create", "add", "new"), "POST"),
    (("update", "edit"), "PUT"),
    (("delete", "remove"), "DELETE"),
)


def detect_framework(path: str) -> Optional[str]:
    """Guess the serving framework from a file's location."""
    anchored = f"/{path}"
    if "/pages/api/" in anchored or "/app/api/" in anchored:
        return "nextjs"
    if "/routes/" in anchored:
        return "express"
    if "graphql" in anchored.lower():
        return "graphql"
    return None


def endpoint_for_route_file(path: str) -> Optional[str]:
    """Translate a Next.js API route or route-handler file into its URL, or None."""
    anchored = f"/{path}"
    if "/pages/api/" in anchored or "/app/api/" in anchored:
        endpoint = anchored[anchored.find("/api/") :]
    elif _APP_ROUTE_HANDLER.search(anchored):
        endpoint = anchored[anchored.find("/app/") + len("/app") :]
    else:
        return None
    endpoint = re.sub(r"\.(tsx|jsx|ts|js)$", "", endpoint)
    endpoint = re.sub(r"/(route|index)$", "", endpoint)
    endpoint = _CATCH_ALL.sub(r":\1*", endpoint)
    return _DYNAMIC.sub(r":\1", endpoint) or "/"


def method_from_filename(path: str) -> str:
    """Infer an HTTP verb from the handler's file name; GET when nothing matches."""
    stem = path.rsplit("/", 1)[-1].split(".", 1)[0].lower()
    for keywords, verb in _FILENAME_VERBS:
        if any(keyword in stem for keyword in keywords):
            return verb
    return "GET"


def clean_endpoint(endpoint: str) -> str:
    return _TEMPLATE_EXPR.sub(":param", endpoint)


def _payload_fields(text: str) -> Optional[tuple[str, ...]]:
    match = _PAYLOAD.search(text)
    if not match:
        return None
    names = []
    for raw in match.group(1).split(","):
        name = raw.split(":", 1)[0].split("=", 1)[0].strip()
        if re.fullmatch(r"\w+", name):
            names.append(name)
    return tuple(names) or None


class RouteFileStrategy:
    """Infers endpoints from Next.js ``api/`` route files and ``route.*`` handlers."""

    name = "route-files"

    def extract(self, text: str, location: str) -> List[ApiEndpoint]:
        endpoint = endpoint_for_route_file(location)
        if endpoint is None or not has_suffix(location, _SOURCE_SUFFIXES):
            return []

        methods: List[str] = []
        for match in _ROUTE_EXPORT.finditer(text):
            methods.append(match.group(1).upper())
        if not methods:
            for match in _REQ_METHOD.finditer(text):
                verb = match.group(1).upper()
                if verb in _HTTP_VERBS:
                    methods.append(verb)
        if not methods:
            methods.append(method_from_filename(location))

        auth_required = bool(_AUTH_MARKERS.search(text))
        payload = _payload_fields(text)
        framework = detect_framework(location) or "nextjs"
        endpoints: List[ApiEndpoint] = []
        for verb in dict.fromkeys(methods):
            endpoints.append(
                ApiEndpoint(
                    name=endpoint,
                    endpoint=endpoint,
                    method=verb,
                    handler=location,
                    framework=framework,
                    payload_fields=payload if verb in _BODY_VERBS else None,
                    auth_required=auth_required,
                )
            )
        return endpoints


class ClientCallStrategy:
    """Finds endpoints referenced by client-side calls (fetch, axios, query hooks, api clients)."""

    name = "client-calls"

    def extract(self, text: str, location: str) -> List[ApiEndpoint]:
        framework = detect_framework(location)
        found: List[tuple[str, str]] = []
        for match in _FETCH.finditer(text):
            found.append(((match.group(2) or "GET").upper(), match.group(1)))
        for match in _AXIOS.finditer(text):
            found.append((match.group(1).upper(), match.group(2)))
        for match in _QUERY_HOOK.finditer(text):
            found.append(("GET", match.group(1)))

        endpoints: List[ApiEndpoint] = []
        for verb, raw in found:
            if not raw.startswith("/"):
                continue
            endpoint = clean_endpoint(raw)
            endpoints.append(
                ApiEndpoint(name=endpoint, endpoint=endpoint, method=verb, handler=location, framework=framework)
            )

        for match in _API_CLIENT.finditer(text):
            endpoint = clean_endpoint(match.group(2))
            endpoints.append(
                ApiEndpoint(
                    name=endpoint,
                    endpoint=endpoint,
                    method=match.group(1).upper(),
                    handler=location,
                    framework=framework,
                )
            )
        return endpoints


class GraphQLStrategy:
    """Extracts named operations from ``gql``/``graphql`` tagged templates."""

    name = "graphql"

    def extract(self, text: str, location: str) -> List[ApiEndpoint]:
        endpoints: List[ApiEndpoint] = []
        for template in _GRAPHQL_TEMPLATE.finditer(text):
            for match in _GRAPHQL_OPERATION.finditer(template.group(1)):
                operation = match.group(1)
                endpoints.append(
                    ApiEndpoint(
                        name=operation,
                        endpoint=f"/graphql/{operation}",
                        method="GRAPHQL",
                        handler=location,
                        framework="graphql",
                    )
                )
        return endpoints


class ExpressRouteStrategy:
    """Detects Express-style ``router.<verb>()``/``app.<verb>()`` registrations."""

    name = "express"

    def extract(self, text: str, location: str) -> List[ApiEndpoint]:
        endpoints: List[ApiEndpoint] = []
        for match in _EXPRESS.finditer(text):
            endpoint = clean_endpoint(match.group(2))
            endpoints.append(
                ApiEndpoint(
                    name=endpoint,
                    endpoint=endpoint,
                    method=match.group(1).upper(),
                    handler=location,
                    framework="express",
                )
            )
        return endpoints


class PythonRouteStrategy:
    """Locates FastAPI and Flask route decorators in Python modules."""

    name = "python-routes"

    def extract(self, text: str, location: str) -> List[ApiEndpoint]:
        auth_required = bool(_AUTH_MARKERS.search(text))
        endpoints: List[ApiEndpoint] = []
        for match in _FASTAPI.finditer(text):
            endpoint = _BRACED_PARAM.sub(r":\1", match.group("path"))
            endpoints.append(
                ApiEndpoint(
                    name=endpoint,
                    endpoint=endpoint,
                    method=match.group("verb").upper(),
                    handler=location,
                    framework="fastapi",
                    auth_required=auth_required,
                )
            )
        for match in _FLASK.finditer(text):
            endpoint = _FLASK_PARAM.sub(r":\1", match.group("path"))
            methods = re.findall(r"\w+", match.group("methods") or "") or ["GET"]
            for verb in methods:
                endpoints.append(
                    ApiEndpoint(
                        name=endpoint,
                        endpoint=endpoint,
                        method=verb.upper(),
                        handler=location,
                        framework="flask",
                        auth_required=auth_required,
                    )
                )
        return endpoints


class OpenApiStrategy:
    """Parses OpenAPI/Swagger documents (JSON or YAML) into endpoints."""

    name = "openapi"

    def __init__(self) -> None:
        self.logger = get_logger("detectors.api")

    def extract(self, text: str, location: str) -> List[ApiEndpoint]:
        data = self._load(text, location)
        paths = data.get("paths") if isinstance(data, dict) else None
        if not isinstance(paths, dict):
            return []

        endpoints: List[ApiEndpoint] = []
        for raw_path, mapping in paths.items():
            if not isinstance(mapping, dict):
                continue
            endpoint = _BRACED_PARAM.sub(r":\1", str(raw_path))
            for method, operation in mapping.items():
                verb = str(method).upper()
                if verb not in _HTTP_VERBS:
                    continue
                details: Dict[str, Any] = operation if isinstance(operation, dict) else {}
                name = details.get("summary") or details.get("operationId") or f"{verb} {endpoint}"
                endpoints.append(
                    ApiEndpoint(
                        name=str(name),
                        endpoint=endpoint,
                        method=verb,
                        handler=location,
                        framework="openapi",
                        auth_required=True if details.get("security") else None,
                    )
                )
        return endpoints

    def _load(self, text: str, location: str) -> Any:
        try:
            if location.lower().endswith((".yaml", ".yml")):
                return yaml.safe_load(text)
            return json.loads(text)
        except (yaml.YAMLError, ValueError) as exc:
            self.logger.debug("Skipping unparsable API specification %s: %s", location, exc)
            return None


class ApiEndpointDetector(Detector[List[ApiEndpoint]]):
    """Combines route-file inference with call-site and specification scanning."""

    name = "api"

    def __init__(self) -> None:
        self.route_files = RouteFileStrategy()
        self.source_strategies = (ClientCallStrategy(), GraphQLStrategy(), ExpressRouteStrategy())
        self.python_routes = PythonRouteStrategy()
        self.specifications = OpenApiStrategy()
        self.logger = get_logger("detectors.api")

    def detect(self, root: Path, index: RepositoryIndex) -> List[ApiEndpoint]:
        endpoints: List[ApiEndpoint] = []

        for location, text in iter_texts(root, index.api_files):
            endpoints.extend(self.route_files.extract(text, location))

        source_files = [path for path in index.all_files if has_suffix(path, _SOURCE_SUFFIXES)]
        for location, text in iter_texts(root, source_files):
            for strategy in self.source_strategies:
                endpoints.extend(strategy.extract(text, location))

        python_files = [path for path in index.all_files if has_suffix(path, _PYTHON_SUFFIXES)]
        for location, text in iter_texts(root, python_files):
            endpoints.extend(self.python_routes.extract(text, location))

        spec_files = [path for path in index.all_files if _SPEC_FILE.search(path)]
        for location, text in iter_texts(root, spec_files):
            endpoints.extend(self.specifications.extract(text, location))

        unique = list(_dedupe(endpoints))
        self.logger.debug("Detected %d API endpoints (%d before dedupe)", len(unique), len(endpoints))
        return unique


def _dedupe(endpoints: Iterable[ApiEndpoint]) -> Iterable[ApiEndpoint]:
    seen: Set[str] = set()
    for endpoint in endpoints:
        key = f"{endpoint.method}:{endpoint.endpoint}"
        if key in seen:
            continue
        seen.add(key)
        yield endpoint


__all__ = [
    "ApiEndpointDetector",
    "ClientCallStrategy",
    "ExpressRouteStrategy",
    "GraphQLStrategy",
    "OpenApiStrategy",
    "PythonRouteStrategy",
    "RouteFileStrategy",
    "clean_endpoint",
    "detect_framework",
    "endpoint_for_route_file",
    "method_from_filename",
]
