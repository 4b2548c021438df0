"""Navigation structure detection from file routing, layout links, and router configs."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Sequence

from ..logging import get_logger
from ..models import NavigationEdge, RepositoryIndex
from ..utils import humanize, read_text, stable_id
from .base import Detector, has_suffix, iter_texts

# Conventional layout/navigation files, scanned in this order.
NAVIGATION_FILES: tuple[str, ...] = (
    "src/components/Navigation.tsx",
    "src/components/Navigation.jsx",
    "src/components/Nav.tsx",
    "src/components/Navbar.tsx",
    "src/components/Sidebar.tsx",
    "src/components/Header.tsx",
    "src/components/AppLayout.tsx",
    "src/components/Layout.tsx",
    "src/app/layout.tsx",
    "app/layout.tsx",
    "components/Navigation.tsx",
    "components/Sidebar.tsx",
)

_ROUTER_PATH = re.compile(r"^.*/(?P<router>pages|app)/(?P<rest>.+)$")
_CATCH_ALL = re.compile(r"^\[{1,2}\.\.\.([^\]]+)\]{1,2}$")
_DYNAMIC = re.compile(r"\[([^\]]+)\]")

_LINK = re.compile(r"<(?:Link|NavLink)\s+to=[\"']([^\"']+)[\"'][^>]*>([^<]+)</(?:Link|NavLink)>", re.IGNORECASE)
_HREF = re.compile(r"href=[\"']([^\"']+)[\"'][^>]*>([^<]+)<", re.IGNORECASE)
_ARRAY_START = re.compile(r"(?:const|let|var)\s+\w+\s*(?::[^=\n]+)?=\s*\[")
_QUOTES = "\"'`"
_ITEM_PATH = re.compile(r"\b(?:path|href|url|to)\s*:\s*[\"']([^\"']+)[\"']")
_ITEM_LABEL = re.compile(r"\b(?:label|title|name)\s*:\s*[\"']([^\"']+)[\"']")

_ROUTE_ELEMENT = re.compile(r"<Route\s+path=[\"']([^\"']+)[\"']\s+(?:element=\{<|component=\{)(\w+)")
_ROUTE_OBJECT = re.compile(
    r"\{\s*path\s*:\s*[\"']([^\"']+)[\"']\s*,\s*(?:element\s*:\s*<|component\s*:\s*)(\w+)"
)
_SOURCE_SUFFIXES = (".tsx", ".jsx", ".ts", ".js")


def route_for_screen(path: str) -> Optional[str]:
    """Translate a file-routed screen path into its URL route, or None."""
    match = _ROUTER_PATH.match(f"/{path}")
    if not match:
        return None
    router = match.group("router")
    rest = re.sub(r"\.(tsx|jsx|ts|js)$", "", match.group("rest"))
    segments = [segment for segment in rest.split("/") if segment]
    if not segments:
        return None

    if router == "app":
        if segments[-1] != "page":
            return None
        segments = segments[:-1]
        segments = [
            segment
            for segment in segments
            if not (segment.startswith("(") and segment.endswith(")")) and not segment.startswith("@")
        ]
    else:
        if segments[0] == "api" or segments[-1].startswith("_"):
            return None
        if segments[-1] == "index":
            segments = segments[:-1]

    converted: List[str] = []
    for segment in segments:
        catch_all = _CATCH_ALL.match(segment)
        if catch_all:
            converted.append(f":{catch_all.group(1)}*")
        else:
            converted.append(_DYNAMIC.sub(r":\1", segment))

    route = "/" + "/".join(converted)
    if route.startswith("/api/"):
        return None
    return route


def is_router_file(path: str) -> bool:
    """Return True for files that conventionally hold router definitions."""
    if not has_suffix(path, _SOURCE_SUFFIXES):
        return False
    name = path.rsplit("/", 1)[-1]
    return name in {"App.tsx", "App.jsx"} or "route" in path.lower()


def closing_bracket(text: str, start: int) -> int:
    """Index of the bracket matching ``text[start]``, or -1 when it is never closed.

    Brackets inside string and template literals are ignored, so nested
    arrays, nested objects and JSX props such as ``className={c}`` are
    skipped over as a whole.
    """
    opener = text[start]
    closer = {"[": "]", "{": "}"}[opener]
    depth = 0
    quote = ""
    index = start
    while index < len(text):
        char = text[index]
        if quote:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = ""
        elif char in _QUOTES:
            quote = char
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return -1


def array_objects(body: str) -> List[str]:
    """Top-level ``{...}`` elements of an array literal body, nested content included."""
    objects: List[str] = []
    quote = ""
    index = 0
    while index < len(body):
        char = body[index]
        if quote:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = ""
        elif char in _QUOTES:
            quote = char
        elif char == "{":
            end = closing_bracket(body, index)
            if end < 0:
                break
            objects.append(body[index : end + 1])
            index = end
        index += 1
    return objects


def label_for_route(route: str) -> str:
    segments = [segment for segment in route.split("/") if segment]
    if not segments:
        return "Home"
    return humanize(segments[-1]) or "Home"


class FileRouteStrategy:
    """Derives routes from file-based routers (``pages/`` and ``app/`` conventions)."""

    name = "file-routes"

    def extract(self, screens: Sequence[str]) -> List[NavigationEdge]:
        edges: List[NavigationEdge] = []
        for screen in screens:
            route = route_for_screen(screen)
            if route is None:
                continue
            edges.append(
                NavigationEdge(label=label_for_route(route), path=route, to_screen_id=stable_id(screen))
            )
        return edges


class LayoutLinkStrategy:
    """Scans layout/navigation components for links and navigation arrays."""

    name = "layout-links"

    def extract(self, text: str, location: str) -> List[NavigationEdge]:
        edges: List[NavigationEdge] = []
        for match in _LINK.finditer(text):
            edges.append(NavigationEdge(label=match.group(2).strip(), path=match.group(1)))

        for array in _ARRAY_START.finditer(text):
            end = closing_bracket(text, array.end() - 1)
            if end < 0:
                continue
            for item in array_objects(text[array.end() : end]):
                path = _ITEM_PATH.search(item)
                label = _ITEM_LABEL.search(item)
                if path and label:
                    edges.append(NavigationEdge(label=label.group(1), path=path.group(1)))

        for match in _HREF.finditer(text):
            path = match.group(1)
            label = match.group(2).strip()
            if path.startswith("/") and not path.startswith("//") and label and len(label) < 50:
                edges.append(NavigationEdge(label=label, path=path))
        return edges


class RouterConfigStrategy:
    """Parses declarative router definitions (JSX ``<Route>`` and route objects)."""

    name = "router-config"

    def extract(self, text: str, location: str) -> List[NavigationEdge]:
        edges: List[NavigationEdge] = []
        for pattern in (_ROUTE_ELEMENT, _ROUTE_OBJECT):
            for match in pattern.finditer(text):
                edges.append(NavigationEdge(label=humanize(match.group(2)), path=match.group(1)))
        return edges


class NavigationDetector(Detector[List[NavigationEdge]]):
    """Combines file routing, layout links, and router configs into unique edges."""

    name = "navigation"

    def __init__(self, navigation_files: Sequence[str] = NAVIGATION_FILES) -> None:
        self.navigation_files = tuple(navigation_files)
        self.file_routes = FileRouteStrategy()
        self.layout_links = LayoutLinkStrategy()
        self.router_config = RouterConfigStrategy()
        self.logger = get_logger("detectors.navigation")

    def detect(self, root: Path, index: RepositoryIndex) -> List[NavigationEdge]:
        edges: List[NavigationEdge] = list(self.file_routes.extract(index.screens))

        for relative in self.navigation_files:
            text = read_text(root, relative)
            if text is None:
                continue
            edges.extend(self.layout_links.extract(text, relative))

        router_files = [path for path in index.all_files if is_router_file(path)]
        for relative, text in iter_texts(root, router_files):
            edges.extend(self.router_config.extract(text, relative))

        unique: List[NavigationEdge] = []
        seen: set[str] = set()
        for edge in edges:
            if edge.path in seen:
                continue
            seen.add(edge.path)
            unique.append(edge)
        self.logger.debug("Detected %d navigation edges (%d before dedupe)", len(unique), len(edges))
        return unique


__all__ = [
    "FileRouteStrategy",
    "LayoutLinkStrategy",
    "NAVIGATION_FILES",
    "NavigationDetector",
    "RouterConfigStrategy",
    "array_objects",
    "closing_bracket",
    "is_router_file",
    "label_for_route",
    "route_for_screen",
]
