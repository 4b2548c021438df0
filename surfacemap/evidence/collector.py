"""Collects free-text evidence documents for downstream enrichment."""

from __future__ import annotations

import os
import re
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from ..classifier import RepoClassifier
from ..config import SurfaceMapConfig
from ..logging import get_logger
from ..models import EvidenceDocument, Screen, TechnicalModel
from ..utils import load_package_json, read_text

EVIDENCE_MODES = ("tier2", "tier3", "full")

README_NAMES = ("README.md", "README.txt", "readme.md", "readme.txt")
DOC_DIRECTORIES = (
    "docs",
    "doc",
    "documentation",
    "prd",
    "product",
    "requirements",
    "spec",
    "specs",
    "adr",
    "architecture",
    "design",
)
CONFIG_FILES = (
    ".env",
    ".env.local",
    ".env.production",
    "config.ts",
    "config.js",
    "next.config.ts",
    "next.config.js",
    "vite.config.ts",
    "vite.config.js",
    "webpack.config.js",
    "tsconfig.json",
    "tailwind.config.js",
    "tailwind.config.ts",
)
AUTH_FILES = ("src/lib/auth.ts", "src/utils/auth.ts", "src/auth.ts", "src/middleware.ts", "middleware.ts")
ERROR_FILES = ("src/utils/error.ts", "src/lib/error.ts", "src/error.ts")

MAX_DOC_FILES = 30
MAX_DOC_CHARS = 25_000
MAX_CONFIG_CHARS = 5_000
MAX_TEST_FILES = 20
MAX_COMPONENT_SCREENS = 30
MAX_CONTRACT_FILES = 12
MAX_CONTRACT_CHARS = 8_000
MAX_CONTRACT_DEPTH = 4

_TEST_CASE = re.compile(r"\b(?:it|test|describe)\(['\"]([^'\"]+)['\"]")
_PROPS_INTERFACE = re.compile(r"interface\s+(\w+Props?)\s*\{([^}]+)\}")
_PROP_FIELD = re.compile(r"(\w+)\??\s*:\s*(\w+)")
_CONTRACT_SUFFIXES = (".graphql", ".gql", ".proto", ".schema.json", ".jsonschema")
_CONTRACT_MARKERS = ("openapi", "swagger", "api-spec", "contract")

_DEPENDENCY_CATEGORIES = (
    ("Frameworks", lambda dep: dep in {"react", "next", "vue", "angular", "svelte", "express", "fastify", "koa"}),
    ("UI Libraries", lambda dep: any(lib in dep for lib in ("@radix-ui", "@mui", "antd", "chakra-ui", "tailwindcss"))),
    (
        "State Management",
        lambda dep: dep in {"redux", "zustand", "recoil", "mobx", "jotai", "@tanstack/react-query"},
    ),
    ("Database/ORM", lambda dep: any(lib in dep for lib in ("prisma", "mongoose", "typeorm", "sequelize", "@supabase"))),
    (
        "Authentication",
        lambda dep: any(lib in dep for lib in ("next-auth", "@auth", "passport", "clerk", "supabase", "firebase")),
    ),
)
_DOMAIN_HINTS = (
    (("stripe", "payment"), "E-commerce/Payments"),
    (("calendar", "scheduler"), "Scheduling/Calendar"),
    (("chart", "graph", "analytics"), "Analytics/Data Visualization"),
    (("medical", "health", "clinic"), "Healthcare/Medical"),
)
_CONFIG_INSIGHTS = (
    (("vercel",), "Hosting: Vercel"),
    (("netlify",), "Hosting: Netlify"),
    (("aws", "amazon"), "Hosting: AWS"),
    (("supabase",), "Database/Auth: Supabase"),
    (("firebase",), "Database/Auth: Firebase"),
    (("mongodb", "mongo"), "Database: MongoDB"),
    (("postgres",), "Database: PostgreSQL"),
    (("stripe",), "Payment: Stripe"),
    (("sendgrid", "ses"), "Email Service: Detected"),
    (("i18n", "locale", "language"), "Internationalization: Enabled"),
)
_FEATURE_PATHS = (
    (("/patient",), "Patient Management"),
    (("/admin",), "Administration"),
    (("/auth", "/login"), "Authentication"),
    (("/dashboard",), "Dashboard"),
    (("/setting",), "Settings"),
    (("/report",), "Reporting"),
    (("/inventory", "/stock"), "Inventory"),
    (("/schedule", "/calendar", "/appointment"), "Scheduling"),
)
_FEATURE_NAMES = (
    (("patient",), "Patient Management"),
    (("inventory",), "Inventory"),
    (("schedule", "appointment"), "Scheduling"),
)


def feature_for_screen(screen: Screen) -> str:
    """Group a screen into a coarse feature area by path, then by name."""
    path = f"/{screen.path}"
    for markers, feature in _FEATURE_PATHS:
        if any(marker in path for marker in markers):
            return feature
    name = screen.name.lower()
    for markers, feature in _FEATURE_NAMES:
        if any(marker in name for marker in markers):
            return feature
    return "General"


def config_insights(content: str) -> List[str]:
    lowered = content.lower()
    return [f"- {insight}" for markers, insight in _CONFIG_INSIGHTS if any(marker in lowered for marker in markers)]


def is_contract_file(path: str) -> bool:
    name = path.rsplit("/", 1)[-1].lower()
    return any(marker in name for marker in _CONTRACT_MARKERS) or name.endswith(_CONTRACT_SUFFIXES)


def is_test_file(path: str) -> bool:
    name = path.rsplit("/", 1)[-1].lower()
    return ".test." in name or ".spec." in name


def _cap(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "\n\n... (truncated)"


class EvidenceCollector:
    """Gathers business evidence, plus technical evidence outside ``tier2`` mode."""

    def __init__(
        self,
        mode: str = "full",
        classifier: RepoClassifier | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        if mode not in EVIDENCE_MODES:
            raise ValueError(f"Unknown evidence mode '{mode}'; expected one of: {', '.join(EVIDENCE_MODES)}")
        self.mode = mode
        self.classifier = classifier or RepoClassifier()
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.logger = get_logger("evidence.collector")

    @classmethod
    def from_config(cls, config: SurfaceMapConfig) -> "EvidenceCollector":
        return cls(mode=config.evidence.mode)

    @property
    def includes_technical(self) -> bool:
        return self.mode in {"tier3", "full"}

    def collect(
        self,
        root: str | Path,
        *,
        brief_text: Optional[str] = None,
        brief_files: Sequence[str | Path] = (),
        model: Optional[TechnicalModel] = None,
    ) -> List[EvidenceDocument]:
        """Return evidence documents for ``root``; absent inputs are simply omitted."""
        root_path = Path(root).expanduser().resolve()
        documents: List[EvidenceDocument] = []

        metadata = self.package_metadata(root_path)
        if metadata is not None:
            documents.append(metadata)
        readme = self.readme(root_path)
        if readme is not None:
            documents.append(readme)
        documents.extend(self.docs(root_path))
        if brief_text and brief_text.strip():
            documents.append(
                EvidenceDocument(
                    id="brief-text",
                    type="uploaded_brief",
                    title="Uploaded brief (text)",
                    content=brief_text.strip(),
                )
            )
        documents.extend(self.brief_documents(brief_files))
        if model is not None:
            documents.append(self.code_summary(model))

        if self.includes_technical:
            files = self.classifier.classify(root_path).all_files
            documents.extend(self.config_files(root_path))
            test_analysis = self.test_analysis(root_path, files)
            if test_analysis is not None:
                documents.append(test_analysis)
            if model is not None:
                components = self.component_analysis(root_path, model)
                if components is not None:
                    documents.append(components)
            patterns = self.code_patterns(root_path, model)
            if patterns is not None:
                documents.append(patterns)
            contracts = self.contracts(root_path, files)
            if contracts is not None:
                documents.append(contracts)

        self.logger.debug("Collected %d evidence documents (mode=%s)", len(documents), self.mode)
        return documents

    # ------------------------------------------------------------------
    # Business evidence
    # ------------------------------------------------------------------
    def package_metadata(self, root: Path) -> Optional[EvidenceDocument]:
        package = load_package_json(root)
        if not package:
            return None
        raw_dependencies = package.get("dependencies")
        dependencies = sorted(raw_dependencies) if isinstance(raw_dependencies, dict) else []
        categories: Dict[str, List[str]] = OrderedDict(
            (label, [dep for dep in dependencies if matches(dep)]) for label, matches in _DEPENDENCY_CATEGORIES
        )
        joined = " ".join(dependencies)
        domains = [domain for markers, domain in _DOMAIN_HINTS if any(marker in joined for marker in markers)]
        keywords = package.get("keywords")
        content = self._render(
            "package_metadata.md.j2",
            package=package,
            keywords=[str(keyword) for keyword in keywords] if isinstance(keywords, list) else [],
            dependencies=dependencies,
            categories=categories,
            domains=domains,
        )
        return EvidenceDocument(
            id="package-metadata",
            type="package_metadata",
            title="Project Metadata (package.json)",
            content=content,
            path="package.json",
        )

    def readme(self, root: Path) -> Optional[EvidenceDocument]:
        for name in README_NAMES:
            if not (root / name).is_file():
                continue
            content = read_text(root, name)
            if content is None:
                continue
            return EvidenceDocument(
                id=f"readme-{name}",
                type="repo_readme",
                title=f"Repository README ({name})",
                content=content,
                path=name,
            )
        return None

    def docs(self, root: Path) -> List[EvidenceDocument]:
        documents: List[EvidenceDocument] = []
        for directory in DOC_DIRECTORIES:
            for name in self._shallow_text_files(root / directory):
                if len(documents) >= MAX_DOC_FILES:
                    return documents
                relative = f"{directory}/{name}"
                content = read_text(root, relative)
                if content is None:
                    continue
                documents.append(
                    EvidenceDocument(
                        id=f"doc-{directory}-{name}",
                        type="repo_docs",
                        title=f"Documentation ({directory}): {name}",
                        content=_cap(content, MAX_DOC_CHARS),
                        path=relative,
                    )
                )
        return documents

    def brief_documents(self, brief_files: Iterable[str | Path]) -> List[EvidenceDocument]:
        documents: List[EvidenceDocument] = []
        for raw_path in brief_files:
            path = Path(raw_path).expanduser()
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeError) as exc:
                self.logger.warning("Skipping brief file %s: %s", path, exc)
                continue
            documents.append(
                EvidenceDocument(
                    id=f"brief-file-{path.name}",
                    type="uploaded_brief",
                    title=f"Uploaded brief: {path.name}",
                    content=content,
                    path=str(path),
                )
            )
        return documents

    def code_summary(self, model: TechnicalModel) -> EvidenceDocument:
        entities = list(model.data_model)
        if self.mode == "tier2":
            method_counts: Dict[str, int] = OrderedDict()
            for endpoint in model.api:
                method_counts[endpoint.method] = method_counts.get(endpoint.method, 0) + 1
            content = self._render(
                "code_summary_minimal.md.j2",
                project_name=model.project_name,
                screens=model.screens,
                entities=entities,
                endpoints=model.api,
                method_counts=method_counts,
                navigation=model.navigation,
                stack=model.stack_detected,
            )
        else:
            feature_groups: Dict[str, List[str]] = OrderedDict()
            for screen in model.screens:
                feature_groups.setdefault(feature_for_screen(screen), []).append(screen.name)
            endpoints_by_method: Dict[str, List[str]] = OrderedDict()
            for endpoint in model.api:
                endpoints_by_method.setdefault(endpoint.method, []).append(endpoint.endpoint)
            content = self._render(
                "code_summary.md.j2",
                project_name=model.project_name,
                screen_count=len(model.screens),
                feature_groups=feature_groups,
                entities=entities,
                navigation=model.navigation,
                endpoint_count=len(model.api),
                endpoints_by_method=endpoints_by_method,
                state_types=list(OrderedDict.fromkeys(pattern.type for pattern in model.state_patterns)),
                stack=model.stack_detected,
            )
        return EvidenceDocument(
            id="code-summary",
            type="code_summary",
            title="Codebase Technical Summary",
            content=content,
        )

    # ------------------------------------------------------------------
    # Technical evidence
    # ------------------------------------------------------------------
    def config_files(self, root: Path) -> List[EvidenceDocument]:
        documents: List[EvidenceDocument] = []
        for name in CONFIG_FILES:
            if not (root / name).is_file():
                continue
            content = read_text(root, name)
            if content is None:
                continue
            lines = [f"# Configuration: {name}", "", "```", _cap(content, MAX_CONFIG_CHARS), "```", ""]
            insights = config_insights(content)
            if insights:
                lines.extend(["## Key Insights", "", *insights, ""])
            documents.append(
                EvidenceDocument(
                    id=f"config-{name}",
                    type="config_file",
                    title=f"Configuration: {name}",
                    content="\n".join(lines),
                    path=name,
                )
            )
        return documents

    def test_analysis(self, root: Path, files: Sequence[str]) -> Optional[EvidenceDocument]:
        test_files = [path for path in files if is_test_file(path)]
        if not test_files:
            return None

        summaries: List[str] = []
        criteria: List[str] = []
        for relative in test_files[:MAX_TEST_FILES]:
            text = read_text(root, relative)
            if text is None:
                continue
            descriptions = _TEST_CASE.findall(text)
            if not descriptions:
                continue
            summaries.append(f"### {relative.rsplit('/', 1)[-1]}")
            summaries.extend(f"- {description}" for description in descriptions)
            summaries.append("")
            criteria.extend(descriptions)

        if not summaries:
            return None
        analyzed = min(len(test_files), MAX_TEST_FILES)
        lines = [
            "# Test Files Analysis",
            "",
            f"Found {len(test_files)} test files. Analyzed {analyzed}.",
            "",
            *summaries,
            "## Extracted Acceptance Criteria Patterns",
            "",
            *(f"- {criterion}" for criterion in criteria[:50]),
        ]
        return EvidenceDocument(
            id="test-analysis",
            type="test_file",
            title="Test Files Analysis & Acceptance Criteria",
            content="\n".join(lines),
        )

    def component_analysis(self, root: Path, model: TechnicalModel) -> Optional[EvidenceDocument]:
        props: List[str] = []
        form_fields: List[str] = []
        ui_patterns: List[str] = []
        for screen in model.screens[:MAX_COMPONENT_SCREENS]:
            text = read_text(root, screen.path)
            if text is None:
                continue
            for match in _PROPS_INTERFACE.finditer(text):
                body = match.group(2).strip()
                props.append(f"### {match.group(1)}\n{body}\n")
                for field_match in _PROP_FIELD.finditer(body):
                    if field_match.group(1) not in form_fields:
                        form_fields.append(field_match.group(1))
            if "useState" in text or "useReducer" in text:
                ui_patterns.append("State Management: React Hooks")
            if "onSubmit" in text or "handleSubmit" in text:
                ui_patterns.append("Form Handling: Detected")
            if "validation" in text or "validate" in text:
                ui_patterns.append("Form Validation: Detected")
            if "error" in text and "catch" in text:
                ui_patterns.append("Error Handling: Detected")

        if not props and not ui_patterns:
            return None
        lines = ["# Component Analysis", ""]
        if props:
            lines.extend(["## Component Props & Types", "", "\n".join(props[:20]), ""])
        if form_fields:
            lines.extend([f"## Form Fields Detected ({len(form_fields)})", ""])
            lines.extend(f"- {name}" for name in form_fields[:30])
            lines.append("")
        if ui_patterns:
            lines.extend(["## UI Patterns Detected", ""])
            lines.extend(f"- {pattern}" for pattern in OrderedDict.fromkeys(ui_patterns))
        return EvidenceDocument(
            id="component-analysis",
            type="component_analysis",
            title="Component & UI Requirements Analysis",
            content="\n".join(lines),
        )

    def code_patterns(self, root: Path, model: Optional[TechnicalModel]) -> Optional[EvidenceDocument]:
        auth: List[str] = []
        rbac: List[str] = []
        data_flow: List[str] = []
        error_handling: List[str] = []

        if model is not None:
            for endpoint in model.api:
                if endpoint.auth_required or "auth" in endpoint.endpoint or "login" in endpoint.endpoint:
                    auth.append(f"API: {endpoint.method} {endpoint.endpoint}")
            role_screens = [
                screen
                for screen in model.screens
                if any(role in screen.name.lower() for role in ("admin", "patient", "provider"))
                or "/admin" in f"/{screen.path}"
                or "/patient" in f"/{screen.path}"
            ]
            if role_screens:
                rbac.append(f"Role-based screens detected: {len(role_screens)} screens")
                rbac.extend(f"- {screen.name}" for screen in role_screens[:10])
            data_flow.extend(f"State Pattern: {pattern.type}" for pattern in model.state_patterns)

        auth_file, auth_text = self._first_readable(root, AUTH_FILES)
        if auth_text is not None:
            if "role" in auth_text or "permission" in auth_text:
                rbac.append(f"RBAC pattern detected in {auth_file}")
            if "jwt" in auth_text or "token" in auth_text:
                auth.append("JWT authentication detected")
            if "session" in auth_text:
                auth.append("Session-based authentication detected")

        error_file, error_text = self._first_readable(root, ERROR_FILES)
        if error_text is not None and "try" in error_text and "catch" in error_text:
            error_handling.append(f"Error handling utilities in {error_file}")

        sections = (
            ("Authentication Patterns", auth),
            ("Role-Based Access Control (RBAC)", rbac),
            ("Data Flow Patterns", data_flow),
            ("Error Handling Patterns", error_handling),
        )
        if not any(items for _, items in sections):
            return None
        lines = ["# Code Patterns Analysis", ""]
        for heading, items in sections:
            if items:
                lines.extend([f"## {heading}", "", *(f"- {item}" for item in items), ""])
        return EvidenceDocument(
            id="code-patterns",
            type="code_patterns",
            title="Code Patterns Analysis (Auth, RBAC, Data Flow, Error Handling)",
            content="\n".join(lines),
        )

    def contracts(self, root: Path, files: Sequence[str]) -> Optional[EvidenceDocument]:
        candidates = [
            path for path in files if path.count("/") <= MAX_CONTRACT_DEPTH and is_contract_file(path)
        ][:MAX_CONTRACT_FILES]
        if not candidates:
            return None

        lines = [
            "# Contracts & Schemas Detected",
            "",
            f"Found {len(candidates)} potential contract/schema file(s). Showing up to {MAX_CONTRACT_FILES}.",
            "",
        ]
        for relative in candidates:
            text = read_text(root, relative)
            if text is None:
                continue
            lines.extend([f"## {relative}", "", "```text", _cap(text, MAX_CONTRACT_CHARS), "```", ""])
        return EvidenceDocument(
            id="contracts-evidence",
            type="contracts",
            title="Contracts & Schemas (OpenAPI/GraphQL/JSON Schema/etc.)",
            content="\n".join(lines),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _render(self, template_name: str, **context: object) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context).strip() + "\n"

    def _shallow_text_files(self, directory: Path) -> List[str]:
        if not directory.is_dir():
            return []
        try:
            with os.scandir(directory) as entries:
                names = [
                    entry.name
                    for entry in entries
                    if entry.is_file() and entry.name.lower().endswith((".md", ".txt"))
                ]
        except OSError as exc:
            self.logger.debug("Skipping unreadable docs directory %s: %s", directory, exc)
            return []
        return sorted(names)

    @staticmethod
    def _first_readable(root: Path, candidates: Sequence[str]) -> tuple[Optional[str], Optional[str]]:
        for relative in candidates:
            if not (root / relative).is_file():
                continue
            text = read_text(root, relative)
            if text is not None:
                return relative, text
        return None, None


def collect_evidence(
    root: str | Path,
    *,
    brief_text: Optional[str] = None,
    brief_files: Sequence[str | Path] = (),
    model: Optional[TechnicalModel] = None,
    mode: str = "full",
) -> List[EvidenceDocument]:
    """Collect evidence for ``root`` with a default-configured collector."""
    return EvidenceCollector(mode=mode).collect(
        root, brief_text=brief_text, brief_files=brief_files, model=model
    )


__all__ = [
    "EVIDENCE_MODES",
    "EvidenceCollector",
    "collect_evidence",
    "config_insights",
    "feature_for_screen",
    "is_contract_file",
    "is_test_file",
]
