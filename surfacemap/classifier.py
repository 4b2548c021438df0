"""Repository traversal and file classification."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .config import ConfigError, load_config
from .logging import get_logger
from .models import RepositoryIndex

_EXCLUDED_DIRS = {
    "node_modules",
    "bower_components",
    "vendor",
    "dist",
    "build",
    "out",
    "coverage",
    "__pycache__",
    "venv",
}

_SOURCE_SUFFIXES = (".tsx", ".jsx", ".ts", ".js")
_API_SUFFIXES = (".ts", ".js")

# shadcn/radix style primitives that live next to real screens
_UI_PRIMITIVE = re.compile(
    r"/components/[^/]+/(button|input|card|dialog|dropdown|select|checkbox|toast|alert|badge|avatar"
    r"|skeleton|separator|label|form|table|tabs|accordion|collapsible|command|context-menu|hover-card"
    r"|menubar|navigation-menu|popover|radio-group|scroll-area|sheet|sidebar|slider|switch|toggle"
    r"|tooltip)\.(tsx|jsx|ts|js)$",
    re.IGNORECASE,
)


class ScanError(RuntimeError):
    """Raised when the repository root itself cannot be read."""


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .surfacemap.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    try:
        text = path.read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return []

    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _load_ignore_rules(root: Path) -> List[IgnoreRule]:
    rules = _parse_gitignore(root / ".gitignore")
    try:
        config = load_config(root)
    except ConfigError as exc:
        get_logger("classifier").warning("Ignoring invalid configuration: %s", exc)
        return rules
    for pattern in config.exclude_paths:
        rule = _build_ignore_rule(pattern)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _is_excluded_dir(name: str) -> bool:
    return name.startswith(".") or name in _EXCLUDED_DIRS


def is_screen(rel_path: str) -> bool:
    """Return True when the path looks like a page, screen, or top-level component."""
    name = rel_path.rsplit("/", 1)[-1]
    if not name.endswith(_SOURCE_SUFFIXES):
        return False
    anchored = f"/{rel_path}"
    if "/ui/" in anchored or _UI_PRIMITIVE.search(anchored):
        return False
    if any(segment in anchored for segment in ("/pages/", "/app/", "/screens/")):
        return True
    if re.search(r"(page|screen)\.(tsx|jsx|ts|js)$", name, re.IGNORECASE):
        return True
    return (
        "/components/" in anchored
        and name[0].isupper()
        and not re.match(r"^(use-|index\.)", name, re.IGNORECASE)
    )


def is_api_file(rel_path: str) -> bool:
    """Return True when the path follows an API route/controller convention."""
    name = rel_path.rsplit("/", 1)[-1]
    anchored = f"/{rel_path}"
    if any(segment in anchored for segment in ("/api/", "/routes/", "/controllers/")):
        return True
    return bool(re.search(r"(route|api|controller)\.(ts|js)$", name, re.IGNORECASE))


def is_data_model_file(rel_path: str) -> bool:
    """Return True when the path looks like a schema, model, or type declaration file."""
    name = rel_path.rsplit("/", 1)[-1]
    anchored = f"/{rel_path}"
    if name == "schema.prisma" or name.endswith(".prisma"):
        return True
    if re.search(r"(schema|models?|types?|interfaces?)\.(ts|js)$", name, re.IGNORECASE):
        return True
    if name.endswith(".d.ts"):
        return True
    return any(
        segment in anchored
        for segment in ("/models/", "/schema/", "/schemas/", "/types/", "/interfaces/")
    )


class RepoClassifier:
    """Walks the repository once and tags files into screen/api/model buckets."""

    def __init__(self) -> None:
        self.logger = get_logger("classifier")

    def classify(self, root: str | Path) -> RepositoryIndex:
        """Return the category-tagged index of repository files."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise ScanError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise ScanError(f"Repository path is not a directory: {root}")
        try:
            with os.scandir(root_path):
                pass
        except OSError as exc:
            raise ScanError(f"Failed to scan repository {root}: {exc}") from exc

        rules = _load_ignore_rules(root_path)
        screens: List[str] = []
        api_files: List[str] = []
        model_files: List[str] = []
        all_files: List[str] = []

        for rel_path in self._iter_files(root_path, rules):
            all_files.append(rel_path)
            if is_screen(rel_path):
                screens.append(rel_path)
            if is_api_file(rel_path):
                api_files.append(rel_path)
            if is_data_model_file(rel_path):
                model_files.append(rel_path)

        self.logger.debug(
            "Classified %d files (%d screens, %d api, %d model)",
            len(all_files),
            len(screens),
            len(api_files),
            len(model_files),
        )
        return RepositoryIndex(
            screens=tuple(screens),
            api_files=tuple(api_files),
            data_model_files=tuple(model_files),
            all_files=tuple(all_files),
        )

    def _iter_files(self, root: Path, rules: Sequence[IgnoreRule]) -> Iterator[str]:
        def _on_error(exc: OSError) -> None:
            self.logger.debug("Skipping unreadable directory %s: %s", exc.filename, exc)

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept_dirs = []
            for name in sorted(dirnames):
                if _is_excluded_dir(name):
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, rules):
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for filename in sorted(filenames):
                if filename.startswith("."):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, rules):
                    continue
                yield rel_path


__all__ = [
    "RepoClassifier",
    "ScanError",
    "is_api_file",
    "is_data_model_file",
    "is_screen",
]
