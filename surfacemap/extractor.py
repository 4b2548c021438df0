"""Tier-1 aggregation: classifier plus detectors into one technical model."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Sequence

from .classifier import RepoClassifier
from .detectors import (
    ApiEndpointDetector,
    DataModelDetector,
    EventDetector,
    NavigationDetector,
    StatePatternDetector,
    discover_detectors,
)
from .logging import get_logger
from .models import RepositoryIndex, Screen, TechnicalModel
from .utils import humanize, infer_screen_purpose, load_package_json, read_text, stable_id

_README = re.compile(r"^README\.(md|txt)$", re.IGNORECASE)
_HEADING = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_ROUTER_ROOTS = {"", "app", "pages", "src", "screens"}
_INDEX_STEMS = {"page", "index"}


def project_name(root: Path, files: Sequence[str]) -> str:
    """Resolve a display name from package.json, the README heading, or the directory."""
    name = load_package_json(root).get("name")
    if isinstance(name, str) and name.strip():
        bare = re.sub(r"^@[^/]+/", "", name.strip())
        return " ".join(word[:1].upper() + word[1:] for word in bare.split("-"))

    for readme in (path for path in files if _README.match(path)):
        text = read_text(root, readme)
        if text is None:
            continue
        match = _HEADING.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()

    dirname = re.sub(r"^repo-", "", root.name)
    dirname = re.sub(r"[-_]", " ", dirname)
    return " ".join(word[:1].upper() + word[1:] for word in dirname.split(" "))


def screen_name(path: str) -> str:
    """File stem, or the humanised parent segment for ``page``/``index`` files."""
    parts = path.split("/")
    stem = parts[-1].split(".", 1)[0]
    if stem.lower() not in _INDEX_STEMS:
        return stem
    parent = parts[-2] if len(parts) > 1 else ""
    if parent.lower() in _ROUTER_ROOTS:
        return "Home"
    return humanize(re.sub(r"[\[\]().@]", "", parent)) or "Home"


def screen_framework(path: str) -> Optional[str]:
    anchored = f"/{path}"
    if "/app/" in anchored or "/pages/api/" in anchored:
        return "nextjs"
    if "/src/pages/" in anchored:
        return "react"
    if "/screens/" in anchored:
        return "react-native"
    return None


def build_screens(screens: Sequence[str]) -> List[Screen]:
    result: List[Screen] = []
    for path in screens:
        name = screen_name(path)
        result.append(
            Screen(
                id=stable_id(path),
                name=name,
                path=path,
                purpose=infer_screen_purpose(name, path),
                framework=screen_framework(path),
            )
        )
    return result


def detect_stack(files: Sequence[str]) -> List[str]:
    """Coarse technology guess from path conventions, in a fixed order."""
    anchored = [f"/{path}" for path in files]
    checks = (
        ("nextjs", any("/pages/" in path or "/app/" in path for path in anchored)),
        ("nodejs", any(path.endswith("/package.json") for path in anchored)),
        ("react", any(path.endswith((".tsx", ".jsx")) for path in anchored)),
        ("prisma", any(path.endswith(".prisma") for path in anchored)),
        ("python", any(path.endswith(".py") for path in anchored)),
    )
    return [name for name, present in checks if present]


class Tier1Extractor:
    """Runs the classifier and every detector, then assembles the technical model."""

    def __init__(
        self,
        classifier: RepoClassifier | None = None,
        navigation: NavigationDetector | None = None,
        api: ApiEndpointDetector | None = None,
        data_model: DataModelDetector | None = None,
        state: StatePatternDetector | None = None,
        events: EventDetector | None = None,
    ) -> None:
        defaults = {detector.name: detector for detector in discover_detectors()}
        self.classifier = classifier or RepoClassifier()
        self.navigation = navigation or defaults["navigation"]
        self.api = api or defaults["api"]
        self.data_model = data_model or defaults["data-model"]
        self.state = state or defaults["state"]
        self.events = events or defaults["events"]
        self.logger = get_logger("extractor")

    def extract(self, root: str | Path) -> TechnicalModel:
        """Build the tier-1 model for ``root``; raises ScanError if the root is unreadable."""
        root_path = Path(root).expanduser().resolve()
        self.logger.info("Extracting tier-1 model from %s", root_path)
        index = self.classifier.classify(root_path)
        return self.assemble(root_path, index)

    def assemble(self, root: Path, index: RepositoryIndex) -> TechnicalModel:
        model = TechnicalModel(
            project_name=project_name(root, index.all_files),
            screens=build_screens(index.screens),
            navigation=self.navigation.detect(root, index),
            api=self.api.detect(root, index),
            data_model=self.data_model.detect(root, index),
            state_patterns=self.state.detect(root, index),
            events=self.events.detect(root, index),
            stack_detected=detect_stack(index.all_files),
        )
        model.extraction_notes = extraction_notes(index, model)
        self.logger.debug(
            "Detector counts: navigation=%d api=%d data-model=%d state=%d events=%d",
            len(model.navigation),
            len(model.api),
            len(model.data_model),
            len(model.state_patterns),
            len(model.events),
        )
        self.logger.info(model.extraction_notes)
        return model


def extraction_notes(index: RepositoryIndex, model: TechnicalModel) -> str:
    return "; ".join(
        [
            f"Scanned {len(index.all_files)} files",
            f"Found {len(model.screens)} screens/pages",
            f"Found {len(model.api)} API endpoints",
            f"Found {len(model.data_model)} data model entities",
            f"Found {len(model.navigation)} navigation items",
            f"Found {len(model.state_patterns)} state management patterns",
            f"Found {len(model.events)} event handlers",
        ]
    )


def aggregate(root: str | Path) -> TechnicalModel:
    """Return the tier-1 technical model for the repository at ``root``."""
    return Tier1Extractor().extract(root)


__all__ = [
    "Tier1Extractor",
    "aggregate",
    "build_screens",
    "detect_stack",
    "extraction_notes",
    "project_name",
    "screen_name",
]
