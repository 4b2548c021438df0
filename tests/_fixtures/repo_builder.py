"""Throwaway repositories for detector and classifier tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

from surfacemap.classifier import RepoClassifier
from surfacemap.models import RepositoryIndex


class RepoBuilder:
    """Writes source files under ``<tmp_path>/repo`` and re-runs the classifier on demand."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()
        self._classifier = RepoClassifier()

    def write(self, files: Mapping[str, str]) -> None:
        """Create each ``relative path -> source`` entry, dedenting indented literals."""
        for relative, source in files.items():
            target = self.root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")

    def scan(self) -> RepositoryIndex:
        """Classify the current contents of the repository."""
        return self._classifier.classify(self.root)

    def path(self) -> Path:
        return self.root


__all__ = ["RepoBuilder"]
