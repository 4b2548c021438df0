from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Throwaway repository under tmp_path that tests populate and rescan."""
    return RepoBuilder(tmp_path)
