from __future__ import annotations

from dataclasses import replace

import pytest

from surfacemap.detectors import (
    ApiEndpointDetector,
    DataModelDetector,
    EventDetector,
    NavigationDetector,
    StatePatternDetector,
    discover_detectors,
)
from tests._fixtures.repo_builder import RepoBuilder

GHOST_FILES = ("app/ghost/page.tsx", "app/api/ghost/route.ts", "src/types/ghost.ts")


def _populate(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "app/page.tsx": """
                export default function Home() {
                  fetch('/api/users');
                  return <button onClick={refresh}>Refresh</button>;
                }
            """,
            "app/api/users/route.ts": "export async function GET() { return Response.json([]) }\n",
            "src/types/user.ts": "export interface User {\n  id: string;\n}\n",
            "src/store.ts": 'import { createSlice } from "@reduxjs/toolkit";\ncreateSlice({ name: "cart" });\n',
        }
    )
    # a directory where a source file is expected fails on read
    (repo_builder.path() / "src" / "types" / "broken.ts").mkdir(parents=True)


def _with_unreadable_files(repo_builder: RepoBuilder):
    index = repo_builder.scan()
    assert "src/types/broken.ts" not in index.all_files
    extra = GHOST_FILES + ("src/types/broken.ts",)
    return replace(
        index,
        screens=extra + index.screens,
        api_files=extra + index.api_files,
        data_model_files=extra + index.data_model_files,
        all_files=extra + index.all_files,
    )


@pytest.mark.parametrize(
    "detector",
    [NavigationDetector(), ApiEndpointDetector(), StatePatternDetector(), EventDetector()],
    ids=lambda detector: detector.name,
)
def test_unreadable_files_do_not_reduce_other_findings(repo_builder: RepoBuilder, detector) -> None:
    _populate(repo_builder)
    root = repo_builder.path()

    clean = detector.detect(root, repo_builder.scan())
    noisy = detector.detect(root, _with_unreadable_files(repo_builder))

    assert clean
    assert all(finding in noisy for finding in clean)
    assert not any(getattr(finding, "location", None) in GHOST_FILES for finding in noisy)


def test_unreadable_model_files_do_not_reduce_entities(repo_builder: RepoBuilder) -> None:
    _populate(repo_builder)
    root = repo_builder.path()

    clean = DataModelDetector().detect(root, repo_builder.scan())
    noisy = DataModelDetector().detect(root, _with_unreadable_files(repo_builder))

    assert clean == noisy == {"User": clean["User"]}


def test_discover_detectors_returns_canonical_order() -> None:
    names = [detector.name for detector in discover_detectors()]

    assert names == ["navigation", "api", "data-model", "state", "events"]


def test_discover_detectors_honors_enabled_names() -> None:
    detectors = discover_detectors(["Events", "navigation"])

    assert [detector.name for detector in detectors] == ["navigation", "events"]


def test_discover_detectors_rejects_unknown_names() -> None:
    with pytest.raises(ValueError) as excinfo:
        discover_detectors(["navigation", "telemetry"])

    assert "telemetry" in str(excinfo.value)
