"""Tests for surfacemap.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from surfacemap.config import (
    DEFAULT_CHARS_PER_TOKEN,
    DEFAULT_MIN_REMAINING_TOKENS,
    DEFAULT_TOKEN_BUDGET,
    ConfigError,
    SurfaceMapConfig,
    load_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, SurfaceMapConfig)
    assert config.root == tmp_path.resolve()
    assert config.exclude_paths == []
    assert config.evidence.token_budget == DEFAULT_TOKEN_BUDGET
    assert config.evidence.chars_per_token == DEFAULT_CHARS_PER_TOKEN
    assert config.evidence.min_remaining_tokens == DEFAULT_MIN_REMAINING_TOKENS
    assert config.evidence.mode == "full"
    assert config.evidence.priorities == {}


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    (tmp_path / ".surfacemap.yml").write_text(
        """
exclude_paths:
  - "fixtures/"
  - "*.snap"
evidence:
  token_budget: 50000
  chars_per_token: 4
  min_remaining_tokens: 250
  mode: TIER2
  priorities:
    contracts: 6
    test_file: "1"
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path / ".surfacemap.yml")

    assert config.exclude_paths == ["fixtures/", "*.snap"]
    assert config.evidence.token_budget == 50000
    assert config.evidence.chars_per_token == 4.0
    assert config.evidence.min_remaining_tokens == 250
    assert config.evidence.mode == "tier2"
    assert config.evidence.priorities == {"contracts": 6, "test_file": 1}


def test_load_config_accepts_single_exclude_path_string(tmp_path: Path) -> None:
    (tmp_path / ".surfacemap.yml").write_text("exclude_paths: vendor/\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.exclude_paths == ["vendor/"]


def test_empty_config_file_yields_defaults(tmp_path: Path) -> None:
    (tmp_path / ".surfacemap.yml").write_text("\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.exclude_paths == []
    assert config.evidence.token_budget == DEFAULT_TOKEN_BUDGET


@pytest.mark.parametrize(
    "payload",
    [
        "exclude_paths: [unterminated\n",
        "- just\n- a\n- list\n",
        "evidence:\n  token_budget: 0\n",
        "evidence:\n  chars_per_token: -1\n",
        "evidence:\n  mode: turbo\n",
        "evidence:\n  priorities:\n    repo_readme: high\n",
    ],
)
def test_load_config_rejects_invalid_values(tmp_path: Path, payload: str) -> None:
    (tmp_path / ".surfacemap.yml").write_text(payload, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
