"""Configuration loading for surfacemap (.surfacemap.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".surfacemap.yml"

DEFAULT_TOKEN_BUDGET = 110_000
DEFAULT_CHARS_PER_TOKEN = 3.5
DEFAULT_MIN_REMAINING_TOKENS = 100

_EVIDENCE_MODES = {"tier2", "tier3", "full"}


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class EvidenceConfig:
    """Evidence collection and chunking settings."""

    token_budget: int = DEFAULT_TOKEN_BUDGET
    chars_per_token: float = DEFAULT_CHARS_PER_TOKEN
    min_remaining_tokens: int = DEFAULT_MIN_REMAINING_TOKENS
    mode: str = "full"
    priorities: Dict[str, int] = field(default_factory=dict)


@dataclass
class SurfaceMapConfig:
    """Represents the settings defined in .surfacemap.yml."""

    root: Path
    exclude_paths: List[str] = field(default_factory=list)
    evidence: EvidenceConfig = field(default_factory=EvidenceConfig)


def load_config(config_path: Path) -> SurfaceMapConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return SurfaceMapConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    evidence = EvidenceConfig()
    evidence_data = _as_dict(data.get("evidence"))
    if evidence_data:
        budget = _as_int(evidence_data.get("token_budget"))
        if budget is not None:
            if budget <= 0:
                raise ConfigError("evidence.token_budget must be a positive integer")
            evidence.token_budget = budget
        ratio = _as_float(evidence_data.get("chars_per_token"))
        if ratio is not None:
            if ratio <= 0:
                raise ConfigError("evidence.chars_per_token must be positive")
            evidence.chars_per_token = ratio
        threshold = _as_int(evidence_data.get("min_remaining_tokens"))
        if threshold is not None:
            evidence.min_remaining_tokens = max(threshold, 0)
        mode = _as_str(evidence_data.get("mode"))
        if mode is not None:
            mode = mode.lower()
            if mode not in _EVIDENCE_MODES:
                allowed = ", ".join(sorted(_EVIDENCE_MODES))
                raise ConfigError(f"evidence.mode must be one of: {allowed}")
            evidence.mode = mode
        evidence.priorities = _as_priority_map(evidence_data.get("priorities"))

    return SurfaceMapConfig(
        root=root,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        evidence=evidence,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = Path(config_path).expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_number(value: Any, kind: type) -> Any:
    """Coerce YAML scalars (including quoted numbers) to ``kind``; None when impossible."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    if kind is int and isinstance(value, float):
        return None
    try:
        return kind(value)
    except ValueError:
        return None


def _as_float(value: Any) -> Optional[float]:
    return _as_number(value, float)


def _as_int(value: Any) -> Optional[int]:
    return _as_number(value, int)


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def _as_priority_map(value: Any) -> Dict[str, int]:
    priorities: Dict[str, int] = {}
    for key, raw in _as_dict(value).items():
        weight = _as_int(raw)
        if weight is None:
            raise ConfigError(f"evidence.priorities.{key} must be an integer")
        priorities[str(key)] = weight
    return priorities


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "EvidenceConfig",
    "SurfaceMapConfig",
    "load_config",
]
