"""Pattern detector implementations and lookup helpers."""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Set

from .api import ApiEndpointDetector
from .base import Detector, DetectorStrategy
from .data_model import DataModelDetector
from .events import EventDetector
from .navigation import NavigationDetector
from .state import StatePatternDetector

_BUILTIN_FACTORIES: Dict[str, Callable[[], Detector]] = {
    "navigation": NavigationDetector,
    "api": ApiEndpointDetector,
    "data-model": DataModelDetector,
    "state": StatePatternDetector,
    "events": EventDetector,
}


def discover_detectors(enabled: Sequence[str] | None = None) -> List[Detector]:
    """Return instantiated detectors in their canonical order, honoring optional enabled names."""

    enabled_set: Set[str] | None = None
    if enabled is not None:
        enabled_set = {name.lower() for name in enabled}
        unknown = enabled_set - set(_BUILTIN_FACTORIES)
        if unknown:
            raise ValueError(f"Unknown detectors requested: {', '.join(sorted(unknown))}")

    return [
        factory()
        for name, factory in _BUILTIN_FACTORIES.items()
        if enabled_set is None or name in enabled_set
    ]


__all__ = [
    "ApiEndpointDetector",
    "DataModelDetector",
    "Detector",
    "DetectorStrategy",
    "EventDetector",
    "NavigationDetector",
    "StatePatternDetector",
    "discover_detectors",
]
