"""Base classes for pattern detectors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Generic, Iterator, List, Protocol, Sequence, Tuple, TypeVar

from ..models import RepositoryIndex
from ..utils import read_text

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class DetectorStrategy(Protocol[T_co]):
    """One framework idiom recognised by a detector; pure ``text -> findings``."""

    name: str

    def extract(self, text: str, location: str) -> List[T_co]:
        ...


class Detector(ABC, Generic[T]):
    """Contract for stateless detectors that emit findings from a repository index."""

    name: str = "detector"

    @abstractmethod
    def detect(self, root: Path, index: RepositoryIndex) -> T:
        """Return the findings for ``root``; unreadable files are skipped."""


def iter_texts(root: Path, paths: Sequence[str]) -> Iterator[Tuple[str, str]]:
    """Yield ``(path, text)`` for every readable file in ``paths``, in order."""
    for relative in paths:
        text = read_text(root, relative)
        if text is None:
            continue
        yield relative, text


def has_suffix(path: str, suffixes: Tuple[str, ...]) -> bool:
    return path.lower().endswith(suffixes)


__all__ = ["Detector", "DetectorStrategy", "has_suffix", "iter_texts"]
