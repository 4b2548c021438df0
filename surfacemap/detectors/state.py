"""State-management idiom recognition (Redux, Zustand, Context, React Query, Recoil, MobX)."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence, Set, Tuple

from ..logging import get_logger
from ..models import RepositoryIndex, StatePattern
from .base import Detector, has_suffix, iter_texts

_SOURCE_SUFFIXES = (".ts", ".tsx", ".js", ".jsx")

_SLICE = re.compile(r"createSlice\s*\(\s*\{\s*name:\s*['\"](\w+)['\"]")
_ZUSTAND_STORE = re.compile(r"(?:const|export\s+const)\s+(\w+)\s*=\s*create")
_CONTEXT = re.compile(r"(\w+Context)\s*=\s*createContext")
_PROVIDER = re.compile(r"(?:function|const)\s+(\w+Provider)\s*[=\(]")
_ATOM = re.compile(r"(?:const|export\s+const)\s+(\w+)\s*=\s*atom\s*\(")
_SELECTOR = re.compile(r"(?:const|export\s+const)\s+(\w+)\s*=\s*selector\s*\(")
_CLASS = re.compile(r"class\s+(\w+)")


class StateRecognizer(ABC):
    """Keyword-gated recogniser for one state-management library.

    Subclasses list the ``keywords`` whose presence gates the structural
    match and implement :meth:`store_groups`; each non-empty group becomes
    one :class:`StatePattern` for the file.
    """

    name = "state"
    keywords: Tuple[str, ...] = ()

    def extract(self, text: str, location: str) -> List[StatePattern]:
        if not any(keyword in text for keyword in self.keywords):
            return []
        return [
            StatePattern(type=self.name, stores=tuple(stores), location=location)
            for stores in self.store_groups(text)
            if stores
        ]

    @abstractmethod
    def store_groups(self, text: str) -> List[List[str]]:
        """Store names found in ``text``, one list per pattern to emit."""


class ReduxRecognizer(StateRecognizer):
    name = "redux"
    keywords = ("redux",)

    def store_groups(self, text: str) -> List[List[str]]:
        groups = [_SLICE.findall(text)]
        if "configureStore" in text:
            groups.append(["root-store"])
        return groups


class ZustandRecognizer(StateRecognizer):
    name = "zustand"
    keywords = ("zustand",)

    def store_groups(self, text: str) -> List[List[str]]:
        return [_ZUSTAND_STORE.findall(text)]


class ReactContextRecognizer(StateRecognizer):
    name = "react-context"
    keywords = ("createContext", ".Provider")

    def store_groups(self, text: str) -> List[List[str]]:
        return [_CONTEXT.findall(text) + _PROVIDER.findall(text)]


class ReactQueryRecognizer(StateRecognizer):
    name = "react-query"
    keywords = ("@tanstack/react-query", "react-query")

    def store_groups(self, text: str) -> List[List[str]]:
        if any(marker in text for marker in ("QueryClient", "useQuery", "useMutation")):
            return [["QueryClient"]]
        return []


class RecoilRecognizer(StateRecognizer):
    name = "recoil"
    keywords = ("recoil",)

    def store_groups(self, text: str) -> List[List[str]]:
        return [_ATOM.findall(text) + _SELECTOR.findall(text)]


class MobxRecognizer(StateRecognizer):
    name = "mobx"
    keywords = ("mobx",)

    def store_groups(self, text: str) -> List[List[str]]:
        if "makeObservable" not in text and "makeAutoObservable" not in text:
            return []
        return [_CLASS.findall(text) or ["MobX Store"]]


DEFAULT_RECOGNIZERS: Tuple[StateRecognizer, ...] = (
    ReduxRecognizer(),
    ZustandRecognizer(),
    ReactContextRecognizer(),
    ReactQueryRecognizer(),
    RecoilRecognizer(),
    MobxRecognizer(),
)


class StatePatternDetector(Detector[List[StatePattern]]):
    """Applies every recogniser to each JS/TS file; one pattern per (type, file)."""

    name = "state"

    def __init__(self, recognizers: Sequence[StateRecognizer] = DEFAULT_RECOGNIZERS) -> None:
        self.recognizers = tuple(recognizers)
        self.logger = get_logger("detectors.state")

    def detect(self, root: Path, index: RepositoryIndex) -> List[StatePattern]:
        patterns: List[StatePattern] = []
        seen: Set[Tuple[str, str]] = set()
        candidates = [path for path in index.all_files if has_suffix(path, _SOURCE_SUFFIXES)]
        for location, text in iter_texts(root, candidates):
            for recognizer in self.recognizers:
                for pattern in recognizer.extract(text, location):
                    key = (pattern.type, pattern.location)
                    if key in seen:
                        continue
                    seen.add(key)
                    patterns.append(pattern)

        self.logger.debug("Detected %d state patterns in %d files", len(patterns), len(candidates))
        return patterns


__all__ = [
    "DEFAULT_RECOGNIZERS",
    "MobxRecognizer",
    "ReactContextRecognizer",
    "ReactQueryRecognizer",
    "RecoilRecognizer",
    "ReduxRecognizer",
    "StatePatternDetector",
    "StateRecognizer",
    "ZustandRecognizer",
]
