"""UI event binding detection over a bounded sample of screen files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Set

from ..logging import get_logger
from ..models import EventFinding, RepositoryIndex
from ..utils import stable_id
from .base import Detector, iter_texts

# Only the first SAMPLE_LIMIT screen files are scanned.
SAMPLE_LIMIT = 50

_ELEMENT_EVENT = re.compile(
    r"\bon(Click|Change|Submit|Focus|Blur|KeyPress|KeyDown|KeyUp|MouseEnter|MouseLeave|Load|Error"
    r"|Select|Input|DoubleClick|ContextMenu|Drag|Drop|Scroll|Resize|Wheel|Touch\w+)(?:=\{([^}]+)\}|=)",
    re.IGNORECASE,
)
_LISTENER = re.compile(r"addEventListener\s*\(\s*['\"](\w+)['\"]\s*,\s*([^)]+)\)", re.IGNORECASE)
_EMIT = re.compile(r"(?:emit|dispatch|trigger)\s*\(\s*['\"]([^'\"]+)['\"]", re.IGNORECASE)
_FORM_SUBMIT = re.compile(r"<form[^>]*onSubmit=\{([^}]+)\}", re.IGNORECASE)
_BUTTON_CLICK = re.compile(r"<[Bb]utton[^>]*onClick=\{([^}]+)\}", re.IGNORECASE)


def _event(kind: str, trigger: str, output: str, location: str) -> EventFinding:
    return EventFinding(
        id=stable_id(f"{location}:{kind}:{trigger}"),
        type=kind,
        trigger=trigger,
        outputs=(output,),
        location=location,
    )


def extract_events(text: str, location: str) -> List[EventFinding]:
    """Return the event bindings in one file, keeping the first finding per trigger."""
    events: List[EventFinding] = []
    for match in _ELEMENT_EVENT.finditer(text):
        handler = match.group(2).strip() if match.group(2) else "inline"
        events.append(_event("user-interaction", f"on{match.group(1)}", re.sub(r"[()]", "", handler), location))
    for match in _LISTENER.finditer(text):
        events.append(_event("dom-event", match.group(1), match.group(2).strip(), location))
    for match in _EMIT.finditer(text):
        events.append(_event("custom-event", match.group(1), "emit", location))
    for match in _FORM_SUBMIT.finditer(text):
        events.append(_event("form-submission", "onSubmit", match.group(1).strip(), location))
    for match in _BUTTON_CLICK.finditer(text):
        events.append(_event("button-click", "onClick", match.group(1).strip(), location))

    unique: List[EventFinding] = []
    triggers: Set[str] = set()
    for event in events:
        if event.trigger in triggers:
            continue
        triggers.add(event.trigger)
        unique.append(event)
    return unique


class EventDetector(Detector[List[EventFinding]]):
    """Finds element, listener, emitted, form and button events in screen files."""

    name = "events"

    def __init__(self) -> None:
        self.logger = get_logger("detectors.events")

    def detect(self, root: Path, index: RepositoryIndex) -> List[EventFinding]:
        sample = index.screens[:SAMPLE_LIMIT]
        events: List[EventFinding] = []
        seen: Set[str] = set()
        for location, text in iter_texts(root, sample):
            for event in extract_events(text, location):
                key = f"{event.trigger}:{event.location}"
                if key in seen:
                    continue
                seen.add(key)
                events.append(event)

        self.logger.debug("Detected %d events in %d sampled screens", len(events), len(sample))
        return events


__all__ = ["EventDetector", "SAMPLE_LIMIT", "extract_events"]
