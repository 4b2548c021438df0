"""Core data models shared across surfacemap components."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class RepositoryIndex:
    """Category-tagged, repository-relative path lists produced by the classifier."""

    screens: Tuple[str, ...] = ()
    api_files: Tuple[str, ...] = ()
    data_model_files: Tuple[str, ...] = ()
    all_files: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Screen:
    """A user-facing page or screen discovered from the file layout."""

    id: str
    name: str
    path: str
    purpose: str
    framework: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "name": self.name,
                "path": self.path,
                "purpose": self.purpose,
                "framework": self.framework,
            }
        )


@dataclass(frozen=True)
class NavigationEdge:
    """A route or link between screens."""

    label: str
    path: str
    from_screen_id: Optional[str] = None
    to_screen_id: Optional[str] = None
    condition: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "label": self.label,
                "path": self.path,
                "fromScreenId": self.from_screen_id,
                "toScreenId": self.to_screen_id,
                "condition": self.condition,
            }
        )


@dataclass(frozen=True)
class ApiEndpoint:
    """An HTTP (or GraphQL) endpoint served or called by the codebase."""

    name: str
    endpoint: str
    method: str
    handler: str
    framework: Optional[str] = None
    payload_fields: Optional[Tuple[str, ...]] = None
    response_fields: Optional[Tuple[str, ...]] = None
    auth_required: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "name": self.name,
                "endpoint": self.endpoint,
                "method": self.method,
                "handler": self.handler,
                "framework": self.framework,
                "payloadFields": list(self.payload_fields) if self.payload_fields else None,
                "responseFields": list(self.response_fields) if self.response_fields else None,
                "authRequired": self.auth_required,
            }
        )


@dataclass(frozen=True)
class DataModelField:
    type: str
    required: bool
    unique: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"type": self.type, "required": self.required, "unique": self.unique})


@dataclass(frozen=True)
class DataModelRelationship:
    type: str
    target: str
    via: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"type": self.type, "target": self.target, "via": self.via})


@dataclass
class DataModelEntity:
    """Fields (and optional relationships) for one named entity."""

    fields: Dict[str, DataModelField] = field(default_factory=dict)
    relationships: List[DataModelRelationship] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "fields": {name: value.to_dict() for name, value in self.fields.items()}
        }
        if self.relationships:
            payload["relationships"] = [rel.to_dict() for rel in self.relationships]
        return payload


DataModel = Dict[str, DataModelEntity]


@dataclass(frozen=True)
class StatePattern:
    """State-management idiom usage found in one file."""

    type: str
    stores: Tuple[str, ...]
    location: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "stores": list(self.stores), "location": self.location}


@dataclass(frozen=True)
class EventFinding:
    """A UI event binding detected in a component file."""

    id: str
    type: str
    trigger: str
    outputs: Tuple[str, ...]
    location: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "trigger": self.trigger,
            "outputs": list(self.outputs),
            "location": self.location,
        }


@dataclass(frozen=True)
class EvidenceDocument:
    """Free-text artifact handed to the enrichment step as prompt context."""

    id: str
    type: str
    title: str
    content: str
    path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "type": self.type,
                "title": self.title,
                "content": self.content,
                "path": self.path,
            }
        )


@dataclass
class TechnicalModel:
    """Unified tier-1 technical model of a repository's user-facing surface."""

    project_name: str
    screens: List[Screen] = field(default_factory=list)
    navigation: List[NavigationEdge] = field(default_factory=list)
    api: List[ApiEndpoint] = field(default_factory=list)
    data_model: DataModel = field(default_factory=dict)
    state_patterns: List[StatePattern] = field(default_factory=list)
    events: List[EventFinding] = field(default_factory=list)
    stack_detected: List[str] = field(default_factory=list)
    extraction_notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectName": self.project_name,
            "screens": [screen.to_dict() for screen in self.screens],
            "navigation": [edge.to_dict() for edge in self.navigation],
            "api": [endpoint.to_dict() for endpoint in self.api],
            "dataModel": {name: entity.to_dict() for name, entity in self.data_model.items()},
            "statePatterns": [pattern.to_dict() for pattern in self.state_patterns],
            "events": [event.to_dict() for event in self.events],
            "aiMetadata": {
                "stackDetected": list(self.stack_detected),
                "extractionNotes": self.extraction_notes,
            },
        }

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


__all__ = [
    "ApiEndpoint",
    "DataModel",
    "DataModelEntity",
    "DataModelField",
    "DataModelRelationship",
    "EventFinding",
    "EvidenceDocument",
    "NavigationEdge",
    "RepositoryIndex",
    "Screen",
    "StatePattern",
    "TechnicalModel",
]
