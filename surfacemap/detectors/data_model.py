"""Entity extraction from TypeScript declarations, zod schemas, and Prisma models."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Set, Tuple

from ..logging import get_logger
from ..models import DataModel, DataModelEntity, DataModelField, DataModelRelationship, RepositoryIndex
from .base import Detector, has_suffix, iter_texts

NamedEntity = Tuple[str, DataModelEntity]

_SOURCE_SUFFIXES = (".ts", ".tsx", ".js", ".jsx")
_PRISMA_SUFFIXES = (".prisma",)

_INTERFACE = re.compile(r"(?:export\s+)?interface\s+(\w+)(?:\s+extends\s+[\w,\s]+)?\s*\{([^}]+)\}")
_TYPE_ALIAS = re.compile(r"(?:export\s+)?type\s+(\w+)\s*=\s*\{([^}]+)\}")
_TYPED_FIELD = re.compile(r"^\s*(\w+)([?]?)\s*:\s*([^;,]+)")

_ZOD_OBJECT = re.compile(r"(?:export\s+)?const\s+(\w+(?:Schema)?)\s*=\s*z\.object\s*\(\s*\{([^}]+)\}")
_ZOD_FIELD = re.compile(r"^\s*(\w+)\s*:\s*z\.(\w+)")

_PRISMA_MODEL = re.compile(r"model\s+(\w+)\s*\{([^}]+)\}")
_PRISMA_FIELD = re.compile(r"^\s*(\w+)\s+(\w+)(\[\])?(\?)?")

_HUNGARIAN_INTERFACE = re.compile(r"^I[A-Z]")
_HUNGARIAN_ALIAS = re.compile(r"^T[A-Z]")


def _typed_fields(body: str) -> Dict[str, DataModelField]:
    fields: Dict[str, DataModelField] = {}
    for line in body.splitlines():
        match = _TYPED_FIELD.match(line)
        if match:
            fields[match.group(1)] = DataModelField(type=match.group(3).strip(), required=not match.group(2))
    return fields


class InterfaceExtractor:
    """``interface Name { field: Type }`` blocks, skipping component helper types."""

    name = "interfaces"

    def extract(self, text: str, location: str) -> List[NamedEntity]:
        entities: List[NamedEntity] = []
        for match in _INTERFACE.finditer(text):
            name = match.group(1)
            if _HUNGARIAN_INTERFACE.match(name) or any(part in name for part in ("Props", "State", "Context")):
                continue
            fields = _typed_fields(match.group(2))
            if fields:
                entities.append((name, DataModelEntity(fields=fields)))
        return entities


class TypeAliasExtractor:
    """``type Name = { field: Type }`` object aliases."""

    name = "type-aliases"

    def extract(self, text: str, location: str) -> List[NamedEntity]:
        entities: List[NamedEntity] = []
        for match in _TYPE_ALIAS.finditer(text):
            name = match.group(1)
            if _HUNGARIAN_ALIAS.match(name) or any(part in name for part in ("Props", "State")):
                continue
            fields = _typed_fields(match.group(2))
            if fields:
                entities.append((name, DataModelEntity(fields=fields)))
        return entities


class ZodSchemaExtractor:
    """``const userSchema = z.object({...})`` builders, named ``User``."""

    name = "zod"

    def extract(self, text: str, location: str) -> List[NamedEntity]:
        entities: List[NamedEntity] = []
        for match in _ZOD_OBJECT.finditer(text):
            name = match.group(1)
            if name.endswith("Schema") and len(name) > len("Schema"):
                name = name[: -len("Schema")]
            name = name[0].upper() + name[1:]

            fields: Dict[str, DataModelField] = {}
            for line in match.group(2).splitlines():
                field_match = _ZOD_FIELD.match(line)
                if field_match:
                    fields[field_match.group(1)] = DataModelField(
                        type=f"z.{field_match.group(2)}",
                        required=".optional()" not in line,
                    )
            if fields:
                entities.append((name, DataModelEntity(fields=fields)))
        return entities


class PrismaExtractor:
    """``model Name { ... }`` blocks of a Prisma schema, with relations between models."""

    name = "prisma"

    def extract(self, text: str, location: str) -> List[NamedEntity]:
        blocks = [(match.group(1), match.group(2)) for match in _PRISMA_MODEL.finditer(text)]
        model_names: Set[str] = {name for name, _ in blocks}

        entities: List[NamedEntity] = []
        for name, body in blocks:
            entity = DataModelEntity()
            for line in body.splitlines():
                stripped = line.strip()
                if not stripped or stripped.startswith(("//", "@@")):
                    continue
                match = _PRISMA_FIELD.match(line)
                if not match:
                    continue
                field_name, field_type, is_list, optional = match.groups()
                unique = True if ("@id" in line or "@unique" in line) else None
                entity.fields[field_name] = DataModelField(
                    type=f"{field_type}[]" if is_list else field_type,
                    required=not optional,
                    unique=unique,
                )
                if field_type in model_names:
                    entity.relationships.append(
                        DataModelRelationship(
                            type="one-to-many" if is_list else "many-to-one",
                            target=field_type,
                            via=field_name,
                        )
                    )
            if entity.fields:
                entities.append((name, entity))
        return entities


def merge_entity(model: DataModel, name: str, entity: DataModelEntity) -> None:
    """Store ``entity`` under ``name``; a later extraction replaces an earlier one wholesale."""
    model[name] = entity


class DataModelDetector(Detector[DataModel]):
    """Runs every applicable extractor over the data-model bucket and merges the results."""

    name = "data-model"

    def __init__(self) -> None:
        self.source_extractors = (InterfaceExtractor(), TypeAliasExtractor(), ZodSchemaExtractor())
        self.schema_extractors = (PrismaExtractor(),)
        self.logger = get_logger("detectors.data_model")

    def detect(self, root: Path, index: RepositoryIndex) -> DataModel:
        model: DataModel = {}
        candidates = [
            path
            for path in index.data_model_files
            if has_suffix(path, _SOURCE_SUFFIXES) or has_suffix(path, _PRISMA_SUFFIXES)
        ]
        for location, text in iter_texts(root, candidates):
            extractors = self.schema_extractors if has_suffix(location, _PRISMA_SUFFIXES) else self.source_extractors
            for extractor in extractors:
                for name, entity in extractor.extract(text, location):
                    merge_entity(model, name, entity)

        self.logger.debug("Detected %d data model entities in %d files", len(model), len(candidates))
        return model


__all__ = [
    "DataModelDetector",
    "InterfaceExtractor",
    "PrismaExtractor",
    "TypeAliasExtractor",
    "ZodSchemaExtractor",
    "merge_entity",
]
