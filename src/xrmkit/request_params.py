"""Operation parameters and their shape validation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Tuple

from .errors import InvalidParameterValue
from .wire_types import REFERENCE_KINDS, TypeRegistry, WireDescriptor, default_registry


@dataclass(frozen=True)
class EntityReference:
    id: str
    entity_type: str

    def to_dict(self) -> dict:
        return {"id": self.id, "entityType": self.entity_type}


@dataclass(frozen=True)
class RequestParameter:
    name: str
    kind: str
    value: Any

    @classmethod
    def coerce(cls, obj: Any) -> "RequestParameter":
        if isinstance(obj, RequestParameter):
            return obj
        if isinstance(obj, Mapping):
            kind = obj.get("Type", obj.get("Kind"))
            return cls(name=obj.get("Name"), kind=kind, value=obj.get("Value"))
        raise TypeError(f"Unsupported request parameter: {obj!r}")


def reference_parts(value: Any) -> Tuple[str, str] | None:
    """Return ``(id, entity_type)`` for a reference-shaped value, else None."""
    if isinstance(value, EntityReference):
        return value.id, value.entity_type
    if isinstance(value, Mapping) and "id" in value and "entityType" in value:
        return value["id"], value["entityType"]
    return None


def _matches_runtime_kind(value: Any, runtime_kind: str) -> bool:
    if runtime_kind == "string":
        return isinstance(value, str)
    if runtime_kind == "boolean":
        return isinstance(value, bool)
    if runtime_kind == "number":
        return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)
    if runtime_kind == "object":
        return value is not None and not isinstance(value, (str, int, float, Decimal, bool))
    return False


def validate_parameter(
    parameter: RequestParameter, registry: TypeRegistry | None = None
) -> WireDescriptor:
    """Check a parameter value against its kind.

    Returns the descriptor to put on the wire for this parameter. For
    reference kinds that is a copy naming the referenced entity type.
    """
    registry = registry or default_registry
    descriptor = registry.lookup(parameter.kind, parameter.name)
    value = parameter.value

    def _invalid() -> InvalidParameterValue:
        return InvalidParameterValue(
            message=(
                f"The value {value}\nof the property {parameter.name}\n"
                f"is not of the expected type {parameter.kind}."
            ),
            kind=parameter.kind,
            name=parameter.name,
        )

    if parameter.kind in REFERENCE_KINDS:
        parts = reference_parts(value)
        if parts is None:
            raise _invalid()
        return registry.specialize(parameter.kind, parts[1])

    if parameter.kind == "EntityCollection":
        if not isinstance(value, (list, tuple)):
            raise _invalid()
        if any(reference_parts(item) is None for item in value):
            raise _invalid()
        return descriptor

    if parameter.kind == "DateTime":
        if not isinstance(value, date):
            raise _invalid()
        return descriptor

    if not _matches_runtime_kind(value, descriptor.runtime_kind):
        raise _invalid()
    return descriptor
