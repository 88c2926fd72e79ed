"""Wire-type vocabulary for operation parameters."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable

from .errors import UnsupportedParameterKind


NAMESPACE = "mscrm"

STRUCTURAL_PRIMITIVE = 1
STRUCTURAL_COLLECTION = 4
STRUCTURAL_ENTITY = 5

REFERENCE_KINDS = frozenset({"EntityReference", "Entity"})


@dataclass(frozen=True)
class WireDescriptor:
    type_name: str
    structural_property: int
    runtime_kind: str

    def metadata(self) -> dict:
        return {
            "typeName": self.type_name,
            "structuralProperty": self.structural_property,
        }


DEFAULT_WIRE_TYPES: Dict[str, WireDescriptor] = {
    "String": WireDescriptor("Edm.String", STRUCTURAL_PRIMITIVE, "string"),
    "Integer": WireDescriptor("Edm.Int32", STRUCTURAL_PRIMITIVE, "number"),
    "Boolean": WireDescriptor("Edm.Boolean", STRUCTURAL_PRIMITIVE, "boolean"),
    "DateTime": WireDescriptor("Edm.DateTimeOffset", STRUCTURAL_PRIMITIVE, "object"),
    "EntityReference": WireDescriptor(f"{NAMESPACE}.crmbaseentity", STRUCTURAL_ENTITY, "object"),
    "Decimal": WireDescriptor("Edm.Decimal", STRUCTURAL_PRIMITIVE, "number"),
    "Entity": WireDescriptor(f"{NAMESPACE}.crmbaseentity", STRUCTURAL_ENTITY, "object"),
    "EntityCollection": WireDescriptor(
        f"Collection({NAMESPACE}.crmbaseentity)", STRUCTURAL_COLLECTION, "object"
    ),
    "Float": WireDescriptor("Edm.Double", STRUCTURAL_PRIMITIVE, "number"),
    "Money": WireDescriptor("Edm.Decimal", STRUCTURAL_PRIMITIVE, "number"),
    "Picklist": WireDescriptor("Edm.Int32", STRUCTURAL_PRIMITIVE, "number"),
}


class TypeRegistry:
    """Kind -> wire descriptor table.

    Descriptors are frozen; ``specialize`` hands back a copy for the
    current call and leaves the table untouched, so concurrent
    invocations never see each other's referenced entity types.
    """

    def __init__(self, table: Dict[str, WireDescriptor] | None = None) -> None:
        self._table: Dict[str, WireDescriptor] = dict(DEFAULT_WIRE_TYPES if table is None else table)

    def kinds(self) -> Iterable[str]:
        return list(self._table.keys())

    def register(self, kind: str, descriptor: WireDescriptor) -> None:
        if not isinstance(kind, str) or not kind:
            raise ValueError("kind must be non-empty string")
        if not isinstance(descriptor, WireDescriptor):
            raise TypeError("descriptor must be WireDescriptor")
        self._table[kind] = descriptor

    def lookup(self, kind: str, name: str | None = None) -> WireDescriptor:
        descriptor = self._table.get(kind) if isinstance(kind, str) else None
        if descriptor is None:
            raise UnsupportedParameterKind(
                message=f"The property type {kind} of the property {name} is not supported.",
                kind=kind,
                name=name,
            )
        return descriptor

    def specialize(self, kind: str, entity_type: str) -> WireDescriptor:
        descriptor = self.lookup(kind)
        if kind not in REFERENCE_KINDS:
            return descriptor
        return replace(descriptor, type_name=f"{NAMESPACE}.{entity_type}")


default_registry = TypeRegistry()
