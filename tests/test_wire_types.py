import os
import sys
import unittest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from xrmkit.errors import UnsupportedParameterKind
from xrmkit.wire_types import (
    STRUCTURAL_COLLECTION,
    STRUCTURAL_ENTITY,
    STRUCTURAL_PRIMITIVE,
    TypeRegistry,
    WireDescriptor,
)


class TestTypeRegistry(unittest.TestCase):
    def test_default_vocabulary(self) -> None:
        registry = TypeRegistry()
        self.assertEqual(registry.lookup("Integer").type_name, "Edm.Int32")
        self.assertEqual(registry.lookup("Money").type_name, "Edm.Decimal")
        self.assertEqual(registry.lookup("Float").type_name, "Edm.Double")
        self.assertEqual(registry.lookup("DateTime").type_name, "Edm.DateTimeOffset")
        self.assertEqual(registry.lookup("String").structural_property, STRUCTURAL_PRIMITIVE)
        self.assertEqual(registry.lookup("EntityReference").structural_property, STRUCTURAL_ENTITY)
        self.assertEqual(registry.lookup("EntityCollection").structural_property, STRUCTURAL_COLLECTION)
        self.assertEqual(len(list(registry.kinds())), 11)

    def test_unknown_kind_raises(self) -> None:
        registry = TypeRegistry()
        with self.assertRaises(UnsupportedParameterKind) as ctx:
            registry.lookup("Guid", "Target")
        self.assertEqual(ctx.exception.code, "PARAM_KIND_UNSUPPORTED")
        self.assertIn("Target", str(ctx.exception))

    def test_specialize_returns_copy(self) -> None:
        registry = TypeRegistry()
        specialized = registry.specialize("EntityReference", "account")
        self.assertEqual(specialized.type_name, "mscrm.account")
        self.assertEqual(specialized.structural_property, STRUCTURAL_ENTITY)
        self.assertEqual(registry.lookup("EntityReference").type_name, "mscrm.crmbaseentity")

    def test_specialize_ignores_non_reference_kinds(self) -> None:
        registry = TypeRegistry()
        self.assertEqual(registry.specialize("EntityCollection", "account").type_name, "Collection(mscrm.crmbaseentity)")
        self.assertEqual(registry.specialize("String", "account").type_name, "Edm.String")

    def test_registries_are_independent(self) -> None:
        a = TypeRegistry()
        b = TypeRegistry()
        a.register("Guid", WireDescriptor("Edm.Guid", STRUCTURAL_PRIMITIVE, "string"))
        self.assertEqual(a.lookup("Guid").type_name, "Edm.Guid")
        with self.assertRaises(UnsupportedParameterKind):
            b.lookup("Guid")

    def test_register_rejects_bad_descriptor(self) -> None:
        registry = TypeRegistry()
        with self.assertRaises(TypeError):
            registry.register("Guid", {"typeName": "Edm.Guid"})

    def test_metadata_subset(self) -> None:
        meta = TypeRegistry().lookup("Boolean").metadata()
        self.assertEqual(meta, {"typeName": "Edm.Boolean", "structuralProperty": 1})


if __name__ == "__main__":
    unittest.main()
