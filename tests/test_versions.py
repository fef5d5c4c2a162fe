import unittest

import request_schema as rs
from request_schema import resolvers
from request_schema.errors import DefinitionError, PropertyNotFound, VersionNotFound
from request_schema.properties import Kind, Unconditional
from request_schema.versions import VersionDeclaration, Versions

from tests._util import V1, V2, SchemaTestCase


def simple_request(registry):
    return rs.RequestSchema.from_dict({
        "title": "SimpleRequest",
        "description": "A simple request",
        "schema_options": {"additional_properties": True},
        "versions": [
            {
                "version": V1,
                "properties": {
                    "name": "string",
                    "email": {"type": "string", "required": True},
                    "address": {"properties": {"street": "string", "city": "string"}},
                },
            },
            {
                "version": V2,
                "description": "Name is now required",
                "exclude": ["name"],
                "schema_options": {"additional_properties": None},
                "properties": {
                    "name": {"type": "string", "required": True},
                    "address": {"properties": {"zip": "string"}},
                },
            },
        ],
    }, registry=registry)


class VersionResolutionTests(SchemaTestCase):
    def setUp(self):
        super().setUp()
        self.schema = simple_request(self.registry)

    def test_first_version(self):
        v1 = self.schema.resolve(V1)
        self.assertEqual(list(v1.properties), ["name", "email", "address"])
        self.assertIsNone(v1.properties["name"].required)
        self.assertEqual(v1.description, "A simple request")
        self.assertEqual(dict(v1.schema_options), {"additionalProperties": True})

    def test_exclusion_then_redeclaration_appends(self):
        v2 = self.schema.resolve(V2)
        self.assertEqual(list(v2.properties), ["email", "address", "name"])
        self.assertEqual(v2.properties["name"].required, Unconditional())
        self.assertEqual(v2.excluded, frozenset({"name"}))
        self.assertEqual(v2.description, "Name is now required")

    def test_nested_merge_keeps_inherited_children(self):
        address = self.schema.resolve(V2).properties["address"]
        self.assertEqual(list(address.children), ["street", "city", "zip"])

    def test_unchanged_property_is_equal_across_versions(self):
        self.assertEqual(
            self.schema.resolve(V1).properties["email"],
            self.schema.resolve(V2).properties["email"],
        )

    def test_versions_are_independent(self):
        self.schema.resolve(V2)
        self.assertEqual(list(self.schema.resolve(V1).properties["address"].children), ["street", "city"])

    def test_option_removed_by_none(self):
        self.assertEqual(dict(self.schema.resolve(V2).schema_options), {})
        self.assertEqual(self.schema.to_validation_schema(V1)["additionalProperties"], True)
        self.assertEqual(self.schema.to_validation_schema(V2)["additionalProperties"], False)

    def test_required_list_follows_versions(self):
        self.assertEqual(self.schema.to_validation_schema(V1)["required"], ["email"])
        self.assertEqual(self.schema.to_validation_schema(V2)["required"], ["email", "name"])

    def test_resolution_is_memoized(self):
        self.assertIs(self.schema.resolve(V2), self.schema.resolve(V2))

    def test_unknown_version(self):
        with self.assertRaises(VersionNotFound):
            self.schema.resolve("2024-01")

    def test_missing_version_without_current(self):
        with self.assertRaises(ValueError):
            self.schema.resolve()

    def test_current_version(self):
        rs.configure(current_version=lambda: V1)
        self.assertEqual(self.schema.resolve().identifier, V1)

    def test_downgrading_resolver(self):
        rs.configure(version_resolver=resolvers.downgrading)
        self.assertEqual(self.schema.resolve("2025-07").identifier, V1)
        self.assertEqual(self.schema.resolve("2026-01").identifier, V2)
        with self.assertRaises(VersionNotFound):
            self.schema.resolve("2024-01")


class VersionDeclarationTests(SchemaTestCase):
    def test_duplicate_version(self):
        schema = self.make("Dup", properties={"a": "string"})
        with self.assertRaisesRegex(DefinitionError, "declared twice"):
            schema.version(V1, properties={"b": "string"})

    def test_inherit_false_starts_empty(self):
        schema = self.make("Fresh", properties={"a": "string"})
        schema.version(V2, inherit=False, properties={"b": "string"})
        self.assertEqual(list(schema.resolve(V2).properties), ["b"])

    def test_inherit_named_version(self):
        schema = self.make("Named", properties={"a": "string"})
        schema.version(V2, properties={"b": "string"})
        schema.version("2025-10", inherit=V1, properties={"c": "string"})
        self.assertEqual(list(schema.resolve("2025-10").properties), ["a", "c"])

    def test_inherit_undeclared_version(self):
        schema = self.make("Orphan", properties={"a": "string"})
        with self.assertRaises(VersionNotFound):
            schema.version(V2, inherit="2020-01")

    def test_exclude_unknown_property(self):
        schema = self.make("Exclude", properties={"a": "string"})
        schema.version(V2, exclude="missing")
        with self.assertRaises(PropertyNotFound):
            schema.resolve(V2)

    def test_kind_change_replaces_property(self):
        schema = self.make("Change", properties={"a": {"properties": {"x": "string"}}})
        schema.version(V2, properties={"a": "integer"})
        self.assertIs(schema.resolve(V2).properties["a"].kind, Kind.FIELD)
        self.assertIs(schema.resolve(V1).properties["a"].kind, Kind.OBJECT)

    def test_empty_version_inherits_unchanged(self):
        schema = self.make("Same", properties={"a": "string"})
        schema.version(V2)
        self.assertEqual(schema.resolve(V1).root, schema.resolve(V2).root)

    def test_combination_root(self):
        schema = self.make("Combo", one_of={"variants": {"with_id": "WithId", "without_id": "WithoutId"}})
        version = schema.resolve(V1)
        self.assertTrue(version.is_combination)
        self.assertEqual(len(version.properties), 0)
        self.assertEqual(list(version.root.variants), ["with_id", "without_id"])

    def test_bad_entries(self):
        cases = [
            {"properties": {}},
            {"version": ""},
            {"version": "1", "exclude": [1]},
            {"version": "1", "inherit": 3},
            {"version": "1", "schema_options": ["strict"]},
        ]
        for entry in cases:
            with self.subTest(entry=entry):
                with self.assertRaises(DefinitionError):
                    VersionDeclaration.from_dict(entry)


class VersionsContainerTests(unittest.TestCase):
    def tearDown(self):
        rs.reset()

    def test_container_protocol(self):
        versions = Versions("T")
        versions.add(VersionDeclaration.from_dict({"version": "1", "properties": {"a": "string"}}))
        versions.add(VersionDeclaration.from_dict({"version": "2", "exclude": "a"}))
        self.assertEqual(versions.identifiers, ("1", "2"))
        self.assertEqual(len(versions), 2)
        self.assertIn("2", versions)
        self.assertEqual(len(versions.resolve("2").properties), 0)


if __name__ == "__main__":
    unittest.main()
