import unittest

import request_schema as rs
from request_schema import builder
from request_schema.errors import DefinitionError, PropertyNotFound

from tests._util import V1, SchemaTestCase

SIMPLE = {
    "name": {"type": "string", "required": True, "min_length": 2},
    "age": {"type": "integer", "nullable": True},
    "email": {"type": "string", "required": ["name"]},
    "tags": {"kind": "array", "type": "string", "item_schema_options": {"min_length": 1}},
    "status": {"values": ["open", "closed"]},
    "category": {"value": "person"},
}


class SchemaBuilderTests(SchemaTestCase):
    def test_field_kinds(self):
        schema = self.make("Simple", properties=SIMPLE).to_validation_schema(V1)
        self.assertEqual(schema, {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": {"type": "string", "minLength": 2},
                "age": {"type": ["integer", "null"]},
                "email": {"type": "string"},
                "tags": {"type": "array", "items": {"type": "string", "minLength": 1}},
                "status": {"enum": ["open", "closed"]},
                "category": {"const": "person"},
            },
            "additionalProperties": False,
            "dependentRequired": {"email": ["name"]},
        })

    def test_dependent_required_is_enforced(self):
        schema = self.make("Dependent", properties={"name": "string", "email": {"type": "string", "required": ["name"]}})
        self.assertEqual(schema.validate({"name": "a", "email": "b"}, V1), [])
        [error] = schema.validate({"email": "b"}, V1)
        self.assertEqual(error["type"], "dependentRequired")

    def test_nullable_enum_and_array(self):
        schema = self.make("Nulls", properties={
            "status": {"values": ["a", "b"], "nullable": True},
            "tags": {"kind": "array", "type": "integer", "nullable": True},
        }).to_validation_schema(V1)
        self.assertEqual(schema["properties"]["status"], {"enum": ["a", "b", None]})
        self.assertEqual(schema["properties"]["tags"]["type"], ["array", "null"])

    def test_draft7_uses_dependencies(self):
        rs.configure(json_schema_version="draft7")
        schema = self.make("Draft7", properties=SIMPLE).to_validation_schema(V1)
        self.assertEqual(schema["dependencies"], {"email": ["name"]})
        self.assertNotIn("dependentRequired", schema)

    def test_additional_properties_setting(self):
        rs.configure(default_additional_properties=None)
        schema = self.make("Open", properties={"a": "string"}).to_validation_schema(V1)
        self.assertNotIn("additionalProperties", schema)

    def test_object_options_and_description(self):
        schema = rs.RequestSchema("Described", "Top level", {"title": "Described"}, registry=self.registry)
        schema.version(V1, properties={"meta": {"properties": {"a": "string"}, "min_properties": 1}})
        out = schema.to_validation_schema(V1)
        self.assertEqual(out["description"], "Top level")
        self.assertEqual(out["title"], "Described")
        self.assertEqual(out["properties"]["meta"]["minProperties"], 1)

    def test_custom_field_type(self):
        rs.configure(custom_field_types={"email": {"type": "string", "schema_options": {"format": "email"}}})
        schema = self.make("Custom", properties={"contact": {"type": "email", "max_length": 80}})
        self.assertEqual(schema.to_validation_schema(V1)["properties"]["contact"],
                         {"type": "string", "format": "email", "maxLength": 80})

    def test_unknown_field_type(self):
        schema = self.make("Unknown", properties={"contact": "email"})
        with self.assertRaisesRegex(DefinitionError, "unknown field type"):
            schema.to_validation_schema(V1)

    def test_reference_inlined(self):
        schema = self.make("WithAddress", properties={
            "address": {"from": "Address", "required": True},
            "city": {"from": "Address", "property": "city"},
            "stops": {"kind": "collection", "item": "Address", "min_items": 1},
        }).to_validation_schema(V1)
        address = schema["properties"]["address"]
        self.assertEqual(address["type"], "object")
        self.assertEqual(address["required"], ["street"])
        self.assertEqual(address["description"], "Postal address")
        self.assertEqual(schema["properties"]["city"], {"type": "string"})
        self.assertEqual(schema["properties"]["stops"]["minItems"], 1)
        self.assertEqual(schema["properties"]["stops"]["items"], address)
        self.assertEqual(schema["required"], ["address"])

    def test_nullable_reference(self):
        schema = self.make("Nullable", properties={
            "address": {"from": "Address", "nullable": True},
        }).to_validation_schema(V1)
        self.assertEqual(schema["properties"]["address"]["type"], ["object", "null"])

    def test_component_schema_uses_refs(self):
        schema = self.make("Components", properties={
            "address": {"from": "Address"},
            "city": {"from": "Address", "property": "city"},
            "payment": {"discriminator": "method", "variants": {"card": "CardPayment", "bank": "BankPayment"}},
        })
        out = schema.to_component_schema(V1)
        self.assertEqual(out["properties"]["address"], {"$ref": "#/components/schemas/Address"})
        self.assertEqual(out["properties"]["city"], {"$ref": "#/components/schemas/Address/properties/city"})
        self.assertEqual(out["properties"]["payment"]["discriminator"], {
            "propertyName": "method",
            "mapping": {
                "card": "#/components/schemas/CardPayment",
                "bank": "#/components/schemas/BankPayment",
            },
        })
        self.assertEqual(schema.to_ref(), "#/components/schemas/Components")
        self.assertEqual(schema.to_ref("address/street"),
                         "#/components/schemas/Components/properties/address/properties/street")

    def test_inline_discriminator_mapping_points_at_branches(self):
        schema = self.make("Inline", properties={
            "payment": {"discriminator": "method", "variants": {"card": "CardPayment", "bank": "BankPayment"}},
        }).to_validation_schema(V1)
        payment = schema["properties"]["payment"]
        self.assertEqual(len(payment["oneOf"]), 2)
        self.assertEqual(payment["discriminator"]["mapping"], {
            "card": "#/properties/payment/oneOf/0",
            "bank": "#/properties/payment/oneOf/1",
        })

    def test_nullable_one_of_without_discriminator(self):
        schema = self.make("Loose", properties={
            "item": {"variants": {"with_id": "WithId", "without_id": "WithoutId"}, "nullable": True},
        }).to_validation_schema(V1)
        item = schema["properties"]["item"]
        self.assertNotIn("discriminator", item)
        self.assertEqual(item["oneOf"][-1], {"type": "null"})
        self.assertEqual(len(item["oneOf"]), 3)

    def test_combination_root(self):
        schema = self.make("Combo", one_of={
            "discriminator": "method",
            "variants": {"card": "CardPayment", "bank": "BankPayment"},
        }).to_validation_schema(V1)
        self.assertEqual(schema["discriminator"]["mapping"], {"card": "#/oneOf/0", "bank": "#/oneOf/1"})

    def test_narrowed_schema(self):
        schema = self.make("Narrow", properties={"meta": {"properties": {"source": {"type": "string", "max_length": 4}}}})
        self.assertEqual(schema.to_validation_schema(V1, property="meta/source"), {"type": "string", "maxLength": 4})
        with self.assertRaises(PropertyNotFound):
            schema.to_validation_schema(V1, property="meta/missing")

    def test_circular_reference(self):
        rs.RequestSchema("Left", registry=self.registry).version(V1, properties={"right": {"from": "Right"}})
        right = rs.RequestSchema("Right", registry=self.registry).version(V1, properties={"left": {"from": "Left"}})
        with self.assertRaisesRegex(DefinitionError, "Circular reference"):
            right.to_validation_schema(V1)

    def test_unknown_reference(self):
        schema = self.make("Dangling", properties={"a": {"from": "Nowhere"}})
        with self.assertRaisesRegex(DefinitionError, "Unknown schema"):
            schema.to_validation_schema(V1)

    def test_reference_by_object(self):
        address = self.registry.get("Address")
        schema = self.make("ByObject", properties={"home": {"from": address}})
        self.assertEqual(schema.to_validation_schema(V1)["properties"]["home"]["required"], ["street"])

    def test_returned_schema_is_a_copy(self):
        schema = self.make("Copy", properties={"a": "string"})
        first = schema.to_validation_schema(V1)
        first["properties"].clear()
        self.assertIn("a", schema.to_validation_schema(V1)["properties"])

    def test_rendered_schemas_pass_meta_schema(self):
        for draft in ("draft7", "draft2019_09", "draft2020_12"):
            with self.subTest(draft=draft):
                rs.configure(json_schema_version=draft)
                schema = self.make(f"Meta{draft}", properties={
                    **SIMPLE,
                    "payment": {"discriminator": "method", "variants": {"card": "CardPayment", "bank": "BankPayment"}},
                    "stops": {"kind": "collection", "item": "Address"},
                })
                self.assertEqual(schema.validate_schema(V1), [])
                self.assertTrue(schema.valid_schema(V1))


class ComponentRefTests(unittest.TestCase):
    def test_component_ref(self):
        self.assertEqual(builder.component_ref("Address"), "#/components/schemas/Address")
        self.assertEqual(builder.component_ref("Address", "city"), "#/components/schemas/Address/properties/city")


if __name__ == "__main__":
    unittest.main()
