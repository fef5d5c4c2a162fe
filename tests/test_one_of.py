import unittest

from jsonschema import Draft202012Validator

from request_schema.errors import ResolutionError
from request_schema.one_of import OneOfResolver

from tests._util import V1, SchemaTestCase

DISCRIMINATED = {
    "card": {"method": "payment/method"},
    "bank": {"method": "payment/method"},
    "_discriminator": "payment/method",
    "_variant_path": "payment",
}

OPEN = {"type": "object", "properties": {"a": {"type": "string"}}}


class DiscriminatorTests(unittest.TestCase):
    def setUp(self):
        self.resolver = OneOfResolver(DISCRIMINATED)

    def test_attributes(self):
        self.assertEqual(self.resolver.variants, ("card", "bank"))
        self.assertEqual(self.resolver.discriminator, "method")
        self.assertFalse(self.resolver.nullable)
        self.assertEqual(self.resolver.name, "payment")

    def test_selects_by_value(self):
        self.assertEqual(self.resolver.select_variant({"method": "bank"}), "bank")

    def test_unknown_value(self):
        with self.assertRaisesRegex(ResolutionError, "unknown method 'crypto'") as ctx:
            self.resolver.select_variant({"method": "crypto"}, pointer="/payment")
        error = ctx.exception.as_error()
        self.assertEqual(error["pointer"], "/payment/method")
        self.assertEqual(error["type"], "oneOf")
        self.assertEqual(error["details"]["variants"], ["card", "bank"])

    def test_missing_discriminator(self):
        with self.assertRaisesRegex(ResolutionError, "missing") as ctx:
            self.resolver.select_variant({"card_number": "4111"}, pointer="/payment")
        self.assertEqual(ctx.exception.pointer, "/payment")

    def test_non_string_discriminator_values(self):
        resolver = OneOfResolver({"1": {}, "true": {}, "_discriminator": "version"})
        self.assertEqual(resolver.select_variant({"version": 1}), "1")
        self.assertEqual(resolver.select_variant({"version": True}), "true")

    def test_null_rejected_unless_nullable(self):
        with self.assertRaisesRegex(ResolutionError, "null"):
            self.resolver.select_variant(None)
        nullable = OneOfResolver({**DISCRIMINATED, "_nullable": True, "_nullable_path": "payment"})
        self.assertIsNone(nullable.select_variant(None))

    def test_non_object_value(self):
        with self.assertRaisesRegex(ResolutionError, "expected an object"):
            self.resolver.select_variant(["card"])


class InferenceTests(unittest.TestCase):
    def test_single_match(self):
        resolver = OneOfResolver({
            "with_id": {},
            "without_id": {},
            "_variant_schemas": {
                "with_id": {"type": "object", "required": ["id"]},
                "without_id": {"type": "object", "required": ["description"]},
            },
        }, Draft202012Validator)
        self.assertIsNone(resolver.discriminator)
        self.assertEqual(resolver.select_variant({"id": "1"}), "with_id")
        self.assertEqual(resolver.name, "one-of")

    def test_no_match(self):
        resolver = OneOfResolver({"a": {}, "_variant_schemas": {"a": {"type": "object", "required": ["x"]}}})
        with self.assertRaisesRegex(ResolutionError, "does not match any variant"):
            resolver.select_variant({})

    def test_ambiguous_match_never_picks_one(self):
        resolver = OneOfResolver({"a": {}, "b": {}, "_variant_schemas": {"a": OPEN, "b": OPEN}})
        with self.assertRaisesRegex(ResolutionError, "ambiguous") as ctx:
            resolver.select_variant({"a": "x"})
        self.assertEqual(ctx.exception.details["matches"], ["a", "b"])


class ResolverFromSchemaTests(SchemaTestCase):
    def test_inference_against_rendered_components(self):
        artifact = self.make("Loose", properties={
            "item": {"variants": {"with_id": "WithId", "without_id": "WithoutId"}},
        }).mapping(V1)
        resolver = OneOfResolver(artifact["_oneOfs"][0])
        self.assertEqual(resolver.select_variant({"id": "1", "name": "n"}), "with_id")
        self.assertEqual(resolver.select_variant({"name": "n", "description": "d"}), "without_id")
        with self.assertRaises(ResolutionError):
            resolver.select_variant({"name": "n"})


if __name__ == "__main__":
    unittest.main()
