import unittest

import pandas as pd

import request_schema as rs
from request_schema import resolvers
from request_schema.card import mapping_frame, schema_card, to_markdown_card

from tests._util import ORDER, V1, V2, SchemaTestCase


class CardTests(unittest.TestCase):
    def test_to_markdown_card_basic(self):
        data = {
            "title":   "Example",
            "values":  [1, 2, 3],
            "details": {"a": 1, "b": True},
        }
        md = to_markdown_card(data)
        self.assertIn("## Title", md)
        self.assertIn("Example", md)
        self.assertIn("- 1", md)              # list item
        self.assertIn("- **a**: 1", md)        # nested mapping rendered
        self.assertIn("- **b**: true", md)

    def test_to_markdown_card_with_empty_values(self):
        md = to_markdown_card({"title": "Empty Test", "empty_list": [], "none_value": None}, heading_level=3)
        self.assertIn("### Empty List\n_none_", md)
        self.assertIn("### None Value\nnull", md)


class SchemaCardTests(SchemaTestCase):
    def setUp(self):
        super().setUp()
        self.order = rs.RequestSchema.from_dict(ORDER, registry=self.registry)

    def test_schema_card(self):
        card = schema_card(self.order, V1)
        self.assertEqual(card["title"], "OrderRequest")
        self.assertEqual(card["version"], V1)
        self.assertEqual(card["description"], "Create an order")
        self.assertEqual(card["excluded"], [])
        self.assertEqual(card["properties"], {
            "order_id": "string (required)",
            "customer": "object with 2 properties (mapped to buyer)",
            "shipping_address": "reference to Address (mapped to /delivery/address)",
            "payment": "one of card | bank (by method) (required)",
            "lines": "collection of object with 2 properties (mapped to line_items)",
        })
        self.assertIn("lines[]/quantity → line_items[]/qty", card["mapping"])
        self.assertIn("payment/card_number → payment/card_number [payment:card]", card["mapping"])

    def test_later_version_card(self):
        rs.configure(version_resolver=resolvers.downgrading)
        card = schema_card(self.order, V2)
        self.assertEqual(card["excluded"], ["order_id"])
        self.assertNotIn("order_id", card["properties"])
        self.assertEqual(card["properties"]["reference"], "string (required; mapped to order_id)")
        self.assertIn("reference → order_id", card["mapping"])

    def test_card_as_markdown(self):
        md = to_markdown_card(schema_card(self.order, V1))
        self.assertIn("## Title\nOrderRequest", md)
        self.assertIn("- **order_id**: string (required)", md)
        self.assertIn("## Excluded\n_none_", md)

    def test_combination_card(self):
        combo = self.make("Combo", one_of={"variants": {"with_id": "WithId", "without_id": "WithoutId"}})
        card = schema_card(combo, V1)
        self.assertEqual(card["properties"], {"(root)": "one of with_id | without_id"})

    def test_mapping_frame(self):
        frame = mapping_frame(self.order.mapping(V1))
        self.assertIsInstance(frame, pd.DataFrame)
        self.assertEqual(list(frame.columns), ["external", "internal", "variant"])
        row = frame[frame["external"] == "shipping_address/zip"].iloc[0]
        self.assertEqual(row["internal"], "delivery/address/postal_code")
        self.assertEqual(set(frame["variant"].dropna()), {"payment:card", "payment:bank"})


if __name__ == "__main__":
    unittest.main()
