import unittest
from types import MappingProxyType

from request_schema import utils


class PathTests(unittest.TestCase):
    def test_split_and_join(self):
        self.assertEqual(utils.split_path("/a//b/"), ["a", "b"])
        self.assertEqual(utils.split_path(None), [])
        self.assertEqual(utils.join_path(["a", "b[]", "c"]), "a/b[]/c")

    def test_absolute(self):
        self.assertTrue(utils.is_absolute("/a"))
        self.assertFalse(utils.is_absolute("a/b"))
        self.assertFalse(utils.is_absolute(None))

    def test_item_keys(self):
        self.assertEqual(utils.item_key("lines"), "lines[]")
        self.assertTrue(utils.is_item_key("lines[]"))
        self.assertEqual(utils.strip_item("lines[]"), "lines")
        self.assertEqual(utils.strip_item("lines"), "lines")

    def test_pointers(self):
        self.assertEqual(utils.json_pointer(["properties", "a/b", 0]), "#/properties/a~1b/0")
        self.assertEqual(utils.data_pointer(["items", 2, "x~y"]), "/items/2/x~0y")
        self.assertEqual(utils.data_pointer([]), "")


class OptionTests(unittest.TestCase):
    def test_camelize(self):
        self.assertEqual(
            utils.camelize({"max_length": 1, "minLength": 2, "additional_properties": False}),
            {"maxLength": 1, "minLength": 2, "additionalProperties": False},
        )

    def test_freeze_and_thaw(self):
        frozen = utils.freeze({"a": [1, {"b": 2}]})
        self.assertIsInstance(frozen, MappingProxyType)
        with self.assertRaises(TypeError):
            frozen["c"] = 3
        thawed = utils.thaw(MappingProxyType({"a": (1, MappingProxyType({"b": 2}))}))
        self.assertEqual(thawed, {"a": [1, {"b": 2}]})
        self.assertIs(type(thawed["a"][1]), dict)


if __name__ == "__main__":
    unittest.main()
