"""Tests for ordered extraction rules."""

from django.test import SimpleTestCase

from apps.events.extraction import first_match, is_present, path, typed


class IsPresentTests(SimpleTestCase):
    def test_none_and_empty_containers_are_absent(self):
        for value in (None, "", [], {}, ()):
            with self.subTest(value=value):
                self.assertFalse(is_present(value))

    def test_falsy_scalars_are_present(self):
        self.assertTrue(is_present(0))
        self.assertTrue(is_present(False))


class PathRuleTests(SimpleTestCase):
    def test_walks_nested_mappings(self):
        rule = path("data", "issue", "id")
        self.assertEqual(rule({"data": {"issue": {"id": "42"}}}), "42")

    def test_missing_step_yields_none(self):
        self.assertIsNone(path("data", "issue", "id")({"data": {}}))

    def test_type_mismatch_yields_none(self):
        self.assertIsNone(path("data", "issue")({"data": "not-a-dict"}))
        self.assertIsNone(path("items", 0)({"items": {"0": "x"}}))

    def test_integer_keys_index_lists(self):
        payload = {"items": [{"name": "a"}, {"name": "b"}]}
        self.assertEqual(path("items", 0, "name")(payload), "a")
        self.assertEqual(path("items", -1, "name")(payload), "b")
        self.assertIsNone(path("items", 5, "name")(payload))


class FirstMatchTests(SimpleTestCase):
    def test_first_non_empty_rule_wins(self):
        rules = (path("a"), path("b"), path("c"))
        self.assertEqual(first_match({"a": "", "b": "second", "c": "third"}, rules), "second")

    def test_default_when_nothing_matches(self):
        self.assertEqual(first_match({}, (path("a"),), default="fallback"), "fallback")

    def test_typed_filters_by_type(self):
        rule = typed(path("project"), str)
        self.assertEqual(rule({"project": "api"}), "api")
        self.assertIsNone(rule({"project": {"slug": "api"}}))
