"""Tests for grouping key derivation."""

from django.test import SimpleTestCase

from apps.events.drivers.base import NormalizedEvent
from apps.events.grouping import derive_group_key, group_key_for, split_group_key


class DeriveGroupKeyTests(SimpleTestCase):
    def test_key_format(self):
        self.assertEqual(derive_group_key("api", "prod", "42"), "api:prod:42")

    def test_missing_issue_id(self):
        self.assertIsNone(derive_group_key("api", "prod", None))
        self.assertIsNone(derive_group_key("api", "prod", ""))

    def test_no_case_folding_by_default(self):
        self.assertEqual(derive_group_key("API", "Prod", "Ab1"), "API:Prod:Ab1")

    def test_case_folding_leaves_issue_id(self):
        self.assertEqual(derive_group_key("API", "Prod", "Ab1", casefold=True), "api:prod:Ab1")

    def test_group_key_for_event(self):
        event = NormalizedEvent(project="api", environment="prod", issue_id=42, title="t")
        self.assertEqual(group_key_for(event), "api:prod:42")


class SplitGroupKeyTests(SimpleTestCase):
    def test_round_trip(self):
        self.assertEqual(split_group_key("api:prod:42"), ("api", "prod", "42"))

    def test_project_with_separator(self):
        self.assertEqual(split_group_key("org:api:prod:42"), ("org:api", "prod", "42"))

    def test_malformed(self):
        with self.assertRaises(ValueError):
            split_group_key("nokey")
