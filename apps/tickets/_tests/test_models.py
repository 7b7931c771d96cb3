"""Tests for tickets models."""

from django.test import TestCase

from apps.tickets.models import StandardsDocument


class StandardsDocumentTests(TestCase):
    def test_empty(self):
        self.assertEqual(StandardsDocument.current_text(), "")

    def test_latest_wins(self):
        StandardsDocument.objects.create(content="v1")
        StandardsDocument.objects.create(content="v2")

        self.assertEqual(StandardsDocument.current_text(), "v2")
