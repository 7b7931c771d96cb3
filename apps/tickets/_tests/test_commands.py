"""Tests for the replay_payload management command."""

import json
import tempfile
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from apps.tickets.best_effort import BestEffortResult
from apps.tickets.exceptions import TicketStoreError
from apps.tickets.services import BridgeResult


class ReplayPayloadCommandTests(TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def write(self, content):
        path = Path(self.tmpdir.name) / "payload.json"
        path.write_text(content if isinstance(content, str) else json.dumps(content))
        return str(path)

    @patch("apps.tickets.management.commands.replay_payload.EventIngestService")
    def test_replays_event(self, mock_service_class):
        mock_service_class.return_value.process.return_value = BridgeResult(
            message="ClickUp task cu1 created (occurrence 1).",
            status=201,
            side_effects=[
                BestEffortResult(action="cross_reference_comment", ok=False, error="503")
            ],
        )
        out = StringIO()

        call_command("replay_payload", self.write({"issue": {"id": "42"}}), stdout=out)

        self.assertIn("[201] ClickUp task cu1 created (occurrence 1).", out.getvalue())
        self.assertIn("cross_reference_comment failed: 503", out.getvalue())

    @patch("apps.tickets.management.commands.replay_payload.EscalationTrigger")
    def test_replays_escalation(self, mock_trigger_class):
        mock_trigger_class.return_value.process.return_value = BridgeResult(message="no task id")
        out = StringIO()

        call_command("replay_payload", self.write({}), "--escalation", stdout=out)

        self.assertIn("[200] no task id", out.getvalue())

    @patch("apps.tickets.management.commands.replay_payload.EventIngestService")
    def test_bridge_error(self, mock_service_class):
        mock_service_class.return_value.process.side_effect = TicketStoreError(
            "clickup", "create", status=401, body="bad token"
        )

        with self.assertRaisesMessage(CommandError, "[502] clickup create failed: 401 bad token"):
            call_command("replay_payload", self.write({"issue": {"id": "42"}}))

    def test_invalid_json(self):
        with self.assertRaises(CommandError):
            call_command("replay_payload", self.write("{nope"))

    def test_missing_file(self):
        with self.assertRaises(CommandError):
            call_command("replay_payload", "/nonexistent/payload.json")
