"""
Management command to run a stored webhook payload through the bridge.

Useful for reproducing a delivery from logs without going through HTTP.

Usage:
    python manage.py replay_payload sentry_event.json
    python manage.py replay_payload clickup_task.json --escalation
"""

import json
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from apps.tickets.escalation import EscalationTrigger
from apps.tickets.exceptions import BridgeError
from apps.tickets.services import EventIngestService


class Command(BaseCommand):
    help = "Replay a JSON webhook payload through the event ingest or escalation flow"

    def add_arguments(self, parser):
        parser.add_argument("path", help="Path to a JSON file holding the payload.")
        parser.add_argument(
            "--escalation",
            action="store_true",
            help="Treat the payload as a ClickUp task change instead of a Sentry event.",
        )

    def handle(self, *args, **options):
        path = Path(options["path"])
        try:
            payload = json.loads(path.read_text())
        except FileNotFoundError as e:
            raise CommandError(f"File not found: {path}") from e
        except json.JSONDecodeError as e:
            raise CommandError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(payload, dict):
            raise CommandError("Payload must be a JSON object")

        service = EscalationTrigger() if options["escalation"] else EventIngestService()
        try:
            result = service.process(payload)
        except BridgeError as e:
            raise CommandError(f"[{e.status_code}] {e}") from e

        self.stdout.write(self.style.SUCCESS(f"[{result.status}] {result.message}"))
        for side_effect in result.side_effects:
            if side_effect.failed:
                self.stdout.write(
                    self.style.WARNING(f"  {side_effect.action} failed: {side_effect.error}")
                )
