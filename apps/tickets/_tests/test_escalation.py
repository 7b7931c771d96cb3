"""Tests for the escalation trigger."""

from datetime import datetime, timezone as dt_tz

from django.test import SimpleTestCase, TestCase

from apps.correlation.models import CorrelationRecord
from apps.correlation.store import CorrelationState, CorrelationStore
from apps.events.drivers.base import NormalizedEvent
from apps.tickets._tests.fakes import FakeTicketDriver, RecordingBackend
from apps.tickets.conf import BridgeConfig
from apps.tickets.drivers.base import TicketSnapshot
from apps.tickets.escalation import EscalationTrigger, parse_task_change
from apps.tickets.exceptions import ConfigurationError, TicketStoreError
from apps.tickets.rendering import OccurrenceStatus, build_ticket_body

T0 = datetime(2024, 1, 8, 10, 0, tzinfo=dt_tz.utc)
T1 = datetime(2024, 1, 9, 12, 30, tzinfo=dt_tz.utc)


class ParseTaskChangeTests(SimpleTestCase):
    def test_task_under_task_key(self):
        change = parse_task_change({"task": {"id": "99", "tags": ["ai-to-fix", {"name": "bug"}]}})

        self.assertEqual(change.task_id, "99")
        self.assertEqual(change.tags, ["ai-to-fix", "bug"])

    def test_task_under_event(self):
        change = parse_task_change({"event": {"task": {"id": 5, "tags": []}}})
        self.assertEqual(change.task_id, "5")

    def test_payload_is_task(self):
        change = parse_task_change({"task_id": "abc", "tag": [{"name": "AI-To-Fix"}]})

        self.assertEqual(change.task_id, "abc")
        self.assertTrue(change.has_tag("ai-to-fix"))

    def test_added_tag_from_history(self):
        change = parse_task_change(
            {
                "task_id": "99",
                "event": "taskTagUpdated",
                "history_items": [{"field": "tag", "after": {"tag": {"name": "ai-to-fix"}}}],
            }
        )

        self.assertEqual(change.tags, [])
        self.assertEqual(change.added_tags, ["ai-to-fix"])
        self.assertTrue(change.has_tag("AI-TO-FIX"))

    def test_added_tag_list_in_history(self):
        change = parse_task_change(
            {
                "task_id": "99",
                "history_items": [{"after": [{"name": "ai-to-fix", "tag_fg": "#fff"}]}],
            }
        )
        self.assertEqual(change.added_tags, ["ai-to-fix"])

    def test_added_tag_from_changes(self):
        change = parse_task_change({"task_id": "99", "changes": {"tags": {"added": ["ai-to-fix"]}}})
        self.assertEqual(change.added_tags, ["ai-to-fix"])

    def test_no_task_id(self):
        self.assertIsNone(parse_task_change({"event": "ping"}).task_id)


class EscalationTriggerTests(TestCase):
    def setUp(self):
        self.clock = lambda: T1
        self.store = CorrelationStore(clock=self.clock)
        self.triage = FakeTicketDriver(name="clickup", ticket_kind="ClickUp task", prefix="cu")
        self.escalation = FakeTicketDriver(name="github", ticket_kind="GitHub issue", prefix="")
        self.backend = RecordingBackend()

        event = NormalizedEvent(
            project="api",
            environment="prod",
            issue_id="42",
            title="NullPointer",
            permalink="https://sentry.io/issues/42/",
        )
        self.triage.tickets["99"] = TicketSnapshot(
            "99",
            title="[Sentry][prod] NullPointer",
            body=build_ticket_body(
                event, "api:prod:42", "## Summary\nNull dereference.", OccurrenceStatus(3, T0, T0)
            ),
            tags=["sentry", "ai-to-fix"],
        )

    def make_trigger(self, **overrides):
        return EscalationTrigger(
            config=BridgeConfig(**overrides),
            store=self.store,
            triage=self.triage,
            escalation=self.escalation,
            backend=self.backend,
            standards_provider=lambda: "Keep changes small.",
            clock=self.clock,
        )

    def test_tagged_task_creates_escalation_ticket(self):
        result = self.make_trigger().process({"task": {"id": "99", "tags": ["ai-to-fix"]}})

        self.assertEqual(result.status, 200)
        self.assertEqual(result.message, "GitHub issue #1 created from ai-to-fix tag.")
        self.assertEqual(result.group_key, "api:prod:42")

        issue = self.escalation.tickets["1"]
        self.assertEqual(issue.title, "[Sentry][prod] NullPointer")
        self.assertIn("> GroupKey: `api:prod:42`", issue.body)
        self.assertIn("## Summary\nNull dereference.", issue.body)
        self.assertIn("- **Sentry Issue:** https://sentry.io/issues/42/", issue.body)
        self.assertIn("Keep changes small.", issue.body)

        record = CorrelationRecord.objects.get(group_key="api:prod:42")
        self.assertEqual(record.triage_ticket_id, "99")
        self.assertEqual(record.escalation_ticket_id, "1")

        self.assertEqual(
            self.triage.comments["99"],
            ["Created GitHub issue **#1** for follow-up.\n\n_(Trigger: `ai-to-fix` tag)_"],
        )

    def test_existing_record_keeps_count_and_first_seen(self):
        self.store.put(
            "api:prod:42",
            CorrelationState(first_seen=T0, occurrences=3, triage_ticket_id="99", last_seen=T0),
        )

        self.make_trigger().process({"task": {"id": "99", "tags": ["ai-to-fix"]}})

        record = CorrelationRecord.objects.get(group_key="api:prod:42")
        self.assertEqual(record.occurrences, 3)
        self.assertEqual(record.first_seen, T0)
        self.assertIn("- **Occurrences:** 3", self.escalation.tickets["1"].body)

    def test_second_trigger_updates_existing_ticket(self):
        trigger = self.make_trigger()
        trigger.process({"task": {"id": "99", "tags": ["ai-to-fix"]}})

        result = trigger.process({"task": {"id": "99", "tags": ["ai-to-fix"]}})

        self.assertEqual(result.message, "GitHub issue #1 updated from ai-to-fix tag.")
        self.assertEqual(list(self.escalation.tickets), ["1"])
        self.assertEqual(self.escalation.calls, ["create", "get", "update_body"])

    def test_custom_trigger_tag(self):
        self.triage.tickets["99"].tags = ["fix-me"]
        result = self.make_trigger(trigger_tag="fix-me").process(
            {"task": {"id": "99", "tags": [{"name": "Fix-Me"}]}}
        )
        self.assertEqual(result.message, "GitHub issue #1 created from fix-me tag.")

    def test_no_task_id(self):
        result = self.make_trigger().process({"event": "taskUpdated"})

        self.assertEqual((result.status, result.message), (200, "no task id"))
        self.assertEqual(self.triage.calls, [])

    def test_no_trigger_tag(self):
        result = self.make_trigger().process({"task": {"id": "99", "tags": ["bug"]}})

        self.assertEqual((result.status, result.message), (200, "no trigger tag"))
        self.assertEqual(self.triage.calls, [])

    def test_no_group_key_is_noop(self):
        self.triage.tickets["99"].body = "Hand-written task without a key."

        result = self.make_trigger().process({"task": {"id": "99", "tags": ["ai-to-fix"]}})

        self.assertEqual((result.status, result.message), (200, "no group key"))
        self.assertEqual(self.escalation.calls, [])
        self.assertEqual(CorrelationRecord.objects.count(), 0)

    def test_malformed_group_key_is_noop(self):
        self.triage.tickets["99"].body = "> GroupKey: `nonsense`"

        result = self.make_trigger().process({"task": {"id": "99", "tags": ["ai-to-fix"]}})

        self.assertEqual(result.message, "no group key")
        self.assertEqual(self.escalation.calls, [])

    def test_task_fetch_failure(self):
        self.triage.fail_on.add("get")

        with self.assertRaises(TicketStoreError) as ctx:
            self.make_trigger().process({"task": {"id": "99", "tags": ["ai-to-fix"]}})

        self.assertEqual(ctx.exception.status_code, 502)
        self.assertEqual(CorrelationRecord.objects.count(), 0)

    def test_escalation_store_not_configured(self):
        self.escalation.configured = False

        with self.assertRaises(ConfigurationError):
            self.make_trigger().process({"task": {"id": "99", "tags": ["ai-to-fix"]}})

    def test_failed_cross_reference_still_succeeds(self):
        self.triage.fail_on.add("add_comment")

        result = self.make_trigger().process({"task": {"id": "99", "tags": ["ai-to-fix"]}})

        self.assertEqual(result.status, 200)
        self.assertTrue(result.side_effects[-1].failed)
        self.assertEqual(
            CorrelationRecord.objects.get(group_key="api:prod:42").escalation_ticket_id, "1"
        )

    def test_triage_store_needs_only_credentials(self):
        self.triage.configured = False
        self.triage.readable = True

        result = self.make_trigger().process({"task": {"id": "99", "tags": ["ai-to-fix"]}})

        self.assertEqual(result.message, "GitHub issue #1 created from ai-to-fix tag.")
        self.assertEqual(self.triage.calls, ["get", "add_comment"])

    def test_triage_store_without_credentials(self):
        self.triage.configured = False

        with self.assertRaisesMessage(ConfigurationError, "Missing clickup config (triage store)"):
            self.make_trigger().process({"task": {"id": "99", "tags": ["ai-to-fix"]}})
