"""Tests for ticket body rendering and reconciliation."""

from datetime import datetime, timezone as dt_tz

from django.test import SimpleTestCase

from apps.events.drivers.base import NormalizedEvent, StackFrame
from apps.tickets.rendering import (
    ESCALATION_INTRO,
    NO_STANDARDS,
    OccurrenceStatus,
    build_ticket_body,
    extract_ai_summary,
    extract_group_key,
    extract_permalink,
    parse_ticket_title,
    render_escalation_comment,
    render_occurrence_comment,
    render_template,
    replace_status_section,
    ticket_title,
)

T0 = datetime(2024, 1, 8, 10, 0, tzinfo=dt_tz.utc)
T1 = datetime(2024, 1, 9, 12, 30, tzinfo=dt_tz.utc)


def _event(**kwargs):
    defaults = {"project": "api", "environment": "prod", "issue_id": "42", "title": "NullPointer"}
    defaults.update(kwargs)
    return NormalizedEvent(**defaults)


class BuildTicketBodyTests(SimpleTestCase):
    def test_minimal_body(self):
        body = build_ticket_body(_event(), "api:prod:42", None, OccurrenceStatus(1, T0, T0))

        self.assertEqual(
            body,
            "### Links\n"
            "- (No Sentry link)\n"
            "\n"
            "### AI Summary\n"
            "_AI summary unavailable_\n"
            "\n"
            "### Context\n"
            "- **Project:** api\n"
            "- **Environment:** prod\n"
            "\n"
            "### Status\n"
            "<!-- status:start -->\n"
            "- **Occurrences:** 1\n"
            "- **First seen:** 2024-01-08T10:00:00+00:00\n"
            "- **Last seen:** 2024-01-08T10:00:00+00:00\n"
            "<!-- status:end -->\n"
            "\n"
            "> GroupKey: `api:prod:42`",
        )

    def test_full_event_sections(self):
        event = _event(
            permalink="https://sentry.io/issues/42/",
            level="error",
            culprit="views.index",
            frames=[StackFrame("app.views", "views.py", 10, "index") for _ in range(6)],
        )

        body = build_ticket_body(event, "api:prod:42", "## Summary\nBad.", OccurrenceStatus(1, T0))

        self.assertIn("- **Sentry Issue:** https://sentry.io/issues/42/", body)
        self.assertIn("- **Level:** error", body)
        self.assertIn("- **Culprit:** `views.index`", body)
        self.assertIn("<details><summary>Top frames</summary>", body)
        self.assertEqual(body.count("- `app.views/views.py:10` in `index`"), 4)
        self.assertNotIn("### Standards & Expectations", body)

    def test_frames_section_omitted_without_frames(self):
        body = build_ticket_body(_event(), "api:prod:42", None, OccurrenceStatus(1, T0))
        self.assertNotIn("<details>", body)

    def test_escalation_body(self):
        body = build_ticket_body(
            _event(),
            "api:prod:42",
            None,
            OccurrenceStatus(1, T0),
            intro=ESCALATION_INTRO,
            include_standards=True,
            standards="",
        )

        self.assertTrue(body.startswith(f"### Summary\n{ESCALATION_INTRO}\n\n### Links"))
        self.assertIn(f"### Standards & Expectations\n{NO_STANDARDS}", body)
        self.assertTrue(body.endswith("> GroupKey: `api:prod:42`"))

    def test_section_order(self):
        body = build_ticket_body(
            _event(frames=[StackFrame("m", "f.py", 1, "fn")]),
            "api:prod:42",
            "text",
            OccurrenceStatus(1, T0),
            include_standards=True,
            standards="Write tests.",
        )
        markers = [
            "### Links",
            "### AI Summary",
            "### Context",
            "### Status",
            "<details>",
            "### Standards & Expectations",
            "> GroupKey:",
        ]
        positions = [body.index(marker) for marker in markers]
        self.assertEqual(positions, sorted(positions))

    def test_missing_template(self):
        with self.assertRaises(ValueError):
            render_template("missing.md.j2")


class StatusSectionTests(SimpleTestCase):
    def test_replacement_only_touches_status_block(self):
        event = _event(permalink="https://sentry.io/issues/42/")
        original = build_ticket_body(event, "api:prod:42", "summary", OccurrenceStatus(1, T0, T0))

        updated = replace_status_section(original, OccurrenceStatus(2, T0, T1))

        expected = build_ticket_body(event, "api:prod:42", "summary", OccurrenceStatus(2, T0, T1))
        self.assertEqual(updated, expected)

    def test_human_edits_are_preserved(self):
        original = build_ticket_body(_event(), "api:prod:42", None, OccurrenceStatus(1, T0))
        edited = original.replace("### Context", "Notes from on-call: flaky DB.\n\n### Context")

        updated = replace_status_section(edited, OccurrenceStatus(5, T0, T1))

        self.assertIn("Notes from on-call: flaky DB.", updated)
        self.assertIn("- **Occurrences:** 5", updated)
        before, after = "<!-- status:start -->", "<!-- status:end -->"
        self.assertEqual(updated.split(before)[0], edited.split(before)[0])
        self.assertEqual(updated.split(after)[1], edited.split(after)[1])

    def test_missing_delimiters_returns_none(self):
        status = OccurrenceStatus(2, T0)
        self.assertIsNone(replace_status_section("Someone rewrote everything.", status))
        self.assertIsNone(replace_status_section("", status))


class ExtractionTests(SimpleTestCase):
    def setUp(self):
        self.body = build_ticket_body(
            _event(permalink="https://sentry.io/issues/42/"),
            "api:prod:42",
            "## Summary\nThe cache is cold.\n\n## Suggested Fix\nWarm it.",
            OccurrenceStatus(1, T0),
        )

    def test_extract_group_key(self):
        self.assertEqual(extract_group_key(self.body), "api:prod:42")
        self.assertEqual(extract_group_key("groupkey: `a:b:c`"), "a:b:c")
        self.assertIsNone(extract_group_key("no key here"))

    def test_extract_permalink(self):
        self.assertEqual(extract_permalink(self.body), "https://sentry.io/issues/42/")
        self.assertEqual(extract_permalink("nothing"), "")

    def test_extract_ai_summary(self):
        self.assertEqual(
            extract_ai_summary(self.body),
            "## Summary\nThe cache is cold.\n\n## Suggested Fix\nWarm it.",
        )

    def test_extract_ai_summary_placeholder(self):
        body = build_ticket_body(_event(), "api:prod:42", None, OccurrenceStatus(1, T0))
        self.assertIsNone(extract_ai_summary(body))
        self.assertIsNone(extract_ai_summary("no heading"))


class TitleTests(SimpleTestCase):
    def test_ticket_title(self):
        self.assertEqual(ticket_title(_event()), "[Sentry][prod] NullPointer")

    def test_parse_ticket_title(self):
        self.assertEqual(parse_ticket_title("[Sentry][prod] NullPointer"), ("prod", "NullPointer"))
        self.assertEqual(parse_ticket_title("Renamed by hand"), (None, "Renamed by hand"))


class CommentTests(SimpleTestCase):
    def test_occurrence_comment(self):
        text = render_occurrence_comment(
            _event(level="error", permalink="https://sentry.io/issues/42/"),
            OccurrenceStatus(3, T0, T1),
        )

        self.assertTrue(text.startswith("New occurrence for **[Sentry][prod] NullPointer**"))
        self.assertIn("- Occurrences: 3", text)
        self.assertIn("- Level: error", text)
        self.assertIn("- Seen at: 2024-01-09T12:30:00+00:00", text)
        self.assertIn("- Sentry: https://sentry.io/issues/42/", text)

    def test_escalation_comment_from_trigger(self):
        text = render_escalation_comment(
            "GitHub issue", "#7", created=True, trigger_tag="ai-to-fix"
        )
        self.assertEqual(
            text, "Created GitHub issue **#7** for follow-up.\n\n_(Trigger: `ai-to-fix` tag)_"
        )

    def test_escalation_comment_from_event(self):
        text = render_escalation_comment("GitHub issue", "#7", created=False)
        self.assertEqual(text, "Updated GitHub issue **#7** from Sentry event.")
