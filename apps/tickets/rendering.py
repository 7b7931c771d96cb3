"""Ticket body rendering and reconciliation.

A ticket body is an ordered list of named sections followed by the grouping
key token::

    ### Links
    ### AI Summary
    ### Context
    ### Status        <- wrapped in <!-- status:start --> / <!-- status:end -->
    (Top frames)
    ### Standards & Expectations      (escalation tickets only)
    > GroupKey: `project:environment:issue_id`

Only the Status section is ever rewritten by the bridge. Everything else,
including edits people make in the ticket, is preserved byte for byte. The
GroupKey token is what lets the escalation trigger find its way back to the
correlation record, so it must stay extractable by exact pattern match.

Section contents are Jinja2 templates in ``templates/tickets/``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import jinja2

from apps.events.drivers.base import NormalizedEvent

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates" / "tickets"

_JINJA_ENV = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)

SOURCE_LABEL = "Sentry"
SUMMARY_UNAVAILABLE = "_AI summary unavailable_"
NO_STANDARDS = "_No standards configured yet. Add them in the admin under Tickets > Standards._"
ESCALATION_INTRO = f"Issue auto-generated from {SOURCE_LABEL} + AI review."

HEADING_PREFIX = "### "
AI_SUMMARY_HEADING = "AI Summary"
STATUS_START = "<!-- status:start -->"
STATUS_END = "<!-- status:end -->"

STATUS_PATTERN = re.compile(re.escape(STATUS_START) + r".*?" + re.escape(STATUS_END), re.DOTALL)
GROUP_KEY_PATTERN = re.compile(r"GroupKey:\s*`([^`]+)`", re.IGNORECASE)
PERMALINK_PATTERN = re.compile(r"\*\*" + SOURCE_LABEL + r" Issue:\*\*\s*(\S+)")
TITLE_PATTERN = re.compile(r"^\[" + SOURCE_LABEL + r"\]\[(.+?)\]\s*")

# Headings that may follow the AI summary; the summary ends at the first one.
_SECTION_BOUNDARY = re.compile(
    r"^(?:### (?:Links|Context|Status|Standards & Expectations)\s*$|"
    + re.escape(STATUS_START)
    + r"|<details><summary>Top frames</summary>|> GroupKey:)",
    re.MULTILINE,
)


def render_template(name: str, **context: Any) -> str:
    """Render ``templates/tickets/<name>`` and strip trailing whitespace."""
    try:
        template = _JINJA_ENV.get_template(name)
    except jinja2.TemplateNotFound as e:
        raise ValueError(f"Template file not found: {name}") from e
    return template.render(source=SOURCE_LABEL, **context).rstrip()


def _format_timestamp(value: datetime | None) -> str:
    return value.isoformat(timespec="seconds") if value else "-"


@dataclass(frozen=True)
class OccurrenceStatus:
    """Machine-owned values shown in a ticket's Status section."""

    occurrences: int
    first_seen: datetime
    last_seen: datetime | None = None

    @property
    def first_seen_display(self) -> str:
        return _format_timestamp(self.first_seen)

    @property
    def last_seen_display(self) -> str:
        return _format_timestamp(self.last_seen or self.first_seen)


@dataclass(frozen=True)
class Section:
    """A named block of a ticket body."""

    name: str
    content: str
    heading: str | None = None
    delimited: bool = False

    def render(self) -> str:
        content = self.content
        if self.delimited:
            content = f"{STATUS_START}\n{content}\n{STATUS_END}"
        if self.heading:
            return f"{HEADING_PREFIX}{self.heading}\n{content}"
        return content


def ticket_title(event: NormalizedEvent) -> str:
    return f"[{SOURCE_LABEL}][{event.environment}] {event.title}"


def parse_ticket_title(title: str) -> tuple[str | None, str]:
    """Split ``[Sentry][env] title`` into (environment, title)."""
    match = TITLE_PATTERN.match(title or "")
    if not match:
        return None, (title or "").strip()
    return match.group(1), title[match.end() :].strip()


def status_section(status: OccurrenceStatus) -> Section:
    return Section(
        name="status",
        heading="Status",
        content=render_template("status.md.j2", status=status),
        delimited=True,
    )


def build_sections(
    event: NormalizedEvent,
    summary: str | None,
    status: OccurrenceStatus,
    frame_limit: int = 4,
    intro: str | None = None,
    standards: str | None = None,
    include_standards: bool = False,
) -> list[Section]:
    sections: list[Section] = []
    if intro:
        sections.append(Section(name="summary", heading="Summary", content=intro))

    sections.append(
        Section(name="links", heading="Links", content=render_template("links.md.j2", event=event))
    )
    sections.append(
        Section(
            name="ai_summary",
            heading=AI_SUMMARY_HEADING,
            content=(summary or "").strip() or SUMMARY_UNAVAILABLE,
        )
    )
    sections.append(
        Section(
            name="context", heading="Context", content=render_template("context.md.j2", event=event)
        )
    )
    sections.append(status_section(status))

    frames = event.frames[:frame_limit] if frame_limit > 0 else []
    if frames:
        sections.append(
            Section(name="frames", content=render_template("frames.md.j2", frames=frames))
        )

    if include_standards:
        sections.append(
            Section(
                name="standards",
                heading="Standards & Expectations",
                content=(standards or "").strip() or NO_STANDARDS,
            )
        )
    return sections


def render_body(sections: list[Section], group_key: str) -> str:
    blocks = [section.render() for section in sections]
    blocks.append(f"> GroupKey: `{group_key}`")
    return "\n\n".join(blocks)


def build_ticket_body(
    event: NormalizedEvent,
    group_key: str,
    summary: str | None,
    status: OccurrenceStatus,
    **options: Any,
) -> str:
    """Render a complete ticket body from the fixed template."""
    return render_body(build_sections(event, summary, status, **options), group_key)


def replace_status_section(body: str, status: OccurrenceStatus) -> str | None:
    """Replace only the delimited Status block.

    Returns None when the delimiters are gone (e.g. someone edited them
    away); callers then rebuild the full body instead.
    """
    block = f"{STATUS_START}\n{render_template('status.md.j2', status=status)}\n{STATUS_END}"
    updated, count = STATUS_PATTERN.subn(lambda _match: block, body or "", count=1)
    if count == 0:
        return None
    return updated


def extract_group_key(body: str) -> str | None:
    match = GROUP_KEY_PATTERN.search(body or "")
    return match.group(1).strip() if match else None


def extract_permalink(body: str) -> str:
    match = PERMALINK_PATTERN.search(body or "")
    return match.group(1) if match else ""


def extract_ai_summary(body: str) -> str | None:
    """Return the text under the AI Summary heading, up to the next section."""
    heading = re.search(
        r"^" + re.escape(HEADING_PREFIX + AI_SUMMARY_HEADING) + r"\s*$", body or "", re.MULTILINE
    )
    if not heading:
        return None
    rest = body[heading.end() :]
    boundary = _SECTION_BOUNDARY.search(rest)
    text = (rest[: boundary.start()] if boundary else rest).strip()
    if not text or text == SUMMARY_UNAVAILABLE:
        return None
    return text


def render_occurrence_comment(event: NormalizedEvent, status: OccurrenceStatus) -> str:
    return render_template(
        "occurrence_comment.md.j2", event=event, status=status, title=ticket_title(event)
    )


def render_escalation_comment(
    ticket_kind: str, ticket_ref: str, created: bool, trigger_tag: str | None = None
) -> str:
    return render_template(
        "escalation_comment.md.j2",
        ticket_kind=ticket_kind,
        ticket_ref=ticket_ref,
        created=created,
        trigger_tag=trigger_tag,
    )
