"""
Escalation trigger.

Watches change notifications from the triage store. When a task carries the
trigger tag (currently, or as a just-added tag in the change history) the
grouping key embedded in the task body is recovered and the escalation
store's ticket is created or brought up to date.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from apps.correlation.store import CorrelationState
from apps.events.drivers.base import NormalizedEvent
from apps.events.extraction import first_match, is_present, path
from apps.events.grouping import split_group_key
from apps.tickets.rendering import (
    OccurrenceStatus,
    extract_ai_summary,
    extract_group_key,
    extract_permalink,
    parse_ticket_title,
)
from apps.tickets.services import (
    ESCALATION,
    TRIAGE,
    BridgeResult,
    BridgeService,
    LazySummary,
)
from apps.tickets.signals import SignalTags, emit_request_ignored

logger = logging.getLogger(__name__)

_TASK_RULES = (path("task"), path("event", "task"))
_TASK_ID_KEYS = ("id", "task_id")
_ADDED_TAG_RULES = (
    path("history_items", 0, "after", "tag"),
    path("history_items", 0, "after"),
    path("changes", "tags", "added"),
)


def _tag_names(raw: Any) -> list[str]:
    """Normalize a tag, a tag object, or a list of either to tag names."""
    if raw is None:
        return []
    items = raw if isinstance(raw, list) else [raw]
    names = []
    for item in items:
        name = item.get("name") if isinstance(item, dict) else item
        if isinstance(name, str) and name:
            names.append(name)
    return names


@dataclass
class TaskChange:
    """A triage-store change notification reduced to what the trigger needs."""

    task_id: str | None
    tags: list[str] = field(default_factory=list)
    added_tags: list[str] = field(default_factory=list)

    def has_tag(self, tag: str) -> bool:
        wanted = tag.lower()
        return any(t.lower() == wanted for t in (*self.tags, *self.added_tags))


def parse_task_change(payload: dict[str, Any]) -> TaskChange:
    """
    Parse a ClickUp-style task change notification.

    The task may sit under ``task``, ``event.task`` or be the payload itself.
    """
    task = first_match(payload, _TASK_RULES)
    if not isinstance(task, dict):
        task = payload

    task_id = None
    for source in (task, payload):
        for key in _TASK_ID_KEYS:
            if is_present(source.get(key)):
                task_id = str(source[key])
                break
        if task_id:
            break

    tags = _tag_names(task.get("tags") if "tags" in task else task.get("tag"))

    added: list[str] = []
    for rule in _ADDED_TAG_RULES:
        value = rule(payload)
        if isinstance(value, dict) and "name" not in value:
            continue
        added = _tag_names(value)
        if added:
            break

    return TaskChange(task_id=task_id, tags=tags, added_tags=added)


class EscalationTrigger(BridgeService):
    """
    Escalates a triage ticket into the escalation store.

    Usage:
        trigger = EscalationTrigger()
        result = trigger.process(payload)
    """

    def process(self, payload: dict[str, Any]) -> BridgeResult:
        """
        Handle one triage-store change notification.

        Raises:
            ConfigurationError: When either ticket store is not configured.
            TicketStoreError: When fetching the triage ticket or syncing the
                escalation ticket fails.
        """
        self.require_configured(self.escalation, ESCALATION)

        tags = SignalTags(flow="escalation")
        change = parse_task_change(payload)
        if not change.task_id:
            emit_request_ignored(self.backend, tags, "no task id")
            return BridgeResult(message="no task id")

        trigger_tag = self.config.trigger_tag
        if not change.has_tag(trigger_tag):
            emit_request_ignored(self.backend, tags, "no trigger tag")
            return BridgeResult(message="no trigger tag")

        self.require_configured(self.triage, TRIAGE, credentials_only=True)
        snapshot = self.triage.get(change.task_id)

        group_key = extract_group_key(snapshot.body)
        if not group_key:
            logger.info(
                "No GroupKey in %s %s, nothing to escalate", self.triage.name, change.task_id
            )
            emit_request_ignored(self.backend, tags, "no group key")
            return BridgeResult(message="no group key")

        try:
            event = self.reconstruct_event(group_key, snapshot.title, snapshot.body)
        except ValueError:
            logger.warning(
                "Malformed GroupKey in %s %s: %s", self.triage.name, change.task_id, group_key
            )
            emit_request_ignored(self.backend, tags, "malformed group key")
            return BridgeResult(message="no group key")

        tags = SignalTags(flow="escalation", group_key=group_key)

        now = self.clock()
        prior = self.store.get(group_key)
        state = CorrelationState(
            first_seen=prior.first_seen if prior else now,
            occurrences=prior.occurrences if prior else 1,
            triage_ticket_id=change.task_id,
            escalation_ticket_id=prior.escalation_ticket_id if prior else None,
            last_seen=(prior.last_seen or prior.first_seen) if prior else now,
        )
        status = OccurrenceStatus(state.occurrences, state.first_seen, state.last_seen)
        ai_summary = extract_ai_summary(snapshot.body)
        summary = LazySummary(lambda: ai_summary)

        outcome = self.controller(ESCALATION).sync(
            event, group_key, state.escalation_ticket_id, status, summary, tags
        )
        state.escalation_ticket_id = outcome.ticket_id
        self.store.put(group_key, state)

        result = BridgeResult(message="", group_key=group_key, outcomes=[outcome])
        if outcome.side_effect is not None:
            result.side_effects.append(outcome.side_effect)
        result.side_effects.append(
            self.cross_reference(change.task_id, outcome, tags, trigger_tag)
        )

        verb = "created" if outcome.created else "updated"
        result.message = (
            f"{self.escalation.ticket_kind} {self.escalation.ticket_ref(outcome.ticket_id)} "
            f"{verb} from {trigger_tag} tag."
        )
        logger.info("Escalation %s: %s", group_key, result.message)
        return result

    def reconstruct_event(self, group_key: str, title: str, body: str) -> NormalizedEvent:
        """Best-effort event rebuilt from a triage ticket's title, body and key."""
        project, key_environment, issue_id = split_group_key(group_key)
        title_environment, plain_title = parse_ticket_title(title)
        return NormalizedEvent(
            project=project,
            environment=title_environment or key_environment,
            issue_id=issue_id,
            title=plain_title or "Unhandled error",
            permalink=extract_permalink(body),
        )
