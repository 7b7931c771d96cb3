"""
Ticket lifecycle services.

Main entry points:
- TicketLifecycleController: create-or-update one ticket in one store
- EventIngestService: correlate a monitoring event and sync its tickets

Each ticket store plays a role. The triage store receives every correlated
event; the escalation store receives escalations (and, optionally, first
events). How an existing ticket is updated is a per-role policy:

- comment: append a short "new occurrence" comment (best-effort)
- patch_status: rewrite only the delimited Status block of the body,
  rebuilding the full body when the block is gone (mandatory)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from django.utils import timezone

from apps.correlation.store import CorrelationState, CorrelationStore
from apps.events.drivers import get_driver
from apps.events.drivers.base import BaseEventDriver, NormalizedEvent
from apps.events.grouping import group_key_for
from apps.tickets.best_effort import BestEffortResult, BestEffortRunner
from apps.tickets.conf import BridgeConfig
from apps.tickets.drivers import BaseTicketDriver, build_driver
from apps.tickets.exceptions import ConfigurationError
from apps.tickets.rendering import (
    ESCALATION_INTRO,
    OccurrenceStatus,
    build_ticket_body,
    render_escalation_comment,
    render_occurrence_comment,
    replace_status_section,
    ticket_title,
)
from apps.tickets.signals import (
    MonitoringBackend,
    SignalTags,
    emit_request_ignored,
    emit_ticket_created,
    emit_ticket_rebuilt,
    emit_ticket_updated,
    get_monitoring_backend,
)

logger = logging.getLogger(__name__)

TRIAGE = "triage"
ESCALATION = "escalation"


class UpdatePolicy(str, Enum):
    """How an existing ticket is brought up to date."""

    COMMENT = "comment"
    PATCH_STATUS = "patch_status"


@dataclass
class TicketOutcome:
    """What the controller did to one ticket."""

    store: str
    ticket_id: str
    created: bool = False
    updated: bool = False
    rebuilt: bool = False
    policy: str = ""
    side_effect: BestEffortResult | None = None


@dataclass
class BridgeResult:
    """Result of handling one webhook delivery."""

    message: str
    status: int = 200
    group_key: str | None = None
    outcomes: list[TicketOutcome] = field(default_factory=list)
    side_effects: list[BestEffortResult] = field(default_factory=list)

    @property
    def created(self) -> bool:
        return any(outcome.created for outcome in self.outcomes)


class LazySummary:
    """Zero-argument summary callable evaluated at most once."""

    def __init__(self, func: Callable[[], str | None]) -> None:
        self._func = func
        self._evaluated = False
        self._value: str | None = None

    @property
    def evaluated(self) -> bool:
        return self._evaluated

    def __call__(self) -> str | None:
        if not self._evaluated:
            self._value = self._func()
            self._evaluated = True
        return self._value


class TicketLifecycleController:
    """Create-or-update state machine for a single ticket store."""

    def __init__(
        self,
        driver: BaseTicketDriver,
        policy: UpdatePolicy | str,
        runner: BestEffortRunner,
        backend: MonitoringBackend,
        comment_on_update: bool = True,
        body_frame_limit: int = 4,
        intro: str | None = None,
        include_standards: bool = False,
        standards_provider: Callable[[], str] | None = None,
    ) -> None:
        self.driver = driver
        self.policy = UpdatePolicy(policy)
        self.runner = runner
        self.backend = backend
        self.comment_on_update = comment_on_update
        self.body_frame_limit = body_frame_limit
        self.intro = intro
        self.include_standards = include_standards
        self.standards_provider = standards_provider

    def render_body(
        self,
        event: NormalizedEvent,
        group_key: str,
        status: OccurrenceStatus,
        summary: Callable[[], str | None],
    ) -> str:
        standards = None
        if self.include_standards and self.standards_provider is not None:
            standards = self.standards_provider()
        return build_ticket_body(
            event,
            group_key,
            summary(),
            status,
            frame_limit=self.body_frame_limit,
            intro=self.intro,
            standards=standards,
            include_standards=self.include_standards,
        )

    def sync(
        self,
        event: NormalizedEvent,
        group_key: str,
        ticket_id: str | None,
        status: OccurrenceStatus,
        summary: Callable[[], str | None],
        tags: SignalTags,
    ) -> TicketOutcome:
        """
        Bring this store's ticket for ``group_key`` up to date.

        Raises:
            TicketStoreError: When a mandatory create/get/update call fails.
        """
        tags = tags.with_store(self.driver.name)

        if not ticket_id:
            body = self.render_body(event, group_key, status, summary)
            new_id = self.driver.create(ticket_title(event), body, self.driver.labels_for(event))
            emit_ticket_created(self.backend, tags, new_id)
            return TicketOutcome(store=self.driver.name, ticket_id=new_id, created=True)

        if self.policy is UpdatePolicy.COMMENT:
            return self._comment(event, ticket_id, status, tags)
        return self._patch_status(event, group_key, ticket_id, status, summary, tags)

    def _comment(
        self, event: NormalizedEvent, ticket_id: str, status: OccurrenceStatus, tags: SignalTags
    ) -> TicketOutcome:
        outcome = TicketOutcome(
            store=self.driver.name, ticket_id=ticket_id, policy=self.policy.value
        )
        if not self.comment_on_update:
            return outcome

        result = self.runner.run(
            "occurrence_comment",
            self.driver.add_comment,
            ticket_id,
            render_occurrence_comment(event, status),
            tags=tags,
        )
        outcome.side_effect = result
        outcome.updated = result.ok
        if result.ok:
            emit_ticket_updated(self.backend, tags, ticket_id, self.policy.value)
        return outcome

    def _patch_status(
        self,
        event: NormalizedEvent,
        group_key: str,
        ticket_id: str,
        status: OccurrenceStatus,
        summary: Callable[[], str | None],
        tags: SignalTags,
    ) -> TicketOutcome:
        snapshot = self.driver.get(ticket_id)
        body = replace_status_section(snapshot.body, status)
        rebuilt = body is None
        if body is None:
            logger.info(
                "Status block missing in %s %s, rebuilding body", self.driver.name, ticket_id
            )
            body = self.render_body(event, group_key, status, summary)

        self.driver.update_body(ticket_id, body)
        if rebuilt:
            emit_ticket_rebuilt(self.backend, tags, ticket_id)
        emit_ticket_updated(self.backend, tags, ticket_id, self.policy.value)
        return TicketOutcome(
            store=self.driver.name,
            ticket_id=ticket_id,
            updated=True,
            rebuilt=rebuilt,
            policy=self.policy.value,
        )


def _current_standards() -> str:
    from apps.tickets.models import StandardsDocument

    return StandardsDocument.current_text()


def _default_summarizer(event: NormalizedEvent) -> str | None:
    """Summarize with the configured provider chain, built on first use.

    A summary only decorates a ticket body, so any failure to build or run
    the chain yields None.
    """
    from apps.intelligence.providers import build_summary_chain

    try:
        return build_summary_chain().summarize(event)
    except Exception as e:
        logger.warning("AI summary unavailable: %s", e)
        return None


class BridgeService:
    """Shared wiring for the webhook-facing services."""

    def __init__(
        self,
        config: BridgeConfig | None = None,
        store: CorrelationStore | None = None,
        triage: BaseTicketDriver | None = None,
        escalation: BaseTicketDriver | None = None,
        backend: MonitoringBackend | None = None,
        standards_provider: Callable[[], str] | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self.config = config or BridgeConfig.from_settings()
        self.clock = clock
        self.store = store or CorrelationStore(clock=clock)
        self.triage = triage or build_driver(self.config.triage_store, self.config)
        self.escalation = escalation or build_driver(self.config.escalation_store, self.config)
        self.backend = backend or get_monitoring_backend()
        self.runner = BestEffortRunner(self.backend)
        self.standards_provider = standards_provider or _current_standards

    def require_configured(
        self, driver: BaseTicketDriver, role: str, credentials_only: bool = False
    ) -> None:
        """Raise ConfigurationError unless ``driver`` can serve ``role``.

        With ``credentials_only`` the driver only needs to read and comment on
        existing tickets, not create new ones.
        """
        ready = driver.has_credentials() if credentials_only else driver.is_configured()
        if not ready:
            raise ConfigurationError(f"Missing {driver.name} config ({role} store)")

    def controller(self, role: str) -> TicketLifecycleController:
        if role == TRIAGE:
            return TicketLifecycleController(
                self.triage,
                self.config.triage_update_policy,
                self.runner,
                self.backend,
                comment_on_update=self.config.comment_on_repeat,
                body_frame_limit=self.config.body_frame_limit,
            )
        return TicketLifecycleController(
            self.escalation,
            self.config.escalation_update_policy,
            self.runner,
            self.backend,
            comment_on_update=self.config.comment_on_repeat,
            body_frame_limit=self.config.body_frame_limit,
            intro=ESCALATION_INTRO,
            include_standards=True,
            standards_provider=self.standards_provider,
        )

    def cross_reference(
        self,
        triage_ticket_id: str,
        outcome: TicketOutcome,
        tags: SignalTags,
        trigger_tag: str | None,
    ) -> BestEffortResult:
        """Post a best-effort comment on the triage ticket pointing at the escalation ticket."""
        text = render_escalation_comment(
            self.escalation.ticket_kind,
            self.escalation.ticket_ref(outcome.ticket_id),
            outcome.created,
            trigger_tag=trigger_tag,
        )
        return self.runner.run(
            "cross_reference_comment",
            self.triage.add_comment,
            triage_ticket_id,
            text,
            tags=tags.with_store(self.triage.name),
        )


class EventIngestService(BridgeService):
    """
    Correlates monitoring events and keeps their tickets in sync.

    Usage:
        service = EventIngestService()
        result = service.process(payload)
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        store: CorrelationStore | None = None,
        triage: BaseTicketDriver | None = None,
        escalation: BaseTicketDriver | None = None,
        summarizer: Callable[[NormalizedEvent], str | None] | None = None,
        backend: MonitoringBackend | None = None,
        event_driver: BaseEventDriver | None = None,
        ping_predicate: Callable[[dict[str, Any]], bool] | None = None,
        standards_provider: Callable[[], str] | None = None,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        super().__init__(
            config=config,
            store=store,
            triage=triage,
            escalation=escalation,
            backend=backend,
            standards_provider=standards_provider,
            clock=clock,
        )
        self.event_driver = event_driver or get_driver(
            "sentry",
            frame_limit=self.config.frame_limit,
            test_ping_max_keys=self.config.test_ping_max_keys,
        )
        self.ping_predicate = ping_predicate or self.event_driver.is_test_ping
        self.summarizer = summarizer or _default_summarizer

    def process(self, payload: dict[str, Any]) -> BridgeResult:
        """
        Handle one monitoring event delivery.

        Raises:
            ConfigurationError: When a required ticket store is not configured.
            TicketStoreError: When a mandatory ticket store call fails.
        """
        self.require_configured(self.triage, TRIAGE)
        if self.config.create_escalation_on_event:
            self.require_configured(self.escalation, ESCALATION)

        tags = SignalTags(flow="event")
        if self.ping_predicate(payload):
            emit_request_ignored(self.backend, tags, "test ping")
            return BridgeResult(message="ok")

        event = self.event_driver.parse(payload)
        if event is None:
            emit_request_ignored(self.backend, tags, "test ping")
            return BridgeResult(message="ok")

        group_key = group_key_for(event, casefold=self.config.group_key_casefold)
        if group_key is None:
            emit_request_ignored(self.backend, tags, "no issue id")
            return BridgeResult(message="ok (no issue id)")

        tags = SignalTags(flow="event", group_key=group_key)
        now = self.clock()
        prior = self.store.get(group_key)
        state = CorrelationState(
            first_seen=prior.first_seen if prior else now,
            occurrences=prior.occurrences + 1 if prior else 1,
            triage_ticket_id=prior.triage_ticket_id if prior else None,
            escalation_ticket_id=prior.escalation_ticket_id if prior else None,
            last_seen=now,
        )
        status = OccurrenceStatus(state.occurrences, state.first_seen, now)
        summary = LazySummary(lambda: self.summarizer(event))

        result = BridgeResult(message="", group_key=group_key)

        triage_outcome = self.controller(TRIAGE).sync(
            event, group_key, state.triage_ticket_id, status, summary, tags
        )
        result.outcomes.append(triage_outcome)
        if triage_outcome.side_effect is not None:
            result.side_effects.append(triage_outcome.side_effect)
        state.triage_ticket_id = triage_outcome.ticket_id
        self.store.put(group_key, state)

        if self.config.create_escalation_on_event:
            escalation_outcome = self.controller(ESCALATION).sync(
                event, group_key, state.escalation_ticket_id, status, summary, tags
            )
            result.outcomes.append(escalation_outcome)
            if escalation_outcome.side_effect is not None:
                result.side_effects.append(escalation_outcome.side_effect)
            state.escalation_ticket_id = escalation_outcome.ticket_id
            self.store.put(group_key, state)
            result.side_effects.append(
                self.cross_reference(state.triage_ticket_id, escalation_outcome, tags, None)
            )

        verb = "created" if triage_outcome.created else "updated"
        result.message = (
            f"{self.triage.ticket_kind} {triage_outcome.ticket_id} {verb} "
            f"(occurrence {state.occurrences})."
        )
        result.status = 201 if triage_outcome.created else 200
        logger.info("Event %s: %s", group_key, result.message)
        return result
