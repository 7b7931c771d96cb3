"""
Key-value access to correlation records.

The store deliberately exposes only ``get`` and ``put``: callers read, decide
and write without locking, and concurrent writers for the same key resolve
as last-write-wins. A duplicate ticket created by such a race is tolerated;
the next delivery attaches to whichever record won the final write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from django.utils import timezone

from apps.correlation.models import CorrelationRecord

logger = logging.getLogger(__name__)

# Records live for 90 days after their last write.
RETENTION = timedelta(days=90)


@dataclass
class CorrelationState:
    """The value stored under a grouping key."""

    first_seen: datetime
    occurrences: int = 1
    triage_ticket_id: str | None = None
    escalation_ticket_id: str | None = None
    last_seen: datetime | None = None

    @classmethod
    def from_record(cls, record: CorrelationRecord) -> "CorrelationState":
        return cls(
            first_seen=record.first_seen,
            occurrences=record.occurrences,
            triage_ticket_id=record.triage_ticket_id or None,
            escalation_ticket_id=record.escalation_ticket_id or None,
            last_seen=record.last_seen,
        )


class CorrelationStore:
    """Grouping key → CorrelationState with a refreshed-on-write TTL."""

    def __init__(self, clock: Callable[[], datetime] = timezone.now) -> None:
        self.clock = clock

    def get(self, key: str) -> CorrelationState | None:
        record = CorrelationRecord.objects.filter(group_key=key).first()
        if record is None:
            return None
        if record.expires_at <= self.clock():
            logger.info("Correlation record expired: %s", key)
            CorrelationRecord.objects.filter(group_key=key, expires_at__lte=self.clock()).delete()
            return None
        return CorrelationState.from_record(record)

    def put(self, key: str, state: CorrelationState, ttl: timedelta = RETENTION) -> None:
        """Write ``state`` under ``key``, resetting expiry to now + ttl."""
        CorrelationRecord.objects.update_or_create(
            group_key=key,
            defaults={
                "triage_ticket_id": state.triage_ticket_id or "",
                "escalation_ticket_id": state.escalation_ticket_id or "",
                "occurrences": state.occurrences,
                "first_seen": state.first_seen,
                "last_seen": state.last_seen,
                "expires_at": self.clock() + ttl,
            },
        )
        logger.debug("Correlation record written: %s (%s occurrences)", key, state.occurrences)

    def expired(self):
        return CorrelationRecord.objects.filter(expires_at__lte=self.clock())

    def purge_expired(self) -> int:
        """Delete all expired records and return how many were removed."""
        deleted, _ = self.expired().delete()
        if deleted:
            logger.info("Purged %d expired correlation records", deleted)
        return deleted
