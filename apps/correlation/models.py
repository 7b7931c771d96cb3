"""
Correlation records linking a grouping key to tickets in both stores.
"""

from django.db import models
from django.utils import timezone


class CorrelationRecord(models.Model):
    """
    Ticket linkage and occurrence metadata for one grouping key.

    Rows expire ``expires_at`` after their last write; an expired row is
    treated as absent, so the next delivery of that key starts over as
    first-seen.
    """

    group_key = models.CharField(
        max_length=512,
        primary_key=True,
        help_text="project:environment:source_issue_id",
    )
    triage_ticket_id = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Ticket id in the triage store (ClickUp task by default).",
    )
    escalation_ticket_id = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Ticket id in the escalation store (GitHub issue number by default).",
    )
    occurrences = models.PositiveIntegerField(default=1)
    first_seen = models.DateTimeField(
        help_text="Set on the first correlated delivery, never changed afterwards.",
    )
    last_seen = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]

    def __str__(self):
        return f"{self.group_key} ({self.occurrences}x)"

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= timezone.now()

    @property
    def is_escalated(self) -> bool:
        return bool(self.escalation_ticket_id)
