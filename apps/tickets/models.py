"""Models for the tickets app."""

from django.db import models


class StandardsDocument(models.Model):
    """
    Engineering standards rendered into escalation tickets.

    Only the most recently saved document is used.
    """

    content = models.TextField(
        help_text="Markdown shown under 'Standards & Expectations' in escalation tickets."
    )
    updated_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = "Standards"
        verbose_name_plural = "Standards"

    def __str__(self):
        return f"Standards ({self.created_at:%Y-%m-%d %H:%M})" if self.created_at else "Standards"

    @classmethod
    def current_text(cls) -> str:
        """Return the latest standards text, or an empty string."""
        latest = cls.objects.order_by("-created_at", "-id").first()
        return latest.content if latest else ""
