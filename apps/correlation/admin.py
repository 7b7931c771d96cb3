"""Admin configuration for correlation records."""

from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html
from django_object_actions import DjangoObjectActions
from django_object_actions import action as object_action

from apps.correlation.models import CorrelationRecord
from apps.correlation.store import RETENTION, CorrelationStore


@admin.register(CorrelationRecord)
class CorrelationRecordAdmin(DjangoObjectActions, admin.ModelAdmin):
    """Admin for CorrelationRecord model."""

    list_display = [
        "group_key",
        "occurrences",
        "triage_ticket_id",
        "escalation_badge",
        "first_seen",
        "last_seen",
        "expiry_badge",
    ]
    search_fields = ["group_key", "triage_ticket_id", "escalation_ticket_id"]
    readonly_fields = ["first_seen", "updated_at"]
    date_hierarchy = "first_seen"
    changelist_actions = ["purge_expired"]
    change_actions = ["extend_retention"]

    fieldsets = [
        (
            "Identification",
            {
                "fields": ["group_key", "triage_ticket_id", "escalation_ticket_id"],
            },
        ),
        (
            "Occurrences",
            {
                "fields": ["occurrences", "first_seen", "last_seen"],
            },
        ),
        (
            "Retention",
            {
                "fields": ["expires_at", "updated_at"],
            },
        ),
    ]

    @object_action(label="Purge expired", description="Delete records past their retention")
    def purge_expired(self, request, queryset):
        deleted = CorrelationStore().purge_expired()
        self.message_user(request, f"{deleted} expired record(s) purged.")

    @object_action(label="Extend retention", description="Keep this record for another 90 days")
    def extend_retention(self, request, obj):
        obj.expires_at = timezone.now() + RETENTION
        obj.save(update_fields=["expires_at", "updated_at"])
        self.message_user(request, f"Retention for '{obj.group_key}' extended.")

    @admin.display(description="Escalated")
    def escalation_badge(self, obj):
        if not obj.escalation_ticket_id:
            return "-"
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; '
            'border-radius: 3px; font-size: 11px;">{}</span>',
            "#dc3545",
            obj.escalation_ticket_id,
        )

    @admin.display(description="Expires")
    def expiry_badge(self, obj):
        color = "#6c757d" if obj.is_expired else "#28a745"
        return format_html(
            '<span style="color: {};">{}</span>',
            color,
            obj.expires_at.strftime("%Y-%m-%d"),
        )
