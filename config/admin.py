"""Custom admin site for the ticket bridge console."""

from datetime import timedelta

from django.contrib.admin import AdminSite
from django.db.models import Count, Q, Sum
from django.utils import timezone


class BridgeAdminSite(AdminSite):
    site_header = "Ticket Bridge"
    site_title = "Ticket Bridge"
    index_title = "Dashboard"
    index_template = "admin/dashboard.html"

    def index(self, request, extra_context=None):
        extra_context = extra_context or {}
        extra_context.update(self._get_dashboard_context())
        return super().index(request, extra_context=extra_context)

    def _get_dashboard_context(self):
        from apps.correlation.models import CorrelationRecord

        now = timezone.now()
        last_24h = now - timedelta(hours=24)
        live_qs = CorrelationRecord.objects.filter(expires_at__gt=now)

        # --- Tracked groups ---
        tracked_groups = live_qs.aggregate(
            total=Count("group_key"),
            escalated=Count("group_key", filter=~Q(escalation_ticket_id="")),
            active_24h=Count("group_key", filter=Q(last_seen__gte=last_24h)),
            occurrences=Sum("occurrences"),
        )
        tracked_groups["occurrences"] = tracked_groups["occurrences"] or 0
        tracked_groups["expired"] = CorrelationRecord.objects.filter(expires_at__lte=now).count()

        # --- Top recurring groups ---
        top_recurring = list(
            live_qs.order_by("-occurrences", "-last_seen").only(
                "group_key", "occurrences", "triage_ticket_id", "escalation_ticket_id", "last_seen"
            )[:10]
        )

        # --- Recently escalated ---
        recently_escalated = list(
            live_qs.exclude(escalation_ticket_id="")
            .order_by("-updated_at")
            .only("group_key", "escalation_ticket_id", "updated_at")[:5]
        )

        return {
            "tracked_groups": tracked_groups,
            "top_recurring": top_recurring,
            "recently_escalated": recently_escalated,
        }
