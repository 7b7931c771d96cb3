"""Admin configuration for the tickets app."""

from django.contrib import admin
from django.utils.text import Truncator

from apps.tickets.models import StandardsDocument


@admin.register(StandardsDocument)
class StandardsDocumentAdmin(admin.ModelAdmin):
    """Admin for StandardsDocument model."""

    list_display = ["__str__", "excerpt", "updated_by", "created_at"]
    readonly_fields = ["updated_by", "created_at"]
    search_fields = ["content"]

    @admin.display(description="Content")
    def excerpt(self, obj):
        return Truncator(obj.content).chars(80)

    def save_model(self, request, obj, form, change):
        obj.updated_by = getattr(request.user, "username", "") or ""
        super().save_model(request, obj, form, change)
