"""
URL configuration for the bridge project.
"""

from django.contrib import admin
from django.urls import include, path

from apps.tickets.views import HealthView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", HealthView.as_view(), name="health"),
    path("webhooks/", include("apps.tickets.urls")),
]
