"""
URL configuration for the tickets app.

Senders are often configured without a trailing slash, and APPEND_SLASH
cannot redirect a POST, so both spellings are routed.
"""

from django.urls import path

from apps.tickets.views import ClickUpWebhookView, SentryWebhookView

app_name = "tickets"

urlpatterns = [
    path("sentry/", SentryWebhookView.as_view(), name="sentry"),
    path("sentry", SentryWebhookView.as_view(), name="sentry-noslash"),
    path("clickup/", ClickUpWebhookView.as_view(), name="clickup"),
    path("clickup", ClickUpWebhookView.as_view(), name="clickup-noslash"),
]
