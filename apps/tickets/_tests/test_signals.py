"""Tests for bridge monitoring signals."""

from unittest.mock import patch

from django.test import SimpleTestCase, override_settings

from apps.tickets.signals import (
    LoggingBackend,
    SignalTags,
    StatsdBackend,
    emit_ticket_created,
    get_monitoring_backend,
)


class SignalTagsTests(SimpleTestCase):
    def test_to_dict_merges_extra(self):
        tags = SignalTags(flow="event", group_key="k", extra={"source": "sentry"})
        self.assertEqual(
            tags.with_store("github").to_dict(),
            {"flow": "event", "group_key": "k", "store": "github", "source": "sentry"},
        )


class BackendTests(SimpleTestCase):
    def test_default_backend_is_logging(self):
        self.assertIsInstance(get_monitoring_backend(), LoggingBackend)

    @override_settings(BRIDGE_METRICS_BACKEND="statsd", STATSD_PREFIX="test")
    def test_statsd_backend_selected(self):
        backend = get_monitoring_backend()
        self.assertIsInstance(backend, StatsdBackend)
        self.assertEqual(backend.prefix, "test")

    def test_logging_backend_logs(self):
        with self.assertLogs("apps.tickets.signals", level="INFO") as logs:
            emit_ticket_created(LoggingBackend(), SignalTags(flow="event"), "cu1")
        self.assertIn("bridge.ticket.created", logs.output[0])

    @patch("apps.tickets.signals.statsd.StatsClient")
    def test_statsd_backend_increments(self, mock_client_class):
        backend = StatsdBackend(prefix="bridge")
        emit_ticket_created(backend, SignalTags(flow="event", store="clickup"), "cu1")

        mock_client_class.return_value.incr.assert_called_once_with(
            "bridge.ticket.created.event.clickup"
        )
