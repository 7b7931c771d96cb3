"""
Monitoring signals for the ticket bridge.

Every ticket-store side effect and every swallowed best-effort failure is
emitted as a structured signal so operators (and tests) can see what was
attempted even when the webhook response says "ok".

Signals:
- bridge.ticket.created
- bridge.ticket.updated
- bridge.ticket.rebuilt (status block missing, full body re-rendered)
- bridge.best_effort.failed
- bridge.request.ignored

Tags on every signal:
- flow (event|escalation)
- group_key
- store
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

import statsd
from django.conf import settings

logger = logging.getLogger("apps.tickets.signals")


@dataclass(frozen=True)
class SignalTags:
    """Tags attached to every bridge signal."""

    flow: str  # event, escalation
    group_key: str = ""
    store: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def with_store(self, store: str) -> "SignalTags":
        return replace(self, store=store)

    def to_dict(self) -> dict[str, Any]:
        base = {
            "flow": self.flow,
            "group_key": self.group_key,
            "store": self.store,
        }
        base.update(self.extra)
        return base


class MonitoringBackend:
    """
    Abstract monitoring backend.

    Override emit() to send signals to your preferred monitoring system.
    """

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Emit a monitoring signal."""
        raise NotImplementedError


class LoggingBackend(MonitoringBackend):
    """Default backend: structured logging."""

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        data = {
            "signal": signal_name,
            "value": value,
            **tags.to_dict(),
            **(extra or {}),
        }
        logger.info("[SIGNAL] %s", signal_name, extra={"signal_data": data})


class StatsdBackend(MonitoringBackend):
    """StatsD backend for metrics collection."""

    def __init__(self, host: str = "localhost", port: int = 8125, prefix: str = "bridge"):
        self.host = host
        self.port = port
        self.prefix = prefix
        self._client: statsd.StatsClient | None = None

    @property
    def client(self) -> statsd.StatsClient:
        if self._client is None:
            self._client = statsd.StatsClient(self.host, self.port, prefix=self.prefix)
        return self._client

    def emit(
        self,
        signal_name: str,
        tags: SignalTags,
        value: float | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        # Format: prefix.signal_name.flow.store
        metric_name = f"{signal_name}.{tags.flow}.{tags.store or 'none'}"
        if value is not None:
            self.client.gauge(metric_name, value)
        else:
            self.client.incr(metric_name)


def get_monitoring_backend() -> MonitoringBackend:
    """Get configured monitoring backend."""
    backend_name = getattr(settings, "BRIDGE_METRICS_BACKEND", "logging")

    if backend_name == "statsd":
        host = getattr(settings, "STATSD_HOST", "localhost")
        port = getattr(settings, "STATSD_PORT", 8125)
        prefix = getattr(settings, "STATSD_PREFIX", "bridge")
        return StatsdBackend(host=host, port=port, prefix=prefix)

    return LoggingBackend()


def emit_ticket_created(backend: MonitoringBackend, tags: SignalTags, ticket_id: str) -> None:
    backend.emit("bridge.ticket.created", tags, extra={"ticket_id": ticket_id})


def emit_ticket_updated(
    backend: MonitoringBackend, tags: SignalTags, ticket_id: str, policy: str
) -> None:
    backend.emit("bridge.ticket.updated", tags, extra={"ticket_id": ticket_id, "policy": policy})


def emit_ticket_rebuilt(backend: MonitoringBackend, tags: SignalTags, ticket_id: str) -> None:
    """Emitted when the status block was missing and the body was re-rendered."""
    backend.emit("bridge.ticket.rebuilt", tags, extra={"ticket_id": ticket_id})


def emit_best_effort_failed(
    backend: MonitoringBackend, tags: SignalTags, action: str, error: str
) -> None:
    backend.emit("bridge.best_effort.failed", tags, extra={"action": action, "error": error})


def emit_request_ignored(backend: MonitoringBackend, tags: SignalTags, reason: str) -> None:
    backend.emit("bridge.request.ignored", tags, extra={"reason": reason})
