"""
Best-effort side actions.

Cross-reference comments and "new occurrence" notes must never fail a
webhook. They run through ``BestEffortRunner``, which turns any exception
into a failed ``BestEffortResult``, logs it and emits a monitoring signal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from apps.tickets.signals import MonitoringBackend, SignalTags, emit_best_effort_failed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BestEffortResult:
    """Outcome of a best-effort call: success, or failed-but-ignored."""

    action: str
    ok: bool
    value: Any = None
    error: str = ""

    @property
    def failed(self) -> bool:
        return not self.ok


class BestEffortRunner:
    """Runs callables whose failures are logged and reported, never raised."""

    def __init__(self, backend: MonitoringBackend) -> None:
        self.backend = backend

    def run(
        self,
        action: str,
        func: Callable[..., Any],
        *args: Any,
        tags: SignalTags,
        **kwargs: Any,
    ) -> BestEffortResult:
        try:
            value = func(*args, **kwargs)
        except Exception as e:
            logger.warning("Best-effort %s failed (%s): %s", action, tags.group_key, e)
            emit_best_effort_failed(self.backend, tags, action, str(e))
            return BestEffortResult(action=action, ok=False, error=str(e))
        return BestEffortResult(action=action, ok=True, value=value)
