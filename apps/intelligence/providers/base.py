"""
Base class for AI summary providers.

A summary is optional decoration on a ticket: ``summarize`` returns markdown
or None and never raises. Subclasses only implement ``_call_api``.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from apps.events.drivers.base import NormalizedEvent

logger = logging.getLogger(__name__)


class BaseSummaryProvider(ABC):
    """Base class for LLM-backed incident summary providers."""

    name: str = "base"
    description: str = ""

    # Subclasses override these
    default_model: str = "gpt-4o-mini"
    default_timeout_s: int = 30
    temperature: float = 0.2

    SYSTEM_PROMPT = "You write concise, high-signal incident reports."

    INSTRUCTIONS = (
        "You are a senior software engineer. Produce a crisp, actionable incident "
        "summary from a Sentry event.",
        "Return markdown with these sections:",
        "## Summary (2-3 sentences, plain English)",
        "## Likely Cause (bullet list)",
        "## Impact",
        "## Reproduction Steps",
        "## Suggested Fix",
        "## Extra Context",
    )

    def __init__(
        self,
        api_key: str = "",
        model: str = "",
        timeout_s: int = 0,
        **kwargs: Any,
    ) -> None:
        self.api_key = api_key
        self.model = model or self.default_model
        self.timeout_s = timeout_s or self.default_timeout_s

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def summarize(self, event: NormalizedEvent) -> str | None:
        """Return a markdown summary of ``event``, or None when unavailable."""
        if not self.is_configured():
            return None
        try:
            content = self._call_api(self.build_prompt(event))
        except Exception as e:
            logger.warning("%s summarize failed: %s", self.name, e)
            return None
        return content.strip() or None

    @abstractmethod
    def _call_api(self, prompt: str) -> str:
        """Make the API call and return the response text. Subclasses implement this."""
        ...  # pragma: no cover

    def build_prompt(self, event: NormalizedEvent) -> str:
        parts = [
            *self.INSTRUCTIONS,
            "",
            f"**Title:** {event.title}",
            f"**Project:** {event.project}",
            f"**Environment:** {event.environment}",
        ]
        if event.level:
            parts.append(f"**Level:** {event.level}")
        if event.culprit:
            parts.append(f"**Culprit:** {event.culprit}")
        if event.message:
            parts.append(f"**Message:** {event.message}")

        if event.frames:
            parts.append("")
            parts.append("Top frames (most recent first):")
            for frame in event.frames:
                line = f"- `{frame.label or '?'}`"
                if frame.function:
                    line += f" in `{frame.function}`"
                parts.append(line)

        return "\n".join(parts)
