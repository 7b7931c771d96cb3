"""
Sentry issue-alert driver.

Handles webhooks from Sentry alert rules and internal integrations. Sentry
has shipped several payload shapes over time: the issue may sit at the top
level, under ``data`` or under ``event``, and the event itself may sit at the
top level or under ``data``. Each field is therefore resolved through an
ordered tuple of extraction rules (see apps.events.extraction).
"""

from __future__ import annotations

from typing import Any

from apps.events.drivers.base import BaseEventDriver, NormalizedEvent, StackFrame
from apps.events.extraction import Rule, first_match, path, typed

# Top-level keys that carry a real issue/event. Anything else is a ping.
CARRIER_KEYS = ("issue", "event", "data")

DEFAULT_FRAME_LIMIT = 8
DEFAULT_TEST_PING_MAX_KEYS = 2

_ISSUE_CARRIERS = (("issue",), ("data", "issue"), ("event", "issue"))
_EVENT_CARRIERS = (("event",), ("data", "event"))


def _from_issue(*keys: str) -> tuple[Rule, ...]:
    return tuple(path(*carrier, *keys) for carrier in _ISSUE_CARRIERS)


def _from_event(*keys: str) -> tuple[Rule, ...]:
    return tuple(path(*carrier, *keys) for carrier in _EVENT_CARRIERS)


def _environment_tag(*carrier: str) -> Rule:
    """Find the ``environment`` entry in an event's tag list.

    Sentry serializes tags either as ``[{"key": k, "value": v}]`` or as
    ``[[k, v]]`` depending on the API version.
    """

    def rule(payload: Any) -> Any:
        tags = path(*carrier, "tags")(payload)
        if not isinstance(tags, list):
            return None
        for tag in tags:
            if isinstance(tag, dict) and tag.get("key") == "environment":
                return tag.get("value")
            if isinstance(tag, (list, tuple)) and len(tag) == 2 and tag[0] == "environment":
                return tag[1]
        return None

    return rule


def _innermost_exception(*carrier: str) -> Rule:
    """Return the innermost exception value that carries stack frames.

    Chained exceptions are ordered oldest to newest, so the innermost
    (most recently raised) one is the last entry with frames.
    """

    def rule(payload: Any) -> Any:
        values = path(*carrier, "exception", "values")(payload)
        if not isinstance(values, list):
            return None
        for value in reversed(values):
            if isinstance(value, dict) and path("stacktrace", "frames")(value):
                return value
        return None

    return rule


_EXCEPTION_RULES: tuple[Rule, ...] = tuple(
    _innermost_exception(*carrier) for carrier in (*_EVENT_CARRIERS, ())
)


def _exception_field(key: str) -> tuple[Rule, ...]:
    """Rules reading ``key`` off the innermost exception of each carrier."""

    def build(exception_rule: Rule) -> Rule:
        def rule(payload: Any) -> Any:
            return path(key)(exception_rule(payload))

        return rule

    return tuple(build(rule) for rule in _EXCEPTION_RULES)


class SentryDriver(BaseEventDriver):
    """
    Driver for Sentry issue alert webhooks.

    A representative payload looks like:
    {
        "project_slug": "api",
        "environment": "prod",
        "level": "error",
        "issue": {"id": "42", "title": "NullPointer", "permalink": "...", "culprit": "..."},
        "event": {"exception": {"values": [{"stacktrace": {"frames": [...]}}]}}
    }
    """

    name = "sentry"

    # Field -> ordered extraction rules. First non-empty match wins.
    FIELD_RULES: dict[str, tuple[Rule, ...]] = {
        "issue_id": (*_from_issue("id"), path("issue_id")),
        "project": (
            path("project_slug"),
            path("project", "slug"),
            typed(path("project"), str),
            path("data", "issue", "project", "slug"),
        ),
        "environment": (
            path("environment"),
            *_from_event("environment"),
            *(_environment_tag(*carrier) for carrier in _EVENT_CARRIERS),
        ),
        "title": (*_from_issue("title"), *_from_event("title"), path("title")),
        "permalink": (*_from_issue("permalink"), path("url"), path("issue_url")),
        "level": (path("level"), *_from_event("level")),
        "culprit": (*_from_issue("culprit"), *_from_event("culprit")),
        "message": (
            *_from_event("message"),
            *_exception_field("value"),
            path("message"),
        ),
        "frames": _exception_field("stacktrace"),
    }

    DEFAULTS: dict[str, Any] = {
        "project": "unknown",
        "environment": "unknown",
        "title": "Unhandled error",
        "permalink": "",
        "message": "",
    }

    def __init__(
        self,
        frame_limit: int = DEFAULT_FRAME_LIMIT,
        test_ping_max_keys: int = DEFAULT_TEST_PING_MAX_KEYS,
    ) -> None:
        self.frame_limit = frame_limit
        self.test_ping_max_keys = test_ping_max_keys

    def is_test_ping(self, payload: dict[str, Any]) -> bool:
        return is_test_ping(payload, max_keys=self.test_ping_max_keys)

    def validate(self, payload: dict[str, Any]) -> bool:
        """A payload is a Sentry event when it has a carrier or an issue id."""
        if not isinstance(payload, dict):
            return False
        return any(key in payload for key in CARRIER_KEYS) or "issue_id" in payload

    def parse(self, payload: dict[str, Any]) -> NormalizedEvent | None:
        """Parse a Sentry payload. Returns None for connectivity test pings."""
        if self.is_test_ping(payload):
            return None

        def field_value(name: str) -> Any:
            return first_match(payload, self.FIELD_RULES[name], self.DEFAULTS.get(name))

        issue_id = field_value("issue_id")
        level = field_value("level")
        culprit = field_value("culprit")

        return NormalizedEvent(
            project=field_value("project"),
            environment=field_value("environment"),
            issue_id=str(issue_id) if issue_id is not None else None,
            title=str(field_value("title")),
            permalink=str(field_value("permalink")),
            level=str(level) if level else None,
            culprit=str(culprit) if culprit else None,
            message=str(field_value("message")),
            frames=self.extract_frames(payload),
            raw_payload=payload,
        )

    def extract_frames(self, payload: dict[str, Any]) -> list[StackFrame]:
        """Last ``frame_limit`` frames of the innermost exception, most recent first."""
        stacktrace = first_match(payload, self.FIELD_RULES["frames"])
        frames = stacktrace.get("frames") if isinstance(stacktrace, dict) else None
        if not isinstance(frames, list) or self.frame_limit <= 0:
            return []
        recent = [f for f in frames[-self.frame_limit :] if isinstance(f, dict)]
        return [StackFrame.from_dict(f) for f in reversed(recent)]


def is_test_ping(payload: dict[str, Any], max_keys: int = DEFAULT_TEST_PING_MAX_KEYS) -> bool:
    """Heuristic for "Send test notification" pings.

    Sentry's connectivity checks post a tiny object with no issue, event or
    data carrier. Such payloads are acknowledged without processing.
    """
    if not isinstance(payload, dict):
        return False
    return len(payload) <= max_keys and not any(payload.get(key) for key in CARRIER_KEYS)
