"""
Bridge configuration.

All environment-derived toggles are collected once into an immutable
``BridgeConfig`` and handed to every component at construction time.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_TRIGGER_TAG = "ai-to-fix"


def parse_level_labels(raw: str | None) -> dict[str, str]:
    """Parse LEVEL_LABELS_JSON; invalid or non-object JSON maps nothing."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring invalid LEVEL_LABELS_JSON: %s", e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring LEVEL_LABELS_JSON: expected an object")
        return {}
    return {str(k): str(v) for k, v in data.items()}


@dataclass(frozen=True)
class BridgeConfig:
    """Everything the bridge needs to know about its deployment."""

    # Inbound shared tokens (empty = not checked)
    sentry_token: str = ""
    clickup_webhook_token: str = ""

    # GitHub
    github_token: str = ""
    github_repo: str = ""
    github_labels: tuple[str, ...] = ("sentry",)
    github_agent_label: str = ""
    github_assignee: str = ""
    github_api_version: str = "2022-11-28"
    level_labels: dict[str, str] = field(default_factory=dict)

    # ClickUp
    clickup_token: str = ""
    clickup_list_id: str = ""
    clickup_tags: tuple[str, ...] = ("sentry",)
    trigger_tag: str = DEFAULT_TRIGGER_TAG

    # Feature flags
    create_escalation_on_event: bool = False
    comment_on_repeat: bool = True

    # Store roles and update strategies
    triage_store: str = "clickup"
    escalation_store: str = "github"
    triage_update_policy: str = "comment"
    escalation_update_policy: str = "patch_status"

    # Event handling
    frame_limit: int = 8
    body_frame_limit: int = 4
    test_ping_max_keys: int = 2
    group_key_casefold: bool = False
    http_timeout: int = 30

    @classmethod
    def from_settings(cls, **overrides: Any) -> "BridgeConfig":
        values: dict[str, Any] = {
            "sentry_token": getattr(settings, "SENTRY_SHARED_TOKEN", ""),
            "clickup_webhook_token": getattr(settings, "CLICKUP_SHARED_TOKEN", ""),
            "github_token": getattr(settings, "GITHUB_TOKEN", ""),
            "github_repo": getattr(settings, "GITHUB_REPO", ""),
            "github_labels": tuple(getattr(settings, "GITHUB_LABELS", ["sentry"])),
            "github_agent_label": getattr(settings, "GITHUB_AGENT_LABEL", ""),
            "github_assignee": getattr(settings, "GITHUB_ASSIGNEE", ""),
            "github_api_version": getattr(settings, "GITHUB_API_VERSION", "2022-11-28"),
            "level_labels": parse_level_labels(getattr(settings, "LEVEL_LABELS_JSON", "")),
            "clickup_token": getattr(settings, "CLICKUP_TOKEN", ""),
            "clickup_list_id": getattr(settings, "CLICKUP_LIST_ID", ""),
            "clickup_tags": tuple(getattr(settings, "CLICKUP_TAGS", ["sentry"])),
            "trigger_tag": getattr(settings, "CLICKUP_FIX_TAG", "") or DEFAULT_TRIGGER_TAG,
            "create_escalation_on_event": bool(
                getattr(settings, "CREATE_GITHUB_ON_SENTRY", False)
            ),
            "comment_on_repeat": bool(getattr(settings, "UPDATE_CLICKUP_ON_REPEAT", True)),
            "triage_store": getattr(settings, "BRIDGE_TRIAGE_STORE", "clickup"),
            "escalation_store": getattr(settings, "BRIDGE_ESCALATION_STORE", "github"),
            "triage_update_policy": getattr(settings, "BRIDGE_TRIAGE_UPDATE_POLICY", "comment"),
            "escalation_update_policy": getattr(
                settings, "BRIDGE_ESCALATION_UPDATE_POLICY", "patch_status"
            ),
            "frame_limit": int(getattr(settings, "BRIDGE_FRAME_LIMIT", 8)),
            "body_frame_limit": int(getattr(settings, "BRIDGE_BODY_FRAME_LIMIT", 4)),
            "test_ping_max_keys": int(getattr(settings, "BRIDGE_TEST_PING_MAX_KEYS", 2)),
            "group_key_casefold": bool(getattr(settings, "BRIDGE_GROUP_KEY_CASEFOLD", False)),
            "http_timeout": int(getattr(settings, "BRIDGE_HTTP_TIMEOUT", 30)),
        }
        values.update(overrides)
        return cls(**values)
