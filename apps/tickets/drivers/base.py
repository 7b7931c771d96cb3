"""Base driver and data structures for ticket stores.

A ticket store is anywhere the bridge files work items (GitHub issues,
ClickUp tasks). Drivers hide each store's REST API behind the same four
operations: create, get, update_body and add_comment. Every non-success
response raises TicketStoreError; whether that fails the request is decided
by the caller.

Public API:
- TicketSnapshot
- BaseTicketDriver
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from apps.events.drivers.base import NormalizedEvent
from apps.tickets.exceptions import TicketStoreError

logger = logging.getLogger(__name__)

USER_AGENT = "sentry-clickup-github-bridge/2.0"


@dataclass
class TicketSnapshot:
    """The parts of a stored ticket the bridge reads back."""

    ticket_id: str
    title: str = ""
    body: str = ""
    tags: list[str] = field(default_factory=list)


class BaseTicketDriver(ABC):
    """Abstract base class for ticket store drivers."""

    name: str = "base"
    ticket_kind: str = "ticket"

    def __init__(self, timeout: int = 30) -> None:
        self.timeout = timeout

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when credentials and target are present."""

    def has_credentials(self) -> bool:
        """Return True when existing tickets can be read and commented on."""
        return self.is_configured()

    @abstractmethod
    def create(self, title: str, body: str, labels: list[str]) -> str:
        """Create a ticket and return its identifier."""

    @abstractmethod
    def get(self, ticket_id: str) -> TicketSnapshot:
        """Fetch a ticket's current title, body and tags."""

    @abstractmethod
    def update_body(self, ticket_id: str, body: str) -> None:
        """Replace a ticket's body."""

    @abstractmethod
    def add_comment(self, ticket_id: str, text: str) -> None:
        """Append a comment to a ticket."""

    def labels_for(self, event: NormalizedEvent) -> list[str]:
        """Labels/tags to attach when creating a ticket for ``event``."""
        return []

    def ticket_ref(self, ticket_id: str) -> str:
        """Human-readable reference used in comments and messages."""
        return ticket_id

    def _headers(self) -> dict[str, str]:
        return {}

    def _request(
        self,
        method: str,
        url: str,
        action: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Perform a JSON request and return the decoded response object.

        Raises:
            TicketStoreError: On HTTP errors or connection failures.
        """
        headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        headers.update(self._headers())

        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        request = urllib.request.Request(url, data=data, headers=headers, method=method)

        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                response_body = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8") if e.fp else str(e)
            logger.error("%s %s HTTP error %s: %s", self.name, action, e.code, error_body)
            raise TicketStoreError(self.name, action, status=e.code, body=error_body) from e
        except urllib.error.URLError as e:
            logger.error("%s %s URL error: %s", self.name, action, e.reason)
            raise TicketStoreError(self.name, action, body=f"unreachable: {e.reason}") from e
        except (TimeoutError, OSError, http.client.HTTPException) as e:
            logger.error("%s %s connection error: %s", self.name, action, e)
            raise TicketStoreError(self.name, action, body=f"unreachable: {e}") from e

        if not response_body:
            return {}
        try:
            decoded = json.loads(response_body)
        except json.JSONDecodeError:
            return {"raw": response_body}
        return decoded if isinstance(decoded, dict) else {"data": decoded}
