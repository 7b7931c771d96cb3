"""ClickUp tasks ticket driver."""

import logging

from apps.events.drivers.base import NormalizedEvent
from apps.tickets.drivers.base import BaseTicketDriver, TicketSnapshot
from apps.tickets.exceptions import TicketStoreError

logger = logging.getLogger(__name__)


class ClickUpTaskDriver(BaseTicketDriver):
    """
    Driver for ClickUp tasks via API v2.

    Configuration:
    {
        "token": "pk_...",        # static personal/API token, sent as-is
        "list_id": "901234",      # list new tasks are created in
        "tags": ["sentry"]
    }
    """

    name = "clickup"
    ticket_kind = "ClickUp task"

    API_URL = "https://api.clickup.com/api/v2"

    def __init__(
        self,
        token: str = "",
        list_id: str = "",
        tags: tuple[str, ...] | list[str] = ("sentry",),
        timeout: int = 30,
    ) -> None:
        super().__init__(timeout=timeout)
        self.token = token
        self.list_id = list_id
        self.tags = list(tags)

    def is_configured(self) -> bool:
        return bool(self.token and self.list_id)

    def has_credentials(self) -> bool:
        return bool(self.token)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": self.token}

    def labels_for(self, event: NormalizedEvent) -> list[str]:
        tags = list(self.tags)
        if event.environment and event.environment not in tags:
            tags.append(event.environment)
        return tags

    def create(self, title: str, body: str, labels: list[str]) -> str:
        task = self._request(
            "POST",
            f"{self.API_URL}/list/{self.list_id}/task",
            "create",
            {"name": title, "description": body, "tags": labels},
        )
        task_id = task.get("id")
        if not task_id:
            raise TicketStoreError(self.name, "create", body="response carried no task id")
        logger.info("ClickUp task %s created in list %s", task_id, self.list_id)
        return str(task_id)

    def get(self, ticket_id: str) -> TicketSnapshot:
        task = self._request("GET", f"{self.API_URL}/task/{ticket_id}", "get task")
        tags = [
            tag.get("name", "") if isinstance(tag, dict) else str(tag)
            for tag in task.get("tags") or []
        ]
        return TicketSnapshot(
            ticket_id=str(ticket_id),
            title=task.get("name") or "",
            body=task.get("description") or "",
            tags=[tag for tag in tags if tag],
        )

    def update_body(self, ticket_id: str, body: str) -> None:
        self._request("PUT", f"{self.API_URL}/task/{ticket_id}", "update", {"description": body})
        logger.info("ClickUp task %s description updated", ticket_id)

    def add_comment(self, ticket_id: str, text: str) -> None:
        self._request(
            "POST", f"{self.API_URL}/task/{ticket_id}/comment", "comment", {"comment_text": text}
        )
