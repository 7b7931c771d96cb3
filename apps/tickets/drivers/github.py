"""GitHub Issues ticket driver."""

import logging
from typing import Any

from apps.events.drivers.base import NormalizedEvent
from apps.tickets.drivers.base import BaseTicketDriver, TicketSnapshot
from apps.tickets.exceptions import ConfigurationError, TicketStoreError

logger = logging.getLogger(__name__)


class GitHubIssuesDriver(BaseTicketDriver):
    """
    Driver for GitHub issues via the REST API.

    Configuration:
    {
        "token": "ghp_...",
        "repo": "owner/repo",
        "labels": ["sentry", "triage"],
        "level_labels": {"error": "sev-high"},
        "agent_label": "copilot-apply",
        "assignee": "github-copilot",
        "api_version": "2022-11-28"
    }
    """

    name = "github"
    ticket_kind = "GitHub issue"

    API_URL = "https://api.github.com"

    def __init__(
        self,
        token: str = "",
        repo: str = "",
        labels: tuple[str, ...] | list[str] = ("sentry",),
        level_labels: dict[str, str] | None = None,
        agent_label: str = "",
        assignee: str = "",
        api_version: str = "2022-11-28",
        timeout: int = 30,
    ) -> None:
        super().__init__(timeout=timeout)
        self.token = token
        self.repo = repo
        self.labels = list(labels)
        self.level_labels = level_labels or {}
        self.agent_label = agent_label
        self.assignee = assignee
        self.api_version = api_version

    def is_configured(self) -> bool:
        return bool(self.token and self.repo)

    @property
    def repo_path(self) -> str:
        owner, _, repo = self.repo.partition("/")
        if not owner or not repo or "/" in repo:
            raise ConfigurationError("GITHUB_REPO must be 'owner/repo'")
        return f"{self.API_URL}/repos/{owner}/{repo}"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.api_version,
        }

    def labels_for(self, event: NormalizedEvent) -> list[str]:
        labels = list(self.labels)
        level_label = self.level_labels.get(event.level or "")
        if level_label:
            labels.append(level_label)
        if self.agent_label:
            labels.append(self.agent_label)
        return labels

    def ticket_ref(self, ticket_id: str) -> str:
        return f"#{ticket_id}"

    def create(self, title: str, body: str, labels: list[str]) -> str:
        payload: dict[str, Any] = {"title": title, "body": body, "labels": labels}
        if self.assignee:
            payload["assignees"] = [self.assignee]

        created = self._request("POST", f"{self.repo_path}/issues", "create", payload)
        number = created.get("number")
        if number is None:
            raise TicketStoreError(self.name, "create", body="response carried no issue number")
        logger.info("GitHub issue #%s created in %s", number, self.repo)
        return str(number)

    def get(self, ticket_id: str) -> TicketSnapshot:
        issue = self._request("GET", f"{self.repo_path}/issues/{ticket_id}", "get")
        labels = [
            label.get("name", "") if isinstance(label, dict) else str(label)
            for label in issue.get("labels") or []
        ]
        return TicketSnapshot(
            ticket_id=str(ticket_id),
            title=issue.get("title") or "",
            body=issue.get("body") or "",
            tags=[label for label in labels if label],
        )

    def update_body(self, ticket_id: str, body: str) -> None:
        self._request("PATCH", f"{self.repo_path}/issues/{ticket_id}", "patch", {"body": body})
        logger.info("GitHub issue #%s body updated", ticket_id)

    def add_comment(self, ticket_id: str, text: str) -> None:
        self._request(
            "POST", f"{self.repo_path}/issues/{ticket_id}/comments", "comment", {"body": text}
        )
