"""In-memory ticket stores and monitoring backend for tests."""

import json
from unittest.mock import MagicMock

from apps.tickets.drivers.base import BaseTicketDriver, TicketSnapshot
from apps.tickets.exceptions import TicketStoreError
from apps.tickets.signals import MonitoringBackend


class FakeTicketDriver(BaseTicketDriver):
    """Ticket store held in a dict. Set ``fail_on`` to make an action raise.

    ``readable`` marks a store that has credentials but no create target.
    """

    def __init__(self, name="fake", ticket_kind="Fake ticket", configured=True, prefix="T"):
        super().__init__()
        self.name = name
        self.ticket_kind = ticket_kind
        self.configured = configured
        self.readable = False
        self.prefix = prefix
        self.tickets = {}
        self.comments = {}
        self.calls = []
        self.fail_on = set()

    def _check(self, action):
        self.calls.append(action)
        if action in self.fail_on:
            raise TicketStoreError(self.name, action, status=503, body="unavailable")

    def is_configured(self):
        return self.configured

    def has_credentials(self):
        return self.configured or self.readable

    def create(self, title, body, labels):
        self._check("create")
        ticket_id = f"{self.prefix}{len(self.tickets) + 1}"
        self.tickets[ticket_id] = TicketSnapshot(
            ticket_id, title=title, body=body, tags=list(labels)
        )
        return ticket_id

    def get(self, ticket_id):
        self._check("get")
        if ticket_id not in self.tickets:
            raise TicketStoreError(self.name, "get", status=404, body="not found")
        return self.tickets[ticket_id]

    def update_body(self, ticket_id, body):
        self._check("update_body")
        self.tickets[ticket_id].body = body

    def add_comment(self, ticket_id, text):
        self._check("add_comment")
        self.comments.setdefault(ticket_id, []).append(text)

    def ticket_ref(self, ticket_id):
        return f"#{ticket_id}"


class RecordingBackend(MonitoringBackend):
    """Keeps every emitted signal for assertions."""

    def __init__(self):
        self.signals = []

    def emit(self, signal_name, tags, value=None, extra=None):
        self.signals.append((signal_name, tags, extra or {}))

    def names(self):
        return [name for name, _, _ in self.signals]


def json_response(data):
    """Mock context manager standing in for an urlopen response."""
    response = MagicMock()
    response.read.return_value = json.dumps(data).encode("utf-8")
    response.__enter__ = MagicMock(return_value=response)
    response.__exit__ = MagicMock(return_value=False)
    return response


class FakeStoreAPI:
    """
    Replacement for ``urllib.request.urlopen`` that answers like the ClickUp
    and GitHub REST APIs, keeping tasks and issues in memory.
    """

    CLICKUP = "https://api.clickup.com/api/v2"
    GITHUB = "https://api.github.com/repos/acme/api"

    def __init__(self):
        self.tasks = {}
        self.issues = {}
        self.requests = []

    def __call__(self, request, timeout=None):
        method = request.get_method()
        url = request.full_url
        body = json.loads(request.data.decode("utf-8")) if request.data else None
        self.requests.append((method, url, body))
        return json_response(self.route(method, url, body))

    def calls(self, method, prefix=""):
        return [url for m, url, _ in self.requests if m == method and url.startswith(prefix)]

    def route(self, method, url, body):
        if url.startswith(f"{self.CLICKUP}/list/") and method == "POST":
            task_id = f"cu{len(self.tasks) + 1}"
            self.tasks[task_id] = {
                "id": task_id,
                "name": body["name"],
                "description": body["description"],
                "tags": [{"name": tag} for tag in body["tags"]],
            }
            return {"id": task_id}
        if url.startswith(f"{self.CLICKUP}/task/"):
            task_id = url[len(f"{self.CLICKUP}/task/"):].split("/")[0]
            if url.endswith("/comment"):
                return {"id": "comment-1"}
            if method == "PUT":
                self.tasks[task_id]["description"] = body["description"]
                return self.tasks[task_id]
            return self.tasks[task_id]
        if url == f"{self.GITHUB}/issues" and method == "POST":
            number = len(self.issues) + 7
            self.issues[number] = {"number": number, "labels": [], **body}
            return {"number": number}
        if url.startswith(f"{self.GITHUB}/issues/"):
            number = int(url[len(f"{self.GITHUB}/issues/"):].split("/")[0])
            if url.endswith("/comments"):
                return {"id": 1}
            if method == "PATCH":
                self.issues[number]["body"] = body["body"]
            return self.issues[number]
        raise AssertionError(f"Unexpected request {method} {url}")
