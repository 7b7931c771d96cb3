"""Exceptions raised by the ticket bridge and mapped to HTTP statuses by the views."""


class BridgeError(Exception):
    """Base class for bridge failures."""

    status_code = 500


class ConfigurationError(BridgeError):
    """A required downstream target is not configured."""

    status_code = 500


class TicketStoreError(BridgeError):
    """A ticket store answered with a non-success response or was unreachable."""

    status_code = 502

    def __init__(self, store: str, action: str, status: int | None = None, body: str = ""):
        self.store = store
        self.action = action
        self.status = status
        self.body = body
        detail = f"{status} {body}".strip() if status is not None else body
        super().__init__(f"{store} {action} failed: {detail}")
