"""Base driver and data structures for monitoring event intake.

Drivers normalize incoming monitoring webhook payloads into a common
internal format that the correlation and ticketing layers understand.

Public API:
- StackFrame
- NormalizedEvent
- BaseEventDriver
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class StackFrame:
    """A single stack frame, most recent call first in NormalizedEvent.frames."""

    module: str = ""
    filename: str = ""
    lineno: int | None = None
    function: str = ""

    @property
    def label(self) -> str:
        location = "/".join(part for part in (self.module, self.filename) if part)
        if self.lineno:
            location += f":{self.lineno}"
        return location

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StackFrame":
        lineno = data.get("lineno")
        return cls(
            module=str(data.get("module") or ""),
            filename=str(data.get("filename") or ""),
            lineno=lineno if isinstance(lineno, int) else None,
            function=str(data.get("function") or ""),
        )


@dataclass
class NormalizedEvent:
    """Canonical event format that all drivers produce.

    ``issue_id`` is None when the source did not identify an issue; such
    events cannot be correlated and are dropped by the ingest service.
    """

    project: str
    environment: str
    issue_id: str | None
    title: str

    permalink: str = ""
    level: str | None = None
    culprit: str | None = None
    message: str = ""
    frames: list[StackFrame] = field(default_factory=list)
    raw_payload: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.issue_id is not None:
            self.issue_id = str(self.issue_id)
        self.project = str(self.project)
        self.environment = str(self.environment)


class BaseEventDriver(ABC):
    """Abstract base class for monitoring event sources."""

    name: str = "base"

    @abstractmethod
    def validate(self, payload: dict[str, Any]) -> bool:
        """Validate that a payload is from this source and can be parsed."""

    @abstractmethod
    def parse(self, payload: dict[str, Any]) -> NormalizedEvent | None:
        """Parse a payload, returning None when it carries no event."""

    def is_test_ping(self, payload: dict[str, Any]) -> bool:
        """Return True for connectivity checks that carry no event."""
        return False
