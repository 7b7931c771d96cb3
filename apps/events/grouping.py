"""Grouping keys: the identity of "the same underlying problem".

A grouping key is ``project:environment:issue_id``. Components are used as
received unless case folding is switched on (BRIDGE_GROUP_KEY_CASEFOLD), in
which case project and environment are lower-cased so "Prod" and "prod"
collide. The source issue id is never altered.
"""

from __future__ import annotations

from apps.events.drivers.base import NormalizedEvent

SEPARATOR = ":"


def derive_group_key(
    project: str,
    environment: str,
    issue_id: str | None,
    casefold: bool = False,
) -> str | None:
    """Return the grouping key, or None when there is no source issue id."""
    if issue_id is None or str(issue_id) == "":
        return None
    if casefold:
        project, environment = project.lower(), environment.lower()
    return SEPARATOR.join((str(project), str(environment), str(issue_id)))


def group_key_for(event: NormalizedEvent, casefold: bool = False) -> str | None:
    return derive_group_key(event.project, event.environment, event.issue_id, casefold=casefold)


def split_group_key(key: str) -> tuple[str, str, str]:
    """Split a key back into (project, environment, issue_id).

    Splits from the right so project slugs containing ":" survive.
    """
    parts = key.rsplit(SEPARATOR, 2)
    if len(parts) != 3:
        raise ValueError(f"Malformed group key: {key!r}")
    project, environment, issue_id = parts
    return project, environment, issue_id
