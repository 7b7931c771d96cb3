"""
Ticket store drivers.
"""

from apps.tickets.conf import BridgeConfig
from apps.tickets.drivers.base import BaseTicketDriver, TicketSnapshot
from apps.tickets.drivers.clickup import ClickUpTaskDriver
from apps.tickets.drivers.github import GitHubIssuesDriver

__all__ = [
    "BaseTicketDriver",
    "TicketSnapshot",
    "ClickUpTaskDriver",
    "GitHubIssuesDriver",
    "DRIVER_REGISTRY",
    "build_driver",
]

# Registry of available drivers
DRIVER_REGISTRY: dict[str, type[BaseTicketDriver]] = {
    "github": GitHubIssuesDriver,
    "clickup": ClickUpTaskDriver,
}


def build_driver(name: str, config: BridgeConfig) -> BaseTicketDriver:
    """
    Build a driver instance by name from the bridge configuration.

    Args:
        name: Driver name (e.g., "github", "clickup").
        config: Bridge configuration holding credentials and targets.

    Raises:
        ValueError: If driver name is not found.
    """
    if name == "github":
        return GitHubIssuesDriver(
            token=config.github_token,
            repo=config.github_repo,
            labels=config.github_labels,
            level_labels=config.level_labels,
            agent_label=config.github_agent_label,
            assignee=config.github_assignee,
            api_version=config.github_api_version,
            timeout=config.http_timeout,
        )
    if name == "clickup":
        return ClickUpTaskDriver(
            token=config.clickup_token,
            list_id=config.clickup_list_id,
            tags=config.clickup_tags,
            timeout=config.http_timeout,
        )
    raise ValueError(f"Unknown driver: {name}. Available: {', '.join(DRIVER_REGISTRY.keys())}")
