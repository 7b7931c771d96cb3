"""
Event drivers for ingesting monitoring events from various sources.
"""

from apps.events.drivers.base import BaseEventDriver, NormalizedEvent, StackFrame
from apps.events.drivers.sentry import SentryDriver, is_test_ping

__all__ = [
    "BaseEventDriver",
    "NormalizedEvent",
    "StackFrame",
    "SentryDriver",
    "is_test_ping",
    "DRIVER_REGISTRY",
    "get_driver",
]

# Registry of available drivers
DRIVER_REGISTRY: dict[str, type[BaseEventDriver]] = {
    "sentry": SentryDriver,
}


def get_driver(name: str, **kwargs) -> BaseEventDriver:
    """
    Get a driver instance by name.

    Args:
        name: Driver name (e.g., "sentry").
        **kwargs: Driver-specific configuration.

    Returns:
        Driver instance.

    Raises:
        ValueError: If driver name is not found.
    """
    if name not in DRIVER_REGISTRY:
        raise ValueError(
            f"Unknown driver: {name}. Available: {', '.join(DRIVER_REGISTRY.keys())}"
        )
    return DRIVER_REGISTRY[name](**kwargs)
