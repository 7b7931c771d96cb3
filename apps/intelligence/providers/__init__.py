"""
Summary providers registry.

Providers turn a normalized event into a short markdown incident report.
``build_summary_chain`` wires the configured providers in priority order:
GitHub Models first, then OpenAI.
"""

import logging

from django.conf import settings

from apps.events.drivers.base import NormalizedEvent
from apps.intelligence.providers.base import BaseSummaryProvider
from apps.intelligence.providers.openai import OpenAICompatibleProvider

logger = logging.getLogger(__name__)

__all__ = [
    "BaseSummaryProvider",
    "OpenAICompatibleProvider",
    "PROVIDERS",
    "SummaryChain",
    "get_provider",
    "build_summary_chain",
]

# Registry of available providers
PROVIDERS: dict[str, type[BaseSummaryProvider]] = {
    "openai": OpenAICompatibleProvider,
}

DEFAULT_GITHUB_MODELS_URL = "https://models.inference.ai.azure.com"


def get_provider(provider: str = "openai", **kwargs) -> BaseSummaryProvider:
    """
    Get a provider instance by registry key.

    ``name`` in kwargs only relabels the instance (e.g. "github_models").

    Raises:
        KeyError: If provider name is not found.
    """
    if provider not in PROVIDERS:
        available = ", ".join(PROVIDERS.keys())
        raise KeyError(f"Unknown provider: {provider}. Available: {available}")
    return PROVIDERS[provider](**kwargs)


class SummaryChain:
    """Tries each configured provider in order; the first non-empty summary wins."""

    def __init__(self, providers: list[BaseSummaryProvider]) -> None:
        self.providers = providers

    def summarize(self, event: NormalizedEvent) -> str | None:
        for provider in self.providers:
            if not provider.is_configured():
                continue
            summary = provider.summarize(event)
            if summary:
                return summary
            logger.info("%s returned no summary, trying next provider", provider.name)
        return None


def build_summary_chain() -> SummaryChain:
    """Build the provider chain from Django settings."""
    model = getattr(settings, "OPENAI_MODEL", "") or "gpt-4o-mini"
    timeout_s = int(getattr(settings, "BRIDGE_HTTP_TIMEOUT", 30))
    github_url = getattr(settings, "GITHUB_MODEL_API_URL", "") or DEFAULT_GITHUB_MODELS_URL

    return SummaryChain(
        [
            get_provider(
                "openai",
                name="github_models",
                api_key=getattr(settings, "GITHUB_MODEL_API_KEY", ""),
                base_url=f"{github_url.rstrip('/')}/v1",
                model=model,
                timeout_s=timeout_s,
            ),
            get_provider(
                "openai",
                api_key=getattr(settings, "OPENAI_API_KEY", ""),
                base_url=getattr(settings, "OPENAI_BASE_URL", "") or None,
                model=model,
                timeout_s=timeout_s,
            ),
        ]
    )
