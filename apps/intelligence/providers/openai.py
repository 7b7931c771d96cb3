"""
OpenAI-compatible summary provider.

Uses the OpenAI SDK. Any endpoint speaking the chat completions API works by
pointing ``base_url`` at it (GitHub Models, Azure, self-hosted gateways).
"""

from typing import Any

from apps.intelligence.providers.base import BaseSummaryProvider


class OpenAICompatibleProvider(BaseSummaryProvider):
    """Summary provider for OpenAI and OpenAI-compatible endpoints."""

    name = "openai"
    description = "OpenAI chat completions summary provider"

    def __init__(
        self,
        base_url: str | None = None,
        name: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or None
        if name:
            self.name = name
        self._client = None

    @property
    def client(self):
        """Lazy-initialize the OpenAI client."""
        if self._client is None:
            from openai import OpenAI  # nosemgrep

            self._client = OpenAI(  # nosec
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout_s,
            )
        return self._client

    def _call_api(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": self.SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
        return response.choices[0].message.content or ""
