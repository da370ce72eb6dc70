"""Claude API suggestion backend."""

from __future__ import annotations

from ..analytics.alerts import PriceTrend
from ..matching import MatchResult
from . import SuggestionBackend
from .prompts import clean_reply, match_prompt, trend_prompt


class ClaudeSuggestionBackend(SuggestionBackend):
    """Ask Claude to disambiguate matches and comment on price trends."""

    def __init__(self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929") -> None:
        self._api_key = api_key
        self._model = model

    async def _ask(self, prompt: str, max_tokens: int) -> str | None:
        if not self._api_key:
            raise ValueError(
                "Anthropic API key is not set. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install anthropic"
            ) from None

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        response = await client.messages.create(
            model=self._model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.content:
            return None
        return clean_reply(response.content[0].text)

    async def suggest_match(self, result: MatchResult) -> str | None:
        if not result.candidates:
            return None
        return await self._ask(match_prompt(result), max_tokens=150)

    async def recommend(self, trend: PriceTrend, affected: list[str]) -> str | None:
        return await self._ask(trend_prompt(trend, affected), max_tokens=200)
