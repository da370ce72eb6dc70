"""Gemini API suggestion backend."""

from __future__ import annotations

from ..analytics.alerts import PriceTrend
from ..matching import MatchResult
from . import SuggestionBackend
from .prompts import clean_reply, match_prompt, trend_prompt


class GeminiSuggestionBackend(SuggestionBackend):
    """Ask Google Gemini to disambiguate matches and comment on price trends."""

    def __init__(self, api_key: str = "", model: str = "gemini-2.0-flash") -> None:
        self._api_key = api_key
        self._model = model

    async def _ask(self, prompt: str) -> str | None:
        if not self._api_key:
            raise ValueError(
                "Gemini API key is not set. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)
        response = await model.generate_content_async(prompt)
        return clean_reply(response.text)

    async def suggest_match(self, result: MatchResult) -> str | None:
        if not result.candidates:
            return None
        return await self._ask(match_prompt(result))

    async def recommend(self, trend: PriceTrend, affected: list[str]) -> str | None:
        return await self._ask(trend_prompt(trend, affected))
