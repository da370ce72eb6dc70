"""Offline suggestion backend built from fixed templates."""

from __future__ import annotations

from ..analytics.alerts import PriceTrend, fallback_recommendation
from ..matching import MatchResult
from . import SuggestionBackend


class TemplateSuggestionBackend(SuggestionBackend):
    """Always available; answers from the match scores and trend direction."""

    async def suggest_match(self, result: MatchResult) -> str | None:
        if not result.candidates:
            return None
        top = result.candidates[0]
        return (
            f"1 - {top.ingredient.name} is the closest name match "
            f"(score {top.score:.2f}); confirm the pack size before applying"
        )

    async def recommend(self, trend: PriceTrend, affected: list[str]) -> str | None:
        return fallback_recommendation(trend)
