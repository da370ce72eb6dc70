"""Suggestion backend base class and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..analytics.alerts import PriceTrend
    from ..config import FoodCostConfig
    from ..matching import MatchResult


class SuggestionBackend(ABC):
    """Abstract base for free-text guidance on ambiguous matches and price trends."""

    @abstractmethod
    async def suggest_match(self, result: MatchResult) -> str | None:
        """Pick the best candidate for an ambiguous match.

        Returns a reply such as ``"2 - same product, different pack"`` or None
        when the backend has nothing to say.
        """
        ...

    @abstractmethod
    async def recommend(self, trend: PriceTrend, affected: list[str]) -> str | None:
        """Short actionable advice for a supplier price change."""
        ...


def create_backend(config: FoodCostConfig) -> SuggestionBackend:
    """Create a suggestion backend based on configuration."""
    backend_name = config.suggest.backend

    match backend_name:
        case "template":
            from .template import TemplateSuggestionBackend

            return TemplateSuggestionBackend()
        case "claude":
            from .claude import ClaudeSuggestionBackend

            return ClaudeSuggestionBackend(
                api_key=config.suggest.claude.api_key,
                model=config.suggest.claude.model,
            )
        case "gemini":
            from .gemini import GeminiSuggestionBackend

            return GeminiSuggestionBackend(
                api_key=config.suggest.gemini.api_key,
                model=config.suggest.gemini.model,
            )
        case _:
            raise ValueError(
                f"Unknown suggestion backend: {backend_name!r} "
                f"(choose template / claude / gemini)"
            )
