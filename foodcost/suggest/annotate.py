"""Attach backend suggestions to match reports and price alerts.

A backend that fails or stays silent never fails the run: the template
backend's text is used instead.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from ..analytics.alerts import Alert, PriceTrend, affected_recipes
from ..analytics.match_report import MatchReport
from ..matching import MatchResult
from ..types import Ingredient, Recipe, RecipeLine
from . import SuggestionBackend
from .template import TemplateSuggestionBackend

logger = logging.getLogger(__name__)

_FALLBACK = TemplateSuggestionBackend()


async def suggest_for(result: MatchResult, backend: SuggestionBackend) -> str | None:
    try:
        text = await backend.suggest_match(result)
    except Exception:
        logger.warning(
            "Suggestion backend failed for %r, using template",
            result.item.product_name, exc_info=True,
        )
        text = None
    return text or await _FALLBACK.suggest_match(result)


async def recommend_for(
    trend: PriceTrend, affected: list[str], backend: SuggestionBackend
) -> str:
    try:
        text = await backend.recommend(trend, affected)
    except Exception:
        logger.warning(
            "Recommendation backend failed for %r, using template",
            trend.product_name, exc_info=True,
        )
        text = None
    return text or await _FALLBACK.recommend(trend, affected) or ""


async def annotate_suggestions(
    report: MatchReport, backend: SuggestionBackend
) -> MatchReport:
    """Fill ``ai_suggestion`` on every ambiguous match that has candidates."""
    pending = [r for r in report.needs_clarification if r.candidates]
    for result in pending[: report.max_clarifications]:
        result.ai_suggestion = await suggest_for(result, backend)
    logger.info("Annotated %d ambiguous matches", min(len(pending), report.max_clarifications))
    return report


async def build_alerts(
    trends: Sequence[PriceTrend],
    recipes: Sequence[Recipe],
    lines: Sequence[RecipeLine],
    backend: SuggestionBackend,
    ingredients: Mapping[str, Ingredient] | None = None,
    limit: int = 10,
) -> list[Alert]:
    """Alerts for the largest trends with affected dishes and advice."""
    alerts = []
    for trend in trends[:limit]:
        affected = affected_recipes(trend.product_name, recipes, lines, ingredients)
        recommendation = await recommend_for(trend, affected, backend)
        alerts.append(Alert(trend, affected, recommendation))
    return alerts
