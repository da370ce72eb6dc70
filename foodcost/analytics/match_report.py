"""Batch matching of invoice lines with a price-change summary."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..matching import HIGH, NONE, MatchResult, NameMatcher
from ..types import Ingredient, InvoiceLineItem
from ..units import PackSizeParser, UnitNormalizer
from .variance import PriceChange, price_change_for

logger = logging.getLogger(__name__)


@dataclass
class MatchReport:
    results: list[MatchResult] = field(default_factory=list)
    price_changes: list[PriceChange] = field(default_factory=list)
    # Auto-matched lines whose price could not be put in the ingredient's unit
    unaligned: list[MatchResult] = field(default_factory=list)
    ingredient_count: int = 0
    max_clarifications: int = 20

    @property
    def auto_matched(self) -> list[MatchResult]:
        return [r for r in self.results if r.confidence == HIGH]

    @property
    def needs_clarification(self) -> list[MatchResult]:
        return [r for r in self.results if r.needs_clarification]

    @property
    def no_match(self) -> list[MatchResult]:
        return [r for r in self.results if r.confidence == NONE]

    def summary(self) -> dict:
        return {
            "total_invoice_items": len(self.results),
            "auto_matched": len(self.auto_matched),
            "needs_clarification": len(self.needs_clarification),
            "no_match": len(self.no_match),
            "price_changes_detected": len(self.price_changes),
            "unaligned": len(self.unaligned),
            "ingredients": self.ingredient_count,
        }

    def to_dict(self) -> dict:
        return {
            "summary": self.summary(),
            "price_changes": [c.to_dict() for c in self.price_changes],
            "needs_clarification": [
                r.to_dict()
                for r in self.needs_clarification[: self.max_clarifications]
            ],
            "unaligned": [r.to_dict() for r in self.unaligned],
        }


def run_matching(
    items: Iterable[InvoiceLineItem],
    ingredients: Sequence[Ingredient],
    matcher: NameMatcher | None = None,
    normalizer: UnitNormalizer | None = None,
    parser: PackSizeParser | None = None,
    min_change_pct: float = 1.0,
    max_clarifications: int = 20,
) -> MatchReport:
    """Match every invoice line and collect price changes of auto-matched ones.

    Price changes smaller than ``min_change_pct`` are dropped; the rest are
    sorted by absolute variance, largest first.
    """
    matcher = matcher or NameMatcher()
    normalizer = normalizer or UnitNormalizer()
    parser = parser or PackSizeParser(normalizer)

    report = MatchReport(
        ingredient_count=len(ingredients), max_clarifications=max_clarifications
    )
    for item in items:
        result = matcher.find_matches(item, ingredients)
        report.results.append(result)

        ingredient = result.resolved
        if ingredient is None or ingredient.unit_cost <= 0:
            continue
        change = price_change_for(item, ingredient, normalizer, parser, result.score)
        if change is None:
            report.unaligned.append(result)
            continue
        if abs(change.delta_pct) >= min_change_pct:
            report.price_changes.append(change)

    report.price_changes.sort(key=lambda c: abs(c.delta_pct), reverse=True)
    logger.info(
        "Matched %d invoice lines: %d auto, %d to clarify, %d unmatched",
        len(report.results),
        len(report.auto_matched),
        len(report.needs_clarification),
        len(report.no_match),
    )
    return report
