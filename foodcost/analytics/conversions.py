"""Pack conversion setup: find invoice products sold by the box, bag or bunch
and propose the factor that turns their price into a unit cost."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..matching import NameMatcher
from ..types import Ingredient, InvoiceLineItem, PackConversion
from ..units import PackSizeParser, UnitNormalizer
from .updates import IngredientUpdate, conversion_updates
from .variance import costing_unit, latest_invoice_items, rebase_price

logger = logging.getLogger(__name__)


@dataclass
class ConversionSuggestion:
    ingredient: Ingredient
    item: InvoiceLineItem
    score: float
    conversion: PackConversion | None
    calculated_unit_cost: float | None = None
    auto_apply: bool = False

    @property
    def needs_manual_conversion(self) -> bool:
        return self.conversion is None

    def to_dict(self) -> dict:
        conv = self.conversion
        return {
            "ingredient_id": self.ingredient.id,
            "ingredient_name": self.ingredient.name,
            "invoice_item": self.item.product_name,
            "invoice_price": self.item.unit_price,
            "invoice_unit": conv.invoice_unit if conv else self.item.unit,
            "current_unit_cost": self.ingredient.unit_cost,
            "suggested_conversion": (
                {"factor": conv.factor, "base_unit": conv.base_unit, "notes": conv.notes}
                if conv else None
            ),
            "calculated_unit_cost": (
                round(self.calculated_unit_cost, 6)
                if self.calculated_unit_cost is not None else None
            ),
            "score": round(self.score, 4),
            "auto_apply": self.auto_apply,
            "needs_manual_conversion": self.needs_manual_conversion,
        }


@dataclass
class ConversionPlan:
    suggestions: list[ConversionSuggestion] = field(default_factory=list)
    already_configured: list[tuple[Ingredient, InvoiceLineItem]] = field(default_factory=list)
    no_match: list[tuple[InvoiceLineItem, Ingredient | None, float]] = field(
        default_factory=list
    )
    products_analyzed: int = 0

    def summary(self) -> dict:
        return {
            "total_invoice_items": self.products_analyzed,
            "suggestions_found": len(self.suggestions),
            "already_configured": len(self.already_configured),
            "no_match_found": len(self.no_match),
            "auto_applyable": sum(1 for s in self.suggestions if s.auto_apply),
            "needs_manual": sum(1 for s in self.suggestions if s.needs_manual_conversion),
        }

    def to_dict(self) -> dict:
        return {
            "summary": self.summary(),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "already_configured": [
                {
                    "ingredient": ing.name,
                    "invoice_item": item.product_name,
                    "invoice_unit": ing.conversion.invoice_unit if ing.conversion else "",
                    "factor": ing.conversion.factor if ing.conversion else None,
                }
                for ing, item in self.already_configured
            ],
            "no_match_found": [
                {
                    "invoice_item": item.product_name,
                    "unit": item.unit,
                    "price": item.unit_price,
                    "best_match": best.name if best else None,
                    "score": round(score, 4),
                }
                for item, best, score in self.no_match
            ],
        }


def suggest_conversions(
    ingredients: Sequence[Ingredient],
    items: Iterable[InvoiceLineItem],
    matcher: NameMatcher | None = None,
    parser: PackSizeParser | None = None,
    normalizer: UnitNormalizer | None = None,
    min_score: float = 0.4,
    auto_apply_score: float = 0.7,
) -> ConversionPlan:
    """Propose a pack conversion for each invoice product's best ingredient."""
    matcher = matcher or NameMatcher()
    normalizer = normalizer or UnitNormalizer()
    parser = parser or PackSizeParser(normalizer)

    plan = ConversionPlan()
    latest = latest_invoice_items(items)
    plan.products_analyzed = len(latest)

    for item in latest:
        ranked = matcher.rank(item.product_name, ingredients)
        best = ranked[0] if ranked else None
        if best is None or best.score < min_score:
            plan.no_match.append(
                (item, best.ingredient if best else None, best.score if best else 0.0)
            )
            continue

        ingredient = best.ingredient
        if ingredient.conversion is not None:
            plan.already_configured.append((ingredient, item))
            continue

        parsed = parser.parse_conversion(item.product_name)
        if parsed is None:
            plan.suggestions.append(
                ConversionSuggestion(ingredient, item, best.score, None)
            )
            continue

        conversion = PackConversion(
            parsed.factor,
            parsed.base_unit,
            parsed.notes,
            item.unit or parsed.invoice_unit,
        )
        per_base = item.unit_price / conversion.factor
        calculated = rebase_price(
            per_base, costing_unit(ingredient), conversion.base_unit, normalizer
        )
        plan.suggestions.append(ConversionSuggestion(
            ingredient=ingredient,
            item=item,
            score=best.score,
            conversion=conversion,
            calculated_unit_cost=calculated if calculated is not None else per_base,
            auto_apply=best.score >= auto_apply_score,
        ))

    logger.info(
        "Conversion setup: %d suggestions, %d configured, %d unmatched",
        len(plan.suggestions), len(plan.already_configured), len(plan.no_match),
    )
    return plan


def apply_conversions(
    plan: ConversionPlan,
    apply_all: bool = False,
    ingredient_ids: Iterable[str] | None = None,
    recalculate: bool = True,
    as_of: str | None = None,
) -> list[IngredientUpdate]:
    """Turn suggestions into update instructions.

    Without ``apply_all`` only auto-applicable suggestions are used.
    ``recalculate`` also sets the unit cost from the invoice price.
    """
    wanted = set(ingredient_ids) if ingredient_ids is not None else None
    updates: list[IngredientUpdate] = []
    for s in plan.suggestions:
        if s.conversion is None:
            continue
        if wanted is not None and s.ingredient.id not in wanted:
            continue
        if not apply_all and not s.auto_apply:
            continue

        reason = f"pack conversion from {s.item.product_name}"
        updates.extend(conversion_updates(s.ingredient.id, s.conversion, reason))
        if recalculate and s.item.unit_price > 0 and s.calculated_unit_cost is not None:
            updates.append(IngredientUpdate(
                s.ingredient.id, "unit_cost", s.calculated_unit_cost, reason
            ))
            updates.append(IngredientUpdate(
                s.ingredient.id, "latest_price", s.item.unit_price, reason
            ))
            if as_of:
                updates.append(IngredientUpdate(
                    s.ingredient.id, "price_updated", as_of, reason
                ))
    return updates


def apply_conversion_rule(
    keyword: str,
    invoice_unit: str,
    factor: float,
    ingredients: Iterable[Ingredient],
    base_unit: str = "",
    notes: str = "",
) -> list[IngredientUpdate]:
    """Apply one conversion to every ingredient whose name contains ``keyword``."""
    if not keyword or not invoice_unit:
        raise ValueError("keyword and invoice_unit are required")
    conversion = PackConversion(
        factor,
        base_unit,
        notes or f"{factor:g} {base_unit or 'units'} per {invoice_unit}",
        invoice_unit,
    )
    needle = keyword.lower()
    updates: list[IngredientUpdate] = []
    for ing in ingredients:
        if needle in ing.name.lower():
            updates.extend(
                conversion_updates(ing.id, conversion, f"rule for {keyword!r}")
            )
    return updates
