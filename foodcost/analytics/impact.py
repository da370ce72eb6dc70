"""Recipe cost impact: reference vs actual cost, scaled by sales."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from ..types import Ingredient, ProductSale, Recipe, RecipeLine
from ..units import UnitNormalizer
from .variance import (
    DEFAULT_COSTING_UNIT,
    PriceChange,
    RecommendationThresholds,
    pct_change,
    product_key,
    recommendation_tier,
)

logger = logging.getLogger(__name__)

DEFAULT_RECIPE_UNIT = "g"


def build_ingredient_index(ingredients: Iterable[Ingredient]) -> dict[str, Ingredient]:
    """Index ingredients by id and by lowercased name.

    Ids take precedence; a name that collides with an earlier name keeps the
    first ingredient.
    """
    index: dict[str, Ingredient] = {}
    ingredients = list(ingredients)
    for ing in ingredients:
        index[ing.id] = ing
    for ing in ingredients:
        index.setdefault(product_key(ing.name), ing)
    return index


def build_sales_index(sales: Iterable[ProductSale]) -> dict[str, ProductSale]:
    """Sum sales per lowercased product name, skipping non-positive rows."""
    index: dict[str, ProductSale] = {}
    for sale in sales:
        if sale.quantity_sold <= 0:
            continue
        key = product_key(sale.product_name)
        current = index.get(key)
        if current is None:
            index[key] = ProductSale(
                sale.product_name, sale.quantity_sold, sale.revenue, sale.category
            )
        else:
            current.quantity_sold += sale.quantity_sold
            current.revenue += sale.revenue
    return index


def _pct(part: float, whole: float) -> float:
    return part / whole * 100 if whole else 0.0


@dataclass
class RecipeLineCost:
    ingredient_id: str
    name: str
    quantity: float
    unit: str
    costing_quantity: float
    costing_unit: str
    unit_verified: bool
    reference_unit_cost: float
    actual_unit_cost: float
    reference_cost: float
    actual_cost: float

    @property
    def variance(self) -> float:
        return self.actual_cost - self.reference_cost

    @property
    def variance_pct(self) -> float:
        return _pct(self.variance, self.reference_cost)

    def to_dict(self) -> dict:
        return {
            "ingredient_id": self.ingredient_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "costing_quantity": round(self.costing_quantity, 6),
            "costing_unit": self.costing_unit,
            "unit_verified": self.unit_verified,
            "reference_unit_cost": round(self.reference_unit_cost, 4),
            "actual_unit_cost": round(self.actual_unit_cost, 4),
            "reference_cost": round(self.reference_cost, 4),
            "actual_cost": round(self.actual_cost, 4),
            "variance": round(self.variance, 4),
            "variance_pct": round(self.variance_pct, 2),
        }


@dataclass
class RecipeImpactAnalysis:
    recipe: Recipe
    lines: list[RecipeLineCost]
    reference_total_cost: float
    actual_total_cost: float
    units_sold: float
    selling_price: float
    tier: str
    recommendation: str

    @property
    def cost_variance_per_portion(self) -> float:
        return self.actual_total_cost - self.reference_total_cost

    @property
    def cost_variance_pct(self) -> float:
        return _pct(self.cost_variance_per_portion, self.reference_total_cost)

    @property
    def total_financial_impact(self) -> float:
        return self.cost_variance_per_portion * self.units_sold

    @property
    def reference_margin_pct(self) -> float:
        return _pct(self.selling_price - self.reference_total_cost, self.selling_price)

    @property
    def actual_margin_pct(self) -> float:
        return _pct(self.selling_price - self.actual_total_cost, self.selling_price)

    @property
    def margin_impact_pct(self) -> float:
        return self.actual_margin_pct - self.reference_margin_pct

    @property
    def unverified_lines(self) -> list[RecipeLineCost]:
        return [line for line in self.lines if not line.unit_verified]

    def to_dict(self) -> dict:
        return {
            "recipe_id": self.recipe.id,
            "recipe_name": self.recipe.name,
            "category": self.recipe.category,
            "lines": [line.to_dict() for line in self.lines],
            "reference_total_cost": round(self.reference_total_cost, 4),
            "actual_total_cost": round(self.actual_total_cost, 4),
            "cost_variance_per_portion": round(self.cost_variance_per_portion, 4),
            "cost_variance_pct": round(self.cost_variance_pct, 2),
            "units_sold": self.units_sold,
            "total_financial_impact": round(self.total_financial_impact, 2),
            "selling_price": self.selling_price,
            "reference_margin_pct": round(self.reference_margin_pct, 2),
            "actual_margin_pct": round(self.actual_margin_pct, 2),
            "margin_impact_pct": round(self.margin_impact_pct, 2),
            "tier": self.tier,
            "recommendation": self.recommendation,
        }


@dataclass
class CostSummary:
    total_recipes: int
    recipes_with_increase: int
    recipes_with_decrease: int
    critical_recipes: int
    total_units_sold: float
    total_reference_cost: float
    total_actual_cost: float
    total_financial_impact: float
    ingredients_with_price_change: int
    top_ingredient_changes: list[PriceChange] = field(default_factory=list)
    overall: str = ""

    @property
    def avg_variance_pct(self) -> float:
        return pct_change(self.total_reference_cost, self.total_actual_cost)

    def to_dict(self) -> dict:
        return {
            "total_recipes": self.total_recipes,
            "recipes_with_increase": self.recipes_with_increase,
            "recipes_with_decrease": self.recipes_with_decrease,
            "critical_recipes": self.critical_recipes,
            "total_units_sold": self.total_units_sold,
            "total_reference_cost": round(self.total_reference_cost, 2),
            "total_actual_cost": round(self.total_actual_cost, 2),
            "total_financial_impact": round(self.total_financial_impact, 2),
            "avg_variance_pct": round(self.avg_variance_pct, 2),
            "ingredients_with_price_change": self.ingredients_with_price_change,
            "top_ingredient_changes": [c.to_dict() for c in self.top_ingredient_changes],
            "overall": self.overall,
        }


def recommendation_text(
    tier: str,
    variance_pct: float,
    impact: float,
    margin_impact_pct: float = 0.0,
    selling_price: float = 0.0,
    currency: str = "$",
) -> str:
    match tier:
        case "critical":
            action = (
                f"raising price by {currency}{impact / 50:.2f}"
                if selling_price > 0 else "a menu price increase"
            )
            return (
                f"CRITICAL: +{variance_pct:.0f}% cost increase. "
                f"Impact: {currency}{impact:.0f}/period. Negotiate with the supplier "
                f"immediately, source alternatives and consider {action}."
            )
        case "high":
            return (
                f"HIGH: +{variance_pct:.0f}% increase. Review the supplier contract. "
                f"Consider reducing the portion by {variance_pct / 2:.0f}% "
                "or a price increase."
            )
        case "monitor":
            return (
                f"MONITOR: +{variance_pct:.0f}% increase. "
                "Track for the next 2 weeks before acting."
            )
        case "opportunity":
            return (
                f"OPPORTUNITY: {variance_pct:.0f}% cost reduction. Lock in the "
                "supplier contract or stock up. "
                f"Margin improved by {abs(margin_impact_pct):.1f}%."
            )
        case "favorable":
            return (
                f"Favorable: {variance_pct:.0f}% cost decrease. "
                "Consider bulk purchasing."
            )
        case _:
            return "Cost stable, no action needed."


class RecipeImpactAnalyzer:
    """Compares what recipes should cost with what they cost now."""

    def __init__(
        self,
        normalizer: UnitNormalizer | None = None,
        thresholds: RecommendationThresholds | None = None,
        currency: str = "$",
    ) -> None:
        self._normalizer = normalizer or UnitNormalizer()
        self._thresholds = thresholds or RecommendationThresholds()
        self._currency = currency

    def _resolve(
        self, line: RecipeLine, ingredient_index: Mapping[str, Ingredient]
    ) -> Ingredient | None:
        if line.ingredient_id and line.ingredient_id in ingredient_index:
            return ingredient_index[line.ingredient_id]
        if line.ingredient_name:
            return ingredient_index.get(product_key(line.ingredient_name))
        return None

    def _line_cost(
        self,
        line: RecipeLine,
        ingredient: Ingredient,
        price_changes: Mapping[str, PriceChange],
    ) -> RecipeLineCost:
        recipe_unit = line.unit or DEFAULT_RECIPE_UNIT
        target_unit = ingredient.per_unit or DEFAULT_COSTING_UNIT
        converted = self._normalizer.convert_checked(
            line.quantity, recipe_unit, target_unit
        )
        if not converted.verified:
            logger.debug(
                "Unverified unit for %s: %s -> %s",
                ingredient.name, recipe_unit, target_unit,
            )

        reference_unit_cost = ingredient.unit_cost
        change = price_changes.get(ingredient.id)
        if change is not None:
            actual_unit_cost = change.actual_price
        elif ingredient.latest_price is not None:
            actual_unit_cost = ingredient.latest_price
        else:
            actual_unit_cost = reference_unit_cost

        return RecipeLineCost(
            ingredient_id=ingredient.id,
            name=ingredient.name,
            quantity=line.quantity,
            unit=recipe_unit,
            costing_quantity=converted.quantity,
            costing_unit=target_unit,
            unit_verified=converted.verified,
            reference_unit_cost=reference_unit_cost,
            actual_unit_cost=actual_unit_cost,
            reference_cost=converted.quantity * reference_unit_cost,
            actual_cost=converted.quantity * actual_unit_cost,
        )

    def analyze(
        self,
        recipe: Recipe,
        lines: Iterable[RecipeLine],
        ingredient_index: Mapping[str, Ingredient],
        price_changes: Mapping[str, PriceChange],
        sales_index: Mapping[str, ProductSale],
    ) -> RecipeImpactAnalysis | None:
        """Cost one recipe. Returns None when no line resolves to an ingredient."""
        costs: list[RecipeLineCost] = []
        for line in lines:
            ingredient = self._resolve(line, ingredient_index)
            if ingredient is None:
                logger.debug(
                    "Skipping unresolved line %r in %s",
                    line.ingredient_name or line.ingredient_id, recipe.name,
                )
                continue
            costs.append(self._line_cost(line, ingredient, price_changes))

        if not costs:
            return None

        sale = sales_index.get(product_key(recipe.name))
        analysis = RecipeImpactAnalysis(
            recipe=recipe,
            lines=costs,
            reference_total_cost=sum(c.reference_cost for c in costs),
            actual_total_cost=sum(c.actual_cost for c in costs),
            units_sold=sale.quantity_sold if sale else 0.0,
            selling_price=recipe.selling_price or 0.0,
            tier="",
            recommendation="",
        )
        analysis.tier = recommendation_tier(
            analysis.cost_variance_pct,
            analysis.total_financial_impact,
            self._thresholds,
        )
        analysis.recommendation = recommendation_text(
            analysis.tier,
            analysis.cost_variance_pct,
            analysis.total_financial_impact,
            analysis.margin_impact_pct,
            analysis.selling_price,
            self._currency,
        )
        return analysis

    def analyze_all(
        self,
        recipes: Iterable[Recipe],
        lines: Iterable[RecipeLine],
        ingredient_index: Mapping[str, Ingredient],
        price_changes: Mapping[str, PriceChange],
        sales_index: Mapping[str, ProductSale],
    ) -> list[RecipeImpactAnalysis]:
        """Analyze every recipe, largest absolute financial impact first."""
        by_recipe: dict[str, list[RecipeLine]] = {}
        for line in lines:
            by_recipe.setdefault(line.recipe_id, []).append(line)

        analyses = []
        for recipe in recipes:
            analysis = self.analyze(
                recipe,
                by_recipe.get(recipe.id, []),
                ingredient_index,
                price_changes,
                sales_index,
            )
            if analysis is not None:
                analyses.append(analysis)

        analyses.sort(key=lambda a: abs(a.total_financial_impact), reverse=True)
        return analyses

    def summarize(
        self,
        analyses: Sequence[RecipeImpactAnalysis],
        price_changes: Mapping[str, PriceChange],
        top_n: int = 15,
    ) -> CostSummary:
        critical = sum(
            1 for a in analyses
            if a.cost_variance_pct > 10 or a.total_financial_impact > 50
        )
        top_changes = sorted(
            (c for c in price_changes.values() if abs(c.delta_pct) >= 2),
            key=lambda c: abs(c.delta_pct),
            reverse=True,
        )[:top_n]

        summary = CostSummary(
            total_recipes=len(analyses),
            recipes_with_increase=sum(1 for a in analyses if a.cost_variance_pct > 2),
            recipes_with_decrease=sum(1 for a in analyses if a.cost_variance_pct < -2),
            critical_recipes=critical,
            total_units_sold=sum(a.units_sold for a in analyses),
            total_reference_cost=sum(
                a.reference_total_cost * a.units_sold for a in analyses
            ),
            total_actual_cost=sum(a.actual_total_cost * a.units_sold for a in analyses),
            total_financial_impact=sum(a.total_financial_impact for a in analyses),
            ingredients_with_price_change=len(price_changes),
            top_ingredient_changes=top_changes,
        )
        summary.overall = overall_summary(
            summary.total_financial_impact, critical, top_changes, self._currency
        )
        return summary


def overall_summary(
    total_impact: float,
    critical_count: int,
    changes: Sequence[PriceChange],
    currency: str = "$",
) -> str:
    """One-paragraph digest of a cost analysis run."""
    if abs(total_impact) < 10 and critical_count == 0:
        return "Food costs are stable. No immediate action required."

    increases = [c for c in changes if c.delta_pct > 5][:3]
    decreases = [c for c in changes if c.delta_pct < -5][:2]

    parts: list[str] = []
    if total_impact > 0:
        parts.append(f"Cost alert: {currency}{total_impact:.0f} additional cost this period.")
    elif total_impact < 0:
        parts.append(f"Cost savings: {currency}{abs(total_impact):.0f} saved this period.")
    if critical_count:
        parts.append(f"{critical_count} recipes need immediate attention.")
    if increases:
        listed = ", ".join(f"{c.ingredient_name} (+{c.delta_pct:.0f}%)" for c in increases)
        parts.append(f"Top increases: {listed}.")
    if decreases:
        listed = ", ".join(f"{c.ingredient_name} ({c.delta_pct:.0f}%)" for c in decreases)
        parts.append(f"Opportunities: {listed}.")

    return " ".join(parts) or "Review individual recipes for details."
