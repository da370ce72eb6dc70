"""Supplier price-trend alerts from invoice history."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from ..types import Ingredient, InvoiceLineItem, Recipe, RecipeLine
from .variance import pct_change, product_key

logger = logging.getLogger(__name__)

IMPACT_LEVELS: tuple[str, ...] = ("Critical", "High", "Medium", "Low")

# Rough weekly usage, in invoice units, for the cost-impact estimate
ESTIMATED_WEEKLY_USAGE = 10


@dataclass
class PriceTrend:
    """Oldest vs newest invoice price of one product."""

    product_name: str
    supplier: str
    old_price: float
    new_price: float
    change_pct: float
    unit: str
    old_date: str | None
    new_date: str | None

    @property
    def impact_level(self) -> str:
        return impact_level(self.change_pct)

    @property
    def title(self) -> str:
        direction = "increased" if self.change_pct > 0 else "decreased"
        return f"{self.product_name} price {direction} {abs(self.change_pct):.0f}%"

    def monthly_impact(self, weekly_usage: float = ESTIMATED_WEEKLY_USAGE) -> float:
        return (self.new_price - self.old_price) * weekly_usage * 4

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "product_name": self.product_name,
            "supplier": self.supplier,
            "old_price": self.old_price,
            "new_price": self.new_price,
            "change_pct": round(self.change_pct, 2),
            "unit": self.unit,
            "dates": {"old": self.old_date, "new": self.new_date},
            "impact_level": self.impact_level,
        }


def impact_level(change_pct: float) -> str:
    magnitude = abs(change_pct)
    if magnitude >= 20:
        return "Critical"
    if magnitude >= 10:
        return "High"
    if magnitude >= 5:
        return "Medium"
    return "Low"


def detect_price_trends(
    items: Iterable[InvoiceLineItem],
    min_change_pct: float = 3.0,
    limit: int = 20,
) -> list[PriceTrend]:
    """Compare the oldest and newest price of every product bought twice or more."""
    history: dict[str, list[InvoiceLineItem]] = {}
    for item in items:
        if not item.product_name or item.unit_price <= 0:
            continue
        history.setdefault(product_key(item.product_name), []).append(item)

    trends: list[PriceTrend] = []
    for observations in history.values():
        if len(observations) < 2:
            continue
        ordered = sorted(observations, key=lambda i: i.invoice_date or "", reverse=True)
        newest, oldest = ordered[0], ordered[-1]
        change = pct_change(oldest.unit_price, newest.unit_price)
        if abs(change) < min_change_pct:
            continue
        trends.append(PriceTrend(
            product_name=newest.product_name,
            supplier=newest.supplier or oldest.supplier,
            old_price=oldest.unit_price,
            new_price=newest.unit_price,
            change_pct=change,
            unit=newest.unit or oldest.unit,
            old_date=oldest.invoice_date,
            new_date=newest.invoice_date,
        ))

    trends.sort(key=lambda t: abs(t.change_pct), reverse=True)
    logger.debug("%d products with price trends", len(trends))
    return trends[:limit]


def affected_recipes(
    product_name: str,
    recipes: Sequence[Recipe],
    lines: Iterable[RecipeLine],
    ingredients: Mapping[str, Ingredient] | None = None,
    limit: int = 5,
) -> list[str]:
    """Names of recipes with a line mentioning the product's first word."""
    words = product_name.lower().split()
    if not words:
        return []
    needle = words[0]
    names_by_id = {r.id: r.name for r in recipes}

    found: list[str] = []
    for line in lines:
        name = line.ingredient_name
        if not name and ingredients and line.ingredient_id in ingredients:
            name = ingredients[line.ingredient_id].name
        if needle not in (name or "").lower():
            continue
        recipe_name = names_by_id.get(line.recipe_id)
        if recipe_name and recipe_name not in found:
            found.append(recipe_name)
            if len(found) >= limit:
                break
    return found


def fallback_recommendation(trend: PriceTrend) -> str:
    change = trend.change_pct
    if change > 15:
        return (
            f"Significant {change:.0f}% price increase detected. Negotiate with the "
            "supplier, source from alternatives and review menu pricing for "
            "affected dishes."
        )
    if change > 0:
        return (
            f"Price increased {change:.0f}%. Monitor this ingredient and consider "
            "adjusting portion sizes or finding alternative suppliers if the trend "
            "continues."
        )
    if change < -10:
        return (
            f"Price decreased {abs(change):.0f}%. Good opportunity to stock up or "
            "improve margins on dishes using this ingredient."
        )
    return f"Minor price decrease of {abs(change):.0f}%. No immediate action needed."


@dataclass
class Alert:
    trend: PriceTrend
    affected_dishes: list[str] = field(default_factory=list)
    recommendation: str = ""

    def to_dict(self) -> dict:
        data = self.trend.to_dict()
        data["affected_dishes"] = self.affected_dishes
        data["total_cost_impact"] = round(self.trend.monthly_impact(), 2)
        data["recommendation"] = self.recommendation
        return data


def summarize_alerts(alerts: Sequence[Alert]) -> dict:
    counts = {level: 0 for level in IMPACT_LEVELS}
    for alert in alerts:
        counts[alert.trend.impact_level] += 1
    return {
        "total_alerts": len(alerts),
        "critical_count": counts["Critical"],
        "high_count": counts["High"],
        "medium_count": counts["Medium"],
        "low_count": counts["Low"],
        "total_impact": round(sum(a.trend.monthly_impact() for a in alerts), 2),
    }
