"""Price variance between reference costs and invoice prices.

An invoice price is only comparable once it is expressed per the
ingredient's costing unit, so every comparison goes through
:func:`align_invoice_price` first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..matching import NameMatcher
from ..types import Ingredient, InvoiceLineItem, PackConversion
from ..units import PackSizeParser, UnitNormalizer

logger = logging.getLogger(__name__)

DEFAULT_COSTING_UNIT = "kg"

STABLE = "stable"
MONITOR = "monitor"
HIGH_PRIORITY = "high"
CRITICAL = "critical"
OPPORTUNITY = "opportunity"
FAVORABLE = "favorable"


@dataclass(frozen=True)
class RecommendationThresholds:
    stable_pct: float = 2.0
    critical_pct: float = 15.0
    critical_impact: float = 100.0
    high_pct: float = 8.0
    high_impact: float = 50.0
    opportunity_pct: float = -10.0


def recommendation_tier(
    variance_pct: float,
    impact: float = 0.0,
    thresholds: RecommendationThresholds | None = None,
) -> str:
    """Map a variance percentage and financial impact to an action tier."""
    t = thresholds or RecommendationThresholds()
    if abs(variance_pct) < t.stable_pct:
        return STABLE
    if variance_pct > 0:
        if variance_pct >= t.critical_pct or impact > t.critical_impact:
            return CRITICAL
        if variance_pct >= t.high_pct or impact > t.high_impact:
            return HIGH_PRIORITY
        return MONITOR
    if variance_pct <= t.opportunity_pct:
        return OPPORTUNITY
    return FAVORABLE


@dataclass(frozen=True)
class PriceVariance:
    delta: float
    delta_pct: float


def variance(reference: float, actual: float) -> PriceVariance:
    """Signed difference of ``actual`` against ``reference``.

    ``delta_pct`` is 0 when the reference is 0.
    """
    delta = actual - reference
    if not reference:
        return PriceVariance(delta, 0.0)
    return PriceVariance(delta, delta / reference * 100)


def pct_change(reference: float, actual: float) -> float:
    return variance(reference, actual).delta_pct


@dataclass(frozen=True)
class AlignedPrice:
    """An invoice price expressed per the ingredient's costing unit."""

    unit_price: float
    unit: str
    method: str  # "stored_factor" | "same_unit" | "converted" | "pack_size"
    conversion: PackConversion | None = None


def costing_unit(ingredient: Ingredient) -> str:
    return ingredient.per_unit or DEFAULT_COSTING_UNIT


def rebase_price(
    price_per_base: float, target: str, base: str, normalizer: UnitNormalizer
) -> float | None:
    # Price per base unit → price per target unit
    conv = normalizer.convert_checked(1.0, target, base)
    if not conv.verified:
        return None
    return price_per_base * conv.quantity


def align_invoice_price(
    item: InvoiceLineItem,
    ingredient: Ingredient,
    normalizer: UnitNormalizer | None = None,
    parser: PackSizeParser | None = None,
) -> AlignedPrice | None:
    """Express ``item.unit_price`` per the ingredient's costing unit.

    Tries, in order: the ingredient's stored pack conversion, the invoice
    unit itself when it converts into the costing unit, and a pack size
    parsed from the product name. Returns None when none of them applies;
    the price is then unverified and must not be compared.
    """
    normalizer = normalizer or UnitNormalizer()
    target = costing_unit(ingredient)

    if ingredient.conversion is not None:
        conv = ingredient.conversion
        price = rebase_price(
            item.unit_price / conv.factor, target, conv.base_unit, normalizer
        )
        if price is not None:
            return AlignedPrice(price, target, "stored_factor", conv)

    if item.unit and normalizer.can_convert(item.unit, target):
        method = (
            "same_unit"
            if normalizer.normalize(item.unit) == normalizer.normalize(target)
            else "converted"
        )
        price = item.unit_price * normalizer.convert(1.0, target, item.unit)
        return AlignedPrice(price, target, method)

    parser = parser or PackSizeParser(normalizer)
    conv = parser.parse_conversion(item.product_name)
    if conv is not None:
        price = rebase_price(
            item.unit_price / conv.factor, target, conv.base_unit, normalizer
        )
        if price is not None:
            return AlignedPrice(price, target, "pack_size", conv)

    logger.debug(
        "Cannot align %r (%s) to %s per %s",
        item.product_name, item.unit or "no unit", ingredient.name, target,
    )
    return None


def _is_newer(candidate: str | None, current: str | None) -> bool:
    # ISO dates compare lexically; undated never replaces dated
    if candidate is None:
        return False
    if current is None:
        return True
    return candidate > current


def product_key(name: str) -> str:
    return name.strip().lower()


def latest_invoice_items(items: Iterable[InvoiceLineItem]) -> list[InvoiceLineItem]:
    """Keep the most recent line per product name (case-insensitive).

    On equal dates the first line seen wins. Output follows first-seen order.
    """
    latest: dict[str, InvoiceLineItem] = {}
    for item in items:
        key = product_key(item.product_name)
        if not key:
            continue
        current = latest.get(key)
        if current is None or _is_newer(item.invoice_date, current.invoice_date):
            latest[key] = item
    return list(latest.values())


@dataclass
class PriceChange:
    """Reference vs latest aligned invoice price for one ingredient."""

    ingredient_id: str
    ingredient_name: str
    reference_price: float
    actual_price: float
    unit: str
    delta: float
    delta_pct: float
    invoice_item: InvoiceLineItem
    match_score: float = 1.0
    method: str = "same_unit"

    @property
    def tier(self) -> str:
        return recommendation_tier(self.delta_pct)

    def to_dict(self) -> dict:
        return {
            "ingredient_id": self.ingredient_id,
            "ingredient_name": self.ingredient_name,
            "reference_price": round(self.reference_price, 4),
            "actual_price": round(self.actual_price, 4),
            "unit": self.unit,
            "delta": round(self.delta, 4),
            "delta_pct": round(self.delta_pct, 2),
            "tier": self.tier,
            "invoice_product": self.invoice_item.product_name,
            "invoice_date": self.invoice_item.invoice_date,
            "match_score": round(self.match_score, 4),
            "method": self.method,
        }


def price_change_for(
    item: InvoiceLineItem,
    ingredient: Ingredient,
    normalizer: UnitNormalizer,
    parser: PackSizeParser,
    match_score: float = 1.0,
) -> PriceChange | None:
    """Build a PriceChange, or None when the prices cannot be compared."""
    if ingredient.unit_cost <= 0:
        return None
    aligned = align_invoice_price(item, ingredient, normalizer, parser)
    if aligned is None:
        return None
    v = variance(ingredient.unit_cost, aligned.unit_price)
    return PriceChange(
        ingredient_id=ingredient.id,
        ingredient_name=ingredient.name,
        reference_price=ingredient.unit_cost,
        actual_price=aligned.unit_price,
        unit=aligned.unit,
        delta=v.delta,
        delta_pct=v.delta_pct,
        invoice_item=item,
        match_score=match_score,
        method=aligned.method,
    )


def compute_price_changes(
    ingredients: Sequence[Ingredient],
    items: Iterable[InvoiceLineItem],
    matcher: NameMatcher | None = None,
    normalizer: UnitNormalizer | None = None,
    parser: PackSizeParser | None = None,
) -> dict[str, PriceChange]:
    """Latest aligned invoice price change per ingredient id.

    Only high-confidence matches count. When several products resolve to
    the same ingredient the most recent invoice wins.
    """
    matcher = matcher or NameMatcher()
    normalizer = normalizer or UnitNormalizer()
    parser = parser or PackSizeParser(normalizer)

    changes: dict[str, PriceChange] = {}
    for item in latest_invoice_items(items):
        result = matcher.find_matches(item, ingredients)
        ingredient = result.resolved
        if ingredient is None:
            continue
        change = price_change_for(item, ingredient, normalizer, parser, result.score)
        if change is None:
            continue
        current = changes.get(ingredient.id)
        if current is None or _is_newer(
            item.invoice_date, current.invoice_item.invoice_date
        ):
            changes[ingredient.id] = change
    return changes


def latest_prices_by_ingredient(
    ingredients: Sequence[Ingredient],
    items: Iterable[InvoiceLineItem],
    matcher: NameMatcher | None = None,
) -> dict[str, InvoiceLineItem]:
    """Latest invoice line per ingredient, keyed by lowercased ingredient name."""
    matcher = matcher or NameMatcher()
    prices: dict[str, InvoiceLineItem] = {}
    for item in latest_invoice_items(items):
        ingredient = matcher.find_matches(item, ingredients).resolved
        if ingredient is None:
            continue
        key = product_key(ingredient.name)
        current = prices.get(key)
        if current is None or _is_newer(item.invoice_date, current.invoice_date):
            prices[key] = item
    return prices
