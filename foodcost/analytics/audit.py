"""Data-quality audit of ingredient reference costs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence

from ..types import Ingredient, InvoiceLineItem, PackConversion
from ..units import PackSizeParser, UnitNormalizer
from ..units.normalizer import GRAM, KILOGRAM
from .variance import pct_change, product_key

logger = logging.getLogger(__name__)

CRITICAL = "critical"
HIGH = "high"
MEDIUM = "medium"
LOW = "low"
INFO = "info"

SEVERITY_ORDER: dict[str, int] = {CRITICAL: 0, HIGH: 1, MEDIUM: 2, LOW: 3, INFO: 4}

ISSUE_KINDS: tuple[str, ...] = (
    "price_anomaly",
    "variance_too_high",
    "missing_price",
    "suspicious_unit_cost",
    "duplicate",
    "unit_mismatch",
    "needs_conversion",
    "conversion_mismatch",
)


@dataclass(frozen=True)
class ExpectedRange:
    low: float
    high: float
    unit: str


_EXPECTED_RANGES: dict[str, ExpectedRange] = {
    "herbs": ExpectedRange(0.01, 0.50, "g"),
    "vegetables": ExpectedRange(1, 15, "kg"),
    "meat": ExpectedRange(8, 50, "kg"),
    "seafood": ExpectedRange(15, 80, "kg"),
    "dairy": ExpectedRange(3, 20, "L"),
    "oil": ExpectedRange(3, 15, "L"),
    "sauce": ExpectedRange(5, 30, "L"),
    "noodles": ExpectedRange(2, 10, "kg"),
    "rice": ExpectedRange(1, 5, "kg"),
    "tofu": ExpectedRange(3, 12, "kg"),
    "eggs": ExpectedRange(0.15, 0.50, "whole unit"),
}


@dataclass(frozen=True)
class AuditThresholds:
    min_price: float = 0.001
    max_price_per_gram: float = 10.0
    max_price_per_kg: float = 500.0
    max_variance_pct: float = 500.0
    critical_variance_pct: float = 1000.0
    conversion_tolerance_pct: float = 20.0
    conversion_high_pct: float = 50.0
    range_slack: float = 10.0
    needs_conversion_units: frozenset[str] = frozenset(
        {"box", "case", "bunch", "bag", "each", "pack"}
    )
    expected_ranges: Mapping[str, ExpectedRange] = field(
        default_factory=lambda: MappingProxyType(dict(_EXPECTED_RANGES))
    )


@dataclass
class AuditIssue:
    id: str
    ingredient_id: str
    ingredient_name: str
    kind: str
    severity: str
    description: str
    current_value: str = ""
    suggested_fix: str = ""
    reference_price: float | None = None
    actual_price: float | None = None
    variance_pct: float | None = None
    suggested_conversion: PackConversion | None = None
    calculated_unit_cost: float | None = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "ingredient_id": self.ingredient_id,
            "ingredient_name": self.ingredient_name,
            "kind": self.kind,
            "severity": self.severity,
            "description": self.description,
            "current_value": self.current_value,
            "suggested_fix": self.suggested_fix,
        }
        if self.reference_price is not None:
            data["reference_price"] = self.reference_price
        if self.actual_price is not None:
            data["actual_price"] = round(self.actual_price, 4)
        if self.variance_pct is not None:
            data["variance_pct"] = round(self.variance_pct, 2)
        if self.suggested_conversion is not None:
            conv = self.suggested_conversion
            data["suggested_conversion"] = {
                "invoice_unit": conv.invoice_unit,
                "factor": conv.factor,
                "base_unit": conv.base_unit,
                "notes": conv.notes,
                "calculated_unit_cost": self.calculated_unit_cost,
            }
        return data


def sort_issues(issues: list[AuditIssue]) -> list[AuditIssue]:
    """Most urgent first; order within a severity is preserved."""
    return sorted(issues, key=lambda i: SEVERITY_ORDER.get(i.severity, len(SEVERITY_ORDER)))


@dataclass
class AuditSummary:
    total_ingredients: int
    ingredients_with_price: int
    ingredients_without_price: int
    ingredients_with_conversion: int
    invoice_items_analyzed: int
    by_severity: dict[str, int]
    by_kind: dict[str, int]
    top_priority: list[AuditIssue]

    @property
    def total_issues(self) -> int:
        return sum(self.by_severity.values())

    def to_dict(self) -> dict:
        return {
            "total_ingredients": self.total_ingredients,
            "ingredients_with_price": self.ingredients_with_price,
            "ingredients_without_price": self.ingredients_without_price,
            "ingredients_with_conversion": self.ingredients_with_conversion,
            "invoice_items_analyzed": self.invoice_items_analyzed,
            "total_issues": self.total_issues,
            "by_severity": self.by_severity,
            "by_kind": self.by_kind,
            "top_priority": [i.to_dict() for i in self.top_priority],
        }


class AnomalyDetector:
    """Flags ingredients whose reference cost looks wrong.

    Checks run per ingredient and can each add an issue; a missing price
    stops the remaining checks for that ingredient.
    """

    def __init__(
        self,
        parser: PackSizeParser | None = None,
        thresholds: AuditThresholds | None = None,
        normalizer: UnitNormalizer | None = None,
        currency: str = "$",
    ) -> None:
        self._normalizer = normalizer or UnitNormalizer()
        self._parser = parser or PackSizeParser(self._normalizer)
        self._t = thresholds or AuditThresholds()
        self._cur = currency

    def detect(
        self,
        ingredients: Sequence[Ingredient],
        latest_invoice_prices: Mapping[str, InvoiceLineItem],
    ) -> list[AuditIssue]:
        """Audit ``ingredients`` against invoices keyed by lowercased name."""
        issues: list[AuditIssue] = []
        seen: dict[str, Ingredient] = {}

        for ing in ingredients:
            key = product_key(ing.name)
            if key in seen:
                first = seen[key]
                issues.append(AuditIssue(
                    id=f"dup-{ing.id}",
                    ingredient_id=ing.id,
                    ingredient_name=ing.name,
                    kind="duplicate",
                    severity=MEDIUM,
                    description=f'Possible duplicate of "{first.name}"',
                    current_value=f"ID: {ing.id}",
                    suggested_fix=f"Merge with {first.name} (ID: {first.id})",
                ))
            else:
                seen[key] = ing

            if not ing.unit_cost:
                issues.append(AuditIssue(
                    id=f"missing-{ing.id}",
                    ingredient_id=ing.id,
                    ingredient_name=ing.name,
                    kind="missing_price",
                    severity=HIGH,
                    description="No unit cost defined",
                    current_value=f"{self._cur}0",
                    suggested_fix="Add unit cost from supplier invoice",
                ))
                continue

            issues.extend(self._unit_cost_checks(ing))
            item = latest_invoice_prices.get(key)
            if item is not None:
                issue = self._invoice_check(ing, item)
                if issue is not None:
                    issues.append(issue)
            issues.extend(self._range_checks(ing))

        issues = sort_issues(issues)
        logger.info("Audited %d ingredients: %d issues", len(ingredients), len(issues))
        return issues

    def _unit_cost_checks(self, ing: Ingredient) -> list[AuditIssue]:
        t, cur = self._t, self._cur
        unit = self._normalizer.normalize(ing.per_unit)
        found = []
        if ing.unit_cost < t.min_price:
            found.append(AuditIssue(
                id=f"low-{ing.id}",
                ingredient_id=ing.id,
                ingredient_name=ing.name,
                kind="suspicious_unit_cost",
                severity=CRITICAL,
                description=(
                    f"Unit cost {cur}{ing.unit_cost:.6f}/{ing.per_unit} "
                    "is suspiciously low"
                ),
                current_value=f"{cur}{ing.unit_cost:.6f}/{ing.per_unit}",
                suggested_fix="Check if unit is correct (g vs kg, mL vs L)",
            ))
        if unit == GRAM and ing.unit_cost > t.max_price_per_gram:
            found.append(AuditIssue(
                id=f"high-g-{ing.id}",
                ingredient_id=ing.id,
                ingredient_name=ing.name,
                kind="suspicious_unit_cost",
                severity=HIGH,
                description=(
                    f"{cur}{ing.unit_cost:.2f}/g is very high, "
                    "check if it should be per kg"
                ),
                current_value=f"{cur}{ing.unit_cost:.2f}/g",
                suggested_fix=(
                    f"Consider changing to {cur}{ing.unit_cost / 1000:.4f}/g "
                    "(if price is per kg)"
                ),
            ))
        if unit == KILOGRAM and ing.unit_cost > t.max_price_per_kg:
            found.append(AuditIssue(
                id=f"high-kg-{ing.id}",
                ingredient_id=ing.id,
                ingredient_name=ing.name,
                kind="suspicious_unit_cost",
                severity=MEDIUM,
                description=f"{cur}{ing.unit_cost:.2f}/kg is unusually high",
                current_value=f"{cur}{ing.unit_cost:.2f}/kg",
                suggested_fix="Verify with recent invoices",
            ))
        return found

    def _per_costing_unit(self, price_per_base: float, ing: Ingredient, base: str) -> float:
        conv = self._normalizer.convert_checked(1.0, ing.per_unit or base, base)
        return price_per_base * conv.quantity if conv.verified else price_per_base

    def _invoice_check(self, ing: Ingredient, item: InvoiceLineItem) -> AuditIssue | None:
        t, cur = self._t, self._cur
        ref = ing.unit_cost

        if ing.conversion is not None:
            conv = ing.conversion
            converted = self._per_costing_unit(item.unit_price / conv.factor, ing, conv.base_unit)
            pct = pct_change(ref, converted)
            if abs(pct) <= t.conversion_tolerance_pct:
                return None
            return AuditIssue(
                id=f"conversion-variance-{ing.id}",
                ingredient_id=ing.id,
                ingredient_name=ing.name,
                kind="conversion_mismatch",
                severity=HIGH if abs(pct) > t.conversion_high_pct else MEDIUM,
                description=(
                    f"{pct:+.1f}% variance after applying conversion "
                    f"({conv.factor:g} {conv.base_unit}/{conv.invoice_unit or 'invoice unit'})"
                ),
                current_value=(
                    f"Reference: {cur}{ref:.4f}/{ing.per_unit}, "
                    f"Converted: {cur}{converted:.4f}/{ing.per_unit}"
                ),
                suggested_fix=(
                    "Verify conversion factor or update unit cost to "
                    f"{cur}{converted:.4f}/{ing.per_unit}"
                ),
                reference_price=ref,
                actual_price=converted,
                variance_pct=pct,
            )

        invoice_unit = (item.unit or "").strip().lower()
        units_differ = (
            self._normalizer.normalize(item.unit) != self._normalizer.normalize(ing.per_unit)
        )
        if units_differ and invoice_unit in t.needs_conversion_units:
            parsed = self._parser.parse_conversion(item.product_name)
            if parsed is None:
                return AuditIssue(
                    id=f"variance-{ing.id}",
                    ingredient_id=ing.id,
                    ingredient_name=ing.name,
                    kind="unit_mismatch",
                    severity=HIGH,
                    description=(
                        f"Unit mismatch: invoice is per {item.unit}, reference is "
                        f"per {ing.per_unit}. Manual conversion needed."
                    ),
                    current_value=(
                        f"Invoice: {cur}{item.unit_price:.2f}/{item.unit} | "
                        f"Reference: {cur}{ref:.4f}/{ing.per_unit}"
                    ),
                    suggested_fix=(
                        f'Add invoice unit "{item.unit}" and a conversion factor '
                        f"({ing.per_unit} per {item.unit})"
                    ),
                    reference_price=ref,
                    actual_price=item.unit_price,
                    variance_pct=pct_change(ref, item.unit_price),
                )

            calculated = item.unit_price / parsed.factor
            suggestion = PackConversion(
                parsed.factor, parsed.base_unit, parsed.notes, item.unit
            )
            return AuditIssue(
                id=f"needs-conversion-{ing.id}",
                ingredient_id=ing.id,
                ingredient_name=ing.name,
                kind="needs_conversion",
                severity=INFO,
                description=(
                    f"Unit mismatch detected: invoice is per {item.unit}, reference "
                    f"is per {ing.per_unit}. Auto-detected conversion available."
                ),
                current_value=(
                    f"Invoice: {cur}{item.unit_price:.2f}/{item.unit} | "
                    f"Reference: {cur}{ref:.4f}/{ing.per_unit}"
                ),
                suggested_fix=(
                    f"Set conversion factor = {parsed.factor:.0f} ({parsed.notes}) "
                    f"-> {cur}{calculated:.4f}/{parsed.base_unit}"
                ),
                reference_price=ref,
                actual_price=item.unit_price,
                variance_pct=pct_change(
                    ref, self._per_costing_unit(calculated, ing, parsed.base_unit)
                ),
                suggested_conversion=suggestion,
                calculated_unit_cost=calculated,
            )

        pct = pct_change(ref, item.unit_price)
        if abs(pct) <= t.max_variance_pct:
            return None
        return AuditIssue(
            id=f"variance-{ing.id}",
            ingredient_id=ing.id,
            ingredient_name=ing.name,
            kind="variance_too_high",
            severity=CRITICAL if abs(pct) > t.critical_variance_pct else HIGH,
            description=f"{pct:+.0f}% variance between reference and invoice price",
            current_value=f"Reference: {cur}{ref:.4f}/{ing.per_unit}",
            suggested_fix=f"Update to invoice price: {cur}{item.unit_price:.4f}/{item.unit}",
            reference_price=ref,
            actual_price=item.unit_price,
            variance_pct=pct,
        )

    def _range_checks(self, ing: Ingredient) -> list[AuditIssue]:
        if not ing.category:
            return []
        t, cur = self._t, self._cur
        category = ing.category.lower()
        unit = self._normalizer.normalize(ing.per_unit)
        found = []
        for keyword, expected in t.expected_ranges.items():
            if keyword not in category or unit != expected.unit:
                continue
            if expected.low / t.range_slack <= ing.unit_cost <= expected.high * t.range_slack:
                continue
            found.append(AuditIssue(
                id=f"range-{ing.id}",
                ingredient_id=ing.id,
                ingredient_name=ing.name,
                kind="price_anomaly",
                severity=MEDIUM,
                description=(
                    f"Price {cur}{ing.unit_cost:.2f}/{ing.per_unit} outside expected "
                    f"range for {keyword} ({cur}{expected.low:g}-{cur}{expected.high:g})"
                ),
                current_value=f"{cur}{ing.unit_cost:.2f}/{ing.per_unit}",
                suggested_fix=(
                    f"Expected range: {cur}{expected.low:g}-{cur}{expected.high:g}"
                    f"/{expected.unit}"
                ),
            ))
        return found

    def summarize(
        self,
        ingredients: Sequence[Ingredient],
        latest_invoice_prices: Mapping[str, InvoiceLineItem],
        issues: Sequence[AuditIssue],
        top_n: int = 10,
    ) -> AuditSummary:
        by_severity = {s: 0 for s in SEVERITY_ORDER}
        by_kind = {k: 0 for k in ISSUE_KINDS}
        for issue in issues:
            by_severity[issue.severity] = by_severity.get(issue.severity, 0) + 1
            by_kind[issue.kind] = by_kind.get(issue.kind, 0) + 1
        priced = sum(1 for i in ingredients if i.unit_cost)
        return AuditSummary(
            total_ingredients=len(ingredients),
            ingredients_with_price=priced,
            ingredients_without_price=len(ingredients) - priced,
            ingredients_with_conversion=sum(1 for i in ingredients if i.conversion),
            invoice_items_analyzed=len(latest_invoice_prices),
            by_severity=by_severity,
            by_kind=by_kind,
            top_priority=list(issues[:top_n]),
        )
