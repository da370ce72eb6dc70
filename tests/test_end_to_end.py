"""A chicken invoice flowing through matching, variance, impact and audit."""

import pytest

from foodcost.analytics import (
    AnomalyDetector,
    RecipeImpactAnalyzer,
    build_ingredient_index,
    build_sales_index,
    compute_price_changes,
    latest_prices_by_ingredient,
)
from foodcost.analytics.variance import align_invoice_price
from foodcost.matching import HIGH, NameMatcher
from foodcost.types import Ingredient, InvoiceLineItem, ProductSale, Recipe, RecipeLine
from foodcost.units import PackSizeParser, UnitNormalizer


def _make_world():
    chicken = Ingredient(id="chk", name="Chicken", unit_cost=5.5, per_unit="kg")
    item = InvoiceLineItem(
        "Poulet 12X1KG", 60.0, unit="box", invoice_date="2026-03-01"
    )
    recipe = Recipe(id="r1", name="Chicken bowl", selling_price=18.0)
    line = RecipeLine(recipe_id="r1", quantity=200, unit="g", ingredient_id="chk")
    sale = ProductSale("Chicken bowl", 120)
    return chicken, item, recipe, line, sale


def test_poulet_invoice_matches_chicken():
    chicken, item, *_ = _make_world()
    result = NameMatcher().find_matches(item, [chicken])
    assert result.score >= 0.9
    assert result.confidence == HIGH
    assert result.resolved is chicken


def test_pack_size_aligns_price_per_kg():
    chicken, item, *_ = _make_world()
    normalizer = UnitNormalizer()
    parser = PackSizeParser(normalizer)
    assert parser.parse_conversion(item.product_name).factor == 12000

    aligned = align_invoice_price(item, chicken, normalizer, parser)
    assert aligned.method == "pack_size"
    assert aligned.unit_price == pytest.approx(5.0)


def test_price_change_is_favorable():
    chicken, item, *_ = _make_world()
    changes = compute_price_changes([chicken], [item])
    change = changes["chk"]
    assert change.delta_pct == pytest.approx(-9.0909, abs=1e-3)
    assert change.tier == "favorable"


def test_recipe_impact():
    chicken, item, recipe, line, sale = _make_world()
    changes = compute_price_changes([chicken], [item])
    analyzer = RecipeImpactAnalyzer()
    analyses = analyzer.analyze_all(
        [recipe], [line], build_ingredient_index([chicken]), changes,
        build_sales_index([sale]),
    )
    assert len(analyses) == 1
    a = analyses[0]
    assert a.reference_total_cost == pytest.approx(1.1)
    assert a.actual_total_cost == pytest.approx(1.0)
    assert a.total_financial_impact == pytest.approx(-12.0)
    assert a.tier == "favorable"


def test_audit_suggests_conversion():
    chicken, item, *_ = _make_world()
    latest = latest_prices_by_ingredient([chicken], [item])
    issues = AnomalyDetector().detect([chicken], latest)
    assert [i.kind for i in issues] == ["needs_conversion"]
    issue = issues[0]
    assert issue.severity == "info"
    assert issue.suggested_conversion.factor == 12000
    assert issue.calculated_unit_cost == pytest.approx(0.005)


@pytest.mark.parametrize("name", ["Poulet 12 x 1 KG", "POULET 12X1 KG"])
def test_spaced_pack_spec_gives_same_change(name):
    chicken, item, *_ = _make_world()
    item = InvoiceLineItem(name, 60.0, unit="box", invoice_date="2026-03-01")
    change = compute_price_changes([chicken], [item])["chk"]
    assert change.match_score == pytest.approx(0.9)
    assert change.actual_price == pytest.approx(5.0)
    assert change.tier == "favorable"
