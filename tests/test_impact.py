"""Tests for recipe cost impact analysis."""

import pytest

from foodcost.analytics.impact import (
    RecipeImpactAnalyzer,
    build_ingredient_index,
    build_sales_index,
    overall_summary,
    recommendation_text,
)
from foodcost.analytics.variance import CRITICAL, PriceChange, STABLE
from foodcost.types import Ingredient, InvoiceLineItem, ProductSale, Recipe, RecipeLine


@pytest.fixture
def ingredients():
    return [
        Ingredient(id="beef", name="Ground beef", unit_cost=50.0, per_unit="kg", latest_price=60.0),
        Ingredient(id="butter", name="Butter", unit_cost=50.0, per_unit="kg"),
        Ingredient(id="salt", name="Salt", unit_cost=1.0, per_unit="kg"),
    ]


@pytest.fixture
def burger():
    return Recipe(id="r1", name="Burger", selling_price=30.0)


@pytest.fixture
def burger_lines():
    return [
        RecipeLine(recipe_id="r1", quantity=200, unit="g", ingredient_id="beef"),
        RecipeLine(recipe_id="r1", quantity=100, unit="g", ingredient_name="butter"),
    ]


@pytest.fixture
def sales_index():
    return build_sales_index([
        ProductSale("Burger", 60, 1800),
        ProductSale("BURGER", 40, 1200),
    ])


class TestIndexes:
    def test_ingredient_index_by_id_and_name(self, ingredients):
        index = build_ingredient_index(ingredients)
        assert index["beef"].name == "Ground beef"
        assert index["ground beef"].id == "beef"
        assert index["butter"].id == "butter"

    def test_id_takes_precedence_over_name(self):
        a = Ingredient(id="salt", name="Sea salt")
        b = Ingredient(id="s2", name="Salt")
        assert build_ingredient_index([a, b])["salt"] is a

    def test_sales_index_sums(self, sales_index):
        sale = sales_index["burger"]
        assert sale.quantity_sold == 100
        assert sale.revenue == 3000

    def test_sales_index_skips_non_positive(self):
        index = build_sales_index([ProductSale("Fries", 0), ProductSale("Soup", -2)])
        assert index == {}


class TestAnalyze:
    def test_two_line_recipe(self, ingredients, burger, burger_lines, sales_index):
        analyzer = RecipeImpactAnalyzer()
        a = analyzer.analyze(
            burger, burger_lines, build_ingredient_index(ingredients), {}, sales_index
        )
        assert a.reference_total_cost == pytest.approx(15.0)
        assert a.actual_total_cost == pytest.approx(17.0)
        assert a.cost_variance_per_portion == pytest.approx(2.0)
        assert a.cost_variance_pct == pytest.approx(13.333, abs=1e-3)
        assert a.units_sold == 100
        assert a.total_financial_impact == pytest.approx(200.0)
        assert a.reference_margin_pct == pytest.approx(50.0)
        assert a.actual_margin_pct == pytest.approx(43.333, abs=1e-3)
        assert a.margin_impact_pct == pytest.approx(-6.667, abs=1e-3)
        assert a.tier == CRITICAL
        assert a.recommendation.startswith("CRITICAL: +13% cost increase.")
        assert "raising price by $4.00" in a.recommendation

    def test_line_costs(self, ingredients, burger, burger_lines, sales_index):
        a = RecipeImpactAnalyzer().analyze(
            burger, burger_lines, build_ingredient_index(ingredients), {}, sales_index
        )
        beef, butter = a.lines
        assert beef.costing_quantity == pytest.approx(0.2)
        assert beef.costing_unit == "kg"
        assert beef.reference_cost == pytest.approx(10.0)
        assert beef.actual_cost == pytest.approx(12.0)
        assert beef.variance_pct == pytest.approx(20.0)
        assert butter.variance == pytest.approx(0.0)
        assert a.unverified_lines == []

    def test_price_change_overrides_latest_price(self, ingredients, burger, burger_lines, sales_index):
        change = PriceChange(
            ingredient_id="beef",
            ingredient_name="Ground beef",
            reference_price=50.0,
            actual_price=55.0,
            unit="kg",
            delta=5.0,
            delta_pct=10.0,
            invoice_item=InvoiceLineItem("Boeuf haché 10KG", 550),
        )
        a = RecipeImpactAnalyzer().analyze(
            burger, burger_lines, build_ingredient_index(ingredients),
            {"beef": change}, sales_index,
        )
        assert a.actual_total_cost == pytest.approx(16.0)

    def test_unverified_unit_passes_quantity_through(self, ingredients, burger):
        lines = [RecipeLine(recipe_id="r1", quantity=2, unit="pinch", ingredient_id="salt")]
        a = RecipeImpactAnalyzer().analyze(
            burger, lines, build_ingredient_index(ingredients), {}, {}
        )
        assert a.lines[0].costing_quantity == 2
        assert a.lines[0].unit_verified is False
        assert len(a.unverified_lines) == 1

    def test_no_sales(self, ingredients, burger, burger_lines):
        a = RecipeImpactAnalyzer().analyze(
            burger, burger_lines, build_ingredient_index(ingredients), {}, {}
        )
        assert a.units_sold == 0
        assert a.total_financial_impact == 0

    def test_no_selling_price(self, ingredients, burger_lines, sales_index):
        recipe = Recipe(id="r1", name="Burger")
        a = RecipeImpactAnalyzer().analyze(
            recipe, burger_lines, build_ingredient_index(ingredients), {}, sales_index
        )
        assert a.reference_margin_pct == 0
        assert "a menu price increase" in a.recommendation

    def test_unresolved_recipe_excluded(self, ingredients, burger):
        lines = [RecipeLine(recipe_id="r1", quantity=1, ingredient_name="Truffle")]
        assert RecipeImpactAnalyzer().analyze(
            burger, lines, build_ingredient_index(ingredients), {}, {}
        ) is None

    def test_empty_recipe_excluded(self, ingredients, burger):
        assert RecipeImpactAnalyzer().analyze(
            burger, [], build_ingredient_index(ingredients), {}, {}
        ) is None


class TestAnalyzeAll:
    def test_sorted_by_absolute_impact(self, ingredients, burger, burger_lines, sales_index):
        soup = Recipe(id="r2", name="Soup", selling_price=8.0)
        fries = Recipe(id="r3", name="Fries")
        lines = burger_lines + [
            RecipeLine(recipe_id="r2", quantity=50, unit="g", ingredient_id="butter"),
            RecipeLine(recipe_id="r3", quantity=10, unit="g", ingredient_id="salt"),
        ]
        sales_index["soup"] = ProductSale("Soup", 10)
        analyses = RecipeImpactAnalyzer().analyze_all(
            [soup, fries, burger], lines, build_ingredient_index(ingredients), {}, sales_index
        )
        assert [a.recipe.name for a in analyses][0] == "Burger"
        assert {a.recipe.name for a in analyses} == {"Burger", "Soup", "Fries"}

    def test_summarize(self, ingredients, burger, burger_lines, sales_index):
        analyzer = RecipeImpactAnalyzer()
        analyses = analyzer.analyze_all(
            [burger], burger_lines, build_ingredient_index(ingredients), {}, sales_index
        )
        summary = analyzer.summarize(analyses, {})
        assert summary.total_recipes == 1
        assert summary.recipes_with_increase == 1
        assert summary.critical_recipes == 1
        assert summary.total_reference_cost == pytest.approx(1500)
        assert summary.total_actual_cost == pytest.approx(1700)
        assert summary.total_financial_impact == pytest.approx(200)
        assert summary.avg_variance_pct == pytest.approx(13.333, abs=1e-3)
        assert summary.overall.startswith("Cost alert: $200 additional cost this period.")
        assert summary.to_dict()["total_financial_impact"] == 200.0


class TestText:
    def test_stable(self):
        assert recommendation_text(STABLE, 0.5, 0) == "Cost stable, no action needed."

    def test_opportunity(self):
        text = recommendation_text("opportunity", -12.0, -40, margin_impact_pct=4.0)
        assert text.startswith("OPPORTUNITY: -12% cost reduction.")
        assert text.endswith("Margin improved by 4.0%.")

    def test_overall_stable(self):
        assert overall_summary(5.0, 0, []) == "Food costs are stable. No immediate action required."

    def test_overall_savings(self):
        assert overall_summary(-120.0, 0, []).startswith("Cost savings: $120 saved")
