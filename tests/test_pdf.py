"""Tests for PDF report generation."""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from foodcost.analytics import AnomalyDetector, RecipeImpactAnalyzer, build_ingredient_index, build_sales_index
from foodcost.analytics.audit import AuditIssue
from foodcost.analytics.variance import PriceChange
from foodcost.types import Ingredient, InvoiceLineItem, ProductSale, Recipe, RecipeLine


def _make_report_inputs():
    ingredients = [
        Ingredient(id="chk", name="Chicken", unit_cost=5.5, per_unit="kg"),
        Ingredient(id="rice", name="Rice <jasmine> & co", unit_cost=2.0, per_unit="kg"),
        Ingredient(id="salt", name="Salt", unit_cost=0, per_unit="kg"),
    ]
    change = PriceChange(
        ingredient_id="chk",
        ingredient_name="Chicken",
        reference_price=5.5,
        actual_price=6.6,
        unit="kg",
        delta=1.1,
        delta_pct=20.0,
        invoice_item=InvoiceLineItem("Poulet 12X1KG", 79.2, unit="box"),
    )
    recipes = [Recipe("r1", "Chicken & rice bowl", selling_price=18.0)]
    lines = [
        RecipeLine("r1", 200, "g", ingredient_id="chk"),
        RecipeLine("r1", 150, "g", ingredient_id="rice"),
    ]
    analyzer = RecipeImpactAnalyzer()
    changes = {"chk": change}
    analyses = analyzer.analyze_all(
        recipes, lines, build_ingredient_index(ingredients), changes,
        build_sales_index([ProductSale("Chicken & rice bowl", 120)]),
    )
    summary = analyzer.summarize(analyses, changes)
    issues = AnomalyDetector().detect(ingredients, {})
    return analyses, summary, issues


class TestReportGeneration:
    def test_import_error(self):
        """generate_report raises ImportError when reportlab is not installed."""
        from foodcost.pdf import generate_report

        analyses, summary, issues = _make_report_inputs()
        with patch.dict("sys.modules", {"reportlab": None, "reportlab.lib": None}):
            with pytest.raises(ImportError, match="reportlab is required"):
                generate_report(analyses, summary, issues, "/tmp/never.pdf")

    def test_creates_file(self):
        """generate_report creates a valid PDF file."""
        try:
            from reportlab.lib.pagesizes import A4  # noqa: F401
        except ImportError:
            pytest.skip("reportlab not installed")

        from foodcost.pdf import generate_report

        analyses, summary, issues = _make_report_inputs()

        with tempfile.TemporaryDirectory() as tmp_dir:
            output = Path(tmp_dir) / "report.pdf"
            result = generate_report(analyses, summary, issues, output)
            assert result == output
            assert output.exists()
            assert output.stat().st_size > 0
            with open(output, "rb") as f:
                assert f.read(4) == b"%PDF"

    def test_creates_parent_dirs(self):
        try:
            from reportlab.lib.pagesizes import A4  # noqa: F401
        except ImportError:
            pytest.skip("reportlab not installed")

        from foodcost.pdf import generate_report

        analyses, summary, issues = _make_report_inputs()

        with tempfile.TemporaryDirectory() as tmp_dir:
            output = Path(tmp_dir) / "subdir" / "nested" / "report.pdf"
            generate_report(analyses, summary, issues, str(output), currency="CA$")
            assert output.exists()

    def test_many_issues_truncated(self):
        try:
            from reportlab.lib.pagesizes import A4  # noqa: F401
        except ImportError:
            pytest.skip("reportlab not installed")

        from foodcost.pdf import generate_report

        analyses, summary, _ = _make_report_inputs()
        issues = [
            AuditIssue(f"i{n}", str(n), f"Item {n}", "missing_price", "high", "No unit cost defined")
            for n in range(40)
        ]

        with tempfile.TemporaryDirectory() as tmp_dir:
            output = Path(tmp_dir) / "report.pdf"
            generate_report(analyses, summary, issues, output, max_issues=10)
            assert output.exists()

    def test_empty_report(self):
        try:
            from reportlab.lib.pagesizes import A4  # noqa: F401
        except ImportError:
            pytest.skip("reportlab not installed")

        from foodcost.pdf import generate_report

        summary = RecipeImpactAnalyzer().summarize([], {})

        with tempfile.TemporaryDirectory() as tmp_dir:
            output = Path(tmp_dir) / "empty.pdf"
            generate_report([], summary, [], output)
            assert output.exists()
