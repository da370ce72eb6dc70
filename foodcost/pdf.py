"""PDF cost report using ReportLab."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence
from xml.sax.saxutils import escape

from .analytics.audit import AuditIssue
from .analytics.impact import CostSummary, RecipeImpactAnalysis

_HEADER_BLUE = "#4A90D9"
_HEADER_ORANGE = "#E67E22"
_HEADER_RED = "#C0392B"


def _table_style(colors, header_color: str, stripe: str):
    from reportlab.platypus import TableStyle

    return TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(header_color)),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor(stripe)]),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
        ("RIGHTPADDING", (0, 0), (-1, -1), 4),
    ])


def generate_report(
    analyses: Sequence[RecipeImpactAnalysis],
    summary: CostSummary,
    issues: Sequence[AuditIssue],
    output_path: str | Path,
    currency: str = "$",
    top_recipes: int = 20,
    max_issues: int = 30,
) -> Path:
    """Generate a food-cost PDF report.

    Args:
        analyses: Recipe analyses, largest impact first.
        summary: Totals for the same run.
        issues: Audit issues, most urgent first.
        output_path: Where to save the PDF file.

    Returns:
        Path to the generated PDF file.

    Raises:
        ImportError: If reportlab is not installed.
    """
    try:
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
        from reportlab.lib.units import mm
        from reportlab.platypus import (
            Paragraph,
            SimpleDocTemplate,
            Spacer,
            Table,
        )
    except ImportError:
        raise ImportError(
            "reportlab is required: pip install reportlab"
        )

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
    )

    styles = getSampleStyleSheet()
    title_style = styles["Title"]
    heading_style = ParagraphStyle(
        "Heading_Report",
        parent=styles["Heading2"],
        spaceAfter=3 * mm,
    )
    body_style = ParagraphStyle(
        "Body_Report",
        parent=styles["Normal"],
        fontSize=9,
        leading=13,
    )
    cell_style = ParagraphStyle(
        "Cell_Report",
        parent=styles["Normal"],
        fontSize=7,
        leading=9,
    )

    def money(value: float) -> str:
        return f"{currency}{value:,.2f}"

    elements: list = []
    elements.append(Paragraph("Food Cost Report", title_style))
    elements.append(Paragraph(escape(summary.overall), body_style))
    elements.append(Spacer(1, 5 * mm))

    # Totals
    elements.append(Paragraph("Summary", heading_style))
    totals = [
        ["Metric", "Value"],
        ["Recipes analyzed", str(summary.total_recipes)],
        ["Recipes with increase (>2%)", str(summary.recipes_with_increase)],
        ["Recipes with decrease (<-2%)", str(summary.recipes_with_decrease)],
        ["Critical recipes", str(summary.critical_recipes)],
        ["Units sold", f"{summary.total_units_sold:g}"],
        ["Reference cost (period)", money(summary.total_reference_cost)],
        ["Actual cost (period)", money(summary.total_actual_cost)],
        ["Financial impact", money(summary.total_financial_impact)],
        ["Average variance", f"{summary.avg_variance_pct:+.1f}%"],
    ]
    t = Table(totals, colWidths=[70 * mm, 50 * mm])
    t.setStyle(_table_style(colors, _HEADER_BLUE, "#F5F5F5"))
    elements.append(t)
    elements.append(Spacer(1, 6 * mm))

    # Recipes
    if analyses:
        elements.append(Paragraph("Recipe impact", heading_style))
        rows = [["Recipe", "Reference", "Actual", "Var %", "Sold", "Impact", "Tier"]]
        for a in analyses[:top_recipes]:
            rows.append([
                Paragraph(escape(a.recipe.name), cell_style),
                money(a.reference_total_cost),
                money(a.actual_total_cost),
                f"{a.cost_variance_pct:+.1f}%",
                f"{a.units_sold:g}",
                money(a.total_financial_impact),
                a.tier,
            ])
        widths = [50 * mm, 22 * mm, 22 * mm, 18 * mm, 16 * mm, 26 * mm, 22 * mm]
        t = Table(rows, colWidths=widths, repeatRows=1)
        t.setStyle(_table_style(colors, _HEADER_BLUE, "#F5F5F5"))
        elements.append(t)
        elements.append(Spacer(1, 6 * mm))

    # Ingredient price changes
    if summary.top_ingredient_changes:
        elements.append(Paragraph("Ingredient price changes", heading_style))
        rows = [["Ingredient", "Reference", "Latest", "Var %", "Invoice product"]]
        for c in summary.top_ingredient_changes:
            rows.append([
                Paragraph(escape(c.ingredient_name), cell_style),
                f"{money(c.reference_price)}/{c.unit}",
                f"{money(c.actual_price)}/{c.unit}",
                f"{c.delta_pct:+.1f}%",
                Paragraph(escape(c.invoice_item.product_name), cell_style),
            ])
        widths = [40 * mm, 28 * mm, 28 * mm, 18 * mm, 66 * mm]
        t = Table(rows, colWidths=widths, repeatRows=1)
        t.setStyle(_table_style(colors, _HEADER_ORANGE, "#FFF3E0"))
        elements.append(t)
        elements.append(Spacer(1, 6 * mm))

    # Data quality
    if issues:
        elements.append(Paragraph("Data quality issues", heading_style))
        rows = [["Severity", "Ingredient", "Issue", "Description"]]
        for issue in issues[:max_issues]:
            rows.append([
                issue.severity,
                Paragraph(escape(issue.ingredient_name), cell_style),
                issue.kind,
                Paragraph(escape(issue.description), cell_style),
            ])
        widths = [18 * mm, 36 * mm, 32 * mm, 94 * mm]
        t = Table(rows, colWidths=widths, repeatRows=1)
        t.setStyle(_table_style(colors, _HEADER_RED, "#FDEDEC"))
        elements.append(t)
        if len(issues) > max_issues:
            elements.append(Spacer(1, 2 * mm))
            elements.append(Paragraph(
                f"{len(issues) - max_issues} more issues not shown.", body_style
            ))

    doc.build(elements)
    return output_path
