"""CLI entry point for foodcost."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date

from .analytics import (
    AnomalyDetector,
    RecipeImpactAnalyzer,
    apply_conversions,
    build_ingredient_index,
    build_sales_index,
    compute_price_changes,
    detect_price_trends,
    latest_prices_by_ingredient,
    run_matching,
    suggest_conversions,
)
from .analytics.alerts import summarize_alerts
from .config import FoodCostConfig, load_config
from .loader import Snapshot, filter_invoice_items, load_snapshot, period_range
from .matching import NameMatcher
from .suggest import create_backend
from .suggest.annotate import annotate_suggestions, build_alerts
from .units import PackSizeParser, UnitNormalizer


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="foodcost",
        description="Food cost analysis: match supplier invoices to ingredients "
        "and measure the impact on recipe costs",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    def add_command(name: str, help: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help)
        p.add_argument(
            "--data", type=str, required=True, metavar="SNAPSHOT",
            help="JSON snapshot with ingredients, recipes, invoices and sales",
        )
        p.add_argument("--json", action="store_true", help="Output as JSON")
        return p

    def add_period(p: argparse.ArgumentParser) -> None:
        p.add_argument("--start", type=str, default=None, help="First invoice date (YYYY-MM-DD)")
        p.add_argument("--end", type=str, default=None, help="Last invoice date (YYYY-MM-DD)")
        p.add_argument(
            "--period", choices=["week", "month", "ytd"], default=None,
            help="Reporting period ending today",
        )

    add_command("match", help="Match invoice lines to ingredients")
    add_command("audit", help="Flag suspicious ingredient costs")
    impact_parser = add_command("impact", help="Recipe cost impact of price changes")
    add_period(impact_parser)
    conv_parser = add_command("conversions", help="Suggest pack conversions")
    conv_parser.add_argument(
        "--apply", action="store_true",
        help="Print update instructions for auto-applicable suggestions",
    )
    conv_parser.add_argument(
        "--all", action="store_true", dest="apply_all",
        help="With --apply, include every suggestion with a conversion",
    )
    add_command("alerts", help="Supplier price trend alerts")
    report_parser = add_command("report", help="Write a PDF cost report")
    add_period(report_parser)
    report_parser.add_argument(
        "--pdf", type=str, required=True, metavar="FILE", help="Output PDF file",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        snapshot = load_snapshot(args.data)
    except (OSError, ValueError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        match args.command:
            case "match":
                asyncio.run(_cmd_match(config, snapshot, args))
            case "audit":
                _cmd_audit(config, snapshot, args)
            case "impact":
                _cmd_impact(config, snapshot, args)
            case "conversions":
                _cmd_conversions(config, snapshot, args)
            case "alerts":
                asyncio.run(_cmd_alerts(config, snapshot, args))
            case "report":
                _cmd_report(config, snapshot, args)
    except (OSError, ValueError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _components(config: FoodCostConfig) -> tuple[UnitNormalizer, PackSizeParser, NameMatcher]:
    normalizer = UnitNormalizer()
    parser = PackSizeParser(normalizer)
    matcher = NameMatcher(config.matching.tables(), config.matching.thresholds())
    return normalizer, parser, matcher


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _invoice_window(snapshot: Snapshot, args) -> list:
    start, end = args.start, args.end
    if args.period:
        start, end = period_range(args.period, date.today())
    return filter_invoice_items(snapshot.invoice_items, start, end)


async def _cmd_match(config: FoodCostConfig, snapshot: Snapshot, args) -> None:
    normalizer, parser, matcher = _components(config)
    report = run_matching(
        snapshot.invoice_items,
        snapshot.ingredients,
        matcher,
        normalizer,
        parser,
        min_change_pct=config.matching.min_change_pct,
        max_clarifications=config.matching.max_clarifications,
    )
    await annotate_suggestions(report, create_backend(config))

    if args.json:
        _print_json(report.to_dict())
        return

    s = report.summary()
    cur = config.report.currency
    print(
        f"{s['total_invoice_items']} invoice lines: {s['auto_matched']} matched, "
        f"{s['needs_clarification']} to clarify, {s['no_match']} unmatched"
    )
    if report.price_changes:
        print(f"\nPrice changes ({len(report.price_changes)}):")
        for c in report.price_changes:
            print(
                f"  {c.ingredient_name:<30} {cur}{c.reference_price:.2f} -> "
                f"{cur}{c.actual_price:.2f}/{c.unit}  {c.delta_pct:+.1f}%  [{c.tier}]"
            )
    clarify = report.needs_clarification[: report.max_clarifications]
    if clarify:
        print("\nNeeds clarification:")
        for r in clarify:
            names = ", ".join(
                f"{c.ingredient.name} ({c.score:.2f})" for c in r.candidates
            )
            print(f"  {r.item.product_name}: {names}")
            if r.ai_suggestion:
                print(f"    suggestion: {r.ai_suggestion}")
    if report.unaligned:
        print("\nMatched but no comparable unit (set a pack conversion):")
        for r in report.unaligned:
            print(f"  {r.item.product_name} -> {r.best.name}")


def _audit(config: FoodCostConfig, snapshot: Snapshot):
    normalizer, parser, matcher = _components(config)
    latest = latest_prices_by_ingredient(
        snapshot.ingredients, snapshot.invoice_items, matcher
    )
    detector = AnomalyDetector(
        parser, config.audit.thresholds(), normalizer, config.report.currency
    )
    issues = detector.detect(snapshot.ingredients, latest)
    summary = detector.summarize(
        snapshot.ingredients, latest, issues, top_n=config.audit.top_priority
    )
    return issues, summary


def _cmd_audit(config: FoodCostConfig, snapshot: Snapshot, args) -> None:
    issues, summary = _audit(config, snapshot)

    if args.json:
        data = summary.to_dict()
        data["issues"] = [i.to_dict() for i in issues]
        _print_json(data)
        return

    print(
        f"{summary.total_ingredients} ingredients audited, "
        f"{summary.total_issues} issues"
    )
    for severity, count in summary.by_severity.items():
        if count:
            print(f"  {severity:<8} {count}")
    if summary.top_priority:
        print("\nTop priority:")
        for i in summary.top_priority:
            print(f"  [{i.severity}] {i.ingredient_name}: {i.description}")
            print(f"      fix: {i.suggested_fix}")


def _impact(config: FoodCostConfig, snapshot: Snapshot, args):
    normalizer, parser, matcher = _components(config)
    items = _invoice_window(snapshot, args)
    changes = compute_price_changes(
        snapshot.ingredients, items, matcher, normalizer, parser
    )
    analyzer = RecipeImpactAnalyzer(
        normalizer, config.impact.thresholds(), config.report.currency
    )
    analyses = analyzer.analyze_all(
        snapshot.recipes,
        snapshot.recipe_lines,
        build_ingredient_index(snapshot.ingredients),
        changes,
        build_sales_index(snapshot.sales),
    )
    summary = analyzer.summarize(
        analyses, changes, top_n=config.impact.top_ingredient_changes
    )
    return analyses, summary


def _cmd_impact(config: FoodCostConfig, snapshot: Snapshot, args) -> None:
    analyses, summary = _impact(config, snapshot, args)

    if args.json:
        data = summary.to_dict()
        data["recipes"] = [a.to_dict() for a in analyses]
        _print_json(data)
        return

    cur = config.report.currency
    print(summary.overall)
    print(
        f"\n{summary.total_recipes} recipes, impact {cur}"
        f"{summary.total_financial_impact:,.2f}, "
        f"average variance {summary.avg_variance_pct:+.1f}%"
    )
    for a in analyses[: config.report.top_recipes]:
        print(
            f"  {a.recipe.name:<30} {cur}{a.reference_total_cost:.2f} -> "
            f"{cur}{a.actual_total_cost:.2f}  {a.cost_variance_pct:+.1f}%  "
            f"x{a.units_sold:g} = {cur}{a.total_financial_impact:,.2f}  [{a.tier}]"
        )
        if a.unverified_lines:
            names = ", ".join(line.name for line in a.unverified_lines)
            print(f"      unit not verified: {names}")


def _cmd_conversions(config: FoodCostConfig, snapshot: Snapshot, args) -> None:
    normalizer, parser, matcher = _components(config)
    plan = suggest_conversions(
        snapshot.ingredients, snapshot.invoice_items, matcher, parser, normalizer
    )
    updates = []
    if args.apply:
        updates = apply_conversions(
            plan, apply_all=args.apply_all, as_of=date.today().isoformat()
        )

    if args.json:
        data = plan.to_dict()
        if args.apply:
            data["updates"] = [u.to_dict() for u in updates]
        _print_json(data)
        return

    s = plan.summary()
    print(
        f"{s['total_invoice_items']} products: {s['suggestions_found']} suggestions, "
        f"{s['already_configured']} configured, {s['no_match_found']} unmatched"
    )
    cur = config.report.currency
    for sug in plan.suggestions:
        if sug.conversion is None:
            print(f"  {sug.ingredient.name:<30} <- {sug.item.product_name}: manual conversion needed")
            continue
        mark = " (auto)" if sug.auto_apply else ""
        print(
            f"  {sug.ingredient.name:<30} <- {sug.item.product_name}: "
            f"{sug.conversion.notes}, {cur}{sug.calculated_unit_cost:.4f}{mark}"
        )
    if updates:
        print(f"\nUpdates ({len(updates)}):")
        for u in updates:
            print(f"  {u.describe()}")


async def _cmd_alerts(config: FoodCostConfig, snapshot: Snapshot, args) -> None:
    trends = detect_price_trends(snapshot.invoice_items)
    alerts = await build_alerts(
        trends,
        snapshot.recipes,
        snapshot.recipe_lines,
        create_backend(config),
        ingredients={i.id: i for i in snapshot.ingredients},
    )

    if args.json:
        _print_json({
            "alerts": [a.to_dict() for a in alerts],
            "summary": summarize_alerts(alerts),
        })
        return

    if not alerts:
        print("No significant price changes.")
        return
    for a in alerts:
        print(f"[{a.trend.impact_level}] {a.trend.title}")
        if a.affected_dishes:
            print(f"    affects: {', '.join(a.affected_dishes)}")
        print(f"    {a.recommendation}")


def _cmd_report(config: FoodCostConfig, snapshot: Snapshot, args) -> None:
    from .pdf import generate_report

    analyses, summary = _impact(config, snapshot, args)
    issues, _ = _audit(config, snapshot)
    path = generate_report(
        analyses,
        summary,
        issues,
        args.pdf,
        currency=config.report.currency,
        top_recipes=config.report.top_recipes,
    )
    if args.json:
        _print_json({"pdf": str(path)})
    else:
        print(f"Report written to {path}")
