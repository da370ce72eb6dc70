"""JSON snapshot provider for ingredients, recipes, invoices and sales.

A snapshot is one JSON object::

    {
      "ingredients": [{"id": "...", "name": "...", "unit_cost": 5.5, "per_unit": "kg"}],
      "recipes": [{"id": "...", "name": "...", "selling_price": 18}],
      "recipe_lines": [{"recipe_id": "...", "ingredient_id": "...", "quantity": 200, "unit": "g"}],
      "invoice_items": [{"product_name": "...", "unit_price": 60, "unit": "box",
                         "invoice_date": "2026-03-01"}],
      "sales": [{"product_name": "...", "quantity_sold": 120, "revenue": 2160}]
    }

Every section and every field except names is optional.
"""

from __future__ import annotations

import calendar
import json
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Iterable

from .types import (
    Ingredient,
    InvoiceLineItem,
    PackConversion,
    ProductSale,
    Recipe,
    RecipeLine,
)

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    ingredients: list[Ingredient] = field(default_factory=list)
    recipes: list[Recipe] = field(default_factory=list)
    recipe_lines: list[RecipeLine] = field(default_factory=list)
    invoice_items: list[InvoiceLineItem] = field(default_factory=list)
    sales: list[ProductSale] = field(default_factory=list)


def iso_date(raw: str | None) -> str | None:
    """Normalize "2026-02-12T09:30:00Z" or "20260212" to "2026-02-12"."""
    if not raw:
        return None
    raw = str(raw).strip()
    if "T" in raw:
        return raw[:10]
    if len(raw) >= 8 and raw[:8].isdigit():
        return f"{raw[:4]}-{raw[4:6]}-{raw[6:8]}"
    return raw[:10]


def _num(value, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    return float(value)


def _opt_num(value) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def _conversion(data: dict) -> PackConversion | None:
    nested = data.get("conversion")
    if isinstance(nested, dict):
        factor = _opt_num(nested.get("factor"))
        base_unit = nested.get("base_unit", "")
        notes = nested.get("notes", "")
        invoice_unit = nested.get("invoice_unit", "")
    else:
        factor = _opt_num(data.get("conversion_factor"))
        base_unit = data.get("conversion_base_unit", "")
        notes = data.get("conversion_notes", "")
        invoice_unit = data.get("invoice_unit", "")
    if factor is None:
        return None
    if factor <= 0:
        logger.debug("Ignoring non-positive conversion factor for %r", data.get("name"))
        return None
    return PackConversion(
        factor=factor,
        base_unit=base_unit or data.get("per_unit", ""),
        notes=notes or "",
        invoice_unit=invoice_unit or "",
    )


def parse_ingredient(data: dict) -> Ingredient:
    return Ingredient(
        id=str(data.get("id", "")),
        name=data.get("name", ""),
        unit_cost=_num(data.get("unit_cost")),
        per_unit=data.get("per_unit", "") or "",
        latest_price=_opt_num(data.get("latest_price")),
        category=data.get("category") or None,
        price_updated=iso_date(data.get("price_updated")),
        conversion=_conversion(data),
    )


def parse_recipe(data: dict) -> Recipe:
    return Recipe(
        id=str(data.get("id", "")),
        name=data.get("name", ""),
        category=data.get("category", "") or "",
        yield_qty=_num(data.get("yield_qty"), 1.0),
        yield_unit=data.get("yield_unit", "portion") or "portion",
        selling_price=_opt_num(data.get("selling_price")),
    )


def parse_recipe_line(data: dict) -> RecipeLine:
    return RecipeLine(
        recipe_id=str(data.get("recipe_id", "")),
        quantity=_num(data.get("quantity")),
        unit=data.get("unit", "") or "",
        ingredient_id=str(data.get("ingredient_id", "") or ""),
        ingredient_name=data.get("ingredient_name", "") or "",
    )


def parse_invoice_item(data: dict) -> InvoiceLineItem:
    return InvoiceLineItem(
        product_name=data.get("product_name", ""),
        unit_price=_num(data.get("unit_price")),
        quantity=_num(data.get("quantity")),
        unit=data.get("unit", "") or "",
        invoice_date=iso_date(data.get("invoice_date")),
        invoice_id=str(data.get("invoice_id", "") or ""),
        id=str(data.get("id", "") or ""),
        supplier=data.get("supplier", "") or "",
    )


def parse_sale(data: dict) -> ProductSale:
    return ProductSale(
        product_name=data.get("product_name", ""),
        quantity_sold=_num(data.get("quantity_sold")),
        revenue=_num(data.get("revenue")),
        category=data.get("category", "") or "",
    )


def parse_snapshot(raw: dict) -> Snapshot:
    """Build records from a decoded snapshot, dropping nameless rows."""
    snapshot = Snapshot(
        ingredients=[parse_ingredient(d) for d in raw.get("ingredients", [])],
        recipes=[parse_recipe(d) for d in raw.get("recipes", [])],
        recipe_lines=[parse_recipe_line(d) for d in raw.get("recipe_lines", [])],
        invoice_items=[parse_invoice_item(d) for d in raw.get("invoice_items", [])],
        sales=[parse_sale(d) for d in raw.get("sales", [])],
    )
    snapshot.ingredients = [i for i in snapshot.ingredients if i.name]
    snapshot.recipes = [r for r in snapshot.recipes if r.name]
    snapshot.invoice_items = [i for i in snapshot.invoice_items if i.product_name]
    snapshot.sales = [s for s in snapshot.sales if s.product_name]
    return snapshot


def load_snapshot(path: str | Path) -> Snapshot:
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"snapshot must be a JSON object: {path}")
    snapshot = parse_snapshot(raw)
    logger.info(
        "Loaded %d ingredients, %d recipes, %d invoice lines, %d sales rows from %s",
        len(snapshot.ingredients),
        len(snapshot.recipes),
        len(snapshot.invoice_items),
        len(snapshot.sales),
        path,
    )
    return snapshot


def filter_invoice_items(
    items: Iterable[InvoiceLineItem],
    start: str | None = None,
    end: str | None = None,
) -> list[InvoiceLineItem]:
    """Keep items dated within ``[start, end]``; undated items only pass without a range."""
    if start is None and end is None:
        return list(items)
    kept = []
    for item in items:
        if item.invoice_date is None:
            continue
        if start is not None and item.invoice_date < start:
            continue
        if end is not None and item.invoice_date > end:
            continue
        kept.append(item)
    return kept


def period_range(period: str, today: date) -> tuple[str, str]:
    """Start and end dates for a "week", "month" or "ytd" reporting period."""
    match period:
        case "week":
            start = today - timedelta(days=7)
        case "month":
            year, month = (today.year, today.month - 1) if today.month > 1 else (
                today.year - 1, 12
            )
            day = min(today.day, calendar.monthrange(year, month)[1])
            start = date(year, month, day)
        case "ytd":
            start = date(today.year, 1, 1)
        case _:
            raise ValueError(f"Unknown period: {period!r} (choose week / month / ytd)")
    return start.isoformat(), today.isoformat()
