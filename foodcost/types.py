"""Record types supplied by the ingredient, recipe, invoice and sales stores."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PackConversion:
    """How many base units (g, mL, whole unit) one invoice unit holds."""

    factor: float
    base_unit: str
    notes: str = ""
    invoice_unit: str = ""

    def __post_init__(self) -> None:
        if self.factor <= 0:
            raise ValueError(f"conversion factor must be > 0, got {self.factor!r}")


@dataclass
class Ingredient:
    """Canonical ingredient record with its reference (expected) unit cost."""

    id: str
    name: str
    unit_cost: float = 0.0
    per_unit: str = ""
    latest_price: float | None = None
    category: str | None = None
    price_updated: str | None = None
    conversion: PackConversion | None = None


@dataclass
class Recipe:
    id: str
    name: str
    category: str = ""
    yield_qty: float = 1.0
    yield_unit: str = "portion"
    selling_price: float | None = None


@dataclass
class RecipeLine:
    """One bill-of-materials line.

    ``ingredient_id`` is empty when the relation is missing; the line is then
    resolved by ``ingredient_name``.
    """

    recipe_id: str
    quantity: float
    unit: str = ""
    ingredient_id: str = ""
    ingredient_name: str = ""


@dataclass
class InvoiceLineItem:
    """A single line from a supplier invoice, as extracted."""

    product_name: str
    unit_price: float
    quantity: float = 0.0
    unit: str = ""
    invoice_date: str | None = None  # ISO date
    invoice_id: str = ""
    id: str = ""
    supplier: str = ""


@dataclass
class ProductSale:
    """POS sales aggregate for one product over the reporting period."""

    product_name: str
    quantity_sold: float
    revenue: float = 0.0
    category: str = ""
