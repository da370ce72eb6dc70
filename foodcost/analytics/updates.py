"""Update instructions for the ingredient store.

Analyses never write; they emit :class:`IngredientUpdate` records and a
caller-supplied :class:`PersistenceCallback` performs the writes.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Sequence

from ..types import Ingredient, PackConversion

logger = logging.getLogger(__name__)

MAX_BATCH = 20

_NUMERIC_FIELDS = frozenset({"unit_cost", "latest_price", "conversion_factor"})
_TEXT_FIELDS = frozenset({
    "per_unit", "category", "price_updated",
    "invoice_unit", "conversion_notes", "conversion_base_unit",
})
UPDATABLE_FIELDS = _NUMERIC_FIELDS | _TEXT_FIELDS


@dataclass(frozen=True)
class IngredientUpdate:
    """Set one field of one ingredient to a new value."""

    ingredient_id: str
    field: str
    value: float | str
    reason: str = ""

    def __post_init__(self) -> None:
        if not self.ingredient_id:
            raise ValueError("ingredient_id is required")
        if self.field in _NUMERIC_FIELDS:
            if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
                raise ValueError(f"{self.field} must be a number")
            if self.field == "conversion_factor" and self.value <= 0:
                raise ValueError("conversion_factor must be > 0")
        elif self.field in _TEXT_FIELDS:
            if not isinstance(self.value, str):
                raise ValueError(f"{self.field} must be a string")
        else:
            raise ValueError(f"Unknown field: {self.field}")

    def describe(self) -> str:
        suffix = f" ({self.reason})" if self.reason else ""
        return f"Set {self.field} to {self.value}{suffix}"

    def to_dict(self) -> dict:
        return {
            "ingredient_id": self.ingredient_id,
            "field": self.field,
            "value": self.value,
            "reason": self.reason,
        }


class PersistenceCallback(Protocol):
    """Writes a batch of updates to the ingredient store."""

    def __call__(self, updates: Sequence[IngredientUpdate]) -> None: ...


@dataclass
class DispatchResult:
    applied: list[IngredientUpdate] = field(default_factory=list)
    failed: list[tuple[IngredientUpdate, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def dispatch_updates(
    updates: Iterable[IngredientUpdate],
    persist: PersistenceCallback,
    batch_size: int = MAX_BATCH,
) -> DispatchResult:
    """Hand updates to ``persist`` in batches of at most ``batch_size``.

    A failing batch is recorded and the remaining batches still run.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be > 0")
    pending = list(updates)
    result = DispatchResult()
    for start in range(0, len(pending), batch_size):
        batch = pending[start:start + batch_size]
        try:
            persist(batch)
        except Exception as e:
            logger.exception("Failed to persist %d ingredient updates", len(batch))
            result.failed.extend((u, str(e)) for u in batch)
        else:
            result.applied.extend(batch)
    return result


def confirm_match(
    ingredient_id: str,
    new_price: float,
    invoice_date: str | None = None,
    reason: str = "confirmed invoice match",
) -> list[IngredientUpdate]:
    """Updates recording a confirmed invoice price as the latest price."""
    updates = [IngredientUpdate(ingredient_id, "latest_price", new_price, reason)]
    if invoice_date:
        updates.append(IngredientUpdate(ingredient_id, "price_updated", invoice_date, reason))
    return updates


def set_unit_cost(
    ingredient_id: str,
    unit_cost: float,
    as_of: str | None = None,
    reason: str = "",
) -> list[IngredientUpdate]:
    updates = [IngredientUpdate(ingredient_id, "unit_cost", unit_cost, reason)]
    if as_of:
        updates.append(IngredientUpdate(ingredient_id, "price_updated", as_of, reason))
    return updates


def conversion_updates(
    ingredient_id: str, conversion: PackConversion, reason: str = ""
) -> list[IngredientUpdate]:
    updates = [
        IngredientUpdate(ingredient_id, "conversion_factor", conversion.factor, reason),
        IngredientUpdate(ingredient_id, "conversion_base_unit", conversion.base_unit, reason),
        IngredientUpdate(ingredient_id, "conversion_notes", conversion.notes, reason),
    ]
    if conversion.invoice_unit:
        updates.append(
            IngredientUpdate(ingredient_id, "invoice_unit", conversion.invoice_unit, reason)
        )
    return updates


def apply_updates(ingredient: Ingredient, updates: Iterable[IngredientUpdate]) -> Ingredient:
    """Return a copy of ``ingredient`` with its matching updates applied."""
    values: dict[str, float | str] = {}
    conv: dict[str, float | str] = {}
    for update in updates:
        if update.ingredient_id != ingredient.id:
            continue
        match update.field:
            case "conversion_factor":
                conv["factor"] = update.value
            case "conversion_base_unit":
                conv["base_unit"] = update.value
            case "conversion_notes":
                conv["notes"] = update.value
            case "invoice_unit":
                conv["invoice_unit"] = update.value
            case _:
                values[update.field] = update.value

    if conv:
        current = ingredient.conversion
        if current is not None:
            values["conversion"] = dataclasses.replace(current, **conv)
        elif "factor" in conv:
            conv.setdefault("base_unit", ingredient.per_unit)
            values["conversion"] = PackConversion(**conv)
    return dataclasses.replace(ingredient, **values)
