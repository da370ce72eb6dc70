"""Unit canonicalization and quantity conversion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

logger = logging.getLogger(__name__)

GRAM = "g"
KILOGRAM = "kg"
MILLILITER = "mL"
LITER = "L"
FLUID_OUNCE = "fl. oz"
WHOLE_UNIT = "whole unit"

_FAMILIES: dict[str, str] = {
    GRAM: "mass",
    KILOGRAM: "mass",
    MILLILITER: "volume",
    LITER: "volume",
    FLUID_OUNCE: "volume",
    WHOLE_UNIT: "count",
}

# Spelling → (canonical unit, multiplier into that unit)
_ALIASES: dict[str, tuple[str, float]] = {
    "g": (GRAM, 1.0),
    "gr": (GRAM, 1.0),
    "gram": (GRAM, 1.0),
    "grams": (GRAM, 1.0),
    "gramme": (GRAM, 1.0),
    "grammes": (GRAM, 1.0),
    "mg": (GRAM, 0.001),
    "kg": (KILOGRAM, 1.0),
    "kgs": (KILOGRAM, 1.0),
    "kilo": (KILOGRAM, 1.0),
    "kilos": (KILOGRAM, 1.0),
    "kilogram": (KILOGRAM, 1.0),
    "kilograms": (KILOGRAM, 1.0),
    "oz": (GRAM, 28.35),
    "ounce": (GRAM, 28.35),
    "ounces": (GRAM, 28.35),
    "lb": (GRAM, 453.6),
    "lbs": (GRAM, 453.6),
    "pound": (GRAM, 453.6),
    "pounds": (GRAM, 453.6),
    "ml": (MILLILITER, 1.0),
    "mls": (MILLILITER, 1.0),
    "milliliter": (MILLILITER, 1.0),
    "milliliters": (MILLILITER, 1.0),
    "millilitre": (MILLILITER, 1.0),
    "millilitres": (MILLILITER, 1.0),
    "cl": (MILLILITER, 10.0),
    "l": (LITER, 1.0),
    "lt": (LITER, 1.0),
    "ltr": (LITER, 1.0),
    "liter": (LITER, 1.0),
    "liters": (LITER, 1.0),
    "litre": (LITER, 1.0),
    "litres": (LITER, 1.0),
    "fl. oz": (FLUID_OUNCE, 1.0),
    "fl oz": (FLUID_OUNCE, 1.0),
    "fl.oz": (FLUID_OUNCE, 1.0),
    "floz": (FLUID_OUNCE, 1.0),
    "fluid ounce": (FLUID_OUNCE, 1.0),
    "fluid ounces": (FLUID_OUNCE, 1.0),
    "tbsp": (MILLILITER, 15.0),
    "tbs": (MILLILITER, 15.0),
    "tablespoon": (MILLILITER, 15.0),
    "tablespoons": (MILLILITER, 15.0),
    "c. à soupe": (MILLILITER, 15.0),
    "tsp": (MILLILITER, 5.0),
    "teaspoon": (MILLILITER, 5.0),
    "teaspoons": (MILLILITER, 5.0),
    "c. à thé": (MILLILITER, 5.0),
    "cup": (MILLILITER, 240.0),
    "cups": (MILLILITER, 240.0),
    "tasse": (MILLILITER, 240.0),
    "whole unit": (WHOLE_UNIT, 1.0),
    "whole": (WHOLE_UNIT, 1.0),
    "unit": (WHOLE_UNIT, 1.0),
    "units": (WHOLE_UNIT, 1.0),
    "un": (WHOLE_UNIT, 1.0),
    "ea": (WHOLE_UNIT, 1.0),
    "each": (WHOLE_UNIT, 1.0),
    "pc": (WHOLE_UNIT, 1.0),
    "pcs": (WHOLE_UNIT, 1.0),
    "piece": (WHOLE_UNIT, 1.0),
    "pieces": (WHOLE_UNIT, 1.0),
    "serving": (WHOLE_UNIT, 1.0),
    "servings": (WHOLE_UNIT, 1.0),
    "count": (WHOLE_UNIT, 1.0),
    "ct": (WHOLE_UNIT, 1.0),
    "dozen": (WHOLE_UNIT, 12.0),
    "dz": (WHOLE_UNIT, 12.0),
}

# Direct multipliers between canonical units; reverse entries are derived.
_BASE_CONVERSIONS: list[tuple[str, str, float]] = [
    (KILOGRAM, GRAM, 1000.0),
    (LITER, MILLILITER, 1000.0),
    (FLUID_OUNCE, MILLILITER, 29.5735),
    (LITER, FLUID_OUNCE, 1000.0 / 29.5735),
]


def _with_reverse(pairs: list[tuple[str, str, float]]) -> dict[tuple[str, str], float]:
    table: dict[tuple[str, str], float] = {}
    for src, dst, mult in pairs:
        table[(src, dst)] = mult
        table[(dst, src)] = 1.0 / mult
    return table


@dataclass(frozen=True)
class UnitTable:
    """Immutable alias and conversion tables for a :class:`UnitNormalizer`."""

    aliases: Mapping[str, tuple[str, float]] = field(
        default_factory=lambda: MappingProxyType(dict(_ALIASES))
    )
    conversions: Mapping[tuple[str, str], float] = field(
        default_factory=lambda: MappingProxyType(_with_reverse(_BASE_CONVERSIONS))
    )
    families: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(_FAMILIES))
    )

    def with_aliases(self, extra: Mapping[str, tuple[str, float]]) -> UnitTable:
        """Return a copy with additional spellings folded in."""
        merged = dict(self.aliases)
        merged.update({_fold(k): v for k, v in extra.items()})
        return UnitTable(
            aliases=MappingProxyType(merged),
            conversions=self.conversions,
            families=self.families,
        )


def default_unit_table() -> UnitTable:
    return UnitTable()


@dataclass(frozen=True)
class Conversion:
    quantity: float
    verified: bool


def _fold(unit: str) -> str:
    return " ".join(unit.strip().lower().split())


class UnitNormalizer:
    """Canonicalizes unit spellings and converts between compatible units.

    Canonical units are ``g``/``kg`` (mass), ``mL``/``L``/``fl. oz`` (volume)
    and ``whole unit`` (count). Kitchen measures such as ``tbsp`` or ``lb``
    fold into a canonical unit with a fixed multiplier.
    """

    def __init__(self, table: UnitTable | None = None) -> None:
        self._table = table or default_unit_table()

    @property
    def table(self) -> UnitTable:
        return self._table

    def resolve(self, unit: str) -> tuple[str, float]:
        """Return ``(canonical_unit, multiplier)`` for a unit spelling.

        Unknown spellings come back folded (lowercased, trimmed) with a
        multiplier of 1.
        """
        key = _fold(unit or "")
        if key in self._table.aliases:
            return self._table.aliases[key]
        return (key, 1.0)

    def normalize(self, unit: str) -> str:
        return self.resolve(unit)[0]

    def family(self, unit: str) -> str | None:
        """Return ``"mass"``, ``"volume"``, ``"count"`` or None if unknown."""
        return self._table.families.get(self.normalize(unit))

    def can_convert(self, from_unit: str, to_unit: str) -> bool:
        src = self.normalize(from_unit)
        dst = self.normalize(to_unit)
        return src == dst or (src, dst) in self._table.conversions

    def convert(self, quantity: float, from_unit: str, to_unit: str) -> float:
        """Convert ``quantity`` from one unit to another.

        When no multiplier exists for the pair, the quantity is returned
        unchanged. Use :meth:`convert_checked` to tell the two apart.
        """
        return self.convert_checked(quantity, from_unit, to_unit).quantity

    def convert_checked(
        self, quantity: float, from_unit: str, to_unit: str
    ) -> Conversion:
        src, src_mult = self.resolve(from_unit)
        dst, dst_mult = self.resolve(to_unit)

        if src == dst:
            return Conversion(quantity * src_mult / dst_mult, True)

        mult = self._table.conversions.get((src, dst))
        if mult is None:
            logger.debug("No conversion found: %s -> %s", from_unit, to_unit)
            return Conversion(quantity, False)

        return Conversion(quantity * src_mult * mult / dst_mult, True)

    def to_base(self, quantity: float, unit: str) -> tuple[float, str] | None:
        """Express a quantity in its family's base unit (g, mL, whole unit).

        Returns None for units outside the known families.
        """
        family = self.family(unit)
        if family is None:
            return None
        base = {"mass": GRAM, "volume": MILLILITER, "count": WHOLE_UNIT}[family]
        return (self.convert(quantity, unit, base), base)
