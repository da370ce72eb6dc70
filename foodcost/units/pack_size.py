"""Pack-size parsing: derive a conversion factor from a product description.

Supplier descriptions usually encode the pack ("12X454G", "15X12UN",
"(5LBS)", "SIZE 200"). The parser runs an ordered list of pattern rules and
takes the first hit; if none applies it falls back to per-product defaults
(herbs by the bunch, produce by the box). All factors are expressed in grams,
milliliters or whole units.
"""

from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Callable, Mapping

from ..text import remove_words, simplify, strip_pack_specs
from ..types import PackConversion
from .normalizer import WHOLE_UNIT, UnitNormalizer

logger = logging.getLogger(__name__)

_UNIT = r"(KG|GR|G|ML|L|OZ|LBS|LB)"

_MULTI_PACK_RE = re.compile(rf"(\d+)\s*X\s*(\d+(?:\.\d+)?)\s*{_UNIT}\b", re.I)
_UNIT_COUNT_RE = re.compile(r"(\d+)\s*X\s*(\d+)\s*UN\b", re.I)
_PAREN_WEIGHT_RE = re.compile(rf"\((\d+(?:\.\d+)?)\s*{_UNIT}\)", re.I)
_SIZE_COUNT_RE = re.compile(r"\bSIZE\s*(\d+)", re.I)
_BARE_WEIGHT_RE = re.compile(rf"\b(\d+(?:\.\d+)?)\s*{_UNIT}\b", re.I)

# Words that say nothing about what the product is
FILLER_WORDS: frozenset[str] = frozenset({
    "fresh", "frozen", "dried", "organic", "natural", "premium",
    "quality", "grade", "a", "b", "c",
})

# Per-product defaults for goods sold without a size in the description
_KNOWN_CONVERSIONS: dict[str, PackConversion] = {
    # Herbs, by the bunch
    "mint": PackConversion(30, "g", "~30g per bunch", "bunch"),
    "basil": PackConversion(30, "g", "~30g per bunch", "bunch"),
    "thai basil": PackConversion(30, "g", "~30g per bunch", "bunch"),
    "cilantro": PackConversion(40, "g", "~40g per bunch", "bunch"),
    "coriander": PackConversion(40, "g", "~40g per bunch", "bunch"),
    "parsley": PackConversion(50, "g", "~50g per bunch", "bunch"),
    "dill": PackConversion(30, "g", "~30g per bunch", "bunch"),
    "green onion": PackConversion(100, "g", "~100g per bunch", "bunch"),
    "scallion": PackConversion(100, "g", "~100g per bunch", "bunch"),
    "lemongrass": PackConversion(150, "g", "~150g per bunch", "bunch"),
    "gai lan": PackConversion(300, "g", "~300g per bunch", "bunch"),
    # Vegetables, by the box
    "cauliflower": PackConversion(7000, "g", "~7kg per box", "box"),
    "broccoli": PackConversion(6000, "g", "~6kg per box", "box"),
    "cabbage": PackConversion(15000, "g", "~15kg per box", "box"),
    "nappa": PackConversion(12000, "g", "~12kg per box", "box"),
    "bok choy": PackConversion(5000, "g", "~5kg per box", "box"),
    # Fruit and eggs, by count
    "lime": PackConversion(200, WHOLE_UNIT, "~200 count per box", "box"),
    "lemon": PackConversion(150, WHOLE_UNIT, "~150 count per box", "box"),
    "egg": PackConversion(180, WHOLE_UNIT, "15 dozen (180 eggs)", "case"),
    "large egg": PackConversion(180, WHOLE_UNIT, "15 dozen (180 eggs)", "case"),
}


def default_known_conversions() -> Mapping[str, PackConversion]:
    return MappingProxyType(dict(_KNOWN_CONVERSIONS))


def normalize_product_name(name: str) -> str:
    """Reduce a product description to its identifying words.

    >>> normalize_product_name("FRESH Mint, Grade A (bunch)")
    'mint bunch'
    """
    return remove_words(strip_pack_specs(simplify(name)), FILLER_WORDS)


def _fmt(value: float) -> str:
    return f"{value:g}"


Rule = Callable[[str, UnitNormalizer], "PackConversion | None"]


def _weighted(
    size: float, unit: str, notes: str, invoice_unit: str, normalizer: UnitNormalizer
) -> PackConversion | None:
    based = normalizer.to_base(size, unit)
    if based is None or based[0] <= 0:
        return None
    factor, base_unit = based
    return PackConversion(factor, base_unit, notes, invoice_unit)


def _multi_pack(desc: str, normalizer: UnitNormalizer) -> PackConversion | None:
    m = _MULTI_PACK_RE.search(desc)
    if not m:
        return None
    count = int(m.group(1))
    size = float(m.group(2))
    unit = m.group(3).lower()
    return _weighted(
        count * size, unit, f"{count}x{_fmt(size)}{unit}", "box", normalizer
    )


def _unit_count(desc: str, normalizer: UnitNormalizer) -> PackConversion | None:
    m = _UNIT_COUNT_RE.search(desc)
    if not m:
        return None
    count, inner = int(m.group(1)), int(m.group(2))
    total = count * inner
    if total <= 0:
        return None
    return PackConversion(
        total, WHOLE_UNIT, f"{count}x{inner} units = {total}", "box"
    )


def _paren_weight(desc: str, normalizer: UnitNormalizer) -> PackConversion | None:
    m = _PAREN_WEIGHT_RE.search(desc)
    if not m:
        return None
    size = float(m.group(1))
    unit = m.group(2).lower()
    return _weighted(size, unit, f"{_fmt(size)}{unit} bag", "bag", normalizer)


def _size_count(desc: str, normalizer: UnitNormalizer) -> PackConversion | None:
    m = _SIZE_COUNT_RE.search(desc)
    if not m:
        return None
    count = int(m.group(1))
    if count <= 0:
        return None
    return PackConversion(count, WHOLE_UNIT, f"~{count} count per box", "box")


def _bare_weight(desc: str, normalizer: UnitNormalizer) -> PackConversion | None:
    m = _BARE_WEIGHT_RE.search(desc)
    if not m:
        return None
    size = float(m.group(1))
    unit = m.group(2).lower()
    return _weighted(size, unit, f"{_fmt(size)}{unit}", "bag", normalizer)


DEFAULT_RULES: tuple[Rule, ...] = (
    _multi_pack,
    _unit_count,
    _paren_weight,
    _size_count,
    _bare_weight,
)


class PackSizeParser:
    """Extracts pack conversion factors from free-text product descriptions."""

    def __init__(
        self,
        normalizer: UnitNormalizer | None = None,
        known_conversions: Mapping[str, PackConversion] | None = None,
        rules: tuple[Rule, ...] = DEFAULT_RULES,
    ) -> None:
        self._normalizer = normalizer or UnitNormalizer()
        known = known_conversions if known_conversions is not None else _KNOWN_CONVERSIONS
        # Longest keys first so "thai basil" wins over "basil"
        self._known: tuple[tuple[re.Pattern[str], PackConversion], ...] = tuple(
            (re.compile(rf"\b{re.escape(key)}(?:e?s)?\b"), conv)
            for key, conv in sorted(known.items(), key=lambda kv: -len(kv[0]))
        )
        self._rules = rules

    def parse_conversion(self, description: str) -> PackConversion | None:
        """Return the pack conversion for ``description`` or None.

        None means "no conversion found"; the caller decides whether to ask
        for a manual factor or skip the cost recalculation.
        """
        if not description:
            return None

        for rule in self._rules:
            result = rule(description, self._normalizer)
            if result is not None:
                return result

        result = self.lookup_default(description)
        if result is None:
            logger.debug("No pack size found in %r", description)
        return result

    def lookup_default(self, description: str) -> PackConversion | None:
        """Look up the per-product default for a description."""
        name = normalize_product_name(description)
        if not name:
            return None
        for pattern, conversion in self._known:
            if pattern.search(name):
                return conversion
        return None
