"""Unit normalization and pack-size parsing."""

from .normalizer import (
    Conversion,
    UnitNormalizer,
    UnitTable,
    default_unit_table,
)
from .pack_size import PackSizeParser, normalize_product_name

__all__ = [
    "Conversion",
    "UnitNormalizer",
    "UnitTable",
    "default_unit_table",
    "PackSizeParser",
    "normalize_product_name",
]
