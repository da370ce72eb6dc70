"""Restaurant food-cost analysis: invoice matching, price variance and recipe impact."""

from .analytics import (
    AnomalyDetector,
    AuditIssue,
    CostSummary,
    MatchReport,
    PriceChange,
    RecipeImpactAnalysis,
    RecipeImpactAnalyzer,
    compute_price_changes,
    run_matching,
    variance,
)
from .config import FoodCostConfig, load_config
from .loader import Snapshot, load_snapshot
from .matching import MatchResult, NameMatcher
from .types import (
    Ingredient,
    InvoiceLineItem,
    PackConversion,
    ProductSale,
    Recipe,
    RecipeLine,
)
from .units import PackSizeParser, UnitNormalizer

__version__ = "0.1.0"

__all__ = [
    "Ingredient",
    "InvoiceLineItem",
    "PackConversion",
    "ProductSale",
    "Recipe",
    "RecipeLine",
    "UnitNormalizer",
    "PackSizeParser",
    "NameMatcher",
    "MatchResult",
    "MatchReport",
    "run_matching",
    "PriceChange",
    "compute_price_changes",
    "variance",
    "RecipeImpactAnalyzer",
    "RecipeImpactAnalysis",
    "CostSummary",
    "AnomalyDetector",
    "AuditIssue",
    "FoodCostConfig",
    "load_config",
    "Snapshot",
    "load_snapshot",
]
