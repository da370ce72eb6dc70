"""Cost analyses over matched invoice, ingredient, recipe and sales data."""

from .alerts import Alert, PriceTrend, affected_recipes, detect_price_trends
from .audit import AnomalyDetector, AuditIssue, AuditSummary, AuditThresholds
from .conversions import (
    ConversionPlan,
    ConversionSuggestion,
    apply_conversion_rule,
    apply_conversions,
    suggest_conversions,
)
from .impact import (
    CostSummary,
    RecipeImpactAnalysis,
    RecipeImpactAnalyzer,
    RecipeLineCost,
    build_ingredient_index,
    build_sales_index,
)
from .match_report import MatchReport, run_matching
from .updates import IngredientUpdate, PersistenceCallback, confirm_match, dispatch_updates
from .variance import (
    AlignedPrice,
    PriceChange,
    PriceVariance,
    RecommendationThresholds,
    align_invoice_price,
    compute_price_changes,
    latest_invoice_items,
    latest_prices_by_ingredient,
    recommendation_tier,
    variance,
)

__all__ = [
    "Alert",
    "AlignedPrice",
    "AnomalyDetector",
    "AuditIssue",
    "AuditSummary",
    "AuditThresholds",
    "ConversionPlan",
    "ConversionSuggestion",
    "CostSummary",
    "IngredientUpdate",
    "MatchReport",
    "PersistenceCallback",
    "PriceChange",
    "PriceTrend",
    "PriceVariance",
    "RecipeImpactAnalysis",
    "RecipeImpactAnalyzer",
    "RecipeLineCost",
    "RecommendationThresholds",
    "affected_recipes",
    "align_invoice_price",
    "apply_conversion_rule",
    "apply_conversions",
    "build_ingredient_index",
    "build_sales_index",
    "compute_price_changes",
    "confirm_match",
    "detect_price_trends",
    "dispatch_updates",
    "latest_invoice_items",
    "latest_prices_by_ingredient",
    "recommendation_tier",
    "run_matching",
    "suggest_conversions",
    "variance",
]
