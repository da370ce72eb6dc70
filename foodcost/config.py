"""TOML configuration loader for foodcost."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .analytics.audit import AuditThresholds
from .analytics.variance import RecommendationThresholds
from .matching import MatchingTables, MatchThresholds, default_tables

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class MatchingConfig:
    accept: float = 0.25
    medium: float = 0.55
    high: float = 0.85
    max_candidates: int = 5
    min_change_pct: float = 1.0
    max_clarifications: int = 20
    synonyms: dict[str, list[str]] = field(default_factory=dict)
    filler_words: list[str] = field(default_factory=list)

    def thresholds(self) -> MatchThresholds:
        return MatchThresholds(
            accept=self.accept,
            medium=self.medium,
            high=self.high,
            max_candidates=self.max_candidates,
        )

    def tables(self) -> MatchingTables:
        return default_tables().merged(self.synonyms, self.filler_words)


@dataclass
class AuditConfig:
    min_price: float = 0.001
    max_price_per_gram: float = 10.0
    max_price_per_kg: float = 500.0
    max_variance_pct: float = 500.0
    conversion_tolerance_pct: float = 20.0
    top_priority: int = 10

    def thresholds(self) -> AuditThresholds:
        return AuditThresholds(
            min_price=self.min_price,
            max_price_per_gram=self.max_price_per_gram,
            max_price_per_kg=self.max_price_per_kg,
            max_variance_pct=self.max_variance_pct,
            conversion_tolerance_pct=self.conversion_tolerance_pct,
        )


@dataclass
class ImpactConfig:
    stable_pct: float = 2.0
    high_pct: float = 8.0
    high_impact: float = 50.0
    critical_pct: float = 15.0
    critical_impact: float = 100.0
    opportunity_pct: float = -10.0
    top_ingredient_changes: int = 15

    def thresholds(self) -> RecommendationThresholds:
        return RecommendationThresholds(
            stable_pct=self.stable_pct,
            critical_pct=self.critical_pct,
            critical_impact=self.critical_impact,
            high_pct=self.high_pct,
            high_impact=self.high_impact,
            opportunity_pct=self.opportunity_pct,
        )


@dataclass
class ClaudeSuggestConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GeminiSuggestConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class SuggestConfig:
    backend: str = "template"
    claude: ClaudeSuggestConfig = field(default_factory=ClaudeSuggestConfig)
    gemini: GeminiSuggestConfig = field(default_factory=GeminiSuggestConfig)


@dataclass
class ReportConfig:
    currency: str = "$"
    top_recipes: int = 20


@dataclass
class FoodCostConfig:
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    impact: ImpactConfig = field(default_factory=ImpactConfig)
    suggest: SuggestConfig = field(default_factory=SuggestConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def load_config(path: str | Path | None = None) -> FoodCostConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    mtc = raw.get("matching", {})
    aud = raw.get("audit", {})
    imp = raw.get("impact", {})
    sug = raw.get("suggest", {})
    rpt = raw.get("report", {})

    claude_cfg = sug.get("claude", {})
    gemini_cfg = sug.get("gemini", {})

    # Resolve API keys: config file → environment variable
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )

    m, a, i = MatchingConfig(), AuditConfig(), ImpactConfig()
    return FoodCostConfig(
        matching=MatchingConfig(
            accept=mtc.get("accept", m.accept),
            medium=mtc.get("medium", m.medium),
            high=mtc.get("high", m.high),
            max_candidates=mtc.get("max_candidates", m.max_candidates),
            min_change_pct=mtc.get("min_change_pct", m.min_change_pct),
            max_clarifications=mtc.get("max_clarifications", m.max_clarifications),
            synonyms=mtc.get("synonyms", {}),
            filler_words=mtc.get("filler_words", []),
        ),
        audit=AuditConfig(
            min_price=aud.get("min_price", a.min_price),
            max_price_per_gram=aud.get("max_price_per_gram", a.max_price_per_gram),
            max_price_per_kg=aud.get("max_price_per_kg", a.max_price_per_kg),
            max_variance_pct=aud.get("max_variance_pct", a.max_variance_pct),
            conversion_tolerance_pct=aud.get(
                "conversion_tolerance_pct", a.conversion_tolerance_pct
            ),
            top_priority=aud.get("top_priority", a.top_priority),
        ),
        impact=ImpactConfig(
            stable_pct=imp.get("stable_pct", i.stable_pct),
            high_pct=imp.get("high_pct", i.high_pct),
            high_impact=imp.get("high_impact", i.high_impact),
            critical_pct=imp.get("critical_pct", i.critical_pct),
            critical_impact=imp.get("critical_impact", i.critical_impact),
            opportunity_pct=imp.get("opportunity_pct", i.opportunity_pct),
            top_ingredient_changes=imp.get(
                "top_ingredient_changes", i.top_ingredient_changes
            ),
        ),
        suggest=SuggestConfig(
            backend=sug.get("backend", "template"),
            claude=ClaudeSuggestConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
            gemini=GeminiSuggestConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.0-flash"),
            ),
        ),
        report=ReportConfig(
            currency=rpt.get("currency", "$"),
            top_recipes=rpt.get("top_recipes", 20),
        ),
    )
