"""Fuzzy matching of invoice product names to canonical ingredients."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from rapidfuzz.distance import Levenshtein

from ..text import remove_words, simplify, strip_pack_specs
from ..types import Ingredient, InvoiceLineItem
from .tables import MatchingTables, default_tables

logger = logging.getLogger(__name__)

HIGH = "high"
MEDIUM = "medium"
LOW = "low"
NONE = "none"

CONFIDENCE_ORDER: dict[str, int] = {NONE: 0, LOW: 1, MEDIUM: 2, HIGH: 3}


@dataclass(frozen=True)
class MatchThresholds:
    accept: float = 0.25
    medium: float = 0.55
    high: float = 0.85
    max_candidates: int = 5


@dataclass
class ScoredCandidate:
    ingredient: Ingredient
    score: float


@dataclass
class MatchResult:
    """Outcome of matching one invoice line against the ingredient list."""

    item: InvoiceLineItem
    best: Ingredient | None
    confidence: str  # "high" | "medium" | "low" | "none"
    candidates: list[ScoredCandidate] = field(default_factory=list)
    ai_suggestion: str | None = None

    @property
    def score(self) -> float:
        return self.candidates[0].score if self.candidates else 0.0

    @property
    def resolved(self) -> Ingredient | None:
        """The ingredient to price against; only high confidence auto-resolves."""
        return self.best if self.confidence == HIGH else None

    @property
    def needs_clarification(self) -> bool:
        return self.confidence in (MEDIUM, LOW)

    def to_dict(self) -> dict:
        resolved = self.resolved
        return {
            "invoice_item": {
                "id": self.item.id,
                "product_name": self.item.product_name,
                "unit_price": self.item.unit_price,
                "unit": self.item.unit,
                "invoice_date": self.item.invoice_date,
            },
            "matched_ingredient": (
                {"id": resolved.id, "name": resolved.name} if resolved else None
            ),
            "confidence": self.confidence,
            "score": round(self.score, 4),
            "needs_clarification": self.needs_clarification,
            "possible_matches": [
                {
                    "id": c.ingredient.id,
                    "name": c.ingredient.name,
                    "score": round(c.score, 4),
                }
                for c in self.candidates
            ],
            "ai_suggestion": self.ai_suggestion,
        }


@dataclass(frozen=True)
class _Forms:
    """Precomputed normalized views of one name."""

    norm: str
    stem: str
    key: str  # stem, or norm when stemming removed everything
    expansions: frozenset[str]
    words: tuple[str, ...]


Tier = Callable[[_Forms, _Forms], "float | None"]


def _tier_stemmed_exact(a: _Forms, b: _Forms) -> float | None:
    if a.stem and a.stem == b.stem and len(a.stem) > 2:
        return 0.95
    return None


def _tier_synonyms(a: _Forms, b: _Forms) -> float | None:
    if a.expansions & b.expansions:
        return 0.9
    return None


def _tier_substring(a: _Forms, b: _Forms) -> float | None:
    shorter, longer = sorted((a.key, b.key), key=len)
    if len(shorter) < 3 or shorter not in longer:
        return None
    return 0.7 + 0.2 * (len(shorter) / len(longer))


def _tier_edit_distance(a: _Forms, b: _Forms) -> float | None:
    if len(a.key) > 15 or len(b.key) > 15:
        return None
    longest = max(len(a.key), len(b.key))
    if longest == 0:
        return None
    similarity = 1.0 - Levenshtein.distance(a.key, b.key) / longest
    if similarity > 0.7:
        return similarity * 0.85
    return None


def _prefix_match(w1: str, w2: str) -> bool:
    if len(w1) < 4 or len(w2) < 4:
        return False
    k = math.floor(0.7 * min(len(w1), len(w2)))
    return w1[:k] == w2[:k]


def _tier_word_overlap(a: _Forms, b: _Forms) -> float | None:
    if not a.words or not b.words:
        return 0.0
    exact = 0
    partial = 0
    for word in a.words:
        if word in b.words:
            exact += 1
        elif any(_prefix_match(word, other) for other in b.words):
            partial += 1
    total = (exact + 0.5 * partial) / max(len(a.words), len(b.words))
    return total * 0.75


DEFAULT_TIERS: tuple[Tier, ...] = (
    _tier_stemmed_exact,
    _tier_synonyms,
    _tier_substring,
    _tier_edit_distance,
    _tier_word_overlap,
)


class NameMatcher:
    """Scores invoice names against ingredient names and picks candidates.

    Scoring tiers, first hit wins:

    1. exact after normalization → 1.0
    2. exact after stemming filler words → 0.95
    3. shared synonym (English/French) → 0.9
    4. substring containment → 0.7 + up to 0.2 for similar lengths
    5. edit distance on short names → similarity × 0.85
    6. word overlap → overlap × 0.75

    Scores are not symmetric: word overlap is counted from the invoice side.
    """

    def __init__(
        self,
        tables: MatchingTables | None = None,
        thresholds: MatchThresholds | None = None,
    ) -> None:
        self._tables = tables or default_tables()
        self._thresholds = thresholds or MatchThresholds()
        self._fillers = self._tables.filler_words
        self._tiers = DEFAULT_TIERS

        self._canonical: dict[str, str] = {}
        self._groups: dict[str, frozenset[str]] = {}
        self._max_phrase = 1
        for raw_group in self._tables.synonym_groups:
            group = [s for s in (self.stem(m) for m in raw_group) if s]
            if not group:
                continue
            members = frozenset(group)
            for member in group:
                self._canonical.setdefault(member, group[0])
                self._groups[member] = self._groups.get(member, frozenset()) | members
                self._max_phrase = max(self._max_phrase, len(member.split()))

    @property
    def thresholds(self) -> MatchThresholds:
        return self._thresholds

    @staticmethod
    def normalize(name: str) -> str:
        return simplify(name)

    def stem(self, name: str) -> str:
        """Normalize, then drop pack specs and filler words."""
        return remove_words(strip_pack_specs(simplify(name)), self._fillers)

    def canonicalize(self, stem: str) -> str:
        """Replace known synonym phrases with their canonical spelling."""
        words = stem.split()
        out: list[str] = []
        i = 0
        while i < len(words):
            for n in range(min(self._max_phrase, len(words) - i), 0, -1):
                phrase = " ".join(words[i:i + n])
                if phrase in self._canonical:
                    out.append(self._canonical[phrase])
                    i += n
                    break
            else:
                out.append(words[i])
                i += 1
        return " ".join(out)

    def _prepare(self, name: str) -> _Forms:
        norm = self.normalize(name)
        stem = self.stem(name)
        key = stem or norm
        canonical = self.canonicalize(key)
        expansions = {key, canonical}
        expansions |= self._groups.get(key, frozenset())
        expansions |= self._groups.get(canonical, frozenset())
        words = tuple(w for w in key.split() if len(w) >= 2)
        return _Forms(norm, stem, key, frozenset(expansions), words)

    def _score_forms(self, a: _Forms, b: _Forms) -> float:
        if not a.norm or not b.norm:
            return 0.0
        if a.norm == b.norm:
            return 1.0
        for tier in self._tiers:
            result = tier(a, b)
            if result is not None:
                return result
        return 0.0

    def score(self, invoice_name: str, ingredient_name: str) -> float:
        """Similarity in [0, 1] of an invoice name to an ingredient name."""
        return self._score_forms(
            self._prepare(invoice_name), self._prepare(ingredient_name)
        )

    def confidence_for(self, score: float) -> str:
        t = self._thresholds
        if score < t.accept:
            return NONE
        if score >= t.high:
            return HIGH
        if score >= t.medium:
            return MEDIUM
        return LOW

    def rank(
        self,
        name: str,
        ingredients: Iterable[Ingredient],
        minimum: float = 0.0,
    ) -> list[ScoredCandidate]:
        """Score ``name`` against every ingredient, best first.

        Ties keep the input order of ``ingredients``.
        """
        forms = self._prepare(name)
        scored = [
            ScoredCandidate(ing, self._score_forms(forms, self._prepare(ing.name)))
            for ing in ingredients
        ]
        scored = [c for c in scored if c.score >= minimum]
        scored.sort(key=lambda c: c.score, reverse=True)
        return scored

    def find_matches(
        self, item: InvoiceLineItem, ingredients: Sequence[Ingredient]
    ) -> MatchResult:
        t = self._thresholds
        candidates = self.rank(item.product_name, ingredients, minimum=t.accept)
        candidates = candidates[: t.max_candidates]
        if not candidates:
            logger.debug("No match for %r", item.product_name)
            return MatchResult(item=item, best=None, confidence=NONE)

        return MatchResult(
            item=item,
            best=candidates[0].ingredient,
            confidence=self.confidence_for(candidates[0].score),
            candidates=candidates,
        )
