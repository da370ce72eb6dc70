"""Tests for invoice-name to ingredient matching."""

import pytest

from foodcost.matching import (
    HIGH,
    LOW,
    MEDIUM,
    NONE,
    MatchThresholds,
    NameMatcher,
    default_tables,
)
from foodcost.types import Ingredient, InvoiceLineItem


@pytest.fixture
def matcher():
    return NameMatcher()


def _ing(id, name):
    return Ingredient(id=id, name=name, unit_cost=1.0, per_unit="kg")


class TestScore:
    @pytest.mark.parametrize("name", ["Chicken", "Tomato sauce", "Poulet 12X1KG", "crème"])
    def test_reflexive(self, matcher, name):
        assert matcher.score(name, name) == 1.0

    def test_empty_names(self, matcher):
        assert matcher.score("", "Chicken") == 0.0
        assert matcher.score("Chicken", "") == 0.0
        assert matcher.score("", "") == 0.0

    def test_exact_after_normalization(self, matcher):
        assert matcher.score("CHICKEN!", "chicken") == 1.0

    def test_stemmed_exact(self, matcher):
        assert matcher.score("Fresh Basil", "Basil (dried)") == pytest.approx(0.95)

    def test_french_synonym(self, matcher):
        assert matcher.score("Poulet 12X1KG", "Chicken") == pytest.approx(0.9)

    def test_synonym_after_accent_folding(self, matcher):
        assert matcher.score("Crème", "Cream") == pytest.approx(0.9)

    def test_synonym_after_filler_removal(self, matcher):
        assert matcher.score("Boeuf haché", "Ground beef") == pytest.approx(0.9)

    @pytest.mark.parametrize("name", ["Poulet 12 x 1 KG", "Poulet 1 kg", "POULET 12 X 1KG"])
    def test_synonym_with_spaced_pack_spec(self, matcher, name):
        assert matcher.score(name, "Chicken") == pytest.approx(0.9)

    def test_synonym_with_elided_article(self, matcher):
        assert matcher.score("Huile d'olive", "Olive oil") == pytest.approx(0.9)

    def test_substring(self, matcher):
        # 0.7 + 0.2 * 14 / 20
        assert matcher.score("Cheddar cheese block", "Cheddar cheese") == pytest.approx(0.84)

    def test_edit_distance(self, matcher):
        # one edit over ten characters: 0.9 * 0.85
        assert matcher.score("Mozarella", "Mozzarella") == pytest.approx(0.765)

    def test_word_overlap_is_directional(self, matcher):
        forward = matcher.score("tomato tomatillo", "tomato sauce")
        backward = matcher.score("tomato sauce", "tomato tomatillo")
        assert forward == pytest.approx(0.5625)
        assert backward == pytest.approx(0.375)

    def test_unrelated(self, matcher):
        assert matcher.score("Paper towels", "Chicken") == 0.0

    def test_score_range(self, matcher):
        names = ["Chicken", "Poulet", "Cheddar cheese", "Rice", "Mozzarella", "Tomato"]
        for a in names:
            for b in names:
                assert 0.0 <= matcher.score(a, b) <= 1.0


class TestConfidence:
    @pytest.mark.parametrize(
        "score, expected",
        [
            (0.0, NONE),
            (0.2499, NONE),
            (0.25, LOW),
            (0.5499, LOW),
            (0.55, MEDIUM),
            (0.8499, MEDIUM),
            (0.85, HIGH),
            (1.0, HIGH),
        ],
    )
    def test_boundaries(self, matcher, score, expected):
        assert matcher.confidence_for(score) == expected

    def test_monotonic(self, matcher):
        order = {NONE: 0, LOW: 1, MEDIUM: 2, HIGH: 3}
        tiers = [order[matcher.confidence_for(s / 100)] for s in range(101)]
        assert tiers == sorted(tiers)

    def test_custom_thresholds(self):
        matcher = NameMatcher(thresholds=MatchThresholds(high=0.95))
        assert matcher.confidence_for(0.9) == MEDIUM


class TestRank:
    def test_best_first(self, matcher):
        ingredients = [_ing("1", "Rice"), _ing("2", "Chicken"), _ing("3", "Chicken breast")]
        ranked = matcher.rank("Poulet", ingredients)
        assert ranked[0].ingredient.id == "2"
        assert [c.score for c in ranked] == sorted((c.score for c in ranked), reverse=True)

    def test_ties_keep_input_order(self, matcher):
        ingredients = [_ing("a", "Ground beef"), _ing("b", "Beef")]
        ranked = matcher.rank("Boeuf haché", ingredients)
        assert [c.ingredient.id for c in ranked] == ["a", "b"]
        ranked = matcher.rank("Boeuf haché", list(reversed(ingredients)))
        assert [c.ingredient.id for c in ranked] == ["b", "a"]

    def test_minimum(self, matcher):
        ingredients = [_ing("1", "Rice"), _ing("2", "Chicken")]
        ranked = matcher.rank("Poulet", ingredients, minimum=0.5)
        assert [c.ingredient.id for c in ranked] == ["2"]


class TestFindMatches:
    def test_high_confidence(self, matcher):
        item = InvoiceLineItem(product_name="Poulet 12X1KG", unit_price=60, unit="box")
        result = matcher.find_matches(item, [_ing("1", "Rice"), _ing("2", "Chicken")])
        assert result.confidence == HIGH
        assert result.best.id == "2"
        assert result.resolved.id == "2"
        assert result.score == pytest.approx(0.9)
        assert not result.needs_clarification

    def test_medium_needs_clarification(self, matcher):
        item = InvoiceLineItem(product_name="Cheddar cheese block", unit_price=40)
        result = matcher.find_matches(item, [_ing("1", "Cheddar cheese")])
        assert result.confidence == MEDIUM
        assert result.resolved is None
        assert result.needs_clarification

    def test_no_match(self, matcher):
        item = InvoiceLineItem(product_name="Paper towels", unit_price=12)
        result = matcher.find_matches(item, [_ing("1", "Chicken")])
        assert result.confidence == NONE
        assert result.best is None
        assert result.candidates == []
        assert result.score == 0.0

    def test_candidates_capped(self):
        matcher = NameMatcher(thresholds=MatchThresholds(max_candidates=2))
        ingredients = [_ing(str(i), "Chicken") for i in range(4)]
        item = InvoiceLineItem(product_name="Poulet", unit_price=5)
        result = matcher.find_matches(item, ingredients)
        assert len(result.candidates) == 2

    def test_to_dict(self, matcher):
        item = InvoiceLineItem(product_name="Poulet", unit_price=5, id="inv-1")
        data = matcher.find_matches(item, [_ing("2", "Chicken")]).to_dict()
        assert data["confidence"] == HIGH
        assert data["matched_ingredient"] == {"id": "2", "name": "Chicken"}
        assert data["invoice_item"]["id"] == "inv-1"
        assert data["possible_matches"][0]["score"] == 0.9
        assert data["ai_suggestion"] is None


class TestTables:
    def test_extra_synonyms(self):
        tables = default_tables().merged({"scallop": ["petoncle"]})
        matcher = NameMatcher(tables)
        assert matcher.score("Petoncle", "Scallop") == pytest.approx(0.9)

    def test_extend_existing_group(self):
        tables = default_tables().merged({"chicken": ["pollo"]})
        matcher = NameMatcher(tables)
        assert matcher.score("Pollo", "Poulet") == pytest.approx(0.9)

    def test_extra_filler_words(self):
        plain = NameMatcher()
        custom = NameMatcher(default_tables().merged(filler_words=["iqf"]))
        assert plain.score("IQF Shrimp", "Shrimp") == pytest.approx(0.82)
        assert custom.score("IQF Shrimp", "Shrimp") == pytest.approx(0.95)

    def test_merged_leaves_defaults_untouched(self):
        default_tables().merged({"scallop": ["petoncle"]})
        assert NameMatcher().score("Petoncle", "Scallop") < 0.9

    def test_canonicalize_longest_phrase(self, matcher):
        assert matcher.canonicalize("poitrine poulet grillee") == "chicken breast grillee"
