"""Tests for product-name text helpers."""

from foodcost.text import collapse, fold_accents, remove_words, simplify, strip_pack_specs


def test_fold_accents():
    assert fold_accents("Crème brûlée haché") == "Creme brulee hache"


def test_collapse():
    assert collapse("  a \t b\n c ") == "a b c"


def test_simplify_lowercases_and_drops_punctuation():
    assert simplify("Boeuf-Haché, (5LBS)!") == "boeuf hache 5lbs"


def test_simplify_none():
    assert simplify(None) == ""


def test_strip_pack_specs():
    assert strip_pack_specs("tomatoes 12x454g crushed 2kg 100") == "tomatoes crushed"


def test_strip_spaced_pack_specs():
    assert strip_pack_specs("poulet 12 x 1 kg") == "poulet"
    assert strip_pack_specs("poulet 1 kg") == "poulet"
    assert strip_pack_specs("creme 35 1 5 l") == "creme"


def test_remove_words():
    assert remove_words("fresh mint grade a", frozenset({"fresh", "grade", "a"})) == "mint"
