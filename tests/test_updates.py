"""Tests for ingredient update instructions and their dispatch."""

from unittest.mock import MagicMock

import pytest

from foodcost.analytics.updates import (
    IngredientUpdate,
    apply_updates,
    confirm_match,
    conversion_updates,
    dispatch_updates,
    set_unit_cost,
)
from foodcost.types import Ingredient, PackConversion


class TestIngredientUpdate:
    def test_valid(self):
        u = IngredientUpdate("1", "unit_cost", 5.0, "invoice")
        assert u.describe() == "Set unit_cost to 5.0 (invoice)"
        assert u.to_dict() == {
            "ingredient_id": "1", "field": "unit_cost", "value": 5.0, "reason": "invoice",
        }

    def test_unknown_field(self):
        with pytest.raises(ValueError, match="Unknown field"):
            IngredientUpdate("1", "name", "Chicken")

    def test_wrong_type(self):
        with pytest.raises(ValueError, match="must be a number"):
            IngredientUpdate("1", "unit_cost", "5")
        with pytest.raises(ValueError, match="must be a number"):
            IngredientUpdate("1", "latest_price", True)
        with pytest.raises(ValueError, match="must be a string"):
            IngredientUpdate("1", "per_unit", 1)

    def test_non_positive_factor(self):
        with pytest.raises(ValueError, match="> 0"):
            IngredientUpdate("1", "conversion_factor", 0)

    def test_missing_id(self):
        with pytest.raises(ValueError, match="ingredient_id"):
            IngredientUpdate("", "unit_cost", 1.0)


class TestBuilders:
    def test_confirm_match(self):
        updates = confirm_match("1", 6.2, "2026-03-01")
        assert [(u.field, u.value) for u in updates] == [
            ("latest_price", 6.2), ("price_updated", "2026-03-01"),
        ]

    def test_set_unit_cost(self):
        assert [u.field for u in set_unit_cost("1", 5.0)] == ["unit_cost"]

    def test_conversion_updates_without_invoice_unit(self):
        updates = conversion_updates("1", PackConversion(30, "g", "bunch"))
        assert [u.field for u in updates] == [
            "conversion_factor", "conversion_base_unit", "conversion_notes",
        ]


class TestDispatch:
    def test_batches(self):
        persist = MagicMock()
        updates = [IngredientUpdate(str(i), "unit_cost", 1.0) for i in range(45)]
        result = dispatch_updates(updates, persist)
        assert persist.call_count == 3
        assert [len(c.args[0]) for c in persist.call_args_list] == [20, 20, 5]
        assert result.ok
        assert len(result.applied) == 45

    def test_failed_batch_continues(self):
        persist = MagicMock(side_effect=[None, RuntimeError("store offline"), None])
        updates = [IngredientUpdate(str(i), "unit_cost", 1.0) for i in range(5)]
        result = dispatch_updates(updates, persist, batch_size=2)
        assert persist.call_count == 3
        assert not result.ok
        assert len(result.applied) == 3
        assert [u.ingredient_id for u, _ in result.failed] == ["2", "3"]
        assert result.failed[0][1] == "store offline"

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError):
            dispatch_updates([], MagicMock(), batch_size=0)


class TestApplyUpdates:
    def test_fields_and_other_ids_ignored(self):
        ing = Ingredient(id="1", name="Chicken", unit_cost=5.5, per_unit="kg")
        updated = apply_updates(ing, [
            IngredientUpdate("1", "unit_cost", 5.0),
            IngredientUpdate("1", "price_updated", "2026-03-01"),
            IngredientUpdate("2", "unit_cost", 99.0),
        ])
        assert updated.unit_cost == 5.0
        assert updated.price_updated == "2026-03-01"
        assert ing.unit_cost == 5.5

    def test_updates_existing_conversion(self):
        ing = Ingredient(
            id="1", name="Mint", per_unit="g",
            conversion=PackConversion(30, "g", "~30g per bunch", "bunch"),
        )
        updated = apply_updates(ing, [IngredientUpdate("1", "conversion_factor", 40)])
        assert updated.conversion == PackConversion(40, "g", "~30g per bunch", "bunch")

    def test_new_conversion_defaults_base_unit(self):
        ing = Ingredient(id="1", name="Mint", per_unit="g")
        updated = apply_updates(ing, [IngredientUpdate("1", "conversion_factor", 30)])
        assert updated.conversion == PackConversion(30, "g")

    def test_conversion_text_without_factor_ignored(self):
        ing = Ingredient(id="1", name="Mint", per_unit="g")
        updated = apply_updates(ing, [IngredientUpdate("1", "conversion_notes", "bunch")])
        assert updated.conversion is None
