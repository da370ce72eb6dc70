"""Tests for unit canonicalization and conversion."""

import pytest

from foodcost.units import UnitNormalizer, UnitTable, default_unit_table
from foodcost.units.normalizer import GRAM, KILOGRAM, MILLILITER, WHOLE_UNIT


@pytest.fixture
def normalizer():
    return UnitNormalizer()


class TestNormalize:
    @pytest.mark.parametrize(
        "spelling, canonical",
        [
            ("KG", KILOGRAM),
            ("kilos", KILOGRAM),
            ("grams", GRAM),
            ("GR", GRAM),
            ("ml", MILLILITER),
            ("Litres", "L"),
            ("fl oz", "fl. oz"),
            ("ea", WHOLE_UNIT),
            ("pcs", WHOLE_UNIT),
            ("  Each ", WHOLE_UNIT),
        ],
    )
    def test_known_spellings(self, normalizer, spelling, canonical):
        assert normalizer.normalize(spelling) == canonical

    def test_unknown_unit_is_folded(self, normalizer):
        assert normalizer.normalize("  Bunch ") == "bunch"
        assert normalizer.family("bunch") is None

    def test_empty_unit(self, normalizer):
        assert normalizer.normalize("") == ""
        assert normalizer.normalize(None) == ""

    def test_family(self, normalizer):
        assert normalizer.family("kg") == "mass"
        assert normalizer.family("tbsp") == "volume"
        assert normalizer.family("dozen") == "count"


class TestConvert:
    def test_kg_to_g(self, normalizer):
        assert normalizer.convert(1.5, "kg", "g") == pytest.approx(1500)

    def test_g_to_kg(self, normalizer):
        assert normalizer.convert(200, "g", "kg") == pytest.approx(0.2)

    def test_liter_to_ml(self, normalizer):
        assert normalizer.convert(2, "L", "mL") == pytest.approx(2000)

    def test_pounds_to_kg(self, normalizer):
        assert normalizer.convert(5, "lb", "kg") == pytest.approx(2.268)

    def test_tablespoon_to_ml(self, normalizer):
        assert normalizer.convert(2, "tbsp", "ml") == pytest.approx(30)

    def test_dozen_to_units(self, normalizer):
        assert normalizer.convert(2, "dozen", "ea") == pytest.approx(24)

    def test_same_unit_identity(self, normalizer):
        assert normalizer.convert(7, "kg", "KG") == 7

    def test_incompatible_units_pass_through(self, normalizer):
        # No mass/volume bridge: quantity comes back unchanged
        assert normalizer.convert(250, "g", "mL") == 250

    def test_convert_checked_flags_unverified(self, normalizer):
        result = normalizer.convert_checked(250, "g", "mL")
        assert result.quantity == 250
        assert result.verified is False

    def test_convert_checked_verified(self, normalizer):
        result = normalizer.convert_checked(1, "kg", "g")
        assert result.quantity == pytest.approx(1000)
        assert result.verified is True

    def test_can_convert(self, normalizer):
        assert normalizer.can_convert("kg", "g")
        assert normalizer.can_convert("L", "fl oz")
        assert not normalizer.can_convert("kg", "L")
        assert not normalizer.can_convert("bunch", "g")

    @pytest.mark.parametrize("src, dst", [("kg", "g"), ("L", "mL"), ("fl. oz", "mL"), ("L", "fl oz")])
    def test_round_trip(self, normalizer, src, dst):
        there = normalizer.convert(3.25, src, dst)
        assert normalizer.convert(there, dst, src) == pytest.approx(3.25)


class TestToBase:
    def test_mass(self, normalizer):
        assert normalizer.to_base(2, "kg") == (pytest.approx(2000), GRAM)

    def test_volume(self, normalizer):
        assert normalizer.to_base(1, "L") == (pytest.approx(1000), MILLILITER)

    def test_count(self, normalizer):
        assert normalizer.to_base(1, "dozen") == (pytest.approx(12), WHOLE_UNIT)

    def test_unknown(self, normalizer):
        assert normalizer.to_base(1, "bunch") is None


class TestUnitTable:
    def test_default_table_is_read_only(self):
        table = default_unit_table()
        with pytest.raises(TypeError):
            table.aliases["bunch"] = ("g", 30.0)

    def test_with_aliases(self):
        table = UnitTable().with_aliases({"Bunch": (GRAM, 30.0)})
        normalizer = UnitNormalizer(table)
        assert normalizer.normalize("bunch") == GRAM
        assert normalizer.convert(2, "bunch", "g") == pytest.approx(60)
        # The original table is untouched
        assert UnitNormalizer().normalize("bunch") == "bunch"
