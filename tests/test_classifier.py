import pytest

from myanmar_composer.classifier import (
    MedialKind,
    Unit,
    UnitClass,
    classify,
    is_anchor,
    is_mark,
    medial_kind,
    to_units,
    units_to_text,
    vowel_position,
)


@pytest.mark.parametrize("codepoint, expected", [
    (0x1000, UnitClass.CONSONANT),         # ka
    (0x1004, UnitClass.CONSONANT),         # nga
    (0x1021, UnitClass.CONSONANT),         # a
    (0x103F, UnitClass.CONSONANT),         # great sa
    (0x1025, UnitClass.INDEPENDENT_VOWEL),
    (0x102A, UnitClass.INDEPENDENT_VOWEL),
    (0x103B, UnitClass.MEDIAL),
    (0x103E, UnitClass.MEDIAL),
    (0x102C, UnitClass.VOWEL_SIGN),
    (0x1032, UnitClass.VOWEL_SIGN),
    (0x1031, UnitClass.PRE_BASE_VOWEL),
    (0x1036, UnitClass.TONE_MARK),
    (0x1038, UnitClass.TONE_MARK),
    (0x1039, UnitClass.STACKING_MARKER),
    (0x103A, UnitClass.STACKING_MARKER),
    (0x104A, UnitClass.PUNCTUATION),
    (0x104B, UnitClass.PUNCTUATION),
    (ord(" "), UnitClass.PUNCTUATION),
    (ord(","), UnitClass.PUNCTUATION),
    (ord("a"), UnitClass.OTHER),
    (0x1040, UnitClass.OTHER),             # myanmar digit zero
    (0x1F600, UnitClass.OTHER),
])
def test_classify(codepoint, expected):
    assert classify(codepoint) is expected


def test_classify_accepts_characters_and_units():
    assert classify("က") is UnitClass.CONSONANT
    assert classify(Unit("ေ")) is UnitClass.PRE_BASE_VOWEL


def test_medial_kinds_follow_storage_order():
    assert medial_kind(0x103C) is MedialKind.RA
    assert medial_kind(0x103B) is MedialKind.YA
    assert medial_kind(0x103D) is MedialKind.WA
    assert medial_kind(0x103E) is MedialKind.HA
    assert MedialKind.RA < MedialKind.YA < MedialKind.WA < MedialKind.HA
    assert medial_kind(0x1000) is None


def test_vowel_position():
    assert vowel_position(0x102D) == 0
    assert vowel_position(0x102F) == 1
    assert vowel_position(0x102C) == 2
    assert vowel_position(0x1031) is None


def test_anchor_and_mark_predicates():
    assert is_anchor(0x1000)
    assert is_anchor(0x1025)
    assert not is_anchor(0x1031)
    assert is_mark(0x103A)
    assert is_mark(0x103B)
    assert not is_mark(ord(" "))


class TestUnit:
    def test_equality_by_codepoint(self):
        assert Unit("က") == Unit(0x1000)
        assert Unit(Unit(0x1000)) == Unit(0x1000)
        assert Unit(0x1000) != Unit(0x1001)
        assert len({Unit(0x1000), Unit("က")}) == 1

    def test_properties(self):
        unit = Unit(0x103C)
        assert unit.codepoint == 0x103C
        assert unit.char == "ြ"
        assert unit.unit_class is UnitClass.MEDIAL
        assert unit.medial_kind is MedialKind.RA
        assert unit.is_mark
        assert not unit.is_anchor
        assert repr(unit) == "Unit(U+103C)"

    def test_immutable(self):
        unit = Unit(0x1000)
        with pytest.raises(AttributeError):
            unit.codepoint = 0x1001
        with pytest.raises(AttributeError):
            unit.extra = 1

    @pytest.mark.parametrize("bad", ["", "ab", -1, 0x110000])
    def test_rejects_bad_values(self, bad):
        with pytest.raises(ValueError):
            Unit(bad)

    @pytest.mark.parametrize("bad", [1.5, None, True])
    def test_rejects_bad_types(self, bad):
        with pytest.raises(TypeError):
            Unit(bad)


def test_text_conversion():
    units = to_units("ကို")
    assert [u.codepoint for u in units] == [0x1000, 0x102D, 0x102F]
    assert units_to_text(units) == "ကို"
    assert units_to_text([0x1000, "ါ"]) == "ကါ"
