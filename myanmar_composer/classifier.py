import enum
import string


class UnitClass(enum.Enum):
    CONSONANT = "consonant"
    INDEPENDENT_VOWEL = "independent_vowel"
    MEDIAL = "medial"
    VOWEL_SIGN = "vowel_sign"
    PRE_BASE_VOWEL = "pre_base_vowel"
    TONE_MARK = "tone_mark"
    STACKING_MARKER = "stacking_marker"
    PUNCTUATION = "punctuation"
    OTHER = "other"


class MedialKind(enum.IntEnum):
    # Storage sub-order of the medial signs
    RA = 1
    YA = 2
    WA = 3
    HA = 4


# Myanmar Character Ranges
CONSONANTS = set(range(0x1000, 0x1022)) | {0x103F, 0x104E}  # Ka .. A, Great Sa, Aforementioned
INDEP_VOWELS = {0x1023, 0x1024, 0x1025, 0x1026, 0x1027, 0x1029, 0x102A}
VOWEL_SIGNS = {0x102B, 0x102C, 0x102D, 0x102E, 0x102F, 0x1030, 0x1032}
PRE_BASE_VOWELS = {0x1031}  # E
TONE_MARKS = {0x1036, 0x1037, 0x1038}  # Anusvara, Dot Below, Visarga
STACKING_MARKERS = {0x1039, 0x103A}  # Virama, Asat
MEDIALS = {
    0x103B: MedialKind.YA,
    0x103C: MedialKind.RA,
    0x103D: MedialKind.WA,
    0x103E: MedialKind.HA,
}
PUNCTUATION = {0x104A, 0x104B} | {ord(c) for c in string.punctuation + string.whitespace}

VIRAMA = 0x1039
ASAT = 0x103A
NGA = 0x1004
ANUSVARA = 0x1036
DOT_BELOW = 0x1037
VISARGA = 0x1038
AA = 0x102C
TALL_AA = 0x102B
VOWEL_E = 0x1031
LETTER_U = 0x1025
NYA_SMALL = 0x1009

# Upper marks sit before lower marks, AA goes last
_VOWEL_POSITION = {
    0x102D: 0, 0x102E: 0, 0x1032: 0,  # i, ii, ai
    0x102F: 1, 0x1030: 1,             # u, uu
    0x102B: 2, 0x102C: 2,             # tall aa, aa
}

_CLASS_TABLE = {}
for _code in CONSONANTS:
    _CLASS_TABLE[_code] = UnitClass.CONSONANT
for _code in INDEP_VOWELS:
    _CLASS_TABLE[_code] = UnitClass.INDEPENDENT_VOWEL
for _code in MEDIALS:
    _CLASS_TABLE[_code] = UnitClass.MEDIAL
for _code in VOWEL_SIGNS:
    _CLASS_TABLE[_code] = UnitClass.VOWEL_SIGN
for _code in PRE_BASE_VOWELS:
    _CLASS_TABLE[_code] = UnitClass.PRE_BASE_VOWEL
for _code in TONE_MARKS:
    _CLASS_TABLE[_code] = UnitClass.TONE_MARK
for _code in STACKING_MARKERS:
    _CLASS_TABLE[_code] = UnitClass.STACKING_MARKER
for _code in PUNCTUATION:
    _CLASS_TABLE[_code] = UnitClass.PUNCTUATION
del _code

ANCHOR_CLASSES = frozenset({UnitClass.CONSONANT, UnitClass.INDEPENDENT_VOWEL})
MARK_CLASSES = frozenset({
    UnitClass.MEDIAL,
    UnitClass.VOWEL_SIGN,
    UnitClass.PRE_BASE_VOWEL,
    UnitClass.TONE_MARK,
    UnitClass.STACKING_MARKER,
})


def _as_codepoint(value):
    if isinstance(value, Unit):
        return value.codepoint
    if isinstance(value, str):
        if len(value) != 1:
            raise ValueError(f"Expected a single character, got {value!r}")
        return ord(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected a code point, got {type(value).__name__}")
    if not 0 <= value <= 0x10FFFF:
        raise ValueError(f"Code point out of range: {value:#x}")
    return value


def classify(codepoint):
    """
    Map a code point (int, one-character str or Unit) to its UnitClass.
    Anything outside the table is OTHER.
    """
    return _CLASS_TABLE.get(_as_codepoint(codepoint), UnitClass.OTHER)


def medial_kind(codepoint):
    return MEDIALS.get(_as_codepoint(codepoint))


def vowel_position(codepoint):
    return _VOWEL_POSITION.get(_as_codepoint(codepoint))


class Unit:
    """One Unicode scalar produced by the key mapping stage."""

    __slots__ = ("_codepoint",)

    def __init__(self, value):
        object.__setattr__(self, "_codepoint", _as_codepoint(value))

    def __setattr__(self, name, value):
        raise AttributeError("Unit is immutable")

    @property
    def codepoint(self):
        return self._codepoint

    @property
    def char(self):
        return chr(self._codepoint)

    @property
    def unit_class(self):
        return classify(self._codepoint)

    @property
    def medial_kind(self):
        return MEDIALS.get(self._codepoint)

    @property
    def is_anchor(self):
        return self.unit_class in ANCHOR_CLASSES

    @property
    def is_mark(self):
        return self.unit_class in MARK_CLASSES

    def __eq__(self, other):
        if isinstance(other, Unit):
            return self._codepoint == other._codepoint
        return NotImplemented

    def __hash__(self):
        return hash(self._codepoint)

    def __repr__(self):
        return f"Unit(U+{self._codepoint:04X})"

    def __str__(self):
        return self.char


def is_anchor(value):
    return classify(value) in ANCHOR_CLASSES


def is_mark(value):
    return classify(value) in MARK_CLASSES


def to_units(text):
    return [Unit(c) for c in text]


def units_to_text(units):
    return "".join(chr(_as_codepoint(u)) for u in units)
