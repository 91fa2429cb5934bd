import logging

from .classifier import (
    ANCHOR_CLASSES,
    ANUSVARA,
    ASAT,
    DOT_BELOW,
    LETTER_U,
    MARK_CLASSES,
    NYA_SMALL,
    VIRAMA,
    Unit,
    UnitClass,
    to_units,
    units_to_text,
    vowel_position,
)

logger = logging.getLogger(__name__)


class MyanmarNormalizer:
    # Canonical Weight Table
    BASE = 10           # anchor, stacked consonant, stacker
    MEDIAL = 20         # + MedialKind (Ra 21 .. Ha 24)
    VOWEL = 30
    PRE_BASE = 40
    FINAL = 45          # final consonant, sits right before its killer
    KILLER = 50         # asat / trailing virama, anusvara
    TONE = 60           # dot below, visarga
    OTHER = 100

    # Independent U + Asat is always meant as Small Nya + Asat
    LEXICAL_FIXES = {
        (LETTER_U, ASAT): (NYA_SMALL, ASAT),
    }

    def reorder(self, units):
        """
        Return the canonical storage order of one syllable.

        1. Adjacent exact duplicates collapse to one occurrence.
        2. Stable sort by (weight, rank, typed index).
        3. Fixed lexical substitutions (U + Asat -> Small Nya + Asat).

        Running it on its own output returns the output unchanged.
        """
        units = [u if isinstance(u, Unit) else Unit(u) for u in units]
        if not units:
            return []

        collapsed = self._collapse_duplicates(units)
        keys = self.sort_keys(collapsed)
        order = sorted(range(len(collapsed)), key=lambda i: (keys[i], i))

        # Sorting can bring equal marks together (ka + u + e + u)
        ordered = self._collapse_duplicates([collapsed[i] for i in order])
        return self._collapse_duplicates(self._fix_lexical(ordered))

    def reorder_text(self, text):
        return units_to_text(self.reorder(to_units(text)))

    def is_canonical(self, units):
        units = [u if isinstance(u, Unit) else Unit(u) for u in units]
        return self.reorder(units) == units

    def sort_keys(self, units):
        """
        (weight, rank) for every unit. Roles depend on neighbours:
        the first Consonant/IndependentVowel is the anchor, a virama before a
        consonant is a stacker, a consonant after a stacker is stacked and any
        other consonant is a final.
        """
        keys = []
        anchor_seen = False

        for i, unit in enumerate(units):
            cls = unit.unit_class
            code = unit.codepoint

            if cls in ANCHOR_CLASSES:
                if not anchor_seen:
                    anchor_seen = True
                    keys.append((self.BASE, 0))
                elif i > 0 and self._is_stacker(units, i - 1):
                    keys.append((self.BASE, 0))
                else:
                    keys.append((self.FINAL, 0))
            elif cls is UnitClass.MEDIAL:
                keys.append((self.MEDIAL + int(unit.medial_kind), 0))
            elif cls is UnitClass.VOWEL_SIGN:
                keys.append((self.VOWEL, vowel_position(code)))
            elif cls is UnitClass.PRE_BASE_VOWEL:
                keys.append((self.PRE_BASE, 0))
            elif cls is UnitClass.STACKING_MARKER:
                if self._is_stacker(units, i):
                    keys.append((self.BASE, 0))
                else:
                    keys.append((self.KILLER, 1))
            elif cls is UnitClass.TONE_MARK:
                if code == ANUSVARA:
                    keys.append((self.KILLER, 0))
                elif code == DOT_BELOW:
                    keys.append((self.TONE, 0))
                else:
                    keys.append((self.TONE, 1))
            else:
                keys.append((self.OTHER, 0))

        return keys

    def weight(self, units, index):
        return self.sort_keys(units)[index][0]

    def _is_stacker(self, units, i):
        code = units[i].codepoint
        if code == VIRAMA:
            return i + 1 < len(units) and units[i + 1].unit_class is UnitClass.CONSONANT
        if code == ASAT:
            # Kinzi: nga + asat + virama + consonant
            return i + 1 < len(units) and units[i + 1].codepoint == VIRAMA and self._is_stacker(units, i + 1)
        return False

    def _collapse_duplicates(self, units):
        result = []
        for unit in units:
            if result and result[-1] == unit:
                continue
            result.append(unit)
        return result

    def _fix_lexical(self, units):
        result = list(units)
        for (first, second), (new_first, new_second) in self.LEXICAL_FIXES.items():
            for i in range(len(result) - 1):
                if result[i].codepoint == first and result[i + 1].codepoint == second:
                    result[i] = Unit(new_first)
                    result[i + 1] = Unit(new_second)
        return result

    def normalize(self, text):
        """
        Normalizes running Myanmar text by splitting it into syllable clusters
        and reordering each one. Non-Myanmar text passes through unchanged.
        """
        if not text:
            return ""

        units = to_units(text)
        n = len(units)
        result = []
        current_cluster = []
        floating = []  # marks seen before any anchor

        i = 0
        while i < n:
            unit = units[i]
            cls = unit.unit_class

            if cls in ANCHOR_CLASSES:
                joins = current_cluster and (
                    current_cluster[-1].codepoint == VIRAMA or self._is_final_at(units, i)
                )
                if joins:
                    current_cluster.append(unit)
                else:
                    if current_cluster:
                        result.append(self._sort_cluster(current_cluster))
                    current_cluster = [unit] + floating
                    floating = []
            elif cls in MARK_CLASSES:
                if current_cluster:
                    current_cluster.append(unit)
                else:
                    floating.append(unit)
            else:
                # Other (Space, Punc, English). Flush cluster.
                if current_cluster:
                    result.append(self._sort_cluster(current_cluster))
                    current_cluster = []
                if floating:
                    result.append(units_to_text(floating))
                    floating = []
                result.append(unit.char)
            i += 1

        if current_cluster:
            result.append(self._sort_cluster(current_cluster))
        if floating:
            result.append(units_to_text(floating))

        return "".join(result)

    def _is_final_at(self, units, i):
        # Consonant killed by asat (optionally after dot below), but not a kinzi
        j = i + 1
        while j < len(units) and units[j].codepoint == DOT_BELOW:
            j += 1
        if j >= len(units) or units[j].codepoint != ASAT:
            return False
        return not (j + 1 < len(units) and units[j + 1].codepoint == VIRAMA)

    def _sort_cluster(self, parts):
        ordered = self.reorder(parts)
        if logger.isEnabledFor(logging.DEBUG) and ordered != parts:
            logger.debug("Reordered %s -> %s",
                         [f"{u.codepoint:04X}" for u in parts],
                         [f"{u.codepoint:04X}" for u in ordered])
        return units_to_text(ordered)


_default_normalizer = MyanmarNormalizer()


def reorder(units):
    return _default_normalizer.reorder(units)


def normalize(text):
    return _default_normalizer.normalize(text)
