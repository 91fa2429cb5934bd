import sys
import os
import argparse
import itertools

from tqdm import tqdm

# Add parent directory to path to import myanmar_composer package
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from myanmar_composer import RewriteEngine, SyllableComposer, Unit, UnitClass, compose
from myanmar_composer.classifier import ASAT, VIRAMA

# Syllables typed in one reference order; every other permitted order must agree
DEFAULT_SYLLABLES = [
    "ကျို",          # ka + ya + i + u
    "မြို့",    # ma + ra + i + u + dot below
    "ကြော",          # ka + ra + e + aa
    "ပြော",          # pa + ra + e + aa
    "လှောင်",  # la + ha + e + aa + nga final
    "ကွှဲ",          # ka + wa + ha + ai
    "နှုံ",          # na + ha + u + anusvara
    "မျှေး",    # ma + ya + ha + e + visarga
    "သ္တိ",          # sa + virama + ta + i
    "ကင်း",          # ka + nga + asat + visarga
    "စဥ်",                # sa + u + asat
]


def split_syllable(text):
    """
    Split a reference typing into (head, marks, tail):
    head = anchor and stacked consonants, tail = final consonant and its asat.
    """
    units = [Unit(c) for c in text]
    i = 1
    while i + 1 < len(units) and units[i].codepoint == VIRAMA:
        i += 2
    head = units[:i]
    rest = units[i:]

    tail = []
    for j in range(len(rest) - 1):
        if rest[j].unit_class in (UnitClass.CONSONANT, UnitClass.INDEPENDENT_VOWEL) and rest[j + 1].codepoint == ASAT:
            tail = rest[j:j + 2]
            rest = rest[:j] + rest[j + 2:]
            break
    return head, rest, tail


def typing_orders(text):
    """Permitted typing orders: marks in any order after the head, pre-base marks optionally first."""
    head, marks, tail = split_syllable(text)
    floating_ok = [m for m in marks if m.unit_class in (UnitClass.PRE_BASE_VOWEL, UnitClass.MEDIAL)]

    seen = set()
    for perm in itertools.permutations(marks):
        for before_count in range(len(perm) + 1):
            before = perm[:before_count]
            if any(u not in floating_ok for u in before) or (before and len(head) > 1):
                continue
            order = tuple(before) + tuple(head) + tuple(perm[before_count:]) + tuple(tail)
            if order not in seen:
                seen.add(order)
                yield "".join(u.char for u in order)


def check(syllables, show_all=False):
    engine = RewriteEngine()
    failures = 0
    total_orders = 0

    for syllable in tqdm(syllables, desc="Checking syllables"):
        expected = compose(syllable, SyllableComposer(engine))
        diverged = []
        for order in typing_orders(syllable):
            total_orders += 1
            got = compose(order, SyllableComposer(engine))
            if got != expected:
                diverged.append((order, got))

        if diverged:
            failures += 1
            tqdm.write(f"DIVERGES: {syllable} ({' '.join(f'{ord(c):04X}' for c in syllable)})")
            for order, got in diverged[:10]:
                tqdm.write(f"  typed {' '.join(f'{ord(c):04X}' for c in order)} -> {' '.join(f'{ord(c):04X}' for c in got)}")
        elif show_all:
            tqdm.write(f"ok: {syllable} -> {expected}")

    print(f"Checked {len(syllables)} syllables, {total_orders} typing orders, {failures} divergent.")
    return failures


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Check that every typing order of a syllable commits the same text")
    parser.add_argument("-s", "--source", help="File with one reference syllable per line")
    parser.add_argument("--show-all", action="store_true", help="Also print converging syllables")
    parser.add_argument("syllables", nargs="*", help="Reference syllables")

    args = parser.parse_args()

    syllables = list(args.syllables)
    if args.source:
        with open(args.source, "r", encoding="utf-8") as f:
            syllables.extend(line.strip() for line in f if line.strip())
    if not syllables:
        syllables = DEFAULT_SYLLABLES

    sys.exit(1 if check(syllables, args.show_all) else 0)
