"""
Incremental syllable composer.

Owns the live syllable buffer and the pending queue of floating marks,
decides syllable boundaries and turns every key event into abstract editor
events:

    UpdateComposition(text)  replace the live (uncommitted) composition
    Commit(text)             finalize text, composition ends

One composer per input field. It is not reentrant: feed one event at a
time and let it finish before the next. The rewrite engine and normalizer
are read-only and may be shared between composers.
"""

import enum
import logging
from collections import namedtuple

from .classifier import (
    ANCHOR_CLASSES,
    ASAT,
    DOT_BELOW,
    NGA,
    VIRAMA,
    Unit,
    UnitClass,
    units_to_text,
)
from .normalization import MyanmarNormalizer
from .rule_engine import RewriteEngine

logger = logging.getLogger(__name__)


UpdateComposition = namedtuple("UpdateComposition", ["text"])
Commit = namedtuple("Commit", ["text"])
Boundary = namedtuple("Boundary", ["text"], defaults=(" ",))


class Signal(enum.Enum):
    BACKSPACE = "backspace"
    RESET = "reset"


BACKSPACE = Signal.BACKSPACE
RESET = Signal.RESET


class ComposerState(enum.Enum):
    EMPTY = "empty"
    COMPOSING = "composing"
    STACK_EXPECTED = "stack_expected"


class SyllableComposer:
    def __init__(self, engine=None, normalizer=None):
        """
        :param engine: RewriteEngine to run on every inserted unit. A fresh one
                       with the packaged rules.json is built when omitted.
        :param normalizer: MyanmarNormalizer used to derive display/commit text.
        """
        self.engine = engine if engine is not None else RewriteEngine()
        self.normalizer = normalizer if normalizer is not None else MyanmarNormalizer()
        self._buffer = []
        self._pending = []
        self._history = []  # (buffer, pending) before each unit that changed the buffer

    @property
    def state(self):
        if not self._buffer:
            return ComposerState.EMPTY
        if self._buffer[-1].codepoint == VIRAMA:
            return ComposerState.STACK_EXPECTED
        return ComposerState.COMPOSING

    @property
    def buffer(self):
        return tuple(self._buffer)

    @property
    def pending(self):
        return tuple(self._pending)

    @property
    def display(self):
        """Text of the live composition (empty while only floating marks exist)."""
        if not self._buffer:
            return ""
        return units_to_text(self.normalizer.reorder(self._buffer))

    @property
    def is_empty(self):
        """True when a backspace would have nothing to delete here."""
        return not self._buffer and not self._pending

    def feed(self, signal):
        """
        Process one key event: a Unit (or code point / character), BACKSPACE,
        RESET or a Boundary. Returns the list of editor events to apply.
        """
        if signal is BACKSPACE:
            return self.backspace()
        if signal is RESET:
            return self.reset()
        if isinstance(signal, Boundary):
            return self.boundary(signal.text)
        return self.type_unit(signal)

    def type_text(self, text):
        events = []
        for char in text:
            events.extend(self.type_unit(char))
        return events

    def type_unit(self, unit):
        unit = unit if isinstance(unit, Unit) else Unit(unit)
        cls = unit.unit_class

        if cls in (UnitClass.PUNCTUATION, UnitClass.OTHER):
            return self.boundary(unit.char)

        if not self._buffer:
            if cls in ANCHOR_CLASSES:
                return self._start_syllable(unit)
            return self._float(unit)

        if cls in ANCHOR_CLASSES:
            if self._continues_syllable(unit):
                return self._apply(unit)
            return self._break_syllable(unit)

        if unit.codepoint == VIRAMA and self._starts_kinzi():
            return self._split_kinzi(unit)

        if self._releases_final(unit):
            return self._split_final(unit)

        return self._apply(unit)

    def boundary(self, text=" "):
        """Commit the syllable, then the space/punctuation as its own commit."""
        events = []
        if self._buffer:
            events.append(Commit(self.display))
        if self._pending:
            logger.debug("Dropping %d floating mark(s) at boundary", len(self._pending))
        self._clear()
        if text:
            events.append(Commit(text))
        return events

    def backspace(self):
        """
        Undo the most recent unit. A consonant stacked under a virama goes
        together with the virama. Returns [] when only floating marks were
        touched or when there was nothing to delete.
        """
        if self._buffer:
            current = tuple(self._buffer)
            previous, pending = self._history.pop() if self._history else (current[:-1], ())

            if self._undid_stacked_consonant(current, previous) and self._history:
                previous, pending = self._history.pop()

            self._buffer = list(previous)
            # Deleting the anchor sets the marks typed before it floating again
            self._pending = list(pending)
            if not self._buffer:
                self._history = []
                return [UpdateComposition("")]
            return [UpdateComposition(self.display)]

        if self._pending:
            self._pending.pop()
        return []

    def reset(self):
        """External commit or focus change: flush the buffer and forget everything."""
        events = []
        if self._buffer:
            events.append(Commit(self.display))
        self._clear()
        return events

    def _float(self, unit):
        # Nothing to anchor to yet: keep it out of sight
        if not self._pending or self._pending[-1] != unit:
            self._pending.append(unit)
        logger.debug("Floating %r, pending=%r", unit, self._pending)
        return []

    def _start_syllable(self, unit):
        typed = self._pending + [unit]
        self._history = [((), tuple(self._pending))]
        self._pending = []
        self._buffer = self.engine.feed_all(typed)
        logger.debug("Anchor %r, buffer=%r", unit, self._buffer)
        return [UpdateComposition(self.display)]

    def _break_syllable(self, unit):
        committed = self.display
        self._clear()
        logger.debug("Syllable boundary before %r", unit)
        return [Commit(committed)] + self._start_syllable(unit)

    def _apply(self, unit):
        before = tuple(self._buffer)
        self._buffer = self.engine.feed(self._buffer, unit)
        if tuple(self._buffer) != before:
            self._history.append((before, ()))
        return [UpdateComposition(self.display)]

    def _continues_syllable(self, unit):
        if unit.unit_class is not UnitClass.CONSONANT:
            return False
        if self.state is ComposerState.STACK_EXPECTED:
            return True
        # Nga can close the syllable (-ng final)
        return unit.codepoint == NGA and not self._has_final()

    def _has_final(self):
        keys = self.normalizer.sort_keys(self._buffer)
        return any(weight == MyanmarNormalizer.FINAL for weight, _ in keys)

    def _starts_kinzi(self):
        # ... + nga + asat, with the nga not being the anchor itself
        return (len(self._buffer) > 2
                and self._buffer[-2].codepoint == NGA
                and self._buffer[-1].codepoint == ASAT)

    def _split_kinzi(self, unit):
        # Kinzi belongs to the following consonant's syllable
        head = self._buffer[:-2]
        committed = units_to_text(self.normalizer.reorder(head))
        self._clear()
        self._buffer = self.engine.feed_all([Unit(NGA), Unit(ASAT), unit])
        self._history = [((), ()), ((Unit(NGA),), ()), ((Unit(NGA), Unit(ASAT)), ())]
        logger.debug("Kinzi split, committed %r", committed)
        return [Commit(committed), UpdateComposition(self.display)]

    def _releases_final(self, unit):
        # An unkilled final nga followed by a vowel or medial starts the next syllable
        if len(self._buffer) < 2 or self._buffer[-1].codepoint != NGA:
            return False
        if unit.codepoint in (ASAT, DOT_BELOW, VIRAMA):
            return False
        keys = self.normalizer.sort_keys(self._buffer)
        return keys[-1][0] == MyanmarNormalizer.FINAL

    def _split_final(self, unit):
        nga = self._buffer[-1]
        committed = units_to_text(self.normalizer.reorder(self._buffer[:-1]))
        self._clear()
        self._buffer = [nga]
        self._history = [((), ())]
        logger.debug("Released final nga, committed %r", committed)
        return [Commit(committed)] + self._apply(unit)

    def _undid_stacked_consonant(self, current, previous):
        return (previous
                and len(current) == len(previous) + 1
                and current[:-1] == previous
                and previous[-1].codepoint == VIRAMA
                and current[-1].unit_class is UnitClass.CONSONANT)

    def _clear(self):
        self._buffer = []
        self._pending = []
        self._history = []


def committed_text(events):
    """Concatenate the text of every Commit in an event list."""
    return "".join(e.text for e in events if isinstance(e, Commit))


def compose(text, composer=None):
    """
    Type text through a composer and flush it. Returns the committed text.
    """
    composer = composer if composer is not None else SyllableComposer()
    events = composer.type_text(text)
    events.extend(composer.reset())
    return committed_text(events)
