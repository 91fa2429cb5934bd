import pytest

from myanmar_composer import (
    BACKSPACE,
    RESET,
    Boundary,
    Commit,
    ComposerState,
    RewriteEngine,
    SyllableComposer,
    Unit,
    UpdateComposition,
    committed_text,
    compose,
)

KA = "က"
KHA = "ခ"
GA = "ဂ"
NGA = "င"
SA = "သ"
TA = "တ"
A = "အ"
LETTER_I = "ဣ"
YA = "ျ"
RA = "ြ"
SIGN_I = "ိ"
AA = "ာ"
TALL_AA = "ါ"
E = "ေ"
VISARGA = "း"
VIRAMA = "္"
ASAT = "်"


@pytest.fixture(scope="module")
def engine():
    return RewriteEngine()


@pytest.fixture
def composer(engine):
    return SyllableComposer(engine)


class TestStartingSyllables:
    def test_initial_state(self, composer):
        assert composer.state is ComposerState.EMPTY
        assert composer.is_empty
        assert composer.display == ""

    def test_anchor_starts_composition(self, composer):
        assert composer.type_unit(KA) == [UpdateComposition(KA)]
        assert composer.state is ComposerState.COMPOSING
        assert composer.buffer == (Unit(KA),)

    def test_floating_pre_base_vowel_is_invisible(self, composer):
        assert composer.type_unit(E) == []
        assert composer.pending == (Unit(E),)
        assert composer.display == ""
        assert composer.state is ComposerState.EMPTY
        assert not composer.is_empty

        assert composer.type_unit(KA) == [UpdateComposition(KA + E)]
        assert composer.pending == ()

    def test_floating_duplicates_ignored(self, composer):
        composer.type_unit(E)
        composer.type_unit(E)
        assert composer.pending == (Unit(E),)

    def test_only_successive_floating_duplicates_ignored(self, composer):
        composer.type_text(E + RA + E)
        assert composer.pending == (Unit(E), Unit(RA), Unit(E))

    def test_floating_vowel_sign_joins_anchor(self, composer):
        assert composer.type_unit(SIGN_I) == []
        assert composer.type_unit(KA) == [UpdateComposition(KA + SIGN_I)]

    def test_accepts_codepoints_and_units(self, composer):
        composer.type_unit(0x1000)
        composer.type_unit(Unit(SIGN_I))
        assert composer.display == KA + SIGN_I


class TestBoundaries:
    def test_second_consonant_commits(self, composer):
        composer.type_unit(KA)
        assert composer.type_unit(KHA) == [Commit(KA), UpdateComposition(KHA)]

    def test_independent_vowel_commits(self, composer):
        composer.type_unit(KA)
        assert composer.type_unit(LETTER_I) == [Commit(KA), UpdateComposition(LETTER_I)]

    def test_space_commits_syllable_then_space(self, composer):
        composer.type_text(KA + SIGN_I)
        assert composer.type_unit(" ") == [Commit(KA + SIGN_I), Commit(" ")]
        assert composer.is_empty

    def test_boundary_signal(self, composer):
        composer.type_unit(KA)
        assert composer.feed(Boundary("။")) == [Commit(KA), Commit("။")]
        assert composer.feed(Boundary()) == [Commit(" ")]

    def test_boundary_drops_floating_marks(self, composer):
        composer.type_unit(E)
        assert composer.boundary() == [Commit(" ")]
        assert composer.pending == ()

    def test_other_text_committed_as_literal(self, composer):
        composer.type_unit(KA)
        assert composer.type_unit("a") == [Commit(KA), Commit("a")]

    def test_stack_continues_syllable(self, composer):
        composer.type_text(SA)
        assert composer.type_unit(VIRAMA) == [UpdateComposition(SA + VIRAMA)]
        assert composer.state is ComposerState.STACK_EXPECTED
        assert composer.type_unit(TA) == [UpdateComposition(SA + VIRAMA + TA)]
        assert composer.state is ComposerState.COMPOSING

    def test_asat_keeps_composing(self, composer):
        composer.type_text(KA + NGA)
        composer.type_unit(ASAT)
        assert composer.state is ComposerState.COMPOSING

    def test_nga_final_absorbed(self, composer):
        composer.type_unit(KA)
        assert composer.type_unit(NGA) == [UpdateComposition(KA + NGA)]
        composer.type_text(ASAT + VISARGA)
        assert composer.display == KA + NGA + ASAT + VISARGA

    def test_second_nga_after_final_commits(self, composer):
        composer.type_text(KA + NGA + ASAT)
        assert composer.type_unit(NGA) == [Commit(KA + NGA + ASAT), UpdateComposition(NGA)]

    def test_unkilled_nga_released_by_vowel(self, composer):
        composer.type_text(KA + NGA)
        assert composer.type_unit(AA) == [Commit(KA), UpdateComposition(NGA + AA)]

    def test_kinzi_moves_to_next_syllable(self, composer):
        composer.type_text(A + NGA + ASAT)
        events = composer.type_unit(VIRAMA)
        assert events == [Commit(A), UpdateComposition(NGA + ASAT + VIRAMA)]
        assert composer.state is ComposerState.STACK_EXPECTED
        assert composer.type_unit(GA) == [UpdateComposition(NGA + ASAT + VIRAMA + GA)]

    def test_killed_consonant_promoted_to_stack(self, composer):
        composer.type_text(SA + TA)
        # ta started its own syllable
        assert composer.display == TA
        composer.type_text(ASAT + VIRAMA)
        assert composer.display == TA + VIRAMA
        assert composer.state is ComposerState.STACK_EXPECTED


class TestBackspace:
    def test_undo_last_unit(self, composer):
        composer.type_text(KA + SIGN_I)
        assert composer.backspace() == [UpdateComposition(KA)]
        assert composer.backspace() == [UpdateComposition("")]
        assert composer.state is ComposerState.EMPTY

    def test_nothing_to_delete(self, composer):
        assert composer.backspace() == []
        assert composer.feed(BACKSPACE) == []

    def test_stacked_consonant_removed_with_virama(self, composer):
        composer.type_text(SA + VIRAMA + TA)
        assert composer.backspace() == [UpdateComposition(SA)]
        assert composer.state is ComposerState.COMPOSING

    def test_pending_mark_removed_silently(self, composer):
        composer.type_unit(E)
        assert composer.backspace() == []
        assert composer.pending == ()
        assert composer.is_empty

    def test_duplicate_mark_does_not_add_history(self, composer):
        composer.type_text(KA + SIGN_I + SIGN_I)
        assert composer.display == KA + SIGN_I
        assert composer.backspace() == [UpdateComposition(KA)]

    def test_deleting_anchor_floats_earlier_marks_again(self, composer):
        composer.type_text(E + RA + KA)
        assert composer.buffer == (Unit(KA), Unit(RA), Unit(E))
        assert composer.backspace() == [UpdateComposition("")]
        assert composer.buffer == ()
        assert composer.pending == (Unit(E), Unit(RA))
        assert composer.backspace() == []
        assert composer.pending == (Unit(E),)
        assert composer.type_unit(KA) == [UpdateComposition(KA + E)]

    def test_undo_restores_earlier_order(self, composer):
        composer.type_text(KA + E)
        assert composer.type_unit(YA) == [UpdateComposition(KA + YA + E)]
        assert composer.backspace() == [UpdateComposition(KA + E)]


class TestReset:
    def test_reset_commits_buffer(self, composer):
        composer.type_unit(KA)
        assert composer.reset() == [Commit(KA)]
        assert composer.is_empty

    def test_reset_empty(self, composer):
        assert composer.feed(RESET) == []

    def test_reset_forgets_pending(self, composer):
        composer.type_unit(E)
        assert composer.reset() == []
        assert composer.pending == ()


def test_feed_dispatches_units(composer):
    assert composer.feed(KA) == [UpdateComposition(KA)]
    assert composer.feed(0x102D) == [UpdateComposition(KA + SIGN_I)]


def test_composers_do_not_share_state(engine):
    first = SyllableComposer(engine)
    second = SyllableComposer(engine)
    first.type_unit(KA)
    assert second.is_empty
    assert second.type_unit(E) == []
    assert first.display == KA


def test_type_text_collects_events(composer):
    events = composer.type_text(KA + " " + KHA)
    assert events == [
        UpdateComposition(KA),
        Commit(KA),
        Commit(" "),
        UpdateComposition(KHA),
    ]
    assert [type(e) for e in events] == [UpdateComposition, Commit, Commit, UpdateComposition]
    assert committed_text(events) == KA + " "


def test_compose_helper():
    assert compose(E + KA + " " + KA + TALL_AA + AA) == KA + E + " " + KA + TALL_AA
    assert compose("") == ""
