from .classifier import MedialKind, Unit, UnitClass, classify
from .composer import (
    BACKSPACE,
    RESET,
    Boundary,
    Commit,
    ComposerState,
    SyllableComposer,
    UpdateComposition,
    compose,
    committed_text,
)
from .normalization import MyanmarNormalizer, normalize, reorder
from .rule_engine import PatternRule, RewriteEngine, RewriteResult, RuleTableError

__all__ = [
    "BACKSPACE",
    "RESET",
    "Boundary",
    "Commit",
    "ComposerState",
    "MedialKind",
    "MyanmarNormalizer",
    "PatternRule",
    "RewriteEngine",
    "RewriteResult",
    "RuleTableError",
    "SyllableComposer",
    "Unit",
    "UnitClass",
    "UpdateComposition",
    "classify",
    "compose",
    "committed_text",
    "normalize",
    "reorder",
]
