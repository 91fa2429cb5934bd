import json
import logging
import os
import re
from collections import namedtuple

from .classifier import MedialKind, Unit, UnitClass

logger = logging.getLogger(__name__)

DEFAULT_RULE_PATH = os.path.join(os.path.dirname(__file__), "rules.json")

_CODEPOINT_RE = re.compile(r"^(?:U\+?|0x)([0-9A-Fa-f]{4,6})$")
_REF_RE = re.compile(r"^\$(\d+)$")

QUANTIFIERS = {
    None: (1, 1),
    "?": (0, 1),
    "*": (0, None),
    "+": (1, None),
}


class RuleTableError(ValueError):
    """Raised while loading a rule table that cannot be used."""


RewriteResult = namedtuple("RewriteResult", ["consumed", "replacement", "rule"])


def parse_codepoint(spec):
    """
    Accepts "U+1031", "U1031", "0x1031", a single character or an int.
    """
    if isinstance(spec, int) and not isinstance(spec, bool):
        if 0 <= spec <= 0x10FFFF:
            return spec
        raise RuleTableError(f"Code point out of range: {spec}")
    if not isinstance(spec, str) or not spec:
        raise RuleTableError(f"Invalid code point: {spec!r}")
    if len(spec) == 1:
        return ord(spec)
    m = _CODEPOINT_RE.match(spec)
    if not m:
        raise RuleTableError(f"Invalid code point: {spec!r}")
    value = int(m.group(1), 16)
    if value > 0x10FFFF:
        raise RuleTableError(f"Code point out of range: {spec!r}")
    return value


class Matcher(namedtuple("Matcher", ["kind", "value", "capture", "min", "max"])):
    """
    One element of a rule's left-hand side.

    kind is "literal" (code point), "class" (frozenset of UnitClass plus an
    optional MedialKind), "range" (inclusive code point pair), "any_of"
    (frozenset of code points) or "same_as" (capture number).
    """

    __slots__ = ()

    def accepts(self, unit):
        code = unit.codepoint
        if self.kind == "literal":
            return code == self.value
        if self.kind == "class":
            classes, kind = self.value
            if unit.unit_class not in classes:
                return False
            return kind is None or unit.medial_kind == kind
        if self.kind == "range":
            low, high = self.value
            return low <= code <= high
        if self.kind == "any_of":
            return code in self.value
        return False


class PatternRule(namedtuple("PatternRule", ["name", "priority", "band", "matchers", "replacement", "anchored"])):
    """
    Immutable rewrite rule. replacement holds Units and capture numbers (ints).
    A replacement of None means "keep": the window is consumed unchanged.
    """

    __slots__ = ()

    def match(self, seq):
        """
        Match the rule against the trailing window of seq.
        Returns (window_length, captures) or None. Longer windows win.
        """
        n = len(seq)
        starts = [0] if self.anchored else range(0, n)
        for start in starts:
            captures = self._match_from(seq, 0, start, {})
            if captures is not None:
                return n - start, captures
        return None

    def _match_from(self, seq, mi, pos, captures):
        n = len(seq)
        if mi == len(self.matchers):
            return captures if pos == n else None

        matcher = self.matchers[mi]
        capture_id = self._capture_id(mi)

        if matcher.kind == "same_as":
            bound = captures.get(matcher.value, ())
            size = len(bound)
            if size == 0 or tuple(seq[pos:pos + size]) != bound:
                return None
            return self._bind_and_continue(seq, mi, pos, size, captures, capture_id)

        # Greedy: longest run first
        limit = n - pos if matcher.max is None else min(matcher.max, n - pos)
        run = 0
        while run < limit and matcher.accepts(seq[pos + run]):
            run += 1
        for size in range(run, matcher.min - 1, -1):
            result = self._bind_and_continue(seq, mi, pos, size, captures, capture_id)
            if result is not None:
                return result
        return None

    def _bind_and_continue(self, seq, mi, pos, size, captures, capture_id):
        if capture_id is not None:
            captures = dict(captures)
            captures[capture_id] = tuple(seq[pos:pos + size])
        return self._match_from(seq, mi + 1, pos + size, captures)

    def _capture_id(self, mi):
        if not self.matchers[mi].capture:
            return None
        return sum(1 for m in self.matchers[:mi + 1] if m.capture)

    def render(self, window, captures):
        if self.replacement is None:
            return list(window)
        output = []
        for item in self.replacement:
            if isinstance(item, int):
                output.extend(captures[item])
            else:
                output.append(item)
        return output


class RewriteEngine:
    def __init__(self, rule_path=None, rules=None):
        """
        Initialize the rewrite engine.
        :param rule_path: JSON rule table. Defaults to the rules.json shipped with the package.
        :param rules: Already-parsed list of rule dicts; takes precedence over rule_path.
        """
        if rules is None:
            rule_path = rule_path or DEFAULT_RULE_PATH
            rules = self._read_rule_file(rule_path)
        self.rule_path = rule_path
        self.rules = self._load_and_compile_rules(rules)
        logger.info("Loaded %d rewrite rules", len(self.rules))

    def _read_rule_file(self, path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise RuleTableError(f"Cannot read rule table {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise RuleTableError(f"Rule table {path} is not valid JSON: {e}") from e
        if not isinstance(data, list):
            raise RuleTableError(f"Rule table {path} must be a JSON list")
        return data

    def _load_and_compile_rules(self, rules):
        compiled_rules = []
        seen = set()
        for index, rule in enumerate(rules):
            compiled = compile_rule(rule, index)
            if compiled.name in seen:
                raise RuleTableError(f"Duplicate rule name '{compiled.name}'")
            seen.add(compiled.name)
            compiled_rules.append(compiled)

        # Sort by priority desc, file order breaks ties
        compiled_rules.sort(key=lambda r: r.priority, reverse=True)
        return tuple(compiled_rules)

    def apply(self, buffer, incoming):
        """
        Tentatively append incoming to buffer and try every rule.
        Returns RewriteResult (consumed = units of buffer replaced) or None
        when the unit should simply be appended.
        """
        incoming = incoming if isinstance(incoming, Unit) else Unit(incoming)
        seq = [u if isinstance(u, Unit) else Unit(u) for u in buffer]
        seq.append(incoming)

        for rule in self.rules:
            found = rule.match(seq)
            if found is None:
                continue
            length, captures = found
            window = seq[len(seq) - length:]
            replacement = rule.render(window, captures)
            logger.debug("Rule '%s' rewrote %s -> %s", rule.name,
                         _hex(window), _hex(replacement))
            return RewriteResult(length - 1, replacement, rule)

        return None

    def feed(self, buffer, incoming):
        """Return the buffer after incoming has been applied."""
        buffer = [u if isinstance(u, Unit) else Unit(u) for u in buffer]
        result = self.apply(buffer, incoming)
        if result is None:
            return buffer + [incoming if isinstance(incoming, Unit) else Unit(incoming)]
        return buffer[:len(buffer) - result.consumed] + list(result.replacement)

    def feed_all(self, units, buffer=()):
        buffer = list(buffer)
        for unit in units:
            buffer = self.feed(buffer, unit)
        return buffer

    def rules_in_band(self, band):
        return [r for r in self.rules if r.band == band]


def compile_rule(rule, index=0):
    """Validate one rule dict and build a PatternRule. Raises RuleTableError."""
    if not isinstance(rule, dict):
        raise RuleTableError(f"Rule #{index} must be an object")
    name = rule.get("name") or f"rule_{index}"

    def fail(msg):
        raise RuleTableError(f"Rule '{name}': {msg}")

    priority = rule.get("priority", 0)
    if isinstance(priority, bool) or not isinstance(priority, int):
        fail(f"priority must be an integer, got {priority!r}")

    specs = rule.get("match")
    if not isinstance(specs, list) or not specs:
        fail("'match' must be a non-empty list")

    matchers = []
    capture_count = 0
    for spec in specs:
        try:
            matcher = _compile_matcher(spec, capture_count)
        except RuleTableError as e:
            fail(str(e))
        if matcher.capture:
            capture_count += 1
        matchers.append(matcher)

    action = rule.get("action", "replace")
    if action == "keep":
        if "replace" in rule:
            fail("'keep' rules take no replacement")
        replacement = None
    elif action == "replace":
        items = rule.get("replace")
        if not isinstance(items, list):
            fail("'replace' must be a list")
        replacement = []
        for item in items:
            ref = _REF_RE.match(item) if isinstance(item, str) else None
            if ref:
                group = int(ref.group(1))
                if not 1 <= group <= capture_count:
                    fail(f"replacement refers to ${group} but only {capture_count} capture(s) are defined")
                replacement.append(group)
            else:
                try:
                    replacement.append(Unit(parse_codepoint(item)))
                except RuleTableError as e:
                    fail(str(e))
        replacement = tuple(replacement)
    else:
        fail(f"unknown action {action!r}")

    return PatternRule(
        name=name,
        priority=priority,
        band=rule.get("band", "default"),
        matchers=tuple(matchers),
        replacement=replacement,
        anchored=bool(rule.get("anchored", False)),
    )


def _compile_matcher(spec, captures_so_far):
    if not isinstance(spec, dict):
        raise RuleTableError(f"matcher must be an object, got {spec!r}")

    repeat = spec.get("repeat")
    if repeat not in QUANTIFIERS:
        raise RuleTableError(f"unknown repeat {repeat!r}")
    low, high = QUANTIFIERS[repeat]
    capture = bool(spec.get("capture", False))

    kinds = [k for k in ("literal", "class", "range", "any_of", "same_as") if k in spec]
    if len(kinds) != 1:
        raise RuleTableError(f"matcher needs exactly one of literal/class/range/any_of/same_as: {spec!r}")
    kind = kinds[0]
    raw = spec[kind]

    if kind == "literal":
        value = parse_codepoint(raw)
    elif kind == "class":
        names = raw if isinstance(raw, list) else [raw]
        classes = set()
        for class_name in names:
            try:
                classes.add(UnitClass(class_name))
            except ValueError:
                raise RuleTableError(f"unknown class {class_name!r}") from None
        medial = spec.get("kind")
        if medial is not None:
            try:
                medial = MedialKind[str(medial).upper()]
            except KeyError:
                raise RuleTableError(f"unknown medial kind {spec['kind']!r}") from None
        value = (frozenset(classes), medial)
    elif kind == "range":
        if not isinstance(raw, list) or len(raw) != 2:
            raise RuleTableError(f"range needs [low, high]: {raw!r}")
        low_cp, high_cp = parse_codepoint(raw[0]), parse_codepoint(raw[1])
        if low_cp > high_cp:
            raise RuleTableError(f"empty range {raw!r}")
        value = (low_cp, high_cp)
    elif kind == "any_of":
        if not isinstance(raw, list) or not raw:
            raise RuleTableError(f"any_of needs a non-empty list: {raw!r}")
        value = frozenset(parse_codepoint(c) for c in raw)
    else:
        if repeat is not None:
            raise RuleTableError("same_as cannot repeat")
        if isinstance(raw, bool) or not isinstance(raw, int) or not 1 <= raw <= captures_so_far:
            raise RuleTableError(f"same_as refers to capture {raw!r} which is not defined before it")
        value = raw

    return Matcher(kind, value, capture, low, high)


def _hex(units):
    return [f"{u.codepoint:04X}" for u in units]
