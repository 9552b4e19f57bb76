# docreview/services/sanitize.py
"""
Text rewrites that make raw model output more likely to parse as JSON.

Two passes over the text:

* ``conservative`` - boundary extraction, control-character stripping,
  whitespace and quote normalization, and undoing double encoding. Each of
  these steps leaves text that is already valid JSON untouched.
* ``aggressive`` - structural guesses (bare keys and values, missing and
  trailing commas, unclosed brackets). Only run when the first pass did not
  yield a usable object.

Every step is a pure ``str -> str`` function and never raises. The regular
expressions are all linear in the input length: negated character classes
bounded by structural characters, no nested quantifiers.
"""
from __future__ import annotations

import functools
import json
import logging
import re
from typing import Callable, List, Optional, Sequence, Tuple

log = logging.getLogger("sanitize")

Step = Callable[[str], str]

# A JSON string literal. The closing quote is optional so a truncated tail
# still counts as one literal.
_STRING = re.compile(r'"(?:[^"\\]|\\.)*("?)', re.DOTALL)
_STRING_OR_SPACE = re.compile(r'"(?:[^"\\]|\\.)*"?|\s+', re.DOTALL)
# Control characters were stripped in pass 1, so NUL cannot occur in real text.
_MASK = '"\x00"'
_MASK_RE = re.compile(re.escape(_MASK))

_CONTROL = re.compile("[\\x00-\\x08\\x0b\\x0c\\x0e-\\x1f\\ufeff]")
_RAW_BREAKS = re.compile(r"[\t\r\n]+")

_ALT_QUOTES = frozenset(
    "'"
    "‘’‚‛"  # curly single
    "“”„‟"  # curly double
    "＂＇"  # full-width
    "「」『』"  # corner brackets
)
_FULLWIDTH = {
    "：": ":",
    "，": ",",
    "｛": "{",
    "｝": "}",
    "［": "[",
    "］": "]",
}
_STRUCTURAL = frozenset(",:}]｝］")
# full-width separators are ordinary punctuation in CJK prose
_WIDE_SEPARATORS = frozenset("，：")
_VALUE_START = re.compile(r'[-\d"{\[}\]｛［｝］]|true\b|false\b|null\b')
# an ASCII apostrophe only opens a literal where a key or value can start
_OPENERS = frozenset("{[,:")

_DOUBLE_ENCODED = re.compile(r'\{\s*\\"')
_OVER_ESCAPED = re.compile(r'\\(["\\/]|[nrt])')

_BARE_KEY = re.compile(r'([{,}\]"]\s*)([^\W\d][\w$-]*)(\s*:)')
_BARE_VALUE = re.compile(r':([^"{}\[\],]*)')
_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_LITERALS = {"true": "true", "false": "false", "null": "null", "none": "null"}
_MISSING_COMMA = re.compile(r'(["}\]]|\d|\b(?:true|false|null))(\s*)(?=["{\[])')
_TRAILING_COMMA = re.compile(r",(\s*)(?=[}\]])")
_CLOSERS = {"{": "}", "[": "]"}


# --------------------------------------------------------------------
# Pass 1 - conservative
# --------------------------------------------------------------------
def find_object_bounds(text: str) -> Optional[Tuple[int, int]]:
    """(start, stop) slice from the first ``{`` through the last ``}``, or None."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return start, end + 1


def extract_object(text: str) -> str:
    """Drop everything outside the outermost braces (fences, prose)."""
    bounds = find_object_bounds(text)
    if bounds is None:
        return text
    return text[bounds[0]:bounds[1]]


def strip_control_chars(text: str) -> str:
    return _CONTROL.sub("", text)


def normalize_whitespace(text: str) -> str:
    """
    Collapse whitespace runs between tokens to one space. Inside string
    literals only raw line breaks and tabs (illegal in JSON) are replaced.
    """
    def _collapse(m: re.Match) -> str:
        token = m.group(0)
        if token.startswith('"'):
            return _RAW_BREAKS.sub(" ", token)
        return " "

    return _STRING_OR_SPACE.sub(_collapse, text).strip()


def _skip_space(text: str, k: int) -> int:
    n = len(text)
    while k < n and text[k].isspace():
        k += 1
    return k


def _closes_at(text: str, j: int) -> bool:
    # a quote ends a literal when the next token is structural (or the end);
    # a quote after a gap also counts, that is a missing comma for pass 2
    n = len(text)
    k = _skip_space(text, j)
    if k == n or text[k] in _STRUCTURAL:
        return True
    if text[k] in _WIDE_SEPARATORS:
        # “你好”，然后 stays inside the literal, “a”，“b” does not
        k = _skip_space(text, k + 1)
        return k == n or text[k] in _ALT_QUOTES or _VALUE_START.match(text, k) is not None
    return k > j and (text[k] == '"' or text[k] in _ALT_QUOTES)


def normalize_quotes(text: str) -> str:
    """
    Turn curly, full-width and single quotes used as delimiters into ``"``,
    map full-width structural punctuation to ASCII outside literals, and
    escape stray double quotes that sit inside a literal.
    """
    out: List[str] = []
    n = len(text)
    i = 0
    mode = None  # None outside literals, '"' for standard, 'alt' otherwise
    last = ""  # previous non-space character outside literals
    while i < n:
        ch = text[i]
        if mode is None:
            if ch == '"':
                out.append(ch)
                mode = '"'
            elif ch in _ALT_QUOTES and (ch != "'" or last in _OPENERS):
                out.append('"')
                mode = "alt"
            else:
                ch = _FULLWIDTH.get(ch, ch)
                out.append(ch)
                if not ch.isspace():
                    last = ch
        elif ch == "\\" and i + 1 < n:
            nxt = text[i + 1]
            out.append("'" if nxt == "'" else ch + nxt)
            i += 2
            continue
        elif ch == '"' or (mode == "alt" and ch in _ALT_QUOTES):
            if _closes_at(text, i + 1):
                out.append('"')
                mode = None
                last = '"'
            elif ch == '"':
                out.append('\\"')
            else:
                out.append(ch)
        else:
            out.append(ch)
        i += 1
    return "".join(out)


def unescape_double_encoded(text: str) -> str:
    """Undo one level of string encoding when the object arrives as ``{\\"key\\": ...}``."""
    if not _DOUBLE_ENCODED.match(text):
        return text

    def _unescape(m: re.Match) -> str:
        ch = m.group(1)
        return " " if ch in "nrt" else ch

    return _OVER_ESCAPED.sub(_unescape, text)


# --------------------------------------------------------------------
# Pass 2 - aggressive
# --------------------------------------------------------------------
def _mask_strings(text: str) -> Tuple[str, List[str]]:
    literals: List[str] = []

    def _stash(m: re.Match) -> str:
        literals.append(m.group(0))
        return _MASK

    return _STRING.sub(_stash, text), literals


def _unmask(text: str, literals: Sequence[str]) -> str:
    it = iter(literals)
    return _MASK_RE.sub(lambda m: next(it), text)


def _outside_strings(fn: Step) -> Step:
    """Run a rewrite with string literal contents hidden, then put them back."""
    @functools.wraps(fn)
    def wrapper(text: str) -> str:
        masked, literals = _mask_strings(text)
        return _unmask(fn(masked), literals)
    return wrapper


@_outside_strings
def quote_property_names(text: str) -> str:
    """
    ``{title: ...}`` -> ``{"title": ...}``. Also catches a bare key that
    directly follows a finished value, so the comma repair can see it.
    """
    return _BARE_KEY.sub(r'\1"\2"\3', text)


def _quote_value(m: re.Match) -> str:
    # a bare value runs up to the comma or closer; anything else follows a key
    if m.string[m.end():m.end() + 1] not in ("", ",", "}", "]"):
        return m.group(0)
    body = m.group(1)
    value = body.strip()
    if not value:
        return ": null"
    if _NUMBER.fullmatch(value):
        return m.group(0)
    literal = _LITERALS.get(value.lower())
    if literal == value:
        return m.group(0)
    lead = body[: len(body) - len(body.lstrip())]
    trail = body[len(body.rstrip()):]
    return ":" + lead + (literal or json.dumps(value, ensure_ascii=False)) + trail


@_outside_strings
def quote_bare_values(text: str) -> str:
    """
    ``"severity": error`` -> ``"severity": "error"``. The value runs to the next
    comma or closer, so ``"at": 10:30 sync`` keeps its colon. Numbers and
    literals stay.
    """
    return _BARE_VALUE.sub(_quote_value, text)


@_outside_strings
def repair_commas(text: str) -> str:
    """Insert the comma missing between a finished value and the next key or value."""
    return _MISSING_COMMA.sub(r"\1,\2", text)


@_outside_strings
def remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def balance_brackets(text: str) -> str:
    """
    Close a truncated tail: finish an open string literal, then append the
    closers still owed. Best effort only; the result may parse into the wrong
    shape, which validation catches.
    """
    masked, literals = _mask_strings(text)
    if literals and not _STRING.fullmatch(literals[-1]).group(1):
        literals[-1] += '"'

    stack: List[str] = []
    for ch in masked:
        if ch in _CLOSERS:
            stack.append(ch)
        elif ch in "}]" and stack and _CLOSERS[stack[-1]] == ch:
            stack.pop()

    if stack:
        masked = masked.rstrip().rstrip(",").rstrip()
        if masked.endswith(":"):
            masked += " null"
        masked += "".join(_CLOSERS[ch] for ch in reversed(stack))
    return _unmask(masked, literals)


# --------------------------------------------------------------------
# Passes
# --------------------------------------------------------------------
CONSERVATIVE_STEPS: Tuple[Tuple[str, Step], ...] = (
    ("extract_object", extract_object),
    ("strip_control_chars", strip_control_chars),
    ("normalize_whitespace", normalize_whitespace),
    ("normalize_quotes", normalize_quotes),
    ("unescape_double_encoded", unescape_double_encoded),
)

AGGRESSIVE_STEPS: Tuple[Tuple[str, Step], ...] = (
    ("quote_property_names", quote_property_names),
    ("quote_bare_values", quote_bare_values),
    ("repair_commas", repair_commas),
    ("remove_trailing_commas", remove_trailing_commas),
    ("balance_brackets", balance_brackets),
)


def _run(steps: Sequence[Tuple[str, Step]], text: str, logger: Optional[logging.Logger]) -> str:
    logger = logger or log
    for name, step in steps:
        out = step(text)
        if out != text:
            logger.debug("%s rewrote text (%d -> %d chars)", name, len(text), len(out))
        text = out
    return text


def conservative(text: str, logger: Optional[logging.Logger] = None) -> str:
    return _run(CONSERVATIVE_STEPS, text, logger)


def aggressive(text: str, logger: Optional[logging.Logger] = None) -> str:
    return _run(AGGRESSIVE_STEPS, text, logger)
