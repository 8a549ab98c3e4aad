"""
Template lexer.

Splits a template string into a flat sequence of segments: literal text,
output tags (`{{ expr }}`, `{{! expr }}`) and block tags (`{{if}}`,
`{{elif}}`, `{{else}}`, `{{endif}}`, `{{each}}`, `{{endeach}}`).
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .errors import ParseError
from .limits import TemplateLimits, check_expression_length

OPEN_TAG = "{{"
CLOSE_TAG = "}}"
RAW_FLAG = "!"

# Characters stripped from both ends of a tag body
_TRIM_CHARS = " \t\n\r\0\x0b"

_IF_RE = re.compile(r"if\s+(.+)", re.ASCII | re.DOTALL)
_ELIF_RE = re.compile(r"elif\s+(.+)", re.ASCII | re.DOTALL)
_EACH_RE = re.compile(r"each\s+(.+)", re.ASCII | re.DOTALL)


class SegmentType(Enum):
    """Segment types produced by the lexer."""

    TEXT = "TEXT"
    EXPRESSION = "EXPRESSION"
    RAW_EXPRESSION = "RAW_EXPRESSION"
    BLOCK_OPEN = "BLOCK_OPEN"
    BLOCK_CLOSE = "BLOCK_CLOSE"


@dataclass(frozen=True)
class Segment:
    """A classified unit of a template."""

    type: SegmentType
    content: str
    position: int
    keyword: Optional[str] = None


class Lexer:
    """Lexer for template strings."""

    def __init__(self, template: str, limits: Optional[TemplateLimits] = None):
        self._template = template
        self._limits = limits
        self._position = 0
        self._segments: List[Segment] = []

    def tokenize(self) -> List[Segment]:
        """Splits the template into segments."""
        self._position = 0
        self._segments = []
        template = self._template
        length = len(template)

        while self._position < length:
            start = template.find(OPEN_TAG, self._position)

            if start == -1:
                self._add_text(template[self._position :], self._position)
                break

            if start > self._position:
                self._add_text(template[self._position : start], self._position)

            body_start = start + len(OPEN_TAG)
            is_raw = template.startswith(RAW_FLAG, body_start)
            if is_raw:
                body_start += len(RAW_FLAG)

            end = self._find_closing_tag(body_start)
            if end == -1:
                raise ParseError("Unclosed expression: missing }}", start, template)

            body = template[body_start:end].strip(_TRIM_CHARS)
            check_expression_length(body, self._limits, start, template)

            self._segments.append(self._classify(body, is_raw, start))
            self._position = end + len(CLOSE_TAG)

        return self._segments

    def _add_text(self, text: str, position: int) -> None:
        if text:
            self._segments.append(Segment(SegmentType.TEXT, text, position))

    def _find_closing_tag(self, start: int) -> int:
        """Finds the closing `}}`, treating double-quoted strings as opaque."""
        template = self._template
        length = len(template)
        pos = start

        while pos < length - 1:
            ch = template[pos]

            if ch == '"':
                pos = self._skip_string(pos)
                continue

            if ch == "}" and template[pos + 1] == "}":
                return pos

            pos += 1

        return -1

    def _skip_string(self, pos: int) -> int:
        """Returns the position just past the string literal starting at pos."""
        template = self._template
        length = len(template)
        pos += 1

        while pos < length:
            ch = template[pos]
            if ch == "\\":
                pos += 2
                continue
            if ch == '"':
                return pos + 1
            pos += 1

        return pos

    @staticmethod
    def _classify(body: str, is_raw: bool, position: int) -> Segment:
        match = _IF_RE.fullmatch(body)
        if match:
            return Segment(
                SegmentType.BLOCK_OPEN, match.group(1).strip(_TRIM_CHARS), position, "if"
            )

        match = _ELIF_RE.fullmatch(body)
        if match:
            return Segment(
                SegmentType.BLOCK_OPEN,
                match.group(1).strip(_TRIM_CHARS),
                position,
                "elif",
            )

        if body == "else":
            return Segment(SegmentType.BLOCK_OPEN, "", position, "else")

        if body == "endif":
            return Segment(SegmentType.BLOCK_CLOSE, "", position, "endif")

        match = _EACH_RE.fullmatch(body)
        if match:
            return Segment(
                SegmentType.BLOCK_OPEN,
                match.group(1).strip(_TRIM_CHARS),
                position,
                "each",
            )

        if body == "endeach":
            return Segment(SegmentType.BLOCK_CLOSE, "", position, "endeach")

        if is_raw:
            return Segment(SegmentType.RAW_EXPRESSION, body, position)

        return Segment(SegmentType.EXPRESSION, body, position)


def lex(template: str, limits: Optional[TemplateLimits] = None) -> List[Segment]:
    """
    Splits a template string into segments.

    Args:
        template: The template source
        limits: Optional template limits

    Returns:
        List of segments in template order

    Raises:
        ParseError: If a tag is never closed or a tag body is too long
    """
    lexer = Lexer(template, limits)
    return lexer.tokenize()


def has_expressions(template: str) -> bool:
    """Checks whether a template contains any tag at all."""
    return OPEN_TAG in template
