"""
Block parser for templates.

Consumes the lexer's segment stream and builds a template AST, parsing
each tag expression with the expression parser. Block structure is
validated here, before any rendering happens:

- `if` bodies stop (without consuming) at `elif`, `else` or `endif`.
- `each` bodies stop at `endeach`, which is consumed.
- if/each nesting is bounded by `max_nesting_depth`.
"""

import re
from typing import List, Optional

from .ast import (
    AstNode,
    EachNode,
    ElifClause,
    IfNode,
    OutputNode,
    RawOutputNode,
    TemplateChild,
    TemplateNode,
    TextNode,
)
from .errors import ParseError
from .functions import FunctionRegistry
from .lexer import Segment, SegmentType
from .limits import DEFAULT_TEMPLATE_LIMITS, TemplateLimits, check_nesting_depth
from .parser import parse_expression

_EACH_SYNTAX_RE = re.compile(r"(\w+)\s+in\s+(.+)", re.ASCII | re.DOTALL)


class TemplateParser:
    """Parser turning lexer segments into a TemplateNode."""

    def __init__(
        self,
        segments: List[Segment],
        functions: Optional[FunctionRegistry] = None,
        limits: TemplateLimits = DEFAULT_TEMPLATE_LIMITS,
        source: Optional[str] = None,
    ):
        self._segments = segments
        self._source = source
        self._functions = functions if functions is not None else FunctionRegistry()
        self._limits = limits
        self._current = 0
        self._depth = 0

    def parse(self) -> TemplateNode:
        """Parses all segments into a template AST."""
        children = self._parse_body(None)
        return TemplateNode(children=tuple(children))

    # ============================================================
    # Segment Helpers
    # ============================================================

    def _is_at_end(self) -> bool:
        return self._current >= len(self._segments)

    def _peek(self) -> Segment:
        return self._segments[self._current]

    def _advance(self) -> Segment:
        segment = self._segments[self._current]
        self._current += 1
        return segment

    def _check_keyword(self, segment_type: SegmentType, keyword: str) -> bool:
        if self._is_at_end():
            return False
        segment = self._peek()
        return segment.type == segment_type and segment.keyword == keyword

    def _expression(self, source: str) -> AstNode:
        return parse_expression(source, self._functions, self._limits)

    def _enter_block(self, segment: Segment) -> None:
        self._depth += 1
        check_nesting_depth(self._depth, self._limits, segment.position, self._source)

    def _error(self, message: str, position: Optional[int] = None) -> ParseError:
        return ParseError(message, position, self._source)

    def _leave_block(self) -> None:
        self._depth -= 1

    # ============================================================
    # Body Parsing
    # ============================================================

    def _parse_body(
        self, stop_at: Optional[str], opened_at: Optional[int] = None
    ) -> List[TemplateChild]:
        """
        Parses nodes until the closing keyword of the enclosing block.

        stop_at is "endif", "endeach" or None for the top level. The stop
        segment (and elif/else inside an if) is left unconsumed.
        """
        nodes: List[TemplateChild] = []

        while not self._is_at_end():
            segment = self._peek()

            if segment.type == SegmentType.TEXT:
                nodes.append(TextNode(content=segment.content))
                self._advance()
                continue

            if segment.type == SegmentType.EXPRESSION:
                nodes.append(OutputNode(expr=self._expression(segment.content)))
                self._advance()
                continue

            if segment.type == SegmentType.RAW_EXPRESSION:
                nodes.append(RawOutputNode(expr=self._expression(segment.content)))
                self._advance()
                continue

            if segment.type == SegmentType.BLOCK_CLOSE:
                if segment.keyword == stop_at:
                    return nodes
                expected = f" (expected {stop_at})" if stop_at else ""
                raise self._error(
                    f"Unexpected closing tag: {segment.keyword}{expected}",
                    segment.position,
                )

            keyword = segment.keyword

            if keyword in ("elif", "else"):
                if stop_at == "endif":
                    return nodes
                raise self._error(
                    f"Unexpected {keyword} without matching if", segment.position
                )

            if keyword == "if":
                nodes.append(self._parse_if())
                continue

            if keyword == "each":
                nodes.append(self._parse_each())
                continue

            raise self._error(f"Unknown block keyword: {keyword}", segment.position)

        if stop_at is not None:
            raise self._error(f"Unclosed block: expected {stop_at}", opened_at)

        return nodes

    def _parse_if(self) -> IfNode:
        """Parses an if/elif/else/endif structure."""
        opening = self._advance()
        self._enter_block(opening)

        condition = self._expression(opening.content)
        body = self._parse_body("endif", opening.position)

        elif_clauses: List[ElifClause] = []
        else_body: Optional[List[TemplateChild]] = None

        # _parse_body returned at elif, else or endif
        while self._check_keyword(SegmentType.BLOCK_OPEN, "elif"):
            elif_condition = self._expression(self._advance().content)
            elif_body = self._parse_body("endif", opening.position)
            elif_clauses.append(
                ElifClause(condition=elif_condition, body=tuple(elif_body))
            )

        if self._check_keyword(SegmentType.BLOCK_OPEN, "else"):
            self._advance()
            else_body = self._parse_body("endif", opening.position)
            if not self._check_keyword(SegmentType.BLOCK_CLOSE, "endif"):
                segment = self._peek()
                raise self._error(
                    f"Unexpected {segment.keyword} after else", segment.position
                )

        self._advance()  # consume endif
        self._leave_block()

        return IfNode(
            condition=condition,
            body=tuple(body),
            elif_clauses=tuple(elif_clauses),
            else_body=tuple(else_body) if else_body is not None else None,
        )

    def _parse_each(self) -> EachNode:
        """Parses an each/endeach structure."""
        opening = self._advance()
        self._enter_block(opening)

        match = _EACH_SYNTAX_RE.fullmatch(opening.content)
        if not match:
            raise self._error(
                "Invalid each syntax: expected 'variable in expression'",
                opening.position,
            )

        variable_name = match.group(1)
        iterable = self._expression(match.group(2).strip())

        body = self._parse_body("endeach", opening.position)
        self._advance()  # consume endeach
        self._leave_block()

        return EachNode(
            variable_name=variable_name, iterable=iterable, body=tuple(body)
        )


def parse_template(
    segments: List[Segment],
    functions: Optional[FunctionRegistry] = None,
    limits: TemplateLimits = DEFAULT_TEMPLATE_LIMITS,
    source: Optional[str] = None,
) -> TemplateNode:
    """
    Parses lexer segments into a template AST.

    Args:
        segments: Segments produced by the lexer
        functions: Registry used to validate function names
        limits: Optional template limits
        source: Template source attached to block errors

    Returns:
        The template AST

    Raises:
        ParseError: On malformed blocks or expressions
    """
    parser = TemplateParser(segments, functions, limits, source)
    return parser.parse()
