"""
Error types for the template interpreter.

Everything raised by lexing, parsing or rendering extends ExpressionError,
so a host can catch a single type at its render boundary:

- ParseError: the template is rejected before any output is produced.
- LimitExceededError: a render ran out of one of its resource budgets.
- EvaluationError: any other runtime failure, such as a failing function.

Errors carry the offending source and an offset into it. For expression
errors the source is the tag body; for lexer and block errors it is the
whole template, which may span many lines.
"""

from typing import Optional, Tuple


class ExpressionError(Exception):
    """
    Base error class for all template and expression errors.
    """

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.expression = expression

    def line_and_column(self) -> Optional[Tuple[int, int]]:
        """1-based line and column of the error position, if known."""
        if self.expression is None or self.position is None:
            return None
        line = self.expression.count("\n", 0, self.position) + 1
        column = self.position - (self.expression.rfind("\n", 0, self.position) + 1) + 1
        return line, column

    def format_with_context(self) -> str:
        """
        Returns the message followed by the offending source line and a caret.

        Multi-line sources are reduced to the line holding the position.
        """
        location = self.line_and_column()
        if location is None:
            return self.message

        line, column = location
        lines = self.expression.split("\n")
        source_line = lines[line - 1]
        pointer = " " * (column - 1) + "^"

        if len(lines) > 1:
            header = f"{self.message} (line {line}, column {column})"
        else:
            header = self.message
        return f"{header}\n  {source_line}\n  {pointer}"


class ParseError(ExpressionError):
    """Template or expression rejected at compile time."""


class TokenizerError(ParseError):
    """Invalid character or literal inside a tag expression."""


class EvaluationError(ExpressionError):
    """Runtime failure while rendering a parsed template."""


class LimitExceededError(ExpressionError):
    """
    A render exceeded one of its resource limits.

    limit_name is one of loop_iterations, nesting_depth,
    function_call_depth or output_size.
    """

    def __init__(self, limit_name: str, limit: int, actual: int):
        super().__init__(
            f"Limit exceeded: {limit_name} (limit: {limit}, actual: {actual})"
        )
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual


class FunctionError(EvaluationError):
    """A registered function raised while being called from a template."""

    def __init__(
        self,
        function_name: str,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f"{function_name}: {message}", position, expression)
        self.function_name = function_name
