"""
Resource limits for template parsing and rendering.

These limits protect the host process against malformed or malicious
templates: every render is bounded in expression size, nesting, loop
iterations, function call depth and output size.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ParseError


class TemplateLimits(BaseModel):
    """Template limits configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    # Maximum length of a single tag body in characters
    max_expression_length: int = Field(
        default=2000, gt=0, alias="maxExpressionLength"
    )

    # Maximum nesting of parentheses, `not` and call arguments in one expression
    max_expression_depth: int = Field(default=32, gt=0, alias="maxExpressionDepth")

    # Maximum nesting of if/each blocks (shared budget)
    max_nesting_depth: int = Field(default=10, gt=0, alias="maxNestingDepth")

    # Maximum loop iterations across a whole render
    max_loop_iterations: int = Field(default=1000, gt=0, alias="maxLoopIterations")

    # Maximum depth of nested function calls
    max_function_call_depth: int = Field(
        default=5, gt=0, alias="maxFunctionCallDepth"
    )

    # Maximum rendered output in UTF-8 bytes
    max_output_size: int = Field(default=1_048_576, gt=0, alias="maxOutputSize")


# Default template limits.
DEFAULT_TEMPLATE_LIMITS = TemplateLimits()


def check_expression_length(
    expression: str,
    limits: Optional[TemplateLimits] = None,
    position: Optional[int] = None,
    source: Optional[str] = None,
) -> None:
    """Validates that an expression body is within the length limit."""
    limits = limits or DEFAULT_TEMPLATE_LIMITS
    if len(expression) > limits.max_expression_length:
        raise ParseError(
            "Expression exceeds maximum length of "
            f"{limits.max_expression_length} characters",
            position,
            source,
        )


def check_expression_depth(
    depth: int,
    limits: Optional[TemplateLimits] = None,
    position: Optional[int] = None,
    source: Optional[str] = None,
) -> None:
    """Validates expression nesting during parsing."""
    limits = limits or DEFAULT_TEMPLATE_LIMITS
    if depth > limits.max_expression_depth:
        raise ParseError(
            f"Expression nesting depth {depth} exceeds limit of "
            f"{limits.max_expression_depth}",
            position,
            source,
        )


def check_nesting_depth(
    depth: int,
    limits: Optional[TemplateLimits] = None,
    position: Optional[int] = None,
    source: Optional[str] = None,
) -> None:
    """Validates if/each block nesting during parsing."""
    limits = limits or DEFAULT_TEMPLATE_LIMITS
    if depth > limits.max_nesting_depth:
        raise ParseError(
            f"Maximum nesting depth of {limits.max_nesting_depth} exceeded",
            position,
            source,
        )
