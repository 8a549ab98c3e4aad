"""
Template engine facade.

Wires the lexer, block parser and evaluator together behind the small
surface used by the embedding application:

- has_expressions(template): cheap check to skip static templates
- register(name, fn): install functions at start-up
- render(template, data): lex, parse and evaluate

Errors are never swallowed by render(); the host catches them at its
render boundary. try_render() returns an explicit RenderResult instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .ast import (
    TemplateNode,
    calculate_ast_depth,
    calculate_block_depth,
    count_template_nodes,
    iter_template_expressions,
)
from .block_parser import parse_template
from .config import TemplateEngineConfig, normalize_config
from .errors import ExpressionError, LimitExceededError
from .evaluator import Evaluator, RenderContext
from .functions import FunctionRegistry, TemplateFunction
from .lexer import has_expressions as _has_expressions
from .lexer import lex
from .limits import DEFAULT_TEMPLATE_LIMITS, TemplateLimits

logger = logging.getLogger("stencil.expr.engine")


@dataclass
class RenderResult:
    """Result of a render with explicit success information."""

    output: str
    """The rendered output, empty on failure."""

    success: bool
    """Whether rendering succeeded."""

    error: Optional[ExpressionError] = None
    """The error if rendering failed."""


class TemplateEngine:
    """Parses and renders templates with a shared function registry."""

    def __init__(
        self,
        functions: Optional[FunctionRegistry] = None,
        limits: Optional[TemplateLimits] = None,
        log_render_errors: bool = True,
    ):
        self._functions = functions if functions is not None else FunctionRegistry()
        self._limits = limits or DEFAULT_TEMPLATE_LIMITS
        self._log_render_errors = log_render_errors

    @classmethod
    def from_config(
        cls,
        config: TemplateEngineConfig | dict[str, Any] | None,
        functions: Optional[FunctionRegistry] = None,
    ) -> "TemplateEngine":
        """Creates an engine from a config model or a plain dict."""
        resolved = normalize_config(config)
        return cls(
            functions=functions,
            limits=resolved.limits,
            log_render_errors=resolved.log_render_errors,
        )

    @property
    def functions(self) -> FunctionRegistry:
        return self._functions

    @property
    def limits(self) -> TemplateLimits:
        return self._limits

    def register(self, name: str, fn: TemplateFunction) -> None:
        """Registers a function available to templates."""
        self._functions.register(name, fn)

    def has_expressions(self, template: str) -> bool:
        """Checks whether the template contains any tag."""
        return _has_expressions(template)

    def parse(self, template: str) -> TemplateNode:
        """
        Parses a template into an AST without rendering it.

        Raises:
            ParseError: On any syntax, nesting or unknown-function error
        """
        segments = lex(template, self._limits)
        ast = parse_template(segments, self._functions, self._limits, template)

        logger.debug(
            "template_parsed",
            extra={
                "segment_count": len(segments),
                "node_count": count_template_nodes(ast.children),
                "block_depth": calculate_block_depth(ast.children),
                "expression_depth": max(
                    (calculate_ast_depth(e) for e in iter_template_expressions(ast.children)),
                    default=0,
                ),
            },
        )
        return ast

    def render_ast(self, ast: TemplateNode, data: Mapping[str, Any]) -> str:
        """Renders an already parsed template."""
        context = RenderContext(
            bindings=data,
            limits=self._limits,
            functions=self._functions,
        )
        evaluator = Evaluator(context)

        try:
            output = evaluator.render(ast)
        except LimitExceededError as e:
            if self._log_render_errors:
                logger.warning(
                    "template_limit_exceeded",
                    extra={
                        "limit_name": e.limit_name,
                        "limit": e.limit,
                        "actual": e.actual,
                    },
                )
            raise

        logger.debug("template_rendered", extra={"output_size": evaluator.budget.output_size})
        return output

    def render(self, template: str, data: Mapping[str, Any]) -> str:
        """
        Renders a template against a data context.

        Args:
            template: The template source
            data: The data context (outermost scope)

        Returns:
            The complete rendered output

        Raises:
            ParseError: If the template does not parse
            LimitExceededError: If a resource limit is exceeded
            EvaluationError: If a function call fails
        """
        try:
            ast = self.parse(template)
            return self.render_ast(ast, data)
        except ExpressionError as e:
            if self._log_render_errors:
                logger.debug(
                    "template_render_failed",
                    extra={"error_type": type(e).__name__, "error": e.message},
                )
            raise

    def try_render(self, template: str, data: Mapping[str, Any]) -> RenderResult:
        """Renders a template, returning failures as a RenderResult."""
        try:
            return RenderResult(output=self.render(template, data), success=True)
        except ExpressionError as error:
            return RenderResult(output="", success=False, error=error)


def has_expressions(template: str) -> bool:
    """Checks whether a template contains the tag-opening delimiter."""
    return _has_expressions(template)


def render_template(
    template: str,
    data: Mapping[str, Any],
    functions: Optional[FunctionRegistry] = None,
    limits: Optional[TemplateLimits] = None,
) -> str:
    """
    Renders a template with a throwaway engine.

    Args:
        template: The template source
        data: The data context
        functions: Optional function registry
        limits: Optional template limits

    Returns:
        The rendered output
    """
    engine = TemplateEngine(functions=functions, limits=limits)
    return engine.render(template, data)
