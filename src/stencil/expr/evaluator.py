"""
Template evaluator.

Renders a template AST against a data context and returns the output
string. Each render is bounded by a RenderBudget: total loop iterations,
if/each nesting depth, function call depth and output size. A render
either returns the complete output or raises; it never truncates.

Null handling semantics:
- None values are the canonical null value throughout evaluation.
- Missing identifiers evaluate to None.
- Dot access on None or a non-object returns None.
- Missing properties return None and render as an empty string.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, cast

from .ast import (
    AstNode,
    BinaryOpNode,
    BooleanLiteralNode,
    DotAccessNode,
    EachNode,
    FieldRefNode,
    FunctionCallNode,
    IfNode,
    NumberLiteralNode,
    OutputNode,
    RawOutputNode,
    StringLiteralNode,
    TemplateChild,
    TemplateNode,
    TextNode,
    UnaryOpNode,
)
from .errors import EvaluationError, ExpressionError, FunctionError, LimitExceededError
from .functions import ExprValue, FunctionContext, FunctionRegistry
from .limits import DEFAULT_TEMPLATE_LIMITS, TemplateLimits
from .values import (
    compare_values,
    escape_html,
    is_truthy,
    to_display_string,
    values_equal,
)


@dataclass
class RenderContext:
    """Render context with the data bindings and collaborators."""

    bindings: Mapping[str, Any]
    """Data context, the outermost scope frame."""

    limits: Optional[TemplateLimits] = None
    """Template limits."""

    functions: Optional[FunctionRegistry] = None
    """Function registry used for calls."""

    source: Optional[str] = None
    """Template source for error reporting."""


@dataclass
class RenderBudget:
    """Resource counters for a single render."""

    limits: TemplateLimits = DEFAULT_TEMPLATE_LIMITS
    loop_iterations: int = 0
    nesting_depth: int = 0
    function_call_depth: int = 0
    output_size: int = 0

    def enter_block(self) -> None:
        self.nesting_depth += 1
        if self.nesting_depth > self.limits.max_nesting_depth:
            raise LimitExceededError(
                "nesting_depth", self.limits.max_nesting_depth, self.nesting_depth
            )

    def exit_block(self) -> None:
        self.nesting_depth -= 1

    def count_iteration(self) -> None:
        self.loop_iterations += 1
        if self.loop_iterations > self.limits.max_loop_iterations:
            raise LimitExceededError(
                "loop_iterations", self.limits.max_loop_iterations, self.loop_iterations
            )

    def enter_call(self) -> None:
        self.function_call_depth += 1
        if self.function_call_depth > self.limits.max_function_call_depth:
            raise LimitExceededError(
                "function_call_depth",
                self.limits.max_function_call_depth,
                self.function_call_depth,
            )

    def exit_call(self) -> None:
        self.function_call_depth -= 1

    def add_output(self, text: str) -> None:
        self.output_size += len(text.encode("utf-8"))
        if self.output_size > self.limits.max_output_size:
            raise LimitExceededError(
                "output_size", self.limits.max_output_size, self.output_size
            )


@dataclass
class _ScopeStack:
    """Scope frames, innermost last."""

    frames: List[Mapping[str, Any]] = field(default_factory=list)

    def push(self, frame: Mapping[str, Any]) -> None:
        self.frames.append(frame)

    def pop(self) -> None:
        self.frames.pop()

    def lookup(self, name: str) -> Any:
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        return None


def _iteration_items(value: Any) -> List[Tuple[Any, Any]]:
    """Coerces a resolved iterable into (index, element) pairs."""
    if value is None or value == "":
        return []
    if isinstance(value, list | tuple):
        return list(enumerate(value))
    if isinstance(value, Mapping):
        return list(value.items())
    return [(0, value)]


class Evaluator:
    """Renders template ASTs and evaluates expression nodes."""

    def __init__(self, context: RenderContext):
        self._context = context
        self._limits = context.limits or DEFAULT_TEMPLATE_LIMITS
        self._source = context.source or ""
        self._functions = (
            context.functions if context.functions is not None else FunctionRegistry()
        )
        self._reset()

    def _reset(self) -> None:
        self._scopes = _ScopeStack([self._context.bindings])
        self._budget = RenderBudget(self._limits)

    @property
    def budget(self) -> RenderBudget:
        """Counters of the current (or last) render."""
        return self._budget

    def render(self, node: TemplateNode) -> str:
        """Renders a template AST. Resets all counters and scopes first."""
        self._reset()
        output: List[str] = []
        self._render_children(node.children, output)
        return "".join(output)

    def _render_children(self, children: Sequence[TemplateChild], output: List[str]) -> None:
        for child in children:
            self._render_node(child, output)

    def _render_node(self, node: TemplateChild, output: List[str]) -> None:
        node_type = node.type

        if node_type == "Text":
            self._emit(cast(TextNode, node).content, output)
            return

        if node_type == "Output":
            value = self.evaluate(cast(OutputNode, node).expr)
            self._emit(escape_html(to_display_string(value)), output)
            return

        if node_type == "RawOutput":
            value = self.evaluate(cast(RawOutputNode, node).expr)
            self._emit(to_display_string(value), output)
            return

        if node_type == "If":
            self._render_if(cast(IfNode, node), output)
            return

        if node_type == "Each":
            self._render_each(cast(EachNode, node), output)
            return

        raise EvaluationError(f"Unknown template node: {node_type}")

    def _emit(self, text: str, output: List[str]) -> None:
        self._budget.add_output(text)
        output.append(text)

    def _render_if(self, node: IfNode, output: List[str]) -> None:
        self._budget.enter_block()
        try:
            if is_truthy(self.evaluate(node.condition)):
                self._render_children(node.body, output)
                return

            for clause in node.elif_clauses:
                if is_truthy(self.evaluate(clause.condition)):
                    self._render_children(clause.body, output)
                    return

            if node.else_body is not None:
                self._render_children(node.else_body, output)
        finally:
            self._budget.exit_block()

    def _render_each(self, node: EachNode, output: List[str]) -> None:
        self._budget.enter_block()
        try:
            items = _iteration_items(self.evaluate(node.iterable))
            total = len(items)

            for position, (index, element) in enumerate(items):
                self._budget.count_iteration()

                loop: Dict[str, Any] = {
                    "index": index,
                    "count": position + 1,
                    "first": position == 0,
                    "last": position == total - 1,
                }
                self._scopes.push({node.variable_name: element, "loop": loop})
                try:
                    self._render_children(node.body, output)
                finally:
                    self._scopes.pop()
        finally:
            self._budget.exit_block()

    def evaluate(self, node: AstNode) -> ExprValue:
        """Evaluates an expression node and returns the value."""
        node_type = node.type

        if node_type == "StringLiteral":
            return cast(StringLiteralNode, node).value

        if node_type == "NumberLiteral":
            return cast(NumberLiteralNode, node).value

        if node_type == "BooleanLiteral":
            return cast(BooleanLiteralNode, node).value

        if node_type == "NullLiteral":
            return None

        if node_type == "FieldRef":
            return self._scopes.lookup(cast(FieldRefNode, node).name)

        if node_type == "DotAccess":
            return self._evaluate_dot_access(cast(DotAccessNode, node))

        if node_type == "FunctionCall":
            return self._evaluate_function_call(cast(FunctionCallNode, node))

        if node_type == "UnaryOp":
            n = cast(UnaryOpNode, node)
            return not is_truthy(self.evaluate(n.operand))

        if node_type == "BinaryOp":
            return self._evaluate_binary_op(cast(BinaryOpNode, node))

        raise EvaluationError(
            f"Unknown expression node: {node_type}", None, self._source
        )

    def _evaluate_dot_access(self, node: DotAccessNode) -> ExprValue:
        """Evaluates one-level property access (obj.property)."""
        obj = self._scopes.lookup(node.object.name)

        # Only objects have properties; anything else yields None
        if not isinstance(obj, Mapping):
            return None

        return obj.get(node.property)

    def _evaluate_function_call(self, node: FunctionCallNode) -> ExprValue:
        """Evaluates a function call."""
        self._budget.enter_call()
        try:
            args = [self.evaluate(arg) for arg in node.args]

            function_context = FunctionContext(
                limits=self._limits,
                position=node.position,
                source=self._source,
            )

            try:
                return self._functions.call(node.name, args, function_context)
            except ExpressionError:
                raise
            except Exception as e:
                raise FunctionError(node.name, str(e), node.position, self._source) from e
        finally:
            self._budget.exit_call()

    def _evaluate_binary_op(self, node: BinaryOpNode) -> ExprValue:
        """Evaluates a binary operation."""
        operator = node.operator

        # Short-circuit evaluation for logical operators
        if operator == "and":
            if not is_truthy(self.evaluate(node.left)):
                return False
            return is_truthy(self.evaluate(node.right))

        if operator == "or":
            if is_truthy(self.evaluate(node.left)):
                return True
            return is_truthy(self.evaluate(node.right))

        left_value = self.evaluate(node.left)
        right_value = self.evaluate(node.right)

        if operator == "==":
            return values_equal(left_value, right_value)

        if operator == "!=":
            return not values_equal(left_value, right_value)

        return compare_values(operator, left_value, right_value)


def render(ast: TemplateNode, context: RenderContext) -> str:
    """
    Renders a template AST against a context with a fresh evaluator.

    Args:
        ast: The template AST
        context: The render context with bindings

    Returns:
        The rendered output

    Raises:
        LimitExceededError: If a resource limit is exceeded
        EvaluationError: If a function fails or is missing
    """
    evaluator = Evaluator(context)
    return evaluator.render(ast)
