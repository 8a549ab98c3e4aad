"""
Function registry for template expressions.

The registry is the calling contract between the interpreter and the
functions installed by the embedding application. Names are checked
against it while parsing (so unknown functions fail before rendering) and
looked up again when a call is evaluated.

Null handling semantics:
- None is the canonical null value passed to and returned from functions.
- Functions receive their arguments already evaluated, left to right.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .errors import EvaluationError
from .limits import DEFAULT_TEMPLATE_LIMITS, TemplateLimits
from .tokenizer import KEYWORDS

# Runtime value types for the expression language.
#
# Note: None is the canonical null value in Python.
ExprValue = Union[
    str,
    float,
    int,
    bool,
    None,
    Sequence["ExprValue"],
    Mapping[str, "ExprValue"],
]


class FunctionContext:
    """Context passed to registered functions."""

    def __init__(
        self,
        limits: TemplateLimits = DEFAULT_TEMPLATE_LIMITS,
        position: int = 0,
        source: str = "",
    ):
        self.limits = limits
        self.position = position
        self.source = source


# Signature of a registered function.
TemplateFunction = Callable[[Sequence[ExprValue], FunctionContext], ExprValue]


def get_type_name(value: Any) -> str:
    """Gets the type name of a value for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _is_valid_name(name: str) -> bool:
    return (
        bool(name)
        and name.isascii()
        and name.isidentifier()
        and name not in KEYWORDS
    )


class FunctionRegistry:
    """Name to callable lookup used by the parser and the evaluator."""

    def __init__(self, functions: Optional[Mapping[str, TemplateFunction]] = None):
        self._functions: Dict[str, TemplateFunction] = {}
        for name, fn in (functions or {}).items():
            self.register(name, fn)

    def register(self, name: str, fn: TemplateFunction) -> None:
        """Registers a function, replacing any previous one with that name."""
        if not _is_valid_name(name):
            raise ValueError(f"Invalid function name: {name!r}")
        if not callable(fn):
            raise ValueError(
                f"Function {name!r} is not callable (got {get_type_name(fn)})"
            )
        self._functions[name] = fn

    def unregister(self, name: str) -> None:
        """Removes a function if present."""
        self._functions.pop(name, None)

    def has(self, name: str) -> bool:
        """Checks if a function is registered."""
        return name in self._functions

    def names(self) -> List[str]:
        """Returns the registered names, sorted."""
        return sorted(self._functions)

    def copy(self) -> "FunctionRegistry":
        """Returns an independent registry with the same functions."""
        return FunctionRegistry(self._functions)

    def call(
        self,
        name: str,
        args: Sequence[ExprValue],
        context: Optional[FunctionContext] = None,
    ) -> ExprValue:
        """
        Calls a registered function by name.

        Args:
            name: The function name
            args: The evaluated arguments
            context: Optional call context (limits, position, source)

        Returns:
            The function result

        Raises:
            EvaluationError: If the function is not registered
        """
        context = context or FunctionContext()
        fn = self._functions.get(name)
        if fn is None:
            raise EvaluationError(
                f"Unknown function: {name}", context.position, context.source
            )
        return fn(args, context)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)
