"""
Abstract Syntax Tree (AST) node types for templates and expressions.

The AST is produced by the parsers and consumed by the evaluator. Two node
families exist: expression nodes (the inside of a tag) and template nodes
(text, output tags and blocks).
"""

from abc import ABC
from dataclasses import dataclass
from typing import Iterator, Literal, Optional, Sequence, Union

# ============================================================
# Operator Types
# ============================================================

UnaryOperator = Literal["not"]

ComparisonOperator = Literal["==", "!=", ">", "<", ">=", "<="]

BinaryOperator = Literal["==", "!=", ">", "<", ">=", "<=", "and", "or"]


# ============================================================
# Expression Nodes
# ============================================================


@dataclass(frozen=True)
class AstNodeBase(ABC):
    """Base class for all expression nodes."""

    position: int
    """Position in source expression (for error reporting)."""


@dataclass(frozen=True)
class StringLiteralNode(AstNodeBase):
    """String literal node."""

    value: str

    @property
    def type(self) -> Literal["StringLiteral"]:
        return "StringLiteral"


@dataclass(frozen=True)
class NumberLiteralNode(AstNodeBase):
    """Number literal node. Always stored as a float."""

    value: float

    @property
    def type(self) -> Literal["NumberLiteral"]:
        return "NumberLiteral"


@dataclass(frozen=True)
class BooleanLiteralNode(AstNodeBase):
    """Boolean literal node."""

    value: bool

    @property
    def type(self) -> Literal["BooleanLiteral"]:
        return "BooleanLiteral"


@dataclass(frozen=True)
class NullLiteralNode(AstNodeBase):
    """Null literal node."""

    @property
    def type(self) -> Literal["NullLiteral"]:
        return "NullLiteral"


@dataclass(frozen=True)
class FieldRefNode(AstNodeBase):
    """Field reference, resolved through the scope stack."""

    name: str

    @property
    def type(self) -> Literal["FieldRef"]:
        return "FieldRef"


@dataclass(frozen=True)
class DotAccessNode(AstNodeBase):
    """One-level property access (e.g., user.name)."""

    object: FieldRefNode
    property: str

    @property
    def type(self) -> Literal["DotAccess"]:
        return "DotAccess"


@dataclass(frozen=True)
class FunctionCallNode(AstNodeBase):
    """Function call node."""

    name: str
    args: Sequence["AstNode"]

    @property
    def type(self) -> Literal["FunctionCall"]:
        return "FunctionCall"


@dataclass(frozen=True)
class UnaryOpNode(AstNodeBase):
    """Unary operator node."""

    operator: UnaryOperator
    operand: "AstNode"

    @property
    def type(self) -> Literal["UnaryOp"]:
        return "UnaryOp"


@dataclass(frozen=True)
class BinaryOpNode(AstNodeBase):
    """Binary operator node."""

    operator: BinaryOperator
    left: "AstNode"
    right: "AstNode"

    @property
    def type(self) -> Literal["BinaryOp"]:
        return "BinaryOp"


# Union type for all expression nodes
AstNode = Union[
    StringLiteralNode,
    NumberLiteralNode,
    BooleanLiteralNode,
    NullLiteralNode,
    FieldRefNode,
    DotAccessNode,
    FunctionCallNode,
    UnaryOpNode,
    BinaryOpNode,
]


# ============================================================
# Template Nodes
# ============================================================


@dataclass(frozen=True)
class TextNode:
    """Literal template text, emitted as is."""

    content: str

    @property
    def type(self) -> Literal["Text"]:
        return "Text"


@dataclass(frozen=True)
class OutputNode:
    """`{{ expr }}` - HTML-escaped output."""

    expr: AstNode

    @property
    def type(self) -> Literal["Output"]:
        return "Output"


@dataclass(frozen=True)
class RawOutputNode:
    """`{{! expr }}` - unescaped output."""

    expr: AstNode

    @property
    def type(self) -> Literal["RawOutput"]:
        return "RawOutput"


@dataclass(frozen=True)
class ElifClause:
    """An `{{elif cond}}` branch of an if block."""

    condition: AstNode
    body: Sequence["TemplateChild"]


@dataclass(frozen=True)
class IfNode:
    """`{{if}} ... {{elif}} ... {{else}} ... {{endif}}` block."""

    condition: AstNode
    body: Sequence["TemplateChild"]
    elif_clauses: Sequence[ElifClause] = ()
    else_body: Optional[Sequence["TemplateChild"]] = None

    @property
    def type(self) -> Literal["If"]:
        return "If"


@dataclass(frozen=True)
class EachNode:
    """`{{each var in expr}} ... {{endeach}}` block."""

    variable_name: str
    iterable: AstNode
    body: Sequence["TemplateChild"]

    @property
    def type(self) -> Literal["Each"]:
        return "Each"


TemplateChild = Union[TextNode, OutputNode, RawOutputNode, IfNode, EachNode]


@dataclass(frozen=True)
class TemplateNode:
    """Root of a parsed template."""

    children: Sequence[TemplateChild]

    @property
    def type(self) -> Literal["Template"]:
        return "Template"


# ============================================================
# AST Utilities
# ============================================================

_LEAF_TYPES = ("StringLiteral", "NumberLiteral", "BooleanLiteral", "NullLiteral", "FieldRef")


def count_ast_nodes(node: AstNode) -> int:
    """Counts the total number of nodes in an expression AST."""
    if node.type in _LEAF_TYPES:
        return 1

    if node.type == "DotAccess":
        return 1 + count_ast_nodes(node.object)

    if node.type == "FunctionCall":
        return 1 + sum(count_ast_nodes(arg) for arg in node.args)

    if node.type == "UnaryOp":
        return 1 + count_ast_nodes(node.operand)

    if node.type == "BinaryOp":
        return 1 + count_ast_nodes(node.left) + count_ast_nodes(node.right)

    return 1


def calculate_ast_depth(node: AstNode) -> int:
    """Calculates the maximum depth of an expression AST."""
    if node.type in _LEAF_TYPES:
        return 1

    if node.type == "DotAccess":
        return 1 + calculate_ast_depth(node.object)

    if node.type == "FunctionCall":
        max_arg_depth = 0
        for arg in node.args:
            max_arg_depth = max(max_arg_depth, calculate_ast_depth(arg))
        return 1 + max_arg_depth

    if node.type == "UnaryOp":
        return 1 + calculate_ast_depth(node.operand)

    if node.type == "BinaryOp":
        return 1 + max(calculate_ast_depth(node.left), calculate_ast_depth(node.right))

    return 1


def iter_template_expressions(children: Sequence[TemplateChild]) -> Iterator[AstNode]:
    """Yields every expression in a template body, in source order."""
    for child in children:
        if child.type in ("Output", "RawOutput"):
            yield child.expr
        elif child.type == "If":
            yield child.condition
            yield from iter_template_expressions(child.body)
            for clause in child.elif_clauses:
                yield clause.condition
                yield from iter_template_expressions(clause.body)
            if child.else_body is not None:
                yield from iter_template_expressions(child.else_body)
        elif child.type == "Each":
            yield child.iterable
            yield from iter_template_expressions(child.body)


def count_template_nodes(children: Sequence[TemplateChild]) -> int:
    """Counts template nodes plus the expression nodes they hold."""
    count = 0

    for child in children:
        if child.type == "Text":
            count += 1
        elif child.type in ("Output", "RawOutput"):
            count += 1 + count_ast_nodes(child.expr)
        elif child.type == "If":
            count += 1 + count_ast_nodes(child.condition) + count_template_nodes(child.body)
            for clause in child.elif_clauses:
                count += 1 + count_ast_nodes(clause.condition) + count_template_nodes(clause.body)
            if child.else_body is not None:
                count += count_template_nodes(child.else_body)
        elif child.type == "Each":
            count += 1 + count_ast_nodes(child.iterable) + count_template_nodes(child.body)

    return count


def calculate_block_depth(children: Sequence[TemplateChild]) -> int:
    """Calculates the deepest if/each nesting in a template body."""
    depth = 0

    for child in children:
        if child.type == "If":
            bodies = [child.body, *(clause.body for clause in child.elif_clauses)]
            if child.else_body is not None:
                bodies.append(child.else_body)
            depth = max(depth, 1 + max(calculate_block_depth(b) for b in bodies))
        elif child.type == "Each":
            depth = max(depth, 1 + calculate_block_depth(child.body))

    return depth


def ast_to_string(node: Union[AstNode, TemplateNode, TemplateChild], indent: int = 0) -> str:
    """Returns a human-readable representation of a node for debugging."""
    prefix = "  " * indent

    if node.type == "StringLiteral":
        return f'{prefix}String: "{node.value}"'

    if node.type == "NumberLiteral":
        return f"{prefix}Number: {node.value}"

    if node.type == "BooleanLiteral":
        return f"{prefix}Boolean: {node.value}"

    if node.type == "NullLiteral":
        return f"{prefix}Null"

    if node.type == "FieldRef":
        return f"{prefix}FieldRef: {node.name}"

    if node.type == "DotAccess":
        return f"{prefix}DotAccess: {node.object.name}.{node.property}"

    if node.type == "FunctionCall":
        lines = [f"{prefix}FunctionCall: {node.name}"]
        lines.extend(ast_to_string(a, indent + 1) for a in node.args)
        return "\n".join(lines)

    if node.type == "UnaryOp":
        return f"{prefix}UnaryOp: {node.operator}\n{ast_to_string(node.operand, indent + 1)}"

    if node.type == "BinaryOp":
        return (
            f"{prefix}BinaryOp: {node.operator}\n"
            f"{ast_to_string(node.left, indent + 1)}\n"
            f"{ast_to_string(node.right, indent + 1)}"
        )

    if node.type == "Template":
        return "\n".join(
            [f"{prefix}Template:"] + [ast_to_string(c, indent + 1) for c in node.children]
        )

    if node.type == "Text":
        return f"{prefix}Text: {node.content!r}"

    if node.type in ("Output", "RawOutput"):
        return f"{prefix}{node.type}:\n{ast_to_string(node.expr, indent + 1)}"

    if node.type == "If":
        lines = [f"{prefix}If:", f"{prefix}  condition:", ast_to_string(node.condition, indent + 2)]
        lines.append(f"{prefix}  body:")
        lines.extend(ast_to_string(c, indent + 2) for c in node.body)
        for clause in node.elif_clauses:
            lines.append(f"{prefix}  elif:")
            lines.append(ast_to_string(clause.condition, indent + 2))
            lines.extend(ast_to_string(c, indent + 2) for c in clause.body)
        if node.else_body is not None:
            lines.append(f"{prefix}  else:")
            lines.extend(ast_to_string(c, indent + 2) for c in node.else_body)
        return "\n".join(lines)

    if node.type == "Each":
        lines = [f"{prefix}Each: {node.variable_name}", ast_to_string(node.iterable, indent + 1)]
        lines.extend(ast_to_string(c, indent + 1) for c in node.body)
        return "\n".join(lines)

    return f"{prefix}Unknown: {node}"
