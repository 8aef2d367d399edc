"""
Defines the abstract syntax tree (AST) node types for the QUILL scripting language.

Every node is an immutable dataclass. Children are owned by their parent and
sequences are stored as tuples, so a tree handed out by the parser can be shared
freely but never modified in place; consumers that transform a tree build new
nodes.

Classes:
    Operator: The eight binary operators.
    Node: Base class with `line`/`col` metadata and `to_dict()` serialization.
    Expression / Statement: Base classes of the two node families.
    ListItem, IfBranch, ForLoop: Helper records owned by statements/expressions.
    Program: The root of the tree.

Source positions (`line`, `col`) are keyword-only and excluded from equality,
so two parses of the same text compare equal even when built separately.

Example:
    >>> Operation(Int(1), Operator.PLUS, Int(2)).to_dict()["kind"]
    'Operation'
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, TypedDict


class Operator(Enum):
    PLUS = "+"
    MINUS = "-"
    TIMES = "*"
    DIVIDE = "/"
    LESS_THAN = "<"
    GREATER_THAN = ">"
    EQUAL = "=="
    NOT_EQUAL = "!="

    def __repr__(self) -> str:
        return f"Operator.{self.name}"


class NodeDict(TypedDict, total=False):
    """Shape of a serialized node: `kind` plus one key per field."""

    kind: str
    line: int
    col: int


def _serialize(value: Any) -> Any:
    if isinstance(value, Node):
        return value.to_dict()
    if isinstance(value, Operator):
        return value.name
    if isinstance(value, tuple):
        return [_serialize(v) for v in value]
    return value


@dataclass(frozen=True)
class Node:
    """Base class for every AST node."""

    line: int = field(default=0, compare=False, repr=False, kw_only=True)
    col: int = field(default=0, compare=False, repr=False, kw_only=True)

    def to_dict(self) -> NodeDict:
        data: dict[str, Any] = {"kind": type(self).__name__}
        for f in fields(self):
            data[f.name] = _serialize(getattr(self, f.name))
        return data  # type: ignore[return-value]


@dataclass(frozen=True)
class Expression(Node):
    pass


@dataclass(frozen=True)
class Statement(Node):
    pass


# Expressions


@dataclass(frozen=True)
class Int(Expression):
    value: int


@dataclass(frozen=True)
class Float(Expression):
    value: float


@dataclass(frozen=True)
class String(Expression):
    value: str


@dataclass(frozen=True)
class Boolean(Expression):
    value: bool


@dataclass(frozen=True)
class Character(Expression):
    value: str


@dataclass(frozen=True)
class Identifier(Expression):
    name: str


@dataclass(frozen=True)
class ListItem(Node):
    """One element of a list literal.

    `is_spread` marks a trailing `..`; `is_pack` marks a leading `..`.
    """

    expression: Expression
    is_spread: bool = False
    is_pack: bool = False


@dataclass(frozen=True)
class List(Expression):
    items: tuple[ListItem, ...] = ()


@dataclass(frozen=True)
class Call(Expression):
    function: str
    arguments: tuple[Expression, ...] = ()


@dataclass(frozen=True)
class Index(Expression):
    name: str
    idx_exp: Expression


@dataclass(frozen=True)
class Prefix(Expression):
    """`++name` / `--name`; the right-hand side is always `Int(1)`."""

    name: str
    operator: Operator
    rhs: Expression


@dataclass(frozen=True)
class Operation(Expression):
    lhs: Expression
    operator: Operator
    rhs: Expression


@dataclass(frozen=True)
class Comprehension(Expression):
    """`[iterate_exp for var in control_exp]`"""

    iterate_exp: Expression
    var: str
    control_exp: Expression


# Statements


@dataclass(frozen=True)
class Import(Statement):
    path: str


@dataclass(frozen=True)
class Assignment(Statement):
    lhs: Expression
    rhs: Expression


@dataclass(frozen=True)
class OperatorAssignment(Statement):
    """Covers `+=`, `-=`, `*=`, `/=` and the desugared `x++` / `x--`."""

    name: str
    operator: Operator
    rhs: Expression


@dataclass(frozen=True)
class IfBranch(Node):
    """Condition, block, elif chain and optional else of an `if` statement.

    `elif_data` holds two parallel tuples, the elif conditions and their blocks,
    in source order.
    """

    condition: Expression
    statements: tuple[Statement, ...] = ()
    elif_data: tuple[tuple[Expression, ...], tuple[tuple[Statement, ...], ...]] = ((), ())
    else_statements: tuple[Statement, ...] | None = None

    def __post_init__(self) -> None:
        conditions, blocks = self.elif_data
        if len(conditions) != len(blocks):
            raise ValueError(
                f"elif_data has {len(conditions)} conditions but {len(blocks)} blocks"
            )


@dataclass(frozen=True)
class If(Statement):
    params: IfBranch


@dataclass(frozen=True)
class While(Statement):
    condition: Expression
    statements: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class ForLoop(Node):
    loop_var: str
    iterate_expression: Expression
    statements: tuple[Statement, ...] = ()


@dataclass(frozen=True)
class For(Statement):
    params: ForLoop


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    expression: Expression


@dataclass(frozen=True)
class FunctionDefinition(Statement):
    name: str
    arguments: tuple[str, ...] = ()
    statements: tuple[Statement, ...] = ()
    return_expression: Expression | None = None


@dataclass(frozen=True)
class Program(Node):
    statements: tuple[Statement, ...] = ()

    def __iter__(self) -> Iterator[Statement]:
        return iter(self.statements)


__all__ = [
    "Assignment",
    "Boolean",
    "Call",
    "Character",
    "Comprehension",
    "Expression",
    "ExpressionStatement",
    "Float",
    "For",
    "ForLoop",
    "FunctionDefinition",
    "Identifier",
    "If",
    "IfBranch",
    "Import",
    "Index",
    "Int",
    "List",
    "ListItem",
    "Node",
    "NodeDict",
    "Operation",
    "Operator",
    "OperatorAssignment",
    "Prefix",
    "Program",
    "Statement",
    "String",
    "While",
]
