import dataclasses

import hypothesis.strategies as st
import pytest
from hypothesis import given

from quill.quill_ast import (
    Call,
    ExpressionStatement,
    FunctionDefinition,
    Identifier,
    If,
    IfBranch,
    Int,
    List,
    ListItem,
    Operation,
    Operator,
    Program,
    String,
)


def test_node_repr_hides_positions() -> None:
    node = Identifier("x", line=3, col=4)
    assert repr(node) == "Identifier(name='x')"


def test_operator_repr() -> None:
    assert repr(Operator.PLUS) == "Operator.PLUS"
    assert Operator.NOT_EQUAL.value == "!="


def test_nodes_equal_regardless_of_position() -> None:
    n1 = Operation(Int(1, line=1, col=1), Operator.MINUS, Int(2, line=1, col=5))
    n2 = Operation(Int(1), Operator.MINUS, Int(2))
    assert n1 == n2
    assert hash(n1) == hash(n2)


def test_nodes_not_equal_on_structure() -> None:
    assert Identifier("x") != Identifier("y")
    assert Int(1) != String("1")
    assert Operation(Int(1), Operator.PLUS, Int(2)) != Operation(
        Int(1), Operator.TIMES, Int(2)
    )


def test_nodes_are_immutable() -> None:
    node = Call("print", (Identifier("x"),))
    with pytest.raises(dataclasses.FrozenInstanceError):
        node.function = "other"  # type: ignore[misc]


def test_list_item_defaults() -> None:
    item = ListItem(Identifier("x"))
    assert item.is_spread is False
    assert item.is_pack is False


def test_empty_list_has_no_items() -> None:
    assert List().items == ()


def test_if_branch_rejects_uneven_elif_data() -> None:
    with pytest.raises(ValueError, match="elif_data"):
        IfBranch(Identifier("a"), (), ((Identifier("b"),), ()))


def test_if_branch_defaults() -> None:
    branch = IfBranch(Identifier("a"))
    assert branch.elif_data == ((), ())
    assert branch.else_statements is None


def test_function_definition_without_return() -> None:
    fn = FunctionDefinition("f", ("a", "b"))
    assert fn.return_expression is None


def test_to_dict_basic() -> None:
    node = Operation(Int(1, line=1, col=1), Operator.PLUS, Identifier("x"), line=1, col=1)
    d = node.to_dict()
    assert d["kind"] == "Operation"
    assert d["line"] == 1
    assert d["col"] == 1
    assert d["operator"] == "PLUS"  # type: ignore[typeddict-item]
    assert d["lhs"]["kind"] == "Int"  # type: ignore[typeddict-item]
    assert d["rhs"]["name"] == "x"  # type: ignore[typeddict-item]


def test_to_dict_nested_sequences() -> None:
    stmt = If(
        IfBranch(
            Identifier("a"),
            (ExpressionStatement(Int(1)),),
            ((Identifier("b"),), ((ExpressionStatement(Int(2)),),)),
            None,
        )
    )
    d = stmt.to_dict()
    params = d["params"]  # type: ignore[typeddict-item]
    conditions, blocks = params["elif_data"]
    assert conditions[0]["name"] == "b"
    assert blocks[0][0]["expression"]["value"] == 2
    assert params["else_statements"] is None


def test_program_iterates_statements() -> None:
    stmts = (ExpressionStatement(Int(1)), ExpressionStatement(Int(2)))
    program = Program(stmts)
    assert list(program) == list(stmts)
    assert program.to_dict()["kind"] == "Program"


@given(st.text(), st.text())  # type: ignore[misc]
def test_identifier_equality_tracks_name(a: str, b: str) -> None:
    assert (Identifier(a) == Identifier(b)) == (a == b)


@given(st.integers(), st.integers(), st.integers(), st.integers())  # type: ignore[misc]
def test_position_never_affects_equality(l1: int, c1: int, l2: int, c2: int) -> None:
    assert String("s", line=l1, col=c1) == String("s", line=l2, col=c2)
