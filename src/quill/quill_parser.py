"""
QUILL Language Parser

Parses QUILL token streams into immutable abstract syntax trees.

This module implements a hand-written recursive-descent parser that turns the
flat list of `Token` objects produced by `quill.quill_lexer` into a `Program`.
There is one method per grammar construct, and dispatch is driven by the kind
of the current token.

Supported Constructs
--------------------
- Expressions:
    * Literals: integers, floats, strings, characters, `true`/`false`
    * Identifiers, calls `f(a, b)`, indexing `xs[i]`
    * Lists `[a, b..]` with pack (`..head`) and spread (`item..`) markers
    * Comprehensions `[x * 2 for x in xs]`
    * Prefix increment/decrement `++x`, `--x`
    * Binary operators `+ - * / < > == !=`, one precedence level, left-associative

- Statements:
    * `import "path";`
    * Assignments `target = expr;`, `name += expr;` (and `-=`, `*=`, `/=`), `name++;`, `name--;`
    * `if (c) { } elif (c) { } else { }`
    * `while (c) { }`, `for name in expr { }`
    * `fn name(a, b) { ... return expr; }`
    * Expression statements `expr;`

Parser Behavior
---------------
- Fail-fast: the first unexpected token aborts the whole parse; no partial
  `Program` is ever returned.
- Errors carry the offending lexeme, its position and the token kinds that
  would have been accepted.
- Nesting of expressions and blocks is limited by `max_depth`.

Entry Points
------------
- `parse()`: Lex and parse a full source string into a `Program`.
- `parse_program()`: Same as `parse()`.
- `parse_statement()`: Parse one statement, returning it with the remaining tokens.
- `parse_expression()`: Parse one expression, returning it with the remaining tokens.

Raises
------
QuillSyntaxError
    A `SyntaxError` subclass describing the lexical or grammatical failure.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import NoReturn

from quill.quill_ast import (
    Assignment,
    Boolean,
    Call,
    Character,
    Comprehension,
    Expression,
    ExpressionStatement,
    Float,
    For,
    ForLoop,
    FunctionDefinition,
    Identifier,
    If,
    IfBranch,
    Import,
    Index,
    Int,
    List,
    ListItem,
    Operation,
    Operator,
    OperatorAssignment,
    Prefix,
    Program,
    Statement,
    String,
    While,
)
from quill.quill_constants import (
    DEFAULT_MAX_DEPTH,
    atom_start_tokens,
    binary_operator_tokens,
    operator_assign_tokens,
    statement_start_tokens,
)
from quill.quill_errors import (
    NestingLimitExceeded,
    UnexpectedEndOfInput,
    UnexpectedToken,
)
from quill.quill_lexer import Token, tokenize

LOGGER = logging.getLogger(__name__)

# TOKEN MAPPINGS (PARSER)

binary_operators: dict[str, Operator] = {
    "PLUS": Operator.PLUS,
    "SUB": Operator.MINUS,
    "MULT": Operator.TIMES,
    "DIV": Operator.DIVIDE,
    "LT": Operator.LESS_THAN,
    "GT": Operator.GREATER_THAN,
    "EQ": Operator.EQUAL,
    "NE": Operator.NOT_EQUAL,
}

assign_operators: dict[str, Operator] = {
    "PLUS_ASSIGN": Operator.PLUS,
    "SUB_ASSIGN": Operator.MINUS,
    "MULT_ASSIGN": Operator.TIMES,
    "DIV_ASSIGN": Operator.DIVIDE,
    "INCR": Operator.PLUS,
    "DECR": Operator.MINUS,
}

NO_TOKENS: frozenset[str] = frozenset()


class Parser:
    """
    QUILL Parser Class

    Transforms a list of lexical tokens into a `Program`. The token list is
    expected to end with an EOF token; reading past the end behaves as if one
    were present.

    Attributes
    ----------
    tokens : list[Token]
        The input token stream to be parsed.
    position : int
        Current index into the token stream.
    max_depth : int
        Maximum combined nesting of expressions and blocks.
    depth : int
        Current nesting level.
    """

    def __init__(self, tokens: Iterable[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {max_depth}")
        self.tokens: list[Token] = list(tokens)
        self.position: int = 0
        self.max_depth: int = max_depth
        self.depth: int = 0

    def current(self) -> Token:
        return (
            self.tokens[self.position]
            if self.position < len(self.tokens)
            else self._end_token()
        )

    def peek(self, offset: int = 1) -> Token:
        index = self.position + offset
        return self.tokens[index] if index < len(self.tokens) else self._end_token()

    def advance(self) -> Token:
        self.position += 1
        return self.current()

    def remaining(self) -> list[Token]:
        """Tokens not consumed yet, including the trailing EOF."""
        return self.tokens[self.position :]

    def match(self, *types: str, extra: Iterable[str] = NO_TOKENS) -> Token:
        """Consume the current token if its type is one of `types`.

        `extra` names further token kinds that were acceptable at this point;
        they only widen the expected set reported on failure.
        """
        tok = self.current()
        if tok.type in types:
            self.advance()
            return tok
        self.unexpected(tok, frozenset(types) | frozenset(extra))

    def unexpected(self, tok: Token, expected: frozenset[str]) -> NoReturn:
        if tok.type == "EOF":
            raise UnexpectedEndOfInput(tok.position, expected)
        raise UnexpectedToken(tok.position, tok.lexeme, expected)

    @contextmanager
    def nesting(self) -> Iterator[None]:
        """Track one level of nesting, failing once `max_depth` is exceeded."""
        if self.depth >= self.max_depth:
            raise NestingLimitExceeded(self.current().position, self.max_depth)
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def _end_token(self) -> Token:
        if self.tokens:
            last = self.tokens[-1]
            return Token("EOF", "EOF", last.line, last.col, last.offset, "")
        return Token("EOF", "EOF", 1, 1, 0, "")

    # Program and statements

    def parse(self) -> Program:
        """Parse a full QUILL program."""
        LOGGER.debug("parsing program of %d tokens", len(self.tokens))
        statements: list[Statement] = []
        while self.current().type != "EOF":
            statements.append(self.parse_statement(follow=frozenset({"EOF"})))
        LOGGER.debug("parsed %d top-level statements", len(statements))
        return Program(tuple(statements), line=1, col=1)

    parse_program = parse

    def parse_statement(self, follow: frozenset[str] = NO_TOKENS) -> Statement:
        """Parse a single top-level or block-level statement.

        `follow` lists the tokens that may legally end the enclosing sequence
        (`}` inside a block); they are reported when no statement starts here.
        """
        tok = self.current()

        if tok.type == "IMPORT":
            return self.parse_import()
        if tok.type == "IF":
            return self.parse_if()
        if tok.type == "WHILE":
            return self.parse_loop_while()
        if tok.type == "FOR":
            return self.parse_loop_for()
        if tok.type == "FN":
            return self.parse_function()
        if tok.type == "IDENT" and self.peek().type in operator_assign_tokens:
            return self.parse_operator_assignment()
        if tok.type in atom_start_tokens:
            return self.parse_assignment_or_expression()

        self.unexpected(tok, statement_start_tokens | follow)

    def parse_import(self) -> Import:
        """Parse `import "path";`."""
        tok = self.match("IMPORT")
        path_tok = self.match("STRING")
        self.match("SEMI")
        return Import(path_tok.value, line=tok.line, col=tok.col)

    def parse_assignment_or_expression(self) -> Statement:
        """Parse `expr = expr;` or a bare `expr;`."""
        tok = self.current()
        lhs = self.parse_expression()

        if self.current().type == "ASSIGN":
            self.advance()
            rhs = self.parse_expression()
            self.match("SEMI", extra=binary_operator_tokens)
            return Assignment(lhs, rhs, line=tok.line, col=tok.col)

        self.match("SEMI", extra=binary_operator_tokens | {"ASSIGN"})
        return ExpressionStatement(lhs, line=tok.line, col=tok.col)

    def parse_operator_assignment(self) -> OperatorAssignment:
        """Parse `name += expr;` style updates and `name++;` / `name--;`."""
        name_tok = self.match("IDENT")
        op_tok = self.match(*operator_assign_tokens)
        operator = assign_operators[op_tok.type]

        if op_tok.type in ("INCR", "DECR"):
            rhs: Expression = Int(1, line=op_tok.line, col=op_tok.col)
            self.match("SEMI")
        else:
            rhs = self.parse_expression()
            self.match("SEMI", extra=binary_operator_tokens)

        return OperatorAssignment(
            name_tok.value, operator, rhs, line=name_tok.line, col=name_tok.col
        )

    def parse_block(self) -> tuple[Statement, ...]:
        """Parse a `{}`-enclosed block of statements."""
        statements, _ = self._parse_body(allow_return=False)
        return statements

    def _parse_body(
        self, allow_return: bool
    ) -> tuple[tuple[Statement, ...], Expression | None]:
        self.match("LBRACE")
        follow = frozenset({"RBRACE", "RETURN"} if allow_return else {"RBRACE"})
        statements: list[Statement] = []
        return_expression: Expression | None = None

        with self.nesting():
            while self.current().type != "RBRACE":
                if allow_return and self.current().type == "RETURN":
                    self.advance()
                    return_expression = self.parse_expression()
                    self.match("SEMI", extra=binary_operator_tokens)
                    break
                statements.append(self.parse_statement(follow=follow))

        self.match("RBRACE")
        return tuple(statements), return_expression

    def parse_condition(self) -> Expression:
        """Parse a parenthesized `(expr)` condition."""
        self.match("LPAREN")
        condition = self.parse_expression()
        self.match("RPAREN", extra=binary_operator_tokens)
        return condition

    def parse_if(self) -> If:
        """Parse an `if` with its elif chain and optional `else`."""
        if_tok = self.match("IF")
        condition = self.parse_condition()
        then_block = self.parse_block()

        elif_conditions: list[Expression] = []
        elif_blocks: list[tuple[Statement, ...]] = []
        while self.current().type == "ELIF":
            self.advance()
            elif_conditions.append(self.parse_condition())
            elif_blocks.append(self.parse_block())

        else_block: tuple[Statement, ...] | None = None
        if self.current().type == "ELSE":
            self.advance()
            else_block = self.parse_block()

        params = IfBranch(
            condition,
            then_block,
            (tuple(elif_conditions), tuple(elif_blocks)),
            else_block,
            line=if_tok.line,
            col=if_tok.col,
        )
        return If(params, line=if_tok.line, col=if_tok.col)

    def parse_loop_while(self) -> While:
        """Parse `while (cond) { ... }`."""
        loop_tok = self.match("WHILE")
        condition = self.parse_condition()
        body = self.parse_block()
        return While(condition, body, line=loop_tok.line, col=loop_tok.col)

    def parse_loop_for(self) -> For:
        """Parse `for name in expr { ... }`."""
        loop_tok = self.match("FOR")
        var_tok = self.match("IDENT")
        self.match("IN")
        iterable = self.parse_expression()
        if self.current().type != "LBRACE":
            self.unexpected(self.current(), binary_operator_tokens | {"LBRACE"})
        body = self.parse_block()
        params = ForLoop(
            var_tok.value, iterable, body, line=loop_tok.line, col=loop_tok.col
        )
        return For(params, line=loop_tok.line, col=loop_tok.col)

    def parse_function(self) -> FunctionDefinition:
        """Parse `fn name(params) { statements [return expr;] }`."""
        fn_tok = self.match("FN")
        name_tok = self.match("IDENT")

        self.match("LPAREN")
        params: list[str] = []
        tok = self.match("IDENT", "RPAREN")
        while tok.type == "IDENT":
            params.append(tok.value)
            if self.match("COMMA", "RPAREN").type == "RPAREN":
                break
            tok = self.match("IDENT")

        statements, return_expression = self._parse_body(allow_return=True)
        return FunctionDefinition(
            name_tok.value,
            tuple(params),
            statements,
            return_expression,
            line=fn_tok.line,
            col=fn_tok.col,
        )

    # Expressions

    def parse_expression(self, alternatives: frozenset[str] = NO_TOKENS) -> Expression:
        """Parse `atom (op atom)*`, folding operators strictly left to right.

        All binary operators share one precedence level, so `1 + 2 * 3` is
        `(1 + 2) * 3`. `alternatives` widens the expected set reported when no
        expression starts at the current token.

        Every operator in a chain counts as one level against `max_depth`, since
        the resulting tree is as deep as the chain is long.
        """
        with self.nesting():
            lhs = self.parse_atom(alternatives)
            # Each fold makes the left-deep tree one level deeper.
            folds = 0
            try:
                while self.current().type in binary_operator_tokens:
                    op_tok = self.current()
                    if self.depth >= self.max_depth:
                        raise NestingLimitExceeded(op_tok.position, self.max_depth)
                    self.depth += 1
                    folds += 1
                    self.advance()
                    rhs = self.parse_atom()
                    lhs = Operation(
                        lhs,
                        binary_operators[op_tok.type],
                        rhs,
                        line=lhs.line,
                        col=lhs.col,
                    )
            finally:
                self.depth -= folds
        return lhs

    def parse_atom(self, alternatives: frozenset[str] = NO_TOKENS) -> Expression:
        """Parse a literal, identifier, call, index, list, comprehension or prefix form."""
        tok = self.current()
        kind = tok.type

        if kind == "INT":
            self.advance()
            return Int(tok.value, line=tok.line, col=tok.col)
        if kind == "FLOAT":
            self.advance()
            return Float(tok.value, line=tok.line, col=tok.col)
        if kind == "STRING":
            self.advance()
            return String(tok.value, line=tok.line, col=tok.col)
        if kind == "CHAR":
            self.advance()
            return Character(tok.value, line=tok.line, col=tok.col)
        if kind == "BOOL":
            self.advance()
            return Boolean(tok.value, line=tok.line, col=tok.col)
        if kind == "IDENT":
            if self.peek().type == "LPAREN":
                return self.parse_call()
            if self.peek().type == "LBRACK":
                return self.parse_index()
            self.advance()
            return Identifier(tok.value, line=tok.line, col=tok.col)
        if kind == "LBRACK":
            return self.parse_list()
        if kind in ("INCR", "DECR"):
            return self.parse_prefix()

        self.unexpected(tok, atom_start_tokens | alternatives)

    def parse_call(self) -> Call:
        """Parse `name(arg, ...)`; a trailing comma is not allowed."""
        name_tok = self.match("IDENT")
        self.match("LPAREN")
        args: list[Expression] = []
        if self.current().type == "RPAREN":
            self.advance()
        else:
            args.append(self.parse_expression(alternatives=frozenset({"RPAREN"})))
            while self.match("COMMA", "RPAREN", extra=binary_operator_tokens).type == "COMMA":
                args.append(self.parse_expression())

        return Call(name_tok.value, tuple(args), line=name_tok.line, col=name_tok.col)

    def parse_index(self) -> Index:
        """Parse `name[expr]`."""
        name_tok = self.match("IDENT")
        self.match("LBRACK")
        idx = self.parse_expression()
        self.match("RBRACK", extra=binary_operator_tokens)
        return Index(name_tok.value, idx, line=name_tok.line, col=name_tok.col)

    def parse_prefix(self) -> Prefix:
        """Parse `++name` / `--name` into a Prefix adding or subtracting 1."""
        op_tok = self.match("INCR", "DECR")
        name_tok = self.match("IDENT")
        return Prefix(
            name_tok.value,
            assign_operators[op_tok.type],
            Int(1, line=op_tok.line, col=op_tok.col),
            line=op_tok.line,
            col=op_tok.col,
        )

    def parse_list(self) -> List | Comprehension:
        """Parse a list literal or a list comprehension.

        Any item may carry a leading `..` (pack) and a trailing `..` (spread).
        A single trailing comma before `]` is accepted.
        """
        open_tok = self.match("LBRACK")

        if self.current().type == "RBRACK":
            self.advance()
            return List((), line=open_tok.line, col=open_tok.col)

        is_pack = False
        if self.current().type == "SPREAD":
            self.advance()
            is_pack = True

        head_tok = self.current()
        head = self.parse_expression(
            alternatives=NO_TOKENS if is_pack else frozenset({"RBRACK", "SPREAD"})
        )

        if not is_pack and self.current().type == "FOR":
            return self._parse_comprehension(open_tok, head)

        is_spread = self._match_spread()
        items = [
            ListItem(head, is_spread, is_pack, line=head_tok.line, col=head_tok.col)
        ]
        # A plain head could still have become a comprehension.
        follow = self._item_follow(is_spread)
        if not (is_pack or is_spread):
            follow = follow | {"FOR"}

        while self.match("COMMA", "RBRACK", extra=follow).type == "COMMA":
            if self.current().type == "RBRACK":
                self.advance()
                break
            is_pack = self._match_spread()
            item_tok = self.current()
            expression = self.parse_expression(
                alternatives=NO_TOKENS if is_pack else frozenset({"RBRACK", "SPREAD"})
            )
            is_spread = self._match_spread()
            items.append(
                ListItem(
                    expression, is_spread, is_pack, line=item_tok.line, col=item_tok.col
                )
            )
            follow = self._item_follow(is_spread)

        return List(tuple(items), line=open_tok.line, col=open_tok.col)

    def _match_spread(self) -> bool:
        if self.current().type == "SPREAD":
            self.advance()
            return True
        return False

    @staticmethod
    def _item_follow(is_spread: bool) -> frozenset[str]:
        """Tokens besides `,`/`]` that could have followed a list item."""
        if is_spread:
            return NO_TOKENS
        return binary_operator_tokens | {"SPREAD"}

    def _parse_comprehension(self, open_tok: Token, iterate: Expression) -> Comprehension:
        self.match("FOR")
        var_tok = self.match("IDENT")
        self.match("IN")
        control = self.parse_expression()
        self.match("RBRACK", extra=binary_operator_tokens)
        return Comprehension(
            iterate, var_tok.value, control, line=open_tok.line, col=open_tok.col
        )


def parse(source: str, max_depth: int = DEFAULT_MAX_DEPTH) -> Program:
    """Lex and parse `source` into a Program.

    The whole source is tokenized before parsing starts, so a lexical error
    anywhere in the text is reported ahead of any syntax error.
    """
    return Parser(tokenize(source), max_depth=max_depth).parse()


parse_program = parse


def parse_statement(
    source: str, max_depth: int = DEFAULT_MAX_DEPTH
) -> tuple[Statement, list[Token]]:
    """Parse the first statement of `source`; returns it with the unconsumed tokens."""
    parser = Parser(tokenize(source), max_depth=max_depth)
    statement = parser.parse_statement(follow=frozenset({"EOF"}))
    return statement, parser.remaining()


def parse_expression(
    source: str, max_depth: int = DEFAULT_MAX_DEPTH
) -> tuple[Expression, list[Token]]:
    """Parse the leading expression of `source`; returns it with the unconsumed tokens."""
    parser = Parser(tokenize(source), max_depth=max_depth)
    expression = parser.parse_expression()
    return expression, parser.remaining()


__all__ = [
    "Parser",
    "parse",
    "parse_expression",
    "parse_program",
    "parse_statement",
]
