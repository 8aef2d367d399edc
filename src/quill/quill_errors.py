"""
Structured errors raised by the QUILL lexer and parser.

Every error is a `SyntaxError` subclass so callers that only care about
"the source was rejected" can keep catching the builtin, while tooling such as
editors and REPLs can read the exact position and the token kinds that would
have been accepted.

Classes:
    Position: Line/column/offset of a character in the source.
    QuillSyntaxError: Base class of all lexer and parser errors.
    LexicalError: No lexical rule matches the character at a position.
    UnexpectedToken: The parser met a token outside the accepted set.
    UnexpectedEndOfInput: The input ended while more tokens were required.
    MalformedLiteral: Numeric literal text could not be converted.
    NestingLimitExceeded: Expressions or blocks nest deeper than allowed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable


@dataclass(frozen=True)
class Position:
    """A source location.

    Attributes:
        line (int): 1-based line number.
        column (int): 1-based column number.
        offset (int): 0-based character offset into the source.
    """

    line: int = 1
    column: int = 1
    offset: int = 0

    def __str__(self) -> str:
        return f"line {self.line}, col {self.column}"


def _format_expected(expected: Iterable[str]) -> str:
    return ", ".join(sorted(expected))


class QuillSyntaxError(SyntaxError):
    """Base class for every error produced while turning source into a Program."""

    def __init__(self, message: str, position: Position | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position if position is not None else Position()

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serializes the error for editor or REPL tooling."""
        data: dict[str, Any] = {
            "error": type(self).__name__,
            "message": self.message,
            "line": self.position.line,
            "column": self.position.column,
            "offset": self.position.offset,
        }
        expected = getattr(self, "expected", None)
        if expected is not None:
            data["expected"] = sorted(expected)
        return data


class LexicalError(QuillSyntaxError):
    def __init__(self, position: Position, bad_character: str) -> None:
        self.bad_character = bad_character
        super().__init__(
            f"Unrecognized character {bad_character!r} at {position}", position
        )


class UnexpectedToken(QuillSyntaxError):
    """Raised when the current token is not in the set the grammar allows.

    Attributes:
        found (str): The offending lexeme.
        expected (frozenset[str]): Token kinds that would have been accepted.
    """

    def __init__(
        self, position: Position, found: str, expected: Iterable[str]
    ) -> None:
        self.found = found
        self.expected = frozenset(expected)
        super().__init__(
            f"Unexpected token {found!r} at {position}, "
            f"expected one of: {_format_expected(self.expected)}",
            position,
        )


class UnexpectedEndOfInput(QuillSyntaxError):
    def __init__(self, position: Position, expected: Iterable[str]) -> None:
        self.found = "EOF"
        self.expected = frozenset(expected)
        super().__init__(
            f"Unexpected end of input at {position}, "
            f"expected one of: {_format_expected(self.expected)}",
            position,
        )


class MalformedLiteral(QuillSyntaxError):
    def __init__(self, position: Position, literal_text: str, literal_kind: str) -> None:
        self.literal_text = literal_text
        self.literal_kind = literal_kind
        super().__init__(
            f"Malformed {literal_kind} literal {literal_text!r} at {position}",
            position,
        )


class NestingLimitExceeded(QuillSyntaxError):
    def __init__(self, position: Position, limit: int) -> None:
        self.limit = limit
        super().__init__(
            f"Nesting deeper than {limit} levels at {position}", position
        )


__all__ = [
    "LexicalError",
    "MalformedLiteral",
    "NestingLimitExceeded",
    "Position",
    "QuillSyntaxError",
    "UnexpectedEndOfInput",
    "UnexpectedToken",
]
