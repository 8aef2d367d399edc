"""
Lexical analyzer for the QUILL scripting language.

This module provides core components for converting raw source code into token streams:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: Represents a single token with type, decoded value, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Functions:
    tokenize: Lazily yields every token of a source string, ending with EOF.

Features:
    - Skips whitespace and single-line comments (`//`)
    - Longest-match recognition of operators (`+=` before `+`, `..`, `++`)
    - Recognizes:
        * Identifiers, keywords and the boolean literals `true`/`false`
        * Integers (`-?[0-9]+`, 32-bit signed) and floats (`[0-9]+.[0-9]+`)
        * Strings (`"..."`, no escapes) and characters (`'c'`)
        * Operators and punctuation

Raises:
    LexicalError: If no rule matches the character at the current position.
    MalformedLiteral: If numeric text does not fit its literal type.

Example:
    >>> [tok.type for tok in tokenize("x += 1;")]
    ['IDENT', 'PLUS_ASSIGN', 'INT', 'SEMI', 'EOF']
"""

import math
import string
from collections.abc import Iterator
from typing import Any

from quill.quill_constants import INT32_MAX, INT32_MIN, keyword_tokens, token_hashmap
from quill.quill_errors import LexicalError, MalformedLiteral, Position

IDENT_START = frozenset(string.ascii_letters + "_")
IDENT_CHARS = IDENT_START | frozenset(string.digits)
DIGITS = frozenset(string.digits)
WHITESPACE = frozenset(" \t\r\n\f\v")

# Operator lexemes, longest first, so `+=` wins over `+`.
OPERATORS_LONGEST_FIRST = tuple(sorted(token_hashmap, key=len, reverse=True))


class CharacterStream:
    """Cursor over source text that knows the line and column of the next character.

    Reads consume whole runs of text (`take`, `take_while`, `take_until`) and
    move the line and column over everything consumed.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.offset = 0
        self.line = 1
        self.column = 1

    @property
    def at_end(self) -> bool:
        return self.offset >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        """Returns the character `offset` places ahead, or "" past either end."""
        index = self.offset + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def looking_at(self, text: str) -> bool:
        return self.source.startswith(text, self.offset)

    def take(self, count: int = 1) -> str:
        """Consumes and returns the next `count` characters.

        Raises:
            EOFError: If fewer than `count` characters remain.
        """
        end = self.offset + count
        if end > len(self.source):
            raise EOFError(f"Cannot take {count} character(s) at {self.location()}: end of source")
        text = self.source[self.offset : end]
        newlines = text.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(text) - text.rfind("\n")
        else:
            self.column += len(text)
        self.offset = end
        return text

    def take_while(self, chars: frozenset[str]) -> str:
        """Consumes the longest run of characters drawn from `chars`."""
        end = self.offset
        while end < len(self.source) and self.source[end] in chars:
            end += 1
        return self.take(end - self.offset)

    def take_until(self, stop: str) -> str:
        """Consumes everything before the next `stop`, or the rest of the source."""
        end = self.source.find(stop, self.offset)
        if end == -1:
            end = len(self.source)
        return self.take(end - self.offset)

    def location(self) -> Position:
        """Returns the Position of the next unread character."""
        return Position(self.line, self.column, self.offset)


class Token:
    """Represents a single lexical token in the QUILL language.

    Attributes:
        type (str): The canonical token type (e.g. 'IDENT', 'INT', 'EOF').
        value (Any): The decoded payload: int, float, bool, unquoted text, or the lexeme.
        line (int): The 1-based line number where the token appears.
        col (int): The 1-based column number where the token starts.
        offset (int): The 0-based character offset where the token starts.
        lexeme (str): The raw source text of the token.
    """

    def __init__(
        self,
        type_: str,
        value: Any,
        line: int = 0,
        col: int = 0,
        offset: int = 0,
        lexeme: str | None = None,
    ):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col
        self.offset = offset
        self.lexeme = lexeme if lexeme is not None else str(value)

    @property
    def position(self) -> Position:
        return Position(self.line, self.col, self.offset)

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


class Lexer:
    """Lexical analyzer for the QUILL language.

    The Lexer pulls characters from a CharacterStream and produces Token objects
    one at a time through `next_token()`. Once the source is exhausted every call
    returns an EOF token.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def skip_whitespace(self) -> None:
        """Skips all whitespace and `//` comments in the stream."""
        while True:
            self.stream.take_while(WHITESPACE)
            if not self.stream.looking_at("//"):
                return
            self.stream.take_until("\n")

    def match_operator(self, start: Position) -> Token | None:
        """Matches the longest operator lexeme at the current position, if any."""
        for lexeme in OPERATORS_LONGEST_FIRST:
            if self.stream.looking_at(lexeme):
                self.stream.take(len(lexeme))
                return self._make(token_hashmap[lexeme], lexeme, start, lexeme)
        return None

    def read_number(self, start: Position) -> Token:
        """Reads an integer or float literal; a leading '-' has already been checked."""
        sign = self.stream.take() if self.stream.peek() == "-" else ""
        text = sign + self.stream.take_while(DIGITS)

        # Float needs digits on both sides of the dot and no sign.
        if not sign and self.stream.peek() == "." and self.stream.peek(1) in DIGITS:
            text += self.stream.take() + self.stream.take_while(DIGITS)
            number = float(text)
            if not math.isfinite(number):
                raise MalformedLiteral(start, text, "float")
            return self._make("FLOAT", number, start, text)

        integer = int(text)
        if not INT32_MIN <= integer <= INT32_MAX:
            raise MalformedLiteral(start, text, "int")
        return self._make("INT", integer, start, text)

    def read_string(self, start: Position) -> Token:
        self.stream.take()  # opening quote
        val = self.stream.take_until('"')
        if self.stream.at_end:
            raise LexicalError(start, '"')
        self.stream.take()  # closing quote
        return self._make("STRING", val, start, f'"{val}"')

    def read_char(self, start: Position) -> Token:
        char = self.stream.peek(1)
        if char in ("", "\n") or self.stream.peek(2) != "'":
            raise LexicalError(start, "'")
        lexeme = self.stream.take(3)
        return self._make("CHAR", char, start, lexeme)

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Raises:
            LexicalError: If an unrecognized character or unterminated literal is found.
            MalformedLiteral: If a numeric literal is out of range.
        """
        self.skip_whitespace()

        start = self.stream.location()
        if self.stream.at_end:
            return self._make("EOF", "EOF", start, "")

        ch = self.stream.peek()

        # 1. Identifier, keyword or boolean
        if ch in IDENT_START:
            ident = self.stream.take_while(IDENT_CHARS)
            if ident in keyword_tokens:
                kind = keyword_tokens[ident]
                value: Any = (ident == "true") if kind == "BOOL" else ident
                return self._make(kind, value, start, ident)
            return self._make("IDENT", ident, start, ident)

        # 2. Number; "-" followed by a digit is the longer match
        if ch in DIGITS or (ch == "-" and self.stream.peek(1) in DIGITS):
            return self.read_number(start)

        # 3. String and character literals
        if ch == '"':
            return self.read_string(start)
        if ch == "'":
            return self.read_char(start)

        # 4. Compound or symbolic operator
        token = self.match_operator(start)
        if token:
            return token

        # 5. Unknown character
        raise LexicalError(start, ch)

    @staticmethod
    def _make(type_: str, value: Any, start: Position, lexeme: str) -> Token:
        return Token(type_, value, start.line, start.column, start.offset, lexeme)


def tokenize(source: str) -> Iterator[Token]:
    """Lazily yields the tokens of `source`, finishing with a single EOF token.

    Each call starts over from the beginning of the text. A lexical error stops
    the iteration by raising.
    """
    lexer = Lexer(CharacterStream(source))
    while True:
        tok = lexer.next_token()
        yield tok
        if tok.type == "EOF":
            return


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize", "token_hashmap"]
