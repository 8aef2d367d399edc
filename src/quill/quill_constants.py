"""
Shared token tables for the QUILL lexer and parser.

Exports:
    keyword_tokens: Reserved words mapped to their token types.
    token_hashmap: Punctuation and operator lexemes mapped to token types.
    binary_operator_tokens: Token types usable between two operands.
    operator_assign_tokens: Compound assignment token types.
    atom_start_tokens: Token types that can begin an expression.
    statement_start_tokens: Token types that can begin a statement.
    DEFAULT_MAX_DEPTH: Default nesting limit for the parser.
"""

# Maximum combined nesting of expressions and blocks before the parser gives up.
DEFAULT_MAX_DEPTH = 128

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

keyword_tokens: dict[str, str] = {
    "import": "IMPORT",
    "fn": "FN",
    "if": "IF",
    "elif": "ELIF",
    "else": "ELSE",
    "while": "WHILE",
    "for": "FOR",
    "in": "IN",
    "return": "RETURN",
    "true": "BOOL",
    "false": "BOOL",
}

token_hashmap: dict[str, str] = {
    # Grouping
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    "[": "LBRACK",
    "]": "RBRACK",
    ",": "COMMA",
    ";": "SEMI",
    # Operators
    "=": "ASSIGN",
    "+": "PLUS",
    "-": "SUB",
    "*": "MULT",
    "/": "DIV",
    "<": "LT",
    ">": "GT",
    "==": "EQ",
    "!=": "NE",
    # Compound
    "+=": "PLUS_ASSIGN",
    "-=": "SUB_ASSIGN",
    "*=": "MULT_ASSIGN",
    "/=": "DIV_ASSIGN",
    "++": "INCR",
    "--": "DECR",
    "..": "SPREAD",
}

binary_operator_tokens: frozenset[str] = frozenset(
    {"PLUS", "SUB", "MULT", "DIV", "LT", "GT", "EQ", "NE"}
)

operator_assign_tokens: frozenset[str] = frozenset(
    {"PLUS_ASSIGN", "SUB_ASSIGN", "MULT_ASSIGN", "DIV_ASSIGN", "INCR", "DECR"}
)

literal_tokens: frozenset[str] = frozenset({"INT", "FLOAT", "STRING", "CHAR", "BOOL"})

atom_start_tokens: frozenset[str] = literal_tokens | {
    "IDENT",
    "LBRACK",
    "INCR",
    "DECR",
}

statement_start_tokens: frozenset[str] = atom_start_tokens | {
    "IMPORT",
    "IF",
    "WHILE",
    "FOR",
    "FN",
}

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "INT32_MAX",
    "INT32_MIN",
    "atom_start_tokens",
    "binary_operator_tokens",
    "keyword_tokens",
    "literal_tokens",
    "operator_assign_tokens",
    "statement_start_tokens",
    "token_hashmap",
]
