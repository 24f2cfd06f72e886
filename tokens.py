"""
Monkey Token Model
Closed set of lexical symbols recognized by the lexer
"""

from typing import Any
from dataclasses import dataclass, field


# ============================================================================
# TOKEN TYPES
# ============================================================================

EOF = "EOF"
ILLEGAL = "ILLEGAL"

# Identifiers and literals
IDENT = "IDENT"
INT = "INT"
BOOL = "BOOL"
STRING = "STRING"

# Operators
ASSIGN = "="
PLUS = "+"
MINUS = "-"
BANG = "!"
SLASH = "/"
ASTERISK = "*"
LT = "<"
GT = ">"
EQ = "=="
NOT_EQ = "!="

# Delimiters
COMMA = ","
SEMICOLON = ";"
LPAREN = "("
RPAREN = ")"
LBRACE = "{"
RBRACE = "}"
LBRACKET = "["
RBRACKET = "]"

# Keywords
FUNCTION = "fn"
LET = "let"
IF = "if"
ELSE = "else"
RETURN = "return"


# Operators and delimiters in the order the lexer must try them
# (two-character operators before their one-character prefixes)
PUNCTUATION = [
    EQ, NOT_EQ,
    ASSIGN, PLUS, MINUS, BANG, SLASH, ASTERISK, LT, GT,
    COMMA, SEMICOLON, LPAREN, RPAREN, LBRACE, RBRACE, LBRACKET, RBRACKET,
]


# ============================================================================
# TOKEN
# ============================================================================

@dataclass(frozen=True)
class Token:
    """Monkey token; position information does not take part in equality"""
    type: str
    value: Any = None
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)

    def literal(self) -> str:
        """Source text of the token as it would be written"""
        if self.type == EOF:
            return "EOF"
        if self.type == BOOL:
            return "true" if self.value else "false"
        if self.value is not None:
            return str(self.value)
        return self.type

    def __str__(self) -> str:
        if self.type in (IDENT, INT, BOOL, STRING, ILLEGAL):
            return f"{self.type}({self.literal()})"
        return self.type


# ============================================================================
# KEYWORD TABLE
# ============================================================================

KEYWORDS = {
    "fn": Token(FUNCTION),
    "let": Token(LET),
    "true": Token(BOOL, True),
    "false": Token(BOOL, False),
    "if": Token(IF),
    "else": Token(ELSE),
    "return": Token(RETURN),
}


def lookup_ident(name: str, line: int = 0, column: int = 0) -> Token:
    """Map an identifier run to its keyword token, or to IDENT"""
    keyword = KEYWORDS.get(name)
    if keyword is None:
        return Token(IDENT, name, line, column)
    return Token(keyword.type, keyword.value, line, column)
