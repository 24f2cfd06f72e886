"""
Monkey Lexer
Turns source text into tokens on demand, one token per call
"""

from typing import List, Optional

from pyparsing import Word, Regex, QuotedString, one_of, alphas, nums, lineno, col

from tokens import (
    Token, PUNCTUATION, EOF, ILLEGAL, INT, STRING, lookup_ident
)
from error_handling import MonkeyLexError
from objects import INT64_MAX


# ============================================================================
# TOKEN PATTERNS
# ============================================================================

def _position(s: str, loc: int) -> dict:
    return {'line': lineno(loc, s), 'column': col(loc, s)}


identifier = Word(alphas + "_").set_parse_action(
    lambda s, loc, t: lookup_ident(t[0], **_position(s, loc))
)

integer = Word(nums).set_parse_action(
    lambda s, loc, t: Token(INT, t[0], **_position(s, loc))
)

# No escape sequences; an unterminated quote falls through to ILLEGAL
string_literal = QuotedString('"', multiline=True, convert_whitespace_escapes=False).set_parse_action(
    lambda s, loc, t: Token(STRING, t[0], **_position(s, loc))
)

punctuation = one_of(PUNCTUATION).set_parse_action(
    lambda s, loc, t: Token(t[0], None, **_position(s, loc))
)

illegal = Regex(r".").set_parse_action(
    lambda s, loc, t: Token(ILLEGAL, t[0], **_position(s, loc))
)

# pyparsing skips " \t\n\r" before each alternative, which is exactly the
# whitespace set of the language
token_pattern = (identifier | integer | string_literal | punctuation | illegal).parse_with_tabs()


# ============================================================================
# LEXER
# ============================================================================

class Lexer:
    """Monkey lexer over a source string"""

    def __init__(self, source: str, debug: bool = False):
        self.source = source
        self.debug = debug
        self._scanner = token_pattern.scan_string(source)
        self._eof: Optional[Token] = None

    def next_token(self) -> Token:
        """Return the next token; EOF forever once the source is exhausted"""
        if self._eof is not None:
            return self._eof

        match = next(self._scanner, None)
        if match is None:
            self._eof = Token(EOF, None, **_position(self.source, len(self.source)))
            return self._eof

        token = match[0][0]
        if token.type == INT:
            token = self._to_integer(token)

        if self.debug:
            print(f"Token: {token} at {token.line}:{token.column}")

        return token

    def _to_integer(self, token: Token) -> Token:
        """Convert a digit run to a 64-bit signed integer token"""
        value = int(token.value)
        if value > INT64_MAX:
            raise MonkeyLexError(
                f"integer literal {token.value} does not fit in 64 bits",
                token.value, token.line, token.column
            )
        return Token(INT, value, token.line, token.column)


def tokenize(source: str) -> List[Token]:
    """Tokenize a whole source string, EOF included"""
    lexer = Lexer(source)
    result = []
    while True:
        token = lexer.next_token()
        result.append(token)
        if token.type == EOF:
            return result
