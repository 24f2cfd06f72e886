"""
Monkey Parser
Recursive descent for statements, precedence climbing (Pratt) for expressions.
Errors are collected rather than raised so one input reports every problem.
"""

from typing import Callable, Dict, List, Optional, Tuple
from dataclasses import fields, is_dataclass

import tokens as tk
from tokens import Token
from lexer import Lexer
from ast_nodes import (
    Node, Program, Statement, Expression, BlockStatement, LetStatement,
    ReturnStatement, ExpressionStatement, Identifier, IntegerLiteral,
    BooleanLiteral, StringLiteral, PrefixExpression, InfixExpression,
    IfExpression, FunctionLiteral, CallExpression, ArrayLiteral, IndexExpression
)
from error_handling import (
    MonkeyLexError, MonkeyParseError, make_parse_error,
    UNEXPECTED_TOKEN, NO_PREFIX_PARSE, INVALID_INTEGER, NESTING_TOO_DEEP
)


# Binding powers, lowest first
LOWEST = 1
EQUALS = 2       # == !=
LESSGREATER = 3  # < >
SUM = 4          # + -
PRODUCT = 5      # * /
PREFIX = 6       # -x !x
CALL = 7         # f(x) a[i]

# Deepest expression nesting accepted before parsing stops
MAX_NESTING_DEPTH = 1000

PRECEDENCES = {
    tk.EQ: EQUALS,
    tk.NOT_EQ: EQUALS,
    tk.LT: LESSGREATER,
    tk.GT: LESSGREATER,
    tk.PLUS: SUM,
    tk.MINUS: SUM,
    tk.SLASH: PRODUCT,
    tk.ASTERISK: PRODUCT,
    tk.LPAREN: CALL,
    tk.LBRACKET: CALL,
}


class Parser:
    """Monkey parser owning its lexer and a two-token lookahead"""

    def __init__(self, lexer: Lexer, debug: bool = False):
        self.lexer = lexer
        self.debug = debug
        self.errors: List[Dict] = []
        self.nesting = 0

        self.current: Token = Token(tk.EOF)
        self.peek: Token = Token(tk.EOF)

        self.prefix_parsers: Dict[str, Callable[[], Optional[Expression]]] = {
            tk.IDENT: self.parse_identifier,
            tk.INT: self.parse_integer_literal,
            tk.BOOL: self.parse_boolean_literal,
            tk.STRING: self.parse_string_literal,
            tk.BANG: self.parse_prefix_expression,
            tk.MINUS: self.parse_prefix_expression,
            tk.LPAREN: self.parse_grouped_expression,
            tk.IF: self.parse_if_expression,
            tk.FUNCTION: self.parse_function_literal,
            tk.LBRACKET: self.parse_array_literal,
        }

        self.infix_parsers: Dict[str, Callable[[Expression], Optional[Expression]]] = {
            op: self.parse_infix_expression
            for op in (tk.PLUS, tk.MINUS, tk.SLASH, tk.ASTERISK,
                       tk.EQ, tk.NOT_EQ, tk.LT, tk.GT)
        }
        self.infix_parsers[tk.LPAREN] = self.parse_call_expression
        self.infix_parsers[tk.LBRACKET] = self.parse_index_expression

        self.advance()
        self.advance()

    # ------------------------------------------------------------------
    # Token handling
    # ------------------------------------------------------------------

    def advance(self) -> None:
        """Shift the lookahead window by one token"""
        self.current = self.peek
        self.peek = self._read_token()

    def _read_token(self) -> Token:
        try:
            return self.lexer.next_token()
        except MonkeyLexError as e:
            self.errors.append(make_parse_error(
                INVALID_INTEGER, e.message, e.line, e.column, got=e.text
            ))
            return Token(tk.ILLEGAL, e.text, e.line, e.column)

    def current_is(self, token_type: str) -> bool:
        return self.current.type == token_type

    def peek_is(self, token_type: str) -> bool:
        return self.peek.type == token_type

    def expect_next(self, token_type: str) -> bool:
        """Advance if the next token has the given type, else record an error"""
        if self.peek_is(token_type):
            self.advance()
            return True
        self.errors.append(make_parse_error(
            UNEXPECTED_TOKEN,
            f"expected next token to be {token_type}, got {self.peek} instead",
            self.peek.line, self.peek.column,
            expected=token_type, got=str(self.peek)
        ))
        return False

    def peek_precedence(self) -> int:
        return PRECEDENCES.get(self.peek.type, LOWEST)

    def current_precedence(self) -> int:
        return PRECEDENCES.get(self.current.type, LOWEST)

    def get_errors(self) -> List[Dict]:
        """Errors collected so far, in source order"""
        return list(self.errors)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def parse(self) -> Program:
        """Parse until EOF; statements that fail to parse are skipped"""
        statements: List[Statement] = []

        while not self.current_is(tk.EOF):
            try:
                stmt = self.parse_statement()
            except RecursionError:
                self.errors.append(make_parse_error(
                    NESTING_TOO_DEEP, "expression nested too deeply",
                    self.current.line, self.current.column
                ))
                break
            if stmt is not None:
                statements.append(stmt)
            self.advance()

        return Program(statements)

    def parse_statement(self) -> Optional[Statement]:
        if self.debug:
            print(f"Parsing statement at {self.current}")

        if self.current_is(tk.LET):
            return self.parse_let_statement()
        elif self.current_is(tk.RETURN):
            return self.parse_return_statement()
        return self.parse_expression_statement()

    def parse_let_statement(self) -> Optional[LetStatement]:
        if not self.expect_next(tk.IDENT):
            return None
        name = Identifier(self.current.value)

        if not self.expect_next(tk.ASSIGN):
            return None
        self.advance()

        value = self.parse_expression(LOWEST)
        if value is None:
            return None

        if self.peek_is(tk.SEMICOLON):
            self.advance()
        return LetStatement(name, value)

    def parse_return_statement(self) -> Optional[ReturnStatement]:
        self.advance()

        value = self.parse_expression(LOWEST)
        if value is None:
            return None

        if self.peek_is(tk.SEMICOLON):
            self.advance()
        return ReturnStatement(value)

    def parse_expression_statement(self) -> Optional[ExpressionStatement]:
        expression = self.parse_expression(LOWEST)
        if expression is None:
            return None

        # The semicolon is optional, e.g. the last line of a block
        if self.peek_is(tk.SEMICOLON):
            self.advance()
        return ExpressionStatement(expression)

    def parse_block_statement(self) -> Optional[BlockStatement]:
        """Parse `{ ... }`; current token is the opening brace"""
        statements: List[Statement] = []
        self.advance()

        while not self.current_is(tk.RBRACE):
            if self.current_is(tk.EOF):
                self.errors.append(make_parse_error(
                    UNEXPECTED_TOKEN,
                    f"expected next token to be {tk.RBRACE}, got {self.current} instead",
                    self.current.line, self.current.column,
                    expected=tk.RBRACE, got=str(self.current)
                ))
                return None
            stmt = self.parse_statement()
            if stmt is not None:
                statements.append(stmt)
            self.advance()

        return BlockStatement(statements)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self, precedence: int) -> Optional[Expression]:
        if self.nesting >= MAX_NESTING_DEPTH:
            raise RecursionError("expression nested too deeply")

        self.nesting += 1
        try:
            return self._parse_expression(precedence)
        finally:
            self.nesting -= 1

    def _parse_expression(self, precedence: int) -> Optional[Expression]:
        prefix = self.prefix_parsers.get(self.current.type)
        if prefix is None:
            self.errors.append(make_parse_error(
                NO_PREFIX_PARSE,
                f"no prefix parse function for {self.current} found",
                self.current.line, self.current.column, got=str(self.current)
            ))
            return None

        left = prefix()
        while left is not None and not self.peek_is(tk.SEMICOLON) and precedence < self.peek_precedence():
            infix = self.infix_parsers.get(self.peek.type)
            if infix is None:
                return left
            self.advance()
            left = infix(left)

        return left

    def parse_identifier(self) -> Expression:
        return Identifier(self.current.value)

    def parse_integer_literal(self) -> Expression:
        return IntegerLiteral(self.current.value)

    def parse_boolean_literal(self) -> Expression:
        return BooleanLiteral(self.current.value)

    def parse_string_literal(self) -> Expression:
        return StringLiteral(self.current.value)

    def parse_prefix_expression(self) -> Optional[Expression]:
        operator = self.current.type
        self.advance()

        right = self.parse_expression(PREFIX)
        if right is None:
            return None
        return PrefixExpression(operator, right)

    def parse_infix_expression(self, left: Expression) -> Optional[Expression]:
        operator = self.current.type
        precedence = self.current_precedence()
        self.advance()

        # Same-precedence operators bind to the left
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(left, operator, right)

    def parse_grouped_expression(self) -> Optional[Expression]:
        self.advance()

        expression = self.parse_expression(LOWEST)
        if expression is None or not self.expect_next(tk.RPAREN):
            return None
        return expression

    def parse_if_expression(self) -> Optional[Expression]:
        if not self.expect_next(tk.LPAREN):
            return None
        self.advance()

        condition = self.parse_expression(LOWEST)
        if condition is None:
            return None
        if not self.expect_next(tk.RPAREN) or not self.expect_next(tk.LBRACE):
            return None

        consequence = self.parse_block_statement()
        if consequence is None:
            return None

        alternative = None
        if self.peek_is(tk.ELSE):
            self.advance()
            if not self.expect_next(tk.LBRACE):
                return None
            alternative = self.parse_block_statement()
            if alternative is None:
                return None

        return IfExpression(condition, consequence, alternative)

    def parse_function_literal(self) -> Optional[Expression]:
        if not self.expect_next(tk.LPAREN):
            return None

        parameters = self.parse_function_parameters()
        if parameters is None or not self.expect_next(tk.LBRACE):
            return None

        body = self.parse_block_statement()
        if body is None:
            return None
        return FunctionLiteral(parameters, body)

    def parse_function_parameters(self) -> Optional[List[Identifier]]:
        if self.peek_is(tk.RPAREN):
            self.advance()
            return []

        if not self.expect_next(tk.IDENT):
            return None
        parameters = [Identifier(self.current.value)]

        while self.peek_is(tk.COMMA):
            self.advance()
            if not self.expect_next(tk.IDENT):
                return None
            parameters.append(Identifier(self.current.value))

        if not self.expect_next(tk.RPAREN):
            return None
        return parameters

    def parse_call_expression(self, function: Expression) -> Optional[Expression]:
        arguments = self.parse_expression_list(tk.RPAREN)
        if arguments is None:
            return None
        return CallExpression(function, arguments)

    def parse_array_literal(self) -> Optional[Expression]:
        elements = self.parse_expression_list(tk.RBRACKET)
        if elements is None:
            return None
        return ArrayLiteral(elements)

    def parse_index_expression(self, left: Expression) -> Optional[Expression]:
        self.advance()

        index = self.parse_expression(LOWEST)
        if index is None or not self.expect_next(tk.RBRACKET):
            return None
        return IndexExpression(left, index)

    def parse_expression_list(self, end: str) -> Optional[List[Expression]]:
        """Comma-separated expressions up to `end`; current token is the opener"""
        if self.peek_is(end):
            self.advance()
            return []

        self.advance()
        first = self.parse_expression(LOWEST)
        if first is None:
            return None
        items = [first]

        while self.peek_is(tk.COMMA):
            self.advance()
            self.advance()
            item = self.parse_expression(LOWEST)
            if item is None:
                return None
            items.append(item)

        if not self.expect_next(end):
            return None
        return items


# Factory functions for creating parsers
def create_parser(source: str, debug: bool = False) -> Parser:
    """Create a Monkey parser over source text"""
    return Parser(Lexer(source), debug=debug)


def create_debug_parser(source: str) -> Parser:
    """Create a Monkey parser with debug enabled"""
    return Parser(Lexer(source, debug=True), debug=True)


def parse_source(source: str, debug: bool = False) -> Tuple[Program, List[Dict]]:
    """Parse source text, returning the program and the collected errors"""
    parser = create_parser(source, debug)
    program = parser.parse()
    return program, parser.get_errors()


def parse_file(filepath: str, debug: bool = False) -> Program:
    """Parse a Monkey source file; raises MonkeyParseError on any failure"""
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
    except FileNotFoundError:
        raise MonkeyParseError(f"File not found: {filepath}")
    except UnicodeDecodeError as e:
        raise MonkeyParseError(f"Cannot decode file {filepath}: {e}")

    program, errors = parse_source(content, debug)
    if errors:
        raise MonkeyParseError(f"{len(errors)} parse error(s) in {filepath}", errors, content)
    return program


# Utility functions for working with the AST
def pretty_print_ast(node: Node, indent: int = 0) -> str:
    """Pretty print an AST node for debugging"""
    result = "  " * indent + type(node).__name__
    children = []
    scalars = []

    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, Node):
            children.append(value)
        elif isinstance(value, list):
            children.extend(item for item in value if isinstance(item, Node))
        elif value is not None:
            scalars.append(repr(value))

    if scalars:
        result += f"({', '.join(scalars)})"
    result += "\n"

    for child in children:
        if is_dataclass(child):
            result += pretty_print_ast(child, indent + 1)

    return result
