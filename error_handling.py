"""
Error handling for the Monkey front end
Structured parse-error records, their formatting, and the host-level exceptions
"""

from typing import List, Optional, Dict


# ============================================================================
# ERROR KINDS
# ============================================================================

UNEXPECTED_TOKEN = "UnexpectedToken"
NO_PREFIX_PARSE = "NoPrefixParse"
INVALID_INTEGER = "InvalidInteger"
NESTING_TOO_DEEP = "NestingTooDeep"


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    kind: str,
    message: str,
    line: int = 0,
    column: int = 0,
    expected: Optional[str] = None,
    got: Optional[str] = None
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'kind': kind,
        'message': message,
        'line': line,
        'column': column,
        'expected': expected,
        'got': got
    }


def format_parse_error(error: Dict, source_text: Optional[str] = None) -> str:
    """Format parse error as string"""
    if error['line']:
        error_msg = f"Parse error at line {error['line']}, column {error['column']}: "
    else:
        error_msg = "Parse error: "
    error_msg += f"{error['message']}\n"

    if source_text is not None and error['line']:
        error_msg += get_context_lines(source_text, error['line'], error['column']) + "\n"

    return error_msg


def format_parse_errors(errors: List[Dict], source_text: Optional[str] = None) -> str:
    """Format every error of a failed parse, in order"""
    return "".join(format_parse_error(error, source_text) for error in errors)


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 1) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^")

    return '\n'.join(context_parts)


def error_kinds(errors: List[Dict]) -> List[str]:
    """Kinds of a list of parse errors, in order"""
    return [error['kind'] for error in errors]


# ============================================================================
# EXCEPTIONS
# ============================================================================

class MonkeyLexError(Exception):
    """Integer literal that does not fit in a signed 64-bit integer"""
    def __init__(self, message: str, text: str = "", line: int = 0, column: int = 0):
        self.message = message
        self.text = text
        self.line = line
        self.column = column
        super().__init__(message)


class MonkeyParseError(Exception):
    """Raised by the script runner when a source file cannot be parsed"""
    def __init__(self, message: str, errors: Optional[List[Dict]] = None, source_text: Optional[str] = None):
        self.message = message
        self.errors = errors or []
        self.source_text = source_text
        super().__init__(message)

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        return f"{self.message}\n" + format_parse_errors(self.errors, self.source_text)
