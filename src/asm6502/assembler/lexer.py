"""
6502 Assembly Language Lexer
============================

This module converts source text into the token stream consumed by the
parser.

Token Types
-----------
- LITERAL: identifiers (mnemonics, labels, variables, register names)
- HEX / DEC / BIN / CHAR: numeric literals, kept as their raw text so
  that the declared width can be derived from the digit count
- STRING: double-quoted strings ("HELLO")
- DIRECTIVE: ".name" (value is the name without the dot)
- Punctuation: = : , # ( ) + - * /
- NEWLINE, COMMENT, EOF: statement terminators

Number Formats
--------------

| Format      | Prefix | Example     | Token value |
|-------------|--------|-------------|-------------|
| Hexadecimal | $      | $ff, $00aa  | "ff", "00aa"|
| Decimal     | (none) | 255, 0255   | "255"       |
| Binary      | %      | %0101       | "0101"      |
| Character   | '      | 'A'         | "A"         |

Comments start with ';' and run to the end of the line. They are kept as
COMMENT tokens because a comment terminates a statement the same way a
newline does.

Example
-------
>>> from asm6502.assembler.lexer import Lexer
>>> for token in Lexer("LDA #$41 ; 'A'").tokenize():
...     print(token)
Token(LITERAL, 'LDA', 1:1)
Token(HASH, '#', 1:5)
Token(HEX, '41', 1:6)
Token(COMMENT, " 'A'", 1:10)
Token(EOF, 1:15)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from asm6502.errors import AssemblySyntaxError, SourceLocation


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token categories of the 6502 assembly language."""

    # Statement terminators
    NEWLINE = auto()
    COMMENT = auto()
    EOF = auto()

    # Values
    LITERAL = auto()     # Identifier
    HEX = auto()         # $ff
    DEC = auto()         # 255
    BIN = auto()         # %1010
    CHAR = auto()        # 'A'
    STRING = auto()      # "text"
    DIRECTIVE = auto()   # .byte

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()

    # Delimiters
    EQUALS = auto()
    COLON = auto()
    COMMA = auto()
    HASH = auto()
    LPAREN = auto()
    RPAREN = auto()


# Token types that end a statement
TERMINATORS = frozenset({TokenType.NEWLINE, TokenType.COMMENT, TokenType.EOF})

# Token types that hold a numeric literal
NUMBER_TYPES = frozenset({TokenType.HEX, TokenType.DEC, TokenType.BIN, TokenType.CHAR})


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the source code.

    Attributes:
        type: The TokenType classification
        value: Raw token text (None for punctuation-free markers)
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: Optional[str]
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
        return f"Token({self.type.name}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    @property
    def is_terminator(self) -> bool:
        """True for NEWLINE, COMMENT and EOF."""
        return self.type in TERMINATORS


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes 6502 assembly source code.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())
    """

    IDENT_START = string.ascii_letters + "_"
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    SINGLE_CHAR_TOKENS = {
        "+": TokenType.PLUS,
        "-": TokenType.MINUS,
        "*": TokenType.STAR,
        "/": TokenType.SLASH,
        "=": TokenType.EQUALS,
        ":": TokenType.COLON,
        ",": TokenType.COMMA,
        "#": TokenType.HASH,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
    }

    ESCAPE_SEQUENCES = {
        "n": "\n",
        "r": "\r",
        "t": "\t",
        "\\": "\\",
        '"': '"',
        "'": "'",
        "0": "\0",
    }

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1
        self._lines = source.split("\n")

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code.

        Yields:
            Token objects, always ending with EOF

        Raises:
            AssemblySyntaxError: If invalid syntax is encountered
        """
        while not self._at_end():
            if self._skip_whitespace():
                continue
            yield self._scan_token()

        yield Token(TokenType.EOF, None, self._line, self._column, self.filename)

    # =========================================================================
    # Character Access
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or "" past the end."""
        start = self._pos + offset
        return self.source[start:start + 1]

    def _advance(self) -> str:
        """Consume the current character, tracking line and column."""
        if self._at_end():
            return ""

        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

        return char

    def _error(self, message: str) -> AssemblySyntaxError:
        """Syntax error at the current position, quoting the current line."""
        return AssemblySyntaxError(
            message,
            SourceLocation(self.filename, self._line, self._column),
            source_line=self._lines[self._line - 1].rstrip("\r"),
        )

    def _skip_whitespace(self) -> bool:
        # '' in " \t\r" is True, so check for end of input first
        skipped = False
        while self._peek() and self._peek() in " \t\r":
            self._advance()
            skipped = True
        return skipped

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        line = self._line
        column = self._column
        char = self._peek()

        def make(token_type: TokenType, value: Optional[str]) -> Token:
            return Token(token_type, value, line, column, self.filename)

        if char == "\n":
            self._advance()
            return make(TokenType.NEWLINE, None)

        if char == ";":
            self._advance()
            chars = []
            while self._peek() and self._peek() != "\n":
                chars.append(self._advance())
            return make(TokenType.COMMENT, "".join(chars))

        if char in self.IDENT_START:
            return make(TokenType.LITERAL, self._take(self.IDENT_CHARS))

        if char.isdigit():
            return make(TokenType.DEC, self._take(string.digits))

        if char == "$":
            self._advance()
            digits = self._take(string.hexdigits)
            if not digits:
                raise self._error("expected hexadecimal digits after '$'")
            return make(TokenType.HEX, digits)

        if char == "%":
            self._advance()
            digits = self._take("01")
            if not digits:
                raise self._error("expected binary digits after '%'")
            return make(TokenType.BIN, digits)

        if char == ".":
            self._advance()
            name = self._take(self.IDENT_CHARS)
            if not name:
                raise self._error("expected directive name after '.'")
            return make(TokenType.DIRECTIVE, name)

        if char == '"':
            return make(TokenType.STRING, self._scan_quoted('"', "string"))

        if char == "'":
            value = self._scan_quoted("'", "character")
            if len(value) != 1:
                raise self._error("character literal must hold exactly one character")
            return make(TokenType.CHAR, value)

        if char in self.SINGLE_CHAR_TOKENS:
            self._advance()
            return make(self.SINGLE_CHAR_TOKENS[char], char)

        raise self._error(f"unexpected character '{char}'")

    def _take(self, allowed: str) -> str:
        """Consume a run of characters drawn from allowed."""
        chars = []
        while self._peek() and self._peek() in allowed:
            chars.append(self._advance())
        return "".join(chars)

    def _scan_quoted(self, quote: str, what: str) -> str:
        """Scan a quoted literal, handling backslash escapes."""
        self._advance()  # opening quote
        chars = []

        while True:
            char = self._peek()
            if not char or char == "\n":
                raise self._error(f"unterminated {what} literal")
            self._advance()

            if char == quote:
                return "".join(chars)

            if char == "\\":
                escape = self._advance()
                if escape not in self.ESCAPE_SEQUENCES:
                    raise self._error(f"invalid escape sequence '\\{escape}'")
                chars.append(self.ESCAPE_SEQUENCES[escape])
            else:
                chars.append(char)


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Tokenize source text into a list ending with EOF."""
    return list(Lexer(source, filename).tokenize())
