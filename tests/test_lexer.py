# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the 6502 assembler lexer/tokenizer.
#
# Test coverage includes:
#   - Number formats: hexadecimal ($), decimal, binary (%), char
#   - Raw digit text preserved for width canonicalization
#   - String literals with escape sequences
#   - Directives, punctuation and comments
#   - Line and column tracking
#   - Error conditions
# =============================================================================

import pytest
from asm6502.assembler import lexer
from asm6502.assembler.lexer import Lexer, TokenType
from asm6502.errors import AssemblySyntaxError


# =============================================================================
# Helper Functions
# =============================================================================

def tokenize(source: str) -> list:
    """Tokenize source and drop the trailing EOF token."""
    tokens = list(Lexer(source, "<test>").tokenize())
    assert tokens[-1].type == TokenType.EOF
    return tokens[:-1]


def types(source: str) -> list:
    return [t.type for t in tokenize(source)]


# =============================================================================
# Basic Token Recognition
# =============================================================================

class TestBasicTokens:
    """Test basic token recognition for simple inputs."""

    def test_empty_source(self):
        """Empty source produces only EOF."""
        assert tokenize("") == []

    def test_whitespace_only(self):
        assert tokenize("   \t  ") == []

    def test_identifier(self):
        tokens = tokenize("also_ignored")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.LITERAL
        assert tokens[0].value == "also_ignored"

    def test_instruction_with_immediate(self):
        tokens = tokenize("LDA #$41")
        assert [t.type for t in tokens] == [TokenType.LITERAL, TokenType.HASH, TokenType.HEX]
        assert tokens[0].value == "LDA"
        assert tokens[2].value == "41"

    def test_punctuation(self):
        assert types("= : , # ( ) + - * /") == [
            TokenType.EQUALS,
            TokenType.COLON,
            TokenType.COMMA,
            TokenType.HASH,
            TokenType.LPAREN,
            TokenType.RPAREN,
            TokenType.PLUS,
            TokenType.MINUS,
            TokenType.STAR,
            TokenType.SLASH,
        ]

    def test_directive_without_dot(self):
        tokens = tokenize(".byte")
        assert tokens[0].type == TokenType.DIRECTIVE
        assert tokens[0].value == "byte"

    def test_directive_case_preserved(self):
        """The parser lowercases directive names, the lexer does not."""
        assert tokenize(".DW")[0].value == "DW"


# =============================================================================
# Numbers
# =============================================================================

class TestNumbers:
    """Numeric literals keep their written digits."""

    def test_hex_digits_preserved(self):
        tokens = tokenize("$00aa")
        assert tokens[0].type == TokenType.HEX
        assert tokens[0].value == "00aa"

    def test_decimal_leading_zero_preserved(self):
        tokens = tokenize("0255")
        assert tokens[0].type == TokenType.DEC
        assert tokens[0].value == "0255"

    def test_binary(self):
        tokens = tokenize("%010")
        assert tokens[0].type == TokenType.BIN
        assert tokens[0].value == "010"

    def test_char(self):
        tokens = tokenize("'A'")
        assert tokens[0].type == TokenType.CHAR
        assert tokens[0].value == "A"

    def test_escaped_char(self):
        assert tokenize(r"'\n'")[0].value == "\n"

    def test_expression(self):
        assert types("1 + %101 * ($ff - 3)") == [
            TokenType.DEC,
            TokenType.PLUS,
            TokenType.BIN,
            TokenType.STAR,
            TokenType.LPAREN,
            TokenType.HEX,
            TokenType.MINUS,
            TokenType.DEC,
            TokenType.RPAREN,
        ]


# =============================================================================
# Strings and Comments
# =============================================================================

class TestStringsAndComments:

    def test_string(self):
        tokens = tokenize('"HELLO WORLD"')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == "HELLO WORLD"

    def test_string_escapes(self):
        assert tokenize(r'"a\"b\t"')[0].value == 'a"b\t'

    def test_comment_token(self):
        tokens = tokenize("NOP ; official")
        assert tokens[1].type == TokenType.COMMENT
        assert tokens[1].value == " official"

    def test_semicolon_inside_string(self):
        tokens = tokenize('.byte "a;b"')
        assert tokens[1].value == "a;b"
        assert len(tokens) == 2

    def test_comment_stops_at_newline(self):
        assert types("; note\nNOP") == [
            TokenType.COMMENT,
            TokenType.NEWLINE,
            TokenType.LITERAL,
        ]


# =============================================================================
# Positions
# =============================================================================

class TestPositions:

    def test_line_tracking(self):
        tokens = tokenize("NOP\nRTS")
        assert tokens[0].line == 1
        assert tokens[1].type == TokenType.NEWLINE
        assert tokens[2].line == 2
        assert tokens[2].column == 1

    def test_column_tracking(self):
        tokens = tokenize("  LDA $10")
        assert tokens[0].column == 3
        assert tokens[1].column == 7

    def test_crlf_line_endings(self):
        assert types("NOP\r\nRTS") == [
            TokenType.LITERAL,
            TokenType.NEWLINE,
            TokenType.LITERAL,
        ]

    def test_location_property(self):
        token = tokenize("\n  NOP")[1]
        assert str(token.location) == "<test>:2:3"

    def test_terminators(self):
        tokens = list(Lexer("NOP ; c\n").tokenize())
        assert [t.is_terminator for t in tokens] == [False, True, True, True]

    def test_module_tokenize_returns_list(self):
        tokens = lexer.tokenize("RTS", "prog.s")
        assert [t.type for t in tokens] == [TokenType.LITERAL, TokenType.EOF]
        assert tokens[0].filename == "prog.s"


# =============================================================================
# Errors
# =============================================================================

class TestErrors:

    def test_dollar_without_digits(self):
        with pytest.raises(AssemblySyntaxError, match="hexadecimal digits"):
            tokenize("LDA $")

    def test_percent_without_digits(self):
        with pytest.raises(AssemblySyntaxError, match="binary digits"):
            tokenize("%2")

    def test_unterminated_string(self):
        with pytest.raises(AssemblySyntaxError, match="unterminated string"):
            tokenize('.byte "abc\nNOP')

    def test_multi_character_char_literal(self):
        with pytest.raises(AssemblySyntaxError, match="exactly one character"):
            tokenize("'ab'")

    def test_unknown_character(self):
        with pytest.raises(AssemblySyntaxError, match="unexpected character '@'"):
            tokenize("LDA @10")

    def test_dot_without_name(self):
        with pytest.raises(AssemblySyntaxError, match="directive name"):
            tokenize(". byte")

    def test_error_reports_location_and_line(self):
        with pytest.raises(AssemblySyntaxError) as excinfo:
            tokenize("NOP\nLDA @10")
        error = excinfo.value
        assert error.location.line == 2
        assert error.source_line == "LDA @10"
        assert str(error).startswith("<test>:2:")
