"""
Shell Lexer - command line tokenization

OBJECTIVE: Split a raw command line into words and operators.

============================================================================
USAGE
============================================================================

    >>> tokenize('cat "my file.txt" | grep -n x>out')
    ['cat', 'my file.txt', '|', 'grep', '-n', 'x', '>', 'out']

    >>> ShellLexer('echo a&&echo b').tokenize()
    [Token(WORD, 'echo', pos=0), Token(WORD, 'a', pos=5),
     Token(OPERATOR, '&&', pos=6), ...]

============================================================================
RULES
============================================================================

    - Unquoted whitespace separates words
    - '...'  literal, no escapes
    - "..."  backslash escapes only  \\  "  $  `
    - \\x     outside quotes: literal x
    - $(...) kept intact inside one word (nested parens counted)
    - Operators split words without surrounding spaces:
          |  ||  &&  ;  >  >>  <  <<  2>  2>>  &>  2>&1
      '2>' forms are only operators at the start of a word (a2>f is
      the word 'a2' redirected to f)
    - Unquoted newline acts like ';'

============================================================================
LIMITATIONS
============================================================================

- No $VAR / ${VAR} expansion, no brace expansion, no tilde expansion
- No backtick substitution
- A lone '&' (background) is an ordinary character

Quoted words whose text collides with an operator ('|', ";") or carries
glob characters ("*.txt") are returned as LiteralWord so that later stages
treat them as plain text.
"""
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from .constants import CONTROL_OPERATORS, GLOB_CHARS, LEXER_OPERATORS, REDIRECT_OPERATORS
from .errors import UnterminatedQuote


# ============================================================================
# TOKEN TYPES
# ============================================================================

class TokenType(Enum):
    """Token types for the shell lexer"""
    WORD = auto()
    OPERATOR = auto()


@dataclass
class Token:
    """Token with type, value, and position"""
    type: TokenType
    value: str
    pos: int
    quoted: bool = False

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, pos={self.pos})"


class LiteralWord(str):
    """A quoted word, never treated as an operator or a glob"""


def is_operator(token: str) -> bool:
    """True for unquoted control or redirection operator tokens"""
    if isinstance(token, LiteralWord):
        return False
    return token in CONTROL_OPERATORS or token in REDIRECT_OPERATORS


# ============================================================================
# LEXER
# ============================================================================

class ShellLexer:
    """
    Lexer for shell command lines.

    Handles:
    - Quotes (single, double)
    - Escapes (\\)
    - Operators (|, &&, ||, ;, redirects)
    - Command substitution kept as a single word
    """

    DOUBLE_QUOTE_ESCAPABLE = '\\"$`'

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.length = len(text)

    def tokenize(self) -> List[Token]:
        """Tokenize input into list of tokens"""
        tokens = []

        while self.pos < self.length:
            char = self._current()

            if char in ' \t\r':
                self.pos += 1
                continue

            if char == '\n':
                tokens.append(Token(TokenType.OPERATOR, ';', self.pos))
                self.pos += 1
                continue

            token = self._try_operator()
            if token:
                tokens.append(token)
                continue

            tokens.append(self._read_word())

        return tokens

    def _current(self) -> str:
        """Get current character"""
        if self.pos >= self.length:
            return ''
        return self.text[self.pos]

    def _peek(self, offset: int = 1) -> str:
        """Peek ahead"""
        pos = self.pos + offset
        if pos >= self.length:
            return ''
        return self.text[pos]

    def _try_operator(self) -> Optional[Token]:
        """Try to match operator token at current position"""
        for op in LEXER_OPERATORS:
            if self.text.startswith(op, self.pos):
                token = Token(TokenType.OPERATOR, op, self.pos)
                self.pos += len(op)
                return token
        return None

    def _at_word_break(self) -> bool:
        """Operator or whitespace ends the current word"""
        char = self._current()
        if char in ' \t\r\n':
            return True
        # '2>' only starts an operator at a word boundary, '&' only as '&&' / '&>'
        if char == '2' or (char == '&' and self._peek() not in '&>'):
            return False
        return any(self.text.startswith(op, self.pos) for op in LEXER_OPERATORS)

    def _read_word(self) -> Token:
        """
        Read word (command, argument, filename).

        Raises:
            UnterminatedQuote: quote opened but never closed
        """
        start = self.pos
        word = []
        quoted = False

        while self.pos < self.length and not self._at_word_break():
            char = self._current()

            # Escape character
            if char == '\\':
                quoted = True
                self.pos += 1
                if self.pos < self.length:
                    word.append(self._current())
                    self.pos += 1
                continue

            # Single quote (literal)
            if char == "'":
                quoted = True
                close = self.text.find("'", self.pos + 1)
                if close == -1:
                    raise UnterminatedQuote('single', self.pos)
                word.append(self.text[self.pos + 1:close])
                self.pos = close + 1
                continue

            # Double quote (limited escapes)
            if char == '"':
                quoted = True
                self._read_double_quoted(word)
                continue

            # Command substitution $(...) - include in word
            if char == '$' and self._peek() == '(':
                self._read_substitution(word)
                continue

            word.append(char)
            self.pos += 1

        value = ''.join(word)
        if quoted and (is_operator(value) or any(c in value for c in GLOB_CHARS)):
            value = LiteralWord(value)
        return Token(TokenType.WORD, value, start, quoted)

    def _read_double_quoted(self, word: List[str]):
        opened_at = self.pos
        self.pos += 1
        while self.pos < self.length:
            char = self._current()
            if char == '"':
                self.pos += 1
                return
            if char == '\\' and self._peek() and self._peek() in self.DOUBLE_QUOTE_ESCAPABLE:
                word.append(self._peek())
                self.pos += 2
                continue
            if char == '$' and self._peek() == '(':
                self._read_substitution(word)
                continue
            word.append(char)
            self.pos += 1
        raise UnterminatedQuote('double', opened_at)

    def _read_substitution(self, word: List[str]):
        """Copy $( ... ) verbatim, counting nested parens"""
        start = self.pos
        self.pos += 2
        depth = 1
        while self.pos < self.length and depth > 0:
            char = self._current()
            if char == '(':
                depth += 1
            elif char == ')':
                depth -= 1
            self.pos += 1
        word.append(self.text[start:self.pos])


def tokenize(line: str) -> List[str]:
    """
    Tokenize a command line into strings.

    Operator tokens are plain strings, words that only look like operators
    because they were quoted come back as LiteralWord.
    """
    return [token.value for token in ShellLexer(line).tokenize()]
