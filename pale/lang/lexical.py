"""Lexical analysis for the pale language: turns source text into a flat list of Tokens.

The surface grammar can be loosely defined as follows:

```
<stmt>     ::= "(" <operator> <arg>* ")"    ; the outermost statement may omit its parentheses
             | "$" <operator> <arg>*        ; wraps the rest of the enclosing statement in a call
<arg>      ::= <literal> | <ident> | <stmt>
<literal>  ::= <integer> | <decimal> | "nil"
             | '"' <char>* '"'              ; no escape sequences

<comment>  ::= "//" <char>*                 ; until the end of the line
             | "{*" <char>* "*}"            ; may span several lines
```

Bare tokens are classified, in order, as keyword (`let`, `lambda`), integer, decimal, `nil` and finally identifier.
"""

from dataclasses import dataclass
from enum import Enum
import re

from pale.lang.error import LispErrors
from pale.lang.values import Floating, Integer, Nil, Str


INTEGER = re.compile(r"[+-]?\d+")
DECIMAL = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?")


@dataclass(frozen=True)
class Location:
    """Position of a token in its source, used for error messages. Lines and columns start at 1."""
    filename: str
    line: int
    col: int

    def __str__(self):
        return f"{self.filename}:{self.line}:{self.col}"


class KeyWord(Enum):
    LET = "let"
    LAMBDA = "lambda"


class TokenType(Enum):
    START = "start"      # "(" or "$"
    END = "end"          # ")" or the implicit close of a "$"
    KEYWORD = "keyword"
    LITERAL = "literal"
    IDENT = "ident"


@dataclass
class Token:
    loc: Location
    kind: TokenType
    value: object = None  # KeyWord for keywords, LispValue for literals, name for identifiers

    @classmethod
    def classify(cls, loc, text):
        """Returns the Token for a bare (non-string) word."""
        for word in KeyWord:
            if text == word.value:
                return cls(loc, TokenType.KEYWORD, word)

        if INTEGER.fullmatch(text):
            return cls(loc, TokenType.LITERAL, Integer(int(text)))
        elif DECIMAL.fullmatch(text):
            return cls(loc, TokenType.LITERAL, Floating(float(text)))
        elif text == "nil":
            return cls(loc, TokenType.LITERAL, Nil())
        return cls(loc, TokenType.IDENT, text)

    def __repr__(self):
        if self.value is None:
            return f"{self.kind.name}@{self.loc}"
        return f"{self.kind.name}({self.value!r})@{self.loc}"


class TokenizerStatus(Enum):
    NORMAL = "normal"
    STRING = "string"
    COMMENT = "comment"


class Tokenizer:
    """Scans source line by line, character by character. Besides its status, the tokenizer remembers the previous
    character (for the two-character delimiters "//", "{*" and "*}") and how many "$" wraps are still open. Every ")"
    closes all of them before closing its own statement.
    """

    def __init__(self, source, filename, first_line=1):
        self.source = source
        self.filename = filename
        self.first_line = first_line

        self.tokens = []
        self.status = TokenizerStatus.NORMAL
        self.token_buf = ""
        self.token_loc = None     # location of the first character in token_buf
        self.last_character = None
        self.opened_at = None     # location of the string/comment being scanned, for errors
        self.right_assocs = 0     # pending "$" wraps

    def loc(self, line, col):
        return Location(self.filename, line, col)

    def push_tok(self):
        """Flushes token_buf as a single token, if there is anything to flush."""
        if self.status is TokenizerStatus.STRING:
            self.tokens.append(Token(self.opened_at, TokenType.LITERAL, Str(self.token_buf)))
            self.status = TokenizerStatus.NORMAL
        elif self.token_buf:
            self.tokens.append(Token.classify(self.token_loc, self.token_buf))
        self.token_buf = ""
        self.token_loc = None

    def start_stmt(self, loc, wrap=False):
        self.push_tok()
        self.tokens.append(Token(loc, TokenType.START))
        if wrap:
            self.right_assocs += 1

    def end_stmt(self, loc):
        self.push_tok()
        self.close_wraps(loc)
        self.tokens.append(Token(loc, TokenType.END))

    def close_wraps(self, loc):
        """Closes every pending "$" wrap."""
        for _ in range(self.right_assocs):
            self.tokens.append(Token(loc, TokenType.END))
        self.right_assocs = 0

    def scan_char(self, char, loc):
        if self.status is TokenizerStatus.STRING:
            if char == '"':
                self.push_tok()
            else:
                self.token_buf += char

        elif self.status is TokenizerStatus.COMMENT:
            if char == "}" and self.last_character == "*":
                self.status = TokenizerStatus.NORMAL
                char = None  # so that "*}{" does not reopen anything

        elif char == "*" and self.last_character == "{":
            self.token_buf = self.token_buf[:-1]
            self.push_tok()
            self.status = TokenizerStatus.COMMENT
            self.opened_at = Location(loc.filename, loc.line, loc.col - 1)
            char = None  # so that "{*}" does not close the comment right away

        elif char == '"':
            self.push_tok()
            self.status = TokenizerStatus.STRING
            self.opened_at = loc
        elif char.isspace():
            self.push_tok()
        elif char == "(":
            self.start_stmt(loc)
        elif char == ")":
            self.end_stmt(loc)
        elif char == "$":
            self.start_stmt(loc, wrap=True)
        else:
            if not self.token_buf:
                self.token_loc = loc
            self.token_buf += char

        self.last_character = char

    def tokenize(self):
        """Returns the list of Tokens in self.source. Raises LispErrors for unterminated strings and comments."""
        lines = self.source.splitlines()
        for line_num, line in enumerate(lines, self.first_line):
            for col, char in enumerate(line, 1):
                if char == "/" and self.last_character == "/" and self.status is TokenizerStatus.NORMAL:
                    self.token_buf = self.token_buf[:-1]
                    break  # rest of the line is a comment
                self.scan_char(char, self.loc(line_num, col))

            if self.status is TokenizerStatus.STRING:
                self.token_buf += "\n"
            elif self.status is TokenizerStatus.NORMAL:
                self.push_tok()
            self.last_character = None

        if self.status is TokenizerStatus.STRING:
            raise LispErrors().error(self.opened_at, "Unterminated string literal!").note(None, "Add a closing '\"'.")
        elif self.status is TokenizerStatus.COMMENT:
            raise LispErrors().error(self.opened_at, "Unterminated block comment!").note(None, "Close it with '*}'.")

        self.push_tok()
        if lines:
            end = self.loc(self.first_line + len(lines) - 1, len(lines[-1]) + 1)
        else:
            end = self.loc(self.first_line, 1)
        self.close_wraps(end)
        return self.tokens


def tokenize(source, filename, first_line=1):
    """Returns the Tokens of source. filename is only used in Token locations."""
    return Tokenizer(source, filename, first_line).tokenize()
