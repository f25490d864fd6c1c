from enum import Enum, auto
from dataclasses import dataclass
from typing import List, Optional

# Token types definition
class TokenType(Enum):
    # Basic elements
    IDENTIFIER = auto()      # variable names
    STRING = auto()          # 'text inside quotes'
    COMMENT = auto()         # # text until end of line
    NEWLINE = auto()         # Line break
    EOF = auto()             # End of file

    # Commands
    LOCATE = auto()
    LOCATE_NO_SCROLL = auto()
    TYPE = auto()
    CLICK = auto()
    REFRESH = auto()
    TRY_AGAIN = auto()
    SCREENSHOT = auto()
    READ_TO = auto()
    URL = auto()
    PRESS = auto()
    CHILL = auto()
    SELECT = auto()
    DRAG_TO = auto()
    UPLOAD = auto()

    # Statement keywords
    AND = auto()             # chains commands on one line
    IF = auto()
    THEN = auto()
    SAVE = auto()
    AS = auto()
    CATCH_ERROR = auto()     # catch-error:

@dataclass
class Token:
    type: TokenType
    value: str
    line: int
    column: int

class Lexer:
    RESERVED_KEYWORDS: dict[str, TokenType] = {
        # Commands
        'locate': TokenType.LOCATE,
        'locate-no-scroll': TokenType.LOCATE_NO_SCROLL,
        'type': TokenType.TYPE,
        'click': TokenType.CLICK,
        'refresh': TokenType.REFRESH,
        'try-again': TokenType.TRY_AGAIN,
        'screenshot': TokenType.SCREENSHOT,
        'read-to': TokenType.READ_TO,
        'url': TokenType.URL,
        'press': TokenType.PRESS,
        'chill': TokenType.CHILL,
        'select': TokenType.SELECT,
        'drag-to': TokenType.DRAG_TO,
        'upload': TokenType.UPLOAD,

        # Statement keywords
        'and': TokenType.AND,
        'if': TokenType.IF,
        'then': TokenType.THEN,
        'save': TokenType.SAVE,
        'as': TokenType.AS,
        'catch-error': TokenType.CATCH_ERROR,
    }

    def __init__(self, text: str) -> None:
        """Initialize the lexer with input text."""
        self.text: str = text
        self.pos: int = 0
        self.line: int = 1
        self.column: int = 1
        self.current_char: Optional[str] = self.text[0] if text else None

    def advance(self) -> None:
        """Move to the next character in the input."""
        if self.current_char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.pos += 1

        if self.pos >= len(self.text):
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    def skip_whitespace(self) -> None:
        """Skip whitespace characters but not newlines."""
        while self.current_char and self.current_char.isspace() and self.current_char != '\n':
            self.advance()

    def comment(self) -> Token:
        """Read a comment (from # to end of line). The text is kept for the report log."""
        start_column: int = self.column
        line: int = self.line
        self.advance()  # Skip the # character

        result: str = ''
        while self.current_char and self.current_char != '\n':
            result += self.current_char
            self.advance()

        return Token(TokenType.COMMENT, result.strip(), line, start_column)

    def identifier(self) -> Token:
        """Read an identifier (command name, keyword or variable name)."""
        result: str = ''
        start_column: int = self.column

        while self.current_char and (self.current_char.isalnum() or self.current_char in '_-'):
            result += self.current_char
            self.advance()

        token_type = self.RESERVED_KEYWORDS.get(result.lower(), TokenType.IDENTIFIER)

        # catch-error is always written with its trailing colon
        if token_type == TokenType.CATCH_ERROR:
            if self.current_char != ':':
                raise SyntaxError(f"Expected ':' after catch-error at line {self.line}, column {self.column}")
            result += self.current_char
            self.advance()

        return Token(token_type, result, self.line, start_column)

    def string(self) -> Token:
        """Read a string literal."""
        quote_char: str = self.current_char  # Store whether ' or " was used
        start_column: int = self.column
        line: int = self.line
        self.advance()  # Skip the opening quote

        result: str = ''
        while self.current_char and self.current_char != quote_char:
            # Handle escape sequences
            if self.current_char == '\\' and self.pos + 1 < len(self.text):
                self.advance()
                if self.current_char == quote_char:
                    result += quote_char
                elif self.current_char == 'n':
                    result += '\n'
                elif self.current_char == 't':
                    result += '\t'
                elif self.current_char == '\\':
                    result += '\\'
                else:
                    result += '\\' + self.current_char
            elif self.current_char == '\n':
                break
            else:
                result += self.current_char
            self.advance()

        if self.current_char != quote_char:
            raise SyntaxError(f"Unterminated string at line {line}, column {start_column}")

        self.advance()  # Skip the closing quote
        return Token(TokenType.STRING, result, line, start_column)

    def get_next_token(self) -> Token:
        """Get the next token from the input."""
        while self.current_char:
            # Skip whitespace
            if self.current_char.isspace() and self.current_char != '\n':
                self.skip_whitespace()
                continue

            # Comments are tokens: they show up in the report
            if self.current_char == '#':
                return self.comment()

            # Handle newlines
            if self.current_char == '\n':
                token = Token(TokenType.NEWLINE, '\n', self.line, self.column)
                self.advance()
                return token

            # Handle keywords and variable names
            if self.current_char.isalpha() or self.current_char == '_':
                return self.identifier()

            # Handle string literals
            if self.current_char in ('"', "'"):
                return self.string()

            # If we get here, we have an invalid character
            raise SyntaxError(f"Invalid character '{self.current_char}' at line {self.line}, column {self.column}")

        # If we get here, we're at the end of the file
        return Token(TokenType.EOF, '', self.line, self.column)

    def tokenize(self) -> List[Token]:
        """Convert the entire input to a list of tokens."""
        tokens: List[Token] = []
        token: Token = self.get_next_token()

        while token.type != TokenType.EOF:
            tokens.append(token)
            token = self.get_next_token()

        tokens.append(token)  # Add the EOF token
        return tokens
