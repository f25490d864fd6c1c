from enum import Enum, auto
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional
from lexer import Lexer, TokenType, Token

class CommandType(Enum):
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

class ParamType(Enum):
    STRING = auto()      # "literal"
    VARIABLE = auto()    # bare name, looked up when the command runs

class StatementType(Enum):
    COMMAND = auto()
    IF = auto()
    SET_VARIABLE = auto()
    COMMENT = auto()
    CATCH_ERROR = auto()

    # Only ever created by the interpreter while executing try-again
    TRY_AGAIN_DONE = auto()

# Command tokens and the keyword each command is written with
COMMAND_TOKENS: Dict[TokenType, CommandType] = {
    TokenType.LOCATE: CommandType.LOCATE,
    TokenType.LOCATE_NO_SCROLL: CommandType.LOCATE_NO_SCROLL,
    TokenType.TYPE: CommandType.TYPE,
    TokenType.CLICK: CommandType.CLICK,
    TokenType.REFRESH: CommandType.REFRESH,
    TokenType.TRY_AGAIN: CommandType.TRY_AGAIN,
    TokenType.SCREENSHOT: CommandType.SCREENSHOT,
    TokenType.READ_TO: CommandType.READ_TO,
    TokenType.URL: CommandType.URL,
    TokenType.PRESS: CommandType.PRESS,
    TokenType.CHILL: CommandType.CHILL,
    TokenType.SELECT: CommandType.SELECT,
    TokenType.DRAG_TO: CommandType.DRAG_TO,
    TokenType.UPLOAD: CommandType.UPLOAD,
}

COMMAND_KEYWORDS: Dict[CommandType, str] = {
    COMMAND_TOKENS[token_type]: keyword
    for keyword, token_type in Lexer.RESERVED_KEYWORDS.items()
    if token_type in COMMAND_TOKENS
}

# Commands that take no parameter
BARE_COMMANDS = {CommandType.CLICK, CommandType.REFRESH, CommandType.TRY_AGAIN, CommandType.SCREENSHOT}

@dataclass(frozen=True)
class CommandParameter:
    type: ParamType
    value: str

    def __str__(self) -> str:
        if self.type == ParamType.VARIABLE:
            return self.value
        escaped = self.value.replace('\\', '\\\\').replace('"', '\\"')
        return f'"{escaped}"'

@dataclass(frozen=True)
class Command:
    type: CommandType
    param: Optional[CommandParameter] = None

    def __str__(self) -> str:
        keyword = COMMAND_KEYWORDS[self.type]
        if self.param is None:
            return keyword
        return f"{keyword} {self.param}"

@dataclass(frozen=True)
class CommandChain:
    """One script line of commands joined with `and`."""
    lhs: Command
    rhs: Optional['CommandChain'] = None

    def commands(self) -> Iterator[Command]:
        chain: Optional[CommandChain] = self
        while chain is not None:
            yield chain.lhs
            chain = chain.rhs

    def __str__(self) -> str:
        return ' and '.join(str(command) for command in self.commands())

@dataclass(frozen=True)
class Statement:
    type: StatementType
    line: int = 0

    chain: Optional[CommandChain] = None   # COMMAND, IF (then branch), CATCH_ERROR
    condition: Optional[Command] = None    # IF
    variable_name: Optional[str] = None    # SET_VARIABLE
    value: Optional[str] = None            # SET_VARIABLE value, COMMENT text

    def __str__(self) -> str:
        if self.type == StatementType.COMMAND:
            return str(self.chain)
        elif self.type == StatementType.IF:
            return f"if {self.condition} then {self.chain}"
        elif self.type == StatementType.SET_VARIABLE:
            return f"save {CommandParameter(ParamType.STRING, self.value)} as {self.variable_name}"
        elif self.type == StatementType.COMMENT:
            return f"# {self.value}"
        elif self.type == StatementType.CATCH_ERROR:
            return f"catch-error: {self.chain}"
        elif self.type == StatementType.TRY_AGAIN_DONE:
            return "try-again complete"
        raise ValueError(f"Unsupported statement type: {self.type}")

TRY_AGAIN_DONE = Statement(type=StatementType.TRY_AGAIN_DONE)

class Parser:
    def __init__(self, tokens: List[Token]) -> None:
        """Initialize the parser with tokens from the lexer."""
        self.tokens: List[Token] = tokens
        self.pos: int = 0
        self.current_token: Optional[Token] = self.tokens[0] if tokens else None

    # ======================================================================
    # BASIC UTILITIES
    # ======================================================================

    def advance(self) -> None:
        """Move to the next token."""
        self.pos += 1
        if self.pos < len(self.tokens):
            self.current_token = self.tokens[self.pos]
        else:
            self.current_token = None

    def eat(self, token_type: TokenType) -> Token:
        """Consume the current token if it matches the expected type."""
        if self.current_token and self.current_token.type == token_type:
            token = self.current_token
            self.advance()
            return token
        else:
            found = self.current_token.type if self.current_token else 'None'
            line = self.current_token.line if self.current_token else '?'
            raise SyntaxError(f"Expected {token_type} but got {found} at line {line}")

    def skip_newlines(self) -> None:
        """Skip any newline tokens."""
        while self.current_token and self.current_token.type == TokenType.NEWLINE:
            self.advance()

    # ======================================================================
    # COMMANDS
    # ======================================================================

    def parse_parameter(self) -> CommandParameter:
        """Parse a string literal or a variable reference."""
        if self.current_token and self.current_token.type == TokenType.STRING:
            return CommandParameter(ParamType.STRING, self.eat(TokenType.STRING).value)
        if self.current_token and self.current_token.type == TokenType.IDENTIFIER:
            return CommandParameter(ParamType.VARIABLE, self.eat(TokenType.IDENTIFIER).value)

        found = self.current_token.value if self.current_token else 'end of input'
        line = self.current_token.line if self.current_token else '?'
        raise SyntaxError(f"Expected a string or variable name but got '{found.strip()}' at line {line}")

    def parse_command(self) -> Command:
        """Parse a single command and its parameter."""
        token: Optional[Token] = self.current_token
        if token is None or token.type not in COMMAND_TOKENS:
            found = token.value if token else 'end of input'
            line = token.line if token else '?'
            raise SyntaxError(f"Expected a command but got '{found.strip()}' at line {line}")

        command_type = COMMAND_TOKENS[token.type]
        self.advance()

        if command_type in BARE_COMMANDS:
            return Command(command_type)

        # read-to names the variable to write, so it never takes a literal
        if command_type == CommandType.READ_TO:
            name_token: Token = self.eat(TokenType.IDENTIFIER)
            return Command(command_type, CommandParameter(ParamType.VARIABLE, name_token.value))

        return Command(command_type, self.parse_parameter())

    def parse_command_chain(self) -> CommandChain:
        """Parse commands joined with `and`."""
        commands: List[Command] = [self.parse_command()]
        while self.current_token and self.current_token.type == TokenType.AND:
            self.eat(TokenType.AND)
            commands.append(self.parse_command())

        chain: Optional[CommandChain] = None
        for command in reversed(commands):
            chain = CommandChain(command, chain)
        return chain

    # ======================================================================
    # STATEMENTS
    # ======================================================================

    def parse_if_statement(self) -> Statement:
        """Parse `if <command> then <commands>`."""
        token: Token = self.eat(TokenType.IF)
        condition: Command = self.parse_command()
        self.eat(TokenType.THEN)

        if self.current_token and self.current_token.type == TokenType.IF:
            raise SyntaxError(f"Nested if statements are not supported at line {token.line}")

        return Statement(
            type=StatementType.IF,
            line=token.line,
            condition=condition,
            chain=self.parse_command_chain()
        )

    def parse_save(self) -> Statement:
        """Parse `save "value" as name`."""
        token: Token = self.eat(TokenType.SAVE)
        value_token: Token = self.eat(TokenType.STRING)
        self.eat(TokenType.AS)
        name_token: Token = self.eat(TokenType.IDENTIFIER)

        return Statement(
            type=StatementType.SET_VARIABLE,
            line=token.line,
            variable_name=name_token.value,
            value=value_token.value
        )

    def parse_catch_error(self) -> Statement:
        """Parse `catch-error: <commands>`."""
        token: Token = self.eat(TokenType.CATCH_ERROR)
        return Statement(
            type=StatementType.CATCH_ERROR,
            line=token.line,
            chain=self.parse_command_chain()
        )

    def parse_statement(self) -> Optional[Statement]:
        """Parse a single statement."""
        # Skip any newlines before the statement
        self.skip_newlines()

        if not self.current_token or self.current_token.type == TokenType.EOF:
            return None

        token: Token = self.current_token
        if token.type == TokenType.COMMENT:
            self.eat(TokenType.COMMENT)
            node = Statement(type=StatementType.COMMENT, line=token.line, value=token.value)
        elif token.type == TokenType.IF:
            node = self.parse_if_statement()
        elif token.type == TokenType.SAVE:
            node = self.parse_save()
        elif token.type == TokenType.CATCH_ERROR:
            node = self.parse_catch_error()
        elif token.type in COMMAND_TOKENS:
            node = Statement(type=StatementType.COMMAND, line=token.line, chain=self.parse_command_chain())
        else:
            raise SyntaxError(f"Unexpected token '{token.value}' at line {token.line}")

        # Expect a newline after each statement (or EOF)
        if self.current_token and self.current_token.type not in (TokenType.NEWLINE, TokenType.EOF):
            raise SyntaxError(f"Expected newline after statement, got '{self.current_token.value}' at line {self.current_token.line}")

        # Skip the newline if there is one
        if self.current_token and self.current_token.type == TokenType.NEWLINE:
            self.eat(TokenType.NEWLINE)

        return node

    def parse(self) -> List[Statement]:
        """Parse the tokens into the ordered list of statements."""
        statements: List[Statement] = []

        # Parse statements until we reach the end of file
        while self.current_token and self.current_token.type != TokenType.EOF:
            statement = self.parse_statement()
            if statement:
                statements.append(statement)

        return statements

def parse_script(text: str) -> List[Statement]:
    """Scan and parse script text in one step."""
    return Parser(Lexer(text).tokenize()).parse()
