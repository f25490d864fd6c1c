import asyncio
import logging
import re
from collections import deque
from enum import Enum, auto
from typing import Deque, Iterable, List, Optional
from parser import Command, CommandChain, CommandParameter, CommandType, ParamType, Statement, StatementType, TRY_AGAIN_DONE
from environment import Environment
from locator import locate_element
from browser.interface import BrowserAutomation, BrowserError, Element

logger = logging.getLogger(__name__)

# Key names the press command understands, mapped to the backend's key names
SUPPORTED_KEYS = {"Enter": "Enter"}

HIGHLIGHT_SCRIPT = "el => { el.style.border = '5px solid purple'; }"
UNHIGHLIGHT_SCRIPT = "el => { el.style.border = 'none'; }"


class Severity(Enum):
    """
    How the statement loop responds to a failed command.

    RECOVERABLE skips ahead to the next catch-error line, EXIT ends the run.
    """
    EXIT = auto()
    RECOVERABLE = auto()


class CommandError(Exception):
    """A command failure carrying the message shown in the report and its severity."""

    def __init__(self, message: str, severity: Severity) -> None:
        super().__init__(message)
        self.message = message
        self.severity = severity


class Interpreter:
    """
    Executes parsed test scripts against a browser, one statement at a time.

    Keeps the state of a single run: the queue of pending statements, the
    element in focus, whether the script is skipping ahead after an error,
    whether a try-again pass is underway, and the report buffers.
    """

    def __init__(
            self,
            statements: Iterable[Statement],
            browser: BrowserAutomation,
            demo: bool = False,
            command_delay: float = 1.0
            ) -> None:
        """
        Initialize the interpreter with the statements of one script.

        Args:
            statements: Parsed statements, in script order
            browser: Launched browser session the script runs in
            demo: Outline the element in focus so a viewer can follow along
            command_delay: Pause in seconds before every command
        """
        self.statements: List[Statement] = list(statements)
        self.browser: BrowserAutomation = browser
        self.demo: bool = demo
        self.command_delay: float = command_delay

        self.environment: Environment = Environment()

        # Statements still to run; taken from the left
        self.queue: Deque[Statement] = deque()

        # Element that element commands act on, set by locate
        self.current_element: Optional[Element] = None

        # True while skipping ahead to a catch-error line
        self.had_error: bool = False

        # True from try-again until the replayed statements have run
        self.tried_again: bool = False

        # Statements seen since the last catch-error line, replayed by try-again
        self.replay_buffer: List[Statement] = []

        self.log_buffer: List[str] = []
        self.screenshot_buffer: List[bytes] = []

    # ======================================================================
    # REPORT
    # ======================================================================

    def log_cmd(self, message: str) -> None:
        self.log_buffer.append(f"Info: {message}")

    def log_err(self, message: str) -> None:
        self.log_buffer.append(f"Error: {message}")

    @property
    def log_text(self) -> str:
        return ''.join(f"{line}\n" for line in self.log_buffer)

    # ======================================================================
    # STATEMENT LOOP
    # ======================================================================

    async def interpret(self, close_session: bool = True) -> bool:
        """
        Execute every statement of the script.

        Args:
            close_session: Close the browser when the run ends

        Returns:
            True when the run ended early or while still skipping after an error
        """
        # Reset in case the interpreter is being reused
        self.queue = deque(self.statements)
        self.environment.clear()
        self.current_element = None
        self.had_error = False
        self.tried_again = False
        self.replay_buffer = []
        self.log_buffer = []
        self.screenshot_buffer = []

        while self.queue:
            statement = self.queue.popleft()
            if not self.had_error:
                self.log_cmd(str(statement))

            try:
                await self.execute_statement(statement)
            except CommandError as e:
                self.log_err(e.message)
                if e.severity == Severity.EXIT:
                    logger.info("Exiting early at line %d: %s", statement.line, e.message)
                    if close_session:
                        await self.close_session()
                    return True
                logger.debug("Recoverable error at line %d: %s", statement.line, e.message)
                self.had_error = True

        # We completed the entire script
        if close_session:
            await self.close_session()

        return self.had_error

    async def close_session(self) -> None:
        try:
            await self.browser.cleanup()
        except BrowserError as e:
            logger.warning("Could not close browser session: %s", e)

    async def execute_statement(self, statement: Statement) -> None:
        """Execute one statement according to the current error mode."""
        # The retry marker belongs to no block
        if statement.type != StatementType.TRY_AGAIN_DONE:
            self.replay_buffer.append(statement)

        if not self.had_error:
            if statement.type == StatementType.COMMAND:
                await self.execute_command_chain(statement.chain)
            elif statement.type == StatementType.IF:
                await self.execute_if(statement)
            elif statement.type == StatementType.SET_VARIABLE:
                self.environment.set_variable(statement.variable_name, statement.value)
            elif statement.type == StatementType.COMMENT:
                # Comments only exist for the report log
                pass
            elif statement.type == StatementType.CATCH_ERROR:
                # No error happened since the last catch-error line, so there is
                # nothing for try-again to re-run past this point
                self.replay_buffer = []
            elif statement.type == StatementType.TRY_AGAIN_DONE:
                # The replayed statements passed, back to normal execution
                self.tried_again = False
            else:
                raise ValueError(f"Unsupported statement type: {statement.type}")
        else:
            if statement.type == StatementType.CATCH_ERROR:
                await self.execute_command_chain(statement.chain)
                self.had_error = False
            # Every other statement is skipped; it stays in the replay buffer

    async def execute_if(self, statement: Statement) -> None:
        """Run the then-branch only when the condition command succeeds."""
        try:
            await self.execute_command(statement.condition)
        except CommandError as e:
            logger.debug("Condition '%s' did not hold: %s", statement.condition, e.message)
            return
        await self.execute_command_chain(statement.chain)

    async def execute_command_chain(self, chain: CommandChain) -> None:
        """Execute each command of the line in order, stopping at the first failure."""
        for command in chain.commands():
            await self.execute_command(command)

    # ======================================================================
    # ERRORS, VARIABLES AND FOCUS
    # ======================================================================

    def error(self, message: str) -> CommandError:
        """Build a failure; anything that fails during a try-again pass ends the run."""
        if self.tried_again:
            return CommandError(message, Severity.EXIT)
        return CommandError(message, Severity.RECOVERABLE)

    def resolve(self, param: CommandParameter) -> str:
        """Turn a command parameter into its string value."""
        if param.type == ParamType.STRING:
            return param.value
        value = self.environment.get_variable(param.value)
        if value is None:
            raise self.error(f"Variable '{param.value}' is not yet defined")
        return value

    def get_current_element(self) -> Element:
        if self.current_element is None:
            raise self.error("No element currently located. Try using the locate command")
        return self.current_element

    async def set_current_element(self, element: Element, scroll_into_view: bool) -> None:
        """Bring an element into focus; later element commands act on it."""
        if scroll_into_view:
            try:
                await self.browser.scroll_into_view(element)
            except BrowserError as e:
                raise self.error("Error scrolling web element into view") from e

        if self.demo:
            try:
                await self.browser.execute_script(HIGHLIGHT_SCRIPT, element)
            except BrowserError as e:
                raise self.error("Error highlighting element") from e

        previous, self.current_element = self.current_element, element
        if self.demo and previous is not None and previous is not element:
            await self.unhighlight(previous)

    async def unhighlight(self, element: Element) -> None:
        try:
            await self.browser.execute_script(UNHIGHLIGHT_SCRIPT, element)
        except BrowserError as e:
            # The previous element has most likely gone stale
            logger.debug("Could not remove highlight: %s", e)

    # ======================================================================
    # COMMANDS
    # ======================================================================

    async def execute_command(self, command: Command) -> None:
        """Execute a single command after the pacing delay."""
        # Mimics human timing between interactions
        await asyncio.sleep(self.command_delay)

        if command.type == CommandType.LOCATE:
            await self.locate(command.param, scroll_into_view=True)
        elif command.type == CommandType.LOCATE_NO_SCROLL:
            await self.locate(command.param, scroll_into_view=False)
        elif command.type == CommandType.TYPE:
            await self.type_into_element(command.param)
        elif command.type == CommandType.CLICK:
            await self.click()
        elif command.type == CommandType.REFRESH:
            await self.refresh()
        elif command.type == CommandType.TRY_AGAIN:
            self.try_again()
        elif command.type == CommandType.SCREENSHOT:
            await self.screenshot()
        elif command.type == CommandType.READ_TO:
            await self.read_to(command.param.value)
        elif command.type == CommandType.URL:
            await self.url(command.param)
        elif command.type == CommandType.PRESS:
            await self.press(command.param)
        elif command.type == CommandType.CHILL:
            await self.chill(command.param)
        elif command.type == CommandType.SELECT:
            await self.select(command.param)
        elif command.type == CommandType.DRAG_TO:
            await self.drag_to(command.param)
        elif command.type == CommandType.UPLOAD:
            await self.upload(command.param)
        else:
            raise ValueError(f"Unsupported command type: {command.type}")

    async def locate(self, param: CommandParameter, scroll_into_view: bool) -> None:
        """
        Find an element with the locator and bring it into focus.

        Tries placeholder, label, text, partial text, title, id, name, class and
        finally raw XPath, waiting longer on each of three passes.
        """
        locator = self.resolve(param)
        element = await locate_element(self.browser, locator)
        if element is None:
            raise self.error(f"Could not locate the element '{locator}'")
        await self.set_current_element(element, scroll_into_view)

    async def type_into_element(self, param: CommandParameter) -> None:
        text = self.resolve(param)
        element = self.get_current_element()
        try:
            await self.browser.clear(element)
        except BrowserError as e:
            raise self.error("Error clearing element") from e
        try:
            await self.browser.send_keys(element, text)
        except BrowserError as e:
            raise self.error("Error typing into element") from e

    async def click(self) -> None:
        element = self.get_current_element()
        try:
            await self.browser.click(element)
        except BrowserError as e:
            raise self.error("Error clicking element") from e

    async def refresh(self) -> None:
        try:
            await self.browser.refresh()
        except BrowserError as e:
            raise self.error("Error refreshing page") from e

    def try_again(self) -> None:
        """
        Schedule the statements since the last catch-error line to run once more.

        They run in their original order, followed by the marker that ends the
        try-again pass. Any failure before the marker ends the run.
        """
        if self.tried_again:
            logger.debug("Already trying again, not scheduling another pass")
            return

        self.tried_again = True
        self.queue.appendleft(TRY_AGAIN_DONE)
        self.queue.extendleft(reversed(self.replay_buffer))
        logger.debug("Trying again %d statements", len(self.replay_buffer))
        self.replay_buffer = []

    async def screenshot(self) -> None:
        self.log_cmd("Taking a screenshot")
        try:
            png = await self.browser.screenshot()
        except BrowserError as e:
            raise self.error("Error taking screenshot.") from e
        self.screenshot_buffer.append(png)

    async def read_to(self, name: str) -> None:
        """Read the text of the element in focus into a variable."""
        element = self.get_current_element()
        try:
            text = await element.text()
        except BrowserError as e:
            raise self.error("Error getting text from element") from e
        self.environment.set_variable(name, text)

    async def url(self, param: CommandParameter) -> None:
        address = self.resolve(param)
        try:
            await self.browser.goto(address)
        except BrowserError as e:
            raise self.error("Error navigating to page.") from e

    async def press(self, param: CommandParameter) -> None:
        key_name = self.resolve(param)
        if key_name not in SUPPORTED_KEYS:
            raise self.error(f"Unsupported key '{key_name}'")
        element = self.get_current_element()
        try:
            await self.browser.press_key(element, SUPPORTED_KEYS[key_name])
        except BrowserError as e:
            raise self.error("Error pressing key. Make sure you have an element in focus first.") from e

    async def chill(self, param: CommandParameter) -> None:
        """Wait a whole number of seconds."""
        value = self.resolve(param)
        if not re.fullmatch(r'[0-9]+', value):
            raise self.error("Could not parse time to wait as integer.")
        await asyncio.sleep(int(value))

    async def select(self, param: CommandParameter) -> None:
        """Choose an option of the <select> in focus by its visible text."""
        option_text = self.resolve(param)
        element = self.get_current_element()

        # A select is often located through the text of its default option,
        # in which case the select itself is the option's parent
        try:
            tag_name = await element.tag_name()
        except BrowserError as e:
            raise self.error("Error getting element tag name") from e
        if tag_name == "option":
            try:
                parent = await element.query("./..")
            except BrowserError as e:
                raise self.error("Error getting parent select. Try locating the select element directly") from e
            if parent is None:
                raise self.error("Error getting parent select. Try locating the select element directly")
            await self.set_current_element(parent, scroll_into_view=False)

        try:
            control = await self.browser.as_select(self.get_current_element())
        except BrowserError as e:
            raise self.error("Element is not a <select> element") from e

        try:
            await control.select_by_visible_text(option_text)
        except BrowserError as e:
            raise self.error(f"Could not select text {option_text}") from e

    async def drag_to(self, param: CommandParameter) -> None:
        """Drag the element in focus onto the located target, which takes focus."""
        source = self.get_current_element()
        await self.locate(param, scroll_into_view=False)
        try:
            await self.browser.drag_and_drop(source, self.get_current_element())
        except BrowserError as e:
            raise self.error("Error dragging element.") from e

    async def upload(self, param: CommandParameter) -> None:
        path = self.resolve(param)
        element = self.get_current_element()
        try:
            await self.browser.upload_file(element, path)
        except BrowserError as e:
            raise self.error("Error uploading file") from e
