"""Shared fixtures: an in-memory browser the interpreter can drive."""

from __future__ import annotations

import asyncio
import re
from typing import Any, Dict, List, Optional, Tuple

import pytest

from browser.interface import BrowserAutomation, BrowserError, Element, SelectControl
from browser.selector import By, Selector
from interpreter import Interpreter
from parser import parse_script


# ---------------------------------------------------------------------------
# Fake page model
# ---------------------------------------------------------------------------

class FakeElement(Element):
    """A page element with a tag, attributes and text."""

    def __init__(
        self,
        tag: str,
        text: str = "",
        parent: Optional[FakeElement] = None,
        xpath: Optional[str] = None,
        **attrs: str,
    ) -> None:
        self.tag = tag
        self.text_value = text
        self.parent = parent
        self.xpath = xpath
        self.attrs = {key.rstrip("_"): value for key, value in attrs.items()}

    async def query(self, xpath: str) -> Optional[Element]:
        if xpath == "./..":
            return self.parent
        return None

    async def tag_name(self) -> str:
        return self.tag

    async def text(self) -> str:
        return self.text_value

    def __repr__(self) -> str:
        return f"<{self.tag} {self.attrs} {self.text_value!r}>"


class FakeSelect(SelectControl):
    def __init__(self, browser: FakeBrowser, element: FakeElement) -> None:
        self.browser = browser
        self.element = element

    async def select_by_visible_text(self, text: str) -> None:
        options = [
            e for e in self.browser.elements
            if e.parent is self.element and e.tag == "option"
        ]
        for option in options:
            if option.text_value == text:
                self.browser.actions.append(("select", self.element, text))
                return
        raise BrowserError(f"No option {text}")


_LITERAL = r"""('[^']*'|"[^"]*")"""
_PATTERNS = [
    ("placeholder", re.compile(rf"^//input\[@placeholder={_LITERAL}\]$")),
    ("label", re.compile(rf"^//label\[text\(\)={_LITERAL}\]/\.\./input$")),
    ("text", re.compile(rf"^//\*\[text\(\)={_LITERAL}\]$")),
    ("partial", re.compile(rf"^//\*\[contains\(text\(\), {_LITERAL}\)\]$")),
    ("title", re.compile(rf"^//\*\[@title={_LITERAL}\]$")),
]


class FakeBrowser(BrowserAutomation):
    """
    Answers element queries from a list of FakeElements and records every action.

    Actions can be made to fail with fail("click"), optionally only a number of times.
    """

    def __init__(self, elements: Optional[List[FakeElement]] = None, **options: Any) -> None:
        self.elements: List[FakeElement] = list(elements or [])
        self.options = options
        self.actions: List[Tuple] = []
        self.queries: List[Tuple[Selector, float]] = []
        self.failures: Dict[str, Optional[int]] = {}
        self.launched = False
        self.closed = False

    def add(self, *elements: FakeElement) -> None:
        self.elements.extend(elements)

    def fail(self, action: str, times: Optional[int] = None) -> None:
        """Make an action raise BrowserError, forever or for the next `times` calls."""
        self.failures[action] = times

    def _maybe_fail(self, action: str) -> None:
        if action not in self.failures:
            return
        remaining = self.failures[action]
        if remaining is not None:
            if remaining <= 1:
                del self.failures[action]
            else:
                self.failures[action] = remaining - 1
        raise BrowserError(f"{action} failed")

    def _matches(self, selector: Selector, element: FakeElement) -> bool:
        if selector.by == By.ID:
            return element.attrs.get("id") == selector.value
        if selector.by == By.NAME:
            return element.attrs.get("name") == selector.value
        if selector.by == By.CLASS_NAME:
            return selector.value in element.attrs.get("class", "").split()

        for kind, pattern in _PATTERNS:
            match = pattern.match(selector.value)
            if not match:
                continue
            value = match.group(1)[1:-1]
            if kind == "placeholder":
                return element.tag == "input" and element.attrs.get("placeholder") == value
            if kind == "label":
                return element.tag == "input" and any(
                    e.tag == "label" and e.text_value == value and e.parent is element.parent
                    for e in self.elements
                )
            if kind == "text":
                return element.text_value == value
            if kind == "partial":
                return bool(element.text_value) and value in element.text_value
            if kind == "title":
                return element.attrs.get("title") == value

        # Anything else is raw XPath, answered by elements declaring it
        return element.xpath == selector.value

    async def launch(self, headless: bool = True) -> None:
        self.launched = True
        self.actions.append(("launch", headless))

    async def goto(self, url: str) -> None:
        self._maybe_fail("goto")
        self.actions.append(("goto", url))

    async def refresh(self) -> None:
        self._maybe_fail("refresh")
        self.actions.append(("refresh",))

    async def query(self, selector: Selector, wait: float = 0) -> Optional[Element]:
        self.queries.append((selector, wait))
        self._maybe_fail("query")
        for element in self.elements:
            if self._matches(selector, element):
                return element
        return None

    async def scroll_into_view(self, element: Element) -> None:
        self._maybe_fail("scroll")
        self.actions.append(("scroll", element))

    async def click(self, element: Element) -> None:
        self._maybe_fail("click")
        self.actions.append(("click", element))

    async def clear(self, element: Element) -> None:
        self._maybe_fail("clear")
        self.actions.append(("clear", element))

    async def send_keys(self, element: Element, text: str) -> None:
        self._maybe_fail("send_keys")
        self.actions.append(("send_keys", element, text))

    async def press_key(self, element: Element, key: str) -> None:
        self._maybe_fail("press_key")
        self.actions.append(("press_key", element, key))

    async def upload_file(self, element: Element, path: str) -> None:
        self._maybe_fail("upload_file")
        self.actions.append(("upload_file", element, path))

    async def as_select(self, element: Element) -> SelectControl:
        if element.tag != "select":
            raise BrowserError("not a select")
        return FakeSelect(self, element)

    async def drag_and_drop(self, source: Element, target: Element) -> None:
        self._maybe_fail("drag_and_drop")
        self.actions.append(("drag_and_drop", source, target))

    async def screenshot(self) -> bytes:
        self._maybe_fail("screenshot")
        self.actions.append(("screenshot",))
        return b"\x89PNG fake"

    async def execute_script(self, script: str, *args: Any) -> Any:
        self._maybe_fail("execute_script")
        self.actions.append(("execute_script", script) + args)

    async def cleanup(self) -> None:
        self._maybe_fail("cleanup")
        self.closed = True
        self.actions.append(("cleanup",))

    def performed(self, name: str) -> List[Tuple]:
        return [action for action in self.actions if action[0] == name]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def sleeps(monkeypatch: pytest.MonkeyPatch) -> List[float]:
    """Replace asyncio.sleep so pacing delays and chill cost nothing."""
    recorded: List[float] = []

    async def fake_sleep(seconds, result=None):
        recorded.append(seconds)
        return result

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded


@pytest.fixture
def browser() -> FakeBrowser:
    """A page with a search box, a submit button and a heading."""
    return FakeBrowser([
        FakeElement("input", placeholder="Search", id="search-box"),
        FakeElement("button", text="Submit", id="submit", class_="btn primary"),
        FakeElement("h1", text="Welcome to the shop"),
    ])


@pytest.fixture
def interpret():
    """Run script text against a browser; returns (interpreter, exited_early)."""

    def _interpret(script: str, browser: BrowserAutomation, **kwargs: Any):
        kwargs.setdefault("command_delay", 0)
        interpreter = Interpreter(parse_script(script), browser, **kwargs)
        exited_early = asyncio.run(interpreter.interpret())
        return interpreter, exited_early

    return _interpret
