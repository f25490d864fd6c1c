from abc import ABC, abstractmethod
from typing import Any, Optional
from browser.selector import Selector

class BrowserError(Exception):
    """Raised by a backend when a browser operation fails."""

class Element(ABC):
    """Interface for a live handle to a page element."""

    @abstractmethod
    async def query(self, xpath: str) -> Optional['Element']:
        """Find the first element matching an XPath relative to this one."""
        pass

    @abstractmethod
    async def tag_name(self) -> str:
        """Lower-case tag name of the element."""
        pass

    @abstractmethod
    async def text(self) -> str:
        """Visible text of the element."""
        pass

class SelectControl(ABC):
    """An element wrapped as a <select> control."""

    @abstractmethod
    async def select_by_visible_text(self, text: str) -> None:
        """Choose the option whose visible text equals text."""
        pass

class BrowserAutomation(ABC):
    """Interface for browser automation libraries."""

    @abstractmethod
    async def launch(self, headless: bool = True) -> None:
        """Launch a browser instance."""
        pass

    @abstractmethod
    async def goto(self, url: str) -> None:
        """Navigate to the specified URL."""
        pass

    @abstractmethod
    async def refresh(self) -> None:
        """Reload the current page."""
        pass

    @abstractmethod
    async def query(self, selector: Selector, wait: float = 0) -> Optional[Element]:
        """
        Find the first element matching the selector.

        Polls once a second for up to `wait` seconds before giving up.
        Returns None when nothing matched.
        """
        pass

    @abstractmethod
    async def scroll_into_view(self, element: Element) -> None:
        """Scroll the page until the element is visible."""
        pass

    @abstractmethod
    async def click(self, element: Element) -> None:
        """Move the pointer to the center of the element and click."""
        pass

    @abstractmethod
    async def clear(self, element: Element) -> None:
        """Clear the value of an input element."""
        pass

    @abstractmethod
    async def send_keys(self, element: Element, text: str) -> None:
        """Type text into the element, key by key."""
        pass

    @abstractmethod
    async def press_key(self, element: Element, key: str) -> None:
        """Press a named key (e.g. "Enter") on the element."""
        pass

    @abstractmethod
    async def upload_file(self, element: Element, path: str) -> None:
        """Give a file input the file at path."""
        pass

    @abstractmethod
    async def as_select(self, element: Element) -> SelectControl:
        """Wrap the element as a select control. Raises BrowserError if it is not one."""
        pass

    @abstractmethod
    async def drag_and_drop(self, source: Element, target: Element) -> None:
        """Drag source and drop it onto target."""
        pass

    @abstractmethod
    async def screenshot(self) -> bytes:
        """Capture the page as PNG bytes."""
        pass

    @abstractmethod
    async def execute_script(self, script: str, *args: Any) -> Any:
        """Evaluate a JavaScript function in the page with the given arguments."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Close the browser session and release resources."""
        pass
