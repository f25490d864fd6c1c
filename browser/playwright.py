import asyncio
import logging
import time
from typing import Any, Optional
from playwright.async_api import async_playwright, ElementHandle, Page, Error as PlaywrightError
from browser.interface import BrowserAutomation, BrowserError, Element, SelectControl
from browser.selector import Selector

logger = logging.getLogger(__name__)

SUPPORTED_BROWSER_TYPES = ("chromium", "firefox", "webkit")

class PlaywrightElement(Element):
    """Playwright implementation of Element interface."""

    def __init__(self, handle: ElementHandle) -> None:
        self._handle = handle

    @property
    def handle(self) -> ElementHandle:
        return self._handle

    async def query(self, xpath: str) -> Optional['Element']:
        try:
            handle = await self._handle.query_selector(f"xpath={xpath}")
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e
        if handle:
            return PlaywrightElement(handle)
        return None

    async def tag_name(self) -> str:
        try:
            return await self._handle.evaluate("el => el.tagName.toLowerCase()")
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def text(self) -> str:
        try:
            return await self._handle.inner_text()
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

class PlaywrightSelect(SelectControl):
    """A <select> element, driven through its option list."""

    def __init__(self, handle: ElementHandle) -> None:
        self._handle = handle

    async def select_by_visible_text(self, text: str) -> None:
        try:
            index = await self._handle.evaluate(
                "(el, text) => Array.from(el.options).findIndex(o => o.text.trim() === text)",
                text
            )
            if index < 0:
                raise BrowserError(f"No option with visible text '{text}'")
            await self._handle.select_option(index=index)
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

class PlaywrightAutomation(BrowserAutomation):
    """
    Playwright implementation driving a single page in a single browser context.

    Every Playwright failure is re-raised as BrowserError so the interpreter never
    has to know which library is underneath.
    """

    def __init__(self, browser_type: str = "chromium") -> None:
        if browser_type not in SUPPORTED_BROWSER_TYPES:
            supported = ", ".join(SUPPORTED_BROWSER_TYPES)
            raise ValueError(f"Unsupported browser type: {browser_type}. Supported types: {supported}")
        self._browser_type = browser_type
        self._playwright = None
        self._browser = None
        self._context = None  # Browser context (window)
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise BrowserError("Browser has not been launched")
        return self._page

    async def launch(self, headless: bool = True) -> None:
        """Launch browser and open a blank page."""
        try:
            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, self._browser_type)
            self._browser = await launcher.launch(headless=headless)
            self._context = await self._browser.new_context()
            self._page = await self._context.new_page()
        except PlaywrightError as e:
            await self.cleanup()
            raise BrowserError(f"Could not launch {self._browser_type}: {e}") from e
        logger.debug("Launched %s (headless=%s)", self._browser_type, headless)

    async def goto(self, url: str) -> None:
        try:
            await self.page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def refresh(self) -> None:
        try:
            await self.page.reload()
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def query(self, selector: Selector, wait: float = 0) -> Optional[Element]:
        deadline = time.monotonic() + wait
        while True:
            try:
                handle = await self.page.query_selector(f"xpath={selector.to_xpath()}")
            except PlaywrightError as e:
                raise BrowserError(str(e)) from e
            if handle:
                return PlaywrightElement(handle)
            if time.monotonic() >= deadline:
                return None
            await asyncio.sleep(1)

    async def scroll_into_view(self, element: Element) -> None:
        try:
            await self._handle(element).scroll_into_view_if_needed()
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def click(self, element: Element) -> None:
        try:
            box = await self._handle(element).bounding_box()
            if box is None:
                raise BrowserError("Element is not visible")
            x = box["x"] + box["width"] / 2
            y = box["y"] + box["height"] / 2
            await self.page.mouse.move(x, y)
            await self.page.mouse.click(x, y)
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def clear(self, element: Element) -> None:
        try:
            await self._handle(element).fill("")
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def send_keys(self, element: Element, text: str) -> None:
        try:
            await self._handle(element).type(text)
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def press_key(self, element: Element, key: str) -> None:
        try:
            await self._handle(element).press(key)
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def upload_file(self, element: Element, path: str) -> None:
        try:
            await self._handle(element).set_input_files(path)
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def as_select(self, element: Element) -> SelectControl:
        if await element.tag_name() != "select":
            raise BrowserError("Element is not a <select> element")
        return PlaywrightSelect(self._handle(element))

    async def drag_and_drop(self, source: Element, target: Element) -> None:
        try:
            source_box = await self._handle(source).bounding_box()
            target_box = await self._handle(target).bounding_box()
            if source_box is None or target_box is None:
                raise BrowserError("Drag source or target is not visible")
            mouse = self.page.mouse
            await mouse.move(source_box["x"] + source_box["width"] / 2, source_box["y"] + source_box["height"] / 2)
            await mouse.down()
            await mouse.move(target_box["x"] + target_box["width"] / 2, target_box["y"] + target_box["height"] / 2, steps=5)
            await mouse.up()
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def screenshot(self) -> bytes:
        try:
            return await self.page.screenshot()
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def execute_script(self, script: str, *args: Any) -> Any:
        # Element arguments reach the page as their underlying handles
        unwrapped = [arg.handle if isinstance(arg, PlaywrightElement) else arg for arg in args]
        arg = unwrapped[0] if len(unwrapped) == 1 else unwrapped
        try:
            return await self.page.evaluate(script, arg)
        except PlaywrightError as e:
            raise BrowserError(str(e)) from e

    async def cleanup(self) -> None:
        """Close the page, the context and the browser."""
        try:
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
        except PlaywrightError as e:
            raise BrowserError(f"Error closing browser: {e}") from e
        finally:
            self._page = None
            self._context = None
            self._browser = None
            # Stop playwright
            if self._playwright:
                await self._playwright.stop()
                self._playwright = None

    @staticmethod
    def _handle(element: Element) -> ElementHandle:
        if not isinstance(element, PlaywrightElement):
            raise BrowserError(f"Not a Playwright element: {element!r}")
        return element.handle
