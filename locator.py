import logging
from typing import Callable, List, Optional, Tuple
from browser.interface import BrowserAutomation, BrowserError, Element
from browser.selector import By, Selector, xpath_literal

logger = logging.getLogger(__name__)

# Wait budget (seconds) of each pass over the strategies
PASS_WAITS: Tuple[int, ...] = (0, 5, 10)

# Ordered strategies; the first one to match wins
STRATEGIES: List[Tuple[str, Callable[[str], Selector]]] = [
    ("placeholder", lambda text: Selector(By.XPATH, f"//input[@placeholder={xpath_literal(text)}]")),
    ("label", lambda text: Selector(By.XPATH, f"//label[text()={xpath_literal(text)}]/../input")),
    ("text", lambda text: Selector(By.XPATH, f"//*[text()={xpath_literal(text)}]")),
    ("partial text", lambda text: Selector(By.XPATH, f"//*[contains(text(), {xpath_literal(text)})]")),
    ("title", lambda text: Selector(By.XPATH, f"//*[@title={xpath_literal(text)}]")),
    ("id", lambda text: Selector(By.ID, text)),
    ("name", lambda text: Selector(By.NAME, text)),
    ("class", lambda text: Selector(By.CLASS_NAME, text)),
    ("xpath", lambda text: Selector(By.XPATH, text)),
]


def selectors_for(locator: str) -> List[Tuple[str, Selector]]:
    """The selectors tried for a locator, in precedence order."""
    return [(name, build(locator)) for name, build in STRATEGIES]


async def locate_element(browser: BrowserAutomation, locator: str) -> Optional[Element]:
    """
    Resolve a human-written locator to one element.

    Runs every strategy in up to three passes. Only the first strategy of a
    pass waits (up to that pass's budget); the rest are queried once. Returns
    None when all passes are exhausted.
    """
    selectors = selectors_for(locator)
    for wait in PASS_WAITS:
        for index, (name, selector) in enumerate(selectors):
            try:
                element = await browser.query(selector, wait if index == 0 else 0)
            except BrowserError as e:
                # A broken query (e.g. the locator is not valid XPath) is just a miss
                logger.debug("Strategy '%s' failed for %r: %s", name, locator, e)
                continue
            if element is not None:
                logger.debug("Located %r by %s (wait %ss)", locator, name, wait)
                return element
    return None
