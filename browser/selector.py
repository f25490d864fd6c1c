from enum import Enum

class By(Enum):
    XPATH = "xpath"
    ID = "id"
    NAME = "name"
    CLASS_NAME = "class name"

class Selector:
    """
    A single element query: a strategy and the value it is applied to.
    Backends turn it into whatever their query engine understands via to_xpath().
    """
    def __init__(self, by: By, value: str):
        self.by = by            # How the value is interpreted
        self.value = value      # The text the strategy queries with

    def to_xpath(self) -> str:
        if self.by == By.XPATH:
            return self.value
        if self.by == By.ID:
            return f"//*[@id={xpath_literal(self.value)}]"
        if self.by == By.NAME:
            return f"//*[@name={xpath_literal(self.value)}]"
        if self.by == By.CLASS_NAME:
            padded = xpath_literal(f" {self.value} ")
            return f"//*[contains(concat(' ', normalize-space(@class), ' '), {padded})]"
        raise ValueError(f"Unsupported selector strategy: {self.by}")

    def __eq__(self, other) -> bool:
        return isinstance(other, Selector) and (self.by, self.value) == (other.by, other.value)

    def __hash__(self) -> int:
        return hash((self.by, self.value))

    def __repr__(self) -> str:
        return f"Selector({self.by.name}, {self.value!r})"

def xpath_literal(text: str) -> str:
    """Quote text as an XPath string literal."""
    if "'" not in text:
        return f"'{text}'"
    if '"' not in text:
        return f'"{text}"'
    # Both quote kinds: glue single-quoted pieces together with "'"
    parts = text.split("'")
    return "concat(" + ", \"'\", ".join(f"'{part}'" for part in parts) + ")"
