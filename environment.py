from typing import Dict, Optional


class Environment:
    """Variables saved by a script, owned by a single interpreter run."""

    def __init__(self) -> None:
        self.variables: Dict[str, str] = {}

    def set_variable(self, name: str, value: str) -> None:
        self.variables[name] = value

    def get_variable(self, name: str) -> Optional[str]:
        return self.variables.get(name)

    def clear(self) -> None:
        self.variables.clear()
