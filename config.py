"""Run configuration for the test script runner."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from pathlib import Path

from browser.playwright import SUPPORTED_BROWSER_TYPES


class ConfigError(Exception):
    """Raised when configuration is invalid."""

    pass


@dataclass
class RunConfig:
    """Configuration shared by every script of one invocation."""

    # Browser
    browser: str = "playwright"
    browser_type: str = "chromium"
    headless: bool = False

    # Behavior
    demo: bool = False
    command_delay: float = 1.0

    # Inputs and outputs
    output_dir: Path = field(default_factory=lambda: Path("."))
    datatable: Path | None = None

    def validate(self) -> None:
        if self.browser_type not in SUPPORTED_BROWSER_TYPES:
            supported = ", ".join(SUPPORTED_BROWSER_TYPES)
            raise ConfigError(f"Unsupported browser type: {self.browser_type}. Supported types: {supported}")
        if self.command_delay < 0:
            raise ConfigError("Command delay cannot be negative")
        if self.datatable is not None:
            if self.datatable.suffix not in (".csv", ".json"):
                raise ConfigError(f"Data table must be a .csv or .json file: {self.datatable}")
            if not self.datatable.exists():
                raise ConfigError(f"Data table not found: {self.datatable}")

    def browser_options(self) -> dict:
        """Constructor options for the browser implementation."""
        return {"browser_type": self.browser_type}

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> RunConfig:
        config = cls(
            browser=args.browser,
            browser_type=args.browser_type,
            headless=args.headless,
            demo=args.demo,
            command_delay=0.0 if args.no_delay else 1.0,
            output_dir=Path(args.output),
            datatable=Path(args.datatable) if args.datatable else None,
        )
        config.validate()
        return config
