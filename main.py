import asyncio
import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union
from lexer import Lexer
from parser import Parser
from interpreter import Interpreter
from datatable import load_data_file, preprocess
from config import ConfigError, RunConfig
from browser.factory import BrowserFactory
from browser.interface import BrowserAutomation, BrowserError
from browser.playwright import SUPPORTED_BROWSER_TYPES

logger = logging.getLogger(__name__)

@dataclass
class ScriptResult:
    """What one script run leaves behind for the report."""
    name: str
    exited_early: bool
    log: str
    screenshots: List[bytes] = field(default_factory=list)

async def run_script(script_path: str, config: RunConfig) -> ScriptResult:
    """Run a test script from a file in its own browser session and save its report."""
    # Read the script file
    with open(script_path, 'r', encoding='utf-8') as f:
        script_text: str = f.read()

    # Fill in data table values
    if config.datatable:
        script_text = preprocess(script_text, load_data_file(str(config.datatable)))

    # Tokenize and parse before starting a browser, so syntax errors are cheap
    tokens = Lexer(script_text).tokenize()
    statements = Parser(tokens).parse()

    browser = BrowserFactory.create(config.browser, **config.browser_options())
    interpreter = Interpreter(statements, browser, demo=config.demo, command_delay=config.command_delay)
    try:
        await browser.launch(headless=config.headless)
        logger.debug("Browser launched for %s (%s)", script_path, config.browser)
        exited_early = await interpreter.interpret(close_session=True)
    except Exception:
        # Only command failures are handled inside the run; anything else still frees the browser
        await browser.cleanup()
        raise

    result = ScriptResult(
        name=Path(script_path).stem,
        exited_early=exited_early,
        log=interpreter.log_text,
        screenshots=list(interpreter.screenshot_buffer)
    )
    save_report(result, config.output_dir)
    return result

async def run_code(code: str, browser: BrowserAutomation, demo: bool = False, command_delay: float = 1.0) -> bool:
    """Run script text in an already launched browser without writing a report."""
    statements = Parser(Lexer(code).tokenize()).parse()
    interpreter = Interpreter(statements, browser, demo=demo, command_delay=command_delay)
    return await interpreter.interpret(close_session=True)

async def run_scripts(script_paths: List[str], config: RunConfig) -> List[Union[ScriptResult, BaseException]]:
    """Run several scripts at once; each gets its own browser, variables and queue."""
    return await asyncio.gather(
        *(run_script(path, config) for path in script_paths),
        return_exceptions=True
    )

def save_report(result: ScriptResult, output_dir: Path) -> None:
    """Write <name>.log and screenshots/<name>_screenshot_<i>.png under output_dir."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / f"{result.name}.log").write_text(result.log, encoding='utf-8')

    if result.screenshots:
        screenshot_dir = output_dir / "screenshots"
        screenshot_dir.mkdir(parents=True, exist_ok=True)
        for i, screenshot in enumerate(result.screenshots):
            (screenshot_dir / f"{result.name}_screenshot_{i}.png").write_bytes(screenshot)
    logger.debug("Report for %s saved to %s", result.name, output_dir)

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Run human readable UI test scripts in the browser')
    parser.add_argument('scripts', nargs='+', help='Paths to test script files')
    parser.add_argument('-o', '--output', default='.', help='Directory for logs and screenshots')
    parser.add_argument('--datatable', help='CSV or JSON file with rows to run the scripts with')
    parser.add_argument('--browser', default='playwright', choices=BrowserFactory.available(), help='Browser automation implementation to use')
    parser.add_argument('--browser-type', default='chromium', choices=SUPPORTED_BROWSER_TYPES, help='Browser to launch')
    parser.add_argument('--headless', action='store_true', help='Run the browser in headless mode')
    parser.add_argument('--demo', action='store_true', help='Outline each located element')
    parser.add_argument('--no-delay', action='store_true', help='Skip the one second pause before each command')
    parser.add_argument('-v', '--verbose', action='store_true', help='Print verbose output')
    return parser

def main(argv: List[str] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s %(message)s'
    )

    try:
        config = RunConfig.from_args(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    results = asyncio.run(run_scripts(args.scripts, config))

    exit_code = 0
    for path, result in zip(args.scripts, results):
        if isinstance(result, SyntaxError):
            print(f"{path}: syntax error: {result}", file=sys.stderr)
            exit_code = 2
        elif isinstance(result, (BrowserError, ValueError, OSError)):
            print(f"{path}: could not run: {result}", file=sys.stderr)
            exit_code = max(exit_code, 1)
        elif isinstance(result, BaseException):
            raise result
        elif result.exited_early:
            print(f"{path}: FAILED (see {config.output_dir / (result.name + '.log')})")
            exit_code = max(exit_code, 1)
        else:
            print(f"{path}: passed")
    return exit_code

if __name__ == '__main__':
    sys.exit(main())
