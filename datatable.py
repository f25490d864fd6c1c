import csv
import json
import logging
import re
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

# <column name> placeholders in script text
PLACEHOLDER_PATTERN = re.compile(r'<([^<>\n]+)>')


def load_data_file(file_path: str) -> List[Dict[str, Any]]:
    """
    Load data table rows from a CSV or JSON file.

    Args:
        file_path: Path to the data file (CSV or JSON)

    Returns:
        List of rows, each mapping a column name to its value
    """
    if file_path.endswith('.csv'):
        return load_csv_file(file_path)
    elif file_path.endswith('.json'):
        return load_json_file(file_path)
    else:
        raise ValueError("Unsupported data file format. Please use .csv or .json files.")


def load_csv_file(csv_path: str) -> List[Dict[str, Any]]:
    """Load data from a CSV file."""
    with open(csv_path, 'r', newline='', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        rows = [{k: v for k, v in row.items()} for row in reader]
    logger.debug("Loaded %d rows from CSV file: %s", len(rows), csv_path)
    return rows


def load_json_file(json_path: str) -> List[Dict[str, Any]]:
    """Load data from a JSON file."""
    with open(json_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    # Handle both array of objects and single object formats
    if isinstance(data, list):
        rows = data
    elif isinstance(data, dict):
        rows = [data]
    else:
        raise ValueError("JSON data must be an object or array of objects")

    logger.debug("Loaded %d rows from JSON file: %s", len(rows), json_path)
    return rows


def substitute_row(code: str, row: Dict[str, Any]) -> str:
    """
    Replace every <column> placeholder with the row's value.

    Placeholders naming a column the row does not have are left as written.
    """
    def replace_placeholder(match):
        column = match.group(1)
        if column in row and row[column] is not None:
            return str(row[column])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace_placeholder, code)


def preprocess(code: str, rows: List[Dict[str, Any]]) -> str:
    """
    Expand a script once per data table row.

    Each copy has the row's values substituted for its placeholders and the
    copies are joined in row order, so one run covers the whole table.
    """
    if not rows:
        return code

    copies = [substitute_row(code, row).rstrip('\n') for row in rows]
    logger.debug("Expanded script for %d data table rows", len(rows))
    return '\n'.join(copies) + '\n'
