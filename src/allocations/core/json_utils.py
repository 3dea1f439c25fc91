#!/usr/bin/env python3
"""
JSON Utilities Module

Reading and writing of allocation snapshots as JSON.
Decimal values are written as strings so no precision is lost on the way out,
and parsed back through ``to_amount`` on the way in.
"""

import json
from decimal import Decimal
from pathlib import Path
from typing import Any


def _default(value: Any) -> Any:
    """Serialize Decimal (and anything else unexpected) as a string."""
    return str(value)


def read_json(filepath: str | Path) -> Any:
    """
    Read data from a JSON file.

    Numbers with a fractional part are parsed as Decimal, never float.

    Args:
        filepath: Path to the JSON file

    Returns:
        The parsed JSON data
    """
    with open(filepath, encoding="utf-8") as f:
        return json.load(f, parse_float=Decimal)


def format_json(data: Any, sort_keys: bool = False) -> str:
    """
    Format data as a pretty-printed JSON string.

    Args:
        data: Data to format
        sort_keys: If True, sort dictionary keys (default: False)

    Returns:
        Pretty-printed JSON string
    """
    return json.dumps(data, indent=2, ensure_ascii=False, sort_keys=sort_keys, default=_default)


def write_json(filepath: str | Path, data: Any, sort_keys: bool = False) -> None:
    """
    Write data to a JSON file with standard pretty-printing.

    Args:
        filepath: Path to the JSON file
        data: Data to write to the file
        sort_keys: If True, sort dictionary keys (default: False)
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w", encoding="utf-8") as f:
        f.write(format_json(data, sort_keys=sort_keys))
        f.write("\n")
