"""CLI argument parsers and validators."""

from __future__ import annotations

import json
from typing import Any

import typer


def parse_data(value: str) -> dict[str, Any]:
    """Parse the JSON object passed as template data."""
    if not value:
        return {}
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise typer.BadParameter("Template data must be a JSON object")
    return data


def parse_file_mode(value: str) -> int:
    """Parse octal file mode string."""
    try:
        return int(value, 8)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid octal mode: {value!r}") from e


def parse_extension(value: str) -> str:
    """Normalize a template extension to start with a dot."""
    value = value.strip()
    if not value or value == ".":
        raise typer.BadParameter("Extension must not be empty")
    return value if value.startswith(".") else f".{value}"
