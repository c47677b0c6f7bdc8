"""Loading template set options from YAML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import OptionsFileError
from .models import RenderOptions

logger = logging.getLogger(__name__)


def parse_options(data: Any) -> list[RenderOptions]:
    """Validate one set mapping, or a mapping with a ``sets`` list.

    Helper functions cannot be declared in data; attach them to the
    returned options in code.
    """
    if data is None:
        return [RenderOptions()]
    if not isinstance(data, dict):
        raise OptionsFileError("options must be a mapping")

    entries = data["sets"] if "sets" in data else [data]
    if not isinstance(entries, list):
        raise OptionsFileError("'sets' must be a list")

    try:
        return [RenderOptions.model_validate(entry) for entry in entries]
    except ValidationError as exc:
        raise OptionsFileError(f"invalid template set options: {exc}") from exc


def load_options_file(path: Path) -> list[RenderOptions]:
    """Load template set options from a YAML file.

    Args:
        path: YAML file path

    Returns:
        Options of every set declared in the file
    """
    if not path.exists():
        raise OptionsFileError(f"options file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise OptionsFileError(f"invalid YAML in {path}: {exc}") from exc

    options = parse_options(data)
    logger.debug(f"Loaded {len(options)} template set(s) from {path}")
    return options
