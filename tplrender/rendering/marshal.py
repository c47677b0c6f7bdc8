"""JSON and XML serialization of response values."""

from __future__ import annotations

import copy
import dataclasses
import datetime as dt
import json
import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from ..core.exceptions import MarshalError

_INDENT = "  "
_SCALARS = (str, int, float, Decimal, UUID, dt.date, dt.time)
_NAME = re.compile(r"[^\W\d][\w.\-]*")


def marshal_json(value: Any, indent: bool = False) -> str:
    """Serialize ``value`` to JSON text.

    Pydantic models, dataclasses, datetimes and the like are converted with
    pydantic's JSON-compatible encoder. NaN and infinities are rejected.
    """
    try:
        if indent:
            return json.dumps(
                value,
                indent=len(_INDENT),
                ensure_ascii=False,
                allow_nan=False,
                default=to_jsonable_python,
            )
        return json.dumps(
            value,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
            default=to_jsonable_python,
        )
    except (TypeError, ValueError) as exc:
        raise MarshalError(f"json: {exc}") from exc


def _element(tag: str) -> ET.Element:
    if not _NAME.fullmatch(tag):
        raise MarshalError(f"xml: invalid element name: {tag!r}")
    return ET.Element(tag)


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    return str(value)


def _append(parent: ET.Element, tag: str, value: Any) -> None:
    if isinstance(value, (list, tuple)):
        for item in value:
            _append(parent, tag, item)
        return
    parent.append(to_element(value, tag))


def to_element(value: Any, tag: str | None = None) -> ET.Element:
    """Convert a value into an XML element.

    Args:
        value: Element, pydantic model, dataclass, mapping or scalar
        tag: Element name; models and dataclasses default to their class
            name, a single-key mapping to its key

    Returns:
        The element tree for ``value``

    Raises:
        MarshalError: The value has no valid element name or is not supported
    """
    if isinstance(value, ET.Element):
        return value

    if isinstance(value, BaseModel):
        return _from_fields(tag or type(value).__name__, dict(value))

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return _from_fields(tag or type(value).__name__, fields)

    if isinstance(value, Mapping):
        if tag is None:
            if len(value) != 1:
                raise MarshalError("xml: a mapping needs exactly one root key")
            (key, inner), = value.items()
            return to_element(inner, str(key))
        return _from_fields(tag, value)

    if tag is None:
        raise MarshalError(f"xml: unsupported type: {type(value).__name__}")

    elem = _element(tag)
    if value is None:
        return elem
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, _SCALARS):
        raise MarshalError(f"xml: unsupported type: {type(value).__name__}")
    elem.text = _text(value)
    return elem


def _from_fields(tag: str, fields: Mapping[str, Any]) -> ET.Element:
    elem = _element(tag)
    for key, item in fields.items():
        _append(elem, str(key), item)
    return elem


def marshal_xml(value: Any, indent: bool = False) -> str:
    """Serialize ``value`` to XML text, without an XML declaration."""
    elem = to_element(value)
    if indent:
        elem = copy.deepcopy(elem)
        ET.indent(elem, space=_INDENT)
    return ET.tostring(elem, encoding="unicode")
