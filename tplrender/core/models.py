"""Configuration models for template sets and per-call HTML overrides."""

from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

HelperFuncs = dict[str, Callable[..., Any]]


class Delims(BaseModel):
    """Left and right markers for template expressions."""

    left: str = Field(default="", description="Left delimiter, defaults to {{")
    right: str = Field(default="", description="Right delimiter, defaults to }}")


class RenderOptions(BaseModel):
    """Configuration of one named template set.

    Empty values are treated as unset and filled in by
    :func:`tplrender.rendering.registry.prepare_options`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(default="", description="Template set name, empty for the default set")
    directory: str = Field(default="", description="Directory to load templates from")
    layout: str = Field(default="", description="Layout template name, empty for no layout")
    extensions: list[str] = Field(
        default_factory=list, description="Template file extensions to parse"
    )
    funcs: list[HelperFuncs] = Field(
        default_factory=list, description="Helper function tables merged in order"
    )
    delims: Delims = Field(default_factory=Delims)
    charset: str = Field(default="", description="Charset appended to Content-Type")
    indent_json: bool = Field(default=False, description="Output human readable JSON")
    indent_xml: bool = Field(default=False, description="Output human readable XML")
    prefix_json: bytes = Field(default=b"", description="Bytes written before JSON bodies")
    prefix_xml: bytes = Field(default=b"", description="Bytes written before XML bodies")
    html_content_type: str = Field(default="", description="Content-Type for HTML output")


class HTMLOptions(BaseModel):
    """Overrides applied to a single HTML render call."""

    layout: str = Field(default="", description="Layout template name, overrides RenderOptions.layout")
