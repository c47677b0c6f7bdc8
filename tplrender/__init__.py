"""tplrender - Response rendering engine.

Serializes data as JSON/XML, writes raw payloads and executes Jinja2
template sets (optionally inside a layout) into a response sink.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .core.constants import DEFAULT_SET_NAME
from .core.exceptions import (
    MarshalError,
    NoLayoutError,
    TemplateCompileError,
    TemplateSetUndefinedError,
    TplRenderError,
)
from .core.models import Delims, HTMLOptions, RenderOptions
from .rendering.compiler import TemplateTree, compile_set, set_template_path
from .rendering.registry import TemplateSetRegistry, default_registry, prepare_options
from .rendering.renderer import Renderer, TemplateRenderer

__all__ = [
    "DEFAULT_SET_NAME",
    "Delims",
    "HTMLOptions",
    "MarshalError",
    "NoLayoutError",
    "RenderOptions",
    "Renderer",
    "TemplateCompileError",
    "TemplateRenderer",
    "TemplateSetRegistry",
    "TemplateSetUndefinedError",
    "TemplateTree",
    "TplRenderError",
    "compile_set",
    "default_registry",
    "prepare_options",
    "set_template_path",
]
