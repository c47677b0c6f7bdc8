"""Exception hierarchy for template compilation and rendering."""

from __future__ import annotations

from pathlib import Path


class TplRenderError(Exception):
    """Base class for all tplrender errors."""


class TemplateCompileError(TplRenderError):
    """Raised when a template set cannot be compiled.

    Covers unreadable or missing template directories, unreadable files and
    template syntax errors. Startup code is expected to treat it as fatal.
    """

    def __init__(self, set_name: str, message: str, path: Path | None = None):
        self.set_name = set_name
        self.path = path
        location = f" ({path})" if path is not None else ""
        super().__init__(f"template set {set_name!r}: {message}{location}")


class TemplateSetUndefinedError(TplRenderError, LookupError):
    """Raised when a render targets a template set that was never compiled."""

    def __init__(self, set_name: str, template_name: str | None = None):
        self.set_name = set_name
        self.template_name = template_name
        if template_name is None:
            message = f'template set "{set_name}" is undefined'
        else:
            message = f'template "{template_name}" is undefined: no template set "{set_name}"'
        super().__init__(message)


class NoLayoutError(TplRenderError):
    """Raised when ``yield`` is invoked by a template rendered without a layout."""

    def __init__(self) -> None:
        super().__init__("yield called with no layout defined")


class MarshalError(TplRenderError, ValueError):
    """Raised when a value cannot be serialized to JSON or XML."""


class OptionsFileError(TplRenderError, ValueError):
    """Raised when a template set options file cannot be loaded."""
