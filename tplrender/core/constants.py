"""Header names, media types and defaults shared by the renderers."""

from __future__ import annotations

CONTENT_TYPE = "Content-Type"
CONTENT_LENGTH = "Content-Length"

CONTENT_BINARY = "application/octet-stream"
CONTENT_JSON = "application/json"
CONTENT_HTML = "text/html"
CONTENT_XHTML = "application/xhtml+xml"
CONTENT_XML = "text/xml"
CONTENT_PLAIN = "text/plain"

DEFAULT_CHARSET = "UTF-8"
DEFAULT_SET_NAME = "DEFAULT"
DEFAULT_DIRECTORY = "templates"
DEFAULT_EXTENSIONS: tuple[str, ...] = (".tmpl", ".html")

# Body of the placeholder node every compiled tree starts with.
PLACEHOLDER_SOURCE = "tplrender"


def prepare_charset(charset: str | None) -> str:
    """Return the ``; charset=...`` suffix appended to Content-Type values."""
    if charset:
        return "; charset=" + charset
    return "; charset=" + DEFAULT_CHARSET
