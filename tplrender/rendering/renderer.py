"""Per-application renderer factory and per-request renderers."""

from __future__ import annotations

import codecs
import html as htmllib
import logging
import time
from collections.abc import Mapping
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Callable
from urllib.parse import urljoin, urlsplit

from pydantic import BaseModel

from ..core.constants import (
    CONTENT_BINARY,
    CONTENT_HTML,
    CONTENT_JSON,
    CONTENT_PLAIN,
    CONTENT_TYPE,
    CONTENT_XML,
    DEFAULT_CHARSET,
    DEFAULT_SET_NAME,
    prepare_charset,
)
from ..core.exceptions import TemplateSetUndefinedError
from ..core.models import HTMLOptions, RenderOptions
from ..settings import DEV, Mode, current_mode
from . import compiler
from .bufpool import BufferPool, bufpool
from .helpers import CURRENT, CurrentTemplate, builtin_helpers, layout_helpers
from .marshal import marshal_json, marshal_xml
from .registry import TemplateSetRegistry, default_registry, prepare_options

if TYPE_CHECKING:
    from starlette.requests import Request

    from ..web.sink import ResponseSink

logger = logging.getLogger(__name__)


def _resolve_encoding(charset: str) -> str:
    try:
        return codecs.lookup(charset or DEFAULT_CHARSET).name
    except LookupError:
        logger.warning(f"Unknown charset {charset!r}, encoding bodies as {DEFAULT_CHARSET}")
        return codecs.lookup(DEFAULT_CHARSET).name


def template_context(data: Any) -> dict[str, Any]:
    """Expose render data to templates.

    Mapping keys and pydantic model fields become template variables; any
    other value is available as ``data``.
    """
    if data is None:
        return {}
    if isinstance(data, BaseModel):
        return dict(data)
    if isinstance(data, Mapping):
        return dict(data)
    return {"data": data}


class Renderer:
    """Sets up one template set and builds a renderer per request.

    Resolves and registers the options, compiles the initial template tree
    (raising :class:`TemplateCompileError` on failure) and is then called
    with the response sink and request of each request.
    """

    def __init__(
        self,
        options: RenderOptions | None = None,
        *,
        registry: TemplateSetRegistry | None = None,
        mode: Callable[[], Mode] | None = None,
        pool: BufferPool | None = None,
    ):
        self.registry = registry if registry is not None else default_registry
        self.options = prepare_options(options, self.registry)
        self.compiled_charset = prepare_charset(self.options.charset)
        self.encoding = _resolve_encoding(self.options.charset)
        self.mode = mode or current_mode
        self.pool = pool if pool is not None else bufpool
        compiler.compile_set(self.options, self.registry)

    def __call__(self, sink: ResponseSink, request: Request | None = None) -> TemplateRenderer:
        return TemplateRenderer(sink, request, self)


class TemplateRenderer:
    """Renders one response into a sink."""

    def __init__(self, sink: ResponseSink, request: Request | None, factory: Renderer):
        self.sink = sink
        self.request = request
        self.factory = factory
        self.options = factory.options
        self.compiled_charset = factory.compiled_charset
        self._start_time: float | None = None

    def template_load_time(self) -> str:
        """Time since the HTML render started, e.g. ``"12ms"``; empty before any."""
        if self._start_time is None:
            return ""
        return f"{int((time.perf_counter() - self._start_time) * 1000)}ms"

    def _encode(self, text: str, errors: str = "xmlcharrefreplace") -> bytes:
        return text.encode(self.factory.encoding, errors)

    def _http_error(self, message: str, status: int = HTTPStatus.INTERNAL_SERVER_ERROR) -> None:
        self.sink.headers[CONTENT_TYPE] = CONTENT_PLAIN + "; charset=utf-8"
        self.sink.headers["X-Content-Type-Options"] = "nosniff"
        self.sink.write_header(status)
        self.sink.write((message + "\n").encode("utf-8"))

    # Data

    def json(self, status: int, value: Any) -> None:
        try:
            body = self._encode(marshal_json(value, self.options.indent_json), "strict")
        except ValueError as exc:
            logger.warning(f"JSON rendering failed: {exc}")
            self._http_error(str(exc))
            return

        self.sink.headers[CONTENT_TYPE] = CONTENT_JSON + self.compiled_charset
        self.sink.write_header(status)
        if self.options.prefix_json:
            self.sink.write(self.options.prefix_json)
        self.sink.write(body)

    def json_string(self, value: Any) -> str:
        return marshal_json(value, self.options.indent_json)

    def xml(self, status: int, value: Any) -> None:
        try:
            body = self._encode(marshal_xml(value, self.options.indent_xml))
        except ValueError as exc:
            logger.warning(f"XML rendering failed: {exc}")
            self._http_error(str(exc))
            return

        self.sink.headers[CONTENT_TYPE] = CONTENT_XML + self.compiled_charset
        self.sink.write_header(status)
        if self.options.prefix_xml:
            self.sink.write(self.options.prefix_xml)
        self.sink.write(body)

    def _data(self, status: int, content_type: str, data: bytes) -> None:
        if not self.sink.headers.get(CONTENT_TYPE):
            self.sink.headers[CONTENT_TYPE] = content_type
        self.sink.write_header(status)
        self.sink.write(data)

    def raw_data(self, status: int, data: bytes) -> None:
        self._data(status, CONTENT_BINARY, data)

    def render_data(self, status: int, data: bytes) -> None:
        self._data(status, CONTENT_HTML, data)

    # HTML

    def _prepare_html_options(
        self, html_opt: HTMLOptions | None, set_options: RenderOptions | None
    ) -> HTMLOptions:
        if html_opt is not None:
            return html_opt
        return HTMLOptions(layout=(set_options or self.options).layout)

    def _execute(self, tree: compiler.TemplateTree, name: str, context: dict[str, Any]) -> str:
        template = tree.get(name)
        with self.factory.pool.borrowed() as buf:
            template.stream(context).dump(buf)
            return buf.getvalue()

    def _render(
        self, set_name: str, tpl_name: str, data: Any, html_opt: HTMLOptions | None
    ) -> str:
        registry = self.factory.registry
        set_options = registry.get_options(set_name)
        if set_options is not None and self.factory.mode() == DEV:
            compiler.compile_set(set_options, registry)

        tree = registry.get_tree(set_name)
        if tree is None:
            raise TemplateSetUndefinedError(set_name, tpl_name)

        opt = self._prepare_html_options(html_opt, set_options)
        context = template_context(data)

        if opt.layout:
            content_name = tpl_name
            # The content template sees its own name but no yield.
            content_context = {**context, **builtin_helpers(), CURRENT: CurrentTemplate(content_name)}
            context.update(
                layout_helpers(
                    content_name, lambda: self._execute(tree, content_name, content_context)
                )
            )
            tpl_name = opt.layout

        return self._execute(tree, tpl_name, context)

    def _render_html(
        self,
        status: int,
        set_name: str,
        tpl_name: str,
        data: Any,
        html_opt: HTMLOptions | None,
    ) -> None:
        self._start_time = time.perf_counter()

        try:
            out = self._render(set_name, tpl_name, data, html_opt)
        except Exception as exc:
            logger.error(f"Rendering template {tpl_name!r} from set {set_name!r} failed: {exc}")
            self._http_error(str(exc))
            return

        self.sink.headers[CONTENT_TYPE] = self.options.html_content_type + self.compiled_charset
        self.sink.write_header(status)
        self.sink.write(self._encode(out))

    def html(
        self, status: int, name: str, data: Any = None, html_opt: HTMLOptions | None = None
    ) -> None:
        self._render_html(status, self.options.name, name, data, html_opt)

    def html_set(
        self,
        status: int,
        set_name: str,
        tpl_name: str,
        data: Any = None,
        html_opt: HTMLOptions | None = None,
    ) -> None:
        self._render_html(status, set_name, tpl_name, data, html_opt)

    def html_string(self, name: str, data: Any = None, html_opt: HTMLOptions | None = None) -> str:
        return self._render(self.options.name, name, data, html_opt)

    def html_set_string(
        self, set_name: str, tpl_name: str, data: Any = None, html_opt: HTMLOptions | None = None
    ) -> str:
        return self._render(set_name, tpl_name, data, html_opt)

    # Status

    def error(self, status: int, message: str | None = None) -> None:
        self.sink.write_header(status)
        if message is not None:
            self.sink.write(message.encode(self.factory.encoding, "replace"))

    def status(self, status: int) -> None:
        self.sink.write_header(status)

    def redirect(self, location: str, status: int | None = None) -> None:
        code = status or HTTPStatus.FOUND
        if self.request is not None and not urlsplit(location).scheme:
            location = urljoin(self.request.url.path, location)

        self.sink.headers["Location"] = location
        method = self.request.method if self.request is not None else "GET"
        if method in ("GET", "HEAD"):
            self.sink.headers[CONTENT_TYPE] = CONTENT_HTML + "; charset=utf-8"
        self.sink.write_header(code)
        if method == "GET":
            try:
                phrase = HTTPStatus(code).phrase
            except ValueError:
                phrase = str(code)
            body = f'<a href="{htmllib.escape(location)}">{phrase}</a>.\n'
            self.sink.write(body.encode("utf-8"))

    def set_template_path(self, set_name: str, directory: str) -> None:
        compiler.set_template_path(set_name or DEFAULT_SET_NAME, directory, self.factory.registry)
