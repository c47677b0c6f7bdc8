from __future__ import annotations

from typing import Callable

import uvicorn
from fastapi import Depends, FastAPI, Request, Response, status

from .. import __version__
from ..core.models import RenderOptions
from ..rendering.registry import TemplateSetRegistry
from ..rendering.renderer import Renderer, TemplateRenderer
from ..settings import get_settings
from .sink import BufferedSink

TEMPLATE_TIME_HEADER = "X-Template-Time"


def render_dependency(renderer: Renderer) -> Callable[[Request], TemplateRenderer]:
    """Build a FastAPI dependency yielding a renderer bound to a fresh sink."""

    def _render(request: Request) -> TemplateRenderer:
        return renderer(BufferedSink(), request)

    return _render


def to_response(render: TemplateRenderer) -> Response:
    response = render.sink.to_response()
    load_time = render.template_load_time()
    if load_time:
        response.headers[TEMPLATE_TIME_HEADER] = load_time
    return response


def create_app(
    options: RenderOptions | None = None, *, registry: TemplateSetRegistry | None = None
) -> FastAPI:
    renderer = Renderer(options, registry=registry)
    get_render = render_dependency(renderer)

    app = FastAPI(title="tplrender preview", version=__version__)
    app.state.renderer = renderer

    @app.get("/_templates")
    def list_templates(render: TemplateRenderer = Depends(get_render)) -> Response:
        sets = {}
        for name in renderer.registry.names():
            tree = renderer.registry.get_tree(name)
            sets[name] = tree.names() if tree is not None else []
        render.json(status.HTTP_200_OK, {"sets": sets})
        return to_response(render)

    @app.get("/{name:path}")
    def preview(
        name: str, request: Request, render: TemplateRenderer = Depends(get_render)
    ) -> Response:
        """Render template NAME of the default set with the query string as data."""
        render.html(status.HTTP_200_OK, name or "index", dict(request.query_params))
        return to_response(render)

    return app


def main(options: RenderOptions | None = None) -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(options),
        host=settings.bind_host,
        port=settings.bind_port,
        reload=False,
        workers=1,
    )


__all__ = ["create_app", "main", "render_dependency", "to_response"]
