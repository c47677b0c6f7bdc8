"""Tests for HTML rendering and the layout/yield protocol."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from jinja2 import TemplateNotFound

from tplrender.core.exceptions import NoLayoutError, TemplateSetUndefinedError
from tplrender.core.models import HTMLOptions, RenderOptions
from tplrender.rendering.renderer import Renderer
from tplrender.settings import DEV, PROD
from tplrender.web.sink import BufferedSink


def test_html_round_trip(make_renderer, write_templates, sink):
    renderer = make_renderer(write_templates({"index.tmpl": "Hello {{ Name }}"}))

    renderer(sink).html(200, "index", {"Name": "A"})

    assert sink.status == 200
    assert sink.headers["content-type"] == "text/html; charset=UTF-8"
    assert bytes(sink.body) == b"Hello A"


def test_html_escapes_data(make_renderer, write_templates, sink):
    renderer = make_renderer(write_templates({"index.tmpl": "{{ v }}"}))

    renderer(sink).html(200, "index", {"v": "<b>"})

    assert bytes(sink.body) == b"&lt;b&gt;"


def test_html_with_configured_layout(make_renderer, write_templates, sink):
    directory = write_templates(
        {"layout.tmpl": "<html>{{ yield }}</html>", "content.tmpl": "body"}
    )
    renderer = make_renderer(directory, layout="layout")

    renderer(sink).html(200, "content", None)

    assert bytes(sink.body) == b"<html>body</html>"


def test_yield_can_be_called(make_renderer, write_templates):
    directory = write_templates(
        {"layout.tmpl": "<main>{{ yield() }}</main>", "content.tmpl": "{{ title }}"}
    )
    renderer = make_renderer(directory, layout="layout")

    out = renderer(BufferedSink()).html_string("content", {"title": "T"})

    assert out == "<main>T</main>"


def test_yield_output_is_not_escaped_twice(make_renderer, write_templates):
    directory = write_templates(
        {"layout.tmpl": "<div>{{ yield }}</div>", "content.tmpl": "<p>{{ v }}</p>"}
    )
    renderer = make_renderer(directory, layout="layout")

    out = renderer(BufferedSink()).html_string("content", {"v": "<b>"})

    assert out == "<div><p>&lt;b&gt;</p></div>"


def test_current_names_content_template(make_renderer, write_templates):
    directory = write_templates(
        {
            "layout.tmpl": "{{ current }}|{{ current() }}|{{ yield }}",
            "pages/home.tmpl": "in {{ current }}",
        }
    )
    renderer = make_renderer(directory, layout="layout")

    out = renderer(BufferedSink()).html_string("pages/home")

    assert out == "pages/home|pages/home|in pages/home"


def test_current_is_empty_without_layout(make_renderer, write_templates):
    renderer = make_renderer(write_templates({"index.tmpl": "[{{ current }}]"}))

    assert renderer(BufferedSink()).html_string("index") == "[]"


def test_layout_override_per_call(make_renderer, write_templates):
    directory = write_templates(
        {
            "layout.tmpl": "A({{ yield }})",
            "alt.tmpl": "B({{ yield }})",
            "content.tmpl": "x",
        }
    )
    renderer = make_renderer(directory, layout="layout")
    render = renderer(BufferedSink())

    assert render.html_string("content") == "A(x)"
    assert render.html_string("content", None, HTMLOptions(layout="alt")) == "B(x)"
    assert render.html_string("content", None, HTMLOptions()) == "x"


def test_yield_without_layout_fails(make_renderer, write_templates, sink):
    renderer = make_renderer(write_templates({"index.tmpl": "<html>{{ yield }}</html>"}))

    renderer(sink).html(200, "index")

    assert sink.status == 500
    assert b"yield called with no layout defined" in bytes(sink.body)

    with pytest.raises(NoLayoutError):
        renderer(BufferedSink()).html_string("index")


def test_yield_inside_content_fails(make_renderer, write_templates):
    directory = write_templates(
        {"layout.tmpl": "{{ yield }}", "content.tmpl": "{{ yield }}"}
    )
    renderer = make_renderer(directory, layout="layout")

    with pytest.raises(NoLayoutError):
        renderer(BufferedSink()).html_string("content")


def test_unknown_set(make_renderer, write_templates, sink):
    renderer = make_renderer(write_templates({"index.tmpl": "x"}))

    renderer(sink).html_set(200, "missing-set", "x", None)

    assert sink.status == 500
    assert b"undefined" in bytes(sink.body)

    with pytest.raises(TemplateSetUndefinedError):
        renderer(BufferedSink()).html_set_string("missing-set", "x")


def test_missing_template(make_renderer, write_templates, sink):
    renderer = make_renderer(write_templates({"index.tmpl": "x"}))

    renderer(sink).html(200, "nope")

    assert sink.status == 500
    assert b"nope" in bytes(sink.body)

    with pytest.raises(TemplateNotFound):
        renderer(BufferedSink()).html_string("nope")


def test_include_by_name(make_renderer, write_templates):
    directory = write_templates(
        {
            "partials/header.html": "<h1>{{ title }}</h1>",
            "index.tmpl": '{% include "partials/header" %}body',
        }
    )
    renderer = make_renderer(directory)

    out = renderer(BufferedSink()).html_string("index", {"title": "T"})

    assert out == "<h1>T</h1>body"


def test_html_set_renders_other_set(registry, make_renderer, write_templates):
    site = make_renderer(write_templates({"index.tmpl": "site"}, root="site"))
    Renderer(
        RenderOptions(name="admin", directory=str(write_templates({"index.tmpl": "admin"}, root="admin"))),
        registry=registry,
        mode=lambda: PROD,
    )

    render = site(BufferedSink())

    assert render.html_string("index") == "site"
    assert render.html_set_string("admin", "index") == "admin"


def test_html_uses_renderer_set(registry, make_renderer, write_templates):
    make_renderer(write_templates({"index.tmpl": "default"}, root="default"))
    admin = make_renderer(write_templates({"index.tmpl": "admin"}, root="admin"), name="admin")

    assert admin(BufferedSink()).html_string("index") == "admin"


def test_set_layout_applies_to_html_set(registry, make_renderer, write_templates):
    site = make_renderer(write_templates({"index.tmpl": "site"}, root="site"))
    make_renderer(
        write_templates({"layout.tmpl": "[{{ yield }}]", "index.tmpl": "admin"}, root="admin"),
        name="admin",
        layout="layout",
    )

    assert site(BufferedSink()).html_set_string("admin", "index") == "[admin]"


def test_html_content_type_override(make_renderer, write_templates, sink):
    renderer = make_renderer(
        write_templates({"index.tmpl": "x"}), html_content_type="application/xhtml+xml"
    )

    renderer(sink).html(200, "index")

    assert sink.headers["content-type"] == "application/xhtml+xml; charset=UTF-8"


def test_development_mode_recompiles(make_renderer, write_templates):
    directory = write_templates({"index.tmpl": "v1"})
    renderer = make_renderer(directory, mode=DEV)

    (directory / "index.tmpl").write_text("v2", encoding="utf-8")

    assert renderer(BufferedSink()).html_string("index") == "v2"


def test_production_mode_uses_cached_tree(make_renderer, write_templates):
    directory = write_templates({"index.tmpl": "v1"})
    renderer = make_renderer(directory, mode=PROD)

    (directory / "index.tmpl").write_text("v2", encoding="utf-8")

    assert renderer(BufferedSink()).html_string("index") == "v1"


def test_set_template_path_from_renderer(make_renderer, write_templates):
    first = write_templates({"index.tmpl": "first"}, root="first")
    second = write_templates({"index.tmpl": "second"}, root="second")
    renderer = make_renderer(first)
    render = renderer(BufferedSink())

    render.set_template_path("", str(second))

    assert render.html_string("index") == "second"


def test_template_load_time(make_renderer, write_templates, sink):
    renderer = make_renderer(write_templates({"index.tmpl": "x"}))
    render = renderer(sink)

    assert render.template_load_time() == ""

    render.html(200, "index")

    assert render.template_load_time().endswith("ms")


def test_buffers_return_to_pool_on_success_and_error(make_renderer, write_templates, pool):
    directory = write_templates(
        {
            "layout.tmpl": "<{{ yield }}>",
            "content.tmpl": "ok",
            "broken.tmpl": "{{ 1 // 0 }}",
        }
    )
    renderer = make_renderer(directory)

    renderer(BufferedSink()).html(200, "content", None, HTMLOptions(layout="layout"))
    assert len(pool) == 2

    sink = BufferedSink()
    renderer(sink).html(200, "broken")
    assert sink.status == 500
    assert len(pool) == 2


def test_concurrent_layout_renders_do_not_mix(make_renderer, write_templates):
    pages = {f"page{i}.tmpl": f"page {i}" for i in range(8)}
    directory = write_templates({"layout.tmpl": "<{{ current }}:{{ yield }}>", **pages})
    renderer = make_renderer(directory, layout="layout")

    def _render(i: int) -> tuple[int, str]:
        return i, renderer(BufferedSink()).html_string(f"page{i % 8}")

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(_render, range(400)))

    for i, out in results:
        assert out == f"<page{i % 8}:page {i % 8}>"


def test_renderer_keeps_empty_injected_pool(make_renderer, tmp_path, pool):
    renderer = make_renderer(tmp_path / "templates")

    assert len(pool) == 0
    assert renderer.pool is pool
