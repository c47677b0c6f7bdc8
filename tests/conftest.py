"""Shared fixtures for tplrender tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from tplrender.core.models import RenderOptions
from tplrender.rendering.bufpool import BufferPool
from tplrender.rendering.registry import TemplateSetRegistry
from tplrender.rendering.renderer import Renderer
from tplrender.settings import PROD
from tplrender.web.sink import BufferedSink


@pytest.fixture
def registry():
    """Registry isolated from the process default."""
    return TemplateSetRegistry()


@pytest.fixture
def pool():
    return BufferPool()


@pytest.fixture
def sink():
    return BufferedSink()


@pytest.fixture
def write_templates(tmp_path):
    """Create template files below tmp_path/<root> and return that directory."""

    def _write(files: dict[str, str | bytes], root: str = "templates") -> Path:
        base = tmp_path / root
        base.mkdir(parents=True, exist_ok=True)
        for rel_path, content in files.items():
            path = base / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return base

    return _write


@pytest.fixture
def make_renderer(registry, pool):
    """Build a Renderer over a directory, in production mode unless told otherwise."""

    def _make(directory: Path | None = None, mode=PROD, **option_values) -> Renderer:
        if directory is not None:
            option_values["directory"] = str(directory)
        return Renderer(
            RenderOptions(**option_values),
            registry=registry,
            mode=lambda: mode,
            pool=pool,
        )

    return _make
