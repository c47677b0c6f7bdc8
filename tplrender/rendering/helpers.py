"""Built-in ``yield`` and ``current`` template helpers.

Both helpers work either called (``{{ yield() }}``) or bare (``{{ yield }}``).
The compiled environment only holds the inert versions; layout renders pass
bound versions as template context for that single call.
"""

from __future__ import annotations

from typing import Callable

from markupsafe import Markup

from ..core.exceptions import NoLayoutError

YIELD = "yield"
CURRENT = "current"


class NoLayoutYield:
    """``yield`` outside a layout: fails whenever it is used."""

    def __call__(self) -> Markup:
        raise NoLayoutError()

    def __html__(self) -> str:
        raise NoLayoutError()

    def __str__(self) -> str:
        raise NoLayoutError()

    def __repr__(self) -> str:
        return "<yield: no layout>"


class LayoutYield:
    """``yield`` inside a layout: renders the content template on use."""

    def __init__(self, template_name: str, render_content: Callable[[], str]):
        self.template_name = template_name
        self._render_content = render_content

    def __call__(self) -> Markup:
        # Our own template output, already escaped by its own render.
        return Markup(self._render_content())

    def __html__(self) -> str:
        return self()

    def __str__(self) -> str:
        return str(self())

    def __repr__(self) -> str:
        return f"<yield: {self.template_name}>"


class CurrentTemplate(str):
    """Name of the content template being rendered, empty without a layout."""

    def __call__(self) -> str:
        return str(self)


def builtin_helpers() -> dict[str, object]:
    return {YIELD: NoLayoutYield(), CURRENT: CurrentTemplate("")}


def layout_helpers(template_name: str, render_content: Callable[[], str]) -> dict[str, object]:
    return {
        YIELD: LayoutYield(template_name, render_content),
        CURRENT: CurrentTemplate(template_name),
    }
