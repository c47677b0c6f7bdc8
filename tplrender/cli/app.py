"""Main CLI application."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import typer
from jinja2 import TemplateError
from typing_extensions import Annotated

from ..core.config import load_options_file
from ..core.exceptions import OptionsFileError, TemplateCompileError, TplRenderError
from ..core.models import Delims, HTMLOptions, RenderOptions
from ..rendering.compiler import compile_set
from ..rendering.registry import TemplateSetRegistry, prepare_options
from ..rendering.renderer import Renderer
from ..settings import PROD
from ..web.sink import BufferedSink
from .parsers import parse_data, parse_extension, parse_file_mode

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="tplrender",
    help="Compile, check and preview Jinja2 template sets.",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="YAML file declaring template sets.", metavar="FILE"),
]
DirectoryOption = Annotated[
    str, typer.Option("--dir", "-d", help="Template directory (default: templates).", metavar="DIR")
]
ExtensionOption = Annotated[
    list[str],
    typer.Option(
        "--ext",
        help="Template extension to parse (default: .tmpl and .html). Repeatable.",
        metavar="EXT",
    ),
]
LayoutOption = Annotated[
    str, typer.Option("--layout", "-l", help="Layout template name.", metavar="NAME")
]
LeftDelimOption = Annotated[
    str, typer.Option("--left-delim", help="Left expression delimiter (default: {{).")
]
RightDelimOption = Annotated[
    str, typer.Option("--right-delim", help="Right expression delimiter (default: }}).")
]
VerboseOption = Annotated[
    bool, typer.Option("--verbose", "-v", help="Enable verbose logging.")
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def _build_options(
    config: Path | None,
    directory: str,
    extensions: list[str],
    layout: str,
    left_delim: str,
    right_delim: str,
) -> list[RenderOptions]:
    if config is not None:
        return load_options_file(config)
    return [
        RenderOptions(
            directory=directory,
            layout=layout,
            extensions=[parse_extension(ext) for ext in extensions],
            delims=Delims(left=left_delim, right=right_delim),
        )
    ]


def _write_output(path: Path, data: bytes, mode: int) -> None:
    """Replace `path` with `data` so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "wb", dir=path.parent, prefix=f".{path.name}.", delete=False
    ) as tmp:
        tmp.write(data)
    try:
        os.chmod(tmp.name, mode)
        os.replace(tmp.name, path)
    except OSError:
        os.unlink(tmp.name)
        raise


@app.command()
def check(
    config: ConfigOption = None,
    directory: DirectoryOption = "",
    extensions: ExtensionOption = [],
    layout: LayoutOption = "",
    left_delim: LeftDelimOption = "",
    right_delim: RightDelimOption = "",
    list_templates: Annotated[
        bool, typer.Option("--list", help="Print the name of every compiled template.")
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """Compile template sets and fail on the first broken template."""
    _configure_logging(verbose)

    registry = TemplateSetRegistry()
    try:
        all_options = _build_options(
            config, directory, extensions, layout, left_delim, right_delim
        )
        for options in all_options:
            tree = compile_set(prepare_options(options, registry), registry)
            typer.echo(f"{tree.set_name}: {len(tree)} template(s)")
            if list_templates:
                for name in tree.names():
                    typer.echo(f"  {name}")
    except (OptionsFileError, TemplateCompileError) as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc


@app.command()
def render(
    name: Annotated[str, typer.Argument(help="Template name, e.g. users/show.")],
    config: ConfigOption = None,
    set_name: Annotated[
        str, typer.Option("--set", help="Template set to render from (with --config).")
    ] = "",
    directory: DirectoryOption = "",
    extensions: ExtensionOption = [],
    layout: LayoutOption = "",
    left_delim: LeftDelimOption = "",
    right_delim: RightDelimOption = "",
    data: Annotated[
        str, typer.Option("--data", help="Template data as a JSON object.", metavar="JSON")
    ] = "",
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write to FILE instead of stdout.", metavar="FILE"),
    ] = None,
    file_mode: Annotated[
        str,
        typer.Option("--mode", help="File permissions in octal (default: 0644).", metavar="OCTAL"),
    ] = "0644",
    verbose: VerboseOption = False,
) -> None:
    """Render one template and print the result."""
    _configure_logging(verbose)

    context = parse_data(data)
    mode = parse_file_mode(file_mode)
    registry = TemplateSetRegistry()
    try:
        all_options = _build_options(
            config, directory, extensions, layout, left_delim, right_delim
        )
        renderers = {}
        for options in all_options:
            renderer = Renderer(options, registry=registry, mode=lambda: PROD)
            renderers[renderer.options.name] = renderer
        target = renderers.get(set_name) if set_name else next(iter(renderers.values()))
        if target is None:
            raise OptionsFileError(f"no template set named {set_name!r}")

        render = target(BufferedSink())
        html_opt = HTMLOptions(layout=layout) if layout else None
        text = render.html_string(name, context, html_opt)
    except (TplRenderError, TemplateError) as exc:
        logger.error(f"Rendering {name!r} failed: {exc}")
        raise typer.Exit(code=1) from exc

    if output is None:
        typer.echo(text, nl=False)
        return

    _write_output(output, text.encode(target.encoding), mode)
    logger.info(f"Rendered {name} → {output}")


@app.command()
def serve(
    config: ConfigOption = None,
    directory: DirectoryOption = "",
    extensions: ExtensionOption = [],
    layout: LayoutOption = "",
    left_delim: LeftDelimOption = "",
    right_delim: RightDelimOption = "",
    verbose: VerboseOption = False,
) -> None:
    """Serve the first template set over HTTP for previewing."""
    _configure_logging(verbose)

    from ..web.app import main as serve_app

    try:
        all_options = _build_options(
            config, directory, extensions, layout, left_delim, right_delim
        )
        serve_app(all_options[0])
    except TplRenderError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
