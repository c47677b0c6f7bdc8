"""Template set compilation.

A template set is a directory tree of template files. Compiling it parses
every file whose extension is allowed into one Jinja2 environment, keyed by
the file's path relative to the set directory (extension stripped, ``/``
separators), and installs the result in a :class:`TemplateSetRegistry`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from types import CodeType
from typing import Any, Callable, Iterator, MutableMapping

from jinja2 import (
    BaseLoader,
    Environment,
    StrictUndefined,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
)

from ..core.constants import DEFAULT_SET_NAME, PLACEHOLDER_SOURCE
from ..core.exceptions import TemplateCompileError
from ..core.models import RenderOptions
from .helpers import builtin_helpers
from .registry import TemplateSetRegistry, default_registry

logger = logging.getLogger(__name__)


def get_ext(name: str) -> str:
    """Return everything from the first dot of a file name, or ``""``."""
    if "." not in name:
        return ""
    return "." + name.split(".", 1)[1]


def template_name(rel_path: str, ext: str) -> str:
    """Strip the matched extension and normalize separators to ``/``."""
    name = rel_path[: len(rel_path) - len(ext)]
    return name.replace(os.sep, "/")


@dataclass(frozen=True)
class _Node:
    source: str
    filename: str | None
    code: CodeType


class _TreeLoader(BaseLoader):
    """Serves the templates compiled into one tree."""

    def __init__(self) -> None:
        self.nodes: dict[str, _Node] = {}

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str | None, Callable[[], bool]]:
        node = self.nodes.get(template)
        if node is None:
            raise TemplateNotFound(template)
        return node.source, node.filename, lambda: True

    def load(
        self,
        environment: Environment,
        name: str,
        globals: MutableMapping[str, Any] | None = None,
    ) -> Template:
        node = self.nodes.get(name)
        if node is None:
            raise TemplateNotFound(name)
        return environment.template_class.from_code(
            environment, node.code, environment.make_globals(globals), None
        )

    def list_templates(self) -> list[str]:
        return sorted(self.nodes)


class TemplateTree:
    """All compiled templates of one set, sharing one helper table."""

    def __init__(self, set_name: str, root: str, environment: Environment):
        self.set_name = set_name
        self.root = root
        self.environment = environment

    @property
    def _loader(self) -> _TreeLoader:
        return self.environment.loader  # type: ignore[return-value]

    def add(self, name: str, source: str, filename: str | None = None) -> None:
        """Parse ``source`` into the node ``name``, replacing any previous node."""
        code = self.environment.compile(source, name, filename)
        self._loader.nodes[name] = _Node(source=source, filename=filename, code=code)

    def get(self, name: str) -> Template:
        """Look a template up by name; raises ``TemplateNotFound``."""
        return self.environment.get_template(name)

    def names(self) -> list[str]:
        return self._loader.list_templates()

    def __contains__(self, name: object) -> bool:
        return name in self._loader.nodes

    def __len__(self) -> int:
        return len(self._loader.nodes)

    def __repr__(self) -> str:
        return f"<TemplateTree {self.set_name!r} root={self.root!r} templates={len(self)}>"


def new_environment(options: RenderOptions) -> Environment:
    env = Environment(
        loader=_TreeLoader(),
        undefined=StrictUndefined,
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        auto_reload=False,
        cache_size=-1,
        variable_start_string=options.delims.left or "{{",
        variable_end_string=options.delims.right or "}}",
    )
    for funcs in options.funcs:
        env.globals.update(funcs)
    env.globals.update(builtin_helpers())
    return env


def _walk(directory: Path, set_name: str) -> Iterator[Path]:
    """Yield regular files below ``directory`` in sorted order."""

    def _fail(exc: OSError) -> None:
        raise TemplateCompileError(
            set_name, f"fail to walk templates directory: {exc.strerror or exc}",
            Path(exc.filename) if exc.filename else directory,
        ) from exc

    for dirpath, dirnames, filenames in os.walk(directory, onerror=_fail):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.is_file():
                yield path


def build_tree(options: RenderOptions) -> TemplateTree:
    """Compile the templates of one set without registering them.

    Args:
        options: Resolved template set options

    Returns:
        The compiled tree

    Raises:
        TemplateCompileError: A file could not be read or parsed, or the
            directory could not be walked
    """
    set_name = options.name or DEFAULT_SET_NAME
    directory = Path(options.directory)
    tree = TemplateTree(set_name, options.directory, new_environment(options))
    # Never leave a tree empty, even for a directory without templates.
    tree.add(options.directory, PLACEHOLDER_SOURCE)

    if not directory.exists():
        logger.warning(f"Template directory {directory} for set {set_name!r} does not exist")
        return tree
    if not directory.is_dir():
        raise TemplateCompileError(set_name, "templates path is not a directory", directory)

    for path in _walk(directory, set_name):
        rel_path = os.path.relpath(path, directory)
        ext = get_ext(path.name)
        if ext not in options.extensions:
            continue

        name = template_name(rel_path, ext)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateCompileError(set_name, f"cannot read template: {exc}", path) from exc

        try:
            tree.add(name, source, str(path))
        except TemplateSyntaxError as exc:
            raise TemplateCompileError(
                set_name, f"syntax error on line {exc.lineno}: {exc.message}", path
            ) from exc

        logger.debug(f"Parsed template {name!r} from {path}")

    return tree


def compile_set(
    options: RenderOptions, registry: TemplateSetRegistry | None = None
) -> TemplateTree:
    """Compile a template set and install it, replacing any previous tree.

    Args:
        options: Resolved template set options
        registry: Registry to install into (process default if omitted)

    Returns:
        The installed tree
    """
    tree = build_tree(options)
    (registry if registry is not None else default_registry).install(tree.set_name, tree)
    logger.info(
        f"Compiled template set {tree.set_name!r}: {len(tree)} template(s) from {options.directory}"
    )
    return tree


def set_template_path(
    set_name: str, directory: str, registry: TemplateSetRegistry | None = None
) -> TemplateTree:
    """Change the directory of a registered set and recompile that set only.

    Args:
        set_name: Template set name, empty for the default set
        directory: New template directory

    Returns:
        The recompiled tree
    """
    registry = registry if registry is not None else default_registry
    options = registry.update_directory(set_name or DEFAULT_SET_NAME, directory)
    return compile_set(options, registry)
