"""Process-wide store of template set options and compiled trees."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from ..core.constants import (
    CONTENT_HTML,
    DEFAULT_DIRECTORY,
    DEFAULT_EXTENSIONS,
    DEFAULT_SET_NAME,
)
from ..core.exceptions import TemplateSetUndefinedError
from ..core.models import RenderOptions

if TYPE_CHECKING:
    from .compiler import TemplateTree

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Shared/exclusive lock; waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class TemplateSetRegistry:
    """Maps set names to resolved options and to compiled template trees.

    Both maps share one :class:`ReadWriteLock`. Trees are replaced
    wholesale and never mutated once installed.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._options: dict[str, RenderOptions] = {}
        self._trees: dict[str, TemplateTree] = {}

    def set_options(self, options: RenderOptions) -> None:
        with self._lock.write():
            self._options[options.name] = options

    def get_options(self, name: str) -> RenderOptions | None:
        with self._lock.read():
            return self._options.get(name)

    def install(self, name: str, tree: TemplateTree) -> None:
        with self._lock.write():
            self._trees[name] = tree

    def get_tree(self, name: str) -> TemplateTree | None:
        with self._lock.read():
            return self._trees.get(name)

    def update_directory(self, name: str, directory: str) -> RenderOptions:
        """Point a registered set at a new directory and return its options."""
        with self._lock.write():
            options = self._options.get(name)
            if options is None:
                raise TemplateSetUndefinedError(name)
            options.directory = directory
            return options

    def names(self) -> list[str]:
        with self._lock.read():
            return sorted(self._options)

    def clear(self) -> None:
        with self._lock.write():
            self._options.clear()
            self._trees.clear()


default_registry = TemplateSetRegistry()


def prepare_options(
    options: RenderOptions | None = None,
    registry: TemplateSetRegistry | None = None,
) -> RenderOptions:
    """Fill in defaults for a template set and register its options.

    Args:
        options: Partially specified options; ``None`` means all defaults
        registry: Registry to record the options in (process default if omitted)

    Returns:
        A fully defaulted copy of the options
    """
    opt = options.model_copy(deep=False) if options is not None else RenderOptions()

    if not opt.name:
        opt.name = DEFAULT_SET_NAME
    if not opt.directory:
        opt.directory = DEFAULT_DIRECTORY
    if not opt.extensions:
        opt.extensions = list(DEFAULT_EXTENSIONS)
    if not opt.html_content_type:
        opt.html_content_type = CONTENT_HTML

    (registry if registry is not None else default_registry).set_options(opt)
    logger.debug(f"Registered options for template set {opt.name!r} ({opt.directory})")
    return opt
