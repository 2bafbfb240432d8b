"""Collaborator handles with scoped override-and-restore."""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger(__name__)


class Seams:
    """Named collaborators passed to the code that uses them.

    Code under test calls ``seams.open(path)`` instead of a module-level
    function, and tests replace a collaborator for the duration of a block:

        seams = Seams(open=open, exit=sys.exit)
        with seams.override(exit=fake_exit):
            main(seams)
    """

    def __init__(self, **handles: Callable[..., Any]):
        self._handles = dict(handles)
        self._lock = threading.Lock()

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._handles[name]
        except KeyError:
            raise AttributeError(f"no seam named {name!r}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._handles

    def names(self) -> list[str]:
        return list(self._handles)

    @contextmanager
    def override(self, **replacements: Callable[..., Any]) -> Iterator["Seams"]:
        """Replace collaborators until the block exits, even on error.

        Raises:
            AttributeError: If a name is not a known seam
        """
        unknown = [name for name in replacements if name not in self._handles]
        if unknown:
            raise AttributeError(f"no seam named {', '.join(map(repr, unknown))}")

        with self._lock:
            saved = {name: self._handles[name] for name in replacements}
            self._handles.update(replacements)
        logger.debug(f"Overriding seams: {', '.join(replacements)}")
        try:
            yield self
        finally:
            with self._lock:
                self._handles.update(saved)
            logger.debug(f"Restored seams: {', '.join(saved)}")
