from __future__ import annotations
"""Lazy, page driven iteration over listing results."""
from dataclasses import dataclass, field
from typing import Callable, Iterator

from .models import Object

DEFAULT_MAX_KEYS = 200


class IterateDone(Exception):
    """Raised by a page function once the current page is the last one."""


@dataclass
class ObjectPageStatus:
    """Cursor state owned by exactly one listing."""

    prefix: str
    max_keys: int = DEFAULT_MAX_KEYS
    delimiter: str = ""
    marker: str = ""

    def continuation_token(self) -> str:
        return self.marker


@dataclass
class ObjectPage:
    """Objects produced by a single backend request."""

    status: ObjectPageStatus
    data: list[Object] = field(default_factory=list)


NextObjectFunc = Callable[[ObjectPage], None]


class ObjectIterator(Iterator[Object]):
    """Yields objects page by page, fetching a new page only when needed.

    ``next_fn`` fills the page it is given and raises :class:`IterateDone`
    when that page is the final one. Objects already placed on the final page
    are still yielded.
    """

    def __init__(self, next_fn: NextObjectFunc, status: ObjectPageStatus):
        self._next_fn = next_fn
        self._page = ObjectPage(status=status)
        self._index = 0
        self._done = False

    def __iter__(self) -> "ObjectIterator":
        return self

    def __next__(self) -> Object:
        while self._index >= len(self._page.data):
            if self._done:
                raise StopIteration
            self._page.data = []
            self._index = 0
            try:
                self._next_fn(self._page)
            except IterateDone:
                self._done = True
            except Exception:
                self._done = True
                self._page.data = []
                raise

        item = self._page.data[self._index]
        self._index += 1
        return item

    def continuation_token(self) -> str:
        return self._page.status.continuation_token()
