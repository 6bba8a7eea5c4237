"""
Books-step cursor.

While on the books step the user pages through their selected genres one at
a time. The cursor walks that ordered list without wrapping.
"""

from enum import Enum
from typing import Sequence

from .errors import OutOfRangeError


class CursorMove(Enum):
    """Outcome of moving the cursor."""
    MOVED = "moved"
    EXHAUSTED = "exhausted"   # advance() past the last genre
    AT_START = "at_start"     # retreat() before the first genre


class GenreBookCursor:
    """Index into the ordered list of selected genres."""

    def __init__(self, genres: Sequence[str] = ()):
        self._genres: tuple[str, ...] = tuple(genres)
        self._index = 0

    @property
    def position(self) -> int:
        return self._index

    @property
    def genres(self) -> tuple[str, ...]:
        return self._genres

    def size(self) -> int:
        return len(self._genres)

    @property
    def is_last(self) -> bool:
        return self._index >= len(self._genres) - 1

    def current(self) -> str:
        """Genre currently being browsed."""
        if not self._genres:
            raise OutOfRangeError()
        return self._genres[self._index]

    def advance(self) -> CursorMove:
        if self._index < len(self._genres) - 1:
            self._index += 1
            return CursorMove.MOVED
        return CursorMove.EXHAUSTED

    def retreat(self) -> CursorMove:
        if self._index > 0:
            self._index -= 1
            return CursorMove.MOVED
        return CursorMove.AT_START

    def rebind(self, genres: Sequence[str]) -> None:
        """Swap in a new genre order, clamping the index to the new range."""
        self._genres = tuple(genres)
        self._index = max(0, min(self._index, len(self._genres) - 1))

    def __repr__(self) -> str:
        return f"GenreBookCursor({list(self._genres)!r}, position={self._index})"
