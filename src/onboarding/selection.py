"""
Selection primitives for the category steps.

SelectionSet backs every multi-select (genres, books, purposes, moods, ...).
ScalarChoice backs the single-choice questions on the style step.
"""

from typing import Iterable, Iterator


class SelectionSet:
    """
    Toggle-set of catalog ids with an optional maximum size.

    At capacity, toggling an absent id is a silent no-op (the UI shows those
    options as disabled). Iteration follows insertion order; equality ignores it.
    """

    def __init__(self, ids: Iterable[str] = (), max_cardinality: int | None = None):
        if max_cardinality is not None and max_cardinality < 0:
            raise ValueError("max_cardinality must be non-negative")
        self.max_cardinality = max_cardinality
        self._ids: dict[str, None] = {}
        for id_ in ids:
            self.toggle(id_)

    def toggle(self, id_: str) -> bool:
        """Add if absent, remove if present. Returns whether id_ is now selected."""
        if id_ in self._ids:
            del self._ids[id_]
            return False
        if self.is_full():
            return False
        self._ids[id_] = None
        return True

    def discard(self, id_: str) -> None:
        self._ids.pop(id_, None)

    def contains(self, id_: str) -> bool:
        return id_ in self._ids

    def size(self) -> int:
        return len(self._ids)

    def is_full(self) -> bool:
        return self.max_cardinality is not None and len(self._ids) >= self.max_cardinality

    def to_list(self) -> list[str]:
        return list(self._ids)

    def __contains__(self, id_: object) -> bool:
        return id_ in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SelectionSet):
            return NotImplemented
        return set(self._ids) == set(other._ids)

    def __repr__(self) -> str:
        cap = f", max={self.max_cardinality}" if self.max_cardinality is not None else ""
        return f"SelectionSet({self.to_list()!r}{cap})"


class ScalarChoice:
    """Single-valued preference. None means unset; a later choice replaces an earlier one."""

    def __init__(self, value: str | None = None):
        self.value = value

    def choose(self, value: str) -> None:
        self.value = value

    def clear(self) -> None:
        self.value = None

    @property
    def is_set(self) -> bool:
        return self.value is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScalarChoice):
            return NotImplemented
        return self.value == other.value

    def __repr__(self) -> str:
        return f"ScalarChoice({self.value!r})"
