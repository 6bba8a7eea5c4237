"""
Pytest configuration and fixtures for DockDock onboarding tests.
"""

import asyncio
import os

import pytest

# Set test environment before importing dockdock modules
os.environ["DOCKDOCK_ENV"] = "development"
os.environ["ANALYZING_DELAY_SECONDS"] = "0"

from dockdock.client import CollaboratorError
from dockdock.models import BookSummary, Genre, ReportHandle


def run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


class FakeCollaborator:
    """
    In-memory backend.

    Operations named in `failing` raise CollaboratorError. `calls` records
    (operation, argument) pairs in call order. Set `book_gate` or `save_gate`
    to an asyncio.Event to hold book fetches or the save until it is set.
    """

    def __init__(self, genres: list[Genre], books: dict[str, list[BookSummary]]):
        self.genres = genres
        self.books = books
        self.failing: set[str] = set()
        self.failing_genres: set[str] = set()
        self.calls: list[tuple[str, object]] = []
        self.book_gate: asyncio.Event | None = None
        self.save_gate: asyncio.Event | None = None
        self.completed = False
        self.closed = False

    def _check(self, operation: str) -> None:
        if operation in self.failing:
            raise CollaboratorError(operation, f"{operation} unavailable", status_code=503)

    async def fetch_genre_catalog(self) -> list[Genre]:
        self.calls.append(("fetch_genre_catalog", None))
        self._check("fetch_genre_catalog")
        return list(self.genres)

    async def fetch_books_for_genre(self, genre_id: str, limit: int = 5) -> list[BookSummary]:
        self.calls.append(("fetch_books_for_genre", genre_id))
        if self.book_gate is not None:
            await self.book_gate.wait()
        self._check("fetch_books_for_genre")
        if genre_id in self.failing_genres:
            raise CollaboratorError("fetch_books_for_genre", f"No books for {genre_id}")
        return self.books.get(genre_id, [])[:limit]

    async def fetch_onboarding_status(self) -> bool:
        self.calls.append(("fetch_onboarding_status", None))
        self._check("fetch_onboarding_status")
        return self.completed

    async def save_preferences(self, body: dict) -> None:
        self.calls.append(("save_preferences", body))
        if self.save_gate is not None:
            await self.save_gate.wait()
        self._check("save_preferences")

    async def generate_report(self, snapshot: dict) -> ReportHandle:
        self.calls.append(("generate_report", snapshot))
        self._check("generate_report")
        return ReportHandle(id="report-1", data={"id": "report-1"})

    async def aclose(self) -> None:
        self.closed = True

    def called(self, operation: str) -> list:
        return [arg for op, arg in self.calls if op == operation]


@pytest.fixture
def sample_genres():
    """Genre catalog as the backend returns it."""
    return [
        Genre(id="novel", name="Novel", icon="📖"),
        Genre(id="fantasy", name="Fantasy", icon="🧙"),
        Genre(id="essay", name="Essay", icon="✍️"),
    ]


@pytest.fixture
def sample_books():
    """Books per genre."""
    return {
        "novel": [
            BookSummary(id="book-n1", title="Pachinko", author="Min Jin Lee"),
            BookSummary(id="book-n2", title="Almond", author="Sohn Won-pyung"),
        ],
        "fantasy": [
            BookSummary(id="book-f1", title="The Hobbit", author="J.R.R. Tolkien"),
        ],
        "essay": [
            BookSummary(id="book-e1", title="Walden", author="Henry David Thoreau"),
            BookSummary(id="book-n2", title="Almond", author="Sohn Won-pyung"),
        ],
    }


@pytest.fixture
def collaborator(sample_genres, sample_books):
    """Healthy in-memory backend."""
    return FakeCollaborator(sample_genres, sample_books)
