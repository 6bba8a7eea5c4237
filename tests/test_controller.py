"""
Tests for the onboarding StepController.

Every scenario runs against the in-memory FakeCollaborator from conftest.
"""

import asyncio

import pytest

from conftest import run
from onboarding.controller import Destination, StepController
from onboarding.errors import FetchError, SessionClosedError, ValidationError
from onboarding.state import Step


def _controller(collaborator, events=None) -> StepController:
    return StepController(
        collaborator,
        analyzing_delay=0,
        on_complete=events.append if events is not None else None,
    )


async def _walk_to_theme(controller: StepController) -> None:
    """Two genres, one book each, a couple of answers per step."""
    await controller.start()
    controller.toggle("genres", "novel")
    controller.toggle("genres", "essay")
    await controller.next()
    controller.toggle("books", "book-n1")
    await controller.next()
    controller.toggle("books", "book-e1")
    await controller.next()
    controller.toggle("purposes", "leisure")
    controller.toggle("purposes", "learning")
    await controller.next()
    controller.choose("preferred_length", "medium")
    await controller.next()
    await controller.next()
    controller.toggle("themes", "growth")


# =============================================================================
# Start & genre catalog
# =============================================================================


class TestStart:

    def test_start_moves_to_genre_and_loads_catalog(self, collaborator):
        controller = _controller(collaborator)

        step = run(controller.start())

        assert step == Step.GENRE
        assert [g.id for g in controller.state.genre_catalog] == ["novel", "fantasy", "essay"]
        assert controller.state.error is None
        assert not controller.state.loading

    def test_catalog_failure_stays_on_genre(self, collaborator):
        collaborator.failing.add("fetch_genre_catalog")
        controller = _controller(collaborator)

        step = run(controller.start())

        assert step == Step.GENRE
        assert controller.state.genre_catalog == []
        assert controller.state.error == "Failed to load genres"
        assert not controller.state.loading

    def test_reload_after_failure(self, collaborator):
        collaborator.failing.add("fetch_genre_catalog")
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            collaborator.failing.clear()
            return await controller.load_genres(force=True)

        genres = run(scenario())
        assert len(genres) == 3
        assert controller.state.error is None

    def test_catalog_fetched_once(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            await controller.load_genres()

        run(scenario())
        assert len(collaborator.called("fetch_genre_catalog")) == 1


# =============================================================================
# Genre -> Books
# =============================================================================


class TestGenreStep:

    def test_next_without_genre_is_rejected(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            await controller.next()

        with pytest.raises(ValidationError) as exc_info:
            run(scenario())

        assert exc_info.value.code == "min-genre"
        assert controller.step == Step.GENRE
        assert controller.state.error == "Select at least one genre"
        assert collaborator.called("fetch_books_for_genre") == []

    def test_selecting_a_genre_clears_the_error(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            with pytest.raises(ValidationError):
                await controller.next()
            controller.toggle("genres", "novel")

        run(scenario())
        assert controller.state.error is None

    def test_unknown_genre_rejected(self, collaborator):
        controller = _controller(collaborator)
        run(controller.start())

        with pytest.raises(ValidationError) as exc_info:
            controller.toggle("genres", "poetry")
        assert exc_info.value.code == "unknown-option"

    def test_books_fetched_before_entering_books(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            controller.toggle("genres", "novel")
            controller.toggle("genres", "essay")
            return await controller.next()

        step = run(scenario())

        assert step == Step.BOOKS
        assert collaborator.called("fetch_books_for_genre") == ["novel", "essay"]
        assert set(controller.state.genre_books) == {"novel", "essay"}
        assert controller.state.current_genre() == "novel"
        assert [b.id for b in controller.state.current_books()] == ["book-n1", "book-n2"]

    def test_step_does_not_change_while_fetching(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            collaborator.book_gate = asyncio.Event()
            await controller.start()
            controller.toggle("genres", "novel")
            task = asyncio.create_task(controller.next())
            for _ in range(3):
                await asyncio.sleep(0)

            during = (controller.step, controller.state.loading, controller.can_go_forward)
            # A second forward request while loading is ignored
            await controller.next()

            collaborator.book_gate.set()
            after = await task
            return during, after

        during, after = run(scenario())

        assert during == (Step.GENRE, True, False)
        assert after == Step.BOOKS
        assert collaborator.called("fetch_books_for_genre") == ["novel"]

    def test_fetch_failure_stays_on_genre(self, collaborator):
        collaborator.failing_genres.add("essay")
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            controller.toggle("genres", "novel")
            controller.toggle("genres", "essay")
            await controller.next()

        with pytest.raises(FetchError):
            run(scenario())

        assert controller.step == Step.GENRE
        assert controller.state.error == "Failed to load books"
        assert not controller.state.loading
        assert controller.state.genres.to_list() == ["novel", "essay"]

    def test_retry_fetches_only_missing_genres(self, collaborator):
        collaborator.failing_genres.add("essay")
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            controller.toggle("genres", "novel")
            controller.toggle("genres", "essay")
            with pytest.raises(FetchError):
                await controller.next()
            collaborator.failing_genres.clear()
            return await controller.next()

        assert run(scenario()) == Step.BOOKS
        assert collaborator.called("fetch_books_for_genre") == ["novel", "essay", "essay"]

    def test_deselecting_every_genre_mid_fetch_stays_on_genre(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            collaborator.book_gate = asyncio.Event()
            await controller.start()
            controller.toggle("genres", "novel")
            task = asyncio.create_task(controller.next())
            for _ in range(3):
                await asyncio.sleep(0)
            controller.toggle("genres", "novel")
            collaborator.book_gate.set()
            await task

        with pytest.raises(ValidationError) as exc_info:
            run(scenario())

        assert exc_info.value.code == "min-genre"
        assert controller.step == Step.GENRE
        assert not controller.state.loading
        assert controller.state.cursor.size() == 0
        assert controller.state.genre_books == {}

    def test_failure_for_deselected_genre_is_ignored(self, collaborator):
        collaborator.failing_genres.add("essay")
        controller = _controller(collaborator)

        async def scenario():
            collaborator.book_gate = asyncio.Event()
            await controller.start()
            controller.toggle("genres", "novel")
            controller.toggle("genres", "essay")
            task = asyncio.create_task(controller.next())
            for _ in range(3):
                await asyncio.sleep(0)
            controller.toggle("genres", "essay")
            collaborator.book_gate.set()
            return await task

        assert run(scenario()) == Step.BOOKS
        assert controller.state.cursor.genres == ("novel",)
        assert set(controller.state.genre_books) == {"novel"}
        assert controller.state.error is None


# =============================================================================
# Books step
# =============================================================================


class TestBooksStep:

    def test_cursor_walks_genres_then_purpose(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            for genre in ("novel", "fantasy", "essay"):
                controller.toggle("genres", genre)
            await controller.next()
            seen = [controller.state.current_genre()]
            await controller.next()
            seen.append(controller.state.current_genre())
            await controller.next()
            seen.append(controller.state.current_genre())
            step = await controller.next()
            return seen, step

        seen, step = run(scenario())
        assert seen == ["novel", "fantasy", "essay"]
        assert step == Step.PURPOSE

    def test_back_returns_through_genres(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            controller.toggle("genres", "novel")
            controller.toggle("genres", "essay")
            await controller.next()
            await controller.next()
            await controller.next()
            assert controller.step == Step.PURPOSE

            trail = []
            for _ in range(3):
                step = await controller.back()
                trail.append((step, controller.state.current_genre()))
            return trail

        assert run(scenario()) == [
            (Step.BOOKS, "essay"),
            (Step.BOOKS, "novel"),
            (Step.GENRE, None),
        ]

    def test_only_offered_books_can_be_picked(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            controller.toggle("genres", "novel")
            await controller.next()

        run(scenario())
        assert controller.toggle("books", "book-n1") is True
        with pytest.raises(ValidationError):
            controller.toggle("books", "book-f1")

    def test_deselecting_genre_drops_its_books(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            controller.toggle("genres", "novel")
            controller.toggle("genres", "essay")
            await controller.next()
            controller.toggle("books", "book-n1")
            controller.toggle("books", "book-n2")
            await controller.back()
            controller.toggle("genres", "novel")
            return await controller.next()

        step = run(scenario())

        assert step == Step.BOOKS
        assert controller.state.current_genre() == "essay"
        # book-n2 is also offered under essay
        assert controller.state.selected_books.to_list() == ["book-n2"]
        assert collaborator.called("fetch_books_for_genre") == ["novel", "essay"]


# =============================================================================
# Category steps
# =============================================================================


class TestSelections:

    def test_wrong_step_rejected(self, collaborator):
        controller = _controller(collaborator)
        run(controller.start())

        with pytest.raises(ValidationError) as exc_info:
            controller.toggle("moods", "dark")
        assert exc_info.value.code == "wrong-step"

        with pytest.raises(ValidationError):
            controller.choose("reading_pace", "fast")

    def test_purpose_cap(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            controller.toggle("genres", "novel")
            await controller.next()
            await controller.next()

        run(scenario())
        assert controller.step == Step.PURPOSE

        for purpose in ("leisure", "learning", "self-development"):
            assert controller.toggle("purposes", purpose) is True
        assert controller.toggle("purposes", "inspiration") is False
        assert controller.state.purposes.size() == 3

    def test_choices_set_and_clear(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            controller.toggle("genres", "novel")
            await controller.next()
            await controller.next()
            await controller.next()

        run(scenario())
        assert controller.step == Step.STYLE

        controller.choose("preferred_length", "short")
        controller.choose("preferred_length", "long")
        assert controller.state.preferred_length.value == "long"

        controller.choose("preferred_length", None)
        assert controller.state.preferred_length.value is None

        with pytest.raises(ValidationError):
            controller.choose("preferred_length", "endless")

    def test_unknown_category(self, collaborator):
        controller = _controller(collaborator)
        with pytest.raises(ValidationError) as exc_info:
            controller.toggle("colors", "red")
        assert exc_info.value.code == "unknown-category"


# =============================================================================
# Submission
# =============================================================================


class TestSubmission:

    def test_successful_submission(self, collaborator):
        events = []
        controller = _controller(collaborator, events)

        async def scenario():
            await _walk_to_theme(controller)
            return await controller.next()

        step = run(scenario())

        assert step == Step.SUBMITTING
        assert controller.state.completed
        assert collaborator.called("save_preferences") == [{
            "preferred_genres": ["essay", "novel"],
            "selected_book_ids": ["book-e1", "book-n1"],
            "reading_purposes": ["learning", "leisure"],
            "preferred_length": "medium",
            "preferred_moods": [],
            "preferred_emotions": [],
            "narrative_styles": [],
            "preferred_themes": ["growth"],
        }]
        assert len(collaborator.called("generate_report")) == 1
        assert [e.destination for e in events] == [Destination.REPORT]
        assert controller.completion.destination == Destination.REPORT

    def test_report_failure_goes_home(self, collaborator):
        collaborator.failing.add("generate_report")
        events = []
        controller = _controller(collaborator, events)

        async def scenario():
            await _walk_to_theme(controller)
            await controller.next()

        run(scenario())

        assert controller.state.completed
        assert [e.destination for e in events] == [Destination.HOME]
        assert controller.outcome.report_error is not None

    def test_save_failure_returns_to_theme(self, collaborator):
        collaborator.failing.add("save_preferences")
        events = []
        controller = _controller(collaborator, events)

        async def scenario():
            await _walk_to_theme(controller)
            return await controller.next()

        step = run(scenario())

        assert step == Step.THEME
        assert controller.state.error == "save_preferences unavailable"
        assert not controller.state.completed
        assert not controller.state.loading
        assert events == []
        assert collaborator.called("generate_report") == []
        # Nothing the user picked is lost
        assert controller.state.themes.to_list() == ["growth"]
        assert controller.state.purposes.size() == 2

    def test_resubmit_after_save_failure(self, collaborator):
        collaborator.failing.add("save_preferences")
        events = []
        controller = _controller(collaborator, events)

        async def scenario():
            await _walk_to_theme(controller)
            await controller.next()
            collaborator.failing.clear()
            await controller.next()

        run(scenario())

        assert controller.state.completed
        assert len(collaborator.called("save_preferences")) == 2
        assert len(events) == 1

    def test_completed_session_rejects_further_navigation(self, collaborator):
        events = []
        controller = _controller(collaborator, events)

        async def scenario():
            await _walk_to_theme(controller)
            await controller.next()
            await controller.next()

        with pytest.raises(SessionClosedError):
            run(scenario())
        assert len(events) == 1


# =============================================================================
# Teardown
# =============================================================================


class TestClose:

    def test_back_from_genre_exits(self, collaborator):
        controller = _controller(collaborator)

        async def scenario():
            await controller.start()
            return await controller.back()

        assert run(scenario()) is None
        assert controller.closed

        with pytest.raises(SessionClosedError):
            controller.toggle("genres", "novel")

    def test_close_cancels_pending_fetch(self, collaborator):
        events = []
        controller = _controller(collaborator, events)

        async def scenario():
            collaborator.book_gate = asyncio.Event()
            await controller.start()
            controller.toggle("genres", "novel")
            task = asyncio.create_task(controller.next())
            for _ in range(3):
                await asyncio.sleep(0)
            controller.close()
            return await task

        step = run(scenario())

        assert step == Step.GENRE
        assert controller.state.genre_books == {}
        assert controller.closed
        assert events == []

        with pytest.raises(SessionClosedError):
            run(controller.next())

    def test_close_during_analyzing_pause(self, collaborator):
        events = []
        controller = StepController(collaborator, analyzing_delay=60, on_complete=events.append)

        async def scenario():
            await _walk_to_theme(controller)
            task = asyncio.create_task(controller.next())
            for _ in range(3):
                await asyncio.sleep(0)
            during = controller.step
            controller.close()
            return during, await task

        during, step = run(scenario())

        assert during == Step.ANALYZING
        assert step == Step.ANALYZING
        assert collaborator.called("save_preferences") == []
        assert events == []
        assert not controller.state.completed

    def test_close_during_save(self, collaborator):
        events = []
        controller = _controller(collaborator, events)

        async def scenario():
            await _walk_to_theme(controller)
            collaborator.save_gate = asyncio.Event()
            task = asyncio.create_task(controller.next())
            while not collaborator.called("save_preferences"):
                await asyncio.sleep(0)
            controller.close()
            return await task

        step = run(scenario())

        assert step == Step.SUBMITTING
        assert events == []
        assert controller.completion is None
        assert not controller.state.completed
        assert collaborator.called("generate_report") == []
        assert controller.state.themes.to_list() == ["growth"]
        assert controller.state.purposes.size() == 2
        assert controller.state.genres.to_list() == ["novel", "essay"]

    def test_close_is_idempotent(self, collaborator):
        controller = _controller(collaborator)
        controller.close()
        controller.close()
        assert controller.closed
