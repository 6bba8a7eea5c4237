"""
Onboarding step controller.

Drives the wizard: owns the WizardState, applies selection changes for the
current step, and runs forward/back transitions. Forward transitions that
need data (genre catalog, books per genre) fetch it before committing; the
final step runs the submission.

Network calls are explicit suspension points tracked by the controller so
close() can cancel them. Anything that resolves after close() is ignored.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from dockdock.client import CollaboratorError
from dockdock.models import BookSummary, Genre

from .catalog import (
    DEFAULT_GENRE_BOOK_LIMIT,
    MULTI_SELECT_OPTIONS,
    SCALAR_OPTIONS,
    option_ids,
)
from .cursor import CursorMove
from .errors import FetchError, SaveError, SessionClosedError, ValidationError
from .payload import PreferencePayload, build_payload_from_state
from .selection import ScalarChoice, SelectionSet
from .state import CATEGORY_STEPS, Step, WizardState, get_next_step, get_previous_step
from .submission import OnboardingCollaborator, SubmissionCoordinator, SubmissionOutcome

logger = logging.getLogger(__name__)

ANALYZING_DELAY_SECONDS = 2.0


class Destination(Enum):
    """Where the surrounding app should navigate once onboarding is done."""
    REPORT = "report"
    HOME = "home"


@dataclass(frozen=True)
class CompletionEvent:
    """Emitted exactly once, when submission succeeds."""
    destination: Destination


class StepController:
    """
    State machine for one onboarding session.

    Usage:
        controller = StepController(client)
        await controller.start()               # welcome -> genre, loads genres
        controller.toggle("genres", "novel")
        await controller.next()                # genre -> books (fetches books)
        ...
        await controller.next()                # theme -> analyzing -> submitting
    """

    def __init__(
        self,
        collaborator: OnboardingCollaborator,
        *,
        book_limit: int = DEFAULT_GENRE_BOOK_LIMIT,
        analyzing_delay: float = ANALYZING_DELAY_SECONDS,
        on_complete: Callable[[CompletionEvent], None] | None = None,
        state: WizardState | None = None,
    ):
        self.collaborator = collaborator
        self.coordinator = SubmissionCoordinator(collaborator)
        self.book_limit = book_limit
        self.analyzing_delay = analyzing_delay
        self.on_complete = on_complete
        self.state = state or WizardState()

        self.payload: PreferencePayload | None = None
        self.outcome: SubmissionOutcome | None = None
        self.completion: CompletionEvent | None = None

        self._pending: set[asyncio.Future] = set()

    # =========================================================================
    # Status
    # =========================================================================

    @property
    def step(self) -> Step:
        return self.state.step

    @property
    def progress(self) -> float:
        return self.state.progress

    @property
    def closed(self) -> bool:
        return self.state.closed

    @property
    def can_go_forward(self) -> bool:
        """False while a fetch or submission is outstanding."""
        return not (self.state.loading or self.state.closed or self.state.completed)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> Step:
        """Welcome -> Genre, then load the genre catalog."""
        self._ensure_open()
        if self.state.step != Step.WELCOME:
            return self.state.step

        self._set_step(Step.GENRE)
        try:
            await self.load_genres()
        except FetchError:
            # Already attached to state.error; the user retries from the genre step
            pass
        return self.state.step

    async def load_genres(self, force: bool = False) -> list[Genre]:
        """Fetch the genre catalog (once, unless force)."""
        self._ensure_open()
        if self.state.genre_catalog and not force:
            return self.state.genre_catalog

        self.state.loading = True
        try:
            catalog = await self._track(self.collaborator.fetch_genre_catalog())
        except asyncio.CancelledError:
            if self.closed:
                return []
            raise
        except CollaboratorError as e:
            if self.closed:
                return []
            self.state.error = "Failed to load genres"
            raise FetchError(e.operation, self.state.error) from e
        finally:
            self.state.loading = False

        if self.closed:
            return []

        self.state.genre_catalog = list(catalog)
        self.state.error = None
        self.state.touch()
        logger.info(f"Loaded {len(catalog)} genres")
        return self.state.genre_catalog

    def close(self) -> None:
        """
        Tear the session down (navigation away, abandonment).

        Cancels in-flight requests. No event is emitted.
        """
        if self.state.closed:
            return
        self.state.closed = True
        for future in list(self._pending):
            future.cancel()
        self._pending.clear()
        logger.info(f"Onboarding session closed at step {self.state.step.value}")

    # =========================================================================
    # Selections
    # =========================================================================

    def toggle(self, category: str, option_id: str) -> bool:
        """
        Toggle an option in a multi-select category.

        Categories: genres, books, purposes, moods, emotions,
        narrative_styles, themes. Returns whether the option is now selected.
        """
        if category == "genres":
            return self.toggle_genre(option_id)
        if category == "books":
            return self.toggle_book(option_id)
        if category not in MULTI_SELECT_OPTIONS:
            raise ValidationError("unknown-category", f"Unknown category: {category}")

        self._require_step(category)
        if option_id not in option_ids(MULTI_SELECT_OPTIONS[category]):
            raise ValidationError("unknown-option", f"Unknown {category} option: {option_id}")

        selection: SelectionSet = getattr(self.state, category)
        selected = selection.toggle(option_id)
        self.state.touch()
        return selected

    def toggle_genre(self, genre_id: str) -> bool:
        self._require_step("genres")
        if self.state.genre_catalog and genre_id not in {g.id for g in self.state.genre_catalog}:
            raise ValidationError("unknown-option", f"Unknown genre: {genre_id}")

        selected = self.state.genres.toggle(genre_id)
        if not selected:
            self._forget_genre(genre_id)
        if self.state.genres.size() > 0 and self.state.error:
            self.state.error = None
        self.state.touch()
        return selected

    def toggle_book(self, book_id: str) -> bool:
        self._require_step("books")
        if book_id not in {b.id for b in self.state.current_books()}:
            raise ValidationError("unknown-option", f"Book {book_id} is not offered for this genre")

        selected = self.state.selected_books.toggle(book_id)
        self.state.touch()
        return selected

    def choose(self, field: str, value: str | None) -> None:
        """Set (or clear, with None) one of the style-step scalar choices."""
        if field not in SCALAR_OPTIONS:
            raise ValidationError("unknown-category", f"Unknown choice: {field}")
        self._require_step(field)

        choice: ScalarChoice = getattr(self.state, field)
        if value is None:
            choice.clear()
        elif value in option_ids(SCALAR_OPTIONS[field]):
            choice.choose(value)
        else:
            raise ValidationError("unknown-option", f"Unknown {field} option: {value}")
        self.state.touch()

    # =========================================================================
    # Navigation
    # =========================================================================

    async def next(self) -> Step:
        """
        Forward transition from the current step.

        Raises:
            ValidationError: no genre selected when leaving the genre step.
            FetchError: loading books failed; still on the genre step.
        """
        self._ensure_open()
        if self.state.loading:
            logger.debug(f"Ignoring next() while loading at {self.state.step.value}")
            return self.state.step

        step = self.state.step

        if step == Step.WELCOME:
            return await self.start()

        if step == Step.GENRE:
            return await self._enter_books()

        if step == Step.BOOKS:
            if self.state.cursor.advance() == CursorMove.EXHAUSTED:
                self._set_step(Step.PURPOSE)
            return self.state.step

        if step == Step.THEME:
            self._set_step(Step.ANALYZING)
            return await self._analyze_and_submit()

        if step in (Step.ANALYZING, Step.SUBMITTING):
            return step

        self._set_step(get_next_step(self.state))
        return self.state.step

    async def back(self) -> Step | None:
        """
        Back transition. Never re-validates.

        Returns the new step, or None when back leaves the wizard (the
        session is closed in that case).
        """
        self._ensure_open()
        step = self.state.step
        target = get_previous_step(self.state)

        if target is None:
            self.close()
            return None

        if step == Step.BOOKS and target == Step.BOOKS:
            self.state.cursor.retreat()
            return step

        if target != step:
            self.state.error = None
            self._set_step(target)
        return self.state.step

    # =========================================================================
    # Transitions with I/O
    # =========================================================================

    async def _enter_books(self) -> Step:
        """Genre -> Books: guard, fetch missing book lists, then commit."""
        if self.state.genres.size() == 0:
            self.state.error = "Select at least one genre"
            raise ValidationError("min-genre", self.state.error)

        self.state.error = None
        self.state.loading = True

        # Loop because the genre selection may change while a fetch is out
        while True:
            missing = [g for g in self.state.genres if g not in self.state.genre_books]
            if not missing:
                break

            try:
                results = await self._track(asyncio.gather(
                    *(self._fetch_books(g) for g in missing),
                    return_exceptions=True,
                ))
            except asyncio.CancelledError:
                if self.closed:
                    return self.state.step
                self.state.loading = False
                raise

            if self.closed:
                return self.state.step

            failures = []
            for genre_id, result in zip(missing, results):
                # Deselected while the fetch was out
                if genre_id not in self.state.genres:
                    continue
                if isinstance(result, BaseException):
                    failures.append((genre_id, result))
                else:
                    self.state.genre_books[genre_id] = result

            if failures:
                genre_id, error = failures[0]
                logger.warning(f"Book fetch failed for {len(failures)} genre(s), first: {genre_id}: {error}")
                self.state.loading = False
                self.state.error = "Failed to load books"
                operation = getattr(error, "operation", "fetch_books_for_genre")
                raise FetchError(operation, self.state.error) from error

        self.state.loading = False
        if self.state.genres.size() == 0:
            self.state.error = "Select at least one genre"
            raise ValidationError("min-genre", self.state.error)

        self.state.cursor.rebind(self.state.genres.to_list())
        self._set_step(Step.BOOKS)
        return self.state.step

    async def _fetch_books(self, genre_id: str) -> list[BookSummary]:
        books = await self.collaborator.fetch_books_for_genre(genre_id, self.book_limit)
        logger.info(f"Loaded {len(books)} books for genre {genre_id}")
        return list(books)

    async def _analyze_and_submit(self) -> Step:
        """Analyzing pause, then Submitting. Save failure lands back on Theme."""
        self.state.loading = True
        try:
            await self._track(asyncio.sleep(self.analyzing_delay))
        except asyncio.CancelledError:
            if self.closed:
                return self.state.step
            self.state.loading = False
            raise

        if self.closed:
            return self.state.step

        self._set_step(Step.SUBMITTING)
        payload = build_payload_from_state(self.state)

        try:
            outcome = await self._track(self.coordinator.submit(payload))
        except asyncio.CancelledError:
            if self.closed:
                return self.state.step
            self.state.loading = False
            raise
        except SaveError as e:
            if self.closed:
                return self.state.step
            self.state.loading = False
            self.state.error = e.message
            self._set_step(Step.THEME)
            return self.state.step

        if self.closed:
            return self.state.step

        self.state.loading = False
        self.state.completed = True
        self.payload = payload
        self.outcome = outcome
        self._emit(CompletionEvent(
            destination=Destination.REPORT if outcome.has_report else Destination.HOME,
        ))
        return self.state.step

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _track(self, awaitable: Awaitable[Any]) -> Any:
        """Await inside a task that close() can cancel."""
        future = asyncio.ensure_future(awaitable)
        self._pending.add(future)
        try:
            return await future
        finally:
            self._pending.discard(future)

    def _set_step(self, step: Step) -> None:
        if step != self.state.step:
            logger.info(f"Onboarding step {self.state.step.value} -> {step.value}")
        self.state.step = step
        self.state.touch()

    def _ensure_open(self) -> None:
        if self.state.closed:
            raise SessionClosedError()
        if self.state.completed:
            raise SessionClosedError("Onboarding already completed")

    def _require_step(self, category: str) -> None:
        self._ensure_open()
        owner = CATEGORY_STEPS[category]
        if self.state.step != owner:
            raise ValidationError(
                "wrong-step",
                f"{category} can only be changed on the {owner.value} step",
            )

    def _forget_genre(self, genre_id: str) -> None:
        """Drop a deselected genre's book list and the picks that came only from it."""
        books = self.state.genre_books.pop(genre_id, [])
        still_offered = {b.id for lst in self.state.genre_books.values() for b in lst}
        for book in books:
            if book.id not in still_offered:
                self.state.selected_books.discard(book.id)

    def _emit(self, event: CompletionEvent) -> None:
        if self.completion is not None:
            return
        self.completion = event
        logger.info(f"Onboarding complete, navigating to {event.destination.value}")
        if self.on_complete:
            self.on_complete(event)
