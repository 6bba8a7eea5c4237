"""
Onboarding State Management.

Tracks progress through the wizard steps and holds every selection made so far.
State lives for one wizard session only; nothing here is persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from dockdock.models import BookSummary, Genre

from .catalog import MAX_PURPOSE_SELECTIONS
from .cursor import GenreBookCursor
from .selection import ScalarChoice, SelectionSet


class Step(Enum):
    """Wizard steps, in order."""
    WELCOME = "welcome"
    GENRE = "genre"              # Pick at least one genre
    BOOKS = "books"              # Pick books, one genre at a time
    PURPOSE = "purpose"          # Why you read (max 3)
    STYLE = "style"              # Length, pace, difficulty
    MOOD = "mood"                # Moods and emotions
    THEME = "theme"              # Narrative styles and themes
    ANALYZING = "analyzing"      # Cosmetic pause before submitting
    SUBMITTING = "submitting"    # Save preferences, then request the report


STEP_NUMBERS: dict[Step, int] = {
    Step.WELCOME: 0,
    Step.GENRE: 1,
    Step.BOOKS: 2,
    Step.PURPOSE: 3,
    Step.STYLE: 4,
    Step.MOOD: 5,
    Step.THEME: 6,
    Step.ANALYZING: 7,
    Step.SUBMITTING: 7,
}

TOTAL_STEPS = 7

# Which step is allowed to change which piece of state
CATEGORY_STEPS: dict[str, Step] = {
    "genres": Step.GENRE,
    "books": Step.BOOKS,
    "purposes": Step.PURPOSE,
    "preferred_length": Step.STYLE,
    "reading_pace": Step.STYLE,
    "preferred_difficulty": Step.STYLE,
    "moods": Step.MOOD,
    "emotions": Step.MOOD,
    "narrative_styles": Step.THEME,
    "themes": Step.THEME,
}

# Steps whose forward transition needs no guard and no I/O
_SIMPLE_FORWARD: dict[Step, Step] = {
    Step.WELCOME: Step.GENRE,
    Step.PURPOSE: Step.STYLE,
    Step.STYLE: Step.MOOD,
    Step.MOOD: Step.THEME,
    Step.THEME: Step.ANALYZING,
    Step.ANALYZING: Step.SUBMITTING,
}

_SIMPLE_BACK: dict[Step, Step] = {
    Step.PURPOSE: Step.BOOKS,
    Step.STYLE: Step.PURPOSE,
    Step.MOOD: Step.STYLE,
    Step.THEME: Step.MOOD,
}


@dataclass
class WizardState:
    """
    Main onboarding session state.

    One instance per wizard session. Selections survive failed transitions
    and failed submissions; they are only dropped when the session is closed.
    """
    step: Step = Step.WELCOME

    # Genre step
    genre_catalog: list[Genre] = field(default_factory=list)
    genres: SelectionSet = field(default_factory=SelectionSet)

    # Books step
    genre_books: dict[str, list[BookSummary]] = field(default_factory=dict)
    selected_books: SelectionSet = field(default_factory=SelectionSet)
    cursor: GenreBookCursor = field(default_factory=GenreBookCursor)

    # Purpose step
    purposes: SelectionSet = field(
        default_factory=lambda: SelectionSet(max_cardinality=MAX_PURPOSE_SELECTIONS)
    )

    # Style step
    preferred_length: ScalarChoice = field(default_factory=ScalarChoice)
    reading_pace: ScalarChoice = field(default_factory=ScalarChoice)
    preferred_difficulty: ScalarChoice = field(default_factory=ScalarChoice)

    # Mood step
    moods: SelectionSet = field(default_factory=SelectionSet)
    emotions: SelectionSet = field(default_factory=SelectionSet)

    # Theme step
    narrative_styles: SelectionSet = field(default_factory=SelectionSet)
    themes: SelectionSet = field(default_factory=SelectionSet)

    # Session status
    loading: bool = False
    error: str | None = None
    completed: bool = False
    closed: bool = False

    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self):
        """Set timestamps if not provided."""
        now = datetime.utcnow().isoformat()
        if not self.created_at:
            self.created_at = now
        if not self.updated_at:
            self.updated_at = now

    def touch(self) -> None:
        self.updated_at = datetime.utcnow().isoformat()

    @property
    def step_number(self) -> int:
        return STEP_NUMBERS[self.step]

    @property
    def progress(self) -> float:
        return get_progress(self.step)

    def current_genre(self) -> str | None:
        """Genre under the books cursor, if any."""
        if self.step != Step.BOOKS or self.cursor.size() == 0:
            return None
        return self.cursor.current()

    def current_books(self) -> list[BookSummary]:
        genre = self.current_genre()
        if genre is None:
            return []
        return self.genre_books.get(genre, [])

    def to_dict(self) -> dict:
        """Snapshot for API responses and display."""
        return {
            "step": self.step.value,
            "step_number": self.step_number,
            "progress": self.progress,
            "genre_catalog": [g.model_dump() for g in self.genre_catalog],
            "genres": self.genres.to_list(),
            "selected_books": self.selected_books.to_list(),
            "current_genre": self.current_genre(),
            "current_books": [b.model_dump() for b in self.current_books()],
            "genre_position": self.cursor.position if self.step == Step.BOOKS else None,
            "purposes": self.purposes.to_list(),
            "purposes_full": self.purposes.is_full(),
            "preferred_length": self.preferred_length.value,
            "reading_pace": self.reading_pace.value,
            "preferred_difficulty": self.preferred_difficulty.value,
            "moods": self.moods.to_list(),
            "emotions": self.emotions.to_list(),
            "narrative_styles": self.narrative_styles.to_list(),
            "themes": self.themes.to_list(),
            "loading": self.loading,
            "error": self.error,
            "completed": self.completed,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def get_progress(step: Step) -> float:
    """Progress percentage for a step (0-100)."""
    return STEP_NUMBERS[step] / TOTAL_STEPS * 100


def get_next_step(state: WizardState) -> Step:
    """
    Determine where a forward transition leads from the current state.

    Returns the current step if the transition is not admissible yet
    (no genres picked) or stays inside the books step (more genres to browse).
    Fetching books is the caller's job; this only decides the destination.
    """
    step = state.step

    if step == Step.GENRE:
        if state.genres.size() > 0:
            return Step.BOOKS

    elif step == Step.BOOKS:
        if state.cursor.is_last:
            return Step.PURPOSE

    elif step in _SIMPLE_FORWARD:
        return _SIMPLE_FORWARD[step]

    return step  # Stay in current step


def get_previous_step(state: WizardState) -> Step | None:
    """
    Determine where a back transition leads.

    None means back leaves the wizard entirely (welcome and genre steps).
    Analyzing and submitting ignore back, so they return themselves.
    """
    step = state.step

    if step in (Step.WELCOME, Step.GENRE):
        return None

    if step == Step.BOOKS:
        if state.cursor.position > 0:
            return Step.BOOKS
        return Step.GENRE

    return _SIMPLE_BACK.get(step, step)
