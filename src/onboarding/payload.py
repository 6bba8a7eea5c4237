"""
Onboarding Payload Definition.

The PreferencePayload is the contract between the wizard and the backend.
It is built once at the end of the flow and used for both the
preferences save and the report-generation request.
"""

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Iterable
import json

if TYPE_CHECKING:
    from .state import WizardState


@dataclass(frozen=True)
class PreferencePayload:
    """
    Complete output of the onboarding wizard.

    Sequences are sorted tuples: the selections they come from are sets, so
    order carries no meaning and sorting keeps equal inputs equal.
    Scalars are None when the user skipped the question.
    """

    # Genre & books
    genres: tuple[str, ...] = ()
    selected_book_ids: tuple[str, ...] = ()

    # Purpose
    purposes: tuple[str, ...] = ()

    # Style
    preferred_length: str | None = None
    reading_pace: str | None = None
    preferred_difficulty: str | None = None

    # Mood
    moods: tuple[str, ...] = ()
    emotions: tuple[str, ...] = ()

    # Theme
    narrative_styles: tuple[str, ...] = ()
    themes: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Serialize as the save-preferences request body. Unset scalars are omitted."""
        data = {
            "preferred_genres": list(self.genres),
            "selected_book_ids": list(self.selected_book_ids),
            "reading_purposes": list(self.purposes),
            "preferred_length": self.preferred_length,
            "reading_pace": self.reading_pace,
            "preferred_difficulty": self.preferred_difficulty,
            "preferred_moods": list(self.moods),
            "preferred_emotions": list(self.emotions),
            "narrative_styles": list(self.narrative_styles),
            "preferred_themes": list(self.themes),
        }
        return {k: v for k, v in data.items() if v is not None}

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "PreferencePayload":
        """Deserialize from the save-preferences wire form."""
        return build_payload(
            genres=data.get("preferred_genres", []),
            selected_books=data.get("selected_book_ids", []),
            purposes=data.get("reading_purposes", []),
            length=data.get("preferred_length"),
            pace=data.get("reading_pace"),
            difficulty=data.get("preferred_difficulty"),
            moods=data.get("preferred_moods", []),
            emotions=data.get("preferred_emotions", []),
            narrative_styles=data.get("narrative_styles", []),
            themes=data.get("preferred_themes", []),
        )

    def as_record(self) -> dict:
        """Field-name keyed dict (for logging and previews)."""
        return asdict(self)


def _normalize(ids: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted(set(ids)))


def build_payload(
    genres: Iterable[str] = (),
    selected_books: Iterable[str] = (),
    purposes: Iterable[str] = (),
    length: str | None = None,
    pace: str | None = None,
    difficulty: str | None = None,
    moods: Iterable[str] = (),
    emotions: Iterable[str] = (),
    narrative_styles: Iterable[str] = (),
    themes: Iterable[str] = (),
) -> PreferencePayload:
    """
    Assemble the final payload from raw selections.

    Pure: no I/O, same inputs give an equal payload. Every optional input may
    be empty or unset; only the genre minimum is enforced, and that happens
    earlier, on the genre step.
    """
    return PreferencePayload(
        genres=_normalize(genres),
        selected_book_ids=_normalize(selected_books),
        purposes=_normalize(purposes),
        preferred_length=length or None,
        reading_pace=pace or None,
        preferred_difficulty=difficulty or None,
        moods=_normalize(moods),
        emotions=_normalize(emotions),
        narrative_styles=_normalize(narrative_styles),
        themes=_normalize(themes),
    )


def build_payload_from_state(state: "WizardState") -> PreferencePayload:
    """
    Build the final PreferencePayload from accumulated WizardState.

    Called when the wizard reaches the submitting step.
    """
    return build_payload(
        genres=state.genres,
        selected_books=state.selected_books,
        purposes=state.purposes,
        length=state.preferred_length.value,
        pace=state.reading_pace.value,
        difficulty=state.preferred_difficulty.value,
        moods=state.moods,
        emotions=state.emotions,
        narrative_styles=state.narrative_styles,
        themes=state.themes,
    )


def build_report_snapshot(payload: PreferencePayload) -> dict:
    """
    Build the report-generation request body.

    The report service takes its own key names and the raw category id lists.
    """
    data = {
        "purposes": list(payload.purposes),
        "favorite_genres": list(payload.genres),
        "selected_book_ids": list(payload.selected_book_ids),
        "preferred_length": payload.preferred_length,
        "reading_pace": payload.reading_pace,
        "preferred_difficulty": payload.preferred_difficulty,
        "preferred_moods": list(payload.moods),
        "preferred_emotions": list(payload.emotions),
        "preferred_narrative_styles": list(payload.narrative_styles),
        "preferred_themes": list(payload.themes),
    }
    return {"onboardingData": {k: v for k, v in data.items() if v is not None}}
