"""
DockDock Onboarding Wizard.

Collects a new reader's taste through a step-by-step flow and submits it as
one normalized payload.

Steps:
1. Welcome
2. Genre - pick at least one genre (catalog loaded from the backend)
3. Books - pick books, one selected genre at a time (fetched per genre)
4. Purpose - why you read (max 3)
5. Style - preferred length, reading pace, difficulty
6. Mood - moods and emotions
7. Theme - narrative styles and themes
8. Analyzing / Submitting - save preferences, then request the report
"""

from .controller import CompletionEvent, Destination, StepController
from .cursor import CursorMove, GenreBookCursor
from .errors import (
    FetchError,
    OnboardingError,
    OutOfRangeError,
    ReportGenerationError,
    SaveError,
    SessionClosedError,
    ValidationError,
)
from .payload import PreferencePayload, build_payload, build_payload_from_state
from .selection import ScalarChoice, SelectionSet
from .state import Step, WizardState
from .submission import OnboardingCollaborator, SubmissionCoordinator, SubmissionOutcome

__all__ = [
    "StepController",
    "CompletionEvent",
    "Destination",
    "GenreBookCursor",
    "CursorMove",
    "SelectionSet",
    "ScalarChoice",
    "Step",
    "WizardState",
    "PreferencePayload",
    "build_payload",
    "build_payload_from_state",
    "SubmissionCoordinator",
    "SubmissionOutcome",
    "OnboardingCollaborator",
    "OnboardingError",
    "ValidationError",
    "FetchError",
    "SaveError",
    "ReportGenerationError",
    "OutOfRangeError",
    "SessionClosedError",
]
