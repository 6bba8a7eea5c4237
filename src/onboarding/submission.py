"""
Onboarding submission.

Two sequential backend calls: save preferences, then generate the report.
They are not atomic. Only a failed save fails the submission; a failed report
is logged and the user proceeds without one, since the preferences are
already stored by then.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from dockdock.client import CollaboratorError
from dockdock.models import BookSummary, Genre, ReportHandle

from .errors import ReportGenerationError, SaveError
from .payload import PreferencePayload, build_report_snapshot

logger = logging.getLogger(__name__)


class OnboardingCollaborator(Protocol):
    """Backend operations the wizard depends on. DockdockClient implements this."""

    async def fetch_genre_catalog(self) -> list[Genre]: ...

    async def fetch_books_for_genre(self, genre_id: str, limit: int = 5) -> list[BookSummary]: ...

    async def save_preferences(self, body: dict) -> None: ...

    async def generate_report(self, snapshot: dict) -> ReportHandle: ...


@dataclass
class SubmissionOutcome:
    """Result of a successful submission. report is None when generation failed."""
    report: ReportHandle | None = None
    report_error: ReportGenerationError | None = None

    @property
    def has_report(self) -> bool:
        return self.report is not None


class SubmissionCoordinator:
    """Runs the save-then-report sequence against the collaborator."""

    def __init__(self, collaborator: OnboardingCollaborator):
        self.collaborator = collaborator

    async def submit(self, payload: PreferencePayload) -> SubmissionOutcome:
        """
        Save preferences, then request the report.

        Raises:
            SaveError: the preferences save failed; nothing was stored.
        """
        try:
            await self.collaborator.save_preferences(payload.to_dict())
        except CollaboratorError as e:
            logger.error(f"Failed to save preferences: {e}")
            raise SaveError(e.message) from e

        logger.info(f"Preferences saved ({len(payload.genres)} genres, {len(payload.selected_book_ids)} books)")

        try:
            report = await self.collaborator.generate_report(build_report_snapshot(payload))
        except CollaboratorError as e:
            logger.warning(f"Report generation failed, continuing without report: {e}")
            return SubmissionOutcome(report=None, report_error=ReportGenerationError(e.message))

        return SubmissionOutcome(report=report)
