"""
Onboarding API Endpoints.

Exposes the wizard as a server-side session: one StepController per caller,
kept in memory for the life of the session. The caller's bearer token is
forwarded to the DockDock backend for every collaborator call.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from dockdock.client import CollaboratorError, create_client
from dockdock.config import settings

from .catalog import get_options
from .controller import StepController
from .errors import FetchError, OnboardingError, SessionClosedError, ValidationError
from .submission import OnboardingCollaborator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


# =============================================================================
# Auth
# =============================================================================

class AuthenticatedUser(BaseModel):
    """Caller identity. The backend validates the token on every call we forward."""
    access_token: str


async def get_current_user(authorization: str = Header(None)) -> AuthenticatedUser:
    """
    Extract the bearer token.

    Expects: Authorization: Bearer <access_token>
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")

    token = authorization[7:].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")
    return AuthenticatedUser(access_token=token)


def get_collaborator_factory() -> Callable[[str], OnboardingCollaborator]:
    """Builds a backend client for a caller's token. Overridden in tests."""
    return create_client


# =============================================================================
# Request/Response Models
# =============================================================================


class ToggleRequest(BaseModel):
    """Toggle one option in a multi-select category."""
    category: str  # genres, books, purposes, moods, emotions, narrative_styles, themes
    option_id: str


class ChoiceRequest(BaseModel):
    """Set a style-step scalar. value=None clears it."""
    field: str  # preferred_length, reading_pace, preferred_difficulty
    value: str | None = None


class WizardStateResponse(BaseModel):
    """Current wizard state."""
    step: str
    step_number: int
    progress: float
    genre_catalog: list[dict] = []
    genres: list[str] = []
    selected_books: list[str] = []
    current_genre: str | None = None
    current_books: list[dict] = []
    genre_position: int | None = None
    purposes: list[str] = []
    purposes_full: bool = False
    preferred_length: str | None = None
    reading_pace: str | None = None
    preferred_difficulty: str | None = None
    moods: list[str] = []
    emotions: list[str] = []
    narrative_styles: list[str] = []
    themes: list[str] = []
    loading: bool = False
    error: str | None = None
    completed: bool = False
    created_at: str = ""
    updated_at: str = ""


class StartResponse(BaseModel):
    """Response after starting a session."""
    already_completed: bool
    state: WizardStateResponse


class ToggleResponse(BaseModel):
    selected: bool
    state: WizardStateResponse


class NavigationResponse(BaseModel):
    """Response after next/back."""
    exited: bool = False
    destination: str | None = None  # "report" | "home" once onboarding is complete
    report: dict | None = None
    state: WizardStateResponse | None = None


# =============================================================================
# Session Management
# =============================================================================


@dataclass
class OnboardingSession:
    """A caller's wizard plus the backend client it talks through."""
    controller: StepController
    collaborator: Any
    closed_client: bool = False

    async def release(self) -> None:
        """Close the backend client (idempotent)."""
        if self.closed_client:
            return
        self.closed_client = True
        aclose = getattr(self.collaborator, "aclose", None)
        if aclose is not None:
            await aclose()


# In-memory sessions keyed by access token
sessions: dict[str, OnboardingSession] = {}


def get_session(user: AuthenticatedUser) -> OnboardingSession:
    session = sessions.get(user.access_token)
    if session is None:
        raise HTTPException(status_code=404, detail="No onboarding session. Start one first.")
    return session


async def end_session(user: AuthenticatedUser) -> None:
    """Tear down and forget a caller's session."""
    session = sessions.pop(user.access_token, None)
    if session is None:
        return
    session.controller.close()
    await session.release()


def _state_response(controller: StepController) -> WizardStateResponse:
    return WizardStateResponse(**controller.state.to_dict())


def _http_error(e: OnboardingError) -> HTTPException:
    """Map wizard errors onto HTTP status codes."""
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail={"code": e.code, "message": e.message})
    if isinstance(e, FetchError):
        return HTTPException(status_code=502, detail={"code": "fetch-failed", "message": e.message})
    if isinstance(e, SessionClosedError):
        return HTTPException(status_code=409, detail={"code": "session-closed", "message": e.message})
    return HTTPException(status_code=500, detail={"code": "onboarding-error", "message": e.message})


# =============================================================================
# Endpoints: Options & State
# =============================================================================


@router.get("/options")
async def get_onboarding_options():
    """
    Fixed option catalogs for the category steps.

    Genres and books are not here; they come with the session state.
    """
    return get_options()


@router.get("/state", response_model=WizardStateResponse)
async def get_onboarding_state(user: AuthenticatedUser = Depends(get_current_user)) -> WizardStateResponse:
    """Get current wizard state."""
    session = get_session(user)
    return _state_response(session.controller)


@router.post("/start", response_model=StartResponse)
async def start_onboarding(
    user: AuthenticatedUser = Depends(get_current_user),
    collaborator_factory: Callable[[str], OnboardingCollaborator] = Depends(get_collaborator_factory),
) -> StartResponse:
    """
    Start a fresh session and move to the genre step.

    Any existing session for this caller is discarded.
    """
    await end_session(user)

    collaborator = collaborator_factory(user.access_token)
    controller = StepController(
        collaborator,
        book_limit=settings.genre_book_limit,
        analyzing_delay=settings.analyzing_delay_seconds,
    )
    sessions[user.access_token] = OnboardingSession(controller=controller, collaborator=collaborator)

    already_completed = False
    fetch_status = getattr(collaborator, "fetch_onboarding_status", None)
    if fetch_status is not None:
        try:
            already_completed = await fetch_status()
        except CollaboratorError as e:
            logger.warning(f"Failed to check onboarding status: {e}")

    await controller.start()

    return StartResponse(already_completed=already_completed, state=_state_response(controller))


@router.delete("")
async def abandon_onboarding(user: AuthenticatedUser = Depends(get_current_user)):
    """Abandon the session. Nothing is saved."""
    await end_session(user)
    return {"success": True}


# =============================================================================
# Endpoints: Selections
# =============================================================================


@router.post("/toggle", response_model=ToggleResponse)
async def toggle_option(
    request: ToggleRequest,
    user: AuthenticatedUser = Depends(get_current_user),
) -> ToggleResponse:
    """Toggle an option on the current step."""
    session = get_session(user)
    try:
        selected = session.controller.toggle(request.category, request.option_id)
    except OnboardingError as e:
        raise _http_error(e)
    return ToggleResponse(selected=selected, state=_state_response(session.controller))


@router.post("/choice", response_model=WizardStateResponse)
async def set_choice(
    request: ChoiceRequest,
    user: AuthenticatedUser = Depends(get_current_user),
) -> WizardStateResponse:
    """Set or clear a style-step choice."""
    session = get_session(user)
    try:
        session.controller.choose(request.field, request.value)
    except OnboardingError as e:
        raise _http_error(e)
    return _state_response(session.controller)


@router.post("/genres/reload", response_model=WizardStateResponse)
async def reload_genres(user: AuthenticatedUser = Depends(get_current_user)) -> WizardStateResponse:
    """Retry loading the genre catalog after a failure."""
    session = get_session(user)
    try:
        await session.controller.load_genres(force=True)
    except OnboardingError as e:
        raise _http_error(e)
    return _state_response(session.controller)


# =============================================================================
# Endpoints: Navigation
# =============================================================================


@router.post("/next", response_model=NavigationResponse)
async def go_next(user: AuthenticatedUser = Depends(get_current_user)) -> NavigationResponse:
    """
    Move forward.

    From the theme step this runs the analyzing pause and the submission
    before returning. On success the response names where to navigate.
    """
    session = get_session(user)
    controller = session.controller
    try:
        await controller.next()
    except OnboardingError as e:
        raise _http_error(e)

    if controller.completion is None:
        return NavigationResponse(state=_state_response(controller))

    report = controller.outcome.report if controller.outcome else None
    response = NavigationResponse(
        destination=controller.completion.destination.value,
        report=report.model_dump() if report else None,
        state=_state_response(controller),
    )
    await end_session(user)
    return response


@router.post("/back", response_model=NavigationResponse)
async def go_back(user: AuthenticatedUser = Depends(get_current_user)) -> NavigationResponse:
    """Move back. Leaving from the genre step ends the session."""
    session = get_session(user)
    try:
        step = await session.controller.back()
    except OnboardingError as e:
        raise _http_error(e)

    if step is None:
        await end_session(user)
        return NavigationResponse(exited=True)

    return NavigationResponse(state=_state_response(session.controller))
