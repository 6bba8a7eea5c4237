"""
DockDock - REST backend client.

Async httpx wrapper around the onboarding endpoints of the DockDock backend.
Every call carries the user's bearer token and a bounded timeout.

The backend wraps responses in an envelope:
    {"success": true, "data": ..., "message": "..."}
    {"success": false, "error": {"code": "...", "message": "...", "details": ...}}
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from dockdock.config import settings
from dockdock.models import BookSummary, Genre, ReportHandle

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/onboarding"


class CollaboratorError(Exception):
    """Raised when a backend call fails (transport, timeout, HTTP or envelope error)."""

    def __init__(self, operation: str, message: str, status_code: int | None = None):
        self.operation = operation
        self.message = message
        self.status_code = status_code
        super().__init__(f"{operation} failed: {message}")


class DockdockClient:
    """
    Client for the onboarding collaborator API.

    Usage:
        async with DockdockClient(base_url, access_token=token) as client:
            genres = await client.fetch_genre_catalog()
    """

    def __init__(
        self,
        base_url: str,
        access_token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DockdockClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # =========================================================================
    # Reads
    # =========================================================================

    async def fetch_genre_catalog(self) -> list[Genre]:
        """GET /genres - all genres offered during onboarding."""
        data = await self._request("fetch_genre_catalog", "GET", "/genres")
        return _parse_list("fetch_genre_catalog", Genre, data)

    async def fetch_books_for_genre(self, genre_id: str, limit: int = 5) -> list[BookSummary]:
        """GET /books/{genre} - representative books for one genre."""
        data = await self._request(
            "fetch_books_for_genre",
            "GET",
            f"/books/{genre_id}",
            params={"limit": limit},
        )
        return _parse_list("fetch_books_for_genre", BookSummary, data)

    async def fetch_onboarding_status(self) -> bool:
        """GET /status - whether the user has already completed onboarding."""
        data = await self._request("fetch_onboarding_status", "GET", "/status")
        if isinstance(data, dict):
            return bool(data.get("completed", False))
        return False

    # =========================================================================
    # Writes
    # =========================================================================

    async def save_preferences(self, body: dict) -> None:
        """POST /preferences - persist the collected reading preferences."""
        await self._request("save_preferences", "POST", "/preferences", json=body)

    async def generate_report(self, snapshot: dict) -> ReportHandle:
        """POST /report/generate - ask the backend to build the onboarding report."""
        data = await self._request("generate_report", "POST", "/report/generate", json=snapshot)
        return ReportHandle.from_response(data)

    # =========================================================================
    # Transport
    # =========================================================================

    async def _request(self, operation: str, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._http.request(method, f"{API_PREFIX}{path}", **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{operation} timed out: {e}")
            raise CollaboratorError(operation, "Request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"{operation} transport error: {e}")
            raise CollaboratorError(operation, str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = _error_message(body) or f"HTTP {response.status_code}"
            logger.error(f"{operation} returned {response.status_code}: {message}")
            raise CollaboratorError(operation, message, status_code=response.status_code)

        if not isinstance(body, dict):
            raise CollaboratorError(operation, "Malformed response body", status_code=response.status_code)

        if not body.get("success", False):
            message = _error_message(body) or "Backend reported failure"
            raise CollaboratorError(operation, message, status_code=response.status_code)

        return body.get("data")


def _parse_list(operation: str, model: type[BaseModel], data: Any) -> list:
    """Validate a list payload; malformed items fail the whole call."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise CollaboratorError(operation, "Malformed response body")
    try:
        return [model.model_validate(item) for item in data]
    except ValidationError as e:
        logger.error(f"{operation} returned malformed items: {e}")
        raise CollaboratorError(operation, "Malformed response body") from e


def _error_message(body: Any) -> str | None:
    """Pull a human-readable message out of an error envelope."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if body.get("message"):
        return str(body["message"])
    return None


def create_client(access_token: str | None = None) -> DockdockClient:
    """Build a client from settings, defaulting to the configured API token."""
    return DockdockClient(
        base_url=settings.dockdock_api_base_url,
        access_token=access_token or settings.dockdock_api_token,
        timeout=settings.request_timeout_seconds,
    )
