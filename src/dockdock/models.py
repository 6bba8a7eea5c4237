"""Data models shared with the DockDock REST backend."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Genre(BaseModel):
    """A genre offered on the onboarding genre step."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    display_name: str = Field(alias="name")
    icon: str = ""
    description: str = ""


class BookSummary(BaseModel):
    """A candidate book shown for one genre on the books step."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    author: str = ""
    cover_image_url: str | None = Field(default=None, alias="coverImage")
    description: str | None = None
    genre: str | None = None


class ReportHandle(BaseModel):
    """
    Opaque reference to a generated onboarding report.

    Report contents are rendered elsewhere; we only keep the id (when the
    backend returns one) and the raw body for the report view.
    """

    id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_response(cls, data: Any) -> "ReportHandle":
        if not isinstance(data, dict):
            return cls()
        report_id = data.get("id") or data.get("report_id")
        return cls(id=str(report_id) if report_id is not None else None, data=data)
