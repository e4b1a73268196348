"""Data models for ICS calendar processing."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from agenda_lite.core.timezone_utils import now_utc as _now_utc


class LiteICSSource(BaseModel):
    """Configuration for an ICS calendar source."""

    name: str = Field(..., description="Human-readable name for this calendar source")
    url: str = Field(..., description="ICS calendar URL")
    timeout: int = Field(default=10, description="HTTP timeout in seconds")
    custom_headers: dict[str, str] = Field(default_factory=dict, description="Custom HTTP headers")


class LiteICSResponse(BaseModel):
    """Response from ICS fetch operation."""

    success: bool
    content: Optional[str] = None
    status_code: Optional[int] = None
    headers: dict[str, str] = Field(default_factory=dict)
    error_message: Optional[str] = None
    fetch_time: datetime = Field(default_factory=_now_utc)

    @property
    def content_length(self) -> Optional[int]:
        """Get content length in bytes if content is available."""
        if self.content is None:
            return None
        return len(self.content.encode("utf-8"))


class LiteDateValue(BaseModel):
    """A DTSTART/DTEND/EXDATE value resolved to its rendered form.

    ``moment`` is the naive wall-clock instant, or None when the digits could
    not be turned into a real date.
    """

    value: str
    all_day: bool = False
    is_utc: bool = False
    moment: Optional[datetime] = None


class LiteRecurrenceRule(BaseModel):
    """Decoded RRULE parameters for a single source event."""

    freq: str
    interval: int = 1
    count: Optional[int] = None
    until: Optional[datetime] = None
    byday: list[str] = Field(default_factory=list)


class LiteVEventBlock(BaseModel):
    """Raw fields extracted from one BEGIN:VEVENT/END:VEVENT block."""

    index: int = Field(..., description="1-based position of the block in the document")
    uid: str = ""
    summary: str = ""
    description: str = ""
    location: str = ""
    dtstart: str = Field(default="", description="Full DTSTART line, parameters included")
    dtend: str = Field(default="", description="Full DTEND line, parameters included")
    rrule: str = ""
    exdates: list[str] = Field(default_factory=list)

    @property
    def event_id(self) -> str:
        """UID, or a positional fallback when the block has none."""
        return self.uid or f"event-{self.index}"

    @property
    def is_recurring(self) -> bool:
        return bool(self.rrule)


class LiteCalendarEvent(BaseModel):
    """One concrete occurrence of a calendar happening, as served to the web page."""

    id: str = Field(..., description="Occurrence ID, unique within a response")
    summary: str = Field(..., min_length=1, description="Event title")
    description: Optional[str] = Field(default=None, description="Unescaped description")
    location: Optional[str] = Field(default=None, description="Unescaped location")
    start: str = Field(..., description="YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS[Z]")
    end: str = Field(..., description="YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS[Z]")
    all_day: bool = Field(default=False, alias="allDay", description="All-day event flag")

    # Resolved instants used for filtering and ordering; never serialized.
    start_moment: Optional[datetime] = Field(default=None, exclude=True)
    end_moment: Optional[datetime] = Field(default=None, exclude=True)

    model_config = ConfigDict(populate_by_name=True)

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape expected by the agenda page."""
        return self.model_dump(by_alias=True, exclude_none=True)
