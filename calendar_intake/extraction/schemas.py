"""Schema definitions for extracted calendar events.

ExtractedEvent is the transient result of either extraction path.
AIEventPayload is the strict schema a model response is validated
against before it is trusted.
"""

import datetime as dt
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

ExtractionSource = Literal["ai", "pattern"]

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_HHMM = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")

# Python attribute name -> JSON key
_JSON_KEYS: dict[str, str] = {
    "title": "title",
    "date": "date",
    "start_time": "startTime",
    "end_time": "endTime",
    "location": "location",
    "description": "description",
    "timezone": "timezone",
}


def is_valid_timezone(name: str) -> bool:
    """Check an IANA identifier against the host timezone database."""
    if not name or len(name) > 50:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


@dataclass
class ExtractedEvent:
    """
    A calendar event extracted from free-form text.

    Attributes:
        title: Event title.
        date: ISO 8601 calendar date (YYYY-MM-DD).
        start_time: 24-hour start time (HH:MM).
        end_time: 24-hour end time (HH:MM).
        location: Free-form location.
        description: Short description.
        timezone: IANA timezone identifier.
    """

    title: str = ""
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    location: str = ""
    description: str = ""
    timezone: str = ""

    def has_meaningful_content(self) -> bool:
        """True when at least a title or a date was found."""
        return bool(self.title.strip() or self.date.strip())

    def with_defaults(
        self,
        today: dt.date,
        default_timezone: str,
        default_title: str = "Untitled Event",
        default_start_time: str = "09:00",
        default_end_time: str = "10:00",
    ) -> "ExtractedEvent":
        """
        Return a copy with every empty field replaced by its default.

        Populated fields are left untouched, so applying this twice
        yields the same event.
        """
        return replace(
            self,
            title=self.title or default_title,
            date=self.date or today.isoformat(),
            start_time=self.start_time or default_start_time,
            end_time=self.end_time or default_end_time,
            location=self.location or "",
            description=self.description or "",
            timezone=self.timezone or default_timezone,
        )

    def to_dict(self) -> dict[str, str]:
        """Convert to the camelCase JSON shape returned by the API."""
        return {_JSON_KEYS[f.name]: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtractedEvent":
        """Create from the camelCase JSON shape. Missing keys become empty."""
        return cls(
            **{
                attr: str(data.get(key) or "")
                for attr, key in _JSON_KEYS.items()
            }
        )


class AIEventPayload(BaseModel):
    """
    Validated shape of the JSON object returned by the model.

    Every key is optional. Values are coerced to stripped strings; a date,
    time or timezone that does not have the expected form is blanked so
    that defaulting can take over.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = ""
    date: str = ""
    start_time: str = Field(default="", alias="startTime")
    end_time: str = Field(default="", alias="endTime")
    location: str = ""
    description: str = ""
    timezone: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ValueError(f"expected a string, got {type(value).__name__}")
        return str(value).strip()

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        if not value or not _ISO_DATE.match(value):
            return ""
        try:
            dt.date.fromisoformat(value)
        except ValueError:
            return ""
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        match = _HHMM.match(value)
        if not match:
            return ""
        return f"{int(match.group(1)):02d}:{match.group(2)}"

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        return value if is_valid_timezone(value) else ""

    def to_event(self) -> ExtractedEvent:
        return ExtractedEvent(
            title=self.title,
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
            location=self.location,
            description=self.description,
            timezone=self.timezone,
        )


@dataclass
class ExtractionResult:
    """A defaulted event and the path that produced it."""

    event: ExtractedEvent
    source: ExtractionSource
