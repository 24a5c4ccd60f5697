"""ICS (iCalendar) serialization of extracted events."""

import re
import uuid
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from icalendar import Calendar, Event

from calendar_intake.extraction.schemas import ExtractedEvent, is_valid_timezone

PRODID = "-//calendar-intake//Event Extractor//EN"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]+")


def _parse_local(day: str, clock: str, tz: ZoneInfo) -> datetime:
    try:
        return datetime.strptime(f"{day} {clock}", "%Y-%m-%d %H:%M").replace(tzinfo=tz)
    except ValueError as e:
        raise ValueError(f"Invalid date or time: {day} {clock}") from e


def event_to_ics(
    event: ExtractedEvent,
    uid: str | None = None,
    now: datetime | None = None,
) -> bytes:
    """
    Serialize one defaulted event as a VCALENDAR document.

    Start and end are written in the event's timezone. An end time before
    the start is taken to be on the following day.

    Raises:
        ValueError: The event has no date, an unparsable time, or an
            unknown timezone.
    """
    if not event.date:
        raise ValueError("Event has no date")
    if not is_valid_timezone(event.timezone):
        raise ValueError(f"Unknown timezone: {event.timezone!r}")

    tz = ZoneInfo(event.timezone)
    start = _parse_local(event.date, event.start_time or "09:00", tz)
    end = _parse_local(event.date, event.end_time or event.start_time or "10:00", tz)
    if end < start:
        end += timedelta(days=1)

    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")

    vevent = Event()
    vevent.add("uid", uid or f"{uuid.uuid4()}@calendar-intake")
    vevent.add("dtstamp", now or datetime.now(timezone.utc))
    vevent.add("dtstart", start)
    vevent.add("dtend", end)
    vevent.add("summary", event.title or "Untitled Event")
    if event.location:
        vevent.add("location", event.location)
    if event.description:
        vevent.add("description", event.description)
    cal.add_component(vevent)

    return cal.to_ical()


def ics_filename(title: str) -> str:
    """'Team Sync: Q3' -> 'team_sync_q3.ics'."""
    stem = _UNSAFE_FILENAME_CHARS.sub("_", title.lower()).strip("_")
    return f"{stem or 'event'}.ics"
