"""Tests for the pattern-based extractor."""

from datetime import date

import pytest

from calendar_intake.extraction.patterns import (
    DESCRIPTION_RULES,
    LOCATION_RULES,
    TITLE_RULES,
    PatternExtractor,
)
from calendar_intake.extraction.schemas import ExtractedEvent
from calendar_intake.extraction.timezones import TimezoneResolver


@pytest.fixture
def extractor() -> PatternExtractor:
    return PatternExtractor()


REFERENCE = date(2024, 3, 1)

LABELLED_EMAIL = """\
Title: Quarterly Planning Review
Date: March 15th, 2024
Time: 2:30 PM - 4:00 PM PST
Location: Conference Room B, 500 Howard St
Details: Bring your Q1 numbers and roadmap drafts.
"""


class TestLabelledText:
    """Labelled lines are the strongest signal for every field."""

    def test_all_fields(self, extractor):
        event = extractor.extract(LABELLED_EMAIL, reference_date=REFERENCE)

        assert event.title == "Quarterly Planning Review"
        assert event.date == "2024-03-15"
        assert event.start_time == "14:30"
        assert event.end_time == "16:00"
        assert event.location == "Conference Room B, 500 Howard St"
        assert event.description == "Bring your Q1 numbers and roadmap drafts."
        assert event.timezone == "America/Los_Angeles"

    def test_location_strips_disallowed_characters(self, extractor):
        event = extractor.extract("Location: Room <4B>")
        assert event.location == "Room 4B"


class TestOneLiners:
    """Terse single-line input."""

    @pytest.mark.parametrize("separator", ["-", "\u2014"])
    def test_iso_date_times_and_street(self, extractor, separator):
        event = extractor.extract(
            f"Team Sync {separator} 2024-03-15, 14:00 to 15:00 EST at 123 Main St"
        )

        assert event.date == "2024-03-15"
        assert event.start_time == "14:00"
        assert event.end_time == "15:00"
        assert event.timezone == "America/New_York"
        assert event.location == "123 Main St"
        assert event.title == ""

    def test_nothing_meaningful(self, extractor):
        event = extractor.extract(
            "Meeting tomorrow at 2pm in the conference room", reference_date=REFERENCE
        )

        assert event.title == ""
        assert event.date == ""
        assert event.start_time == "14:00"
        assert not event.has_meaningful_content()

    def test_empty_text(self, extractor):
        assert extractor.extract("") == ExtractedEvent(timezone="America/New_York")

    def test_custom_default_timezone(self):
        extractor = PatternExtractor(resolver=TimezoneResolver("Europe/London"))
        assert extractor.extract("Lunch").timezone == "Europe/London"
        assert extractor.resolver.default_timezone == "Europe/London"


class TestTitles:
    """Title rule ordering."""

    def test_event_type_line(self, extractor):
        event = extractor.extract("Annual Design Conference\nJoin us on 4/12/2024 at 9am.")

        assert event.title == "Annual Design Conference"
        assert event.date == "2024-04-12"
        assert event.start_time == "09:00"
        assert event.end_time == "09:00"

    def test_meetup_keyword_line(self, extractor):
        event = extractor.extract("Friday happy hour on the roof deck")
        assert event.title == "Friday happy hour on the roof deck"

    def test_title_case_heading(self, extractor):
        event = extractor.extract("Product Launch Review\nsee you there")
        assert event.title == "Product Launch Review"

    def test_label_beats_event_type_line(self):
        text = "Annual Design Conference\nSubject: Design Day Logistics"
        assert PatternExtractor.first_match(TITLE_RULES, text) == "Design Day Logistics"

    def test_short_label_rejected(self):
        assert PatternExtractor.first_match(TITLE_RULES, "Title: Hi") == ""


class TestDates:
    """Date formats and year inference."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("on 2024-06-01", "2024-06-01"),
            ("on 6/1/2024", "2024-06-01"),
            ("on 6-1-2024", "2024-06-01"),
            ("on June 1, 2025", "2025-06-01"),
            ("Kickoff on Friday, March 15th", "2024-03-15"),
            ("Sept. 9", "2024-09-09"),
            ("on 15 March", "2024-03-15"),
            ("the 3rd of May 2026", "2026-05-03"),
        ],
    )
    def test_formats(self, extractor, text, expected):
        assert extractor.extract(text, reference_date=REFERENCE).date == expected

    def test_invalid_date_skipped(self, extractor):
        event = extractor.extract("either 2024-02-30 or 2024-03-02")
        assert event.date == "2024-03-02"


class TestTimes:
    """Clock times are collected, deduplicated and sorted."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("from 9am to 11:30am", ["09:00", "11:30"]),
            ("at 2:11 pm", ["14:11"]),
            ("at 12 AM", ["00:00"]),
            ("at 12pm", ["12:00"]),
            ("ends 17:00, starts 09:00", ["09:00", "17:00"]),
            ("9am, which is 9:00 am", ["09:00"]),
            ("at 7 p.m.", ["19:00"]),
            ("at 25:00", []),
            ("room 12, floor 3", []),
        ],
    )
    def test_extract_times(self, extractor, text, expected):
        assert extractor.extract_times(text) == expected


class TestLocationsAndDescriptions:
    """Location phrasing and description sentences."""

    def test_held_at_phrase(self):
        text = "The party is being held at The Grand Hall; doors open early"
        assert PatternExtractor.first_match(LOCATION_RULES, text) == "The Grand Hall"

    def test_first_long_sentence(self):
        text = "Hi. This is the quarterly planning session for everyone. See you."
        assert (
            PatternExtractor.first_match(DESCRIPTION_RULES, text)
            == "This is the quarterly planning session for everyone"
        )

    def test_description_truncated(self):
        text = "word " * 100
        assert len(PatternExtractor.first_match(DESCRIPTION_RULES, text)) == 200

    def test_labelled_description_wins(self):
        text = "A very long opening sentence about nothing.\nNotes: bring a laptop please"
        assert PatternExtractor.first_match(DESCRIPTION_RULES, text) == "bring a laptop please"
