"""Pattern-based event extraction for free-form text.

The deterministic fallback used when the AI path is unavailable. Each
field is described by an ordered table of FieldRule entries; for every
field the first rule whose match normalizes to a valid value wins.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Callable, NamedTuple

from calendar_intake.extraction.normalizer import DateTimeNormalizer
from calendar_intake.extraction.schemas import ExtractedEvent
from calendar_intake.extraction.timezones import TimezoneResolver

logger = logging.getLogger(__name__)


class FieldRule(NamedTuple):
    """One extraction rule: where to look, how to clean, what to accept."""

    pattern: re.Pattern[str]
    validator: Callable[[str], bool]
    normalizer: Callable[[re.Match[str]], str | None]


# Reusable pattern fragments
_MONTH = (
    r"(?P<month>Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?"
    r"|Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?"
)
_WEEKDAY = r"(?:(?:Mon|Tues?|Wed(?:nes)?|Thu(?:rs)?|Fri|Sat(?:ur)?|Sun)(?:day)?\.?,?\s+)"
_ORDINAL_DAY = r"(?P<day>\d{1,2}(?:st|nd|rd|th)?)"
_MERIDIEM = r"(?P<meridiem>[ap]\.?m\.?)(?![a-z])"

_EVENT_TYPES = (
    "meeting|conference|workshop|seminar|webinar|summit|party|celebration|ceremony"
    "|session|class|lecture|concert|festival|meetup|hackathon|dinner|lunch|breakfast"
)
_MEETUP_KEYWORDS = "meetup|hackathon|webinar|summit|festival|gala|party|celebration|happy hour"
_TITLE_CASE_WORD = r"(?:[A-Z0-9][\w'&.:-]*|&|-|a|an|and|at|by|for|in|of|on|or|the|to|with)"
_STREET_SUFFIX = "St|Street|Ave|Avenue|Rd|Road|Blvd|Boulevard|Dr|Drive|Ln|Lane|Way|Ct|Court|Pl|Place"

_DISALLOWED_LOCATION_CHARS = re.compile(r"[^\w\s,.#'&/()\-]")
_WRAPPING_PUNCTUATION = " \t*#\"'`:-|>"


def _squash(value: str) -> str:
    return " ".join(value.split())


def _length_between(low: int, high: int) -> Callable[[str], bool]:
    """Accept values with low <= len < high."""
    return lambda value: low <= len(value) < high


def _accept_any(value: str) -> bool:
    return bool(value)


def _clean_title(match: re.Match[str]) -> str | None:
    return _squash(match.group("value")).strip(_WRAPPING_PUNCTUATION) or None


def _clean_location(match: re.Match[str]) -> str | None:
    value = match.groupdict().get("value") or match.group(0)
    value = _squash(_DISALLOWED_LOCATION_CHARS.sub("", value))
    return value.strip(" ,.;-") or None


def _clean_label_value(match: re.Match[str]) -> str | None:
    return _squash(match.group("value")).strip(_WRAPPING_PUNCTUATION) or None


def _first_sentence(match: re.Match[str]) -> str | None:
    sentence = _squash(match.group(0))
    if len(sentence) <= 20:
        return None
    return sentence[:200]


TITLE_RULES: list[FieldRule] = [
    # "Title: Quarterly Planning"
    FieldRule(
        re.compile(
            r"^[ \t]*(?:title|event[ \t]+name|event|subject|what)[ \t]*:[ \t]*(?P<value>[^\n]+)$",
            re.IGNORECASE | re.MULTILINE,
        ),
        _length_between(4, 100),
        _clean_title,
    ),
    # "Annual Design Conference"
    FieldRule(
        re.compile(
            rf"^[ \t]*(?P<value>[^\n]*\b(?:{_EVENT_TYPES})s?)[ \t]*[.!:]?[ \t]*$",
            re.IGNORECASE | re.MULTILINE,
        ),
        _length_between(4, 100),
        _clean_title,
    ),
    # "Friday happy hour on the roof"
    FieldRule(
        re.compile(
            rf"^[ \t]*(?P<value>[^\n]*\b(?:{_MEETUP_KEYWORDS})\b[^\n]*)$",
            re.IGNORECASE | re.MULTILINE,
        ),
        _length_between(4, 100),
        _clean_title,
    ),
    # A heading in Title Case
    FieldRule(
        re.compile(
            rf"^[ \t]*(?P<value>[A-Z][\w'&.:-]*(?:[ \t]+{_TITLE_CASE_WORD})+)[ \t]*$",
            re.MULTILINE,
        ),
        lambda value: 10 <= len(value) <= 80,
        _clean_title,
    ),
]


class PatternExtractor:
    """
    Regex-based event extractor.

    Builds an ExtractedEvent field by field from the rule tables. Nothing
    is defaulted here: fields without a match are left empty except the
    timezone, which the resolver always fills.

    Usage:
        extractor = PatternExtractor()
        event = extractor.extract("Team Sync 2024-03-15 14:00 EST")
    """

    def __init__(
        self,
        resolver: TimezoneResolver | None = None,
        normalizer: DateTimeNormalizer | None = None,
    ):
        self._resolver = resolver or TimezoneResolver()
        self._normalizer = normalizer or DateTimeNormalizer()
        self._date_rules: list[FieldRule] | None = None

    @property
    def resolver(self) -> TimezoneResolver:
        return self._resolver

    def extract(self, text: str, reference_date: date | None = None) -> ExtractedEvent:
        """
        Extract event fields from text.

        Args:
            text: Free-form event text.
            reference_date: Supplies the year for dates written without one.

        Returns:
            ExtractedEvent with whatever fields were found.
        """
        if not text:
            return ExtractedEvent(timezone=self._resolver.default_timezone)

        normalizer = (
            DateTimeNormalizer(reference_date) if reference_date else self._normalizer
        )
        times = self.extract_times(text)

        event = ExtractedEvent(
            title=self.first_match(TITLE_RULES, text),
            date=self.first_match(self._build_date_rules(normalizer), text),
            start_time=times[0] if times else "",
            end_time=(times[1] if len(times) > 1 else times[0]) if times else "",
            location=self.first_match(LOCATION_RULES, text),
            description=self.first_match(DESCRIPTION_RULES, text),
            timezone=self._resolver.resolve(text),
        )
        logger.debug(
            "Pattern extraction: title=%r date=%r times=%s tz=%s",
            event.title,
            event.date,
            times,
            event.timezone,
        )
        return event

    @staticmethod
    def first_match(rules: list[FieldRule], text: str) -> str:
        """Evaluate rules in order and return the first accepted value."""
        for rule in rules:
            for match in rule.pattern.finditer(text):
                value = rule.normalizer(match)
                if value and rule.validator(value):
                    return value
        return ""

    def extract_times(self, text: str) -> list[str]:
        """All clock times in the text as sorted, unique 24-hour HH:MM strings."""
        found: set[str] = set()
        for pattern in TIME_PATTERNS:
            for match in pattern.finditer(text):
                groups = match.groupdict()
                value = self._normalizer.to_24_hour(
                    int(groups["hour"]),
                    int(groups.get("minute") or 0),
                    groups.get("meridiem"),
                )
                if value is not None:
                    found.add(value)
        return sorted(found)

    def _build_date_rules(self, normalizer: DateTimeNormalizer) -> list[FieldRule]:
        if normalizer is self._normalizer and self._date_rules is not None:
            return self._date_rules

        rules = [
            # 2024-03-15
            FieldRule(
                re.compile(r"\b(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})\b"),
                _accept_any,
                normalizer.from_iso,
            ),
            # 3/15/2024
            FieldRule(
                re.compile(r"\b(?P<month>\d{1,2})/(?P<day>\d{1,2})/(?P<year>\d{4})\b"),
                _accept_any,
                normalizer.from_numeric,
            ),
            # 3-15-2024
            FieldRule(
                re.compile(r"\b(?P<month>\d{1,2})-(?P<day>\d{1,2})-(?P<year>\d{4})\b"),
                _accept_any,
                normalizer.from_numeric,
            ),
            # March 15, 2024 / Friday, March 15th
            FieldRule(
                re.compile(
                    rf"\b{_WEEKDAY}?{_MONTH}\s+{_ORDINAL_DAY}\b(?:,?\s+(?P<year>\d{{4}})\b)?",
                    re.IGNORECASE,
                ),
                _accept_any,
                normalizer.from_month_name,
            ),
            # 15 March 2024 / 15th of March
            FieldRule(
                re.compile(
                    rf"\b{_ORDINAL_DAY}\s+(?:of\s+)?{_MONTH}(?:,?\s+(?P<year>\d{{4}}))?\b",
                    re.IGNORECASE,
                ),
                _accept_any,
                normalizer.from_month_name,
            ),
        ]
        if normalizer is self._normalizer:
            self._date_rules = rules
        return rules


TIME_PATTERNS: list[re.Pattern[str]] = [
    # 2:30 PM
    re.compile(rf"\b(?P<hour>\d{{1,2}}):(?P<minute>\d{{2}})\s*{_MERIDIEM}", re.IGNORECASE),
    # 14:30 (not followed by am/pm, which the rule above already took)
    re.compile(
        r"\b(?P<hour>\d{1,2}):(?P<minute>\d{2})\b(?!\s*[ap]\.?m\.?(?![a-z]))",
        re.IGNORECASE,
    ),
    # 2pm
    re.compile(rf"(?<![:.\d])\b(?P<hour>\d{{1,2}})\s*{_MERIDIEM}", re.IGNORECASE),
]

LOCATION_RULES: list[FieldRule] = [
    # "Location: Room 4B"
    FieldRule(
        re.compile(
            r"^[ \t]*(?:location|venue|where|address|place)[ \t]*:[ \t]*(?P<value>[^\n]+)$",
            re.IGNORECASE | re.MULTILINE,
        ),
        _length_between(4, 200),
        _clean_location,
    ),
    # "held at the Grand Hall"
    FieldRule(
        re.compile(
            r"\b(?:held|taking\s+place|takes\s+place|located)\s+(?:at|in)\s+(?P<value>[^\n.;!?]+)",
            re.IGNORECASE,
        ),
        _length_between(4, 200),
        _clean_location,
    ),
    # "123 Main St"
    FieldRule(
        re.compile(rf"\b\d{{1,5}}\s+(?:[A-Z][\w.]*\s+){{1,4}}(?:{_STREET_SUFFIX})\b\.?"),
        _length_between(4, 200),
        _clean_location,
    ),
]

DESCRIPTION_RULES: list[FieldRule] = [
    # "Details: bring a laptop"
    FieldRule(
        re.compile(
            r"^[ \t]*(?:description|details|about|notes|agenda|summary)[ \t]*:[ \t]*(?P<value>[^\n]+)$",
            re.IGNORECASE | re.MULTILINE,
        ),
        _length_between(10, 500),
        _clean_label_value,
    ),
    # First reasonably long sentence
    FieldRule(re.compile(r"[^.!?]+"), _accept_any, _first_sentence),
]
