"""Date and time normalizer for pattern-based extraction.

Converts the date and clock-time fragments captured by the extraction
patterns into ISO dates (YYYY-MM-DD) and 24-hour HH:MM strings.
"""

from __future__ import annotations

import re
from datetime import date

# Month name → number mapping
MONTH_MAP: dict[str, int] = {
    "january": 1, "february": 2, "march": 3, "april": 4,
    "may": 5, "june": 6, "july": 7, "august": 8,
    "september": 9, "october": 10, "november": 11, "december": 12,
    "jan": 1, "feb": 2, "mar": 3, "apr": 4,
    "jun": 6, "jul": 7, "aug": 8, "sep": 9,
    "sept": 9, "oct": 10, "nov": 11, "dec": 12,
}

_ORDINAL_SUFFIX = re.compile(r"(?i)(\d+)(?:st|nd|rd|th)\b")


class DateTimeNormalizer:
    """
    Stateless normalizer for dates and clock times found in event text.

    Args:
        reference_date: Supplies the year for dates written without one.
            Defaults to today.
    """

    def __init__(self, reference_date: date | None = None):
        self._ref = reference_date or date.today()

    @property
    def reference_date(self) -> date:
        return self._ref

    def iso_date(self, year: int, month: int, day: int) -> str | None:
        """Build an ISO date, or None if the parts are not a real date."""
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return None

    def from_iso(self, match: re.Match[str]) -> str | None:
        """'2024-03-15' → '2024-03-15' (validated)."""
        return self.iso_date(
            int(match.group("year")), int(match.group("month")), int(match.group("day"))
        )

    def from_numeric(self, match: re.Match[str]) -> str | None:
        """US ordering: '3/15/2024' or '3-15-2024' → '2024-03-15'."""
        return self.iso_date(
            int(match.group("year")), int(match.group("month")), int(match.group("day"))
        )

    def from_month_name(self, match: re.Match[str]) -> str | None:
        """'March 15th, 2024' / '15 March 2024' / 'Mar 15' → ISO date."""
        month = self.month_number(match.group("month"))
        if month is None:
            return None
        day = int(_ORDINAL_SUFFIX.sub(r"\1", match.group("day")))
        year_text = match.groupdict().get("year")
        year = int(year_text) if year_text else self._ref.year
        return self.iso_date(year, month, day)

    @staticmethod
    def month_number(name: str) -> int | None:
        """Map a month name or abbreviation ('Sept.', 'march') to 1-12."""
        return MONTH_MAP.get(name.lower().rstrip("."))

    @staticmethod
    def to_24_hour(hour: int, minute: int = 0, meridiem: str | None = None) -> str | None:
        """
        Convert a clock reading to 24-hour HH:MM.

        '12 PM' stays 12:xx, '12 AM' becomes 00:xx. Returns None for
        readings outside 0-23 hours or 0-59 minutes.
        """
        if meridiem:
            marker = meridiem.lower().replace(".", "").strip()
            if not 1 <= hour <= 12:
                return None
            if marker == "pm" and hour != 12:
                hour += 12
            elif marker == "am" and hour == 12:
                hour = 0
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            return None
        return f"{hour:02d}:{minute:02d}"
