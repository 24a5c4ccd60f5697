"""Timezone inference from free-form event text.

Maps abbreviations, GMT/UTC offsets, city names and country names found
in text to IANA timezone identifiers. Resolution order is fixed and the
first step that finds anything wins; within a step the leftmost mention
in the text wins.
"""

from __future__ import annotations

import re

from calendar_intake.extraction.schemas import is_valid_timezone

DEFAULT_TIMEZONE = "America/New_York"

ABBREVIATIONS: dict[str, str] = {
    # North America
    "EST": "America/New_York",
    "EDT": "America/New_York",
    "CST": "America/Chicago",
    "CDT": "America/Chicago",
    "MST": "America/Denver",
    "MDT": "America/Denver",
    "PST": "America/Los_Angeles",
    "PDT": "America/Los_Angeles",
    "AKST": "America/Anchorage",
    "AKDT": "America/Anchorage",
    "HST": "Pacific/Honolulu",
    # Universal
    "UTC": "UTC",
    "GMT": "Europe/London",
    # Europe
    "BST": "Europe/London",
    "WET": "Europe/Lisbon",
    "CET": "Europe/Paris",
    "CEST": "Europe/Paris",
    "EET": "Europe/Athens",
    "EEST": "Europe/Athens",
    "MSK": "Europe/Moscow",
    # Asia / Pacific
    "GST": "Asia/Dubai",
    "PKT": "Asia/Karachi",
    "IST": "Asia/Kolkata",
    "ICT": "Asia/Bangkok",
    "SGT": "Asia/Singapore",
    "HKT": "Asia/Hong_Kong",
    "PHT": "Asia/Manila",
    "JST": "Asia/Tokyo",
    "KST": "Asia/Seoul",
    "AEST": "Australia/Sydney",
    "AEDT": "Australia/Sydney",
    "NZST": "Pacific/Auckland",
    "NZDT": "Pacific/Auckland",
    # South America
    "BRT": "America/Sao_Paulo",
    "ART": "America/Argentina/Buenos_Aires",
}

# "+HH:MM" → representative zone
OFFSETS: dict[str, str] = {
    "-11:00": "Pacific/Midway",
    "-10:00": "Pacific/Honolulu",
    "-09:00": "America/Anchorage",
    "-08:00": "America/Los_Angeles",
    "-07:00": "America/Denver",
    "-06:00": "America/Chicago",
    "-05:00": "America/New_York",
    "-04:00": "America/Caracas",
    "-03:00": "America/Sao_Paulo",
    "-02:00": "Atlantic/South_Georgia",
    "-01:00": "Atlantic/Azores",
    "+00:00": "UTC",
    "+01:00": "Europe/Paris",
    "+02:00": "Europe/Athens",
    "+03:00": "Europe/Moscow",
    "+03:30": "Asia/Tehran",
    "+04:00": "Asia/Dubai",
    "+05:00": "Asia/Karachi",
    "+05:30": "Asia/Kolkata",
    "+05:45": "Asia/Kathmandu",
    "+06:00": "Asia/Dhaka",
    "+07:00": "Asia/Bangkok",
    "+08:00": "Asia/Singapore",
    "+09:00": "Asia/Tokyo",
    "+09:30": "Australia/Adelaide",
    "+10:00": "Australia/Sydney",
    "+12:00": "Pacific/Auckland",
}

LOCATIONS: dict[str, str] = {
    # United States
    "nyc": "America/New_York",
    "new york": "America/New_York",
    "manhattan": "America/New_York",
    "brooklyn": "America/New_York",
    "boston": "America/New_York",
    "philadelphia": "America/New_York",
    "washington dc": "America/New_York",
    "washington, dc": "America/New_York",
    "atlanta": "America/New_York",
    "miami": "America/New_York",
    "chicago": "America/Chicago",
    "dallas": "America/Chicago",
    "houston": "America/Chicago",
    "austin": "America/Chicago",
    "denver": "America/Denver",
    "phoenix": "America/Phoenix",
    "los angeles": "America/Los_Angeles",
    "san francisco": "America/Los_Angeles",
    "bay area": "America/Los_Angeles",
    "silicon valley": "America/Los_Angeles",
    "seattle": "America/Los_Angeles",
    "las vegas": "America/Los_Angeles",
    "anchorage": "America/Anchorage",
    "honolulu": "Pacific/Honolulu",
    # Americas
    "toronto": "America/Toronto",
    "montreal": "America/Toronto",
    "vancouver": "America/Vancouver",
    "mexico city": "America/Mexico_City",
    "sao paulo": "America/Sao_Paulo",
    "são paulo": "America/Sao_Paulo",
    "buenos aires": "America/Argentina/Buenos_Aires",
    "caracas": "America/Caracas",
    # Europe / Africa
    "london": "Europe/London",
    "dublin": "Europe/Dublin",
    "lisbon": "Europe/Lisbon",
    "paris": "Europe/Paris",
    "berlin": "Europe/Berlin",
    "munich": "Europe/Berlin",
    "amsterdam": "Europe/Amsterdam",
    "brussels": "Europe/Brussels",
    "madrid": "Europe/Madrid",
    "barcelona": "Europe/Madrid",
    "rome": "Europe/Rome",
    "milan": "Europe/Rome",
    "zurich": "Europe/Zurich",
    "vienna": "Europe/Vienna",
    "stockholm": "Europe/Stockholm",
    "athens": "Europe/Athens",
    "helsinki": "Europe/Helsinki",
    "moscow": "Europe/Moscow",
    "istanbul": "Europe/Istanbul",
    "cairo": "Africa/Cairo",
    "lagos": "Africa/Lagos",
    "nairobi": "Africa/Nairobi",
    "johannesburg": "Africa/Johannesburg",
    # Asia / Pacific
    "dubai": "Asia/Dubai",
    "karachi": "Asia/Karachi",
    "mumbai": "Asia/Kolkata",
    "delhi": "Asia/Kolkata",
    "bangalore": "Asia/Kolkata",
    "bengaluru": "Asia/Kolkata",
    "dhaka": "Asia/Dhaka",
    "bangkok": "Asia/Bangkok",
    "singapore": "Asia/Singapore",
    "shanghai": "Asia/Shanghai",
    "beijing": "Asia/Shanghai",
    "hong kong": "Asia/Hong_Kong",
    "taipei": "Asia/Taipei",
    "manila": "Asia/Manila",
    "tokyo": "Asia/Tokyo",
    "osaka": "Asia/Tokyo",
    "seoul": "Asia/Seoul",
    "sydney": "Australia/Sydney",
    "melbourne": "Australia/Melbourne",
    "brisbane": "Australia/Brisbane",
    "perth": "Australia/Perth",
    "auckland": "Pacific/Auckland",
    "fiji": "Pacific/Fiji",
}

COUNTRIES: dict[str, str] = {
    "united kingdom": "Europe/London",
    "england": "Europe/London",
    "scotland": "Europe/London",
    "ireland": "Europe/Dublin",
    "portugal": "Europe/Lisbon",
    "france": "Europe/Paris",
    "germany": "Europe/Berlin",
    "netherlands": "Europe/Amsterdam",
    "belgium": "Europe/Brussels",
    "spain": "Europe/Madrid",
    "italy": "Europe/Rome",
    "switzerland": "Europe/Zurich",
    "austria": "Europe/Vienna",
    "sweden": "Europe/Stockholm",
    "greece": "Europe/Athens",
    "finland": "Europe/Helsinki",
    "russia": "Europe/Moscow",
    "turkey": "Europe/Istanbul",
    "egypt": "Africa/Cairo",
    "nigeria": "Africa/Lagos",
    "kenya": "Africa/Nairobi",
    "south africa": "Africa/Johannesburg",
    "uae": "Asia/Dubai",
    "pakistan": "Asia/Karachi",
    "india": "Asia/Kolkata",
    "bangladesh": "Asia/Dhaka",
    "thailand": "Asia/Bangkok",
    "vietnam": "Asia/Ho_Chi_Minh",
    "china": "Asia/Shanghai",
    "taiwan": "Asia/Taipei",
    "philippines": "Asia/Manila",
    "japan": "Asia/Tokyo",
    "south korea": "Asia/Seoul",
    "korea": "Asia/Seoul",
    "australia": "Australia/Sydney",
    "new zealand": "Pacific/Auckland",
    "canada": "America/Toronto",
    "mexico": "America/Mexico_City",
    "brazil": "America/Sao_Paulo",
    "argentina": "America/Argentina/Buenos_Aires",
    "venezuela": "America/Caracas",
}


def _keyword_pattern(keys: list[str], flags: int = 0) -> re.Pattern[str]:
    """Whole-word alternation, longest keys first so 'new york' beats 'york'."""
    ordered = sorted(keys, key=len, reverse=True)
    alternation = "|".join(re.escape(k) for k in ordered)
    return re.compile(rf"(?<![\w/])(?:{alternation})(?![\w/])", flags)


class TimezoneResolver:
    """
    Infers an IANA timezone from event text. Never returns an empty string.

    Usage:
        resolver = TimezoneResolver()
        resolver.resolve("Standup 9:30 AM PST")  # "America/Los_Angeles"

    Args:
        default_timezone: Returned when no step finds a match.
    """

    def __init__(self, default_timezone: str = DEFAULT_TIMEZONE):
        self._default = default_timezone
        # GMT/UTC followed by an offset is handled by the offset step
        self._abbreviation_re = re.compile(
            r"\b(?P<abbr>"
            + "|".join(sorted(ABBREVIATIONS, key=len, reverse=True))
            + r")\b(?!\s*[+-]\s*\d)"
        )
        self._offset_re = re.compile(
            r"\b(?:GMT|UTC)\s*(?P<sign>[+-])\s*(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?\b",
            re.IGNORECASE,
        )
        self._location_re = _keyword_pattern(list(LOCATIONS), re.IGNORECASE)
        self._country_re = _keyword_pattern(list(COUNTRIES), re.IGNORECASE)

    @property
    def default_timezone(self) -> str:
        return self._default

    def resolve(self, text: str | None) -> str:
        """Resolve the timezone for a piece of text."""
        if not text:
            return self._default

        for step in (
            self._from_abbreviation,
            self._from_offset,
            self._from_location,
            self._from_country,
        ):
            result = step(text)
            if result is not None:
                return result

        return self._default

    @staticmethod
    def is_valid(name: str) -> bool:
        """Check an identifier against the host timezone database."""
        return is_valid_timezone(name)

    def _from_abbreviation(self, text: str) -> str | None:
        match = self._abbreviation_re.search(text)
        return ABBREVIATIONS[match.group("abbr")] if match else None

    def _from_offset(self, text: str) -> str | None:
        for match in self._offset_re.finditer(text):
            hours = int(match.group("hours"))
            minutes = int(match.group("minutes") or 0)
            sign = "-" if match.group("sign") == "-" and (hours or minutes) else "+"
            zone = OFFSETS.get(f"{sign}{hours:02d}:{minutes:02d}")
            if zone is not None:
                return zone
        return None

    def _from_location(self, text: str) -> str | None:
        match = self._location_re.search(text)
        return LOCATIONS[match.group(0).lower()] if match else None

    def _from_country(self, text: str) -> str | None:
        match = self._country_re.search(text)
        return COUNTRIES[match.group(0).lower()] if match else None
