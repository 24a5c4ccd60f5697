"""calendar-intake: turn free-form text into structured calendar events."""

__version__ = "0.1.0"
