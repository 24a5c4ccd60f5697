"""Prompt templates for AI event extraction."""

SYSTEM_PROMPT = """You extract calendar event details from text.

Today's date is {today}. Resolve relative dates such as "tomorrow" or "next Friday" against it.

Respond with ONLY a JSON object, no prose and no code fences, with exactly these keys:
{{
  "title": "short event title",
  "date": "YYYY-MM-DD",
  "startTime": "HH:MM (24-hour)",
  "endTime": "HH:MM (24-hour)",
  "location": "venue or address",
  "description": "one or two sentence summary",
  "timezone": "IANA timezone identifier"
}}

Rules:
- Use an empty string for any field you cannot determine.
- If the timezone cannot be inferred from the text, use "{default_timezone}".
- Dates must be YYYY-MM-DD and times must be 24-hour HH:MM."""

USER_PROMPT = """Extract the event from the following text:

{content}"""
