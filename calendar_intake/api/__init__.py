"""
FastAPI service for calendar event extraction.

Provides:
- POST /api/process-event - Extract an event from text
- POST /api/process-document - Extract an event from an uploaded file
- POST /api/detect-timezone - Validate a client-reported timezone
- POST /api/resolve-timezone - Infer a timezone from text
- POST /api/events/ics - Render an event as an ICS file
- GET/POST /api/admin/* - Operator stats and resets
- GET /health, GET /metrics
"""

from calendar_intake.api.app import create_app

__all__ = ["create_app"]
