"""
Request admission for the extraction endpoints.

Components:
- ActivityStore: per-client sliding-window counters with periodic sweep
- AdmissionController: ordered rate, abuse and content checks
- AdmissionDecision: allow/deny value with reason code and retry-after
- screen_content / screen_origin: content and origin screens
"""

from calendar_intake.admission.config import AdmissionConfig
from calendar_intake.admission.controller import (
    AdmissionController,
    AdmissionDenied,
    AdmissionRequest,
)
from calendar_intake.admission.schemas import AdmissionDecision, ClientActivityRecord
from calendar_intake.admission.screening import screen_content, screen_origin
from calendar_intake.admission.store import ActivityStore

__all__ = [
    "ActivityStore",
    "AdmissionConfig",
    "AdmissionController",
    "AdmissionDecision",
    "AdmissionDenied",
    "AdmissionRequest",
    "ClientActivityRecord",
    "screen_content",
    "screen_origin",
]
