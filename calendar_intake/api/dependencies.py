"""
Dependency injection for FastAPI endpoints.

Long-lived collaborators are built once by the app factory and kept on
app.state; these accessors hand them to route handlers.
"""

from fastapi import Request

from calendar_intake.admission import ActivityStore, AdmissionController, AdmissionRequest
from calendar_intake.config.settings import Settings
from calendar_intake.documents import DocumentTextExtractor
from calendar_intake.extraction import ExtractionService
from calendar_intake.observability.metrics import MetricsCollector


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_activity_store(request: Request) -> ActivityStore:
    return request.app.state.activity_store


def get_admission_controller(request: Request) -> AdmissionController:
    return request.app.state.admission_controller


def get_extraction_service(request: Request) -> ExtractionService:
    return request.app.state.extraction_service


def get_document_extractor(request: Request) -> DocumentTextExtractor:
    return request.app.state.document_extractor


def get_metrics_collector(request: Request) -> MetricsCollector:
    return request.app.state.metrics


def get_client_id(request: Request) -> str:
    """
    Identify the calling client by network address.

    Prefers the first X-Forwarded-For hop, then X-Real-IP, then the
    socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def build_admission_request(
    request: Request,
    endpoint: str,
    is_ai_request: bool = False,
    content: object = None,
    check_content: bool = False,
) -> AdmissionRequest:
    """Collect the request attributes the admission controller inspects."""
    return AdmissionRequest(
        client_id=get_client_id(request),
        endpoint=endpoint,
        is_ai_request=is_ai_request,
        content=content,
        check_content=check_content,
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer"),
        host=request.headers.get("host"),
    )
