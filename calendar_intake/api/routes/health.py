"""
Liveness check and Prometheus exposition.
"""

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from calendar_intake import __version__
from calendar_intake.admission import ActivityStore
from calendar_intake.api.dependencies import (
    get_activity_store,
    get_extraction_service,
    get_metrics_collector,
)
from calendar_intake.api.models import HealthResponse
from calendar_intake.extraction import ExtractionService
from calendar_intake.observability.metrics import MetricsCollector

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    store: ActivityStore = Depends(get_activity_store),
    service: ExtractionService = Depends(get_extraction_service),
) -> HealthResponse:
    return HealthResponse(
        version=__version__,
        ai_configured=service.ai_configured,
        tracked_clients=store.client_count,
    )


@router.get("/metrics", include_in_schema=False)
async def metrics_endpoint(
    store: ActivityStore = Depends(get_activity_store),
    metrics: MetricsCollector = Depends(get_metrics_collector),
) -> Response:
    metrics.tracked_clients.set(store.client_count)
    return Response(content=generate_latest(metrics.registry), media_type=CONTENT_TYPE_LATEST)
