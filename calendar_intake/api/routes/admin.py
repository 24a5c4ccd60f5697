"""Operator endpoints: activity stats and per-client resets."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from starlette.requests import Request

from calendar_intake.admission import ActivityStore, AdmissionController
from calendar_intake.api.auth import verify_admin_token
from calendar_intake.api.dependencies import (
    get_activity_store,
    get_admission_controller,
    get_client_id,
)
from calendar_intake.api.models import AdminMessage, AdminResetRequest, ErrorResponse

router = APIRouter(prefix="/api/admin", dependencies=[Depends(verify_admin_token)])
logger = structlog.get_logger(__name__)

_AUTH_RESPONSES = {401: {"model": ErrorResponse, "description": "Invalid operator token"}}


@router.get(
    "/stats",
    responses=_AUTH_RESPONSES,
    summary="Activity counters for the calling client",
)
async def admin_stats(
    request: Request,
    store: ActivityStore = Depends(get_activity_store),
    controller: AdmissionController = Depends(get_admission_controller),
) -> dict:
    client_id = get_client_id(request)
    snapshot = store.snapshot(client_id)
    limits = controller.config.limits_snapshot()
    return {
        "currentIP": {
            "ip": client_id,
            "requests": snapshot["requests"],
            "aiRequests": snapshot["aiRequests"],
        },
        "systemLimits": limits,
        "trackedClients": store.client_count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post(
    "/reset",
    response_model=AdminMessage,
    responses={
        **_AUTH_RESPONSES,
        400: {"model": ErrorResponse, "description": "Invalid action"},
    },
    summary="Clear a client's activity record",
)
async def admin_reset(
    body: AdminResetRequest,
    store: ActivityStore = Depends(get_activity_store),
) -> AdminMessage:
    if body.action != "reset":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid action or missing IP",
        )

    store.reset(body.ip)
    logger.info("Operator reset client activity", client_id=body.ip)
    return AdminMessage(message=f"Rate limits reset for IP: {body.ip}")
