"""Timezone endpoints: validate a reported zone, or infer one from text."""

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.requests import Request

from calendar_intake.admission import AdmissionController, AdmissionDenied
from calendar_intake.api.dependencies import (
    build_admission_request,
    get_client_id,
    get_admission_controller,
    get_extraction_service,
)
from calendar_intake.api.models import (
    DetectTimezoneRequest,
    ErrorResponse,
    ResolveTimezoneRequest,
    TimezoneResponse,
)
from calendar_intake.extraction import ExtractionService, is_valid_timezone

router = APIRouter(prefix="/api")

MAX_TIMEZONE_LENGTH = 50


@router.post(
    "/detect-timezone",
    response_model=TimezoneResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid timezone"},
        403: {"model": ErrorResponse, "description": "Request blocked for security reasons"},
        429: {"model": ErrorResponse, "description": "Rate limited"},
    },
    summary="Validate a client-reported timezone",
)
async def detect_timezone(
    request: Request,
    body: DetectTimezoneRequest,
    controller: AdmissionController = Depends(get_admission_controller),
) -> TimezoneResponse:
    decision = controller.admit(build_admission_request(request, endpoint="/api/detect-timezone"))
    if not decision.allowed:
        raise AdmissionDenied(decision)

    tz = body.timezone
    if not tz:
        controller.report_failure(get_client_id(request))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Timezone is required")
    if (
        not isinstance(tz, str)
        or len(tz) > MAX_TIMEZONE_LENGTH
        or not is_valid_timezone(tz)
    ):
        controller.report_failure(get_client_id(request))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid timezone format"
        )

    return TimezoneResponse(timezone=tz)


@router.post(
    "/resolve-timezone",
    response_model=TimezoneResponse,
    responses={429: {"model": ErrorResponse, "description": "Rate limited"}},
    summary="Infer a timezone from event text",
)
async def resolve_timezone(
    request: Request,
    body: ResolveTimezoneRequest,
    controller: AdmissionController = Depends(get_admission_controller),
    service: ExtractionService = Depends(get_extraction_service),
) -> TimezoneResponse:
    decision = controller.admit(build_admission_request(request, endpoint="/api/resolve-timezone"))
    if not decision.allowed:
        raise AdmissionDenied(decision)

    return TimezoneResponse(timezone=service.resolver.resolve(body.text))
