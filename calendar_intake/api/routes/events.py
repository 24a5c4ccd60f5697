"""Event extraction endpoints: text, uploaded documents and ICS export."""

from datetime import date

import structlog
from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from starlette.requests import Request

from calendar_intake.admission import (
    AdmissionController,
    AdmissionDenied,
    screen_content,
)
from calendar_intake.api.dependencies import (
    build_admission_request,
    get_admission_controller,
    get_client_id,
    get_document_extractor,
    get_extraction_service,
)
from calendar_intake.api.models import ErrorResponse, EventModel, ProcessEventRequest
from calendar_intake.documents import DocumentProviderError, DocumentTextExtractor
from calendar_intake.extraction import (
    ExtractedEvent,
    ExtractionFatalError,
    ExtractionService,
)
from calendar_intake.ics import event_to_ics, ics_filename

router = APIRouter(prefix="/api")
logger = structlog.get_logger(__name__)

_DENIAL_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid content or no event found"},
    403: {"model": ErrorResponse, "description": "Request blocked for security reasons"},
    429: {"model": ErrorResponse, "description": "Rate limited"},
}


async def _extract(
    request: Request,
    response: Response,
    controller: AdmissionController,
    service: ExtractionService,
    text: str,
) -> dict[str, str]:
    """Run admitted text through the orchestrator."""
    try:
        result = await service.extract(text)
    except ExtractionFatalError:
        controller.report_failure(get_client_id(request))
        raise

    response.headers["X-Extraction-Source"] = result.source
    return result.event.to_dict()


@router.post(
    "/process-event",
    response_model=EventModel,
    responses=_DENIAL_RESPONSES,
    summary="Extract an event from text",
    description="Admit, screen and extract a structured calendar event from free-form text.",
)
async def process_event(
    request: Request,
    response: Response,
    body: ProcessEventRequest,
    controller: AdmissionController = Depends(get_admission_controller),
    service: ExtractionService = Depends(get_extraction_service),
) -> dict[str, str]:
    decision = controller.admit(
        build_admission_request(
            request,
            endpoint="/api/process-event",
            is_ai_request=True,
            content=body.content,
            check_content=True,
        )
    )
    if not decision.allowed:
        raise AdmissionDenied(decision)

    return await _extract(request, response, controller, service, decision.sanitized_content)


@router.post(
    "/process-document",
    response_model=EventModel,
    responses={
        **_DENIAL_RESPONSES,
        415: {"model": ErrorResponse, "description": "Unsupported file type"},
        422: {"model": ErrorResponse, "description": "No text could be extracted"},
    },
    summary="Extract an event from an uploaded file",
)
async def process_document(
    request: Request,
    response: Response,
    file: UploadFile = File(..., description="Document to read"),
    controller: AdmissionController = Depends(get_admission_controller),
    service: ExtractionService = Depends(get_extraction_service),
    documents: DocumentTextExtractor = Depends(get_document_extractor),
) -> dict[str, str]:
    client_id = get_client_id(request)
    decision = controller.admit(
        build_admission_request(request, endpoint="/api/process-document", is_ai_request=True)
    )
    if not decision.allowed:
        raise AdmissionDenied(decision)

    try:
        if file.size is not None:
            documents.check_size(file.size)
        # One byte past the limit is enough to reject an oversized upload
        data = await file.read(documents.max_bytes + 1)
        text = documents.extract(data, file.filename, file.content_type)
    except DocumentProviderError as e:
        controller.report_failure(client_id)
        logger.info("Document rejected", filename=file.filename, error=str(e))
        raise

    screened = screen_content(text, controller.config)
    if not screened.allowed:
        controller.report_failure(client_id)
        raise AdmissionDenied(screened)

    return await _extract(request, response, controller, service, screened.sanitized_content)


@router.post(
    "/events/ics",
    response_class=Response,
    responses={
        200: {"content": {"text/calendar": {}}, "description": "ICS attachment"},
        400: {"model": ErrorResponse, "description": "Event cannot be rendered"},
    },
    summary="Render an event as an ICS file",
)
async def export_ics(
    body: EventModel,
    service: ExtractionService = Depends(get_extraction_service),
) -> Response:
    event = ExtractedEvent.from_dict(body.model_dump(by_alias=True)).with_defaults(
        today=date.today(),
        default_timezone=service.resolver.default_timezone,
    )
    try:
        payload = event_to_ics(event)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return Response(
        content=payload,
        media_type="text/calendar",
        headers={"Content-Disposition": f'attachment; filename="{ics_filename(event.title)}"'},
    )
