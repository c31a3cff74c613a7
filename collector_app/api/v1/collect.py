from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from collector_app.config import settings
from collector_app.dependencies import (
    enforce_rate_limit,
    get_client_info_resolver,
    get_visitor_store,
    read_json_payload,
)
from collector_app.exceptions import StorageError
from collector_app.logging_config import get_logger
from collector_app.schemas.client_info import SourceType
from collector_app.schemas.visitor import CollectResponse, ErrorResponse
from collector_app.services.client_info_resolver import ClientInfoResolver
from collector_app.services.visitor_identity import compute_key
from collector_app.services.visitor_store import VisitorStore

router = APIRouter(prefix="/api", tags=["collect"], dependencies=[Depends(enforce_rate_limit)])
logger = get_logger("collect")


@router.post(
    "/collect",
    response_model=CollectResponse,
    responses={500: {"model": ErrorResponse}},
)
@router.post(
    "/analytics",
    response_model=CollectResponse,
    responses={500: {"model": ErrorResponse}},
)
def collect(
    request: Request,
    payload: dict = Depends(read_json_payload),
    resolver: ClientInfoResolver = Depends(get_client_info_resolver),
    store: VisitorStore = Depends(get_visitor_store),
):
    """
    Fingerprint submitted by the collection script.

    Payload keys are all optional; unknown keys are ignored and bad values
    fall back to defaults. Storage failures come back as a 500.
    """
    remote = request.client.host if request.client else None
    info = resolver.resolve(request.headers, payload, SourceType.POST, remote_addr=remote)
    key = compute_key(info)

    try:
        result = store.upsert(info)
    except StorageError as e:
        logger.error("Collect failed for %s: %s", key, e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Failed to record visit").model_dump(),
        )

    page = payload.get("page_url") or request.headers.get("referer") or "-"
    logger.info(
        "Script visitor #%d (%s) %s, visit %d, page=%s title=%s",
        result.visitor_number,
        key,
        "new" if result.was_new_visitor else "returning",
        result.visit_count,
        str(page)[:settings.max_field_length],
        str(payload.get("page_title") or "-")[:settings.max_field_length],
    )

    return CollectResponse(
        visitor_id=result.visitor_number,
        message="New visitor recorded" if result.was_new_visitor else "Visit recorded",
    )
