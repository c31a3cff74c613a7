from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from collector_app.dependencies import enforce_rate_limit, get_admin_token, get_visitor_store
from collector_app.exceptions import StorageError
from collector_app.logging_config import get_logger
from collector_app.schemas.visitor import ErrorResponse, VisitorListResponse, VisitorResponse
from collector_app.services.visitor_store import VisitorStore

router = APIRouter(prefix="/api", tags=["visitors"], dependencies=[Depends(enforce_rate_limit)])
logger = get_logger("visitors")


@router.get(
    "/visitors",
    response_model=VisitorListResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def list_visitors(
    token: Optional[str] = Query(None, description="Admin access token"),
    limit: int = Query(50, description="Maximum rows to return"),
    offset: int = Query(0, description="Rows to skip"),
    admin_token: str = Depends(get_admin_token),
    store: VisitorStore = Depends(get_visitor_store),
):
    """
    Admin listing, most recent visit first.

    The token is checked before the store is touched.
    """
    # Plain string equality, not constant-time
    if token != admin_token:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=ErrorResponse(error="unauthorized").model_dump(),
        )

    try:
        visitors = store.list(limit=limit, offset=offset)
    except StorageError as e:
        logger.error("Visitor listing failed: %s", e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Failed to load visitors").model_dump(),
        )

    limit, offset = VisitorStore.page_bounds(limit, offset)
    return VisitorListResponse(
        data=[VisitorResponse.model_validate(v) for v in visitors],
        limit=limit,
        offset=offset,
    )
