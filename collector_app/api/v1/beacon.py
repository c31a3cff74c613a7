from fastapi import APIRouter, Depends, Request
from collector_app.dependencies import (
    get_client_info_resolver,
    get_visitor_store,
    rate_limit_status,
)
from collector_app.exceptions import StorageError
from collector_app.logging_config import get_logger
from collector_app.pixel import pixel_response
from collector_app.ratelimit.strategies import RateLimitResult
from collector_app.schemas.client_info import SourceType
from collector_app.services.client_info_resolver import ClientInfoResolver
from collector_app.services.visitor_identity import compute_key
from collector_app.services.visitor_store import VisitorStore

router = APIRouter(tags=["beacon"])
logger = get_logger("beacon")


@router.get("/assets/pixel.png")
def beacon_pixel(
    request: Request,
    limit_status: RateLimitResult = Depends(rate_limit_status),
    resolver: ClientInfoResolver = Depends(get_client_info_resolver),
    store: VisitorStore = Depends(get_visitor_store),
):
    """
    Image beacon for visitors without script.

    Always answers with the transparent pixel: throttled or failed
    recordings are logged, never shown to the embedding page. Query
    parameters are handed to the resolver but cannot override any
    script-only field.
    """
    if not limit_status.allowed:
        logger.info("Beacon hit dropped by rate limiter")
        return pixel_response()

    remote = request.client.host if request.client else None
    info = resolver.resolve(request.headers, dict(request.query_params), SourceType.GET, remote_addr=remote)
    key = compute_key(info)

    try:
        result = store.upsert(info)
    except StorageError as e:
        logger.error("Beacon visit not recorded for %s: %s", key, e)
        return pixel_response()

    logger.info(
        "Beacon visitor #%d (%s) %s, visit %d",
        result.visitor_number, key, "new" if result.was_new_visitor else "returning", result.visit_count,
    )
    return pixel_response()
