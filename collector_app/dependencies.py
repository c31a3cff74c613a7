"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of the geolocation backend,
user-agent parser and rate limiter, and per-request visitor stores.
Tests swap any of them through ``app.dependency_overrides``.
"""

import secrets
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from collector_app.config import settings
from collector_app.database.connection import get_db
from collector_app.enrichment.factory import GeoLookupFactory, GeoBackend
from collector_app.enrichment.geo import GeoLookupStrategy
from collector_app.enrichment.user_agent import UserAgentParser
from collector_app.exceptions import RateLimitExceeded
from collector_app.logging_config import logger
from collector_app.ratelimit.factory import RateLimiterFactory, RateLimitBackend
from collector_app.ratelimit.strategies import RateLimiterStrategy, RateLimitResult
from collector_app.services.client_info_resolver import ClientInfoResolver, extract_ip
from collector_app.services.visitor_store import VisitorStore


@lru_cache()
def get_geo_lookup() -> GeoLookupStrategy:
    """Geolocation backend (singleton, chosen by settings.geoip_backend)"""
    backend = GeoBackend(settings.geoip_backend)
    return GeoLookupFactory.create(backend)


@lru_cache()
def get_user_agent_parser() -> UserAgentParser:
    return UserAgentParser()


@lru_cache()
def get_rate_limiter() -> RateLimiterStrategy:
    """Rate limiter (singleton, chosen by settings.rate_limit_backend)"""
    backend = RateLimitBackend(settings.rate_limit_backend)
    return RateLimiterFactory.create(backend)


@lru_cache()
def get_admin_token() -> str:
    """
    Shared secret for the admin listing.

    When none is configured a random one is generated per process and
    logged once so the operator can use it.
    """
    if settings.admin_token:
        return settings.admin_token
    token = secrets.token_hex(32)
    logger.warning("ADMIN_TOKEN not set, generated admin access token: %s", token)
    return token


def get_client_info_resolver(
    geo: GeoLookupStrategy = Depends(get_geo_lookup),
    ua_parser: UserAgentParser = Depends(get_user_agent_parser),
) -> ClientInfoResolver:
    return ClientInfoResolver(geo=geo, ua_parser=ua_parser)


def get_visitor_store(db: Session = Depends(get_db)) -> VisitorStore:
    return VisitorStore(db=db)


def client_ip(request: Request) -> str:
    remote = request.client.host if request.client else None
    return extract_ip(request.headers, remote)


async def rate_limit_status(
    request: Request,
    limiter: RateLimiterStrategy = Depends(get_rate_limiter),
) -> RateLimitResult:
    """Count this request against the caller's window"""
    return await limiter.hit(client_ip(request))


def enforce_rate_limit(status: RateLimitResult = Depends(rate_limit_status)) -> None:
    """Route dependency: reject the request with 429 once the window is used up"""
    if not status.allowed:
        raise RateLimitExceeded(retry_after_ms=status.retry_after_ms)


async def read_json_payload(request: Request) -> dict:
    """
    Request body as a dict.

    A missing, unparseable or non-object body counts as an empty payload;
    the resolver then falls back to defaults for every field.
    """
    try:
        payload = await request.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}
