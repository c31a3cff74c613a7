"""
Test configuration and fixtures for the visitor collector.
This centralizes all test setup, making individual tests clean.
"""

import os

# Settings are read at import time; point everything at test backends first
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("GEOIP_BACKEND", "null")
os.environ.setdefault("RATE_LIMIT_BACKEND", "null")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from main import app
from collector_app.database.connection import Base, get_db
from collector_app.dependencies import get_admin_token, get_geo_lookup, get_rate_limiter
from collector_app.enrichment.geo import GeoInfo, GeoLookupStrategy
from collector_app.enrichment.user_agent import UserAgentParser
from collector_app.ratelimit.strategies import NullRateLimiter, RateLimitConfig
from collector_app.services.client_info_resolver import ClientInfoResolver

ADMIN_TOKEN = "test-admin-token"

CHROME_WINDOWS_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)

# Test database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeGeoLookup(GeoLookupStrategy):
    """In-memory geolocation table"""

    def __init__(self, table=None):
        self.table = table or {
            "1.2.3.4": GeoInfo(country="AU", region="Queensland", city="Brisbane"),
            "203.0.113.5": GeoInfo(country="TW", region="Taipei City", city="Taipei"),
        }
        self.calls = []

    def lookup(self, ip: str) -> GeoInfo:
        self.calls.append(ip)
        return self.table.get(ip, GeoInfo())


@pytest.fixture
def geo():
    return FakeGeoLookup()


@pytest.fixture
def resolver(geo):
    return ClientInfoResolver(geo=geo, ua_parser=UserAgentParser())


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    This ensures tests are isolated and don't affect each other.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        # Cleanup
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session, geo):
    """
    Create a test client with database and enrichment dependencies overridden.
    This is the main fixture that tests will use.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_geo_lookup] = lambda: geo
    app.dependency_overrides[get_rate_limiter] = lambda: NullRateLimiter(
        RateLimitConfig(window_ms=60_000, max_requests=1000)
    )
    app.dependency_overrides[get_admin_token] = lambda: ADMIN_TOKEN

    # Create test client
    with TestClient(app) as test_client:
        yield test_client

    # Clean up overrides
    app.dependency_overrides.clear()
