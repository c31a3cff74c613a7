"""
Factory for creating geolocation backends.
Simple, clean factory with singleton caching.
"""

from enum import Enum
from .geo import GeoLookupStrategy, GeoIP2Lookup, NullGeoLookup
from collector_app.config import settings
from collector_app.logging_config import get_logger

logger = get_logger("geo")


class GeoBackend(Enum):
    """Available geolocation backends"""
    GEOIP2 = "geoip2"
    NULL = "null"


class GeoLookupFactory:
    """
    Creates the geolocation backend once and reuses it.
    Gets configuration from settings (not passed as parameters).
    """

    _instance: GeoLookupStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: GeoBackend) -> GeoLookupStrategy:
        """
        Create or return cached geolocation backend.

        Args:
            backend: Type of geolocation backend (from enum)

        Returns:
            Singleton GeoLookupStrategy
        """
        if cls._instance is not None:
            return cls._instance

        if backend == GeoBackend.GEOIP2:
            import geoip2.database

            try:
                reader = geoip2.database.Reader(settings.geoip_database_path)
                cls._instance = GeoIP2Lookup(reader)
                logger.info("GeoIP2 lookup initialized from %s", settings.geoip_database_path)

            except (OSError, ValueError) as e:
                # Missing or unreadable .mmdb file: run without geo data
                logger.warning("GeoIP2 database unavailable (%s), geo fields will be Unknown", e)
                cls._instance = NullGeoLookup()

        elif backend == GeoBackend.NULL:
            cls._instance = NullGeoLookup()
            logger.info("Null geo lookup initialized")

        else:
            raise ValueError(f"Unknown geo backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
