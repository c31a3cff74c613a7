"""
IP geolocation strategies.

The resolver only needs ``lookup(ip) -> GeoInfo``; which backend answers is
a deployment decision (MaxMind database in production, nothing in tests).
"""

from abc import ABC, abstractmethod
from typing import Optional
import ipaddress

from pydantic import BaseModel

from collector_app.logging_config import get_logger

logger = get_logger("geo")


class GeoInfo(BaseModel):
    """Lookup result; missing parts stay None and are defaulted by the resolver"""
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None


class GeoLookupStrategy(ABC):
    """Abstract base class for IP geolocation backends"""

    @abstractmethod
    def lookup(self, ip: str) -> GeoInfo:
        """
        Resolve an IP address to a location.

        Args:
            ip: IPv4 or IPv6 address string

        Returns:
            GeoInfo, empty when nothing is known. Never raises.
        """
        pass


class GeoIP2Lookup(GeoLookupStrategy):
    """
    MaxMind GeoLite2/GeoIP2 City database reader.

    The reader is memory-mapped and safe to share between requests.
    """

    def __init__(self, reader):
        """
        Args:
            reader: geoip2.database.Reader instance
        """
        self.reader = reader

    def lookup(self, ip: str) -> GeoInfo:
        import geoip2.errors

        try:
            ipaddress.ip_address(ip)
        except ValueError:
            return GeoInfo()

        try:
            resp = self.reader.city(ip)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return GeoInfo()
        except Exception as e:
            logger.warning("GeoIP lookup failed for %s: %s", ip, e)
            return GeoInfo()

        return GeoInfo(
            country=resp.country.iso_code or resp.registered_country.iso_code,
            region=resp.subdivisions.most_specific.name,
            city=resp.city.name,
        )

    def close(self):
        self.reader.close()


class NullGeoLookup(GeoLookupStrategy):
    """
    Null Object Pattern - knows nothing about any address.

    Used when no GeoIP database is configured and in tests.
    """

    def lookup(self, ip: str) -> GeoInfo:
        return GeoInfo()
