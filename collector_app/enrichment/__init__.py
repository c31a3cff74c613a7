"""
Request enrichment: IP geolocation and user-agent parsing.
"""

from .geo import GeoInfo, GeoLookupStrategy, GeoIP2Lookup, NullGeoLookup
from .user_agent import UserAgentInfo, UserAgentParser
from .factory import GeoLookupFactory, GeoBackend

__all__ = [
    "GeoInfo",
    "GeoLookupStrategy",
    "GeoIP2Lookup",
    "NullGeoLookup",
    "UserAgentInfo",
    "UserAgentParser",
    "GeoLookupFactory",
    "GeoBackend",
]
