from enum import Enum

from pydantic import BaseModel, Field


UNKNOWN = "Unknown"
PLACEHOLDER = " - "  # Shown where a value cannot be observed without client script


class SourceType(str, Enum):
    """How the hit arrived"""
    GET = "GET"    # Image beacon, no client script
    POST = "POST"  # Collection script submitted a JSON payload


class ClientInfo(BaseModel):
    """
    Normalized fingerprint of one visit.

    Every field has a default so a resolved ClientInfo is always complete.
    """

    ip_address: str = UNKNOWN
    country: str = UNKNOWN
    region: str = UNKNOWN
    city: str = UNKNOWN

    timezone: str = PLACEHOLDER
    local_time: str = PLACEHOLDER
    utc_offset: int = 0

    browser_name: str = UNKNOWN
    browser_version: str = UNKNOWN
    os_name: str = UNKNOWN
    os_version: str = UNKNOWN
    device_type: str = "desktop"
    device_vendor: str = UNKNOWN

    navigator_language: str = UNKNOWN
    fonts_available: str = UNKNOWN
    screen_width: int = 0
    screen_height: int = 0
    screen_color_depth: int = 0
    device_pixel_ratio: float = 1.0
    hardware_concurrency: int = 0
    cookie_enabled: bool = False
    max_touch_points: int = 0
    connection_type: str = PLACEHOLDER
    connection_effective_type: str = PLACEHOLDER
    connection_rtt: int = 0

    source_type: SourceType = Field(SourceType.GET, description="GET beacon or POST script")

    def to_row(self) -> dict:
        """Column values for the visitors table"""
        row = self.model_dump()
        row["source_type"] = self.source_type.value
        return row
