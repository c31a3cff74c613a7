from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime


class VisitorResponse(BaseModel):
    """Serializes a Visitor row (ORM mode)"""
    visitor_number: int
    ip_address: str
    source_type: str
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    timezone: Optional[str] = None
    local_time: Optional[str] = None
    utc_offset: Optional[int] = None
    browser_name: Optional[str] = None
    browser_version: Optional[str] = None
    os_name: Optional[str] = None
    os_version: Optional[str] = None
    device_type: Optional[str] = None
    device_vendor: Optional[str] = None
    navigator_language: Optional[str] = None
    fonts_available: Optional[str] = None
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None
    screen_color_depth: Optional[int] = None
    device_pixel_ratio: Optional[float] = None
    hardware_concurrency: Optional[int] = None
    cookie_enabled: Optional[bool] = None
    max_touch_points: Optional[int] = None
    connection_type: Optional[str] = None
    connection_effective_type: Optional[str] = None
    connection_rtt: Optional[int] = None
    last_visit: Optional[datetime] = None
    visit_count: int

    model_config = ConfigDict(from_attributes=True)


class VisitorListResponse(BaseModel):
    success: bool = True
    data: List[VisitorResponse]
    limit: int
    offset: int


class CollectResponse(BaseModel):
    success: bool = True
    visitor_id: int
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
