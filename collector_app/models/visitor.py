from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from collector_app.database.connection import Base


class Visitor(Base):
    """
    One row per visitor identity: (ip_address, source_type).

    The fingerprint columns are a snapshot of the first sighting.
    Repeat hits only touch visit_count and last_visit.
    """
    __tablename__ = "visitors"
    __table_args__ = (
        # Identity key; the upsert resolves conflicts on this constraint
        UniqueConstraint("ip_address", "source_type", name="uq_visitors_identity"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    visitor_number = Column(Integer, unique=True, nullable=False, index=True)

    ip_address = Column(String(64), nullable=False)
    source_type = Column(String(8), nullable=False, default="GET")

    # Geo
    country = Column(Text)
    region = Column(Text)
    city = Column(Text)

    # Client clock
    timezone = Column(Text)
    local_time = Column(Text)
    utc_offset = Column(Integer)

    # User agent
    browser_name = Column(Text)
    browser_version = Column(Text)
    os_name = Column(Text)
    os_version = Column(Text)
    device_type = Column(Text)
    device_vendor = Column(Text)

    # Script-observed navigator/screen attributes
    navigator_language = Column(Text)
    fonts_available = Column(Text)
    screen_width = Column(Integer)
    screen_height = Column(Integer)
    screen_color_depth = Column(Integer)
    device_pixel_ratio = Column(Float)
    hardware_concurrency = Column(Integer)
    cookie_enabled = Column(Boolean)
    max_touch_points = Column(Integer)
    connection_type = Column(Text)
    connection_effective_type = Column(Text)
    connection_rtt = Column(Integer)

    last_visit = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    visit_count = Column(Integer, nullable=False, default=1)
