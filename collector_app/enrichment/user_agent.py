"""
User-agent parsing.

Wraps the ``user_agents`` library and flattens its result into the six
attributes the visitor record keeps.
"""

from typing import Optional

from pydantic import BaseModel
from user_agents import parse as parse_ua

from collector_app.logging_config import get_logger

logger = get_logger("user_agent")

# ua-parser reports unrecognized families as "Other"
_UNRECOGNIZED = {"", "Other", "Generic"}


class UserAgentInfo(BaseModel):
    browser_name: Optional[str] = None
    browser_version: Optional[str] = None
    os_name: Optional[str] = None
    os_version: Optional[str] = None
    device_type: Optional[str] = None
    device_vendor: Optional[str] = None


def _known(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return None if value in _UNRECOGNIZED else value


class UserAgentParser:
    """Parses User-Agent headers; never raises"""

    def parse(self, ua_string: Optional[str]) -> UserAgentInfo:
        if not ua_string:
            return UserAgentInfo()

        try:
            ua = parse_ua(ua_string)
        except Exception as e:
            logger.debug("User-agent parse failed: %s", e)
            return UserAgentInfo()

        # Desktop is the resolver's default, so only report the other kinds
        if ua.is_tablet:
            device_type = "tablet"
        elif ua.is_mobile:
            device_type = "mobile"
        elif ua.is_bot:
            device_type = "bot"
        else:
            device_type = None

        return UserAgentInfo(
            browser_name=_known(ua.browser.family),
            browser_version=_known(ua.browser.version_string),
            os_name=_known(ua.os.family),
            os_version=_known(ua.os.version_string),
            device_type=device_type,
            device_vendor=_known(ua.device.brand),
        )
