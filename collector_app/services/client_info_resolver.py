"""
Turns one inbound hit into a complete ClientInfo.

A GET beacon runs no client script, so anything only a script can observe
(screen, clock, fonts, connection, cookies) is forced to a fixed default
even if the query string claims otherwise. A POST from the collection
script is trusted for those fields, value by value, with the same defaults
standing in for anything missing or malformed.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from collector_app.config import settings
from collector_app.enrichment.geo import GeoLookupStrategy
from collector_app.enrichment.user_agent import UserAgentParser
from collector_app.logging_config import get_logger
from collector_app.schemas.client_info import (
    PLACEHOLDER,
    UNKNOWN,
    ClientInfo,
    SourceType,
)

logger = get_logger("resolver")

IPV4_MAPPED_PREFIX = "::ffff:"
IP_MAX_LENGTH = 64

# Postgres INTEGER range; larger client numbers are treated as malformed
INT_MIN, INT_MAX = -(2 ** 31), 2 ** 31 - 1


class MalformedValue(ValueError):
    """A payload value could not be coerced to its field type"""


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise MalformedValue(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise MalformedValue(value)
        value = int(value)
    elif isinstance(value, str):
        try:
            value = int(float(value.strip()))
        except (ValueError, OverflowError):
            raise MalformedValue(value)
    elif not isinstance(value, int):
        raise MalformedValue(value)
    if not INT_MIN <= value <= INT_MAX:
        raise MalformedValue(value)
    return value


def _as_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise MalformedValue(value)
    try:
        result = float(value)
    except (ValueError, OverflowError):
        raise MalformedValue(value)
    if not math.isfinite(result):
        raise MalformedValue(value)
    return result


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise MalformedValue(value)


def _as_str(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise MalformedValue(value)
    text = str(value).strip()
    if not text:
        raise MalformedValue(value)
    return text[:settings.max_field_length]


@dataclass(frozen=True)
class FieldRule:
    get_default: Any
    post_fallback: Any
    coerce: Callable[[Any], Any]


# Script-observable fields. GET always gets get_default; POST takes the
# payload value unless it is absent, "Unknown" or malformed.
FIELD_RULES: Dict[str, FieldRule] = {
    "timezone": FieldRule(PLACEHOLDER, UNKNOWN, _as_str),
    "local_time": FieldRule(PLACEHOLDER, UNKNOWN, _as_str),
    "utc_offset": FieldRule(None, None, _as_int),  # None -> settings.default_utc_offset
    "fonts_available": FieldRule(UNKNOWN, UNKNOWN, _as_str),
    "screen_width": FieldRule(0, 0, _as_int),
    "screen_height": FieldRule(0, 0, _as_int),
    "screen_color_depth": FieldRule(0, 0, _as_int),
    "device_pixel_ratio": FieldRule(1.0, 1.0, _as_float),
    "hardware_concurrency": FieldRule(0, 0, _as_int),
    "cookie_enabled": FieldRule(False, False, _as_bool),
    "max_touch_points": FieldRule(0, 0, _as_int),
    "connection_type": FieldRule(PLACEHOLDER, PLACEHOLDER, _as_str),
    "connection_effective_type": FieldRule(PLACEHOLDER, PLACEHOLDER, _as_str),
    "connection_rtt": FieldRule(0, 0, _as_int),
}


def extract_ip(headers: Mapping[str, str], remote_addr: Optional[str] = None) -> str:
    """
    Originating client address.

    X-Forwarded-For wins over X-Real-IP, which wins over the socket peer.
    Only the left-most hop is kept and IPv4-mapped IPv6 is unwrapped.
    """
    for candidate in (headers.get("x-forwarded-for"), headers.get("x-real-ip"), remote_addr):
        if not candidate:
            continue
        ip = candidate.split(",")[0].strip()
        if ip.lower().startswith(IPV4_MAPPED_PREFIX):
            ip = ip[len(IPV4_MAPPED_PREFIX):]
        if ip:
            return ip[:IP_MAX_LENGTH]
    return UNKNOWN


def language_from_header(accept_language: Optional[str]) -> str:
    """First Accept-Language entry, e.g. 'en-US,en;q=0.9' -> 'en-US'"""
    if not accept_language:
        return UNKNOWN
    first = accept_language.split(",")[0].split(";")[0].strip()
    return first[:settings.max_field_length] if first else UNKNOWN


class ClientInfoResolver:
    """
    Builds ClientInfo from headers, payload and source type.

    Total: never raises on bad client input; every field ends up with a
    value from the payload, an enrichment lookup or a documented default.
    """

    def __init__(self, geo: GeoLookupStrategy, ua_parser: UserAgentParser):
        self.geo = geo
        self.ua_parser = ua_parser

    def resolve(
        self,
        headers: Mapping[str, str],
        payload: Optional[Mapping[str, Any]],
        source_type: SourceType,
        remote_addr: Optional[str] = None,
    ) -> ClientInfo:
        headers = {str(k).lower(): v for k, v in (headers or {}).items()}
        if not isinstance(payload, Mapping):
            if payload is not None:
                logger.debug("Ignoring non-object payload of type %s", type(payload).__name__)
            payload = {}

        ip = extract_ip(headers, remote_addr)
        fields: Dict[str, Any] = {"ip_address": ip, "source_type": source_type}

        geo = self.geo.lookup(ip) if ip != UNKNOWN else None
        fields["country"] = _or_unknown(geo.country if geo else None)
        fields["region"] = _or_unknown(geo.region if geo else None)
        fields["city"] = _or_unknown(geo.city if geo else None)

        ua = self.ua_parser.parse(headers.get("user-agent"))
        fields["browser_name"] = _or_unknown(ua.browser_name)
        fields["browser_version"] = _or_unknown(ua.browser_version)
        fields["os_name"] = _or_unknown(ua.os_name)
        fields["os_version"] = _or_unknown(ua.os_version)
        fields["device_type"] = _trim(ua.device_type) or "desktop"
        fields["device_vendor"] = _or_unknown(ua.device_vendor)

        for name, rule in FIELD_RULES.items():
            fields[name] = self._script_field(name, rule, payload, source_type)

        header_language = language_from_header(headers.get("accept-language"))
        if source_type == SourceType.POST:
            fields["navigator_language"] = self._payload_value(
                "navigator_language", payload, _as_str
            ) or header_language
        else:
            fields["navigator_language"] = header_language

        return ClientInfo(**fields)

    def _script_field(self, name: str, rule: FieldRule, payload: Mapping[str, Any], source_type: SourceType):
        if source_type == SourceType.GET:
            value = rule.get_default
        else:
            value = self._payload_value(name, payload, rule.coerce)
            if value is None:
                value = rule.post_fallback
        if value is None and name == "utc_offset":
            value = settings.default_utc_offset
        return value

    @staticmethod
    def _payload_value(name: str, payload: Mapping[str, Any], coerce: Callable[[Any], Any]):
        raw = payload.get(name)
        if raw is None:
            return None
        try:
            value = coerce(raw)
        except MalformedValue:
            logger.debug("Malformed %s in payload, using default", name)
            return None
        return None if value == UNKNOWN else value


def _trim(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value[:settings.max_field_length] or None


def _or_unknown(value: Optional[str]) -> str:
    return _trim(value) or UNKNOWN
