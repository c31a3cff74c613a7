"""
Tests for client info normalization.
"""
import pytest

from collector_app.schemas.client_info import PLACEHOLDER, UNKNOWN, SourceType
from collector_app.services.client_info_resolver import (
    FIELD_RULES,
    extract_ip,
    language_from_header,
)
from tests.conftest import CHROME_WINDOWS_UA, IPHONE_UA


FULL_PAYLOAD = {
    "timezone": "Asia/Taipei",
    "local_time": "2024-01-15T10:30:45.000Z",
    "utc_offset": -480,
    "navigator_language": "zh-TW",
    "fonts_available": "Arial,Helvetica,Verdana",
    "screen_width": 1920,
    "screen_height": 1080,
    "screen_color_depth": 24,
    "device_pixel_ratio": 2.0,
    "hardware_concurrency": 8,
    "cookie_enabled": True,
    "max_touch_points": 5,
    "connection_type": "wifi",
    "connection_effective_type": "4g",
    "connection_rtt": 50,
}


class TestIPExtraction:
    """Test originating address resolution"""

    def test_forwarded_for_mapped_ipv6(self):
        """Left-most X-Forwarded-For hop, IPv4-mapped prefix removed"""
        headers = {"x-forwarded-for": "::ffff:203.0.113.5, 10.0.0.1"}
        assert extract_ip(headers, "127.0.0.1") == "203.0.113.5"

    def test_real_ip_when_no_forwarded_for(self):
        assert extract_ip({"x-real-ip": "198.51.100.7"}, "127.0.0.1") == "198.51.100.7"

    def test_forwarded_for_wins_over_real_ip(self):
        headers = {"x-forwarded-for": "1.2.3.4", "x-real-ip": "5.6.7.8"}
        assert extract_ip(headers, None) == "1.2.3.4"

    def test_remote_address_fallback(self):
        assert extract_ip({}, "::ffff:192.0.2.1") == "192.0.2.1"

    def test_nothing_resolvable(self):
        assert extract_ip({}, None) == UNKNOWN
        assert extract_ip({"x-forwarded-for": " , 10.0.0.1"}, None) == UNKNOWN

    def test_plain_ipv6_kept(self):
        assert extract_ip({"x-forwarded-for": "2001:db8::1"}, None) == "2001:db8::1"


class TestAcceptLanguage:
    def test_first_entry(self):
        assert language_from_header("en-US,en;q=0.9,zh-TW;q=0.8") == "en-US"

    def test_quality_on_first_entry(self):
        assert language_from_header("fr;q=0.9") == "fr"

    def test_missing(self):
        assert language_from_header(None) == UNKNOWN
        assert language_from_header("") == UNKNOWN


class TestGetDegradation:
    """GET beacons never trust script-only values from the query string"""

    def test_query_string_cannot_override_script_fields(self, resolver):
        info = resolver.resolve(
            {"x-forwarded-for": "1.2.3.4", "user-agent": CHROME_WINDOWS_UA},
            {key: str(value) for key, value in FULL_PAYLOAD.items()},
            SourceType.GET,
        )

        assert info.cookie_enabled is False
        assert info.device_pixel_ratio == 1
        assert info.screen_width == 0
        assert info.screen_height == 0
        assert info.screen_color_depth == 0
        assert info.hardware_concurrency == 0
        assert info.max_touch_points == 0
        assert info.connection_rtt == 0
        assert info.timezone == PLACEHOLDER
        assert info.local_time == PLACEHOLDER
        assert info.fonts_available == UNKNOWN
        assert info.connection_type == PLACEHOLDER
        assert info.connection_effective_type == PLACEHOLDER
        assert info.utc_offset == 0
        assert info.source_type == SourceType.GET

    def test_every_rule_applied_on_get(self, resolver):
        info = resolver.resolve({}, FULL_PAYLOAD, SourceType.GET)
        for name, rule in FIELD_RULES.items():
            if rule.get_default is not None:
                assert getattr(info, name) == rule.get_default, name

    def test_language_from_header(self, resolver):
        info = resolver.resolve(
            {"accept-language": "de-DE,de;q=0.9", "x-forwarded-for": "1.2.3.4"},
            {"navigator_language": "ja-JP"},
            SourceType.GET,
        )
        assert info.navigator_language == "de-DE"

    def test_empty_request(self, resolver):
        info = resolver.resolve({}, None, SourceType.GET)

        assert info.ip_address == UNKNOWN
        assert info.country == UNKNOWN
        assert info.region == UNKNOWN
        assert info.city == UNKNOWN
        assert info.browser_name == UNKNOWN
        assert info.os_name == UNKNOWN
        assert info.device_type == "desktop"
        assert info.device_vendor == UNKNOWN
        assert info.navigator_language == UNKNOWN


class TestPostPassThrough:
    """POST payload values are taken as sent"""

    def test_complete_payload(self, resolver):
        info = resolver.resolve(
            {"x-forwarded-for": "1.2.3.4", "user-agent": IPHONE_UA},
            FULL_PAYLOAD,
            SourceType.POST,
        )

        for key, value in FULL_PAYLOAD.items():
            assert getattr(info, key) == value, key
        assert info.source_type == SourceType.POST

    def test_server_side_fields_not_taken_from_payload(self, resolver):
        payload = dict(FULL_PAYLOAD, ip_address="9.9.9.9", country="XX", browser_name="Fake")
        info = resolver.resolve(
            {"x-forwarded-for": "1.2.3.4", "user-agent": IPHONE_UA},
            payload,
            SourceType.POST,
        )

        assert info.ip_address == "1.2.3.4"
        assert info.country == "AU"
        assert info.region == "Queensland"
        assert info.city == "Brisbane"
        assert info.browser_name != "Fake"
        assert info.device_type == "mobile"

    def test_missing_fields_use_defaults(self, resolver):
        info = resolver.resolve({"x-forwarded-for": "1.2.3.4"}, {}, SourceType.POST)

        assert info.timezone == UNKNOWN
        assert info.local_time == UNKNOWN
        assert info.fonts_available == UNKNOWN
        assert info.screen_width == 0
        assert info.device_pixel_ratio == 1.0
        assert info.cookie_enabled is False
        assert info.connection_type == PLACEHOLDER
        assert info.utc_offset == 0

    def test_unknown_literal_treated_as_absent(self, resolver):
        info = resolver.resolve(
            {},
            {"timezone": "Unknown", "connection_type": "Unknown", "connection_effective_type": ""},
            SourceType.POST,
        )
        assert info.timezone == UNKNOWN
        assert info.connection_type == PLACEHOLDER
        assert info.connection_effective_type == PLACEHOLDER

    def test_language_falls_back_to_header(self, resolver):
        info = resolver.resolve({"accept-language": "en-GB,en"}, {}, SourceType.POST)
        assert info.navigator_language == "en-GB"

    def test_payload_language_preferred(self, resolver):
        info = resolver.resolve({"accept-language": "en-GB"}, {"navigator_language": "en-US"}, SourceType.POST)
        assert info.navigator_language == "en-US"

    def test_zero_offset_is_kept(self, resolver):
        info = resolver.resolve({}, {"utc_offset": 0}, SourceType.POST)
        assert info.utc_offset == 0

    def test_numeric_strings_coerced(self, resolver):
        info = resolver.resolve(
            {},
            {"screen_width": "1280", "device_pixel_ratio": "1.5", "cookie_enabled": "true"},
            SourceType.POST,
        )
        assert info.screen_width == 1280
        assert info.device_pixel_ratio == 1.5
        assert info.cookie_enabled is True


class TestMalformedInput:
    """Bad client values fall back to defaults instead of failing"""

    @pytest.mark.parametrize("payload", [
        "not a dict",
        ["screen_width", 1920],
        42,
    ])
    def test_non_object_payload(self, resolver, payload):
        info = resolver.resolve({}, payload, SourceType.POST)
        assert info.screen_width == 0
        assert info.timezone == UNKNOWN

    def test_wrong_types(self, resolver):
        info = resolver.resolve(
            {},
            {
                "screen_width": {"nested": True},
                "screen_height": "wide",
                "device_pixel_ratio": float("nan"),
                "hardware_concurrency": True,
                "cookie_enabled": "maybe",
                "connection_rtt": 10 ** 20,
                "timezone": ["Asia/Taipei"],
                "fonts_available": "   ",
            },
            SourceType.POST,
        )

        assert info.screen_width == 0
        assert info.screen_height == 0
        assert info.device_pixel_ratio == 1.0
        assert info.hardware_concurrency == 0
        assert info.cookie_enabled is False
        assert info.connection_rtt == 0
        assert info.timezone == UNKNOWN
        assert info.fonts_available == UNKNOWN

    def test_long_strings_truncated(self, resolver):
        from collector_app.config import settings

        info = resolver.resolve({}, {"fonts_available": "A" * 10_000}, SourceType.POST)
        assert len(info.fonts_available) == settings.max_field_length
