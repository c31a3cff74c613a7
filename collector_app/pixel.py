from fastapi import Response

# 1×1 transparent PNG
TRANSPARENT_PIXEL_PNG = bytes.fromhex(
    "89504E470D0A1A0A0000000D49484452000000010000000108060000001F15C489"
    "0000000A49444154789C63000100000500010D0A2DB40000000049454E44AE426082"
)


def pixel_response() -> Response:
    """Beacon image; never cached so every page view reaches us"""
    return Response(
        content=TRANSPARENT_PIXEL_PNG,
        media_type="image/png",
        headers={
            "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
            "Pragma": "no-cache",
        },
    )
