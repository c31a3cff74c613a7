import hashlib

from collector_app.schemas.client_info import ClientInfo

KEY_LENGTH = 16


def compute_key(client_info: ClientInfo) -> str:
    """
    Short stable key for (ip_address, source_type), for log correlation only.

    Collisions are acceptable; never use this for storage or access control.
    """
    raw = f"{client_info.ip_address}|{client_info.source_type.value}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:KEY_LENGTH]
