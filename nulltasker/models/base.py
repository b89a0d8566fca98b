import uuid
from datetime import datetime, timezone


def utc_now() -> str:
    """Current UTC time as an ISO 8601 string (the format every record stores)."""
    return datetime.now(timezone.utc).isoformat()


def generate_id(prefix: str = "item") -> str:
    return f"{prefix}_{uuid.uuid4().hex}"
