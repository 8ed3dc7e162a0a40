from fastapi import Query

from ..errors import ValidationError
from ..models import PRIORITIES, STATUSES, Priority, Status

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# (page - 1) * limit must fit a signed 64-bit SQL integer
MAX_PAGE = (2**63 - 1) // MAX_LIMIT


def _positive_int(raw: str | None, default: int) -> int:
    """Parse a positive integer; anything missing, non-numeric or < 1 gives the default."""
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def parse_page(page: str | None = Query(None)) -> int:
    value = _positive_int(page, DEFAULT_PAGE)
    return value if value <= MAX_PAGE else DEFAULT_PAGE


def parse_limit(limit: str | None = Query(None)) -> int:
    return min(_positive_int(limit, DEFAULT_LIMIT), MAX_LIMIT)


def parse_status(status: str | None = Query(None)) -> Status | None:
    if status is None or status == "":
        return None
    if status in STATUSES:
        return status  # type: ignore[return-value]
    raise ValidationError(f"Validation error: status must be one of: {', '.join(STATUSES)}")


def parse_priority(priority: str | None = Query(None)) -> Priority | None:
    if priority is None or priority == "":
        return None
    if priority in PRIORITIES:
        return priority  # type: ignore[return-value]
    raise ValidationError(f"Validation error: priority must be one of: {', '.join(PRIORITIES)}")
