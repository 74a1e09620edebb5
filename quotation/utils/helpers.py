from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any


def utcnow() -> datetime:
    # Naive UTC, matching the DateTime columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value
