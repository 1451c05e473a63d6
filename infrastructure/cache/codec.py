import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from domain.exceptions.rates import CacheError
from domain.models.rates import RateSnapshot


def encode_value(value: Any) -> str:
    if isinstance(value, RateSnapshot):
        payload = {"type": "rates", "rates": {code: str(rate) for code, rate in value.items()}}
    elif isinstance(value, datetime):
        payload = {"type": "datetime", "value": value.isoformat()}
    else:
        raise TypeError(f"Cannot store value of type {type(value).__name__}")
    return json.dumps(payload)


def decode_value(data: str | bytes) -> RateSnapshot | datetime:
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise CacheError(f"Invalid json data in rate store: {e}") from e

    kind = payload.get("type") if isinstance(payload, dict) else None
    try:
        if kind == "rates":
            return RateSnapshot({code: Decimal(rate) for code, rate in payload["rates"].items()})
        if kind == "datetime":
            return datetime.fromisoformat(payload["value"])
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise CacheError(f"Corrupt {kind} entry in rate store: {e}") from e

    raise CacheError(f"Unknown entry type in rate store: {kind!r}")
