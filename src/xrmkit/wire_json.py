"""JSON encoding of operation parameter values for the Web API."""

from __future__ import annotations

import json
import math
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from .guid import normalize_guid
from .request_params import EntityReference, reference_parts


class WireJsonTypeError(TypeError):
    """Raised when a parameter value has no wire representation."""


def _reference_payload(value: Any) -> dict:
    record_id, entity_type = reference_parts(value)
    return {
        "@odata.type": f"Microsoft.Dynamics.CRM.{entity_type}",
        f"{entity_type}id": normalize_guid(record_id),
    }


def to_wire(obj: Any, path: str = "$") -> Any:
    """Convert a parameter value to plain JSON data.

    Rules:
    - Entity references become ``@odata.type`` + primary key objects.
    - ``datetime`` values are sent as ISO 8601, naive values as UTC.
    - ``date`` values are sent as ``YYYY-MM-DD``.
    - ``Decimal`` is sent as a JSON number.
    """
    if obj is None or isinstance(obj, (str, bool, int)):
        return obj
    if isinstance(obj, float):
        if not math.isfinite(obj):
            raise ValueError(f"Non-finite float at {path}: {obj!r}")
        return obj
    if isinstance(obj, Decimal):
        if not obj.is_finite():
            raise ValueError(f"Non-finite decimal at {path}: {obj!r}")
        return float(obj) if obj != obj.to_integral_value() else int(obj)
    if isinstance(obj, datetime):
        if obj.tzinfo is None:
            obj = obj.replace(tzinfo=timezone.utc)
        return obj.isoformat().replace("+00:00", "Z")
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, EntityReference) or reference_parts(obj) is not None:
        return _reference_payload(obj)
    if isinstance(obj, dict):
        out = {}
        for key, value in obj.items():
            if not isinstance(key, str):
                raise WireJsonTypeError(f"Unsupported key type at {path}: {type(key).__name__}")
            out[key] = to_wire(value, f"{path}.{key}")
        return out
    if isinstance(obj, (list, tuple)):
        return [to_wire(item, f"{path}[{idx}]") for idx, item in enumerate(obj)]
    raise WireJsonTypeError(f"Unsupported type at {path}: {type(obj).__name__}")


def wire_dumps(obj: Any) -> str:
    return json.dumps(to_wire(obj), ensure_ascii=False, separators=(",", ":"), allow_nan=False)
