from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable


# Maximum quantity/stock accepted from clients
MAX_QUANTITY = 1_000_000


class ValidationError(ValueError):
    """400-level input problem."""


def coerce_int(key: str, value: Any, *, allow_negative: bool = False) -> int:
    """
    Strict integer parsing for request payloads.

    The services clamp anything numeric, so rejecting floats, scientific
    notation and booleans here is an API contract, not a safety net.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{key} must be an integer")

    if not allow_negative and result < 0:
        raise ValidationError(f"{key} must be >= 0")
    if abs(result) > MAX_QUANTITY:
        raise ValidationError(f"{key} cannot exceed {MAX_QUANTITY}")
    return result


def coerce_str(key: str, value: Any, *, max_length: int = 255) -> str:
    if not isinstance(value, (str, int)) or isinstance(value, bool):
        raise ValidationError(f"{key} must be a string")
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{key} cannot be blank")
    if len(text) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return text


def coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValidationError(f"{key} must be a boolean")


@dataclass(frozen=True)
class PayloadPolicy:
    """
    Central policy layer:
    - fields: allowed keys and the coercer for each (security boundary)
    - required: keys that must be present
    """
    fields: dict[str, Callable[[str, Any], Any]]
    required: set[str] = field(default_factory=set)


def validate_payload(payload: Any, policy: PayloadPolicy) -> dict:
    """Reject unknown keys, enforce required keys, coerce the rest."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    missing = sorted(k for k in policy.required if k not in payload)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cleaned: dict = {}
    for key, raw in payload.items():
        coercer = policy.fields.get(key)
        if coercer is None:
            raise ValidationError(f"Field not allowed: {key}")
        if raw is None:
            if key in policy.required:
                raise ValidationError(f"{key} cannot be null")
            continue
        cleaned[key] = coercer(key, raw)
    return cleaned
