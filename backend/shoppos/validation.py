from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from shoppos.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 99,999,999.99 (fits DECIMAL(10,2))
MAX_MONEY = Decimal("99999999.99")

CENT = Decimal("0.01")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level uniqueness conflict (e.g., duplicate barcode or phone)."""


class NotFoundError(LookupError):
    """404-level missing entity."""


class ReferentialIntegrityError(ValueError):
    """400-level delete blocked by dependent rows."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_money(value: Any, field: str) -> Decimal:
    """Parse a monetary amount into a Decimal rounded to cents."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if abs(amount) > MAX_MONEY:
        raise ValidationError(f"{field} cannot exceed {MAX_MONEY}")
    return amount


def coerce_int(value: Any, field: str) -> int:
    """Strict integer parsing: rejects bools, decimals and scientific notation."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    # Whole floats from JSON clients (e.g. 3.0) are accepted
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValidationError(f"{field} must be an integer")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    if isinstance(coltype, Numeric):
        return coerce_money(value, col.key)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(
            f for f in required
            if payload.get(f) is None or (isinstance(payload.get(f), str) and not payload[f].strip())
        )
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Blank optional strings are stored as NULL (keeps unique barcodes sane)
        if isinstance(col.type, (String, Text)) and col.nullable and val == "":
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if patch.get("price") is not None and patch["price"] < 0:
        raise ValidationError("price must be >= 0")
    if patch.get("stock") is not None and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")


def enforce_rules_employee(patch: dict) -> None:
    if patch.get("salary") is not None and patch["salary"] < 0:
        raise ValidationError("salary must be >= 0")
    commission = patch.get("commission")
    if commission is not None and not (Decimal("0") <= commission <= Decimal("100")):
        raise ValidationError("commission must be between 0 and 100")


def enforce_rules_user(patch: dict) -> None:
    from shoppos.models import USER_ROLES

    if "role" in patch and patch["role"] not in USER_ROLES:
        raise ValidationError(
            f"Invalid role. Must be one of: {', '.join(sorted(USER_ROLES))}"
        )
    email = patch.get("email")
    if email is not None and "@" not in email:
        raise ValidationError("email must be a valid address")
