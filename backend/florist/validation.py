from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from florist.time_utils import month_date_range, parse_iso_date, parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Whole currency units; the dashboard rejects anything above this
MAX_AMOUNT = 100_000_000
MAX_FEE_RATE = Decimal("100")
MAX_DEPOSIT_DAYS = 365
MAX_BULK_IDS = 500

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_TRANSFER = "transfer"
PAYMENT_NAVERPAY = "naverpay"
PAYMENT_KAKAOPAY = "kakaopay"
VALID_PAYMENT_METHODS = (
    PAYMENT_CASH,
    PAYMENT_CARD,
    PAYMENT_TRANSFER,
    PAYMENT_NAVERPAY,
    PAYMENT_KAKAOPAY,
)

RESERVATION_STATUSES = ("pending", "confirmed", "completed", "cancelled")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate card company name)."""


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


def _coerce_int(key: str, value: Any) -> int:
    # bool is an int subclass; never accept it as a number
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{key} must be a number")
        if not result.is_finite():
            raise ValidationError(f"{key} must be a number")
        return result
    raise ValidationError(f"{key} must be a number")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    if isinstance(coltype, Numeric):
        return _coerce_decimal(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be true or false")

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

    if isinstance(coltype, Date):
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
            if d is None:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
            return d
        raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

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
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
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

        # Empty strings on nullable columns mean "clear"
        if raw is None or (raw == "" and col.nullable):
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_sale(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "amount" in patch:
        amount = patch["amount"]
        if amount is None or amount < 0:
            raise ValidationError("amount must be >= 0")
        if amount > MAX_AMOUNT:
            raise ValidationError(f"amount cannot exceed {MAX_AMOUNT:,}")

    if "payment_method" in patch and patch["payment_method"] not in VALID_PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(VALID_PAYMENT_METHODS)}")


def enforce_rules_card_company(patch: dict) -> None:
    if "fee_rate" in patch:
        rate = patch["fee_rate"]
        if rate is None or rate < 0 or rate > MAX_FEE_RATE:
            raise ValidationError("fee_rate must be between 0 and 100")

    if "deposit_days" in patch:
        days = patch["deposit_days"]
        if days is None or days < 0 or days > MAX_DEPOSIT_DAYS:
            raise ValidationError(f"deposit_days must be between 0 and {MAX_DEPOSIT_DAYS}")


def enforce_rules_reservation(patch: dict) -> None:
    if "status" in patch and patch["status"] not in RESERVATION_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(RESERVATION_STATUSES)}")

    if "estimated_amount" in patch and patch["estimated_amount"] is not None:
        amount = patch["estimated_amount"]
        if amount < 0 or amount > MAX_AMOUNT:
            raise ValidationError(f"estimated_amount must be between 0 and {MAX_AMOUNT:,}")

    if patch.get("time"):
        parts = patch["time"].split(":")
        try:
            hh, mm = int(parts[0]), int(parts[1])
        except (IndexError, ValueError):
            raise ValidationError("time must be HH:MM")
        if not (0 <= hh < 24 and 0 <= mm < 60):
            raise ValidationError("time must be HH:MM")
        patch["time"] = f"{hh:02d}:{mm:02d}"


def parse_id_list(raw: Any) -> list[int]:
    """Non-empty list of positive integer ids, de-duplicated in input order."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError("ids must be a non-empty list")
    if len(raw) > MAX_BULK_IDS:
        raise ValidationError(f"ids cannot contain more than {MAX_BULK_IDS} entries")

    ids: list[int] = []
    for item in raw:
        value = _coerce_int("ids", item)
        if value <= 0:
            raise ValidationError("ids must be positive integers")
        if value not in ids:
            ids.append(value)
    return ids


def parse_month(raw: str | None) -> str | None:
    """Validate an optional YYYY-MM query value."""
    if raw is None or not raw.strip():
        return None
    try:
        month_date_range(raw)
    except ValueError:
        raise ValidationError("month must be in YYYY-MM format")
    return raw.strip()
