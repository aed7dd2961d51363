# Overview: Service-layer operations for the card processor fee schedule (settings screen).

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CardCompanySetting
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_card_company,
    validate_payload,
)
from .deposit_service import FeeScheduleEntry


logger = logging.getLogger(__name__)

DEFAULT_FEE_RATE = Decimal("2.0")
DEFAULT_DEPOSIT_DAYS = 3

# Seeded by `flask cards seed`
DEFAULT_CARD_COMPANIES = (
    ("Shinhan", Decimal("2.0"), 3),
    ("Samsung", Decimal("2.0"), 3),
    ("KB Kookmin", Decimal("2.0"), 3),
    ("Hyundai", Decimal("2.0"), 3),
    ("Lotte", Decimal("2.0"), 3),
    ("BC", Decimal("2.0"), 3),
    ("Hana", Decimal("2.0"), 3),
    ("Woori", Decimal("2.0"), 3),
    ("NH Nonghyup", Decimal("2.0"), 3),
)

CARD_COMPANY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "fee_rate", "deposit_days"},
    required_on_create={"name"},
)


def _clean(data: dict, *, partial: bool) -> dict:
    patch = validate_payload(
        model=CardCompanySetting,
        payload=data,
        policy=CARD_COMPANY_POLICY,
        partial=partial,
    )
    enforce_rules_card_company(patch)
    return patch


def _name_taken(name: str, exclude_id: int | None = None) -> bool:
    q = db.session.query(CardCompanySetting).filter(CardCompanySetting.name == name)
    if exclude_id is not None:
        q = q.filter(CardCompanySetting.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def list_card_companies(include_inactive: bool = False) -> list[CardCompanySetting]:
    q = db.session.query(CardCompanySetting)
    if not include_inactive:
        q = q.filter(CardCompanySetting.is_active.is_(True))
    return q.order_by(CardCompanySetting.name).all()


def get_card_company(card_company_id: int) -> CardCompanySetting | None:
    return db.session.get(CardCompanySetting, card_company_id)


def get_active_schedule() -> list[FeeScheduleEntry]:
    """Snapshot of the active fee schedule for the deposit calculator."""
    return [
        FeeScheduleEntry(
            name=row.name,
            fee_rate=Decimal(str(row.fee_rate)),
            deposit_days=row.deposit_days,
            is_active=row.is_active,
        )
        for row in list_card_companies()
    ]


def create_card_company(
    name: str,
    fee_rate=DEFAULT_FEE_RATE,
    deposit_days: int = DEFAULT_DEPOSIT_DAYS,
) -> CardCompanySetting:
    patch = _clean(
        {"name": name, "fee_rate": fee_rate, "deposit_days": deposit_days},
        partial=False,
    )

    existing = db.session.query(CardCompanySetting).filter_by(name=patch["name"]).first()
    if existing and existing.is_active:
        raise ConflictError(f"Card company '{patch['name']}' already exists")

    if existing:
        # Re-enabling a soft-deleted processor keeps its id for historic sales
        existing.fee_rate = patch["fee_rate"]
        existing.deposit_days = patch["deposit_days"]
        existing.is_active = True
        row = existing
    else:
        row = CardCompanySetting(**patch, is_active=True)
        db.session.add(row)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Card company '{patch['name']}' already exists")

    logger.info("Card company %s saved (fee_rate=%s, deposit_days=%s)", row.name, row.fee_rate, row.deposit_days)
    return row


def update_card_company(card_company_id: int, data: dict) -> CardCompanySetting | None:
    """
    Edit a processor's name, fee rate or deposit lag.

    Existing sales keep the fee and deposit date computed when they were
    recorded.
    """
    row = get_card_company(card_company_id)
    if not row:
        return None

    patch = _clean(data, partial=True)
    if "name" in patch and _name_taken(patch["name"], exclude_id=row.id):
        raise ConflictError(f"Card company '{patch['name']}' already exists")

    for key, value in patch.items():
        setattr(row, key, value)
    db.session.commit()
    return row


def deactivate_card_company(card_company_id: int) -> CardCompanySetting | None:
    row = get_card_company(card_company_id)
    if not row:
        return None
    row.is_active = False
    db.session.commit()
    return row


def save_card_companies(rows: list[dict]) -> list[CardCompanySetting]:
    """
    Bulk save from the settings screen: [{id, fee_rate, deposit_days}, ...].

    Every row is validated before anything is written.
    """
    if not isinstance(rows, list) or not rows:
        raise ValidationError("card_companies must be a non-empty list")

    staged: list[tuple[CardCompanySetting, dict]] = []
    for raw in rows:
        if not isinstance(raw, dict) or "id" not in raw:
            raise ValidationError("each card company entry requires an id")
        data = {k: v for k, v in raw.items() if k != "id"}
        patch = _clean(data, partial=True)
        row = get_card_company(raw["id"]) if isinstance(raw["id"], int) and not isinstance(raw["id"], bool) else None
        if not row:
            raise ValidationError(f"Card company {raw['id']} not found")
        staged.append((row, patch))

    for row, patch in staged:
        for key, value in patch.items():
            setattr(row, key, value)
    db.session.commit()
    return [row for row, _ in staged]


def seed_default_card_companies() -> int:
    """Insert the default processors that are missing. Returns rows created."""
    created = 0
    for name, fee_rate, deposit_days in DEFAULT_CARD_COMPANIES:
        if db.session.query(CardCompanySetting).filter_by(name=name).first():
            continue
        db.session.add(CardCompanySetting(name=name, fee_rate=fee_rate, deposit_days=deposit_days, is_active=True))
        created += 1
    db.session.commit()
    return created
