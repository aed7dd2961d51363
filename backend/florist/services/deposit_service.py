# Overview: Card fee and expected-deposit calculation; pure functions, no database access.

"""
Deposit Calculator

Turns a sale's amount, payment method and card processor into the snapshot
stored on the sale: fee, net expected deposit, expected deposit date and the
initial deposit status.

RULES:
- Non-card tenders carry no fee and are not reconciled (not_applicable)
- Card fee = floor(amount * fee_rate / 100); the fee is never overstated
- Deposit date = sale date + deposit_days business days (Sat/Sun skipped,
  no holiday calendar)
- Unknown processor name degrades to rate 0 / lag 0 instead of failing the sale
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_FLOOR
from typing import Iterable

from ..models.sales import DEPOSIT_NOT_APPLICABLE, DEPOSIT_PENDING
from ..validation import PAYMENT_CARD, VALID_PAYMENT_METHODS, ValidationError


SATURDAY = 5
SUNDAY = 6


@dataclass(frozen=True)
class FeeScheduleEntry:
    """Read-only view of a card_company_settings row."""
    name: str
    fee_rate: Decimal
    deposit_days: int
    is_active: bool = True


@dataclass(frozen=True)
class DepositComputation:
    fee: int
    expected_deposit: int
    expected_deposit_date: date | None
    deposit_status: str

    def as_sale_fields(self) -> dict:
        return {
            "fee": self.fee,
            "expected_deposit": self.expected_deposit,
            "expected_deposit_date": self.expected_deposit_date,
            "deposit_status": self.deposit_status,
        }


_UNKNOWN_PROCESSOR = FeeScheduleEntry(name="", fee_rate=Decimal("0"), deposit_days=0)


def is_business_day(d: date) -> bool:
    return d.weekday() not in (SATURDAY, SUNDAY)


def add_business_days(start: date, n: int) -> date:
    """
    Advance ``start`` by ``n`` business days.

    n == 0 returns ``start`` unchanged, even when it falls on a weekend.
    """
    if n < 0:
        raise ValidationError("business day count must be >= 0")

    current = start
    remaining = n
    while remaining > 0:
        current += timedelta(days=1)
        if is_business_day(current):
            remaining -= 1
    return current


def calculate_fee(amount: int, fee_rate) -> int:
    """floor(amount * fee_rate / 100) using exact decimal arithmetic."""
    rate = Decimal(str(fee_rate))
    fee = (Decimal(amount) * rate / Decimal(100)).to_integral_value(rounding=ROUND_FLOOR)
    return int(fee)


def find_processor(schedule: Iterable[FeeScheduleEntry], name: str | None) -> FeeScheduleEntry | None:
    """Exact, case-sensitive name match."""
    if not name:
        return None
    for entry in schedule:
        if entry.name == name:
            return entry
    return None


def compute_deposit(
    amount: int,
    method: str,
    processor_name: str | None,
    sale_date: date,
    schedule: Iterable[FeeScheduleEntry],
) -> DepositComputation:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("amount must be an integer")
    if amount < 0:
        raise ValidationError("amount must be >= 0")
    if method not in VALID_PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(VALID_PAYMENT_METHODS)}")

    if method != PAYMENT_CARD:
        return DepositComputation(
            fee=0,
            expected_deposit=amount,
            expected_deposit_date=None,
            deposit_status=DEPOSIT_NOT_APPLICABLE,
        )

    entry = find_processor(schedule, processor_name) or _UNKNOWN_PROCESSOR
    fee = calculate_fee(amount, entry.fee_rate)
    return DepositComputation(
        fee=fee,
        expected_deposit=amount - fee,
        expected_deposit_date=add_business_days(sale_date, entry.deposit_days),
        deposit_status=DEPOSIT_PENDING,
    )
