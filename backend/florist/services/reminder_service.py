# Overview: Scheduled reservation reminder sweeps (hourly and daily 08:00) feeding the push dispatcher.

"""
Reminder Scheduler

Both sweeps are invoked by an external trigger (HTTP cron or `flask reminders`).
There is no in-process scheduler.

Hourly sweep:
    reminder_at in (now - 1h, now], status not cancelled/completed
    -> one push per reservation -> reminder_at cleared on every attempted row

Daily sweep (08:00 business time):
    (a) digest of today's non-cancelled reservations (3 inline + overflow count)
    (b) reminder_date == today, status not cancelled/completed
        -> one push per reservation -> reminder_date cleared

Missing VAPID keys abort a sweep before any send, leaving reminders armed.
Clearing happens after the attempt regardless of per-device outcome. That
clear is the only guard against a duplicate trigger re-sending; a crash after
the clear never re-sends (at-most-once attempt).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from ..extensions import db
from ..models import Reservation
from florist.time_utils import local_date, utcnow
from .notification_service import DispatchResult, build_payload, ensure_push_configured, send_to_all_active


logger = logging.getLogger(__name__)

HOURLY_WINDOW = timedelta(hours=1)
DIGEST_INLINE_LIMIT = 3
CALENDAR_URL = "/calendar"

INACTIVE_STATUSES = ("cancelled", "completed")


@dataclass(frozen=True)
class HourlySweepResult:
    reminders: int
    sent: int
    failed: int

    def to_dict(self) -> dict:
        return {
            "message": "Scheduled reminders sent" if self.reminders else "No scheduled reminders",
            "reminders": self.reminders,
            "sent": self.sent,
            "failed": self.failed,
        }


@dataclass(frozen=True)
class DailySweepResult:
    today_reservations: int
    advance_reminders: int
    sent: int
    failed: int

    def to_dict(self) -> dict:
        return {
            "message": "Daily reminder sent",
            "today_reservations": self.today_reservations,
            "advance_reminders": self.advance_reminders,
            "sent": self.sent,
            "failed": self.failed,
        }


def business_today(now: datetime | None = None) -> date:
    return local_date(now or utcnow(), current_app.config["BUSINESS_TIMEZONE"])


def relative_day_label(target: date, today: date) -> str:
    days_until = (target - today).days
    if days_until <= 0:
        return "today"
    if days_until == 1:
        return "tomorrow"
    return f"in {days_until} days"


def format_amount(amount: int) -> str:
    return f"{amount:,} KRW"


def build_reminder_body(reservation: Reservation, today: date) -> str:
    lines = [f"{relative_day_label(reservation.date, today)} ({reservation.date.isoformat()})"]
    if reservation.time:
        lines.append(f"Time: {reservation.time[:5]}")
    if reservation.customer_name:
        lines.append(f"Customer: {reservation.customer_name}")
    if reservation.estimated_amount:
        lines.append(f"Amount: {format_amount(reservation.estimated_amount)}")
    return "\n".join(lines)


def build_reminder_payload(reservation: Reservation, today: date) -> str:
    return build_payload(
        f"Reservation reminder: {reservation.title}",
        build_reminder_body(reservation, today),
        tag=f"reminder-{reservation.id}",
        url=CALENDAR_URL,
        require_interaction=True,
    )


def build_daily_digest_payload(reservations: list[Reservation], today: date) -> str:
    count = len(reservations)
    lines = []
    for r in reservations[:DIGEST_INLINE_LIMIT]:
        time_label = r.time[:5] if r.time else "--:--"
        customer = f" ({r.customer_name})" if r.customer_name else ""
        lines.append(f"{time_label} {r.title}{customer}")
    if count > DIGEST_INLINE_LIMIT:
        lines.append(f"+{count - DIGEST_INLINE_LIMIT} more")

    noun = "reservation" if count == 1 else "reservations"
    return build_payload(
        f"{count} {noun} today",
        "\n".join(lines),
        tag=f"daily-reminder-{today.isoformat()}",
        url=CALENDAR_URL,
        require_interaction=False,
    )


def _query(operation: str, build):
    try:
        return build().all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError(f"Failed to load reservations for {operation}", operation=operation) from exc


def find_hourly_candidates(now: datetime) -> list[Reservation]:
    window_start = now - HOURLY_WINDOW
    return _query(
        "hourly_sweep",
        lambda: db.session.query(Reservation)
        .filter(
            Reservation.reminder_at > window_start,
            Reservation.reminder_at <= now,
            Reservation.status.notin_(INACTIVE_STATUSES),
        )
        .order_by(Reservation.date, Reservation.id),
    )


def find_today_reservations(today: date) -> list[Reservation]:
    return _query(
        "daily_digest",
        lambda: db.session.query(Reservation)
        .filter(Reservation.date == today, Reservation.status != "cancelled")
        .order_by(Reservation.time.asc().nulls_last(), Reservation.id),
    )


def find_advance_reminders(today: date) -> list[Reservation]:
    return _query(
        "advance_reminders",
        lambda: db.session.query(Reservation)
        .filter(
            Reservation.reminder_date == today,
            Reservation.status.notin_(INACTIVE_STATUSES),
        )
        .order_by(Reservation.date, Reservation.id),
    )


def _clear(ids: list[int], column, operation: str) -> None:
    if not ids:
        return
    try:
        (
            db.session.query(Reservation)
            .filter(Reservation.id.in_(ids))
            .update({column: None}, synchronize_session=False)
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError("Failed to clear reservation reminders", operation=operation) from exc


def _dispatch_each(reservations: list[Reservation], today: date, attempted: list[int]) -> DispatchResult:
    total = DispatchResult()
    for reservation in reservations:
        attempted.append(reservation.id)
        total = total + send_to_all_active(build_reminder_payload(reservation, today))
    return total


def run_hourly_sweep(now: datetime | None = None) -> HourlySweepResult:
    now = now or utcnow()
    today = business_today(now)

    candidates = find_hourly_candidates(now)
    if not candidates:
        return HourlySweepResult(reminders=0, sent=0, failed=0)

    # Abort before anything is attempted or cleared
    ensure_push_configured()
    attempted: list[int] = []
    try:
        totals = _dispatch_each(candidates, today, attempted)
    finally:
        # Attempted rows are cleared even if a later dispatch failed
        _clear(attempted, Reservation.reminder_at, "hourly_sweep")

    logger.info("Hourly reminder sweep: %d reservation(s), sent=%d failed=%d", len(attempted), totals.sent, totals.failed)
    return HourlySweepResult(reminders=len(candidates), sent=totals.sent, failed=totals.failed)


def run_daily_sweep(now: datetime | None = None) -> DailySweepResult:
    now = now or utcnow()
    today = business_today(now)
    totals = DispatchResult()

    todays = find_today_reservations(today)
    advance = find_advance_reminders(today)
    if todays or advance:
        ensure_push_configured()

    if todays:
        totals = totals + send_to_all_active(build_daily_digest_payload(todays, today))

    if advance:
        attempted: list[int] = []
        try:
            totals = totals + _dispatch_each(advance, today, attempted)
        finally:
            _clear(attempted, Reservation.reminder_date, "advance_reminders")

    logger.info(
        "Daily reminder sweep for %s: today=%d advance=%d sent=%d failed=%d",
        today.isoformat(), len(todays), len(advance), totals.sent, totals.failed,
    )
    return DailySweepResult(
        today_reservations=len(todays),
        advance_reminders=len(advance),
        sent=totals.sent,
        failed=totals.failed,
    )
