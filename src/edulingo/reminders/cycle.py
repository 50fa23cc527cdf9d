"""Monthly payment/salary cycle rules.

A cycle is anchored to a day of the month: the day of the last payment if
there is one, else the day the course or employment started. The cycle
walks ``pending -> due today -> overdue`` until a payment moves the record
to ``paid``; the next anchor day after the payment opens a new cycle.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from edulingo.time_utils import add_months, clamp_day

PENDING = "pending"
PAID = "paid"
OVERDUE = "overdue"

SKIP = "skip"
MONTHLY = "monthly"


@dataclass(frozen=True)
class CycleDecision:
    action: str  # skip | monthly | overdue
    status: str
    due_date: date | None

    @property
    def sends_reminder(self) -> bool:
        return self.action != SKIP


def anchor_day(last_paid_on: date | None, started_on: date | None) -> int | None:
    if last_paid_on is not None:
        return last_paid_on.day
    if started_on is not None:
        return started_on.day
    return None


def cycle_due_date(day: int, today: date) -> date:
    """This month's anchor day, or next month's when it already passed."""
    due = clamp_day(today.year, today.month, day)
    if due < today:
        due = add_months(today, 1, day)
    return due


def evaluate_cycle(
    status: str,
    last_paid_on: date | None,
    started_on: date | None,
    stored_due: date | None,
    today: date,
) -> CycleDecision:
    """Decide what a reminder run does for one enrollment or teacher today."""
    day = anchor_day(last_paid_on, started_on)
    if day is None:
        return CycleDecision(SKIP, status, stored_due)

    due = cycle_due_date(day, today)

    if status == PAID:
        if due == today and (last_paid_on is None or last_paid_on < today):
            return CycleDecision(MONTHLY, PENDING, today)
        return CycleDecision(SKIP, status, stored_due)

    if status == OVERDUE or (stored_due is not None and stored_due < today):
        return CycleDecision(OVERDUE, OVERDUE, stored_due or due)

    if due == today:
        return CycleDecision(MONTHLY, status or PENDING, today)

    return CycleDecision(SKIP, status, stored_due)


def reminder_key(kind: str, entity_id: int, today: date, hour: int) -> str:
    """Audit key of one reminder slot; a slot is dispatched at most once."""
    return f"{kind}:{entity_id}:{today.isoformat()}:{hour}"
