"""Date arithmetic and display helpers for trials and billing periods.

Everything here is pure: callers pass ``now`` explicitly (defaulting to the
current UTC time) so results are reproducible in tests and in read models.
Naive datetimes coming back from the store are treated as UTC.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Optional, Tuple, Union

from dateutil.relativedelta import relativedelta

DateLike = Union[date, datetime]

DAY = timedelta(days=1)
END_OF_DAY = time(23, 59, 59)

_CYCLE_DELTAS = {
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "annual": relativedelta(years=1),
}
_CYCLE_SUFFIXES = {"monthly": "/month", "quarterly": "/quarter", "annual": "/year"}


@dataclass(frozen=True)
class TrialTimeRemaining:
    expired: bool
    days: int
    hours: int
    minutes: int
    total_minutes: int


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: DateLike) -> datetime:
    """Coerce a date or datetime to an aware UTC datetime."""

    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: DateLike) -> datetime:
    return datetime.combine(as_utc(value).date(), time.min, tzinfo=timezone.utc)


def end_of_day(value: DateLike) -> datetime:
    return datetime.combine(as_utc(value).date(), END_OF_DAY, tzinfo=timezone.utc)


def compute_trial_end(created_at: DateLike, trial_days: int) -> datetime:
    """Trial ends exactly ``trial_days`` after creation."""

    return as_utc(created_at) + timedelta(days=trial_days)


def annual_billing_window(
    anchor: DateLike, term_days: int = 365
) -> Tuple[datetime, datetime]:
    """Fixed-term window: start of the anchor day to end of the expiry day."""

    start = start_of_day(anchor)
    return start, end_of_day(start + timedelta(days=term_days))


def cycle_delta(billing_cycle: Optional[str]) -> Union[relativedelta, timedelta]:
    """Calendar offset for a billing cycle; unknown cycles get 365 days."""

    key = (billing_cycle or "").strip().lower()
    return _CYCLE_DELTAS.get(key, timedelta(days=365))


def plan_billing_window(
    anchor: DateLike, billing_cycle: Optional[str]
) -> Tuple[datetime, datetime]:
    start = start_of_day(anchor)
    return start, start + cycle_delta(billing_cycle)


def days_remaining(
    end: Optional[DateLike], now: Optional[datetime] = None
) -> Optional[int]:
    """Whole days until ``end``, rounded up.

    An end less than a day in the past still reads ``0``; decide expiry with
    :func:`has_ended`.
    """

    if end is None:
        return None
    now = as_utc(now or utcnow())
    diff = as_utc(end) - now
    return math.ceil(diff / DAY)


def has_ended(end: Optional[DateLike], now: Optional[datetime] = None) -> bool:
    if end is None:
        return False
    return as_utc(end) < as_utc(now or utcnow())


def trial_time_remaining(
    trial_ends_at: Optional[DateLike], now: Optional[datetime] = None
) -> Optional[TrialTimeRemaining]:
    if trial_ends_at is None:
        return None
    now = as_utc(now or utcnow())
    diff_ms = int((as_utc(trial_ends_at) - now) / timedelta(milliseconds=1))
    if diff_ms <= 0:
        return TrialTimeRemaining(expired=True, days=0, hours=0, minutes=0, total_minutes=0)

    ms_per_minute = 60 * 1000
    ms_per_hour = 60 * ms_per_minute
    ms_per_day = 24 * ms_per_hour
    return TrialTimeRemaining(
        expired=False,
        days=diff_ms // ms_per_day,
        hours=(diff_ms % ms_per_day) // ms_per_hour,
        minutes=(diff_ms % ms_per_hour) // ms_per_minute,
        total_minutes=diff_ms // ms_per_minute,
    )


def _group_indian(whole: int) -> str:
    digits = str(whole)
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def _format_number(amount: Union[Decimal, float, int], indian: bool) -> str:
    value = Decimal(str(amount))
    whole = int(value)
    fraction = value - whole
    text = _group_indian(whole) if indian else f"{whole:,}"
    if fraction:
        cents = f"{abs(fraction):.2f}"[1:].rstrip("0")
        text += cents
    return text


def format_subscription_price(amount: Union[Decimal, float, int]) -> str:
    """Legacy display heuristic: large amounts are INR per year, small USD per month.

    Only used when a record carries no currency; see :func:`format_price`.
    """

    if Decimal(str(amount)) >= 1000:
        return f"₹{_format_number(amount, indian=True)}/year"
    return f"${_format_number(amount, indian=False)}/month"


def format_price(
    amount: Union[Decimal, float, int],
    currency: Optional[str],
    billing_cycle: Optional[str] = None,
) -> str:
    if not currency:
        return format_subscription_price(amount)
    suffix = _CYCLE_SUFFIXES.get((billing_cycle or "").lower(), "")
    if currency.upper() == "INR":
        return f"₹{_format_number(amount, indian=True)}{suffix}"
    if currency.upper() == "USD":
        return f"${_format_number(amount, indian=False)}{suffix}"
    return f"{currency.upper()} {_format_number(amount, indian=False)}{suffix}"
