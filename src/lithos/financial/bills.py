"""Bills and their next due dates.

A bill's ``due_date`` means different things depending on its schedule:
- one-off: an ISO date
- monthly: a day of the month ("15")
- weekly: a weekday name ("friday")
- yearly: an ISO date whose anniversary recurs

A due date that falls on ``today`` counts as already passed, so recurring
bills roll to their next occurrence.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from dateutil.relativedelta import relativedelta
from loguru import logger

from lithos.core.exceptions import DataProcessingError
from lithos.financial.models import Frequency, _pick, _to_enum, _to_float, parse_date

UPCOMING_BILLS_LIMIT = 6

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class Bill:
    id: str
    name: str
    amount: float
    due_date: str
    is_paid: bool = False
    auto_pay: bool = False
    category: str = ""
    is_recurring: bool = False
    frequency: Frequency | None = None
    recurring_end_date: date | None = None

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> Bill:
        record_id = str(_pick(record, "id", default=""))
        if not record_id:
            raise DataProcessingError("Bill is missing an id")
        frequency = _pick(record, "frequency")
        end_date = _pick(record, "recurringEndDate", "recurring_end_date")
        return cls(
            id=record_id,
            name=str(_pick(record, "name", default="")),
            amount=_to_float(_pick(record, "amount", default=0), "amount"),
            due_date=str(_pick(record, "dueDate", "due_date", default="")),
            is_paid=bool(_pick(record, "isPaid", "is_paid", default=False)),
            auto_pay=bool(_pick(record, "autoPay", "auto_pay", default=False)),
            category=str(_pick(record, "category", default="")),
            is_recurring=bool(_pick(record, "isRecurring", "is_recurring", default=False)),
            frequency=_to_enum(Frequency, frequency, "frequency") if frequency else None,
            recurring_end_date=parse_date(end_date) if end_date else None,
        )


def _next_monthly(day_of_month: str, today: date) -> date:
    try:
        day = int(day_of_month)
    except ValueError as e:
        raise DataProcessingError(f"Monthly bill needs a day of month, got {day_of_month!r}") from e
    if not 1 <= day <= 31:
        raise DataProcessingError(f"Day of month out of range: {day}")
    # relativedelta clamps to the last day of short months
    candidate = today + relativedelta(day=day)
    if candidate <= today:
        candidate = today + relativedelta(months=1, day=day)
    return candidate


def _next_weekly(weekday_name: str, today: date) -> date:
    name = weekday_name.strip().lower()
    if name not in _WEEKDAYS:
        raise DataProcessingError(f"Weekly bill needs a weekday name, got {weekday_name!r}")
    days_until = (_WEEKDAYS.index(name) - today.weekday()) % 7 or 7
    return today + timedelta(days=days_until)


def _next_yearly(anniversary: str, today: date) -> date:
    first = parse_date(anniversary)
    years = max(0, today.year - first.year)
    candidate = first + relativedelta(years=years)
    if candidate <= today:
        candidate = first + relativedelta(years=years + 1)
    return candidate


def next_due_date(bill: Bill, today: date) -> date:
    """Next date the bill falls due; raises DataProcessingError for a malformed due date."""
    if not bill.is_recurring or bill.frequency is None:
        return parse_date(bill.due_date)
    if bill.frequency == Frequency.MONTHLY:
        return _next_monthly(bill.due_date, today)
    if bill.frequency == Frequency.WEEKLY:
        return _next_weekly(bill.due_date, today)
    return _next_yearly(bill.due_date, today)


def days_until_due(bill: Bill, today: date) -> int:
    """Days from today to the next due date (negative when a one-off bill is overdue)."""
    return (next_due_date(bill, today) - today).days


def upcoming_bills(
    bills: Iterable[Bill],
    today: date,
    limit: int | None = UPCOMING_BILLS_LIMIT,
) -> list[tuple[Bill, date]]:
    """Bills ordered by next due date, soonest first.

    Recurring bills whose next occurrence is past their end date are dropped,
    as are bills with an unreadable due date (logged).
    """
    scheduled = []
    for bill in bills:
        try:
            due = next_due_date(bill, today)
        except DataProcessingError as e:
            logger.warning(f"Skipping bill {bill.id}: {e}")
            continue
        if bill.is_recurring and bill.recurring_end_date and due > bill.recurring_end_date:
            continue
        scheduled.append((bill, due))

    scheduled.sort(key=lambda item: item[1])
    return scheduled[:limit] if limit is not None else scheduled
