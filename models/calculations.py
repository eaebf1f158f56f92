"""Helper functions for maintenance due calculations."""

from datetime import datetime
from dateutil.relativedelta import relativedelta
from typing import Optional

from .status import MaintenanceKind

# Months between two maintenance events of each kind
INTERVAL_MONTHS = {
    MaintenanceKind.SERVICE: 6,
    MaintenanceKind.OIL: 3,
    MaintenanceKind.ACCU: 12,
}


def calc_due_date(
    last_date: Optional[datetime], interval_months: Optional[int]
) -> Optional[datetime]:
    """
    Calculate next due point: last + interval calendar months.

    A day past the end of the target month rolls over into the next one
    (2024-08-31 + 6 months -> 2025-03-03).
    """
    if interval_months is None or last_date is None:
        return None
    return last_date.replace(day=1) + relativedelta(
        months=interval_months, days=last_date.day - 1
    )


def is_overdue(due: Optional[datetime], now: datetime) -> bool:
    """A due point is overdue once it lies strictly before now."""
    if due is None:
        return False
    return due < now
