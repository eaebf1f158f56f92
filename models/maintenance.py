"""Overdue-maintenance alerts computed from vehicle timestamps."""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, TYPE_CHECKING

from .calculations import INTERVAL_MONTHS, calc_due_date, is_overdue
from .status import MaintenanceKind

if TYPE_CHECKING:
    from .vehicle import Vehicle

REASONS = {
    MaintenanceKind.SERVICE: "Jadwal servis rutin terlewat.",
    MaintenanceKind.OIL: "Waktunya ganti oli.",
    MaintenanceKind.ACCU: "Waktunya pemeriksaan aki.",
}


@dataclass
class MaintenanceAlert:
    """One overdue maintenance kind on one vehicle."""

    vehicle: "Vehicle"
    kind: MaintenanceKind
    reason: str
    due_date: datetime


def compute_alerts(vehicles: Iterable["Vehicle"], now: datetime) -> List[MaintenanceAlert]:
    """
    Compute overdue-maintenance alerts.

    Logic:
    - Vehicles missing any of the three timestamps are skipped
    - Due date = last timestamp + interval months (calendar arithmetic)
    - Alert when the due date is strictly before now
    - One alert per overdue kind, in SERVICE, OIL, ACCU order; no dedup
    """
    alerts = []
    for vehicle in vehicles:
        if not vehicle.has_maintenance_dates:
            continue
        for kind in MaintenanceKind:
            due = calc_due_date(vehicle.maintenance_date(kind), INTERVAL_MONTHS[kind])
            if is_overdue(due, now):
                alerts.append(
                    MaintenanceAlert(
                        vehicle=vehicle, kind=kind, reason=REASONS[kind], due_date=due
                    )
                )
    return alerts


def alerts_by_vehicle(alerts: Iterable[MaintenanceAlert]) -> Dict[str, List[MaintenanceAlert]]:
    """Group alerts per vehicle id, keeping first-seen order. Display only."""
    grouped: Dict[str, List[MaintenanceAlert]] = {}
    for alert in alerts:
        grouped.setdefault(alert.vehicle.id, []).append(alert)
    return grouped
