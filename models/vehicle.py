"""Vehicle class - a fleet vehicle and its maintenance timestamps."""

import copy
from datetime import datetime
from typing import Optional

from .status import MaintenanceKind, VehicleStatus

# Attribute holding the last-done timestamp for each maintenance kind
MAINTENANCE_FIELDS = {
    MaintenanceKind.SERVICE: "last_service_date",
    MaintenanceKind.OIL: "last_oil_change_date",
    MaintenanceKind.ACCU: "last_accu_check_date",
}


class Vehicle:
    """A vehicle in the fleet."""

    def __init__(
        self,
        id: str,
        plate_number: str,
        brand: str,
        year: int,
        color: str,
        status: VehicleStatus = VehicleStatus.AVAILABLE,
        last_service_date: Optional[datetime] = None,
        last_oil_change_date: Optional[datetime] = None,
        last_accu_check_date: Optional[datetime] = None,
    ):
        self.id = id
        self.plate_number = plate_number
        self.brand = brand
        self.year = year
        self.color = color
        self.status = status
        self.last_service_date = last_service_date
        self.last_oil_change_date = last_oil_change_date
        self.last_accu_check_date = last_accu_check_date

    def __repr__(self) -> str:
        return f"Vehicle({self.id!r}, {self.plate_number!r}, {self.status.name})"

    @property
    def name(self) -> str:
        """Human-readable vehicle name, e.g. 'Toyota Avanza (B 1234 XYZ)'."""
        return f"{self.brand} ({self.plate_number})"

    @property
    def is_available(self) -> bool:
        return self.status == VehicleStatus.AVAILABLE

    @property
    def has_maintenance_dates(self) -> bool:
        """True when all three maintenance timestamps are set."""
        return all(self.maintenance_date(kind) is not None for kind in MaintenanceKind)

    def maintenance_date(self, kind: MaintenanceKind) -> Optional[datetime]:
        """Get the last-done timestamp for a maintenance kind."""
        return getattr(self, MAINTENANCE_FIELDS[kind])

    def copy(self, **changes) -> "Vehicle":
        """Return a shallow copy with the given attributes replaced."""
        other = copy.copy(self)
        for key, value in changes.items():
            if not hasattr(other, key):
                raise AttributeError(f"Vehicle has no attribute '{key}'")
            setattr(other, key, value)
        return other
