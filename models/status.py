"""Status enums for vehicles, trips and user roles.

Values are the strings stored in the spreadsheet, so they stay in Indonesian.
"""

from enum import Enum


class VehicleStatus(Enum):
    """Availability of a vehicle."""

    AVAILABLE = "Tersedia"
    IN_USE = "Dalam Perjalanan"


class MutationStatus(Enum):
    """Progress of a trip record."""

    ONGOING = "Berlangsung"
    COMPLETED = "Selesai"


class Role(Enum):
    ADMIN = "Admin"
    OPERATOR = "Operator"


class MaintenanceKind(Enum):
    """Kinds of periodic maintenance tracked per vehicle."""

    SERVICE = "service"
    OIL = "oil"
    ACCU = "accu"  # battery check
