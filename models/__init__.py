"""
Fleet mutation tracking models.

This package provides the data models and controllers of the tracker:
- VehicleStatus, MutationStatus, Role, MaintenanceKind: enumerations
- Vehicle, Mutation, User: records stored in the Vehicles/Mutations/Users sheets
- compute_alerts: overdue-maintenance alerts
- Gateway, SheetsGateway, YamlGateway: persistence of sheet rows
- Fleet: in-memory state loaded from a gateway
- TripController, VehicleRegistry, UserDirectory: state transitions
"""

from .status import VehicleStatus, MutationStatus, Role, MaintenanceKind
from .errors import (
    FleetError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    InconsistentStateError,
    ReportError,
)
from .vehicle import Vehicle
from .mutation import Mutation
from .user import User
from .session import Session
from .calculations import INTERVAL_MONTHS, calc_due_date, is_overdue
from .maintenance import MaintenanceAlert, compute_alerts, alerts_by_vehicle
from .records import VEHICLES, MUTATIONS, USERS, to_row, new_id
from .gateway import Gateway, Snapshot, SheetsGateway, YamlGateway, create_store
from .users import UserDirectory, bootstrap_users, default_admin
from .fleet import Fleet
from .notes import TripNoteGenerator
from .trips import TripController, TripIntent, VehicleRegistry

__all__ = [
    "VehicleStatus",
    "MutationStatus",
    "Role",
    "MaintenanceKind",
    "FleetError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "PersistenceError",
    "InconsistentStateError",
    "ReportError",
    "Vehicle",
    "Mutation",
    "User",
    "Session",
    "INTERVAL_MONTHS",
    "calc_due_date",
    "is_overdue",
    "MaintenanceAlert",
    "compute_alerts",
    "alerts_by_vehicle",
    "VEHICLES",
    "MUTATIONS",
    "USERS",
    "to_row",
    "new_id",
    "Gateway",
    "Snapshot",
    "SheetsGateway",
    "YamlGateway",
    "create_store",
    "UserDirectory",
    "bootstrap_users",
    "default_admin",
    "Fleet",
    "TripNoteGenerator",
    "TripController",
    "TripIntent",
    "VehicleRegistry",
]
