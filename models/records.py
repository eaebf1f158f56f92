"""Row mapping between spreadsheet sheets and model objects.

Each sheet has a fixed column list. Rows coming back from the store may carry
spreadsheet-inferred types (numeric ids, numeric passwords, floats for
integers, blank strings for missing values); they are coerced here so the
rest of the code only ever sees typed model objects.
"""

import uuid
from typing import Any, Dict, List, Optional, Union

from .mutation import Mutation
from .status import MutationStatus, Role, VehicleStatus
from .timestamps import format_timestamp, parse_timestamp
from .user import User
from .vehicle import Vehicle

VEHICLES = "Vehicles"
MUTATIONS = "Mutations"
USERS = "Users"

COLUMNS: Dict[str, List[str]] = {
    VEHICLES: [
        "id",
        "plateNumber",
        "brand",
        "year",
        "color",
        "status",
        "lastServiceDate",
        "lastOilChangeDate",
        "lastAccuCheckDate",
    ],
    MUTATIONS: [
        "id",
        "vehicleId",
        "driver",
        "destination",
        "startTime",
        "startKm",
        "driverPhoto",
        "endTime",
        "endKm",
        "distance",
        "notes",
        "status",
    ],
    USERS: ["id", "username", "password", "role"],
}

# Snapshot key -> sheet name
SNAPSHOT_KEYS = {"vehicles": VEHICLES, "mutations": MUTATIONS, "users": USERS}

Record = Union[Vehicle, Mutation, User]


# =============================================================================
# Cell coercion
# =============================================================================


def _text(value: Any) -> str:
    """Cell as text. Whole floats lose their '.0' (numeric ids, passwords)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text if text.strip() else None


def _int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    return int(float(str(value).strip()))


def _optional_int(value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _int(value)


def filled(value: Any) -> bool:
    """True for a non-blank string. Input fields must be text."""
    return isinstance(value, str) and bool(value.strip())


# =============================================================================
# Row -> object
# =============================================================================


def vehicle_from_row(row: Dict[str, Any]) -> Vehicle:
    """Build a Vehicle from a Vehicles row."""
    return Vehicle(
        id=_text(row["id"]),
        plate_number=_text(row.get("plateNumber")),
        brand=_text(row.get("brand")),
        year=_int(row.get("year")),
        color=_text(row.get("color")),
        status=VehicleStatus(_text(row.get("status")) or VehicleStatus.AVAILABLE.value),
        last_service_date=parse_timestamp(row.get("lastServiceDate")),
        last_oil_change_date=parse_timestamp(row.get("lastOilChangeDate")),
        last_accu_check_date=parse_timestamp(row.get("lastAccuCheckDate")),
    )


def mutation_from_row(row: Dict[str, Any]) -> Mutation:
    """Build a Mutation from a Mutations row."""
    return Mutation(
        id=_text(row["id"]),
        vehicle_id=_text(row.get("vehicleId")),
        driver=_text(row.get("driver")),
        destination=_text(row.get("destination")),
        start_time=parse_timestamp(row.get("startTime")),
        start_km=_int(row.get("startKm")),
        status=MutationStatus(_text(row.get("status"))),
        driver_photo=_optional_text(row.get("driverPhoto")),
        end_time=parse_timestamp(row.get("endTime")),
        end_km=_optional_int(row.get("endKm")),
        distance=_optional_int(row.get("distance")),
        notes=_optional_text(row.get("notes")),
    )


def user_from_row(row: Dict[str, Any]) -> User:
    """Build a User from a Users row."""
    return User(
        id=_text(row["id"]),
        username=_text(row.get("username")),
        password=_text(row.get("password")),
        role=Role(_text(row.get("role"))),
    )


FROM_ROW = {
    VEHICLES: vehicle_from_row,
    MUTATIONS: mutation_from_row,
    USERS: user_from_row,
}


# =============================================================================
# Object -> row
# =============================================================================


def _vehicle_to_row(vehicle: Vehicle) -> Dict[str, Any]:
    return {
        "id": vehicle.id,
        "plateNumber": vehicle.plate_number,
        "brand": vehicle.brand,
        "year": vehicle.year,
        "color": vehicle.color,
        "status": vehicle.status.value,
        "lastServiceDate": format_timestamp(vehicle.last_service_date),
        "lastOilChangeDate": format_timestamp(vehicle.last_oil_change_date),
        "lastAccuCheckDate": format_timestamp(vehicle.last_accu_check_date),
    }


def _mutation_to_row(mutation: Mutation) -> Dict[str, Any]:
    return {
        "id": mutation.id,
        "vehicleId": mutation.vehicle_id,
        "driver": mutation.driver,
        "destination": mutation.destination,
        "startTime": format_timestamp(mutation.start_time),
        "startKm": mutation.start_km,
        "driverPhoto": mutation.driver_photo,
        "endTime": format_timestamp(mutation.end_time),
        "endKm": mutation.end_km,
        "distance": mutation.distance,
        "notes": mutation.notes,
        "status": mutation.status.value,
    }


def _user_to_row(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "password": user.password,
        "role": user.role.value,
    }


def to_row(record: Record) -> Dict[str, Any]:
    """
    Serialize a model object to its sheet row (camelCase keys).

    None values are omitted so that an update leaves those cells unchanged.
    """
    if isinstance(record, Vehicle):
        row = _vehicle_to_row(record)
    elif isinstance(record, Mutation):
        row = _mutation_to_row(record)
    elif isinstance(record, User):
        row = _user_to_row(record)
    else:
        raise TypeError(f"Cannot map {type(record).__name__} to a sheet row")
    return {key: value for key, value in row.items() if value is not None}


def sheet_for(record: Record) -> str:
    """Name of the sheet a model object belongs to."""
    if isinstance(record, Vehicle):
        return VEHICLES
    if isinstance(record, Mutation):
        return MUTATIONS
    if isinstance(record, User):
        return USERS
    raise TypeError(f"No sheet for {type(record).__name__}")


def new_id(prefix: str) -> str:
    """New record identity, e.g. 'm3f9c2a1b7d04'."""
    return f"{prefix}{uuid.uuid4().hex[:12]}"
