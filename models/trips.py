"""Trip lifecycle and vehicle registration.

A vehicle cycles Available -> In use (trip started) -> Available (trip
ended). Each transition writes the trip row first and the vehicle row
second; the local fleet state only changes after both writes succeed.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Optional, Union, TYPE_CHECKING

from .errors import (
    AuthorizationError,
    InconsistentStateError,
    PersistenceError,
    ValidationError,
)
from .mutation import Mutation
from .notes import FALLBACK_NOTES, MISSING_TRIP
from .records import MUTATIONS, VEHICLES, filled, new_id
from .session import Session
from .status import MaintenanceKind, MutationStatus, VehicleStatus
from .timestamps import parse_timestamp, utc_now
from .vehicle import MAINTENANCE_FIELDS, Vehicle

if TYPE_CHECKING:
    from .fleet import Fleet
    from .gateway import Gateway
    from .notes import TripNoteGenerator

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

START = "start"
END = "end"


@dataclass
class TripIntent:
    """Where selecting a vehicle leads: a new trip or ending the current one."""

    action: str
    vehicle: Vehicle
    mutation: Optional[Mutation] = None


def parse_km(value: Any, message: str) -> int:
    """Odometer reading as a non-negative integer."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(message)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(message)
        value = int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text.isdigit():
            raise ValidationError(message)
        value = int(text)
    if not isinstance(value, int) or value < 0:
        raise ValidationError(message)
    return value


def parse_kind(kind: Union[MaintenanceKind, str]) -> MaintenanceKind:
    if isinstance(kind, MaintenanceKind):
        return kind
    try:
        return MaintenanceKind(str(kind).strip().lower())
    except ValueError:
        raise ValidationError(f"Jenis perawatan tidak dikenal: {kind}") from None


class TripController:
    """Starts and ends trips and records maintenance on vehicles."""

    def __init__(
        self,
        fleet: "Fleet",
        gateway: "Gateway",
        session: Session,
        notes: Optional["TripNoteGenerator"] = None,
        clock: Clock = utc_now,
    ):
        self.fleet = fleet
        self.gateway = gateway
        self.session = session
        self.notes = notes
        self.clock = clock

    def _require_login(self) -> None:
        if not self.session.is_authenticated:
            raise AuthorizationError("Silakan masuk terlebih dahulu.")

    def select_vehicle(self, vehicle: Vehicle) -> TripIntent:
        """
        Route a vehicle to the start-trip or end-trip step.

        An in-use vehicle without an ongoing trip is a data defect and raises
        InconsistentStateError.
        """
        if vehicle.is_available:
            return TripIntent(START, vehicle)
        mutation = self.fleet.ongoing_mutation(vehicle.id)
        if mutation is None:
            raise InconsistentStateError(
                f"Kendaraan {vehicle.plate_number} tercatat dalam perjalanan "
                "tetapi tidak ada perjalanan yang berlangsung."
            )
        return TripIntent(END, vehicle, mutation)

    def start_trip(
        self,
        vehicle: Vehicle,
        driver: str,
        destination: str,
        start_km: Any,
        driver_photo: Optional[str],
    ) -> Mutation:
        """Check a vehicle out. Returns the new ongoing trip."""
        self._require_login()
        current = self.fleet.get_vehicle(vehicle.id)
        if not current.is_available:
            raise ValidationError(
                f"Kendaraan {current.plate_number} sedang dalam perjalanan."
            )
        if not filled(driver_photo):
            raise ValidationError("Harap ambil foto pengemudi.")
        if not filled(driver) or not filled(destination):
            raise ValidationError("Harap isi semua kolom.")
        km = parse_km(start_km, "Harap isi semua kolom.")

        mutation = Mutation(
            id=new_id("m"),
            vehicle_id=current.id,
            driver=driver.strip(),
            destination=destination.strip(),
            start_time=self.clock(),
            start_km=km,
            status=MutationStatus.ONGOING,
            driver_photo=driver_photo,
        )
        updated_vehicle = current.copy(status=VehicleStatus.IN_USE)

        self._write_pair(
            lambda: self.gateway.add_row(MUTATIONS, mutation),
            updated_vehicle,
            mutation,
        )

        self.fleet.mutations = self.fleet.mutations + [mutation]
        self.fleet.replace_vehicle(updated_vehicle)
        logger.info("Trip %s started on %s by %s", mutation.id, current.plate_number, mutation.driver)
        return mutation

    def end_trip(self, mutation: Mutation, end_km: Any, notes: Optional[str] = None) -> Mutation:
        """Check a vehicle back in. Returns the completed trip."""
        self._require_login()
        current = self.fleet.get_mutation(mutation.id)
        if not current.is_ongoing:
            raise ValidationError("Perjalanan ini sudah selesai.")
        message = "Kilometer akhir harus lebih besar atau sama dengan kilometer awal."
        km = parse_km(end_km, message)
        if km < current.start_km:
            raise ValidationError(message)
        vehicle = self.fleet.get_vehicle(current.vehicle_id)

        completed = current.copy(
            end_km=km,
            notes=notes.strip() if filled(notes) else None,
            end_time=self.clock(),
            distance=max(0, km - current.start_km),
            status=MutationStatus.COMPLETED,
        )
        updated_vehicle = vehicle.copy(status=VehicleStatus.AVAILABLE)

        self._write_pair(
            lambda: self.gateway.update_row(MUTATIONS, completed),
            updated_vehicle,
            completed,
        )

        self.fleet.replace_mutation(completed)
        self.fleet.replace_vehicle(updated_vehicle)
        logger.info("Trip %s ended, %s km", completed.id, completed.distance)
        return completed

    def _write_pair(self, write_trip: Callable[[], Any], vehicle: Vehicle, mutation: Mutation) -> None:
        """
        Write the trip row, then the vehicle row.

        There is no rollback: if the second write fails the store keeps the
        trip row and the old vehicle status.
        """
        write_trip()
        try:
            self.gateway.update_row(VEHICLES, vehicle)
        except PersistenceError:
            logger.warning(
                "Trip %s was written but vehicle %s was not; store is inconsistent",
                mutation.id,
                vehicle.id,
            )
            raise

    def acknowledge_maintenance(
        self, vehicle: Vehicle, kind: Union[MaintenanceKind, str]
    ) -> Vehicle:
        """Mark a maintenance kind as done now. Status is left alone."""
        self._require_login()
        kind = parse_kind(kind)
        current = self.fleet.get_vehicle(vehicle.id)
        updated = current.copy(**{MAINTENANCE_FIELDS[kind]: self.clock()})

        self.gateway.update_row(VEHICLES, updated)

        self.fleet.replace_vehicle(updated)
        logger.info("Maintenance '%s' recorded on %s", kind.value, current.plate_number)
        return updated

    def generate_trip_notes(self, mutation: Optional[Mutation]) -> str:
        """Suggested notes for ending a trip. Never raises."""
        if mutation is None:
            return MISSING_TRIP
        if self.notes is None:
            return FALLBACK_NOTES
        vehicle = self.fleet.find_vehicle(mutation.vehicle_id)
        return self.notes.generate(mutation, vehicle)


def _parse_date(value: Union[str, date, datetime, None]) -> datetime:
    try:
        parsed = parse_timestamp(value)
    except (ValueError, OverflowError):
        parsed = None
    if parsed is None:
        raise ValidationError("Harap isi semua kolom dengan benar.")
    return parsed


class VehicleRegistry:
    """Admin registration and removal of vehicles."""

    def __init__(self, fleet: "Fleet", gateway: "Gateway", session: Session):
        self.fleet = fleet
        self.gateway = gateway
        self.session = session

    def _require_admin(self) -> None:
        if not self.session.is_admin:
            raise AuthorizationError("Anda tidak memiliki hak akses untuk halaman ini.")

    def add_vehicle(
        self,
        plate_number: str,
        brand: str,
        year: Any,
        color: str,
        last_service_date: Union[str, date, datetime],
        last_oil_change_date: Union[str, date, datetime],
        last_accu_check_date: Union[str, date, datetime],
    ) -> Vehicle:
        """Register an available vehicle with its initial maintenance dates."""
        self._require_admin()
        fields = (plate_number, brand, color)
        if not all(filled(f) for f in fields):
            raise ValidationError("Harap isi semua kolom dengan benar.")
        year_value = parse_km(year, "Harap isi semua kolom dengan benar.")
        if year_value == 0:
            raise ValidationError("Harap isi semua kolom dengan benar.")

        vehicle = Vehicle(
            id=new_id("v"),
            plate_number=plate_number.strip(),
            brand=brand.strip(),
            year=year_value,
            color=color.strip(),
            status=VehicleStatus.AVAILABLE,
            last_service_date=_parse_date(last_service_date),
            last_oil_change_date=_parse_date(last_oil_change_date),
            last_accu_check_date=_parse_date(last_accu_check_date),
        )

        self.gateway.add_row(VEHICLES, vehicle)

        self.fleet.vehicles = self.fleet.vehicles + [vehicle]
        logger.info("Vehicle %s added", vehicle.plate_number)
        return vehicle

    def delete_vehicle(self, vehicle_id: str) -> None:
        """Remove a vehicle. Only allowed while it is available."""
        self._require_admin()
        vehicle = self.fleet.get_vehicle(vehicle_id)
        if not vehicle.is_available:
            raise ValidationError(
                f"Kendaraan {vehicle.plate_number} sedang dalam perjalanan dan tidak dapat dihapus."
            )

        self.gateway.delete_row(VEHICLES, vehicle.id)

        self.fleet.vehicles = [v for v in self.fleet.vehicles if v.id != vehicle.id]
        logger.info("Vehicle %s deleted", vehicle.plate_number)
