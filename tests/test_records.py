#!/usr/bin/env python3
"""Tests for row mapping between sheets and model objects."""

import pytest

from conftest import at
from models import MUTATIONS, USERS, VEHICLES, MutationStatus, Role, VehicleStatus, new_id, to_row
from models.records import (
    COLUMNS,
    mutation_from_row,
    sheet_for,
    user_from_row,
    vehicle_from_row,
)


class TestVehicleFromRow:
    """Tests for vehicle_from_row."""

    def test_full_row(self):
        vehicle = vehicle_from_row(
            {
                "id": "v1",
                "plateNumber": "B 1234 XYZ",
                "brand": "Toyota Avanza",
                "year": 2022,
                "color": "Hitam",
                "status": "Dalam Perjalanan",
                "lastServiceDate": "2024-01-15T00:00:00.000Z",
                "lastOilChangeDate": "2024-03-01T00:00:00.000Z",
                "lastAccuCheckDate": "",
            }
        )
        assert vehicle.id == "v1"
        assert vehicle.year == 2022
        assert vehicle.status == VehicleStatus.IN_USE
        assert vehicle.last_service_date == at(2024, 1, 15)
        assert vehicle.last_accu_check_date is None

    def test_spreadsheet_types_are_coerced(self):
        """Numeric ids and float years come back as text and int."""
        vehicle = vehicle_from_row(
            {"id": 17.0, "plateNumber": "B 1", "brand": "X", "year": "2021", "color": "Merah"}
        )
        assert vehicle.id == "17"
        assert vehicle.year == 2021
        assert vehicle.status == VehicleStatus.AVAILABLE

    def test_unknown_status_raises(self):
        with pytest.raises(ValueError):
            vehicle_from_row(
                {"id": "v1", "plateNumber": "B", "brand": "X", "year": 2020,
                 "color": "Y", "status": "Rusak"}
            )


class TestMutationFromRow:
    """Tests for mutation_from_row."""

    def test_ongoing_row_with_blank_cells(self):
        mutation = mutation_from_row(
            {
                "id": "m1",
                "vehicleId": "v1",
                "driver": "Budi",
                "destination": "Bandung",
                "startTime": "2024-03-01T01:00:00.000Z",
                "startKm": "15000",
                "driverPhoto": "",
                "endTime": "",
                "endKm": "",
                "distance": "",
                "notes": "",
                "status": "Berlangsung",
            }
        )
        assert mutation.start_km == 15000
        assert mutation.status == MutationStatus.ONGOING
        assert mutation.driver_photo is None
        assert mutation.end_time is None
        assert mutation.end_km is None
        assert mutation.distance is None
        assert mutation.notes is None

    def test_completed_row(self):
        mutation = mutation_from_row(
            {
                "id": "m2",
                "vehicleId": "v1",
                "driver": "Siti",
                "destination": "Bogor",
                "startTime": "2024-02-10T02:00:00.000Z",
                "startKm": 12000.0,
                "endTime": "2024-02-10T09:30:00.000Z",
                "endKm": 12150,
                "distance": 150,
                "notes": "Ban aman",
                "status": "Selesai",
            }
        )
        assert mutation.start_km == 12000
        assert mutation.end_time == at(2024, 2, 10, 9, 30)
        assert mutation.distance == 150
        assert mutation.is_report_ready is True


class TestUserFromRow:
    """Tests for user_from_row."""

    def test_numeric_password_is_text(self):
        user = user_from_row({"id": "u1", "username": "budi", "password": 123456, "role": "Operator"})
        assert user.password == "123456"
        assert user.role == Role.OPERATOR


class TestToRow:
    """Tests for to_row."""

    def test_vehicle_row_uses_sheet_columns(self):
        vehicle = vehicle_from_row(
            {
                "id": "v1",
                "plateNumber": "B 1234 XYZ",
                "brand": "Toyota Avanza",
                "year": 2022,
                "color": "Hitam",
                "status": "Tersedia",
                "lastServiceDate": "2024-01-15",
                "lastOilChangeDate": "2024-03-01",
                "lastAccuCheckDate": "2023-09-01",
            }
        )
        row = to_row(vehicle)
        assert list(row) == COLUMNS[VEHICLES]
        assert row["status"] == "Tersedia"
        assert row["lastServiceDate"] == "2024-01-15T00:00:00.000Z"

    def test_none_fields_are_omitted(self):
        """Omitted keys leave the stored cells unchanged on update."""
        mutation = mutation_from_row(
            {"id": "m1", "vehicleId": "v1", "driver": "Budi", "destination": "Bandung",
             "startTime": "2024-03-01T01:00:00.000Z", "startKm": 15000, "status": "Berlangsung"}
        )
        row = to_row(mutation)
        assert "endTime" not in row
        assert "distance" not in row
        assert "notes" not in row
        assert set(row) <= set(COLUMNS[MUTATIONS])

    def test_rejects_other_objects(self):
        with pytest.raises(TypeError):
            to_row({"id": "x"})


class TestSheetFor:
    def test_sheet_names(self):
        user = user_from_row({"id": "u1", "username": "a", "password": "b", "role": "Admin"})
        assert sheet_for(user) == USERS


class TestNewId:
    """Tests for new_id."""

    def test_prefix_and_uniqueness(self):
        ids = {new_id("m") for _ in range(100)}
        assert len(ids) == 100
        assert all(i.startswith("m") and len(i) == 13 for i in ids)
