"""Shared fixtures: a seeded YAML store and a fixed clock."""

from datetime import datetime

import pytest
import yaml
from dateutil import tz

from models import Fleet, Gateway, PersistenceError, Session, YamlGateway


def at(year, month, day, hour=0, minute=0):
    """Aware UTC datetime."""
    return datetime(year, month, day, hour, minute, tzinfo=tz.UTC)


def seed_data():
    return {
        "Vehicles": [
            {
                "id": "v1",
                "plateNumber": "B 1234 XYZ",
                "brand": "Toyota Avanza",
                "year": 2022,
                "color": "Hitam",
                "status": "Tersedia",
                "lastServiceDate": "2024-01-15T00:00:00.000Z",
                "lastOilChangeDate": "2024-03-01T00:00:00.000Z",
                "lastAccuCheckDate": "2023-09-01T00:00:00.000Z",
            },
            {
                "id": "v2",
                "plateNumber": "D 5678 ABC",
                "brand": "Honda Brio",
                "year": 2021,
                "color": "Putih",
                "status": "Dalam Perjalanan",
                "lastServiceDate": "2024-02-01T00:00:00.000Z",
                "lastOilChangeDate": "2024-02-01T00:00:00.000Z",
                "lastAccuCheckDate": "2024-02-01T00:00:00.000Z",
            },
        ],
        "Mutations": [
            {
                "id": "m1",
                "vehicleId": "v2",
                "driver": "Budi Santoso",
                "destination": "Bandung",
                "startTime": "2024-03-01T01:00:00.000Z",
                "startKm": 15000,
                "driverPhoto": "",
                "endTime": "",
                "endKm": "",
                "distance": "",
                "notes": "",
                "status": "Berlangsung",
            },
            {
                "id": "m2",
                "vehicleId": "v1",
                "driver": "Siti Aminah",
                "destination": "Bogor",
                "startTime": "2024-02-10T02:00:00.000Z",
                "startKm": 12000,
                "driverPhoto": "",
                "endTime": "2024-02-10T09:30:00.000Z",
                "endKm": 12150,
                "distance": 150,
                "notes": "Ban aman",
                "status": "Selesai",
            },
        ],
        "Users": [
            {"id": "u1", "username": "admin", "password": "rahasia", "role": "Admin"},
            {"id": "u2", "username": "operator", "password": "operator1", "role": "Operator"},
        ],
    }


@pytest.fixture
def store_file(tmp_path):
    path = tmp_path / "armada.yaml"
    path.write_text(yaml.dump(seed_data(), sort_keys=False))
    return path


@pytest.fixture
def gateway(store_file):
    return YamlGateway(store_file)


@pytest.fixture
def fleet(gateway):
    return Fleet.load(gateway)


@pytest.fixture
def admin_session(fleet):
    return Session(fleet.get_user("u1"))


@pytest.fixture
def operator_session(fleet):
    return Session(fleet.get_user("u2"))


class FixedClock:
    """Clock returning a settable instant."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FixedClock(at(2024, 7, 16, 3, 0))


class RecordingGateway(Gateway):
    """In-memory gateway that records writes and can fail the Nth one."""

    def __init__(self, data=None, fail_on=None):
        self.data = data or {}
        self.writes = []
        self.fail_on = fail_on

    def _read_all(self):
        return self.data

    def _write(self, action, payload):
        self.writes.append((action, payload))
        if self.fail_on is not None and len(self.writes) == self.fail_on:
            raise PersistenceError("API call failed: Service Unavailable")
        return payload.get("data")
