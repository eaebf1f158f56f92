#!/usr/bin/env python3
"""Tests for the YAML store and the spreadsheet web-app gateway."""

import json

import httpx
import pytest
import yaml

from conftest import at
from models import (
    MUTATIONS,
    USERS,
    VEHICLES,
    PersistenceError,
    SheetsGateway,
    User,
    Role,
    YamlGateway,
    create_store,
)

SCRIPT_URL = "https://script.example.com/macros/s/abc/exec"


def read(path):
    with open(path) as fp:
        return yaml.safe_load(fp)


# =============================================================================
# YamlGateway
# =============================================================================


class TestYamlGatewayRead:
    """Tests for YamlGateway.fetch_all."""

    def test_reads_all_sheets(self, gateway):
        snapshot = gateway.fetch_all()
        assert [v.id for v in snapshot.vehicles] == ["v1", "v2"]
        assert [m.id for m in snapshot.mutations] == ["m1", "m2"]
        assert [u.username for u in snapshot.users] == ["admin", "operator"]

    def test_missing_file_is_empty(self, tmp_path):
        snapshot = YamlGateway(tmp_path / "none.yaml").fetch_all()
        assert snapshot.vehicles == []
        assert snapshot.mutations == []
        assert snapshot.users == []

    def test_skips_rows_without_id(self, tmp_path):
        path = tmp_path / "store.yaml"
        path.write_text(
            "Users:\n"
            "  - {id: u1, username: a, password: b, role: Admin}\n"
            "  - {id: '', username: '', password: '', role: ''}\n"
        )
        assert len(YamlGateway(path).fetch_all().users) == 1

    def test_bad_row_raises_persistence_error(self, tmp_path):
        path = tmp_path / "store.yaml"
        path.write_text("Users:\n  - {id: u1, username: a, password: b, role: Boss}\n")
        with pytest.raises(PersistenceError) as exc:
            YamlGateway(path).fetch_all()
        assert "Users" in exc.value.message

    def test_malformed_yaml_raises_persistence_error(self, tmp_path):
        path = tmp_path / "store.yaml"
        path.write_text("Users: [unclosed\n")
        with pytest.raises(PersistenceError):
            YamlGateway(path).fetch_all()


class TestYamlGatewayWrite:
    """Tests for the row rules of YamlGateway writes."""

    def test_add_fills_every_column(self, tmp_path):
        path = tmp_path / "store.yaml"
        create_store(path)
        gateway = YamlGateway(path)

        gateway.add_row(USERS, User("u9", "budi", "rahasia", Role.OPERATOR))

        rows = read(path)["Users"]
        assert rows == [{"id": "u9", "username": "budi", "password": "rahasia", "role": "Operator"}]

    def test_add_blank_for_missing_columns(self, gateway, store_file, fleet):
        mutation = fleet.get_mutation("m1").copy(id="m9")
        gateway.add_row(MUTATIONS, mutation)

        row = read(store_file)["Mutations"][-1]
        assert row["id"] == "m9"
        assert row["endTime"] == ""
        assert row["distance"] == ""
        assert list(row) == [
            "id", "vehicleId", "driver", "destination", "startTime", "startKm",
            "driverPhoto", "endTime", "endKm", "distance", "notes", "status",
        ]

    def test_update_overwrites_present_fields_only(self, gateway, store_file, fleet):
        vehicle = fleet.get_vehicle("v1").copy(color="Biru", last_accu_check_date=None)
        gateway.update_row(VEHICLES, vehicle)

        row = read(store_file)["Vehicles"][0]
        assert row["color"] == "Biru"
        # Absent on the record, so the stored value survives
        assert row["lastAccuCheckDate"] == "2023-09-01T00:00:00.000Z"

    def test_update_missing_row_fails(self, gateway, fleet):
        vehicle = fleet.get_vehicle("v1").copy(id="nope")
        with pytest.raises(PersistenceError) as exc:
            gateway.update_row(VEHICLES, vehicle)
        assert exc.value.message == "API Error: Row not found with id: nope"

    def test_delete_removes_row(self, gateway, store_file):
        gateway.delete_row(USERS, "u2")
        assert [u["id"] for u in read(store_file)["Users"]] == ["u1"]

    def test_delete_missing_row_fails(self, gateway):
        with pytest.raises(PersistenceError):
            gateway.delete_row(USERS, "u404")

    def test_unknown_sheet_fails(self, gateway):
        with pytest.raises(PersistenceError) as exc:
            gateway.delete_row("Drivers", "d1")
        assert exc.value.message == "API Error: Sheet not found: Drivers"

    def test_matches_numeric_ids_as_text(self, tmp_path):
        path = tmp_path / "store.yaml"
        path.write_text("Users:\n  - {id: 7, username: a, password: b, role: Admin}\n")
        YamlGateway(path).delete_row(USERS, "7")
        assert read(path)["Users"] == []

    def test_round_trip_through_fetch(self, gateway, fleet):
        vehicle = fleet.get_vehicle("v1").copy(last_service_date=at(2024, 7, 16, 3))
        gateway.update_row(VEHICLES, vehicle)
        reread = gateway.fetch_all().vehicles[0]
        assert reread.last_service_date == at(2024, 7, 16, 3)


# =============================================================================
# SheetsGateway
# =============================================================================


def sheets_gateway(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return SheetsGateway(SCRIPT_URL, client=client)


class TestSheetsGatewayRead:
    """Tests for SheetsGateway.fetch_all."""

    def test_parses_snapshot(self):
        def handler(request):
            assert request.method == "GET"
            return httpx.Response(
                200,
                json={
                    "vehicles": [
                        {"id": 1, "plateNumber": "B 1", "brand": "X", "year": 2020.0,
                         "color": "Y", "status": "Tersedia"}
                    ],
                    "mutations": [],
                    "users": [{"id": "u1", "username": "a", "password": 1234, "role": "Admin"}],
                },
            )

        snapshot = sheets_gateway(handler).fetch_all()
        assert snapshot.vehicles[0].id == "1"
        assert snapshot.vehicles[0].year == 2020
        assert snapshot.users[0].password == "1234"

    def test_error_object_raises(self):
        gateway = sheets_gateway(lambda r: httpx.Response(200, json={"error": "Sheet missing"}))
        with pytest.raises(PersistenceError) as exc:
            gateway.fetch_all()
        assert exc.value.message == "Gagal memuat data: Sheet missing"

    def test_http_failure_raises(self):
        gateway = sheets_gateway(lambda r: httpx.Response(500))
        with pytest.raises(PersistenceError):
            gateway.fetch_all()

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("offline")

        with pytest.raises(PersistenceError) as exc:
            sheets_gateway(handler).fetch_all()
        assert "offline" in exc.value.message

    def test_non_json_raises(self):
        gateway = sheets_gateway(lambda r: httpx.Response(200, text="<html>login</html>"))
        with pytest.raises(PersistenceError):
            gateway.fetch_all()


class TestSheetsGatewayWrite:
    """Tests for SheetsGateway writes."""

    def test_posts_action_envelope_as_text(self):
        seen = {}

        def handler(request):
            seen["content_type"] = request.headers["content-type"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "data": {"id": "u1"}})

        result = sheets_gateway(handler).delete_row(USERS, "u1")

        assert seen["content_type"].startswith("text/plain")
        assert seen["body"] == {
            "action": "DELETE_DATA",
            "payload": {"sheetName": "Users", "id": "u1"},
        }
        assert result == {"id": "u1"}

    def test_add_sends_row(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "data": seen["body"]["payload"]["data"]})

        sheets_gateway(handler).add_row(USERS, User("u9", "budi", "pw1234", Role.OPERATOR))
        assert seen["body"]["action"] == "ADD_DATA"
        assert seen["body"]["payload"]["data"]["role"] == "Operator"

    def test_error_reply_raises(self):
        gateway = sheets_gateway(
            lambda r: httpx.Response(200, json={"error": "Row not found with id: u1"})
        )
        with pytest.raises(PersistenceError) as exc:
            gateway.delete_row(USERS, "u1")
        assert exc.value.message == "API Error: Row not found with id: u1"

    def test_unsuccessful_reply_raises(self):
        gateway = sheets_gateway(lambda r: httpx.Response(200, json={"success": False}))
        with pytest.raises(PersistenceError) as exc:
            gateway.delete_row(USERS, "u1")
        assert exc.value.message == "API Error: Unknown error"

    def test_http_error_raises(self):
        gateway = sheets_gateway(lambda r: httpx.Response(503))
        with pytest.raises(PersistenceError) as exc:
            gateway.delete_row(USERS, "u1")
        assert exc.value.message == "API call failed: Service Unavailable"
