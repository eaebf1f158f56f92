#!/usr/bin/env python3
"""Tests for status enums."""

from models import MaintenanceKind, MutationStatus, Role, VehicleStatus


class TestStoredValues:
    """Enum values are the strings stored in the sheets."""

    def test_vehicle_status(self):
        assert VehicleStatus.AVAILABLE.value == "Tersedia"
        assert VehicleStatus.IN_USE.value == "Dalam Perjalanan"

    def test_mutation_status(self):
        assert MutationStatus.ONGOING.value == "Berlangsung"
        assert MutationStatus.COMPLETED.value == "Selesai"

    def test_role(self):
        assert Role.ADMIN.value == "Admin"
        assert Role.OPERATOR.value == "Operator"

    def test_lookup_by_value(self):
        assert VehicleStatus("Dalam Perjalanan") is VehicleStatus.IN_USE
        assert Role("Operator") is Role.OPERATOR


class TestMaintenanceKind:
    """Tests for MaintenanceKind ordering."""

    def test_iteration_order(self):
        """Alerts are emitted in declaration order."""
        assert list(MaintenanceKind) == [
            MaintenanceKind.SERVICE,
            MaintenanceKind.OIL,
            MaintenanceKind.ACCU,
        ]
