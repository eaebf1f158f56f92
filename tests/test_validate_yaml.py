#!/usr/bin/env python3
"""Tests for validate_yaml schema validation."""

import yaml

from conftest import seed_data
from validate_yaml import load_schema, main, validate_store_file


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_returns_dict(self):
        schema = load_schema()
        assert isinstance(schema, dict)

    def test_has_expected_structure(self):
        schema = load_schema()
        assert set(schema["properties"]) == {"Vehicles", "Mutations", "Users"}


class TestValidateStoreFile:
    """Tests for validate_store_file function."""

    def test_seeded_store_is_valid(self, store_file):
        assert validate_store_file(store_file, load_schema()) == []

    def test_empty_sheets_are_valid(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("Vehicles: []\nMutations: []\nUsers: []\n")
        assert validate_store_file(path, load_schema()) == []

    def test_bad_status_returns_errors(self, tmp_path):
        data = seed_data()
        data["Vehicles"][0]["status"] = "Rusak"
        path = tmp_path / "invalid.yaml"
        path.write_text(yaml.dump(data))

        errors = validate_store_file(path, load_schema())
        assert any("Schema validation" in e for e in errors)
        assert any("Vehicles.0.status" in e for e in errors)

    def test_missing_required_field(self, tmp_path):
        data = seed_data()
        del data["Users"][0]["role"]
        path = tmp_path / "invalid.yaml"
        path.write_text(yaml.dump(data))
        assert validate_store_file(path, load_schema())

    def test_unknown_sheet(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("Drivers: []\n")
        assert validate_store_file(path, load_schema())

    def test_invalid_yaml_returns_parse_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("Vehicles: [unclosed\n")
        errors = validate_store_file(path, load_schema())
        assert any("YAML" in e for e in errors)

    def test_inconsistent_status_reported(self, tmp_path):
        data = seed_data()
        data["Vehicles"][1]["status"] = "Tersedia"
        path = tmp_path / "store.yaml"
        path.write_text(yaml.dump(data))
        errors = validate_store_file(path, load_schema())
        assert len(errors) == 1
        assert errors[0].startswith("Inconsistent:")


class TestMain:
    def test_ok(self, store_file, capsys):
        assert main([str(store_file)]) == 0
        assert "OK: armada.yaml" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "none.yaml")]) == 1
        assert "File not found" in capsys.readouterr().out
