#!/usr/bin/env python3
"""Validate YAML store files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

import settings
from models import Fleet, PersistenceError, YamlGateway


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def validate_store_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single YAML store file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
        return errors
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
        return errors
    except OSError as e:
        errors.append(f"Error: {e}")
        return errors

    # Rows that pass the schema must also map to records
    try:
        fleet = Fleet.load(YamlGateway(filepath))
    except PersistenceError as e:
        errors.append(f"Row error: {e.message}")
        return errors
    for problem in fleet.find_inconsistencies():
        errors.append(f"Inconsistent: {problem}")
    return errors


def main(argv=None):
    """Validate the given store files (default: the configured store)."""
    args = sys.argv[1:] if argv is None else argv
    schema = load_schema()
    files = [Path(a) for a in args] or [Path(settings.STORE_FILE)]

    all_valid = True
    for filepath in files:
        if not filepath.exists():
            print(f"Error: File not found: {filepath}")
            all_valid = False
            continue
        errors = validate_store_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
