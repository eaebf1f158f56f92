"""Persistence gateways: the spreadsheet web app and a local YAML store.

Both speak the same row protocol: a full read of every sheet, and three
write actions (ADD_DATA, UPDATE_DATA, DELETE_DATA) addressed by sheet name.
Any failure raises PersistenceError; nothing is retried.
"""

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx
import yaml

from .errors import PersistenceError
from .mutation import Mutation
from .records import COLUMNS, FROM_ROW, SNAPSHOT_KEYS, Record, to_row
from .user import User
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

ADD_DATA = "ADD_DATA"
UPDATE_DATA = "UPDATE_DATA"
DELETE_DATA = "DELETE_DATA"


@dataclass
class Snapshot:
    """Full read of the store."""

    vehicles: List[Vehicle] = field(default_factory=list)
    mutations: List[Mutation] = field(default_factory=list)
    users: List[User] = field(default_factory=list)


def _snapshot_from_rows(data: Dict[str, Any]) -> Snapshot:
    """Map raw sheet rows to a Snapshot. Absent collections are empty."""
    parsed: Dict[str, list] = {}
    for key, sheet in SNAPSHOT_KEYS.items():
        records = []
        for row in data.get(key) or []:
            # Trailing blank spreadsheet rows come back without an id
            if row.get("id") in (None, ""):
                continue
            try:
                records.append(FROM_ROW[sheet](row))
            except (KeyError, TypeError, ValueError) as e:
                raise PersistenceError(
                    f"Invalid row in {sheet} (id {row.get('id')}): {e}"
                ) from e
        parsed[key] = records
    return Snapshot(**parsed)


class Gateway:
    """Base class for the four persistence operations."""

    def fetch_all(self) -> Snapshot:
        """Read every sheet."""
        return _snapshot_from_rows(self._read_all())

    def add_row(self, sheet_name: str, record: Record) -> Any:
        """Append one record to a sheet."""
        return self._write(ADD_DATA, {"sheetName": sheet_name, "data": to_row(record)})

    def update_row(self, sheet_name: str, record: Record) -> Any:
        """Overwrite the present fields of the row with the record's id."""
        return self._write(
            UPDATE_DATA, {"sheetName": sheet_name, "data": to_row(record)}
        )

    def delete_row(self, sheet_name: str, record_id: str) -> Any:
        """Remove the row with the given id."""
        return self._write(DELETE_DATA, {"sheetName": sheet_name, "id": record_id})

    def close(self) -> None:
        """Release transport resources. Nothing to do by default."""

    def _read_all(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _write(self, action: str, payload: Dict[str, Any]) -> Any:
        raise NotImplementedError


# =============================================================================
# Remote spreadsheet web app
# =============================================================================


class SheetsGateway(Gateway):
    """
    Gateway to the spreadsheet web-app script.

    GET returns {vehicles, mutations, users} or {error}. POST takes
    {action, payload} as a text/plain JSON body and answers with
    {success, data, message} or {error}. The script holds one lock around
    all writes; reads are unlocked.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "SheetsGateway":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _read_all(self) -> Dict[str, Any]:
        try:
            response = self._client.get(self.url)
        except httpx.HTTPError as e:
            raise PersistenceError(f"Gagal memuat data: {e}") from e
        if not response.is_success:
            raise PersistenceError(
                f"Gagal memuat data: HTTP {response.status_code} {response.reason_phrase}"
            )
        data = self._decode(response)
        if data.get("error"):
            raise PersistenceError(f"Gagal memuat data: {data['error']}")
        logger.debug(
            "Fetched %s",
            ", ".join(f"{len(data.get(k) or [])} {k}" for k in SNAPSHOT_KEYS),
        )
        return data

    def _write(self, action: str, payload: Dict[str, Any]) -> Any:
        body = json.dumps({"action": action, "payload": payload})
        logger.info("%s on %s", action, payload.get("sheetName"))
        try:
            response = self._client.post(
                self.url,
                content=body.encode("utf-8"),
                headers={"Content-Type": "text/plain;charset=utf-8"},
            )
        except httpx.HTTPError as e:
            raise PersistenceError(f"API call failed: {e}") from e
        if not response.is_success:
            raise PersistenceError(f"API call failed: {response.reason_phrase}")
        result = self._decode(response)
        if result.get("error"):
            raise PersistenceError(f"API Error: {result['error']}")
        if not result.get("success"):
            raise PersistenceError(
                f"API Error: {result.get('message') or 'Unknown error'}"
            )
        return result.get("data")

    @staticmethod
    def _decode(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise PersistenceError(f"Invalid response from store: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError("Invalid response from store: expected an object")
        return data


# =============================================================================
# Local YAML file store
# =============================================================================

# One lock for every YAML store in the process, like the script lock
_WRITE_LOCK = threading.Lock()


def _dump(data: Dict[str, Any], path: Path) -> None:
    with open(path, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def _find_row(rows: List[Dict[str, Any]], record_id: Any) -> int:
    """Index of the row whose id matches as text, or -1."""
    for index, row in enumerate(rows):
        if str(row.get("id")) == str(record_id):
            return index
    return -1


def create_store(filename: Union[str, Path]) -> None:
    """Create an empty YAML store with all three sheets."""
    _dump({sheet: [] for sheet in COLUMNS}, Path(filename))


class YamlGateway(Gateway):
    """
    Gateway backed by a local YAML file with one list of rows per sheet.

    Applies the same row rules as the spreadsheet script: appended rows get
    every sheet column ("" when missing, unknown keys dropped), updates only
    overwrite keys present on the record.
    """

    def __init__(self, filename: Union[str, Path]):
        self.path = Path(filename)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as fp:
                return yaml.load(fp, Loader=yaml.SafeLoader) or {}
        except (OSError, yaml.YAMLError) as e:
            raise PersistenceError(f"Gagal memuat data: {e}") from e

    def _read_all(self) -> Dict[str, Any]:
        data = self._load()
        return {key: data.get(sheet) or [] for key, sheet in SNAPSHOT_KEYS.items()}

    def _write(self, action: str, payload: Dict[str, Any]) -> Any:
        sheet = payload.get("sheetName")
        if sheet not in COLUMNS:
            raise PersistenceError(f"API Error: Sheet not found: {sheet}")
        headers = COLUMNS[sheet]

        with _WRITE_LOCK:
            data = self._load()
            rows = data.get(sheet)
            if rows is None:
                rows = data[sheet] = []

            if action == ADD_DATA:
                record = payload["data"]
                rows.append({h: record.get(h, "") for h in headers})
                result = record
            elif action == UPDATE_DATA:
                record = payload["data"]
                index = _find_row(rows, record.get("id"))
                if index == -1:
                    raise PersistenceError(
                        f"API Error: Row not found with id: {record.get('id')}"
                    )
                for h in headers:
                    if h in record:
                        rows[index][h] = record[h]
                result = record
            elif action == DELETE_DATA:
                index = _find_row(rows, payload.get("id"))
                if index == -1:
                    raise PersistenceError(
                        f"API Error: Row not found with id: {payload.get('id')}"
                    )
                del rows[index]
                result = {"id": payload.get("id")}
            else:
                raise PersistenceError("API Error: Invalid action")

            try:
                _dump(data, self.path)
            except OSError as e:
                raise PersistenceError(f"API call failed: {e}") from e

        logger.info("%s on %s (%s)", action, sheet, self.path)
        return result
