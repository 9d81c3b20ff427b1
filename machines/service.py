"""
machines/service.py -- Machine Service: CRUD orchestration over MachineStore.

Responsibilities the store does not have:
  - presence checks on create/update (ValidationError)
  - mapping opaque string ids to the store's integer key (NotFound when the
    id is malformed, so a bad path parameter never reaches SQL)
  - the completeness filter applied by list_all()
  - translating sqlalchemy failures into StorageError, including on create --
    a failed insert is never reported as a saved record

Layer rule: no imports from api/, web/, or auth/.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from core.errors import NotFound, StorageError, ValidationError
from machines.models import MachineRecord
from machines.store import MachineStore

logger = logging.getLogger("medmachines.machines")

# SQLite INTEGER is a signed 64-bit value.
_MAX_ID = 2**63 - 1


def is_complete(record: MachineRecord) -> bool:
    """A record is complete when category, type and purpose are all non-empty."""
    return bool(record.machine_name and record.machine_type and record.purpose)


def parse_id(record_id: str) -> int:
    """Map an opaque id to the store's integer key. Raises NotFound if malformed."""
    try:
        key = int(str(record_id).strip())
    except (TypeError, ValueError):
        raise NotFound() from None
    if key <= 0 or key > _MAX_ID:
        raise NotFound()
    return key


@contextmanager
def _storage(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Error %s", action)
        raise StorageError(f"Failed to {action}.") from exc


class MachineService:
    def __init__(self, store: MachineStore) -> None:
        self.store = store

    def create(
        self,
        machine_name: Optional[str],
        machine_type: Optional[str],
        purpose: Optional[str],
    ) -> MachineRecord:
        """Insert a record and return it as stored, id included."""
        missing = [
            name
            for name, value in (
                ("machineName", machine_name),
                ("machineType", machine_type),
                ("purpose", purpose),
            )
            if not value
        ]
        if missing:
            raise ValidationError(fields=missing)

        record = MachineRecord(machine_name=machine_name, machine_type=machine_type, purpose=purpose)
        with _storage("save machine"):
            record_id = self.store.create(record)
            created = self.store.get(record_id)
        if created is None:
            logger.error("Machine %s missing immediately after insert", record_id)
            raise StorageError("Failed to save machine.")
        logger.info("Machine %s saved (%s / %s)", created.id, created.machine_name, created.machine_type)
        return created

    def list_all(self) -> list[MachineRecord]:
        """Every complete record, in store order."""
        with _storage("fetch machines"):
            records = self.store.list_all()
        return [r for r in records if is_complete(r)]

    def get_by_id(self, record_id: str) -> MachineRecord:
        key = parse_id(record_id)
        with _storage(f"fetch machine with id {record_id}"):
            record = self.store.get(key)
        if record is None:
            raise NotFound()
        return record

    def list_by_type(self, machine_type: str) -> list[MachineRecord]:
        """Records of one type. No completeness filter."""
        with _storage(f"fetch treatments for machineType {machine_type}"):
            return self.store.list_by_type(machine_type)

    def update(self, record_id: str, purpose: Optional[str]) -> str:
        """Replace the purpose of one record; other fields are untouched."""
        key = parse_id(record_id)
        if not purpose:
            raise ValidationError(fields=["purpose"])
        with _storage("update machine purpose"):
            updated = self.store.update_purpose(key, purpose)
        if not updated:
            logger.info("Machine with id %s not found", record_id)
            raise NotFound()
        logger.info("Machine with id %s updated successfully", record_id)
        return "Machine updated successfully"

    def delete(self, record_id: str) -> str:
        key = parse_id(record_id)
        with _storage("delete machine"):
            deleted = self.store.delete(key)
        if not deleted:
            logger.info("Machine with id %s not found", record_id)
            raise NotFound()
        logger.info("Machine with id %s deleted successfully", record_id)
        return "Machine deleted successfully"
