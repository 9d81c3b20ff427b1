"""
machines/store.py -- SQLAlchemy-backed persistence layer for machine records.

Uses SQLAlchemy Core (not ORM) so the MachineRecord dataclass in
machines/models.py remains the authoritative domain representation. Swapping
SQLite for PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. MachineStore is the repository;
_row_to_record is the mapper. Services never touch SQL directly.

Every method is a single statement on a single row set, so each operation is
atomic on its own; there is no cross-operation transaction.

Keys: integer autoincrement primary key. Callers pass the native int; the
mapper renders it back as a string so the rest of the system treats ids as
opaque.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = MachineStore()                               # settings.database_url
    store = MachineStore("postgresql://user:pw@host/db")
    record_id = store.create(record)
    store.update_purpose(record_id, "bone imaging")
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from core.config import get_settings
from machines.models import MachineRecord

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_machines = Table(
    "machines",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("machine_name", String(255), nullable=False, server_default=""),
    Column("machine_type", String(255), nullable=False, server_default="", index=True),
    Column("purpose", Text, nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class MachineStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # Route handlers run in a thread pool; connections cross threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def create(self, record: MachineRecord) -> int:
        """Insert a new record and return its assigned database ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _machines.insert().values(
                    machine_name=record.machine_name,
                    machine_type=record.machine_type,
                    purpose=record.purpose,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get(self, record_id: int) -> Optional[MachineRecord]:
        """Fetch a single record by ID. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_machines.select().where(_machines.c.id == record_id)).fetchone()
        return _row_to_record(row) if row is not None else None

    def list_all(self) -> list[MachineRecord]:
        """Return every record in insertion order, complete or not."""
        with self.engine.connect() as conn:
            rows = conn.execute(_machines.select().order_by(_machines.c.id)).fetchall()
        return [_row_to_record(r) for r in rows]

    def list_by_type(self, machine_type: str) -> list[MachineRecord]:
        """Return records whose machine_type matches exactly, in insertion order."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _machines.select().where(_machines.c.machine_type == machine_type).order_by(_machines.c.id)
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def update_purpose(self, record_id: int, purpose: str) -> bool:
        """Replace the purpose field. Returns False if record_id was not found.

        rowcount counts matched rows, so writing an unchanged purpose still
        reports True.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_machines.update().where(_machines.c.id == record_id).values(purpose=purpose))
            conn.commit()
        return result.rowcount > 0

    def delete(self, record_id: int) -> bool:
        """Remove a record. Returns False if record_id was not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_machines.delete().where(_machines.c.id == record_id))
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_record(row) -> MachineRecord:
    return MachineRecord(
        id=str(row.id),
        machine_name=row.machine_name or "",
        machine_type=row.machine_type or "",
        purpose=row.purpose or "",
        created_at=row.created_at,
    )
