"""
Repository pattern for data access.

Handles the catalog, attachment and case tables. Every call opens its own
connection and closes it before returning; sqlite failures surface as
DataAccessError.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence

from .db import DEFAULT_DB_PATH, get_connection
from .models import AttachedEntry, Case, CaseStatus, CatalogEntry
from case_configs.core.errors import DataAccessError, NotFoundError

logger = logging.getLogger(__name__)

_CATALOG_COLUMNS = "id, label, category, amount, created_at"
_ATTACHED_COLUMNS = "id, case_id, label, category, amount, created_at"


@contextmanager
def _connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """Yield a connection, translating sqlite errors into DataAccessError.

    Uncommitted work is rolled back on any failure.
    """
    try:
        conn = get_connection(db_path)
    except sqlite3.Error as e:
        raise DataAccessError(f"Could not open database {db_path}: {e}") from e
    try:
        yield conn
    except sqlite3.Error as e:
        conn.rollback()
        raise DataAccessError(str(e)) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _placeholders(values: Sequence[Any]) -> str:
    return ", ".join("?" for _ in values)


def _row_to_catalog_entry(row: tuple) -> CatalogEntry:
    return CatalogEntry(
        id=row[0],
        label=row[1],
        category=row[2],
        amount=row[3],
        created_at=datetime.fromisoformat(row[4])
    )


def _row_to_attached_entry(row: tuple) -> AttachedEntry:
    return AttachedEntry(
        id=row[0],
        case_id=row[1],
        label=row[2],
        category=row[3],
        amount=row[4],
        created_at=datetime.fromisoformat(row[5])
    )


class CaseConfigRepository:
    """Repository for catalog entries, attached entries and cases.

    This class is the record store collaborator used by the attach and
    submit operations and by both list views.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    # Cases

    def get_case(self, case_id: int) -> Optional[Case]:
        """Fetch a case by id, or None when it does not exist."""
        with _connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT id, status, subject FROM case_record WHERE id = ?",
                (case_id,)
            ).fetchone()
        if row is None:
            return None
        return Case(id=row[0], status=CaseStatus(row[1]), subject=row[2])

    def create_case(self, subject: Optional[str] = None) -> Case:
        """Insert a new open case and return it."""
        with _connect(self.db_path) as conn:
            cursor = conn.execute(
                "INSERT INTO case_record (status, subject, created_at) VALUES (?, ?, ?)",
                (CaseStatus.OPEN.value, subject, datetime.now().isoformat())
            )
            conn.commit()
            case_id = cursor.lastrowid
        logger.debug("Created case %s", case_id)
        return Case(id=case_id, status=CaseStatus.OPEN, subject=subject)

    def update_case_status(self, case_id: int, status: CaseStatus) -> None:
        """Set the status of an existing case.

        Raises:
            NotFoundError: If no case has the given id
        """
        with _connect(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE case_record SET status = ? WHERE id = ?",
                (status.value, case_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise NotFoundError(f"Case {case_id} not found")
        logger.debug("Case %s status set to %s", case_id, status.value)

    # Catalog

    def count_catalog_entries(self) -> int:
        """Count every catalog entry."""
        with _connect(self.db_path) as conn:
            row = conn.execute("SELECT COUNT(*) FROM catalog_entry").fetchone()
        return row[0] or 0

    def list_catalog_entries(self, limit: int, offset: int = 0) -> List[CatalogEntry]:
        """Fetch one page of catalog entries, oldest first.

        Args:
            limit: Maximum number of entries to return
            offset: Number of entries to skip

        Returns:
            Catalog entries ordered by creation time, then id
        """
        with _connect(self.db_path) as conn:
            cursor = conn.execute(
                f"SELECT {_CATALOG_COLUMNS} FROM catalog_entry "
                "ORDER BY created_at ASC, id ASC LIMIT ? OFFSET ?",
                (limit, offset)
            )
            return [_row_to_catalog_entry(row) for row in cursor.fetchall()]

    def get_catalog_entries(self, entry_ids: Sequence[int]) -> List[CatalogEntry]:
        """Resolve catalog ids to entries, keeping the requested order.

        Unknown ids are skipped. An id requested twice is returned twice.
        """
        if not entry_ids:
            return []
        with _connect(self.db_path) as conn:
            cursor = conn.execute(
                f"SELECT {_CATALOG_COLUMNS} FROM catalog_entry "
                f"WHERE id IN ({_placeholders(entry_ids)})",
                list(entry_ids)
            )
            by_id = {row[0]: _row_to_catalog_entry(row) for row in cursor.fetchall()}
        return [by_id[entry_id] for entry_id in entry_ids if entry_id in by_id]

    def insert_catalog_entries(self, entries: Sequence[Dict[str, Any]]) -> List[int]:
        """Insert catalog entries atomically.

        Each entry is a mapping with ``label``, ``category``, ``amount`` and
        an optional ``created_at`` datetime.

        Returns:
            The ids of the inserted entries, in input order
        """
        if not entries:
            return []
        ids = []
        with _connect(self.db_path) as conn:
            conn.execute("BEGIN TRANSACTION")
            for entry in entries:
                created_at = entry.get("created_at") or datetime.now()
                cursor = conn.execute(
                    "INSERT INTO catalog_entry (label, category, amount, created_at) "
                    "VALUES (?, ?, ?, ?)",
                    (entry["label"], entry["category"], float(entry["amount"]),
                     created_at.isoformat())
                )
                ids.append(cursor.lastrowid)
            conn.commit()
        return ids

    # Attached entries

    def get_attached_entries(self, case_id: int) -> List[AttachedEntry]:
        """Fetch every entry attached to a case, oldest first."""
        with _connect(self.db_path) as conn:
            cursor = conn.execute(
                f"SELECT {_ATTACHED_COLUMNS} FROM attached_entry "
                "WHERE case_id = ? ORDER BY created_at ASC, id ASC",
                (case_id,)
            )
            return [_row_to_attached_entry(row) for row in cursor.fetchall()]

    def get_attached_entries_by_ids(self, attached_ids: Sequence[int]) -> List[AttachedEntry]:
        """Resolve attached entry ids, keeping the requested order.

        Unknown ids are skipped.
        """
        if not attached_ids:
            return []
        with _connect(self.db_path) as conn:
            cursor = conn.execute(
                f"SELECT {_ATTACHED_COLUMNS} FROM attached_entry "
                f"WHERE id IN ({_placeholders(attached_ids)})",
                list(attached_ids)
            )
            by_id = {row[0]: _row_to_attached_entry(row) for row in cursor.fetchall()}
        return [by_id[attached_id] for attached_id in attached_ids if attached_id in by_id]

    def insert_attached_entries(
        self,
        case_id: int,
        entries: Sequence[CatalogEntry],
        created_at: Optional[datetime] = None
    ) -> List[int]:
        """Copy catalog entries onto a case in a single transaction.

        Either every entry is inserted or none is. A label already attached
        to the case violates the (case_id, label) constraint and rolls the
        whole batch back.

        Args:
            case_id: Owning case
            entries: Catalog entries whose label, category and amount are copied
            created_at: Timestamp for the new rows (defaults to now)

        Returns:
            The ids of the new attached entries, in input order

        Raises:
            DataAccessError: If any insert fails
        """
        if not entries:
            return []
        timestamp = (created_at or datetime.now()).isoformat()
        ids = []
        with _connect(self.db_path) as conn:
            conn.execute("BEGIN TRANSACTION")
            for entry in entries:
                cursor = conn.execute(
                    "INSERT INTO attached_entry "
                    "(case_id, label, category, amount, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (case_id, entry.label, entry.category, entry.amount, timestamp)
                )
                ids.append(cursor.lastrowid)
            conn.commit()
        return ids


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the case, catalog and attachment tables if they don't exist.

    Args:
        db_path: Path to SQLite database file
    """
    with _connect(db_path) as conn:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS case_record (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                status TEXT NOT NULL DEFAULT 'Open'
                    CHECK (status IN ('Open', 'Closed')),
                subject TEXT,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS catalog_entry (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                label TEXT NOT NULL,
                category TEXT NOT NULL,
                amount REAL NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS attached_entry (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                case_id INTEGER NOT NULL REFERENCES case_record(id),
                label TEXT NOT NULL,
                category TEXT NOT NULL,
                amount REAL NOT NULL,
                created_at TEXT NOT NULL,
                UNIQUE (case_id, label)
            );
        """)
        conn.commit()
