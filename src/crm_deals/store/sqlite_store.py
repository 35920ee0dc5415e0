"""SQLite-backed deal store: deals, deal contacts and import run history."""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from crm_deals.models.deal import TransformResult

logger = logging.getLogger(__name__)

_LIST_COLUMNS = ("pain_points", "next_steps", "blockers", "opportunities", "tags")
_BOOL_COLUMNS = ("is_primary", "is_decision_maker")


class StoreError(RuntimeError):
    """Raised when the database rejects a batch (constraint or schema violation)."""


class ImportRun:
    """Record of one import into the store."""

    def __init__(
        self,
        id: int,
        platform: str,
        account_id: str,
        started_at: datetime,
        finished_at: Optional[datetime],
        status: str,
        deals_inserted: int,
        contacts_inserted: int,
    ):
        self.id = id
        self.platform = platform
        self.account_id = account_id
        self.started_at = started_at
        self.finished_at = finished_at
        self.status = status
        self.deals_inserted = deals_inserted
        self.contacts_inserted = contacts_inserted


def _insert_sql(table: str, row: dict[str, Any]) -> tuple[str, list[Any]]:
    columns = list(row.keys())
    placeholders = ", ".join("?" for _ in columns)
    sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
    return sql, [row[c] for c in columns]


def _encode(row: dict[str, Any]) -> dict[str, Any]:
    out = dict(row)
    for col in _LIST_COLUMNS:
        if col in out:
            out[col] = json.dumps(out[col] or [])
    for col in _BOOL_COLUMNS:
        if col in out:
            out[col] = int(bool(out[col]))
    return out


def _decode(row: sqlite3.Row) -> dict[str, Any]:
    out = dict(row)
    for col in _LIST_COLUMNS:
        if col in out:
            out[col] = json.loads(out[col] or "[]")
    for col in _BOOL_COLUMNS:
        if col in out:
            out[col] = bool(out[col])
    return out


class DealStore:
    """
    SQLite store mirroring the deals / deal_contacts tables.
    Inserts are append-only: importing the same CRM data twice yields duplicate rows.
    """

    def __init__(self, db_path: str | Path = "crm_deals.db"):
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _ensure_schema(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        with self._connection() as conn:
            conn.executescript(schema_path.read_text())

    def insert_result(self, result: TransformResult) -> tuple[int, int]:
        """
        Insert deals, then contacts, in one transaction. Returns (deals, contacts) inserted.
        Raises StoreError and rolls back everything if any row is rejected.
        """
        conn = self._connection()
        try:
            with conn:
                for deal in result.deals:
                    conn.execute(*_insert_sql("deals", _encode(deal.to_row())))
                for contact in result.deal_contacts:
                    conn.execute(*_insert_sql("deal_contacts", _encode(contact.to_row())))
        except sqlite3.Error as e:
            logger.error("Deal insertion failed: %s", e)
            raise StoreError(f"Deal insertion failed: {e}") from e
        finally:
            conn.close()
        logger.info("Inserted %d deals and %d deal contacts", len(result.deals), len(result.deal_contacts))
        return len(result.deals), len(result.deal_contacts)

    def get_deals(self, account_id: Optional[str] = None, stage: Optional[str] = None) -> list[dict[str, Any]]:
        """Return deal rows, optionally filtered by account and stage."""
        clauses, params = [], []
        if account_id:
            clauses.append("account_id = ?")
            params.append(account_id)
        if stage:
            clauses.append("stage = ?")
            params.append(stage)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connection() as conn:
            rows = conn.execute(f"SELECT * FROM deals{where} ORDER BY created_at DESC", params).fetchall()
        return [_decode(r) for r in rows]

    def get_contacts(self, deal_id: Optional[str] = None) -> list[dict[str, Any]]:
        """Return contact rows, optionally for one deal."""
        with self._connection() as conn:
            if deal_id:
                rows = conn.execute(
                    "SELECT * FROM deal_contacts WHERE deal_id = ? ORDER BY is_primary DESC, created_at",
                    (deal_id,),
                ).fetchall()
            else:
                rows = conn.execute("SELECT * FROM deal_contacts ORDER BY created_at").fetchall()
        return [_decode(r) for r in rows]

    def get_deals_with_contacts(self, account_id: Optional[str] = None) -> list[dict[str, Any]]:
        """Deal rows with their contacts nested under deal_contacts."""
        deals = self.get_deals(account_id=account_id)
        by_deal: dict[str, list[dict[str, Any]]] = {}
        for contact in self.get_contacts():
            by_deal.setdefault(contact["deal_id"], []).append(contact)
        for deal in deals:
            deal["deal_contacts"] = by_deal.get(deal["id"], [])
        return deals

    def count(self, table: str = "deals") -> int:
        """Row count for deals or deal_contacts."""
        if table not in ("deals", "deal_contacts"):
            raise ValueError(f"Unknown table: {table}")
        with self._connection() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    def start_run(self, platform: str, account_id: str) -> ImportRun:
        """Record start of an import run. Returns ImportRun with id."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            cursor = conn.execute(
                "INSERT INTO import_runs (platform, account_id, started_at, status) VALUES (?, ?, ?, 'running')",
                (platform, account_id, now),
            )
            run_id = cursor.lastrowid
        return ImportRun(
            id=run_id or 0,
            platform=platform,
            account_id=account_id,
            started_at=datetime.fromisoformat(now),
            finished_at=None,
            status="running",
            deals_inserted=0,
            contacts_inserted=0,
        )

    def finish_run(
        self,
        run_id: int,
        deals_inserted: int,
        contacts_inserted: int,
        status: str = "completed",
    ) -> None:
        """Record completion of an import run."""
        now = datetime.now(timezone.utc).isoformat()
        with self._connection() as conn:
            conn.execute(
                """
                UPDATE import_runs SET finished_at = ?, status = ?, deals_inserted = ?, contacts_inserted = ?
                WHERE id = ?
                """,
                (now, status, deals_inserted, contacts_inserted, run_id),
            )

    def get_runs(self) -> list[ImportRun]:
        """Return import runs, most recent first."""
        with self._connection() as conn:
            rows = conn.execute("SELECT * FROM import_runs ORDER BY id DESC").fetchall()
        return [
            ImportRun(
                id=r["id"],
                platform=r["platform"],
                account_id=r["account_id"],
                started_at=datetime.fromisoformat(r["started_at"]),
                finished_at=datetime.fromisoformat(r["finished_at"]) if r["finished_at"] else None,
                status=r["status"],
                deals_inserted=r["deals_inserted"],
                contacts_inserted=r["contacts_inserted"],
            )
            for r in rows
        ]


def insert_transformed_data(result: TransformResult, store: DealStore) -> tuple[int, int]:
    """Persist a transform result; deals go in before the contacts that reference them."""
    logger.info("Starting database insertion...")
    return store.insert_result(result)
