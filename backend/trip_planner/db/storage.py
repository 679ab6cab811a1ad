# backend/trip_planner/db/storage.py

import sqlite3
import json
import threading
import time
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple
from uuid import uuid4

from trip_planner.core.config_loader import settings
from trip_planner.core.logger import get_logger
from trip_planner.utils.time_utils import utc_timestamp

log = get_logger("storage")

# Retry configuration
MAX_RETRIES = 5
RETRY_DELAY = 0.1  # 100ms


# ----------------------------------------------------------------------
# TABLE LAYOUT
# ----------------------------------------------------------------------
# columns per table (id is always first); list/dict fields are JSON text
TABLES: Dict[str, List[str]] = {
    "programs": [
        "id", "user_id", "title", "date", "start_time", "end_time", "address",
        "description", "notes", "ai_suggestions", "ai_faq", "created_at", "updated_at",
    ],
    "travel_profile": [
        "id", "user_id", "travelers", "dietary_restrictions", "mobility_notes", "pace",
        "budget_level", "preferred_categories", "avoid_topics", "interests",
        "transportation_preference", "weather_sensitivity", "morning_preference",
        "group_dynamics", "special_occasions", "notes", "created_at", "updated_at",
    ],
    "trip_config": [
        "id", "user_id", "start_date", "end_date", "hotel_address", "destination",
        "created_at", "updated_at",
    ],
    "program_chat_messages": ["id", "program_id", "user_id", "role", "content", "created_at"],
    "global_chat_messages": ["id", "user_id", "role", "content", "created_at"],
}

JSON_COLUMNS: Dict[str, set] = {
    "programs": {"ai_faq"},
    "travel_profile": {
        "travelers", "dietary_restrictions", "preferred_categories",
        "avoid_topics", "interests", "special_occasions",
    },
}

UNIQUE_COLUMNS: Dict[str, List[str]] = {
    "travel_profile": ["user_id"],
    "trip_config": ["user_id"],
}

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_programs_user_date ON programs(user_id, date);",
    "CREATE INDEX IF NOT EXISTS idx_program_msgs ON program_chat_messages(program_id, user_id);",
    "CREATE INDEX IF NOT EXISTS idx_global_msgs_user ON global_chat_messages(user_id);",
]


class StorageError(Exception):
    pass


class SQLiteStorage:
    """
    Keyed record store over SQLite.

    Every operation takes a table name plus plain dicts; column names are
    checked against TABLES so filters can never inject SQL.
    """

    def __init__(self, db_path: Optional[str] = None):
        path = db_path or settings.db_path
        if path != ":memory:":
            Path(path).resolve().parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(
            path,
            check_same_thread=False,
            timeout=30.0
        )
        self.conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        if path != ":memory:":
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.execute("PRAGMA synchronous=NORMAL")
        self.conn.execute("PRAGMA busy_timeout=30000")
        self._init_tables()

    def _execute_with_retry(self, operation, *args, **kwargs):
        """Execute database operation with retry logic for handling locked database"""
        for attempt in range(MAX_RETRIES):
            try:
                with self._lock:
                    return operation(*args, **kwargs)
            except sqlite3.OperationalError as e:
                if "locked" in str(e).lower() and attempt < MAX_RETRIES - 1:
                    time.sleep(RETRY_DELAY * (attempt + 1))
                    continue
                raise

    # ----------------------------------------------------------------------
    # CREATE TABLES
    # ----------------------------------------------------------------------
    def _init_tables(self):
        cur = self.conn.cursor()
        for table, columns in TABLES.items():
            unique = set(UNIQUE_COLUMNS.get(table, []))
            defs = ["id TEXT PRIMARY KEY"]
            for column in columns[1:]:
                defs.append(f"{column} TEXT UNIQUE" if column in unique else f"{column} TEXT")
            cur.execute(f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(defs)});")
        for statement in INDEXES:
            cur.execute(statement)
        self.conn.commit()

    # ----------------------------------------------------------------------
    # ENCODING
    # ----------------------------------------------------------------------
    def _columns(self, table: str) -> List[str]:
        if table not in TABLES:
            raise StorageError(f"Unknown table: {table}")
        return TABLES[table]

    def _check_fields(self, table: str, fields) -> None:
        allowed = set(self._columns(table))
        unknown = [f for f in fields if f not in allowed]
        if unknown:
            raise StorageError(f"Unknown column(s) for {table}: {', '.join(unknown)}")

    def _encode(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        json_cols = JSON_COLUMNS.get(table, set())
        encoded = {}
        for key, value in record.items():
            if key in json_cols and value is not None:
                encoded[key] = json.dumps(value, ensure_ascii=False)
            else:
                encoded[key] = value
        return encoded

    def _decode(self, table: str, row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
        if row is None:
            return None
        item = dict(row)
        for key in JSON_COLUMNS.get(table, set()):
            if item.get(key):
                item[key] = json.loads(item[key])
        return item

    def _where(self, table: str, filters: Optional[Dict[str, Any]]) -> Tuple[str, list]:
        if not filters:
            return "", []
        self._check_fields(table, filters.keys())
        clauses, params = [], []
        for key, value in filters.items():
            if value is None:
                clauses.append(f"{key} IS NULL")
            else:
                clauses.append(f"{key} = ?")
                params.append(value)
        return " WHERE " + " AND ".join(clauses), params

    # ----------------------------------------------------------------------
    # READ
    # ----------------------------------------------------------------------
    def get(self, table: str, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        where, params = self._where(table, filters)
        with self._lock:
            cur = self.conn.cursor()
            cur.execute(f"SELECT * FROM {table}{where} LIMIT 1", params)
            return self._decode(table, cur.fetchone())

    def list(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[List[Tuple[str, str]]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """`order_by` is a list of (column, "asc"|"desc"); insertion order breaks ties."""
        where, params = self._where(table, filters)

        order_terms = []
        last_direction = "ASC"
        for column, direction in order_by or []:
            self._check_fields(table, [column])
            last_direction = "DESC" if direction.lower() == "desc" else "ASC"
            order_terms.append(f"{column} {last_direction}")
        order_terms.append(f"rowid {last_direction}")

        sql = f"SELECT * FROM {table}{where} ORDER BY {', '.join(order_terms)}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        with self._lock:
            cur = self.conn.cursor()
            cur.execute(sql, params)
            return [self._decode(table, r) for r in cur.fetchall()]

    # ----------------------------------------------------------------------
    # WRITE
    # ----------------------------------------------------------------------
    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        columns = self._columns(table)
        row = dict(record)
        row.setdefault("id", str(uuid4()))
        now = utc_timestamp()
        if "created_at" in columns:
            row.setdefault("created_at", now)
        if "updated_at" in columns:
            row.setdefault("updated_at", now)
        self._check_fields(table, row.keys())

        def _insert():
            encoded = self._encode(table, row)
            keys = list(encoded.keys())
            placeholders = ", ".join("?" for _ in keys)
            self.conn.execute(
                f"INSERT INTO {table} ({', '.join(keys)}) VALUES ({placeholders})",
                [encoded[k] for k in keys],
            )
            self.conn.commit()

        self._execute_with_retry(_insert)
        log.debug(f"Inserted {table} row {row['id']}")
        return self.get(table, {"id": row["id"]})

    def update(self, table: str, record_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        patch = {k: v for k, v in patch.items() if k != "id"}
        if "updated_at" in self._columns(table):
            patch["updated_at"] = utc_timestamp()
        self._check_fields(table, patch.keys())

        def _update():
            encoded = self._encode(table, patch)
            assignments = ", ".join(f"{k} = ?" for k in encoded)
            cur = self.conn.cursor()
            cur.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?",
                [*encoded.values(), record_id],
            )
            self.conn.commit()
            return cur.rowcount

        if not self._execute_with_retry(_update):
            log.debug(f"Update on {table} matched no row for id={record_id}")
            return None
        return self.get(table, {"id": record_id})

    def delete(self, table: str, record_id: str) -> bool:
        self._columns(table)

        def _delete():
            cur = self.conn.cursor()
            cur.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
            self.conn.commit()
            return cur.rowcount

        deleted = bool(self._execute_with_retry(_delete))
        log.debug(f"Delete {table} id={record_id} -> {deleted}")
        return deleted

    def upsert(self, table: str, record: Dict[str, Any], conflict_key: str = "id") -> Dict[str, Any]:
        self._check_fields(table, [conflict_key])
        if record.get(conflict_key) is None:
            raise StorageError(f"upsert on {table} requires a value for {conflict_key}")

        with self._lock:
            existing = self.get(table, {conflict_key: record[conflict_key]})
            if existing is None:
                return self.insert(table, record)

            patch = {k: v for k, v in record.items() if k not in ("id", conflict_key, "created_at")}
            return self.update(table, existing["id"], patch)

    def close(self):
        self.conn.close()
