from __future__ import annotations

from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    active = conn_factory.active_connection()
    if active is not None:
        # Inside DatabaseConnection.transaction(): the owner commits/rolls back.
        cur = active.cursor(dictionary=dictionary)
        try:
            yield active, cur
        finally:
            cur.close()
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def lock_clause(for_update: bool) -> str:
    return " FOR UPDATE" if for_update else ""


def yn(value: bool) -> str:
    return "Y" if value else "N"


def from_yn(value: Any) -> bool:
    return str(value or "N").upper() == "Y"


def normalize_mysql_time(value: Any) -> Optional[time]:
    """TIME columns come back as `time`, `timedelta` or 'HH:MM[:SS]' depending on the connector build."""

    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return time(seconds // 3600, (seconds % 3600) // 60, seconds % 60)
    if isinstance(value, str):
        parts = [int(p) for p in value.strip().split(":") if p]
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        return time(*parts[:3])
    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
