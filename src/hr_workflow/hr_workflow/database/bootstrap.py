from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import mysql.connector
from werkzeug.security import generate_password_hash

logger = logging.getLogger(__name__)

# username -> demo password; rows themselves come from seed.sql
DEMO_PASSWORDS = {
    "admin": "admin123",
    "hr.manager": "hr123",
    "fin.manager": "fin123",
    "gm": "gm123",
    "dept.manager": "manager123",
    "proj.manager": "manager123",
    "employee": "staff123",
}


@dataclass(frozen=True)
class DBTarget:
    host: str
    port: int
    user: str
    password: str
    database: str


def _as_target(db_config: dict) -> DBTarget:
    return DBTarget(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        database=str(db_config.get("database", "hr_workflow_db")),
    )


def _connect(target: DBTarget, *, database: Optional[str] = None):
    return mysql.connector.connect(
        host=target.host,
        port=target.port,
        user=target.user,
        password=target.password,
        database=database,
        use_pure=True,
    )


def _strip_create_db_and_use(sql: str) -> str:
    # Scripts must not pin a database name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside quoted strings."""
    buf: list[str] = []
    quote: Optional[str] = None
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue
        if ch == "\\":
            buf.append(ch)
            escape = True
            continue
        if ch in ("'", '"'):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
            buf.append(ch)
            continue
        if ch == ";" and quote is None:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(db_config: dict, path: str | Path) -> int:
    target = _as_target(db_config)
    sql = _strip_comments(_strip_create_db_and_use(Path(path).read_text(encoding="utf-8")))

    conn = _connect(target, database=target.database)
    count = 0
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    target = _as_target(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _run_script(db_config, schema_path)
    logger.info("Applied %s statements from %s", count, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _run_script(db_config, seed_path)
    logger.info("Applied %s statements from %s", count, seed_path)


def ensure_demo_employees(db_config: dict) -> int:
    """Give the seeded demo accounts real password hashes. Returns rows updated."""
    target = _as_target(db_config)
    conn = _connect(target, database=target.database)
    updated = 0
    try:
        cur = conn.cursor()
        for username, password in DEMO_PASSWORDS.items():
            cur.execute(
                "UPDATE employees SET password_hash=%s WHERE username=%s",
                (generate_password_hash(password), username),
            )
            if cur.rowcount == 0:
                logger.warning("Demo account %s is missing from seed data", username)
            updated += cur.rowcount
        conn.commit()
    finally:
        conn.close()
    return updated


def list_tables(db_config: dict) -> list[str]:
    target = _as_target(db_config)
    conn = _connect(target, database=target.database)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
