from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import ContextManager, Iterator, Optional, Protocol

import mysql.connector


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class TransactionManager(Protocol):
    """Anything that can scope several repository calls into one atomic unit."""

    def transaction(self) -> ContextManager:
        raise NotImplementedError


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation, except inside
    `transaction()` where one connection is pinned to the current thread and
    shared by every repository call until commit/rollback.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            autocommit=False,
        )

    def active_connection(self):
        return getattr(self._local, "conn", None)

    @contextmanager
    def transaction(self) -> Iterator[object]:
        active = self.active_connection()
        if active is not None:
            # Nested call joins the outer transaction.
            yield active
            return

        conn = self.connect()
        self._local.conn = conn
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()
