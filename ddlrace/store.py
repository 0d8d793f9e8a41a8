"""The database collaborator the workers and the schema mutator share."""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Protocol, Sequence

import pymysql

from .config import ConnectionSettings, SetupSettings
from .errors import SetupError, StoreError
from .statements import build_create_table_sql, build_set_global_sql, qualified_table, quote_identifier


class Store(Protocol):
    """Anything that can run one parameterized statement atomically.

    Implementations must be safe to call from many threads at once and raise
    :class:`StoreError` when the engine rejects a statement.
    """

    def execute(self, statement: str, args: Sequence[object] = ()) -> int:
        ...


class ManagedStore(Store, Protocol):
    """A store that can also verify connectivity and bootstrap the race table."""

    def ping(self) -> None:
        ...

    def setup(self, database: str, settings: SetupSettings) -> None:
        ...


class MySQLStore:
    """PyMySQL-backed store with one autocommit connection per calling thread."""

    def __init__(self, settings: ConnectionSettings) -> None:
        self.settings = settings
        self._local = threading.local()
        self._lock = threading.Lock()
        self._connections: List[pymysql.connections.Connection] = []

    def _connect(self) -> pymysql.connections.Connection:
        cfg = self.settings
        conn = pymysql.connect(
            host=cfg.host,
            port=cfg.port,
            user=cfg.user,
            password=cfg.password or "",
            charset="utf8mb4",
            autocommit=True,
            connect_timeout=cfg.connect_timeout,
            read_timeout=cfg.read_timeout,
            write_timeout=cfg.write_timeout,
        )
        with self._lock:
            self._connections = [c for c in self._connections if c.open]
            self._connections.append(conn)
        return conn

    def _connection(self) -> pymysql.connections.Connection:
        conn: Optional[pymysql.connections.Connection] = getattr(self._local, "conn", None)
        if conn is None or not conn.open:
            try:
                conn = self._connect()
            except pymysql.MySQLError as exc:
                raise StoreError.from_exception(exc) from exc
            self._local.conn = conn
        return conn

    def execute(self, statement: str, args: Sequence[object] = ()) -> int:
        conn = self._connection()
        try:
            with conn.cursor() as cur:
                return cur.execute(statement, tuple(args) if args else None)
        except pymysql.MySQLError as exc:
            raise StoreError.from_exception(exc) from exc

    def ping(self) -> None:
        conn = self._connection()
        try:
            conn.ping(reconnect=False)
        except pymysql.MySQLError as exc:
            raise StoreError.from_exception(exc) from exc

    def setup(self, database: str, settings: SetupSettings) -> None:
        """Create the database and a fresh race table, then tune DDL globals."""
        table = qualified_table(database, settings.table)
        steps = [
            ("create database", f"CREATE DATABASE IF NOT EXISTS {quote_identifier(database)}"),
        ]
        if settings.recreate_table:
            steps.append(("drop existing table", f"DROP TABLE IF EXISTS {table}"))
        steps.append(
            (
                "create table",
                build_create_table_sql(
                    database,
                    settings.table,
                    settings.padding_size,
                    if_not_exists=not settings.recreate_table,
                ),
            )
        )
        for name, statement in build_set_global_sql(settings.global_variables).items():
            steps.append((f"set variable {name}", statement))

        for label, statement in steps:
            try:
                self.execute(statement)
            except StoreError as exc:
                raise SetupError(f"failed to {label}: {exc}") from exc
            logging.debug("setup: %s", statement)
        logging.info("Database %s and table %s ready", database, table)

    def close(self) -> None:
        with self._lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            try:
                conn.close()
            except pymysql.MySQLError:
                logging.debug("Connection already closed", exc_info=True)
