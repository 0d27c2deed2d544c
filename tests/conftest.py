from __future__ import annotations

import sqlite3
from collections.abc import Generator
from pathlib import Path

import pytest

here = Path(__file__).parent
root_path = here.parent


class SqliteTransaction:
    """Minimal transaction handle for sqlite3 connections."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection

    def commit(self) -> None:
        self.connection.commit()

    def rollback(self) -> None:
        self.connection.rollback()


@pytest.fixture
def sqlite_connection() -> Generator[sqlite3.Connection, None, None]:
    connection = sqlite3.connect(":memory:")
    connection.execute("create table users (id integer primary key, name text not null, email text)")
    connection.commit()
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture
def sqlite_transaction(sqlite_connection: sqlite3.Connection) -> SqliteTransaction:
    return SqliteTransaction(sqlite_connection)
