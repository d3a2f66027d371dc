"""SQLiteDatabase transactions."""
from __future__ import annotations

import pytest


@pytest.fixture
def table(db):
    db.executescript("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT)")
    return db


def test_commit_on_success(table) -> None:
    with table.transaction():
        table.execute("INSERT INTO t (v) VALUES (?)", ("a",))
    assert table.fetchall("SELECT v FROM t") == [{"v": "a"}]
    assert not table.in_transaction


def test_nested_blocks_join_the_outer_transaction(table) -> None:
    with pytest.raises(ValueError):
        with table.transaction():
            table.execute("INSERT INTO t (v) VALUES (?)", ("outer",))
            with table.transaction():
                table.execute("INSERT INTO t (v) VALUES (?)", ("inner",))
            assert table.in_transaction
            raise ValueError("abort")
    assert table.fetchall("SELECT * FROM t") == []


def test_fetchone_returns_dict_or_none(table) -> None:
    assert table.fetchone("SELECT * FROM t WHERE id = ?", (1,)) is None
    table.execute("INSERT INTO t (v) VALUES ('x')")
    assert table.fetchone("SELECT v FROM t")["v"] == "x"
