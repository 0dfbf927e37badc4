"""Test doubles and builders for the database collaborators."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from indexprof.core.exceptions import QueryExecutionError
from indexprof.models.index_usage_models import Index, Sample


class FakeConnection:
    """Records queries and answers them from a handler"""

    def __init__(self, handler: Callable[[str, Dict[str, Any]], List[Dict[str, Any]]]):
        self._handler = handler
        self.calls: List[tuple] = []
        self.is_connected = True

    def execute_query(self, query: str, params: Optional[Dict[str, Any]] = None, timeout=None):
        self.calls.append((query, dict(params or {})))
        return self._handler(query, params or {})


class FakeCatalog:
    """Index catalog backed by a dict of table -> index names"""

    def __init__(self, tables: Dict[str, Iterable[str]], fail_on: Iterable[str] = ()):
        self._tables = {name: list(indexes) for name, indexes in tables.items()}
        self._fail_on = set(fail_on)
        self._lock = threading.Lock()
        self.lookups: List[tuple] = []

    def list_indexes(self, schema: str, table: str) -> List[Index]:
        with self._lock:
            self.lookups.append((schema, table))
        if table in self._fail_on:
            raise QueryExecutionError("catalog unavailable", query="TIDB_INDEXES")
        return [Index(table, name) for name in self._tables.get(table, [])]

    def lookup_count(self, table: str) -> int:
        return sum(1 for _, t in self.lookups if t == table)


def make_sample(
    tables: Iterable[str] = ("t",),
    indexes: Iterable[str] = (),
    count: int = 1,
    digest: str = "d0",
    digest_text: str = "select * from `t`",
) -> Sample:
    """Sample from 'table:index' strings"""
    used = []
    for item in indexes:
        table, _, name = item.partition(":")
        used.append(Index(table, name))
    return Sample(
        digest_text=digest_text,
        digest=digest,
        table_names=tuple(tables),
        used_indexes=tuple(used),
        count=count,
        first_seen=datetime(2022, 8, 11, 17, 39, 9),
        last_seen=datetime(2022, 8, 11, 17, 40, 0),
    )


def summary_row(**overrides: Any) -> Dict[str, Any]:
    """One row shaped like the statement summary query result"""
    row = {
        "digest_text": "select * from `t` where `a` = ?",
        "digest": "e5796985ccafe2f7",
        "exec_count": 3,
        "first_seen": datetime(2022, 8, 11, 17, 39, 9),
        "last_seen": datetime(2022, 8, 11, 17, 45, 0),
        "index_names": "t:a",
        "table_names": "test.t",
        "plan": None,
    }
    row.update(overrides)
    return row


__all__ = [
    "FakeConnection",
    "FakeCatalog",
    "make_sample",
    "summary_row",
]
