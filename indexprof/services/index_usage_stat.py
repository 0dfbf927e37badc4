"""
Index Usage Aggregator

Folds samples into a table -> "table:index" -> count mapping. The first time a
table shows up its complete index list is fetched from the catalog and every
index starts at zero, so indexes that no sample touched still appear in the
report.

Thread-safe: one reader/writer lock guards both the counters and the
full-scan list. Catalog lookups run outside it, one at a time per table.
"""

import threading
from typing import Dict, Iterable, List, Tuple, TYPE_CHECKING

from indexprof.core.logger import get_logger
from indexprof.core.rwlock import ReadWriteLock
from indexprof.models.index_usage_models import (
    Sample,
    UsageReport,
    IndexCounter,
    TablesIndexCounter,
)

if TYPE_CHECKING:
    from indexprof.services.index_catalog_service import IndexCatalogService

logger = get_logger('services.index_usage_stat')


class IndexUsageStat:
    """
    Per-run usage accumulator

    Usage:
        stat = IndexUsageStat("test", IndexCatalogService(connection))
        for sample in source.get_samples("test"):
            stat.put(sample)
        report = stat.snapshot()
    """

    def __init__(self, schema: str, catalog: 'IndexCatalogService'):
        if not schema:
            raise ValueError("schema must not be empty")
        self._schema = schema
        self._catalog = catalog
        self._lock = ReadWriteLock()
        self._counters: TablesIndexCounter = {}
        self._full_scan: List[Sample] = []
        self._fill_guard = threading.Lock()
        self._fill_locks: Dict[str, threading.Lock] = {}
        self._failed_lookups: Dict[str, Exception] = {}

    @property
    def schema(self) -> str:
        return self._schema

    def known_tables(self) -> List[str]:
        with self._lock.read_locked():
            return sorted(self._counters)

    def fill_table(self, table: str) -> bool:
        """
        Make sure ``table`` has a zero-initialized counter for every catalog index

        Idempotent. Returns True when a catalog lookup was made. Lookups for
        the same table are serialized, so each table is queried at most once;
        lookups for different tables run in parallel, outside the counter lock.

        Raises:
            Whatever the catalog raises; the table is then left unfilled and
            later calls re-raise the same error without querying again.
        """
        with self._lock.read_locked():
            if table in self._counters:
                return False

        with self._fill_guard:
            table_lock = self._fill_locks.setdefault(table, threading.Lock())

        with table_lock:
            failure = self._failed_lookups.get(table)
            if failure is not None:
                raise failure
            with self._lock.read_locked():
                if table in self._counters:
                    return False

            try:
                indexes = self._catalog.list_indexes(self._schema, table)
            except Exception as e:
                self._failed_lookups[table] = e
                raise
            fresh: IndexCounter = {str(index): 0 for index in indexes}

            with self._lock.write_locked():
                counter = self._counters.setdefault(table, {})
                for key in fresh:
                    counter.setdefault(key, 0)

        logger.debug(f"Table {table}: {len(fresh)} indexes in catalog")
        return True

    def put(self, sample: Sample) -> None:
        """
        Fold one sample in

        A sample with any used index adds its execution count to each of them,
        even when other tables of the same sample had no index hit. A sample
        with no used index is recorded as a full table scan.
        """
        for table in sample.involved_tables:
            self.fill_table(table)

        if sample.used_indexes:
            with self._lock.write_locked():
                for index in sample.used_indexes:
                    counter = self._counters.setdefault(index.table_name, {})
                    key = str(index)
                    counter[key] = counter.get(key, 0) + sample.count
        else:
            with self._lock.write_locked():
                self._full_scan.append(sample)

    def put_all(self, samples: Iterable[Sample]) -> int:
        """Fold samples in sequentially; returns how many were processed"""
        processed = 0
        for sample in samples:
            self.put(sample)
            processed += 1
        return processed

    def snapshot(self) -> UsageReport:
        """Independent copy of the current state"""
        with self._lock.read_locked():
            return UsageReport(
                schema=self._schema,
                index_usage={table: dict(counter) for table, counter in self._counters.items()},
                full_scan_samples=list(self._full_scan),
            )

    def to_json(self, indent: int = 2) -> Tuple[str, str]:
        """Usage map and full-scan list as two pretty-printed JSON documents"""
        report = self.snapshot()
        return report.usage_json(indent=indent), report.full_scan_json(indent=indent)
