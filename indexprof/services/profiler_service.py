"""
Index Profiler Service

One profiling run: collect samples, fold them into a fresh aggregator and
return the report snapshot. Every error aborts the run; there is no partial
report.
"""

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Optional, List, TYPE_CHECKING

from indexprof.core.config import Settings, ProfilerSettings
from indexprof.core.logger import get_logger, LogContext
from indexprof.models.index_usage_models import Sample, UsageReport
from indexprof.services.index_catalog_service import IndexCatalogService
from indexprof.services.index_usage_stat import IndexUsageStat
from indexprof.services.sample_source import SampleSource, create_sample_source

if TYPE_CHECKING:
    from indexprof.database.connection import DatabaseConnection

logger = get_logger('services.profiler')


class IndexProfilerService:
    """
    Runs the collect -> aggregate pipeline against one schema

    Usage:
        with DatabaseConnection(profile) as conn:
            report = IndexProfilerService(conn, settings).run()
    """

    def __init__(
        self,
        connection: 'DatabaseConnection',
        settings: Optional[Settings] = None,
        source: Optional[SampleSource] = None,
        catalog: Optional[IndexCatalogService] = None,
    ):
        self._connection = connection
        self._settings = settings or Settings()
        profiler: ProfilerSettings = self._settings.profiler
        self._schema = self._settings.database.name
        self._workers = profiler.workers
        self._source = source or create_sample_source(
            profiler.sample_source,
            connection,
            cluster_scope=profiler.cluster_scope,
        )
        self._catalog = catalog or IndexCatalogService(connection, profiler.catalog_flavor)

    @property
    def schema(self) -> str:
        return self._schema

    def run(self) -> UsageReport:
        """
        Profile the schema once

        Raises:
            IndexProfError: Any collection, catalog or database failure
        """
        samples = self._source.get_samples(self._schema)
        stat = IndexUsageStat(self._schema, self._catalog)

        with LogContext(logger, f"Aggregating {len(samples)} samples"):
            self._aggregate(stat, samples)

        report = stat.snapshot()
        logger.info(
            f"Report for '{self._schema}': {report.table_count} tables, "
            f"{len(report.unused_indexes())} unused indexes, "
            f"{len(report.full_scan_samples)} full scan samples"
        )
        return report

    def _aggregate(self, stat: IndexUsageStat, samples: List[Sample]) -> None:
        if self._workers <= 1 or len(samples) <= 1:
            stat.put_all(samples)
            return

        with ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix="indexprof") as pool:
            futures = [pool.submit(stat.put, sample) for sample in samples]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            # The first failure ends the run; queued samples never start
            for future in pending:
                future.cancel()
            for future in done:
                future.result()
