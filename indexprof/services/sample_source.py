"""
Sample Sources

A sample source turns the statement history of the target schema into
``Sample`` objects. Collection is all-or-nothing: one bad row fails the whole
batch, because a report built from a partial sample set would misstate which
indexes are unused.

Sources available:
- summary_table: TiDB statement summary tables
- raw_sql_stream: reserved, not implemented
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Dict, Any, TYPE_CHECKING

from indexprof.analysis.plan_parser import extract_used_indexes, parse_table_names
from indexprof.core.constants import SampleSourceType, SELECT_STMT_TYPE
from indexprof.core.exceptions import SampleParseError, UnsupportedSampleSourceError
from indexprof.core.logger import get_logger, LogContext
from indexprof.database.queries.statement_summary_queries import StatementSummaryQueries
from indexprof.models.index_usage_models import Sample

if TYPE_CHECKING:
    from indexprof.database.connection import DatabaseConnection

logger = get_logger('services.sample_source')


class SampleSource(ABC):
    """Collects query samples for one schema"""

    @abstractmethod
    def get_samples(self, schema: str) -> List[Sample]:
        """
        Collect every sample of the store's current window

        Raises:
            DatabaseError: If the store cannot be queried
            SampleParseError: If a row cannot be converted
        """


class SummaryTableSampleSource(SampleSource):
    """
    Samples from ``INFORMATION_SCHEMA.[CLUSTER_]STATEMENTS_SUMMARY``

    Only SELECT digests whose table-name annotation mentions the schema are
    read. The time window is whatever the summary tables currently retain.
    """

    name = SampleSourceType.SUMMARY_TABLE.value

    def __init__(self, connection: 'DatabaseConnection', cluster_scope: bool = True):
        self._connection = connection
        self._template = StatementSummaryQueries.select_samples(cluster_scope)

    def get_samples(self, schema: str) -> List[Sample]:
        if not schema:
            raise ValueError("schema must not be empty")

        params = {
            "stmt_type": SELECT_STMT_TYPE,
            "schema_pattern": StatementSummaryQueries.schema_pattern(schema),
        }
        with LogContext(logger, f"Collecting samples from {self._template.name}"):
            rows = self._connection.execute_query(self._template.sql, params)
            samples = [self.row_to_sample(row) for row in rows or []]

        logger.info(
            f"Collected {len(samples)} samples for schema '{schema}' "
            f"({sum(1 for s in samples if s.is_full_scan)} without index usage)"
        )
        logger.debug(f"Samples: {samples}")
        return samples

    @classmethod
    def row_to_sample(cls, row: Dict[str, Any]) -> Sample:
        """
        Convert one summary row

        Raises:
            SampleParseError: If a required column is missing or unusable
        """
        try:
            digest = row["digest"]
            digest_text = row["digest_text"]
            raw_count = row["exec_count"]
        except KeyError as e:
            raise SampleParseError(f"Summary row lacks column {e}", digest=row.get("digest")) from e

        if digest is None or digest_text is None:
            raise SampleParseError("Summary row without digest", digest=digest)

        try:
            count = int(raw_count)
        except (TypeError, ValueError) as e:
            raise SampleParseError(
                f"Invalid execution count {raw_count!r}", digest=digest
            ) from e
        # DECIMAL/float columns must hold a whole number
        if not isinstance(raw_count, str) and count != raw_count:
            raise SampleParseError(f"Fractional execution count {raw_count!r}", digest=digest)
        if count < 0:
            raise SampleParseError(f"Negative execution count {count}", digest=digest)

        used_indexes = extract_used_indexes(
            row.get("index_names"),
            row.get("plan"),
            digest=digest,
        )

        return Sample(
            digest_text=str(digest_text),
            digest=str(digest),
            table_names=tuple(parse_table_names(row.get("table_names"))),
            used_indexes=tuple(used_indexes),
            count=count,
            first_seen=cls._to_datetime(row.get("first_seen"), "first_seen", digest),
            last_seen=cls._to_datetime(row.get("last_seen"), "last_seen", digest),
        )

    @staticmethod
    def _to_datetime(value: Any, column: str, digest: str) -> Optional[datetime]:
        if value is None or isinstance(value, datetime):
            return value
        try:
            return datetime.fromisoformat(str(value))
        except ValueError as e:
            raise SampleParseError(
                f"Invalid {column} timestamp {value!r}", digest=digest
            ) from e


def create_sample_source(
    source_type: SampleSourceType,
    connection: 'DatabaseConnection',
    cluster_scope: bool = True,
) -> SampleSource:
    """
    Build the sample source registered for ``source_type``

    Raises:
        UnsupportedSampleSourceError: For unknown or unimplemented sources
    """
    try:
        source_type = SampleSourceType(source_type)
    except ValueError as e:
        raise UnsupportedSampleSourceError(str(source_type)) from e

    if source_type == SampleSourceType.SUMMARY_TABLE:
        return SummaryTableSampleSource(connection, cluster_scope=cluster_scope)
    raise UnsupportedSampleSourceError(source_type.value)
