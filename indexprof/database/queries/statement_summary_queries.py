"""
Statement Summary and Index Catalog SQL Templates

TiDB keeps per-digest execution statistics in the statement summary tables
(roughly the last 30 minutes with the default refresh settings), see
https://docs.pingcap.com/tidb/stable/statement-summary-tables

All templates take bound parameters (``:name`` style for SQLAlchemy ``text()``).
"""

from dataclasses import dataclass

from indexprof.core.constants import CatalogFlavor


@dataclass(frozen=True)
class QueryTemplate:
    """SQL query template"""
    name: str
    description: str
    sql: str
    parameters: tuple


class StatementSummaryQueries:
    """
    Queries against the statement history store.

    Result columns are aliased to lower-case so rows can be read by the same
    keys whichever server flavour answers.
    """

    _SELECT_SUMMARY = """
    SELECT
        DIGEST_TEXT AS digest_text,
        DIGEST AS digest,
        EXEC_COUNT AS exec_count,
        FIRST_SEEN AS first_seen,
        LAST_SEEN AS last_seen,
        INDEX_NAMES AS index_names,
        TABLE_NAMES AS table_names,
        PLAN AS plan
    FROM
        INFORMATION_SCHEMA.{table}
    WHERE
        STMT_TYPE = :stmt_type
        AND TABLE_NAMES LIKE :schema_pattern
    """

    CLUSTER_SELECT_SAMPLES = QueryTemplate(
        name="cluster_select_samples",
        description="SELECT digests of every TiDB node",
        sql=_SELECT_SUMMARY.format(table="CLUSTER_STATEMENTS_SUMMARY"),
        parameters=("stmt_type", "schema_pattern"),
    )

    LOCAL_SELECT_SAMPLES = QueryTemplate(
        name="local_select_samples",
        description="SELECT digests of the connected TiDB node only",
        sql=_SELECT_SUMMARY.format(table="STATEMENTS_SUMMARY"),
        parameters=("stmt_type", "schema_pattern"),
    )

    @classmethod
    def select_samples(cls, cluster_scope: bool = True) -> QueryTemplate:
        return cls.CLUSTER_SELECT_SAMPLES if cluster_scope else cls.LOCAL_SELECT_SAMPLES

    @staticmethod
    def schema_pattern(schema: str) -> str:
        """LIKE pattern matching table-name annotations that mention the schema"""
        escaped = schema.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return f"%{escaped}%"


class IndexCatalogQueries:
    """Queries listing the indexes defined on one table"""

    TIDB_INDEXES = QueryTemplate(
        name="tidb_indexes",
        description="Indexes of a table from INFORMATION_SCHEMA.TIDB_INDEXES",
        sql="""
    SELECT
        TABLE_NAME AS table_name,
        KEY_NAME AS index_name
    FROM
        INFORMATION_SCHEMA.TIDB_INDEXES
    WHERE
        TABLE_SCHEMA = :schema AND TABLE_NAME = :table
    """,
        parameters=("schema", "table"),
    )

    MYSQL_STATISTICS = QueryTemplate(
        name="mysql_statistics",
        description="Indexes of a table from INFORMATION_SCHEMA.STATISTICS",
        sql="""
    SELECT DISTINCT
        TABLE_NAME AS table_name,
        INDEX_NAME AS index_name
    FROM
        INFORMATION_SCHEMA.STATISTICS
    WHERE
        TABLE_SCHEMA = :schema AND TABLE_NAME = :table
    """,
        parameters=("schema", "table"),
    )

    @classmethod
    def list_indexes(cls, flavor: CatalogFlavor = CatalogFlavor.TIDB) -> QueryTemplate:
        if flavor == CatalogFlavor.MYSQL:
            return cls.MYSQL_STATISTICS
        return cls.TIDB_INDEXES
