"""
Index Catalog Service

Lists every index defined on a table: the universe against which observed
usage is measured. An index missing here would silently drop out of the
unused-index report, so lookup failures are never retried or hidden.
"""

from typing import List, TYPE_CHECKING

from indexprof.core.constants import CatalogFlavor
from indexprof.core.exceptions import IndexCatalogError
from indexprof.core.logger import get_logger
from indexprof.database.queries.statement_summary_queries import IndexCatalogQueries
from indexprof.models.index_usage_models import Index

if TYPE_CHECKING:
    from indexprof.database.connection import DatabaseConnection

logger = get_logger('services.index_catalog')


class IndexCatalogService:
    """
    Read-only index metadata lookup

    Usage:
        catalog = IndexCatalogService(connection)
        indexes = catalog.list_indexes("test", "t")
    """

    def __init__(
        self,
        connection: 'DatabaseConnection',
        flavor: CatalogFlavor = CatalogFlavor.TIDB,
    ):
        self._connection = connection
        self._template = IndexCatalogQueries.list_indexes(flavor)

    def list_indexes(self, schema: str, table: str) -> List[Index]:
        """
        All indexes currently defined on ``schema.table``

        The table name is passed to the server as given; case handling is
        left to the metadata store.

        Raises:
            ValueError: If schema or table is empty
            QueryExecutionError: If the catalog query fails
            IndexCatalogError: If a catalog row lacks table or index name
        """
        if not schema or not str(schema).strip():
            raise ValueError("schema must not be empty")
        if not table or not str(table).strip():
            raise ValueError("table must not be empty")

        params = {"schema": schema, "table": table}
        logger.debug(f"Listing indexes for {schema}.{table} via {self._template.name}")
        rows = self._connection.execute_query(self._template.sql, params)

        indexes = []
        for row in rows or []:
            table_name = row.get("table_name")
            index_name = row.get("index_name")
            if not table_name or not index_name:
                raise IndexCatalogError(
                    "Catalog row without table or index name",
                    schema=schema,
                    table=table,
                    row=dict(row),
                )
            indexes.append(Index(table_name, index_name))

        logger.debug(f"Indexes of {schema}.{table}: {[str(i) for i in indexes]}")
        return indexes
