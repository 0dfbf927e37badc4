"""
SQL templates
"""

from indexprof.database.queries.statement_summary_queries import (
    QueryTemplate,
    StatementSummaryQueries,
    IndexCatalogQueries,
)

__all__ = [
    "QueryTemplate",
    "StatementSummaryQueries",
    "IndexCatalogQueries",
]
