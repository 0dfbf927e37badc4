"""
Database module - TiDB / MySQL connection and query templates
"""

from indexprof.database.connection import DatabaseConnection, ConnectionInfo
from indexprof.database.queries import (
    QueryTemplate,
    StatementSummaryQueries,
    IndexCatalogQueries,
)

__all__ = [
    "DatabaseConnection",
    "ConnectionInfo",
    "QueryTemplate",
    "StatementSummaryQueries",
    "IndexCatalogQueries",
]
