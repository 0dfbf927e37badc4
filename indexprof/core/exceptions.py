"""
Custom exceptions for indexprof
"""

from typing import Optional, Any


class IndexProfError(Exception):
    """Base exception for all application errors"""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(IndexProfError):
    """Configuration related errors"""
    pass


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(IndexProfError):
    """Base database error"""
    pass


class ConnectionError(DatabaseError):
    """Database connection failed"""

    def __init__(self, message: str, server: Optional[str] = None,
                 database: Optional[str] = None, **kwargs):
        details = {"server": server, "database": database, **kwargs}
        super().__init__(message, details)


class ConnectionTimeoutError(ConnectionError):
    """Connection timed out"""
    pass


class AuthenticationError(ConnectionError):
    """Authentication failed"""
    pass


class QueryExecutionError(DatabaseError):
    """Query execution failed"""

    def __init__(self, message: str, query: Optional[str] = None, **kwargs):
        details = {"query": query[:500] if query else None, **kwargs}
        super().__init__(message, details)


class QueryTimeoutError(QueryExecutionError):
    """Query execution timed out"""
    pass


# =============================================================================
# Collector Errors
# =============================================================================


class CollectorError(IndexProfError):
    """Base error for sample and catalog collectors"""

    def __init__(
        self,
        message: str,
        collector_name: Optional[str] = None,
        **kwargs
    ):
        details = {"collector": collector_name, **kwargs}
        super().__init__(message, details)
        self.collector_name = collector_name


class SampleParseError(CollectorError):
    """A statement summary row could not be turned into a sample"""

    def __init__(self, message: str, digest: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            collector_name="summary_table",
            digest=digest,
            **kwargs
        )
        self.digest = digest


class UnsupportedSampleSourceError(CollectorError):
    """Requested sample source is not implemented"""

    def __init__(self, source_name: str, **kwargs):
        message = f"Sample source '{source_name}' is not supported"
        super().__init__(message, collector_name=source_name, **kwargs)


class IndexCatalogError(CollectorError):
    """Index catalog returned unusable rows"""

    def __init__(self, message: str, schema: Optional[str] = None,
                 table: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            collector_name="index_catalog",
            schema=schema,
            table=table,
            **kwargs
        )
