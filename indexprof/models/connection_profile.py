"""
Connection profile model for TiDB / MySQL connections
"""

from dataclasses import dataclass, field

from sqlalchemy.engine import URL

from indexprof.core.config import DatabaseSettings
from indexprof.core.constants import (
    APP_NAME,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_USER,
    DEFAULT_SCHEMA,
    DEFAULT_CONNECTION_TIMEOUT,
    DEFAULT_QUERY_TIMEOUT,
)


@dataclass
class ConnectionProfile:
    """
    Database connection profile

    ``database`` is the schema being profiled. The connection itself is opened
    without a default schema because every query reads INFORMATION_SCHEMA.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    user: str = DEFAULT_USER
    password: str = field(default="", repr=False)
    database: str = DEFAULT_SCHEMA

    # Connection options
    connection_timeout: int = DEFAULT_CONNECTION_TIMEOUT
    query_timeout: int = DEFAULT_QUERY_TIMEOUT
    application_name: str = APP_NAME
    charset: str = "utf8mb4"

    @property
    def display_name(self) -> str:
        """Formatted display name"""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"

    def to_url(self, driver: str = "mysql+pymysql") -> URL:
        """SQLAlchemy URL for this profile (password included)"""
        return URL.create(
            driver,
            username=self.user or None,
            password=self.password or None,
            host=self.host,
            port=self.port,
            query={"charset": self.charset},
        )

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> 'ConnectionProfile':
        """Create from the database section of the settings"""
        return cls(
            host=settings.host,
            port=settings.port,
            user=settings.user,
            password=settings.password,
            database=settings.name,
            connection_timeout=settings.connection_timeout,
            query_timeout=settings.query_timeout,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary without the password (for logs)"""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "database": self.database,
            "connection_timeout": self.connection_timeout,
            "query_timeout": self.query_timeout,
        }
