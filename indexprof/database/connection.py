"""
Database connection management for TiDB / MySQL
"""

from typing import Optional, List, Dict, Any
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from sqlalchemy.pool import QueuePool

from indexprof.models.connection_profile import ConnectionProfile
from indexprof.core.constants import ConnectionStatus
from indexprof.core.config import DatabaseSettings
from indexprof.core.logger import get_logger
from indexprof.core.exceptions import (
    ConnectionError,
    ConnectionTimeoutError,
    AuthenticationError,
    QueryExecutionError,
    QueryTimeoutError,
)

logger = get_logger('database.connection')

# MySQL protocol error codes
_ACCESS_DENIED_CODES = {1044, 1045, 1698}
_CONNECT_TIMEOUT_CODES = {2013}  # lost connection during handshake
_TIMEOUT_CODES = {1317, 3024}  # interrupted, max_execution_time exceeded


def _mysql_error_code(exc: DBAPIError) -> Optional[int]:
    """Server error code carried by the wrapped PyMySQL exception"""
    orig = getattr(exc, "orig", None)
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


@dataclass
class ConnectionInfo:
    """Connection metadata"""
    server_version: str = ""
    is_tidb: bool = False
    connected_at: Optional[datetime] = None


class DatabaseConnection:
    """
    TiDB / MySQL connection manager

    Handles connection lifecycle and query execution over a pooled
    SQLAlchemy engine using the PyMySQL driver.
    """

    def __init__(self, profile: ConnectionProfile, settings: Optional[DatabaseSettings] = None):
        self.profile = profile
        self._settings = settings or DatabaseSettings()
        self._engine: Optional[Engine] = None
        self._status: ConnectionStatus = ConnectionStatus.DISCONNECTED
        self._info: Optional[ConnectionInfo] = None
        self._last_error: Optional[str] = None

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def info(self) -> Optional[ConnectionInfo]:
        return self._info

    @property
    def is_connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def schema(self) -> str:
        """Schema being profiled"""
        return self.profile.database

    def connect(self) -> bool:
        """
        Establish database connection

        Returns:
            True if connection successful

        Raises:
            ConnectionError: If connection fails
            AuthenticationError: If authentication fails
            ConnectionTimeoutError: If the server does not answer in time
        """
        if self.is_connected:
            return True

        self._status = ConnectionStatus.CONNECTING
        self._last_error = None

        try:
            self._engine = create_engine(
                self.profile.to_url(),
                poolclass=QueuePool,
                pool_size=self._settings.max_pool_size,
                pool_recycle=self._settings.pool_recycle,
                pool_pre_ping=True,
                echo=self._settings.echo_sql,
                connect_args={"connect_timeout": self.profile.connection_timeout},
            )

            # Test connection and get server info
            self._fetch_server_info()

        except OperationalError as e:
            code = _mysql_error_code(e)
            if code in _ACCESS_DENIED_CODES:
                self._handle_connection_error(f"Authentication failed: {e.orig}", AuthenticationError)
            elif code in _CONNECT_TIMEOUT_CODES or "timed out" in str(e).lower():
                self._handle_connection_error(f"Connection timed out: {e.orig}", ConnectionTimeoutError)
            self._handle_connection_error(f"Connection failed: {e.orig}")
        except SQLAlchemyError as e:
            self._handle_connection_error(f"Unexpected connection error: {e}")

        self._status = ConnectionStatus.CONNECTED
        logger.info(
            f"Connected to {self.profile.host}:{self.profile.port} "
            f"({self._info.server_version if self._info else 'unknown version'})"
        )
        return True

    def _handle_connection_error(self, message: str, exc_class=ConnectionError) -> None:
        """Record the failure and raise"""
        self._status = ConnectionStatus.ERROR
        self._last_error = message
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        logger.error(message)
        raise exc_class(
            message,
            server=f"{self.profile.host}:{self.profile.port}",
            database=self.profile.database,
        )

    def _fetch_server_info(self) -> None:
        """Fetch server version and metadata"""
        query = "SELECT VERSION() AS server_version"

        with self._engine.connect() as conn:
            row = conn.execute(text(query)).mappings().fetchone()

        version = str(row["server_version"] or "") if row else ""
        self._info = ConnectionInfo(
            server_version=version,
            is_tidb="tidb" in version.lower(),
            connected_at=datetime.now(),
        )
        if not self._info.is_tidb:
            logger.warning(
                f"Server does not report itself as TiDB ({version}); "
                "statement summary tables may be missing"
            )

    def disconnect(self) -> None:
        """Close database connection"""
        if self._engine:
            self._engine.dispose()
            self._engine = None

        self._status = ConnectionStatus.DISCONNECTED
        self._info = None
        logger.info(f"Disconnected from {self.profile.host}:{self.profile.port}")

    def execute_query(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute a SQL query and return results

        Args:
            query: SQL query string with ``:name`` placeholders
            params: Query parameters
            timeout: Statement timeout in seconds

        Returns:
            List of dictionaries keyed by lower-cased column name

        Raises:
            QueryExecutionError: If query fails
            QueryTimeoutError: If query times out
        """
        if not self.is_connected:
            raise QueryExecutionError("Not connected to database", query=query)

        timeout = timeout or self.profile.query_timeout
        logger.debug(f"Executing query (timeout={timeout}s): {' '.join(query.split())} | params={params}")

        try:
            with self._engine.connect() as conn:
                conn.execute(text(f"SET SESSION max_execution_time = {int(timeout) * 1000}"))

                result = conn.execute(text(query), params or {})
                if not result.returns_rows:
                    return []

                columns = [str(col).lower() for col in result.keys()]
                return [dict(zip(columns, row)) for row in result.fetchall()]

        except DBAPIError as e:
            if _mysql_error_code(e) in _TIMEOUT_CODES:
                raise QueryTimeoutError(f"Query timed out after {timeout}s", query=query) from e
            raise QueryExecutionError(f"Query failed: {e.orig}", query=query) from e
        except SQLAlchemyError as e:
            raise QueryExecutionError(f"Query execution error: {e}", query=query) from e

    def test_connection(self) -> bool:
        """Test if connection is still alive"""
        if not self._engine:
            return False

        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.debug(f"Connection test failed: {e}")
            return False

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        return False
