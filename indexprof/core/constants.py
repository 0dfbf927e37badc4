"""
Application constants and enumerations
"""

from enum import Enum
from typing import Final

# =============================================================================
# Application Info
# =============================================================================

APP_NAME: Final[str] = "indexprof"
APP_VERSION: Final[str] = "0.3.0"

# =============================================================================
# File Paths
# =============================================================================

LOG_FILE: Final[str] = "indexprof.log"

# =============================================================================
# Database Constants
# =============================================================================

DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[int] = 4000  # TiDB
DEFAULT_USER: Final[str] = "root"
DEFAULT_SCHEMA: Final[str] = "test"
DEFAULT_QUERY_TIMEOUT: Final[int] = 30  # seconds
DEFAULT_CONNECTION_TIMEOUT: Final[int] = 15  # seconds

# Statement type recorded by the summary tables for SELECT digests
SELECT_STMT_TYPE: Final[str] = "Select"

# =============================================================================
# Plan / Annotation Markers
# =============================================================================

PRIMARY_KEY_NAME: Final[str] = "PRIMARY"
PRIMARY_KEY_MARKER: Final[str] = "index:PRIMARY"
PLAN_COLUMN_SEPARATOR: Final[str] = "\t"
ANNOTATION_SEPARATOR: Final[str] = ","
INDEX_KEY_SEPARATOR: Final[str] = ":"

# =============================================================================
# Enumerations
# =============================================================================


class SampleSourceType(str, Enum):
    """Ways of collecting query samples"""
    SUMMARY_TABLE = "summary_table"
    RAW_SQL_STREAM = "raw_sql_stream"


class CatalogFlavor(str, Enum):
    """Metadata tables used to list the indexes of a table"""
    TIDB = "tidb"      # INFORMATION_SCHEMA.TIDB_INDEXES
    MYSQL = "mysql"    # INFORMATION_SCHEMA.STATISTICS


class OutputFormat(str, Enum):
    """Report output formats"""
    TEXT = "text"
    JSON = "json"


class ConnectionStatus(str, Enum):
    """Database connection status"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
