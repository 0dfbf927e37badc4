"""
indexprof - index usage profiler for TiDB / MySQL-compatible databases

Samples the statement summary tables, classifies every digest as index-using
or full table scan and reports per-table, per-index usage counts.
"""

from indexprof.core.constants import APP_NAME, APP_VERSION

__version__ = APP_VERSION
__app_name__ = APP_NAME
