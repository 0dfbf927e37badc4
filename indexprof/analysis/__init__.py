"""
Analysis Module - statement summary annotation and plan text parsing
"""

from indexprof.analysis.plan_parser import (
    bare_table_name,
    parse_table_names,
    parse_index_names,
    find_primary_key_tables,
    extract_used_indexes,
)

__all__ = [
    "bare_table_name",
    "parse_table_names",
    "parse_index_names",
    "find_primary_key_tables",
    "extract_used_indexes",
]
