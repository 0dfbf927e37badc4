"""
Statement Summary Annotation and Plan Text Parsing

The summary tables describe index usage in two places:

- ``INDEX_NAMES``: comma-separated ``table:index`` pairs for secondary indexes
- ``PLAN``: the free-text execution plan, one operator per line with
  tab-separated columns. Primary-key access is missing from ``INDEX_NAMES``
  (https://github.com/pingcap/tidb/issues/37066), so it is recovered from
  an operator-info column such as ``table:t, index:PRIMARY(a), keep order:false``.

The plan text has no documented format. ``find_primary_key_tables`` is the
only place that depends on it.
"""

from typing import Optional, List, Iterable

from indexprof.core.constants import (
    PRIMARY_KEY_MARKER,
    PLAN_COLUMN_SEPARATOR,
    ANNOTATION_SEPARATOR,
    INDEX_KEY_SEPARATOR,
)
from indexprof.core.exceptions import SampleParseError
from indexprof.core.logger import get_logger
from indexprof.models.index_usage_models import Index

logger = get_logger('analysis.plan_parser')


def _split_annotation(annotation: Optional[str]) -> Iterable[str]:
    if not annotation:
        return []
    items = (item.strip() for item in str(annotation).split(ANNOTATION_SEPARATOR))
    return [item for item in items if item]


def bare_table_name(name: str) -> str:
    """
    Strip schema qualification and identifier quoting

    >>> bare_table_name("`Shop`.`Orders`")
    'orders'
    """
    name = str(name).strip().replace("`", "")
    return name.rsplit(".", 1)[-1].strip().lower()


def parse_table_names(annotation: Optional[str]) -> List[str]:
    """Parse the ``TABLE_NAMES`` annotation into bare, lower-cased table names"""
    names = []
    for item in _split_annotation(annotation):
        name = bare_table_name(item)
        if name:
            names.append(name)
    return names


def parse_index_names(annotation: Optional[str], digest: Optional[str] = None) -> List[Index]:
    """
    Parse the ``INDEX_NAMES`` annotation into Index values

    Raises:
        SampleParseError: If an item is not a ``table:index`` pair
    """
    indexes = []
    for item in _split_annotation(annotation):
        table, sep, index = item.partition(INDEX_KEY_SEPARATOR)
        table = bare_table_name(table)
        index = index.strip()
        if not sep or not table or not index:
            raise SampleParseError(
                f"Malformed index annotation item '{item}'",
                digest=digest,
                annotation=annotation,
            )
        indexes.append(Index(table, index))
    return indexes


def find_primary_key_tables(plan: Optional[str]) -> List[str]:
    """
    Tables whose primary key is accessed somewhere in the plan text

    Yields at most one table per plan line. Lines without the
    ``index:PRIMARY`` marker, or where no ``table:<name>`` pair can be
    found next to it, contribute nothing.
    """
    tables = []
    if not plan:
        return tables

    for line_no, line in enumerate(str(plan).splitlines(), start=1):
        table_name = ""
        for part in line.split(PLAN_COLUMN_SEPARATOR):
            part = part.strip()
            if PRIMARY_KEY_MARKER not in part:
                continue
            for pair in part.split(ANNOTATION_SEPARATOR):
                key, sep, value = pair.partition(INDEX_KEY_SEPARATOR)
                if sep and key.strip() == "table" and value.strip():
                    table_name = value.strip()
        if table_name:
            tables.append(bare_table_name(table_name))
        elif PRIMARY_KEY_MARKER in line:
            logger.debug(f"Primary key marker without table on plan line {line_no}: {line.strip()!r}")
    return tables


def extract_used_indexes(
    index_names: Optional[str],
    plan: Optional[str],
    digest: Optional[str] = None,
) -> List[Index]:
    """
    Secondary indexes from the annotation followed by primary keys found in
    the plan, without duplicates, in first-seen order
    """
    used = parse_index_names(index_names, digest=digest)
    used.extend(Index.primary(table) for table in find_primary_key_tables(plan))
    return list(dict.fromkeys(used))
