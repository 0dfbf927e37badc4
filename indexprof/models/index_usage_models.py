"""
Index Usage Data Models

Value objects shared by the sample source, the index catalog and the usage
aggregator, plus the report snapshot that is serialized at the end of a run.
"""

import json
from typing import Optional, List, Dict, Any, Tuple
from dataclasses import dataclass, field
from datetime import datetime

from indexprof.core.constants import PRIMARY_KEY_NAME, INDEX_KEY_SEPARATOR

# canonical "table:index" -> usage count, one per table
IndexCounter = Dict[str, int]
# table name -> IndexCounter
TablesIndexCounter = Dict[str, IndexCounter]


def normalize_index_name(name: str) -> str:
    """Lower-case an index name; any casing of 'primary' becomes PRIMARY"""
    name = str(name).strip()
    if name.lower() == PRIMARY_KEY_NAME.lower():
        return PRIMARY_KEY_NAME
    return name.lower()


@dataclass(frozen=True)
class Index:
    """
    One index of one table

    Both parts are case-normalized on construction, so ``Index("T", "IDX")``
    and ``Index("t", "idx")`` are equal and share the aggregation key
    ``"t:idx"``. The primary key keeps its upper-case name ``PRIMARY``.
    """
    table_name: str
    index_name: str

    def __post_init__(self):
        object.__setattr__(self, "table_name", str(self.table_name).strip().lower())
        object.__setattr__(self, "index_name", normalize_index_name(self.index_name))

    @property
    def is_primary(self) -> bool:
        return self.index_name == PRIMARY_KEY_NAME

    @property
    def key(self) -> str:
        """Canonical aggregation key"""
        return f"{self.table_name}{INDEX_KEY_SEPARATOR}{self.index_name}"

    @classmethod
    def primary(cls, table_name: str) -> 'Index':
        """Synthetic primary-key index for a table"""
        return cls(table_name, PRIMARY_KEY_NAME)

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class Sample:
    """
    One observed query digest from the statement history

    An empty ``used_indexes`` means no index access was detected; the
    aggregator files such samples as full table scans.
    """
    digest_text: str
    digest: str
    table_names: Tuple[str, ...] = ()
    used_indexes: Tuple[Index, ...] = ()
    count: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None

    @property
    def is_full_scan(self) -> bool:
        """No index of any involved table was used"""
        return not self.used_indexes

    @property
    def involved_tables(self) -> Tuple[str, ...]:
        """Table list plus the tables of used indexes, in first-seen order"""
        seen: Dict[str, None] = {}
        for name in self.table_names:
            seen.setdefault(name, None)
        for index in self.used_indexes:
            seen.setdefault(index.table_name, None)
        return tuple(seen)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary"""
        return {
            "digest_text": self.digest_text,
            "digest": self.digest,
            "table_names": list(self.table_names),
            "used_indexes": [str(index) for index in self.used_indexes],
            "count": self.count,
            "first_seen": self.first_seen.isoformat() if self.first_seen else None,
            "last_seen": self.last_seen.isoformat() if self.last_seen else None,
        }


@dataclass
class UsageReport:
    """
    Point-in-time copy of the aggregated usage

    Owns its own dictionaries; mutating the aggregator afterwards does not
    change a report that was already taken.
    """
    schema: str
    index_usage: TablesIndexCounter = field(default_factory=dict)
    full_scan_samples: List[Sample] = field(default_factory=list)
    generated_at: datetime = field(default_factory=datetime.now)

    @property
    def table_count(self) -> int:
        return len(self.index_usage)

    @property
    def total_index_hits(self) -> int:
        return sum(sum(counter.values()) for counter in self.index_usage.values())

    def unused_indexes(self) -> List[str]:
        """Canonical keys of catalog indexes never hit during the window"""
        return sorted(
            key
            for counter in self.index_usage.values()
            for key, count in counter.items()
            if count == 0
        )

    def usage_json(self, indent: Optional[int] = 2) -> str:
        """Table -> index key -> count document"""
        return json.dumps(self.index_usage, indent=indent, sort_keys=True)

    def full_scan_json(self, indent: Optional[int] = 2) -> str:
        """List of full table scan sample records"""
        return json.dumps(
            [sample.to_dict() for sample in self.full_scan_samples],
            indent=indent,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Combined document"""
        return {
            "schema": self.schema,
            "generated_at": self.generated_at.isoformat(),
            "index_usage": self.index_usage,
            "unused_indexes": self.unused_indexes(),
            "full_scan_samples": [sample.to_dict() for sample in self.full_scan_samples],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)
