"""
Data models module
"""

from indexprof.models.connection_profile import ConnectionProfile
from indexprof.models.index_usage_models import (
    Index,
    Sample,
    UsageReport,
    IndexCounter,
    TablesIndexCounter,
    normalize_index_name,
)

__all__ = [
    "ConnectionProfile",
    "Index",
    "Sample",
    "UsageReport",
    "IndexCounter",
    "TablesIndexCounter",
    "normalize_index_name",
]
