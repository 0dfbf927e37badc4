"""
Services module - sample collection, index catalog and usage aggregation
"""

from indexprof.services.index_catalog_service import IndexCatalogService
from indexprof.services.sample_source import (
    SampleSource,
    SummaryTableSampleSource,
    create_sample_source,
)
from indexprof.services.index_usage_stat import IndexUsageStat
from indexprof.services.profiler_service import IndexProfilerService

__all__ = [
    "IndexCatalogService",
    "SampleSource",
    "SummaryTableSampleSource",
    "create_sample_source",
    "IndexUsageStat",
    "IndexProfilerService",
]
