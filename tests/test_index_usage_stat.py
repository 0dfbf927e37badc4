import json
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from factories import FakeCatalog, make_sample
from indexprof.core.exceptions import QueryExecutionError
from indexprof.services.index_usage_stat import IndexUsageStat


def test_worked_example(catalog_t):
    stat = IndexUsageStat("test", catalog_t)
    stat.put(make_sample(indexes=("t:PRIMARY",), count=3, digest="d1"))
    stat.put(make_sample(indexes=("t:c",), count=1, digest="d2"))
    stat.put(make_sample(indexes=(), count=1, digest="d3"))

    report = stat.snapshot()
    assert report.index_usage == {"t": {"t:PRIMARY": 3, "t:b": 0, "t:c": 1}}
    assert [s.digest for s in report.full_scan_samples] == ["d3"]

    usage, full_scan = stat.to_json()
    assert json.loads(usage) == {"t": {"t:PRIMARY": 3, "t:b": 0, "t:c": 1}}
    assert json.loads(full_scan)[0]["digest"] == "d3"


def test_catalog_indexes_start_at_zero(catalog_t):
    stat = IndexUsageStat("test", catalog_t)
    stat.put(make_sample(indexes=()))
    assert stat.snapshot().index_usage == {"t": {"t:PRIMARY": 0, "t:b": 0, "t:c": 0}}


def test_counts_are_summed_and_other_counters_untouched():
    catalog = FakeCatalog({"t": ["a", "b"], "u": ["x"]})
    stat = IndexUsageStat("test", catalog)
    stat.put(make_sample(tables=("t", "u"), indexes=("t:a",), count=2))
    stat.put(make_sample(tables=("t",), indexes=("t:a",), count=5))
    stat.put(make_sample(tables=("u",), indexes=("u:x",), count=7))

    assert stat.snapshot().index_usage == {
        "t": {"t:a": 7, "t:b": 0},
        "u": {"u:x": 7},
    }


def test_full_scan_sample_never_counted_and_listed_once(catalog_t):
    stat = IndexUsageStat("test", catalog_t)
    sample = make_sample(indexes=(), count=100, digest="scan")
    stat.put(sample)

    report = stat.snapshot()
    assert report.full_scan_samples == [sample]
    assert report.total_index_hits == 0


def test_same_sample_twice_doubles_contribution(catalog_t):
    stat = IndexUsageStat("test", catalog_t)
    sample = make_sample(indexes=("t:b",), count=4)
    stat.put(sample)
    stat.put(sample)
    assert stat.snapshot().index_usage["t"]["t:b"] == 8


def test_fill_is_lazy_and_idempotent(catalog_t):
    stat = IndexUsageStat("test", catalog_t)
    assert stat.fill_table("t") is True
    before = stat.snapshot().index_usage
    assert stat.fill_table("t") is False
    assert stat.snapshot().index_usage == before

    stat.put(make_sample(indexes=("t:b",)))
    stat.put(make_sample(indexes=("t:c",)))
    assert catalog_t.lookup_count("t") == 1
    assert catalog_t.lookups[0] == ("test", "t")


def test_case_insensitive_aggregation(catalog_t):
    stat = IndexUsageStat("test", catalog_t)
    stat.put(make_sample(indexes=("T:B",), count=1))
    stat.put(make_sample(indexes=("t:b",), count=2))
    assert stat.snapshot().index_usage["t"]["t:b"] == 3


def test_index_missing_from_catalog_gets_a_counter(catalog_t):
    stat = IndexUsageStat("test", catalog_t)
    stat.put(make_sample(indexes=("t:new_idx",), count=2))
    assert stat.snapshot().index_usage["t"]["t:new_idx"] == 2


def test_tables_of_used_indexes_are_filled_too():
    catalog = FakeCatalog({"t": ["a"], "u": ["PRIMARY", "y"]})
    stat = IndexUsageStat("test", catalog)
    stat.put(make_sample(tables=("t",), indexes=("u:PRIMARY",), count=1))
    assert stat.snapshot().index_usage == {
        "t": {"t:a": 0},
        "u": {"u:PRIMARY": 1, "u:y": 0},
    }


def test_classification_is_per_sample_not_per_table():
    catalog = FakeCatalog({"t": ["a"], "u": ["x"]})
    stat = IndexUsageStat("test", catalog)
    # u is scanned but t used an index, so the sample is not a full scan
    stat.put(make_sample(tables=("t", "u"), indexes=("t:a",), count=1))

    report = stat.snapshot()
    assert report.full_scan_samples == []
    assert report.index_usage == {"t": {"t:a": 1}, "u": {"u:x": 0}}


def test_catalog_failure_propagates_and_leaves_table_unfilled():
    catalog = FakeCatalog({"t": ["a"]}, fail_on=("t",))
    stat = IndexUsageStat("test", catalog)
    with pytest.raises(QueryExecutionError):
        stat.put(make_sample(indexes=("t:a",)))
    assert stat.known_tables() == []
    assert stat.snapshot().full_scan_samples == []


def test_snapshot_is_independent(catalog_t):
    stat = IndexUsageStat("test", catalog_t)
    stat.put(make_sample(indexes=("t:b",), count=1))
    report = stat.snapshot()

    stat.put(make_sample(indexes=("t:b",), count=1))
    stat.put(make_sample(indexes=()))
    report.index_usage["t"]["t:c"] = 99

    assert report.index_usage["t"]["t:b"] == 1
    assert report.full_scan_samples == []
    assert stat.snapshot().index_usage["t"]["t:c"] == 0


def test_empty_schema_rejected(catalog_t):
    with pytest.raises(ValueError):
        IndexUsageStat("", catalog_t)


def test_concurrent_puts():
    tables = {f"t{i}": ["a", "b"] for i in range(8)}
    catalog = FakeCatalog(tables)
    stat = IndexUsageStat("test", catalog)
    samples = []
    for n in range(400):
        table = f"t{n % 8}"
        indexes = (f"{table}:a",) if n % 4 else ()
        samples.append(make_sample(tables=(table,), indexes=indexes, count=1, digest=str(n)))

    start = threading.Barrier(8)

    def worker(chunk):
        start.wait()
        for sample in chunk:
            stat.put(sample)

    with ThreadPoolExecutor(max_workers=8) as pool:
        for future in [pool.submit(worker, samples[i::8]) for i in range(8)]:
            future.result()

    report = stat.snapshot()
    assert sorted(report.index_usage) == sorted(tables)
    assert report.total_index_hits == 300
    assert len(report.full_scan_samples) == 100
    for table, counter in report.index_usage.items():
        assert counter[f"{table}:b"] == 0
        assert catalog.lookup_count(table) == 1


def test_failed_lookup_is_not_repeated():
    catalog = FakeCatalog({"t": ["a"]}, fail_on=("t",))
    stat = IndexUsageStat("test", catalog)
    for _ in range(3):
        with pytest.raises(QueryExecutionError):
            stat.put(make_sample(indexes=("t:a",)))
    assert catalog.lookup_count("t") == 1
