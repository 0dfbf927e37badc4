import pytest

from factories import FakeCatalog, FakeConnection, make_sample, summary_row
from indexprof.core.config import Settings
from indexprof.core.exceptions import QueryExecutionError, SampleParseError
from indexprof.services.profiler_service import IndexProfilerService


CATALOG = {
    "t": [("t", "a"), ("t", "b"), ("t", "c")],
}


def _summary_rows():
    return [
        summary_row(digest="d1", digest_text="select * from `t` where `a` = ?", index_names="t:a", exec_count=3),
        summary_row(digest="d2", digest_text="select * from `t` where `a` = ? or `c` = ?",
                    index_names="t:a,t:c", exec_count=1),
        summary_row(digest="d3", digest_text="select * from `t`", index_names=None, exec_count=1),
    ]


def _handler(query, params):
    if "STATEMENTS_SUMMARY" in query:
        return _summary_rows()
    if "TIDB_INDEXES" in query:
        return [
            {"table_name": table, "index_name": index}
            for table, index in CATALOG.get(params["table"], [])
        ]
    raise AssertionError(f"unexpected query: {query}")


def _settings(**profiler):
    return Settings().with_overrides(database={"name": "test"}, profiler=profiler)


@pytest.mark.parametrize("workers", [1, 4])
def test_run_produces_report(workers):
    conn = FakeConnection(_handler)
    report = IndexProfilerService(conn, _settings(workers=workers)).run()

    assert report.schema == "test"
    assert report.index_usage == {"t": {"t:a": 4, "t:b": 0, "t:c": 1}}
    assert [s.digest for s in report.full_scan_samples] == ["d3"]
    assert report.unused_indexes() == ["t:b"]

    catalog_calls = [params for query, params in conn.calls if "TIDB_INDEXES" in query]
    assert catalog_calls[0] == {"schema": "test", "table": "t"}
    # Catalog lookups are not repeated for a known table when run sequentially
    if workers == 1:
        assert len(catalog_calls) == 1


def test_each_run_starts_empty():
    conn = FakeConnection(_handler)
    service = IndexProfilerService(conn, _settings())
    first = service.run()
    second = service.run()
    assert first.index_usage == second.index_usage


def test_injected_collaborators():
    class StaticSource:
        def get_samples(self, schema):
            assert schema == "test"
            return [make_sample(indexes=("t:b",), count=2), make_sample(indexes=())]

    catalog = FakeCatalog({"t": ["b", "c", "PRIMARY"]})
    conn = FakeConnection(lambda q, p: [])
    report = IndexProfilerService(conn, _settings(), source=StaticSource(), catalog=catalog).run()

    assert report.index_usage == {"t": {"t:PRIMARY": 0, "t:b": 2, "t:c": 0}}
    assert len(report.full_scan_samples) == 1
    assert conn.calls == []


def test_local_scope_setting_reaches_source():
    conn = FakeConnection(_handler)
    IndexProfilerService(conn, _settings(cluster_scope=False)).run()
    summary_query = conn.calls[0][0]
    assert "CLUSTER_STATEMENTS_SUMMARY" not in summary_query


@pytest.mark.parametrize("workers", [1, 4])
def test_catalog_failure_aborts_run(workers):
    def handler(query, params):
        if "TIDB_INDEXES" in query:
            raise QueryExecutionError("catalog gone", query=query)
        return _summary_rows()

    with pytest.raises(QueryExecutionError):
        IndexProfilerService(FakeConnection(handler), _settings(workers=workers)).run()


def test_malformed_sample_aborts_run():
    def handler(query, params):
        return [summary_row(exec_count="lots")]

    with pytest.raises(SampleParseError):
        IndexProfilerService(FakeConnection(handler), _settings()).run()


def test_parallel_run_stops_at_first_catalog_failure():
    def handler(query, params):
        if "TIDB_INDEXES" in query:
            raise QueryExecutionError("catalog gone", query=query)
        return [summary_row(digest=f"d{n}", index_names="t:a") for n in range(200)]

    conn = FakeConnection(handler)
    with pytest.raises(QueryExecutionError):
        IndexProfilerService(conn, _settings(workers=4)).run()

    catalog_calls = [query for query, _ in conn.calls if "TIDB_INDEXES" in query]
    assert len(catalog_calls) == 1
