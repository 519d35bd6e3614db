"""Tests for staleness propagation and impact scores."""

import copy
from itertools import permutations

from build_freshness.classifier import classify_package
from build_freshness.models import STATUS_FRESH, STATUS_NEVER_BUILT, STATUS_STALE
from build_freshness.propagate import propagate_staleness, transitive_dependents

from conftest import make_graph, make_record


def _classify(records):
    return {name: classify_package(record) for name, record in records.items()}


def _snapshot(results):
    return {name: (r.status, r.impact_score) for name, r in results.items()}


def test_never_built_core_impacts_all_dependents():
    records, graph = make_graph(
        make_record("core", dist_exists=False),
        make_record("utils", deps=["core"]),
        make_record("app", deps=["utils"]),
        make_record("cli", deps=["core"]),
    )
    results = _classify(records)

    propagate_staleness(results, graph)

    core = results["@kb-labs/core"]
    assert core.status == STATUS_NEVER_BUILT
    assert core.impact_score == 3


def test_app_is_escalated_by_stale_utils():
    records, graph = make_graph(
        make_record("utils", version="2.0.0", built_version="1.9.0", dist_mtime=200.0),
        make_record("app", deps=["utils"], source_mtime=250.0, dist_mtime=300.0),
    )
    results = _classify(records)
    assert results["@kb-labs/app"].status == STATUS_FRESH

    escalated = propagate_staleness(results, graph)

    app = results["@kb-labs/app"]
    assert escalated == ["@kb-labs/app"]
    assert app.status == STATUS_STALE
    assert app.issues[-1].type == "transitive-stale"
    assert app.issues[-1].dependency == "@kb-labs/utils"
    assert results["@kb-labs/utils"].impact_score == 1
    assert app.impact_score == 0


def test_escalation_composes_through_chain():
    records, graph = make_graph(
        make_record("c", version="2.0.0", built_version="1.0.0"),
        make_record("b", deps=["c"]),
        make_record("a", deps=["b"]),
    )
    results = _classify(records)

    propagate_staleness(results, graph)

    assert results["@kb-labs/b"].status == STATUS_STALE
    assert results["@kb-labs/a"].status == STATUS_STALE
    assert results["@kb-labs/a"].issues[-1].dependency == "@kb-labs/b"
    assert _snapshot(results) == {
        "@kb-labs/c": (STATUS_STALE, 2),
        "@kb-labs/b": (STATUS_STALE, 1),
        "@kb-labs/a": (STATUS_STALE, 0),
    }


def test_impact_counts_distinct_dependents_in_diamond():
    records, graph = make_graph(
        make_record("base", dist_exists=False),
        make_record("left", deps=["base"]),
        make_record("right", deps=["base"]),
        make_record("top", deps=["left", "right"]),
    )
    results = _classify(records)

    propagate_staleness(results, graph)

    assert results["@kb-labs/base"].impact_score == 3
    assert [i.type for i in results["@kb-labs/top"].issues] == ["transitive-stale"]


def test_fresh_leaf_package_keeps_zero_impact():
    records, graph = make_graph(
        make_record("leaf"),
        make_record("user", deps=["leaf"]),
    )
    results = _classify(records)

    propagate_staleness(results, graph)

    assert _snapshot(results) == {
        "@kb-labs/leaf": (STATUS_FRESH, 0),
        "@kb-labs/user": (STATUS_FRESH, 0),
    }


def test_propagation_is_idempotent():
    records, graph = make_graph(
        make_record("core", dist_exists=False),
        make_record("utils", deps=["core"]),
        make_record("app", deps=["utils", "core"]),
    )
    results = _classify(records)
    propagate_staleness(results, graph)
    before = copy.deepcopy(results)

    escalated = propagate_staleness(results, graph)

    assert escalated == []
    assert results == before


def test_propagation_is_independent_of_starting_order():
    records, graph = make_graph(
        make_record("a", version="2.0.0", built_version="1.0.0"),
        make_record("b", deps=["a"]),
        make_record("c", dist_exists=False),
        make_record("d", deps=["b", "c"]),
        make_record("e", deps=["d"], source_mtime=999.0, dist_mtime=1.0),
        make_record("f"),
    )
    names = list(records)

    snapshots = []
    for order in permutations(names):
        results = _classify(records)
        propagate_staleness(results, graph, order=order)
        snapshots.append(_snapshot(results))

    assert all(snapshot == snapshots[0] for snapshot in snapshots)
    assert snapshots[0]["@kb-labs/a"] == (STATUS_STALE, 3)
    assert snapshots[0]["@kb-labs/f"] == (STATUS_FRESH, 0)


def test_cycle_terminates_and_counts_each_package_once():
    records, graph = make_graph(
        make_record("a", deps=["b"], version="2.0.0", built_version="1.0.0"),
        make_record("b", deps=["a"]),
        make_record("c", deps=["b"]),
    )
    results = _classify(records)

    propagate_staleness(results, graph)

    assert results["@kb-labs/b"].status == STATUS_STALE
    assert results["@kb-labs/c"].status == STATUS_STALE
    assert results["@kb-labs/a"].impact_score == 2
    assert results["@kb-labs/b"].impact_score == 2
    assert transitive_dependents("@kb-labs/a", graph) == {"@kb-labs/b", "@kb-labs/c"}
