from __future__ import annotations

import pytest

from aipart.ir import GraphView, Node
from aipart.partition import (
    OracleInconsistencyError,
    classify_nodes,
    find_support_mismatches,
    tensor_support_predicate,
)


def test_unsupported_nodes_in_topological_order(chain_graph) -> None:
    view = GraphView(chain_graph)
    verdict = classify_nodes(
        view, view.topological_order(), tensor_support_predicate({"a"}), "dpu"
    )
    assert verdict.unsupported == [1, 2]
    assert verdict.required_initializers == set()


def test_required_initializers_come_from_supported_nodes_only(make_graph) -> None:
    g = make_graph(
        [
            Node("Conv", ["x", "w0", "b0"], ["c"]),
            Node("Custom", ["c", "w1"], ["d"]),
            Node("Relu", ["d"], ["y"]),
        ],
        inputs=["x"],
        outputs=["y"],
        initializers=["w0", "b0", "w1"],
    )
    view = GraphView(g)
    verdict = classify_nodes(
        view, view.topological_order(), tensor_support_predicate({"c", "y"}), "dpu"
    )
    assert verdict.unsupported == [1]
    assert verdict.required_initializers == {"w0", "b0"}


def test_mapping_oracle_result_is_accepted(chain_graph) -> None:
    view = GraphView(chain_graph)
    support = tensor_support_predicate({"a": True, "b": False, "y": True})
    verdict = classify_nodes(view, view.topological_order(), support, "dpu")
    assert verdict.unsupported == [1]


def test_node_without_outputs_is_unsupported(make_graph) -> None:
    g = make_graph(
        [Node("Relu", ["x"], ["y"]), Node("Print", ["y"], [])],
        inputs=["x"],
        outputs=["y"],
    )
    view = GraphView(g)
    verdict = classify_nodes(
        view, view.topological_order(), lambda name: True, "dpu"
    )
    assert verdict.unsupported == [1]


def test_partially_supported_node_is_fatal(make_graph) -> None:
    g = make_graph(
        [Node("Relu", ["x"], ["r"]), Node("Split", ["r"], ["s0", "s1"])],
        inputs=["x"],
        outputs=["s0", "s1"],
    )
    view = GraphView(g)
    with pytest.raises(OracleInconsistencyError) as exc:
        classify_nodes(
            view, view.topological_order(), tensor_support_predicate({"r", "s0"}), "dpu"
        )
    err = exc.value
    assert err.code == "EORACLE_MISMATCH"
    assert err.node_index == 1
    assert err.tensor == "s1"
    assert err.target == "dpu"
    assert "s1" in str(err) and "Split" in str(err)


def test_mismatch_detected_when_first_output_unsupported(make_graph) -> None:
    g = make_graph(
        [Node("TopK", ["x"], ["values", "indices"])],
        inputs=["x"],
        outputs=["values", "indices"],
    )
    view = GraphView(g)
    mismatches = find_support_mismatches(
        view, view.topological_order(), tensor_support_predicate({"indices"})
    )
    assert len(mismatches) == 1
    m = mismatches[0]
    assert m.node_index == 0
    assert m.op_type == "TopK"
    assert m.tensor == "indices"
    assert m.supported == ("indices",)
    assert m.unsupported == ("values",)


def test_all_mismatches_are_reported(make_graph) -> None:
    g = make_graph(
        [Node("Split", ["x"], ["a0", "a1"]), Node("Split", ["a0"], ["b0", "b1"])],
        inputs=["x"],
        outputs=["a1", "b0", "b1"],
    )
    view = GraphView(g)
    with pytest.raises(OracleInconsistencyError) as exc:
        classify_nodes(
            view, view.topological_order(), tensor_support_predicate({"a0", "b1"}), "dpu"
        )
    assert [m.node_index for m in exc.value.mismatches] == [0, 1]
