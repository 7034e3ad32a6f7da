from __future__ import annotations

import json
from pathlib import Path

import onnx
from onnx import TensorProto, helper
from typer.testing import CliRunner

from aipart.cli.main import app

runner = CliRunner()


def _save_chain(path: Path) -> None:
    # x -> Relu -> a -> Custom -> b -> Relu -> y
    x_info = helper.make_tensor_value_info("x", TensorProto.FLOAT, [1, 4])
    y_info = helper.make_tensor_value_info("y", TensorProto.FLOAT, [1, 4])
    nodes = [
        helper.make_node("Relu", ["x"], ["a"]),
        helper.make_node("Custom", ["a"], ["b"]),
        helper.make_node("Relu", ["b"], ["y"]),
    ]
    graph = helper.make_graph(nodes, "chain", [x_info], [y_info])
    onnx.save(helper.make_model(graph), str(path))


def test_partition_with_op_list(tmp_path: Path) -> None:
    model = tmp_path / "chain.onnx"
    out = tmp_path / "result.json"
    _save_chain(model)

    result = runner.invoke(
        app, ["partition", str(model), "--ops", "Relu", "--target", "npu", "--output", str(out)]
    )
    assert result.exit_code == 0, result.output
    assert "Results written to" in result.output

    data = json.loads(out.read_text())
    assert data["target"] == "npu"
    assert data["skipped"] is None
    assert data["unsupported_nodes"] == [1]
    assert [s["node_indices"] for s in data["subgraphs"]] == [[0], [2]]
    assert data["subgraphs"][0]["inputs"] == ["x"]
    assert data["subgraphs"][0]["outputs"] == ["a"]
    assert data["subgraphs"][1]["inputs"] == ["b"]
    assert data["subgraphs"][1]["outputs"] == ["y"]


def test_partition_with_annotations(tmp_path: Path) -> None:
    model = tmp_path / "chain.onnx"
    ann = tmp_path / "ann.json"
    out = tmp_path / "result.json"
    _save_chain(model)
    ann.write_text(json.dumps({"a": "dpuv1", "b": "dpuv1", "y": "dpuv1"}))

    result = runner.invoke(
        app, ["partition", str(model), "--annotations", str(ann), "--output", str(out)]
    )
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())
    assert data["target"] == "dpuv1"
    assert [s["node_indices"] for s in data["subgraphs"]] == [[0, 1, 2]]


def test_partition_reports_oracle_inconsistency(tmp_path: Path) -> None:
    x_info = helper.make_tensor_value_info("x", TensorProto.FLOAT, [2, 4])
    s0 = helper.make_tensor_value_info("s0", TensorProto.FLOAT, [1, 4])
    s1 = helper.make_tensor_value_info("s1", TensorProto.FLOAT, [1, 4])
    graph = helper.make_graph(
        [helper.make_node("Split", ["x"], ["s0", "s1"])], "split", [x_info], [s0, s1]
    )
    model = tmp_path / "split.onnx"
    onnx.save(helper.make_model(graph), str(model))
    ann = tmp_path / "ann.json"
    ann.write_text(json.dumps({"s0": "dpuv1"}))

    result = runner.invoke(app, ["partition", str(model), "--annotations", str(ann)])
    assert result.exit_code == 2


def test_partition_rejects_both_oracle_sources(tmp_path: Path) -> None:
    model = tmp_path / "chain.onnx"
    ann = tmp_path / "ann.json"
    _save_chain(model)
    ann.write_text("{}")
    result = runner.invoke(
        app, ["partition", str(model), "--ops", "Relu", "--annotations", str(ann)]
    )
    assert result.exit_code != 0
