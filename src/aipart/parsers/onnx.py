from __future__ import annotations

from typing import Any

import onnx
from onnx import numpy_helper

from aipart.ir import Graph, GraphValidator, Node, Tensor
from aipart.parsers.base import Parser

_DTYPE_MAP = {
    onnx.TensorProto.FLOAT: "float32",
    onnx.TensorProto.UINT8: "uint8",
    onnx.TensorProto.INT8: "int8",
    onnx.TensorProto.UINT16: "uint16",
    onnx.TensorProto.INT16: "int16",
    onnx.TensorProto.INT32: "int32",
    onnx.TensorProto.INT64: "int64",
    onnx.TensorProto.BOOL: "bool",
    onnx.TensorProto.FLOAT16: "float16",
    onnx.TensorProto.DOUBLE: "float64",
    onnx.TensorProto.UINT32: "uint32",
    onnx.TensorProto.UINT64: "uint64",
    onnx.TensorProto.BFLOAT16: "bfloat16",
}


def _dtype_from_value_info(vi: onnx.ValueInfoProto) -> str | None:
    t = vi.type.tensor_type
    elem = t.elem_type
    return _DTYPE_MAP.get(elem)


def _shape_from_value_info(vi: onnx.ValueInfoProto) -> list[int] | None:
    dims = vi.type.tensor_type.shape.dim
    out: list[int] = []
    for d in dims:
        if d.HasField("dim_value") and d.dim_value > 0:
            out.append(int(d.dim_value))
        else:
            # unknown -> use 1 as placeholder
            out.append(1)
    return out if out else None


def _has_external_data(init: onnx.TensorProto) -> bool:
    return init.data_location == onnx.TensorProto.EXTERNAL


def _initializer_tensor(init: onnx.TensorProto) -> Tensor:
    # Only the signature is read; values are never decoded.
    tensor = Tensor(
        name=init.name,
        dtype=_DTYPE_MAP.get(init.data_type, "float32"),
        shape=[int(d) if d > 0 else 1 for d in init.dims] or [1],
    )
    if _has_external_data(init):
        tensor.external_data = True
        tensor.metadata["external"] = {
            entry.key: entry.value for entry in init.external_data
        }
    return tensor


class OnnxParser(Parser):
    """Parse an ONNX model into an aipart Graph."""

    def parse(self, model_or_path: Any, *, validate: bool = True) -> Graph:
        model = self._load_model(model_or_path)
        g = self.parse_graph(model.graph)
        g.metadata["opsets"] = {
            op.domain or "ai.onnx": int(op.version) for op in model.opset_import
        }
        if validate:
            GraphValidator(g).validate()
        return g

    def parse_graph(self, graph: onnx.GraphProto, *, is_subgraph: bool = False) -> Graph:
        g = Graph(name=graph.name or "main", is_subgraph=is_subgraph)

        # Initializers -> constant tensors
        for init in graph.initializer:
            g.add_initializer(_initializer_tensor(init))

        # Inputs -> tensors; an input that is also an initializer is a default-valued input
        for inp in graph.input:
            name = inp.name
            if name not in g.tensors:
                dtype = _dtype_from_value_info(inp) or "float32"
                shape = _shape_from_value_info(inp) or [1]
                g.add_tensor(Tensor(name=name, dtype=dtype, shape=shape))
            g.inputs.append(name)

        # Outputs -> tensors (ensure existence and shapes)
        for out in graph.output:
            name = out.name
            if name not in g.tensors:
                dtype = _dtype_from_value_info(out) or "float32"
                shape = _shape_from_value_info(out) or [1]
                g.add_tensor(Tensor(name=name, dtype=dtype, shape=shape))
            g.outputs.append(name)

        # ValueInfo (intermediate tensors with shapes/dtypes)
        for vi in graph.value_info:
            if vi.name not in g.tensors:
                dtype = _dtype_from_value_info(vi) or "float32"
                shape = _shape_from_value_info(vi) or [1]
                g.add_tensor(Tensor(name=vi.name, dtype=dtype, shape=shape))

        # Nodes -> IR nodes and ensure output tensors exist
        for n in graph.node:
            g.add_node(
                Node(
                    op_type=n.op_type,
                    inputs=list(n.input),
                    outputs=list(n.output),
                    name=n.name,
                    attributes=self._parse_attributes(n),
                )
            )
            for out_name in n.output:
                if out_name and out_name not in g.tensors:
                    # Placeholder; partitioning only needs names
                    g.add_tensor(Tensor(name=out_name, dtype="float32", shape=[1]))
            if not is_subgraph:
                continue
            # Nested bodies may read tensors from the enclosing scope
            for in_name in n.input:
                if in_name and in_name not in g.tensors:
                    g.add_tensor(Tensor(name=in_name, dtype="float32", shape=[1]))
        return g

    def _parse_attributes(self, node: onnx.NodeProto) -> dict[str, Any]:
        attrs: dict[str, Any] = {}
        for a in node.attribute:
            if a.type == onnx.AttributeProto.INT:
                attrs[a.name] = int(a.i)
            elif a.type == onnx.AttributeProto.FLOAT:
                attrs[a.name] = float(a.f)
            elif a.type == onnx.AttributeProto.STRING:
                attrs[a.name] = a.s.decode("utf-8", errors="ignore")
            elif a.type == onnx.AttributeProto.INTS:
                attrs[a.name] = [int(x) for x in a.ints]
            elif a.type == onnx.AttributeProto.FLOATS:
                attrs[a.name] = [float(x) for x in a.floats]
            elif a.type == onnx.AttributeProto.TENSOR:
                attrs[a.name] = numpy_helper.to_array(a.t).tolist()
            elif a.type == onnx.AttributeProto.GRAPH:
                attrs[a.name] = self.parse_graph(a.g, is_subgraph=True)
            else:
                # skip other attribute types
                continue
        return attrs

    def _load_model(self, model_or_path: Any) -> onnx.ModelProto:
        if isinstance(model_or_path, onnx.ModelProto):
            return model_or_path
        if isinstance(model_or_path, (bytes, bytearray)):
            return onnx.load_model_from_string(bytes(model_or_path))
        if isinstance(model_or_path, str):
            # External tensors are detected, never read
            return onnx.load(model_or_path, load_external_data=False)
        raise TypeError("Unsupported model type for ONNX parser")
