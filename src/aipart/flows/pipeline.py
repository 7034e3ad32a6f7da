from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any, cast

import boto3
from prefect import flow, get_run_logger, task

from aipart.config import PartitionerConfig
from aipart.ir import Graph
from aipart.parsers.onnx import OnnxParser
from aipart.partition import GraphPartitioner, OpTypeOracle, PartitionReport


@task
def download_from_s3(s3_uri: str) -> Path:
    """
    Download a model from S3 to a temporary file. s3_uri like s3://bucket/key
    Requires AWS credentials in environment.
    """
    logger = get_run_logger()
    if not s3_uri.startswith("s3://"):
        raise ValueError("s3_uri must start with s3://")
    _, rest = s3_uri.split("s3://", 1)
    bucket, key = rest.split("/", 1)
    s3 = boto3.client("s3")
    tmp = Path(tempfile.mkstemp(prefix="aipart_model_", suffix=Path(key).suffix)[1])
    s3.download_file(bucket, key, str(tmp))
    logger.info(f"Downloaded {s3_uri} to {tmp}")
    return tmp


@task
def parse_model(local_path: Path) -> Graph:
    logger = get_run_logger()
    logger.info(f"Parsing model at {local_path}")
    if local_path.suffix.lower() != ".onnx":
        raise ValueError(f"Expected an .onnx model, got {local_path.name}")
    return OnnxParser().parse(str(local_path))


@task
def partition_graph(ir: Graph, config: PartitionerConfig) -> PartitionReport:
    logger = get_run_logger()
    logger.info(f"Partitioning graph '{ir.name}' for target '{config.target}'")
    report = GraphPartitioner(OpTypeOracle(), config).partition(ir)
    if report.skipped is not None:
        logger.warning(f"Graph was not partitioned: {report.skipped.value}")
    return report


def report_to_dict(report: PartitionReport) -> dict[str, Any]:
    return {
        "target": report.target,
        "skipped": report.skipped.value if report.skipped else None,
        "unsupported_nodes": list(report.unsupported),
        "dropped_clusters": [list(c) for c in report.dropped],
        "subgraphs": [d.to_dict() for d in report.descriptors],
    }


@task
def export_results(output_dir: str, results: dict[str, Any]) -> str:
    out_path = Path(output_dir)
    out_path.mkdir(parents=True, exist_ok=True)
    result_file = out_path / "partition.json"
    result_file.write_text(json.dumps(results, indent=2))
    return str(result_file)


@flow(name="aipart-partition")
def partition_flow(s3_uri: str, output_dir: str, target: str | None = None) -> str:
    """
    Orchestrates the end-to-end pipeline:
    S3 → parse → partition → export
    """
    config = PartitionerConfig.from_env().override(target=target)
    path = download_from_s3(s3_uri)
    ir = parse_model(path)
    report = partition_graph(ir, config)
    out = export_results(output_dir, report_to_dict(report))
    return cast(str, out)
