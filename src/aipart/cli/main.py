from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from aipart.config import PartitionerConfig
from aipart.flows.pipeline import partition_flow, report_to_dict
from aipart.parsers.onnx import OnnxParser
from aipart.partition import (
    GraphPartitioner,
    OpTypeOracle,
    OracleInconsistencyError,
    SupportOracle,
)
from aipart.plugins.registry import global_registry
from aipart.utils import set_log_level

app = typer.Typer(help="aipart CLI")


def _build_oracle(
    target: str, ops: Optional[str], annotations: Optional[Path]
) -> SupportOracle:
    if ops and annotations:
        raise typer.BadParameter("Use either --ops or --annotations, not both")
    if annotations is not None:
        return global_registry.create("oracle", "annotations", path=annotations)
    if ops:
        supported = [op.strip() for op in ops.split(",") if op.strip()]
        return OpTypeOracle({target: supported})
    return global_registry.create("oracle", "optype")


@app.command()
def partition(
    model: Path = typer.Argument(..., exists=True, dir_okay=False, help="Path to an ONNX model"),
    target: Optional[str] = typer.Option(None, help="Backend target identifier"),
    ops: Optional[str] = typer.Option(None, help="Comma separated op types the target supports"),
    annotations: Optional[Path] = typer.Option(
        None, exists=True, dir_okay=False, help="JSON file mapping tensor names to targets"
    ),
    output: Optional[Path] = typer.Option(None, help="Write the JSON result here instead of stdout"),
    log_level: Optional[str] = typer.Option(None, help="Logging level"),
) -> None:
    """
    Partition a local ONNX model and print its delegate subgraphs as JSON.
    """
    config = PartitionerConfig.from_env().override(target=target, log_level=log_level)
    set_log_level(config.log_level)
    oracle = _build_oracle(config.target, ops, annotations)
    graph = OnnxParser().parse(str(model), validate=config.validate_graph)
    try:
        report = GraphPartitioner(oracle, config).partition(graph)
    except OracleInconsistencyError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    text = json.dumps(report_to_dict(report), indent=2)
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text)
        typer.echo(f"Results written to: {output}")


@app.command()
def run(s3_uri: str = typer.Argument(..., help="S3 URI to model, e.g. s3://bucket/key"),
        output_dir: str = typer.Option("./outputs", help="Directory to write results"),
        target: Optional[str] = typer.Option(None, help="Backend target identifier")) -> None:
    """
    Run the Prefect flow to partition a model from S3.
    """
    result_path = partition_flow(s3_uri=s3_uri, output_dir=output_dir, target=target)
    typer.echo(f"Results written to: {result_path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
