"""
convert command: lower an ONNX model and summarize the resulting IR.

Exit codes follow onnxlower.core.errors.ExitCode.
"""

from __future__ import annotations

import dataclasses
import json
import sys
from typing import Optional

import click
import onnx
from rich.console import Console
from rich.table import Table

from ...core.config import load_config
from ...core.errors import OnnxLowerError
from ...export import to_onnx_model
from ...loaders import load_model

console = Console()


@click.command()
@click.argument('model', type=click.Path(exists=True, dir_okay=False))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to YAML config file')
@click.option('--no-strict', is_flag=True, help='Collect node failures instead of aborting')
@click.option('--export', 'export_path', type=click.Path(dir_okay=False), help='Write the lowered IR as an ONNX model')
@click.option('--json', 'as_json', is_flag=True, help='Machine-readable JSON output')
def convert(
    model: str,
    config_path: Optional[str],
    no_strict: bool,
    export_path: Optional[str],
    as_json: bool,
):
    """Lower MODEL to IR and print an operator summary."""
    try:
        config = load_config(config_path)
        if no_strict:
            config = dataclasses.replace(config, strict=False)
        model_ir = load_model(model, config)
        model_ir.validate()
        if export_path:
            onnx.save(to_onnx_model(model_ir, opset=config.export_opset), export_path)
    except OnnxLowerError as e:
        if as_json:
            click.echo(json.dumps({"ok": False, "error": e.to_json()}, indent=2))
        else:
            console.print("\n[bold red]Conversion Error[/bold red]\n")
            console.print(e.format(), markup=False)
        sys.exit(int(e.exit_code))

    errors = model_ir.metadata.get("conversion_errors", [])
    histogram = model_ir.get_operators()

    if as_json:
        click.echo(json.dumps({
            "ok": not errors,
            "model": model_ir.metadata.get("source_model"),
            "opsets": model_ir.metadata.get("opsets"),
            "nodes": model_ir.num_nodes,
            "operators": histogram,
            "inputs": [t.id for t in model_ir.input_tensors],
            "outputs": [t.id for t in model_ir.output_tensors],
            "errors": errors,
            "export": export_path,
        }, indent=2))
    else:
        console.print(f"\n[bold]{model_ir.metadata.get('source_model')}[/bold]  {model_ir!r}\n")

        table = Table(title="IR operators")
        table.add_column("Op", style="cyan")
        table.add_column("Count", justify="right")
        for op_type, count in sorted(histogram.items()):
            table.add_row(op_type, str(count))
        console.print(table)

        for tensor in model_ir.output_tensors:
            console.print(f"  output {tensor.id}: {tensor.dtype.type_name} {tensor.shape!r}")

        if export_path:
            console.print(f"\n  exported to {export_path}")

        if errors:
            console.print(f"\n[yellow]{len(errors)} node(s) failed to lower:[/yellow]")
            for error in errors:
                console.print(f"  [{error['code']}] {error['message']}", markup=False)

    if errors:
        sys.exit(1)
