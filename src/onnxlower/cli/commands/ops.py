"""
ops command: list the operators the frontend lowers, per opset.
"""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from ...frontend.lowering import DEFAULT_REGISTRY

console = Console()


def _type_names(entry) -> str:
    return ", ".join(sorted(t.type_name for t in entry.supported_types))


@click.command()
@click.option('--json', 'as_json', is_flag=True, help='Machine-readable JSON output')
def ops(as_json: bool):
    """List supported operators and the opsets that changed them."""
    rows = [
        {
            "operator": op_type,
            "since_version": entry.since_version,
            "axes": entry.axes_policy.value if entry.axes_policy else None,
            "types": sorted(t.type_name for t in entry.supported_types),
        }
        for op_type in DEFAULT_REGISTRY.supported_operators()
        for entry in DEFAULT_REGISTRY.entries(op_type)
    ]

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    table = Table(title="Supported operators")
    table.add_column("Operator", style="cyan")
    table.add_column("Since opset", justify="right")
    table.add_column("Axes from")
    table.add_column("Element types")

    for op_type in DEFAULT_REGISTRY.supported_operators():
        for entry in DEFAULT_REGISTRY.entries(op_type):
            table.add_row(
                op_type,
                str(entry.since_version),
                entry.axes_policy.value if entry.axes_policy else "-",
                _type_names(entry),
            )

    console.print(table)
