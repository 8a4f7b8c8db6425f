"""
onnxlower CLI entry point with lazy command loading.

Design: Commands are loaded on-demand so importing the CLI does not
pull in onnx until a command runs.
"""

import logging

import click
from rich.console import Console

console = Console()


@click.group()
@click.version_option(version="0.1.0", prog_name="onnxlower")
@click.option("--verbose", is_flag=True, help="Enable verbose debugging output")
def cli(verbose):
    """
    onnxlower - lower ONNX models into a hardware-independent IR.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )


@cli.command()
@click.argument('model', type=click.Path(exists=True, dir_okay=False))
@click.option('--config', 'config_path', type=click.Path(exists=True), help='Path to YAML config file')
@click.option('--no-strict', is_flag=True, help='Collect node failures instead of aborting')
@click.option('--export', 'export_path', type=click.Path(dir_okay=False), help='Write the lowered IR as an ONNX model')
@click.option('--json', 'as_json', is_flag=True, help='Machine-readable JSON output')
def convert(model, config_path, no_strict, export_path, as_json):
    """Lower MODEL to IR and print an operator summary."""
    from .commands.convert import convert as convert_cmd
    ctx = click.get_current_context()
    ctx.invoke(
        convert_cmd,
        model=model,
        config_path=config_path,
        no_strict=no_strict,
        export_path=export_path,
        as_json=as_json,
    )


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Machine-readable JSON output')
def ops(as_json):
    """List supported operators and the opsets that changed them."""
    from .commands.ops import ops as ops_cmd
    ctx = click.get_current_context()
    ctx.invoke(ops_cmd, as_json=as_json)


def main():
    cli()


if __name__ == "__main__":
    main()
