"""Lithos CLI: read-only reports over a ledger snapshot file."""

import click

from lithos import __version__


@click.group()
@click.version_option(version=__version__, package_name="lithos")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML or JSON config file (default: ~/.lithos/config.yaml).",
)
@click.pass_context
def main(ctx: click.Context, config_file: str | None) -> None:
    """Lithos: balances, holdings, debts and net-worth history."""
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file


from .report_cmd import balances, bills, debts, history, holdings

main.add_command(balances)
main.add_command(history)
main.add_command(holdings)
main.add_command(debts)
main.add_command(bills)
