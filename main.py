"""SIR Score - Entry Point.

This module provides the main entry point for the live network data CLI.

Usage:
    python main.py networks list
    python main.py networks snapshot ethereum solana
    python main.py networks snapshot --json
    python main.py networks developers
    python main.py networks watch --interval 30 --metrics-port 9100
"""

import typer

from sirscore.cli.networks import app as networks_app

# Main Typer Application
app = typer.Typer(
    name="sirscore",
    help="SIR Score - live blockchain network data with live/estimated labels",
    no_args_is_help=True,
)

# Register sub-applications
app.add_typer(networks_app, name="networks", help="Per-network live snapshots and polling")


if __name__ == "__main__":
    app()
