"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from ...core.logging import setup_logging
from .fetch import register_fetch_command

app = typer.Typer(
    name="batchfetch",
    add_completion=False,
    help="Fetch many remote files over one SSH session",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_fetch_command(app)


@app.callback()
def main(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
):
    """
    batchfetch - batch remote file retrieval over SSH/SFTP
    """
    setup_logging(level=log_level, log_file=log_file)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
