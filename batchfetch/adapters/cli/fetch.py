"""
Fetch CLI command
"""
import json
import signal
import typer
from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.progress import Progress, BarColumn, MofNCompleteColumn, TextColumn

from ...core.logging import get_logger, get_stdout_console, get_stderr_console
from ...core.exceptions import (
    ConfigError,
    ListFileError,
    ResourceCreationError,
    SessionEstablishmentError,
)
from ...core.constants import EXIT_FATAL, EXIT_PARTIAL_FAILURE
from ...core.telemetry import get_telemetry
from ...core.utils import format_size
from ...adapters.config.loader import (
    ConfigLoader,
    resolve_connection_params,
    resolve_fetch_config,
)
from ...domain.fetch import (
    BatchReport,
    CancelToken,
    FetchService,
    TransferOutcome,
    read_file_list,
)
from .connection import RemoteConnectionFactory
from .prompts import RichPromptProvider

logger = get_logger(__name__)
stdout_console = get_stdout_console()
stderr_console = get_stderr_console()


def register_fetch_command(app: typer.Typer) -> None:
    """Register fetch command on the main app"""
    app.command(name="fetch")(fetch_run)


def fetch_run(
    list_file: str = typer.Argument(..., help="File with one remote path per line ('-' for stdin)"),
    host: Optional[str] = typer.Option(None, "--host", "-H", help="Remote host or ~/.ssh/config alias"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Remote user"),
    port: Optional[int] = typer.Option(None, "--port", "-P", help="SSH port (default: 22)"),
    auth: Optional[str] = typer.Option(
        None, "--auth", "-a", help="Authentication: password, key or agent"
    ),
    key: Optional[str] = typer.Option(None, "--key", "-i", help="Private key file (implies --auth key)"),
    passphrase: bool = typer.Option(False, "--passphrase", help="Prompt for the private key passphrase"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Connect timeout in seconds"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Destination root (default: ./fetch-<timestamp>)"
    ),
    flat: Optional[bool] = typer.Option(
        None, "--flat/--preserve", help="Drop or keep the remote directory layout"
    ),
    fallback: Optional[bool] = typer.Option(
        None, "--fallback/--no-fallback",
        help="Use a one-off connection for a file when the shared one drops",
    ),
    verify: Optional[bool] = typer.Option(
        None, "--verify/--no-verify", help="Check local size against the remote size"
    ),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML configuration file"),
    report_file: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report of all outcomes"),
):
    """
    Fetch a list of remote files over one shared SSH session.

    Exit status is 0 only when every file was fetched.

    Examples:
        batchfetch fetch paths.txt -H example.org -u alice
        batchfetch fetch paths.txt -H myalias --auth agent -o ./out
        cat paths.txt | batchfetch fetch - -H 10.0.0.5 -u root -i ~/.ssh/id_ed25519
    """
    prompts = RichPromptProvider()
    loader = ConfigLoader()

    cli_overrides = {
        "host": host,
        "user": user,
        "port": port,
        "auth": auth,
        "key": key,
        "timeout": timeout,
        "fetch": {
            "output_dir": str(output) if output else None,
            "preserve_structure": None if flat is None else not flat,
            "fallback_per_request": fallback,
            "verify_size": verify,
        },
    }

    try:
        cfg = loader.load(config, cli_overrides)
        params = resolve_connection_params(cfg, prompts)
        fetch_config = resolve_fetch_config(cfg)
        paths = read_file_list(list_file)
    except (ConfigError, ListFileError) as e:
        stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_FATAL)

    if not paths:
        stdout_console.print("[yellow]File list is empty, nothing to fetch[/yellow]")
        return

    credential = None
    if params.auth == "password":
        credential = prompts.credential(f"Password for {params.user}@{params.host}")
    elif params.auth == "key" and passphrase:
        credential = prompts.credential(f"Passphrase for {params.key_file}")

    cancel = CancelToken()
    previous_handler = signal.getsignal(signal.SIGINT) or signal.default_int_handler

    def on_interrupt(signum, frame):
        cancel.cancel()
        stderr_console.print("[yellow]Cancelling; press Ctrl-C again to abort immediately[/yellow]")
        signal.signal(signal.SIGINT, previous_handler)

    signal.signal(signal.SIGINT, on_interrupt)

    telemetry = get_telemetry()
    service = FetchService(RemoteConnectionFactory(), fetch_config, telemetry)
    show_progress = stdout_console.is_terminal

    try:
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=stdout_console,
            disable=not show_progress,
            transient=True,
        ) as progress:
            task = progress.add_task("Fetching", total=len(paths))

            def on_outcome(index: int, outcome: TransferOutcome) -> None:
                progress.console.print(_format_outcome(outcome))
                progress.advance(task)

            report = service.run(paths, params, credential, on_outcome=on_outcome, cancel=cancel)
    except SessionEstablishmentError as e:
        stderr_console.print(f"[red]Connection error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_FATAL)
    except ResourceCreationError as e:
        stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_FATAL)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    _print_summary(report)

    if report_file:
        _write_report(report, report_file)

    if not report.all_succeeded:
        raise typer.Exit(EXIT_PARTIAL_FAILURE)


def _format_outcome(outcome: TransferOutcome) -> str:
    remote = escape(outcome.request.remote_path)
    if outcome.succeeded:
        suffix = " [dim](fallback)[/dim]" if outcome.via_fallback else ""
        return f"[green]✓[/green] {remote} → {escape(outcome.request.local_path)}{suffix}"
    return f"[red]✗[/red] {remote}: {escape(outcome.error_detail or 'failed')}"


def _print_summary(report: BatchReport) -> None:
    color = "green" if report.all_succeeded else "yellow" if report.succeeded else "red"
    stdout_console.print(
        f"[{color}]Fetched {report.succeeded}/{report.total} file(s)[/{color}] "
        f"({format_size(report.bytes_transferred)}) into {escape(str(report.output_root))}"
    )


def _write_report(report: BatchReport, path: Path) -> None:
    data = {
        "total": report.total,
        "succeeded": report.succeeded,
        "output_root": str(report.output_root) if report.output_root else None,
        "outcomes": [o.to_dict() for o in report.outcomes],
    }
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    except OSError as e:
        logger.error(f"Cannot write report {path}: {e}")
