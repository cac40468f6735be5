"""
Command-line interface for battery-bench.

Starts a simulated developer workload, samples the battery until the run is
interrupted, the target level is reached or the machine loses power, then
prints a summary of the drain.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import typer
from rich.console import Console

from bb_common.api import BBError, ConfigurationError, NoBatteryError, configure_logging, error_to_payload
from bb_runner.api import RunConfig, RunController, WorkloadMode
from bb_ui.presenters.summary import build_summary_table


console = Console()
err_console = Console(stderr=True)

# Exit status Typer uses for bad options and values.
USAGE_ERROR_CODE = 2

app = typer.Typer(
    help="Measure battery life under a simulated developer workload.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _announce_start(controller: RunController) -> None:
    console.print(f"CSV log file: [bold]{controller.log_path}[/bold]")
    console.print("Workload running. Unplug your charger now.")
    console.print("Press [bold]CTRL+C[/bold] to stop early.")


@app.command()
def run(
    workload_path: Optional[Path] = typer.Option(
        None,
        "--workload-path",
        "--xcode",
        help="Xcode project or workspace directory rebuilt in a loop.",
    ),
    mode: WorkloadMode = typer.Option(
        WorkloadMode.MEDIUM,
        "--mode",
        case_sensitive=False,
        help="Workload intensity.",
    ),
    log_interval: int = typer.Option(
        60,
        "--log-interval",
        min=1,
        help="Seconds between battery samples.",
    ),
    no_browser: bool = typer.Option(
        False,
        "--no-browser",
        "--no-safari",
        help="Skip the browser refresh workload.",
    ),
    target_percent: Optional[int] = typer.Option(
        None,
        "--target-percent",
        min=1,
        max=100,
        help="Stop automatically once the battery reaches this level.",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
) -> None:
    """Run the battery benchmark until stopped."""
    configure_logging(debug=debug, force=True)

    try:
        config = RunConfig.from_options(
            mode=mode,
            workload_path=workload_path,
            log_interval_seconds=log_interval,
            target_percent=target_percent,
            browser_enabled=not no_browser,
            output_dir=Path.cwd(),
        )
    except ConfigurationError as exc:
        err_console.print(f"[red]Invalid options:[/red] {exc}")
        raise typer.Exit(1)

    controller = RunController(config, on_started=_announce_start)
    try:
        result = controller.run()
    except NoBatteryError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)
    except BBError as exc:
        err_console.print(f"[red]Run failed:[/red] {error_to_payload(exc)}")
        raise typer.Exit(1)

    console.print()
    console.print(build_summary_table(result, config.mode.value))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return its exit code (usage errors map to 1)."""
    try:
        app(args=list(argv) if argv is not None else None, prog_name="battery-bench")
    except SystemExit as exc:
        return _exit_code(exc.code)
    return 0


def _exit_code(code: object) -> int:
    if code is None:
        return 0
    if not isinstance(code, int):
        return 1
    return 1 if code == USAGE_ERROR_CODE else code


def cli() -> None:
    """Console script entrypoint."""
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
