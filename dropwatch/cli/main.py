# Copyright (c) 2025 Trae AI. All rights reserved.

import typer
import yaml
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.table import Table
from ..core.config import AgentConfig, ConfigError
from ..core.logger import setup_logging

app = typer.Typer(help="Dropwatch - push settled files from watched folders to their destinations.")
console = Console()


def _load(config_path: str) -> AgentConfig:
    try:
        return AgentConfig.load(config_path)
    except ConfigError as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1)


@app.command("run")
def run(
    config_path: str = typer.Option("config.yaml", "--config", "-c", help="Path to config file"),
    log_file: Optional[Path] = typer.Option(None, help="Log file (overrides config)"),
    log_level: Optional[str] = typer.Option(None, help="debug, info, warn or error (overrides config)"),
    console_log: bool = typer.Option(False, "--console", help="Log to stdout instead of a file"),
    no_api: bool = typer.Option(False, "--no-api", help="Do not serve the status API"),
):
    """
    Watch the configured folders and transfer files once they settle.
    """
    config = _load(config_path)

    problems = config.validate_entries()
    if problems:
        for problem in problems:
            console.print(f"[red]-[/red] {problem}")
        console.print("[red]Configuration is invalid, not starting.[/red]")
        raise typer.Exit(1)

    setup_logging(
        log_file or config.log_file,
        log_level or config.log_level,
        console=console_log or config.log_to_console,
    )

    # Imported late so `check` and `show-config` stay light.
    from ..server.app import Server

    server = Server(config)
    server.run(serve_api=not no_api)


@app.command("check")
def check(config_path: str = typer.Option("config.yaml", "--config", "-c", help="Path to config file")):
    """
    Validate the configuration and list the transfers.
    """
    config = _load(config_path)

    table = Table(title="Configured Transfers")
    table.add_column("Name", style="magenta")
    table.add_column("Source", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Destination", style="yellow")
    table.add_column("Filter")
    table.add_column("Delay")
    table.add_column("On Success")
    table.add_column("On Fail")

    for entry in config.transfers:
        destination = entry.remote_path
        if entry.server:
            destination = f"{entry.username}@{entry.server}:{entry.port}{entry.remote_path}"
        table.add_row(
            entry.name,
            str(entry.source_directory),
            entry.kind,
            destination,
            entry.filter or "",
            f"{entry.delay if entry.delay is not None else config.delay}s",
            entry.action_on_success or "none",
            entry.action_on_fail or "none",
        )
    console.print(table)

    problems = config.validate_entries()
    if problems:
        console.print(f"\n[red]Found {len(problems)} problem(s):[/red]")
        for problem in problems:
            console.print(f"[red]-[/red] {problem}")
        raise typer.Exit(1)

    console.print("\n[green]Configuration is valid.[/green]")


@app.command("show-config")
def show_config(config_path: str = typer.Option("config.yaml", "--config", "-c", help="Path to config file")):
    """
    Print the effective configuration, with secrets masked.
    """
    config = _load(config_path)
    data = config.model_dump(mode="json", exclude={"transfers"})
    data["transfers"] = [entry.public_dict() for entry in config.transfers]
    console.print(yaml.safe_dump(data, sort_keys=False), markup=False, highlight=False)


if __name__ == "__main__":
    app()
