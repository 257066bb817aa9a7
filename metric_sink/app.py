"""Typer CLI entrypoint for metric-sink."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import AgentConfig, ConfigRepository
from .errors import SinkError
from .logging_conf import configure_logging, error_log_path, main_log_path, output_logger, tail_log
from .metric import Metric
from .outputs import BaseOutput, OutputRegistry, default_registry
from .serializers import JsonSerializer

app = typer.Typer(
    help="Forward metrics into a document database.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
app.add_typer(log_app)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    registry: OutputRegistry
    make_logger: Callable[[str], Any]


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    return AppState(
        repository=ConfigRepository(),
        registry=default_registry(),
        make_logger=lambda alias: output_logger(alias, verbose=verbose),
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _load_config(state: AppState, path: Optional[Path]) -> AgentConfig:
    try:
        config = state.repository.load(path)
    except FileNotFoundError as exc:
        console.print(f"{escape(str(exc))}. Run `metric-sink init` to create one.", style="red")
        raise typer.Exit(code=1) from exc
    except (ValidationError, ValueError) as exc:
        console.print(f"Invalid configuration: {escape(str(exc))}", style="red")
        raise typer.Exit(code=1) from exc
    if not config.outputs:
        console.print("No outputs configured.", style="yellow")
        raise typer.Exit(code=1)
    return config


def _build_outputs(state: AppState, config: AgentConfig) -> list[tuple[str, BaseOutput]]:
    outputs: list[tuple[str, BaseOutput]] = []
    for name, options in config.outputs.items():
        try:
            output = state.registry.create(name, options, logger=state.make_logger(name))
        except KeyError as exc:
            console.print(f"Unknown output `{name}`; available: {', '.join(state.registry.names())}", style="red")
            raise typer.Exit(code=1) from exc
        except ValidationError as exc:
            console.print(f"Invalid options for output `{name}`: {escape(str(exc))}", style="red")
            raise typer.Exit(code=1) from exc
        outputs.append((name, output))
    return outputs


def _read_metrics(path: Path) -> list[Metric]:
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    metrics: list[Metric] = []
    with path.open("r", encoding="utf-8") as stream:
        for number, line in enumerate(stream, start=1):
            text = line.strip()
            if not text:
                continue
            try:
                metrics.append(Metric.from_dict(json.loads(text)))
            except (ValueError, TypeError) as exc:
                raise typer.BadParameter(f"{path}:{number}: {exc}") from exc
    return metrics


@app.callback()
def main(
    ctx: typer.Context, verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.", is_flag=True)
) -> None:
    ctx.obj = build_state(verbose)


@app.command("outputs", help="List the available outputs.")
def list_outputs(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    table = Table(title="Outputs", box=box.SIMPLE_HEAD)
    table.add_column("Name", style="green")
    table.add_column("Description")
    for name in state.registry.names():
        table.add_row(name, state.registry.description(name))
    console.print(table)


@app.command("sample-config", help="Print the sample configuration of an output.")
def sample_config(ctx: typer.Context, name: str = typer.Argument(..., help="Output name.")) -> None:
    state = _get_state(ctx)
    if name not in state.registry:
        console.print(f"Unknown output `{name}`.", style="red")
        raise typer.Exit(code=1)
    typer.echo(state.registry.sample_config(name))


@app.command("init", help="Write a default configuration file.")
def init_config(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    target = state.repository.resolve(config)
    if target.exists() and not force:
        console.print(f"{target} already exists; use --force to overwrite.", style="yellow")
        raise typer.Exit(code=1)
    path = state.repository.save(AgentConfig(outputs={"mongodb": {}}), config)
    console.print(f"Configuration written to {path}", style="green")


@app.command("check", help="Connect every configured output and report its state.")
def check(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path."),
) -> None:
    state = _get_state(ctx)
    outputs = _build_outputs(state, _load_config(state, config))
    table = Table(title="Output status", box=box.SIMPLE_HEAD)
    table.add_column("Output", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", overflow="fold")
    failures = 0
    for name, output in outputs:
        try:
            output.connect()
        except SinkError as exc:
            failures += 1
            table.add_row(name, "[red]failed[/red]", escape(str(exc)))
        else:
            table.add_row(name, "[green]ready[/green]", "")
        finally:
            output.close()
    console.print(table)
    if failures:
        raise typer.Exit(code=1)


@app.command("write", help="Write metrics from a JSON-lines file to every configured output.")
def write_metrics(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="JSON-lines file, one metric per line."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the metrics instead of writing.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    metrics = _read_metrics(path)
    serializer = JsonSerializer()
    if dry_run:
        typer.echo(serializer.serialize_batch(metrics).decode("utf-8"), nl=False)
        console.print(f"{len(metrics)} metrics parsed; nothing written.", style="dim")
        return
    outputs = _build_outputs(state, _load_config(state, config))
    failures = 0
    for name, output in outputs:
        output.set_serializer(serializer)
        try:
            output.connect()
            output.write(metrics)
        except SinkError as exc:
            failures += 1
            console.print(f"{name}: {escape(str(exc))}", style="red")
        else:
            console.print(f"{name}: wrote {len(metrics)} metrics", style="green")
        finally:
            output.close()
    if failures:
        raise typer.Exit(code=1)


@log_app.command("tail", help="Show the most recent log lines.")
def log_tail(
    lines: int = typer.Option(100, "--lines", "-n", help="Number of lines to show."),
    errors: bool = typer.Option(False, "--errors", help="Show the error log.", is_flag=True),
) -> None:
    path = error_log_path() if errors else main_log_path()
    content = tail_log(path, lines)
    if not content:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{path.name} · last {len(content)} lines", style="cyan")
    typer.echo("".join(content), nl=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
