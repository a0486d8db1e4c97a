from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.table import Table

from snapclean.config import default_config_path, load_config, write_default_config
from snapclean.errors import SnapCleanError
from snapclean.formatting import format_size
from snapclean.models import Category
from snapclean.service import SnapCleanService
from snapclean.util.logging import setup_logging, use_color

app = typer.Typer(help="snapclean: find photos and videos worth cleaning up")


@dataclass(slots=True)
class AppState:
    service: SnapCleanService
    console: Console
    config_path: Path


def _print_logo(console: Console, show_logo: bool) -> None:
    if not show_logo:
        return
    console.print()
    console.print("[bold cyan]snapclean[/bold cyan]")
    console.print("[dim]large • screenshots • duplicates • similars[/dim]")
    console.print()


def _state(ctx: typer.Context) -> AppState:
    st = ctx.obj
    if not isinstance(st, AppState):
        raise RuntimeError("app state not initialized")
    return st


def _fail(console: Console, exc: Exception) -> NoReturn:
    console.print(f"[red]error:[/red] {exc}")
    raise typer.Exit(1) from exc


def _emit_obj(console: Console, obj: dict, json_out: bool) -> None:
    if json_out:
        typer.echo(json.dumps(obj, indent=2))
        return
    for k, v in obj.items():
        console.print(f"[bold]{k}[/bold]: {v}")


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[Path | None, typer.Option("--config", help="Config YAML path")] = None,
    library: Annotated[Path | None, typer.Option("--library", help="Override library_root")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose logging")] = False,
) -> None:
    setup_logging(verbose)
    cfg_path = config.expanduser() if config else default_config_path()
    if not cfg_path.exists():
        write_default_config(cfg_path)
    overrides: dict[str, Any] = {}
    if library is not None:
        overrides["library_root"] = str(library)
    cfg = load_config(cfg_path, overrides=overrides)
    svc = SnapCleanService(cfg)
    color_on = use_color()
    console = Console(color_system="auto" if color_on else None, force_terminal=color_on)
    _print_logo(console, show_logo=bool(getattr(cfg.ui, "show_logo", True)))
    ctx.obj = AppState(
        service=svc,
        console=console,
        config_path=cfg_path,
    )


@app.command("init-config")
def init_config(
    ctx: typer.Context,
    path: Annotated[Path | None, typer.Option("--path", help="Write config to this path")] = None,
    json_out: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    st = _state(ctx)
    written = write_default_config(path.expanduser() if path else None)
    if json_out:
        typer.echo(json.dumps({"config_path": str(written)}, indent=2))
        return
    st.console.print(f"[green]config:[/green] {written}")


@app.command("sync")
def sync_cmd(
    ctx: typer.Context,
    json_out: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    st = _state(ctx)
    try:
        if json_out:
            stats = st.service.sync()
        else:
            with Progress(
                TextColumn("fingerprinting"),
                BarColumn(),
                MofNCompleteColumn(),
                console=st.console,
                transient=True,
            ) as progress:
                task = progress.add_task("fingerprint", total=None)

                def _advance(done: int, total: int) -> None:
                    progress.update(task, completed=done, total=total)

                stats = st.service.sync(progress=_advance)
    except SnapCleanError as exc:
        _fail(st.console, exc)
    _emit_obj(st.console, stats, json_out)


@app.command("status")
def status_cmd(
    ctx: typer.Context,
    json_out: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    st = _state(ctx)
    _emit_obj(st.console, st.service.status(), json_out)


@app.command("summary")
def summary_cmd(
    ctx: typer.Context,
    json_out: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    st = _state(ctx)
    try:
        rows = st.service.summary()
    except SnapCleanError as exc:
        _fail(st.console, exc)
    if json_out:
        typer.echo(json.dumps(rows, indent=2))
        return
    table = Table(title="categories")
    table.add_column("category")
    table.add_column("items", justify="right")
    table.add_column("size", justify="right")
    for row in rows:
        table.add_row(str(row["title"]), str(row["total_items"]), str(row["total_size_label"]))
    st.console.print(table)


@app.command("show")
def show_cmd(
    ctx: typer.Context,
    category: Annotated[str, typer.Argument(help=f"One of: {', '.join(c.value for c in Category)}")],
    json_out: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    st = _state(ctx)
    try:
        view = st.service.show(category)
    except ValueError as exc:
        st.console.print(f"[red]{exc}[/red]")
        raise typer.Exit(2) from exc
    except SnapCleanError as exc:
        _fail(st.console, exc)
    if json_out:
        typer.echo(json.dumps(view, indent=2))
        return

    st.console.print(
        f"[bold cyan]{view['title']}[/bold cyan]  "
        f"{view['total_items']} items • {view['total_size_label']}"
    )
    if not view["sections"]:
        st.console.print("[dim]nothing to clean up[/dim]")
        return
    for section in view["sections"]:
        st.console.print(f"[bold]{section['title']}[/bold] [dim]({section['layout_style']})[/dim]")
        for asset_id in section["assets"]:
            st.console.print(f"   {asset_id}")


@app.command("selection")
def selection_cmd(
    ctx: typer.Context,
    asset_ids: Annotated[list[str], typer.Argument(help="Asset ids to total")],
    json_out: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    st = _state(ctx)
    result = st.service.selection(asset_ids)
    if json_out:
        typer.echo(json.dumps(result, indent=2))
        return
    st.console.print(f"{result['total_items']} items • {format_size(result['total_size'])}")
    for asset_id in result["missing"]:
        st.console.print(f"   [yellow]no cached size:[/yellow] {asset_id}")


if __name__ == "__main__":
    app()
