"""CLI commands for ptk."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, NoReturn

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape

from ptk import __logo__, __version__
from ptk.config.schema import Config
from ptk.timeline import (
    CommandKind,
    CommandResult,
    Criteria,
    StoreIOError,
    Timeline,
    TimelineError,
    apply_command,
    compute_intervals,
    format_duration,
    select_indices,
    sum_durations,
)
from ptk.timeline.intervals import pick_time_format
from ptk.timeline.resolver import resolve_id
from ptk.utils.helpers import parse_tags, parse_time

app = typer.Typer(
    name="ptk",
    help=f"{__logo__} ptk - Personal Time Keeper",
    no_args_is_help=True,
)

console = Console()


@dataclass
class _Options:
    file: Path | None = None
    config: Path | None = None


def _now() -> datetime:
    return datetime.now().replace(microsecond=0)


def _fail(message: str, code: int = 1, exc: Exception | None = None) -> NoReturn:
    console.print(f"[red]ptk:[/red] {escape(message)}")
    raise typer.Exit(code) from exc


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} ptk v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    file: Path | None = typer.Option(None, "--file", "-f", help="Use the given timeline file"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Use this config file"),
    logs: bool = typer.Option(False, "--logs", help="Show ptk runtime logs"),
    version: bool = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True
    ),
):
    """ptk - Personal Time Keeper."""
    if logs:
        logger.enable("ptk")
    else:
        logger.disable("ptk")
    ctx.obj = _Options(file=file, config=config)


def _load_settings(ctx: typer.Context) -> tuple[Config, Path]:
    from ptk.config.loader import load_config, resolve_timeline_path

    options: _Options = ctx.obj or _Options()
    try:
        cfg = load_config(options.config)
    except Exception as exc:
        _fail(f"unable to read config file: {exc}", 2, exc)
    return cfg, resolve_timeline_path(options.file, cfg)


def _open_timeline(path: Path) -> Timeline:
    from ptk.storage import load_timeline

    if not path.exists():
        _fail(f"time log file doesn't exist: {path}", 2)
    try:
        return load_timeline(path)
    except StoreIOError as exc:
        _fail(exc.message, 2, exc)
    except TimelineError as exc:
        _fail(exc.message, 1, exc)


def _save(timeline: Timeline, path: Path) -> None:
    from ptk.storage import save_timeline

    try:
        save_timeline(timeline, path)
    except StoreIOError as exc:
        _fail(exc.message, 2, exc)


def _parse_time_option(value: str | None, now: datetime, option: str) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_time(value, now)
    except TimelineError as exc:
        _fail(f"invalid value for {option}: {exc.message}", 1, exc)


def _write_marks(timeline: Timeline, indices: list[int], now: datetime, verbose: bool) -> None:
    """Print task marks with their durations, aligned on the summary column."""
    intervals = compute_intervals(timeline, indices, now)
    if not intervals:
        return
    time_format = pick_time_format(timeline.marks[intervals[0][0]].time, now)
    rows = []
    for idx, duration in intervals:
        mark = timeline.marks[idx]
        rows.append((mark, mark.time.strftime(time_format), format_duration(duration)))
    width = max(len(f"{m.short_id}  {t} ({d})") for m, t, d in rows)

    for mark, when, duration in rows:
        pad = " " * (width - len(f"{mark.short_id}  {when} ({duration})"))
        tags = f" [magenta]{escape(' '.join('#' + t for t in mark.tags))}[/magenta]" if mark.tags else ""
        console.print(
            f"[bright_black]{mark.short_id}[/bright_black]  [yellow]{when}[/yellow]"
            f" [cyan]({duration})[/cyan]{pad} -- {escape(mark.summary)}{tags}",
            highlight=False,
        )
        if verbose and mark.notes.strip():
            for line in mark.notes.strip().splitlines():
                console.print(" " * width + "    " + escape(line), highlight=False)
            console.print()


def _run(
    ctx: typer.Context,
    kind: CommandKind,
    params: dict[str, Any],
    now: datetime,
) -> tuple[CommandResult, Path]:
    _, path = _load_settings(ctx)
    timeline = _open_timeline(path)
    try:
        result = apply_command(timeline, kind, params, now)
    except TimelineError as exc:
        _fail(exc.message, 1, exc)
    if result.changed:
        _save(result.timeline, path)
    return result, path


# ============================================================================
# Lifecycle Commands
# ============================================================================


@app.command()
def init(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", help="Timeline name"),
):
    """Create a new, empty timeline."""
    from ptk.storage import create_timeline

    _, path = _load_settings(ctx)
    if path.exists() and not typer.confirm(f"{path} already exists. Overwrite?"):
        raise typer.Exit()
    if name is None:
        name = typer.prompt("Time log name", default="New Timeline")
    try:
        timeline = create_timeline(name, path)
    except StoreIOError as exc:
        _fail(exc.message, 2, exc)
    console.print(f"[green]✓[/green] Created timeline '{escape(timeline.name)}' at {path}")


@app.command()
def add(
    ctx: typer.Context,
    summary: str | None = typer.Argument(None, help="What you are starting"),
    time: str | None = typer.Option(None, "--time", "-t", help="Use this time instead of now"),
    notes: str = typer.Option("", "--notes", "-n", help="Notes for the mark"),
    tag: list[str] | None = typer.Option(None, "--tag", "-g", help="Tag (repeatable, comma separated)"),
    edit: bool = typer.Option(False, "--edit", "-e", help="Open the mark in an editor"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Include notes in output"),
):
    """Start a new task."""
    now = _now()
    mark_time = _parse_time_option(time, now, "--time")
    if edit:
        from ptk.cli.editor import edit_mark_fields

        try:
            fields = edit_mark_fields(mark_time or now, summary or "", notes, now)
        except TimelineError as exc:
            _fail(exc.message, 1, exc)
        mark_time, summary, notes = fields.time, fields.summary, fields.notes

    params = {"summary": summary or "", "time": mark_time, "notes": notes, "tags": parse_tags(tag)}
    result, _ = _run(ctx, CommandKind.ADD, params, now)
    _write_marks(result.timeline, result.touched, now, verbose)


@app.command()
def stop(
    ctx: typer.Context,
    time: str | None = typer.Option(None, "--time", "-t", help="Use this time instead of now"),
    notes: str = typer.Option("", "--notes", "-n", help="Notes for the stop mark"),
    tag: list[str] | None = typer.Option(None, "--tag", "-g", help="Tag (repeatable, comma separated)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Include notes in output"),
):
    """Stop the task in progress."""
    now = _now()
    params = {"time": _parse_time_option(time, now, "--time"), "notes": notes, "tags": parse_tags(tag)}
    result, _ = _run(ctx, CommandKind.STOP, params, now)
    if not result.changed:
        console.print(f"[yellow]{result.message}[/yellow]")
        return
    _write_marks(result.timeline, result.touched, now, verbose)
    console.print(result.message)


@app.command("continue")
def continue_(
    ctx: typer.Context,
    time: str | None = typer.Option(None, "--time", "-t", help="Use this time instead of now"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Include notes in output"),
):
    """Restart the task that was running before the last stop."""
    now = _now()
    result, _ = _run(ctx, CommandKind.CONTINUE, {"time": _parse_time_option(time, now, "--time")}, now)
    if not result.changed:
        console.print("There is already something in progress:")
    _write_marks(result.timeline, result.touched, now, verbose)


@app.command()
def resume(
    ctx: typer.Context,
    mark_id: str | None = typer.Argument(None, help="Mark to resume (defaults to the last task)"),
    time: str | None = typer.Option(None, "--time", "-t", help="Use this time instead of now"),
    notes: str | None = typer.Option(None, "--notes", "-n", help="Replace the copied notes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Include notes in output"),
):
    """Start a new mark copying an earlier one."""
    now = _now()
    params = {"mark_id": mark_id, "time": _parse_time_option(time, now, "--time"), "notes": notes}
    result, _ = _run(ctx, CommandKind.RESUME, params, now)
    _write_marks(result.timeline, result.touched, now, verbose)


@app.command()
def amend(
    ctx: typer.Context,
    mark_id: str | None = typer.Argument(None, help="Mark to amend (defaults to the last task)"),
    summary: str | None = typer.Option(None, "--summary", "-s", help="New summary"),
    time: str | None = typer.Option(None, "--time", "-t", help="New time"),
    notes: str | None = typer.Option(None, "--notes", "-n", help="New notes"),
    tag: list[str] | None = typer.Option(None, "--tag", "-g", help="Add a tag (repeatable)"),
    remove_tag: list[str] | None = typer.Option(None, "--remove-tag", "-R", help="Remove a tag (repeatable)"),
    edit: bool = typer.Option(False, "--edit", "-e", help="Open the mark in an editor"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Include notes in output"),
):
    """Change an existing mark."""
    now = _now()
    new_time = _parse_time_option(time, now, "--time")
    if edit:
        from ptk.cli.editor import edit_mark_fields
        from ptk.timeline.resolver import last_active_index

        _, path = _load_settings(ctx)
        timeline = _open_timeline(path)
        try:
            idx = resolve_id(timeline.marks, mark_id) if mark_id else last_active_index(timeline.marks)
            mark = timeline.marks[idx]
            fields = edit_mark_fields(
                new_time or mark.time,
                summary if summary is not None else mark.summary,
                notes if notes is not None else mark.notes,
                now,
            )
        except TimelineError as exc:
            _fail(exc.message, 1, exc)
        mark_id = str(mark.id)
        new_time, summary, notes = fields.time, fields.summary, fields.notes

    params = {
        "mark_id": mark_id,
        "summary": summary,
        "time": new_time,
        "notes": notes,
        "add_tags": parse_tags(tag),
        "remove_tags": parse_tags(remove_tag),
    }
    result, _ = _run(ctx, CommandKind.AMEND, params, now)
    _write_marks(result.timeline, result.touched, now, verbose)


@app.command()
def delete(
    ctx: typer.Context,
    mark_id: str = typer.Argument(..., help="Mark to delete"),
):
    """Delete a mark."""
    now = _now()
    _run(ctx, CommandKind.DELETE, {"mark_id": mark_id}, now)
    console.print(f"[green]✓[/green] Deleted mark {escape(mark_id)}")


# ============================================================================
# Reporting Commands
# ============================================================================


def _build_criteria(
    first_id: str | None,
    last_id: str | None,
    after: str | None,
    before: str | None,
    today: bool,
    yesterday: bool,
    this_week: bool,
    last_week: bool,
    tag: list[str] | None,
    exclude_tag: list[str] | None,
    matching: str | None,
    union: bool,
    now: datetime,
) -> Criteria:
    return Criteria(
        id_lower=first_id,
        id_upper=last_id,
        after=_parse_time_option(after, now, "--after"),
        before=_parse_time_option(before, now, "--before"),
        today=today,
        yesterday=yesterday,
        this_week=this_week,
        last_week=last_week,
        tags_all_of=tuple(parse_tags(tag)),
        tags_none_of=tuple(parse_tags(exclude_tag)),
        text_pattern=matching,
        union=union,
    )


def _select(timeline: Timeline, criteria: Criteria, now: datetime) -> list[int]:
    try:
        return select_indices(timeline, criteria, now)
    except TimelineError as exc:
        _fail(exc.message, 1, exc)


@app.command("list")
def list_marks(
    ctx: typer.Context,
    first_id: str | None = typer.Argument(None, help="First mark of the range"),
    last_id: str | None = typer.Argument(None, help="Last mark of the range"),
    after: str | None = typer.Option(None, "--after", "-a", help="Only marks after this time"),
    before: str | None = typer.Option(None, "--before", "-b", help="Only marks before this time"),
    today: bool = typer.Option(False, "--today", help="Only marks from today"),
    yesterday: bool = typer.Option(False, "--yesterday", help="Only marks from yesterday"),
    this_week: bool = typer.Option(False, "--this-week", help="Only marks from this week"),
    last_week: bool = typer.Option(False, "--last-week", help="Only marks from last week"),
    tag: list[str] | None = typer.Option(None, "--tag", "-g", help="Require this tag"),
    exclude_tag: list[str] | None = typer.Option(None, "--exclude-tag", "-x", help="Reject this tag"),
    matching: str | None = typer.Option(None, "--matching", "-m", help="Summary regex (case-insensitive)"),
    union: bool = typer.Option(False, "--or", help="Match any criterion instead of all"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Include notes in output"),
):
    """List task marks with their durations."""
    now = _now()
    cfg, path = _load_settings(ctx)
    timeline = _open_timeline(path)
    criteria = _build_criteria(
        first_id, last_id, after, before, today, yesterday, this_week, last_week,
        tag, exclude_tag, matching, union, now,
    )
    indices = _select(timeline, criteria, now)
    if not indices:
        console.print("[yellow]ptk: no marks found[/yellow]")
        return
    _write_marks(timeline, indices, now, verbose or cfg.list_verbose)


@app.command("sum-time")
def sum_time(
    ctx: typer.Context,
    first_id: str | None = typer.Argument(None, help="First mark of the range"),
    last_id: str | None = typer.Argument(None, help="Last mark of the range"),
    ids: list[str] | None = typer.Option(None, "--id", help="Sum only these marks (repeatable)"),
    after: str | None = typer.Option(None, "--after", "-a", help="Only marks after this time"),
    before: str | None = typer.Option(None, "--before", "-b", help="Only marks before this time"),
    today: bool = typer.Option(False, "--today", help="Only marks from today"),
    yesterday: bool = typer.Option(False, "--yesterday", help="Only marks from yesterday"),
    this_week: bool = typer.Option(False, "--this-week", help="Only marks from this week"),
    last_week: bool = typer.Option(False, "--last-week", help="Only marks from last week"),
    tag: list[str] | None = typer.Option(None, "--tag", "-g", help="Require this tag"),
    exclude_tag: list[str] | None = typer.Option(None, "--exclude-tag", "-x", help="Reject this tag"),
    matching: str | None = typer.Option(None, "--matching", "-m", help="Summary regex (case-insensitive)"),
    union: bool = typer.Option(False, "--or", help="Match any criterion instead of all"),
):
    """Total the time spent on the selected marks."""
    now = _now()
    _, path = _load_settings(ctx)
    timeline = _open_timeline(path)

    if ids:
        indices: list[int] = []
        for mark_id in ids:
            try:
                indices.append(resolve_id(timeline.marks, mark_id))
            except TimelineError as exc:
                logger.warning(f"Skipping id {mark_id}: {exc.message}")
                console.print(f"[yellow]ptk: could not find mark for id {escape(mark_id)}[/yellow]")
    else:
        criteria = _build_criteria(
            first_id, last_id, after, before, today, yesterday, this_week, last_week,
            tag, exclude_tag, matching, union, now,
        )
        indices = _select(timeline, criteria, now)

    intervals = compute_intervals(timeline, indices, now)
    if not intervals:
        console.print("[yellow]ptk: no marks found[/yellow]")
        return
    console.print(format_duration(sum_durations(intervals)))


@app.command()
def merge(
    ctx: typer.Context,
    files: list[Path] = typer.Argument(..., help="Timeline files to merge"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the merged timeline here"),
    policy: str | None = typer.Option(
        None, "--policy", help="Conflict policy: concat, keep_first or keep_last"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Include notes in output"),
):
    """Merge several timeline files into one."""
    from ptk.timeline import ConflictPolicy, merge_timelines

    now = _now()
    cfg, _ = _load_settings(ctx)
    try:
        chosen = ConflictPolicy(policy or cfg.merge_conflict_policy)
    except ValueError as exc:
        _fail(f"unknown conflict policy: {policy}", 1, exc)

    timelines = [_open_timeline(path.expanduser()) for path in files]
    merged = merge_timelines(timelines, chosen)
    if output is not None:
        _save(merged, output.expanduser())
        console.print(f"[green]✓[/green] Merged {len(timelines)} timelines into {output}")
        return
    console.print(f"[bold]{escape(merged.name)}[/bold]")
    _write_marks(merged, list(range(len(merged.marks))), now, verbose)


# ============================================================================
# Config Commands
# ============================================================================


config_app = typer.Typer(help="Manage ptk config")
app.add_typer(config_app, name="config")


@config_app.command("check")
def config_check(
    config: Path | None = typer.Option(None, "--config", help="Config path to validate"),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Fail when unknown keys are detected (possible typos)",
    ),
):
    """Validate config JSON structure and schema."""
    import json

    from ptk.config.loader import check_config, find_config_path

    config_path = find_config_path(config)
    if config_path is None or not config_path.exists():
        console.print(f"[red]Config file not found:[/red] {config_path or '.ptkrc'}")
        raise typer.Exit(2)

    try:
        report = check_config(config_path)
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON:[/red] {exc}")
        raise typer.Exit(2) from exc
    except Exception as exc:
        console.print(f"[red]Schema validation failed:[/red] {exc}")
        raise typer.Exit(1) from exc

    if report.unknown_keys:
        console.print(
            f"[yellow]Unknown config keys detected ({len(report.unknown_keys)}):[/yellow]"
        )
        for item in report.unknown_keys[:10]:
            console.print(f"  - {item}")
        if strict:
            raise typer.Exit(1)

    console.print("[green]✓[/green] Config validation passed")
    console.print(f"path={config_path}")
    console.print(f"timeline={report.config.timeline_log_file}")
    console.print(f"merge_policy={report.config.merge_conflict_policy}")


if __name__ == "__main__":
    app()
