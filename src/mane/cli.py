"""Command line interface for Mane."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any, Sequence

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from mane.config import ConfigError, ConfigManager, ManeConfig, resolve_with_precedence
from mane.context import ManeContext, SessionReport
from mane.history import HistoryError
from mane.logging_config import configure_logging
from mane.organization import ActionKind, FileAction, OrganizePlan
from mane.search import ALL_MEDIA, preview_text
from mane.store import CollectionName, MediaClass, StoreError

console = Console()

MEDIA_CHOICES = [ALL_MEDIA, *(media.value for media in MediaClass)]


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    if summary_only and mode not in {"summary", "warning", "error"}:
        return

    console.print(message)


def _format_summary_line(command: str, target: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        target: Path or identifier the command acted on.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {target}: {parts}.[/green]"


def _output_modes(
    ctx: click.Context,
    config: ManeConfig,
    *,
    json_output: bool,
    quiet: bool,
    summary_mode: bool,
) -> tuple[bool, bool]:
    """Resolve quiet/summary flags against configuration defaults.

    Raises:
        click.ClickException: If the requested modes conflict.
    """

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _load_config(verbose: bool = False) -> ManeConfig:
    manager = ConfigManager()
    manager.ensure_exists()
    config = manager.load()
    configure_logging(config.logging, verbose=verbose)
    return config


def _action_payload(action: FileAction) -> dict[str, Any]:
    return action.model_dump(mode="json")


def _report_payload(report: SessionReport) -> dict[str, Any]:
    return {
        "session_id": report.session_id,
        "description": report.description,
        "dry_run": report.dry_run,
        "can_undo": report.can_undo,
        "counts": {
            "total": report.total,
            "succeeded": report.succeeded,
            "failed": report.failed,
        },
        "results": [result.model_dump(mode="json") for result in report.results],
    }


def _format_action(action: FileAction) -> str:
    if action.kind is ActionKind.CREATE_FOLDER:
        return f"CREATE {action.destination_path}"
    if action.kind in {ActionKind.DELETE, ActionKind.DELETE_FOLDER}:
        return f"{action.kind.value.upper()} {action.source_path}"
    return f"{action.kind.value.upper()} {action.source_path} -> {action.destination_path}"


def _emit_report_failures(report: SessionReport, *, quiet: bool, summary_only: bool) -> None:
    actions = {action.id: action for action in report.actions}
    for result in report.results:
        if result.success:
            continue
        action = actions.get(result.action_id)
        label = _format_action(action) if action is not None else result.action_id
        _emit_message(
            f"[red]Failed: {label}: {result.error}[/red]",
            mode="error",
            quiet=quiet,
            summary_only=summary_only,
        )


def _plan_table(plan: OrganizePlan) -> Table:
    table = Table(title=f"Clusters under {plan.target_folder}")
    table.add_column("Folder")
    table.add_column("Label")
    table.add_column("Files", justify="right")
    table.add_column("Keywords")
    for cluster in plan.clusters:
        folder = cluster.folder_name
        if not cluster.planned:
            folder = f"[dim]{folder} (kept)[/dim]"
        table.add_row(folder, cluster.label, str(cluster.size), ", ".join(cluster.keywords))
    return table


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="mane")
def cli() -> None:
    """Mane indexes your files for semantic search and organizes them into folders."""


@cli.command()
@click.argument("path", type=click.Path(exists=True, path_type=str))
@click.option("-r", "--recursive", is_flag=True, help="Include all subdirectories.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing indexed files.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def index(
    ctx: click.Context,
    path: str,
    recursive: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    """Embed the files under PATH into the local index."""

    try:
        config = _load_config(verbose)
        quiet_enabled, summary_only = _output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        if recursive:
            config.processing.recurse_directories = True

        root = Path(path).expanduser().resolve()
        context = ManeContext.from_config(config)
        result = context.pipeline.run([root])

        counts = {
            "indexed": len(result.indexed),
            "skipped": len(result.skipped),
            "failed": len(result.failed),
        }
        if json_output:
            console.print_json(
                data={
                    "root": str(root),
                    "counts": counts,
                    "items": [item.model_dump(mode="json") for item in result.items],
                }
            )
            return

        for item in result.items:
            media_label = item.media_class.value if item.media_class else "unknown"
            if item.success:
                _emit_message(
                    f"[green]Indexed[/green] {item.path} ({media_label})",
                    mode="detail",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
            elif item.skipped:
                _emit_message(
                    f"[yellow]Skipped[/yellow] {item.path}: {item.error}",
                    mode="detail",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
            else:
                _emit_message(
                    f"[red]Failed[/red] {item.path}: {item.error}",
                    mode="error",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
        _emit_message(
            _format_summary_line("Index", root, counts),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except StoreError as exc:
        _handle_cli_error(str(exc), code="store_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while indexing: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.command()
@click.argument("query")
@click.option("-n", "--limit", type=click.IntRange(min=1), help="Maximum number of results.")
@click.option(
    "--media",
    type=click.Choice(MEDIA_CHOICES),
    default=ALL_MEDIA,
    show_default=True,
    help="Only return records of this media class.",
)
@click.option(
    "--cross-modal/--text-only",
    default=None,
    help="Also search the image collection (defaults to configuration).",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON search results.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def search(
    ctx: click.Context,
    query: str,
    limit: int | None,
    media: str,
    cross_modal: bool | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Search indexed files for QUERY."""

    try:
        config = _load_config()
        quiet_enabled, summary_only = _output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        if cross_modal is not None:
            config.search.cross_modal = cross_modal

        context = ManeContext.from_config(config)
        results = context.retriever.search(query, limit, media)
        preview_chars = config.organization.preview_chars

        if json_output:
            console.print_json(
                data={
                    "query": query,
                    "media": media,
                    "results": [hit.to_payload(preview_chars=preview_chars) for hit in results],
                }
            )
            return

        if results:
            table = Table(title=f"Results for {query!r}")
            table.add_column("Score", justify="right")
            table.add_column("Name")
            table.add_column("Media")
            table.add_column("Preview")
            for hit in results:
                table.add_row(
                    f"{hit.score:.3f}",
                    hit.record.display_name,
                    hit.record.media_class.value,
                    preview_text(hit.record.content, 80),
                )
            _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)
        else:
            _emit_message(
                "[yellow]No matching files.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line("Search", repr(query), {"results": len(results), "media": media}),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except (StoreError, ValueError) as exc:
        _handle_cli_error(str(exc), code="search_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while searching: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.command("list")
@click.option("-n", "--limit", type=click.IntRange(min=1), help="Maximum number of records.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing records.")
def list_records(limit: int | None, json_output: bool) -> None:
    """List indexed records."""

    try:
        config = _load_config()
        context = ManeContext.from_config(config)
        records = context.store.scan_all(limit or config.store.scan_limit)

        if json_output:
            console.print_json(
                data={
                    "records": [
                        record.model_dump(mode="json", exclude={"embedding"}) for record in records
                    ]
                }
            )
            return

        table = Table(title=f"{len(records)} indexed record(s)")
        table.add_column("ID")
        table.add_column("Name")
        table.add_column("Media")
        table.add_column("Path")
        for record in records:
            table.add_row(
                record.id, record.display_name, record.media_class.value, record.source_path
            )
        console.print(table)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except StoreError as exc:
        _handle_cli_error(str(exc), code="store_error", json_output=json_output, original=exc)


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit status information as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def status(ctx: click.Context, json_output: bool, summary_mode: bool, quiet: bool) -> None:
    """Display index and history statistics."""

    try:
        config = _load_config()
        quiet_enabled, summary_only = _output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        context = ManeContext.from_config(config)
        text_count = context.store.count(CollectionName.TEXT)
        visual_count = context.store.count(CollectionName.VISUAL)
        summaries = context.history.history_summary()
        metrics = {
            "records": text_count + visual_count,
            "text": text_count,
            "visual": visual_count,
            "sessions": len(summaries),
            "undoable": sum(1 for summary in summaries if summary.can_undo),
        }
        store_path = config.store.path

        if json_output:
            console.print_json(data={"store": store_path, "counts": metrics})
            return

        _emit_message(
            _format_summary_line("Status", store_path, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except (StoreError, HistoryError) as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)


@cli.command()
@click.argument("record_ids", nargs=-1, required=True)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing removed records.")
def forget(record_ids: Sequence[str], json_output: bool) -> None:
    """Remove RECORD_IDS from the index without touching the files."""

    try:
        config = _load_config()
        context = ManeContext.from_config(config)
        for record_id in record_ids:
            context.store.delete_by_id(record_id)

        if json_output:
            console.print_json(data={"forgotten": list(record_ids)})
            return
        console.print(f"[green]Removed {len(record_ids)} record(s) from the index.[/green]")
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except StoreError as exc:
        _handle_cli_error(str(exc), code="store_error", json_output=json_output, original=exc)


@cli.command()
@click.option("--max-clusters", type=click.IntRange(min=1), help="Upper bound on folder count.")
@click.option(
    "--target",
    type=click.Path(file_okay=False, path_type=str),
    help="Directory receiving the cluster folders (defaults to configuration).",
)
@click.option("--dry-run", is_flag=True, help="Show the plan without moving files.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the plan.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def organize(
    ctx: click.Context,
    max_clusters: int | None,
    target: str | None,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Group indexed files by similarity and move each group into its own folder."""

    try:
        config = _load_config()
        quiet_enabled, summary_only = _output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        context = ManeContext.from_config(config)
        plan = context.organizer.plan(max_clusters, target)

        report: SessionReport | None = None
        if not dry_run and plan.actions:
            folders = sum(1 for cluster in plan.clusters if cluster.planned)
            report = context.apply_actions(
                plan.actions, f"Organize {folders} folder(s) under {plan.target_folder}"
            )

        if json_output:
            payload: dict[str, Any] = {
                "dry_run": dry_run,
                "plan": plan.model_dump(mode="json"),
            }
            if report is not None:
                payload["session"] = _report_payload(report)
            console.print_json(data=payload)
            return

        if not plan.clusters:
            _emit_message(
                "[yellow]Nothing to organize; index more files first.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        else:
            _emit_message(
                _plan_table(plan), mode="detail", quiet=quiet_enabled, summary_only=summary_only
            )
            if dry_run:
                for action in plan.actions:
                    _emit_message(
                        f"  - {_format_action(action)}",
                        mode="detail",
                        quiet=quiet_enabled,
                        summary_only=summary_only,
                    )
        if report is not None:
            _emit_report_failures(report, quiet=quiet_enabled, summary_only=summary_only)
            _emit_message(
                f"Session {report.session_id} recorded; run `mane undo` to revert.",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )

        metrics: dict[str, Any] = {
            "clusters": len(plan.clusters),
            "folders": sum(1 for cluster in plan.clusters if cluster.planned),
            "actions": len(plan.actions),
        }
        if report is not None:
            metrics["succeeded"] = report.succeeded
            metrics["failed"] = report.failed
        _emit_message(
            _format_summary_line("Organize", plan.target_folder, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except (StoreError, HistoryError) as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while organizing: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.command()
@click.option(
    "--threshold",
    type=click.FloatRange(0.0, 1.0),
    help="Cosine similarity at which files count as duplicates.",
)
@click.option(
    "--media",
    type=click.Choice(MEDIA_CHOICES),
    default=ALL_MEDIA,
    show_default=True,
    help="Only compare records of this media class.",
)
@click.option("--dry-run", is_flag=True, help="Report duplicates without deleting them.")
@click.option("-y", "--yes", is_flag=True, help="Delete duplicates without confirmation.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing duplicates.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def dedupe(
    ctx: click.Context,
    threshold: float | None,
    media: str,
    dry_run: bool,
    yes: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Find near-identical files and delete all but the first of each group."""

    try:
        config = _load_config()
        quiet_enabled, summary_only = _output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        context = ManeContext.from_config(config)
        media_filter = None if media == ALL_MEDIA else MediaClass(media)
        groups = context.duplicate_finder.find(media_filter, threshold)
        actions = context.duplicate_finder.generate_actions(groups)

        report: SessionReport | None = None
        if actions and not dry_run:
            if not yes:
                if json_output:
                    raise click.ClickException("--json requires --yes or --dry-run for dedupe.")
                click.confirm(
                    f"Delete {len(actions)} duplicate file(s)? Deletions cannot be undone.",
                    abort=True,
                )
            report = context.apply_actions(actions, f"Delete {len(actions)} duplicate file(s)")

        if json_output:
            payload: dict[str, Any] = {
                "dry_run": dry_run,
                "groups": [group.model_dump(mode="json") for group in groups],
                "actions": [_action_payload(action) for action in actions],
            }
            if report is not None:
                payload["session"] = _report_payload(report)
            console.print_json(data=payload)
            return

        for group in groups:
            _emit_message(
                f"[bold]{group.primary.source_path}[/bold] "
                f"(average similarity {group.average_similarity:.3f})",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            for duplicate in group.duplicates:
                _emit_message(
                    f"  - {duplicate.source_path} ({duplicate.similarity:.3f})",
                    mode="detail",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
        if report is not None:
            _emit_report_failures(report, quiet=quiet_enabled, summary_only=summary_only)

        metrics: dict[str, Any] = {
            "groups": len(groups),
            "duplicates": len(actions),
        }
        if report is not None:
            metrics["deleted"] = report.succeeded
            metrics["failed"] = report.failed
        _emit_message(
            _format_summary_line("Dedupe", config.store.path, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except (StoreError, HistoryError) as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)


@cli.command()
@click.option("-n", "--limit", type=click.IntRange(min=1), help="Number of sessions to show.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing sessions.")
def history(limit: int | None, json_output: bool) -> None:
    """Show recorded action sessions, newest first."""

    try:
        config = _load_config()
        context = ManeContext.from_config(config)
        summaries = context.history.history_summary()[: limit or config.cli.history_limit]

        if json_output:
            console.print_json(
                data={"sessions": [summary.model_dump(mode="json") for summary in summaries]}
            )
            return

        if not summaries:
            console.print("[yellow]No recorded sessions.[/yellow]")
            return

        table = Table(title="Action history (newest first)")
        table.add_column("Session")
        table.add_column("Created")
        table.add_column("Description")
        table.add_column("Actions", justify="right")
        table.add_column("Undo")
        for summary in summaries:
            table.add_row(
                summary.session_id,
                summary.created_at.isoformat(timespec="seconds"),
                summary.description,
                f"{summary.success_count}/{summary.action_count}",
                "yes" if summary.can_undo else "no",
            )
        console.print(table)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except HistoryError as exc:
        _handle_cli_error(str(exc), code="history_error", json_output=json_output, original=exc)


@cli.command()
@click.argument("session_id", required=False)
@click.option("--dry-run", is_flag=True, help="Show the reverse actions without applying them.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the undo.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def undo(
    ctx: click.Context,
    session_id: str | None,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Revert SESSION_ID, or the most recent session that can be undone."""

    try:
        config = _load_config()
        quiet_enabled, summary_only = _output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        context = ManeContext.from_config(config, dry_run=dry_run)
        report = context.undo(session_id)

        if json_output:
            payload = _report_payload(report)
            payload["actions"] = [_action_payload(action) for action in report.actions]
            console.print_json(data=payload)
            return

        for action in report.actions:
            _emit_message(
                f"  - {_format_action(action)}",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_report_failures(report, quiet=quiet_enabled, summary_only=summary_only)
        _emit_message(
            _format_summary_line(
                "Undo",
                report.session_id,
                {
                    "actions": report.total,
                    "succeeded": report.succeeded,
                    "failed": report.failed,
                    "dry_run": dry_run,
                },
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except HistoryError as exc:
        _handle_cli_error(str(exc), code="history_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except Exception as exc:
        _handle_cli_error(
            f"Unexpected error while undoing changes: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


@cli.group()
def config() -> None:
    """Manage Mane configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""

    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path such as ``search.cross_modal``.
        value: YAML-literal value written into the configuration file.

    Raises:
        click.ClickException: If parsing or validation fails.
    """

    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'search.default_limit'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    file_data = manager.load_file_overrides()
    node = file_data
    for segment in segments[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise click.ClickException(f"Cannot assign into '{segment}'; it is not a mapping.")
        node = child
    node[segments[-1]] = parsed_value

    try:
        resolve_with_precedence(defaults=ManeConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not any(line.startswith(("+", "-")) and "Last updated" not in line for line in diff[2:]):
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an editor and validate the result."""

    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=ManeConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
