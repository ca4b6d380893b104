"""CLI — init, list, show, add, edit, delete, automate, export, clusters."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ideaboard.config import Config
from ideaboard.core.diagnostics import DiagnosticReport
from ideaboard.core.portfolio import Portfolio
from ideaboard.core.ranking import (
    ALL,
    Classification,
    RankedRow,
    SortConfig,
    SortDirection,
    classify,
    sort_key_function,
    unique_clusters,
)
from ideaboard.errors import IdeaboardError
from ideaboard.gateway import create_gateway
from ideaboard.models.catalog import (
    BUSINESS_MODELS,
    CLUSTERS,
    CRITERIA,
    business_model_label,
    get_cluster,
    status_label,
)
from ideaboard.models.record import Record, RecordDraft, RecordStatus

T = TypeVar("T")

console = Console()

_CLASSIFICATION_STYLES = {
    Classification.VERY_HIGH: "bold green",
    Classification.HIGH: "blue",
    Classification.MEDIUM: "yellow",
    Classification.LOW: "red",
}


def _print_report(report: DiagnosticReport) -> None:
    steps = "\n".join(f"{i}. {step}" for i, step in enumerate(report.remediation, 1))
    console.print(
        Panel(
            f"{report.detail}\n\n[bold]What to check:[/bold]\n{steps}",
            title=f"[red]{report.title}[/red]",
            border_style="red",
        )
    )


def _run(config: Config, action: Callable[[Portfolio], Awaitable[T]]) -> T:
    """Load the portfolio, run ``action`` on it, and close the gateway."""

    async def _inner() -> T:
        gateway = create_gateway(config)
        try:
            portfolio = Portfolio(
                gateway, page_size=config.page_size, date_format=config.csv_date_format
            )
            report = await portfolio.load()
            if report is not None:
                _print_report(report)
                raise click.exceptions.Exit(1)
            return await action(portfolio)
        finally:
            await gateway.close()

    try:
        return asyncio.run(_inner())
    except IdeaboardError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(package_name="ideaboard")
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Workspace directory holding config.yaml (default: ~/.ideaboard)",
)
@click.pass_context
def main(ctx: click.Context, workspace: Path | None) -> None:
    """Ideaboard — score, rank and export a shared idea portfolio."""
    config = Config.load(workspace.expanduser().resolve() if workspace else None)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


@main.command()
@click.option("--backend-url", default="", help="Deployed backend endpoint (empty = demo mode)")
@click.option("--webhook-url", default="", help="Automation webhook endpoint")
@click.pass_obj
def init(config: Config, backend_url: str, webhook_url: str) -> None:
    """Write a config file for this workspace."""
    config.backend_url = backend_url
    config.webhook_url = webhook_url
    config.save()
    click.echo(f"Initialized workspace at {config.workspace_path}")
    if config.demo_mode:
        click.echo("No backend URL set: ideaboard will run in demo mode.")


def _scores_cells(record: Record) -> list[str]:
    return [str(score) for score in record.scores]


def _classification_cell(row: RankedRow) -> str:
    style = _CLASSIFICATION_STYLES[row.classification]
    return f"[{style}]{row.classification}[/{style}]"


@main.command(name="list")
@click.option("--cluster", default=ALL, help="Filter by cluster name")
@click.option(
    "--status",
    type=click.Choice([ALL, *(s.value for s in RecordStatus)]),
    default=ALL,
)
@click.option(
    "--classification",
    type=click.Choice([ALL, *(c.value for c in Classification)], case_sensitive=False),
    default=ALL,
)
@click.option("--sort", "sort_key", default="total", help="name, total, score_<i>, revenue_estimate, ...")
@click.option("--ascending", is_flag=True, help="Sort ascending instead of descending")
@click.option("--page", default=1, type=int)
@click.pass_obj
def list_(
    config: Config,
    cluster: str,
    status: str,
    classification: str,
    sort_key: str,
    ascending: bool,
    page: int,
) -> None:
    """Show the ranking table."""

    async def _list(portfolio: Portfolio) -> None:
        state = portfolio.ranking
        state.set_filter("cluster", cluster)
        state.set_filter("status", status)
        state.set_filter("classification", classification)
        sort_key_function(sort_key)
        direction = SortDirection.ASCENDING if ascending else SortDirection.DESCENDING
        state.sort = SortConfig(sort_key, direction)
        state.set_page(page)
        view = portfolio.view()

        if view.is_empty:
            click.echo("No ideas match the selected filters.")
            return

        table = Table(title="Idea Prioritization")
        table.add_column("Rank", justify="right")
        table.add_column("ID", justify="right")
        table.add_column("Idea")
        for criterion in CRITERIA:
            table.add_column(criterion.short_title, justify="center")
        table.add_column("Revenue", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Class")
        table.add_column("Status")
        for row in view.rows:
            record = row.record
            table.add_row(
                str(row.position),
                str(record.id),
                record.name,
                *_scores_cells(record),
                f"{record.revenue_estimate:,.2f}",
                str(row.total),
                _classification_cell(row),
                status_label(record.status),
            )
        console.print(table)
        console.print(f"Page {view.page} of {view.page_count} ({view.filtered_count} ideas)")

    _run(config, _list)


@main.command()
@click.argument("record_id", type=int)
@click.pass_obj
def show(config: Config, record_id: int) -> None:
    """Show one idea with its per-criterion scores."""

    async def _show(portfolio: Portfolio) -> None:
        record = portfolio.get(record_id)
        if record is None:
            raise IdeaboardError(f"Idea {record_id} not found")

        scores = "\n".join(
            f"  {c.title}: {score}" for c, score in zip(CRITERIA, record.scores, strict=True)
        )
        console.print(
            Panel(
                f"{record.description}\n\n"
                f"Audience: {record.target_audience}\n"
                f"Cluster: {record.cluster}\n"
                f"Business model: {business_model_label(record.business_model)}\n"
                f"Status: {status_label(record.status)}\n"
                f"Creator: {record.creator_name or 'N/A'}\n\n"
                f"Scores:\n{scores}\n"
                f"  Total: {record.total} ({classify(record.total)})\n\n"
                f"Revenue estimate: {record.revenue_estimate:,.2f}",
                title=f"#{record.id} {record.name}",
            )
        )

    _run(config, _show)


@main.command()
@click.option("--name", required=True)
@click.option("--description", required=True, help="Main benefit for the customer")
@click.option("--audience", required=True, help="Target audience")
@click.option(
    "--business-model",
    required=True,
    type=click.Choice(sorted(BUSINESS_MODELS)),
)
@click.option("--cluster", required=True)
@click.option("--creator", default="", help="Creator name")
@click.pass_obj
def add(
    config: Config,
    name: str,
    description: str,
    audience: str,
    business_model: str,
    cluster: str,
    creator: str,
) -> None:
    """Add a new idea (status: under review, all scores 0)."""
    draft = RecordDraft(
        name=name,
        description=description,
        target_audience=audience,
        business_model=business_model,
        cluster=cluster,
        creator_name=creator,
    )

    async def _add(portfolio: Portfolio) -> Record:
        return await portfolio.add_record(draft)

    record = _run(config, _add)
    click.echo(f"Added idea #{record.id}: {record.name}")


@main.command()
@click.argument("record_id", type=int)
@click.argument("assignments", nargs=-1, required=True)
@click.pass_obj
def edit(config: Config, record_id: int, assignments: tuple[str, ...]) -> None:
    """Buffer FIELD=VALUE edits on one idea, then save them.

    Fields: score_<i> or score_<criterion>, revenue_estimate, status, name,
    description, target_audience, business_model, cluster, creator_name.
    """
    edits: list[tuple[str, str]] = []
    for assignment in assignments:
        field_name, sep, value = assignment.partition("=")
        if not sep:
            raise click.BadParameter(f"Expected FIELD=VALUE, got {assignment!r}")
        edits.append((field_name.strip(), value))

    async def _edit(portfolio: Portfolio) -> bool:
        for field_name, value in edits:
            await portfolio.set_field(record_id, field_name, value)
        result = await portfolio.save_changes()
        for failure in result.failed:
            click.echo(f"Failed to save #{failure.record_id}: {failure.message}", err=True)
        return result.complete

    if not _run(config, _edit):
        sys.exit(1)
    click.echo(f"Saved idea #{record_id}")


@main.command()
@click.argument("record_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_obj
def delete(config: Config, record_id: int, yes: bool) -> None:
    """Delete an idea."""
    if not yes:
        click.confirm(f"Delete idea #{record_id}?", abort=True)

    async def _delete(portfolio: Portfolio) -> None:
        await portfolio.delete_record(record_id)

    _run(config, _delete)
    click.echo(f"Deleted idea #{record_id}")


@main.command()
@click.argument("record_id", type=int)
@click.option("--note", default="", help="Free-text note sent with the idea")
@click.pass_obj
def automate(config: Config, record_id: int, note: str) -> None:
    """Send an idea to the automation webhook."""

    async def _automate(portfolio: Portfolio) -> None:
        await portfolio.trigger_automation(record_id, note)

    _run(config, _automate)
    click.echo(f"Sent idea #{record_id} to the automation flow")


@main.command()
@click.argument("path", type=click.Path(path_type=Path), required=False)
@click.pass_obj
def export(config: Config, path: Path | None) -> None:
    """Export saved ideas to CSV (default: prioritized_ideas.csv in the workspace)."""

    async def _export(portfolio: Portfolio) -> Path | None:
        return await portfolio.write_csv(path or config.export_path)

    target = _run(config, _export)
    if target is None:
        click.echo("No data to export.")
        return
    click.echo(f"Exported to {target}")


@main.command()
@click.pass_obj
def clusters(config: Config) -> None:
    """List strategic clusters with their idea counts.

    Catalog clusters come first; clusters only found on records follow.
    """

    async def _clusters(portfolio: Portfolio) -> None:
        names = [c.short_title for c in CLUSTERS]
        names += [n for n in unique_clusters(portfolio.records()) if n not in names]

        table = Table(title="Strategic Clusters")
        table.add_column("Cluster")
        table.add_column("Value proposition")
        table.add_column("Ideas", justify="right")
        for name in names:
            cluster = get_cluster(name)
            proposition = cluster.value_proposition if cluster else "[dim]Not in catalog[/dim]"
            count = len(portfolio.records_in_cluster(name))
            table.add_row(name, proposition, str(count))
        console.print(table)

    _run(config, _clusters)
