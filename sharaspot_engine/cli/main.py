"""Operator CLI for the SharaSpot contribution engine using Typer and Rich."""

import asyncio
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from sharaspot_engine import __version__
from sharaspot_engine.clock import SystemClock
from sharaspot_engine.config.logging import configure_logging, get_logger
from sharaspot_engine.config.settings import settings
from sharaspot_engine.data_management.contribution_store import ContributionStore
from sharaspot_engine.data_management.reliability_store import ReliabilityStore
from sharaspot_engine.data_management.rewards_store import RewardsStore
from sharaspot_engine.data_management.schemas import LeaderboardPeriod
from sharaspot_engine.pipelines.reliability_batch import ReliabilityBatchJob
from sharaspot_engine.rewards.leaderboard import Leaderboard
from sharaspot_engine.rewards.ledger import RewardsLedger
from sharaspot_engine.utils.logging import configure_structured_logging

# Initialize CLI app
app = typer.Typer(
    help="SharaSpot Engine CLI - contribution reliability and rewards",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override SHARASPOT_LOG_LEVEL for this run"
    ),
) -> None:
    """Operate on the JSON-persisted engine stores."""
    if log_level:
        configure_logging(level=log_level)
        configure_structured_logging(level=log_level)


def _persistence_row(path: str | None) -> tuple[str, str]:
    if path is None:
        return "⚠ Memory only", "Set the SHARASPOT_*_PATH variable to persist"
    return "✓ Configured", path


@app.command()
def status() -> None:
    """
    Display engine configuration and storage statistics.
    """
    logger.info("Displaying engine status")

    table = Table(title="SharaSpot Engine Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    python_version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    table.add_row("Environment", "✓ Ready", python_version)
    table.add_row("Timezone", "✓ Active", settings.engine_timezone)
    table.add_row("Contributions", *_persistence_row(settings.contributions_path))
    table.add_row("Rewards", *_persistence_row(settings.rewards_path))
    table.add_row("Reliability", *_persistence_row(settings.reliability_path))
    table.add_row("Batch Job", "✓ Ready", f"Batch size: {settings.batch_size}")
    table.add_row(
        "Logging", "✓ Active", f"Level: {settings.log_level}, Format: {settings.log_format}"
    )

    console.print(table)

    contribution_stats = asyncio.run(
        ContributionStore(settings.contributions_path).get_storage_stats()
    )
    rewards_stats = asyncio.run(RewardsStore(settings.rewards_path).get_storage_stats())
    console.print(
        f"[dim]{contribution_stats['total_contributions']} contributions across "
        f"{contribution_stats['total_chargers']} chargers, "
        f"{rewards_stats['total_users']} users, "
        f"{rewards_stats['total_transactions']} transactions[/dim]"
    )


@app.command("recompute-scores")
def recompute_scores(
    batch_size: Optional[int] = typer.Option(None, help="Chargers per batch (defaults to settings)"),
) -> None:
    """
    Recompute reliability scores for every charger.

    Intended to be triggered by an external scheduler.
    """
    job = ReliabilityBatchJob(
        ContributionStore(settings.contributions_path),
        ReliabilityStore(settings.reliability_path),
        clock=SystemClock(),
        batch_size=batch_size,
    )
    stats = asyncio.run(job.run())
    logger.info("Reliability recomputation finished", **stats)

    console.print(
        f"[green]✓[/green] Recomputed {stats['chargers_processed']} chargers "
        f"in {stats['batches']} batches ({stats['scores_changed']} changed)"
    )
    for badge, count in sorted(stats["trust_badges"].items()):
        console.print(f"  [cyan]{badge}[/cyan]: {count}")


@app.command()
def leaderboard(
    limit: int = typer.Option(10, help="Number of entries"),
    monthly: bool = typer.Option(False, "--monthly", help="Rank by coins this month"),
    validators: bool = typer.Option(False, "--validators", help="Rank by validations"),
    period: LeaderboardPeriod = typer.Option(
        LeaderboardPeriod.WEEK, help="Validator leaderboard period"
    ),
) -> None:
    """
    Show the top users by coins or by validation activity.
    """
    board = Leaderboard(
        RewardsStore(settings.rewards_path),
        ContributionStore(settings.contributions_path),
        clock=SystemClock(),
    )

    if validators:
        entries = asyncio.run(board.top_validators(limit, period))
        table = Table(title=f"Top Validators ({period.value})", header_style="bold magenta")
        table.add_column("#", style="cyan", justify="right")
        table.add_column("User", style="green")
        table.add_column("Validations", justify="right")
        table.add_column("Coins", style="yellow", justify="right")
        for entry in entries:
            table.add_row(
                str(entry.position),
                entry.user_id,
                str(entry.validation_count),
                str(entry.ev_coins_earned),
            )
        console.print(table)
        return

    users = asyncio.run(board.top_monthly(limit) if monthly else board.top(limit))
    title = "Top Contributors (this month)" if monthly else "Top Contributors"
    table = Table(title=title, header_style="bold magenta")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("User", style="green")
    table.add_column("Rank")
    table.add_column("Coins", style="yellow", justify="right")
    table.add_column("Badges", justify="right")
    for position, rewards in enumerate(users, start=1):
        coins = rewards.coins_this_month if monthly else rewards.total_coins
        table.add_row(
            str(position),
            rewards.user_id,
            rewards.rank.value,
            str(coins),
            str(len(rewards.badges)),
        )
    console.print(table)


@app.command()
def score(charger_id: str = typer.Argument(..., help="Charger id")) -> None:
    """
    Show the stored reliability breakdown for one charger.
    """
    stored = asyncio.run(ReliabilityStore(settings.reliability_path).get_score(charger_id))
    if stored is None:
        console.print(f"[yellow]⚠[/yellow] No score stored for {charger_id}")
        raise typer.Exit(1)

    table = Table(title=f"Reliability: {charger_id}", header_style="bold magenta")
    table.add_column("Component", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Level", style="green")
    levels = stored.component_levels()
    table.add_row("Photo", f"{stored.photo_score:.1f}", levels["photo"].value)
    table.add_row("Review", f"{stored.review_score:.1f}", levels["review"].value)
    table.add_row("Rating", f"{stored.rating_score:.1f}", levels["rating"].value)
    table.add_row("Freshness", f"{stored.freshness_score:.1f}", levels["freshness"].value)
    table.add_row("Validation", f"{stored.validation_score:.1f}", levels["validation"].value)
    console.print(table)
    console.print(
        f"Total: [bold]{stored.to_display_string()}[/bold]  "
        f"Stars: {stored.star_rating}  Badge: {stored.trust_badge.value}"
    )


@app.command("reset-monthly")
def reset_monthly(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """
    Zero every user's monthly coin counter.
    """
    if not yes:
        typer.confirm("Reset coins_this_month for all users?", abort=True)

    ledger = RewardsLedger(RewardsStore(settings.rewards_path), clock=SystemClock())
    reset = asyncio.run(ledger.reset_monthly_coins())
    logger.info(f"Monthly reset complete: {reset} users")
    console.print(f"[green]✓[/green] Reset monthly coins for {reset} users")


@app.command()
def version() -> None:
    """Display version information."""
    console.print("[bold]SharaSpot Engine[/bold]")
    console.print(f"Version: {__version__}")


if __name__ == "__main__":
    app()
