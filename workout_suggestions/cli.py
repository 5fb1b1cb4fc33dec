"""Command-line interface for the workout suggestion engine."""

import json
import logging
from datetime import datetime

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

from .config import config
from .errors import GenerationFailure, InvalidIdentity, RateLimitExceeded
from .generation.seed import hash_user_id, seed_for

console = Console()


def setup_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def parse_day(value):
    if value is None:
        return datetime.utcnow().date()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"Expected YYYY-MM-DD, got {value!r}")


def show_suggestion(record, title: str):
    request = record.request
    rationale = record.rationale

    console.print(Panel(
        f"[bold]{request.get('category')}[/bold] • {request.get('duration')} min • "
        f"intensity {request.get('intensity')}/10",
        title=f"{title} ({record.date.isoformat()})",
        border_style="green",
    ))

    table = Table(title="Rationale", box=box.ROUNDED)
    table.add_column("#", style="dim", width=3)
    table.add_column("Rule applied")
    for i, line in enumerate(rationale.get("rulesApplied", []), 1):
        table.add_row(str(i), line)
    console.print(table)

    scores = rationale.get("scores", {})
    if scores:
        console.print("  " + "  ".join(f"{name}: [cyan]{value:.2f}[/cyan]" for name, value in scores.items()))

    for extra in rationale.get("customSuggestions", []):
        console.print(f"  💡 {extra}")

    if record.workout_id:
        console.print(f"\n[black]Linked workout: {record.workout_id}[/black]")


@click.group()
def cli():
    """Daily workout suggestions and workout generation."""
    setup_logging(config.LOG_LEVEL)


@cli.command("init-db")
@click.option("--reset", is_flag=True, help="Drop and recreate all tables")
def init_db(reset):
    """Create the database tables."""
    from .db import get_db

    db = get_db()
    if reset:
        if not click.confirm("This will delete all data. Are you sure?"):
            console.print("[black]Operation cancelled.[/black]")
            return
        db.drop_tables()
    db.create_tables()
    console.print(f"[green]✅ Database ready at {config.DATABASE_URL}[/green]")


@cli.command()
@click.argument("user_id")
@click.option("--date", "day", help="Suggestion date (YYYY-MM-DD), defaults to today")
def today(user_id, day):
    """Show (or create) today's suggestion for a user."""
    from .service import build_service

    try:
        record = build_service().get_or_create_today(user_id, parse_day(day))
    except InvalidIdentity as e:
        console.print(f"[red]❌ {e}[/red]")
        raise SystemExit(2)
    show_suggestion(record, "🎯 Today's Suggestion")


@cli.command()
@click.argument("user_id")
@click.option("--date", "day", help="Suggestion date (YYYY-MM-DD), defaults to today")
def regenerate(user_id, day):
    """Recompute today's suggestion and clear its workout link."""
    from .service import build_service

    try:
        record = build_service().regenerate(user_id, parse_day(day))
    except InvalidIdentity as e:
        console.print(f"[red]❌ {e}[/red]")
        raise SystemExit(2)
    show_suggestion(record, "🔄 Regenerated Suggestion")


@cli.command()
@click.argument("user_id")
@click.option("--date", "day", help="Suggestion date (YYYY-MM-DD), defaults to today")
@click.option("--regenerate", "regen", is_flag=True, help="Recompute the suggestion first")
@click.option("--nonce", default=0, help="Seed nonce; change it for a different workout")
@click.option("--start", is_flag=True, help="Create today's suggestion if it does not exist")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def generate(user_id, day, regen, nonce, start, as_json):
    """Generate a workout from today's suggestion."""
    from .service import NoSuggestion, build_service

    service = build_service()
    ref_date = parse_day(day)
    try:
        if start:
            outcome = service.start(user_id, ref_date, nonce=nonce)
        else:
            outcome = service.generate_from_suggestion(user_id, ref_date, regenerate=regen, nonce=nonce)
    except InvalidIdentity as e:
        console.print(f"[red]❌ {e}[/red]")
        raise SystemExit(2)
    except RateLimitExceeded as e:
        console.print(f"[yellow]⚠️  {e}[/yellow]")
        raise SystemExit(1)
    except GenerationFailure as e:
        console.print(f"[red]❌ Workout generation is unavailable right now, please try again ({e})[/red]")
        raise SystemExit(1)

    if isinstance(outcome, NoSuggestion):
        console.print(f"[yellow]No suggestion available: {outcome.reason}[/yellow]")
        return

    if as_json:
        console.print_json(json.dumps(outcome.to_dict(), default=str))
        return

    workout = outcome.workout
    console.print(Panel.fit(
        f"[bold]{workout.title}[/bold] • {workout.duration} min • intensity {workout.intensity}/10",
        title="🏋️ Generated Workout",
        style="bold blue",
    ))
    for block in workout.blocks:
        table = Table(title=block.get("title", block.get("key", "")), box=box.ROUNDED)
        table.add_column("Movement")
        table.add_column("Prescription")
        for item in block.get("items", []):
            prescription = item.get("prescription", {})
            table.add_row(item.get("name", ""), ", ".join(f"{k}={v}" for k, v in prescription.items()))
        console.print(table)

    provenance = workout.provenance
    fallback_text = " [yellow](fallback)[/yellow]" if provenance["fallbackUsed"] else ""
    console.print(f"[black]Generator {provenance['generatorVersion']}{fallback_text} • seed {provenance['seed']}[/black]")


@cli.command()
@click.argument("user_id")
@click.option("--date", "day", help="Seed date (YYYY-MM-DD), defaults to today")
@click.option("--focus", default=None, help="Focus, usually the workout category")
@click.option("--nonce", default=0, help="Seed nonce")
def seed(user_id, day, focus, nonce):
    """Print the deterministic seed token for a user and day."""
    try:
        token = seed_for(user_id, parse_day(day), focus=focus, nonce=nonce)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--focus")
    console.print(f"User hash: {hash_user_id(user_id)}")
    console.print(f"Seed: [bold]{token}[/bold]")


@cli.command()
@click.argument("user_id")
@click.option("--date", "day", help="Reference date (YYYY-MM-DD), defaults to today")
def debug(user_id, day):
    """Show the history windows and health inputs behind a suggestion."""
    from .service import build_service

    try:
        inputs = build_service().composer.debug_inputs(user_id, parse_day(day))
    except InvalidIdentity as e:
        console.print(f"[red]❌ {e}[/red]")
        raise SystemExit(2)
    console.print_json(json.dumps(inputs, default=str))


@cli.command()
@click.argument("user_ids", nargs=-1)
@click.option("--users-file", type=click.Path(exists=True, dir_okay=False), help="File with one user id per line")
@click.option("--date", "day", help="Suggestion date (YYYY-MM-DD), defaults to today")
def daily(user_ids, users_file, day):
    """Create the day's suggestions for a batch of users."""
    from .service import build_service, generate_daily_suggestions

    ids = list(user_ids)
    if users_file:
        with open(users_file) as f:
            ids.extend(line.strip() for line in f if line.strip())
    if not ids:
        console.print("[yellow]No user ids given.[/yellow]")
        return

    ref_date = parse_day(day)
    console.print(Panel.fit(f"📅 Daily Suggestions for {ref_date.isoformat()}", style="bold blue"))
    counts = generate_daily_suggestions(build_service(), ids, ref_date)

    table = Table(box=box.ROUNDED)
    for name in counts:
        table.add_column(name.title(), justify="right")
    table.add_row(*(str(value) for value in counts.values()))
    console.print(table)


def main():
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[orange]Operation cancelled by user.[/orange]")


if __name__ == "__main__":
    main()
