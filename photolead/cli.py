"""
PhotoLead CLI

Examples:
    # Score a single business
    photolead score "Rosewood Venue" --website rosewoodweddingvenue.com \
        --phone 555-1234 --address "123 Main St, Austin, TX" --location Austin

    # Show the rule-by-rule breakdown as JSON
    photolead score "Sunset Studio" --website sunsetstudio.com --niche portrait --explain -f json

    # Generate a lead pack for a stored user
    photolead generate user-123

    # Run the daily autonomous pass
    photolead cron

    # Check configuration
    photolead check
"""

import json
import logging
import os
import sys
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import load_config
from .models import CandidateLead, ScoreResult, ScoringContext
from .places.client import GooglePlacesClient, AuthenticationError as PlacesAuthError
from .scoring import explain
from .selector import LeadGenerationError

# Progress to stderr, data to stdout
console = Console(stderr=True)
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool, quiet: bool, debug: bool) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.ERROR
    elif debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def score_color(value: int) -> str:
    return "green" if value >= 80 else "yellow" if value >= 60 else "red"


def display_breakdown(name: str, result: ScoreResult) -> None:
    """Display the per-rule breakdown for one lead."""
    table = Table(title=f"Score: {name}", show_header=True, header_style="bold magenta")

    table.add_column("Rule", style="cyan")
    table.add_column("Points", justify="right")
    table.add_column("Applied", justify="center")

    for r in result.breakdown:
        mark = "[green]✓[/green]" if r.applied else "[dim]-[/dim]"
        table.add_row(r.rule, str(r.points), mark)

    color = score_color(result.total)
    table.add_row("[bold]Total[/bold]", f"[bold {color}]{result.total}[/bold {color}]", "")
    console.print(table)


def display_leads(leads: list) -> None:
    """Display a summary table of stored leads."""
    table = Table(title="New Leads", show_header=True, header_style="bold magenta")

    table.add_column("Name", style="cyan", max_width=30)
    table.add_column("Score", justify="right")
    table.add_column("Phone")
    table.add_column("Website", max_width=40)

    for lead in leads:
        color = score_color(lead.score)
        table.add_row(
            lead.name[:30],
            f"[{color}]{lead.score}[/{color}]",
            lead.phone or "-",
            (lead.website or "-")[:40],
        )

    console.print(table)


# ============================================================================
# CLI Group
# ============================================================================

@click.group(invoke_without_command=True)
@click.pass_context
@click.version_option(version=__version__)
def cli(ctx):
    """Lead discovery and outreach for photographers."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============================================================================
# Score Command
# ============================================================================

@cli.command()
@click.argument("name")
@click.option("--website", help="Business website")
@click.option("--phone", help="Business phone number")
@click.option("--address", help="Formatted street address")
@click.option("--location", "locations", multiple=True, help="Target location (repeatable)")
@click.option("--niche", default="", help="Photographer niche (wedding, portrait, event, ...)")
@click.option("--explain", "show_breakdown", is_flag=True, help="Show the rule-by-rule breakdown")
@click.option("-f", "--format", "output_format",
              type=click.Choice(["text", "json"]), default="text", help="Output format")
@click.option("--config", type=click.Path(exists=True), help="YAML config file")
def score(
    name: str,
    website: Optional[str],
    phone: Optional[str],
    address: Optional[str],
    locations: tuple,
    niche: str,
    show_breakdown: bool,
    output_format: str,
    config: Optional[str],
):
    """
    Score a business as a lead.

    Examples:

        photolead score "Joe's Pizza" --location Austin --niche wedding

        photolead score "Sunset Studio" --website sunsetstudio.com --niche portrait --explain
    """
    settings = load_config(config)

    lead = CandidateLead(external_id="", name=name, website=website, phone=phone, address=address)
    context = ScoringContext(target_locations=list(locations), niche=niche)
    result = explain(lead, context, settings.scoring)

    if output_format == "json":
        data = result.to_dict() if show_breakdown else {"total": result.total}
        click.echo(json.dumps(data, indent=2))
    elif show_breakdown:
        display_breakdown(name, result)
    else:
        click.echo(result.total)


# ============================================================================
# Generate Command
# ============================================================================

@cli.command()
@click.argument("user_id")
@click.option("-q", "--quiet", is_flag=True, help="Suppress progress, only emit data")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(exists=True), help="YAML config file")
def generate(user_id: str, quiet: bool, verbose: bool, debug: bool, config: Optional[str]):
    """Find, score and store a new lead pack for USER_ID."""
    from .database import make_session_factory
    from .service import generate_leads

    setup_logging(verbose, quiet, debug)
    settings = load_config(config)
    session_factory = make_session_factory(settings.database_url)

    try:
        with GooglePlacesClient(settings.google_places_api_key, timeout=settings.request_timeout) as client:
            db = session_factory()
            try:
                if quiet:
                    result = generate_leads(db, user_id, client, settings)
                else:
                    with console.status("[cyan]Searching places..."):
                        result = generate_leads(db, user_id, client, settings)
                leads = [lead.to_dict() for lead in result.leads]
                if not quiet:
                    console.print(f"[green]{result.message}[/green]")
                    if result.leads:
                        display_leads(result.leads)
            finally:
                db.close()
    except PlacesAuthError as e:
        console.print(f"[red]Authentication Error:[/red] {e}")
        sys.exit(1)
    except LeadGenerationError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    click.echo(json.dumps(leads, indent=2, default=str))


# ============================================================================
# Cron Command
# ============================================================================

@cli.command()
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(exists=True), help="YAML config file")
def cron(verbose: bool, debug: bool, config: Optional[str]):
    """Run the daily autonomous pass for every opted-in user."""
    from .autonomous import run_daily
    from .database import make_session_factory
    from .outreach import SendError, SendGridSender

    setup_logging(verbose, False, debug)
    settings = load_config(config)
    session_factory = make_session_factory(settings.database_url)

    try:
        sender = SendGridSender(settings.sendgrid_api_key, settings.sendgrid_from_email)
    except SendError:
        console.print("[yellow]SendGrid not configured, outreach disabled[/yellow]")
        sender = None

    try:
        with GooglePlacesClient(settings.google_places_api_key, timeout=settings.request_timeout) as client:
            db = session_factory()
            try:
                result = run_daily(db, client, sender, settings)
            finally:
                db.close()
    except PlacesAuthError as e:
        console.print(f"[red]Authentication Error:[/red] {e}")
        sys.exit(1)
    finally:
        if sender:
            sender.close()

    click.echo(json.dumps(result.to_dict(), indent=2))
    sys.exit(0 if not result.errors else 1)


# ============================================================================
# Check Command
# ============================================================================

@cli.command()
def check():
    """Check configuration."""
    for var in ("GOOGLE_PLACES_API_KEY", "SENDGRID_API_KEY", "CRON_SECRET", "SUPABASE_JWT_SECRET"):
        value = os.environ.get(var, "")
        if value:
            click.echo(f"✓ {var}: {value[:8]}...")
        else:
            click.echo(f"✗ {var}: not set")

    click.echo(f"  DATABASE_URL: {os.environ.get('DATABASE_URL', 'sqlite:///./photolead.db')}")


# ============================================================================
# Version Command
# ============================================================================

@cli.command()
def version():
    """Show version info."""
    click.echo(f"photolead-agent {__version__}")


# ============================================================================
# Web Command
# ============================================================================

@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
@click.option("--port", default=8000, help="Port to bind to.")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development.")
def web(host: str, port: int, reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    console.print(
        Panel.fit(
            f"[bold]PhotoLead Agent API[/bold]\n"
            f"Running at: [cyan]http://{host}:{port}[/cyan]",
            border_style="blue",
        )
    )
    console.print("Press Ctrl+C to stop\n")

    uvicorn.run(
        "photolead.web.app:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


def main():
    cli()


if __name__ == "__main__":
    cli()
