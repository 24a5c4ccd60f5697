"""
Command-line interface for calendar-intake.

Usage:
    calendar-intake serve                      # Run the API server
    calendar-intake extract "Standup 9am PST"  # Extract an event from text
    calendar-intake extract --file notes.txt --no-ai
    calendar-intake resolve-tz "Call at 3pm in Tokyo"
    calendar-intake ics event.json -o event.ics
"""

import asyncio
import json
import sys
from datetime import date

import click

from calendar_intake.admission import AdmissionConfig, screen_content
from calendar_intake.config.settings import get_settings
from calendar_intake.extraction import (
    ExtractedEvent,
    ExtractionConfig,
    ExtractionFatalError,
    ExtractionService,
    TimezoneResolver,
)
from calendar_intake.ics import event_to_ics
from calendar_intake.observability.logging import setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Calendar Intake - structured calendar events from free-form text."""
    setup_logging(level="DEBUG" if debug else None)


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"Metrics available on http://localhost:{port}/metrics")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "calendar_intake.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@main.command()
@click.argument("text", required=False)
@click.option(
    "--file",
    "file_",
    type=click.File("r", encoding="utf-8"),
    default=None,
    help="Read event text from a file ('-' for stdin)",
)
@click.option("--no-ai", is_flag=True, help="Skip the AI provider and use pattern extraction")
@click.option(
    "--today",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Date used for defaults and relative dates (YYYY-MM-DD)",
)
def extract(text: str | None, file_, no_ai: bool, today) -> None:
    """Extract a calendar event from TEXT and print it as JSON."""
    if text is None and file_ is None:
        raise click.UsageError("Provide TEXT or --file")
    content = file_.read() if file_ is not None else text

    screened = screen_content(content, AdmissionConfig())
    if not screened.allowed:
        click.echo(click.style(f"Rejected: {screened.reason} ({screened.code})", fg="red"), err=True)
        sys.exit(1)

    reference_day = today.date() if today else date.today()
    service = ExtractionService(ExtractionConfig(), today=lambda: reference_day)

    async def run():
        try:
            return await service.extract(screened.sanitized_content, use_ai=not no_ai)
        finally:
            await service.close()

    try:
        result = asyncio.run(run())
    except ExtractionFatalError as e:
        click.echo(click.style(str(e), fg="red"), err=True)
        sys.exit(1)

    click.echo(json.dumps({"source": result.source, "event": result.event.to_dict()}, indent=2))


@main.command("resolve-tz")
@click.argument("text")
def resolve_tz(text: str) -> None:
    """Print the timezone inferred from TEXT."""
    resolver = TimezoneResolver(ExtractionConfig().default_timezone)
    click.echo(resolver.resolve(text))


@main.command()
@click.argument("event_file", type=click.File("r", encoding="utf-8"))
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the ICS file here instead of stdout",
)
def ics(event_file, output: str | None) -> None:
    """Render the event JSON in EVENT_FILE ('-' for stdin) as ICS."""
    try:
        data = json.load(event_file)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"Not valid JSON: {e}", param_hint="EVENT_FILE") from e
    if not isinstance(data, dict):
        raise click.BadParameter("Expected a JSON object", param_hint="EVENT_FILE")

    config = ExtractionConfig()
    event = ExtractedEvent.from_dict(data).with_defaults(
        today=date.today(),
        default_timezone=config.default_timezone,
        default_title=config.default_title,
        default_start_time=config.default_start_time,
        default_end_time=config.default_end_time,
    )
    try:
        payload = event_to_ics(event)
    except ValueError as e:
        click.echo(click.style(f"Cannot render event: {e}", fg="red"), err=True)
        sys.exit(1)

    if output:
        with open(output, "wb") as fh:
            fh.write(payload)
        click.echo(f"Wrote {output}")
    else:
        click.echo(payload.decode("utf-8"), nl=False)


if __name__ == "__main__":
    main()
