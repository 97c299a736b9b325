"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.memory_gateway import InMemoryDataGateway
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BookingSlotsError, InvalidInput, NotFound
from ..domain.models import AvailabilityResult
from ..services.availability import AvailabilityCalculator

app = typer.Typer(
    name="bookingslots",
    help="Compute bookable time slots for a business and service",
    add_completion=False
)

console = Console()

EXIT_NOT_FOUND = 1
EXIT_INVALID_INPUT = 2


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the config file, falling back to defaults when none exists."""
    config_path = config_file or get_default_config_path()
    if config_file is None and not config_path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _render_table(result: AvailabilityResult) -> Table:
    table = Table(
        title=f"Slots am {result.date.isoformat()}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Start", style="bold")
    table.add_column("Ende")
    table.add_column("Mitarbeiter", style="dim")
    table.add_column("Verfügbar")

    for slot in result.slots:
        table.add_row(
            slot.start,
            slot.end,
            str(slot.staff_member_id) if slot.staff_member_id is not None else "–",
            "[green]ja[/green]" if slot.available else "[red]nein[/red]",
        )

    return table


@app.command()
def slots(
    business_id: Annotated[int, typer.Argument(help="Business id")],
    service_id: Annotated[int, typer.Argument(help="Service id")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    staff: Annotated[Optional[int], typer.Option("--staff", "-s", help="Restrict to one staff member")] = None,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    data_file: Annotated[Optional[Path], typer.Option("--data", "-d", help="JSON data set. Overrides data_file from the config.")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON.")] = False,
):
    """
    Show the bookable slots of a service on one date.

    Examples:

        bookingslots slots 1 3 2024-11-25

        bookingslots slots 2 5 2024-11-25 --staff 7 --data data.json --json
    """
    try:
        config = _load_config(config_file)
        _configure_logging(config.log_level)

        data_path = data_file or config.data_file
        if data_path is None:
            console.print("[bold red]Fehler:[/bold red] Keine Datendatei angegeben (--data oder data_file).")
            raise typer.Exit(EXIT_INVALID_INPUT)

        gateway = InMemoryDataGateway.from_json(data_path)
        calculator = AvailabilityCalculator.from_config(gateway, config)

        result = asyncio.run(
            calculator.compute_availability(business_id, service_id, date, staff)
        )

    except InvalidInput as e:
        console.print(f"[bold red]Ungültige Eingabe:[/bold red] {e}")
        raise typer.Exit(EXIT_INVALID_INPUT)

    except NotFound as e:
        console.print(f"[bold red]Nicht gefunden:[/bold red] {e}")
        raise typer.Exit(EXIT_NOT_FOUND)

    except (BookingSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Fehler:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
        return

    if not result.slots:
        console.print(f"[yellow]⚠ Keine Zeitslots am {result.date.isoformat()} gefunden.[/yellow]")
        return

    available = sum(1 for slot in result.slots if slot.available)
    console.print()
    console.print(_render_table(result))
    console.print(f"\n[bold green]✓ {available} von {len(result.slots)} Slot(s) verfügbar[/bold green]\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
