"""CLI for TripSplit using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .db import Database
from .exceptions import TripSplitError, ValidationError
from .ledger import settle_transfers
from .models import (
    BalanceReport,
    Event,
    EventColor,
    EventDraft,
    Member,
    RemainderPolicy,
    Room,
    SplitPolicy,
)
from .service import TripService
from .splitter import payer_label
from .ui import confirm_delete, select_payer_interactive

app = typer.Typer(
    name="trip-split",
    help="Plan a shared trip day by day and see who owes whom",
)
room_app = typer.Typer(help="Create, edit and inspect rooms")
event_app = typer.Typer(help="Manage the events of one day")
app.add_typer(room_app, name="room")
app.add_typer(event_app, name="event")

console = Console()

RICH_COLORS = {
    EventColor.RED: "red",
    EventColor.BLUE: "blue",
    EventColor.GREEN: "green",
    EventColor.YELLOW: "yellow",
    EventColor.PURPLE: "purple",
    EventColor.PINK: "magenta",
    EventColor.INDIGO: "blue_violet",
}


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def open_service(verbose: bool) -> Iterator[TripService]:
    """
    Load settings, open the database and yield a service.

    Domain errors are printed and end the process with status 1; with
    ``verbose`` the original exception is re-raised.
    """
    setup_logging(verbose)
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield TripService(settings, db)
    except TripSplitError as e:
        console.print(f"\n[bold yellow]⚠️  {e}[/bold yellow]\n")
        if verbose:
            raise
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def format_yen(amount: int, settings: Settings | None = None) -> str:
    """Format a whole-yen amount with thousands separators."""
    symbol = settings.currency_symbol if settings else "¥"
    if amount < 0:
        return f"-{symbol}{abs(amount):,}"
    return f"{symbol}{amount:,}"


def parse_color(value: str) -> EventColor:
    """Accept a palette name ("blue") or its stored value ("bg-blue-300")."""
    value = value.strip().lower()
    for color in EventColor:
        if value in (color.name.lower(), color.value):
            return color
    names = ", ".join(color.name.lower() for color in EventColor)
    raise ValidationError(f"Unknown color '{value}'. Choose one of: {names}")


def parse_renames(values: list[str]) -> dict[str, str]:
    """Parse ID=NAME pairs."""
    renames = {}
    for value in values:
        member_id, sep, name = value.partition("=")
        if not sep:
            raise ValidationError(f"Expected ID=NAME, got '{value}'")
        renames[member_id.strip()] = name
    return renames


def member_name(members: list[Member], member_id: str) -> str:
    """Display name for a member id."""
    for member in members:
        if member.id == member_id:
            return member.name
    return member_id


def display_room(room: Room):
    """Display room settings."""
    console.print(f"\n[bold]{room.name}[/bold]")
    console.print(f"  Room ID:  [cyan]{room.id}[/cyan]")
    console.print(f"  Password: [cyan]{room.password}[/cyan]")
    console.print(f"  Days:     {room.days}")

    table = Table(title="Members", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", width=6)
    table.add_column("Name", style="cyan")
    for member in room.members:
        table.add_row(member.id, member.name)
    console.print(table)


def display_events(room: Room, day: int, events: list[Event], settings: Settings):
    """Display a day's events as a plain list."""
    table = Table(
        title=f"{room.name} - Day {day}", show_header=True, header_style="bold magenta"
    )
    table.add_column("ID", style="dim")
    table.add_column("Time", width=13)
    table.add_column("Subject", style="cyan")
    table.add_column("Paid by")
    table.add_column("Amount", justify="right")
    table.add_column("URL", style="blue", no_wrap=False)

    for event in events:
        table.add_row(
            event.id,
            f"{event.start_time}〜{event.end_time}",
            f"[{RICH_COLORS[event.color]}]■[/] {event.subject}",
            payer_label(event, room.members),
            format_yen(event.amount, settings) if event.amount > 0 else "",
            event.url,
        )

    console.print(table)


# ============================================================================
# Room commands
# ============================================================================


@room_app.command("create")
def room_create(
    name: str = typer.Option("Tokyo Trip", "--name", "-n", help="Trip name"),
    days: int = typer.Option(3, "--days", "-d", help="Number of days"),
    members: list[str] = typer.Option(
        None, "--member", "-m", help="Member name (repeat for each member)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Create a new room and make it the current room.

    Share the printed room ID and password with your travel companions.
    """
    with open_service(verbose) as service:
        room = service.create_room(name, days, members or [])
        console.print("\n[bold green]✓ Room created[/bold green]")
        display_room(room)


@room_app.command("edit")
def room_edit(
    name: str = typer.Option(None, "--name", "-n", help="New trip name"),
    days: int = typer.Option(None, "--days", "-d", help="New number of days"),
    add_members: list[str] = typer.Option(
        None, "--add-member", help="Add a member by name"
    ),
    renames: list[str] = typer.Option(
        None, "--rename", help="Rename a member, as ID=NAME"
    ),
    remove_members: list[str] = typer.Option(
        None, "--remove-member", help="Remove a member by ID"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Edit the current room's settings.

    Events paid by a removed member are kept; they show an unknown payer and
    no longer count toward balances.
    """
    with open_service(verbose) as service:
        room = service.current_room()
        updated = service.update_room(
            room.id,
            name=name,
            days=days,
            add_members=add_members or [],
            rename_members=parse_renames(renames or []),
            remove_members=remove_members or [],
        )
        console.print("\n[bold green]✓ Room updated[/bold green]")
        display_room(updated)


@room_app.command("show")
def room_show(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show the current room's settings."""
    with open_service(verbose) as service:
        display_room(service.current_room())


@app.command()
def login(
    room_id: str = typer.Argument(..., help="Room ID"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, help="Room password"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Enter a room with its ID and password."""
    with open_service(verbose) as service:
        room = service.login(room_id, password)
        console.print(f"\n[bold green]✓ Welcome to {room.name}[/bold green]\n")


@app.command()
def logout(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Leave the current room."""
    with open_service(verbose) as service:
        service.logout()
        console.print("[dim]Left the room.[/dim]")


# ============================================================================
# Event commands
# ============================================================================


@event_app.command("list")
def event_list(
    day: int = typer.Argument(..., help="Day of the trip (1-based)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List the events of one day."""
    with open_service(verbose) as service:
        room = service.current_room()
        events = service.list_events(day)
        if not events:
            console.print(f"[yellow]No events on day {day}.[/yellow]")
            return
        display_events(room, day, events, service.settings)


@event_app.command("add")
def event_add(
    day: int = typer.Argument(..., help="Day of the trip (1-based)"),
    subject: str = typer.Option(..., "--subject", "-s", help="What is happening"),
    start: str = typer.Option("09:00", "--start", help="Start time (HH:MM)"),
    end: str = typer.Option("10:00", "--end", help="End time (HH:MM)"),
    paid_by: str = typer.Option(
        None, "--paid-by", "-p", help="Member ID, or 'free' (prompted if omitted)"
    ),
    amount: int = typer.Option(0, "--amount", "-a", help="Cost in whole yen"),
    url: str = typer.Option("", "--url", help="Optional link"),
    color: str = typer.Option(None, "--color", help="Palette color name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add an event to a day."""
    with open_service(verbose) as service:
        room = service.current_room()

        if paid_by is None:
            paid_by = select_payer_interactive(room.members, subject)
            if paid_by is None:
                console.print("[yellow]No payer selected. Event not added.[/yellow]")
                return

        draft = EventDraft(
            subject=subject,
            start_time=start,
            end_time=end,
            paid_by=paid_by,
            amount=amount,
            url=url,
            color=parse_color(color) if color else None,
        )
        event = service.add_event(day, draft)
        console.print(
            f"\n[bold green]✓ {event.subject} has been added to day {day}"
            f"[/bold green] [dim](id {event.id})[/dim]"
        )


@event_app.command("edit")
def event_edit(
    day: int = typer.Argument(..., help="Day of the trip (1-based)"),
    event_id: str = typer.Argument(..., help="Event ID"),
    subject: str = typer.Option(None, "--subject", "-s", help="New subject"),
    start: str = typer.Option(None, "--start", help="New start time (HH:MM)"),
    end: str = typer.Option(None, "--end", help="New end time (HH:MM)"),
    paid_by: str = typer.Option(None, "--paid-by", "-p", help="Member ID or 'free'"),
    amount: int = typer.Option(None, "--amount", "-a", help="New cost in whole yen"),
    url: str = typer.Option(None, "--url", help="New link"),
    color: str = typer.Option(None, "--color", help="Palette color name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Edit an event. Only the given fields change."""
    with open_service(verbose) as service:
        changes = {
            "subject": subject,
            "start_time": start,
            "end_time": end,
            "paid_by": paid_by,
            "amount": amount,
            "url": url,
            "color": parse_color(color) if color else None,
        }
        changes = {key: value for key, value in changes.items() if value is not None}
        if not changes:
            console.print("[yellow]Nothing to change.[/yellow]")
            return

        event = service.update_event(day, event_id, changes)
        console.print(
            f"\n[bold green]✓ {event.subject} has been updated[/bold green]"
        )


@event_app.command("delete")
def event_delete(
    day: int = typer.Argument(..., help="Day of the trip (1-based)"),
    event_id: str = typer.Argument(..., help="Event ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete an event from a day."""
    with open_service(verbose) as service:
        if not yes:
            event = next(
                (e for e in service.list_events(day) if e.id == event_id), None
            )
            if event is not None and not confirm_delete(event):
                console.print("[yellow]Cancelled.[/yellow]")
                return

        removed = service.delete_event(day, event_id)
        console.print(f"[green]✓ {removed.subject} has been removed[/green]")


# ============================================================================
# Views
# ============================================================================


@app.command()
def schedule(
    day: int = typer.Argument(..., help="Day of the trip (1-based)"),
    show_all: bool = typer.Option(
        False, "--all", help="Show every half hour, not only busy ones"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show a day as a half-hour time grid."""
    with open_service(verbose) as service:
        room = service.current_room()
        grid = service.day_grid(day)

        table = Table(
            title=f"{room.name} - Day {day} of {room.days}",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Time", style="dim", width=6)
        table.add_column("Events", no_wrap=False)

        for slot in grid:
            if not show_all and not slot.active:
                continue

            cells = []
            placed_ids = {placed.event.id for placed in slot.placed}
            for placed in slot.placed:
                event = placed.event
                style = RICH_COLORS[event.color]
                payer = payer_label(event, room.members)
                line = (
                    f"[bold {style}]■ {event.subject}[/] "
                    f"{event.start_time}〜{event.end_time} "
                    f"[dim]({placed.blocks} × 30 min)[/dim]"
                )
                if payer:
                    line += f"  支払い：{payer}"
                if event.amount > 0:
                    line += f"  {format_yen(event.amount, service.settings)}"
                cells.append(line)
            for event in slot.active:
                if event.id not in placed_ids:
                    cells.append(f"[{RICH_COLORS[event.color]}]│ {event.subject}[/]")

            label = slot.time if slot.is_hour else ""
            table.add_row(label, "\n".join(cells))

        console.print(table)


@app.command()
def summary(
    day: int = typer.Argument(..., help="Day of the trip (1-based)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show the expense summary for a day."""
    with open_service(verbose) as service:
        expense_summary = service.day_summary(day)
        settings = service.settings

        table = Table(
            title=f"Expense Summary - Day {day}",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Member", style="cyan")
        table.add_column("Total Paid", justify="right")
        table.add_column("Events", justify="right")
        table.add_column("Average/Event", justify="right")

        for row in expense_summary.rows:
            table.add_row(
                row.member.name,
                format_yen(row.total_paid, settings),
                str(row.event_count),
                format_yen(row.average_per_event, settings),
            )
        table.add_section()
        table.add_row(
            "[bold]Total[/bold]",
            f"[bold]{format_yen(expense_summary.total_paid, settings)}[/bold]",
            f"[bold]{expense_summary.event_count}[/bold]",
            f"[bold]{format_yen(expense_summary.average_per_event, settings)}[/bold]",
        )

        console.print(table)


def display_balances(report: BalanceReport, members: list[Member], settings: Settings):
    """Display the debt matrix, net balances and settle-up transfers."""
    console.print(
        f"\n[bold]Split policy:[/bold] {report.policy.value} "
        f"[dim](remainder: {report.remainder_policy.value})[/dim]"
    )

    matrix = Table(
        title="Who owes whom (row owes column)",
        show_header=True,
        header_style="bold magenta",
    )
    matrix.add_column("", style="cyan")
    for member in members:
        matrix.add_column(member.name, justify="right")
    for debtor in members:
        cells = []
        for creditor in members:
            if debtor.id == creditor.id:
                cells.append("[dim]—[/dim]")
            else:
                owed = report.debts[debtor.id].get(creditor.id, 0)
                cells.append(format_yen(owed, settings) if owed else "[dim]0[/dim]")
        matrix.add_row(debtor.name, *cells)
    console.print(matrix)

    net_table = Table(
        title="Net balances", show_header=True, header_style="bold magenta"
    )
    net_table.add_column("Member", style="cyan")
    net_table.add_column("Paid", justify="right")
    net_table.add_column("To receive", justify="right")
    net_table.add_column("To pay", justify="right")
    net_table.add_column("Net", justify="right")
    for member in members:
        net = report.net(member.id)
        style = "green" if net > 0 else "red" if net < 0 else "dim"
        net_table.add_row(
            member.name,
            format_yen(report.total_paid.get(member.id, 0), settings),
            format_yen(report.to_receive(member.id), settings),
            format_yen(report.to_pay(member.id), settings),
            f"[{style}]{format_yen(net, settings)}[/{style}]",
        )
    console.print(net_table)

    transfers = settle_transfers(report)
    if transfers:
        console.print("\n[bold]Settle up:[/bold]")
        for transfer in transfers:
            console.print(
                f"  {member_name(members, transfer.from_member)} → "
                f"{member_name(members, transfer.to_member)}: "
                f"[bold]{format_yen(transfer.amount, settings)}[/bold]"
            )
    else:
        console.print("\n[green]✓ Nobody owes anything[/green]")

    if report.unallocated:
        console.print(
            f"[dim]{format_yen(report.unallocated, settings)} of rounding "
            f"remainder is not attributed to anyone[/dim]"
        )


@app.command()
def balances(
    day: int = typer.Option(
        None, "--day", "-d", help="Only this day (default: whole trip)"
    ),
    policy: SplitPolicy = typer.Option(None, "--policy", help="Split policy"),
    remainder: RemainderPolicy = typer.Option(
        None, "--remainder", help="What to do with rounding remainders"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show who has paid how much and who owes whom."""
    with open_service(verbose) as service:
        room = service.current_room()
        if day is None:
            report = service.trip_balances(policy, remainder)
        else:
            report = service.day_balances(day, policy, remainder)
        display_balances(report, room.members, service.settings)


if __name__ == "__main__":
    app()
