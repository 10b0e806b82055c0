"""CLI commands for wedding RSVP management."""

import asyncio
from pathlib import Path
from uuid import UUID

import typer

from src.config.logging import setup_logging
from src.dependencies import get_rsvp_read_model, get_rsvp_write_model, get_submission_pipeline
from src.guests.dtos import GuestAlreadyExistsError, GuestDTO, NewGuestDTO
from src.guests.export import (
    guests_to_csv,
    issue_tokens,
    read_guest_csv,
    render_seed_module,
    tokens_from_export,
)
from src.guests.repository.read_models import SqlGuestReadModel
from src.guests.repository.write_models import SqlGuestWriteModel
from src.guests.tokens.generator import audit_tokens

app = typer.Typer(help="CLI commands for wedding RSVP management")


def _print_audit(tokens: list[str]) -> bool:
    report = audit_tokens(tokens)
    if report.warnings:
        typer.secho("Security warnings:", fg=typer.colors.YELLOW)
        for warning in report.warnings:
            typer.secho(f"  - {warning}", fg=typer.colors.YELLOW)
    if report.recommendations:
        typer.secho("Recommendations:", fg=typer.colors.BLUE)
        for recommendation in report.recommendations:
            typer.secho(f"  - {recommendation}", fg=typer.colors.BLUE)
    if report.is_valid:
        typer.secho(f"All {len(tokens)} tokens passed the audit", fg=typer.colors.GREEN)
    return report.is_valid


async def _existing_tokens() -> set[str]:
    guests = await SqlGuestReadModel().list_guests()
    return {guest.token for guest in guests}


async def _persist_guests(guests: list[GuestDTO]) -> int:
    write_model = SqlGuestWriteModel()
    created = 0
    for guest in guests:
        new_guest = NewGuestDTO(
            first_name=guest.first_name,
            last_name=guest.last_name,
            email=guest.email,
            phone=guest.phone,
            plus_one_eligible=guest.plus_one_eligible,
            plus_one_name=guest.plus_one_name,
            plus_one_email=guest.plus_one_email,
            invitation_group=guest.invitation_group,
            dietary_restrictions=list(guest.dietary_restrictions),
            special_notes=guest.special_notes,
        )
        try:
            await write_model.create_guest(new_guest, guest.token)
            created += 1
        except GuestAlreadyExistsError as e:
            typer.secho(str(e), fg=typer.colors.RED)
    return created


@app.command()
def generate_tokens(
    input_csv: Path = typer.Argument(..., exists=True, help="Guest list CSV with a header row"),
    output_csv: Path = typer.Option(
        Path("guest-list.csv"),
        "--output",
        "-o",
        help="Where to write the guest list with tokens and links",
    ),
    seed_module: Path | None = typer.Option(
        None,
        "--seed-module",
        "-s",
        help="Also write a Python module with the static guest list",
    ),
    base_url: str | None = typer.Option(None, "--base-url", help="Site URL for RSVP links"),
    persist: bool = typer.Option(False, "--persist", help="Store the guests in the database"),
):
    """Generate unique RSVP tokens for a guest list."""
    guests = read_guest_csv(input_csv.read_text(encoding="utf-8"))
    if not guests:
        typer.secho("No guests found in the input file", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    # Typer doesn't support async directly, so use asyncio.run
    taken = asyncio.run(_existing_tokens()) if persist else set()
    issued, failures = issue_tokens(guests, taken=taken)

    for failure in failures:
        typer.secho(f"Error: {failure}", fg=typer.colors.RED)
    if not issued:
        raise typer.Exit(code=1)

    typer.secho(f"Generated {len(issued)} tokens", fg=typer.colors.GREEN)
    _print_audit([guest.token for guest in issued])

    output_csv.write_text(guests_to_csv(issued, base_url), encoding="utf-8")
    typer.secho(f"Guest list written to {output_csv}", fg=typer.colors.CYAN)
    if seed_module is not None:
        seed_module.write_text(render_seed_module(issued), encoding="utf-8")
        typer.secho(f"Seed module written to {seed_module}", fg=typer.colors.CYAN)

    if persist:
        created = asyncio.run(_persist_guests(issued))
        typer.secho(f"Stored {created} guests in the database", fg=typer.colors.GREEN)

    if failures:
        raise typer.Exit(code=1)


@app.command(name="audit-tokens")
def audit_tokens_command(
    guest_list: Path | None = typer.Argument(
        None, help="Guest list CSV written by generate-tokens; defaults to the database"
    ),
):
    """Check issued tokens for duplicates, bad formats and weak patterns."""
    if guest_list is not None:
        tokens = tokens_from_export(guest_list.read_text(encoding="utf-8"))
    else:
        tokens = sorted(asyncio.run(_existing_tokens()))

    if not tokens:
        typer.secho("No tokens to audit", fg=typer.colors.YELLOW)
        return
    if not _print_audit(tokens):
        raise typer.Exit(code=1)


async def _list_rsvps():
    read_model = get_rsvp_read_model()
    return await read_model.list_rsvps(), await read_model.statistics()


@app.command()
def list_rsvps():
    """Show every RSVP and the headline numbers."""
    submissions, stats = asyncio.run(_list_rsvps())

    for submission in submissions:
        color = typer.colors.GREEN if submission.is_attending else typer.colors.RED
        attending = "attending" if submission.is_attending else "not attending"
        details = f"{submission.meal_choice}" if submission.meal_choice else ""
        if submission.plus_one_name:
            details += f" +1 {submission.plus_one_name} ({submission.plus_one_meal_choice})"
        typer.secho(
            f"{submission.id}  {submission.guest_name:<30} {attending:<14} {details}",
            fg=color,
        )

    typer.secho(
        f"\n{stats.total_submissions} responses: {stats.attending_guests} attending, "
        f"{stats.not_attending_guests} not attending, "
        f"{stats.guests_with_plus_one} bringing a plus one",
        fg=typer.colors.CYAN,
    )
    for meal, count in sorted(stats.meal_choice_breakdown.items()):
        typer.secho(f"  {meal}: {count}", fg=typer.colors.BLUE)


@app.command()
def delete_rsvp(
    rsvp_id: UUID = typer.Argument(..., help="Id of the RSVP to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Delete a single RSVP."""
    if not yes:
        typer.confirm(f"Delete RSVP {rsvp_id}?", abort=True)

    deleted = asyncio.run(get_rsvp_write_model().delete_rsvp(rsvp_id))
    if not deleted:
        typer.secho(f"RSVP {rsvp_id} not found", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho(f"RSVP {rsvp_id} deleted", fg=typer.colors.GREEN)


@app.command()
def sync_pending():
    """Push RSVPs queued while the backend was unreachable."""
    report = asyncio.run(get_submission_pipeline().sync_pending())

    typer.secho(f"Synced: {report.synced}", fg=typer.colors.GREEN)
    if report.discarded:
        typer.secho(f"Discarded duplicates: {report.discarded}", fg=typer.colors.YELLOW)
    if report.failed:
        typer.secho(f"Set aside unreadable entries: {report.failed}", fg=typer.colors.YELLOW)
    if report.remaining:
        typer.secho(f"Still pending: {report.remaining}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    setup_logging()
    app()
