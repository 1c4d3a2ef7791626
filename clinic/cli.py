"""CLI for the post-attendance treatment workflow.

Submits a form snapshot (JSON file) against the clinic backend, or against an
in-memory backend with ``--dry-run``, and prints the confirmation summary or
the per-treatment error report.
"""

import asyncio
from datetime import date
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from clinic.config.settings import settings
from clinic.core.logger import setup_logger
from clinic.integrations.api_client import TreatmentApiClient
from clinic.treatments.memory_backend import InMemoryTreatmentBackend
from clinic.treatments.recurrence import expand_weekly_series, next_occurrence_of_weekday
from clinic.treatments.summary import build_confirmation_summary, build_error_report
from clinic.treatments.types import SubmissionPayload, SubmissionResult, treatment_status_label
from clinic.treatments.workflow import PostAttendanceWorkflow

console = Console()

app = typer.Typer(
    name="clinic",
    help="Post-attendance treatment scheduling CLI",
    add_completion=False,
)


def _load_payload(payload_path: Path) -> SubmissionPayload:
    try:
        return SubmissionPayload.model_validate_json(payload_path.read_text(encoding="utf-8"))
    except ValidationError as e:
        console.print(f"[red]Invalid payload file {payload_path}:[/red]\n{e}")
        raise typer.Exit(2) from e


async def _run_submission(
    payload: SubmissionPayload,
    *,
    attendance_id: int,
    patient_id: int,
    api_url: str | None,
    dry_run: bool,
) -> tuple[PostAttendanceWorkflow, SubmissionResult]:
    if dry_run:
        backend = InMemoryTreatmentBackend()
        workflow = PostAttendanceWorkflow(
            attendance_id=attendance_id,
            patient_id=patient_id,
            patients=backend,
            records=backend,
            sessions=backend,
            on_sessions_created=backend.notify_sessions_created,
            initial_payload=payload,
        )
        return workflow, await workflow.submit()

    async with TreatmentApiClient(api_url) as client:
        workflow = PostAttendanceWorkflow(
            attendance_id=attendance_id,
            patient_id=patient_id,
            patients=client,
            records=client,
            sessions=client,
            initial_payload=payload,
        )
        return workflow, await workflow.submit()


def _print_confirmation(workflow: PostAttendanceWorkflow) -> None:
    summary = build_confirmation_summary(list(workflow.state.sessions))
    status = treatment_status_label(workflow.payload.treatment_status)
    console.print(
        Panel(
            Text("Treatment recorded and appointments scheduled", style="bold green"),
            subtitle=f"{status} • {summary.series_count} series • {summary.total_appointments} appointments",
            border_style="green",
        )
    )
    for group in summary.groups:
        table = Table(title=f"{group.title} ({len(group.sessions)})")
        table.add_column("Location")
        table.add_column("Sessions", justify="right")
        table.add_column("Start")
        table.add_column("Details")
        table.add_column("Tuesdays")
        for preview in group.sessions:
            details = " • ".join(part for part in (preview.color, preview.duration_label) if part)
            dates = ", ".join(d.isoformat() for d in preview.preview_dates)
            if preview.remaining_dates:
                dates = f"{dates} +{preview.remaining_dates} more"
            table.add_row(
                preview.body_location,
                str(preview.planned_sessions),
                preview.start_date.isoformat(),
                details,
                dates,
            )
        console.print(table)


def _print_errors(workflow: PostAttendanceWorkflow) -> None:
    report = build_error_report(list(workflow.state.errors))
    console.print(
        Panel(
            Text("Some treatment sessions could not be created", style="bold red"),
            subtitle=f"{report.total_errors} error(s) • record #{workflow.state.treatment_record_id}",
            border_style="red",
        )
    )
    for entry in report.errors:
        console.print(f"[bold]{entry.treatment_type}[/bold] ({len(entry.errors)})")
        for message in entry.errors:
            console.print(f"  - {message}")


@app.command()
def submit(
    payload_path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Form snapshot JSON"),
    attendance_id: int = typer.Option(..., "--attendance-id", "-a", help="Attendance being completed"),
    patient_id: int = typer.Option(..., "--patient-id", "-p", help="Patient being treated"),
    api_url: str | None = typer.Option(None, "--api-url", help="Backend URL (defaults to CLINIC_API_URL)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use an in-memory backend"),
) -> None:
    """Submit a post-attendance form and create its treatment sessions."""
    setup_logger(level=settings.log_level, log_file=settings.log_file)
    payload = _load_payload(payload_path)

    workflow, result = asyncio.run(
        _run_submission(
            payload,
            attendance_id=attendance_id,
            patient_id=patient_id,
            api_url=api_url,
            dry_run=dry_run,
        )
    )

    if workflow.state.mode == "confirming":
        _print_confirmation(workflow)
        return
    if workflow.state.mode == "erred":
        _print_errors(workflow)
        raise typer.Exit(1)
    if workflow.state.inline_error:
        console.print(f"[red]{workflow.state.inline_error}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Treatment record #{result.treatment_record_id} created (no sessions recommended)[/green]")


@app.command()
def schedule(
    start_date: str = typer.Argument(..., help="Start date (YYYY-MM-DD)"),
    sessions: int = typer.Option(1, "--sessions", "-n", min=0, help="Planned sessions"),
) -> None:
    """Print the projected Tuesday appointments for a session series."""
    try:
        start = date.fromisoformat(start_date)
    except ValueError as e:
        raise typer.BadParameter("start_date must be YYYY-MM-DD") from e

    first = next_occurrence_of_weekday(start)
    for index, occurrence in enumerate(expand_weekly_series(first, sessions), start=1):
        console.print(f"{index:>2}. {occurrence.isoformat()} ({occurrence.strftime('%A')})")


if __name__ == "__main__":
    app()
