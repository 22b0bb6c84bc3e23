"""
Command-line interface for the timetable service.

Usage:
    timetabler --data school.json --db timetable.db generate "JS1 silver" --overwrite
    timetabler --data school.json --db timetable.db view --class "JS1 silver"
    timetabler --data school.json subjects --class SS2
    timetabler validate school.json
    timetabler sample school.json --size medium --seed 42
    timetabler --data school.json --db timetable.db serve --port 8000
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .catalog import resolve_subjects
from .config import Settings, configure_logging, load_settings
from .data.generator import generate_medium_school, generate_small_school, save_generated_school
from .data.loader import DataValidationError, load_school_data
from .errors import TimetableError
from .grid import SlotGrid
from .output.formatters import (
    WeekGridFormatter,
    format_csv,
    format_json,
    save_csv,
    save_json,
    save_week_grid,
)
from .output.schema import GenerationResult, WorkloadRecommendations
from .service import TimetableService

# Create Typer app
app = typer.Typer(
    name="timetabler",
    help="School timetable generation: greedy class timetables with teacher workload reports.",
    add_completion=False,
)

# Rich console for pretty output
console = Console()


@dataclass
class CLIState:
    settings: Settings
    data_path: Optional[Path] = None
    db_path: Optional[str] = None


# =============================================================================
# Helper Functions
# =============================================================================

def fail(message: str, recommendation: Optional[str] = None) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(message)}")
    if recommendation:
        console.print(f"[yellow]Recommendation:[/yellow] {escape(recommendation)}")
    raise typer.Exit(code=1)


def build_service(ctx: typer.Context) -> TimetableService:
    """Service from the global options; exits on bad data or storage errors."""
    state: CLIState = ctx.obj
    settings = state.settings
    updates = {}
    if state.data_path is not None:
        updates["school_data_path"] = str(state.data_path)
    if state.db_path is not None:
        updates["database_path"] = state.db_path
    settings = settings.model_copy(update=updates)

    if settings.school_data_path is None:
        fail("No school data file", recommendation="Pass --data school.json or set TIMETABLER_SCHOOL_DATA_PATH")
    if not Path(settings.school_data_path).exists():
        fail(f"School data file not found: {settings.school_data_path}")

    try:
        return TimetableService.from_settings(settings)
    except DataValidationError as e:
        fail(f"Invalid school data: {e}")
    except TimetableError as e:
        fail(e.message, e.recommendation)


def print_workload(report: WorkloadRecommendations) -> None:
    table = Table(title="Teacher Workload", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Teachers scheduled", str(report.current_teachers))
    table.add_row("Recommended teachers", str(report.recommended_teachers))
    table.add_row("Average load", str(report.average_load_per_teacher))
    table.add_row("Max recommended load", str(report.max_recommended_load))
    table.add_row("Need more teachers", "yes" if report.need_more_teachers else "no")
    console.print(table)

    if report.overloaded_teachers:
        overloaded = Table(title="Overloaded Teachers", header_style="bold red")
        overloaded.add_column("Teacher")
        overloaded.add_column("Load", justify="right")
        overloaded.add_column("Recommended", justify="right")
        for teacher in report.overloaded_teachers:
            overloaded.add_row(f"{teacher.name} ({teacher.id})", str(teacher.current_load), str(teacher.recommended))
        console.print(overloaded)

    for warning in report.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


def print_generation(result: GenerationResult) -> None:
    color = "yellow" if result.recommendations.warnings else "green"
    console.print(Panel(
        Text(result.message, style=f"bold {color}"),
        title=f"Timetable: {result.class_name}",
        subtitle=f"{result.utilization_rate}% of slots used",
    ))

    table = Table(title="Summary", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Periods placed", str(result.total_periods))
    table.add_row("Subjects", str(result.subjects_included))
    table.add_row("Teachers", str(result.teachers_involved))
    table.add_row("Core / Science / Arts / Other", (
        f"{result.summary.core_subjects} / {result.summary.science_subjects} / "
        f"{result.summary.arts_subjects} / {result.summary.other_subjects}"
    ))
    console.print(table)

    for name in result.subjects_without_teachers:
        console.print(f"[yellow]No active teacher:[/yellow] {name}")
    for item in result.under_scheduled:
        console.print(f"[yellow]Under-scheduled:[/yellow] {item.subject} ({item.placed} of {item.required})")


# =============================================================================
# Global Options
# =============================================================================

@app.callback()
def main_options(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Settings JSON file",
        exists=True,
    ),
    data: Optional[Path] = typer.Option(
        None,
        "--data", "-d",
        help="School data JSON file (subjects, teachers, classes, periods)",
    ),
    db: Optional[str] = typer.Option(
        None,
        "--db",
        help="SQLite database file; the default in-memory database is discarded on exit",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level", "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """School timetable generation."""
    try:
        settings = load_settings(config)
        if log_level:
            settings = Settings.model_validate({**settings.model_dump(), "log_level": log_level})
    except (ValueError, OSError) as e:
        fail(f"Invalid settings: {e}")

    configure_logging(settings.log_level)
    ctx.obj = CLIState(settings=settings, data_path=data, db_path=db)


# =============================================================================
# Commands
# =============================================================================

@app.command()
def generate(
    ctx: typer.Context,
    class_name: str = typer.Argument(..., help="Class to schedule, e.g. 'JS1 silver'"),
    overwrite: bool = typer.Option(
        False,
        "--overwrite",
        help="Replace the class's existing timetable",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the generation result as JSON",
    ),
) -> None:
    """
    Generate the timetable for one class.

    Example:
        timetabler --data school.json --db timetable.db generate "SS2 gold" --overwrite
    """
    service = build_service(ctx)
    try:
        result = service.generate(class_name, overwrite=overwrite)
    except TimetableError as e:
        fail(e.message, e.recommendation)

    if as_json:
        console.print_json(json.dumps({"success": True, "message": result.message, "data": result.to_dict()}))
        return

    print_generation(result)
    console.print(WeekGridFormatter(service.grid).table(result.entries, title="Weekly Schedule"))
    print_workload(result.recommendations)


@app.command()
def view(
    ctx: typer.Context,
    class_name: Optional[str] = typer.Option(None, "--class", "-C", help="Only this class"),
    day: Optional[str] = typer.Option(None, "--day", "-D", help="Only this day, e.g. Monday"),
    teacher: Optional[str] = typer.Option(None, "--teacher", "-T", help="Only this teacher ID"),
    output_format: str = typer.Option(
        "grid",
        "--format", "-f",
        help="Output format: grid, csv, json",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Write the output to this file instead of the terminal",
    ),
) -> None:
    """
    Show stored timetable entries.

    Examples:
        timetabler --data school.json --db timetable.db view --class "JS1 silver"
        timetabler --data school.json --db timetable.db view --teacher t3 --format csv
    """
    if output_format not in ("grid", "csv", "json"):
        fail(f"Unknown format '{output_format}'. Use grid, csv or json")

    service = build_service(ctx)
    try:
        entries = service.sorted_entries(service.store.list_entries(
            class_name=class_name, day_of_week=day, teacher_id=teacher,
        ))
    except TimetableError as e:
        fail(e.message, e.recommendation)

    if output_format == "grid":
        if not entries:
            console.print("[yellow]No timetable entries found[/yellow]")
            return
        title = class_name or (f"Teacher {teacher}" if teacher else "All classes")
        show_class, show_teacher = not class_name, not teacher
        if output is None:
            formatter = WeekGridFormatter(service.grid, show_class=show_class, show_teacher=show_teacher)
            console.print(formatter.table(entries, title=title))
            return
        save_week_grid(entries, service.grid, output, title=title, show_class=show_class, show_teacher=show_teacher)
    elif output is None:
        typer.echo(format_csv(entries) if output_format == "csv" else format_json(entries))
        return
    elif output_format == "csv":
        save_csv(entries, output)
    else:
        save_json(entries, output)

    console.print(f"[green]Saved {len(entries)} entries to:[/green] {escape(str(output))}")


@app.command()
def subjects(
    ctx: typer.Context,
    class_name: Optional[str] = typer.Option(None, "--class", "-C", help="Only subjects for this class"),
) -> None:
    """List the subject catalog, or the subjects taught to one class."""
    service = build_service(ctx)
    resolved = service.list_subjects(class_name)

    table = Table(title=f"Subjects for {class_name}" if class_name else "Subjects", header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Department")
    table.add_column("Periods/week", justify="right")
    table.add_column("Classes")
    for subject in resolved:
        table.add_row(
            subject.id,
            subject.name,
            subject.department.value if subject.department else "-",
            str(subject.required_periods),
            ", ".join(subject.classes) or "all",
        )
    console.print(table)


@app.command()
def classes(ctx: typer.Context) -> None:
    """List known classes."""
    service = build_service(ctx)
    for name in service.list_classes():
        console.print(name)


@app.command(name="add-period")
def add_period(
    ctx: typer.Context,
    number: str = typer.Argument(..., help="Period number, e.g. 9"),
    start: str = typer.Argument(..., help="Start time HH:MM"),
    end: str = typer.Argument(..., help="End time HH:MM"),
) -> None:
    """Add a teaching period to the stored period map."""
    service = build_service(ctx)
    try:
        slot = service.add_period(number, start, end)
    except TimetableError as e:
        fail(e.message, e.recommendation)
    console.print(f"[green]Added period {number}:[/green] {slot}")


@app.command()
def workload(
    ctx: typer.Context,
    class_name: Optional[str] = typer.Option(None, "--class", "-C", help="Only entries of this class"),
) -> None:
    """Report teacher workload over stored entries."""
    service = build_service(ctx)
    try:
        report = service.workload(class_name)
    except TimetableError as e:
        fail(e.message, e.recommendation)
    print_workload(report)


@app.command()
def validate(
    input_file: Path = typer.Argument(..., help="School data JSON file to validate"),
) -> None:
    """
    Validate a school data file.

    Checks the schema and teacher references, then warns about subjects no
    active teacher can take and classes that need more periods than the week has.
    """
    console.print(f"\n[bold]Validating:[/bold] {input_file}\n")

    if not input_file.exists():
        fail(f"File not found: {input_file}")

    try:
        school = load_school_data(input_file)
    except DataValidationError as e:
        console.print("[red]Schema validation failed:[/red]")
        for line in str(e).split("\n"):
            console.print(f"   {escape(line)}")
        raise typer.Exit(code=1)
    console.print("   [green]Schema validation passed[/green]")

    warnings = []
    for subject in school.subjects:
        if not school.teachers_for_subject(subject.id):
            warnings.append(f"No active teacher for subject '{subject.name}'")

    slots = SlotGrid.from_mapping(school.periods, school.days).slot_count
    for class_name in school.classes:
        resolved = resolve_subjects(class_name, school.subjects)
        if not resolved:
            warnings.append(f"No subjects for class '{class_name}'")
            continue
        required = sum(s.required_periods for s in resolved)
        if required > slots:
            warnings.append(f"Class '{class_name}' needs {required} periods but the week has {slots}")

    if warnings:
        console.print("   [yellow]Warnings found:[/yellow]")
        for w in warnings:
            console.print(f"   - {w}")
    else:
        console.print("   [green]No consistency issues[/green]")

    table = Table(show_header=False, box=None)
    table.add_column("Entity", style="cyan")
    table.add_column("Count", style="white")
    for key, value in school.summary().items():
        table.add_row(key.replace("_", " ").capitalize(), str(value if value is not None else "-"))
    console.print(table)

    console.print("\n[green]Validation complete.[/green]\n")


@app.command()
def sample(
    output: Path = typer.Argument(..., help="Where to write the generated school data"),
    size: str = typer.Option("small", "--size", "-s", help="small or medium"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible data"),
) -> None:
    """Write a generated sample school data file."""
    generators = {"small": generate_small_school, "medium": generate_medium_school}
    if size not in generators:
        fail(f"Unknown size '{size}'. Use small or medium")

    school = generators[size](seed=seed)
    save_generated_school(school, output)
    console.print(
        f"[green]Saved sample school to:[/green] {output} "
        f"({len(school.subjects)} subjects, {len(school.teachers)} teachers, {len(school.classes)} classes)"
    )


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port", min=1, max=65535),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from .api import create_app

    service = build_service(ctx)
    try:
        uvicorn.run(create_app(service), host=host, port=port, log_config=None)
    finally:
        service.store.close()


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
