"""CLI interface using Typer."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional
from uuid import uuid4

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from steptdee.config import get_settings
from steptdee.db import get_db

app = typer.Typer(
    help="Daily energy expenditure (TDEE) from step counts, with weight tracking",
    no_args_is_help=True,
)
console = Console()

# Subcommand groups
profile_app = typer.Typer(help="Manage the user profile")
weight_app = typer.Typer(help="Log and list weight entries")
steps_app = typer.Typer(help="Read step counts from the configured source")
summary_app = typer.Typer(help="Show synchronized daily summaries")

app.add_typer(profile_app, name="profile")
app.add_typer(weight_app, name="weight")
app.add_typer(steps_app, name="steps")
app.add_typer(summary_app, name="summary")


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def configure_logging(verbose: bool = False) -> None:
    """Send log records through Rich at the configured level."""
    level = "DEBUG" if verbose else get_settings().logging.level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def ensure_tables() -> None:
    """Ensure tables exist (idempotent)."""
    db = get_db()
    db.initialize_schema()


def fail(message: str, command: str, json_output: bool, suggestion: Optional[str] = None) -> None:
    """Report a user error and exit with status 1."""
    if json_output:
        response: dict = {"success": False, "command": command, "errors": [message]}
        if suggestion:
            response["suggestions"] = [suggestion]
        output_json(response)
    else:
        console.print(f"[red]{message}[/red]")
        if suggestion:
            console.print(suggestion)
    raise typer.Exit(1)


def parse_date(value: Optional[str], command: str, json_output: bool) -> Optional[date]:
    """Parse a YYYY-MM-DD option value."""
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        fail(f"Invalid date '{value}', expected YYYY-MM-DD", command, json_output)
    return None


def require_profile(command: str, json_output: bool):
    """Load the profile or exit with a hint to create one."""
    from steptdee.tracking.stores import SQLiteProfileStore

    profile = SQLiteProfileStore(get_db()).load()
    if profile is None:
        fail(
            "No profile found",
            command,
            json_output,
            "Create one with: steptdee profile create --sex female --height 1.68 --weight 62",
        )
    return profile


def resolve_step_source(
    kind: Optional[str],
    path: Optional[Path],
    command: str,
    json_output: bool,
):
    """Build the step source from options, falling back to settings."""
    from steptdee.steps import create_step_source

    settings = get_settings()
    try:
        return create_step_source(
            kind or settings.step_source.kind,
            path or settings.step_source.path,
        )
    except ValueError as e:
        fail(
            str(e),
            command,
            json_output,
            "Pass --source-kind/--source-path or set step_source in ~/.steptdee/config.yaml",
        )


def profile_to_dict(profile) -> dict:
    return {
        "profile_id": profile.profile_id,
        "date_of_birth": profile.date_of_birth.isoformat() if profile.date_of_birth else None,
        "sex": profile.sex.value,
        "height_m": profile.height_m,
        "weight_kg": profile.weight_kg,
        "step_length_m": profile.step_length_m,
        "bmr_formula": profile.bmr_formula.value,
        "step_goal": profile.step_goal,
        "formula_sex": profile.formula_sex.value if profile.formula_sex else None,
    }


def summary_to_dict(summary) -> dict:
    return {
        "date": summary.date.isoformat(),
        "steps": summary.steps,
        "distance_km": summary.distance_km,
        "kcal_walk": summary.kcal_walk,
        "bmr_kcal": summary.bmr_kcal,
        "tdee": summary.tdee,
    }


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Daily energy expenditure (TDEE) from step counts."""
    configure_logging(verbose)


# Callbacks for sub-apps to auto-create tables on first use
@profile_app.callback()
def profile_callback() -> None:
    """Ensure tables exist before any profile command."""
    ensure_tables()


@weight_app.callback()
def weight_callback() -> None:
    """Ensure tables exist before any weight command."""
    ensure_tables()


@summary_app.callback()
def summary_callback() -> None:
    """Ensure tables exist before any summary command."""
    ensure_tables()


# ============================================================================
# Setup Commands
# ============================================================================


@app.command()
def init(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Create the database."""
    db = get_db()
    db.initialize_schema()
    counts = db.row_counts()

    if json_output:
        output_json({
            "success": True,
            "command": "init",
            "data": {
                "database": str(db.db_path),
                "schema_version": db.schema_version(),
                "row_counts": counts,
            },
            "human_summary": f"Database ready at {db.db_path}",
        })
    else:
        console.print(f"[green]Database ready at {db.db_path}[/green]")
        for table, count in counts.items():
            console.print(f"  {table}: {count} rows")


@app.command()
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Delete the profile, weight log and daily summaries."""
    from steptdee.tracking.stores import clear_all_data

    ensure_tables()
    if not yes and not typer.confirm("Delete all stored data?"):
        console.print("Cancelled")
        raise typer.Exit(0)

    result = clear_all_data(get_db())
    if not result.ok:
        fail(f"Could not clear data: {result.error}", "reset", json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "reset",
            "data": {},
            "human_summary": "All data deleted",
        })
    else:
        console.print("[green]All data deleted[/green]")


# ============================================================================
# Profile Commands
# ============================================================================


@profile_app.command("create")
def profile_create(
    sex: str = typer.Option(..., "--sex", help="Sex (male/female/other)"),
    height: float = typer.Option(..., "--height", help="Height in metres"),
    weight: float = typer.Option(..., "--weight", help="Current weight in kg"),
    dob: Optional[str] = typer.Option(None, "--dob", help="Date of birth (YYYY-MM-DD)"),
    step_length: Optional[float] = typer.Option(
        None, "--step-length", help="Step length in metres (default: estimated from height)"
    ),
    bmr_sex: Optional[str] = typer.Option(
        None, "--bmr-sex", help="Formula to use when sex is 'other' (male/female)"
    ),
    step_goal: int = typer.Option(10000, "--step-goal", help="Daily step goal"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Create the profile used for daily calculations."""
    from steptdee.tracking.metrics import Sex, estimate_step_length_m
    from steptdee.tracking.models import Profile
    from steptdee.tracking.stores import SQLiteProfileStore

    command = "profile create"
    date_of_birth = parse_date(dob, command, json_output)

    if sex == Sex.OTHER.value and bmr_sex is None:
        fail(
            "Sex 'other' needs --bmr-sex male or --bmr-sex female to pick a BMR formula",
            command,
            json_output,
        )

    try:
        formula_sex = Sex(bmr_sex) if bmr_sex else None
        sex_enum = Sex(sex)
        binary_sex = sex_enum if sex_enum != Sex.OTHER else formula_sex
        if step_length is None:
            step_length = estimate_step_length_m(height, binary_sex)
        profile = Profile(
            profile_id=uuid4().hex,
            date_of_birth=date_of_birth,
            sex=sex_enum,
            height_m=height,
            weight_kg=weight,
            step_length_m=step_length,
            step_goal=step_goal,
            formula_sex=formula_sex,
        )
    except ValueError as e:
        fail(str(e), command, json_output)

    result = SQLiteProfileStore(get_db()).save(profile)
    if not result.ok:
        fail(f"Could not save profile: {result.error}", command, json_output)

    if json_output:
        output_json({
            "success": True,
            "command": command,
            "data": {"profile": profile_to_dict(profile)},
            "human_summary": f"Created profile (step length {profile.step_length_m:.2f} m)",
        })
    else:
        console.print("[green]Created profile[/green]")
        console.print(f"  Step length: {profile.step_length_m:.2f} m")


@profile_app.command("show")
def profile_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the profile with its BMI."""
    from steptdee.tracking.metrics import bmi, bmi_category

    profile = require_profile("profile show", json_output)
    bmi_value = bmi(profile.weight_kg, profile.height_m)
    category = bmi_category(bmi_value)

    if json_output:
        data = profile_to_dict(profile)
        data["bmi"] = bmi_value
        data["bmi_category"] = category
        output_json({
            "success": True,
            "command": "profile show",
            "data": data,
            "human_summary": f"{profile.sex.value}, {profile.height_m} m, {profile.weight_kg} kg, BMI {bmi_value:.1f}",
        })
    else:
        console.print("[bold]Profile[/bold]")
        if profile.date_of_birth:
            console.print(f"  Date of birth: {profile.date_of_birth.isoformat()}")
        console.print(f"  Sex: {profile.sex.value}")
        if profile.formula_sex:
            console.print(f"  BMR formula sex: {profile.formula_sex.value}")
        console.print(f"  Height: {profile.height_m} m")
        console.print(f"  Weight: {profile.weight_kg} kg")
        console.print(f"  Step length: {profile.step_length_m:.2f} m")
        console.print(f"  Step goal: {profile.step_goal}")
        console.print(f"  BMR formula: {profile.bmr_formula.value}")
        console.print(f"  BMI: {bmi_value:.1f} ({category})")


@profile_app.command("update")
def profile_update(
    sex: Optional[str] = typer.Option(None, "--sex", help="Update sex (male/female/other)"),
    weight: Optional[float] = typer.Option(None, "--weight", help="Update weight in kg"),
    height: Optional[float] = typer.Option(None, "--height", help="Update height in metres"),
    dob: Optional[str] = typer.Option(None, "--dob", help="Update date of birth"),
    step_length: Optional[float] = typer.Option(None, "--step-length", help="Update step length"),
    estimate_step_length: bool = typer.Option(
        False, "--estimate-step-length", help="Re-estimate step length from height"
    ),
    bmr_sex: Optional[str] = typer.Option(None, "--bmr-sex", help="Formula sex (male/female)"),
    bmr_formula: Optional[str] = typer.Option(
        None, "--bmr-formula", help="BMR formula (mifflin)"
    ),
    step_goal: Optional[int] = typer.Option(None, "--step-goal", help="Update daily step goal"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Update profile fields. Existing summaries are not recomputed."""
    from dataclasses import replace

    from steptdee.tracking.metrics import BmrFormula, Sex, estimate_step_length_m
    from steptdee.tracking.stores import SQLiteProfileStore

    command = "profile update"
    profile = require_profile(command, json_output)
    changes: dict = {}

    if weight is not None:
        changes["weight_kg"] = weight
    if height is not None:
        changes["height_m"] = height
    if dob is not None:
        changes["date_of_birth"] = parse_date(dob, command, json_output)
    if step_goal is not None:
        changes["step_goal"] = step_goal

    try:
        if sex is not None:
            changes["sex"] = Sex(sex)
            if changes["sex"] == Sex.OTHER and bmr_sex is None and profile.formula_sex is None:
                fail(
                    "Sex 'other' needs --bmr-sex male or --bmr-sex female to pick a BMR formula",
                    command,
                    json_output,
                )
        if bmr_sex is not None:
            changes["formula_sex"] = Sex(bmr_sex)
        if bmr_formula is not None:
            changes["bmr_formula"] = BmrFormula(bmr_formula)
        if step_length is not None:
            changes["step_length_m"] = step_length
        updated = replace(profile, **changes)
        if estimate_step_length and step_length is None:
            updated = replace(
                updated,
                step_length_m=estimate_step_length_m(updated.height_m, updated.resolve_bmr_sex()),
            )
    except ValueError as e:
        fail(str(e), command, json_output)

    result = SQLiteProfileStore(get_db()).save(updated)
    if not result.ok:
        fail(f"Could not save profile: {result.error}", command, json_output)

    if json_output:
        output_json({
            "success": True,
            "command": command,
            "data": {"profile": profile_to_dict(updated)},
            "human_summary": "Profile updated",
        })
    else:
        console.print("[green]Profile updated[/green]")


@app.command("bmi")
def bmi_cmd(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show BMI from the profile's height and weight."""
    from steptdee.tracking.metrics import bmi, bmi_category

    ensure_tables()
    profile = require_profile("bmi", json_output)
    value = bmi(profile.weight_kg, profile.height_m)
    category = bmi_category(value)

    if json_output:
        output_json({
            "success": True,
            "command": "bmi",
            "data": {"bmi": value, "category": category},
            "human_summary": f"BMI {value:.1f} ({category})",
        })
    else:
        console.print(f"BMI: [bold]{value:.1f}[/bold] ({category})")


# ============================================================================
# Weight Log Commands
# ============================================================================


@weight_app.command("add")
def weight_add(
    weight: float = typer.Argument(..., help="Weight in kg"),
    date_str: Optional[str] = typer.Option(
        None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Add a weight entry. An existing entry for the date is replaced."""
    from dataclasses import replace

    from steptdee.tracking.models import WeightLogEntry
    from steptdee.tracking.stores import SQLiteProfileStore, SQLiteWeightLogStore

    command = "weight add"
    if weight <= 0:
        fail("Weight must be positive", command, json_output)
    measured_at = parse_date(date_str, command, json_output) or date.today()

    db = get_db()
    weight_store = SQLiteWeightLogStore(db)
    entry = WeightLogEntry(date=measured_at, weight_kg=weight)
    result = weight_store.upsert(entry)
    if not result.ok:
        fail(f"Could not save weight: {result.error}", command, json_output)

    # Keep the profile weight on the latest logged value
    profile_updated = False
    profile_store = SQLiteProfileStore(db)
    profile = profile_store.load()
    logs = weight_store.load_all().items
    if profile is not None and logs and logs[-1].date == measured_at:
        profile_updated = profile_store.save(replace(profile, weight_kg=weight)).ok

    if json_output:
        output_json({
            "success": True,
            "command": command,
            "data": {
                "date": measured_at.isoformat(),
                "weight_kg": weight,
                "profile_updated": profile_updated,
            },
            "human_summary": f"Logged {weight:.1f} kg on {measured_at}",
        })
    else:
        console.print(f"[green]Logged:[/green] {weight:.1f} kg on {measured_at}")
        if profile_updated:
            console.print("[blue]Profile weight updated[/blue]")


@weight_app.command("list")
def weight_list(
    days: int = typer.Option(30, "--days", "-d", help="Number of entries to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List weight history with BMI and moving averages."""
    from steptdee.tracking.metrics import bmi
    from steptdee.tracking.stores import SQLiteProfileStore, SQLiteWeightLogStore
    from steptdee.tracking.trend import DEFAULT_WINDOW, weight_trend

    db = get_db()
    points = weight_trend(SQLiteWeightLogStore(db).load_all().items, limit=days)
    profile = SQLiteProfileStore(db).load()

    if not points:
        if json_output:
            output_json({
                "success": True,
                "command": "weight list",
                "data": {"entries": []},
                "human_summary": "No weight entries found",
            })
        else:
            console.print("No weight entries found")
        return

    if json_output:
        output_json({
            "success": True,
            "command": "weight list",
            "data": {
                "window": DEFAULT_WINDOW,
                "entries": [
                    {
                        "date": p.date.isoformat(),
                        "weight_kg": p.weight_kg,
                        "moving_average_kg": p.moving_average_kg,
                        "cumulative_average_kg": p.cumulative_average_kg,
                    }
                    for p in points
                ],
            },
            "human_summary": f"{len(points)} entries, {DEFAULT_WINDOW}-entry average "
            f"{points[-1].moving_average_kg:.1f} kg",
        })
    else:
        table = Table(title=f"Weight History (last {len(points)} entries)")
        table.add_column("Date", style="cyan")
        table.add_column("Weight (kg)", justify="right")
        table.add_column(f"{DEFAULT_WINDOW}-entry avg", justify="right", style="green")
        table.add_column("Running avg", justify="right")
        table.add_column("BMI", justify="right", style="blue")

        for p in points:
            bmi_text = f"{bmi(p.weight_kg, profile.height_m):.1f}" if profile else ""
            table.add_row(
                p.date.isoformat(),
                f"{p.weight_kg:.1f}",
                f"{p.moving_average_kg:.1f}",
                f"{p.cumulative_average_kg:.1f}",
                bmi_text,
            )

        console.print(table)


@weight_app.command("delete")
def weight_delete(
    date_str: str = typer.Argument(..., help="Date of the entry (YYYY-MM-DD)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Delete the weight entry for a date."""
    from steptdee.tracking.stores import SQLiteWeightLogStore

    command = "weight delete"
    day = parse_date(date_str, command, json_output)
    result = SQLiteWeightLogStore(get_db()).delete_by_date(day)
    if not result.ok:
        fail(f"Could not delete weight: {result.error}", command, json_output)

    if json_output:
        output_json({
            "success": True,
            "command": command,
            "data": {"date": day.isoformat(), "deleted": result.changed},
            "human_summary": (
                f"Deleted weight entry for {day}"
                if result.changed
                else f"No weight entry for {day}"
            ),
        })
    elif result.changed:
        console.print(f"[green]Deleted weight entry for {day}[/green]")
    else:
        console.print(f"[yellow]No weight entry for {day}[/yellow]")


# ============================================================================
# Steps and Sync Commands
# ============================================================================


@steps_app.command("today")
def steps_today(
    source_kind: Optional[str] = typer.Option(None, "--source-kind", help="csv or health_connect"),
    source_path: Optional[Path] = typer.Option(None, "--source-path", help="Step data file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show today's step count."""
    command = "steps today"
    source = resolve_step_source(source_kind, source_path, command, json_output)
    steps = asyncio.run(source.get_today_steps())

    if json_output:
        output_json({
            "success": True,
            "command": command,
            "data": {"date": date.today().isoformat(), "steps": steps, "source": source.source_name},
            "human_summary": f"{steps} steps today",
        })
    else:
        console.print(f"[bold]{steps}[/bold] steps today ({source.source_name})")


@app.command()
def sync(
    as_of: Optional[str] = typer.Option(
        None, "--as-of", help="Last day to synchronize (YYYY-MM-DD, default: today)"
    ),
    source_kind: Optional[str] = typer.Option(None, "--source-kind", help="csv or health_connect"),
    source_path: Optional[Path] = typer.Option(None, "--source-path", help="Step data file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Fill in daily summaries for every day not yet synchronized."""
    from steptdee.tracking.stores import SQLiteSummaryStore
    from steptdee.tracking.sync import SyncEngine

    command = "sync"
    ensure_tables()
    end_day = parse_date(as_of, command, json_output) or date.today()
    profile = require_profile(command, json_output)
    source = resolve_step_source(source_kind, source_path, command, json_output)

    if not asyncio.run(source.is_available()) and not json_output:
        console.print(
            f"[yellow]Step source '{source.source_name}' is not available; "
            "new days will record 0 steps[/yellow]"
        )

    settings = get_settings()
    engine = SyncEngine(
        SQLiteSummaryStore(get_db()),
        default_age_years=settings.sync.default_age_years,
        start_policy=settings.sync.start_policy,
    )
    outcome = asyncio.run(engine.run(source, profile, end_day))

    warnings = []
    if outcome.load_error:
        warnings.append(f"Existing summaries could not be read: {outcome.load_error}")
    if outcome.changed and not outcome.persisted:
        warnings.append(f"New summaries were not saved: {outcome.persist_error}")

    if json_output:
        output_json({
            "success": True,
            "command": command,
            "data": {
                "as_of": end_day.isoformat(),
                "added": [summary_to_dict(s) for s in outcome.added],
                "total_days": len(outcome.summaries),
                "persisted": outcome.persisted,
            },
            "warnings": warnings,
            "human_summary": f"Added {len(outcome.added)} day(s), {len(outcome.summaries)} total",
        })
        return

    for warning in warnings:
        console.print(f"[yellow]{warning}[/yellow]")
    if not outcome.changed:
        console.print(f"Already up to date through {end_day}")
        return
    console.print(f"[green]Added {len(outcome.added)} day(s)[/green]")
    latest = outcome.added[-1]
    console.print(
        f"  {latest.date}: {latest.steps} steps, {latest.distance_km:.2f} km, "
        f"TDEE {latest.tdee:.0f} kcal"
    )


@summary_app.command("list")
def summary_list(
    days: int = typer.Option(14, "--days", "-d", help="Number of days to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List daily summaries."""
    from steptdee.tracking.stores import SQLiteSummaryStore

    summaries = SQLiteSummaryStore(get_db()).load().items[-days:]

    if not summaries:
        if json_output:
            output_json({
                "success": True,
                "command": "summary list",
                "data": {"summaries": []},
                "human_summary": "No summaries found",
            })
        else:
            console.print("No summaries found. Run: steptdee sync")
        return

    if json_output:
        output_json({
            "success": True,
            "command": "summary list",
            "data": {"summaries": [summary_to_dict(s) for s in summaries]},
            "human_summary": f"{len(summaries)} days",
        })
        return

    table = Table(title=f"Daily Summaries (last {len(summaries)} days)")
    table.add_column("Date", style="cyan")
    table.add_column("Steps", justify="right")
    table.add_column("Distance (km)", justify="right")
    table.add_column("Walk kcal", justify="right")
    table.add_column("BMR", justify="right")
    table.add_column("TDEE", justify="right", style="green")

    for s in summaries:
        table.add_row(
            s.date.isoformat(),
            str(s.steps),
            f"{s.distance_km:.2f}",
            f"{s.kcal_walk:.0f}",
            f"{s.bmr_kcal:.0f}",
            f"{s.tdee:.0f}",
        )

    console.print(table)


# ============================================================================
# Export Commands
# ============================================================================


@app.command()
def export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write CSV to this file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Export weight logs and daily summaries as CSV."""
    from steptdee.export import export_data_as_csv

    ensure_tables()
    csv_text = export_data_as_csv(get_db())
    if csv_text and output:
        output.write_text(csv_text)

    if json_output:
        if not csv_text:
            summary = "No data to export yet"
        elif output:
            summary = f"Exported to {output}"
        else:
            summary = f"Exported {len(csv_text.splitlines())} lines"
        output_json({
            "success": True,
            "command": "export",
            "data": {
                "csv": csv_text,
                "output": str(output) if output and csv_text else None,
            },
            "human_summary": summary,
        })
        return

    if not csv_text:
        console.print("[yellow]No data to export yet[/yellow]")
    elif output:
        console.print(f"[green]Exported to {output}[/green]")
    else:
        typer.echo(csv_text, nl=False)


if __name__ == "__main__":
    app()
