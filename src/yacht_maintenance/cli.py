import logging

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(help="yacht-maintenance CLI")
console = Console()


@app.callback()
def main(
    log_level: str = typer.Option(
        None, "--log-level", "-l", help="Override the configured log level"
    ),
):
    """Yacht maintenance tracking and valuation."""
    from yacht_maintenance.config.settings import get_settings

    logging.basicConfig(level=(log_level or get_settings().log_level).upper())


@app.command("init-db")
def init_db():
    """Initialize the database (create all tables)."""
    from yacht_maintenance.models.database import get_engine
    from yacht_maintenance.models.database import init_db as _init_db

    engine = get_engine()
    _init_db(engine)
    console.print("[green]Database initialized.[/green]")


@app.command("seed-demo")
def seed_demo():
    """Initialize the database and load a demo fleet."""
    from yacht_maintenance.demo import seed_demo as _seed_demo
    from yacht_maintenance.models.database import get_engine, get_session
    from yacht_maintenance.models.database import init_db as _init_db

    engine = get_engine()
    _init_db(engine)
    console.print("Generating demo fleet...")
    with get_session(engine) as session:
        counts = _seed_demo(session)

    for kind, count in counts.items():
        console.print(f"  {kind}: {count}")
    console.print("[green]Demo data loaded.[/green]")


@app.command()
def overview(
    yacht_id: int = typer.Option(..., "--yacht-id", "-y", help="Yacht ID"),
):
    """Show the maintenance overview for a yacht."""
    from yacht_maintenance.analytics.metrics import MaintenanceMetrics
    from yacht_maintenance.errors import NotFoundError
    from yacht_maintenance.models.database import get_engine, get_session

    with get_session(get_engine()) as session:
        try:
            result = MaintenanceMetrics(session).overview(yacht_id)
        except NotFoundError as e:
            console.print(f"[red]{e.message}[/red]")
            raise typer.Exit(1)

    condition = result.overall_condition
    if condition.status == "available":
        condition_text = f"{condition.value:.1f}/100 ({condition.method})"
    else:
        condition_text = f"[yellow]unavailable[/yellow] ({condition.reason})"

    console.print(f"\n[bold]Yacht {yacht_id} maintenance overview[/bold]")
    console.print(f"  Overall condition: {condition_text}")
    console.print(
        f"  Pending tasks: {result.pending_tasks.total} "
        f"(next {result.pending_tasks.lookahead_days} days)"
    )
    overdue_style = "red" if result.overdue_tasks.total else "green"
    console.print(
        f"  Overdue tasks: [{overdue_style}]{result.overdue_tasks.total}"
        f"[/{overdue_style}]"
    )
    console.print(f"  Operating hours: {result.operating_hours:,.1f}")
    console.print(f"  Fuel consumption: {result.fuel_consumption:,.1f}")
    console.print(f"  Maintenance cost: ${result.maintenance_cost:,.2f}")

    table = Table(title="Records by status")
    table.add_column("Status", style="cyan")
    table.add_column("Count", justify="right")
    for status, count in result.records_by_status.items():
        table.add_row(status, str(count))
    console.print(table)


@app.command()
def overdue(
    yacht_id: int = typer.Option(
        None, "--yacht-id", "-y", help="Yacht ID (all yachts if omitted)"
    ),
):
    """List overdue maintenance schedules."""
    from yacht_maintenance.models.database import get_engine, get_session
    from yacht_maintenance.scheduling.schedules import overdue_schedules

    with get_session(get_engine()) as session:
        schedules = overdue_schedules(session, yacht_id)
        if not schedules:
            console.print("[green]No overdue schedules.[/green]")
            return

        table = Table(title=f"Overdue schedules ({len(schedules)})")
        table.add_column("ID", style="bold")
        table.add_column("Yacht", justify="right")
        table.add_column("Task", style="cyan")
        table.add_column("Frequency")
        table.add_column("Due", style="red")
        table.add_column("Priority")
        for s in schedules:
            table.add_row(
                str(s.id),
                str(s.yacht_id),
                s.task_name,
                s.frequency,
                s.next_due.strftime("%Y-%m-%d"),
                s.priority,
            )
        console.print(table)


@app.command()
def valuation(
    yacht_id: int = typer.Option(..., "--yacht-id", "-y", help="Yacht ID"),
    recalculate: bool = typer.Option(
        False, "--recalculate", "-r", help="Force a fresh valuation"
    ),
):
    """Show the current valuation and sell recommendation for a yacht."""
    from yacht_maintenance.errors import YachtMaintenanceError
    from yacht_maintenance.financial.valuation import ValuationEngine
    from yacht_maintenance.models.database import get_engine, get_session

    with get_session(get_engine()) as session:
        engine = ValuationEngine(session)
        try:
            if recalculate:
                v = engine.recalculate(yacht_id)
            else:
                v = engine.get_current(yacht_id)
        except YachtMaintenanceError as e:
            console.print(f"[red]{e.message}[/red]")
            raise typer.Exit(1)

        style = {"sell": "red", "upgrade": "yellow"}.get(v.sell_recommendation, "green")
        console.print(f"\n[bold]Valuation for yacht {yacht_id}[/bold]")
        console.print(
            f"  Assessed: {v.assessment_date:%Y-%m-%d} "
            f"(valid until {v.valid_until:%Y-%m-%d})"
        )
        console.print(f"  Market value: ${float(v.current_market_value):,.2f}")
        console.print(f"  Total maintenance: ${float(v.total_maintenance_cost):,.2f}")
        projected = float(v.projected_maintenance_cost or 0)
        console.print(f"  Projected maintenance (12 mo): ${projected:,.2f}")
        console.print(f"  Utilization: {float(v.utilization_rate or 0):.1%}")
        console.print(f"  Recommendation: [{style}]{v.sell_recommendation}[/{style}]")
        console.print(f"  {v.recommendation_reason}")
        if v.optimal_sell_date:
            console.print(
                f"  Optimal sell date: {v.optimal_sell_date:%Y-%m-%d} "
                f"(sweet spot score {v.sweet_spot_score})"
            )


@app.command("refresh-valuations")
def refresh_valuations():
    """Recompute missing or expired valuations for all yachts."""
    from yacht_maintenance.financial.valuation import refresh_expired_valuations
    from yacht_maintenance.models.database import get_engine, get_session

    with get_session(get_engine()) as session:
        count = refresh_expired_valuations(session)
    console.print(f"[green]Refreshed {count} valuations.[/green]")


@app.command()
def serve(host: str = "0.0.0.0", port: int = 8000):
    """Start the FastAPI server."""
    import uvicorn

    uvicorn.run("yacht_maintenance.api.main:app", host=host, port=port, reload=True)


if __name__ == "__main__":
    app()
