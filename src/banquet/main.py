"""
Banquet - CLI Entry Point.

Usage:
    banquet create-plan --name ... --attendees 12 --start 2026-06-01 --end 2026-06-03
    banquet add-attendees PLAN_ID attendees.json
    banquet run PLAN_ID          Run the workflow for a stored plan
    banquet plan event.json      Create a plan from one file and run it (works without Supabase)
    banquet show PLAN_ID         Print a stored plan
    banquet serve                Start the HTTP API
    banquet health               Check configuration
    banquet --help               Show help
"""

import asyncio
import json
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

app = typer.Typer(
    name="banquet",
    help="Banquet - Group meal planning with dietary analysis, recipe selection and budgeting.",
    add_completion=False,
)
console = Console()


class ConsoleObserver:
    """Prints one line per step transition."""

    ICONS = {"in_progress": "⏳", "completed": "✅", "failed": "❌", "pending": "·"}

    def on_step_transition(self, step) -> None:
        line = f"{self.ICONS.get(step.status, '·')} {step.step_name}"
        if step.status == "completed":
            line += f" [dim]({step.execution_time_ms}ms)[/dim]"
        elif step.status == "failed":
            line += f" [red]{step.reasoning}[/red]"
        console.print(line)


def _build_orchestrator():
    from banquet.catalog.client import CatalogClient
    from banquet.config import get_settings
    from banquet.db import create_plan_store
    from banquet.llm.client import ReasoningGateway
    from banquet.workflow.orchestrator import WorkflowOrchestrator

    settings = get_settings()
    return WorkflowOrchestrator(
        store=create_plan_store(settings),
        gateway=ReasoningGateway(settings=settings),
        catalog=CatalogClient(settings=settings),
        settings=settings,
    )


async def _close(orchestrator) -> None:
    await orchestrator.catalog.aclose()
    await orchestrator.gateway.close()
    await orchestrator.store.close()


def _with_orchestrator(use):
    """Run `use(orchestrator)` on a fresh orchestrator and close it afterwards."""

    async def _go():
        orchestrator = _build_orchestrator()
        try:
            return await use(orchestrator)
        finally:
            await _close(orchestrator)

    return asyncio.run(_go())


def _setup(log_prompts: bool) -> None:
    from banquet.config import configure_logging
    from banquet.llm.prompt_logger import enable_prompt_logging

    configure_logging("WARNING")
    if log_prompts:
        enable_prompt_logging(True)
        console.print("[dim]📝 Prompt logging enabled. Check prompt_logs/ after the run.[/dim]")


def _print_result(result) -> None:
    table = Table(title=f"Workflow {'completed' if result.success else 'failed'}")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Time (ms)", justify="right")
    table.add_column("Confidence", justify="right")
    for step in result.steps:
        color = {"completed": "green", "failed": "red"}.get(step.status, "yellow")
        table.add_row(
            step.step_name,
            f"[{color}]{step.status}[/{color}]",
            str(step.execution_time_ms or ""),
            f"{step.confidence_score:.2f}" if step.confidence_score is not None else "",
        )
    console.print(table)

    if result.error:
        console.print(f"\n[red]Error: {result.error}[/red]")

    plan = result.final_plan
    if plan:
        _print_plan(plan)

    usage = result.usage
    if usage:
        tokens = usage.get("total_input_tokens", 0) + usage.get("total_output_tokens", 0)
        console.print(
            f"\n[dim]{usage.get('total_calls', 0)} reasoning calls, "
            f"{tokens} tokens, ~${usage.get('total_cost_usd', 0):.4f}[/dim]"
        )


def _print_plan(plan) -> None:
    console.print(
        Panel.fit(
            f"[bold]{plan.name}[/bold]\n"
            f"{plan.start_date} → {plan.end_date}, {plan.attendee_count} attendees\n"
            f"Budget: {f'${plan.budget_total:.2f}' if plan.budget_total else 'none'}\n"
            f"Status: {plan.status.value}",
            title=plan.id,
            border_style="green",
        )
    )

    if plan.recipes:
        recipes = Table(title="Menu")
        recipes.add_column("Slot")
        recipes.add_column("Recipe")
        recipes.add_column("Servings", justify="right")
        for recipe in plan.recipes:
            recipes.add_row(recipe.meal_slot, recipe.recipe_name, str(recipe.estimated_servings))
        console.print(recipes)

    if plan.shopping_items:
        shopping = Table(title="Shopping List")
        shopping.add_column("Section")
        shopping.add_column("Item")
        shopping.add_column("Quantity", justify="right")
        shopping.add_column("Cost", justify="right")
        for item in plan.shopping_items:
            shopping.add_row(
                item.store_section or "",
                item.ingredient_name,
                f"{item.quantity:g} {item.unit}".strip(),
                f"${item.estimated_cost:.2f}",
            )
        console.print(shopping)

    analysis = plan.latest_budget_analysis
    if analysis:
        console.print(f"\n[bold]Total cost:[/bold] ${analysis.total_cost:.2f}")
        console.print(f"[dim]{analysis.optimization_suggestions}[/dim]")


@app.command("create-plan")
def create_plan(
    name: str = typer.Option(..., "--name", "-n", help="Plan name"),
    attendees: int = typer.Option(..., "--attendees", "-a", min=1, max=100, help="Number of attendees"),
    start: datetime = typer.Option(..., "--start", formats=["%Y-%m-%d"], help="First day"),
    end: datetime = typer.Option(..., "--end", formats=["%Y-%m-%d"], help="Last day (inclusive)"),
    budget: float | None = typer.Option(None, "--budget", "-b", min=0, help="Total budget"),
) -> None:
    """Create a meal plan (needs Supabase to outlive this command)."""
    from banquet.models.entities import NewMealPlan

    if end < start:
        console.print("[red]--end must be on or after --start[/red]")
        raise typer.Exit(1)

    new_plan = NewMealPlan(
        name=name.strip(),
        attendee_count=attendees,
        budget_total=budget,
        start_date=start.date(),
        end_date=end.date(),
    )
    created = _with_orchestrator(lambda orch: orch.store.create_plan(new_plan))
    console.print(f"✅ Created meal plan [bold]{created.id}[/bold]")


@app.command("add-attendees")
def add_attendees(
    plan_id: str = typer.Argument(..., help="Meal plan id"),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of attendees"),
) -> None:
    """Add attendees from a JSON file."""
    from banquet.errors import BanquetError
    from banquet.models.entities import NewAttendee

    attendees = [NewAttendee(**a) for a in json.loads(path.read_text())]
    if not attendees:
        console.print("[red]No attendees in file[/red]")
        raise typer.Exit(1)

    try:
        created = _with_orchestrator(lambda orch: orch.store.add_attendees(plan_id, attendees))
    except BanquetError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    console.print(f"✅ Added {len(created)} attendees to {plan_id}")


@app.command()
def run(
    plan_id: str = typer.Argument(..., help="Meal plan id"),
    log_prompts: bool = typer.Option(False, "--log-prompts", "-l", help="Log all LLM prompts to prompt_logs/"),
) -> None:
    """Run the workflow for a stored plan."""
    from banquet.errors import BanquetError

    _setup(log_prompts)
    try:
        result = _with_orchestrator(lambda orch: orch.execute(plan_id, observer=ConsoleObserver()))
    except BanquetError as e:
        console.print(f"\n[red]❌ {e}[/red]")
        raise typer.Exit(1)

    _print_result(result)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def plan(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with plan and attendees"),
    log_prompts: bool = typer.Option(False, "--log-prompts", "-l", help="Log all LLM prompts to prompt_logs/"),
) -> None:
    """
    Create a plan with its attendees and run the workflow in one go.

    The file holds the plan fields plus an "attendees" list:
    {"name": ..., "attendee_count": 2, "start_date": "2026-06-01",
     "end_date": "2026-06-01", "budget_total": 50, "attendees": [...]}
    """
    from banquet.models.entities import NewAttendee, NewMealPlan

    _setup(log_prompts)
    payload = json.loads(path.read_text())
    attendees = [NewAttendee(**a) for a in payload.pop("attendees", [])]
    new_plan = NewMealPlan(**payload)

    async def create_and_run(orch):
        created = await orch.store.create_plan(new_plan)
        await orch.store.add_attendees(created.id, attendees)
        console.print(f"Created meal plan [bold]{created.id}[/bold]")
        return await orch.execute(created.id, observer=ConsoleObserver())

    result = _with_orchestrator(create_and_run)
    _print_result(result)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def show(plan_id: str = typer.Argument(..., help="Meal plan id")) -> None:
    """Print a stored plan with its menu and shopping list."""
    snapshot = _with_orchestrator(lambda orch: orch.store.get_plan(plan_id))
    if snapshot is None:
        console.print(f"[red]Meal plan {plan_id} not found[/red]")
        raise typer.Exit(1)
    _print_plan(snapshot)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    uvicorn.run("banquet.web.app:app", host=host, port=port, reload=reload)


@app.command()
def health() -> None:
    """Check configuration."""
    from banquet.config import get_settings

    console.print("\n[bold]Banquet Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.banquet_env}")
        console.print(f"   Log level: {settings.log_level}")

        if settings.openai_api_key.startswith("sk-"):
            console.print("✅ OpenAI API key configured")
        else:
            console.print("⚠️  OpenAI API key may be invalid")

        if settings.spoonacular_api_key:
            console.print("✅ Recipe catalog key configured")
        else:
            console.print("⚠️  Recipe catalog key missing")

        if settings.has_supabase:
            console.print("✅ Supabase configured")
        else:
            console.print("ℹ️  Supabase not configured, using in-memory store")

        console.print("\n[green]All checks passed![/green]")

    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Make sure you have a .env file with required variables.[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from banquet import __version__

    console.print(f"Banquet version {__version__}")


if __name__ == "__main__":
    app()
