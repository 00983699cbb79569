"""
DaveMode CLI

Click-based command-line interface for DaveMode.
Provides commands for creating, analysing and extending projects and for
answering the clarification questions those tasks raise.
"""

import json
import sys
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from davemode import __version__
from davemode.errors import DaveModeError
from davemode.logging import EXIT_RUNTIME_ERROR, get_logger, init_cli_logging, json_logging_from_env

logger = get_logger(__name__)
console = Console()


def get_service_context():
    """Create a ServiceContext for CLI operations."""
    from davemode.config import load_config
    from davemode.services.base import ServiceContext

    config = load_config()
    return ServiceContext(config=config)


def get_db(context=None):
    """Get database connection with the schema in place."""
    from davemode.db.database import get_database

    config = (context or get_service_context()).config
    db = get_database(config.db_url, config.db_path, config.db_pool_size)
    db.init_schema()
    return db


def build_orchestrator(context=None, db=None):
    """Wire the orchestrator and its collaborators from configuration."""
    from davemode.agents.registry import get_registry
    from davemode.agents.together import TogetherAgentClient
    from davemode.sandbox import get_validator
    from davemode.services.clarification import ClarificationEngine
    from davemode.services.learning import LearningEngine
    from davemode.services.learning_store import LearningStore
    from davemode.services.orchestrator import OrchestratorService

    context = context or get_service_context()
    db = db or get_db(context)
    config = context.config
    store = LearningStore(db).load()
    return OrchestratorService(
        context,
        db,
        LearningEngine(context, db, store),
        ClarificationEngine(context),
        TogetherAgentClient(config, get_registry(config.agent_config_path)),
        get_validator(config),
    )


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def fail(exc: DaveModeError) -> None:
    """Report a DaveMode error and exit non-zero."""
    logger.error("cli_command_failed", extra={"error": str(exc), "category": exc.category})
    console.print(f"[red]Error: {exc}[/red]")
    sys.exit(EXIT_RUNTIME_ERROR)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def cli(ctx, verbose, json_output):
    """DaveMode - adaptive multi-agent code creation and analysis."""
    ctx.ensure_object(dict)
    ctx.obj["VERBOSE"] = verbose
    ctx.obj["JSON"] = json_output
    init_cli_logging(level="DEBUG" if verbose else None, json_output=json_logging_from_env())


from davemode.cli.agents import agent  # noqa: E402
from davemode.cli.tasks import analyze, clarify, create, extend  # noqa: E402

cli.add_command(agent)
cli.add_command(create)
cli.add_command(analyze)
cli.add_command(extend)
cli.add_command(clarify)


@cli.command()
def version():
    """Show version information."""
    click.echo(f"DaveMode v{__version__}")


@cli.command()
@click.pass_context
def templates(ctx):
    """List project templates."""
    from davemode.services.templates import list_templates

    items = list_templates()
    if ctx.obj.get("JSON"):
        echo_json(items)
        return

    table = Table(title="Project Templates")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Technologies", style="green")
    for item in items:
        table.add_row(item["id"], item["name"], ", ".join(item["technologies"]))
    console.print(table)


@cli.command()
@click.option("--agents", "show_agents", is_flag=True, help="Show per-agent performance instead of patterns")
@click.pass_context
def learning(ctx, show_agents):
    """Show learned patterns or aggregated agent performance."""
    try:
        orchestrator = build_orchestrator()
    except DaveModeError as exc:
        fail(exc)
        return

    if show_agents:
        performance = orchestrator.get_agent_performance()
        if ctx.obj.get("JSON"):
            echo_json(performance)
            return
        table = Table(title="Agent Performance")
        table.add_column("Agent", style="cyan")
        table.add_column("Uses", justify="right")
        table.add_column("Successes", justify="right")
        table.add_column("Success rate", justify="right", style="green")
        for agent_id, stats in performance.items():
            table.add_row(agent_id, str(stats["uses"]), str(stats["successes"]), f"{stats['success_rate']:.0%}")
        console.print(table)
        return

    patterns = orchestrator.get_learning_patterns()
    if ctx.obj.get("JSON"):
        echo_json(patterns)
        return
    table = Table(title="Learned Patterns")
    table.add_column("Kind", style="cyan")
    table.add_column("Project type", style="magenta")
    table.add_column("Uses", justify="right")
    table.add_column("Success rate", justify="right", style="green")
    table.add_column("Best agents")
    for kind, by_type in patterns.items():
        for project_type, data in by_type.items():
            best = ", ".join(f"{role}={agent_id}" for role, agent_id in data["best_agents"].items())
            table.add_row(kind, project_type, str(data["uses"]), f"{data['success_rate']:.0%}", best)
    console.print(table)


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("davemode.api.app:app", host=host, port=port)


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
