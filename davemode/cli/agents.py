import click
from rich.console import Console
from rich.table import Table

from davemode.agents.registry import get_registry
from davemode.config import load_config
from davemode.errors import UnknownAgentError

console = Console()


@click.group()
def agent():
    """Agent registry commands."""
    pass


@agent.command("list")
def list_agents():
    """List available agents."""
    registry = get_registry(load_config().agent_config_path)
    agents = registry.list_metadata()

    if not agents:
        console.print("[yellow]No agents registered[/yellow]")
        return

    table = Table(title="Available Agents")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Model", style="green")
    table.add_column("Capabilities")
    for a in agents:
        table.add_row(a.id, a.name, a.model, ", ".join(a.capabilities))
    console.print(table)


@agent.command("show")
@click.argument("agent_id")
def show_agent(agent_id):
    """Show one agent."""
    registry = get_registry(load_config().agent_config_path)
    try:
        a = registry.get(agent_id)
    except UnknownAgentError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print(f"[cyan]{a.id}[/cyan] {a.name}")
    console.print(f"  model: {a.model}")
    console.print(f"  capabilities: {', '.join(a.capabilities) or '-'}")
    if a.description:
        console.print(f"  {a.description}")
