"""
Command Line Interface for the Rexera API.
"""

import asyncio
from typing import Optional

import typer
import uvicorn
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_settings
from ..db.base import get_session_local, init_database
from ..db.seed import seed_demo_data
from ..integrations.n8n import N8nClient
from ..logging_config import configure_logging
from ..services.sla_monitor import SlaMonitor

app = typer.Typer(help="Rexera API - workflow automation backend")
console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind the server to"),
    port: Optional[int] = typer.Option(None, help="Port to run the API server on"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the API server."""
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    rprint(Panel.fit(f"Starting Rexera API on http://{host}:{port}", style="bold blue"))
    uvicorn.run(
        "rexera_api.main:app",
        host=host,
        port=port,
        reload=reload or settings.debug,
        workers=1 if (reload or settings.debug) else settings.api_workers,
    )


@app.command()
def init_db():
    """Create all database tables."""
    configure_logging()
    asyncio.run(init_database())
    console.print("✅ Database initialized")


@app.command()
def seed():
    """Insert demo clients, the development HIL user, agents and counterparties."""
    configure_logging()
    asyncio.run(init_database())
    db = get_session_local()()
    try:
        created = seed_demo_data(db)
    finally:
        db.close()

    table = Table(title="Seeded Rows", show_header=True, header_style="bold cyan")
    table.add_column("Kind", style="yellow")
    table.add_column("Created", style="green", justify="right")
    for kind, count in created.items():
        table.add_row(kind, str(count))
    console.print(table)


@app.command()
def check_sla():
    """Run the SLA monitor once and report the breaches it processed."""
    configure_logging()
    db = get_session_local()()
    try:
        monitor = SlaMonitor(db)
        breaches = monitor.find_breaches()
        rows = [(task.id, task.title, task.sla_hours, task.workflow_id) for task in breaches]
        result = monitor.run()
    finally:
        db.close()

    if not rows:
        console.print("✅ No SLA breaches found")
        return

    table = Table(title="SLA Breaches", show_header=True, header_style="bold red")
    table.add_column("Task", style="cyan")
    table.add_column("Title")
    table.add_column("SLA (h)", justify="right")
    table.add_column("Workflow", style="magenta")
    for task_id, title, sla_hours, workflow_id in rows:
        table.add_row(task_id, title, str(sla_hours), workflow_id)
    console.print(table)
    console.print(f"⚠️  {result.message}")


@app.command()
def n8n_status():
    """Show n8n configuration and test the connection."""
    client = N8nClient.from_settings()
    status = client.config_status()

    table = Table(title="n8n Integration", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Enabled", "🟢 Yes" if status["enabled"] else "🔴 No")
    table.add_row("Base URL", status["baseUrl"] or "-")
    table.add_row("API key", "set" if status["hasApiKey"] else "missing")
    table.add_row("Webhook URL", "set" if status["hasWebhookUrl"] else "missing")
    table.add_row("Payoff workflow", status["payoffWorkflowId"] or "-")
    console.print(table)

    if status["enabled"]:
        ok = asyncio.run(client.test_connection())
        console.print("✅ Connection OK" if ok else "❌ Connection failed")


if __name__ == "__main__":
    app()
