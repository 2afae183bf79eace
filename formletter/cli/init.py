"""Init command implementation."""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ClusteringSettings, Config, ConfigModel, save_config
from ..db import init_database, validate_connection

console = Console()


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "formletter",
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    workspace: Path = typer.Option(
        Path.home() / "formletter",
        "--workspace",
        "-w",
        help="Workspace root directory for run artifacts",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("formletter", "--db-name", help="Database name"),
    db_user: str = typer.Option("formletter_user", "--db-user", help="Database user"),
    skip_db: bool = typer.Option(False, "--skip-db", help="Only write the configuration"),
) -> None:
    """Initialize formletter configuration and database schema."""
    console.print(Panel.fit("formletter - Initialization", style="bold blue"))

    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"

    config = ConfigModel(
        workspace_root=str(workspace),
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "FORMLETTER_DB_PASSWORD",
        },
        clustering=ClusteringSettings(),
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    workspace.mkdir(parents=True, exist_ok=True)
    console.print(f"✅ Created workspace: {workspace}")

    if skip_db:
        return

    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = Config(config_path, config_model=config).get_db_config()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: "
            "[bold]export FORMLETTER_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    console.print("\n[bold]Initializing database schema...[/bold]")
    try:
        init_database(db_config)
        console.print("✅ Database schema initialized")
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ formletter initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Workspace: {workspace}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export FORMLETTER_DB_PASSWORD=your_password[/bold]\n"
            f"2. Run: [bold]formletter cluster <document-id>[/bold]",
            style="green",
        )
    )
