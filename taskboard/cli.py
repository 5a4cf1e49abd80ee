"""Command-line interface for the task board.

Provides commands for:
- Registering and logging in to a team
- Managing the team roster
- Viewing, adding, moving and searching tasks
- Running command bar input (":add @user - title", ":search query", ...)
- Starting the API server and the terminal board
"""

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from taskboard import __version__
from taskboard.commands.grammar import classify, format_intent, get_help_text
from taskboard.commands.resolver import ResolutionKind, ServiceCollaborators, resolve
from taskboard.commands.suggestions import get_suggestions
from taskboard.exceptions import TaskboardError
from taskboard.models import init_db
from taskboard.models.database import get_db_session
from taskboard.models.task import Task, TaskStatus
from taskboard.services.auth_service import AuthService
from taskboard.services.session import SessionContext
from taskboard.services.task_service import TaskService
from taskboard.services.team_service import TeamService
from taskboard.utils.config import get_config, load_config, set_config

console = Console()
logger = logging.getLogger(__name__)


# --- Utility Functions ---


def get_status_style(status: TaskStatus) -> str:
    """Get rich style for task status."""
    styles = {
        TaskStatus.NEW: "white",
        TaskStatus.CURRENT: "yellow",
        TaskStatus.IN_PROGRESS: "cyan",
        TaskStatus.COMPLETED: "green",
    }
    return styles.get(status, "white")


def run_async(coro):
    """Run an async coroutine."""
    return asyncio.run(coro)


def fail(message: str) -> None:
    """Print an error and exit with status 1."""
    console.print(f"[red]✗ {escape(message)}[/red]")
    sys.exit(1)


def configure_logging(level: str, fmt: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format=fmt)


def render_task_table(tasks: list[Task], title: str) -> Table:
    """Build a rich table for a list of tasks."""
    table = Table(title=title)
    table.add_column("ID", style="dim", width=5)
    table.add_column("Title", style="white", min_width=20, max_width=50)
    table.add_column("Owner", style="cyan", width=14)
    table.add_column("Status", width=12)

    for task in tasks:
        table.add_row(
            str(task.id),
            Text(task.title),
            Text(task.owner_name or "-"),
            Text(task.status.label, style=get_status_style(task.status)),
        )
    return table


def created_message(task: Task) -> str:
    """Confirmation line for a newly created task, with user text escaped."""
    owner = escape(task.owner_name or "-")
    return f"[green]✓[/green] Created task #{task.id}: {escape(task.title)} (@{owner})"


# --- Main CLI Group ---


@click.group()
@click.version_option(version=__version__, prog_name="Task Board")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to config file")
@click.pass_context
def cli(ctx, config):
    """Task Board - team Kanban boards driven from the command line.

    Use 'tb <command> --help' for more information about a command.
    """
    ctx.ensure_object(dict)

    # Load configuration
    config_path = config if config else None
    cfg = load_config(config_path)
    set_config(cfg)
    ctx.obj["config"] = cfg

    configure_logging(cfg.logging.level, cfg.logging.format)

    # Initialize database
    init_db()

    if "session" not in ctx.obj:
        ctx.obj["session"] = SessionContext.load(cfg.session.path)


# --- Team Commands ---


@cli.group()
def team():
    """Team login and roster commands."""
    pass


@team.command("register")
@click.argument("name")
@click.password_option("--password", "-p", help="Team password")
@click.pass_context
def team_register(ctx, name, password):
    """Register a new team and log in to it."""
    try:
        with get_db_session() as db:
            session = AuthService(db, ctx.obj["session"]).register_team(name, password)
    except TaskboardError as e:
        fail(str(e))
        return

    console.print(f"[green]✓[/green] Registered team [bold]{escape(session.team_name)}[/bold]")
    console.print("[dim]Add members with 'tb team add-member NAME'.[/dim]")


@team.command("login")
@click.argument("name")
@click.option("--password", "-p", prompt=True, hide_input=True, help="Team password")
@click.pass_context
def team_login(ctx, name, password):
    """Log in to a team."""
    try:
        with get_db_session() as db:
            session = AuthService(db, ctx.obj["session"]).login_team(name, password)
    except TaskboardError as e:
        fail(str(e))
        return

    console.print(f"[green]✓[/green] Logged in to [bold]{escape(session.team_name)}[/bold]")
    if session.current_user_name:
        console.print(f"  Active board: [cyan]@{escape(session.current_user_name)}[/cyan]")


@team.command("logout")
@click.pass_context
def team_logout(ctx):
    """Log out of the current team."""
    ctx.obj["session"].clear()
    console.print("[green]✓[/green] Logged out")


@team.command("members")
@click.pass_context
def team_members(ctx):
    """List team members in join order."""
    session_context = ctx.obj["session"]
    try:
        with get_db_session() as db:
            members = TeamService(db, session_context).get_current_team_members()
            rows = [(m.id, m.name, m.created_at) for m in members]
    except TaskboardError as e:
        fail(str(e))
        return

    if not rows:
        console.print("[dim]No members yet.[/dim]")
        return

    active_id = session_context.session.current_user_id
    table = Table(title=f"Team {escape(session_context.session.team_name)}")
    table.add_column("ID", style="dim", width=5)
    table.add_column("Name", style="cyan")
    table.add_column("Joined", style="dim")
    for member_id, name, created_at in rows:
        marker = " [green]●[/green]" if member_id == active_id else ""
        table.add_row(str(member_id), f"{escape(name)}{marker}", created_at.strftime("%Y-%m-%d"))
    console.print(table)


@team.command("add-member")
@click.argument("name")
@click.pass_context
def team_add_member(ctx, name):
    """Add a member to the team."""
    try:
        with get_db_session() as db:
            member = TeamService(db, ctx.obj["session"]).add_team_member(name)
            member_name = member.name
    except TaskboardError as e:
        fail(str(e))
        return

    console.print(f"[green]✓[/green] Added @{escape(member_name)}")


@team.command("remove-member")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def team_remove_member(ctx, name, yes):
    """Remove a member and all of their tasks."""
    try:
        with get_db_session() as db:
            service = TeamService(db, ctx.obj["session"])
            member = service.get_user_by_name(name)
            if member is None:
                fail(f"User @{name} not found")
                return

            if not yes:
                if not click.confirm(f"Remove @{member.name} and all their tasks?"):
                    return

            service.remove_team_member(member.id)
    except TaskboardError as e:
        fail(str(e))
        return

    console.print(f"[green]✓[/green] Removed @{escape(name)}")


@team.command("switch")
@click.argument("name")
@click.pass_context
def team_switch(ctx, name):
    """Switch the active board to another member."""
    try:
        with get_db_session() as db:
            session = TeamService(db, ctx.obj["session"]).switch_to_member(name)
    except TaskboardError as e:
        fail(str(e))
        return

    console.print(f"[green]✓[/green] Active board: [cyan]@{escape(session.current_user_name)}[/cyan]")


# --- Task Commands ---


@cli.group()
def tasks():
    """Task management commands."""
    pass


def _resolve_user_id(db, session_context: SessionContext, name: str | None) -> int | None:
    if name is None:
        return None
    member = TeamService(db, session_context).get_user_by_name(name)
    if member is None:
        fail(f"User @{name} not found")
    return member.id


@tasks.command("list")
@click.option("--user", "-u", "user_name", help="Only tasks of this member")
@click.option("--status", "-s", type=click.Choice([s.value for s in TaskStatus]),
              help="Filter by status")
@click.pass_context
def tasks_list(ctx, user_name, status):
    """List the team's tasks."""
    session_context = ctx.obj["session"]
    try:
        with get_db_session() as db:
            service = TaskService(db, session_context)
            user_id = _resolve_user_id(db, session_context, user_name)

            if status:
                found = service.get_tasks_by_status(status, user_id=user_id)
            elif user_id is not None:
                found = service.get_user_tasks(user_id)
            else:
                found = service.get_team_tasks()

            if not found:
                console.print("[dim]No tasks found.[/dim]")
                return

            console.print(render_task_table(found, f"Tasks ({len(found)})"))
    except TaskboardError as e:
        fail(str(e))


@tasks.command("board")
@click.option("--user", "-u", "user_name", help="Member whose board to show (default: active)")
@click.pass_context
def tasks_board(ctx, user_name):
    """Show a member's board as four columns."""
    session_context = ctx.obj["session"]
    try:
        with get_db_session() as db:
            user_id = _resolve_user_id(db, session_context, user_name)
            if user_id is None:
                session = session_context.session
                if session is None:
                    fail("Not authenticated")
                    return
                user_id = session.current_user_id
                user_name = session.current_user_name
            if user_id is None:
                fail("No member selected. Use 'tb team switch NAME'.")
                return

            board = TaskService(db, session_context).get_board(user_id)

            table = Table(title=f"@{escape(user_name)}'s board", expand=True)
            for status in TaskStatus:
                table.add_column(
                    f"{status.label.title()} ({len(board.column(status))})",
                    style=get_status_style(status),
                )
            depth = max((len(c) for c in board.columns.values()), default=0)
            for row in range(depth):
                cells = []
                for status in TaskStatus:
                    column = board.column(status)
                    cells.append(f"#{column[row].id} {escape(column[row].title)}" if row < len(column) else "")
                table.add_row(*cells)
            console.print(table)
    except TaskboardError as e:
        fail(str(e))


@tasks.command("add")
@click.argument("title")
@click.option("--description", "-d", default="", help="Task description")
@click.option("--user", "-u", "user_name", help="Assign to this member (default: active)")
@click.option("--status", "-s", type=click.Choice([s.value for s in TaskStatus]),
              default=TaskStatus.NEW.value, help="Initial column")
@click.pass_context
def tasks_add(ctx, title, description, user_name, status):
    """Add a new task."""
    session_context = ctx.obj["session"]
    try:
        with get_db_session() as db:
            user_id = _resolve_user_id(db, session_context, user_name)
            task = TaskService(db, session_context).create_task(
                title=title,
                description=description,
                user_id=user_id,
                status=status,
            )
            console.print(created_message(task))
    except TaskboardError as e:
        fail(str(e))


@tasks.command("move")
@click.argument("task_id", type=int)
@click.argument("status", type=click.Choice([s.value for s in TaskStatus]))
@click.option("--index", "-i", default=0, type=int, help="Position within the column (0 = top)")
@click.pass_context
def tasks_move(ctx, task_id, status, index):
    """Move a task to a column."""
    try:
        with get_db_session() as db:
            task = TaskService(db, ctx.obj["session"]).move_task(task_id, status, index)
            console.print(
                f"[green]✓[/green] Moved task #{task.id} to {task.status.label} (position {task.position})"
            )
    except TaskboardError as e:
        fail(str(e))


@tasks.command("delete")
@click.argument("task_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def tasks_delete(ctx, task_id, yes):
    """Delete a task."""
    try:
        with get_db_session() as db:
            service = TaskService(db, ctx.obj["session"])
            task = service.get_task(task_id)

            if not task:
                fail(f"Task #{task_id} not found.")
                return

            if not yes:
                if not click.confirm(f"Delete task '{task.title}'?"):
                    return

            service.delete_task(task_id)
            console.print(f"[green]✓[/green] Deleted task #{task_id}")
    except TaskboardError as e:
        fail(str(e))


@tasks.command("search")
@click.argument("query")
@click.option("--limit", "-n", default=None, type=int, help="Maximum results")
@click.pass_context
def tasks_search(ctx, query, limit):
    """Search tasks by title and description."""
    limit = limit or ctx.obj["config"].commands.search_limit
    try:
        with get_db_session() as db:
            found = TaskService(db, ctx.obj["session"]).search_tasks(query, limit=limit)
            if not found:
                console.print("[dim]No results found.[/dim]")
                return
            console.print(render_task_table(found, f"Search Results ({len(found)})"))
    except TaskboardError as e:
        fail(str(e))


# --- Command Bar ---


@cli.command("run")
@click.argument("line")
@click.pass_context
def run_command(ctx, line):
    """Run one line of command bar input.

    Examples:

        tb run ":add @john - Fix the header bug"

        tb run ":add Update documentation"

        tb run "header bug"
    """
    cfg = ctx.obj["config"]
    intent = classify(line)
    logger.debug(f"Classified input as {intent.kind.value}: {format_intent(intent)}")

    with get_db_session() as db:
        collaborators = ServiceCollaborators(
            db, ctx.obj["session"], search_limit=cfg.commands.search_limit
        )
        resolution = run_async(resolve(intent, collaborators))

        if resolution.kind == ResolutionKind.HELP_SHOWN:
            console.print(Panel(get_help_text(), title="Commands"))
        elif resolution.kind == ResolutionKind.TASK_CREATED:
            task = resolution.task
            console.print(created_message(task))
        elif resolution.kind == ResolutionKind.SEARCHED:
            if not resolution.results:
                console.print("[dim]No results found[/dim]")
                console.print("[dim]Try using commands like :add @user - task or :help[/dim]")
            else:
                console.print(
                    render_task_table(resolution.results, f"Search Results ({len(resolution.results)})")
                )

    if resolution.is_error:
        fail(resolution.message)


@cli.command("suggest")
@click.argument("line")
@click.pass_context
def suggest_command(ctx, line):
    """Show completions for partial command bar input."""
    session_context = ctx.obj["session"]
    roster = []
    if session_context.is_authenticated():
        with get_db_session() as db:
            roster = TeamService(db, session_context).get_roster()

    suggestions = get_suggestions(line, roster, ctx.obj["config"].commands.suggestion_limit)
    if not suggestions:
        console.print("[dim]No suggestions.[/dim]")
        return
    for suggestion in suggestions:
        console.print(f"[blue]{escape(suggestion)}[/blue]", highlight=False)


# --- Config Commands ---


@cli.group()
def config():
    """Configuration commands."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx):
    """Show current configuration."""
    cfg = ctx.obj["config"]

    sections = [
        ("Database", [
            f"URL: {cfg.database.url}",
            f"Echo: {cfg.database.echo}",
        ]),
        ("Commands", [
            f"Suggestion Limit: {cfg.commands.suggestion_limit}",
            f"Search Limit: {cfg.commands.search_limit}",
        ]),
        ("Session", [
            f"Path: {cfg.session.path}",
        ]),
        ("Logging", [
            f"Level: {cfg.logging.level}",
        ]),
    ]

    for title, items in sections:
        console.print(f"\n[bold]{title}[/bold]")
        for item in items:
            console.print(f"  {escape(item)}")


@config.command("init")
@click.option("--force", "-f", is_flag=True, help="Overwrite existing config")
def config_init(force):
    """Create a default config file."""
    config_path = Path("config.yaml")

    if config_path.exists() and not force:
        console.print("[yellow]config.yaml already exists. Use --force to overwrite.[/yellow]")
        return

    default_config = """# Task Board Configuration

database:
  url: "sqlite:///taskboard.db"
  echo: false

commands:
  suggestion_limit: 5
  search_limit: 50

session:
  path: "~/.taskboard/session.json"

logging:
  level: "WARNING"
"""

    config_path.write_text(default_config)
    console.print(f"[green]✓[/green] Created {config_path}")


# --- Server Command ---


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", "-p", default=8000, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev mode)")
def server(host, port, reload):
    """Start the API server."""
    import uvicorn

    console.print(Panel(
        f"Starting API server at [cyan]http://{host}:{port}[/cyan]\n"
        f"API docs at [cyan]http://{host}:{port}/docs[/cyan]",
        title="Task Board API",
    ))

    uvicorn.run(
        "taskboard.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


# --- Terminal Board ---


@cli.command()
@click.pass_context
def tui(ctx):
    """Open the interactive terminal board."""
    from taskboard.tui.app import TaskBoardApp

    session_context = ctx.obj["session"]
    if not session_context.is_authenticated():
        fail("Not authenticated. Run 'tb team login NAME' first.")
        return

    TaskBoardApp(session_context, config=get_config()).run()


# --- Entry Point ---


def main():
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
