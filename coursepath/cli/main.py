"""
Typer CLI for the coursepath progression core.

Commands:
    coursepath db init                               - Initialize database tables
    coursepath db check                              - Check database connectivity
    coursepath outline COURSE_ID --learner ID        - Show a learner's course outline
    coursepath completion COURSE_ID --learner ID     - Evaluate course completion
    coursepath certificate issue COURSE_ID --learner ID
    coursepath certificate verify CERTIFICATE_ID
    coursepath version                               - Show version information

Usage:
    coursepath --help
    coursepath db init
    coursepath outline 3f2a... --learner 91c0...
"""

from __future__ import annotations

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import get_settings
from coursepath import __version__
from coursepath.core.errors import CoursepathError, NotCompleted
from coursepath.core.identity import Identity
from coursepath.core.logging import configure_logging

app = typer.Typer(
    help="coursepath CLI: learner progression, quizzes and certificates",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Course progression core."""
    configure_logging(level="DEBUG" if verbose else None)


def _fail(error: CoursepathError) -> None:
    """Print a typed core error and exit non-zero."""
    if isinstance(error, NotCompleted):
        rprint(f"[yellow]⚠[/yellow] {error.message}")
    else:
        rprint(f"[red]✗[/red] {error.message} [dim]({error.code})[/dim]")
    raise typer.Exit(code=1)


# ========================================
# DATABASE COMMANDS
# ========================================

db_app = typer.Typer(help="Database management (init, check)")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Initialize database tables from SQLAlchemy models.

    Creates all tables defined in coursepath/db/models if they don't exist.
    Safe to run multiple times (idempotent).
    """
    from coursepath.db.database import init_db

    logger.info("Initializing database tables...")
    init_db()
    rprint("[green]✓[/green] Database initialized!")


@db_app.command("check")
def db_check() -> None:
    """Check that the configured database is reachable."""
    from coursepath.db.database import check_connection

    status, error = check_connection()
    if status != "ok":
        rprint(f"[red]✗[/red] Database unreachable: {error}")
        raise typer.Exit(code=1)
    rprint("[green]✓[/green] Database reachable")


# ========================================
# LEARNER PROGRESS COMMANDS
# ========================================


@app.command("outline")
def show_outline(
    course_id: str = typer.Argument(..., help="Course id"),
    learner: str = typer.Option(..., "--learner", "-l", help="Learner user id"),
) -> None:
    """Show the course outline with lock and completion state."""
    from coursepath.db.database import session_scope
    from coursepath.progress.locks import LockEvaluator

    try:
        with session_scope() as session:
            outline = LockEvaluator(session).evaluate(Identity.learner(learner), course_id)
    except CoursepathError as e:
        _fail(e)
        return

    table = Table(title=f"Course {course_id}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Item", style="cyan")
    table.add_column("Type")
    table.add_column("State")

    for position, item in enumerate(outline.items, start=1):
        if item.is_completed:
            state = "[green]✓ completed[/green]"
        elif item.is_locked:
            state = "[dim]🔒 locked[/dim]"
        else:
            state = "[yellow]○ available[/yellow]"
        table.add_row(str(position), item.title, item.type, state)

    console.print(table)
    rprint(
        f"Progress: [bold]{outline.completed_count}/{outline.total}[/bold] "
        f"({outline.percent}%)"
    )
    if outline.next_item_id:
        rprint(f"Next: [cyan]{outline.next_item_id}[/cyan]")


@app.command("completion")
def show_completion(
    course_id: str = typer.Argument(..., help="Course id"),
    learner: str = typer.Option(..., "--learner", "-l", help="Learner user id"),
) -> None:
    """Evaluate whether the learner has completed the course."""
    from coursepath.db.database import session_scope
    from coursepath.progress.completion import CompletionEvaluator

    try:
        with session_scope() as session:
            result = CompletionEvaluator(session).compute_completion(course_id, learner)
    except CoursepathError as e:
        _fail(e)
        return

    progress = f"{result.progress.completed}/{result.progress.total}"
    if result.completed:
        rprint(f"[green]✓[/green] Course completed ({progress})")
    else:
        rprint(f"[yellow]○[/yellow] Not completed ({progress}): {result.reason}")


# ========================================
# CERTIFICATE COMMANDS
# ========================================

certificate_app = typer.Typer(help="Certificate issuance and verification")
app.add_typer(certificate_app, name="certificate")


@certificate_app.command("issue")
def certificate_issue(
    course_id: str = typer.Argument(..., help="Course id"),
    learner: str = typer.Option(..., "--learner", "-l", help="Learner user id"),
) -> None:
    """Issue the learner's certificate (returns the existing one if already issued)."""
    from coursepath.certificates.issuer import CertificateIssuer
    from coursepath.db.database import session_scope

    try:
        with session_scope() as session:
            certificate = CertificateIssuer(session).issue(Identity.learner(learner), course_id)
    except CoursepathError as e:
        _fail(e)
        return

    label = "issued" if certificate.newly_issued else "already issued"
    rprint(f"[green]✓[/green] Certificate {label}: [bold]{certificate.id}[/bold]")
    rprint(f"  Verify at: {certificate.verification_url}")


@certificate_app.command("verify")
def certificate_verify(
    certificate_id: str = typer.Argument(..., help="Certificate id"),
) -> None:
    """Verify a certificate (public lookup)."""
    from coursepath.certificates.issuer import CertificateIssuer
    from coursepath.db.database import session_scope

    with session_scope() as session:
        result = CertificateIssuer(session).verify(certificate_id)

    if not result.valid or result.certificate is None:
        rprint("[red]✗[/red] Certificate not found")
        raise typer.Exit(code=1)

    details = result.certificate
    table = Table(title="Certificate", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("Learner", details.learner_name)
    table.add_row("Course", details.course_title)
    table.add_row("Instructor", details.instructor_name)
    table.add_row("Issued", details.issued_at.strftime("%Y-%m-%d"))
    console.print(table)


@app.command("version")
def show_version() -> None:
    """Show version information."""
    settings = get_settings()
    rprint(f"[bold]coursepath[/bold] v{__version__}")
    rprint(f"  Database: {'sqlite' if settings.is_sqlite() else 'postgresql'}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
