"""
CLI principale per user-provisioner v1.0.0
"""
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from rich import print as rprint
from rich.markup import escape

from .config import get_settings, Settings
from .exceptions import MalformedRowError, NotFound, UsageError
from .provision import (
    ErrorPolicy,
    RunContext,
    RunReport,
    deprovision_rows,
    print_report,
    provision_rows,
)
from .records import MalformedRowPolicy, open_table, read_table
from .system import AccountStore, LinuxAccountStore
from .utils import check_root_privileges, is_readable_file
from .verify import describe_expiry, verify_group, verify_user


def version_callback(value: bool):
    """Callback per --version flag globale"""
    if value:
        from . import __version__
        rprint(f"[bold blue]User Provisioner v{__version__}[/bold blue]")
        raise typer.Exit()


app = typer.Typer(
    name="user-provisioner",
    help="Provisioning massivo utenti Linux da tabella CSV",
    add_completion=False
)
verify_app = typer.Typer(help="Verifica stato utenti e gruppi (sola lettura)")
console = Console()


def get_store() -> AccountStore:
    """Database utenti del sistema locale"""
    return LinuxAccountStore()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v",
        help="Mostra versione del programma",
        callback=version_callback,
        is_eager=True
    )
):
    """User Provisioner v1.0.0 - utenti Linux da CSV"""


def _load_settings(shell: Optional[str], delimiter: Optional[str],
                   strict: Optional[bool]) -> Settings:
    try:
        return get_settings().override(shell=shell, delimiter=delimiter, strict=strict)
    except ValueError as e:
        rprint(f"[red]❌ Errore configurazione: {escape(str(e))}[/red]")
        sys.exit(1)


def _prepare(table: str, shell: Optional[str], delimiter: Optional[str],
             strict: Optional[bool]) -> RunContext:
    """Verifica le precondizioni prima di toccare il database utenti"""
    settings = _load_settings(shell, delimiter, strict)
    ctx = RunContext(store=get_store(), settings=settings, console=console,
                     is_privileged=check_root_privileges)
    try:
        ctx.require_privileges()
        if not is_readable_file(table):
            raise UsageError(f"File non trovato o non leggibile: {table}")
    except UsageError as e:
        rprint(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(1)
    return ctx


def _records(fh, settings: Settings):
    policy = MalformedRowPolicy.FAIL if settings.strict else MalformedRowPolicy.SKIP
    return read_table(
        fh,
        delimiter=settings.delimiter,
        policy=policy,
        warn=lambda msg: console.print(f"[yellow]⚠️ {escape(msg)}[/yellow]"),
    )


def _abort_read(table: str, error: Exception, report: RunReport, title: str) -> None:
    """Errore di lettura a metà file: riepiloga le righe già applicate ed esce"""
    if isinstance(error, MalformedRowError):
        rprint(f"[red]❌ {escape(str(error))}[/red]")
    else:
        rprint(f"[red]❌ Errore lettura {escape(table)}: {escape(str(error))}[/red]")
    print_report(report, console, title)
    sys.exit(1)


@app.command("provision")
def provision(
    table: str = typer.Argument(help="File CSV (FirstName,LastName,UserID,JobRole,StartingPassword)"),
    shell: Optional[str] = typer.Option(None, "--shell", help="Shell di login (default /bin/bash)"),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", help="Separatore di campo"),
    strict: Optional[bool] = typer.Option(None, "--strict/--no-strict",
                                          help="Interrompe su righe con colonne errate"),
    continue_on_error: bool = typer.Option(False, "--continue-on-error",
                                           help="Prosegue dopo un errore su una riga"),
):
    """Crea o aggiorna gli utenti, imposta la password iniziale e la fa scadere"""
    ctx = _prepare(table, shell, delimiter, strict)
    policy = ErrorPolicy.CONTINUE if continue_on_error else ErrorPolicy.ABORT

    rprint(f"[blue]🚀 Provisioning da: {escape(table)}[/blue]")
    report = RunReport()
    try:
        with open_table(table) as fh:
            provision_rows(_records(fh, ctx.settings), ctx, policy=policy, report=report)
    except (MalformedRowError, OSError, UnicodeDecodeError) as e:
        _abort_read(table, e, report, "Riepilogo provisioning (parziale)")

    print_report(report, console, "Riepilogo provisioning")
    if not report.ok:
        sys.exit(1)
    rprint("[bold green]🎉 Provisioning completato![/bold green]")


@app.command("deprovision")
def deprovision(
    table: str = typer.Argument(help="File CSV (usata solo la colonna UserID)"),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", help="Separatore di campo"),
    strict: Optional[bool] = typer.Option(None, "--strict/--no-strict",
                                          help="Interrompe su righe con colonne errate"),
):
    """Elimina gli utenti elencati e la loro home directory"""
    ctx = _prepare(table, None, delimiter, strict)

    rprint(f"[blue]🧹 Deprovisioning da: {escape(table)}[/blue]")
    report = RunReport()
    try:
        with open_table(table) as fh:
            deprovision_rows(_records(fh, ctx.settings), ctx, report=report)
    except (MalformedRowError, OSError, UnicodeDecodeError) as e:
        _abort_read(table, e, report, "Riepilogo deprovisioning (parziale)")

    print_report(report, console, "Riepilogo deprovisioning")
    if report.failures:
        rprint(f"[yellow]⚠️ {report.failed} eliminazioni non riuscite (vedi sopra)[/yellow]")
    rprint("[bold green]🎉 Deprovisioning completato![/bold green]")


@verify_app.command("user")
def verify_user_cmd(
    user_id: str = typer.Argument(help="Nome utente")
):
    """Mostra lo stato di un utente"""
    try:
        info = verify_user(get_store(), user_id)
    except NotFound as e:
        rprint(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(1)

    table = Table(title=f"Utente {info['username']}")
    table.add_column("Campo", style="cyan")
    table.add_column("Valore", style="white")

    for key, value in info.items():
        if key == "password_must_change":
            value = describe_expiry(value)
        elif isinstance(value, list):
            value = ", ".join(value)
        table.add_row(key.upper(), escape(str(value)))

    console.print(table)


@verify_app.command("group")
def verify_group_cmd(
    group_name: str = typer.Argument(help="Nome gruppo")
):
    """Mostra lo stato di un gruppo"""
    try:
        info = verify_group(get_store(), group_name)
    except NotFound as e:
        rprint(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(1)

    table = Table(title=f"Gruppo {info['name']}")
    table.add_column("Campo", style="cyan")
    table.add_column("Valore", style="white")
    table.add_row("GID", str(info["gid"]))
    table.add_row("MEMBERS", escape(", ".join(info["members"])) or "-")

    console.print(table)


app.add_typer(verify_app, name="verify")


@app.command()
def config():
    """Mostra configurazione corrente"""
    rprint("[blue]⚙️ Configurazione User Provisioner[/blue]")

    try:
        settings = get_settings()
    except ValueError as e:
        rprint(f"[red]❌ Errore configurazione: {escape(str(e))}[/red]")
        sys.exit(1)

    table = Table(title="Configurazione")
    table.add_column("Variabile", style="cyan")
    table.add_column("Valore", style="white")

    table.add_row("UPROV_SHELL", settings.shell)
    table.add_row("UPROV_DELIMITER", repr(settings.delimiter))
    table.add_row("UPROV_STRICT", "sì" if settings.strict else "no")

    console.print(table)

    has_root = check_root_privileges()
    rprint(f"[bold]Privilegi root:[/bold] {'✅ Disponibili' if has_root else '❌ Non disponibili'}")


@app.command()
def version():
    """Mostra versione"""
    from . import __version__
    rprint(f"[bold blue]User Provisioner v{__version__}[/bold blue]")


# Entry point separati: uprov-provision TABLE / uprov-deprovision TABLE
provision_app = typer.Typer(add_completion=False, help="Provisioning utenti da CSV")
provision_app.command()(provision)

deprovision_app = typer.Typer(add_completion=False, help="Deprovisioning utenti da CSV")
deprovision_app.command()(deprovision)


if __name__ == "__main__":
    app()
