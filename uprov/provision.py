"""
Provisioning e deprovisioning utenti da tabella

Passata singola e sequenziale: ogni riga viene riconciliata (o eliminata)
completamente prima di leggere la successiva.
"""
import enum
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import Settings
from .exceptions import AccountStoreError, UsageError
from .records import InputRecord, NormalizedRecord, normalize
from .system import AccountStore
from .utils import check_root_privileges


class ErrorPolicy(enum.Enum):
    """Gestione errori del database utenti durante una passata"""
    ABORT = "abort"        # interrompe alla prima riga fallita
    CONTINUE = "continue"  # registra l'errore e passa alla riga successiva


@dataclass
class RunContext:
    """Contesto di esecuzione passato esplicitamente alle passate"""
    store: AccountStore
    settings: Settings = field(default_factory=Settings)
    console: Console = field(default_factory=Console)
    is_privileged: Callable[[], bool] = check_root_privileges

    def require_privileges(self) -> None:
        if not self.is_privileged():
            raise UsageError("Privilegi root richiesti (eseguire con sudo)")


@dataclass
class RowOutcome:
    user_id: str
    skipped: bool = False
    group_created: bool = False
    user_created: bool = False
    user_updated: bool = False


@dataclass
class RunReport:
    """Riepilogo di una passata"""
    processed: int = 0
    skipped: int = 0
    groups_created: int = 0
    users_created: int = 0
    users_updated: int = 0
    users_deleted: int = 0
    users_absent: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)
    aborted: bool = False

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def add(self, outcome: RowOutcome) -> None:
        if outcome.skipped:
            self.skipped += 1
            return
        self.processed += 1
        self.groups_created += int(outcome.group_created)
        self.users_created += int(outcome.user_created)
        self.users_updated += int(outcome.user_updated)


class Reconciler:
    """
    Porta il database utenti nello stato descritto da un record

    Ordine per riga: gruppo, utente (crea o aggiorna), password, scadenza.
    Il gruppo esiste sempre prima che l'utente venga creato o aggiornato.
    """

    def __init__(self, store: AccountStore, shell: str, console: Optional[Console] = None):
        self.store = store
        self.shell = shell
        self.console = console or Console()

    def ensure_group(self, group_name: str) -> bool:
        """Crea il gruppo se assente. Un gruppo esistente non viene toccato."""
        if self.store.group_exists(group_name):
            return False
        self.store.create_group(group_name)
        self.console.print(f"[green]✅ Gruppo creato: {escape(group_name)}[/green]")
        return True

    def reconcile(self, record: NormalizedRecord) -> RowOutcome:
        if record.is_empty:
            return RowOutcome(user_id="", skipped=True)

        outcome = RowOutcome(user_id=record.user_id)
        outcome.group_created = self.ensure_group(record.group_name)

        if self.store.user_exists(record.user_id):
            # Sovrascrive eventuali modifiche manuali (shell, gruppo, nome)
            self.store.update_user(record.user_id, primary_group=record.group_name,
                                   shell=self.shell, comment=record.full_name)
            outcome.user_updated = True
            self.console.print(f"[yellow]🔄 Utente aggiornato: {escape(record.user_id)}[/yellow]")
        else:
            self.store.create_user(record.user_id, comment=record.full_name,
                                   primary_group=record.group_name, shell=self.shell,
                                   create_home=True)
            outcome.user_created = True
            self.console.print(f"[green]✅ Utente creato: {escape(record.user_id)}[/green]")

        # Reset password anche per utenti esistenti (ripristino laboratorio)
        self.store.set_password(record.user_id, record.starting_password)
        self.store.expire_password(record.user_id)
        self.console.print(f"[cyan]🔑 Password impostata e scaduta: {escape(record.user_id)}[/cyan]")

        return outcome


def _skip_empty(record: NormalizedRecord, console: Console) -> None:
    console.print(
        f"[yellow]⚠️ Riga {record.line_number}: UserID mancante, riga saltata[/yellow]"
    )


def provision_rows(records: Iterable[InputRecord], ctx: RunContext,
                   policy: ErrorPolicy = ErrorPolicy.ABORT,
                   report: Optional[RunReport] = None) -> RunReport:
    """
    Passata di provisioning

    Args:
        records: Sequenza di InputRecord (consumata una volta)
        ctx: Contesto di esecuzione
        policy: ABORT si ferma al primo errore del database utenti,
            CONTINUE lo registra e prosegue
        report: Report da aggiornare; resta valido anche se la lettura
            della sorgente si interrompe con un'eccezione

    Returns:
        RunReport; report.aborted è True se la passata si è interrotta
    """
    reconciler = Reconciler(ctx.store, ctx.settings.shell, ctx.console)
    report = report if report is not None else RunReport()

    for raw in records:
        record = normalize(raw)
        if record.is_empty:
            _skip_empty(record, ctx.console)
            report.skipped += 1
            continue

        ctx.console.print(f"[blue]👤 {escape(record.user_id)} → gruppo {escape(record.group_name)}[/blue]")
        try:
            outcome = reconciler.reconcile(record)
        except AccountStoreError as e:
            report.failures.append((record.user_id, str(e)))
            ctx.console.print(f"[red]❌ Errore per {escape(record.user_id)}: {escape(str(e))}[/red]")
            if policy is ErrorPolicy.ABORT:
                report.aborted = True
                ctx.console.print("[red]⛔ Provisioning interrotto[/red]")
                break
            continue
        report.add(outcome)

    return report


def deprovision_rows(records: Iterable[InputRecord], ctx: RunContext,
                     policy: ErrorPolicy = ErrorPolicy.CONTINUE,
                     report: Optional[RunReport] = None) -> RunReport:
    """
    Passata di deprovisioning: elimina utenti e home directory

    Un errore su una singola eliminazione viene registrato e la passata
    continua (policy CONTINUE, default). Utenti inesistenti non sono errori.
    """
    report = report if report is not None else RunReport()

    for raw in records:
        record = normalize(raw)
        if record.is_empty:
            _skip_empty(record, ctx.console)
            report.skipped += 1
            continue

        report.processed += 1
        try:
            if not ctx.store.user_exists(record.user_id):
                report.users_absent += 1
                ctx.console.print(f"[dim]ℹ️ Utente {escape(record.user_id)} non esiste[/dim]")
                continue
            ctx.store.delete_user(record.user_id, remove_home=True)
        except AccountStoreError as e:
            report.failures.append((record.user_id, str(e)))
            ctx.console.print(f"[red]❌ Errore eliminazione {escape(record.user_id)}: {escape(str(e))}[/red]")
            if policy is ErrorPolicy.ABORT:
                report.aborted = True
                break
            continue

        report.users_deleted += 1
        ctx.console.print(f"[green]🗑️ Utente eliminato: {escape(record.user_id)}[/green]")

    return report


def print_report(report: RunReport, console: Console, title: str) -> None:
    """Tabella riepilogativa di fine passata"""
    table = Table(title=title)
    table.add_column("Voce", style="cyan")
    table.add_column("Totale", style="white", justify="right")

    rows = [
        ("Righe elaborate", report.processed),
        ("Righe saltate", report.skipped),
        ("Gruppi creati", report.groups_created),
        ("Utenti creati", report.users_created),
        ("Utenti aggiornati", report.users_updated),
        ("Utenti eliminati", report.users_deleted),
        ("Utenti non presenti", report.users_absent),
        ("Errori", report.failed),
    ]
    for label, value in rows:
        table.add_row(label, str(value))

    console.print(table)
    for user_id, message in report.failures:
        console.print(f"[red]• {escape(user_id)}: {escape(message)}[/red]")
