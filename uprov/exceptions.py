"""
Eccezioni user-provisioner
"""
from typing import List, Optional


class ProvisionError(Exception):
    """Errore base di user-provisioner"""


class UsageError(ProvisionError):
    """Precondizione non soddisfatta (argomenti, privilegi, file di input)"""


class MalformedRowError(ProvisionError):
    """Riga con numero di colonne errato (solo in modalità strict)"""

    def __init__(self, line_number: int, field_count: int, expected: int):
        self.line_number = line_number
        self.field_count = field_count
        self.expected = expected
        super().__init__(
            f"Riga {line_number}: {field_count} colonne, attese {expected}"
        )


class AccountStoreError(ProvisionError):
    """
    Operazione rifiutata dal database utenti/gruppi del sistema

    Il messaggio contiene comando, exit code e stderr. Non contiene mai
    l'input passato su stdin (password).
    """

    def __init__(self, cmd: List[str], returncode: int, stderr: str = "",
                 message: Optional[str] = None):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        if message is None:
            message = f"Errore eseguendo {' '.join(self.cmd)} (exit {returncode})"
            if self.stderr:
                message += f": {self.stderr}"
        super().__init__(message)


class NotFound(ProvisionError):
    """Utente o gruppo non presente"""
