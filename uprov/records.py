"""
Lettura tabella utenti e normalizzazione dei record

Formato: una riga di intestazione (FirstName,LastName,UserID,JobRole,StartingPassword)
seguita da una riga per utente. Il delimitatore è un singolo carattere, senza
quoting né escape: un valore che contiene il delimitatore sposta le colonne.
"""
import enum
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional, TextIO

from .exceptions import MalformedRowError

HEADER = ("FirstName", "LastName", "UserID", "JobRole", "StartingPassword")
FIELD_COUNT = len(HEADER)


class MalformedRowPolicy(enum.Enum):
    """Comportamento su righe con numero di colonne errato"""
    SKIP = "skip"
    FAIL = "fail"


@dataclass(frozen=True)
class InputRecord:
    """Riga grezza della tabella"""
    first_name: str
    last_name: str
    user_id: str
    job_role: str
    starting_password: str = field(repr=False)
    line_number: int = 0


@dataclass(frozen=True)
class NormalizedRecord:
    """Record pronto per la riconciliazione"""
    first_name: str
    last_name: str
    user_id: str
    group_name: str
    starting_password: str = field(repr=False)
    line_number: int = 0

    @property
    def is_empty(self) -> bool:
        """True se manca lo UserID (riga da saltare)"""
        return not self.user_id

    @property
    def full_name(self) -> str:
        """Nome visualizzato (campo GECOS)"""
        return " ".join(part for part in (self.first_name, self.last_name) if part)


def derive_group_name(job_role: str, user_id: str) -> str:
    """
    Deriva il gruppo primario dal ruolo

    "Sales Manager" -> "sales_manager"; ruolo vuoto -> user_id
    """
    group = job_role.strip().lower().replace(" ", "_")
    return group or user_id


def normalize(record: InputRecord) -> NormalizedRecord:
    """
    Normalizza un InputRecord. Funzione pura, non solleva eccezioni.

    Un record senza UserID produce un NormalizedRecord con is_empty == True.
    """
    user_id = (record.user_id or "").strip()
    return NormalizedRecord(
        first_name=(record.first_name or "").strip(),
        last_name=(record.last_name or "").strip(),
        user_id=user_id,
        group_name=derive_group_name(record.job_role or "", user_id),
        starting_password=(record.starting_password or "").strip(),
        line_number=record.line_number,
    )


def read_table(source: Iterable[str], delimiter: str = ",",
               policy: MalformedRowPolicy = MalformedRowPolicy.SKIP,
               warn: Optional[Callable[[str], None]] = None) -> Iterator[InputRecord]:
    """
    Legge la tabella riga per riga (generatore, consumabile una sola volta)

    Args:
        source: Sorgente di righe (file aperto o lista di stringhe)
        delimiter: Separatore di campo (un carattere)
        policy: SKIP scarta le righe malformate con un avviso, FAIL solleva
        warn: Callback per gli avvisi

    Yields:
        InputRecord nell'ordine della sorgente

    Raises:
        MalformedRowError: riga con colonne errate e policy FAIL
    """
    if len(delimiter) != 1:
        raise ValueError(f"Delimitatore non valido: {delimiter!r}")

    lines = iter(source)
    # Intestazione: esattamente una riga, il contenuto non viene verificato
    if next(lines, None) is None:
        return

    for line_number, raw in enumerate(lines, start=2):
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue

        fields = line.split(delimiter)
        if len(fields) != FIELD_COUNT:
            if policy is MalformedRowPolicy.FAIL:
                raise MalformedRowError(line_number, len(fields), FIELD_COUNT)
            if warn:
                warn(f"Riga {line_number}: {len(fields)} colonne invece di {FIELD_COUNT}, saltata")
            continue

        yield InputRecord(*fields, line_number=line_number)


def open_table(path: str) -> TextIO:
    """Apre il file tabella (UTF-8, BOM tollerato)"""
    return open(path, "r", encoding="utf-8-sig", newline="")
