"""
Configurazione user-provisioner da variabili d'ambiente (con fallback su .env)
"""
import os
from dataclasses import dataclass, replace
from typing import Optional

from .utils import env_bool, find_and_load_env

DEFAULT_SHELL = "/bin/bash"
DEFAULT_DELIMITER = ","

ENV_SHELL = "UPROV_SHELL"
ENV_DELIMITER = "UPROV_DELIMITER"
ENV_STRICT = "UPROV_STRICT"


@dataclass(frozen=True)
class Settings:
    """Impostazioni di esecuzione"""
    shell: str = DEFAULT_SHELL
    delimiter: str = DEFAULT_DELIMITER
    strict: bool = False

    def override(self, shell: Optional[str] = None, delimiter: Optional[str] = None,
                 strict: Optional[bool] = None) -> "Settings":
        """Applica le opzioni CLI sopra i valori d'ambiente"""
        return validate_settings(replace(
            self,
            shell=shell if shell is not None else self.shell,
            delimiter=delimiter if delimiter is not None else self.delimiter,
            strict=strict if strict is not None else self.strict,
        ))


def validate_settings(settings: Settings) -> Settings:
    """Valida le impostazioni, solleva ValueError se non valide"""
    if len(settings.delimiter) != 1:
        raise ValueError(
            f"Delimitatore non valido: {settings.delimiter!r} (serve un singolo carattere)"
        )
    if not settings.shell.startswith("/"):
        raise ValueError(f"Shell non valida: {settings.shell!r} (serve un percorso assoluto)")
    return settings


def get_settings() -> Settings:
    """Recupera la configurazione dalle variabili d'ambiente"""
    # Prova a caricare file .env se manca almeno una variabile
    # (load_dotenv non sovrascrive quelle già esportate)
    if not all(name in os.environ for name in (ENV_SHELL, ENV_DELIMITER, ENV_STRICT)):
        find_and_load_env()

    return validate_settings(Settings(
        shell=os.environ.get(ENV_SHELL) or DEFAULT_SHELL,
        delimiter=os.environ.get(ENV_DELIMITER) or DEFAULT_DELIMITER,
        strict=env_bool(ENV_STRICT, False),
    ))
