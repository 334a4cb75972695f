"""
Utility functions per user-provisioner
"""
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from .exceptions import AccountStoreError


def run(cmd: List[str], check: bool = True, input: Optional[str] = None,
        env: Optional[Dict[str, str]] = None) -> str:
    """
    Esegue un comando di sistema e ritorna stdout.

    Args:
        cmd: Comando e argomenti
        check: Se sollevare AccountStoreError su exit code diverso da zero
        input: Testo da passare su stdin (es. credenziali per chpasswd)
        env: Variabili d'ambiente aggiuntive per il comando

    Raises:
        AccountStoreError: comando fallito o non trovato
    """
    try:
        full_env = {**os.environ, **env} if env else None
        result = subprocess.run(cmd, capture_output=True, text=True, input=input,
                                env=full_env)
    except FileNotFoundError as e:
        raise AccountStoreError(cmd, 127, str(e)) from e
    except ValueError as e:
        # Argomenti non passabili al sistema (es. byte NUL)
        raise AccountStoreError([repr(arg) for arg in cmd], 1, str(e)) from e
    if check and result.returncode != 0:
        raise AccountStoreError(cmd, result.returncode, result.stderr)
    return result.stdout.strip()


def check_root_privileges() -> bool:
    """Verifica se il processo gira con privilegi di root (EUID 0)"""
    try:
        return os.geteuid() == 0
    except AttributeError:
        # Piattaforme senza geteuid (Windows)
        return False


def is_readable_file(path: str) -> bool:
    """Verifica che il percorso sia un file regolare leggibile"""
    return os.path.isfile(path) and os.access(path, os.R_OK)


def find_and_load_env() -> bool:
    """
    Cerca e carica un file .env (directory corrente, poi home utente)

    Le variabili già presenti nell'ambiente non vengono sovrascritte.

    Returns:
        True se un file .env è stato caricato
    """
    from dotenv import load_dotenv

    for candidate in (Path.cwd() / ".env", Path.home() / ".env"):
        if candidate.is_file():
            return load_dotenv(candidate, override=False)
    return False


def env_bool(name: str, default: bool = False) -> bool:
    """Legge una variabile booleana (1/true/yes/on)"""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "y", "on")
