"""
Verifica in sola lettura dello stato di utenti e gruppi
"""
from typing import Dict

from .exceptions import NotFound
from .system import AccountStore


def verify_user(store: AccountStore, user_id: str) -> Dict:
    """
    Stato corrente di un utente (uid/gid, home, shell, scadenza password)

    Raises:
        NotFound: utente inesistente
    """
    info = store.get_user_info(user_id.strip())
    if info is None:
        raise NotFound(f"Utente {user_id} non trovato")
    return info


def verify_group(store: AccountStore, name: str) -> Dict:
    """
    Stato corrente di un gruppo (gid, membri)

    Raises:
        NotFound: gruppo inesistente
    """
    info = store.get_group_info(name.strip())
    if info is None:
        raise NotFound(f"Gruppo {name} non trovato")
    return info


def describe_expiry(value) -> str:
    """Etichetta leggibile per lo stato di scadenza password"""
    if value is None:
        return "⚠️ Sconosciuto (servono privilegi root)"
    return "✅ Cambio obbligatorio al prossimo login" if value else "❌ Non scaduta"
