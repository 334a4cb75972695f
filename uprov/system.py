"""
Accesso al database utenti e gruppi del sistema Linux

AccountStore è l'interfaccia usata da provisioning e verifica;
LinuxAccountStore la implementa con pwd/grp e i comandi shadow-utils.
"""
import abc
import grp
import os
import pwd
from typing import Dict, List, Optional

from .exceptions import AccountStoreError
from .utils import run

# Output di chage in inglese, indipendente dalla locale
_C_LOCALE = {"LC_ALL": "C"}


def _invalid_name(lookup: str, name: str, error: Exception) -> AccountStoreError:
    return AccountStoreError([lookup, repr(name)], 1, str(error),
                             message=f"Nome non valido {name!r}: {error}")


class AccountStore(abc.ABC):
    """
    Interfaccia verso il database utenti/gruppi

    Le operazioni di scrittura sollevano AccountStoreError se rifiutate.
    Ogni chiamata è atomica e immediatamente visibile alle letture successive.
    """

    @abc.abstractmethod
    def group_exists(self, name: str) -> bool:
        ...

    @abc.abstractmethod
    def create_group(self, name: str) -> None:
        ...

    @abc.abstractmethod
    def user_exists(self, user_id: str) -> bool:
        ...

    @abc.abstractmethod
    def create_user(self, user_id: str, comment: str, primary_group: str,
                    shell: str, create_home: bool = True) -> None:
        ...

    @abc.abstractmethod
    def update_user(self, user_id: str, primary_group: str, shell: str,
                    comment: str) -> None:
        ...

    @abc.abstractmethod
    def set_password(self, user_id: str, plaintext: str) -> None:
        ...

    @abc.abstractmethod
    def expire_password(self, user_id: str) -> None:
        """Marca la password come scaduta: cambio obbligatorio al prossimo login"""

    @abc.abstractmethod
    def delete_user(self, user_id: str, remove_home: bool = True) -> None:
        ...

    @abc.abstractmethod
    def get_user_info(self, user_id: str) -> Optional[Dict]:
        """Info utente o None se non esiste"""

    @abc.abstractmethod
    def get_group_info(self, name: str) -> Optional[Dict]:
        """Info gruppo o None se non esiste"""


class LinuxAccountStore(AccountStore):
    """Database utenti locale (/etc/passwd, /etc/group, /etc/shadow)"""

    def group_exists(self, name: str) -> bool:
        try:
            grp.getgrnam(name)
            return True
        except KeyError:
            return False
        except ValueError as e:
            # es. byte NUL nel nome
            raise _invalid_name("getgrnam", name, e) from e

    def create_group(self, name: str) -> None:
        run(["groupadd", "--", name])

    def user_exists(self, user_id: str) -> bool:
        try:
            pwd.getpwnam(user_id)
            return True
        except KeyError:
            return False
        except ValueError as e:
            raise _invalid_name("getpwnam", user_id, e) from e

    def create_user(self, user_id: str, comment: str, primary_group: str,
                    shell: str, create_home: bool = True) -> None:
        cmd = ["useradd", "-m" if create_home else "-M",
               "-c", comment, "-g", primary_group, "-s", shell, "--", user_id]
        run(cmd)

    def update_user(self, user_id: str, primary_group: str, shell: str,
                    comment: str) -> None:
        run(["usermod", "-g", primary_group, "-s", shell, "-c", comment, "--", user_id])

    def set_password(self, user_id: str, plaintext: str) -> None:
        # Password solo su stdin, mai negli argomenti (visibili in ps)
        run(["chpasswd"], input=f"{user_id}:{plaintext}\n")

    def expire_password(self, user_id: str) -> None:
        run(["chage", "-d", "0", "--", user_id])

    def delete_user(self, user_id: str, remove_home: bool = True) -> None:
        cmd = ["userdel"]
        if remove_home:
            cmd.append("-r")
        cmd.extend(["--", user_id])
        run(cmd)

    def password_must_change(self, user_id: str) -> Optional[bool]:
        """
        Stato scadenza password da `chage -l`

        Returns:
            True se il cambio è obbligatorio, False altrimenti,
            None se non determinabile (tipicamente senza privilegi root)
        """
        output = run(["chage", "-l", "--", user_id], check=False, env=_C_LOCALE)
        for line in output.splitlines():
            key, sep, value = line.partition(":")
            if sep and key.strip().lower() == "last password change":
                return "must be changed" in value.lower()
        return None

    def get_user_info(self, user_id: str) -> Optional[Dict]:
        """
        Recupera informazioni su un utente Linux

        Args:
            user_id: Nome utente

        Returns:
            Dict con info utente o None se non esiste
        """
        try:
            user_info = pwd.getpwnam(user_id)
        except (KeyError, ValueError):
            return None

        try:
            primary_group = grp.getgrgid(user_info.pw_gid).gr_name
        except KeyError:
            primary_group = str(user_info.pw_gid)

        groups = [g.gr_name for g in grp.getgrall()
                  if user_id in g.gr_mem or g.gr_gid == user_info.pw_gid]

        return {
            "username": user_info.pw_name,
            "uid": user_info.pw_uid,
            "gid": user_info.pw_gid,
            "primary_group": primary_group,
            "groups": groups,
            "home": user_info.pw_dir,
            "home_exists": os.path.isdir(user_info.pw_dir),
            "shell": user_info.pw_shell,
            "gecos": user_info.pw_gecos,
            "password_must_change": self.password_must_change(user_id),
        }

    def get_group_info(self, name: str) -> Optional[Dict]:
        try:
            group = grp.getgrnam(name)
        except (KeyError, ValueError):
            return None

        # Membri espliciti più utenti con il gruppo come primario
        members: List[str] = list(group.gr_mem)
        for entry in pwd.getpwall():
            if entry.pw_gid == group.gr_gid and entry.pw_name not in members:
                members.append(entry.pw_name)

        return {
            "name": group.gr_name,
            "gid": group.gr_gid,
            "members": members,
        }
