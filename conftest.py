"""
Fixture comuni: database utenti in memoria e ambiente pulito
"""
from typing import Dict, List, Optional, Tuple

import pytest

from uprov.exceptions import AccountStoreError
from uprov.system import AccountStore


class FakeAccountStore(AccountStore):
    """Database utenti in memoria che registra ogni chiamata"""

    def __init__(self):
        self.groups: Dict[str, int] = {}
        self.users: Dict[str, Dict] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail_on: Dict[Tuple[str, str], str] = {}
        self._next_uid = 1000

    def _call(self, op: str, name: str) -> None:
        self.calls.append((op, name))
        if (op, name) in self.fail_on:
            raise AccountStoreError([op, name], 1, self.fail_on[(op, name)])

    def group_exists(self, name: str) -> bool:
        self._call("group_exists", name)
        return name in self.groups

    def create_group(self, name: str) -> None:
        self._call("create_group", name)
        self.groups[name] = 1000 + len(self.groups)

    def user_exists(self, user_id: str) -> bool:
        self._call("user_exists", user_id)
        return user_id in self.users

    def create_user(self, user_id: str, comment: str, primary_group: str,
                    shell: str, create_home: bool = True) -> None:
        self._call("create_user", user_id)
        if primary_group not in self.groups:
            raise AccountStoreError(["useradd", user_id], 6,
                                    f"group '{primary_group}' does not exist")
        self.users[user_id] = {
            "uid": self._next_uid,
            "comment": comment,
            "group": primary_group,
            "shell": shell,
            "home": f"/home/{user_id}" if create_home else None,
            "password": None,
            "must_change": False,
        }
        self._next_uid += 1

    def update_user(self, user_id: str, primary_group: str, shell: str,
                    comment: str) -> None:
        self._call("update_user", user_id)
        if primary_group not in self.groups:
            raise AccountStoreError(["usermod", user_id], 6,
                                    f"group '{primary_group}' does not exist")
        self.users[user_id].update(group=primary_group, shell=shell, comment=comment)

    def set_password(self, user_id: str, plaintext: str) -> None:
        self._call("set_password", user_id)
        self.users[user_id]["password"] = plaintext
        self.users[user_id]["must_change"] = False

    def expire_password(self, user_id: str) -> None:
        self._call("expire_password", user_id)
        self.users[user_id]["must_change"] = True

    def delete_user(self, user_id: str, remove_home: bool = True) -> None:
        self._call("delete_user", user_id)
        del self.users[user_id]

    def get_user_info(self, user_id: str) -> Optional[Dict]:
        user = self.users.get(user_id)
        if user is None:
            return None
        return {
            "username": user_id,
            "uid": user["uid"],
            "gid": self.groups[user["group"]],
            "primary_group": user["group"],
            "groups": [user["group"]],
            "home": user["home"],
            "home_exists": user["home"] is not None,
            "shell": user["shell"],
            "gecos": user["comment"],
            "password_must_change": user["must_change"],
        }

    def get_group_info(self, name: str) -> Optional[Dict]:
        if name not in self.groups:
            return None
        members = [uid for uid, u in self.users.items() if u["group"] == name]
        return {"name": name, "gid": self.groups[name], "members": members}

    def structure(self) -> Dict:
        """Stato strutturale (senza password e scadenza)"""
        return {
            "groups": dict(self.groups),
            "users": {uid: {k: v for k, v in u.items() if k not in ("password", "must_change")}
                      for uid, u in self.users.items()},
        }

    def mutations(self) -> List[Tuple[str, str]]:
        return [c for c in self.calls if not c[0].endswith("_exists")]


@pytest.fixture
def store():
    return FakeAccountStore()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Nessuna variabile UPROV_* e nessun .env caricato durante i test"""
    for name in ("UPROV_SHELL", "UPROV_DELIMITER", "UPROV_STRICT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("uprov.config.find_and_load_env", lambda: False)
