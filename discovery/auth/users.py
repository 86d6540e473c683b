from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any

import bcrypt


class Role(str, Enum):
    user = "user"
    contractor = "contractor"
    admin = "admin"


@dataclass(frozen=True)
class Account:
    id: str
    username: str
    role: Role
    password_hash: bytes

    def session_view(self) -> dict[str, Any]:
        """What gets stored in the session cookie; never the hash."""
        return {"id": self.id, "username": self.username, "role": self.role.value}


_accounts: dict[str, Account] = {}

# (id, username, role, env var for the password, fallback password)
_DEMO_ACCOUNTS = (
    ("u-demo-user", "user", Role.user, "DEMO_USER_PASSWORD", "user123"),
    ("u-demo-contractor", "contractor", Role.contractor, "DEMO_CONTRACTOR_PASSWORD", "contractor123"),
    ("u-demo-admin", "admin", Role.admin, "DEMO_ADMIN_PASSWORD", "admin123"),
)


def register(user_id: str, username: str, password: str, role: Role | str) -> Account:
    account = Account(
        id=user_id,
        username=username,
        role=Role(role),
        password_hash=bcrypt.hashpw(password.encode(), bcrypt.gensalt()),
    )
    _accounts[username] = account
    return account


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Check credentials and return the session view of the account, or ``None``."""
    account = _accounts.get(username)
    if account is None or not bcrypt.checkpw(password.encode(), account.password_hash):
        return None
    return account.session_view()


for _id, _name, _role, _env, _fallback in _DEMO_ACCOUNTS:
    register(_id, _name, os.getenv(_env, _fallback), _role)
