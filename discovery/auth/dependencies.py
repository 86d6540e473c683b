from __future__ import annotations

from typing import Callable

from fastapi import HTTPException, Request

from .users import Role


def get_current_user(request: Request) -> dict | None:
    """Session user or ``None``; anonymous callers are allowed through."""
    return request.session.get("user")


def require_user(request: Request) -> dict:
    user = get_current_user(request)
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_role(*roles: Role) -> Callable[[Request], dict]:
    """Build a dependency admitting only the given roles.

    Anonymous callers get 401 and other roles 403, before the endpoint body runs.
    """
    allowed = {r.value for r in roles}

    def dependency(request: Request) -> dict:
        user = require_user(request)
        if user.get("role") not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return user

    return dependency


require_admin = require_role(Role.admin)
