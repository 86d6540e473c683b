"""
Per-user search library: recent searches, named saved searches and
favourite contractors.

Everything is keyed by the session user id and held in memory, like the
analytics event log. Entries are returned newest first.
"""

from __future__ import annotations

import threading
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from .config import DEFAULT_SEARCH_CONFIG, SearchConfig

_history: dict[str, list[dict[str, Any]]] = defaultdict(list)
_saved: dict[str, list[dict[str, Any]]] = defaultdict(list)
_favorites: dict[str, list[dict[str, Any]]] = defaultdict(list)
_lock = threading.Lock()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── History ──────────────────────────────────────────────────────────────


def add_history(
    user_id: str,
    search_query: str,
    filters: dict[str, Any] | None = None,
    result_count: int = 0,
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> dict[str, Any]:
    entry = {
        "id": uuid.uuid4().hex,
        "search_query": search_query,
        "filters": dict(filters or {}),
        "result_count": result_count,
        "created_at": _now(),
    }
    with _lock:
        entries = _history[user_id]
        entries.insert(0, entry)
        del entries[config.history_max_entries:]
    return entry


def list_history(user_id: str, limit: int, offset: int = 0) -> tuple[list[dict[str, Any]], int]:
    """One page of history plus the total number of entries."""
    with _lock:
        entries = list(_history.get(user_id, []))
    return entries[offset:offset + limit], len(entries)


def clear_history(user_id: str) -> int:
    with _lock:
        removed = len(_history.pop(user_id, []))
    return removed


# ── Saved searches ───────────────────────────────────────────────────────


def save_search(
    user_id: str,
    name: str,
    search_query: str,
    filters: dict[str, Any] | None = None,
) -> dict[str, Any]:
    entry = {
        "id": uuid.uuid4().hex,
        "name": name,
        "search_query": search_query,
        "filters": dict(filters or {}),
        "created_at": _now(),
    }
    with _lock:
        _saved[user_id].insert(0, entry)
    return entry


def list_saved(user_id: str) -> list[dict[str, Any]]:
    with _lock:
        return list(_saved.get(user_id, []))


def delete_saved(user_id: str, search_id: str) -> bool:
    """Remove one of the user's saved searches; False when it is not theirs or unknown."""
    with _lock:
        entries = _saved.get(user_id, [])
        kept = [e for e in entries if e["id"] != search_id]
        if len(kept) == len(entries):
            return False
        _saved[user_id] = kept
    return True


# ── Favourites ───────────────────────────────────────────────────────────


def add_favorite(user_id: str, contractor_id: str) -> dict[str, Any]:
    """Favourite a contractor; favouriting twice returns the existing entry."""
    with _lock:
        entries = _favorites[user_id]
        for entry in entries:
            if entry["contractor_id"] == contractor_id:
                return entry
        entry = {"contractor_id": contractor_id, "created_at": _now()}
        entries.insert(0, entry)
    return entry


def list_favorites(user_id: str) -> list[dict[str, Any]]:
    with _lock:
        return list(_favorites.get(user_id, []))


def remove_favorite(user_id: str, contractor_id: str) -> bool:
    with _lock:
        entries = _favorites.get(user_id, [])
        kept = [e for e in entries if e["contractor_id"] != contractor_id]
        if len(kept) == len(entries):
            return False
        _favorites[user_id] = kept
    return True


def clear_all() -> None:
    with _lock:
        _history.clear()
        _saved.clear()
        _favorites.clear()
