from __future__ import annotations

import math
from typing import Sequence, TypeVar

from .models import PageRequest

T = TypeVar("T")


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total > 0 else 0


def paginate(items: Sequence[T], page: PageRequest) -> list[T]:
    """Return the requested page; pages past the end are empty, never an error."""
    offset = (page.page - 1) * page.limit
    return list(items[offset:offset + page.limit])
