"""
Pagination and search conventions shared by list endpoints.
"""
import math
import re
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PageRequest:
    """A 1-based page of fixed size."""
    page: int = 1
    limit: int = 10

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> dict[str, Any]:
        """Page metadata for a result set of `total` matching documents."""
        total_pages = math.ceil(total / self.limit) if self.limit else 0
        return {
            "currentPage": self.page,
            "totalPages": total_pages,
            "hasNextPage": self.page < total_pages,
        }


def search_pattern(term: str) -> dict[str, str]:
    """Case-insensitive substring filter; the term is matched literally, not as a regex."""
    return {"$regex": re.escape(term), "$options": "i"}


def and_filters(*filters: dict[str, Any]) -> dict[str, Any]:
    """Combine non-empty filters with a logical AND."""
    present = [f for f in filters if f]
    if not present:
        return {}
    if len(present) == 1:
        return present[0]
    return {"$and": present}
