"""
Storefront Backend — Offset Pagination Helpers
================================================

The product list uses page/limit pagination. Out-of-range input is clamped
rather than rejected: a missing or non-positive page becomes 1 and the limit
is held within [1, max_page_size].
"""

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def normalize_pagination(
    page: Optional[int],
    limit: Optional[int],
    default_limit: int,
    max_limit: int,
) -> PageRequest:
    """Apply defaults and clamp page/limit into their valid ranges."""
    resolved_page = page if page is not None else 1
    resolved_limit = limit if limit is not None else default_limit
    return PageRequest(
        page=max(resolved_page, 1),
        limit=min(max(resolved_limit, 1), max_limit),
    )


def compute_total_pages(total_count: int, limit: int) -> int:
    """ceil(total_count / limit); 0 for an empty result."""
    if total_count <= 0:
        return 0
    return math.ceil(total_count / limit)
