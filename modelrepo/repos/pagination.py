"""Shared utilities for offset-based pagination."""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from modelrepo.core.config import settings
from modelrepo.core.errors import ValidationError


class Page[T](BaseModel):
    """One page of query results plus the totals needed to navigate."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    items: list[T]
    total: int
    page: int
    per_page: int
    last_page: int
    has_next: bool
    has_prev: bool
    from_index: int | None = None
    to_index: int | None = None

    def __len__(self) -> int:
        return len(self.items)


def resolve_page_params(page: int, per_page: int | None) -> tuple[int, int]:
    """Validate page arguments and apply the configured defaults.

    Args:
        page: 1-based page number
        per_page: Page size (None for the configured default)

    Returns:
        Tuple of (page, per_page) with per_page capped at the configured max

    Raises:
        ValidationError: If page or per_page is below 1
    """
    if per_page is None:
        per_page = settings.pagination_default_per_page

    if page < 1:
        raise ValidationError(f"Page must be at least 1, got {page}", details={"page": page})
    if per_page < 1:
        raise ValidationError(
            f"Page size must be at least 1, got {per_page}", details={"per_page": per_page}
        )

    return page, min(per_page, settings.pagination_max_per_page)


def page_offset(page: int, per_page: int) -> int:
    """Row offset of the first item on `page`."""
    return (page - 1) * per_page


def build_page[T](items: Sequence[T], total: int, page: int, per_page: int) -> Page[T]:
    """Build a Page from the fetched slice and the unpaginated total.

    Args:
        items: Rows fetched for this page
        total: Number of rows matching the query without LIMIT/OFFSET
        page: 1-based page number that was fetched
        per_page: Page size that was used

    Returns:
        Page with navigation metadata
    """
    last_page = max(1, -(-total // per_page))
    offset = page_offset(page, per_page)

    from_index = offset + 1 if items else None
    to_index = offset + len(items) if items else None

    return Page(
        items=list(items),
        total=total,
        page=page,
        per_page=per_page,
        last_page=last_page,
        has_next=page < last_page,
        has_prev=page > 1,
        from_index=from_index,
        to_index=to_index,
    )
