"""
Composable query builders bound to a session.

A builder wraps a SQLAlchemy `Select` for one mapped model. Composition
methods (where, filter_by, order_by, ...) return a new builder and never
touch the database. Terminal operations (get, first, first_or_fail, count,
exists, paginate) execute the statement through the bound session.
"""

import logging
from typing import Any, Self

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from modelrepo.core.errors import NotFoundError
from modelrepo.repos.pagination import Page, build_page, page_offset, resolve_page_params

logger = logging.getLogger(__name__)

# Names of the builder methods that execute the query.
TERMINAL_OPERATIONS = frozenset({"get", "first", "first_or_fail", "count", "exists", "paginate"})


class _BaseQueryBuilder[ModelT]:
    """Composition half of a builder, shared by the sync and async variants."""

    def __init__(self, session: Any, model: type[ModelT], statement: Select | None = None):
        self.session = session
        self.model = model
        self._statement = statement if statement is not None else select(model)

    @property
    def statement(self) -> Select:
        """The underlying (unexecuted) Select."""
        return self._statement

    def _clone(self, statement: Select) -> Self:
        return type(self)(self.session, self.model, statement)

    def where(self, *criteria: Any) -> Self:
        return self._clone(self._statement.where(*criteria))

    def filter_by(self, **kwargs: Any) -> Self:
        return self._clone(self._statement.filter_by(**kwargs))

    def order_by(self, *clauses: Any) -> Self:
        return self._clone(self._statement.order_by(*clauses))

    def limit(self, limit: int | None) -> Self:
        return self._clone(self._statement.limit(limit))

    def offset(self, offset: int | None) -> Self:
        return self._clone(self._statement.offset(offset))

    def join(self, target: Any, *onclause: Any, **kwargs: Any) -> Self:
        return self._clone(self._statement.join(target, *onclause, **kwargs))

    def options(self, *options: Any) -> Self:
        return self._clone(self._statement.options(*options))

    def _count_statement(self) -> Select:
        # Count through a subquery so LIMIT/OFFSET/DISTINCT on the builder are respected.
        return select(func.count()).select_from(self._statement.order_by(None).subquery())

    def _exists_statement(self) -> Select:
        return select(self._statement.exists())

    def _slice(self, start: int, size: int) -> Select:
        """
        Statement narrowed to `size` rows starting at row `start` of the
        builder's own result.

        A LIMIT/OFFSET already on the builder bounds the slice, so `first()`
        and `paginate()` read from the same rows as `get()` and `count()`.
        """
        stmt = self._statement
        base_offset = stmt._offset or 0
        base_limit = stmt._limit
        if base_limit is not None:
            size = max(0, min(size, base_limit - start))

        offset = base_offset + start
        return stmt.offset(offset if offset else None).limit(size)

    def _not_found(self) -> NotFoundError:
        model_name = self.model.__name__
        logger.warning(f"{model_name} not found", extra={"model": model_name})
        return NotFoundError(
            f"{model_name} not found", details={"model": model_name}, model=model_name
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.model.__name__}: {self._statement}>"


class QueryBuilder[ModelT](_BaseQueryBuilder[ModelT]):
    """Builder bound to a sync `Session`."""

    session: Session

    def get(self) -> list[ModelT]:
        """Execute the query and return all matching records."""
        return list(self.session.scalars(self._statement).all())

    def first(self) -> ModelT | None:
        """Return the first matching record, or None."""
        return self.session.scalars(self._slice(0, 1)).first()

    def first_or_fail(self) -> ModelT:
        """
        Return the first matching record.

        Raises:
            NotFoundError: If no record matches
        """
        record = self.first()
        if record is None:
            raise self._not_found()
        return record

    def count(self) -> int:
        return self.session.scalar(self._count_statement()) or 0

    def exists(self) -> bool:
        return bool(self.session.scalar(self._exists_statement()))

    def paginate(self, page: int = 1, per_page: int | None = None) -> Page[ModelT]:
        """
        Return one page of matching records with totals.

        Args:
            page: 1-based page number
            per_page: Page size (defaults to PAGINATION_DEFAULT_PER_PAGE)

        Raises:
            ValidationError: If page or per_page is below 1
        """
        page, per_page = resolve_page_params(page, per_page)
        total = self.count()
        items = self._clone(self._slice(page_offset(page, per_page), per_page)).get()
        return build_page(items, total, page, per_page)


class AsyncQueryBuilder[ModelT](_BaseQueryBuilder[ModelT]):
    """Builder bound to an `AsyncSession`; terminal operations are coroutines."""

    session: AsyncSession

    async def get(self) -> list[ModelT]:
        result = await self.session.scalars(self._statement)
        return list(result.all())

    async def first(self) -> ModelT | None:
        result = await self.session.scalars(self._slice(0, 1))
        return result.first()

    async def first_or_fail(self) -> ModelT:
        record = await self.first()
        if record is None:
            raise self._not_found()
        return record

    async def count(self) -> int:
        return await self.session.scalar(self._count_statement()) or 0

    async def exists(self) -> bool:
        return bool(await self.session.scalar(self._exists_statement()))

    async def paginate(self, page: int = 1, per_page: int | None = None) -> Page[ModelT]:
        page, per_page = resolve_page_params(page, per_page)
        total = await self.count()
        items = await self._clone(self._slice(page_offset(page, per_page), per_page)).get()
        return build_page(items, total, page, per_page)
