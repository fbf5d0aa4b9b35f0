"""
Base repository classes with convention-based query dispatch.

A repository wraps one mapped model and a session. Subclasses declare
*scopes*: methods decorated with `@scope` that build and return a query
builder (or a bare `Select`). Callers then use synthesized names that
combine an operation prefix with a scope name:

    class UserRepository(Repository[User]):
        @scope
        def active(self):
            return self.query().where(User.is_active.is_(True))

        @scope
        def for_team(self, team_id):
            return self.query().filter_by(team_id=team_id)

    users = UserRepository(session, User)
    users.get_active()             # active().get()
    users.get_count_for_team(3)    # for_team(3).count()
    users.first_or_fail_for_id(7)  # for_id(7).first_or_fail()

Any other attribute is forwarded to the wrapped model.
"""

import functools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, ClassVar

from sqlalchemy import Select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapper, Session

from modelrepo.core.errors import NotFoundError, ValidationError
from modelrepo.repos.builder import AsyncQueryBuilder, QueryBuilder
from modelrepo.repos.operations import (
    OperationRegistry,
    apply_operations,
    apply_operations_async,
)

logger = logging.getLogger(__name__)

_SCOPE_MARKER = "__repository_scope__"


def scope[F: Callable[..., Any]](func: F) -> F:
    """Register a repository method as a query scope.

    The method must return a query builder (or a `Select` on the
    repository's model). Its name becomes the suffix of the synthesized
    `get_*`, `get_count_*`, `get_paginated_*`, `first_*`,
    `first_or_fail_*` and `exists_*` methods.
    """
    setattr(func, _SCOPE_MARKER, True)
    return func


def _collect_scopes(cls: type) -> dict[str, Callable[..., Any]]:
    """Scopes declared on `cls` and its bases; later definitions win."""
    scopes: dict[str, Callable[..., Any]] = {}
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if getattr(attr, _SCOPE_MARKER, False):
                scopes[name] = attr
            elif name in scopes:
                # Overridden by a plain attribute: no longer a scope.
                del scopes[name]
    return scopes


class _RepositoryBase[ModelT](ABC):
    """State, registries and pass-through shared by sync and async repositories."""

    operations: ClassVar[OperationRegistry] = OperationRegistry()
    builder_class: ClassVar[type[QueryBuilder] | type[AsyncQueryBuilder]] = QueryBuilder

    _scopes: ClassVar[dict[str, Callable[..., Any]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._scopes = _collect_scopes(cls)

    def __init__(self, session: Any, model: type[ModelT] | ModelT):
        try:
            mapper: Mapper = sa_inspect(model).mapper
        except NoInspectionAvailable as e:
            raise ValidationError(
                f"{model!r} is not a mapped model", details={"model": repr(model)}
            ) from e

        self._session = session
        self._model = model
        self._mapper = mapper

    # ------------------------------------------------------------------
    # Explicit accessors
    # ------------------------------------------------------------------

    @property
    def model(self) -> type[ModelT] | ModelT:
        """The wrapped model (mapped class or instance) given at construction."""
        return self._model

    @property
    def model_class(self) -> type[ModelT]:
        return self._mapper.class_

    @property
    def session(self) -> Any:
        return self._session

    @property
    def key_names(self) -> tuple[str, ...]:
        """Attribute names of the primary key columns, in mapper order."""
        return tuple(
            self._mapper.get_property_by_column(column).key for column in self._mapper.primary_key
        )

    @property
    def key_name(self) -> str:
        return self.key_names[0]

    @property
    def scopes(self) -> Mapping[str, Callable[..., Any]]:
        return MappingProxyType(self._scopes)

    def query(self) -> Any:
        """Unfiltered builder over the model."""
        return self.builder_class(self._session, self.model_class)

    @scope
    def for_id(self, id: Any) -> Any:
        """
        Builder filtered to the record whose primary key equals `id`.

        For composite primary keys, `id` must be a tuple in key order.

        Raises:
            ValidationError: If a composite key is given the wrong shape
        """
        keys = self.key_names
        if len(keys) == 1:
            return self.query().where(getattr(self.model_class, keys[0]) == id)

        if not isinstance(id, tuple) or len(id) != len(keys):
            raise ValidationError(
                f"{self.model_class.__name__} has a composite primary key {keys}; "
                f"expected a tuple of {len(keys)} values, got {id!r}",
                details={"keys": list(keys), "id": repr(id)},
            )
        criteria = [getattr(self.model_class, key) == value for key, value in zip(keys, id)]
        return self.query().where(*criteria)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def resolve(self, method_name: str) -> Callable[..., Any] | None:
        """
        Resolve a synthesized method name to a callable, or None.

        Prefixes are tried longest first; a prefix whose remainder is not a
        registered scope falls through to the next candidate.
        """
        for _prefix, scope_name, operations in self.operations.candidates(method_name):
            if scope_name in self._scopes:
                return functools.partial(self._dispatch, method_name, scope_name, operations)
        return None

    def apply(self, prefix: str, scope_name: str, /, *args: Any, **kwargs: Any) -> Any:
        """
        Explicit form of dispatch: `apply("get_count_", "for_team", 3)`.

        Raises:
            ValidationError: If the prefix or scope is not registered
        """
        operations = self.operations.lookup(prefix)
        if scope_name not in self._scopes:
            raise ValidationError(
                f"{type(self).__name__} has no scope '{scope_name}'",
                details={"scope": scope_name, "known": sorted(self._scopes)},
            )
        return self._dispatch(prefix + scope_name, scope_name, operations, *args, **kwargs)

    def _build(self, method_name: str, scope_name: str, operations: tuple[str, ...], args, kwargs):
        logger.debug(
            f"Dispatching {type(self).__name__}.{method_name}",
            extra={
                "repository": type(self).__name__,
                "method": method_name,
                "scope": scope_name,
                "operations": list(operations),
            },
        )
        result = getattr(self, scope_name)(*args, **kwargs)
        if isinstance(result, Select):
            result = self.builder_class(self._session, self.model_class, result)
        return result

    @abstractmethod
    def _dispatch(self, method_name, scope_name, operations, *args, **kwargs):
        """Build the scope and apply `operations` to it."""

    def _not_found(self, id: Any) -> NotFoundError:
        model_name = self.model_class.__name__
        logger.warning(
            f"{model_name} not found: {self.key_name}={id!r}",
            extra={"model": model_name, "id": id},
        )
        return NotFoundError(
            f"{model_name} with {self.key_name} '{id}' not found",
            details={"model": model_name, "id": id},
            model=model_name,
        )

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails.
        if name.startswith("__"):
            raise AttributeError(name)

        dispatcher = self.resolve(name)
        if dispatcher is not None:
            return dispatcher

        try:
            model = self.__dict__["_model"]
        except KeyError:
            raise AttributeError(name) from None
        return getattr(model, name)

    def __dir__(self) -> list[str]:
        synthesized = {prefix + name for prefix in self.operations for name in self._scopes}
        return sorted(set(super().__dir__()) | synthesized)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} model={self.model_class.__name__}>"


class Repository[ModelT](_RepositoryBase[ModelT]):
    """Repository over a sync `Session`."""

    builder_class: ClassVar[type[QueryBuilder]] = QueryBuilder

    def __init__(self, session: Session, model: type[ModelT] | ModelT):
        super().__init__(session, model)

    def _dispatch(self, method_name, scope_name, operations, *args, **kwargs):
        builder = self._build(method_name, scope_name, operations, args, kwargs)
        return apply_operations(builder, operations, repository=type(self).__name__)

    def find(self, id: Any) -> ModelT | None:
        """Return the record with primary key `id`, or None."""
        return self.for_id(id).first()

    def find_or_fail(self, id: Any) -> ModelT:
        """
        Return the record with primary key `id`.

        Raises:
            NotFoundError: If no such record exists
        """
        record = self.find(id)
        if record is None:
            raise self._not_found(id)
        return record


class AsyncRepository[ModelT](_RepositoryBase[ModelT]):
    """Repository over an `AsyncSession`; dispatched calls return coroutines."""

    builder_class: ClassVar[type[AsyncQueryBuilder]] = AsyncQueryBuilder

    def __init__(self, session: AsyncSession, model: type[ModelT] | ModelT):
        super().__init__(session, model)

    async def _dispatch(self, method_name, scope_name, operations, *args, **kwargs):
        builder = self._build(method_name, scope_name, operations, args, kwargs)
        return await apply_operations_async(builder, operations, repository=type(self).__name__)

    async def find(self, id: Any) -> ModelT | None:
        return await self.for_id(id).first()

    async def find_or_fail(self, id: Any) -> ModelT:
        record = await self.find(id)
        if record is None:
            raise self._not_found(id)
        return record

