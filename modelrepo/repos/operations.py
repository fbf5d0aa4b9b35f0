"""
Operation prefixes and the terminal operations they apply.

A synthesized repository method name is `{prefix}{scope}`. The prefix
selects a sequence of terminal operations; the scope names the method that
builds the query. `get_count_for_user(3)` therefore means
`for_user(3).count()`.
"""

import inspect
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from modelrepo.core.errors import ValidationError
from modelrepo.core.observability import operation_metrics

DEFAULT_OPERATIONS: dict[str, tuple[str, ...]] = {
    "get_paginated_": ("paginate",),
    "get_count_": ("count",),
    "get_": ("get",),
    "first_or_fail_": ("first_or_fail",),
    "first_": ("first",),
    "exists_": ("exists",),
}


class OperationRegistry(Mapping[str, tuple[str, ...]]):
    """
    Immutable, ordered mapping of operation prefix -> terminal operations.

    Prefixes are matched longest first, so adding a prefix that is a
    textual prefix of another (e.g. `get_` and `get_count_`) never shadows
    the longer one, whatever order they were registered in.
    """

    def __init__(self, operations: Mapping[str, Iterable[str]] | None = None):
        entries: dict[str, tuple[str, ...]] = {}
        for prefix, names in (operations if operations is not None else DEFAULT_OPERATIONS).items():
            entries[prefix] = _validate_entry(prefix, names)
        self._entries = entries
        # sorted() is stable: equal-length prefixes keep registration order.
        self._match_order = sorted(entries, key=len, reverse=True)

    def __getitem__(self, prefix: str) -> tuple[str, ...]:
        return self._entries[prefix]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"OperationRegistry({self._entries!r})"

    def extend(self, operations: Mapping[str, Iterable[str]]) -> "OperationRegistry":
        """Return a new registry with `operations` added (or overridden)."""
        return OperationRegistry({**self._entries, **dict(operations)})

    def candidates(self, method_name: str) -> Iterator[tuple[str, str, tuple[str, ...]]]:
        """
        Yield every `(prefix, scope_name, operations)` split of a method name.

        Candidates come longest prefix first. A prefix that consumes the
        whole name yields nothing.
        """
        for prefix in self._match_order:
            if method_name.startswith(prefix) and len(method_name) > len(prefix):
                yield prefix, method_name[len(prefix) :], self._entries[prefix]

    def lookup(self, prefix: str) -> tuple[str, ...]:
        """
        Operations for a prefix.

        Raises:
            ValidationError: If the prefix is not registered
        """
        try:
            return self._entries[prefix]
        except KeyError:
            raise ValidationError(
                f"Unknown operation prefix '{prefix}'",
                details={"prefix": prefix, "known": list(self._entries)},
            ) from None


def _validate_entry(prefix: str, names: Iterable[str]) -> tuple[str, ...]:
    if not prefix:
        raise ValidationError("Operation prefix must not be empty")
    operations = (names,) if isinstance(names, str) else tuple(names)
    if not operations:
        raise ValidationError(
            f"Operation prefix '{prefix}' must map to at least one operation",
            details={"prefix": prefix},
        )
    return operations


def apply_operations(builder: Any, operations: Iterable[str], *, repository: str) -> Any:
    """Apply each operation to the result of the previous one, left to right."""
    result = builder
    for operation in operations:
        with operation_metrics.track(repository, operation):
            result = getattr(result, operation)()
    return result


async def apply_operations_async(
    builder: Any, operations: Iterable[str], *, repository: str
) -> Any:
    """Async variant of apply_operations; awaitable results are awaited between steps."""
    result = builder
    for operation in operations:
        with operation_metrics.track(repository, operation):
            result = getattr(result, operation)()
            if inspect.isawaitable(result):
                result = await result
    return result
