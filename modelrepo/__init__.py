"""
Convention-based repositories for SQLAlchemy models.

Usage:
    from modelrepo import Repository, scope

    class OrderRepository(Repository[Order]):
        @scope
        def recent(self, days: int = 7):
            return self.query().where(Order.created_at >= cutoff(days))

    orders = OrderRepository(session, Order)
    orders.get_recent()
    orders.get_count_recent(30)
"""

from modelrepo.core.errors import ModelRepoError, NotFoundError, ValidationError
from modelrepo.repos.base import AsyncRepository, Repository, scope
from modelrepo.repos.builder import AsyncQueryBuilder, QueryBuilder
from modelrepo.repos.operations import DEFAULT_OPERATIONS, OperationRegistry
from modelrepo.repos.pagination import Page

__all__ = [
    "AsyncQueryBuilder",
    "AsyncRepository",
    "DEFAULT_OPERATIONS",
    "ModelRepoError",
    "NotFoundError",
    "OperationRegistry",
    "Page",
    "QueryBuilder",
    "Repository",
    "ValidationError",
    "scope",
]

__version__ = "0.1.0"
