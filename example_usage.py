"""
Example usage of modelrepo repositories.

This file demonstrates declaring scopes on a repository and calling the
synthesized `get_*`, `get_count_*`, `get_paginated_*`, `first_*`,
`first_or_fail_*` and `exists_*` methods against an in-memory SQLite database.

Run with:
    python example_usage.py
"""

import logging

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from modelrepo import NotFoundError, Repository, scope
from modelrepo.core.config import settings
from modelrepo.core.db import get_db, get_engine
from modelrepo.core.observability import configure_logging, set_correlation_id

logger = logging.getLogger("example_usage")


class Base(DeclarativeBase):
    pass


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80))
    country: Mapped[str] = mapped_column(String(2))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


# ============================================================================
# Example 1: Declaring scopes
# ============================================================================


class CustomerRepository(Repository[Customer]):
    @scope
    def active(self):
        return self.query().where(Customer.is_active.is_(True)).order_by(Customer.id)

    @scope
    def for_country(self, country: str):
        return self.query().filter_by(country=country).order_by(Customer.name)


def main() -> None:
    configure_logging(settings)
    set_correlation_id("example-usage")

    Base.metadata.create_all(get_engine())

    with get_db() as db:
        db.add_all(
            [
                Customer(name="Acme", country="US"),
                Customer(name="Globex", country="US", is_active=False),
                Customer(name="Initech", country="DE"),
            ]
        )
        db.commit()

        customers = CustomerRepository(db, Customer)

        # ====================================================================
        # Example 2: Synthesized calls
        # ====================================================================
        logger.info("active customers", extra={"count": customers.get_count_active()})
        us_names = [c.name for c in customers.get_for_country("US")]
        logger.info("US customers", extra={"names": us_names})

        page = customers.get_paginated_active()
        logger.info("first page", extra={"total": page.total, "last_page": page.last_page})

        # ====================================================================
        # Example 3: Primary key lookups
        # ====================================================================
        logger.info("customer 1", extra={"name": customers.first_or_fail_for_id(1).name})
        try:
            customers.first_or_fail_for_id(99)
        except NotFoundError as e:
            logger.info("lookup failed", extra={"error": e.message})

        # ====================================================================
        # Example 4: Builders can be composed further before executing
        # ====================================================================
        page_two = customers.for_country("US").paginate(page=2, per_page=1)
        logger.info("US page 2", extra={"names": [c.name for c in page_two.items]})


if __name__ == "__main__":
    main()
