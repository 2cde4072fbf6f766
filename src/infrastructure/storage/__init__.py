"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    SQLiteUnitOfWork,
    close_pool,
    get_pool,
    make_unit_of_work_factory,
    unit_of_work,
)

__all__ = [
    # Connection pool
    "get_pool",
    "close_pool",
    # Unit of work
    "SQLiteUnitOfWork",
    "make_unit_of_work_factory",
    "unit_of_work",
]
