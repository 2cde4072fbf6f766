"""
Process-wide InventoryEngine.

The default engine runs every unit of work on the SQLite connection pool
configured in settings. Tests and embedders can pass their own
unit-of-work factory instead.
"""

from typing import TYPE_CHECKING

from src.application.engine import InventoryEngine

if TYPE_CHECKING:
    from src.core.interfaces.unit_of_work import UnitOfWorkFactory

_engine: InventoryEngine | None = None


def get_inventory_engine(uow_factory: "UnitOfWorkFactory | None" = None) -> InventoryEngine:
    """
    Return the shared engine, or a new one bound to ``uow_factory``.

    An engine built from an explicit factory is not cached.
    """
    global _engine

    if uow_factory is not None:
        return InventoryEngine(uow_factory)

    if _engine is None:
        # Imported here so the application layer loads without the SQLite stack
        from src.infrastructure.storage.sqlite import unit_of_work

        _engine = InventoryEngine(unit_of_work)
    return _engine


def reset_services() -> None:
    """Drop the shared engine; the next call builds one from current settings."""
    global _engine
    _engine = None


__all__ = ["get_inventory_engine", "reset_services"]
