"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.costing import (
    CostingEngine,
    CostingEvent,
    CostingEventType,
    build_costing_events,
    last_cost,
    weighted_average,
)
from src.core.services.landed_cost import apply_landed_costs, landed_unit_cost
from src.core.services.reconciler import (
    LineDiff,
    PurchaseReduction,
    QuantityReconciler,
    diff_lines,
    ledger_effects,
    net_ledger_deltas,
    purchase_reductions,
)

__all__ = [
    # Costing
    "CostingEngine",
    "CostingEvent",
    "CostingEventType",
    "build_costing_events",
    "last_cost",
    "weighted_average",
    # Landed cost
    "apply_landed_costs",
    "landed_unit_cost",
    # Reconciliation
    "LineDiff",
    "PurchaseReduction",
    "QuantityReconciler",
    "diff_lines",
    "ledger_effects",
    "net_ledger_deltas",
    "purchase_reductions",
]
