"""
inventory_services -- Package init and public API.

Responsibility:
    Read-side services (valuation, analytics) composed over the kernel and
    the pure engines, plus the InventorySystem composition root.

Architecture position:
    Services -- orchestration over engines + kernel.

    Dependency direction:
        inventory_services/ -> inventory_engines/  (allowed)
        inventory_services/ -> inventory_kernel/   (allowed)
        inventory_engines/  -> inventory_services/ (FORBIDDEN)
        inventory_kernel/   -> inventory_services/ (FORBIDDEN)
"""

from inventory_services.analytics_service import (
    ABCClassifier,
    AnalyticsSettings,
    ReportFormat,
    ReportType,
)
from inventory_services.inventory_system import InventorySystem
from inventory_services.valuation_service import ValuationEngine

__all__ = [
    "ABCClassifier",
    "AnalyticsSettings",
    "InventorySystem",
    "ReportFormat",
    "ReportType",
    "ValuationEngine",
]
