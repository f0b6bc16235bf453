"""Inventory package: page-type export loading and sample selection."""

from backend.inventory.models import Inventory, InventoryError, PageTypeRow, SamplePage
from backend.inventory.selector import link_pairs, load_inventory, select_rows

__all__ = [
    "Inventory",
    "InventoryError",
    "PageTypeRow",
    "SamplePage",
    "link_pairs",
    "load_inventory",
    "select_rows",
]
