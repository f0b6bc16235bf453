"""Wires an inventory file to a :class:`LinkCheckRunner`.

``build_audit`` is the single entry point used by both the CLI and the API:
it loads the inventory, selects sample pages, and prepares a runner over the
rows that have one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from backend.checker.runner import LinkCheckRunner
from backend.config import settings
from backend.inventory.models import PageTypeRow
from backend.inventory.selector import link_pairs, load_inventory, select_rows


@dataclass
class Audit:
    rows: List[PageTypeRow]
    base_url: str
    runner: LinkCheckRunner
    randomised: bool = False
    # Row position -> runner row index, for rows that have a sample page.
    check_index: Dict[int, int] = field(default_factory=dict)

    @property
    def checkable_count(self) -> int:
        return len(self.runner.pairs)


def build_audit(
    inventory_path: Optional[Path] = None,
    base_url: Optional[str] = None,
    randomise: bool = False,
    seed: Optional[int] = None,
) -> Audit:
    """Load the inventory and build an :class:`Audit`.

    The base URL is taken from *base_url*, else the inventory file, else
    ``settings.base_url``.

    Raises:
        InventoryError: If the inventory cannot be loaded.
    """
    inventory = load_inventory(inventory_path or settings.inventory_path)
    site_url = base_url or inventory.base_url or settings.base_url
    if seed is None:
        seed = settings.randomise_seed

    rows = select_rows(
        inventory,
        site_url,
        cms_edit_path=settings.cms_edit_path,
        randomise=randomise,
        seed=seed,
    )

    check_index: Dict[int, int] = {}
    for position, row in enumerate(rows):
        if row.sample is not None:
            check_index[position] = len(check_index)

    return Audit(
        rows=rows,
        base_url=site_url,
        runner=LinkCheckRunner(link_pairs(rows), base_url=site_url),
        randomised=randomise,
        check_index=check_index,
    )
