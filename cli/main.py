"""Page Type Tester CLI entry-point for all audit operations.

Usage:
    python cli/main.py --help

Commands:
    list   → print CMS edit and frontend links for each page type
    check  → probe every link and report pass / fail / manual counts
    serve  → run the browser report with interactive re-check controls
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from backend.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from backend.audit import Audit, build_audit
from backend.config import settings
from backend.inventory.models import InventoryError
from cli.rendering import render_listing, render_result, render_summary

app = typer.Typer(
    name="page-type-tester",
    help="Lists and checks CMS edit and frontend links for each page type - useful after upgrades.",
    no_args_is_help=True,
)

_INVENTORY_OPTION = typer.Option(
    None, "--inventory", "-i", help="Page-type inventory JSON (default: $PTT_INVENTORY)."
)
_BASE_URL_OPTION = typer.Option(None, "--base-url", help="Site base URL (overrides the inventory).")
_RANDOMISE_OPTION = typer.Option(False, "--randomise", help="Pick a random sample page per type.")
_SEED_OPTION = typer.Option(None, "--seed", help="Seed for --randomise.")


def _load(command: str, inventory, base_url, randomise, seed) -> Audit:
    try:
        return build_audit(inventory, base_url=base_url, randomise=randomise, seed=seed)
    except InventoryError as exc:
        typer.echo(f"[{command}] ❌ {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------
@app.command("list")
def list_links(
    inventory: Optional[Path] = _INVENTORY_OPTION,
    base_url: Optional[str] = _BASE_URL_OPTION,
    randomise: bool = _RANDOMISE_OPTION,
    seed: Optional[int] = _SEED_OPTION,
) -> None:
    """Print the CMS edit and frontend link for each page type."""
    audit = _load("list", inventory, base_url, randomise, seed)
    typer.echo(typer.style("Page Type Tester", bold=True))
    typer.echo("For the best experience, run `serve` and open the report in your browser.\n")
    for row in audit.rows:
        typer.echo(render_listing(row))


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------
@app.command("check")
def check(
    inventory: Optional[Path] = _INVENTORY_OPTION,
    base_url: Optional[str] = _BASE_URL_OPTION,
    randomise: bool = _RANDOMISE_OPTION,
    seed: Optional[int] = _SEED_OPTION,
    actions: bool = typer.Option(True, "--actions/--no-actions", help="Also discover and check action URLs."),
) -> None:
    """Check every link and print per-row results and a summary."""
    audit = _load("check", inventory, base_url, randomise, seed)
    runner = audit.runner
    if not runner.pairs:
        typer.echo("[check] No page types have sample pages; nothing to check.")
        return

    total = runner.total_for(actions)
    typer.echo(f"[check] Checking {audit.checkable_count} page types ({total} checks) against {audit.base_url}")

    done = 0
    with typer.progressbar(length=total, label="[check]") as bar:

        def _progress(checked: int, _total: int) -> None:
            nonlocal done
            bar.update(checked - done)
            done = checked

        summary = runner.run(include_actions=actions, on_progress=_progress)

    typer.echo("")
    for position, row in enumerate(audit.rows):
        index = audit.check_index.get(position)
        if index is None:
            continue
        typer.echo(render_result(row, runner.reports[index]))

    typer.echo("")
    typer.echo(render_summary(summary))


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    inventory: Optional[Path] = _INVENTORY_OPTION,
    base_url: Optional[str] = _BASE_URL_OPTION,
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
) -> None:
    """Serve the browser report with interactive check controls."""
    import uvicorn

    from backend.api.app import create_app

    inventory = inventory or settings.inventory_path
    # Fail fast on a bad inventory before the server starts.
    _load("serve", inventory, base_url, False, None)

    typer.echo(f"[serve] Report at http://{host}:{port}/")
    uvicorn.run(create_app(inventory_path=inventory, base_url=base_url), host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
