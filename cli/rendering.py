"""Text rendering of page-type rows and check results for the CLI."""

from __future__ import annotations

from typing import List, Optional

import typer

from backend.checker.models import CheckResult, RowReport, RunSummary
from backend.inventory.models import PageTypeRow


def _actions_note(row: PageTypeRow) -> str:
    if not row.action_names:
        return ""
    return " [has allowed_actions: " + ", ".join(row.action_names) + "]"


def render_listing(row: PageTypeRow) -> str:
    """Render one row of the link listing.

    Rows with a sample page show live / draft-only counts and both links;
    empty page types are flagged ``(none)``.
    """
    if row.sample is None:
        name = typer.style(row.short_name, fg=typer.colors.YELLOW)
        return f"{name} (0):{_actions_note(row)} (none)"

    name = typer.style(row.short_name, fg=typer.colors.GREEN)
    return (
        f"{name} ({row.live_count} + {row.draft_only_count}):{_actions_note(row)}\n"
        f"  Frontend: {row.sample.frontend_url}\n"
        f"  CMS: {row.sample.cms_url}"
    )


def _badge(result: Optional[CheckResult]) -> str:
    if result is None:
        return typer.style("  ?  ", dim=True)
    mark = "✓" if result.passed else "✗"
    colour = typer.colors.GREEN if result.passed else typer.colors.RED
    if not result.passed and isinstance(result.status, int) and 300 <= result.status < 400:
        colour = typer.colors.YELLOW
    text = f"{result.status} {mark}"
    if result.approximated:
        text += "~"
    return typer.style(f"{text:<6}", fg=colour)


def render_result(row: PageTypeRow, report: RowReport) -> str:
    """Render the check outcome of one row as an indented block."""
    lines: List[str] = [typer.style(row.short_name, bold=True)]
    pair = report.pair

    lines.append(f"  CMS       {_badge(report.cms_result)} {pair.cms_url}")
    frontend = f"  Frontend  {_badge(report.frontend_result)} {pair.frontend_url}"
    if report.form_detected:
        frontend += typer.style("  [form: check manually]", fg=typer.colors.YELLOW)
    lines.append(frontend)

    for action, url in report.action_urls.items():
        label = f"/{action}"
        if url is None:
            note = typer.style("check  ", fg=typer.colors.YELLOW)
            lines.append(f"  {label:<9} {note}no link found on page; verify manually")
        else:
            lines.append(f"  {label:<9} {_badge(report.action_results.get(action))} {url}")

    return "\n".join(lines)


def render_summary(summary: RunSummary) -> str:
    if summary.cancelled:
        colour = typer.colors.YELLOW
    elif summary.ok:
        colour = typer.colors.GREEN
    else:
        colour = typer.colors.RED
    return typer.style(summary.describe(), fg=colour, bold=True)
