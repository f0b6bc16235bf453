"""Batch link checking over a set of :class:`LinkPair` rows.

The check algorithm is written once, as a generator that yields
:class:`ProbeRequest` objects and is sent back :class:`ProbeResult` objects.
Two drivers feed it:

- :meth:`LinkCheckRunner.run` probes synchronously (CLI / batch use).
- :meth:`LinkCheckRunner.arun` awaits each probe, so another task can call
  :meth:`LinkCheckRunner.cancel` between requests (web UI use).

Only one HTTP request is ever outstanding.  Cancellation is polled before
every probe and after every tally; an in-flight request always completes and
its result is recorded before the run stops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generator, List, Optional, Sequence

from backend.checker.forms import count_forms
from backend.checker.models import (
    CheckResult,
    LinkPair,
    ProbeResult,
    RowReport,
    RunPhase,
    RunState,
    RunSummary,
)
from backend.checker.policy import ACTION_EXPECTED, CMS_EXPECTED
from backend.checker.probe import aprobe, probe
from backend.checker.resolver import resolve_actions

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
RowCallback = Callable[[RowReport], None]
ProbeFn = Callable[..., ProbeResult]
AsyncProbeFn = Callable[..., Awaitable[ProbeResult]]

CMS = "cms"
FRONTEND = "frontend"


@dataclass(frozen=True)
class ProbeRequest:
    url: str
    fetch_body: bool = False
    follow_redirects: bool = True


Steps = Generator[ProbeRequest, ProbeResult, Any]


class LinkCheckRunner:
    """Checks CMS, frontend and action links for each row, in row order."""

    def __init__(
        self,
        pairs: Sequence[LinkPair],
        base_url: str,
        probe_fn: Optional[ProbeFn] = None,
        aprobe_fn: Optional[AsyncProbeFn] = None,
    ) -> None:
        self.pairs: List[LinkPair] = list(pairs)
        self.base_url = base_url
        self.state = RunState()
        self.reports: List[RowReport] = self._fresh_reports()
        self.summary: Optional[RunSummary] = None
        self._probe = probe_fn or probe
        self._aprobe = aprobe_fn or aprobe

    # ------------------------------------------------------------------
    # Counts
    # ------------------------------------------------------------------
    @property
    def declared_action_count(self) -> int:
        return sum(len(pair.action_names) for pair in self.pairs)

    def total_for(self, include_actions: bool) -> int:
        """Number of checks a run will report progress against."""
        total = 2 * len(self.pairs)
        if include_actions:
            total += self.declared_action_count
        return total

    # ------------------------------------------------------------------
    # Run control
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self.state.running

    def cancel(self) -> bool:
        """Ask the running batch to stop.  Returns ``False`` when idle."""
        if not self.state.running:
            return False
        self.state.cancel_requested = True
        logger.info("Cancellation requested after %d/%d checks", self.state.checked, self.state.total)
        return True

    def run(
        self,
        include_actions: bool = True,
        on_progress: Optional[ProgressCallback] = None,
        on_row: Optional[RowCallback] = None,
    ) -> Optional[RunSummary]:
        """Run the full batch synchronously.

        Calling this while a batch is already running cancels that batch
        and returns ``None``.
        """
        if self.state.running:
            self.cancel()
            return None
        self._begin(include_actions)
        try:
            self._drive(self._batch_steps(include_actions, on_progress, on_row), self.state)
        finally:
            summary = self._finish(include_actions)
        return summary

    async def arun(
        self,
        include_actions: bool = True,
        on_progress: Optional[ProgressCallback] = None,
        on_row: Optional[RowCallback] = None,
    ) -> Optional[RunSummary]:
        """Async counterpart of :meth:`run`."""
        if self.state.running:
            self.cancel()
            return None
        self._begin(include_actions)
        try:
            await self._adrive(self._batch_steps(include_actions, on_progress, on_row), self.state)
        finally:
            summary = self._finish(include_actions)
        return summary

    # ------------------------------------------------------------------
    # Single-row operations
    # ------------------------------------------------------------------
    def recheck(self, kind: str, index: int) -> CheckResult:
        """Re-probe the CMS or frontend link of row *index*.

        Does not touch the batch counters.
        """
        report = self.reports[index]
        request, expected = self._recheck_request(kind, report.pair)
        result = CheckResult.classify(self._call_probe(request), expected)
        self._store_recheck(kind, report, result)
        return result

    async def arecheck(self, kind: str, index: int) -> CheckResult:
        report = self.reports[index]
        request, expected = self._recheck_request(kind, report.pair)
        result = CheckResult.classify(await self._acall_probe(request), expected)
        self._store_recheck(kind, report, result)
        return result

    def check_row_actions(self, index: int) -> Optional[RowReport]:
        """Fetch row *index*'s page, discover its actions and probe them.

        Returns ``None`` when the page body could not be fetched.
        """
        report = self.reports[index]
        fetched = self._drive(self._row_action_steps(report), RunState())
        return report if fetched else None

    async def acheck_row_actions(self, index: int) -> Optional[RowReport]:
        report = self.reports[index]
        fetched = await self._adrive(self._row_action_steps(report), RunState())
        return report if fetched else None

    # ------------------------------------------------------------------
    # Drivers
    # ------------------------------------------------------------------
    def _drive(self, steps: Steps, state: RunState) -> Any:
        try:
            request = next(steps)
            while not state.cancel_requested:
                request = steps.send(self._call_probe(request))
        except StopIteration as stop:
            return stop.value
        finally:
            steps.close()
        return None

    async def _adrive(self, steps: Steps, state: RunState) -> Any:
        try:
            request = next(steps)
            while not state.cancel_requested:
                request = steps.send(await self._acall_probe(request))
        except StopIteration as stop:
            return stop.value
        finally:
            steps.close()
        return None

    def _call_probe(self, request: ProbeRequest) -> ProbeResult:
        return self._probe(
            request.url,
            fetch_body=request.fetch_body,
            follow_redirects=request.follow_redirects,
        )

    async def _acall_probe(self, request: ProbeRequest) -> ProbeResult:
        return await self._aprobe(
            request.url,
            fetch_body=request.fetch_body,
            follow_redirects=request.follow_redirects,
        )

    # ------------------------------------------------------------------
    # Check algorithm
    # ------------------------------------------------------------------
    def _batch_steps(
        self,
        include_actions: bool,
        on_progress: Optional[ProgressCallback],
        on_row: Optional[RowCallback],
    ) -> Steps:
        state = self.state

        def notify(report: RowReport) -> None:
            if on_row is not None:
                on_row(report)
            if on_progress is not None:
                on_progress(state.checked, state.total)

        for report in self.reports:
            pair = report.pair

            cms = yield ProbeRequest(pair.cms_url)
            report.cms_result = CheckResult.classify(cms, CMS_EXPECTED)
            state.tally(report.cms_result.passed)
            notify(report)
            if state.cancel_requested:
                return

            frontend = yield _frontend_request(pair, fetch_body=True)
            report.frontend_result = CheckResult.classify(frontend, pair.expected_statuses)
            state.tally(report.frontend_result.passed)
            if frontend.has_body:
                report.form_count = count_forms(frontend.body)
            notify(report)
            if state.cancel_requested:
                return

            if include_actions and pair.action_names and frontend.has_body:
                yield from self._action_steps(report, frontend.body, state, notify)
                if state.cancel_requested:
                    return

    def _action_steps(
        self,
        report: RowReport,
        html: str,
        state: RunState,
        notify: Optional[RowCallback] = None,
    ) -> Steps:
        pair = report.pair
        report.action_urls = resolve_actions(html, pair.action_names, pair.frontend_url, self.base_url)
        report.action_results = {}

        # Declared names drive the loop so repeated names are each tallied.
        for action in pair.action_names:
            if state.cancel_requested:
                return
            url = report.action_urls.get(action)
            if url is None:
                state.tally_manual()
            else:
                result = yield ProbeRequest(url)
                report.action_results[action] = CheckResult.classify(result, ACTION_EXPECTED)
                state.tally(report.action_results[action].passed)
            if notify is not None:
                notify(report)

    def _row_action_steps(self, report: RowReport) -> Steps:
        page = yield _frontend_request(report.pair, fetch_body=True)
        if not page.has_body:
            report.action_urls = {}
            report.action_results = {}
            return False
        yield from self._action_steps(report, page.body, RunState())
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _fresh_reports(self) -> List[RowReport]:
        return [RowReport(index=i, pair=pair) for i, pair in enumerate(self.pairs)]

    def _begin(self, include_actions: bool) -> None:
        self.reports = self._fresh_reports()
        self.summary = None
        self.state.reset(self.total_for(include_actions))
        logger.info("Checking %d rows (%d checks)", len(self.pairs), self.state.total)

    def _finish(self, include_actions: bool) -> RunSummary:
        state = self.state
        state.phase = RunPhase.CANCELLED if state.cancel_requested else RunPhase.COMPLETED
        self.summary = RunSummary(
            passed=state.passed,
            failed=state.failed,
            manual=state.manual,
            cancelled=state.phase is RunPhase.CANCELLED,
            unchecked_actions=0 if include_actions else self.declared_action_count,
        )
        logger.info("Run %s: %s", state.phase.value, self.summary.to_dict())
        return self.summary

    def _recheck_request(self, kind: str, pair: LinkPair) -> tuple[ProbeRequest, frozenset[int]]:
        if kind == CMS:
            return ProbeRequest(pair.cms_url), CMS_EXPECTED
        if kind == FRONTEND:
            return _frontend_request(pair), pair.expected_statuses
        raise ValueError(f"Unknown link kind {kind!r}; expected {CMS!r} or {FRONTEND!r}")

    @staticmethod
    def _store_recheck(kind: str, report: RowReport, result: CheckResult) -> None:
        if kind == CMS:
            report.cms_result = result
        else:
            report.frontend_result = result


def _frontend_request(pair: LinkPair, fetch_body: bool = False) -> ProbeRequest:
    return ProbeRequest(
        pair.frontend_url,
        fetch_body=fetch_body,
        follow_redirects=not pair.raw_redirects,
    )
