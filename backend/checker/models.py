"""Data models for the link-check engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Literal, Optional, Union

# Transport failures are reported with this marker instead of a status code.
ERR = "ERR"

Status = Union[int, Literal["ERR"]]


@dataclass
class ProbeResult:
    """Outcome of a single HTTP GET."""

    url: str
    status: Status
    body: str = ""
    # True when the status is a synthetic stand-in for a redirect that
    # could not be introspected.
    approximated: bool = False

    @property
    def has_body(self) -> bool:
        return bool(self.body)


@dataclass
class CheckResult:
    """A probe classified against its expected status set."""

    url: str
    status: Status
    passed: bool
    approximated: bool = False

    @classmethod
    def classify(cls, probe: ProbeResult, expected: frozenset[int]) -> "CheckResult":
        return cls(
            url=probe.url,
            status=probe.status,
            passed=probe.status in expected,
            approximated=probe.approximated,
        )


@dataclass(frozen=True)
class LinkPair:
    """The links checked for one page type that has a sample page."""

    cms_url: str
    frontend_url: str
    expected_statuses: frozenset[int]
    action_names: tuple[str, ...] = ()
    # Redirect pages are probed without following redirects so the 3xx
    # status itself can be classified.
    raw_redirects: bool = False

    def __post_init__(self) -> None:
        if not self.expected_statuses:
            raise ValueError(f"LinkPair for {self.frontend_url!r} has no expected statuses")


# Mapping of action name -> resolved absolute URL, or None when no URL was found.
ActionResolution = Dict[str, Optional[str]]


@dataclass
class RowReport:
    """Check results attached to one :class:`LinkPair` during a run."""

    index: int
    pair: LinkPair
    cms_result: Optional[CheckResult] = None
    frontend_result: Optional[CheckResult] = None
    action_urls: ActionResolution = field(default_factory=dict)
    action_results: Dict[str, CheckResult] = field(default_factory=dict)
    form_count: int = 0

    @property
    def form_detected(self) -> bool:
        return self.form_count > 0

    @property
    def manual_actions(self) -> List[str]:
        """Declared actions for which no URL could be discovered."""
        return [name for name, url in self.action_urls.items() if url is None]

    def to_dict(self) -> dict:
        def _result(result: Optional[CheckResult]) -> Optional[dict]:
            if result is None:
                return None
            return {
                "url": result.url,
                "status": result.status,
                "passed": result.passed,
                "approximated": result.approximated,
            }

        return {
            "index": self.index,
            "cms_url": self.pair.cms_url,
            "frontend_url": self.pair.frontend_url,
            "expected_statuses": sorted(self.pair.expected_statuses),
            "action_names": list(self.pair.action_names),
            "cms_result": _result(self.cms_result),
            "frontend_result": _result(self.frontend_result),
            "action_urls": dict(self.action_urls),
            "action_results": {k: _result(v) for k, v in self.action_results.items()},
            "form_detected": self.form_detected,
        }


class RunPhase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class RunState:
    """Mutable counters for one check batch, owned by a runner."""

    phase: RunPhase = RunPhase.IDLE
    cancel_requested: bool = False
    checked: int = 0
    total: int = 0
    passed: int = 0
    failed: int = 0
    manual: int = 0

    @property
    def running(self) -> bool:
        return self.phase is RunPhase.RUNNING

    def reset(self, total: int) -> None:
        self.phase = RunPhase.RUNNING
        self.cancel_requested = False
        self.checked = 0
        self.total = total
        self.passed = 0
        self.failed = 0
        self.manual = 0

    def tally(self, passed: bool) -> None:
        self.checked += 1
        if passed:
            self.passed += 1
        else:
            self.failed += 1

    def tally_manual(self) -> None:
        self.checked += 1
        self.manual += 1


@dataclass
class RunSummary:
    """Aggregate outcome reported when a run completes or is cancelled."""

    passed: int
    failed: int
    manual: int
    cancelled: bool = False
    # Declared actions skipped because the run did not include actions.
    unchecked_actions: int = 0

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def describe(self) -> str:
        """One-line human summary, e.g. ``✗ 2 failed, 10 passed, 1 manual``."""
        manual = f", {self.manual} manual" if self.manual else ""
        if self.cancelled:
            return f"Stopped: {self.failed} failed, {self.passed} passed{manual}"
        if self.failed:
            return f"✗ {self.failed} failed, {self.passed} passed{manual}"
        text = f"✓ {self.passed} passed{manual}"
        if self.unchecked_actions:
            text += f" ({self.unchecked_actions} actions not checked)"
        return text

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "failed": self.failed,
            "manual": self.manual,
            "cancelled": self.cancelled,
            "unchecked_actions": self.unchecked_actions,
            "message": self.describe(),
        }
