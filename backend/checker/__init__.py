"""Checker package: status policy, probing, action discovery and batch runs."""

from backend.checker.forms import count_forms
from backend.checker.models import CheckResult, LinkPair, ProbeResult, RowReport, RunSummary
from backend.checker.policy import CMS_EXPECTED, expected_statuses
from backend.checker.probe import aprobe, probe
from backend.checker.resolver import resolve_actions
from backend.checker.runner import LinkCheckRunner

__all__ = [
    "CMS_EXPECTED",
    "CheckResult",
    "LinkCheckRunner",
    "LinkPair",
    "ProbeResult",
    "RowReport",
    "RunSummary",
    "aprobe",
    "count_forms",
    "expected_statuses",
    "probe",
    "resolve_actions",
]
