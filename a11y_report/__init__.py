"""Accessibility scan aggregation and HTML report building."""

from .aggregator import AggregatedReport, RuleSummary, ViolationInstance, aggregate
from .errors import (
    AuditError,
    ConfigError,
    RenderFailure,
    ScanUnavailable,
    ScreenshotUnavailable,
)
from .models import SEVERITY_ORDER, CheckOutcome, Impact, NodeRef, ScanResult, Violation
from .output import ReportDirectory, prepare_report_dir
from .report import build_json_report, render, write_documents, write_json_report
from .scanner import scan, try_scan

__version__ = "0.1.0"

__all__ = [
    "AggregatedReport",
    "AuditError",
    "CheckOutcome",
    "ConfigError",
    "Impact",
    "NodeRef",
    "RenderFailure",
    "ReportDirectory",
    "RuleSummary",
    "SEVERITY_ORDER",
    "ScanResult",
    "ScanUnavailable",
    "ScreenshotUnavailable",
    "Violation",
    "ViolationInstance",
    "aggregate",
    "build_json_report",
    "prepare_report_dir",
    "render",
    "scan",
    "try_scan",
    "write_documents",
    "write_json_report",
]
