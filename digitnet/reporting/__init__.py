"""Reporting utilities for DigitNet."""

from .artifacts import write_manifest
from .metrics import CsvSink, JsonlSink, MetricsCapture
from .plots import PlotAdapter
from .progress import ConsoleProgress

__all__ = ["write_manifest", "JsonlSink", "CsvSink", "MetricsCapture", "PlotAdapter", "ConsoleProgress"]
