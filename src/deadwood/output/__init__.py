"""Output modules for CLI display and report files."""

from deadwood.output.diagnostics import OutputFormat, format_diagnostics, format_warning
from deadwood.output.report_writer import (
    ReportFormatError,
    read_report,
    write_report,
    write_report_json,
)
from deadwood.output.tree import build_results_tree, build_summary_tree, display_tree

__all__ = [
    "OutputFormat",
    "ReportFormatError",
    "build_results_tree",
    "build_summary_tree",
    "display_tree",
    "format_diagnostics",
    "format_warning",
    "read_report",
    "write_report",
    "write_report_json",
]
