"""Persist and reload analysis reports."""

import csv
import json
from datetime import datetime
from pathlib import Path

from deadwood.models.declaration import Declaration, DeclarationKind, ExclusionReason
from deadwood.models.report import REPORT_FORMAT_VERSION, Report, ReportOptions

CSV_HEADER = ["id", "name", "kind", "file", "line", "exclusion_reason", "parent_type"]


class ReportFormatError(ValueError):
    """Raised when a persisted report cannot be parsed."""


def write_report(report: Report, output_path: Path) -> None:
    """Write the report table.

    Three metadata rows precede the header: format version, analysis
    options and summary counts.
    """
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["#deadwood", report.version, report.generated_at.isoformat()])
        writer.writerow(
            ["#options"]
            + [f"{k}={str(v).lower()}" for k, v in report.options.to_dict().items()]
        )
        writer.writerow(["#summary", f"test_files_excluded={report.test_files_excluded}"])
        writer.writerow(CSV_HEADER)
        for declaration in report.all_declarations():
            writer.writerow(_to_row(declaration))


def read_report(input_path: Path) -> Report:
    """Load a report written by write_report."""
    if not input_path.exists():
        raise FileNotFoundError(f"No report found at {input_path}")

    with open(input_path, "r", encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))

    report = Report()
    index = 0
    while index < len(rows) and rows[index] and rows[index][0].startswith("#"):
        try:
            _apply_metadata(report, rows[index])
        except ReportFormatError:
            raise
        except ValueError as e:
            raise ReportFormatError(f"{input_path}:{index + 1}: {e}") from e
        index += 1

    if index >= len(rows) or rows[index] != CSV_HEADER:
        raise ReportFormatError(f"{input_path}: missing header row")

    for line_number, row in enumerate(rows[index + 1 :], start=index + 2):
        if not row:
            continue
        declaration = _from_row(row, input_path, line_number)
        if report.options.reports_as_unused(declaration.exclusion_reason):
            report.unused.append(declaration)
        else:
            report.excluded.add(declaration)
    return report


def write_report_json(report: Report, output_path: Path) -> None:
    """Write the report as JSON."""
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=2)


def _to_row(declaration: Declaration) -> list[str]:
    return [
        str(declaration.id or 0),
        declaration.name,
        declaration.kind.value,
        declaration.file,
        str(declaration.line),
        declaration.exclusion_reason.value,
        declaration.parent_type or "",
    ]


def _from_row(row: list[str], path: Path, line_number: int) -> Declaration:
    if len(row) != len(CSV_HEADER):
        raise ReportFormatError(
            f"{path}:{line_number}: expected {len(CSV_HEADER)} fields, got {len(row)}"
        )
    raw_id, name, kind, file, line, reason, parent = row
    try:
        return Declaration(
            id=int(raw_id),
            name=name,
            kind=DeclarationKind(kind),
            file=file,
            line=int(line),
            exclusion_reason=ExclusionReason(reason),
            parent_type=parent or None,
        )
    except ValueError as e:
        raise ReportFormatError(f"{path}:{line_number}: {e}") from e


def _apply_metadata(report: Report, row: list[str]) -> None:
    tag, values = row[0], row[1:]
    if tag == "#deadwood":
        if values:
            report.version = values[0]
            if report.version != REPORT_FORMAT_VERSION:
                raise ReportFormatError(f"Unsupported report version {report.version}")
        if len(values) > 1:
            report.generated_at = datetime.fromisoformat(values[1])
    elif tag == "#options":
        report.options = ReportOptions.from_dict(
            {k: v == "true" for k, v in _pairs(values).items()}
        )
    elif tag == "#summary":
        count = _pairs(values).get("test_files_excluded", "0")
        report.test_files_excluded = int(count)


def _pairs(values: list[str]) -> dict[str, str]:
    return dict(value.split("=", 1) for value in values if "=" in value)
