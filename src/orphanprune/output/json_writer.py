"""JSON output writers for reports and results."""

import json
from pathlib import Path

from orphanprune.errors import ConfigurationError
from orphanprune.models.deletion import DeletionResults
from orphanprune.models.report import Report, StatusFilter
from orphanprune.models.trim import TrimResults


def render_report(report: Report, status_filter: StatusFilter = StatusFilter.ALL) -> str:
    """Serialize a report view to JSON text."""
    return json.dumps(report.to_dict(status_filter), indent=2)


def render_paths(report: Report) -> str:
    """Sorted DROP paths, one per line."""
    paths = report.drop_paths()
    return "\n".join(paths) + "\n" if paths else ""


def write_report(
    report: Report,
    output_path: Path,
    status_filter: StatusFilter = StatusFilter.ALL,
) -> None:
    """Write the report.json file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(render_report(report, status_filter))
        f.write("\n")


def load_report(report_path: Path) -> Report:
    """Load a report.json file."""
    try:
        with open(report_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"No report found at {report_path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read report {report_path}: {e}") from e

    try:
        return Report.from_dict(data)
    except (KeyError, ValueError) as e:
        raise ConfigurationError(f"Invalid report {report_path}: {e}") from e


def write_trim_results(results: TrimResults, output_path: Path) -> None:
    """Write the trims.json file."""
    data = results.to_dict()

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def write_deletion_results(results: DeletionResults, output_path: Path) -> None:
    """Write the deletions.json file."""
    data = results.to_dict()

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def load_deletion_results(results_path: Path) -> DeletionResults:
    """Load a deletions.json file."""
    with open(results_path, "r", encoding="utf-8") as f:
        return DeletionResults.from_dict(json.load(f))
