"""Centralized path management for deadwood state files."""

from pathlib import Path

# Directory name for deadwood state
DEADWOOD_DIR = ".deadwood"

# File names within the .deadwood directory
CONFIG_FILE = "config.json"
FACTS_FILE = "facts.json"  # Extractor output
INTERFACES_FILE = "interfaces.json"  # Oracle data for external interfaces and modules
REPORT_FILE = "report.csv"


def get_deadwood_dir(project_path: Path) -> Path:
    """Get the .deadwood directory path for a project."""
    return project_path / DEADWOOD_DIR


def ensure_deadwood_dir(project_path: Path) -> Path:
    """Ensure .deadwood directory exists and return its path."""
    deadwood_dir = get_deadwood_dir(project_path)
    deadwood_dir.mkdir(parents=True, exist_ok=True)
    return deadwood_dir


def get_config_path(project_path: Path) -> Path:
    """Get the config.json path for a project."""
    return get_deadwood_dir(project_path) / CONFIG_FILE


def get_facts_path(project_path: Path) -> Path:
    """Get the facts.json path for a project."""
    return get_deadwood_dir(project_path) / FACTS_FILE


def get_interfaces_path(project_path: Path) -> Path:
    """Get the interfaces.json path for a project."""
    return get_deadwood_dir(project_path) / INTERFACES_FILE


def get_report_path(project_path: Path) -> Path:
    """Get the report.csv path for a project."""
    return get_deadwood_dir(project_path) / REPORT_FILE
