"""Configuration loading and saving for deadwood."""

import json
import logging
from pathlib import Path

import tomli

from deadwood.models.declaration import ExclusionReason

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict = {
    "analysis": {
        "test_patterns": ["Tests/", "*Tests/", "*Tests.swift", "*Test.swift", "*Spec.swift"],
        "exclude": [],
    },
    "resolution": {
        "always_needed_modules": ["Swift", "Foundation"],
        "enumerable_interfaces": ["CaseIterable"],
        "platform_markers": {
            "objc": "objc",
            "objcMembers": "objc",
            "NSManaged": "objc",
            "IBInspectable": "objc",
            "IBAction": "ibAction",
            "IBSegueAction": "ibAction",
            "IBOutlet": "ibOutlet",
            "main": "main",
        },
        "discard_marker": "_",
    },
    "deletion": {
        "delete_empty_files": True,
        "coder_receivers": ["container"],
        "search_sibling_extensions": False,
    },
}


def load_config(config_path: Path) -> dict:
    """Load a config.json file."""
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_config(config: dict, config_path: Path) -> None:
    """Save configuration to config.json."""
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)


def load_pyproject_config(project_root: Path) -> dict:
    """Read the [tool.deadwood] table from pyproject.toml, if there is one."""
    pyproject_path = project_root / "pyproject.toml"
    if not pyproject_path.exists():
        return {}
    try:
        with open(pyproject_path, "rb") as f:
            data = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        logger.warning("Ignoring malformed %s: %s", pyproject_path, e)
        return {}
    return data.get("tool", {}).get("deadwood", {})


def load_project_config(project_root: Path, config_path: Path | None = None) -> dict:
    """Resolve the effective config: config.json overlaid by [tool.deadwood]."""
    config: dict = {}
    if config_path is not None and config_path.exists():
        config = load_config(config_path)
    return merge_config(config, load_pyproject_config(project_root))


def merge_config(base: dict, overlay: dict) -> dict:
    """Recursively merge overlay onto base, returning a new dict."""
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_test_patterns(config: dict) -> list[str]:
    """Get gitignore-style patterns that identify test files."""
    return config.get("analysis", {}).get(
        "test_patterns", DEFAULT_CONFIG["analysis"]["test_patterns"]
    )


def get_analysis_excludes(config: dict) -> list[str]:
    """Get extra exclude patterns from config."""
    return config.get("analysis", {}).get("exclude", [])


def get_always_needed_modules(config: dict) -> set[str]:
    """Get modules whose imports are never reported."""
    return set(
        config.get("resolution", {}).get(
            "always_needed_modules", DEFAULT_CONFIG["resolution"]["always_needed_modules"]
        )
    )


def get_enumerable_interfaces(config: dict) -> frozenset[str]:
    """Get interfaces whose conformers' cases are all implicitly used."""
    return frozenset(
        config.get("resolution", {}).get(
            "enumerable_interfaces", DEFAULT_CONFIG["resolution"]["enumerable_interfaces"]
        )
    )


def get_platform_markers(config: dict) -> dict[str, ExclusionReason]:
    """Get the marker -> exclusion reason table."""
    markers = config.get("resolution", {}).get(
        "platform_markers", DEFAULT_CONFIG["resolution"]["platform_markers"]
    )
    return {marker: ExclusionReason(reason) for marker, reason in markers.items()}


def get_discard_marker(config: dict) -> str:
    """Get the binding name that marks a parameter as intentionally unused."""
    return config.get("resolution", {}).get("discard_marker", "_")


def should_delete_empty_files(config: dict) -> bool:
    """Check if files left with only imports should be removed."""
    return config.get("deletion", {}).get("delete_empty_files", True)


def get_coder_receivers(config: dict) -> frozenset[str]:
    """Get receiver names whose encode/decode calls are tied to properties."""
    return frozenset(
        config.get("deletion", {}).get(
            "coder_receivers", DEFAULT_CONFIG["deletion"]["coder_receivers"]
        )
    )


def should_search_sibling_extensions(config: dict) -> bool:
    """Check if extensions of a deleted type are searched in sibling files."""
    return config.get("deletion", {}).get("search_sibling_extensions", False)
