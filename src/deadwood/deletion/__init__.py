"""Deletion planning and source editing."""

from deadwood.deletion.editor import EditOutcome, apply_edits, cut_columns
from deadwood.deletion.empty import is_effectively_empty
from deadwood.deletion.planner import DeletionPlanner, FilePlan, group_by_file
from deadwood.deletion.service import DeletionService

__all__ = [
    "DeletionPlanner",
    "DeletionService",
    "EditOutcome",
    "FilePlan",
    "apply_edits",
    "cut_columns",
    "group_by_file",
    "is_effectively_empty",
]
