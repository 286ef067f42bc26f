"""Core engine for scanning, categorizing, moving and undoing."""

from .models import (
    Action, Category, CategoryTable, DEFAULT_CATEGORY_TABLE, Job, MoveRecord,
    OrganizeOptions, Result, RunSummary, UndoSummary
)
from .scanner import PathScanner
from .organizer import Organizer, ResultCollector
from .undo import UndoEngine

__all__ = [
    "Action",
    "Category",
    "CategoryTable",
    "DEFAULT_CATEGORY_TABLE",
    "Job",
    "MoveRecord",
    "OrganizeOptions",
    "Result",
    "RunSummary",
    "UndoSummary",
    "PathScanner",
    "Organizer",
    "ResultCollector",
    "UndoEngine"
]
