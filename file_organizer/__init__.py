"""File Organizer - Sort files into category folders and undo the moves."""

__version__ = "0.1.0"
__author__ = "File Organizer Team"
__description__ = "Sort files into category folders by extension, with undo"

# Import main components for programmatic access
from .core.models import Category, CategoryTable, OrganizeOptions, RunSummary, UndoSummary
from .core.organizer import Organizer
from .core.undo import UndoEngine
from .cli.main import cli

__all__ = [
    "Category",
    "CategoryTable",
    "OrganizeOptions",
    "RunSummary",
    "UndoSummary",
    "Organizer",
    "UndoEngine",
    "cli"
]
