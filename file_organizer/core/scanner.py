"""Source tree scanner for the File Organizer."""

import logging
import os
from pathlib import Path
from typing import Iterator, Optional, Union

from .error_handler import ErrorHandler
from .exceptions import ScanError
from .models import (
    Action, CategoryTable, DEFAULT_CATEGORY_TABLE, Job, MANIFEST_DIR_NAME, Result
)


class PathScanner:
    """Walks a source tree and produces one Job per qualifying file."""

    def __init__(
        self,
        source: Path,
        dest_root: Path,
        table: CategoryTable = DEFAULT_CATEGORY_TABLE,
        include_hidden: bool = False,
        error_handler: Optional[ErrorHandler] = None,
    ):
        """
        Initialize the scanner.

        Args:
            source: Directory tree to walk
            dest_root: Destination root whose category folders are never rescanned
            table: Category table naming the category folders
            include_hidden: Whether dot-prefixed entries are scanned
            error_handler: Optional shared error handler
        """
        self.source = Path(source)
        self.dest_root = Path(dest_root).resolve()
        self.include_hidden = include_hidden
        self.error_handler = error_handler or ErrorHandler()
        self.logger = logging.getLogger(__name__)
        self._category_dirs = frozenset(
            self.dest_root / name for name in table.category_names()
        )
        self._manifest_dir = self.dest_root / MANIFEST_DIR_NAME
        self._cancelled = False

    def scan(self) -> Iterator[Union[Job, Result]]:
        """
        Generator over the source tree.

        Yields:
            Job for each qualifying file, or an Error Result for each entry
            that could not be read. A failed entry never stops the walk.
        """
        self._cancelled = False
        if self.is_categorized(self.source):
            self.logger.info(f"{self.source} is already a category folder, nothing to scan")
            return
        pending = [self.source]

        while pending:
            directory = pending.pop()
            try:
                with os.scandir(directory) as entries:
                    children = sorted(entries, key=lambda entry: entry.name)
            except OSError as e:
                yield self._error(Path(directory), e, "cannot read directory")
                continue

            subdirectories = []
            for entry in children:
                if self._cancelled:
                    self.logger.info("Scan cancelled, stopping directory walk")
                    return

                if not self.include_hidden and entry.name.startswith("."):
                    continue

                path = Path(entry.path)
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if self._should_descend(path):
                            subdirectories.append(path)
                        continue
                    stat = entry.stat(follow_symlinks=False)
                except OSError as e:
                    yield self._error(path, e, "cannot stat entry")
                    continue

                yield Job(path=path, name=entry.name, size=stat.st_size, mode=stat.st_mode)

            # Reversed so that the stack pops subdirectories in name order
            pending.extend(reversed(subdirectories))

    def is_categorized(self, path: Path) -> bool:
        """Check whether a path already lies in a category folder of the destination root."""
        resolved = Path(path).resolve()
        try:
            relative = resolved.relative_to(self.dest_root)
        except ValueError:
            return False
        if not relative.parts:
            return False
        return (self.dest_root / relative.parts[0]) in self._category_dirs

    def cancel(self):
        """Stop the walk at the next entry."""
        self._cancelled = True
        self.logger.info("Scan cancellation requested")

    def _should_descend(self, directory: Path) -> bool:
        resolved = directory.resolve()
        if resolved == self._manifest_dir:
            return False
        if self.is_categorized(resolved):
            self.logger.debug(f"Skipping categorized folder {directory}")
            return False
        return True

    def _error(self, path: Path, error: OSError, context: str) -> Result:
        wrapped = self.error_handler.wrap_os_error(error, ScanError, path, context)
        return Result(source=path, destination=None, action=Action.ERROR, error=wrapped)
