"""Manifest replay for the File Organizer."""

import logging
import os
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .error_handler import ErrorHandler
from .exceptions import CollisionExhaustedError, UndoRecordError
from .manifest import load_manifest
from .models import (
    CategoryTable, DEFAULT_CATEGORY_TABLE, MANIFEST_DIR_NAME, MoveRecord, UndoSummary
)
from .mover import move_file, next_available_name


class UndoOutcome(Enum):
    UNDONE = "undone"
    SKIPPED = "skipped"
    FAILED = "failed"


UndoReporter = Callable[[UndoOutcome, MoveRecord, Optional[Path], Optional[Exception]], None]


class UndoEngine:
    """Restores the original locations recorded in a manifest."""

    def __init__(
        self,
        dest_root: Optional[Path] = None,
        dry_run: bool = False,
        table: CategoryTable = DEFAULT_CATEGORY_TABLE,
        reporter: Optional[UndoReporter] = None,
    ):
        """
        Initialize the undo engine.

        Args:
            dest_root: Destination root whose empty category folders are removed.
                       Derived from the manifest location when omitted.
            dry_run: Report the reversal without touching the file system
            table: Category table naming the category folders
            reporter: Optional callback called with (outcome, record, target, error)
        """
        self.dest_root = Path(dest_root) if dest_root else None
        self.dry_run = dry_run
        self.table = table
        self.reporter = reporter
        self.error_handler = ErrorHandler()
        self.logger = logging.getLogger(__name__)

    def undo(self, manifest_path: Path) -> UndoSummary:
        """
        Replay a manifest in strict reverse order.

        Raises:
            UndoFatalError: If the manifest is missing or unparsable
        """
        manifest_path = Path(manifest_path)
        records = load_manifest(manifest_path)
        start_time = time.monotonic()
        summary = UndoSummary(undone=0, skipped=0, failed=0, duration=0.0, dry_run=self.dry_run)

        self.logger.info(f"Undoing {len(records)} moves from {manifest_path} (dry_run={self.dry_run})")

        for record in reversed(records):
            outcome, target, error = self._undo_record(record)
            if outcome is UndoOutcome.UNDONE:
                summary.undone += 1
            elif outcome is UndoOutcome.SKIPPED:
                summary.skipped += 1
            else:
                summary.failed += 1
                summary.errors.append(error)
            self._report(outcome, record, target, error)

        if not self.dry_run:
            dest_root = self.dest_root or self._root_from_manifest(manifest_path)
            if dest_root is not None:
                summary.removed_dirs = self.remove_empty_category_dirs(dest_root)

        summary.duration = time.monotonic() - start_time
        self.error_handler.log_error_summary(summary.errors, "undo")
        self.logger.info(
            f"Undo summary: undone={summary.undone} skipped={summary.skipped} failed={summary.failed}"
        )
        return summary

    def _undo_record(self, record: MoveRecord):
        if not os.path.lexists(record.destination):
            self.logger.debug(f"Already reverted: {record.destination}")
            return UndoOutcome.SKIPPED, None, None

        target = record.source
        try:
            # Never clobber a file that reappeared at the original location
            target = next_available_name(target)
            if not self.dry_run:
                target.parent.mkdir(parents=True, exist_ok=True)
                move_file(record.destination, target)
        except CollisionExhaustedError as e:
            error = UndoRecordError(f"undo {record.destination} -> {target}: {e}")
            self.logger.warning(str(error))
            return UndoOutcome.FAILED, target, error
        except OSError as e:
            error = self.error_handler.wrap_os_error(
                e, UndoRecordError, record.destination, f"undo to {target} failed"
            )
            return UndoOutcome.FAILED, target, error

        return UndoOutcome.UNDONE, target, None

    def remove_empty_category_dirs(self, dest_root: Path):
        """
        Remove category folders under dest_root that have no entries.

        Only the top level of each folder is checked; the first entry found
        keeps the folder. Failures are logged and ignored.
        """
        removed = []
        for name in self.table.category_names():
            directory = Path(dest_root) / name
            if directory.is_symlink() or not directory.is_dir():
                continue
            try:
                with os.scandir(directory) as entries:
                    if next(entries, None) is not None:
                        continue
                directory.rmdir()
                removed.append(directory)
                self.logger.debug(f"Removed empty category folder {directory}")
            except OSError as e:
                self.logger.debug(f"Could not remove {directory}: {e}")
        return removed

    def _root_from_manifest(self, manifest_path: Path) -> Optional[Path]:
        parent = manifest_path.resolve().parent
        if parent.name == MANIFEST_DIR_NAME:
            return parent.parent
        self.logger.warning(
            f"Manifest {manifest_path} is not inside a {MANIFEST_DIR_NAME} folder, "
            "skipping empty folder cleanup"
        )
        return None

    def _report(self, outcome, record, target, error):
        if not self.reporter:
            return
        try:
            self.reporter(outcome, record, target, error)
        except Exception as e:
            self.logger.warning(f"Reporter error: {e}")
