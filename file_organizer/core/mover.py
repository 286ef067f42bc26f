"""Destination resolution and move primitives for the File Organizer."""

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from .error_handler import ErrorHandler
from .exceptions import CollisionExhaustedError, MoveError
from .models import Action, CategoryTable, DEFAULT_CATEGORY_TABLE, Job, Result


MAX_NAME_ATTEMPTS = 10_000

logger = logging.getLogger(__name__)


def destination_for(dest_root: Path, table: CategoryTable, filename: str) -> Path:
    """Return <dest_root>/<category>/<filename> for a file name."""
    return Path(dest_root) / table.classify(filename).value / filename


def next_available_name(path: Path) -> Path:
    """
    Find a free sibling of path by inserting ' (N)' before the suffix.

    N counts up from 1. The path itself is returned when it is free.

    Raises:
        CollisionExhaustedError: If no free name is found within the attempt limit
    """
    path = Path(path)
    if not os.path.lexists(path):
        return path

    for i in range(1, MAX_NAME_ATTEMPTS):
        candidate = path.with_name(f"{path.stem} ({i}){path.suffix}")
        if not os.path.lexists(candidate):
            return candidate

    raise CollisionExhaustedError(f"too many name conflicts for {path}")


def move_file(src: Path, dst: Path) -> None:
    """
    Move src to dst with an atomic rename.

    When the rename crosses a file system boundary, the bytes are copied to a
    newly created dst, the permission bits are copied, and src is removed.
    """
    try:
        os.rename(src, dst)
        return
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise

    logger.debug(f"Cross-device move, copying {src} -> {dst}")
    with open(src, "rb") as fsrc, open(dst, "xb") as fdst:
        try:
            shutil.copyfileobj(fsrc, fdst)
            shutil.copymode(src, dst)
        except BaseException:
            # Only the partial copy created above is removed
            fdst.close()
            os.remove(dst)
            raise
    os.remove(src)


def same_path(a: Path, b: Path) -> bool:
    return Path(a).resolve() == Path(b).resolve()


class Categorizer:
    """Per-job logic run by every worker. Holds no mutable state."""

    def __init__(
        self,
        dest_root: Path,
        table: CategoryTable = DEFAULT_CATEGORY_TABLE,
        dry_run: bool = False,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.dest_root = Path(dest_root)
        self.table = table
        self.dry_run = dry_run
        self.error_handler = error_handler or ErrorHandler()

    def handle(self, job: Job) -> Result:
        """Categorize one job and move it, or simulate the move."""
        destination = destination_for(self.dest_root, self.table, job.name)

        try:
            if same_path(job.path, destination):
                return Result(job.path, destination, Action.SKIP, simulated=self.dry_run)

            if not self.dry_run:
                destination.parent.mkdir(parents=True, exist_ok=True)

            destination = next_available_name(destination)

            if not self.dry_run:
                move_file(job.path, destination)
        except MoveError as e:
            logger.warning(f"{job.path}: {e}")
            return Result(job.path, destination, Action.ERROR, error=e)
        except OSError as e:
            wrapped = self.error_handler.wrap_os_error(e, MoveError, job.path, "move failed")
            return Result(job.path, destination, Action.ERROR, error=wrapped)
        except RuntimeError as e:
            # Path.resolve raises this for a symlink loop
            wrapped = self.error_handler.wrap_os_error(e, MoveError, job.path, "cannot resolve path")
            return Result(job.path, destination, Action.ERROR, error=wrapped)

        return Result(job.path, destination, Action.MOVE, simulated=self.dry_run)
