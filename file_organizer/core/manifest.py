"""Manifest persistence for the File Organizer."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .exceptions import CollisionExhaustedError, ManifestWriteError, UndoFatalError
from .models import MANIFEST_DIR_NAME, MoveRecord
from .mover import next_available_name


logger = logging.getLogger(__name__)


def manifest_dir(dest_root: Path) -> Path:
    return Path(dest_root) / MANIFEST_DIR_NAME


def write_manifest(
    dest_root: Path,
    moves: Sequence[MoveRecord],
    completed_at: Optional[datetime] = None,
) -> Optional[Path]:
    """
    Persist the ordered move log of one run.

    Args:
        dest_root: Destination root of the run
        moves: Move records in completion order
        completed_at: Run completion time used in the file name

    Returns:
        Path of the written manifest, or None when there is nothing to record

    Raises:
        ManifestWriteError: If the manifest could not be written
    """
    if not moves:
        return None

    completed_at = completed_at or datetime.now()
    directory = manifest_dir(dest_root)
    name = f"moves-{completed_at.strftime('%Y%m%d-%H%M%S')}.json"

    try:
        directory.mkdir(parents=True, exist_ok=True)
        path = next_available_name(directory / name)
        data = [move.to_dict() for move in moves]
        with open(path, "x", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
    except (OSError, TypeError, ValueError, CollisionExhaustedError) as e:
        raise ManifestWriteError(f"failed to write manifest in {directory}: {e}") from e

    logger.info(f"Manifest with {len(data)} records written to {path}")
    return path


def load_manifest(path: Path) -> List[MoveRecord]:
    """
    Load the ordered move records of a manifest.

    Raises:
        UndoFatalError: If the manifest is missing, unreadable or malformed
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise UndoFatalError(f"cannot read manifest {path}: {e}") from e
    except ValueError as e:
        raise UndoFatalError(f"manifest {path} is not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise UndoFatalError(f"manifest {path} must contain a JSON array")

    records = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or not isinstance(item.get("src"), str) \
                or not isinstance(item.get("dst"), str):
            raise UndoFatalError(f"manifest {path}: record {index} needs string 'src' and 'dst'")
        try:
            records.append(MoveRecord.from_dict(item))
        except (TypeError, ValueError) as e:
            raise UndoFatalError(f"manifest {path}: record {index} is invalid: {e}") from e

    logger.debug(f"Loaded {len(records)} records from {path}")
    return records
