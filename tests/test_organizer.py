"""Tests for the concurrent organize pipeline."""

import errno
import json
import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from file_organizer.core.exceptions import (
    FatalConfigError, ManifestWriteError, MoveError, NotADirectoryPathError, PathNotFoundError,
    ScanError
)
from file_organizer.core.models import Action, OrganizeOptions, Result
from file_organizer.core.mover import Categorizer
from file_organizer.core.organizer import Organizer, ResultCollector


def _snapshot(root: Path):
    """Every file under root with its content, relative to root."""
    return sorted(
        (path.relative_to(root).as_posix(), path.read_bytes())
        for path in root.rglob("*") if path.is_file()
    )


class TestOrganizer:
    """End-to-end behavior of an organize run."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = Path(tempfile.mkdtemp()).resolve()
        self.source = self.temp_dir / "source"
        self.dest = self.temp_dir / "dest"
        self.source.mkdir()
        self.dest.mkdir()

    def teardown_method(self):
        """Clean up test environment."""
        if self.temp_dir.exists():
            shutil.rmtree(self.temp_dir)

    def _touch(self, root: Path, relative: str, content: bytes = b"x") -> Path:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    def test_end_to_end_scenario(self):
        self._touch(self.source, "a.jpg", b"image")
        self._touch(self.source, "b.txt", b"text")
        self._touch(self.source, "c.xyz", b"other")

        summary = Organizer(OrganizeOptions(self.source, self.dest, workers=2)).run()

        assert (summary.moved, summary.skipped, summary.failed) == (3, 0, 0)
        assert (self.dest / "Images" / "a.jpg").read_bytes() == b"image"
        assert (self.dest / "Docs" / "b.txt").read_bytes() == b"text"
        assert (self.dest / "Other" / "c.xyz").read_bytes() == b"other"
        assert list(self.source.iterdir()) == []

        assert summary.manifest_path is not None
        assert summary.manifest_path.parent == self.dest / ".organizer-manifests"
        assert summary.manifest_path.name.startswith("moves-")
        records = json.loads(summary.manifest_path.read_text(encoding="utf-8"))
        assert len(records) == 3
        assert {Path(r["src"]).name for r in records} == {"a.jpg", "b.txt", "c.xyz"}
        assert all(r["when"] for r in records)

    def test_move_log_matches_manifest_order(self):
        for i in range(10):
            self._touch(self.source, f"file{i}.txt")

        summary = Organizer(OrganizeOptions(self.source, self.dest, workers=4)).run()

        records = json.loads(summary.manifest_path.read_text(encoding="utf-8"))
        assert [r["dst"] for r in records] == [str(m.destination) for m in summary.moves]

    def test_second_run_is_idempotent(self):
        self._touch(self.source, "a.jpg")
        self._touch(self.source, "nested/b.txt")

        first = Organizer(OrganizeOptions(self.source, workers=2)).run()
        second = Organizer(OrganizeOptions(self.source, workers=2)).run()

        assert first.moved == 2
        assert second.moved == 0
        assert second.failed == 0
        assert second.manifest_path is None
        assert (self.source / "Images" / "a.jpg").exists()
        assert (self.source / "Docs" / "b.txt").exists()
        assert len(list((self.source / ".organizer-manifests").iterdir())) == 1

    def test_collisions_are_numbered(self):
        self._touch(self.dest, "Images/photo.jpg", b"existing")
        self._touch(self.source, "photo.jpg", b"first")
        self._touch(self.source, "sub/photo.jpg", b"second")

        summary = Organizer(OrganizeOptions(self.source, self.dest, workers=1)).run()

        assert summary.moved == 2
        assert (self.dest / "Images" / "photo.jpg").read_bytes() == b"existing"
        assert (self.dest / "Images" / "photo (1).jpg").read_bytes() == b"first"
        assert (self.dest / "Images" / "photo (2).jpg").read_bytes() == b"second"

    def test_dry_run_matches_real_run_without_mutation(self):
        self._touch(self.dest, "Images/photo.jpg", b"existing")
        self._touch(self.source, "photo.jpg")
        self._touch(self.source, "notes.md")
        self._touch(self.source, "deep/er/tool.py")
        self._touch(self.source, "mystery.bin")

        before = (_snapshot(self.source), _snapshot(self.dest))
        simulated = []
        dry = Organizer(
            OrganizeOptions(self.source, self.dest, dry_run=True, workers=3),
            reporter=simulated.append,
        ).run()
        after = (_snapshot(self.source), _snapshot(self.dest))

        assert before == after
        assert dry.dry_run
        assert dry.moved == 4
        assert dry.moves == []
        assert dry.manifest_path is None
        assert not (self.dest / ".organizer-manifests").exists()
        assert all(r.simulated for r in simulated)

        real = []
        Organizer(OrganizeOptions(self.source, self.dest, workers=3), reporter=real.append).run()

        assert {(r.source, r.destination) for r in simulated} == {(r.source, r.destination) for r in real}
        assert (self.dest / "Images" / "photo (1).jpg").exists()

    def test_scan_errors_are_isolated(self):
        self._touch(self.source, "locked/a.jpg")
        self._touch(self.source, "b.txt")
        blocked = self.source / "locked"
        real_scandir = os.scandir

        def flaky_scandir(path):
            if Path(path) == blocked:
                raise PermissionError(errno.EACCES, "Permission denied", str(path))
            return real_scandir(path)

        with patch("file_organizer.core.scanner.os.scandir", side_effect=flaky_scandir):
            summary = Organizer(OrganizeOptions(self.source, self.dest, workers=2)).run()

        assert (summary.moved, summary.failed) == (1, 1)
        assert isinstance(summary.errors[0], ScanError)
        assert (self.dest / "Docs" / "b.txt").exists()

    def test_move_errors_are_isolated(self):
        self._touch(self.source, "a.jpg")
        self._touch(self.source, "b.txt")
        real_rename = os.rename

        def picky_rename(src, dst):
            if Path(src).name == "a.jpg":
                raise PermissionError(errno.EACCES, "Permission denied")
            return real_rename(src, dst)

        with patch("file_organizer.core.mover.os.rename", side_effect=picky_rename):
            summary = Organizer(OrganizeOptions(self.source, self.dest, workers=2)).run()

        assert (summary.moved, summary.skipped, summary.failed) == (1, 0, 1)
        assert (self.source / "a.jpg").exists()
        records = json.loads(summary.manifest_path.read_text(encoding="utf-8"))
        assert [Path(r["src"]).name for r in records] == ["b.txt"]

    def test_symlink_loop_is_counted_and_run_finishes(self):
        try:
            os.symlink("aaa-loop", self.source / "aaa-loop")
        except (OSError, NotImplementedError):
            pytest.skip("Symlinks are not supported here")
        for i in range(20):
            self._touch(self.source, f"file{i:02d}.txt")

        summary = Organizer(OrganizeOptions(self.source, self.dest, workers=1, queue_size=2)).run()

        assert summary.moved + summary.skipped + summary.failed == 21
        assert len(list((self.dest / "Docs").iterdir())) == 20
        assert all(isinstance(error, MoveError) for error in summary.errors)

    def test_unexpected_worker_error_becomes_error_result(self):
        for i in range(10):
            self._touch(self.source, f"file{i:02d}.txt")
        real_handle = Categorizer.handle

        def flaky_handle(categorizer, job):
            if job.name in ("file00.txt", "file05.txt"):
                raise ValueError("unexpected")
            return real_handle(categorizer, job)

        with patch.object(Categorizer, "handle", flaky_handle):
            summary = Organizer(OrganizeOptions(self.source, self.dest, workers=1, queue_size=2)).run()

        assert (summary.moved, summary.skipped, summary.failed) == (8, 0, 2)
        assert all(isinstance(error, MoveError) for error in summary.errors)
        assert (self.source / "file00.txt").exists()
        assert (self.source / "file05.txt").exists()

    def test_manifest_write_failure_is_a_warning(self):
        self._touch(self.source, "a.jpg")

        with patch("file_organizer.core.organizer.write_manifest",
                   side_effect=ManifestWriteError("disk full")):
            summary = Organizer(OrganizeOptions(self.source, self.dest)).run()

        assert summary.moved == 1
        assert summary.manifest_path is None
        assert summary.manifest_error == "disk full"
        assert (self.dest / "Images" / "a.jpg").exists()

    def test_cancel_stops_pulling_jobs(self):
        for i in range(30):
            self._touch(self.source, f"file{i:02d}.txt")

        seen = []

        def reporter(result):
            seen.append(result)
            organizer.cancel()

        organizer = Organizer(
            OrganizeOptions(self.source, self.dest, workers=1, queue_size=1), reporter=reporter
        )
        summary = organizer.run()

        assert summary.cancelled
        assert 1 <= summary.moved < 30
        assert summary.moved == len(seen)
        moved_files = list((self.dest / "Docs").iterdir())
        assert len(moved_files) == summary.moved
        assert len(list(self.source.iterdir())) == 30 - summary.moved
        records = json.loads(summary.manifest_path.read_text(encoding="utf-8"))
        assert len(records) == summary.moved

    def test_missing_source_is_fatal(self):
        with pytest.raises(PathNotFoundError):
            Organizer(OrganizeOptions(self.temp_dir / "missing", self.dest)).run()

    def test_destination_file_is_fatal(self):
        not_a_dir = self._touch(self.temp_dir, "plain.txt")
        with pytest.raises(NotADirectoryPathError):
            Organizer(OrganizeOptions(self.source, not_a_dir)).run()

    def test_worker_count_must_be_positive(self):
        with pytest.raises(FatalConfigError):
            Organizer(OrganizeOptions(self.source, self.dest, workers=0)).run()


class TestResultCollector:
    """Test aggregation of worker results."""

    def test_counts_and_move_log(self):
        collector = ResultCollector()
        collector.add(Result(Path("/s/a.jpg"), Path("/d/Images/a.jpg"), Action.MOVE))
        collector.add(Result(Path("/d/Docs/b.txt"), Path("/d/Docs/b.txt"), Action.SKIP))
        collector.add(Result(Path("/s/c"), None, Action.ERROR, error=ScanError("boom")))

        assert (collector.moved, collector.skipped, collector.failed) == (1, 1, 1)
        assert [m.destination for m in collector.moves] == [Path("/d/Images/a.jpg")]
        assert collector.moves[0].timestamp is not None
        assert str(collector.errors[0]) == "boom"

    def test_simulated_moves_are_not_logged(self):
        collector = ResultCollector(dry_run=True)
        collector.add(Result(Path("/s/a.jpg"), Path("/d/Images/a.jpg"), Action.MOVE, simulated=True))

        assert collector.moved == 1
        assert collector.moves == []

    def test_reporter_errors_do_not_stop_collection(self):
        def broken_reporter(result):
            raise RuntimeError("display failed")

        collector = ResultCollector(reporter=broken_reporter)
        collector.add(Result(Path("/s/a.jpg"), Path("/d/Images/a.jpg"), Action.MOVE))
        collector.add(Result(Path("/s/b.jpg"), Path("/d/Images/b.jpg"), Action.MOVE))

        assert collector.moved == 2
