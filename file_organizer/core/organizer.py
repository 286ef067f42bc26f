"""Concurrent organize pipeline for the File Organizer.

One producer thread scans the source tree into a bounded job queue, a pool
of worker threads categorizes and moves files into a bounded result queue,
and the calling thread collects results until a watcher thread signals that
the producer and every worker have finished.
"""

import logging
import queue
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from .error_handler import ErrorHandler
from .exceptions import (
    ManifestWriteError, MoveError, NotADirectoryPathError, FatalConfigError, PathNotFoundError
)
from .manifest import write_manifest
from .models import (
    Action, CategoryTable, DEFAULT_CATEGORY_TABLE, Job, MoveRecord,
    OrganizeOptions, Result, RunSummary
)
from .mover import Categorizer
from .scanner import PathScanner


Reporter = Callable[[Result], None]

_POLL_INTERVAL = 0.1
_NO_MORE_JOBS = object()
_ALL_DONE = object()


class ResultCollector:
    """Single consumer tallying results and keeping the ordered move log."""

    def __init__(self, dry_run: bool = False, reporter: Optional[Reporter] = None):
        self.dry_run = dry_run
        self.reporter = reporter
        self.moved = 0
        self.skipped = 0
        self.failed = 0
        self.moves: List[MoveRecord] = []
        self.errors: List[Exception] = []
        self.logger = logging.getLogger(__name__)

    def add(self, result: Result):
        """Record one result."""
        if result.action is Action.ERROR:
            self.failed += 1
            self.errors.append(result.error)
            self.logger.warning(f"Failed {result.source} -> {result.destination}: {result.message}")
        elif result.action is Action.SKIP:
            self.skipped += 1
        elif result.action is Action.MOVE:
            self.moved += 1
            if not result.simulated:
                self.moves.append(MoveRecord(result.source, result.destination, datetime.now().astimezone()))

        if self.reporter:
            try:
                self.reporter(result)
            except Exception as e:
                self.logger.warning(f"Reporter error: {e}")

    def drain(self, results: "queue.Queue"):
        """Consume results until the completion sentinel arrives."""
        while True:
            try:
                item = results.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if item is _ALL_DONE:
                return
            self.add(item)


class Organizer:
    """Runs the scanner, the worker pool and the collector for one invocation."""

    def __init__(
        self,
        options: OrganizeOptions,
        table: CategoryTable = DEFAULT_CATEGORY_TABLE,
        reporter: Optional[Reporter] = None,
    ):
        """
        Initialize the organizer.

        Args:
            options: Run options
            table: Shared read-only category table
            reporter: Optional callback called with every collected Result
        """
        self.options = options
        self.table = table
        self.reporter = reporter
        self.error_handler = ErrorHandler()
        self.logger = logging.getLogger(__name__)
        self._cancel = threading.Event()
        self._scanner: Optional[PathScanner] = None

    def run(self) -> RunSummary:
        """
        Organize the source tree.

        Returns:
            RunSummary with counts, the move log and the manifest location

        Raises:
            FatalConfigError: If the source or destination is not a usable directory
        """
        options = self.options
        self._validate_directory(options.source, "Source")
        self._validate_directory(options.destination, "Destination")
        if options.workers < 1:
            raise FatalConfigError(f"Worker count must be at least 1, got {options.workers}")

        # Manifests record absolute paths
        source = options.source.resolve()
        destination = options.destination.resolve()

        self._cancel.clear()
        start_time = time.monotonic()
        self.logger.info(
            f"Organizing {source} into {destination} "
            f"(workers={options.workers}, dry_run={options.dry_run})"
        )

        jobs = queue.Queue(maxsize=options.queue_size)
        results = queue.Queue(maxsize=options.queue_size)
        categorizer = Categorizer(destination, self.table, options.dry_run, self.error_handler)
        self._scanner = PathScanner(
            source, destination, self.table,
            include_hidden=options.include_hidden, error_handler=self.error_handler,
        )

        workers = [
            threading.Thread(
                target=self._work, args=(categorizer, jobs, results),
                name=f"organizer-worker-{i}", daemon=True,
            )
            for i in range(options.workers)
        ]
        producer = threading.Thread(
            target=self._produce, args=(jobs, results), name="organizer-scanner", daemon=True
        )
        watcher = threading.Thread(
            target=self._watch, args=(producer, workers, results), name="organizer-watcher", daemon=True
        )
        for worker in workers:
            worker.start()
        producer.start()
        watcher.start()

        collector = ResultCollector(options.dry_run, self.reporter)
        try:
            collector.drain(results)
        except KeyboardInterrupt:
            self.logger.info("Interrupted, finishing jobs in progress")
            self.cancel()
            collector.drain(results)
        watcher.join()

        summary = RunSummary(
            moved=collector.moved,
            skipped=collector.skipped,
            failed=collector.failed,
            duration=time.monotonic() - start_time,
            dry_run=options.dry_run,
            cancelled=self._cancel.is_set(),
            moves=collector.moves,
            errors=collector.errors,
        )

        if not options.dry_run and collector.moves:
            try:
                summary.manifest_path = write_manifest(destination, collector.moves)
            except ManifestWriteError as e:
                summary.manifest_error = str(e)
                self.logger.warning(f"Moves succeeded but the manifest was not saved: {e}")

        self.error_handler.log_error_summary(collector.errors, "organize run")
        self.logger.info(
            f"Done in {summary.duration:.3f}s | moved={summary.moved} "
            f"skipped={summary.skipped} failed={summary.failed}"
        )
        return summary

    def cancel(self):
        """Request cooperative early termination of the current run."""
        self._cancel.set()
        if self._scanner is not None:
            self._scanner.cancel()
        self.logger.info("Organize cancellation requested")

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def _produce(self, jobs: "queue.Queue", results: "queue.Queue"):
        try:
            for item in self._scanner.scan():
                target = jobs if isinstance(item, Job) else results
                if not self._put(target, item):
                    return
        except Exception as e:
            self.logger.error(f"Scanner stopped unexpectedly: {e}", exc_info=True)
        finally:
            for _ in range(self.options.workers):
                if not self._put(jobs, _NO_MORE_JOBS):
                    break

    def _work(self, categorizer: Categorizer, jobs: "queue.Queue", results: "queue.Queue"):
        while not self._cancel.is_set():
            try:
                job = jobs.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                continue
            if job is _NO_MORE_JOBS:
                return
            try:
                result = categorizer.handle(job)
            except Exception as e:
                self.logger.error(f"Worker failed on {job.path}: {e}", exc_info=True)
                wrapped = self.error_handler.wrap_os_error(e, MoveError, job.path, "unexpected error")
                result = Result(job.path, None, Action.ERROR, error=wrapped)
            # Results are always drained by the collector, so this put cannot deadlock
            results.put(result)

    def _watch(self, producer: threading.Thread, workers: List[threading.Thread], results: "queue.Queue"):
        producer.join()
        for worker in workers:
            worker.join()
        results.put(_ALL_DONE)

    def _put(self, target: "queue.Queue", item) -> bool:
        """Blocking put that gives up once cancellation is requested."""
        while not self._cancel.is_set():
            try:
                target.put(item, timeout=_POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def _validate_directory(self, path: Path, label: str):
        path = Path(path)
        if not path.exists():
            raise PathNotFoundError(f"{label} directory does not exist: {path}")
        if not path.is_dir():
            raise NotADirectoryPathError(f"{label} path is not a directory: {path}")
