"""Poll loop driving the fax pipeline.

Each cycle:
- creates any missing spool directory
- checks the job store is reachable
- fetches every 'created' job for this instance's server name
- runs the pipeline over each job (optionally in parallel) and waits for
  all of them
- moves every produced call file into the Asterisk spool, even when a
  fatal error interrupted the batch

Cycles never overlap. Job errors never stop the loop; only a directory that
cannot be created or a job store that cannot be reached does.
"""

from __future__ import annotations

import logging
import os
import signal
import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from astfax.config.models import AstfaxConfig
from astfax.db.models import FaxJob
from astfax.db.store import JobStore
from astfax.exceptions import (
    DirectoryCreationError,
    FatalLoopError,
    RelocationError,
)
from astfax.executor.spool import SpoolDispatcher
from astfax.jobs.pipeline import FaxPipeline, PipelineResult
from astfax.logging import job_context

logger = logging.getLogger(__name__)


@dataclass
class CycleSummary:
    """What happened during one poll cycle."""

    jobs_found: int = 0
    processed: int = 0
    failed: int = 0
    dispatched: int = 0
    relocation_failures: int = 0
    results: list[PipelineResult] = field(default_factory=list)


class PollLoop:
    """Periodically turns pending fax jobs into spooled call files."""

    def __init__(
        self,
        config: AstfaxConfig,
        store: JobStore,
        pipeline: FaxPipeline,
        dispatcher: SpoolDispatcher,
    ) -> None:
        """Initialize the poll loop.

        Raises:
            ValueError: If no server name is configured.
        """
        if not config.poll.server_name:
            raise ValueError("A server name is required to select fax jobs")

        self.config = config
        self.store = store
        self.pipeline = pipeline
        self.dispatcher = dispatcher
        self.server_name = config.poll.server_name

        self._stop = threading.Event()
        self._previous_handlers: dict[int, object] = {}

    @classmethod
    def from_config(cls, config: AstfaxConfig, store: JobStore) -> PollLoop:
        """Create a loop with the standard pipeline and dispatcher."""
        return cls(
            config=config,
            store=store,
            pipeline=FaxPipeline.from_config(config, store),
            dispatcher=SpoolDispatcher(config.spool.outgoing_dir),
        )

    # -------------------------------------------------------------------------
    # Shutdown handling
    # -------------------------------------------------------------------------

    def request_stop(self) -> None:
        """Ask the loop to stop after the current cycle."""
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def _signal_handler(self, signum: int, frame) -> None:
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, stopping after the current cycle", sig_name)
        self.request_stop()

    def _install_signal_handlers(self) -> None:
        # signal.signal only works from the main thread
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in (signal.SIGTERM, signal.SIGINT):
            self._previous_handlers[signum] = signal.signal(
                signum, self._signal_handler
            )

    def _restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    # -------------------------------------------------------------------------
    # Cycle
    # -------------------------------------------------------------------------

    def host_allowed(self) -> bool:
        """Return True unless a hostname filter excludes this machine."""
        pattern = self.config.poll.hostname_filter
        if not pattern:
            return True
        return pattern in socket.gethostname()

    def ensure_directories(self) -> None:
        """Create the spool directories if they don't exist.

        Raises:
            DirectoryCreationError: If a directory cannot be created.
        """
        for directory in self.config.spool.directories():
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryCreationError(directory, str(e)) from e

    def run_cycle(self) -> CycleSummary:
        """Run one poll-process-dispatch cycle.

        Call files produced before a fatal error are still spooled, then
        the error is re-raised.

        Raises:
            DirectoryCreationError: If a spool directory cannot be created.
            StoreConnectivityError: If the job store is unreachable.
        """
        summary = CycleSummary()

        self.ensure_directories()
        self.store.ping()

        logger.debug("Checking pending faxes for %s", self.server_name)
        jobs = self.store.list_eligible_jobs(self.server_name)
        summary.jobs_found = len(jobs)
        if not jobs:
            return summary

        logger.info("Found %d pending fax(es)", len(jobs))
        summary.results, fatal = self._process_batch(jobs)

        for result in summary.results:
            if not result.success:
                summary.failed += 1
                continue
            summary.processed += 1
            if self._dispatch(result):
                summary.dispatched += 1
            else:
                summary.relocation_failures += 1

        logger.info(
            "Cycle finished: %d processed, %d failed, %d dispatched",
            summary.processed,
            summary.failed,
            summary.dispatched,
        )
        if fatal is not None:
            raise fatal
        return summary

    def _process_batch(
        self, jobs: list[FaxJob]
    ) -> tuple[list[PipelineResult], FatalLoopError | None]:
        """Run the pipeline over the batch and wait for all outcomes.

        Returns:
            Results of the jobs that finished, and the first fatal error.
            Sequential processing stops at a fatal error; jobs already
            running on the pool are allowed to finish.
        """
        results: list[PipelineResult] = []
        max_workers = min(self.config.poll.max_workers, len(jobs))
        if max_workers <= 1:
            for job in jobs:
                try:
                    results.append(self.pipeline.process(job))
                except FatalLoopError as e:
                    return results, e
            return results, None

        with ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="fax"
        ) as pool:
            futures = [pool.submit(self.pipeline.process, job) for job in jobs]

        fatal: FatalLoopError | None = None
        for future in futures:
            error = future.exception()
            if error is None:
                results.append(future.result())
            elif isinstance(error, FatalLoopError):
                fatal = fatal or error
            else:
                raise error
        return results, fatal

    def _dispatch(self, result: PipelineResult) -> bool:
        if result.call_file is None:
            return False
        with job_context(result.job_id):
            try:
                self.dispatcher.dispatch(result.call_file)
            except RelocationError as e:
                e.job_id = result.job_id
                # The job is already 'processed'; the call file needs a human
                logger.error(
                    "Fax %s is processed but its call file was not spooled: %s",
                    result.job_id,
                    e,
                )
                return False
        return True

    # -------------------------------------------------------------------------
    # Main loop
    # -------------------------------------------------------------------------

    def run(self, max_cycles: int | None = None) -> int:
        """Poll until stopped.

        Args:
            max_cycles: Stop after this many cycles (None = run forever).

        Returns:
            Number of cycles completed.

        Raises:
            DirectoryCreationError: If the spool directories can't be created.
            StoreConnectivityError: If the job store becomes unreachable.
        """
        if not self.host_allowed():
            logger.warning(
                "Hostname %s does not match filter %r, not polling",
                socket.gethostname(),
                self.config.poll.hostname_filter,
            )
            return 0

        self.ensure_directories()

        interval = self.config.poll.interval_seconds
        logger.info(
            "Starting fax poll loop: PID=%d, server_name=%s, interval=%ss, "
            "max_workers=%d",
            os.getpid(),
            self.server_name,
            interval,
            self.config.poll.max_workers,
        )

        cycles = 0
        start = time.monotonic()
        self._install_signal_handlers()
        try:
            while not self._stop.is_set():
                self.run_cycle()
                cycles += 1
                if max_cycles is not None and cycles >= max_cycles:
                    break
                self._stop.wait(interval)
        finally:
            self._restore_signal_handlers()

        logger.info(
            "Poll loop stopped: %d cycle(s) in %.1f seconds",
            cycles,
            time.monotonic() - start,
        )
        return cycles
