"""Per-job fax pipeline.

Turns one 'created' fax job into a chowned call file in the staging area:

    1. mark the job 'processing'
    2. write the PDF to the staging area
    3. convert it to TIFF
    4. write the call file
    5. chown the call file to the Asterisk user
    6. mark the job 'processed'
    7. remove the PDF

The call file is returned to the caller for the spool handoff. Any job
error stops the run where it happened; the job keeps the last state it
reached and nothing is retried. Working files are released on every exit
path, and a failed release is only logged.
"""

from __future__ import annotations

import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path

from astfax.config.models import AstfaxConfig
from astfax.db.models import FaxJob, FaxState
from astfax.db.store import JobStore
from astfax.exceptions import (
    DocumentWriteError,
    FatalLoopError,
    FaxJobError,
    UnsupportedDocumentType,
)
from astfax.executor.callfile import CallFileBuilder
from astfax.executor.ghostscript import GhostscriptConverter, is_supported_document
from astfax.executor.ownership import OwnershipSetter
from astfax.logging import job_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one pipeline run."""

    job_id: int
    success: bool
    state: FaxState
    """Last state the job reached in the store."""

    call_file: Path | None = None
    """Call file awaiting the spool handoff (success only)."""

    error: Exception | None = None
    duration_seconds: float = 0.0


@dataclass
class _WorkFiles:
    """Files a single pipeline run creates in the staging area."""

    pdf: Path | None = None
    tiff: Path | None = None
    call_file: Path | None = None
    completed: bool = False


class FaxPipeline:
    """Runs the processing steps for one fax job at a time.

    Holds no per-job state, so one instance can process several jobs
    concurrently from different threads.
    """

    def __init__(
        self,
        config: AstfaxConfig,
        store: JobStore,
        converter: GhostscriptConverter,
        builder: CallFileBuilder,
        ownership: OwnershipSetter,
    ) -> None:
        self.config = config
        self.store = store
        self.converter = converter
        self.builder = builder
        self.ownership = ownership

    @classmethod
    def from_config(cls, config: AstfaxConfig, store: JobStore) -> FaxPipeline:
        """Create a pipeline with the standard collaborators."""
        return cls(
            config=config,
            store=store,
            converter=GhostscriptConverter(config.ghostscript),
            builder=CallFileBuilder(store),
            ownership=OwnershipSetter(config.ownership),
        )

    def process(self, job: FaxJob) -> PipelineResult:
        """Process one job.

        Job errors are logged and reported in the result, never raised.

        Raises:
            FatalLoopError: If the job store became unreachable.
        """
        with job_context(job.id, job.filename):
            start = time.monotonic()
            work = _WorkFiles()
            logger.info("Processing fax %s to %s", job.id, job.to)

            try:
                with ExitStack() as stack:
                    stack.callback(self._release, work)
                    call_file = self._run_steps(job, work)
            except FatalLoopError:
                raise
            except FaxJobError as e:
                if e.job_id is None:
                    e.job_id = job.id
                logger.error(
                    "Fax %s failed in state %s: %s", job.id, job.state.value, e
                )
                return self._result(job, start, error=e)
            except Exception as e:
                logger.exception("Fax %s failed with unexpected exception", job.id)
                return self._result(job, start, error=e)

            logger.info("Fax %s processed, call file %s", job.id, call_file)
            return self._result(job, start, call_file=call_file)

    def _run_steps(self, job: FaxJob, work: _WorkFiles) -> Path:
        self._transition(job, FaxState.PROCESSING)
        work.pdf = self._materialize(job)
        work.tiff = self.converter.convert(work.pdf)
        work.call_file = self.builder.build(
            job.outgoing_number_id, job.id, work.tiff, job.to
        )
        self.ownership.apply(work.call_file)
        self._transition(job, FaxState.PROCESSED)
        work.completed = True
        return work.call_file

    def _transition(self, job: FaxJob, target: FaxState) -> None:
        logger.info("Updating fax state %s -> %s", job.state.value, target.value)
        self.store.update_job_state(job.id, target)
        job.state = target

    def working_pdf_path(self, job: FaxJob) -> Path:
        """Return where a job's PDF is written.

        The job id prefix keeps jobs with the same filename apart, and only
        the final path component of the stored filename is used.
        """
        name = Path(job.filename).name
        return self.config.spool.fax_out_dir / f"{job.id}_{name}"

    def _materialize(self, job: FaxJob) -> Path:
        name = Path(job.filename).name
        if not name or not is_supported_document(Path(name)):
            raise UnsupportedDocumentType(job.filename, job_id=job.id)

        destination = self.working_pdf_path(job)
        logger.info("Writing PDF file from data: %s", destination)
        try:
            destination.write_bytes(job.fax_data)
        except OSError as e:
            raise DocumentWriteError(destination, str(e), job_id=job.id) from e
        return destination

    def _release(self, work: _WorkFiles) -> None:
        """Remove working files: always the PDF, everything on failure."""
        doomed = [work.pdf]
        if not work.completed:
            doomed.extend([work.tiff, work.call_file])

        for path in doomed:
            if path is None:
                continue
            try:
                if path.exists():
                    logger.info("Removing %s", path)
                    path.unlink()
            except OSError as e:
                logger.warning("Could not remove %s: %s", path, e)

    @staticmethod
    def _result(
        job: FaxJob,
        start: float,
        call_file: Path | None = None,
        error: Exception | None = None,
    ) -> PipelineResult:
        return PipelineResult(
            job_id=job.id,
            success=error is None,
            state=job.state,
            call_file=call_file,
            error=error,
            duration_seconds=time.monotonic() - start,
        )
