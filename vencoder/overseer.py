"""
vencoder.overseer
~~~~~~~~~~~~~~~~~
JobOverseer runs a batch of prepared jobs one after the other and keeps
the tallies for that batch.

Exit codes: 0 is success, 255 is a cancellation (ffmpeg's own code when
asked to quit), anything else is a failure. A failed job's stderr is
written to a temporary log file that is then opened for the user; it
never stops the rest of the batch.
"""

from __future__ import annotations

import logging
import tempfile
from collections import deque
from pathlib import Path
from typing import Callable

from PySide6.QtCore import QObject, Signal

from vencoder.models import BatchSummary, QueueItem
from vencoder.oshelper import Notifier
from vencoder.worker import CANCELLED_EXIT_CODE, TranscodeWorker

logger = logging.getLogger(__name__)


class JobOverseer(QObject):
    """
    Signals
    -------
    job_started(str)             job id
    job_progress(str, float)     job id, percentage
    job_finished(str, int)       job id, exit code
    batch_finished(object)       the BatchSummary of the batch
    """

    job_started    = Signal(str)
    job_progress   = Signal(str, float)
    job_finished   = Signal(str, int)
    batch_finished = Signal(object)

    def __init__(
        self,
        notifier: Notifier,
        worker_factory: Callable[[QueueItem], TranscodeWorker] = TranscodeWorker,
        parent=None,
    ):
        super().__init__(parent)
        self._notifier = notifier
        self._worker_factory = worker_factory
        self._pending: deque[QueueItem] = deque()
        self._current: TranscodeWorker | None = None
        self._summary: BatchSummary | None = None

    # ── Batch management ──────────────────────────────────────────────────────

    @property
    def summary(self) -> BatchSummary | None:
        """Tallies of the running batch, or of the last one."""
        return self._summary

    @property
    def is_running(self) -> bool:
        return self._summary is not None and not self._summary.settled

    def start_batch(self, items: list[QueueItem]) -> BatchSummary:
        if self.is_running:
            raise RuntimeError("A batch is already running")

        self._summary = BatchSummary(total=len(items))
        self._pending = deque(items)
        logger.info("Starting batch of %d job(s)", len(items))

        if not items:
            self._finish_batch()
        else:
            self._start_next()
        return self._summary

    def cancel_all(self) -> None:
        """Cancel the running job and drop the ones still waiting."""
        if not self.is_running:
            return
        dropped = len(self._pending)
        self._pending.clear()
        self._summary.cancelled += dropped
        logger.info("Cancelling batch, %d pending job(s) dropped", dropped)

        if self._current is not None:
            self._current.cancel()
        elif self._summary.settled:
            self._finish_batch()

    # ── Worker lifecycle ──────────────────────────────────────────────────────

    def _start_next(self) -> None:
        item = self._pending.popleft()
        logger.info("Starting job %s: %s", item.job_id, Path(item.input_file).name)
        logger.debug("Command: %s", item.command)

        worker = self._worker_factory(item)
        worker.progress_changed.connect(self.job_progress)
        worker.process_exited.connect(self._on_process_exited)
        self._current = worker

        self.job_started.emit(item.job_id)
        worker.start()

    def _on_process_exited(self, job_id: str, returncode: int) -> None:
        worker = self._current
        self._current = None
        summary = self._summary

        if returncode == 0:
            summary.succeeded += 1
            logger.info("Job %s finished", job_id)
        elif returncode == CANCELLED_EXIT_CODE:
            summary.cancelled += 1
            logger.info("Job %s cancelled", job_id)
        else:
            summary.failed += 1
            logger.warning("Job %s failed with exit code %d", job_id, returncode)
            lines = worker.stderr_lines if worker is not None else []
            self._report_failure(job_id, returncode, lines)

        if worker is not None:
            worker.wait()
            worker.deleteLater()

        self.job_finished.emit(job_id, returncode)

        if self._pending:
            self._start_next()
        elif summary.settled:
            self._finish_batch()

    def _report_failure(self, job_id: str, returncode: int, stderr_lines: list[str]) -> None:
        log_file = write_failure_log(job_id, returncode, stderr_lines)
        self._summary.log_files.append(log_file)
        logger.info("ffmpeg output of job %s written to %s", job_id, log_file)
        self._notifier.open_path(log_file)
        self._notifier.notify(
            "Conversion failed",
            f"ffmpeg exited with code {returncode}. The log has been opened.",
        )

    def _finish_batch(self) -> None:
        summary = self._summary
        logger.info(
            "Batch done: %d succeeded, %d failed, %d cancelled",
            summary.succeeded, summary.failed, summary.cancelled,
        )
        if summary.total:
            self._notifier.notify("Conversion finished", summary.message())
        self.batch_finished.emit(summary)


def write_failure_log(job_id: str, returncode: int, stderr_lines: list[str]) -> Path:
    """Write ffmpeg's stderr to a fresh temporary file and return its path."""
    with tempfile.NamedTemporaryFile(
        "w",
        prefix=f"vencoder-{job_id}-",
        suffix=".log",
        delete=False,
        encoding="utf-8",
    ) as fh:
        fh.write(f"ffmpeg exited with code {returncode}\n\n")
        fh.write("\n".join(stderr_lines))
        fh.write("\n")
    return Path(fh.name)
