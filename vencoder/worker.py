"""
vencoder.worker
~~~~~~~~~~~~~~~
QThread that runs one prepared ffmpeg command and reports on it.

Signals
-------
progress_changed(str, float)   job id, 0.0 – 100.0 as ffmpeg advances
process_exited(str, int)       job id, exit code (255 after a cancel)
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
import threading

from PySide6.QtCore import QThread, Signal

from vencoder.models import JobStatus, ProgressRecord, QueueItem
from vencoder.progress import update_record

logger = logging.getLogger(__name__)

# Exit code ffmpeg uses when it was asked to stop
CANCELLED_EXIT_CODE = 255
# Reported when the shell itself could not be started
SPAWN_FAILED_EXIT_CODE = 127


class TranscodeWorker(QThread):

    progress_changed = Signal(str, float)
    process_exited   = Signal(str, int)

    def __init__(self, item: QueueItem, parent=None):
        super().__init__(parent)
        self._item = item
        self._process: subprocess.Popen | None = None
        self._lock = threading.Lock()
        self._cancel_requested = False
        self._stderr_lines: list[str] = []
        self.record = ProgressRecord(item.job_id, item.input_file, item.length_us)

    @property
    def job_id(self) -> str:
        return self._item.job_id

    @property
    def stderr_lines(self) -> list[str]:
        return list(self._stderr_lines)

    # ── QThread entry point ───────────────────────────────────────────────────

    def run(self):
        logger.debug("Worker started for job %s", self.job_id)
        with self._lock:
            if self._cancel_requested:
                logger.info("Job %s cancelled before it started", self.job_id)
                self._finish(CANCELLED_EXIT_CODE)
                return
            try:
                self._process = self._spawn(self._item.command)
            except OSError as exc:
                logger.error("Could not start job %s: %s", self.job_id, exc)
                self._stderr_lines.append(str(exc))
                self._finish(SPAWN_FAILED_EXIT_CODE)
                return

        self.record.status = JobStatus.RUNNING
        logger.debug("Job %s running as PID %d", self.job_id, self._process.pid)
        self._finish(self._pump(self._process))

    # ── Cancel ────────────────────────────────────────────────────────────────

    def cancel(self):
        """Ask the running ffmpeg to stop. Sends exactly one request."""
        with self._lock:
            if self._cancel_requested:
                return
            self._cancel_requested = True
            process = self._process
            if process is None or process.poll() is not None:
                logger.debug("cancel(): job %s has no running process", self.job_id)
                return
            logger.info("Cancelling job %s (PID %d)", self.job_id, process.pid)
            if sys.platform == "win32":
                process.terminate()
            else:
                try:
                    os.killpg(os.getpgid(process.pid), signal.SIGTERM)
                except ProcessLookupError:
                    logger.debug("Process group of job %s already gone", self.job_id)

    # ── Internal ──────────────────────────────────────────────────────────────

    def _spawn(self, command: str) -> subprocess.Popen:
        # the command may chain two ffmpeg runs with &&, so it needs a shell
        return subprocess.Popen(
            command,
            shell=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            start_new_session=sys.platform != "win32",
        )

    def _pump(self, process: subprocess.Popen) -> int:
        # ffmpeg writes its log to stderr. If only stdout is read the stderr
        # pipe buffer fills up, ffmpeg blocks on it and stdout stalls.
        def _drain_stderr():
            for line in process.stderr:
                stripped = line.rstrip()
                if stripped:
                    self._stderr_lines.append(stripped)

        stderr_thread = threading.Thread(target=_drain_stderr, daemon=True)
        stderr_thread.start()

        block: list[str] = []
        for line in process.stdout:
            block.append(line)
            if line.startswith("progress="):
                percentage = update_record(self.record, "".join(block))
                self.progress_changed.emit(self.job_id, percentage)
                block = []

        stderr_thread.join()
        return process.wait()

    def _finish(self, returncode: int) -> None:
        # a signal death shows up as a negative code
        if self._cancel_requested and returncode < 0:
            returncode = CANCELLED_EXIT_CODE

        if returncode == 0:
            self.record.status = JobStatus.DONE
        elif returncode == CANCELLED_EXIT_CODE:
            self.record.status = JobStatus.CANCELLED
        else:
            self.record.status = JobStatus.ERROR

        logger.debug("Job %s exited with code %d", self.job_id, returncode)
        self.process_exited.emit(self.job_id, returncode)
