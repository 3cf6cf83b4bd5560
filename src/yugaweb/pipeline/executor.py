"""Request handler orchestrating one scan run.

Stages:
1. Normalize the raw request parameters
2. Reset the report directory
3. Launch the analysis script
4. Stream its output
5. List the reports it wrote

Stages 2-5 run while holding the gate for the report directory, so two
requests never share it.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, Iterator, Optional

from yugaweb.config.models import LauncherConfig
from yugaweb.core.logging import get_logger
from yugaweb.core.models import RunState, ScanOutcome, ScanRequest
from yugaweb.core.streaming import ChunkSink, forward_chunks
from yugaweb.core.subprocess_runner import ProcessSession, build_command, launch
from yugaweb.pipeline.lister import list_reports
from yugaweb.pipeline.normalizer import normalize_request
from yugaweb.pipeline.reconciler import reset_report_directory

LOGGER = get_logger(__name__)

OUTPUT_OPEN = b"<pre>"
OUTPUT_CLOSE = b"</pre>"
REPORTS_SENTINEL = b"\n__reports__\n"


class ScanBusyError(RuntimeError):
    """Another scan holds the report directory."""

    def __init__(self, report_dir: Path) -> None:
        self.report_dir = report_dir
        super().__init__("scan already in progress")


class ScanGate:
    """Mutual exclusion keyed on the report directory path."""

    def __init__(self) -> None:
        self._registry_lock = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, report_dir: Path) -> threading.Lock:
        key = str(report_dir.resolve())
        with self._registry_lock:
            return self._locks.setdefault(key, threading.Lock())

    def acquire(self, report_dir: Path, wait: float = 0) -> threading.Lock:
        """Acquire the lock for ``report_dir``.

        Args:
            report_dir: Directory being claimed.
            wait: Seconds to wait for a running scan to finish.

        Returns:
            The held lock; the caller releases it.

        Raises:
            ScanBusyError: If the lock is still held after ``wait`` seconds.
        """
        lock = self._lock_for(report_dir)
        acquired = lock.acquire(timeout=wait) if wait > 0 else lock.acquire(blocking=False)
        if not acquired:
            LOGGER.warning(f"Rejected scan: {report_dir} is in use")
            raise ScanBusyError(report_dir)
        return lock


# Shared by every handler in the process
DEFAULT_GATE = ScanGate()


class ScanRun:
    """One request's run through the pipeline.

    ``start()`` normalizes, claims the gate, resets and launches. ``body()``
    then yields the framed response. ``close()`` stops the child if it is
    still running and releases the gate; it is safe to call repeatedly and
    is called when the body finishes or is abandoned.
    """

    def __init__(self, config: LauncherConfig, gate: ScanGate) -> None:
        self._config = config
        self._gate = gate
        self._session: Optional[ProcessSession] = None
        self._lock: Optional[threading.Lock] = None
        self._close_guard = threading.Lock()
        self._closed = False
        self.state = RunState.IDLE
        self.outcome: Optional[ScanOutcome] = None

    @property
    def session(self) -> Optional[ProcessSession]:
        return self._session

    def start(
        self,
        url: Optional[str],
        revision: Optional[str] = None,
        subdir: Optional[str] = None,
    ) -> None:
        """Normalize, reset and launch.

        A failed reset is logged and the run proceeds.

        Raises:
            ScanBusyError: If another scan holds the report directory.
            LaunchError: If the analysis script cannot be started.
        """
        self.state = RunState.NORMALIZING
        request = normalize_request(url, revision, subdir)
        self.outcome = ScanOutcome(request=request)
        report_dir = self._config.report_dir

        try:
            self._lock = self._gate.acquire(report_dir, wait=self._config.server.busy_wait)

            self.state = RunState.RESETTING
            self.outcome.reset_ok = reset_report_directory(report_dir)
            if not self.outcome.reset_ok:
                LOGGER.warning(f"Continuing with stale report directory {report_dir}")

            self.state = RunState.RUNNING
            tool = self._config.tool
            cmd = build_command(
                tool.executable,
                request,
                self._config.reports.output_root,
                interpreter=tool.interpreter,
            )
            self._session = launch(
                cmd,
                cwd=tool.working_dir,
                chunk_size=tool.chunk_size,
                timeout=tool.timeout,
            )
        except BaseException:
            self.state = RunState.FAILED
            self._release()
            raise

        LOGGER.info(f"Scan started for {request.source_url!r} at {request.revision}")

    def body(self) -> Iterator[bytes]:
        """Yield the response: framed tool output, then the report list."""
        if self._session is None or self.outcome is None:
            raise RuntimeError("Scan has not been started")
        try:
            self.state = RunState.STREAMING
            yield OUTPUT_OPEN
            yield from self._session.chunks()
            self.outcome.exit_status = self._session.exit_status
            self.outcome.timed_out = self._session.timed_out
            yield self._status_line()
            yield OUTPUT_CLOSE

            self.state = RunState.LISTING
            yield REPORTS_SENTINEL
            self.outcome.reports = list_reports(self._config.report_dir)
            for report in self.outcome.reports:
                yield f"{report.display_path}\n".encode("utf-8")
            self.state = RunState.DONE
        finally:
            self.close()

    def stream_to(self, sink: ChunkSink) -> ScanOutcome:
        """Forward the whole body to ``sink`` and return the outcome."""
        forward_chunks(self.body(), sink)
        assert self.outcome is not None
        return self.outcome

    def close(self) -> None:
        with self._close_guard:
            if self._closed:
                return
            self._closed = True
            if self.state != RunState.DONE:
                LOGGER.warning(f"Scan abandoned while {self.state.value}, stopping tool")
                self.state = RunState.FAILED
            if self._session is not None:
                self._session.close()
            self._release()

    def _release(self) -> None:
        if self._lock is not None:
            self._lock.release()
            self._lock = None

    def _status_line(self) -> bytes:
        assert self.outcome is not None
        if self.outcome.timed_out:
            line = f"\n[timed out after {self._config.tool.timeout:g} seconds]\n"
        else:
            line = f"\n[exit status: {self.outcome.exit_status}]\n"
        return line.encode("utf-8")


class RequestHandler:
    """Composes normalization, reset, launch, streaming and listing."""

    def __init__(self, config: LauncherConfig, gate: Optional[ScanGate] = None) -> None:
        """Initialize the handler.

        Args:
            config: Launcher configuration.
            gate: Mutual exclusion registry; defaults to the process-wide gate.
        """
        self._config = config
        self._gate = gate or DEFAULT_GATE

    @property
    def config(self) -> LauncherConfig:
        return self._config

    def start(
        self,
        url: Optional[str],
        revision: Optional[str] = None,
        subdir: Optional[str] = None,
    ) -> ScanRun:
        """Start a run and return it ready to stream.

        Nothing has been sent to the caller when this raises.

        Raises:
            ScanBusyError: If another scan holds the report directory.
            LaunchError: If the analysis script cannot be started.
        """
        run = ScanRun(self._config, self._gate)
        run.start(url, revision, subdir)
        return run

    def run(
        self,
        sink: ChunkSink,
        url: Optional[str],
        revision: Optional[str] = None,
        subdir: Optional[str] = None,
    ) -> ScanOutcome:
        """Start a run and stream it to ``sink`` until it completes."""
        return self.start(url, revision, subdir).stream_to(sink)
