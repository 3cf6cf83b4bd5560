"""Subprocess runner with chunked output streaming.

Launches the analysis script from an argument vector (never through a
shell) and exposes its merged stdout/stderr as a lazy sequence of byte
chunks.
"""

from __future__ import annotations

import os
import signal
import subprocess
import threading
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from yugaweb.core.logging import get_logger
from yugaweb.core.models import ScanRequest

LOGGER = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 4096

# Seconds to wait after SIGTERM before escalating to SIGKILL
TERMINATE_GRACE = 5.0


class LaunchError(RuntimeError):
    """The external tool could not be started."""

    def __init__(self, command: Sequence[str], reason: str) -> None:
        self.command = list(command)
        self.reason = reason
        super().__init__(f"Failed to launch {self.command[0]}: {reason}")


def build_command(
    executable: str,
    request: ScanRequest,
    output_root: Union[str, Path],
    interpreter: Optional[str] = None,
) -> List[str]:
    """Build the argument vector for one run.

    Positional arguments follow the tool's contract:
    ``[source_url, output_root, revision, subdir_filter]``. Each value is a
    separate element, so nothing a caller sends is ever parsed by a shell.

    Args:
        executable: Path of the analysis script.
        request: Normalized scan parameters.
        output_root: Directory the tool writes its report directory into.
        interpreter: Optional program the script is handed to (e.g. ``bash``).

    Returns:
        Command and arguments, ready for ``subprocess.Popen``.
    """
    cmd: List[str] = []
    if interpreter:
        cmd.append(interpreter)
    cmd.extend([
        executable,
        request.source_url,
        str(output_root),
        request.revision,
        request.subdir_filter,
    ])
    return cmd


class ProcessSession:
    """One running invocation of the external tool.

    Owns the child process and its merged output pipe. ``chunks()`` may be
    iterated once; ``exit_status`` becomes available after the output has
    been drained and the child reaped.
    """

    def __init__(
        self,
        proc: subprocess.Popen,
        command: List[str],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: Optional[float] = None,
    ) -> None:
        self._proc = proc
        self.command = command
        self._chunk_size = chunk_size
        self._timeout = timeout
        self._consumed = False
        self._drained = False
        self._exit_status: Optional[int] = None
        self._timed_out = threading.Event()
        self._timer: Optional[threading.Timer] = None

        if timeout:
            self._timer = threading.Timer(timeout, self._expire)
            self._timer.daemon = True
            self._timer.start()

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def timed_out(self) -> bool:
        return self._timed_out.is_set()

    @property
    def exit_status(self) -> Optional[int]:
        """Exit status, or None until output is drained and the child exited."""
        return self._exit_status

    def chunks(self) -> Iterator[bytes]:
        """Yield output blocks as the child produces them.

        Each read returns as soon as any data is available, up to the
        configured chunk size. Iteration ends when the child closes its
        output; the child is then reaped.

        Raises:
            RuntimeError: If the stream has already been consumed.
        """
        if self._consumed:
            raise RuntimeError("Output stream has already been consumed")
        self._consumed = True
        return self._read_chunks()

    def _read_chunks(self) -> Iterator[bytes]:
        stream = self._proc.stdout
        assert stream is not None
        try:
            while True:
                chunk = stream.read(self._chunk_size)
                if not chunk:
                    break
                LOGGER.debug(f"Read {len(chunk)} bytes from pid {self.pid}")
                yield chunk
            self._drained = True
            self.wait()
        finally:
            stream.close()

    def wait(self) -> int:
        """Reap the child and record its exit status.

        Raises:
            RuntimeError: If called before the output stream was drained.
        """
        if not self._drained:
            raise RuntimeError("Exit status is only available after output is drained")
        if self._exit_status is None:
            self._exit_status = self._proc.wait()
            self._cancel_timer()
            LOGGER.info(f"pid {self.pid} exited with status {self._exit_status}")
        return self._exit_status

    def terminate(self) -> None:
        """Stop the child and everything it spawned.

        The whole process group is signalled even when the child itself has
        already exited, since a process it started may still hold the
        output pipe.
        """
        self._cancel_timer()
        leader_running = self._proc.poll() is None
        if leader_running or not self._drained:
            LOGGER.info(f"Terminating process group {self.pid}")
        self._signal(signal.SIGTERM)
        if not leader_running:
            # Nothing left to wait on; leftovers get no grace period
            self._signal(signal.SIGKILL)
            return
        try:
            self._proc.wait(timeout=TERMINATE_GRACE)
        except subprocess.TimeoutExpired:
            LOGGER.warning(f"pid {self.pid} ignored SIGTERM, killing")
        self._signal(signal.SIGKILL)
        self._proc.wait()

    def close(self) -> None:
        """Terminate if needed and release the output pipe."""
        self.terminate()
        if self._proc.stdout is not None:
            self._proc.stdout.close()

    def _expire(self) -> None:
        # The run already finished; wait() just has not cancelled us yet
        if self._drained and self._proc.poll() is not None:
            return
        LOGGER.warning(f"pid {self.pid} exceeded {self._timeout}s, terminating")
        self._timed_out.set()
        self.terminate()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()

    def _signal(self, sig: int) -> None:
        # The child leads its own session, so the group id equals its pid.
        try:
            os.killpg(self._proc.pid, sig)
        except ProcessLookupError:
            pass
        except OSError as e:
            LOGGER.debug(f"killpg failed for pid {self.pid}: {e}")
            self._proc.send_signal(sig)


def launch(
    cmd: List[str],
    cwd: Union[str, Path],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    timeout: Optional[float] = None,
) -> ProcessSession:
    """Start the external tool and return its session.

    stderr is merged into stdout so the caller sees the tool's own
    interleaving. The child gets a new session so it can be stopped
    together with any processes it starts.

    Args:
        cmd: Argument vector from ``build_command``.
        cwd: Working directory for the child.
        chunk_size: Maximum bytes per yielded chunk.
        timeout: Maximum run duration in seconds; None or 0 disables it.

    Returns:
        ProcessSession for the started child.

    Raises:
        LaunchError: If the executable is missing or cannot be executed.
    """
    LOGGER.info(f"Launching: {cmd}")
    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=str(cwd),
            bufsize=0,
            start_new_session=True,
        )
    except OSError as e:
        LOGGER.error(f"Could not start {cmd[0]}: {e}")
        raise LaunchError(cmd, e.strerror or str(e)) from e

    return ProcessSession(proc, cmd, chunk_size=chunk_size, timeout=timeout or None)
