"""Tests for the request handler pipeline."""

from __future__ import annotations

import dataclasses
import io
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from yugaweb.config.models import LauncherConfig
from yugaweb.core.models import RunState
from yugaweb.core.streaming import StreamSink
from yugaweb.core.subprocess_runner import LaunchError
from yugaweb.pipeline.executor import RequestHandler, ScanBusyError, ScanGate, ScanRun
from yugaweb.pipeline.normalizer import normalize_request
from yugaweb.pipeline.reconciler import reset_report_directory

SLOW_TOOL_SOURCE = """\
import sys, time
print("working", flush=True)
time.sleep(30)
"""


def _with_executable(config: LauncherConfig, executable: Path) -> LauncherConfig:
    tool = dataclasses.replace(config.tool, executable=str(executable))
    return dataclasses.replace(config, tool=tool)


class TestRequestHandler:
    """Tests for RequestHandler with a stand-in analysis script."""

    def test_body_shape(self, launcher_config: LauncherConfig) -> None:
        handler = RequestHandler(launcher_config, gate=ScanGate())

        run = handler.start("https://example.test/repo.git", "", "")
        body = b"".join(run.body()).decode()

        assert body.startswith("<pre>cloning https://example.test/repo.git\n")
        assert "warning: from stderr\n" in body
        assert "[exit status: 0]\n</pre>\n__reports__\n" in body
        reports = body.split("__reports__\n", 1)[1].splitlines()
        assert set(reports) == {"yuga_reports/a.txt", "yuga_reports/b.html"}
        assert run.state is RunState.DONE
        assert run.outcome.success

    def test_tool_receives_defaulted_arguments(
        self, launcher_config: LauncherConfig, output_root: Path
    ) -> None:
        handler = RequestHandler(launcher_config, gate=ScanGate())

        b"".join(handler.start("https://example.test/repo.git", "", "").body())

        argv = json.loads((output_root / "argv.json").read_text())
        assert argv == ["https://example.test/repo.git", str(output_root), "HEAD", "."]

    def test_hostile_values_are_single_arguments(
        self, launcher_config: LauncherConfig, output_root: Path
    ) -> None:
        handler = RequestHandler(launcher_config, gate=ScanGate())

        run = handler.start("https://x.test/r.git;rm${IFS}-rf${IFS}/", "HEAD; id", "`id`")
        b"".join(run.body())

        argv = json.loads((output_root / "argv.json").read_text())
        assert len(argv) == 4
        assert argv[0] == "https://x.test/r.git;rm${IFS}-rf${IFS}/"
        assert argv[2] == "HEAD; id"
        assert argv[3] == "`id`"

    def test_stale_reports_are_removed(
        self, launcher_config: LauncherConfig, output_root: Path
    ) -> None:
        stale = output_root / "yuga_reports"
        stale.mkdir()
        (stale / "old.txt").write_text("old")
        handler = RequestHandler(launcher_config, gate=ScanGate())

        run = handler.start("https://example.test/repo.git")
        b"".join(run.body())

        names = {r.relative_path for r in run.outcome.reports or []}
        assert "old.txt" not in names
        assert not (stale / "old.txt").exists()

    def test_nonzero_exit_still_lists_reports(
        self, launcher_config: LauncherConfig, monkeypatch
    ) -> None:
        monkeypatch.setenv("FAKE_TOOL_EXIT", "2")
        handler = RequestHandler(launcher_config, gate=ScanGate())

        run = handler.start("https://example.test/repo.git")
        body = b"".join(run.body()).decode()

        assert "[exit status: 2]" in body
        assert "yuga_reports/a.txt" in body
        assert run.outcome.exit_status == 2
        assert not run.outcome.success

    def test_reset_failure_is_not_fatal(self, launcher_config: LauncherConfig) -> None:
        handler = RequestHandler(launcher_config, gate=ScanGate())

        with patch(
            "yugaweb.pipeline.executor.reset_report_directory",
            return_value=False,
        ):
            run = handler.start("https://example.test/repo.git")
        b"".join(run.body())

        assert run.outcome.reset_ok is False
        assert run.outcome.exit_status == 0

    def test_launch_failure_releases_gate(
        self, launcher_config: LauncherConfig, tmp_path: Path
    ) -> None:
        config = _with_executable(launcher_config, tmp_path / "missing.py")
        config = dataclasses.replace(
            config, tool=dataclasses.replace(config.tool, interpreter=None)
        )
        handler = RequestHandler(config, gate=ScanGate())

        with pytest.raises(LaunchError):
            handler.start("https://example.test/repo.git")
        # A second attempt is not blocked by the first
        with pytest.raises(LaunchError):
            handler.start("https://example.test/repo.git")

    def test_concurrent_scan_is_rejected(self, launcher_config: LauncherConfig) -> None:
        gate = ScanGate()
        handler = RequestHandler(launcher_config, gate=gate)

        first = handler.start("https://example.test/repo.git")
        try:
            with pytest.raises(ScanBusyError):
                RequestHandler(launcher_config, gate=gate).start("https://example.test/other.git")
        finally:
            first.close()

        second = handler.start("https://example.test/repo.git")
        b"".join(second.body())
        assert second.state is RunState.DONE

    def test_busy_wait_times_out(self, launcher_config: LauncherConfig) -> None:
        server = dataclasses.replace(launcher_config.server, busy_wait=0.2)
        config = dataclasses.replace(launcher_config, server=server)
        gate = ScanGate()

        first = RequestHandler(config, gate=gate).start("u")
        try:
            with pytest.raises(ScanBusyError):
                RequestHandler(config, gate=gate).start("u")
        finally:
            first.close()

    def test_abandoned_body_stops_tool(
        self, launcher_config: LauncherConfig, tmp_path: Path
    ) -> None:
        slow = tmp_path / "slow.py"
        slow.write_text(SLOW_TOOL_SOURCE)
        gate = ScanGate()
        handler = RequestHandler(_with_executable(launcher_config, slow), gate=gate)

        run = handler.start("https://example.test/repo.git")
        body = run.body()
        assert next(body) == b"<pre>"
        assert next(body) == b"working\n"
        body.close()

        assert run.state is RunState.FAILED
        assert run.session._proc.poll() is not None
        # Gate was released
        handler.start("https://example.test/repo.git").close()

    def test_close_is_idempotent(self, launcher_config: LauncherConfig) -> None:
        run = RequestHandler(launcher_config, gate=ScanGate()).start("u")

        run.close()
        run.close()

        assert run.state is RunState.FAILED

    def test_timeout_is_reported(self, launcher_config: LauncherConfig, tmp_path: Path) -> None:
        slow = tmp_path / "slow.py"
        slow.write_text(SLOW_TOOL_SOURCE)
        config = _with_executable(launcher_config, slow)
        config = dataclasses.replace(
            config, tool=dataclasses.replace(config.tool, timeout=0.5)
        )

        run = RequestHandler(config, gate=ScanGate()).start("u")
        body = b"".join(run.body()).decode()

        assert "[timed out after 0.5 seconds]" in body
        assert body.endswith("__reports__\n")
        assert run.outcome.timed_out

    def test_run_streams_to_sink(self, launcher_config: LauncherConfig) -> None:
        out = io.BytesIO()
        handler = RequestHandler(launcher_config, gate=ScanGate())

        outcome = handler.run(StreamSink(out), "https://example.test/repo.git")

        assert out.getvalue().startswith(b"<pre>")
        assert outcome.exit_status == 0
        assert len(outcome.reports or []) == 2


class TestScanRunStates:
    """Tests for the run lifecycle."""

    def test_walks_every_state_in_order(self, launcher_config: LauncherConfig) -> None:
        run = ScanRun(launcher_config, ScanGate())
        seen = [run.state]

        def recording(fn):
            def wrapper(*args, **kwargs):
                seen.append(run.state)
                return fn(*args, **kwargs)
            return wrapper

        with patch(
            "yugaweb.pipeline.executor.normalize_request",
            side_effect=recording(normalize_request),
        ), patch(
            "yugaweb.pipeline.executor.reset_report_directory",
            side_effect=recording(reset_report_directory),
        ):
            run.start("https://example.test/repo.git")
        seen.append(run.state)

        body = run.body()
        next(body)
        seen.append(run.state)
        for chunk in body:
            if chunk == b"\n__reports__\n":
                seen.append(run.state)
        seen.append(run.state)

        assert seen == [
            RunState.IDLE,
            RunState.NORMALIZING,
            RunState.RESETTING,
            RunState.RUNNING,
            RunState.STREAMING,
            RunState.LISTING,
            RunState.DONE,
        ]

    def test_busy_start_fails(self, launcher_config: LauncherConfig) -> None:
        gate = ScanGate()
        first = RequestHandler(launcher_config, gate=gate).start("u")
        second = ScanRun(launcher_config, gate)
        try:
            with pytest.raises(ScanBusyError):
                second.start("u")
        finally:
            first.close()

        assert second.state is RunState.FAILED

    def test_body_requires_start(self, launcher_config: LauncherConfig) -> None:
        run = ScanRun(launcher_config, ScanGate())

        with pytest.raises(RuntimeError):
            next(run.body())
