"""Tests for core models."""

from __future__ import annotations

import dataclasses

import pytest

from yugaweb.core.models import ReportFile, ScanOutcome, ScanRequest


def test_scan_request_defaults() -> None:
    request = ScanRequest(source_url="https://example.test/repo.git")

    assert request.revision == "HEAD"
    assert request.subdir_filter == "."


def test_scan_request_is_immutable() -> None:
    request = ScanRequest(source_url="https://example.test/repo.git")

    with pytest.raises(dataclasses.FrozenInstanceError):
        request.revision = "abc"  # type: ignore[misc]


def test_report_file_display_path() -> None:
    report = ReportFile(directory_name="yuga_reports", relative_path="index.html")

    assert report.display_path == "yuga_reports/index.html"


class TestScanOutcome:
    """Tests for ScanOutcome.success."""

    def test_success_on_zero_exit(self) -> None:
        outcome = ScanOutcome(request=ScanRequest(source_url="u"), exit_status=0)
        assert outcome.success

    def test_failure_on_nonzero_exit(self) -> None:
        outcome = ScanOutcome(request=ScanRequest(source_url="u"), exit_status=2)
        assert not outcome.success

    def test_failure_on_timeout(self) -> None:
        outcome = ScanOutcome(request=ScanRequest(source_url="u"), exit_status=0, timed_out=True)
        assert not outcome.success

    def test_unknown_status_is_not_success(self) -> None:
        outcome = ScanOutcome(request=ScanRequest(source_url="u"))
        assert outcome.exit_status is None
        assert not outcome.success
