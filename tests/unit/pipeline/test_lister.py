"""Tests for report file discovery."""

from __future__ import annotations

from pathlib import Path

from yugaweb.pipeline.lister import list_reports


def test_missing_directory_yields_empty(tmp_path: Path) -> None:
    assert list_reports(tmp_path / "yuga_reports") == []


def test_empty_directory_yields_empty(tmp_path: Path) -> None:
    report_dir = tmp_path / "yuga_reports"
    report_dir.mkdir()

    assert list_reports(report_dir) == []


def test_top_level_files_only(tmp_path: Path) -> None:
    report_dir = tmp_path / "yuga_reports"
    (report_dir / "sub").mkdir(parents=True)
    (report_dir / "a.txt").write_text("a")
    (report_dir / "b.html").write_text("b")
    (report_dir / "sub" / "c.txt").write_text("c")

    names = {r.relative_path for r in list_reports(report_dir)}

    assert names == {"a.txt", "b.html"}


def test_display_path_uses_directory_name(tmp_path: Path) -> None:
    report_dir = tmp_path / "yuga_reports"
    report_dir.mkdir()
    (report_dir / "a.txt").write_text("a")

    reports = list_reports(report_dir)

    assert [r.display_path for r in reports] == ["yuga_reports/a.txt"]


def test_symlinks_are_not_reported(tmp_path: Path) -> None:
    secret = tmp_path / "secret.txt"
    secret.write_text("secret")
    report_dir = tmp_path / "yuga_reports"
    report_dir.mkdir()
    (report_dir / "link.txt").symlink_to(secret)
    (report_dir / "real.txt").write_text("real")

    names = [r.relative_path for r in list_reports(report_dir)]

    assert names == ["real.txt"]


def test_order_is_deterministic(tmp_path: Path) -> None:
    report_dir = tmp_path / "yuga_reports"
    report_dir.mkdir()
    for name in ("z.txt", "m.txt", "a.txt"):
        (report_dir / name).write_text(name)

    assert list_reports(report_dir) == list_reports(report_dir)


def test_file_at_path_yields_empty(tmp_path: Path) -> None:
    report_dir = tmp_path / "yuga_reports"
    report_dir.write_text("not a directory")

    assert list_reports(report_dir) == []
