"""Shared fixtures: a stand-in analysis script and a config pointing at it."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from yugaweb.config.models import LauncherConfig, ReportsConfig, ToolConfig

# Records its argv next to the report directory, prints to both streams,
# writes two reports plus a nested one, exits with $FAKE_TOOL_EXIT.
FAKE_TOOL_SOURCE = """\
import json
import os
import sys

args = sys.argv[1:]
root = args[1]
with open(os.path.join(root, "argv.json"), "w") as f:
    json.dump(args, f)

print("cloning " + args[0], flush=True)
sys.stderr.write("warning: from stderr\\n")
sys.stderr.flush()

reports = os.path.join(root, "yuga_reports")
os.makedirs(os.path.join(reports, "sub"), exist_ok=True)
for name in ("a.txt", "b.html"):
    with open(os.path.join(reports, name), "w") as f:
        f.write(name)
with open(os.path.join(reports, "sub", "nested.txt"), "w") as f:
    f.write("nested")

print("done", flush=True)
sys.exit(int(os.environ.get("FAKE_TOOL_EXIT", "0")))
"""


@pytest.fixture
def fake_tool(tmp_path: Path) -> Path:
    """Write the stand-in analysis script."""
    script = tmp_path / "run-yuga.py"
    script.write_text(FAKE_TOOL_SOURCE, encoding="utf-8")
    return script


@pytest.fixture
def output_root(tmp_path: Path) -> Path:
    root = tmp_path / "www"
    root.mkdir()
    return root


@pytest.fixture
def launcher_config(tmp_path: Path, fake_tool: Path, output_root: Path) -> LauncherConfig:
    """Config running the fake tool with the current interpreter."""
    return LauncherConfig(
        tool=ToolConfig(
            executable=str(fake_tool),
            interpreter=sys.executable,
            working_dir=str(tmp_path),
            timeout=30,
        ),
        reports=ReportsConfig(output_root=str(output_root)),
    )
