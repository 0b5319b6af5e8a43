"""Tests for the gitingest snapshot wrapper.

subprocess.run is patched throughout; gitingest itself is never invoked.
"""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from rereadme.config import SnapshotConfig
from rereadme.snapshot import (
    build_snapshot_command,
    cleanup_snapshots,
    debug_snapshots,
    generate_snapshots,
    read_snapshot,
    run_snapshot,
)


def _config(output, include=("src/",), exclude=("*.snap",)) -> SnapshotConfig:
    return SnapshotConfig(size_limit=1000, include=include, exclude=exclude, output=Path(output))


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


# ---------------------------------------------------------------------------
# build_snapshot_command
# ---------------------------------------------------------------------------


class TestBuildCommand:
    def test_full_encoding_order(self):
        cfg = SnapshotConfig(
            size_limit=50000,
            include=("src/", "package.json"),
            exclude=("*.snap", "*generated*"),
            output=Path("gitingest-code.txt"),
        )
        assert build_snapshot_command(cfg) == [
            "gitingest", "-s", "50000",
            "-i", "src/", "-i", "package.json",
            "-e", "*.snap", "-e", "*generated*",
            "-o", "gitingest-code.txt", ".",
        ]

    def test_no_patterns(self):
        cfg = SnapshotConfig(size_limit=10, include=(), exclude=(), output=Path("out.txt"))
        assert build_snapshot_command(cfg) == ["gitingest", "-s", "10", "-o", "out.txt", "."]

    def test_is_deterministic(self):
        cfg = _config("a.txt")
        assert build_snapshot_command(cfg) == build_snapshot_command(cfg)

    def test_rejects_non_positive_size_limit(self):
        with pytest.raises(ValueError):
            SnapshotConfig(size_limit=0, include=(), exclude=(), output=Path("x.txt"))


# ---------------------------------------------------------------------------
# run_snapshot
# ---------------------------------------------------------------------------


class TestRunSnapshot:
    def test_success_with_content(self, tmp_path):
        out = tmp_path / "snap.txt"
        out.write_text("tree")
        with patch("rereadme.snapshot.subprocess.run", return_value=_completed()) as mock_run:
            assert run_snapshot(_config(out)) is True
        mock_run.assert_called_once()
        assert mock_run.call_args.args[0][0] == "gitingest"

    def test_empty_file_is_warning_not_failure(self, tmp_path, caplog):
        out = tmp_path / "snap.txt"
        out.write_text("")
        with patch("rereadme.snapshot.subprocess.run", return_value=_completed()):
            assert run_snapshot(_config(out)) is True
        assert "is empty" in caplog.text

    def test_missing_file_after_success_is_warning(self, tmp_path, caplog):
        out = tmp_path / "never-written.txt"
        with patch("rereadme.snapshot.subprocess.run", return_value=_completed()):
            assert run_snapshot(_config(out)) is True
        assert "Could not stat" in caplog.text

    def test_nonzero_exit_returns_false_and_logs_output(self, tmp_path, caplog):
        result = _completed(returncode=2, stdout="partial", stderr="bad pattern")
        with patch("rereadme.snapshot.subprocess.run", return_value=result):
            assert run_snapshot(_config(tmp_path / "x.txt")) is False
        assert "exit code: 2" in caplog.text
        assert "bad pattern" in caplog.text
        assert "partial" in caplog.text

    def test_missing_binary_returns_false(self, tmp_path, caplog):
        with patch("rereadme.snapshot.subprocess.run", side_effect=FileNotFoundError("gitingest")):
            assert run_snapshot(_config(tmp_path / "x.txt")) is False
        assert "Error running gitingest" in caplog.text

    def test_timeout_returns_false(self, tmp_path):
        err = subprocess.TimeoutExpired(cmd="gitingest", timeout=1)
        with patch("rereadme.snapshot.subprocess.run", side_effect=err):
            assert run_snapshot(_config(tmp_path / "x.txt")) is False

    def test_verbose_prints_command(self, tmp_path, capsys):
        with patch("rereadme.snapshot.subprocess.run", return_value=_completed(returncode=1)):
            run_snapshot(_config(tmp_path / "x.txt"), verbose=True)
        assert "Executing: gitingest -s 1000" in capsys.readouterr().out


class TestSnapshotIndependence:
    def test_failure_of_one_config_does_not_block_the_next(self, tmp_path):
        a = _config(tmp_path / "a.txt")
        b = _config(tmp_path / "b.txt")
        (tmp_path / "b.txt").write_text("B snapshot")

        results_by_call = [_completed(returncode=1, stderr="boom"), _completed()]
        with patch("rereadme.snapshot.subprocess.run", side_effect=results_by_call) as mock_run:
            results = generate_snapshots([a, b])

        assert mock_run.call_count == 2
        assert results == {str(a.output): False, str(b.output): True}
        assert read_snapshot(b.output) == "B snapshot"


# ---------------------------------------------------------------------------
# read / cleanup / debug
# ---------------------------------------------------------------------------


class TestReadSnapshot:
    def test_reads_existing(self, tmp_path):
        p = tmp_path / "s.txt"
        p.write_text("content")
        assert read_snapshot(p) == "content"

    def test_missing_is_empty(self, tmp_path):
        assert read_snapshot(tmp_path / "nope.txt") == ""

    def test_unreadable_is_empty_with_warning(self, tmp_path, caplog):
        p = tmp_path / "dir-not-file"
        p.mkdir()
        assert read_snapshot(p) == ""
        assert "Could not read" in caplog.text


class TestCleanup:
    def test_removes_outputs_and_ignores_missing(self, tmp_path):
        present = tmp_path / "present.txt"
        present.write_text("x")
        cleanup_snapshots([_config(present), _config(tmp_path / "absent.txt")])
        assert not present.exists()

    def test_deletion_errors_are_ignored(self, tmp_path):
        cfg = _config(tmp_path / "locked.txt")
        with patch("rereadme.snapshot.Path.unlink", side_effect=PermissionError("denied")):
            cleanup_snapshots([cfg])  # must not raise


class TestDebugSnapshots:
    def test_reports_each_config(self, tmp_path, capsys):
        configs = [_config(tmp_path / "a.txt"), _config(tmp_path / "b.txt")]
        with patch("rereadme.snapshot.run_snapshot", side_effect=[True, False]):
            results = debug_snapshots(configs)

        out = capsys.readouterr().out
        assert results == {str(configs[0].output): True, str(configs[1].output): False}
        assert "Config 1" in out and "Config 2" in out
        assert "Command: gitingest -s 1000 -i src/ -e '*.snap'" in out
        assert "Success" in out and "Failed" in out
