"""Codebase snapshots via the gitingest CLI.

Each SnapshotConfig becomes one ``gitingest`` subprocess that writes a
size-bounded text digest of part of the repository. Snapshots only improve
prompt quality, so every failure here is logged and reported as ``False``;
nothing in this module raises.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Callable, Iterable

from .config import SnapshotConfig

logger = logging.getLogger("rereadme.snapshot")

GITINGEST_BIN = "gitingest"
GITINGEST_TIMEOUT = 300  # seconds; large monorepos take a while to walk


def build_snapshot_command(config: SnapshotConfig) -> list[str]:
    """Encode *config* as a gitingest argument list.

    Order is fixed: size limit, include patterns, exclude patterns,
    output file, then the source directory.
    """
    cmd = [GITINGEST_BIN, "-s", str(config.size_limit)]
    for pattern in config.include:
        cmd.extend(["-i", pattern])
    for pattern in config.exclude:
        cmd.extend(["-e", pattern])
    cmd.extend(["-o", str(config.output), config.source])
    return cmd


def run_snapshot(config: SnapshotConfig, verbose: bool = False) -> bool:
    """Run gitingest for one config. Returns True when the tool exited 0."""
    print(f"[Snapshot] Running gitingest for {config.output}...")
    cmd = build_snapshot_command(config)
    if verbose:
        print(f"   Executing: {shlex.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=GITINGEST_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        logger.error("[Snapshot] gitingest timed out after %ds for %s", GITINGEST_TIMEOUT, config.output)
        return False
    except OSError as e:
        logger.error("[Snapshot] Error running gitingest for %s: %s", config.output, e)
        return False

    if verbose and result.stdout:
        logger.debug("[Snapshot] gitingest output:\n%s", result.stdout.strip())

    if result.returncode != 0:
        logger.error(
            "[Snapshot] Failed to generate %s (exit code: %d)",
            config.output, result.returncode,
        )
        if result.stderr:
            logger.error("   Error: %s", result.stderr.strip())
        if result.stdout:
            logger.error("   Output: %s", result.stdout.strip())
        return False

    print(f"[Snapshot] Generated {config.output}")

    # A zero exit does not guarantee a useful file; check it ourselves.
    output = Path(config.output)
    try:
        size = output.stat().st_size
    except OSError:
        logger.warning("[Snapshot] Could not stat %s", output)
        return True

    print(f"   File size: {size} bytes")
    if size == 0:
        logger.warning("[Snapshot] %s is empty", output)
    return True


def generate_snapshots(
    configs: Iterable[SnapshotConfig],
    verbose: bool = False,
    runner: Callable[..., bool] = run_snapshot,
) -> dict[str, bool]:
    """Run every config in order; one failure never stops the next."""
    return {str(cfg.output): runner(cfg, verbose=verbose) for cfg in configs}


def read_snapshot(path: Path | str) -> str:
    """Return snapshot text, or an empty string if it is missing or unreadable."""
    path = Path(path)
    if not path.exists():
        return ""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("[Snapshot] Could not read %s: %s", path, e)
        return ""


def cleanup_snapshots(configs: Iterable[SnapshotConfig]) -> None:
    """Best-effort removal of every snapshot output file."""
    for cfg in configs:
        try:
            Path(cfg.output).unlink(missing_ok=True)
        except OSError as e:
            logger.debug("[Snapshot] Could not remove %s: %s", cfg.output, e)
    print("[Cleanup] Removed gitingest context files")


def debug_snapshots(configs: Iterable[SnapshotConfig], verbose: bool = False) -> dict[str, bool]:
    """Dry-run each config, printing its filters, command and outcome."""
    print("[Snapshot] Testing gitingest configurations...")
    results: dict[str, bool] = {}
    for index, cfg in enumerate(configs, 1):
        print(f"\n[Snapshot] Config {index}: {cfg.output}")
        print(f"   Include: {', '.join(cfg.include)}")
        print(f"   Exclude: {', '.join(cfg.exclude)}")
        print(f"   Size limit: {cfg.size_limit}")
        print(f"   Command: {shlex.join(build_snapshot_command(cfg))}")

        ok = run_snapshot(cfg, verbose=verbose)
        results[str(cfg.output)] = ok
        print("   Success" if ok else "   Failed")
    return results
