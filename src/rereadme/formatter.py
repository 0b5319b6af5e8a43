"""Markdown autofix via the markdownlint CLI.

Best-effort: whatever markdownlint cannot fix is reported as a warning for
the operator. Never raises.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

logger = logging.getLogger("rereadme.formatter")

MARKDOWNLINT_BIN = "markdownlint"
MARKDOWNLINT_TIMEOUT = 60


def format_document(path: Path, verbose: bool = False) -> bool:
    """Run ``markdownlint --fix`` on *path*. Returns True when clean."""
    print(f"[Format] Formatting {path} with markdownlint...")
    cmd = [MARKDOWNLINT_BIN, "--fix", str(path)]
    if verbose:
        print(f"   Executing: {shlex.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=MARKDOWNLINT_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        logger.warning("[Format] markdownlint timed out after %ds", MARKDOWNLINT_TIMEOUT)
        return False
    except OSError as e:
        logger.warning("[Format] Could not run markdownlint: %s", e)
        return False

    if result.returncode == 0:
        print(f"[Format] {path} formatted successfully")
        return True

    logger.warning("[Format] Some markdown issues found:")
    if result.stderr:
        logger.warning("%s", result.stderr.strip())
    if result.stdout:
        logger.warning("%s", result.stdout.strip())
    logger.warning("[Format] Some issues may need manual fixing")
    return False
