"""Pre-flight checks for external tools and credentials."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys

logger = logging.getLogger("rereadme.dependencies")

# (display name, probe command, install hint)
REQUIRED_TOOLS: tuple[tuple[str, list[str], str], ...] = (
    ("gitingest", ["gitingest", "--help"], "pip install gitingest"),
    (
        "markdownlint-cli",
        ["markdownlint", "--version"],
        "npm install -g markdownlint-cli OR brew install markdownlint-cli",
    ),
)

_PROBE_TIMEOUT = 30


def _probe(cmd: list[str]) -> bool:
    """True when *cmd* runs and exits 0."""
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=_PROBE_TIMEOUT)
    except (OSError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0


def describe_python_environment() -> None:
    """Report whether gitingest will run under pyenv or the system Python."""
    try:
        python_path = shutil.which("python") or shutil.which("python3") or sys.executable
        if "pyenv" in python_path:
            print("[Check] Detected pyenv environment")
            version = subprocess.run(
                ["pyenv", "version"],
                capture_output=True,
                text=True,
                timeout=_PROBE_TIMEOUT,
                check=True,
            )
            print(f"   Python: {version.stdout.strip()}")
        else:
            print("[Check] Using system Python")
            print(f"   Python: {python_path}")
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning("[Check] Could not detect Python environment: %s", e)


def check_dependencies(api_key: str) -> bool:
    """Check every external tool and the completion credential.

    Prints one line per check and returns True only if all pass.
    """
    print("[Check] Checking dependencies...")
    describe_python_environment()

    all_good = True
    for name, cmd, hint in REQUIRED_TOOLS:
        if _probe(cmd):
            print(f"[Check] {name} found")
        else:
            logger.error("[Check] %s not found. Install with: %s", name, hint)
            all_good = False

    if api_key:
        print("[Check] OpenAI API key found")
    else:
        logger.error("[Check] OPENAI_API_KEY environment variable not set")
        all_good = False

    return all_good
