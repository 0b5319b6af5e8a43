"""Command-line entry point for rereadme.

Usage:
    rereadme [--confluence] [--interactive] [--continue] [--input FILE] [--output FILE]
    rereadme --check
    rereadme --debug-gitingest
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from .config import DEFAULT_DOCUMENT, PipelineOptions, default_snapshot_configs, load_settings
from .dependencies import check_dependencies
from .logging_config import setup_logging
from .pipeline import PipelineOrchestrator
from .snapshot import debug_snapshots

logger = logging.getLogger("rereadme.cli")

EPILOG = """
Environment Variables:
  OPENAI_API_KEY        Required - your OpenAI API key
  DEBUG_MODE            Optional - enable detailed API response logging
  REREADME_MODEL        Optional - LiteLLM model string (default: openai/gpt-4.1-nano)
  GITINGEST_SIZE_LIMIT  Optional - bytes per gitingest snapshot (default: 50000)

Examples:
  %(prog)s                                          # prep + codebase analysis
  %(prog)s --confluence                             # add the external sources step
  %(prog)s --interactive                            # approve each step manually
  %(prog)s --check                                  # check dependencies only
  %(prog)s --output README-v2.md                    # write to a different file
  %(prog)s --input some_doc.md --output test_doc.md # read one file, write another

For pyenv users:
  Make sure pyenv shims are first in your PATH:
  export PATH="$HOME/.pyenv/shims:$PATH"
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rereadme",
        description="Automatically update README files with current project context",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument("--verbose", action="store_true", help="Show detailed command output")
    parser.add_argument("--interactive", action="store_true", help="Pause between each step for review")
    parser.add_argument(
        "--continue",
        dest="continue_on_error",
        action="store_true",
        help="Continue on errors instead of stopping",
    )
    parser.add_argument(
        "--keep-context",
        action="store_true",
        help="Keep gitingest output files after completion",
    )
    parser.add_argument("--check", action="store_true", help="Only check dependencies, don't run workflow")
    parser.add_argument(
        "--confluence",
        action="store_true",
        help="Include the external sources step (Confluence MCP server)",
    )
    parser.add_argument(
        "--input",
        metavar="FILE",
        default=DEFAULT_DOCUMENT,
        help=f"Read current content from FILE (default: {DEFAULT_DOCUMENT})",
    )
    parser.add_argument(
        "--output",
        metavar="FILE",
        default=DEFAULT_DOCUMENT,
        help=f"Write the result to FILE (default: {DEFAULT_DOCUMENT})",
    )
    parser.add_argument(
        "--debug-gitingest",
        action="store_true",
        help="Test every gitingest configuration and report the result",
    )
    return parser


def _run(args: argparse.Namespace) -> int:
    load_dotenv()
    try:
        settings = load_settings()
    except ValidationError as e:
        print(f"[Error] Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_logging("DEBUG" if args.verbose else settings.log_level, settings.log_format)

    if args.check:
        return 0 if check_dependencies(settings.openai_api_key) else 1

    snapshot_configs = default_snapshot_configs(settings.snapshot_size_limit)

    if args.debug_gitingest:
        debug_snapshots(snapshot_configs, verbose=args.verbose or settings.debug_mode)
        return 0

    options = PipelineOptions(
        input_path=Path(args.input),
        output_path=Path(args.output),
        interactive=args.interactive,
        continue_on_error=args.continue_on_error,
        keep_context=args.keep_context,
        include_external_sources=args.confluence,
        verbose=args.verbose,
        snapshot_configs=snapshot_configs,
    )
    result = PipelineOrchestrator(options, settings).run()
    return result.exit_code


def main(argv: Optional[list[str]] = None) -> int:
    """Parse arguments, run, and map every outcome to an exit status."""
    args = build_parser().parse_args(argv)
    try:
        return _run(args)
    except KeyboardInterrupt:
        print("\n[Shutdown] Interrupted", file=sys.stderr)
        return 1
    except Exception as e:
        logger.debug("Unhandled exception", exc_info=True)
        print(f"[Error] Fatal error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
