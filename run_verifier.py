#!/usr/bin/env python3
# run_verifier.py
# This file is part of Stasis - Deadlock Verification for Asynchronous Circuits
#
# Command-line interface for deadlock verification with configurable logging levels

import sys
import argparse
from pathlib import Path

from core import ExplorerConfig, format_result, verify
from core.verdict import Verdict
from utils.logger import configure_logging, get_logger
from utils.timing import time_call


EXIT_CODES = {
    Verdict.DEADLOCK_FREE: 0,
    Verdict.DEADLOCKED: 1,
    Verdict.REJECTED: 2,
    Verdict.INCONCLUSIVE: 3,
}
EXIT_FILE_ERROR = 4
EXIT_INTERRUPTED = 5
EXIT_INTERNAL_ERROR = 6


def read_source_file(filepath: Path) -> str:
    """Read a circuit description from file.

    Args:
        filepath: Path to the SystemVerilog source file

    Returns:
        File contents

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file cannot be decoded or read
    """
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"Source file not found: {filepath}")
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Error reading source file: {e}")


def build_config(args: argparse.Namespace) -> ExplorerConfig:
    """Translate command line flags into an explorer configuration."""
    return ExplorerConfig(
        strategy="dfs" if args.dfs else "bfs",
        max_states=args.max_states,
        time_limit=args.time_limit,
        workers=args.workers,
        progress_interval=args.progress_interval,
        max_signal_width=args.max_signal_width,
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser for command line interface.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Stasis deadlock verifier for asynchronous handshake circuits",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_verifier.py -f pipeline.sv -e top
  python run_verifier.py -f pipeline.sv -e top -v --max-states 100000
  python run_verifier.py -f pipeline.sv -e top --workers 4 --time

Exit codes:
  0 deadlock-free, 1 deadlocked, 2 input rejected, 3 inconclusive,
  4 source file error, 5 interrupted, 6 internal error
        """,
    )

    parser.add_argument(
        "-f", "--file", required=True, type=Path, help="Path to SystemVerilog source file"
    )

    parser.add_argument(
        "-e", "--entry", required=True, help="Name of the top-level module"
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )

    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output (overrides --verbose)"
    )

    parser.add_argument(
        "--dfs", action="store_true", help="Search depth-first instead of breadth-first"
    )

    parser.add_argument(
        "--max-states", type=int, default=None, help="Stop after visiting this many states"
    )

    parser.add_argument(
        "--time-limit", type=float, default=None, help="Stop after this many seconds"
    )

    parser.add_argument(
        "--workers", type=int, default=1, help="Threads used to expand each BFS level"
    )

    parser.add_argument(
        "--progress-interval",
        type=int,
        default=10000,
        help="Expanded states between progress messages",
    )

    parser.add_argument(
        "--max-signal-width",
        type=int,
        default=8,
        help="Widest signal (in bits) the verifier accepts",
    )

    parser.add_argument(
        "--time", action="store_true", help="Report wall-clock verification time"
    )

    return parser


def main() -> int:
    """Main entry point for the deadlock verifier.

    Returns:
        Exit code derived from the verdict, or an error code
    """
    parser = create_argument_parser()
    args = parser.parse_args()

    configure_logging(verbose=args.verbose, debug=args.debug)
    logger = get_logger()

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    try:
        source = read_source_file(args.file)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Source file error: {e}")
        return EXIT_FILE_ERROR

    try:
        logger.info(f"📋 Verifying {args.file} (entry module '{args.entry}')")

        result, elapsed = time_call(verify, source, args.entry, config)

        print(format_result(result))
        if args.time:
            print(f"Verification time: {elapsed.total_seconds():.3f}s")

        return EXIT_CODES[result.verdict]

    except KeyboardInterrupt:
        logger.error("Verification interrupted by user")
        return EXIT_INTERRUPTED

    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        import traceback

        traceback.print_exc()
        return EXIT_INTERNAL_ERROR


if __name__ == "__main__":
    sys.exit(main())
