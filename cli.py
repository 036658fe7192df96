import argparse
import logging
import sys
from typing import List, Optional

from config import load_settings
from coordinator import EnumerationError, IngestCoordinator
from report import render_report


# ---------------- CLI ----------------

def _positive_int(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return n


def _positive_float(value: str) -> float:
    n = float(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number: {value}")
    return n


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        prog="logtally",
        description="Count log lines by level, source and message template",
    )
    parser.add_argument("root", help="directory of log files, scanned recursively")
    parser.add_argument(
        "--workers",
        type=_positive_int,
        help="worker threads (default: LOGTALLY_WORKERS or CPU count, min 2)",
    )
    parser.add_argument(
        "--top",
        type=_positive_int,
        help="entries per top-K listing (default: LOGTALLY_TOP_K or 10)",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        help="seconds to wait for all files (default: LOGTALLY_SHUTDOWN_TIMEOUT or 60)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="diagnostic verbosity on stderr (default: LOGTALLY_LOG_LEVEL or WARNING)",
    )

    return parser.parse_args(argv)


# ---------------- Main ----------------

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"logtally: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=args.log_level or settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    top = args.top or settings.top_k
    coordinator = IngestCoordinator(
        workers=args.workers or settings.workers,
        shutdown_timeout=args.timeout or settings.shutdown_timeout,
    )

    # ---- Ingest ----
    try:
        result = coordinator.run(args.root)
    except EnumerationError as e:
        print(f"logtally: {e}", file=sys.stderr)
        return 2

    # ---- Report ----
    snapshot = result.store.snapshot()
    print(render_report(result, snapshot, top))

    return 0


if __name__ == "__main__":
    sys.exit(main())
