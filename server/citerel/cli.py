from __future__ import annotations

import argparse
import os


def add_runtime_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--workers",
        type=int,
        help="Parallel per-DOI lookups (overrides CITEREL_EXPAND_MAX_WORKERS).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Per-request timeout in seconds (overrides CITEREL_API_TIMEOUT_SECONDS).",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides CITEREL_LOG_LEVEL).",
    )


def apply_runtime_overrides(args: argparse.Namespace) -> None:
    if getattr(args, "workers", None) is not None:
        os.environ["CITEREL_EXPAND_MAX_WORKERS"] = str(args.workers)
    if getattr(args, "timeout", None) is not None:
        os.environ["CITEREL_API_TIMEOUT_SECONDS"] = str(args.timeout)
    if getattr(args, "log_level", None):
        os.environ["CITEREL_LOG_LEVEL"] = args.log_level
