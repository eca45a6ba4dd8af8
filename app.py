"""state-checker: verify deployed contracts against a YAML deployment description.

    state-checker deployed-mainnet.yaml ./abi

Exit status is 0 when every declared check passed, 2 when any check failed,
and 1 on a fatal error (bad arguments, description, ABI or coverage).
"""
from __future__ import annotations

import argparse
import os
import sys
import time
from typing import List, NoReturn, Optional

from state_abi import AbiLoader
from state_checker import run_description
from state_coverage import format_coverage_report
from state_description import SECTION_KEYS, load_description
from state_errors import ConfigError, CoverageError, StateCheckerError
from state_report import Reporter
from state_rpc import RPC_TIMEOUT, as_block_id

__version__ = "0.1.0"

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CHECKS_FAILED = 2
EXIT_INTERRUPTED = 130


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors are fatal configuration errors, not failed checks."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FATAL, f"❌ {self.prog}: {message}\n")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = _ArgumentParser(
        prog="state-checker",
        description="Check deployed contract state (view results and role holders) against a deployment description.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    ap.add_argument("description", help="Path to the deployment description (YAML)")
    ap.add_argument("abi_dir", help="Directory with one <ContractName>.json ABI per interface")
    ap.add_argument(
        "--block",
        default="latest",
        help="Block number or tag (latest|finalized|safe|earliest|pending) for simulated calls",
    )
    ap.add_argument(
        "--timeout",
        type=float,
        default=RPC_TIMEOUT,
        help="RPC HTTP timeout in seconds",
    )
    ap.add_argument(
        "--section",
        action="append",
        choices=SECTION_KEYS,
        help="Only run the given section (repeatable)",
    )
    ap.add_argument(
        "--show-config",
        action="store_true",
        help="Echo the description before running the checks",
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap.parse_args(argv)


def run(args: argparse.Namespace, report: Optional[Reporter] = None) -> int:
    report = report or Reporter()

    if not os.path.isdir(args.abi_dir):
        raise ConfigError(f"ABI directory not found: {args.abi_dir}")
    abi_loader = AbiLoader(args.abi_dir)
    description = load_description(args.description)
    block = as_block_id(args.block)

    if args.show_config:
        report.banner("CONFIG")
        report.print(description.source.rstrip("\n"))

    start = time.monotonic()
    ok = run_description(description, abi_loader, report, block=block, timeout=args.timeout, only=args.section)
    elapsed = time.monotonic() - start

    report.print()
    report.print(report.summary())
    print(f"⏱️  Completed in {elapsed:.2f} seconds", file=sys.stderr)
    return EXIT_OK if ok else EXIT_CHECKS_FAILED


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        return run(args)
    except CoverageError as e:
        print(format_coverage_report(e.alias, e.name, e.missing), file=sys.stderr)
        return EXIT_FATAL
    except StateCheckerError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FATAL
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
