#!/usr/bin/env python3
"""Run one delivery tick against the configured database and print a summary."""

from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dueworker.config import settings  # noqa: E402
from dueworker.database import SessionLocal, init_db  # noqa: E402
from dueworker.domain.delivery.models import TickResult  # noqa: E402
from dueworker.infra.tasks.cancellation import EventCancellationToken  # noqa: E402
from dueworker.logging_config import setup_logging  # noqa: E402
from dueworker.wiring.bootstrap import (  # noqa: E402
    build_run_tick_use_case,
    build_tick_command,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run one tenant-fair delivery tick.")
    parser.add_argument("--init-db", action="store_true", help="Create tables before running")
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Tenants processed in parallel (default: SCHEDULER_MAX_WORKERS)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-item delivery timeout in seconds (default: DELIVERY_TIMEOUT_SECONDS)",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Stop visiting tenants after this many seconds (default: TICK_DEADLINE_SECONDS)",
    )
    return parser


def _print_summary(result: TickResult) -> None:
    print("Delivery tick summary")
    print(f"  correlation_id: {result.correlation_id}")
    print(f"  tenants_seen: {result.tenants_seen}")
    print(f"  processed: {result.processed}")
    print(f"  conflicts: {result.conflicts}")
    print(f"  errors: {len(result.errors)}")
    for err in result.errors:
        print(f"    {err.tenant_id} [{err.stage.value}] {type(err.error).__name__}: {err.error}")
    if result.skipped_tenants:
        print(f"  not visited (cancelled): {len(result.skipped_tenants)}")


def main() -> int:
    args = _build_parser().parse_args()
    setup_logging(settings)

    if args.init_db:
        init_db()

    cancel = EventCancellationToken()

    def _on_signal(signum, _frame) -> None:
        cancel.cancel(reason=signal.Signals(signum).name)

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    try:
        cmd = build_tick_command(
            settings,
            max_workers=args.workers,
            delivery_timeout_seconds=args.timeout,
            deadline_seconds=args.deadline,
        )
    except ValueError as exc:
        print(f"Invalid tick options: {exc}", file=sys.stderr)
        return 2

    use_case = build_run_tick_use_case(settings, SessionLocal)
    result = use_case.execute(cmd, cancel)

    if not result.ok:
        print(f"Tick failed: {result.fatal_error}", file=sys.stderr)
        return 1

    _print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
