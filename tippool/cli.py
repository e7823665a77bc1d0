#!/usr/bin/env python3
"""Allocate pooled tips from a time-clock export and a transaction export."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pandas.errors import ParserError

from tippool.config import Settings
from tippool.errors import TipPoolError
from tippool.export import write_results
from tippool.models import AllocationPolicy, IntervalAnchor
from tippool.pipeline import run_pipeline
from tippool.sources import read_clock_rows, read_transaction_rows

logger = logging.getLogger("tippool")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    defaults = Settings()
    parser = argparse.ArgumentParser(
        description=(
            "Split approved transaction tips between FOH and BOH staff on duty in each "
            "interval, redistribute what nobody could claim, and write per-employee totals."
        )
    )
    parser.add_argument("-c", "--clock", default="./input-data/clock-times.csv", help="Time-clock export (.csv or .xlsx).")
    parser.add_argument(
        "-t", "--transactions", default="./input-data/transactions.csv", help="Transaction export (.csv or .xlsx)."
    )
    parser.add_argument("-o", "--output", default="./output/", help="Directory for result CSV files.")
    parser.add_argument(
        "-i",
        "--interval",
        default=defaults.interval_minutes,
        help="Interval length in minutes (2-60, must divide 1440). Invalid values fall back to 15.",
    )
    parser.add_argument(
        "--boh-ratio",
        default=defaults.boh_ratio,
        help="BOH share of a slot when both FOH and BOH are on duty (default 0.15).",
    )
    parser.add_argument(
        "--policy",
        choices=[p.value for p in AllocationPolicy],
        default=defaults.policy.value,
        help="What happens when only one role is on duty.",
    )
    parser.add_argument(
        "--anchor",
        choices=[a.value for a in IntervalAnchor],
        default=defaults.anchor.value,
        help="Anchor intervals to midnight (calendar) or to each clock-in (shift).",
    )
    parser.add_argument("--no-merge", action="store_true", help="Do not merge back-to-back shifts.")
    parser.add_argument(
        "--raw-clock", action="store_true", help="Clock export has no banner rows or totals row to strip."
    )
    parser.add_argument(
        "--convert-tz",
        action="store_true",
        default=defaults.convert_timezone,
        help="Convert transaction times from --from-tz to --to-tz before slotting.",
    )
    parser.add_argument("--from-tz", default=defaults.source_timezone, help="Timezone of transaction timestamps.")
    parser.add_argument("--to-tz", default=defaults.target_timezone, help="Timezone of the time-clock export.")
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Warn instead of failing on mismatched date ranges or stranded tips.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every diagnostic.")
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings(
        interval_minutes=args.interval,
        boh_ratio=args.boh_ratio,
        policy=args.policy,
        anchor=args.anchor,
        merge_shifts=not args.no_merge,
        convert_timezone=args.convert_tz,
        source_timezone=args.from_tz,
        target_timezone=args.to_tz,
        strict=not args.lenient,
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    settings = settings_from_args(args)

    try:
        clock_rows = read_clock_rows(Path(args.clock), preprocess=not args.raw_clock)
        transaction_rows = read_transaction_rows(Path(args.transactions))
    except (OSError, ParserError, ValueError) as exc:
        logger.error("Cannot read input: %s", exc)
        return 1

    try:
        result = run_pipeline(clock_rows, transaction_rows, settings)
        result.verification.raise_for_status()
    except TipPoolError as exc:
        logger.error("%s", exc)
        return 1

    written = write_results(result, args.output)
    for path in written.values():
        print(f"Wrote {path}", flush=True)

    summary = result.summary()
    print("\nTip Allocation Summary:")
    print(f"  Allocated Tips:     ${summary['allocated_total']:.2f} ({summary['allocated_percent']:.1f}%)")
    print(f"  Redistributed Tips: ${summary['redistributed_total']:.2f} ({summary['redistributed_percent']:.1f}%)")
    print(f"  Transaction Total:  ${summary['transaction_total']:.2f}")
    for day, amount in summary["unallocated_by_day"].items():
        print(f"  Unallocated on {day}: ${amount:.2f}")

    print("\nFinal Aggregated Tip Totals:")
    for total in result.totals:
        print(f"  {total.employee_id}: ${total.total_amount:.2f}")
    print("Sanity Check Passed: allocated totals match transaction totals.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
