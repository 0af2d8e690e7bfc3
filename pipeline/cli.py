#!/usr/bin/env python3
"""
Generate the daily gut score and advice entry.

Usage:
    generate-advice [--date YYYY-MM-DD] [--data-dir data] [--skip-narrative] [--log-level INFO]

Behavior:
- Reads meals-<date>.json / suppl-<date>.json for the 7 days ending at the target
  date, plus weights.json, sleep.json and health-log.json from the data directory.
- Computes the gut score, overall score, sleep-stage hints and rebound alert.
- Asks the text-generation service for advice text when OPENROUTER_API_KEY is set;
  on any failure the entry is saved with empty text.
- Writes advice.json and advice-scores.json, keeping only the current window.

Notes:
- With no --date, TARGET_DATE from the environment is used, else today in ADVICE_TIMEZONE.
- Exit code is 1 when the output documents cannot be written, 2 for an
  invalid date or timezone.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional
from zoneinfo import ZoneInfoNotFoundError

from pipeline.config import Settings, parse_target_date
from pipeline.runner import AdviceRun
from records.persistence import StoreWriteError


logger = logging.getLogger("generate_advice")


def _date_arg(value: str) -> str:
    try:
        return parse_target_date(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="generate-advice", description="Compute the daily gut score and advice entry.")
    parser.add_argument("--date", "-d", type=_date_arg, default=None, help="Target date (default: today in ADVICE_TIMEZONE)")
    parser.add_argument("--data-dir", default=None, help="Directory holding the JSON documents (default: ADVICE_DATA_DIR or ./data)")
    parser.add_argument("--skip-narrative", action="store_true", help="Do not call the text-generation service")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level (default INFO)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        settings = Settings.from_env(target_date=args.date, data_dir=args.data_dir, skip_narrative=args.skip_narrative)
    except (ValueError, ZoneInfoNotFoundError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    try:
        AdviceRun(settings).run()
    except StoreWriteError:
        logger.exception("Could not save results for %s", settings.target_date)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
