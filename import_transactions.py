#!/usr/bin/env python3
"""
Import normalized brokerage transactions from a JSON file into the ledger
"""

import json
import logging
import os
import sys
import argparse

from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

from spread_ledger.database.engine import init_engine
from spread_ledger.database.position_store import PositionStore
from spread_ledger.schemas import ImportRequest
from spread_ledger.services.import_service import ImportRequestError, run_import

# Configure logging
logger.add(
    "logs/spread_ledger_{time}.log",
    rotation="1 day",
    retention="7 days",
    level="INFO"
)


def load_request(path: str, mode: str = None) -> ImportRequest:
    """Read an import request from JSON.

    The file holds either a full request object or a bare list of option
    transactions.
    """
    with open(path) as f:
        data = json.load(f)

    if isinstance(data, list):
        data = {"transactions": data}
    if mode:
        data["mode"] = mode
    return ImportRequest.model_validate(data)


def main(argv=None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Import brokerage transactions into the spread ledger"
    )
    parser.add_argument("file", help="JSON file with transactions")
    parser.add_argument(
        "--mode",
        choices=["add", "rebuild"],
        default=None,
        help="add merges into stored positions; rebuild replaces them (default: add)"
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLAlchemy database URL (default: $DATABASE_URL or sqlite:///spread_ledger.db)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    # Load environment variables
    load_dotenv()

    level = "DEBUG" if args.verbose else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    if args.verbose:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG")

    try:
        request = load_request(args.file, args.mode)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Could not read {args.file}: {str(e)}")
        return 1

    init_engine(args.db)

    try:
        summary = run_import(PositionStore(), request)
    except ImportRequestError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {str(e)}")
        return 1

    print(summary.message)
    if summary.validation and not summary.validation.is_clean:
        report = summary.validation
        print(
            f"Quantity check: {len(report.missing)} missing, "
            f"{len(report.mismatches)} mismatched, {len(report.extra)} extra"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
