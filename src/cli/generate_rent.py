"""CLI entry point for generating rolling rent by hand.

Runs the same generation as the daily scheduler, for backfills and ad-hoc runs.

Usage:
    python -m src.cli.generate_rent                          # all active organizations, next month
    python -m src.cli.generate_rent --organization 3         # one organization, next month
    python -m src.cli.generate_rent --organization 3 --month 2025-03

Exit Codes:
    0 - Success: every organization's run succeeded
    1 - Failure: at least one run failed or arguments were invalid

Logging:
    LOG_LEVEL level logs to both stdout and LOG_FILE (default logs/billing.log)
"""

import argparse
import logging
import sys

from src.services.config import load_config
from src.services.errors import InvalidBillingMonthError
from src.services.logging import setup_server_logging
from src.services.rent_calculations import BillingMonth

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="generate_rent",
        description="Generate rolling monthly rent payments",
    )
    parser.add_argument(
        "--organization",
        type=int,
        action="append",
        dest="organizations",
        help="Organization ID (repeatable; default: all active organizations)",
    )
    parser.add_argument(
        "--month",
        help="Month to bill as YYYY-MM (default: next month)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Generate rolling rent for the requested organizations and month.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
        setup_server_logging(config.log_file)

        month = BillingMonth.parse(args.month) if args.month else None
        # Scheduler bills the month after "today"; step back so it bills the requested month.
        # Without --month the scheduler picks today in its own timezone.
        today = month.previous().start if month else None

        from src.services import SessionLocal, configure_engine
        from src.services.scheduler import AdvanceScheduler

        configure_engine(config.database_url)
        scheduler = AdvanceScheduler(SessionLocal, run_at=config.run_at, timezone=config.tzinfo)
        results = scheduler.run_once(today=today, organization_ids=args.organizations)

        for organization_id, result in results.items():
            logger.info("Organization %d: %s", organization_id, result.to_dict())

        return 0 if all(result.success for result in results.values()) else 1

    except InvalidBillingMonthError as e:
        logger.error("Invalid month: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.warning("Rent generation interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Rent generation failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
