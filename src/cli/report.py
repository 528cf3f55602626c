"""CLI entry point for exporting a unit's monthly report.

Usage:
    python -m src.cli.report --unit-id 1 --month 2025-03 --format pdf
    python -m src.cli.report --unit-id 1 --month 2025-03 --format csv --output out.csv

Exit Codes:
    0 - Success: Report written
    1 - Failure: Unknown unit, bad arguments or store error

Logging:
    Messages go to stderr; level from LOG_LEVEL (default INFO)
"""

import argparse
import logging
import sys
from pathlib import Path

from src.services.config import load_config
from src.services.errors import ColivingError
from src.services.logging import setup_cli_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.report",
        description="Export a unit's monthly report as CSV or PDF",
    )
    parser.add_argument("--unit-id", type=int, required=True, help="Unit ID")
    parser.add_argument("--month", required=True, help="Month to report, YYYY-MM")
    parser.add_argument("--format", choices=["csv", "pdf"], default="pdf", help="Output format")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output path (default: report_<unit>_<YYYY-MM>.<format> in the current directory)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for report export CLI.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except ValueError as e:
        setup_cli_logging()
        logger.error(f"Invalid configuration: {e}")
        return 1
    setup_cli_logging()

    from src.services import SessionLocal
    from src.services.period_service import parse_month
    from src.services.report_service import (
        build_unit_report,
        render_unit_report_csv,
        render_unit_report_pdf,
        report_filename,
    )

    db = SessionLocal()
    try:
        month = parse_month(args.month)
        report = build_unit_report(
            db, args.unit_id, month, honor_contribution_end_date=config.honor_contribution_end_date
        )
        output = args.output or Path(report_filename(report.sheet.unit_name, month, args.format))
        if args.format == "csv":
            output.write_text(render_unit_report_csv(report), encoding="utf-8")
        else:
            output.write_bytes(render_unit_report_pdf(report))
        logger.info(f"Wrote {args.format.upper()} report for unit {args.unit_id} to {output}")
        return 0
    except ColivingError as e:
        logger.error(f"Report failed: {e.message}")
        return 1
    except OSError as e:
        logger.error(f"Could not write report: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
