"""
main.py
--------
Entry point for the Subscription Revenue Forecaster.

Reads the transactions ledger, runs the full analysis pipeline, prints the
report to the console and writes CSV output to the outputs/ folder.

Usage (from the project root):
    python main.py

    # With optional arguments:
    python main.py --input path/to/transactions.csv
    python main.py --start-year 1990 --end-year 2014
    python main.py --top-k 5 --no-export
"""

import sys
import os
import argparse
import logging
from datetime import datetime

# Ensure project root is on path (for VS Code runs from any working directory)
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from config.config_loader import get_output_config
from core.errors import InvalidArgumentError, ParseError
from ingestion.transaction_loader import load_transactions
from pipeline import AnalysisReport, SubscriptionRevenuePipeline


# =============================================================================
# LOGGING SETUP
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("main")


# =============================================================================
# ARGUMENT PARSING
# =============================================================================

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Subscription Revenue Forecaster: classify subscriptions and forecast next year's revenue."
    )
    parser.add_argument(
        "--input", type=str, default=None,
        help="Path to input transactions CSV. Defaults to transactions.csv in project root."
    )
    parser.add_argument(
        "--start-year", type=int, default=None,
        help="First year of the revenue window. Defaults to config value (1966)."
    )
    parser.add_argument(
        "--end-year", type=int, default=None,
        help="Last year of the revenue window. Defaults to config value (2014)."
    )
    parser.add_argument(
        "--top-k", type=int, default=None,
        help="Number of highest-growth / highest-loss years to list. Defaults to config value (10)."
    )
    parser.add_argument(
        "--output-dir", type=str, default=None,
        help="Output directory. Defaults to outputs/ in project root."
    )
    parser.add_argument(
        "--no-export", action="store_true", default=False,
        help="Print the report only; do not write CSV files."
    )
    return parser.parse_args(argv)


# =============================================================================
# MAIN
# =============================================================================

def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    output_config = get_output_config()

    # --- Resolve paths ---
    input_path = args.input or os.path.join(PROJECT_ROOT, output_config["default_input"])
    output_dir = args.output_dir or os.path.join(PROJECT_ROOT, output_config["output_dir"])

    # --- Load transactions ---
    logger.info(f"Loading transactions from: {input_path}")
    try:
        transactions = load_transactions(input_path)
    except FileNotFoundError:
        logger.error(f"Could not find input file \"{input_path}\"")
        return 1
    except ParseError as exc:
        logger.error(f"Could not parse input file: {exc}")
        return 1

    # --- Run pipeline ---
    try:
        pipeline = SubscriptionRevenuePipeline(
            start_year=args.start_year, end_year=args.end_year, top_k=args.top_k
        )
        report = pipeline.run(transactions)
    except InvalidArgumentError as exc:
        logger.error(f"Invalid analysis settings: {exc}")
        return 1

    # --- Print report ---
    print(render_report(report))

    for error in report.errors:
        logger.warning(f"[{error.stage}] {error.error_type} for {error.entity_id}: {error.message}")

    # --- Output: CSV exports ---
    if not args.no_export:
        os.makedirs(output_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        for name, frame in report.to_frames().items():
            path = os.path.join(output_dir, f"{name}_{timestamp}.csv")
            frame.to_csv(path, index=False)
            logger.info(f"{name} saved to: {path}")

    return 0


# =============================================================================
# CONSOLE REPORT
# =============================================================================

def format_currency(value: float) -> str:
    """US currency, losses in parentheses: 1234.5 -> $1,234.50, -7 -> ($7.00)."""
    value = float(value)
    if value < 0:
        return f"(${-value:,.2f})"
    return f"${value:,.2f}"


def render_report(report: AnalysisReport) -> str:
    """Builds the plain-text report printed by the CLI."""
    lines = ["Subscription ID, type (one-off, daily, monthly, yearly), and duration:"]
    for r in report.classifications:
        lines.append(f"{r.subscription_id} {r.cadence_type.name}:\t{r.duration}")

    lines.append("\nYearly revenue:")
    for year, revenue in report.revenue.items():
        lines.append(f"{year}: {format_currency(revenue)}")

    lines.append("\nYearly growth/loss (parentheses indicate a loss):")
    for year, delta in report.revenue_deltas.items():
        lines.append(f"{year}: {format_currency(delta)}")

    lines.append(f"\n{report.top_k} years with highest growth:")
    for year in report.growth_years:
        lines.append(f"{year}: {format_currency(report.revenue_deltas[year])}")

    lines.append(f"\n{report.top_k} years with highest loss:")
    for year in report.loss_years:
        lines.append(f"{year}: {format_currency(report.revenue_deltas[year])}")

    lines.append(
        f"\nExpected total revenue for {report.forecast_year} is {format_currency(report.forecast_total)}"
    )
    return "\n".join(lines)


if __name__ == "__main__":
    sys.exit(main())
