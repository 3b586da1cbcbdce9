"""
Command-line entry point.

Usage:
    scm-dashboard reconcile --orders orders.csv --suppliers suppliers.csv
    scm-dashboard reconcile --dir ./exports --report-dir ./reports
    scm-dashboard fetch --json result.json
    scm-dashboard templates --output-dir ./templates
    scm-dashboard mock --orders 50 --seed 7
    scm-dashboard watch --interval 60
"""

import argparse
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .config import DashboardConfig
from .ingest.google_sheets import SheetFetcher, SheetFetchError
from .ingest.reconciler import SheetReconciler
from .ingest.templates import generate_order_sheet_template, generate_supplier_sheet_template
from .mock_data import MockDataGenerator
from .models import Order, ReconcileResult
from .pipeline.kpis import calculate_kpis
from .pipeline.reports import write_reports
from .pipeline.stage_metrics import pipeline_summary
from .session.data_session import DashboardSession, DataMode
from .session.refresh import RefreshController
from .session.store import JsonFileStore

logger = logging.getLogger(__name__)

MAX_ERRORS_SHOWN = 20


def format_summary(orders: Sequence[Order], now: Optional[datetime] = None) -> str:
    """KPI cards and pipeline table as plain text."""
    lines = ["", "KPIs:"]
    for card in calculate_kpis(orders, orders).to_cards():
        unit = f" {card.unit}" if card.unit else ""
        lines.append(f"  [{card.status:>7}] {card.title}: {card.value}{unit}")

    lines.extend(["", "Pipeline:"])
    lines.append(f"  {'Stage':<24}{'SLA':>5}{'Now':>6}{'Avg TAT':>9}{'Delay %':>9}  Health")
    for metrics in pipeline_summary(orders, orders, now=now):
        lines.append(
            f"  {metrics.stage.value:<24}{metrics.sla:>5}{metrics.current_in_stage:>6}"
            f"{metrics.avg_tat:>9.1f}{metrics.delay_percentage:>8.1f}%  {metrics.health.value}"
        )
    return "\n".join(lines)


def format_errors(errors: Sequence[str], limit: int = MAX_ERRORS_SHOWN) -> str:
    if not errors:
        return ""
    lines = ["", f"Processing messages ({len(errors)}):"]
    lines.extend(f"  - {message}" for message in errors[:limit])
    if len(errors) > limit:
        lines.append(f"  ... and {len(errors) - limit} more")
    return "\n".join(lines)


def _report(
    result: ReconcileResult,
    json_path: Optional[str],
    report_dir: Optional[str],
    now: Optional[datetime] = None,
) -> None:
    print("\n" + str(result))
    print(format_errors(result.errors))
    if result.orders:
        print(format_summary(result.orders, now=now))

    if json_path:
        Path(json_path).write_text(json.dumps(result.to_dict(), indent=2), encoding='utf-8')
        logger.info(f"Results saved to {json_path}")

    if report_dir:
        written = write_reports(result.orders, result.suppliers, report_dir)
        for name, path in written.items():
            print(f"Wrote {name} report to {path}")


def _cmd_reconcile(args, config: DashboardConfig) -> int:
    reconciler = SheetReconciler()
    try:
        if args.dir:
            result = reconciler.reconcile_directory(args.dir)
        else:
            if not args.orders or not args.suppliers:
                logger.error("--orders and --suppliers are both required without --dir")
                return 2
            result = reconciler.reconcile_files(args.orders, args.suppliers)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1

    _report(result, args.json, args.report_dir)
    return 0 if result.success else 1


def _cmd_fetch(args, config: DashboardConfig) -> int:
    fetcher = SheetFetcher(timeout=config.request_timeout)
    try:
        order_csv, supplier_csv = fetcher.fetch_pair(
            args.order_url or config.order_sheet_url,
            args.supplier_url or config.supplier_sheet_url,
        )
    except SheetFetchError as e:
        logger.error(f"Error loading from Google Sheets: {e}")
        return 1
    finally:
        fetcher.close()

    result = SheetReconciler().reconcile(order_csv, supplier_csv)
    _report(result, args.json, args.report_dir)
    return 0 if result.success else 1


def _cmd_templates(args, config: DashboardConfig) -> int:
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    templates = {
        'order_sheet_template.csv': generate_order_sheet_template(),
        'supplier_sheet_template.csv': generate_supplier_sheet_template(),
    }
    for filename, text in templates.items():
        path = output_dir / filename
        path.write_text(text, encoding='utf-8')
        print(f"Wrote {path}")
    return 0


def _cmd_mock(args, config: DashboardConfig) -> int:
    generator = MockDataGenerator(random_seed=args.seed if args.seed is not None else config.random_seed)
    suppliers, orders = generator.generate(
        order_count=args.orders if args.orders is not None else config.mock_order_count,
        supplier_count=args.suppliers if args.suppliers is not None else config.mock_supplier_count,
    )
    result = ReconcileResult(orders=orders, suppliers=suppliers)
    _report(result, args.json, args.report_dir)
    return 0


def _cmd_watch(args, config: DashboardConfig) -> int:
    store = JsonFileStore(config.state_path) if config.state_path else None
    session = DashboardSession(config=config, store=store)
    session.initialize()

    if session.data_mode != DataMode.LIVE:
        print(format_errors(session.processing_errors))
        logger.error("Live data unavailable; nothing to watch")
        return 1

    controller = RefreshController(session, interval=args.interval)
    print(format_summary(session.orders, now=session.clock()))
    controller.start()
    try:
        while True:
            time.sleep(controller.interval)
            print(f"\nLast refreshed: {controller.last_refreshed or 'never'}")
            print(format_errors(session.processing_errors))
            print(format_summary(session.orders, now=session.clock()))
    except KeyboardInterrupt:
        pass
    finally:
        controller.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='scm-dashboard',
        description="Reconcile Order and Supplier sheets into a supply chain dashboard",
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    reconcile_parser = subparsers.add_parser('reconcile', help='Reconcile two local CSV exports')
    reconcile_parser.add_argument('--orders', type=str, help='Path to the Order sheet CSV')
    reconcile_parser.add_argument('--suppliers', type=str, help='Path to the Supplier/Line-Item sheet CSV')
    reconcile_parser.add_argument('--dir', type=str, help='Directory holding both CSV exports')

    fetch_parser = subparsers.add_parser('fetch', help='Fetch and reconcile the Google Sheets')
    fetch_parser.add_argument('--order-url', type=str, help='Order sheet URL (default: config)')
    fetch_parser.add_argument('--supplier-url', type=str, help='Supplier sheet URL (default: config)')

    mock_parser = subparsers.add_parser('mock', help='Generate a mock dataset')
    mock_parser.add_argument('--orders', type=int, help='Number of orders')
    mock_parser.add_argument('--suppliers', type=int, help='Number of suppliers')
    mock_parser.add_argument('--seed', type=int, help='Random seed')

    for sub in (reconcile_parser, fetch_parser, mock_parser):
        sub.add_argument('--json', type=str, help='Output JSON results path')
        sub.add_argument('--report-dir', type=str, help='Directory for CSV reports')

    templates_parser = subparsers.add_parser('templates', help='Write example sheet templates')
    templates_parser.add_argument('--output-dir', type=str, default='.', help='Output directory')

    watch_parser = subparsers.add_parser('watch', help='Load live data and refresh it periodically')
    watch_parser.add_argument('--interval', type=float, help='Refresh interval in seconds')

    return parser


COMMANDS = {
    'reconcile': _cmd_reconcile,
    'fetch': _cmd_fetch,
    'templates': _cmd_templates,
    'mock': _cmd_mock,
    'watch': _cmd_watch,
}


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = DashboardConfig.from_env()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(2)

    sys.exit(COMMANDS[args.command](args, config))


if __name__ == "__main__":
    main()
