"""Main entry point for the Adaptive Study Scheduler."""

import argparse
import json
import logging
import sys
from pathlib import Path

from study_scheduler.errors import SchedulerError
from study_scheduler.service import SchedulerService
from study_scheduler.storage import FileStore
from study_scheduler.utils.config import resolve_config
from study_scheduler.utils.datetime_utils import parse_date, parse_timestamp
from study_scheduler.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config.yaml'


def build_service(config_path: str, store_path: str = None) -> SchedulerService:
    """Create a service over the configured file store."""
    if config_path == DEFAULT_CONFIG_PATH and not Path(config_path).exists():
        config_path = None
    config = resolve_config(config_path)
    path = store_path or config.get('store', {}).get('path', 'data/study_store.yaml')
    return SchedulerService(FileStore(path), config)


def print_plan(plan, output_format: str):
    """Print a plan in the requested format."""
    if output_format == 'json':
        print(json.dumps(plan.to_dict(), indent=2, default=str))
    else:
        print(plan.to_human_readable())


def run_plan(args) -> int:
    """Print the plan for a day."""
    service = build_service(args.config, args.store)
    plan = service.get_daily_plan(
        args.user,
        parse_date(args.date, 'date'),
        daily_budget_minutes=args.budget,
        now=parse_timestamp(args.now, 'now'),
    )
    print_plan(plan, args.format)
    return 0


def run_complete(args) -> int:
    """Record a completed occurrence and print the refreshed plan."""
    service = build_service(args.config, args.store)
    plan = service.complete_occurrence(
        args.user,
        args.task,
        parse_date(args.date, 'date'),
        args.minutes,
        completed_at=parse_timestamp(args.completed_at, 'completed_at'),
        daily_budget_minutes=args.budget,
    )
    print_plan(plan, args.format)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Adaptive Study Scheduler"
    )
    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_CONFIG_PATH,
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--store',
        type=str,
        default=None,
        help='Path to the YAML/JSON store file (default: from config)'
    )
    parser.add_argument(
        '--format',
        choices=['text', 'json'],
        default='text',
        help='Output format (default: text)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    plan_parser = subparsers.add_parser('plan', help='Show the study plan for a day')
    plan_parser.add_argument('--user', required=True, help='User identifier')
    plan_parser.add_argument('--date', required=True, help='Target date (YYYY-MM-DD)')
    plan_parser.add_argument('--budget', type=float, default=None,
                             help="Daily budget in minutes (default: profile's target)")
    plan_parser.add_argument('--now', default=None,
                             help='Pin the current time (ISO timestamp) for reproducible plans')
    plan_parser.set_defaults(handler=run_plan)

    complete_parser = subparsers.add_parser('complete', help='Record a completed occurrence')
    complete_parser.add_argument('--user', required=True, help='User identifier')
    complete_parser.add_argument('--task', required=True, help='Task template identifier')
    complete_parser.add_argument('--date', required=True, help='Occurrence date (YYYY-MM-DD)')
    complete_parser.add_argument('--minutes', type=float, required=True, help='Actual minutes spent')
    complete_parser.add_argument('--completed-at', default=None,
                                 help='Completion time (ISO timestamp, default: now)')
    complete_parser.add_argument('--budget', type=float, default=None,
                                 help="Daily budget in minutes (default: profile's target)")
    complete_parser.set_defaults(handler=run_complete)

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    configure_logging()
    args = build_parser().parse_args(argv)

    try:
        return args.handler(args)
    except SchedulerError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
