# dailyinterval/core/cli.py
"""
CLI for previewing and watching daily-interval grids.

    dailyinterval preview --start 1:00 --interval 120 --count 6
    dailyinterval watch --start 0:00 --interval 15 --timezone Europe/Berlin
"""

import argparse
import asyncio
import logging
import signal
import sys
from datetime import datetime, timedelta, timezone
from typing import Optional

from dailyinterval.core.errors import ConfigurationError, DailyIntervalError, ErrorCode
from dailyinterval.core.logging import configure_level, get_logger
from dailyinterval.core.models.config import SchedulerConfig
from dailyinterval.core.models.schedule import AnchorSpec, DailyIntervalSpec
from dailyinterval.core.scheduler.calculator import upcoming_fire_times
from dailyinterval.core.scheduler.dst import load_timezone
from dailyinterval.core.scheduler.service import DailyIntervalScheduler


def setup_logging(loglevel: str) -> None:
    """Configure logging level for every dailyinterval logger."""
    configure_level(getattr(logging, loglevel.upper(), logging.INFO))


def _parse_now(value: Optional[str]) -> Optional[datetime]:
    """Parse --now as ISO 8601; naive values are taken as UTC."""
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise ConfigurationError(
            message=f"invalid --now value '{value}'",
            code=ErrorCode.CLI_INVALID_ARGS,
            notes=[str(e)],
            help_text='use ISO 8601, e.g. 2025-03-30T00:45:00+01:00',
        ) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def preview_command(args: argparse.Namespace) -> None:
    """Print the next fire times of a grid."""
    anchor = AnchorSpec.parse(args.start)
    spec = DailyIntervalSpec(anchor=anchor, interval_minutes=args.interval)
    tz = load_timezone(args.timezone)

    fires = upcoming_fire_times(
        anchor,
        timedelta(minutes=spec.interval_minutes),
        args.count,
        tz,
        now=_parse_now(args.now),
    )
    for fire_at in fires:
        local = fire_at.astimezone(tz)
        print(f'{local.isoformat(timespec="minutes")}  {local.strftime("%Z")}')


def watch_command(args: argparse.Namespace) -> None:
    """Run a grid and log every tick until interrupted."""
    logger = get_logger('cli')
    setup_logging(args.loglevel)

    config = SchedulerConfig(timezone=args.timezone)

    async def run_watch() -> None:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()

        def signal_handler() -> None:
            logger.info('Received interrupt signal, stopping...')
            stop.set()

        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, signal_handler)
            except NotImplementedError:
                pass

        async with DailyIntervalScheduler(config) as scheduler:

            def tick() -> None:
                logger.info(f'tick {args.message}'.rstrip())

            timer_id = scheduler.create(tick, args.interval, args.start)
            state = scheduler.get_state(timer_id)
            if state is not None and state.next_fire_at is not None:
                logger.info(
                    f'Watching {args.start} every {state.interval_minutes} min, '
                    f'first tick at {state.next_fire_at.astimezone(scheduler.tz)}'
                )
            await stop.wait()

    try:
        asyncio.run(run_watch())
    except KeyboardInterrupt:
        logger.info('Watch interrupted by user')


def _add_grid_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '-s',
        '--start',
        default='0:0',
        help='Grid anchor in 24-hour H:M (default: 0:0)',
    )
    parser.add_argument(
        '-i',
        '--interval',
        type=int,
        default=1,
        help='Minutes between grid points, values < 1 clamp to 1 (default: 1)',
    )
    parser.add_argument(
        '--timezone',
        default=None,
        help='IANA timezone (default: local zone)',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='dailyinterval',
        description='Fire callbacks on a daily wall-clock grid',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Next six grid points of 1:00, 3:00, 5:00, ...
  dailyinterval preview --start 1:00 --interval 120 --count 6

  # Grid across a spring-forward night
  dailyinterval preview -s 0:30 -i 60 --timezone Europe/Berlin --now 2025-03-30T00:00:00+01:00

  # Log a tick every 15 minutes
  dailyinterval watch --interval 15
""",
    )
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    preview_parser = subparsers.add_parser(
        'preview',
        help='Print upcoming fire times',
    )
    _add_grid_arguments(preview_parser)
    preview_parser.add_argument(
        '-n',
        '--count',
        type=int,
        default=5,
        help='Number of fire times to print (default: 5)',
    )
    preview_parser.add_argument(
        '--now',
        default=None,
        help='Pretend the current time is this ISO 8601 instant',
    )

    watch_parser = subparsers.add_parser(
        'watch',
        help='Log a line at every grid point until interrupted',
    )
    _add_grid_arguments(watch_parser)
    watch_parser.add_argument(
        '-m',
        '--message',
        default='',
        help='Text appended to every tick line',
    )
    watch_parser.add_argument(
        '--loglevel',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='INFO',
        type=str.upper,
        help='Logging level (default: INFO)',
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        match args.command:
            case 'preview':
                preview_command(args)
            case 'watch':
                watch_command(args)
            case _:
                parser.print_help()
                sys.exit(1)
    except DailyIntervalError as e:
        print(e.format_rust_style(), file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print('\nInterrupted by user')
        sys.exit(0)


if __name__ == '__main__':
    main()
