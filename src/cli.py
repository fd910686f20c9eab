import asyncio
import argparse
from typing import List, Optional

from src import __version__
from src.config import ExporterConfig, load_config
from src.core.days import DayClock
from src.core.errors import ExporterError
from src.core.options import ExporterOptions
from src.operations.operation_factory import OperationFactory
from src.utils.logger import setup_logger, logger
from src.utils.shutdown import install_signal_handlers

def create_parser():
    """Create CLI argument parser. Flags accept one or two leading dashes."""
    parser = argparse.ArgumentParser(description="Beacon chain statistics exporter")

    parser.add_argument("-config", "--config", dest="config_path", default="",
                        help="Path to the config file")
    parser.add_argument("-statistics.day", "--statistics.day", dest="statistics_day", type=int, default=-1,
                        help="Day to export statistics (exported even if it has been exported already)")
    parser.add_argument("-statistics.days", "--statistics.days", dest="statistics_days", default="",
                        help="Days to export statistics as first-last (exported even if exported already)")
    parser.add_argument("-pools.disabled", "--pools.disabled", dest="pools_disabled", action="store_true",
                        help="Disable exporting pools")
    parser.add_argument("-validators.enabled", "--validators.enabled", dest="validators_enabled", action="store_true",
                        help="Toggle exporting validator statistics")
    parser.add_argument("-charts.enabled", "--charts.enabled", dest="charts_enabled", action="store_true",
                        help="Toggle exporting chart series")

    return parser

def options_from_args(args: argparse.Namespace) -> ExporterOptions:
    """Capture parsed flags; each dataset toggle comes from its own flag."""
    return ExporterOptions(
        config_path=args.config_path,
        statistics_day=args.statistics_day,
        statistics_days=args.statistics_days,
        pools_disabled=args.pools_disabled,
        validators_enabled=args.validators_enabled,
        charts_enabled=args.charts_enabled,
    )

async def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    setup_logger()
    parser = create_parser()
    args = parser.parse_args(argv)
    options = options_from_args(args)

    logger.info("Starting statistics exporter", version=__version__, config_path=options.config_path)

    try:
        return await run(options)
    except ExporterError as e:
        logger.critical("Fatal error", error=str(e), error_type=type(e).__name__)
        return 1
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        return 0

def load_exporter_config(path: str) -> ExporterConfig:
    if not path:
        logger.warning("No config file given, using environment defaults")
        return ExporterConfig()
    return load_config(path)

async def run(options: ExporterOptions, factory: Optional[OperationFactory] = None) -> int:
    """Run a backfill if one was requested, otherwise the background loops."""
    # Malformed ranges must fail before anything touches the store
    backfill_days = options.backfill_days()

    if factory is None:
        factory = OperationFactory(options, load_exporter_config(options.config_path))

    try:
        day_clock = await factory.resolve_day_clock()

        if backfill_days is not None:
            return await handle_backfill(factory, backfill_days, day_clock)
        return await handle_background(factory, day_clock)
    finally:
        factory.close()

async def handle_backfill(factory: OperationFactory, days: range, day_clock: DayClock) -> int:
    """Recompute the requested days and return; background loops are not started."""
    operation = factory.create_backfill(days, day_clock)
    result = await operation.execute()
    logger.info("Backfill completed",
               days=result["days"],
               duration=round(result["duration"], 2),
               details=result["details"])
    return 0

async def handle_background(factory: OperationFactory, day_clock: DayClock) -> int:
    """Run the background loops until a stop signal arrives."""
    stop_event = asyncio.Event()
    install_signal_handlers(stop_event)

    operations = factory.create_background(day_clock, stop_event)
    if not operations:
        logger.warning("Nothing to run, enable a dataset or the pools loop")
        return 0

    tasks = [
        asyncio.create_task(op.execute(), name=op.name)
        for op in operations
    ]
    stop_waiter = asyncio.create_task(stop_event.wait(), name="stop")

    await asyncio.wait([stop_waiter, *tasks], return_when=asyncio.FIRST_COMPLETED)
    stop_event.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)
    stop_waiter.cancel()

    exit_code = 0
    for task, result in zip(tasks, results):
        if isinstance(result, BaseException):
            logger.error("Background loop failed", loop=task.get_name(), error=str(result))
            exit_code = 1
        else:
            logger.info("Background loop finished", loop=task.get_name(), result=result)

    logger.info("exiting...")
    return exit_code
