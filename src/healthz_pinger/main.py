import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import List, Optional

from healthz_pinger.config import AppConfig, RUN_MODE_ONCE, load_config
from healthz_pinger.factories.probe_factory import create_probe
from healthz_pinger.lifecycle import ProcessLifecycle
from healthz_pinger.scheduler.cron import CronError, CronSchedule
from healthz_pinger.scheduler.cron_scheduler import CronScheduler


async def _run_single(probe, endpoint: str, stop_event: asyncio.Event) -> None:
    """Probe once, abandoning the request if shutdown is requested first."""
    probe_task = asyncio.create_task(probe.run_once(endpoint))
    stop_task = asyncio.create_task(stop_event.wait())
    await asyncio.wait({probe_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    for task in (probe_task, stop_task):
        if not task.done():
            task.cancel()
    await asyncio.gather(probe_task, stop_task, return_exceptions=True)


async def main(config: Optional[AppConfig] = None, stop_event: Optional[asyncio.Event] = None) -> int:
    """
    Run the health pinger until shutdown.

    In "once" mode a single probe is issued and the coroutine returns. In
    "schedule" mode the probe fires on every cadence boundary. In both modes
    SIGINT and SIGTERM log a shutdown notice and end the run with 0. OS
    signals are only registered when no stop_event is injected, so tests can
    drive shutdown themselves.
    """
    config = config or load_config()
    endpoint = config.probe.endpoint

    schedule = None
    if config.schedule.run_mode != RUN_MODE_ONCE:
        schedule = CronSchedule.parse(config.schedule.cadence)

    lifecycle = None
    if stop_event is None:
        stop_event = asyncio.Event()
        lifecycle = ProcessLifecycle()
        lifecycle.on_shutdown(stop_event.set)
        lifecycle.install()

    try:
        async with create_probe(config.probe) as probe:
            if schedule is None:
                logging.info("Running a single health check against %s", endpoint)
                await _run_single(probe, endpoint, stop_event)
                return 0

            async def tick() -> None:
                await probe.run_once(endpoint)

            scheduler = CronScheduler(schedule)
            logging.info("Health pinger started for %s", endpoint)
            scheduler.start(tick)

            try:
                await stop_event.wait()
            finally:
                await scheduler.stop()
    finally:
        if lifecycle is not None:
            lifecycle.uninstall()

    logging.info("Shutdown complete.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Periodically GET a health endpoint and log the outcome")
    parser.add_argument("--config", default="config.yaml", help="Path to YAML config file (optional)")
    parser.add_argument("--once", action="store_true", help="Probe once immediately and exit")
    parser.add_argument("--cadence", help="Cron expression overriding SCHEDULE.CADENCE, e.g. '0 * * * *'")
    return parser


def cli(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    schedule = config.schedule
    if args.once:
        schedule = dataclasses.replace(schedule, run_mode=RUN_MODE_ONCE)
    if args.cadence:
        schedule = dataclasses.replace(schedule, cadence=args.cadence)
    config = dataclasses.replace(config, schedule=schedule)

    try:
        return asyncio.run(main(config))
    except CronError as exc:
        logging.error("Invalid cadence: %s", exc)
        return 2
    except KeyboardInterrupt:
        logging.info("Health pinger stopped by user.")
        return 0


if __name__ == "__main__":
    sys.exit(cli())
