"""Periodic trigger for reminder dispatch."""

import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Config, load_config
from .dispatch import run_dispatch

logger = logging.getLogger(__name__)


def dispatch_job(config: Config) -> None:
    """Run one dispatch and log its outcome."""
    summary = run_dispatch(config)
    if not summary.ok:
        logger.error(f"Reminder dispatch failed: {summary.error}")
    elif summary.notified_count:
        logger.info(f"Notified {summary.notified_count} users ({summary.sent_count} sent)")


def setup_scheduler(config: Config | None = None) -> BlockingScheduler:
    """Set up the once-a-minute reminder check."""
    if config is None:
        config = load_config()

    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        dispatch_job,
        CronTrigger(minute="*", second=0),
        args=[config],
        id="reminder_dispatch",
        max_instances=1,
        coalesce=True,
    )
    logger.info("Scheduled reminder dispatch every minute")
    return scheduler


def run_scheduler() -> None:
    """Run the reminder scheduler until interrupted."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    config = load_config()
    scheduler = setup_scheduler(config)

    logger.info("Starting Finire reminder scheduler...")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
