"""Scheduler エントリポイント: python -m gymadmin.scheduler で起動"""
import signal
import sys
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from gymadmin.core.config import settings
from gymadmin.core.logging import setup_logging, get_logger
from gymadmin.scheduler.subscription_expirer import expire_subscriptions

setup_logging(debug=settings.DEBUG, env=settings.ENV)
logger = get_logger("scheduler")

scheduler = BlockingScheduler(timezone=settings.SCHEDULER_TIMEZONE)


def signal_handler(sig, frame):
    logger.info("Scheduler停止シグナル受信")
    scheduler.shutdown(wait=False)
    sys.exit(0)


signal.signal(signal.SIGTERM, signal_handler)
signal.signal(signal.SIGINT, signal_handler)


def main():
    logger.info("Scheduler起動")

    # N分ごと: 期限切れ購読の確定
    scheduler.add_job(
        expire_subscriptions,
        IntervalTrigger(minutes=settings.EXPIRY_SWEEP_INTERVAL_MINUTES),
        id="subscription_expirer",
        max_instances=1,
        coalesce=True,
    )

    # 起動直後にも一度実行
    expire_subscriptions()

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler終了")


if __name__ == "__main__":
    main()
