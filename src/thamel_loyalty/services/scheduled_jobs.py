"""
Scheduled Jobs Service
Background housekeeping: purging expired credentials
"""
import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError

from ..config import config

logger = logging.getLogger(__name__)


def create_scheduler() -> BackgroundScheduler:
    return BackgroundScheduler(
        job_defaults={
            'coalesce': True,  # Combine missed runs
            'max_instances': 1,  # Only one instance at a time
            'misfire_grace_time': 300,
        }
    )


def start_scheduler(scheduler: Optional[BackgroundScheduler] = None) -> BackgroundScheduler:
    """
    Register jobs and start the scheduler

    Returns the running scheduler so the caller can stop it on shutdown.
    """
    scheduler = scheduler or create_scheduler()

    if scheduler.running:
        logger.warning("Scheduler already running")
        return scheduler

    scheduler.add_job(
        func=run_credential_purge_job,
        trigger=IntervalTrigger(minutes=config.CREDENTIAL_PURGE_INTERVAL_MINUTES),
        id='credential_purge',
        name='Expired credential purge',
        replace_existing=True,
    )
    logger.info(f"Registered credential purge job (every {config.CREDENTIAL_PURGE_INTERVAL_MINUTES} minutes)")

    scheduler.start()
    logger.info("Background scheduler started")
    return scheduler


def stop_scheduler(scheduler: BackgroundScheduler) -> None:
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background scheduler stopped")


def run_credential_purge_job(session_factory=None) -> int:
    """Delete expired verification and hand-off codes"""
    from ..db.engine import SessionLocal
    from .credential_store import CredentialStore

    db = (session_factory or SessionLocal)()
    try:
        return CredentialStore(db).purge_expired()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Credential purge job failed", exc_info=True)
        return 0
    finally:
        db.close()
