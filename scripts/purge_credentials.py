#!/usr/bin/env python
"""
Purge expired verification and hand-off codes

The API runs the same job on an interval when ENABLE_SCHEDULER is true; use
this script when the scheduler is disabled.

Usage:
    python scripts/purge_credentials.py

Schedule:
    */15 * * * * cd /app && python scripts/purge_credentials.py >> /var/log/purge_credentials.log 2>&1
"""
import sys
import logging
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from thamel_loyalty.config import config
from thamel_loyalty.logging_config import setup_logging
from thamel_loyalty.services.scheduled_jobs import run_credential_purge_job

logger = logging.getLogger(__name__)


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Delete expired one-time codes")
    parser.parse_args()

    setup_logging(env=config.ENV, log_level=config.LOG_LEVEL)
    removed = run_credential_purge_job()
    logger.info(f"Credential purge finished: {removed} rows removed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
