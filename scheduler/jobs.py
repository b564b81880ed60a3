import logging
import os
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

REVIEW_REFRESH_JOB_ID = "review_refresh"
OFFERING_RELOAD_JOB_ID = "offering_reload"


def review_refresh():
    """Daily job: reload all reviews -> normalize -> rescore from scratch -> export."""
    logger.info("Starting review refresh...")
    from loaders.review_loader import clear_reviews, load_reviews, normalize_reviews
    from etl.pipeline import score_and_export
    from db.connection import get_session, init_db

    session = get_session()
    try:
        init_db(session.get_bind())
        clear_reviews(session)
        inserted = load_reviews(session, os.environ.get("REVIEW_DATA_DIR", "data-review/data"))
        logger.info(f"Loaded {inserted} reviews")
        normalize_reviews(session)

        stats = score_and_export(
            session,
            output_dir=os.environ.get("OUTPUT_DIR", "."),
            max_workers=int(os.environ.get("SCORE_WORKERS", "1")),
        )
        logger.info(f"Scoring: {stats}")
    except Exception as e:
        logger.error(f"Review refresh failed: {e}")
    finally:
        session.close()


def offering_reload():
    """Quarterly job: load newly published course offerings (instructor rosters)."""
    logger.info("Starting course offering reload...")
    from loaders.offering_loader import load_offerings
    from db.connection import get_session, init_db

    session = get_session()
    try:
        init_db(session.get_bind())
        inserted = load_offerings(session, os.environ.get("CQ_DATA_DIR", "data-cq"))
        logger.info(f"Loaded {inserted} new course offerings")
    except Exception as e:
        logger.error(f"Course offering reload failed: {e}")
    finally:
        session.close()


def create_scheduler(start: bool = True) -> BlockingScheduler:
    """Create and optionally start the APScheduler."""
    scheduler = BlockingScheduler()

    scheduler.add_job(
        review_refresh,
        trigger=CronTrigger(hour=2, minute=0),
        id=REVIEW_REFRESH_JOB_ID,
        replace_existing=True,
    )

    scheduler.add_job(
        offering_reload,
        trigger=CronTrigger(month="1,2,6,9", day=1, hour=1),
        id=OFFERING_RELOAD_JOB_ID,
        replace_existing=True,
    )

    if start:
        logger.info("Scheduler started.")
        scheduler.start()

    return scheduler


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_scheduler()
