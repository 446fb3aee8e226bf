# storefront/tasks/expire.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from storefront.celery_worker import celery_app
from storefront.data.database import make_engine, make_session_factory
from storefront.repos.guest_repo import GuestRepo
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger
from storefront.utils.settings import DATABASE_URL

logger = get_logger(__name__)

_session_factory = None


def _worker_session() -> Session:
    # built on first use inside the worker process, not at import
    global _session_factory
    if _session_factory is None:
        _session_factory = make_session_factory(make_engine(DATABASE_URL))
    return _session_factory()


def purge_expired(db: Session, now: datetime | None = None) -> dict:
    """Delete expired guests (with their carts) and expired auth sessions."""
    now = now or datetime.now(timezone.utc)
    try:
        guests = GuestRepo(db).purge_expired(now)
        sessions = UserRepo(db).purge_expired_sessions(now)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return {"guests": guests, "auth_sessions": sessions}


@celery_app.task(name="storefront.tasks.expire.purge_expired_guests_task")
def purge_expired_guests_task():
    logger.info("purge_expired.started")

    db = _worker_session()
    try:
        result = purge_expired(db)
    finally:
        db.close()

    logger.info("purge_expired.finished", **result)
    return result
