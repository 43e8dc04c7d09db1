"""
APScheduler-based sweep of idle chat sessions.

An AsyncIOScheduler interval job calls SessionRegistry.sweep_expired every
SESSION_SWEEP_INTERVAL_SECONDS. Started and stopped from the FastAPI lifespan; the
scheduler instance is kept on app.state.session_scheduler.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import SESSION_SWEEP_INTERVAL_SECONDS
from app.core.session_store import SessionRegistry, get_registry

logger = logging.getLogger(__name__)


def run_sweep_job(registry: SessionRegistry) -> int:
    """Run one sweep; log and return 0 on failure so the scheduler keeps going."""
    try:
        return registry.sweep_expired()
    except Exception as e:
        logger.warning("[scheduler:sweep] failed: %s", e)
        return 0


def start_session_scheduler(app, registry: SessionRegistry | None = None) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_sweep_job,
        trigger=IntervalTrigger(seconds=SESSION_SWEEP_INTERVAL_SECONDS),
        args=[registry or get_registry()],
        id="session_sweep",
        coalesce=True,
        max_instances=1,
    )
    scheduler.start()
    app.state.session_scheduler = scheduler
    logger.info("[scheduler] session sweep every %ds", SESSION_SWEEP_INTERVAL_SECONDS)
    return scheduler


def shutdown_session_scheduler(app) -> None:
    scheduler = getattr(app.state, "session_scheduler", None)
    if scheduler is None:
        return
    if scheduler.running:
        scheduler.shutdown(wait=False)
    app.state.session_scheduler = None
