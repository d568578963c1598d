"""
Scheduled jobs
APScheduler runs the daily SQLite backup
"""

import os
import shutil
import logging
from datetime import datetime
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from shiv_accounts.core.config import settings

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "auto_backup_"

scheduler: Optional[AsyncIOScheduler] = None


def get_db_path() -> Optional[str]:
    """SQLite file path, or None for in-memory and non-SQLite databases"""
    db_url = settings.SQLITE_DATABASE_URI
    for prefix in ("sqlite+aiosqlite:///", "sqlite:///"):
        if db_url.startswith(prefix):
            path = db_url[len(prefix):]
            return path if path and path != ":memory:" else None
    return None


def get_backup_dir() -> str:
    backup_dir = os.path.abspath(settings.BACKUP_DIR)
    os.makedirs(backup_dir, exist_ok=True)
    return backup_dir


def auto_backup() -> Optional[str]:
    """Copy the database file into the backup directory, returning the new file path"""
    db_path = get_db_path()
    if not db_path or not os.path.exists(db_path):
        logger.warning(f"Database file not found, backup skipped: {db_path}")
        return None

    backup_dir = get_backup_dir()
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = os.path.join(backup_dir, f"{BACKUP_PREFIX}{timestamp}.db")

    try:
        shutil.copy2(db_path, backup_path)
    except OSError as e:
        logger.error(f"❌ Automatic backup failed: {e}")
        return None

    size_mb = os.stat(backup_path).st_size / 1024 / 1024
    logger.info(f"✅ Automatic backup written: {os.path.basename(backup_path)} ({size_mb:.2f} MB)")

    cleanup_old_backups(backup_dir, keep_count=settings.AUTO_BACKUP_KEEP_COUNT)
    return backup_path


def cleanup_old_backups(backup_dir: str, keep_count: int = 7) -> int:
    """Keep only the newest `keep_count` automatic backups; returns how many were removed"""
    backups = []
    for filename in os.listdir(backup_dir):
        if filename.startswith(BACKUP_PREFIX) and filename.endswith(".db"):
            filepath = os.path.join(backup_dir, filename)
            backups.append((os.stat(filepath).st_mtime, filename, filepath))

    backups.sort(reverse=True)

    removed = 0
    for _, filename, filepath in backups[keep_count:]:
        try:
            os.remove(filepath)
            removed += 1
            logger.info(f"🗑️ Removed old backup: {filename}")
        except OSError as e:
            logger.warning(f"Could not remove old backup {filename}: {e}")
    return removed


def init_scheduler():
    """Create and start the scheduler"""
    global scheduler

    if not settings.AUTO_BACKUP_ENABLED:
        logger.info("📦 Automatic backup disabled")
        return
    if get_db_path() is None:
        logger.info("📦 Automatic backup skipped: database is not a SQLite file")
        return

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        auto_backup,
        trigger=CronTrigger(
            hour=settings.AUTO_BACKUP_HOUR,
            minute=settings.AUTO_BACKUP_MINUTE
        ),
        id="auto_backup",
        name="Automatic database backup",
        replace_existing=True
    )

    scheduler.start()
    logger.info(f"⏰ Scheduler started - daily backup at {settings.AUTO_BACKUP_HOUR:02d}:{settings.AUTO_BACKUP_MINUTE:02d}")


def shutdown_scheduler():
    global scheduler
    if scheduler:
        scheduler.shutdown()
        scheduler = None
        logger.info("⏰ Scheduler stopped")
