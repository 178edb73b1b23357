"""Background automation: periodic temp cleanup"""

from .scheduler import CleanupScheduler, DEFAULT_CLEANUP_CRON

__all__ = ["CleanupScheduler", "DEFAULT_CLEANUP_CRON"]
