"""Activity logging package."""

from finvue.audit.logger import ActivityLogger, ActivitySinkInterface

__all__ = ["ActivityLogger", "ActivitySinkInterface"]
