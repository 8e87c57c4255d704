"""Utility modules for the Toggl to Tempo synchronizer."""

from toggl_tempo_sync.utils.logging import get_logger, setup_logging
from toggl_tempo_sync.utils.storage import StorageManager

__all__ = ["get_logger", "setup_logging", "StorageManager"]
