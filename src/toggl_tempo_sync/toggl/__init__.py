"""Toggl Track API integration."""

from toggl_tempo_sync.toggl.client import TogglClient
from toggl_tempo_sync.toggl.models import TogglWorklog

__all__ = ["TogglClient", "TogglWorklog"]
