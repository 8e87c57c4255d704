"""Tempo API integration."""

from toggl_tempo_sync.tempo.client import TempoClient
from toggl_tempo_sync.tempo.models import TempoWorklog

__all__ = ["TempoClient", "TempoWorklog"]
