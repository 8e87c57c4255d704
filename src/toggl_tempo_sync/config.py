"""Configuration management for the Toggl to Tempo synchronizer."""

from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

from toggl_tempo_sync.utils.storage import StorageManager


class Config:
    """Manages settings and Jira issue mappings."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize configuration.

        Args:
            config_dir: Directory for storing configuration.
        """
        self.storage = StorageManager(config_dir)
        self._mapping = self.storage.load_mapping()
        self._state = self.storage.load_state()

    @property
    def toggl_workspace_id(self) -> int | None:
        """Toggl workspace new time entries are created in."""
        value = self._state.get("toggl_workspace_id")
        return int(value) if value is not None else None

    @property
    def tempo_account_id(self) -> str | None:
        """Atlassian account id Tempo worklogs are authored by."""
        return self._state.get("tempo_account_id")

    @property
    def timezone(self) -> ZoneInfo | None:
        """Time zone of worklog wall-clock times, None for the system zone."""
        name = self._state.get("timezone")
        return ZoneInfo(name) if name else None

    def update_settings(self, **settings: Any) -> None:
        """Persist settings such as toggl_workspace_id or timezone.

        Args:
            **settings: Settings to store.
        """
        self._state.update(settings)
        self.storage.update_state(**settings)

    def get_mapping(self) -> dict[str, Any]:
        """Get current issue mappings.

        Returns:
            Mapping configuration.
        """
        return self._mapping

    def get_all_mappings(self) -> dict[str, dict[str, Any]]:
        """Get all issue mappings keyed by Jira issue key."""
        return self._mapping.get("issues", {})

    def update_mapping(self, issue_key: str, mapping: dict[str, Any]) -> None:
        """Update mapping for a Jira issue.

        Args:
            issue_key: Jira issue key.
            mapping: Mapping details (tempo_issue_id and name, or skip=True).
        """
        if "issues" not in self._mapping:
            self._mapping["issues"] = {}

        self._mapping["issues"][issue_key] = mapping
        self.storage.save_mapping(self._mapping)

    def get_mapping_for(self, issue_key: str) -> dict[str, Any] | None:
        """Get mapping for a specific Jira issue.

        Args:
            issue_key: Jira issue key.

        Returns:
            Mapping details or None if not mapped.
        """
        return self.get_all_mappings().get(issue_key)

    def get_issue_id(self, issue_key: str | None) -> int | None:
        """Get the numeric Jira issue id Tempo needs for an issue key.

        Args:
            issue_key: Jira issue key.

        Returns:
            Issue id or None if the key is not mapped.
        """
        if not issue_key:
            return None
        mapping = self.get_mapping_for(issue_key)
        if not mapping or mapping.get("skip") or "tempo_issue_id" not in mapping:
            return None
        return int(mapping["tempo_issue_id"])

    def should_skip(self, issue_key: str) -> bool:
        """Check if worklogs of a Jira issue should not be synchronized.

        Args:
            issue_key: Jira issue key.

        Returns:
            True if should be skipped, False otherwise.
        """
        mapping = self.get_mapping_for(issue_key)
        return bool(mapping and mapping.get("skip", False))

    def is_mapped(self, issue_key: str) -> bool:
        """Check if a Jira issue is mapped.

        Args:
            issue_key: Jira issue key.

        Returns:
            True if mapped, False otherwise.
        """
        mapping = self.get_mapping_for(issue_key)
        if not mapping:
            return False
        # Mapped if it has an issue id or skip flag
        return "tempo_issue_id" in mapping or bool(mapping.get("skip", False))
