"""Storage for settings, issue mappings and API tokens."""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from toggl_tempo_sync.utils.logging import DEFAULT_CONFIG_DIR

TOKEN_SERVICES = ("toggl", "tempo")


def _check_service(service: str) -> None:
    if service not in TOKEN_SERVICES:
        raise ValueError(f"Unknown service {service!r}, expected one of {', '.join(TOKEN_SERVICES)}")


class StorageManager:
    """Manages issue mappings, state and token files in the config directory."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize storage manager.

        Args:
            config_dir: Directory to store configuration. Defaults to ~/.toggl-tempo-sync/
        """
        self.config_dir = config_dir or DEFAULT_CONFIG_DIR
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.mapping_file = self.config_dir / "mapping.yaml"
        self.state_file = self.config_dir / "state.json"
        self.tokens_file = self.config_dir / "tokens.json"

    def load_mapping(self) -> dict[str, Any]:
        """Load the issue mapping configuration.

        Returns:
            Mapping configuration dictionary.
        """
        if self.mapping_file.exists():
            with open(self.mapping_file) as f:
                return yaml.safe_load(f) or {}
        return {}

    def save_mapping(self, mapping: dict[str, Any]) -> None:
        """Save the issue mapping configuration.

        Args:
            mapping: Mapping configuration to save.
        """
        with open(self.mapping_file, "w") as f:
            yaml.dump(mapping, f, default_flow_style=False, sort_keys=False)

    def load_state(self) -> dict[str, Any]:
        """Load settings and synchronization state.

        Returns:
            State dictionary.
        """
        if self.state_file.exists():
            with open(self.state_file) as f:
                return json.load(f)
        return {}

    def save_state(self, state: dict[str, Any]) -> None:
        """Save settings and synchronization state.

        Args:
            state: State dictionary to save.
        """
        with open(self.state_file, "w") as f:
            json.dump(state, f, indent=2)

    def update_state(self, **values: Any) -> None:
        """Merge values into the stored state.

        Args:
            **values: Keys to set.
        """
        state = self.load_state()
        state.update(values)
        self.save_state(state)

    def get_last_sync_date(self) -> datetime | None:
        """Get the date of the last synchronization run.

        Returns:
            Last sync datetime or None if never synced.
        """
        state = self.load_state()
        if "last_sync_date" in state:
            return datetime.fromisoformat(state["last_sync_date"])
        return None

    def set_last_sync_date(self, date: datetime) -> None:
        """Set the last synchronization date.

        Args:
            date: The synchronization datetime.
        """
        self.update_state(last_sync_date=date.isoformat())

    def load_tokens(self) -> dict[str, str]:
        """Load the Toggl and Tempo API tokens.

        Returns:
            Dictionary of service names to tokens.
        """
        if self.tokens_file.exists():
            with open(self.tokens_file) as f:
                return json.load(f)
        return {}

    def save_tokens(self, tokens: dict[str, str]) -> None:
        """Save API tokens, readable by the owner only.

        The file is created with mode 0600.

        Args:
            tokens: Dictionary of service names to tokens.
        """
        fd = os.open(self.tokens_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(tokens, f)
        # Files from older runs may have been created with wider permissions
        self.tokens_file.chmod(0o600)

    def get_token(self, service: str) -> str | None:
        """Get the token of a service.

        Args:
            service: "toggl" or "tempo".

        Returns:
            Token if available, None otherwise.

        Raises:
            ValueError: If the service is unknown.
        """
        _check_service(service)
        return self.load_tokens().get(service)

    def set_token(self, service: str, token: str) -> None:
        """Save the token of a service.

        Args:
            service: "toggl" or "tempo".
            token: API token. Surrounding whitespace is dropped.

        Raises:
            ValueError: If the service is unknown or the token is empty.
        """
        _check_service(service)
        token = token.strip()
        if not token:
            raise ValueError(f"Empty {service} API token")

        tokens = self.load_tokens()
        tokens[service] = token
        self.save_tokens(tokens)

    def has_tokens(self) -> bool:
        """True if tokens of both Toggl and Tempo are stored."""
        tokens = self.load_tokens()
        return all(tokens.get(service) for service in TOKEN_SERVICES)
