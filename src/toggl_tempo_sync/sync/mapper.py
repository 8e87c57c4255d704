"""Interactive mapping of Jira issue keys to Tempo issue ids."""

import logging
from typing import Any

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from toggl_tempo_sync.config import Config

logger = logging.getLogger(__name__)
console = Console()


class IssueMapper:
    """Asks the user for the Jira issue id behind an issue key.

    Tempo v4 identifies issues by numeric id, Toggl descriptions carry the
    human readable key.
    """

    def __init__(self, config: Config) -> None:
        """Initialize issue mapper.

        Args:
            config: Application configuration.
        """
        self.config = config

    def needs_mapping(self, issue_key: str) -> bool:
        """Check if an issue key needs mapping.

        Args:
            issue_key: Jira issue key.

        Returns:
            True if mapping is needed, False otherwise.
        """
        return not self.config.is_mapped(issue_key)

    def prompt_for_mapping(self, issue_key: str) -> dict[str, Any] | None:
        """Interactively prompt user to map a Jira issue key.

        Args:
            issue_key: Jira issue key.

        Returns:
            Mapping dictionary with tempo_issue_id and name,
            or {"skip": True} if user wants to skip,
            or None if user cancels.
        """
        console.print(f"\n[yellow]Unmapped Jira issue: {issue_key}[/yellow]")

        options = ["Enter issue id", "Show existing mappings", "Skip this issue", "Cancel"]
        for idx, option in enumerate(options, 1):
            console.print(f"  {idx}. {option}")

        choice = Prompt.ask("Choose an option", choices=["1", "2", "3", "4"])

        if choice == "4":
            return None
        if choice == "3":
            return {"skip": True}
        if choice == "2":
            self.show_mappings()
        return self._prompt_for_issue_id(issue_key)

    def show_mappings(self) -> None:
        """Print existing mappings as a table."""
        existing_mappings = self.config.get_all_mappings()

        if not existing_mappings:
            console.print("[yellow]No existing mappings found[/yellow]")
            return

        table = Table(title="Existing Mappings")
        table.add_column("Jira issue", style="magenta")
        table.add_column("Tempo issue id", style="green")
        table.add_column("Name", style="cyan")

        for key, mapping in existing_mappings.items():
            if mapping.get("skip"):
                table.add_row(key, "[red]SKIP[/red]", "-")
            else:
                table.add_row(key, str(mapping.get("tempo_issue_id", "?")), mapping.get("name", "-"))

        console.print(table)

    def _prompt_for_issue_id(self, issue_key: str) -> dict[str, Any]:
        """Prompt for the numeric Jira issue id.

        Returns:
            Mapping dictionary with tempo_issue_id and name.
        """
        while True:
            issue_id = Prompt.ask(f"Jira issue id of {issue_key} (numeric, required)").strip()
            if issue_id.isdigit():
                break
            console.print("[red]Issue id must be a number[/red]")

        name = Prompt.ask("Friendly name (optional, press Enter to skip)", default="").strip()

        mapping: dict[str, Any] = {"tempo_issue_id": int(issue_id)}
        if name:
            mapping["name"] = name

        logger.info(f"Created new mapping for {issue_key}: {mapping}")
        return mapping

    def save_mapping(self, issue_key: str, mapping: dict[str, Any]) -> None:
        """Save a mapping to configuration.

        Args:
            issue_key: Jira issue key.
            mapping: Mapping details.
        """
        self.config.update_mapping(issue_key, mapping)
        logger.info(f"Saved mapping for {issue_key}")
