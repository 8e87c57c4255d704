"""Structural equality of backend records.

Only fields the synchronizer writes take part in the comparison;
server-managed timestamps change on every save and are ignored.
"""

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from toggl_tempo_sync.tempo.models import TempoWorklog
from toggl_tempo_sync.toggl.models import TogglWorklog

RecordT = TypeVar("RecordT", bound=BaseModel)


class WorklogComparer(Generic[RecordT]):
    """Field-by-field equality for one backend record type."""

    def __init__(
        self,
        fields: tuple[str, ...],
        normalizers: dict[str, Callable[[Any], Any]] | None = None,
    ) -> None:
        """Initialize comparer.

        Args:
            fields: Record fields compared by value.
            normalizers: Optional per-field functions applied before comparing.
        """
        self.fields = fields
        self.normalizers = normalizers or {}

    def key(self, record: RecordT) -> tuple[Any, ...]:
        """Values that identify the record's content."""
        return tuple(
            self.normalizers.get(name, _identity)(getattr(record, name)) for name in self.fields
        )

    def equals(self, left: RecordT | None, right: RecordT | None) -> bool:
        """Compare two records, None being equal only to None."""
        if left is None or right is None:
            return left is right
        return self.key(left) == self.key(right)


def _identity(value: Any) -> Any:
    return value


def _empty_to_none(value: Any) -> Any:
    return value or None


TogglWorklogComparer: WorklogComparer[TogglWorklog] = WorklogComparer(
    fields=("id", "workspace_id", "project_id", "description", "start", "duration", "tags", "billable"),
    normalizers={"description": _empty_to_none, "tags": lambda tags: sorted(tags or [])},
)

TempoWorklogComparer: WorklogComparer[TempoWorklog] = WorklogComparer(
    fields=(
        "id",
        "issue_id",
        "author_account_id",
        "start_date",
        "start_time",
        "time_spent_seconds",
        "description",
    ),
)

COMPARERS: dict[type[BaseModel], WorklogComparer[Any]] = {
    TogglWorklog: TogglWorklogComparer,
    TempoWorklog: TempoWorklogComparer,
}


def comparer_for(record_type: type[BaseModel]) -> WorklogComparer[Any]:
    """Select the comparer registered for a record type.

    Raises:
        KeyError: If no comparer is registered for the type.
    """
    return COMPARERS[record_type]
