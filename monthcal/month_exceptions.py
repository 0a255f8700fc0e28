"""Exception hierarchy and warning collection for monthcal.

Nothing raised here is fatal to a month view. Errors are scoped to a single
record or event; callers catch them, record a warning in a ``Diagnostics``
instance and carry on with the rest of the snapshot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


class MonthCalError(Exception):
    """Base exception for all monthcal errors."""


class DataUnavailableError(MonthCalError):
    """Calendar data could not be obtained upstream.

    Raised when:
    - The fetch collaborator reports an auth or network failure
    - The provider response is missing or is not a mapping

    The view treats this as an empty snapshot.
    """


class RecurrenceRuleParseError(MonthCalError):
    """A recurrence rule string could not be parsed.

    Scoped to one event: that event is skipped, the others are resolved.
    """

    def __init__(self, message: str, event_id: Optional[str] = None, rule: Optional[str] = None):
        super().__init__(message)
        self.event_id = event_id
        self.rule = rule


class UnrecognizedRecordError(MonthCalError):
    """A raw record matched no classification branch and was dropped."""

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(message)
        self.record_id = record_id


class UnmatchedExceptionError(MonthCalError):
    """A changed/cancelled occurrence referenced a parent that is not in the feed."""

    def __init__(self, message: str, recurring_event_id: Optional[str] = None):
        super().__init__(message)
        self.recurring_event_id = recurring_event_id


class ConfigError(MonthCalError):
    """Configuration file could not be read or has the wrong shape."""


@dataclass(frozen=True)
class DiagnosticEntry:
    """One collected warning."""

    kind: str
    message: str
    record_id: Optional[str] = None


# Warning kinds, one per recoverable error type
DATA_UNAVAILABLE = "data_unavailable"
RULE_PARSE_ERROR = "recurrence_rule_parse_error"
UNRECOGNIZED_RECORD = "unrecognized_record"
UNMATCHED_EXCEPTION = "unmatched_exception"

_KIND_BY_ERROR: dict[type[MonthCalError], str] = {
    DataUnavailableError: DATA_UNAVAILABLE,
    RecurrenceRuleParseError: RULE_PARSE_ERROR,
    UnrecognizedRecordError: UNRECOGNIZED_RECORD,
    UnmatchedExceptionError: UNMATCHED_EXCEPTION,
}


@dataclass
class Diagnostics:
    """Collected, inspectable warnings for one classification or layout pass."""

    entries: list[DiagnosticEntry] = field(default_factory=list)

    def add_warning(self, kind: str, message: str, record_id: Optional[str] = None) -> None:
        """Record a warning and mirror it to the log."""
        self.entries.append(DiagnosticEntry(kind=kind, message=message, record_id=record_id))
        logger.warning("[%s] %s", kind, message)

    def add_error(self, error: MonthCalError) -> None:
        """Record a recoverable error as a warning entry."""
        kind = _KIND_BY_ERROR.get(type(error), "error")
        record_id = (
            getattr(error, "record_id", None)
            or getattr(error, "event_id", None)
            or getattr(error, "recurring_event_id", None)
        )
        self.add_warning(kind, str(error), record_id)

    def extend(self, other: Diagnostics) -> None:
        self.entries.extend(other.entries)

    def of_kind(self, kind: str) -> list[DiagnosticEntry]:
        return [entry for entry in self.entries if entry.kind == kind]

    @property
    def warnings(self) -> list[str]:
        return [entry.message for entry in self.entries]

    def __len__(self) -> int:
        return len(self.entries)
