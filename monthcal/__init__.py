"""monthcal - month calendar layout from a provider event feed.

Classifies a provider feed, expands recurring events over the visible month
and packs multi-day events into collision-free lanes for a week-wrapped grid.
The package performs no I/O; callers hand it an already fetched response.
"""

__version__ = "0.1.0"

from .config_loader import Config, load_config
from .event_classifier import ClassificationResult, EventClassifier
from .lane_allocator import LaneAllocation, LaneAllocator
from .month_exceptions import (
    ConfigError,
    DataUnavailableError,
    Diagnostics,
    MonthCalError,
    RecurrenceRuleParseError,
    UnmatchedExceptionError,
    UnrecognizedRecordError,
)
from .month_models import (
    CalendarSnapshot,
    CanonicalEvent,
    DayCell,
    MonthLayout,
    Occurrence,
    Placement,
    PlacementRole,
    RawEventRecord,
    VisibleMonth,
    WeekSegment,
)
from .month_pipeline import MonthCalendar, MonthLayoutPipeline
from .recurrence_resolver import RecurrenceResolver
from .span_builder import SpanBuilder

__all__ = [
    "CalendarSnapshot",
    "CanonicalEvent",
    "ClassificationResult",
    "Config",
    "ConfigError",
    "DataUnavailableError",
    "DayCell",
    "Diagnostics",
    "EventClassifier",
    "LaneAllocation",
    "LaneAllocator",
    "MonthCalError",
    "MonthCalendar",
    "MonthLayout",
    "MonthLayoutPipeline",
    "Occurrence",
    "Placement",
    "PlacementRole",
    "RawEventRecord",
    "RecurrenceResolver",
    "RecurrenceRuleParseError",
    "SpanBuilder",
    "UnmatchedExceptionError",
    "UnrecognizedRecordError",
    "VisibleMonth",
    "WeekSegment",
    "load_config",
]
