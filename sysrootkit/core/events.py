"""
Structured progress events for the sysroot pipeline.

Pipeline stages never print. They emit ProgressEvent values through an
EventBus, and observers decide how to present them. The default observer
writes to the standard logging module; tests use RecordingObserver.

Example:
    >>> bus = EventBus()
    >>> recorder = RecordingObserver()
    >>> bus.subscribe(recorder)
    >>> bus.cache_hit("source", "source up to date")
    >>> recorder.kinds()
    ['cache-hit']
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """Kinds of progress events."""

    STAGE_STARTED = "stage-started"
    STAGE_FINISHED = "stage-finished"
    STAGE_FAILED = "stage-failed"
    CACHE_HIT = "cache-hit"
    CACHE_MISS = "cache-miss"
    FALLBACK = "fallback"
    INFO = "info"


@dataclass(frozen=True)
class ProgressEvent:
    """
    A single progress notification.

    Attributes:
        kind: Event kind
        stage: Pipeline stage that emitted the event
        message: Human readable description
        data: Structured details (paths, counts, URLs)
    """

    kind: EventKind
    stage: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


Observer = Callable[[ProgressEvent], None]


class EventBus:
    """Fan out progress events to subscribed observers."""

    def __init__(self, observers: Optional[List[Observer]] = None):
        self._observers: List[Observer] = list(observers or [])

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def emit(self, event: ProgressEvent) -> None:
        for observer in self._observers:
            try:
                observer(event)
            except Exception as e:
                logger.warning(f"Progress observer {observer!r} failed: {e}")

    def _emit(self, kind: EventKind, stage: str, message: str, **data) -> None:
        self.emit(ProgressEvent(kind=kind, stage=stage, message=message, data=data))

    def stage_started(self, stage: str, message: str, **data) -> None:
        self._emit(EventKind.STAGE_STARTED, stage, message, **data)

    def stage_finished(self, stage: str, message: str, **data) -> None:
        self._emit(EventKind.STAGE_FINISHED, stage, message, **data)

    def stage_failed(self, stage: str, message: str, **data) -> None:
        self._emit(EventKind.STAGE_FAILED, stage, message, **data)

    def cache_hit(self, stage: str, message: str, **data) -> None:
        self._emit(EventKind.CACHE_HIT, stage, message, **data)

    def cache_miss(self, stage: str, message: str, **data) -> None:
        self._emit(EventKind.CACHE_MISS, stage, message, **data)

    def fallback(self, stage: str, message: str, **data) -> None:
        self._emit(EventKind.FALLBACK, stage, message, **data)

    def info(self, stage: str, message: str, **data) -> None:
        self._emit(EventKind.INFO, stage, message, **data)


class LoggingObserver:
    """Write progress events to the standard logging module."""

    # Per-file fallbacks are noisy; keep them at debug level.
    LEVELS = {
        EventKind.STAGE_FAILED: logging.ERROR,
        EventKind.FALLBACK: logging.DEBUG,
    }

    def __init__(self, target_logger: Optional[logging.Logger] = None):
        self.logger = target_logger or logging.getLogger("sysrootkit")

    def __call__(self, event: ProgressEvent) -> None:
        level = self.LEVELS.get(event.kind, logging.INFO)
        self.logger.log(level, f"{event.stage}: {event.message}")


class RecordingObserver:
    """Collect progress events in memory."""

    def __init__(self):
        self.events: List[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def kinds(self, stage: Optional[str] = None) -> List[str]:
        return [
            e.kind.value for e in self.events if stage is None or e.stage == stage
        ]

    def of_kind(self, kind: EventKind) -> List[ProgressEvent]:
        return [e for e in self.events if e.kind == kind]
