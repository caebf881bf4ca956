"""
Progress events emitted while harvesting.

ProgressEmitter is a small observer: any number of subscribers (log, SSE
queue, metrics) attach independently. Delivery is fire-and-forget; a failing
subscriber is logged and never interrupts the harvest.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Callable, Literal

logger = logging.getLogger(__name__)

ProgressStatus = Literal["running", "completed"]


@dataclass(frozen=True)
class ProgressEvent:
    stage: str
    status: ProgressStatus
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressEmitter:
    """Fan out progress events to subscribed callbacks."""

    def __init__(self) -> None:
        self._subscribers: list[ProgressCallback] = []

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Attach a callback. Returns a function that detaches it again."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def emit(self, event: ProgressEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.warning("[events:emit] subscriber failed stage=%s: %s", event.stage, e)


def log_progress(event: ProgressEvent) -> None:
    """Default subscriber: write each progress event to the log."""
    logger.info("[progress] stage=%r status=%s message=%s", event.stage, event.status, event.message)


def default_emitter() -> ProgressEmitter:
    """Emitter with the logging subscriber already attached."""
    emitter = ProgressEmitter()
    emitter.subscribe(log_progress)
    return emitter
