"""
API handlers: bridge HTTP streaming and the ingestion service.

The ingestion call is synchronous and reports progress through a
ProgressEmitter; here it runs on a worker thread while the emitter feeds a
queue that the SSE generator drains. Closing the stream early sets the
cancellation event so the harvest stops at its next page.
"""

import json
import logging
import queue
import threading
from typing import Any, AsyncIterator

from fastapi.concurrency import run_in_threadpool

from profindex.core.events import ProgressEmitter, ProgressEvent
from profindex.core.result import Err, Result
from profindex.schemas.tools import ProfessorsByInstitutionRequest
from profindex.services.ingestion_service import ingest_institution

logger = logging.getLogger(__name__)

_DONE = object()


def sse(event: str, data: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, default=str)}\n\n"


async def ingest_event_stream(body: ProfessorsByInstitutionRequest) -> AsyncIterator[str]:
    """
    Yield `progress` events while harvesting, then one `result` event with the envelope.

    Queue reads run in the threadpool so the event loop stays free. When the
    response is cancelled (client disconnect) or the generator is closed early,
    the finally block sets the cancel event.
    """
    events: queue.Queue = queue.Queue()
    cancel_event = threading.Event()
    emitter = ProgressEmitter()

    def _on_progress(event: ProgressEvent) -> None:
        events.put(event)

    emitter.subscribe(_on_progress)

    def _worker() -> None:
        try:
            result: Result = ingest_institution(
                body.institution_query, per_page=body.per_page, emitter=emitter, cancel_event=cancel_event
            )
            events.put(result)
        except Exception as e:
            logger.exception("[handlers:ingest_event_stream] ingestion crashed")
            events.put(Err(f"Failed to fetch professors: {e}"))
        finally:
            events.put(_DONE)

    thread = threading.Thread(target=_worker, name="ingest-stream", daemon=True)
    thread.start()
    finished = False
    try:
        while True:
            item = await run_in_threadpool(events.get)
            if item is _DONE:
                finished = True
                break
            if isinstance(item, ProgressEvent):
                yield sse("progress", item.to_dict())
            else:
                yield sse("result", item.envelope())
    finally:
        if not finished:
            logger.info("[handlers:ingest_event_stream] client went away; cancelling harvest")
            cancel_event.set()
