"""
Unit tests for the progress emitter and the result envelope.
"""

from profindex.core.events import ProgressEmitter, ProgressEvent
from profindex.core.result import Err, Ok

EVENT = ProgressEvent(stage="Fetching professors from institution", status="running", message="Fetched page 1")


def test_failing_subscriber_does_not_block_others() -> None:
    emitter = ProgressEmitter()
    seen = []

    def broken(event: ProgressEvent) -> None:
        raise RuntimeError("subscriber exploded")

    emitter.subscribe(broken)
    emitter.subscribe(seen.append)
    emitter.emit(EVENT)
    assert seen == [EVENT]


def test_unsubscribe() -> None:
    emitter = ProgressEmitter()
    seen = []
    unsubscribe = emitter.subscribe(seen.append)
    unsubscribe()
    emitter.emit(EVENT)
    assert seen == []


def test_event_to_dict() -> None:
    assert EVENT.to_dict() == {
        "stage": "Fetching professors from institution",
        "status": "running",
        "message": "Fetched page 1",
    }


def test_envelopes() -> None:
    assert Ok({"count": 2}).envelope() == {"success": True, "count": 2}
    assert Err("boom").envelope() == {"success": False, "error": "boom"}
    assert Ok().success is True
    assert Err("x").success is False
