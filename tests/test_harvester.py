"""
Unit tests for author harvesting: pagination, ceiling, normalization, progress and cancellation.
"""

import threading

import pytest

from conftest import FakeOpenAlexClient, make_author
from profindex.core.errors import HarvestCancelledError, UpstreamError
from profindex.core.events import ProgressEmitter
from profindex.services.harvester import AuthorHarvester, to_person_record
from profindex.services.identity import CanonicalOrganization

ORG = CanonicalOrganization(id="https://openalex.org/I12345")


def _page(start: int, count: int, next_cursor: str | None) -> dict:
    return {
        "results": [make_author(i) for i in range(start, start + count)],
        "meta": {"next_cursor": next_cursor},
    }


def test_two_pages_are_concatenated() -> None:
    client = FakeOpenAlexClient(pages=[_page(0, 150, "abc"), _page(150, 30, None)])
    result = AuthorHarvester(client).harvest(ORG)
    assert len(result.records) == 180
    assert result.pages_fetched == 2
    cursors = [kwargs["cursor"] for _, _, kwargs in client.calls]
    assert cursors == ["*", "abc"]


def test_page_ceiling_stops_after_five_pages() -> None:
    client = FakeOpenAlexClient(endless=True)
    result = AuthorHarvester(client).harvest(ORG)
    assert result.pages_fetched == 5
    assert len(client.calls) == 5


def test_empty_first_page() -> None:
    client = FakeOpenAlexClient(pages=[{"results": [], "meta": {"next_cursor": None}}])
    result = AuthorHarvester(client).harvest(ORG)
    assert result.records == ()
    assert result.pages_fetched == 1


def test_upstream_error_aborts_without_partial_results() -> None:
    client = FakeOpenAlexClient(pages=[_page(0, 10, "abc"), _page(10, 10, None)], fail_on_page=2)
    with pytest.raises(UpstreamError):
        AuthorHarvester(client).harvest(ORG)


def test_per_page_bounds() -> None:
    harvester = AuthorHarvester(FakeOpenAlexClient())
    with pytest.raises(ValueError):
        harvester.pages(ORG, per_page=0)
    with pytest.raises(ValueError):
        harvester.pages(ORG, per_page=201)


def test_progress_events_per_page() -> None:
    client = FakeOpenAlexClient(pages=[_page(0, 3, "abc"), _page(3, 2, None)])
    emitter = ProgressEmitter()
    events = []
    emitter.subscribe(events.append)
    AuthorHarvester(client).harvest(ORG, emitter=emitter)
    assert [e.status for e in events] == ["running", "completed"]
    assert events[0].stage == "Fetching professors from institution"
    assert events[1].message == "Fetched page 2 with 2 authors (total so far: 5)."


def test_cancellation_stops_before_next_page() -> None:
    client = FakeOpenAlexClient(endless=True)
    cancel = threading.Event()
    pages = AuthorHarvester(client).pages(ORG, cancel_event=cancel)
    it = iter(pages)
    next(it)
    cancel.set()
    with pytest.raises(HarvestCancelledError):
        next(it)
    assert len(client.calls) == 1


def test_pages_are_lazy_and_restartable() -> None:
    client = FakeOpenAlexClient(endless=True)
    pages = AuthorHarvester(client).pages(ORG, per_page=50)
    first = next(iter(pages))
    assert first.number == 1
    assert len(client.calls) == 1
    again = next(iter(pages))
    assert again.number == 1
    assert client.calls[-1][2] == {"cursor": "*", "per_page": 50}


def test_affiliation_prefers_matching_institution() -> None:
    raw = make_author(
        1,
        last_known_institutions=[
            {"id": "https://openalex.org/I999", "display_name": "Other Place"},
            {"id": "https://openalex.org/I12345", "display_name": "Test University"},
        ],
    )
    assert to_person_record(raw, "I12345").last_institution_name == "Test University"
    assert to_person_record(raw, "I000").last_institution_name == "Other Place"


def test_affiliation_legacy_and_missing() -> None:
    legacy = make_author(1, last_known_institutions=None, last_known_institution={"display_name": "Old Name"})
    assert to_person_record(legacy, "I12345").last_institution_name == "Old Name"
    bare = make_author(2, last_known_institutions=[])
    assert to_person_record(bare, "I12345").last_institution_name is None


def test_topics_fall_back_to_concepts_and_years_sorted() -> None:
    raw = make_author(
        1,
        topics=[],
        x_concepts=[{"display_name": "Biology"}],
        counts_by_year=[{"year": 2021, "works_count": 1}, {"year": 2024, "works_count": 3}],
        summary_stats={},
    )
    record = to_person_record(raw, "I12345")
    assert [t.name for t in record.topics] == ["Biology"]
    assert [y.year for y in record.counts_by_year] == [2024, 2021]
    assert record.summary_stats.h_index is None
    assert record.to_dict()["summary_stats"] == {"h_index": None, "2yr_mean_citedness": None}
