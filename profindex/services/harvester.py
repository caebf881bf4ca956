"""
Author harvesting: cursor-paginate OpenAlex authors affiliated with one institution.

Responsibility: Build the affiliation filter, walk cursor pages lazily up to a
fixed page ceiling, normalize raw authors into immutable PersonRecords, and
report progress per page. Pages are strictly sequential (each cursor comes
from the previous response). An upstream failure aborts the whole harvest;
pages already fetched are discarded.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Iterator

from profindex.core.config import (
    HARVEST_MAX_PAGE_SIZE,
    HARVEST_MAX_PAGES,
    HARVEST_PAGE_SIZE,
    MIN_TWO_YEAR_MEAN_CITEDNESS,
)
from profindex.core.errors import HarvestCancelledError
from profindex.core.events import ProgressEmitter, ProgressEvent
from profindex.services.identity import CanonicalOrganization, last_segment
from profindex.services.openalex_client import OpenAlexClient

logger = logging.getLogger(__name__)

INITIAL_CURSOR = "*"
HARVEST_STAGE = "Fetching professors from institution"


@dataclass(frozen=True)
class Topic:
    name: str
    field_name: str | None = None
    domain_name: str | None = None


@dataclass(frozen=True)
class YearCount:
    year: int
    works_count: int = 0
    cited_by_count: int = 0


@dataclass(frozen=True)
class SummaryStats:
    h_index: int | None = None
    two_year_mean_citedness: float | None = None


@dataclass(frozen=True)
class PersonRecord:
    id: str
    display_name: str
    orcid: str | None
    works_count: int
    cited_by_count: int
    last_institution_name: str | None
    summary_stats: SummaryStats = field(default_factory=SummaryStats)
    topics: tuple[Topic, ...] = ()
    counts_by_year: tuple[YearCount, ...] = ()
    works_api_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "orcid": self.orcid,
            "works_count": self.works_count,
            "cited_by_count": self.cited_by_count,
            "last_institution_name": self.last_institution_name,
            "summary_stats": {
                "h_index": self.summary_stats.h_index,
                "2yr_mean_citedness": self.summary_stats.two_year_mean_citedness,
            },
            "topics": [
                {"display_name": t.name, "field": t.field_name, "domain": t.domain_name} for t in self.topics
            ],
            "counts_by_year": [
                {"year": y.year, "works_count": y.works_count, "cited_by_count": y.cited_by_count}
                for y in self.counts_by_year
            ],
            "works_api_url": self.works_api_url,
        }


@dataclass(frozen=True)
class HarvestPage:
    number: int
    records: tuple[PersonRecord, ...]
    next_cursor: str | None


@dataclass(frozen=True)
class HarvestResult:
    records: tuple[PersonRecord, ...]
    pages_fetched: int


def build_author_filter(
    organization: CanonicalOrganization, min_citedness: int = MIN_TWO_YEAR_MEAN_CITEDNESS
) -> str:
    """OpenAlex filter: has ORCID, exact last-known affiliation, works > 0, citedness above threshold."""
    return (
        "has_orcid:true,"
        f"last_known_institutions.id:{organization.id},"
        "works_count:>0,"
        f"summary_stats.2yr_mean_citedness:>{min_citedness}"
    )


def _display_name(node: Any) -> str | None:
    if isinstance(node, dict):
        return node.get("display_name") or None
    return None


def _affiliation_name(raw: dict[str, Any], organization_key: str) -> str | None:
    """Prefer the listed affiliation whose key matches the institution; else the first one."""
    listed = raw.get("last_known_institutions")
    if not isinstance(listed, list):
        legacy = raw.get("last_known_institution")
        listed = [legacy] if isinstance(legacy, dict) else []
    for inst in listed:
        inst_id = (inst or {}).get("id")
        if inst_id and last_segment(inst_id) == organization_key:
            return inst.get("display_name")
    if listed:
        return _display_name(listed[0])
    return _display_name(raw.get("last_known_institution"))


def _topics(raw: dict[str, Any]) -> tuple[Topic, ...]:
    items = raw.get("topics")
    if not items:
        items = raw.get("x_concepts") or []
    topics = []
    for t in items:
        if not isinstance(t, dict) or not t.get("display_name"):
            continue
        topics.append(
            Topic(
                name=t["display_name"],
                field_name=_display_name(t.get("field")),
                domain_name=_display_name(t.get("domain")),
            )
        )
    return tuple(topics)


def _counts_by_year(raw: dict[str, Any]) -> tuple[YearCount, ...]:
    rows = [r for r in (raw.get("counts_by_year") or []) if isinstance(r, dict) and r.get("year") is not None]
    rows.sort(key=lambda r: r["year"], reverse=True)
    return tuple(
        YearCount(year=int(r["year"]), works_count=r.get("works_count") or 0, cited_by_count=r.get("cited_by_count") or 0)
        for r in rows
    )


def to_person_record(raw: dict[str, Any], organization_key: str) -> PersonRecord:
    """Normalize one raw OpenAlex author into a PersonRecord."""
    stats = raw.get("summary_stats") or {}
    return PersonRecord(
        id=raw.get("id") or "",
        display_name=raw.get("display_name") or "Unknown",
        orcid=raw.get("orcid") or None,
        works_count=raw.get("works_count") or 0,
        cited_by_count=raw.get("cited_by_count") or 0,
        last_institution_name=_affiliation_name(raw, organization_key),
        summary_stats=SummaryStats(
            h_index=stats.get("h_index"),
            two_year_mean_citedness=stats.get("2yr_mean_citedness"),
        ),
        topics=_topics(raw),
        counts_by_year=_counts_by_year(raw),
        works_api_url=raw.get("works_api_url") or None,
    )


class AuthorPages:
    """
    Lazy, restartable sequence of author pages for one institution.

    Every iteration starts again from the initial cursor. Consumers may stop
    early; no further pages are fetched once they do.
    """

    def __init__(
        self,
        client: OpenAlexClient,
        organization: CanonicalOrganization,
        per_page: int,
        max_pages: int,
        emitter: ProgressEmitter | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.client = client
        self.organization = organization
        self.per_page = per_page
        self.max_pages = max_pages
        self.emitter = emitter
        self.cancel_event = cancel_event

    def __iter__(self) -> Iterator[HarvestPage]:
        filter_expr = build_author_filter(self.organization)
        key = self.organization.key
        cursor: str | None = INITIAL_CURSOR
        page_count = 0
        total = 0
        while cursor and page_count < self.max_pages:
            if self.cancel_event is not None and self.cancel_event.is_set():
                logger.info("[harvester:pages] cancelled key=%s after pages=%d", key, page_count)
                raise HarvestCancelledError(f"Harvest cancelled after {page_count} page(s)")
            data = self.client.list_authors(filter_expr, cursor=cursor, per_page=self.per_page)
            records = tuple(to_person_record(a, key) for a in (data.get("results") or []))
            next_cursor = (data.get("meta") or {}).get("next_cursor") or None
            page_count += 1
            total += len(records)
            last = next_cursor is None or page_count >= self.max_pages
            if self.emitter is not None:
                self.emitter.emit(
                    ProgressEvent(
                        stage=HARVEST_STAGE,
                        status="completed" if last else "running",
                        message=f"Fetched page {page_count} with {len(records)} authors (total so far: {total}).",
                    )
                )
            logger.info("[harvester:pages] key=%s page=%d records=%d has_next=%s", key, page_count, len(records), next_cursor is not None)
            yield HarvestPage(number=page_count, records=records, next_cursor=next_cursor)
            cursor = next_cursor


class AuthorHarvester:
    def __init__(self, client: OpenAlexClient, max_pages: int = HARVEST_MAX_PAGES) -> None:
        self.client = client
        self.max_pages = max_pages

    def pages(
        self,
        organization: CanonicalOrganization,
        per_page: int = HARVEST_PAGE_SIZE,
        emitter: ProgressEmitter | None = None,
        cancel_event: threading.Event | None = None,
    ) -> AuthorPages:
        if not 1 <= per_page <= HARVEST_MAX_PAGE_SIZE:
            raise ValueError(f"per_page must be between 1 and {HARVEST_MAX_PAGE_SIZE}, got {per_page}")
        return AuthorPages(self.client, organization, per_page, self.max_pages, emitter, cancel_event)

    def harvest(
        self,
        organization: CanonicalOrganization,
        per_page: int = HARVEST_PAGE_SIZE,
        emitter: ProgressEmitter | None = None,
        cancel_event: threading.Event | None = None,
    ) -> HarvestResult:
        """Fetch every page up to the ceiling. All-or-nothing: an error discards what was fetched."""
        records: list[PersonRecord] = []
        pages_fetched = 0
        for page in self.pages(organization, per_page, emitter, cancel_event):
            records.extend(page.records)
            pages_fetched = page.number
        logger.info("[harvester:harvest] OUT key=%s records=%d pages=%d", organization.key, len(records), pages_fetched)
        return HarvestResult(records=tuple(records), pages_fetched=pages_fetched)
