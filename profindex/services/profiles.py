"""
Profile synthesis: PersonRecord -> deterministic markdown profile.

The per-institution file is every profile joined with a horizontal-rule line.
Consumers split on PROFILE_SPLIT ("\\n---\\n"); changing either constant breaks
every stored file and every reader.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable

from profindex.services.harvester import PersonRecord

PROFILE_SPLIT = "\n---\n"
PROFILE_SEPARATOR = "\n" + PROFILE_SPLIT + "\n"

MAX_TOPICS = 5
MAX_ACTIVITY_YEARS = 5

NOTES_SECTION = (
    "## Notes\n\n"
    "This file was generated from OpenAlex author data. You can extend it with a "
    "manual summary, key papers, or collaboration notes.\n"
)


def _fmt(value: object) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_profile(record: PersonRecord) -> str:
    """Render one record. Field order is fixed; optional bullets and sections are skipped when empty."""
    lines = [
        f"# {record.display_name}",
        "",
        f"- OpenAlex ID: {record.id}",
        f"- ORCID: {record.orcid or 'N/A'}",
        f"- Last known institution: {record.last_institution_name or 'N/A'}",
        f"- Works count: {record.works_count}",
        f"- Cited by count: {record.cited_by_count}",
    ]
    stats = record.summary_stats
    if stats.h_index is not None:
        lines.append(f"- h-index: {_fmt(stats.h_index)}")
    if stats.two_year_mean_citedness is not None:
        lines.append(f"- 2-year mean citedness: {_fmt(stats.two_year_mean_citedness)}")
    if record.works_api_url:
        lines.append(f"- Works API URL: {record.works_api_url}")
    out = "\n".join(lines) + "\n\n"

    topics = []
    for topic in record.topics[:MAX_TOPICS]:
        context = " · ".join(x for x in (topic.field_name, topic.domain_name) if x)
        topics.append(f"- {topic.name} ({context})" if context else f"- {topic.name}")
    if topics:
        out += "## Main topics\n\n" + "\n".join(topics) + "\n\n"

    years = sorted(record.counts_by_year, key=lambda y: y.year, reverse=True)[:MAX_ACTIVITY_YEARS]
    if years:
        activity = [f"- {y.year}: works={y.works_count}, cited_by={y.cited_by_count}" for y in years]
        out += "## Recent activity (by year)\n\n" + "\n".join(activity) + "\n\n"

    return out + NOTES_SECTION


def join_profiles(documents: Iterable[str]) -> str:
    return PROFILE_SEPARATOR.join(documents)


def render_profiles(records: Iterable[PersonRecord]) -> str:
    return join_profiles(render_profile(r) for r in records)


def split_profiles(text: str) -> list[str]:
    """Split a joined profiles file back into its documents (stripped, empties dropped)."""
    if not text:
        return []
    return [block.strip() for block in text.split(PROFILE_SPLIT) if block.strip()]


@dataclass
class ProfileSummary:
    name: str
    openalex_id: str | None = None
    last_institution: str | None = None
    two_year_mean_citedness: float | None = None
    topics: list[str] = field(default_factory=list)


def _bullet(line: str, label: str) -> str | None:
    prefix = f"- {label}:"
    if line.startswith(prefix):
        return line[len(prefix):].strip()
    return None


def parse_profile(document: str) -> ProfileSummary:
    """Read the headline fields and topics back out of one rendered profile."""
    summary = ProfileSummary(name="Unknown")
    in_topics = False
    for raw_line in document.splitlines():
        line = raw_line.strip()
        if line.startswith("# "):
            summary.name = re.sub(r"^#\s+", "", line).strip() or "Unknown"
        elif (value := _bullet(line, "OpenAlex ID")) is not None:
            summary.openalex_id = value or None
        elif (value := _bullet(line, "Last known institution")) is not None:
            summary.last_institution = None if value in ("", "N/A") else value
        elif (value := _bullet(line, "2-year mean citedness")) is not None:
            try:
                summary.two_year_mean_citedness = float(value)
            except ValueError:
                pass
        elif line.startswith("## "):
            in_topics = line.startswith("## Main topics")
        elif in_topics and line.startswith("- "):
            summary.topics.append(line[2:].strip())
    return summary


def summarize_profiles(text: str) -> list[ProfileSummary]:
    """Parse a joined profiles file, most-cited (2-year mean) first."""
    summaries = [parse_profile(doc) for doc in split_profiles(text)]
    summaries.sort(key=lambda s: s.two_year_mean_citedness or 0.0, reverse=True)
    return summaries
