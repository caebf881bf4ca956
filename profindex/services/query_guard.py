"""
Query guard: reject overly broad search queries before they reach the backend.

Callers must send one focused natural-language query per search; long queries
or ones stitching several searches together with OR are refused.
"""

import re

from profindex.core.config import MAX_OR_CLAUSES, MAX_QUERY_LENGTH
from profindex.core.errors import QueryTooBroadError

_OR_TOKEN = re.compile(r"\bOR\b", re.IGNORECASE)

TOO_BROAD_MESSAGE = (
    "Query is too broad or contains many OR clauses. Please use a single, focused "
    "natural language query instead of batching multiple queries."
)


def count_or_clauses(text: str) -> int:
    return len(_OR_TOKEN.findall(text))


def validate_query(
    text: str, max_length: int = MAX_QUERY_LENGTH, max_or_clauses: int = MAX_OR_CLAUSES
) -> str:
    """Return the query unchanged, or raise QueryTooBroadError."""
    if len(text) > max_length or count_or_clauses(text) > max_or_clauses:
        raise QueryTooBroadError(TOO_BROAD_MESSAGE)
    return text

