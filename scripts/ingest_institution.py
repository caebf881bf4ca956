#!/usr/bin/env python3
"""
Harvest an institution's professors from OpenAlex and index their profiles.

Run from project root:

    python scripts/ingest_institution.py "Stanford University"
    python scripts/ingest_institution.py I97018004 --per-page 100
    python scripts/ingest_institution.py I97018004 --show-saved

Prints one line per fetched page, then the result envelope as JSON.
Needs MILVUS_URI and HF_API_KEY in the environment (or .env) for indexing;
without them the harvest still runs and the envelope reports indexed=false.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Project root on path so "profindex" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from profindex.core.events import ProgressEmitter
from profindex.services.ingestion_service import ingest_institution, saved_professors


def main() -> int:
    parser = argparse.ArgumentParser(description="Fetch and index professors for one institution.")
    parser.add_argument("institution", help="Institution name, OpenAlex ID (I...) or OpenAlex URL.")
    parser.add_argument("--per-page", type=int, default=200, help="Authors per OpenAlex page (1-200).")
    parser.add_argument(
        "--show-saved",
        action="store_true",
        help="After indexing, list the saved professors read back from the store.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    emitter = ProgressEmitter()
    emitter.subscribe(lambda event: print(f"[{event.status}] {event.message}"))

    result = ingest_institution(args.institution, per_page=args.per_page, emitter=emitter)
    envelope = result.envelope()
    print(json.dumps(envelope, indent=2, default=str))
    if not envelope["success"]:
        return 1

    if args.show_saved:
        saved = saved_professors(envelope["institution_key"]).envelope()
        print(json.dumps(saved, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
