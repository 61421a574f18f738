"""Command-line driver for the relief map.

This script loads the site feed, classifies every site, applies the
requested filters and writes the visible sites to a JSON file.

Usage::

    python -m relief_map.main --input rations.json --urgency critical --has-needs

Without ``--input`` the feed configured in ``.env`` (``RELIEF_DATA_URL``)
is used. The exit status is 1 when the feed cannot be loaded.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

from .config import load_config
from .data_ingestion import Site
from .filtering import build_filter_spec
from .synchronizer import ViewSynchronizer, load_state
from .views import status_counts


logger = logging.getLogger(__name__)


class JsonFileSink:
    """Write the visible sites to a JSON file."""

    def __init__(self, path: Path):
        self.path = path

    def render_visible(self, sites: List[Site]) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump([site.as_dict() for site in sites], f, indent=2, ensure_ascii=False, default=str)
        logger.info("Wrote %d sites to %s", len(sites), self.path)


class SummarySink:
    """Log how many visible sites there are per display status."""

    def render_visible(self, sites: List[Site]) -> None:
        for status, count in status_counts(sites).items():
            logger.info("%-10s %d", status, count)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Filter relief sites from a tabular feed")
    parser.add_argument("--input", help="Feed URL or JSON file (defaults to RELIEF_DATA_URL)")
    parser.add_argument("--metadata", help="Metadata URL or JSON file (defaults to RELIEF_METADATA_URL)")
    parser.add_argument("--env", default=".env", help="Path to the .env file")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--query", default="", help="Free-text search across all fields")
    parser.add_argument("--since", help="Only sites updated on or after this date")
    parser.add_argument("--keyword", action="append", default=[], help="Item or place keyword (repeatable)")
    parser.add_argument("--location", default="", help="Substring of the location name")
    parser.add_argument("--urgency", action="append", default=[], help="Status to include (repeatable)")
    parser.add_argument("--type", dest="types", action="append", default=[], help="Site type keyword (repeatable)")
    parser.add_argument("--has-needs", action="store_true", help="Only sites with needed items")
    parser.add_argument("--has-surplus", action="store_true", help="Only sites with surplus items")
    parser.add_argument("--output", default="visible_sites.json", help="Where to write the visible sites")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = load_config(args.env)
    if args.input:
        config = replace(config, data_url=args.input)
    if args.metadata:
        config = replace(config, metadata_url=args.metadata)

    spec = build_filter_spec(
        query=args.query,
        updated_since=args.since,
        keywords=args.keyword,
        location=args.location,
        urgencies=args.urgency,
        types=args.types,
        has_needs=args.has_needs,
        has_surplus=args.has_surplus,
    )
    state = load_state(config, int(time.time() * 1000), spec)
    if state.error is not None:
        return 1

    logger.info("Feed last updated: %s", state.last_updated)
    result = ViewSynchronizer([JsonFileSink(Path(args.output)), SummarySink()]).apply(state)
    logger.info("Showing %d of %d sites", len(result.visible), len(state.sites))
    return 0


if __name__ == "__main__":
    sys.exit(main())
