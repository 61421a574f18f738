"""Top-level package for the Relief Map project.

This package turns a hand-maintained feed of relief sites (collection
points, camps, temples and schools) into typed records, flags records that
have not been updated recently, and filters them for display. The map and
list views of the Streamlit dashboard are driven from a single filtering
pass so that both always show the same sites. See the README for
instructions on running the dashboard and the command-line tool.
"""

__all__ = [
    "config",
    "data_ingestion",
    "classification",
    "filtering",
    "synchronizer",
    "styles",
    "views",
    "main",
]
