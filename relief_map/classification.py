"""Classify relief sites by freshness.

Every site in the feed carries an ``updated_at`` timestamp and an optional
urgency ``status``. A site whose last update is older than the configured
threshold is considered *stale*: its urgency can no longer be trusted, so
the stale label overrides whatever status it reports.

The classifier is a pure function of its inputs. The current time is
injected by the caller rather than read from a clock so that a whole
normalisation pass sees one consistent ``now``.

Timestamps that are missing or cannot be parsed are classified as stale.
A record we cannot date is treated as one we cannot trust.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, NamedTuple, Optional

import pandas as pd


logger = logging.getLogger(__name__)

STALE = "stale"
NORMAL = "normal"

# Words pandas resolves against the wall clock; a sheet cell saying "today"
# carries no date of its own.
RELATIVE_DATE_WORDS = frozenset({"now", "today", "yesterday", "tomorrow"})


class Freshness(NamedTuple):
    """Derived freshness fields attached to every site."""

    is_stale: bool
    display_status: str


def to_epoch_ms(value: Any) -> Optional[int]:
    """Convert a timestamp value into milliseconds since the Unix epoch.

    Strings are parsed with ``pd.to_datetime`` using ``errors='coerce'`` so
    that the many timestamp styles found in hand-maintained sheets are
    accepted. Naive timestamps are interpreted as UTC. Relative words such
    as ``"now"`` or ``"today"`` are rejected rather than read off the clock.

    Parameters
    ----------
    value: Any
        A timestamp string, ``datetime``/``date`` or ``pd.Timestamp``.

    Returns
    -------
    Optional[int]
        Epoch milliseconds, or ``None`` when the value cannot be parsed.
    """
    if value is None:
        return None
    try:
        if isinstance(value, str):
            if not value.strip() or value.strip().lower() in RELATIVE_DATE_WORDS:
                return None
            ts = pd.to_datetime(value.strip(), utc=True, errors="coerce")
        elif isinstance(value, (dt.datetime, dt.date, pd.Timestamp)):
            ts = pd.Timestamp(value)
        else:
            return None
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return int(ts.value // 1_000_000)


def classify(updated_at: Any, status: Any, now_ms: int, threshold_ms: int) -> Freshness:
    """Derive the staleness flag and display status for one site.

    Parameters
    ----------
    updated_at: Any
        The site's ``updated_at`` field, usually an ISO-8601 string.
    status: Any
        The raw urgency label (e.g. ``"critical"``), possibly empty.
    now_ms: int
        The reference time in epoch milliseconds.
    threshold_ms: int
        Maximum age before a site is stale. Zero and very large values
        are both accepted.

    Returns
    -------
    Freshness
        ``display_status`` is ``"stale"`` when stale, otherwise the raw
        status if non-empty, otherwise ``"normal"``.
    """
    updated_ms = to_epoch_ms(updated_at)
    if updated_ms is None:
        is_stale = True
    else:
        is_stale = (now_ms - updated_ms) > threshold_ms

    if is_stale:
        return Freshness(True, STALE)
    label = str(status).strip() if status is not None else ""
    return Freshness(False, label or NORMAL)
