"""Load the relief-site feed and normalise it into :class:`Site` objects.

The feed is a JSON two-dimensional array exported from a shared sheet. Row
0 holds the field names and every following row holds the values for one
site, aligned to the header by position::

    [["id", "lat", "lng", "status", "updated_at", "Location Name", "needed"],
     [1, 7.29, 80.63, "critical", "2024-01-01T00:00:00Z", "Kandy School",
      [{"item": "Rice", "amount": "10kg"}]]]

Sheets are edited by hand, so rows may be short, timestamps may be
garbage and labels may be anything. None of that aborts a load: the
affected site simply ends up with missing fields and is classified as
stale. Only a failure to fetch the feed itself is fatal.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

import requests

from .classification import classify
from .config import Config


logger = logging.getLogger(__name__)

LOCATION_NAME = "Location Name"
PHONE = "Phone"
NEEDED = "needed"
SURPLUS = "surplus"
LIST_FIELDS = (NEEDED, SURPLUS)

DEFAULT_METADATA: Dict[str, Any] = {"lastUpdated": None}


class FeedError(RuntimeError):
    """Raised when the primary site feed cannot be fetched or decoded."""


class ItemLine(NamedTuple):
    """One ``{item, amount}`` entry of a needed or surplus list."""

    item: str
    amount: str


@dataclass(eq=False)
class Site:
    """A normalised relief site.

    ``fields`` holds the raw values keyed by header name; a field the row
    did not reach is absent rather than ``None``. ``index`` is the site's
    position in the feed and serves as a stable key for the views.
    Equality is identity: two rows with identical content are still two
    sites.
    """

    index: int
    fields: Dict[str, Any] = field(default_factory=dict)
    is_stale: bool = True
    display_status: str = "stale"

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    @property
    def id(self) -> Any:
        return self.fields.get("id")

    @property
    def lat(self) -> Any:
        return self.fields.get("lat")

    @property
    def lng(self) -> Any:
        return self.fields.get("lng")

    @property
    def status(self) -> Optional[str]:
        value = self.fields.get("status")
        return None if value is None else str(value)

    @property
    def updated_at(self) -> Any:
        return self.fields.get("updated_at")

    @property
    def location_name(self) -> str:
        value = self.fields.get(LOCATION_NAME)
        return "" if value is None else str(value)

    @property
    def phone(self) -> str:
        value = self.fields.get(PHONE)
        return "" if value is None else str(value)

    @property
    def needed(self) -> List[ItemLine]:
        return self.items(NEEDED)

    @property
    def surplus(self) -> List[ItemLine]:
        return self.items(SURPLUS)

    def _list_key(self, name: str) -> Optional[str]:
        if name in self.fields:
            return name
        lowered = name.lower()
        for key in self.fields:
            if key.lower() == lowered:
                return key
        return None

    def items(self, name: str) -> List[ItemLine]:
        """Return the entries of a list-valued field; missing or malformed means empty."""
        key = self._list_key(name)
        if key is None:
            return []
        return _item_lines(self.fields[key])

    def list_fields(self) -> List[Tuple[str, List[ItemLine]]]:
        """All list-valued fields present on the site, in header order."""
        return [(key, _item_lines(value)) for key, value in self.fields.items() if isinstance(value, list)]

    def coordinates(self) -> Optional[Tuple[float, float]]:
        if isinstance(self.lat, bool) or isinstance(self.lng, bool):
            return None
        try:
            lat = float(self.lat)
            lng = float(self.lng)
        except (TypeError, ValueError):
            return None
        if not (math.isfinite(lat) and math.isfinite(lng)):
            return None
        return lat, lng

    def extra_fields(self, hidden: Iterable[str] = ()) -> List[Tuple[str, Any]]:
        """Return ``(name, value)`` pairs for every field not in ``hidden``."""
        skip = set(hidden)
        return [(key, value) for key, value in self.fields.items() if key not in skip]

    def as_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable representation of the site."""
        record = dict(self.fields)
        record["isStale"] = self.is_stale
        record["displayStatus"] = self.display_status
        return record


def _item_lines(value: Any) -> List[ItemLine]:
    if not isinstance(value, list):
        return []
    lines = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        item = entry.get("item")
        amount = entry.get("amount")
        lines.append(ItemLine("" if item is None else str(item), "" if amount is None else str(amount)))
    return lines


def normalize(raw_feed: Optional[Sequence[Any]], now_ms: int, stale_threshold_ms: int) -> List[Site]:
    """Zip every data row against the header and classify the result.

    Parameters
    ----------
    raw_feed: Optional[Sequence[Any]]
        Header row followed by data rows. ``None`` or fewer than two rows
        yields an empty list.
    now_ms: int
        Reference time in epoch milliseconds used for staleness.
    stale_threshold_ms: int
        Age beyond which a site is stale.

    Returns
    -------
    List[Site]
        One site per data row, in feed order.
    """
    if not raw_feed or len(raw_feed) < 2:
        return []

    header = [str(name) for name in raw_feed[0]]
    sites: List[Site] = []
    for position, row in enumerate(raw_feed[1:]):
        if not isinstance(row, (list, tuple)):
            row = []
        if len(row) < len(header):
            logger.debug("Row %d has %d of %d fields", position + 1, len(row), len(header))
        fields = {name: value for name, value in zip(header, row)}
        freshness = classify(fields.get("updated_at"), fields.get("status"), now_ms, stale_threshold_ms)
        sites.append(Site(position, fields, freshness.is_stale, freshness.display_status))
    return sites


def _is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _read_json(source: str, timeout: float) -> Any:
    if _is_remote(source):
        resp = requests.get(source, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    with open(Path(source), "r", encoding="utf-8") as f:
        return json.load(f)


def fetch_feed(source: str, timeout: float = 10.0) -> List[Any]:
    """Fetch the raw tabular feed from a URL or a local JSON file.

    Raises
    ------
    FeedError
        If the feed cannot be retrieved or decoded, or is not an array.
    """
    try:
        payload = _read_json(source, timeout)
    except (requests.RequestException, OSError, ValueError) as exc:
        raise FeedError(f"Failed to load feed '{source}': {exc}") from exc
    if not isinstance(payload, list):
        raise FeedError(f"Feed '{source}' is not a JSON array")
    return payload


def fetch_metadata(source: Optional[str], timeout: float = 10.0) -> Dict[str, Any]:
    """Fetch the optional feed metadata, degrading to ``{"lastUpdated": None}``."""
    if not source:
        return dict(DEFAULT_METADATA)
    try:
        payload = _read_json(source, timeout)
    except (requests.RequestException, OSError, ValueError) as exc:
        logger.warning("Could not load metadata from %s: %s", source, exc)
        return dict(DEFAULT_METADATA)
    if not isinstance(payload, dict):
        logger.warning("Ignoring metadata from %s: expected an object", source)
        return dict(DEFAULT_METADATA)
    payload.setdefault("lastUpdated", None)
    return payload


def format_last_updated(metadata: Dict[str, Any]) -> str:
    value = metadata.get("lastUpdated") if metadata else None
    if value is None or not str(value).strip():
        return "Unknown"
    return str(value)


def load_sites(config: Config, now_ms: int) -> Tuple[List[Site], Dict[str, Any]]:
    """Fetch and normalise the feed, and fetch metadata alongside it.

    A metadata failure never affects the sites; a feed failure raises
    :class:`FeedError` and nothing is returned.
    """
    raw = fetch_feed(config.data_url, config.request_timeout)
    sites = normalize(raw, now_ms, config.stale_threshold_ms)
    logger.info("Loaded %d sites from %s", len(sites), config.data_url)
    metadata = fetch_metadata(config.metadata_url, config.request_timeout)
    return sites, metadata
