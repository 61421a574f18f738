"""Keep every presentation of the site list showing the same sites.

The map and the list are rendered independently, but they must never
disagree about which sites pass the current filters. :class:`ViewSynchronizer`
computes the filtered subset once per change and hands that same list to
every registered sink.

Application state lives in an explicit :class:`AppState` value owned by
whoever drives the views (the CLI or the Streamlit session). A reload
produces a new state; nothing here mutates sites in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, NamedTuple, Optional, Protocol, Sequence, Set, Tuple

from .config import Config
from .data_ingestion import FeedError, Site, format_last_updated, load_sites
from .filtering import FilterSpec, matches


logger = logging.getLogger(__name__)


class SyncResult(NamedTuple):
    visible: List[Site]
    hidden: List[Site]


class PresentationSink(Protocol):
    """Anything that can display a set of sites."""

    def render_visible(self, sites: List[Site]) -> None:
        ...


def sync(sites: Sequence[Site], spec: FilterSpec) -> SyncResult:
    """Partition ``sites`` into those matching ``spec`` and the rest.

    The whole collection is re-evaluated on every call. Both lists keep the
    input order, and membership is by identity.
    """
    visible: List[Site] = []
    hidden: List[Site] = []
    for site in sites:
        (visible if matches(site, spec) else hidden).append(site)
    return SyncResult(visible, hidden)


def visible_keys(result: SyncResult) -> Set[int]:
    return {site.index for site in result.visible}


@dataclass(frozen=True)
class AppState:
    """Everything the views need to render, replaced wholesale on reload."""

    sites: Tuple[Site, ...] = ()
    spec: FilterSpec = field(default_factory=FilterSpec)
    last_updated: str = "Unknown"
    loaded_at_ms: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def loaded(cls, sites: Sequence[Site], metadata: Dict[str, Any], now_ms: int,
               spec: Optional[FilterSpec] = None) -> "AppState":
        return cls(
            sites=tuple(sites),
            spec=spec or FilterSpec(),
            last_updated=format_last_updated(metadata),
            loaded_at_ms=now_ms,
        )

    @classmethod
    def failed(cls, message: str, now_ms: Optional[int] = None,
               spec: Optional[FilterSpec] = None) -> "AppState":
        return cls(spec=spec or FilterSpec(), loaded_at_ms=now_ms, error=message)

    def with_spec(self, spec: FilterSpec) -> "AppState":
        return replace(self, spec=spec)


def load_state(config: Config, now_ms: int, spec: Optional[FilterSpec] = None) -> AppState:
    """Run one load cycle. A feed failure yields a failed state with no sites."""
    try:
        sites, metadata = load_sites(config, now_ms)
    except FeedError as exc:
        logger.error("Failed to load data: %s", exc)
        return AppState.failed(str(exc), now_ms, spec)
    return AppState.loaded(sites, metadata, now_ms, spec)


class ViewSynchronizer:
    """Drive several presentation sinks from one filtering pass."""

    def __init__(self, sinks: Sequence[PresentationSink]):
        self.sinks: List[PresentationSink] = list(sinks)

    def apply(self, state: AppState) -> SyncResult:
        """Filter ``state.sites`` by ``state.spec`` and render the result everywhere.

        Every sink receives the very same ``visible`` list object. A failed
        load renders nothing rather than a partial set.
        """
        if state.error is not None:
            result = SyncResult([], list(state.sites))
        else:
            result = sync(state.sites, state.spec)
        logger.debug("Showing %d of %d sites", len(result.visible), len(state.sites))
        for sink in self.sinks:
            sink.render_visible(result.visible)
        return result
