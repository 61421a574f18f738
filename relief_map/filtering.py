"""Multi-criterion filtering of relief sites.

A :class:`FilterSpec` captures every active filter control at one point in
time. :func:`matches` tests a single site against it by running a fixed
sequence of predicates and stopping at the first one that fails. Every
predicate is independent of the others, so the order only affects how
much work is done, never the answer.

Missing fields are ordinary values here: a site without a location name
has an empty one, a site without a ``needed`` list needs nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Iterable, Optional, Tuple, Union

from .classification import NORMAL, to_epoch_ms
from .data_ingestion import LIST_FIELDS, Site


logger = logging.getLogger(__name__)

# Site types offered in the type filter, matched against the location name.
TYPE_KEYWORDS: Tuple[str, ...] = ("school", "temple", "church", "mosque", "kovil", "camp", "hall", "hospital")
OTHER_TYPE = "other"


@dataclass(frozen=True)
class FilterSpec:
    """Immutable description of all active filter criteria."""

    query: str = ""
    updated_since: Any = None
    keywords: Tuple[str, ...] = ()
    location: str = ""
    urgencies: FrozenSet[str] = frozenset()
    types: FrozenSet[str] = frozenset()
    has_needs: bool = False
    has_surplus: bool = False

    def is_empty(self) -> bool:
        return self == FilterSpec()


def _clean_labels(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    if not values:
        return frozenset()
    return frozenset(str(v).strip().lower() for v in values if str(v).strip())


def build_filter_spec(
    query: str = "",
    updated_since: Any = None,
    keywords: Union[str, Iterable[str], None] = None,
    location: str = "",
    urgencies: Optional[Iterable[str]] = None,
    types: Optional[Iterable[str]] = None,
    has_needs: bool = False,
    has_surplus: bool = False,
) -> FilterSpec:
    """Build a :class:`FilterSpec` from raw control values.

    ``keywords`` may be a comma-separated string (as typed into a text box)
    or an iterable of keywords. Blank entries are dropped and labels are
    lower-cased.
    """
    if isinstance(keywords, str):
        keywords = keywords.split(",")
    cleaned_keywords = tuple(k.strip() for k in (keywords or ()) if k and k.strip())
    if isinstance(updated_since, str) and not updated_since.strip():
        updated_since = None
    return FilterSpec(
        query=(query or "").strip(),
        updated_since=updated_since,
        keywords=cleaned_keywords,
        location=(location or "").strip(),
        urgencies=_clean_labels(urgencies),
        types=_clean_labels(types),
        has_needs=bool(has_needs),
        has_surplus=bool(has_surplus),
    )


def _scalar_text(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def _match_query(site: Site, spec: FilterSpec) -> bool:
    if not spec.query:
        return True
    needle = spec.query.lower()
    if needle in site.display_status.lower():
        return True
    for value in site.fields.values():
        if isinstance(value, list):
            continue
        text = _scalar_text(value)
        if text is not None and needle in text.lower():
            return True
    for _, lines in site.list_fields():
        for line in lines:
            if needle in line.item.lower() or needle in line.amount.lower():
                return True
    return False


def _match_updated_since(site: Site, spec: FilterSpec) -> bool:
    if spec.updated_since is None:
        return True
    bound = to_epoch_ms(spec.updated_since)
    if bound is None:
        logger.debug("Ignoring unparseable date bound %r", spec.updated_since)
        return True
    updated = to_epoch_ms(site.updated_at)
    return updated is not None and updated >= bound


def _match_location(site: Site, spec: FilterSpec) -> bool:
    if not spec.location:
        return True
    return spec.location.lower() in site.location_name.lower()


def _match_urgency(site: Site, spec: FilterSpec) -> bool:
    if not spec.urgencies:
        return True
    # A blank status is shown as "normal", so it filters as "normal" too.
    status = (site.status or "").strip().lower() or NORMAL
    return status in spec.urgencies or site.display_status.lower() in spec.urgencies


def _match_type(site: Site, spec: FilterSpec) -> bool:
    if not spec.types:
        return True
    if OTHER_TYPE in spec.types:
        return True
    name = site.location_name.lower()
    return any(keyword in name for keyword in spec.types)


def _match_needs_surplus(site: Site, spec: FilterSpec) -> bool:
    if spec.has_needs and not site.needed:
        return False
    if spec.has_surplus and not site.surplus:
        return False
    return True


def _match_keywords(site: Site, spec: FilterSpec) -> bool:
    if not spec.keywords:
        return True
    names = [line.item for name in LIST_FIELDS for line in site.items(name)]
    names.append(site.location_name)
    haystack = " ".join(names).lower()
    return any(keyword.lower() in haystack for keyword in spec.keywords)


PREDICATES: Tuple[Callable[[Site, FilterSpec], bool], ...] = (
    _match_query,
    _match_updated_since,
    _match_location,
    _match_urgency,
    _match_type,
    _match_needs_surplus,
    _match_keywords,
)


def matches(site: Site, spec: FilterSpec) -> bool:
    """Return ``True`` when ``site`` satisfies every criterion in ``spec``."""
    return all(predicate(site, spec) for predicate in PREDICATES)
