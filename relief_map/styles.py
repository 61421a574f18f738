"""Visual encoding of a site's display status on the map."""

from __future__ import annotations

from typing import Dict, NamedTuple, Optional


class MarkerStyle(NamedTuple):
    color: str
    opacity: float


NORMAL_STYLE = MarkerStyle("#3B82F6", 1.0)

STATUS_STYLES: Dict[str, MarkerStyle] = {
    "critical": MarkerStyle("#EF4444", 1.0),
    "surplus": MarkerStyle("#10B981", 1.0),
    # Faded rather than recoloured: stale means low confidence, not urgency.
    "stale": MarkerStyle("#9CA3AF", 0.5),
    "normal": NORMAL_STYLE,
}


def resolve_style(display_status: Optional[str]) -> MarkerStyle:
    """Map a display status to its marker style; unknown labels render as normal."""
    if not display_status:
        return NORMAL_STYLE
    return STATUS_STYLES.get(str(display_status).strip().lower(), NORMAL_STYLE)
