"""Route matching and destination enrichment for lite-format feeds.

Lite feeds carry only a route short name. The matcher looks that name up in
the cached static routes and derives a destination from the route's long
name. Matching is exact, then case-folded exact; nothing fuzzier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from lt_transport.models import Route, VehiclePosition

# Checked in order; the first one present in the long name wins
DESTINATION_SEPARATORS: tuple[str, ...] = (" - ", " \u2013 ", " \u2014 ", " / ")


@dataclass(frozen=True)
class MatchResult:
    destination: str | None = None
    route_long_name: str | None = None
    matched: bool = False


NO_MATCH = MatchResult()


@dataclass(frozen=True)
class EnrichmentIndex:
    """Route lookup tables derived from one snapshot generation.

    Built once per generation and reused for every lookup until a
    successful sync bumps the generation.
    """

    generation: int
    by_name: dict[str, Route] = field(default_factory=dict)
    by_upper_name: dict[str, Route] = field(default_factory=dict)

    @classmethod
    def from_routes(cls, routes: Iterable[Route], generation: int = 0) -> EnrichmentIndex:
        by_name: dict[str, Route] = {}
        by_upper_name: dict[str, Route] = {}
        for route in routes:
            by_name.setdefault(route.short_name, route)
            by_upper_name.setdefault(route.short_name.upper(), route)
        return cls(generation=generation, by_name=by_name, by_upper_name=by_upper_name)

    def __len__(self) -> int:
        return len(self.by_name)


def extract_destination(long_name: str) -> str | None:
    """Take the last segment after the first separator found, else the whole name.

    Examples:
        "Centras - Stotis" -> "Stotis"
        "Žiedinis"         -> "Žiedinis"
        ""                 -> None
    """
    if not long_name:
        return None
    for sep in DESTINATION_SEPARATORS:
        if sep in long_name:
            return long_name.split(sep)[-1].strip()
    return long_name


def match_route(route_id: str, index: EnrichmentIndex) -> MatchResult:
    """Resolve a live-feed route identifier against ``index``."""
    key = route_id.strip() if route_id else ""
    if not key:
        return NO_MATCH

    route = index.by_name.get(key)
    if route is None:
        route = index.by_upper_name.get(key.upper())
    if route is None:
        return NO_MATCH

    return MatchResult(
        destination=extract_destination(route.long_name),
        route_long_name=route.long_name or None,
        matched=True,
    )


def enrich_vehicle(position: VehiclePosition, index: EnrichmentIndex) -> VehiclePosition:
    """Return ``position`` with a destination filled in from the matched route.

    A position that already has a destination is returned as is. The argument
    is never modified; a match produces a new record.
    """
    if position.destination:
        return position
    result = match_route(position.route, index)
    if not result.matched:
        return position
    return position.model_copy(update={"destination": result.destination})


def enrich_vehicles(positions: Iterable[VehiclePosition], index: EnrichmentIndex) -> list[VehiclePosition]:
    return [enrich_vehicle(p, index) for p in positions]
