"""Route lookup against the cached static schedule."""

from lt_transport.services.enrichment.matcher import (
    EnrichmentIndex,
    MatchResult,
    enrich_vehicle,
    enrich_vehicles,
    extract_destination,
    match_route,
)

__all__ = [
    "EnrichmentIndex",
    "MatchResult",
    "enrich_vehicle",
    "enrich_vehicles",
    "extract_destination",
    "match_route",
]
