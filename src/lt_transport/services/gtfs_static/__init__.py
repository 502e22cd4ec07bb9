"""Static GTFS schedule sync, parsing and disk cache."""
