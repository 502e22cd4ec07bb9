"""Feed decoding, static schedule and enrichment services."""
