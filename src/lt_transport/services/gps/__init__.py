"""Live vehicle-position feed fetching and decoding."""
