"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from lt_transport.client import TransportClient
from lt_transport.config import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with an isolated on-disk GTFS cache."""
    return Settings(cache_dir=tmp_path / "cache", environment="development")


@pytest.fixture
def client(settings: Settings) -> TransportClient:
    return TransportClient(settings=settings)
