"""Decoder selection: one capability, two variants chosen by descriptor kind."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from lt_transport.cities import HeaderFeedDescriptor, OffsetFeedDescriptor
from lt_transport.errors import ConfigurationError
from lt_transport.services.gps.filters import DecodeOptions, apply_filters
from lt_transport.services.gps.full_decoder import HeaderMappedDecoder
from lt_transport.services.gps.lite_decoder import OffsetMappedDecoder

if TYPE_CHECKING:
    from datetime import datetime

    from lt_transport.cities import FeedDescriptor
    from lt_transport.models import VehiclePosition


class FeedDecoder(Protocol):
    kind: str

    def decode(
        self,
        text: str,
        city: str,
        reference_time: datetime,
        options: DecodeOptions,
    ) -> list[VehiclePosition]: ...


def get_decoder(descriptor: FeedDescriptor | None) -> FeedDecoder:
    """Return the decoder variant for ``descriptor``.

    Raises:
        ConfigurationError: If the descriptor is missing or of an unknown kind.
    """
    if isinstance(descriptor, HeaderFeedDescriptor):
        return HeaderMappedDecoder(descriptor)
    if isinstance(descriptor, OffsetFeedDescriptor):
        return OffsetMappedDecoder(descriptor)
    msg = f"No decoder for feed descriptor {descriptor!r}"
    raise ConfigurationError(msg)


def decode_feed(
    text: str,
    city: str,
    descriptor: FeedDescriptor,
    reference_time: datetime,
    options: DecodeOptions,
) -> list[VehiclePosition]:
    """Decode a feed body and apply the configured filters."""
    positions = get_decoder(descriptor).decode(text, city, reference_time, options)
    return apply_filters(positions, options)


__all__ = ["DecodeOptions", "FeedDecoder", "apply_filters", "decode_feed", "get_decoder"]
