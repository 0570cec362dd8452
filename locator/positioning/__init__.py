"""Positioning collaborators: device sensors and network-address lookup."""

from .base import DesiredAccuracy, PositionSource, UnsupportedPositionSource
from .ip_geolocation import IpLocation, fetch_ip_location, parse_ip_payload

__all__ = [
    "DesiredAccuracy",
    "PositionSource",
    "UnsupportedPositionSource",
    "IpLocation",
    "fetch_ip_location",
    "parse_ip_payload",
]
