"""Network-address geolocation via an ipapi.co-style JSON endpoint."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

from locator.errors import PositioningTimeoutError, PositioningUnavailableError
from utils.logging_utils import get_tagged_logger, mask_url
logger = get_tagged_logger(__name__, tag="ip_geolocation")

IPAPI_URL = "https://ipapi.co/json/"

# Plain session: results are cached by the resolver, not the HTTP layer.
session = requests.Session()


@dataclass
class IpLocation:
    """Position derived from the caller's network origin."""
    latitude: float
    longitude: float
    city: Optional[str] = None
    country_name: Optional[str] = None


def _as_float(value) -> Optional[float]:
    """Parse a numeric field that may arrive as a string."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_ip_payload(payload: dict) -> IpLocation:
    """Validate an ipapi response body, raising PositioningUnavailableError when unusable."""
    if not isinstance(payload, dict):
        raise PositioningUnavailableError("Invalid IP location data", source="ip")
    if payload.get("error"):
        raise PositioningUnavailableError(f"IP location API error: {payload.get('reason', 'unknown')}", source="ip")
    lat = _as_float(payload.get("latitude"))
    lng = _as_float(payload.get("longitude"))
    # 0/0 is what ipapi-style services return for unknown addresses
    if lat is None or lng is None or (lat == 0 and lng == 0):
        raise PositioningUnavailableError("Invalid IP location data", source="ip")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        raise PositioningUnavailableError(f"IP location out of range: {lat}, {lng}", source="ip")
    return IpLocation(
        latitude=lat,
        longitude=lng,
        city=payload.get("city"),
        country_name=payload.get("country_name"),
    )


def fetch_ip_location(url: str = IPAPI_URL, *, timeout: float = 5.0) -> IpLocation:
    """Look up the caller's position from its public IP address.

    Blocking; callers running an event loop should dispatch it to a thread.
    """
    logger.info("Attempting IP-based location", extra={"url": mask_url(url)})
    try:
        resp = session.get(url, timeout=timeout)
    except requests.exceptions.Timeout as exc:
        raise PositioningTimeoutError(f"IP location timed out: {exc}", source="ip") from exc
    except requests.exceptions.RequestException as exc:
        raise PositioningUnavailableError(f"IP location failed: {exc}", source="ip") from exc

    try:
        resp.raise_for_status()
    except requests.exceptions.HTTPError as exc:
        raise PositioningUnavailableError(f"IP location API error: {resp.status_code}", source="ip") from exc

    try:
        payload = resp.json()
    except ValueError as exc:
        raise PositioningUnavailableError("IP location returned non-JSON response", source="ip") from exc

    location = parse_ip_payload(payload)
    logger.info("IP location obtained: %s, %s", location.city or "?", location.country_name or "?")
    return location
