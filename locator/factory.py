"""Factory helpers that wire the classifier and resolver from settings."""

from __future__ import annotations

from typing import Optional

try:
    import redis  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    redis = None

from locator import config
from locator.intent_classifier import IntentClassifier, Oracle
from locator.location_resolver import LocationResolver
from locator.location_store import InMemoryLocationStore, LocationStore, RedisLocationStore
from locator.oracle_client import OracleClient
from locator.pipeline import LocationAssistant
from locator.positioning.base import DesiredAccuracy, PositionSource, UnsupportedPositionSource
from locator.tiers import DevicePositionTier, LocationTier, NetworkAddressTier, StaticFallbackTier
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="factory")

# Oldest sensor fix each device tier will accept.
PRECISE_MAXIMUM_AGE_SECONDS = 2 * 60
APPROXIMATE_MAXIMUM_AGE_SECONDS = 5 * 60


def build_location_store(settings: config.Settings | None = None) -> LocationStore:
    """Use Redis when configured and reachable, otherwise an in-memory store."""
    settings = settings or config.settings
    ttl = settings.durable_cache_ttl_seconds
    masked = mask_url(settings.location_redis_url) or "None"
    logger.debug(f"Initializing location store: redis_url='{masked}', redis package present: {'yes' if redis else 'no'}")
    if settings.location_redis_url and redis:
        try:
            client = redis.Redis.from_url(settings.location_redis_url, socket_timeout=1.0)
            client.ping()
            logger.info("Using RedisLocationStore", extra={"redis_url": masked})
            return RedisLocationStore(client, ttl_seconds=ttl, key=settings.location_cache_key)
        except Exception as exc:  # pragma: no cover - defensive
            logger.warning("Falling back to InMemoryLocationStore (Redis unavailable)", extra={"error": str(exc)})
    return InMemoryLocationStore(ttl_seconds=ttl)


def build_tiers(
    settings: config.Settings | None = None,
    position_source: Optional[PositionSource] = None,
) -> list[LocationTier]:
    """Precise device, approximate device, network address, static fallback."""
    settings = settings or config.settings
    source = position_source or UnsupportedPositionSource()
    return [
        DevicePositionTier(
            source,
            DesiredAccuracy.PRECISE,
            timeout_seconds=settings.precise_timeout_seconds,
            maximum_age_seconds=PRECISE_MAXIMUM_AGE_SECONDS,
        ),
        DevicePositionTier(
            source,
            DesiredAccuracy.APPROXIMATE,
            timeout_seconds=settings.approximate_timeout_seconds,
            maximum_age_seconds=APPROXIMATE_MAXIMUM_AGE_SECONDS,
        ),
        NetworkAddressTier(url=settings.ip_geolocation_url, timeout_seconds=settings.network_timeout_seconds),
        StaticFallbackTier(settings.fallback_city),
    ]


def build_resolver(
    settings: config.Settings | None = None,
    *,
    position_source: Optional[PositionSource] = None,
    store: Optional[LocationStore] = None,
) -> LocationResolver:
    settings = settings or config.settings
    return LocationResolver(
        build_tiers(settings, position_source),
        position_source=position_source,
        store=store if store is not None else build_location_store(settings),
        cache_ttl_seconds=settings.cache_ttl_seconds,
        durable_cache_ttl_seconds=settings.durable_cache_ttl_seconds,
    )


def build_classifier(settings: config.Settings | None = None, *, oracle: Optional[Oracle] = None) -> IntentClassifier:
    settings = settings or config.settings
    if oracle is None:
        oracle = OracleClient(
            open_webui_url=settings.open_webui_url or "",
            ollama_base_url=settings.ollama_base_url,
            model=settings.oracle_model,
            request_timeout=settings.oracle_request_timeout_seconds,
            max_retries=settings.oracle_retries,
        )
    return IntentClassifier(oracle, oracle_timeout=settings.oracle_timeout_seconds)


def build_assistant(
    settings: config.Settings | None = None,
    *,
    position_source: Optional[PositionSource] = None,
    oracle: Optional[Oracle] = None,
) -> LocationAssistant:
    settings = settings or config.settings
    return LocationAssistant(
        build_classifier(settings, oracle=oracle),
        build_resolver(settings, position_source=position_source),
    )
