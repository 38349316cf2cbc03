"""Device-side client of the campus delivery order service."""

from delivery_client.cache import (
    CachedCollection,
    CacheKeys,
    FileCacheStore,
    InMemoryCacheStore,
    LocalCacheStore,
)
from delivery_client.client import DeliveryClient
from delivery_client.credentials import SimpleJWTCredentials, TokenProviderCredentials
from delivery_client.engine import LifecycleEngine, Snapshot
from delivery_client.favorites import FavoritesReconciler
from delivery_client.gateway import ApiClient, ApiStatus, Attempt
from delivery_client.reviews import ReviewsReconciler
from delivery_client.transport import RequestsTransport, TransportResponse

__all__ = [
    "ApiClient",
    "ApiStatus",
    "Attempt",
    "CacheKeys",
    "CachedCollection",
    "DeliveryClient",
    "FavoritesReconciler",
    "FileCacheStore",
    "InMemoryCacheStore",
    "LifecycleEngine",
    "LocalCacheStore",
    "RequestsTransport",
    "ReviewsReconciler",
    "SimpleJWTCredentials",
    "Snapshot",
    "TokenProviderCredentials",
    "TransportResponse",
]
