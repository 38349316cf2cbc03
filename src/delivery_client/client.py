"""Wiring of the client components around one signed-in actor."""

from __future__ import annotations

from concurrent.futures import Executor
from typing import Callable, Optional

from delivery_client.cache import FileCacheStore, InMemoryCacheStore, LocalCacheStore
from delivery_client.credentials import CredentialProvider
from delivery_client.engine import LifecycleEngine
from delivery_client.favorites import FavoritesReconciler
from delivery_client.gateway import ApiClient, ApiStatus
from delivery_client.reviews import ReviewsReconciler
from delivery_client.settings import ClientSettings
from delivery_client.transport import RequestsTransport, Transport
from shared.domain.lifecycle import Actor


class DeliveryClient:
    """Engine, favorites and reviews sharing one gateway and cache.

    The three share the breaker, so one outage disables all of them until
    ``api.api_status.reset()``.
    """

    def __init__(
        self,
        api: ApiClient,
        store: LocalCacheStore,
        actor: Actor,
        executor: Optional[Executor] = None,
    ) -> None:
        self.api = api
        self.store = store
        self.actor = actor
        self.orders = LifecycleEngine(api, store, actor, executor=executor)
        self.favorites = FavoritesReconciler(api, store, actor, executor=executor)
        self.reviews = ReviewsReconciler(api, store, actor, executor=executor)

    @classmethod
    def from_settings(
        cls,
        actor: Actor,
        make_credentials: Callable[[Transport], CredentialProvider],
        settings: Optional[ClientSettings] = None,
        store: Optional[LocalCacheStore] = None,
        api_status: Optional[ApiStatus] = None,
    ) -> DeliveryClient:
        settings = settings or ClientSettings.from_env()
        transport = RequestsTransport(settings.api_url, timeout=settings.timeout)
        if store is None:
            store = (
                FileCacheStore(settings.cache_dir)
                if settings.cache_dir
                else InMemoryCacheStore()
            )
        api = ApiClient(
            transport,
            make_credentials(transport),
            api_status=api_status,
            timeout=settings.timeout,
        )
        return cls(api, store, actor)

    def close(self) -> None:
        self.orders.close()
        self.favorites.close()
        self.reviews.close()

    def __enter__(self) -> DeliveryClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
