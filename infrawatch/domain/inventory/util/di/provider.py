from dishka import Provider, provide

from infrawatch.config import Config
from infrawatch.domain.inventory.port.directory import DirectoryClient
from infrawatch.domain.inventory.port.launch_feed import LaunchFeed
from infrawatch.domain.inventory.service.cache import CacheManager
from infrawatch.domain.inventory.service.fetcher import PagedFetcher
from infrawatch.domain.inventory.service.inventory import InventoryService
from infrawatch.domain.shared.document_store import DocumentStore
from infrawatch.domain.tracking.service.tracker import ChangeTracker
from infrawatch.util.di.scope import Scope


class InventoryProvider(Provider):
    """Provides the fetch, cache and run services."""

    @provide(scope=Scope.RUN)
    def get_fetcher(self, client: DirectoryClient, config: Config) -> PagedFetcher:
        return PagedFetcher(client, config.fetch)

    @provide(scope=Scope.RUN)
    def get_cache_manager(self, documents: DocumentStore, config: Config) -> CacheManager:
        return CacheManager(documents, config.cache, config.storage.keys.cache)

    @provide(scope=Scope.RUN)
    def get_inventory_service(
        self,
        fetcher: PagedFetcher,
        cache: CacheManager,
        documents: DocumentStore,
        launch_feed: LaunchFeed,
        tracker: ChangeTracker,
        config: Config,
    ) -> InventoryService:
        return InventoryService(
            fetcher=fetcher,
            cache=cache,
            documents=documents,
            launch_feed=launch_feed,
            tracker=tracker,
            directory=config.directory,
            batches=config.batch,
            storage=config.storage,
            performance=config.performance,
        )
