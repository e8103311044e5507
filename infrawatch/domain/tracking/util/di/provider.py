from dishka import Provider, provide

from infrawatch.config import Config
from infrawatch.domain.shared.document_store import DocumentStore
from infrawatch.domain.tracking.service.tracker import ChangeTracker
from infrawatch.util.di.scope import Scope


class TrackingProvider(Provider):
    @provide(scope=Scope.RUN)
    def get_change_tracker(self, documents: DocumentStore, config: Config) -> ChangeTracker:
        return ChangeTracker(
            documents=documents,
            config=config.tracking,
            keys=config.storage.keys,
        )
