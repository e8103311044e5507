from dishka import AsyncContainer, Provider, from_context, make_async_container

from infrawatch.config import Config
from infrawatch.domain.inventory.util.di import InventoryProvider
from infrawatch.domain.tracking.util.di import TrackingProvider
from infrawatch.infrastructure.feed import FeedProvider
from infrawatch.infrastructure.ssm import SsmProvider
from infrawatch.infrastructure.storage import StorageProvider
from infrawatch.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars at runtime
    config = config or Config()  # type: ignore[call-arg]

    return make_async_container(
        ConfigProvider(),
        StorageProvider(),
        SsmProvider(),
        FeedProvider(),
        TrackingProvider(),
        InventoryProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
