"""DI provider for the region launch feed."""

from collections.abc import AsyncIterable
from typing import NewType

import httpx
from dishka import Provider, provide

from infrawatch.config import Config
from infrawatch.domain.inventory.port.launch_feed import LaunchFeed
from infrawatch.infrastructure.feed.launch_feed import HttpLaunchFeed
from infrawatch.util.di.scope import Scope

FeedHttpClient = NewType("FeedHttpClient", httpx.AsyncClient)


class FeedProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_feed_http_client(self, config: Config) -> AsyncIterable[FeedHttpClient]:
        feed = config.feed
        client = httpx.AsyncClient(
            follow_redirects=True,
            max_redirects=feed.max_redirects,
            timeout=feed.timeout,
            headers={"User-Agent": feed.user_agent, "Accept": feed.accept},
        )
        yield FeedHttpClient(client)
        await client.aclose()

    @provide(scope=Scope.APP)
    def get_launch_feed(self, client: FeedHttpClient, config: Config) -> LaunchFeed:
        return HttpLaunchFeed(client=client, url=config.feed.url)
