"""Unit tests for PagedFetcher."""

import pytest

from infrawatch.config import FetchConfig
from infrawatch.domain.inventory.service.fetcher import PagedFetcher
from infrawatch.domain.shared.error import ExternalServiceError, RateLimitError

ROOT = "/gi/regions/r1/services"


@pytest.fixture
def config() -> FetchConfig:
    return FetchConfig(
        max_retries=5,
        per_request_retries=3,
        base_delay=0.01,
        page_size=2,
        pagination_delay=0.04,
        pagination_delay_increment=0.025,
    )


@pytest.fixture
def client(directory_client):
    directory_client.tree[ROOT] = [f"{ROOT}/s{i}" for i in range(1, 6)]
    return directory_client


class TestFetchAll:
    @pytest.mark.asyncio
    async def test_pages_through_every_entry(self, client, config, sleep):
        fetcher = PagedFetcher(client, config, sleep=sleep)

        entries = await fetcher.fetch_all(ROOT)

        assert [e.path for e in entries] == [f"{ROOT}/s{i}" for i in range(1, 6)]
        assert client.page_calls == [(ROOT, None), (ROOT, "2"), (ROOT, "4")]
        # Pause between pages, none after the last one
        assert sleep.delays == pytest.approx([0.04, 0.04])

    @pytest.mark.asyncio
    async def test_retries_throttled_page_in_place(self, client, config, sleep):
        client.throttle[ROOT] = 2
        fetcher = PagedFetcher(client, config, sleep=sleep)

        entries = await fetcher.fetch_all(ROOT)

        assert len(entries) == 5
        assert client.page_calls[:3] == [(ROOT, None)] * 3
        assert sleep.delays == pytest.approx([0.02, 0.04, 0.04, 0.04])

    @pytest.mark.asyncio
    async def test_restarts_listing_when_page_retries_run_out(self, client, config, sleep):
        """A page still throttled after per-request retries restarts the whole listing."""
        client.throttle[ROOT] = config.per_request_retries + 1
        fetcher = PagedFetcher(client, config, sleep=sleep)

        entries = await fetcher.fetch_all(ROOT)

        assert len(entries) == 5
        assert sleep.delays == pytest.approx(
            [
                0.02, 0.04, 0.08,  # per-request backoff
                0.02,  # whole-operation backoff
                0.065, 0.065,  # slower pagination after one outer retry
            ]
        )

    @pytest.mark.asyncio
    async def test_raises_when_whole_operation_budget_is_exhausted(self, client, sleep):
        client.throttle[ROOT] = 100
        config = FetchConfig(max_retries=1, per_request_retries=0, base_delay=0.01)
        fetcher = PagedFetcher(client, config, sleep=sleep)

        with pytest.raises(RateLimitError):
            await fetcher.fetch_all(ROOT)

        assert len(client.page_calls) == 2

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self, client, config, sleep):
        client.failures[ROOT] = ExternalServiceError("access denied")
        fetcher = PagedFetcher(client, config, sleep=sleep)

        with pytest.raises(ExternalServiceError):
            await fetcher.fetch_all(ROOT)

        assert len(client.page_calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_empty_listing(self, directory_client, config, sleep):
        fetcher = PagedFetcher(directory_client, config, sleep=sleep)

        assert await fetcher.fetch_all("/nothing/here") == []


class TestFetchOne:
    @pytest.mark.asyncio
    async def test_returns_value(self, directory_client, config, sleep):
        directory_client.values["/gi/regions/r1/longName"] = "Region One"
        fetcher = PagedFetcher(directory_client, config, sleep=sleep)

        assert await fetcher.fetch_one("/gi/regions/r1/longName") == "Region One"

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self, directory_client, config, sleep):
        fetcher = PagedFetcher(directory_client, config, sleep=sleep)

        assert await fetcher.fetch_one("/gi/regions/zz/longName") is None

    @pytest.mark.asyncio
    async def test_retries_throttling(self, directory_client, config, sleep):
        path = "/gi/services/s1/longName"
        directory_client.values[path] = "Service One"
        directory_client.throttle[path] = 3
        fetcher = PagedFetcher(directory_client, config, sleep=sleep)

        assert await fetcher.fetch_one(path) == "Service One"
        assert len(directory_client.single_calls) == 4
        assert len(directory_client.single_calls) <= config.max_retries + 1
