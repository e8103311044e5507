"""Unit tests for S3BlobStorage with a stubbed boto3 client."""

import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from infrawatch.domain.shared.error import StorageUnavailableError
from infrawatch.infrastructure.storage.s3 import S3BlobStorage


def client_error(code: str, operation: str = "GetObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def s3(client) -> S3BlobStorage:
    return S3BlobStorage(client, bucket="inventory", prefix="/aws-data/")


class TestS3BlobStorage:
    @pytest.mark.asyncio
    async def test_put_writes_object_under_prefix(self, s3, client):
        location = await s3.put("regions.json", b"{}")

        assert location == "s3://inventory/aws-data/regions.json"
        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "inventory"
        assert kwargs["Key"] == "aws-data/regions.json"
        assert kwargs["Body"] == b"{}"
        assert kwargs["ContentType"] == "application/json"
        assert set(kwargs["Metadata"]) == {"generated-at", "version"}

    @pytest.mark.asyncio
    async def test_get_reads_body(self, s3, client):
        client.get_object.return_value = {"Body": io.BytesIO(b'{"a": 1}')}

        assert await s3.get("regions.json") == b'{"a": 1}'
        client.get_object.assert_called_once_with(Bucket="inventory", Key="aws-data/regions.json")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["NoSuchKey", "404"])
    async def test_get_missing_object_returns_none(self, s3, client, code):
        client.get_object.side_effect = client_error(code)

        assert await s3.get("regions.json") is None

    @pytest.mark.asyncio
    async def test_get_access_denied_raises(self, s3, client):
        client.get_object.side_effect = client_error("AccessDenied")

        with pytest.raises(StorageUnavailableError):
            await s3.get("regions.json")

    @pytest.mark.asyncio
    async def test_put_failure_raises(self, s3, client):
        client.put_object.side_effect = client_error("AccessDenied", "PutObject")

        with pytest.raises(StorageUnavailableError):
            await s3.put("regions.json", b"{}")

    def test_empty_prefix(self, client):
        assert S3BlobStorage(client, bucket="b")._key("regions.json") == "regions.json"
