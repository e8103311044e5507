"""SSM Parameter Store adapter for the DirectoryClient port."""

import asyncio
import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from infrawatch.domain.inventory.model.directory import DirectoryEntry, DirectoryPage
from infrawatch.domain.inventory.port.directory import DirectoryClient
from infrawatch.domain.shared.error import (
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

_THROTTLING_CODES = {"ThrottlingException", "TooManyUpdates", "RequestLimitExceeded"}


def translate_error(error: ClientError, path: str) -> Exception:
    """Map a botocore ClientError onto the directory port's error types."""
    details = error.response.get("Error", {})
    code = details.get("Code", "")
    message = details.get("Message", "") or str(error)

    if code in _THROTTLING_CODES or "Rate exceeded" in message:
        return RateLimitError(f"Throttled reading {path}: {message}", code=code or None)
    if code in {"ParameterNotFound", "ParameterVersionNotFound"}:
        return NotFoundError(f"Parameter not found: {path}", code=code)
    return ExternalServiceError(f"SSM request for {path} failed: {message}", code=code or None)


class SsmDirectoryClient(DirectoryClient):
    """Reads the public global-infrastructure tree from SSM Parameter Store.

    Expects a boto3 ``ssm`` client with SDK-level retries disabled so the
    fetcher's own retry policy is the only one in effect.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    async def get_by_path(
        self,
        path: str,
        *,
        recursive: bool,
        page_size: int,
        next_token: str | None = None,
    ) -> DirectoryPage:
        params: dict[str, Any] = {
            "Path": path,
            "Recursive": recursive,
            "MaxResults": page_size,
        }
        if next_token:
            params["NextToken"] = next_token

        response = await self._call(self._client.get_parameters_by_path, path, **params)
        entries = [
            DirectoryEntry(path=p["Name"], value=p.get("Value", ""))
            for p in response.get("Parameters", [])
        ]
        return DirectoryPage(entries=entries, next_token=response.get("NextToken"))

    async def get_single(self, path: str) -> str:
        response = await self._call(self._client.get_parameter, path, Name=path)
        return response["Parameter"]["Value"]

    async def _call(self, method: Any, path: str, **params: Any) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(method, **params)
        except ClientError as e:
            raise translate_error(e, path) from e
        except BotoCoreError as e:
            raise ExternalServiceError(f"SSM request for {path} failed: {e}") from e
