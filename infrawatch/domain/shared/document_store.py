"""Typed JSON document access on top of the BlobStorage port."""

import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from infrawatch.domain.shared.port.blob_storage import BlobStorage

D = TypeVar("D", bound=BaseModel)

logger = logging.getLogger(__name__)


class DocumentStore:
    """Loads and saves pydantic documents through a BlobStorage.

    A blob that is missing, not valid JSON, or does not match the expected
    shape loads as None. Malformed blobs are logged and otherwise treated
    as absent; they never abort a run.
    """

    def __init__(self, storage: BlobStorage) -> None:
        self._storage = storage

    async def load(self, key: str, model: type[D]) -> D | None:
        data = await self._storage.get(key)
        if data is None:
            logger.debug(f"No document stored at {key}")
            return None
        try:
            return model.model_validate_json(data)
        except ValidationError as e:
            logger.warning(
                f"Ignoring malformed {model.__name__} document at {key} "
                f"({e.error_count()} validation errors)"
            )
            return None

    async def save(self, key: str, document: BaseModel) -> str:
        payload = document.model_dump_json(by_alias=True, exclude_none=True, indent=2)
        location = await self._storage.put(key, payload.encode("utf-8"))
        logger.debug(f"Saved {type(document).__name__} to {location}")
        return location
