from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True)


class Document(BaseModel):
    """Mutable model persisted as a JSON blob.

    Field names are snake_case in Python and camelCase on disk so the
    documents stay readable by existing consumers of the JSON files.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentValue(BaseModel):
    """Immutable, hashable counterpart of Document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
