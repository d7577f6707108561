"""
Shared pieces of the account and game_result document models.

Documents keep their MongoDB key as ``_id``; in Python it is ``id`` and
serialises to a plain hex string in API responses.
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler
from pydantic_core import core_schema

DocT = TypeVar("DocT", bound="MongoBaseModel")


class PyObjectId(ObjectId):
    """ObjectId field type; accepts an ObjectId or its 24-char hex form."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.to_string_ser_schema(),
        )

    @staticmethod
    def _coerce(value: Any) -> ObjectId:
        if isinstance(value, ObjectId):
            return value
        if isinstance(value, str) and ObjectId.is_valid(value):
            return ObjectId(value)
        raise ValueError(f"Invalid ObjectId: {value!r}")


class MongoBaseModel(BaseModel):
    """Document with an optional ``_id``; unset until the insert assigns one."""

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    def to_mongo(self) -> dict:
        """Insert-ready dict. None fields are kept; an unset ``_id`` is dropped."""
        doc = self.model_dump(by_alias=True)
        if doc.get("_id") is None:
            del doc["_id"]
        return doc

    @classmethod
    def from_mongo(cls: type[DocT], doc: Optional[dict]) -> Optional[DocT]:
        if doc is None:
            return None
        return cls.model_validate(doc)
