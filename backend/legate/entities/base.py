"""Base entity shared by all MongoDB documents."""

from datetime import datetime
from typing import Annotated, Any, Optional

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

from legate.utils.datetime import utc_now


def _to_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValueError(f"Invalid ObjectId: {value!r}")


PyObjectId = Annotated[
    ObjectId,
    BeforeValidator(_to_object_id),
    PlainSerializer(lambda v: str(v), return_type=str, when_used="json"),
]

# For DTOs: accepts ObjectId or str, always yields str
PyObjectIdStr = Annotated[str, BeforeValidator(lambda v: str(v) if v is not None else v)]


def is_object_id(value: Any) -> bool:
    """True for 24-hex id strings (and ObjectId instances)."""
    if isinstance(value, ObjectId):
        return True
    return isinstance(value, str) and ObjectId.is_valid(value) and len(value) == 24


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return an ObjectId for valid ids, None otherwise."""
    if not is_object_id(value):
        return None
    return _to_object_id(value)


class BaseEntity(BaseModel):
    """Common fields for top-level documents."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None

    def to_mongo(self) -> dict:
        """Dump to a dict suitable for insert/replace (drops an unset _id)."""
        data = self.model_dump(by_alias=True)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data
