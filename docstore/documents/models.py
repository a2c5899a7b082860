"""
Record base model and payload helpers.

Every record carries an id plus the two repository-managed timestamps.
Payloads handed to the repository may be plain mappings or pydantic
models; pydantic fields never assigned count as absent.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional, Union

from bson.datetime_ms import DatetimeMS
from pydantic import BaseModel, ConfigDict

from .converters import ID_FIELD

CREATED_AT_FIELD = "created_at"
UPDATED_AT_FIELD = "updated_at"


class Model(BaseModel):
    """
    Base class for records stored through a Repository.

    Subclasses add their own fields. ``id`` addresses the document and is
    never written into its body; the timestamps are filled by the
    repository on write.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: Optional[str] = None
    # DatetimeMS when read with timestamps=False
    created_at: Optional[Union[datetime, DatetimeMS]] = None
    updated_at: Optional[Union[datetime, DatetimeMS]] = None


def document_id_of(data: Any) -> Optional[str]:
    """Read the id of a payload, mapping or model."""
    if isinstance(data, BaseModel):
        return getattr(data, ID_FIELD, None)
    if isinstance(data, Mapping):
        return data.get(ID_FIELD)
    raise TypeError(f"Unsupported payload type: {type(data).__name__}")


def require_document_id(data: Any, operation: str) -> str:
    """
    Read the id a payload must carry for set/update.

    Raises:
        ValueError: If the payload has no id
    """
    document_id = document_id_of(data)
    if not document_id:
        raise ValueError(f"{operation} requires an '{ID_FIELD}' in the payload")
    return str(document_id)
