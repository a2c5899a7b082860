"""
Conversion between domain values and store-native values.

Both directions walk the value by kind (see ValueKind) instead of probing
attributes ad hoc:

    to_store_format      domain -> store   (drops UNSET keys, copies dates)
    to_native_format     store  -> domain  (store timestamps -> datetime)
    of_document_snapshot snapshot -> record dict with its id merged in

Input is assumed to be acyclic.
"""

from collections.abc import Mapping
from datetime import date, datetime, time
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict

from bson import DBRef, Decimal128, ObjectId
from bson.codec_options import CodecOptions
from bson.datetime_ms import DatetimeMS
from bson.timestamp import Timestamp
from pydantic import BaseModel

from .field_values import FieldValue, Unset

if TYPE_CHECKING:
    from ..stores.base import DocumentSnapshot

ID_FIELD = "id"

_NATIVE_CODEC_OPTIONS = CodecOptions(tz_aware=True)

_PRIMITIVE_TYPES = (str, bytes, bool, int, float, ObjectId, Decimal128)
_SEQUENCE_TYPES = (list, tuple, set, frozenset)


class ValueKind(str, Enum):
    """Closed set of value shapes the converters dispatch on."""
    NULL = "null"
    UNSET = "unset"
    PRIMITIVE = "primitive"
    DATE = "date"
    STORE_TIMESTAMP = "store_timestamp"
    SENTINEL = "sentinel"
    REFERENCE = "reference"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    MODEL = "model"
    OTHER = "other"


def kind_of(value: Any) -> ValueKind:
    """Classify a value for conversion."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, Unset):
        return ValueKind.UNSET
    if isinstance(value, FieldValue):
        return ValueKind.SENTINEL
    if isinstance(value, (DatetimeMS, Timestamp)):
        return ValueKind.STORE_TIMESTAMP
    if isinstance(value, DBRef):
        return ValueKind.REFERENCE
    # datetime is a subclass of date, both land here
    if isinstance(value, date):
        return ValueKind.DATE
    if isinstance(value, _PRIMITIVE_TYPES):
        return ValueKind.PRIMITIVE
    if isinstance(value, BaseModel):
        return ValueKind.MODEL
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, _SEQUENCE_TYPES):
        return ValueKind.SEQUENCE
    return ValueKind.OTHER


def to_store_format(value: Any) -> Any:
    """
    Convert a domain value into something the store can write.

    Args:
        value: Any acyclic domain value (dict, list, pydantic model, scalar)

    Returns:
        A new structure. Mapping keys holding UNSET are dropped, keys
        holding None are kept. Dates are copied, never aliased.
    """
    kind = kind_of(value)

    if kind is ValueKind.DATE:
        if isinstance(value, datetime):
            return value.replace()
        # BSON has no date-only type
        return datetime.combine(value, time.min)

    if kind is ValueKind.SEQUENCE:
        return [to_store_format(item) for item in value]

    if kind is ValueKind.MODEL:
        return _mapping_to_store(value.model_dump(exclude_unset=True))

    if kind is ValueKind.MAPPING:
        return _mapping_to_store(value)

    return value


def _mapping_to_store(value: Mapping) -> Dict[str, Any]:
    clone = {}
    for key, item in value.items():
        if kind_of(item) is ValueKind.UNSET:
            continue
        clone[key] = to_store_format(item)
    return clone


def to_native_format(value: Any) -> Any:
    """
    Convert a value read from the store into domain types.

    Store timestamps become timezone-aware UTC datetimes. References to
    other documents are returned as-is, not followed.
    """
    kind = kind_of(value)

    if kind is ValueKind.STORE_TIMESTAMP:
        if isinstance(value, DatetimeMS):
            return value.as_datetime(_NATIVE_CODEC_OPTIONS)
        return value.as_datetime()

    if kind is ValueKind.SEQUENCE:
        return [to_native_format(item) for item in value]

    if kind is ValueKind.MAPPING:
        return {key: to_native_format(item) for key, item in value.items()}

    return value


def of_document_snapshot(snapshot: "DocumentSnapshot", convert_timestamps: bool = False) -> Dict[str, Any]:
    """
    Build a record dict from a stored document.

    The store identifier is placed under ``id`` and overrides any ``id``
    field saved in the body.

    Args:
        snapshot: Snapshot returned by a DocumentStore
        convert_timestamps: Apply to_native_format to the merged record

    Returns:
        Record dict
    """
    data: Dict[str, Any] = {ID_FIELD: snapshot.id}
    for key, item in (snapshot.data or {}).items():
        if key != ID_FIELD:
            data[key] = item

    if convert_timestamps:
        return to_native_format(data)

    return data
