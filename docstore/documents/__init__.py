"""Record model, write sentinels, value conversion and query filters."""

from .converters import (
    ID_FIELD,
    ValueKind,
    kind_of,
    of_document_snapshot,
    to_native_format,
    to_store_format,
)
from .field_values import (
    SERVER_TIMESTAMP,
    UNSET,
    FieldValue,
    Increment,
    ServerTimestamp,
    decrement,
    increment,
    server_timestamp,
)
from .filters import Direction, Filter, FilterOperator, Query
from .models import CREATED_AT_FIELD, UPDATED_AT_FIELD, Model

__all__ = [
    "ID_FIELD",
    "CREATED_AT_FIELD",
    "UPDATED_AT_FIELD",
    "Model",
    "ValueKind",
    "kind_of",
    "of_document_snapshot",
    "to_native_format",
    "to_store_format",
    "SERVER_TIMESTAMP",
    "UNSET",
    "FieldValue",
    "Increment",
    "ServerTimestamp",
    "decrement",
    "increment",
    "server_timestamp",
    "Direction",
    "Filter",
    "FilterOperator",
    "Query",
]
