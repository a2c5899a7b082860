"""
Query filter model.

A Query is an ordered set of Filters combined with AND, then an optional
sort on one field, then an optional limit. Stores evaluate in exactly that
order: filter -> sort -> limit.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence, Tuple, Union


class FilterOperator(str, Enum):
    """Comparison operators supported by every store."""
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    EQUAL = "=="
    NOT_EQUAL = "!="
    GREATER_THAN_OR_EQUAL = ">="
    GREATER_THAN = ">"
    ARRAY_CONTAINS = "array-contains"
    ARRAY_CONTAINS_ANY = "array-contains-any"
    IN = "in"
    NOT_IN = "not-in"

    @classmethod
    def parse(cls, operator: Union[str, "FilterOperator"]) -> "FilterOperator":
        try:
            return cls(operator)
        except ValueError:
            raise ValueError(f"Unsupported filter operator: {operator!r}") from None


# Operators whose comparison value must be a list of candidates
LIST_OPERATORS = frozenset({
    FilterOperator.ARRAY_CONTAINS_ANY,
    FilterOperator.IN,
    FilterOperator.NOT_IN,
})


class Direction(str, Enum):
    """Sort direction."""
    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class Filter:
    """
    One (field, operator, value) constraint.

    Attributes:
        field: Field path, dotted for nested fields (e.g. "address.city")
        operator: FilterOperator or its string form ("==", "in", ...)
        value: Comparison value; a list for in/not-in/array-contains-any
    """
    field: str
    operator: FilterOperator
    value: Any

    def __post_init__(self):
        operator = FilterOperator.parse(self.operator)
        object.__setattr__(self, "operator", operator)
        if operator in LIST_OPERATORS and not isinstance(self.value, (list, tuple)):
            raise ValueError(f"Operator {operator.value!r} requires a list value")
        if operator in LIST_OPERATORS:
            object.__setattr__(self, "value", list(self.value))

    @classmethod
    def coerce(cls, raw: "FilterLike") -> "Filter":
        """
        Accept a Filter, a (field, operator, value) tuple or a mapping with
        "field", "operator" and "value" keys.
        """
        if isinstance(raw, Filter):
            return raw
        if isinstance(raw, Mapping):
            return cls(raw["field"], raw["operator"], raw["value"])
        if isinstance(raw, (tuple, list)) and len(raw) == 3:
            return cls(raw[0], raw[1], raw[2])
        raise TypeError(f"Cannot build a Filter from {raw!r}")


FilterLike = Union[Filter, Tuple[str, Union[str, FilterOperator], Any], Mapping]


def _is_single_filter(filters: Any) -> bool:
    if isinstance(filters, (Filter, Mapping)):
        return True
    # a bare triple whose first item is a field name
    return isinstance(filters, tuple) and len(filters) == 3 and isinstance(filters[0], str)


@dataclass(frozen=True)
class Query:
    """
    Conjunctive filter set with optional sort and limit.

    Attributes:
        filters: Filters, all of which must match
        limit: Maximum number of results (None or 0 = unbounded)
        order_by: Field to sort on, applied after filtering
        direction: Sort direction for order_by
    """
    filters: Tuple[Filter, ...] = field(default_factory=tuple)
    limit: Optional[int] = None
    order_by: Optional[str] = None
    direction: Direction = Direction.ASCENDING

    def __post_init__(self):
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be >= 0, got {self.limit}")
        object.__setattr__(self, "filters", tuple(Filter.coerce(f) for f in self.filters))
        object.__setattr__(self, "direction", Direction(self.direction))

    @classmethod
    def build(
        cls,
        filters: Union[FilterLike, Sequence[FilterLike], None] = None,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        direction: Union[Direction, str, None] = None,
    ) -> "Query":
        """
        Normalize a single filter or a list of filters into a Query.

        Args:
            filters: One filter, a list of filters, or None for a full scan
            limit: Maximum number of results
            order_by: Field to sort on
            direction: Sort direction (ascending when omitted)

        Returns:
            Query instance
        """
        if filters is None:
            items: Tuple[FilterLike, ...] = ()
        elif _is_single_filter(filters):
            items = (filters,)
        else:
            items = tuple(filters)

        return cls(
            filters=items,
            limit=limit,
            order_by=order_by,
            direction=direction or Direction.ASCENDING,
        )

    @property
    def effective_limit(self) -> Optional[int]:
        """Limit to apply, or None when unbounded."""
        return self.limit or None
