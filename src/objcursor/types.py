"""
Scalar type registry and null handling for column projection.

This module provides:
- SCALAR_TYPES: the fixed set of types that can be projected as a column value
- is_scalar_type: classify a type annotation as scalar or not
- Nullable helpers: detect and unwrap ``X | None`` / ``Optional[X]``
- NullConversion: how absent values are presented to consumers
- DB_NULL: the database-null marker used by NullConversion.TO_DB_NULL
"""
import datetime
import decimal
import enum
import logging
import types
import typing
import uuid
from typing import Any

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

NoneType = type(None)

DB_NULL = pd.NA

SCALAR_TYPES: frozenset[type] = frozenset({
    # Text and binary
    str,
    bytes,
    bytearray,
    # Integers, including numpy fixed widths
    int,
    np.int8,
    np.int16,
    np.int32,
    np.int64,
    np.uint8,
    np.uint16,
    np.uint32,
    np.uint64,
    # Floating and fixed point
    float,
    np.float32,
    np.float64,
    decimal.Decimal,
    # Dates and times
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    # Others
    bool,
    np.bool_,
    uuid.UUID,
    })


class NullConversion(enum.Enum):
    """How a column holding None is presented by a cursor.

    NONE returns None unchanged. TO_DB_NULL returns DB_NULL instead, and
    reports nullable column types unwrapped.
    """
    NONE = 'none'
    TO_DB_NULL = 'to_db_null'


def _is_union(tp: Any) -> bool:
    origin = typing.get_origin(tp)
    return origin is typing.Union or origin is types.UnionType


def is_nullable_type(tp: Any) -> bool:
    """Check whether an annotation is ``X | None`` for exactly one type X.
    """
    if not _is_union(tp):
        return False
    args = typing.get_args(tp)
    return NoneType in args and len(args) == 2


def unwrap_nullable(tp: Any) -> Any:
    """Return X for ``X | None``, otherwise the annotation unchanged.
    """
    if not is_nullable_type(tp):
        return tp
    return next(arg for arg in typing.get_args(tp) if arg is not NoneType)


def _is_registered_scalar(tp: Any) -> bool:
    if not isinstance(tp, type):
        return False
    return tp in SCALAR_TYPES or issubclass(tp, enum.Enum)


def is_scalar_type(tp: Any) -> bool:
    """Check whether values of an annotation can be projected as one column.

    Registry members and Enum subclasses are scalar, as is the nullable
    wrapping of either. Everything else, including unions of several types,
    containers, classes and unresolved forward references, is not.
    """
    try:
        if _is_registered_scalar(tp):
            return True
        if is_nullable_type(tp):
            return _is_registered_scalar(unwrap_nullable(tp))
    except TypeError:
        logger.debug(f'Treating unclassifiable annotation {tp!r} as non-scalar')
    return False


def type_name(tp: Any) -> str:
    """Short display name for an annotation, e.g. ``int`` or ``Optional[int]``.
    """
    if is_nullable_type(tp):
        return f'Optional[{type_name(unwrap_nullable(tp))}]'
    if isinstance(tp, type):
        return tp.__name__
    return str(tp)
