"""
Consumers that drive a cursor: record iteration, hydration and table population.

All functions here read from the cursor's current position onwards and leave
it closed once the source is exhausted.
"""
import datetime
import enum
import logging
import uuid
from collections.abc import Callable, Iterable, Iterator
from typing import Any, TypeVar

import numpy as np
import pandas as pd
import pyarrow as pa
from objcursor.adapters import Column
from objcursor.types import DB_NULL, unwrap_nullable

from libb import attrdict

logger = logging.getLogger(__name__)

__all__ = [
    'current_records',
    'iter_rows',
    'hydrate_all',
    'to_dataframe',
    'to_arrow_table',
    'arrow_schema',
    'arrow_type_for',
    'arrow_array',
    'copy_rows',
]

T = TypeVar('T')

ARROW_TYPES: dict[type, pa.DataType] = {
    str: pa.string(),
    bytes: pa.binary(),
    bytearray: pa.binary(),
    bool: pa.bool_(),
    np.bool_: pa.bool_(),
    int: pa.int64(),
    np.int8: pa.int8(),
    np.int16: pa.int16(),
    np.int32: pa.int32(),
    np.int64: pa.int64(),
    np.uint8: pa.uint8(),
    np.uint16: pa.uint16(),
    np.uint32: pa.uint32(),
    np.uint64: pa.uint64(),
    float: pa.float64(),
    np.float32: pa.float32(),
    np.float64: pa.float64(),
    datetime.datetime: pa.timestamp('us'),
    datetime.date: pa.date32(),
    datetime.time: pa.time64('us'),
    datetime.timedelta: pa.duration('us'),
    uuid.UUID: pa.string(),
}


def current_records(cursor: Any) -> Iterator[Any]:
    """Iterate over all remaining rows, yielding the cursor positioned on each.
    """
    while cursor.read():
        yield cursor


def _row_dict(cursor: Any) -> dict[str, Any]:
    return {cursor.column_name(i): cursor.get_value(i) for i in range(cursor.column_count)}


def iter_rows(cursor: Any) -> Iterator[attrdict]:
    """Iterate over all remaining rows as attrdicts keyed by column name.

    Values follow the cursor's null conversion.
    """
    for record in current_records(cursor):
        yield attrdict(_row_dict(record))


def hydrate_all(cursor: Any, factory: Callable[[Any], T]) -> Iterator[T]:
    """Create an object per remaining row by calling factory with the positioned cursor.
    """
    for record in current_records(cursor):
        yield factory(record)


def to_dataframe(cursor: Any, data_loader: Callable[..., Any] | None = None) -> Any:
    """Drain the cursor into a frame built by a data loader.

    Args:
        cursor: Cursor to read from
        data_loader: Loader taking (rows, columns); defaults to the cursor's
            options.data_loader

    Returns
        Whatever the loader builds, a DataFrame for the pandas loaders
    """
    if data_loader is None:
        data_loader = cursor.options.data_loader
    data = [_row_dict(record) for record in current_records(cursor)]
    logger.debug(f'Loaded {len(data)} rows with {data_loader.__name__}')
    return data_loader(data, cursor.columns)


def _first_present(values: Iterable[Any]) -> Any:
    return next((v for v in values if v is not None and v is not DB_NULL), None)


def arrow_type_for(column: Column, values: Iterable[Any] = ()) -> pa.DataType | None:
    """Arrow type for a column, or None to let Arrow infer it.

    Datetime columns whose first present value carries a tzinfo are left to
    inference so that Arrow keeps the offset.
    """
    tp = unwrap_nullable(column.declared_type)
    if isinstance(tp, type) and issubclass(tp, enum.Enum):
        return None
    if tp is datetime.datetime:
        first = _first_present(values)
        if getattr(first, 'tzinfo', None) is not None:
            return None
    return ARROW_TYPES.get(tp)


def arrow_schema(cursor: Any) -> pa.Schema | None:
    """Arrow schema for a cursor, or None when some column type must be inferred.

    Datetimes are assumed naive since no values are seen.
    """
    types = [arrow_type_for(col) for col in cursor.columns]
    if any(t is None for t in types):
        return None
    return pa.schema([pa.field(col.name, t, nullable=True)
                      for col, t in zip(cursor.columns, types)])


def _arrow_value(value: Any) -> Any:
    if value is None or value is DB_NULL:
        return None
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, bytearray):
        return bytes(value)
    return value


def arrow_array(column: Column, values: Iterable[Any]) -> pa.Array:
    """Build an Arrow array from one column's values.

    Enum members are stored by value, UUIDs as strings and both None and
    DB_NULL as nulls.
    """
    converted = [_arrow_value(v) for v in values]
    return pa.array(converted, type=arrow_type_for(column, converted))


def to_arrow_table(cursor: Any) -> pa.Table:
    """Drain the cursor into a pyarrow Table.

    Column types come from the declared column types where Arrow has a direct
    equivalent; Decimal, enum and offset-aware datetime columns are inferred
    from their values.
    """
    names = Column.get_names(cursor.columns)
    data: list[list[Any]] = [[] for _ in names]
    for record in current_records(cursor):
        for i, values in enumerate(data):
            values.append(record.get_value(i))

    arrays = [arrow_array(col, values) for col, values in zip(cursor.columns, data)]
    logger.debug(f'Built arrow table with {len(names)} columns')
    return pa.Table.from_arrays(arrays, names=names)


def copy_rows(cursor: Any, frame: pd.DataFrame) -> pd.DataFrame:
    """Append the remaining rows to a copy of frame.

    Only cursor columns that also exist in the frame are copied; frame
    columns missing from the cursor are left empty.
    """
    shared = [name for name in Column.get_names(cursor.columns) if name in frame.columns]
    rows = [{name: record[name] for name in shared} for record in current_records(cursor)]
    if not rows:
        return frame.copy()
    appended = pd.DataFrame.from_records(rows, columns=shared).reindex(columns=frame.columns)
    if frame.empty:
        return appended
    return pd.concat([frame, appended], ignore_index=True)
