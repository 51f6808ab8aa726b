"""
Forward-only row cursors over sequences of Python objects.

An ObjectCursor projects the scalar properties and fields of each element as
columns, for consumers that expect a relational read/get-value protocol:
bulk loaders, table-valued-parameter binding, DataFrame and Arrow population.

The module functions are facades over the cursor and consumer classes:
- open_cursor(rows): ObjectCursor(rows)
- to_dataframe(cursor), to_arrow_table(cursor), iter_rows(cursor)
"""
__version__ = '0.1.0'

from typing import Any

from objcursor.adapters import Column, clear_column_cache, discover_columns
from objcursor.cursor import NullCursor, ObjectCursor
from objcursor.data import copy_rows, current_records, hydrate_all, iter_rows
from objcursor.data import to_arrow_table, to_dataframe
from objcursor.exceptions import CursorError, InvalidArgumentError
from objcursor.exceptions import InvalidStateError, TypeMismatchError
from objcursor.exceptions import UnsupportedMemberError, UsageError
from objcursor.options import CursorOptions
from objcursor.schema import build_schema, get_columns
from objcursor.types import DB_NULL, NullConversion, is_scalar_type


def open_cursor(source: Any, null_conversion: NullConversion | str | None = None,
                **kw: Any) -> ObjectCursor:
    """Open a cursor over an iterable of objects.

    Keyword arguments (element_type, options) are passed to ObjectCursor.
    """
    return ObjectCursor(source, null_conversion, **kw)


__all__ = [
    'open_cursor',
    'ObjectCursor',
    'NullCursor',
    'NullConversion',
    'DB_NULL',
    'CursorOptions',
    'Column',
    'discover_columns',
    'clear_column_cache',
    'is_scalar_type',
    'build_schema',
    'get_columns',
    'current_records',
    'iter_rows',
    'hydrate_all',
    'to_dataframe',
    'to_arrow_table',
    'copy_rows',
    'CursorError',
    'InvalidStateError',
    'TypeMismatchError',
    'InvalidArgumentError',
    'UnsupportedMemberError',
    'UsageError',
]
