"""
Forward-only row cursor over an iterable of objects.

ObjectCursor presents a sequence of Python objects through the read/get-value
protocol that bulk loaders and table-valued-parameter binders expect. Scalar
properties, fields and enumerations of the element type are projected as
columns; a sequence of plain scalars is projected as a single ``Value``
column.

For explicit control over the projected columns, map the elements to a small
dataclass or NamedTuple before wrapping them. That is also the way to flatten
object graphs.

Usage:
    with ObjectCursor(people, NullConversion.TO_DB_NULL) as cursor:
        while cursor.read():
            name = cursor.get_string(cursor.column_ordinal('Name'))
"""
import datetime
import decimal
import logging
import uuid
from collections.abc import Iterable, Iterator, MutableSequence
from dataclasses import replace
from typing import Any

import dateutil.parser
import numpy as np
import pandas as pd
from more_itertools import peekable
from objcursor.adapters import Column, discover_columns
from objcursor.exceptions import InvalidArgumentError, InvalidStateError
from objcursor.exceptions import TypeMismatchError
from objcursor.options import CursorOptions
from objcursor.schema import build_schema
from objcursor.types import DB_NULL, NullConversion, type_name

logger = logging.getLogger(__name__)

__all__ = [
    'ObjectCursor',
    'NullCursor',
]

_NO_ROW = object()

_INT_RANGES = {
    'byte': (0, 2**8 - 1),
    'int16': (-2**15, 2**15 - 1),
    'int32': (-2**31, 2**31 - 1),
    'int64': (-2**63, 2**63 - 1),
}


class ObjectCursor:
    """Forward-only, single result set cursor over a sequence of objects.

    The cursor starts open and positioned before the first row. Each call to
    read() moves to the next element; when the source is exhausted read()
    returns False and the cursor closes itself. A closed cursor cannot be
    reopened.
    """

    def __init__(self, source: Iterable[Any],
                 null_conversion: NullConversion | str | None = None, *,
                 element_type: type | None = None,
                 options: CursorOptions | None = None) -> None:
        """Initialize a cursor over an iterable.

        Args:
            source: Elements to read, all of one type
            null_conversion: How None values are returned; overrides options
            element_type: Type used for column discovery, inferred from the
                first element when omitted
            options: Cursor options

        Raises
            InvalidArgumentError: source is None
        """
        if source is None:
            raise InvalidArgumentError('source must not be None')

        if options is None:
            options = CursorOptions()
        if null_conversion is not None:
            options = replace(options, null_conversion=null_conversion)
        self.options = options
        self.null_conversion: NullConversion = options.null_conversion

        self._iterator = peekable(source)
        if element_type is None:
            element_type = self._infer_element_type()
        self.element_type = element_type
        self.columns: tuple[Column, ...] = discover_columns(element_type) if element_type else ()

        self._current: Any = _NO_ROW
        self._closed = False

    def _infer_element_type(self) -> type | None:
        first = self._iterator.peek(_NO_ROW)
        if first is _NO_ROW:
            logger.debug('Empty source with no element type, cursor has no columns')
            return None
        return type(first)

    def __repr__(self) -> str:
        kind = type_name(self.element_type) if self.element_type else None
        return (f'ObjectCursor(element_type={kind}, columns={Column.get_names(self.columns)}, '
                f'closed={self._closed})')

    def __enter__(self) -> 'ObjectCursor':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __iter__(self) -> Iterator['ObjectCursor']:
        """Yield the cursor itself once per row."""
        while self.read():
            yield self

    def __getitem__(self, key: int | str) -> Any:
        """Value lookup by ordinal or column name."""
        if isinstance(key, str):
            ordinal = self.column_ordinal(key)
            if ordinal < 0:
                raise InvalidArgumentError(f'No column named {key!r}')
            return self.get_value(ordinal)
        return self.get_value(key)

    # Cursor state

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def depth(self) -> int:
        """Always 1, rows are never nested."""
        return 1

    @property
    def records_affected(self) -> int:
        """Always -1, reading objects affects no records."""
        return -1

    def next_result(self) -> bool:
        """Always False, the cursor holds a single result set."""
        return False

    def read(self) -> bool:
        """Advance to the next row.

        Returns
            True if positioned on a new row; False if the source is exhausted,
            in which case the cursor is now closed

        Raises
            InvalidStateError: the cursor is closed
        """
        if self._closed:
            raise InvalidStateError('Cannot call read() on a closed cursor')

        try:
            self._current = next(self._iterator)
        except StopIteration:
            self._current = _NO_ROW
            self.close()
            logger.debug('Source exhausted, cursor closed')
            return False
        return True

    def close(self) -> None:
        """Close the cursor. Calling close() more than once is harmless."""
        self._closed = True

    # Column metadata

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def description(self) -> list[tuple]:
        """DB-API style column descriptions: name, type and nullability."""
        return [(col.name, self.column_type(i), None, None, None, None, col.is_nullable)
                for i, col in enumerate(self.columns)]

    def _column(self, i: int) -> Column:
        if not isinstance(i, int) or isinstance(i, bool) or not 0 <= i < len(self.columns):
            raise InvalidArgumentError(
                f'Column ordinal {i!r} is out of range for {len(self.columns)} columns')
        return self.columns[i]

    def column_name(self, i: int) -> str:
        return self._column(i).name

    def column_type(self, i: int) -> Any:
        """Type of the values returned by get_value(i).

        With NullConversion.TO_DB_NULL a nullable column reports its
        underlying type, since None is never returned.
        """
        col = self._column(i)
        if self.null_conversion is NullConversion.TO_DB_NULL:
            return col.underlying_type
        return col.declared_type

    def column_type_name(self, i: int) -> str:
        return self._column(i).data_type_name

    def column_ordinal(self, name: str) -> int:
        """Ordinal of the first column with exactly this name, or -1."""
        for i, col in enumerate(self.columns):
            if col.name == name:
                return i
        return -1

    def build_schema(self) -> pd.DataFrame:
        """Describe the columns as a schema table, see objcursor.schema."""
        return build_schema(self)

    get_schema_table = build_schema

    # Value access

    def _raw_value(self, i: int) -> Any:
        if self._closed:
            raise InvalidStateError('Cannot read values from a closed cursor')
        if self._current is _NO_ROW:
            raise InvalidStateError(
                'No current row; call read() first, or the source has been exhausted')
        return self._column(i).get_value(self._current)

    def get_value(self, i: int) -> Any:
        """Value of column i, with None mapped to DB_NULL under TO_DB_NULL."""
        value = self._raw_value(i)
        if value is None and self.null_conversion is NullConversion.TO_DB_NULL:
            return DB_NULL
        return value

    def is_null(self, i: int) -> bool:
        """Whether column i holds None, whatever the null conversion."""
        return self._raw_value(i) is None

    def get_values(self, buffer: MutableSequence[Any]) -> int:
        """Copy every column value of the current row into buffer.

        Returns
            Number of values copied, always column_count

        Raises
            InvalidArgumentError: buffer is None or has fewer than column_count slots
        """
        if buffer is None:
            raise InvalidArgumentError('buffer must not be None')
        count = len(self.columns)
        if len(buffer) < count:
            raise InvalidArgumentError(
                f'The buffer has only {len(buffer)} slots, which is not enough '
                f'to hold the {count} values in this cursor')
        for i in range(count):
            buffer[i] = self.get_value(i)
        return count

    def _mismatch(self, i: int, value: Any, wanted: str) -> TypeMismatchError:
        name = self.columns[i].name
        if value is None:
            return TypeMismatchError(f'Column {name!r} (ordinal {i}) is null, cannot read as {wanted}')
        return TypeMismatchError(
            f'Column {name!r} (ordinal {i}) holds {type(value).__name__}, cannot read as {wanted}')

    def _get_integer(self, i: int, wanted: str) -> int:
        value = self._raw_value(i)
        if isinstance(value, bool | np.bool_) or not isinstance(value, int | np.integer):
            raise self._mismatch(i, value, wanted)
        low, high = _INT_RANGES[wanted]
        if not low <= value <= high:
            raise TypeMismatchError(
                f'Column {self.columns[i].name!r} (ordinal {i}) value {value} does not fit in {wanted}')
        return int(value)

    def get_boolean(self, i: int) -> bool:
        value = self._raw_value(i)
        if not isinstance(value, bool | np.bool_):
            raise self._mismatch(i, value, 'bool')
        return bool(value)

    def get_byte(self, i: int) -> int:
        return self._get_integer(i, 'byte')

    def get_int16(self, i: int) -> int:
        return self._get_integer(i, 'int16')

    def get_int32(self, i: int) -> int:
        return self._get_integer(i, 'int32')

    def get_int64(self, i: int) -> int:
        return self._get_integer(i, 'int64')

    def get_double(self, i: int) -> float:
        value = self._raw_value(i)
        if isinstance(value, bool | np.bool_) or not isinstance(value, float | int | np.number):
            raise self._mismatch(i, value, 'float')
        return float(value)

    def get_float(self, i: int) -> float:
        value = self.get_double(i)
        return float(np.float32(value))

    def get_decimal(self, i: int) -> decimal.Decimal:
        value = self._raw_value(i)
        if isinstance(value, decimal.Decimal):
            return value
        if isinstance(value, int | np.integer) and not isinstance(value, bool | np.bool_):
            return decimal.Decimal(int(value))
        raise self._mismatch(i, value, 'Decimal')

    def get_string(self, i: int) -> str:
        value = self._raw_value(i)
        if not isinstance(value, str):
            raise self._mismatch(i, value, 'str')
        return value

    def get_char(self, i: int) -> str:
        value = self._raw_value(i)
        if not isinstance(value, str) or len(value) != 1:
            raise self._mismatch(i, value, 'char')
        return value

    def get_datetime(self, i: int) -> datetime.datetime:
        """Datetime value of column i.

        Dates are widened to midnight, ISO 8601 strings are parsed.
        """
        value = self._raw_value(i)
        if isinstance(value, datetime.datetime):
            return value
        if isinstance(value, datetime.date):
            return datetime.datetime.combine(value, datetime.time())
        if isinstance(value, np.datetime64) and not np.isnat(value):
            return pd.Timestamp(value).to_pydatetime()
        if isinstance(value, str):
            try:
                return dateutil.parser.isoparse(value)
            except ValueError as e:
                raise TypeMismatchError(
                    f'Column {self.columns[i].name!r} (ordinal {i}) value {value!r} '
                    f'is not an ISO 8601 datetime: {e}') from e
        raise self._mismatch(i, value, 'datetime')

    def get_date(self, i: int) -> datetime.date:
        value = self._raw_value(i)
        if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
            return value
        return self.get_datetime(i).date()

    def get_timedelta(self, i: int) -> datetime.timedelta:
        value = self._raw_value(i)
        if isinstance(value, datetime.timedelta):
            return value
        if isinstance(value, np.timedelta64) and not np.isnat(value):
            return pd.Timedelta(value).to_pytimedelta()
        raise self._mismatch(i, value, 'timedelta')

    def get_guid(self, i: int) -> uuid.UUID:
        value = self._raw_value(i)
        if isinstance(value, uuid.UUID):
            return value
        if isinstance(value, str):
            try:
                return uuid.UUID(value)
            except ValueError as e:
                raise TypeMismatchError(
                    f'Column {self.columns[i].name!r} (ordinal {i}) value {value!r} '
                    f'is not a UUID') from e
        raise self._mismatch(i, value, 'UUID')

    def _copy_range(self, value: Any, field_offset: int, buffer: MutableSequence[Any] | None,
                    buffer_offset: int, length: int) -> int:
        if buffer is None:
            return len(value)
        if field_offset < 0 or buffer_offset < 0 or length < 0:
            raise InvalidArgumentError('Offsets and length must not be negative')
        count = max(0, min(length, len(value) - field_offset))
        if buffer_offset + count > len(buffer):
            raise InvalidArgumentError(
                f'The buffer has room for {max(0, len(buffer) - buffer_offset)} units '
                f'at offset {buffer_offset}, {count} are needed')
        buffer[buffer_offset:buffer_offset + count] = value[field_offset:field_offset + count]
        return count

    def get_bytes(self, i: int, field_offset: int, buffer: bytearray | memoryview | None,
                  buffer_offset: int, length: int) -> int:
        """Copy up to length bytes of a binary column into buffer.

        Reading starts at field_offset within the value and writing at
        buffer_offset within the buffer. When buffer is None the total length
        of the value is returned instead.

        Returns
            Number of bytes copied
        """
        value = self._raw_value(i)
        if not isinstance(value, bytes | bytearray | memoryview):
            raise self._mismatch(i, value, 'bytes')
        return self._copy_range(value, field_offset, buffer, buffer_offset, length)

    def get_chars(self, i: int, field_offset: int, buffer: MutableSequence[str] | None,
                  buffer_offset: int, length: int) -> int:
        """Copy up to length characters of a text column into buffer.

        The buffer is a mutable sequence of one-character strings, such as a
        list. Otherwise as get_bytes().
        """
        value = self._raw_value(i)
        if not isinstance(value, str):
            raise self._mismatch(i, value, 'str')
        return self._copy_range(value, field_offset, buffer, buffer_offset, length)


class NullCursor:
    """A cursor that never has any rows.

    read() always returns False and is_closed is always True. Value access
    raises InvalidStateError.
    """

    null_conversion = NullConversion.NONE
    options = CursorOptions()
    columns: tuple[Column, ...] = ()

    def __enter__(self) -> 'NullCursor':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        pass

    def __iter__(self) -> Iterator['NullCursor']:
        return iter(())

    @property
    def is_closed(self) -> bool:
        return True

    @property
    def depth(self) -> int:
        return 0

    @property
    def records_affected(self) -> int:
        return -1

    @property
    def column_count(self) -> int:
        return 0

    def next_result(self) -> bool:
        return False

    def read(self) -> bool:
        return False

    def close(self) -> None:
        pass

    def column_ordinal(self, name: str) -> int:
        return -1

    def column_name(self, i: int) -> str:
        raise InvalidArgumentError(f'Column ordinal {i!r} is out of range for 0 columns')

    column_type = column_type_name = column_name

    def build_schema(self) -> pd.DataFrame:
        return build_schema(self)

    def get_value(self, i: int) -> Any:
        raise InvalidStateError('NullCursor has no rows')

    get_values = is_null = get_value
