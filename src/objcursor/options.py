from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pandas as pd
import pyarrow as pa
from objcursor.adapters.column_info import Column
from objcursor.data import arrow_array
from objcursor.types import NullConversion

from libb import ConfigOptions

__all__ = [
    'CursorOptions',
    'pandas_numpy_data_loader',
    'pandas_pyarrow_data_loader',
    'iterdict_data_loader',
]


def iterdict_data_loader(data, columns, **kwargs) -> list[dict]:
    """Minimal data loader.

    Accepts additional keyword arguments for compatibility with other data
    loaders, but doesn't use them.
    """
    if not data:
        return []
    return list(data)


def _empty_dataframe(columns) -> pd.DataFrame:
    """Create empty DataFrame with column metadata."""
    df = pd.DataFrame(columns=Column.get_names(columns))
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def pandas_numpy_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    Includes type information in the DataFrame.attrs attribute.
    """
    if not data:
        return _empty_dataframe(columns)

    df = pd.DataFrame.from_records(list(data), columns=Column.get_names(columns))
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


def pandas_pyarrow_data_loader(data, columns, **kwargs) -> pd.DataFrame:
    """PyArrow-based pandas DataFrame loader.

    Always returns a DataFrame, never None, with columns preserved for empty results.
    Values are converted as for Arrow tables: database nulls become Arrow
    nulls, enum members their values and UUIDs strings.
    """
    if not data:
        return _empty_dataframe(columns)

    arrays = [arrow_array(col, [row[col.name] for row in data]) for col in columns]
    table = pa.Table.from_arrays(arrays, names=Column.get_names(columns))
    df = table.to_pandas(types_mapper=pd.ArrowDtype)
    df.attrs['column_types'] = Column.get_column_types_dict(columns)
    return df


@dataclass
class CursorOptions(ConfigOptions):
    """Options

    supported null conversions: `none`, `to_db_null`

    - null_conversion: How None column values are presented (default: none)
    - data_loader: Builds a frame from drained rows (default: pandas_numpy_data_loader)
    """
    null_conversion: NullConversion | str = NullConversion.NONE
    data_loader: Callable[..., Any] | None = None

    def __post_init__(self):
        if not isinstance(self.null_conversion, NullConversion):
            try:
                self.null_conversion = NullConversion(str(self.null_conversion).lower())
            except ValueError:
                available = [c.value for c in NullConversion]
                raise ValueError(f'null_conversion must be one of: {available}') from None
        if self.data_loader is None:
            self.data_loader = pandas_numpy_data_loader
