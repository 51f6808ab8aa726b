"""
Schema metadata for cursors.

Builds the conventional schema table (one row per column) that bulk-copy and
table-valued-parameter machinery read before, or instead of, the row data.
Only the column name, ordinal and data type are known for projected objects;
the remaining fields are emitted as unknown rather than guessed.

The builder only inspects column metadata, so it can be called at any point
in a cursor's lifetime, including after it has been closed.
"""
import logging
from typing import Any

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

__all__ = [
    'SCHEMA_COLUMNS',
    'build_schema',
    'get_columns',
]

SCHEMA_COLUMNS: tuple[str, ...] = (
    'ColumnName',
    'ColumnOrdinal',
    'ColumnSize',
    'NumericPrecision',
    'NumericScale',
    'IsUnique',
    'IsKey',
    'BaseServerName',
    'BaseCatalogName',
    'BaseColumnName',
    'BaseSchemaName',
    'BaseTableName',
    'DataType',
    'AllowDBNull',
    'ProviderType',
    'IsAliased',
    'IsExpression',
    'IsIdentity',
    'IsAutoIncrement',
    'IsRowVersion',
    'IsHidden',
    'IsLong',
    'IsReadOnly',
    'ProviderSpecificDataType',
    'DataTypeName',
    'XmlSchemaCollectionDatabase',
    'XmlSchemaCollectionOwningSchema',
    'XmlSchemaCollectionName',
    'UdtAssemblyQualifiedName',
    'NonVersionedProviderType',
    )

UNKNOWN_COLUMN_SIZE = -1


def _schema_record(cursor: Any, i: int) -> dict[str, Any]:
    record = dict.fromkeys(SCHEMA_COLUMNS)
    record['ColumnName'] = cursor.column_name(i)
    record['ColumnOrdinal'] = i
    record['ColumnSize'] = UNKNOWN_COLUMN_SIZE
    record['DataType'] = cursor.column_type(i)
    record['DataTypeName'] = cursor.column_type_name(i)
    return record


def build_schema(cursor: Any) -> pd.DataFrame:
    """Describe a cursor's columns as a schema table.

    Args:
        cursor: Any cursor exposing column_count, column_name, column_type and
            column_type_name

    Returns
        DataFrame with one row per column, in column order, and SCHEMA_COLUMNS
        as its columns. DataType follows the cursor's null conversion.
    """
    records = [_schema_record(cursor, i) for i in range(cursor.column_count)]
    logger.debug(f'Built schema with {len(records)} columns')
    if not records:
        return pd.DataFrame(columns=list(SCHEMA_COLUMNS))

    # typing aliases such as Optional[int] are iterable, so fill by element
    data = {}
    for name in SCHEMA_COLUMNS:
        values = np.empty(len(records), dtype=object)
        for j, record in enumerate(records):
            values[j] = record[name]
        data[name] = values
    df = pd.DataFrame(data, columns=list(SCHEMA_COLUMNS))
    return df.astype({'ColumnOrdinal': 'int64', 'ColumnSize': 'int64'})


def get_columns(cursor: Any) -> tuple[str, ...]:
    """Get the column names of a cursor, read from its schema table.
    """
    return tuple(build_schema(cursor)['ColumnName'])
