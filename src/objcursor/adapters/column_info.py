"""
Column descriptors for projected object members.
"""
import functools
import logging
import operator
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Self

from objcursor.exceptions import UnsupportedMemberError
from objcursor.types import is_nullable_type, type_name, unwrap_nullable

logger = logging.getLogger(__name__)

__all__ = [
    'Column',
    'FieldMember',
    'VALUE_COLUMN_NAME',
]

VALUE_COLUMN_NAME = 'Value'


def _identity(instance: Any) -> Any:
    return instance


@dataclass(frozen=True)
class Column:
    """A projectable member of an element type: name, declared type and accessor.

    Columns are created once per element type by column discovery and shared,
    read-only, by every cursor over that type. The accessor is resolved when
    the column is built and reused for every row.

    Equality ignores the accessor: two discoveries of the same type produce
    equal column lists even though their accessor objects differ.
    """
    name: str
    declared_type: Any
    accessor: Callable[[Any], Any] = field(compare=False, repr=False)
    member_kind: str = 'field'

    @classmethod
    def for_member(cls, name: str, member: Any, declared_type: Any) -> Self:
        """Build a column for a discovered member.

        Args:
            name: Member name, used verbatim as the column name
            member: A property, cached_property or FieldMember
            declared_type: The member's resolved annotation

        Raises
            UnsupportedMemberError: member is neither a property nor a field
        """
        if isinstance(member, property):
            return cls(name, declared_type, member.fget, 'property')
        if isinstance(member, functools.cached_property):
            return cls(name, declared_type, operator.attrgetter(name), 'property')
        if isinstance(member, FieldMember):
            return cls(name, declared_type, operator.attrgetter(name), 'field')
        raise UnsupportedMemberError(
            f'Cannot build a column for member {name!r} of kind {type(member).__name__}')

    @classmethod
    def for_scalar(cls, element_type: type) -> Self:
        """Build the single column used when the elements are scalars themselves.
        """
        return cls(VALUE_COLUMN_NAME, element_type, _identity, 'value')

    def get_value(self, instance: Any) -> Any:
        """Extract this column's raw value from an element."""
        return self.accessor(instance)

    @property
    def is_nullable(self) -> bool:
        return is_nullable_type(self.declared_type)

    @property
    def underlying_type(self) -> Any:
        """Declared type with any nullable wrapping removed."""
        return unwrap_nullable(self.declared_type)

    @property
    def data_type_name(self) -> str:
        return type_name(self.declared_type)

    def __repr__(self) -> str:
        return f'Column(name={self.name!r}, declared_type={self.data_type_name}, member_kind={self.member_kind!r})'

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.
        """
        return {
            'name': self.name,
            'python_type': self.data_type_name,
            'member_kind': self.member_kind,
            'nullable': self.is_nullable,
            }

    @staticmethod
    def get_names(columns: list[Self] | tuple[Self, ...]) -> list[str]:
        """Get column names from a list of Column objects.
        """
        return [col.name for col in columns]

    @staticmethod
    def get_column_by_name(columns: list[Self] | tuple[Self, ...], name: str) -> Self | None:
        """Find the first column with the given name.
        """
        for col in columns:
            if col.name == name:
                return col
        return None

    @staticmethod
    def get_column_types_dict(columns: list[Self] | tuple[Self, ...]) -> dict[str, dict[str, Any]]:
        """Get a dictionary of column metadata indexed by name.
        """
        return {col.name: col.to_dict() for col in columns}

    @staticmethod
    def get_types(columns: list[Self] | tuple[Self, ...]) -> list[Any]:
        """Get declared types for each column as a list.
        """
        return [col.declared_type for col in columns]


@dataclass(frozen=True)
class FieldMember:
    """An annotated public data attribute found during discovery."""
    name: str
    owner: type
