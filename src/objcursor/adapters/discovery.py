"""
Column discovery for element types.

Scans an element type once and produces the ordered columns a cursor
projects: a single ``Value`` column for scalar elements, otherwise every
public scalar property followed by every public scalar field. Results are
kept in the process-wide column cache, keyed by element type.

The cache is not locked. Two threads discovering the same new
type at once both compute the (identical) column tuple and each publishes it
with a single assignment; whichever writes last wins.
"""
import functools
import inspect
import logging
import typing
from typing import Any

from objcursor.adapters.column_info import Column, FieldMember
from objcursor.cache import get_column_cache
from objcursor.types import is_scalar_type, type_name

logger = logging.getLogger(__name__)

__all__ = [
    'discover_columns',
    'clear_column_cache',
    'scan_columns',
]

_PROPERTY_TYPES = (property, functools.cached_property)


def _resolve_hints(obj: Any) -> dict[str, Any]:
    """Resolve annotations of a class or function, tolerating bad forward refs.

    Unresolvable annotations stay as written (usually strings), which the
    scalar classifier rejects.
    """
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError, AttributeError) as e:
        logger.warning(f'Could not resolve annotations of {obj!r}: {e}')
    hints: dict[str, Any] = {}
    if isinstance(obj, type):
        for klass in reversed(obj.__mro__):
            hints.update(getattr(klass, '__annotations__', {}))
    else:
        hints.update(getattr(obj, '__annotations__', {}))
    return hints


def _property_return_type(member: Any) -> Any:
    getter = member.func if isinstance(member, functools.cached_property) else member.fget
    if getter is None:
        return None
    return _resolve_hints(getter).get('return')


def _public_properties(element_type: type) -> dict[str, Any]:
    """Public readable properties, base classes first, in declaration order."""
    names: list[str] = []
    for klass in reversed(element_type.__mro__):
        for name, attr in vars(klass).items():
            if not name.startswith('_') and isinstance(attr, _PROPERTY_TYPES) and name not in names:
                names.append(name)

    found = {}
    for name in names:
        # A subclass may have replaced the property with something else.
        attr = inspect.getattr_static(element_type, name, None)
        if isinstance(attr, property) and attr.fget is None:
            continue
        if isinstance(attr, _PROPERTY_TYPES):
            found[name] = attr
    return found


def _public_fields(element_type: type, properties: dict[str, Any]) -> dict[str, Any]:
    """Public annotated data attributes with their resolved annotations."""
    found = {}
    for name, annotation in _resolve_hints(element_type).items():
        if name.startswith('_') or name in properties:
            continue
        if typing.get_origin(annotation) is typing.ClassVar or annotation is typing.ClassVar:
            continue
        found[name] = annotation
    return found


def scan_columns(element_type: type) -> tuple[Column, ...]:
    """Build the columns for an element type without consulting the cache.
    """
    if is_scalar_type(element_type):
        return (Column.for_scalar(element_type),)

    members: list[tuple[str, Any, Any]] = []

    properties = _public_properties(element_type)
    for name, prop in properties.items():
        members.append((name, prop, _property_return_type(prop)))

    for name, annotation in _public_fields(element_type, properties).items():
        members.append((name, FieldMember(name, element_type), annotation))

    columns = []
    for name, member, declared_type in members:
        if not is_scalar_type(declared_type):
            logger.debug(f'Skipping non-scalar member {type_name(element_type)}.{name}: {declared_type!r}')
            continue
        columns.append(Column.for_member(name, member, declared_type))

    if not columns:
        logger.debug(f'{type_name(element_type)} has no scalar properties or annotated fields, '
                     f'attributes assigned only in __init__ are not discovered')
    return tuple(columns)


def discover_columns(element_type: type) -> tuple[Column, ...]:
    """Get the projected columns for an element type.

    Discovery runs once per element type and the result is shared by every
    cursor over that type. The returned tuple must be treated as immutable.

    Args:
        element_type: Type of the elements the cursor will read

    Returns
        Columns in discovery order
    """
    cache = get_column_cache()
    columns = cache.get(element_type)
    if columns is not None:
        logger.debug(f'Cache hit for columns of {type_name(element_type)}')
        return columns

    logger.debug(f'Cache miss for columns of {type_name(element_type)}')
    columns = scan_columns(element_type)
    cache[element_type] = columns
    logger.debug(f'Discovered {len(columns)} columns for {type_name(element_type)}: '
                 f'{Column.get_names(columns)}')
    return columns


def clear_column_cache() -> None:
    """Forget all discovered columns."""
    get_column_cache().clear()
