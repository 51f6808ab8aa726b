"""
Tests for column discovery and the per-type column cache.
"""
import datetime
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

from objcursor.adapters import discover_columns, scan_columns
from objcursor.adapters import clear_column_cache
from objcursor.cache import get_column_cache
from tests.fixtures.models import Account, Colour, Derived, Mixed, Person
from tests.fixtures.models import Point, Reading, Unresolvable, make_account


def _names(columns):
    return [col.name for col in columns]


def test_scalar_element_type_gives_value_column():
    """A sequence of scalars has exactly one Value column"""
    for tp in (int, str, datetime.date, Colour):
        columns = discover_columns(tp)
        assert len(columns) == 1
        assert columns[0].name == 'Value'
        assert columns[0].declared_type is tp
        assert columns[0].get_value('x') == 'x'


def test_dataclass_with_two_fields():
    """Fields are discovered in declaration order"""
    columns = discover_columns(Person)
    assert _names(columns) == ['Age', 'Name']
    assert [col.declared_type for col in columns] == [int, str]


def test_properties_come_before_fields():
    """Scalar properties first, then scalar fields; the rest is skipped"""
    columns = discover_columns(Account)
    assert _names(columns) == [
        'display_name', 'tag_count',
        'id', 'owner', 'balance', 'opened', 'closed_on', 'rating',
        'active', 'colour', 'token', 'avatar',
    ]


def test_non_scalar_members_are_skipped():
    """Containers, nested objects, ClassVars, private and untyped members never appear"""
    names = _names(discover_columns(Account))
    for skipped in ('tags', 'owner_ref', 'related', '_secret', '_hidden', 'kind', 'untyped'):
        assert skipped not in names


def test_accessors_read_current_values():
    """Accessors return the member values of the instance they are given"""
    account = make_account()
    values = {col.name: col.get_value(account) for col in discover_columns(Account)}
    assert values['display_name'] == 'Leela Turanga'
    assert values['tag_count'] == 2
    assert values['closed_on'] is None
    assert values['colour'] is Colour.GREEN


def test_named_tuple_fields():
    """NamedTuple fields are discovered as fields"""
    columns = discover_columns(Point)
    assert _names(columns) == ['x', 'y', 'label']
    assert columns[2].get_value(Point(1, 2, 'a')) == 'a'


def test_plain_class_with_cached_property():
    """Annotated attributes and cached properties of a plain class"""
    columns = discover_columns(Reading)
    assert _names(columns) == ['rounded', 'sensor', 'value']
    assert columns[0].get_value(Reading('t1', 2.6)) == 3


def test_inherited_members_base_first():
    """Base class members precede subclass members"""
    assert _names(discover_columns(Derived)) == [
        'base_label', 'derived_label', 'base_id', 'extra',
    ]


def test_multi_type_union_is_skipped():
    """A union of two concrete types is not a scalar column"""
    assert _names(discover_columns(Mixed)) == ['blob']


def test_unresolvable_annotations_are_skipped(caplog):
    """Broken forward references do not prevent discovery of other members"""
    with caplog.at_level(logging.WARNING):
        columns = discover_columns(Unresolvable)
    assert _names(columns) == ['known']
    assert 'Could not resolve annotations' in caplog.text


def test_type_without_members_has_no_columns():
    """A type with no scalar members projects nothing"""
    assert discover_columns(dict) == ()


def test_unannotated_attributes_are_reported(caplog):
    """Attributes only assigned in __init__ give no columns, and say so"""
    class Legacy:
        def __init__(self):
            self.x = 1

    with caplog.at_level(logging.DEBUG, logger='objcursor.adapters.discovery'):
        assert discover_columns(Legacy) == ()
    assert 'Legacy has no scalar properties or annotated fields' in caplog.text


def test_discovery_is_cached():
    """The second lookup is served from the cache"""
    first = discover_columns(Person)
    with patch('objcursor.adapters.discovery.scan_columns') as scan:
        second = discover_columns(Person)
    scan.assert_not_called()
    assert second is first
    assert get_column_cache()[Person] is first


def test_rediscovery_is_structurally_equal():
    """Discovering again after clearing yields equal columns"""
    first = discover_columns(Account)
    clear_column_cache()
    second = discover_columns(Account)
    assert second is not first
    assert second == first
    assert scan_columns(Account) == first


def test_concurrent_first_use():
    """Concurrent discovery of a new type always yields complete, equal column lists"""
    barrier = threading.Barrier(8)

    def discover():
        barrier.wait()
        return discover_columns(Account)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: discover(), range(8)))

    expected = scan_columns(Account)
    for columns in results:
        assert columns == expected
    assert get_column_cache()[Account] == expected


if __name__ == '__main__':
    __import__('pytest').main([__file__])
