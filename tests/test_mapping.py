import pytest

from gpkgrel import MappingTable, MappingRow
from gpkgrel.accessors import MappingAccessor


@pytest.fixture
def mapping(gpkg):
    accessor = MappingAccessor(gpkg, 'parcels_photos')

    with gpkg.begin() as connection:
        gpkg.create_table(connection, MappingTable.create('parcels_photos'))

        for base_id, related_id in [(7, 42), (7, 43), (8, 42), (7, 42)]:
            accessor.insert_mapping(connection, base_id, related_id)

    return accessor

def test_query_by_ids(gpkg, mapping):
    with gpkg.connect() as connection:
        assert list(mapping.query_by_base_id(connection, 7)) == [
            MappingRow(7, 42), MappingRow(7, 43), MappingRow(7, 42),
        ]
        assert [r.base_id for r in mapping.query_by_related_id(connection, 42)] == [7, 8, 7]
        assert len(list(mapping.query_by_ids(connection, 7, 42))) == 2
        assert list(mapping.query_by_base_id(connection, 99)) == []

def test_duplicates_kept(gpkg, mapping):
    with gpkg.connect() as connection:
        assert mapping.count_by_ids(connection, 7, 42) == 2
        assert mapping.count_by_base_id(connection, 7) == 3
        assert mapping.count_by_related_id(connection, 42) == 3

def test_unique_ids(gpkg, mapping):
    with gpkg.connect() as connection:
        assert mapping.get_unique_base_ids(connection) == [7, 8]
        assert mapping.get_unique_related_ids(connection) == [42, 43]

def test_early_exit_releases_cursor(gpkg, mapping):
    with gpkg.connect() as connection:
        rows = mapping.query_by_base_id(connection, 7)
        assert next(rows) == MappingRow(7, 42)
        rows.close()

        assert mapping.count_by_base_id(connection, 7) == 3

def test_deletes(gpkg, mapping):
    with gpkg.begin() as connection:
        assert mapping.delete_by_ids(connection, 7, 42) == 2
        assert mapping.delete_by_related_id(connection, 42) == 1
        assert mapping.delete_by_base_id(connection, 7) == 1
        assert mapping.count(connection, mapping.table) == 0
