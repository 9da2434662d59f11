import pytest
import sqlalchemy as sa

from gpkgrel import GeoPackage, Settings, ReadOnlyViolation
from gpkgrel.schema import CONTENTS_TABLE_NAME, EXTENSIONS_TABLE_NAME, RELATIONS_TABLE_NAME

from setups import parcels


def test_create_required(gpkg):
    with gpkg.connect() as connection:
        assert gpkg.table_exists(connection, CONTENTS_TABLE_NAME)
        assert gpkg.table_exists(connection, EXTENSIONS_TABLE_NAME)
        assert not gpkg.table_exists(connection, RELATIONS_TABLE_NAME)

def test_create_catalog_table_idempotent(gpkg):
    with gpkg.begin() as connection:
        assert gpkg.create_catalog_table(connection, RELATIONS_TABLE_NAME)
        assert not gpkg.create_catalog_table(connection, RELATIONS_TABLE_NAME)

def test_table_or_view_exists(parcels_gpkg):
    with parcels_gpkg.begin() as connection:
        connection.exec_driver_sql('CREATE VIEW parcel_names AS SELECT id, name FROM parcels')

    with parcels_gpkg.connect() as connection:
        assert parcels_gpkg.table_or_view_exists(connection, 'parcels')
        assert parcels_gpkg.table_or_view_exists(connection, 'parcel_names')
        assert not parcels_gpkg.table_exists(connection, 'parcel_names')
        assert not parcels_gpkg.table_or_view_exists(connection, 'missing')

def test_primary_key_column_name(parcels_gpkg):
    with parcels_gpkg.begin() as connection:
        connection.exec_driver_sql('CREATE TABLE loose (value TEXT)')

    with parcels_gpkg.connect() as connection:
        assert parcels_gpkg.primary_key_column_name(connection, 'parcels') == 'id'
        assert parcels_gpkg.primary_key_column_name(connection, 'loose') is None

def test_content_rows(parcels_gpkg):
    with parcels_gpkg.connect() as connection:
        row = parcels_gpkg.read_content_row(connection, 'parcels')

        assert row['data_type'] == 'features'
        assert row['identifier'] == 'parcels'
        assert row['last_change'].endswith('Z')

        assert parcels_gpkg.table_data_type(connection, 'parcels') == 'features'
        assert parcels_gpkg.table_data_type_equals(connection, 'parcels', 'features')
        assert not parcels_gpkg.table_data_type_equals(connection, 'parcels', 'media')
        assert parcels_gpkg.table_data_type(connection, 'missing') is None

def test_open_cursor(parcels_gpkg):
    with parcels_gpkg.connect() as connection:
        with parcels_gpkg.open_cursor(
            connection,
            'SELECT id FROM parcels WHERE id > :min_id ORDER BY id',
            {'min_id': 0},
        ) as res:
            assert [row.id for row in res] == [7, 8]

def test_failed_scope_rolls_back(gpkg):
    with pytest.raises(RuntimeError):
        with gpkg.begin() as connection:
            gpkg.create_table(connection, parcels.photos_table())
            raise RuntimeError('abort')

    with gpkg.connect() as connection:
        assert not gpkg.table_exists(connection, 'photos')

def test_read_only(tmp_path):
    path = tmp_path / 'ro.gpkg'

    writable = GeoPackage(path)
    writable.create_required()
    writable.dispose()

    ro = GeoPackage(path, read_only=True)
    assert not ro.writable

    with pytest.raises(ReadOnlyViolation):
        ro.verify_writable()

    with pytest.raises(ReadOnlyViolation):
        with ro.begin():
            pass

    with ro.connect() as connection:
        assert ro.table_exists(connection, CONTENTS_TABLE_NAME)

        with pytest.raises(ReadOnlyViolation):
            ro.create_table(connection, parcels.photos_table())

    ro.dispose()

def test_settings_echo(tmp_path):
    gpkg = GeoPackage(tmp_path / 'echo.gpkg', settings=Settings(echo=True))
    assert gpkg.engine.echo
    gpkg.dispose()
