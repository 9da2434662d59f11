import pytest

from gpkgrel import GeoPackage

from setups import parcels


@pytest.fixture
def gpkg(tmp_path):
    gpkg = GeoPackage(tmp_path / 'test.gpkg')
    gpkg.create_required()

    yield gpkg

    gpkg.dispose()

@pytest.fixture
def parcels_gpkg(gpkg):
    parcels.create_parcels(gpkg)
    return gpkg
