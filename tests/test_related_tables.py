import pytest
import sqlalchemy as sa

from gpkgrel import (
    GeoPackage,
    Settings,
    MappingTable,
    RelationType,
    CustomRelation,
    ExtendedRelation,
    RelationshipOptions,
    MappingRow,
    TableNotFound,
    NoPrimaryKey,
    RelationTypeMismatch,
    DuplicateMapping,
    UnresolvableRelationType,
    ReadOnlyViolation,
    StoreFailure,
)
from gpkgrel.resolvers import MediaRow
from gpkgrel.schema import RELATIONS_TABLE_NAME

from setups import parcels


def add_parcels_photos(gpkg, photos=None):
    return gpkg.manage.add_media_relationship(
        'parcels',
        photos or parcels.photos_table(),
        'parcels_photos',
    )

def table_exists(gpkg, name):
    with gpkg.connect() as connection:
        return gpkg.table_or_view_exists(connection, name)

def extension_tables(gpkg):
    with gpkg.connect() as connection:
        return {
            (r.extension_name, r.table_name, r.column_name)
            for r in gpkg.manage.extensions.get_extensions(connection, 'related_tables')
        }


def test_end_to_end_media_relationship(parcels_gpkg):
    gpkg = parcels_gpkg
    relation = add_parcels_photos(gpkg)

    assert relation.id is not None
    assert relation.base_table_name == 'parcels'
    assert relation.related_table_name == 'photos'
    assert relation.relation_name == 'media'
    assert relation.mapping_table_name == 'parcels_photos'
    assert relation.base_primary_column == 'id'
    assert relation.related_primary_column == 'id'

    with gpkg.connect() as connection:
        columns = sa.inspect(connection).get_columns('parcels_photos')
        assert [c['name'] for c in columns] == ['base_id', 'related_id']
        assert gpkg.table_data_type(connection, 'photos') == 'media'

    assert extension_tables(gpkg) == {
        ('related_tables', RELATIONS_TABLE_NAME, None),
        ('related_tables', 'parcels_photos', None),
    }
    assert gpkg.manage.has()
    assert gpkg.manage.has_extension_for_mapping_table('parcels_photos')
    assert not gpkg.manage.has_extension_for_mapping_table('other_mapping')

    gpkg.manage.insert_mapping('parcels_photos', 7, 42)
    assert gpkg.manage.get_mappings_for_base('parcels_photos', 7) == [42]
    assert gpkg.manage.get_mappings_for_related(relation, 42) == [7]
    assert gpkg.manage.has_mapping('parcels_photos', 7, 42)
    assert not gpkg.manage.has_mapping('parcels_photos', 8, 42)

def test_add_relationship_idempotent(parcels_gpkg):
    gpkg = parcels_gpkg

    first  = add_parcels_photos(gpkg)
    second = add_parcels_photos(gpkg)
    third  = gpkg.manage.add_relationship(
        base_table_name='parcels',
        related_table='photos',
        mapping_table='parcels_photos',
        relation='media',
    )

    assert first.id == second.id == third.id
    assert gpkg.manage.get_relationships() == [first]

def test_relation_inferred_from_definition(parcels_gpkg):
    relation = parcels_gpkg.manage.add_relationship(
        RelationshipOptions(
            base_table_name='parcels',
            related_table=parcels.grades_table(),
            mapping_table=MappingTable.create('parcels_grades'),
        )
    )

    assert relation.relation_type is RelationType.SIMPLE_ATTRIBUTES

def test_options_without_relation(parcels_gpkg):
    with pytest.raises(ValueError):
        parcels_gpkg.manage.add_relationship(
            base_table_name='parcels',
            related_table='photos',
            mapping_table='parcels_photos',
        )

def test_type_mismatch(parcels_gpkg):
    gpkg = parcels_gpkg

    with gpkg.begin() as connection:
        assert gpkg.manage.create_related_table(connection, parcels.photos_table())

    with pytest.raises(RelationTypeMismatch) as excinfo:
        gpkg.manage.add_relationship(
            base_table_name='parcels',
            related_table='photos',
            mapping_table='m1',
            relation='tiles',
        )

    assert excinfo.value.context['actual'] == 'media'
    assert not table_exists(gpkg, 'm1')
    assert gpkg.manage.get_relationships() == []

def test_type_mismatch_rolls_back_new_table(parcels_gpkg):
    with pytest.raises(RelationTypeMismatch):
        parcels_gpkg.manage.add_tiles_relationship(
            'parcels', parcels.photos_table(), 'parcels_photos'
        )

    assert not table_exists(parcels_gpkg, 'photos')

    with parcels_gpkg.connect() as connection:
        assert parcels_gpkg.read_content_row(connection, 'photos') is None

def test_custom_relation_skips_type_check(parcels_gpkg):
    gpkg = parcels_gpkg

    relation = gpkg.manage.add_relationship(
        base_table_name='parcels',
        related_table=parcels.notes_table(),
        mapping_table='parcels_notes',
        relation='links',
        relation_author='acme',
    )

    assert relation.relation_name == 'x-acme_links'
    assert relation.relation_type == CustomRelation('x-acme_links')
    assert gpkg.manage.has_relations(relation=CustomRelation.build('acme', 'links'))

def test_table_not_found(parcels_gpkg):
    with pytest.raises(TableNotFound) as excinfo:
        parcels_gpkg.manage.add_attributes_relationship('missing', 'parcels', 'm1')

    assert excinfo.value.context['table'] == 'missing'

    with pytest.raises(TableNotFound):
        parcels_gpkg.manage.add_media_relationship('parcels', 'photos', 'm1')

def test_no_primary_key(parcels_gpkg):
    gpkg = parcels_gpkg

    with gpkg.begin() as connection:
        connection.exec_driver_sql('CREATE VIEW parcel_names AS SELECT id, name FROM parcels')

    with pytest.raises(NoPrimaryKey) as excinfo:
        gpkg.manage.add_relationship(
            base_table_name='parcel_names',
            related_table='parcels',
            mapping_table='names_parcels',
            relation=CustomRelation('x-acme_named'),
        )

    assert excinfo.value.context['table'] == 'parcel_names'
    assert not table_exists(gpkg, 'names_parcels')

def test_duplicate_mapping_across_relationships(parcels_gpkg):
    gpkg = parcels_gpkg
    add_parcels_photos(gpkg)

    with pytest.raises(DuplicateMapping):
        gpkg.manage.add_attributes_relationship(
            'parcels', parcels.owners_table(), 'parcels_photos'
        )

    # the failed call created nothing
    assert not table_exists(gpkg, 'owners')
    assert len(gpkg.manage.get_relationships()) == 1

def test_compensating_drop_on_content_failure(parcels_gpkg):
    gpkg = parcels_gpkg

    # content identifiers are unique; registering "photos" collides with this row
    with gpkg.begin() as connection:
        gpkg.create_content_row(
            connection,
            {'table_name': 'legacy', 'data_type': 'attributes', 'identifier': 'photos'},
        )

    with pytest.raises(StoreFailure) as excinfo:
        add_parcels_photos(gpkg)

    assert isinstance(excinfo.value.__cause__, sa.exc.IntegrityError)
    assert excinfo.value.operation == 'create_related_table'
    assert not table_exists(gpkg, 'photos')
    assert not table_exists(gpkg, 'parcels_photos')
    assert gpkg.manage.get_relationships() == []

def test_remove_relationship(parcels_gpkg):
    gpkg = parcels_gpkg
    add_parcels_photos(gpkg)

    assert gpkg.manage.remove_relationship('parcels', 'photos', RelationType.MEDIA) == 1

    assert not table_exists(gpkg, 'parcels_photos')
    assert gpkg.manage.get_relations(mapping_table='parcels_photos') == []
    # the related table itself stays
    assert table_exists(gpkg, 'photos')

def test_remove_missing_is_noop(gpkg):
    # no catalog table at all
    assert gpkg.manage.remove_relationship('parcels', 'photos', 'media') == 0
    assert gpkg.manage.remove_relationships('parcels') == 0
    assert gpkg.manage.remove_relationships_with_mapping_table('m1') == 0

def test_remove_unmatched_is_noop(parcels_gpkg):
    gpkg = parcels_gpkg
    add_parcels_photos(gpkg)

    assert gpkg.manage.remove_relationship('parcels', 'photos', 'tiles') == 0
    assert gpkg.manage.remove_relationships_with_mapping_table('m1') == 0
    assert len(gpkg.manage.get_relationships()) == 1


def test_remove_relationships_with_mapping_table(parcels_gpkg):
    gpkg = parcels_gpkg
    add_parcels_photos(gpkg)
    notes = gpkg.manage.add_attributes_relationship(
        'parcels', parcels.notes_table(), 'parcels_notes'
    )

    assert gpkg.manage.remove_relationships_with_mapping_table('parcels_photos') == 1

    assert not table_exists(gpkg, 'parcels_photos')
    assert gpkg.manage.get_relations(mapping_table='parcels_photos') == []
    assert gpkg.manage.get_relationships() == [notes]
    assert table_exists(gpkg, 'parcels_notes')

def test_create_user_mapping_table_idempotent(gpkg):
    assert gpkg.manage.create_user_mapping_table('m1')
    assert not gpkg.manage.create_user_mapping_table('m1')

    with gpkg.connect() as connection:
        records = gpkg.manage.extensions.get_extensions(connection, 'related_tables', 'm1')

    assert [(r.extension_name, r.table_name, r.column_name) for r in records] == [
        ('related_tables', 'm1', None),
    ]
    assert table_exists(gpkg, 'm1')

def test_create_extended_relations_table_idempotent(gpkg):
    assert gpkg.manage.create_extended_relations_table()
    assert not gpkg.manage.create_extended_relations_table()

    with gpkg.connect() as connection:
        records = gpkg.manage.extensions.get_extensions(
            connection, 'related_tables', RELATIONS_TABLE_NAME
        )

    assert len(records) == 1
    assert gpkg.manage.has()

def test_existing_views_are_not_recreated(parcels_gpkg):
    gpkg = parcels_gpkg

    with gpkg.begin() as connection:
        connection.exec_driver_sql(
            'CREATE VIEW parcel_pairs AS SELECT id AS base_id, id AS related_id FROM parcels'
        )
        connection.exec_driver_sql('CREATE VIEW photos AS SELECT id, name FROM parcels')

    assert not gpkg.manage.create_user_mapping_table('parcel_pairs')

    with gpkg.begin() as connection:
        assert not gpkg.manage.create_related_table(connection, parcels.photos_table())

    with gpkg.connect() as connection:
        assert not gpkg.table_exists(connection, 'parcel_pairs')
        assert not gpkg.table_exists(connection, 'photos')
def test_remove_custom_relationship(parcels_gpkg):
    gpkg = parcels_gpkg
    gpkg.manage.add_relationship(
        base_table_name='parcels',
        related_table=parcels.notes_table(),
        mapping_table='parcels_notes',
        relation='links',
        relation_author='acme',
    )

    assert gpkg.manage.remove_relationship('parcels', 'notes', 'links', relation_author='acme') == 1
    assert not table_exists(gpkg, 'parcels_notes')

def test_remove_extended_relation(parcels_gpkg):
    gpkg = parcels_gpkg
    relation = add_parcels_photos(gpkg)

    assert gpkg.manage.remove_extended_relation(relation) == 1
    assert gpkg.manage.remove_extended_relation(relation) == 0
    assert not table_exists(gpkg, 'parcels_photos')

def test_remove_relationships_for_table(parcels_gpkg):
    gpkg = parcels_gpkg
    parcels.create_user_table(gpkg, parcels.owners_table())

    add_parcels_photos(gpkg)
    gpkg.manage.add_features_relationship('owners', 'parcels', 'owners_parcels')
    gpkg.manage.add_attributes_relationship('owners', parcels.notes_table(), 'owners_notes')

    assert gpkg.manage.has_table_relations('parcels')
    assert gpkg.manage.remove_relationships('parcels') == 2

    assert not gpkg.manage.has_table_relations('parcels')
    assert [r.mapping_table_name for r in gpkg.manage.get_relationships()] == ['owners_notes']
    assert not table_exists(gpkg, 'parcels_photos')
    assert not table_exists(gpkg, 'owners_parcels')
    assert table_exists(gpkg, 'owners_notes')

def test_relation_queries(parcels_gpkg):
    gpkg = parcels_gpkg
    parcels.create_user_table(gpkg, parcels.owners_table())

    photos = add_parcels_photos(gpkg)
    owned  = gpkg.manage.add_features_relationship('owners', 'parcels', 'owners_parcels')

    assert gpkg.manage.get_base_table_relations('parcels') == [photos]
    assert gpkg.manage.get_related_table_relations('parcels') == [owned]
    assert gpkg.manage.get_table_relations('parcels') == [photos, owned]
    assert gpkg.manage.get_relations(mapping_table='owners_parcels') == [owned]
    assert gpkg.manage.get_relations(base_table='parcels', relation=RelationType.MEDIA) == [photos]

    assert gpkg.manage.has_base_table_relations('owners')
    assert not gpkg.manage.has_related_table_relations('owners')
    assert not gpkg.manage.has_relations(base_table='photos')

def test_add_relationship_from(parcels_gpkg):
    gpkg = parcels_gpkg
    parcels.create_user_table(gpkg, parcels.photos_table())

    relation = gpkg.manage.add_relationship_from(
        ExtendedRelation('parcels', 'photos', 'media', 'parcels_photos')
    )

    assert relation.id is not None
    assert gpkg.manage.get_relationships() == [relation]

def test_remove_extension(tmp_path):
    gpkg = GeoPackage(tmp_path / 'teardown.gpkg', settings=Settings(progress=True))
    gpkg.create_required()
    parcels.create_parcels(gpkg)
    parcels.create_user_table(gpkg, parcels.owners_table())

    add_parcels_photos(gpkg)
    gpkg.manage.add_features_relationship('owners', 'parcels', 'owners_parcels')

    gpkg.manage.remove_extension()

    assert not table_exists(gpkg, RELATIONS_TABLE_NAME)
    assert not table_exists(gpkg, 'parcels_photos')
    assert not table_exists(gpkg, 'owners_parcels')
    assert extension_tables(gpkg) == set()
    assert not gpkg.manage.has()
    assert gpkg.manage.get_relationships() == []

    # teardown of an absent extension is a no-op
    gpkg.manage.remove_extension()
    gpkg.dispose()

def test_related_rows(parcels_gpkg):
    gpkg = parcels_gpkg
    photos = parcels.photos_table()
    relation = add_parcels_photos(gpkg, photos)

    parcels.insert_rows(gpkg, photos, [
        {'id': 42, 'data': b'\xff\xd8', 'content_type': 'image/jpeg', 'caption': 'north'},
    ])
    gpkg.manage.insert_mapping(relation, 7, 42)
    gpkg.manage.insert_mapping(relation, 7, 99)

    related = gpkg.manage.get_related_rows('parcels', 7)

    assert list(related) == [relation]
    (found_map, found_row), (missing_map, missing_row) = related[relation]

    assert found_map == MappingRow(7, 42)
    assert isinstance(found_row, MediaRow)
    assert found_row.content_type == 'image/jpeg'
    assert missing_map == MappingRow(7, 99)
    assert missing_row is None

    assert gpkg.manage.get_related_rows('parcels', 8) == {relation: []}
    assert gpkg.manage.get_related_rows('parcels', 7, type_filter=['tiles']) == {}

def test_related_rows_unresolvable(parcels_gpkg):
    gpkg = parcels_gpkg
    add_parcels_photos(gpkg)
    gpkg.manage.add_relationship(
        base_table_name='parcels',
        related_table=parcels.notes_table(),
        mapping_table='parcels_notes',
        relation='x-acme_links',
    )

    with pytest.raises(UnresolvableRelationType):
        gpkg.manage.get_related_rows('parcels', 7)

    media_only = gpkg.manage.get_related_rows('parcels', 7, type_filter=[RelationType.MEDIA])
    assert [r.mapping_table_name for r in media_only] == ['parcels_photos']

def test_mapping_counts_and_bidirectional_delete(parcels_gpkg):
    gpkg = parcels_gpkg
    parcels.create_user_table(gpkg, parcels.owners_table())

    photos = add_parcels_photos(gpkg)
    owned  = gpkg.manage.add_features_relationship('owners', 'parcels', 'owners_parcels')

    gpkg.manage.insert_mapping(photos, 7, 42)
    gpkg.manage.insert_mapping(photos, 8, 42)
    gpkg.manage.insert_mapping(owned, 1, 7)
    gpkg.manage.insert_mapping(owned, 1, 8)

    assert gpkg.manage.count_mappings_to_base('parcels', 7) == 1
    assert gpkg.manage.count_mappings_to_related('parcels', 7) == 1
    assert gpkg.manage.count_mappings('parcels', 7) == 2
    assert gpkg.manage.has_mapping_to_related('photos', 42)
    assert not gpkg.manage.has_mapping_to_base('photos', 42)

    assert gpkg.manage.delete_mappings('parcels', 7) == 2

    assert not gpkg.manage.has_mappings('parcels', 7)
    assert gpkg.manage.count_mappings('parcels', 8) == 2
    assert gpkg.manage.get_mappings_for_related(owned, 7) == []
    assert gpkg.manage.get_mappings_for_base(owned, 1) == [8]

def test_directional_deletes(parcels_gpkg):
    gpkg = parcels_gpkg
    photos = add_parcels_photos(gpkg)

    gpkg.manage.insert_mapping(photos, 7, 42)
    gpkg.manage.insert_mapping(photos, 7, 43)
    gpkg.manage.insert_mapping(photos, 8, 43)

    assert gpkg.manage.delete_mappings_to_related('photos', 43) == 2
    assert gpkg.manage.delete_mappings_to_base('parcels', 7) == 1
    assert gpkg.manage.count_mappings('photos', 42) == 0

def test_operations_share_a_connection(parcels_gpkg):
    gpkg = parcels_gpkg

    with gpkg.begin() as connection:
        relation = gpkg.manage.add_media_relationship(
            'parcels', parcels.photos_table(), 'parcels_photos', connection=connection
        )
        gpkg.manage.insert_mapping(relation, 7, 42, connection=connection)

        assert gpkg.manage.get_mappings_for_base(relation, 7, connection=connection) == [42]

    assert gpkg.manage.has_mapping('parcels_photos', 7, 42)

def test_read_only_container(tmp_path):
    path = tmp_path / 'ro.gpkg'

    gpkg = GeoPackage(path)
    gpkg.create_required()
    parcels.create_parcels(gpkg)
    relation = add_parcels_photos(gpkg)
    gpkg.dispose()

    ro = GeoPackage(path, read_only=True)

    assert ro.manage.get_relationships() == [relation]
    assert ro.manage.get_mappings_for_base('parcels_photos', 7) == []

    with pytest.raises(ReadOnlyViolation):
        ro.manage.add_attributes_relationship('parcels', parcels.owners_table(), 'm2')
    with pytest.raises(ReadOnlyViolation):
        ro.manage.remove_relationships('parcels')
    with pytest.raises(ReadOnlyViolation):
        ro.manage.delete_mappings('parcels', 7)
    with pytest.raises(ReadOnlyViolation):
        ro.manage.remove_extension()

    ro.dispose()
