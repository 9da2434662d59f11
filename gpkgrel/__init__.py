'''
gpkgrel: related tables for GeoPackage containers.

Relationships link a base table to a related table through a generic two-column
mapping table and are recorded in the ``gpkgext_relations`` catalog.

.. code-block:: python

    from gpkgrel import GeoPackage, MediaTable

    gpkg = GeoPackage('parcels.gpkg')
    gpkg.create_required()

    relation = gpkg.manage.add_media_relationship(
        'parcels', MediaTable.create('photos'), 'parcels_photos'
    )
'''
from gpkgrel import util
from gpkgrel.config import Settings, settings
from gpkgrel.errors import (
    RelatedTablesError,
    TableNotFound,
    NoPrimaryKey,
    RelationTypeMismatch,
    DuplicateMapping,
    UnresolvableRelationType,
    ReadOnlyViolation,
    StoreFailure,
)
from gpkgrel.schema import ContentsDataType, ExtensionScope
from gpkgrel.relations import (
    UserTable,
    MappingTable,
    AttributesTable,
    MediaTable,
    SimpleAttributesTable,
    TileTable,
)
from gpkgrel.extended_relation import (
    RelationType,
    CustomRelation,
    ExtendedRelation,
    build_relation_name,
    parse_relation,
)
from gpkgrel.accessors import MappingRow, ExtensionRecord
from gpkgrel.resolvers import (
    RelatedRowResolver,
    ResolverRegistry,
    UserRow,
    register_resolver,
)
from gpkgrel.managers import RelatedTablesManager, RelationshipOptions
from gpkgrel.databases import SQLDatabase, GeoPackage
