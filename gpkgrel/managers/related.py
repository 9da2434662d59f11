'''
Related tables manager

Public engine of the related tables extension. Relationships link a base table to a
related table through a generic two-column mapping table, and are recorded in the
``gpkgext_relations`` catalog. The manager validates and creates relationships, removes
them along with their mapping tables, and resolves related rows through the resolver
registry.

Note: transactions
    Each mutating operation runs inside a single ``database.begin()`` scope. SQLite
    handles DDL transactionally (see ``util.db.get_engine``), so creating the related
    table, registering its content row, creating the mapping table, registering
    extension records and inserting the catalog row commit or roll back as one unit.
    The explicit drop of a just-created related table on failed content registration
    is still performed before re-raising.

Note: connections
    Every public method accepts an optional ``connection``. When one is given the call
    runs on it (inside the caller's scope); otherwise the method opens its own. Scopes
    are never nested.

.. code-block:: python

    gpkg = GeoPackage('parcels.gpkg')
    photos = MediaTable.create('photos')

    relation = gpkg.manage.add_media_relationship('parcels', photos, 'parcels_photos')
    gpkg.manage.get_mappings_for_base('parcels_photos', 7)
'''
import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace

import sqlalchemy as sa
from tqdm.auto import tqdm

from gpkgrel import util
from gpkgrel.config import Settings
from gpkgrel.manager import Manager
from gpkgrel.errors import (
    TableNotFound,
    NoPrimaryKey,
    RelationTypeMismatch,
    StoreFailure,
    store_operation,
)
from gpkgrel.schema import ExtensionScope, RELATIONS_TABLE_NAME
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
    RelationKind,
    ExtendedRelation,
    build_relation_name,
    parse_relation,
)
from gpkgrel.accessors import (
    RelationsAccessor,
    ExtensionsAccessor,
    MappingAccessor,
    MappingRow,
)
from gpkgrel.resolvers import ResolverRegistry, UserRow


logger = logging.getLogger(__name__)

EXTENSION_NAME = 'related_tables'


@dataclass
class RelationshipOptions:
    '''
    Description of a relationship to add.

    Parameters:
        base_table_name: name of an existing base table (or view)
        related_table:   related table name, or a full definition to create when the
                         table does not exist yet
        mapping_table:   mapping table name, or its definition
        relation:        reserved ``RelationType``, ``CustomRelation``, or a raw
                         relation name. When omitted, the related table definition's
                         data type is used.
        relation_author: when set, ``relation`` is taken as a bare name and formatted
                         as ``x-{author}_{name}``
    '''
    base_table_name: str
    related_table:   str | UserTable
    mapping_table:   str | MappingTable
    relation:        RelationKind | str | None = None
    relation_author: str | None = None

    @property
    def related_table_name(self) -> str:
        if isinstance(self.related_table, UserTable):
            return self.related_table.name
        return self.related_table

    @property
    def related_definition(self) -> UserTable | None:
        if isinstance(self.related_table, UserTable):
            return self.related_table
        return None

    @property
    def mapping_definition(self) -> MappingTable:
        if isinstance(self.mapping_table, MappingTable):
            return self.mapping_table
        if isinstance(self.mapping_table, str):
            return MappingTable.create(self.mapping_table)

        raise TypeError(
            f'Mapping table must be a name or MappingTable, got {type(self.mapping_table).__name__}'
        )

    def resolve_relation(self) -> RelationKind:
        if self.relation_author is not None:
            if self.relation is None:
                raise ValueError('A relation name is required alongside a relation author')

            name = self.relation
            if not isinstance(name, str):
                name = name.relation_name

            return CustomRelation(build_relation_name(self.relation_author, name))

        if self.relation is not None:
            return parse_relation(self.relation)

        if self.related_definition is not None:
            return parse_relation(self.related_definition.relation_name)

        raise ValueError(
            f'No relation given for "{self.base_table_name}" -> "{self.related_table_name}" '
            'and none can be inferred from a related table name'
        )


class RelatedTablesManager(Manager):
    '''
    Parameters:
        database:   container holding the related tables
        relations:  relation catalog accessor
        extensions: extension ledger accessor
        resolvers:  related row resolver registry
        settings:   overrides the container's settings
    '''
    def __init__(
        self,
        database,
        relations:  RelationsAccessor | None  = None,
        extensions: ExtensionsAccessor | None = None,
        resolvers:  ResolverRegistry | None   = None,
        settings:   Settings | None           = None,
    ):
        super().__init__(database)

        self.relations  = relations  or RelationsAccessor(database)
        self.extensions = extensions or ExtensionsAccessor(database)
        self.resolvers  = resolvers  or ResolverRegistry(database)
        self.settings   = settings   or database.settings

    @contextmanager
    def _transaction(self, connection=None):
        self.database.verify_writable()

        if connection is not None:
            yield connection
            return

        with self.database.begin() as connection:
            yield connection

    @contextmanager
    def _reader(self, connection=None):
        if connection is not None:
            yield connection
            return

        with self.database.connect() as connection:
            yield connection

    # -- extension lifecycle --------------------------------------------------------------

    def _register_table(self, connection, table_name):
        return self.extensions.get_or_create(
            connection,
            EXTENSION_NAME,
            table_name,
            None,
            self.settings.extension_definition,
            ExtensionScope.READ_WRITE,
        )

    def get_or_create_extension(self, connection=None):
        '''
        Register the extension against the relations catalog table, creating the catalog
        table when absent.
        '''
        with self._transaction(connection) as connection:
            self.create_extended_relations_table(connection=connection)
            return self._register_table(connection, RELATIONS_TABLE_NAME)

    def create_extended_relations_table(self, connection=None) -> bool:
        '''
        Create the relations catalog if absent and register it as an extension target.

        Returns:
            True if the catalog table was created by this call
        '''
        with self._transaction(connection) as connection:
            with store_operation('create_extended_relations_table'):
                created = self.database.create_catalog_table(connection, RELATIONS_TABLE_NAME)
                self._register_table(connection, RELATIONS_TABLE_NAME)

        if created:
            logger.info(f'Created relations catalog "{RELATIONS_TABLE_NAME}"')
        else:
            logger.debug(f'Relations catalog "{RELATIONS_TABLE_NAME}" already exists')

        return created

    def has(self, connection=None) -> bool:
        '''
        Whether the extension is registered and its catalog table exists.
        '''
        with self._reader(connection) as connection:
            return (
                self.extensions.has_extension(connection, EXTENSION_NAME, RELATIONS_TABLE_NAME)
                and self.relations.is_table_exists(connection)
            )

    def has_extension_for_mapping_table(self, mapping_table: str, connection=None) -> bool:
        with self._reader(connection) as connection:
            return (
                self.has(connection=connection)
                and self.extensions.has_extension(connection, EXTENSION_NAME, mapping_table)
            )

    def get_primary_key_column_name(self, connection, table: str) -> str:
        column = self.database.primary_key_column_name(connection, table)
        if column is None:
            raise NoPrimaryKey(
                'Table declares no primary key',
                operation='get_primary_key_column_name',
                table=table,
            )
        return column

    # -- table creation -------------------------------------------------------------------

    def create_related_table(self, connection, table: UserTable) -> bool:
        '''
        Create a related user table and register its content row. When registration
        fails after the table was created, the table is dropped again (best effort)
        before the registration failure is raised.

        Returns:
            True if the table was created, False if it already existed
        '''
        if self.database.table_or_view_exists(connection, table.name):
            logger.debug(f'Related table "{table.name}" already exists')
            return False

        with store_operation('create_related_table', table=table.name):
            self.database.create_table(connection, table)

        try:
            self.database.create_content_row(
                connection,
                {
                    'table_name': table.name,
                    'data_type':  table.data_type.value,
                    'identifier': table.name,
                },
            )
        except sa.exc.SQLAlchemyError as e:
            util.db.drop_table_quietly(connection, table.name)

            raise StoreFailure(
                'Failed to register content row for new related table',
                operation='create_related_table',
                table=table.name,
                data_type=table.data_type.value,
            ) from e

        logger.info(f'Created related {table.data_type.value} table "{table.name}"')
        return True

    def create_user_mapping_table(
        self,
        mapping_table: str | MappingTable,
        connection = None,
    ) -> bool:
        '''
        Create the mapping table if absent and register it as an extension target.

        Returns:
            True if the mapping table was created by this call
        '''
        if isinstance(mapping_table, str):
            mapping_table = MappingTable.create(mapping_table)

        with self._transaction(connection) as connection:
            with store_operation('create_user_mapping_table', mapping_table=mapping_table.name):
                self.get_or_create_extension(connection=connection)

                created = False
                if not self.database.table_or_view_exists(connection, mapping_table.name):
                    self.database.create_table(connection, mapping_table)
                    created = True

                self._register_table(connection, mapping_table.name)

        if created:
            logger.info(f'Created mapping table "{mapping_table.name}"')
        else:
            logger.debug(f'Mapping table "{mapping_table.name}" already exists')

        return created

    # -- adding relationships -------------------------------------------------------------

    def _validate(self, connection, base_table, related_table, relation: RelationKind):
        for table in (base_table, related_table):
            if not self.database.table_or_view_exists(connection, table):
                raise TableNotFound(
                    'Relationship table does not exist',
                    operation='add_relationship',
                    table=table,
                    base_table=base_table,
                    related_table=related_table,
                )

        if isinstance(relation, RelationType):
            if not self.database.table_data_type_equals(
                connection, related_table, relation.data_type
            ):
                raise RelationTypeMismatch(
                    'Related table content data type does not match the relation type',
                    operation='add_relationship',
                    related_table=related_table,
                    relation=relation.relation_name,
                    expected=relation.data_type.value,
                    actual=self.database.table_data_type(connection, related_table),
                )

    def add_relationship(
        self,
        options: RelationshipOptions | None = None,
        connection = None,
        **fields,
    ) -> ExtendedRelation:
        '''
        Add a relationship, returning its catalog record.

        Adding a relationship identical to an existing one (same tables, primary
        columns, relation name and mapping table) returns the existing record.

        Parameters:
            options: relationship description; alternatively, pass the
                     ``RelationshipOptions`` fields as keyword arguments

        Raises:
            TableNotFound:        base or related table is missing
            RelationTypeMismatch: related table content type differs from a reserved
                                  relation type's data type
            NoPrimaryKey:         either table declares no primary key
            DuplicateMapping:     mapping table already backs another relationship
        '''
        if options is None:
            options = RelationshipOptions(**fields)
        elif fields:
            options = replace(options, **fields)

        relation      = options.resolve_relation()
        base_table    = options.base_table_name
        related_table = options.related_table_name
        mapping_table = options.mapping_definition

        context = {
            'base_table':    base_table,
            'related_table': related_table,
            'mapping_table': mapping_table.name,
            'relation':      relation.relation_name,
        }

        with self._transaction(connection) as connection:
            with store_operation('add_relationship', **context):
                if options.related_definition is not None:
                    self.create_related_table(connection, options.related_definition)

                self._validate(connection, base_table, related_table, relation)

                base_column    = self.get_primary_key_column_name(connection, base_table)
                related_column = self.get_primary_key_column_name(connection, related_table)

                self.create_user_mapping_table(mapping_table, connection=connection)

                existing = self.relations.get_relations(
                    connection,
                    base_table=base_table,
                    base_column=base_column,
                    related_table=related_table,
                    related_column=related_column,
                    relation_name=relation.relation_name,
                    mapping_table=mapping_table.name,
                )
                if existing:
                    logger.debug(
                        f'Relationship on "{mapping_table.name}" already exists '
                        f'with id {existing[0].id}'
                    )
                    return existing[0]

                extended_relation = self.relations.create(
                    connection,
                    ExtendedRelation(
                        base_table_name=base_table,
                        base_primary_column=base_column,
                        related_table_name=related_table,
                        related_primary_column=related_column,
                        relation_name=relation.relation_name,
                        mapping_table_name=mapping_table.name,
                    ),
                )

        logger.info(
            f'Added "{relation.relation_name}" relationship {extended_relation.id}: '
            f'"{base_table}" -> "{related_table}" via "{mapping_table.name}"'
        )
        return extended_relation

    def add_relationship_from(self, relation: ExtendedRelation, connection=None):
        '''
        Add a relationship described by an (uncataloged) ``ExtendedRelation``. Primary
        columns are re-read from the tables.
        '''
        return self.add_relationship(
            RelationshipOptions(
                base_table_name=relation.base_table_name,
                related_table=relation.related_table_name,
                mapping_table=relation.mapping_table_name,
                relation=relation.relation_name,
            ),
            connection=connection,
        )

    def add_features_relationship(
        self,
        base_table:    str,
        feature_table: str,
        mapping_table: str | MappingTable,
        connection = None,
    ) -> ExtendedRelation:
        return self.add_relationship(
            RelationshipOptions(base_table, feature_table, mapping_table, RelationType.FEATURES),
            connection=connection,
        )

    def add_tiles_relationship(
        self,
        base_table:    str,
        tile_table:    str | TileTable,
        mapping_table: str | MappingTable,
        connection = None,
    ) -> ExtendedRelation:
        return self.add_relationship(
            RelationshipOptions(base_table, tile_table, mapping_table, RelationType.TILES),
            connection=connection,
        )

    def add_attributes_relationship(
        self,
        base_table:       str,
        attributes_table: str | AttributesTable,
        mapping_table:    str | MappingTable,
        connection = None,
    ) -> ExtendedRelation:
        return self.add_relationship(
            RelationshipOptions(
                base_table, attributes_table, mapping_table, RelationType.ATTRIBUTES
            ),
            connection=connection,
        )

    def add_media_relationship(
        self,
        base_table:    str,
        media_table:   str | MediaTable,
        mapping_table: str | MappingTable,
        connection = None,
    ) -> ExtendedRelation:
        return self.add_relationship(
            RelationshipOptions(base_table, media_table, mapping_table, RelationType.MEDIA),
            connection=connection,
        )

    def add_simple_attributes_relationship(
        self,
        base_table:    str,
        simple_table:  str | SimpleAttributesTable,
        mapping_table: str | MappingTable,
        connection = None,
    ) -> ExtendedRelation:
        return self.add_relationship(
            RelationshipOptions(
                base_table, simple_table, mapping_table, RelationType.SIMPLE_ATTRIBUTES
            ),
            connection=connection,
        )

    # -- queries --------------------------------------------------------------------------

    def get_relationships(self, connection=None) -> list[ExtendedRelation]:
        with self._reader(connection) as connection:
            with store_operation('get_relationships'):
                return self.relations.query_for_all(connection)

    def get_relations(
        self,
        base_table:     str | None = None,
        base_column:    str | None = None,
        related_table:  str | None = None,
        related_column: str | None = None,
        relation:       RelationKind | str | None = None,
        mapping_table:  str | None = None,
        connection = None,
    ) -> list[ExtendedRelation]:
        '''
        Wildcard catalog query; omitted arguments match anything.
        '''
        relation_name = None
        if relation is not None:
            relation_name = parse_relation(relation).relation_name

        with self._reader(connection) as connection:
            with store_operation('get_relations', mapping_table=mapping_table):
                return self.relations.get_relations(
                    connection,
                    base_table=base_table,
                    base_column=base_column,
                    related_table=related_table,
                    related_column=related_column,
                    relation_name=relation_name,
                    mapping_table=mapping_table,
                )

    def has_relations(self, *args, **kwargs) -> bool:
        return len(self.get_relations(*args, **kwargs)) > 0

    def get_base_table_relations(self, base_table: str, connection=None):
        with self._reader(connection) as connection:
            with store_operation('get_base_table_relations', table=base_table):
                return self.relations.get_base_table_relations(connection, base_table)

    def has_base_table_relations(self, base_table: str, connection=None) -> bool:
        return len(self.get_base_table_relations(base_table, connection=connection)) > 0

    def get_related_table_relations(self, related_table: str, connection=None):
        with self._reader(connection) as connection:
            with store_operation('get_related_table_relations', table=related_table):
                return self.relations.get_related_table_relations(connection, related_table)

    def has_related_table_relations(self, related_table: str, connection=None) -> bool:
        return len(self.get_related_table_relations(related_table, connection=connection)) > 0

    def get_table_relations(self, table: str, connection=None):
        with self._reader(connection) as connection:
            with store_operation('get_table_relations', table=table):
                return self.relations.get_table_relations(connection, table)

    def has_table_relations(self, table: str, connection=None) -> bool:
        return len(self.get_table_relations(table, connection=connection)) > 0

    # -- removal --------------------------------------------------------------------------

    def _remove(self, connection, relation: ExtendedRelation):
        self.database.drop_table(connection, relation.mapping_table_name)
        self.relations.delete_relation(connection, relation)

        logger.info(
            f'Removed "{relation.relation_name}" relationship {relation.id}: '
            f'"{relation.base_table_name}" -> "{relation.related_table_name}", '
            f'dropped mapping table "{relation.mapping_table_name}"'
        )

    def _remove_all(self, operation, connection, query, **context) -> int:
        with self._transaction(connection) as connection:
            with store_operation(operation, **context):
                if not self.relations.is_table_exists(connection):
                    logger.debug(f'No relations catalog; nothing to remove for {context}')
                    return 0

                matches = query(connection)
                for relation in matches:
                    self._remove(connection, relation)

        return len(matches)

    def remove_relationship(
        self,
        base_table:      str,
        related_table:   str,
        relation:        RelationKind | str,
        relation_author: str | None = None,
        connection = None,
    ) -> int:
        '''
        Remove every relationship between the two tables with the given relation,
        dropping their mapping tables. Missing relationships are not an error.

        Returns:
            number of relationships removed
        '''
        if relation_author is not None:
            name = relation if isinstance(relation, str) else relation.relation_name
            relation_name = build_relation_name(relation_author, name)
        else:
            relation_name = parse_relation(relation).relation_name

        return self._remove_all(
            'remove_relationship',
            connection,
            lambda conn: self.relations.get_relations(
                conn,
                base_table=base_table,
                related_table=related_table,
                relation_name=relation_name,
            ),
            base_table=base_table,
            related_table=related_table,
            relation=relation_name,
        )

    def remove_extended_relation(self, relation: ExtendedRelation, connection=None) -> int:
        '''
        Remove a specific relationship. A relation without an id is matched on all of
        its fields.
        '''
        def query(conn):
            if relation.id is not None:
                return self.relations.query_by_id(conn, relation.id)

            return self.relations.get_relations(
                conn,
                base_table=relation.base_table_name,
                base_column=relation.base_primary_column,
                related_table=relation.related_table_name,
                related_column=relation.related_primary_column,
                relation_name=relation.relation_name,
                mapping_table=relation.mapping_table_name,
            )

        return self._remove_all(
            'remove_extended_relation',
            connection,
            query,
            mapping_table=relation.mapping_table_name,
            relation_id=relation.id,
        )

    def remove_relationships(self, table: str, connection=None) -> int:
        '''
        Remove every relationship where ``table`` is the base or related table.
        '''
        return self._remove_all(
            'remove_relationships',
            connection,
            lambda conn: self.relations.get_table_relations(conn, table),
            table=table,
        )

    def remove_relationships_with_mapping_table(self, mapping_table: str, connection=None) -> int:
        return self._remove_all(
            'remove_relationships_with_mapping_table',
            connection,
            lambda conn: self.relations.query_by_mapping_table_name(conn, mapping_table),
            mapping_table=mapping_table,
        )

    def remove_extension(self, connection=None):
        '''
        Remove all trace of the extension: every mapping table, the relations catalog,
        and every extension record. Irreversible.
        '''
        with self._transaction(connection) as connection:
            with store_operation('remove_extension', resource=str(self.database.resource)):
                if self.relations.is_table_exists(connection):
                    relations = self.relations.query_for_all(connection)

                    for relation in tqdm(
                        relations,
                        desc='Dropping mapping tables',
                        disable=not self.settings.progress,
                    ):
                        self.database.drop_table(connection, relation.mapping_table_name)

                    self.database.drop_table(connection, RELATIONS_TABLE_NAME)
                    logger.info(
                        f'Dropped {len(relations)} mapping tables and relations catalog '
                        f'"{RELATIONS_TABLE_NAME}"'
                    )

                deleted = self.extensions.delete_by_extension(connection, EXTENSION_NAME)

        logger.info(f'Removed extension "{EXTENSION_NAME}" ({deleted} extension records)')

    # -- related rows ---------------------------------------------------------------------

    def get_related_rows(
        self,
        base_table: str,
        base_id:    int,
        type_filter = None,
        connection  = None,
    ) -> dict[ExtendedRelation, list[tuple[MappingRow, UserRow | None]]]:
        '''
        Resolve the rows related to one base row, per relationship.

        Parameters:
            base_table:  base table name
            base_id:     base row id
            type_filter: relation kinds (or names) to restrict to; all when None

        Returns:
            for each relationship with ``base_table`` as base, the (mapping row,
            related row) pairs for ``base_id``. A related row is None when the mapping
            points at a missing row.

        Raises:
            UnresolvableRelationType: a matching relationship's kind has no resolver
        '''
        kinds = None
        if type_filter is not None:
            kinds = {parse_relation(kind) for kind in type_filter}

        related_rows = {}
        with self._reader(connection) as connection:
            with store_operation('get_related_rows', base_table=base_table, base_id=base_id):
                for relation in self.relations.get_base_table_relations(connection, base_table):
                    kind = relation.relation_type
                    if kinds is not None and kind not in kinds:
                        continue

                    resolver = self.resolvers.resolve(kind)
                    mappings = list(
                        self.get_mapping_accessor(relation).query_by_base_id(connection, base_id)
                    )

                    related_rows[relation] = [
                        (
                            mapping,
                            resolver.fetch_related_row(
                                connection,
                                relation.related_table_name,
                                mapping.related_id,
                                relation.related_primary_column,
                            ),
                        )
                        for mapping in mappings
                    ]

        return related_rows

    # -- mapping rows ---------------------------------------------------------------------

    def get_mapping_accessor(self, mapping_table: str | ExtendedRelation) -> MappingAccessor:
        if isinstance(mapping_table, ExtendedRelation):
            mapping_table = mapping_table.mapping_table_name
        return MappingAccessor(self.database, mapping_table)

    def insert_mapping(
        self,
        mapping_table: str | ExtendedRelation,
        base_id:       int,
        related_id:    int,
        connection = None,
    ) -> MappingRow:
        accessor = self.get_mapping_accessor(mapping_table)

        with self._transaction(connection) as connection:
            with store_operation(
                'insert_mapping',
                mapping_table=accessor.table_name,
                base_id=base_id,
                related_id=related_id,
            ):
                return accessor.insert_mapping(connection, base_id, related_id)

    def get_mappings_for_base(
        self,
        mapping_table: str | ExtendedRelation,
        base_id:       int,
        connection = None,
    ) -> list[int]:
        '''
        Related ids mapped to ``base_id``, in mapping table order.
        '''
        accessor = self.get_mapping_accessor(mapping_table)

        with self._reader(connection) as connection:
            with store_operation(
                'get_mappings_for_base', mapping_table=accessor.table_name, base_id=base_id
            ):
                return [row.related_id for row in accessor.query_by_base_id(connection, base_id)]

    def get_mappings_for_related(
        self,
        mapping_table: str | ExtendedRelation,
        related_id:    int,
        connection = None,
    ) -> list[int]:
        accessor = self.get_mapping_accessor(mapping_table)

        with self._reader(connection) as connection:
            with store_operation(
                'get_mappings_for_related', mapping_table=accessor.table_name, related_id=related_id
            ):
                return [
                    row.base_id for row in accessor.query_by_related_id(connection, related_id)
                ]

    def has_mapping(
        self,
        mapping_table: str | ExtendedRelation,
        base_id:       int,
        related_id:    int,
        connection = None,
    ) -> bool:
        accessor = self.get_mapping_accessor(mapping_table)

        with self._reader(connection) as connection:
            with store_operation(
                'has_mapping',
                mapping_table=accessor.table_name,
                base_id=base_id,
                related_id=related_id,
            ):
                return accessor.count_by_ids(connection, base_id, related_id) > 0

    def count_mappings_to_base(self, base_table: str, base_id: int, connection=None) -> int:
        '''
        Mapping rows for ``base_id`` summed across every relationship with
        ``base_table`` as base.
        '''
        with self._reader(connection) as connection:
            with store_operation('count_mappings_to_base', table=base_table, id=base_id):
                return sum(
                    self.get_mapping_accessor(relation).count_by_base_id(connection, base_id)
                    for relation in self.relations.get_base_table_relations(connection, base_table)
                )

    def has_mapping_to_base(self, base_table: str, base_id: int, connection=None) -> bool:
        return self.count_mappings_to_base(base_table, base_id, connection=connection) > 0

    def delete_mappings_to_base(self, base_table: str, base_id: int, connection=None) -> int:
        with self._transaction(connection) as connection:
            with store_operation('delete_mappings_to_base', table=base_table, id=base_id):
                deleted = sum(
                    self.get_mapping_accessor(relation).delete_by_base_id(connection, base_id)
                    for relation in self.relations.get_base_table_relations(connection, base_table)
                )

        logger.debug(f'Deleted {deleted} mapping rows with base "{base_table}" id {base_id}')
        return deleted

    def count_mappings_to_related(self, related_table: str, related_id: int, connection=None) -> int:
        with self._reader(connection) as connection:
            with store_operation('count_mappings_to_related', table=related_table, id=related_id):
                return sum(
                    self.get_mapping_accessor(relation).count_by_related_id(connection, related_id)
                    for relation in self.relations.get_related_table_relations(
                        connection, related_table
                    )
                )

    def has_mapping_to_related(self, related_table: str, related_id: int, connection=None) -> bool:
        return self.count_mappings_to_related(related_table, related_id, connection=connection) > 0

    def delete_mappings_to_related(self, related_table: str, related_id: int, connection=None) -> int:
        with self._transaction(connection) as connection:
            with store_operation('delete_mappings_to_related', table=related_table, id=related_id):
                deleted = sum(
                    self.get_mapping_accessor(relation).delete_by_related_id(connection, related_id)
                    for relation in self.relations.get_related_table_relations(
                        connection, related_table
                    )
                )

        logger.debug(
            f'Deleted {deleted} mapping rows with related "{related_table}" id {related_id}'
        )
        return deleted

    def count_mappings(self, table: str, id: int, connection=None) -> int:
        '''
        Mapping rows referencing ``table`` row ``id`` as either base or related.
        '''
        with self._reader(connection) as connection:
            return (
                self.count_mappings_to_base(table, id, connection=connection)
                + self.count_mappings_to_related(table, id, connection=connection)
            )

    def has_mappings(self, table: str, id: int, connection=None) -> bool:
        return self.count_mappings(table, id, connection=connection) > 0

    def delete_mappings(self, table: str, id: int, connection=None) -> int:
        '''
        Delete every mapping row referencing ``table`` row ``id``, on both the base and
        related side. Call this when deleting the row itself; the store does not
        cascade into mapping tables.
        '''
        with self._transaction(connection) as connection:
            deleted = (
                self.delete_mappings_to_base(table, id, connection=connection)
                + self.delete_mappings_to_related(table, id, connection=connection)
            )

        logger.info(f'Deleted {deleted} mapping rows referencing "{table}" id {id}')
        return deleted
