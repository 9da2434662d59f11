'''
Resolvers

Fetch the row a mapping row points at, dispatched on the relation kind. Each reserved
relation type has one ``RelatedRowResolver`` subclass, registered with the
``register_resolver`` decorator and indexed under its kind in ``default_resolvers``.
A ``ResolverRegistry`` instantiates those defaults against a container; further
resolvers (e.g. for a ``CustomRelation``) can be registered on the instance.

.. code-block:: python

    class LinkResolver(RelatedRowResolver):
        row_type = LinkRow

    registry.register(LinkResolver(gpkg), CustomRelation('x-acme_links'))
'''
import logging

import sqlalchemy as sa

from gpkgrel import util
from gpkgrel.errors import UnresolvableRelationType
from gpkgrel.relations import MediaTable
from gpkgrel.accessors.sql import SQLAccessor
from gpkgrel.extended_relation import RelationType, RelationKind, parse_relation


logger = logging.getLogger(__name__)

default_resolvers: dict[RelationKind, type['RelatedRowResolver']] = {}


def register_resolver(relation: RelationKind):
    '''
    Registry decorator for resolver classes. Attaches ``relation`` to the class and
    indexes the class under it in ``default_resolvers``.
    '''
    def decorator(cls):
        cls.relation = relation
        default_resolvers[relation] = cls
        return cls
    return decorator


class UserRow(dict):
    '''
    Column-indexed row of a user table, aware of the table it came from and its
    primary key column.
    '''
    def __init__(self, values, table_name: str, pk_column: str = 'id'):
        super().__init__(values)
        self.table_name = table_name
        self.pk_column  = pk_column

    @property
    def id(self):
        return self.get(self.pk_column)


class FeatureRow(UserRow):
    def geometry(self, column='geom') -> bytes | None:
        '''
        Raw encoded geometry; decoding is left to the caller.
        '''
        return self.get(column)


class TileRow(UserRow):
    @property
    def zoom_level(self):
        return self['zoom_level']

    @property
    def tile_column(self):
        return self['tile_column']

    @property
    def tile_row(self):
        return self['tile_row']

    @property
    def tile_data(self) -> bytes:
        return self['tile_data']


class AttributesRow(UserRow):
    pass


class MediaRow(UserRow):
    @property
    def data(self) -> bytes:
        return self[MediaTable.DATA]

    @property
    def content_type(self) -> str:
        return self[MediaTable.CONTENT_TYPE]


class SimpleAttributesRow(UserRow):
    pass


class RelatedRowResolver(SQLAccessor):
    relation: RelationKind | None = None
    row_type: type[UserRow] = UserRow

    def fetch_related_row(
        self,
        connection,
        related_table:  str,
        related_id:     int,
        primary_column: str = 'id',
    ) -> UserRow | None:
        '''
        Select the row of ``related_table`` whose primary key is ``related_id``.
        Returns ``None`` when no such row exists (mapping rows are not kept consistent
        with their related tables by the store).
        '''
        # related tables are only known by name; SELECT * keeps every user column
        # without reflecting the table on each fetch
        stmt = sa.text(
            f'SELECT * FROM {util.db.quote(connection, related_table)} '
            f'WHERE {util.db.quote(connection, primary_column)} = :related_id'
        )
        with util.db.cursor(connection, stmt, {'related_id': related_id}) as res:
            row = res.mappings().first()

        if row is None:
            logger.debug(f'No row {related_id} in related table "{related_table}"')
            return None

        return self.row_type(row, related_table, primary_column)


@register_resolver(RelationType.FEATURES)
class FeatureRowResolver(RelatedRowResolver):
    row_type = FeatureRow


@register_resolver(RelationType.TILES)
class TileRowResolver(RelatedRowResolver):
    row_type = TileRow


@register_resolver(RelationType.ATTRIBUTES)
class AttributesRowResolver(RelatedRowResolver):
    row_type = AttributesRow


@register_resolver(RelationType.MEDIA)
class MediaRowResolver(RelatedRowResolver):
    row_type = MediaRow


@register_resolver(RelationType.SIMPLE_ATTRIBUTES)
class SimpleAttributesRowResolver(RelatedRowResolver):
    row_type = SimpleAttributesRow


class ResolverRegistry:
    '''
    Maps relation kinds to resolver instances bound to one container.

    Parameters:
        database:  container the resolvers query
        resolvers: extra or overriding resolvers, keyed by relation kind (or name)
    '''
    def __init__(self, database, resolvers: dict | None = None):
        self._resolvers = {
            relation: resolver_cls(database)
            for relation, resolver_cls in default_resolvers.items()
        }

        for relation, resolver in (resolvers or {}).items():
            self.register(resolver, relation)

    def register(self, resolver: RelatedRowResolver, relation=None):
        if relation is None:
            relation = resolver.relation
        if relation is None:
            raise ValueError(f'Resolver {resolver!r} is not bound to a relation kind')

        self._resolvers[parse_relation(relation)] = resolver

    def get(self, relation) -> RelatedRowResolver | None:
        return self._resolvers.get(parse_relation(relation))

    def resolve(self, relation) -> RelatedRowResolver:
        resolver = self.get(relation)
        if resolver is None:
            relation = parse_relation(relation)
            raise UnresolvableRelationType(
                'No related row resolver registered for relation',
                operation='resolve',
                relation=relation.relation_name,
            )
        return resolver

    def __contains__(self, relation):
        return self.get(relation) is not None
