'''
Relation catalog access (``gpkgext_relations``).

Queries return ``ExtendedRelation`` objects in catalog insertion order. The catalog table
may not exist yet (it is created with the first relationship); read methods on a
missing catalog return empty results, and callers check ``is_table_exists`` before
writing.
'''
import logging
from dataclasses import replace

import sqlalchemy as sa

from gpkgrel import util
from gpkgrel.errors import DuplicateMapping
from gpkgrel.schema import relations_table, RELATIONS_TABLE_NAME
from gpkgrel.extended_relation import ExtendedRelation
from gpkgrel.accessors.sql import SQLAccessor


logger = logging.getLogger(__name__)


class RelationsAccessor(SQLAccessor):
    table = relations_table

    def is_table_exists(self, connection) -> bool:
        return util.db.table_exists(connection, RELATIONS_TABLE_NAME)

    def _query(self, connection, where=None) -> list[ExtendedRelation]:
        if not self.is_table_exists(connection):
            return []

        return [
            ExtendedRelation(**row)
            for row in self.select(
                connection,
                self.table,
                where=where,
                order_by=self.table.c.id,
            )
        ]

    def query_for_all(self, connection) -> list[ExtendedRelation]:
        return self._query(connection)

    def query_by_mapping_table_name(self, connection, mapping_table_name: str):
        return self._query(
            connection,
            self.table.c.mapping_table_name == mapping_table_name,
        )

    def query_by_id(self, connection, relation_id: int) -> list[ExtendedRelation]:
        return self._query(connection, self.table.c.id == relation_id)

    def get_relations(
        self,
        connection,
        base_table:     str | None = None,
        base_column:    str | None = None,
        related_table:  str | None = None,
        related_column: str | None = None,
        relation_name:  str | None = None,
        mapping_table:  str | None = None,
    ) -> list[ExtendedRelation]:
        '''
        Wildcard predicate query: every omitted argument matches any value, provided
        arguments are ANDed.
        '''
        c = self.table.c
        predicates = {
            c.base_table_name:        base_table,
            c.base_primary_column:    base_column,
            c.related_table_name:     related_table,
            c.related_primary_column: related_column,
            c.relation_name:          relation_name,
            c.mapping_table_name:     mapping_table,
        }
        clauses = [col == value for col, value in predicates.items() if value is not None]

        return self._query(connection, sa.and_(*clauses) if clauses else None)

    def get_base_table_relations(self, connection, base_table: str):
        return self.get_relations(connection, base_table=base_table)

    def get_related_table_relations(self, connection, related_table: str):
        return self.get_relations(connection, related_table=related_table)

    def get_table_relations(self, connection, table: str):
        '''
        Relations with ``table`` on either side. A self-relation is listed once.
        '''
        c = self.table.c
        return self._query(
            connection,
            sa.or_(c.base_table_name == table, c.related_table_name == table),
        )

    def create(self, connection, relation: ExtendedRelation) -> ExtendedRelation:
        '''
        Insert a catalog row, returning the relation with its assigned id.

        Raises:
            DuplicateMapping: a row already uses the relation's mapping table
        '''
        try:
            res = self.insert(connection, self.table, relation.as_row())
        except sa.exc.IntegrityError as e:
            message = str(e.orig)
            if 'UNIQUE' not in message.upper() or 'mapping_table_name' not in message:
                raise
            raise DuplicateMapping(
                'Mapping table is already used by another relationship',
                operation='create_relation',
                mapping_table=relation.mapping_table_name,
                base_table=relation.base_table_name,
                related_table=relation.related_table_name,
            ) from e

        relation_id = res.inserted_primary_key[0]
        logger.debug(f'Inserted catalog row {relation_id} for "{relation.mapping_table_name}"')

        return replace(relation, id=relation_id)

    def delete_relation(self, connection, relation: ExtendedRelation) -> int:
        '''
        Delete exactly the catalog row identified by ``relation.id``.
        '''
        if relation.id is None:
            raise ValueError(f'Relation on "{relation.mapping_table_name}" has no id')

        return self.delete(connection, self.table, where=self.table.c.id == relation.id)
