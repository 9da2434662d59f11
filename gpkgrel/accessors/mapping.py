'''
Mapping table row access.

A ``MappingAccessor`` is bound to one mapping table by name. The table is addressed
through a lightweight ``sa.table()`` clause, so no reflection happens per accessor and
the accessor can be built before the table exists.
'''
from collections.abc import Iterator
from dataclasses import dataclass

import sqlalchemy as sa

from gpkgrel.relations import MappingTable
from gpkgrel.accessors.sql import SQLAccessor


@dataclass(frozen=True)
class MappingRow:
    base_id:    int
    related_id: int


class MappingAccessor(SQLAccessor):
    def __init__(self, database, table_name: str):
        super().__init__(database)

        self.table_name = table_name
        self.table = sa.table(
            table_name,
            sa.column(MappingTable.BASE_ID),
            sa.column(MappingTable.RELATED_ID),
        )

    @property
    def base_id(self):
        return self.table.c[MappingTable.BASE_ID]

    @property
    def related_id(self):
        return self.table.c[MappingTable.RELATED_ID]

    def _ids_clause(self, base_id, related_id):
        return sa.and_(self.base_id == base_id, self.related_id == related_id)

    def _rows(self, connection, where) -> Iterator[MappingRow]:
        for row in self.iter_rows(connection, self.table, where=where):
            yield MappingRow(row[MappingTable.BASE_ID], row[MappingTable.RELATED_ID])

    def insert_mapping(self, connection, base_id: int, related_id: int):
        '''
        Add a (base_id, related_id) pair. Pairs are not unique; inserting the same pair
        twice stores it twice.
        '''
        self.insert(
            connection,
            self.table,
            {MappingTable.BASE_ID: base_id, MappingTable.RELATED_ID: related_id},
        )
        return MappingRow(base_id, related_id)

    def query_by_base_id(self, connection, base_id: int) -> Iterator[MappingRow]:
        return self._rows(connection, self.base_id == base_id)

    def query_by_related_id(self, connection, related_id: int) -> Iterator[MappingRow]:
        return self._rows(connection, self.related_id == related_id)

    def query_by_ids(self, connection, base_id: int, related_id: int) -> Iterator[MappingRow]:
        return self._rows(connection, self._ids_clause(base_id, related_id))

    def get_unique_base_ids(self, connection) -> list[int]:
        rows = self.select(
            connection, self.table,
            columns=[self.base_id], distinct=True, order_by=self.base_id,
        )
        return [r[MappingTable.BASE_ID] for r in rows]

    def get_unique_related_ids(self, connection) -> list[int]:
        rows = self.select(
            connection, self.table,
            columns=[self.related_id], distinct=True, order_by=self.related_id,
        )
        return [r[MappingTable.RELATED_ID] for r in rows]

    def count_by_base_id(self, connection, base_id: int) -> int:
        return self.count(connection, self.table, self.base_id == base_id)

    def count_by_related_id(self, connection, related_id: int) -> int:
        return self.count(connection, self.table, self.related_id == related_id)

    def count_by_ids(self, connection, base_id: int, related_id: int) -> int:
        return self.count(connection, self.table, self._ids_clause(base_id, related_id))

    def delete_by_base_id(self, connection, base_id: int) -> int:
        return self.delete(connection, self.table, self.base_id == base_id)

    def delete_by_related_id(self, connection, related_id: int) -> int:
        return self.delete(connection, self.table, self.related_id == related_id)

    def delete_by_ids(self, connection, base_id: int, related_id: int) -> int:
        return self.delete(connection, self.table, self._ids_clause(base_id, related_id))
