'''
Generic SQLAlchemy Core access over a single table-like object. Subclasses bind a table
(either a full ``sa.Table`` or a lightweight ``sa.table()`` clause for tables only known
by name at runtime) and build their domain queries on these primitives.
'''
from collections.abc import Iterator

import sqlalchemy as sa

from gpkgrel import util
from gpkgrel.accessor import Accessor


class SQLAccessor(Accessor):
    def select(
        self,
        connection,
        table,
        columns     = None,
        where       = None,
        distinct    = False,
        order_by    = None,
        limit       = 0,
        mappings    = False,
    ):
        '''
        Perform a SELECT query against the provided table-like object.

        Parameters:
            columns:  columns to select; all columns when ``None``
            where:    filter clause
            distinct: apply SELECT DISTINCT
            order_by: column to order results by (can use <col>.desc() to order
                      by descending)
            limit:    maximum number of rows; no limit when 0

        Returns:
            Statement results, either as a list of 1) SQLAlchemy Mappings, or 2) converted
            dictionaries
        '''
        stmt = self._select_stmt(table, columns, where, distinct, order_by, limit)
        res  = connection.execute(stmt)

        if mappings:
            return res.mappings().all()

        return util.db.result_dicts(res)

    def select_one(
        self,
        connection,
        table,
        columns = None,
        where   = None,
    ) -> dict | None:
        res = self.select(connection, table, columns, where, limit=1)

        if len(res) > 0:
            return res[0]

        return None

    def iter_rows(
        self,
        connection,
        table,
        columns  = None,
        where    = None,
        distinct = False,
        order_by = None,
    ) -> Iterator[dict]:
        '''
        Stream rows through a forward-only cursor. The cursor is released when iteration
        completes, when the consumer stops early, or on error.
        '''
        stmt = self._select_stmt(table, columns, where, distinct, order_by, 0)

        with util.db.cursor(connection, stmt) as res:
            for row in res.mappings():
                yield dict(row)

    def count(self, connection, table, where=None) -> int:
        stmt = sa.select(sa.func.count()).select_from(table)
        if where is not None:
            stmt = stmt.where(where)

        return connection.execute(stmt).scalar_one()

    def insert(self, connection, table, values: dict):
        return connection.execute(sa.insert(table).values(**values))

    def delete(self, connection, table, where=None) -> int:
        stmt = sa.delete(table)
        if where is not None:
            stmt = stmt.where(where)

        return connection.execute(stmt).rowcount

    @staticmethod
    def _select_stmt(table, columns, where, distinct, order_by, limit):
        if columns is None:
            stmt = sa.select(table)
        else:
            stmt = sa.select(*columns).select_from(table)

        if where is not None:
            stmt = stmt.where(where)

        if distinct:
            stmt = stmt.distinct()

        if order_by is not None:
            stmt = stmt.order_by(order_by)

        if limit > 0:
            stmt = stmt.limit(limit)

        return stmt
