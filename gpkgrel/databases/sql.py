'''
SQL databases

``GeoPackage`` is the container the related tables machinery runs against: a SQLite
file holding the content registry, the extension ledger and any user tables. It exposes
the table-level capabilities the manager consumes (existence checks, content data type
lookups, table creation/drops, primary key introspection, content rows and raw
cursors); everything else goes through ``access`` and ``manage``.
'''
import logging
from contextlib import contextmanager

import sqlalchemy as sa

from gpkgrel import util
from gpkgrel.database import Database
from gpkgrel.relation import Relation
from gpkgrel.accessors.sql import SQLAccessor
from gpkgrel.managers.related import RelatedTablesManager
from gpkgrel.schema import (
    ContentsDataType,
    contents_table,
    table_map,
    CONTENTS_TABLE_NAME,
    EXTENSIONS_TABLE_NAME,
)


logger = logging.getLogger(__name__)


class SQLDatabase(Database):
    accessor = SQLAccessor

    def _create_engine(self):
        return util.db.get_engine(
            self.resource,
            echo=self.settings.echo,
            read_only=self.read_only,
        )

    def table_exists(self, connection, name: str) -> bool:
        return util.db.table_exists(connection, name)

    def table_or_view_exists(self, connection, name: str) -> bool:
        return util.db.table_or_view_exists(connection, name)

    def create_table(self, connection, definition: Relation):
        self.verify_writable()

        definition.materialize(connection)
        logger.debug(f'Created table "{definition.name}"')

    def drop_table(self, connection, name: str):
        self.verify_writable()

        util.db.drop_table(connection, name)
        logger.debug(f'Dropped table "{name}"')

    def primary_key_column_name(self, connection, table: str) -> str | None:
        columns = util.db.primary_key_column_names(connection, table)
        return columns[0] if columns else None

    @contextmanager
    def open_cursor(self, connection, sql: str, params: dict | None = None):
        '''
        Forward-only cursor over a raw SQL statement, closed when the block exits.
        '''
        with util.db.cursor(connection, sa.text(sql), params) as res:
            yield res


class GeoPackage(SQLDatabase):
    manager = RelatedTablesManager

    def create_catalog_table(self, connection, name: str) -> bool:
        '''
        Create one of the static catalog tables if absent.

        Returns:
            True if the table was created by this call
        '''
        if self.table_exists(connection, name):
            return False

        self.verify_writable()
        table_map[name].create(connection)
        logger.info(f'Created catalog table "{name}"')

        return True

    def create_required(self):
        '''
        Create the mandatory content registry and extension ledger tables.
        '''
        with self.begin() as connection:
            for name in (CONTENTS_TABLE_NAME, EXTENSIONS_TABLE_NAME):
                self.create_catalog_table(connection, name)

    def create_content_row(self, connection, row: dict):
        self.verify_writable()
        self.create_catalog_table(connection, CONTENTS_TABLE_NAME)

        self.access.insert(connection, contents_table, row)
        logger.debug(f'Registered content row for "{row["table_name"]}" ({row["data_type"]})')

    def read_content_row(self, connection, table: str) -> dict | None:
        if not self.table_exists(connection, CONTENTS_TABLE_NAME):
            return None

        return self.access.select_one(
            connection,
            contents_table,
            where=contents_table.c.table_name == table,
        )

    def table_data_type(self, connection, table: str) -> str | None:
        '''
        Content data type the table is registered with, or None when unregistered.
        '''
        row = self.read_content_row(connection, table)
        return row['data_type'] if row is not None else None

    def table_data_type_equals(self, connection, table: str, data_type) -> bool:
        return self.table_data_type(connection, table) == ContentsDataType(data_type).value
