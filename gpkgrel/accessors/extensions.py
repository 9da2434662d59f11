'''
Extension ledger access (``gpkg_extensions``).

Records which extension applies to which table or column of the container. Table-scoped
records leave ``column_name`` NULL. Note that SQLite UNIQUE constraints treat NULLs as
distinct, so the (table_name, column_name, extension_name) constraint alone would not
stop duplicate table-scoped records; ``get_or_create`` looks up before inserting.
'''
import logging
from dataclasses import dataclass

import sqlalchemy as sa

from gpkgrel import util
from gpkgrel.schema import extensions_table, ExtensionScope, EXTENSIONS_TABLE_NAME
from gpkgrel.accessors.sql import SQLAccessor


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtensionRecord:
    extension_name: str
    table_name:     str | None
    column_name:    str | None
    definition:     str
    scope:          ExtensionScope

    @classmethod
    def from_row(cls, row: dict) -> 'ExtensionRecord':
        return cls(
            extension_name=row['extension_name'],
            table_name=row['table_name'],
            column_name=row['column_name'],
            definition=row['definition'],
            scope=ExtensionScope(row['scope']),
        )


class ExtensionsAccessor(SQLAccessor):
    table = extensions_table

    def is_table_exists(self, connection) -> bool:
        return util.db.table_exists(connection, EXTENSIONS_TABLE_NAME)

    def verify_writable(self):
        '''
        Guard for mutating calls; raises ``ReadOnlyViolation`` on read-only containers.
        '''
        self.database.verify_writable()

    def _match(self, extension_name, table_name=None, column_name=None):
        c = self.table.c
        # `== None` compiles to IS NULL
        return sa.and_(
            c.extension_name == extension_name,
            c.table_name     == table_name,
            c.column_name    == column_name,
        )

    def get(
        self,
        connection,
        extension_name: str,
        table_name:     str | None = None,
        column_name:    str | None = None,
    ) -> ExtensionRecord | None:
        if not self.is_table_exists(connection):
            return None

        row = self.select_one(
            connection,
            self.table,
            where=self._match(extension_name, table_name, column_name),
        )
        return ExtensionRecord.from_row(row) if row is not None else None

    def get_extensions(
        self,
        connection,
        extension_name: str,
        table_name:     str | None = None,
    ) -> list[ExtensionRecord]:
        '''
        All records for an extension, optionally narrowed to one table (any column).
        '''
        if not self.is_table_exists(connection):
            return []

        where = self.table.c.extension_name == extension_name
        if table_name is not None:
            where = sa.and_(where, self.table.c.table_name == table_name)

        return [
            ExtensionRecord.from_row(row)
            for row in self.select(connection, self.table, where=where)
        ]

    def has_extension(
        self,
        connection,
        extension_name: str,
        table_name:     str | None = None,
        column_name:    str | None = None,
    ) -> bool:
        return self.get(connection, extension_name, table_name, column_name) is not None

    def get_or_create(
        self,
        connection,
        extension_name: str,
        table_name:     str | None,
        column_name:    str | None,
        definition:     str,
        scope:          ExtensionScope,
    ) -> ExtensionRecord:
        '''
        Return the matching record, inserting it (and the ledger table itself) when
        absent. Never raises on an existing record.
        '''
        self.verify_writable()

        if not self.is_table_exists(connection):
            extensions_table.create(connection)
            logger.info(f'Created extension ledger table "{EXTENSIONS_TABLE_NAME}"')

        record = self.get(connection, extension_name, table_name, column_name)
        if record is not None:
            return record

        record = ExtensionRecord(
            extension_name=extension_name,
            table_name=table_name,
            column_name=column_name,
            definition=definition,
            scope=ExtensionScope(scope),
        )
        self.insert(
            connection,
            self.table,
            {
                'extension_name': record.extension_name,
                'table_name':     record.table_name,
                'column_name':    record.column_name,
                'definition':     record.definition,
                'scope':          record.scope.value,
            },
        )
        logger.debug(
            f'Registered extension "{extension_name}" for table "{table_name}"'
            + (f', column "{column_name}"' if column_name else '')
        )

        return record

    def delete_by_extension(self, connection, extension_name: str) -> int:
        self.verify_writable()

        if not self.is_table_exists(connection):
            return 0

        return self.delete(
            connection,
            self.table,
            where=self.table.c.extension_name == extension_name,
        )
