'''
Table definitions for the related tables extension.

Each definition owns a private ``sa.MetaData`` so the same table name can be defined
(and created, dropped, re-created) any number of times over the life of a process
without colliding in a shared metadata registry.

.. code-block:: python

    photos = MediaTable.create('photos', [sa.Column('caption', sa.Text)])
    mapping = MappingTable.create('parcels_photos')
'''
import sqlalchemy as sa

from gpkgrel.relation import Relation
from gpkgrel.schema import ContentsDataType


class SQLTable(Relation[sa.Table]):
    def get_attributes(self):
        return tuple(c.name for c in self.obj.columns)

    def materialize(self, connection):
        self.obj.create(connection)

    @property
    def columns(self):
        return self.obj.columns


class UserTable(SQLTable):
    '''
    A user data table registered in the content registry under ``data_type``.

    Parameters:
        name:      table name
        columns:   SQLAlchemy columns, not yet attached to any table
        data_type: content data type the table is registered with
        constraints: additional table-level constraints
    '''
    data_type: ContentsDataType = ContentsDataType.ATTRIBUTES

    def __init__(self, name, columns, data_type=None, constraints=()):
        if data_type is not None:
            self.data_type = ContentsDataType(data_type)

        super().__init__(name, sa.Table(name, sa.MetaData(), *columns, *constraints))

    @property
    def relation_name(self) -> str:
        '''
        Relation name implied when this table is the related side of a relationship.
        '''
        return self.data_type.value

    @property
    def pk_column_name(self) -> str | None:
        pk_cols = list(self.obj.primary_key.columns)
        return pk_cols[0].name if pk_cols else None

    @staticmethod
    def id_column(name='id'):
        return sa.Column(name, sa.Integer, primary_key=True, autoincrement=True)


class MappingTable(SQLTable):
    '''
    Generic join table backing one relationship: exactly two not-null integer columns
    and no primary key. Duplicate (base_id, related_id) pairs are allowed.
    '''
    BASE_ID    = 'base_id'
    RELATED_ID = 'related_id'

    @classmethod
    def create(cls, name):
        table = sa.Table(
            name,
            sa.MetaData(),
            sa.Column(cls.BASE_ID,    sa.Integer, nullable=False),
            sa.Column(cls.RELATED_ID, sa.Integer, nullable=False),
        )
        return cls(name, table)


class AttributesTable(UserTable):
    data_type = ContentsDataType.ATTRIBUTES

    @classmethod
    def create(cls, name, columns=None):
        return cls(name, [cls.id_column(), *(columns or [])])


class MediaTable(UserTable):
    data_type = ContentsDataType.MEDIA

    DATA         = 'data'
    CONTENT_TYPE = 'content_type'

    @classmethod
    def create(cls, name, columns=None):
        required = [
            cls.id_column(),
            sa.Column(cls.DATA,         sa.LargeBinary, nullable=False),
            sa.Column(cls.CONTENT_TYPE, sa.Text,        nullable=False),
        ]
        return cls(name, [*required, *(columns or [])])


class SimpleAttributesTable(UserTable):
    '''
    Attributes table restricted to simple values: every user column must be NOT NULL,
    and no column may hold binary data.
    '''
    data_type = ContentsDataType.SIMPLE_ATTRIBUTES

    @classmethod
    def create(cls, name, columns=None):
        columns = columns or []

        for column in columns:
            if column.nullable:
                raise ValueError(
                    f'Simple attributes column "{column.name}" on "{name}" must be NOT NULL'
                )
            if isinstance(column.type, sa.LargeBinary):
                raise ValueError(
                    f'Simple attributes column "{column.name}" on "{name}" cannot be a BLOB'
                )

        return cls(name, [cls.id_column(), *columns])


class TileTable(UserTable):
    data_type = ContentsDataType.TILES

    @classmethod
    def create(cls, name):
        return cls(
            name,
            [
                cls.id_column(),
                sa.Column('zoom_level',  sa.Integer,     nullable=False),
                sa.Column('tile_column', sa.Integer,     nullable=False),
                sa.Column('tile_row',    sa.Integer,     nullable=False),
                sa.Column('tile_data',   sa.LargeBinary, nullable=False),
            ],
            constraints=[sa.UniqueConstraint('zoom_level', 'tile_column', 'tile_row')],
        )
