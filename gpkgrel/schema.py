'''
Schema

Static catalog tables of the container. These are created on demand (see
``GeoPackage.create_catalog_table``) rather than all at once, since the relations
catalog in particular may not exist until the first relationship is added.

Column layout here is part of the file format; names, nullability, defaults and unique
constraints must stay as they are.
'''
from enum import Enum

import sqlalchemy as sa


class ContentsDataType(str, Enum):
    '''
    Declared kind of a table in the content registry.
    '''
    FEATURES          = 'features'
    TILES             = 'tiles'
    ATTRIBUTES        = 'attributes'
    MEDIA             = 'media'
    SIMPLE_ATTRIBUTES = 'simple_attributes'


class ExtensionScope(str, Enum):
    READ_ONLY  = 'read-only'
    READ_WRITE = 'read-write'


CONTENTS_TABLE_NAME   = 'gpkg_contents'
EXTENSIONS_TABLE_NAME = 'gpkg_extensions'
RELATIONS_TABLE_NAME  = 'gpkgext_relations'

metadata = sa.MetaData()

contents_table = sa.Table(
    CONTENTS_TABLE_NAME,
    metadata,
    sa.Column('table_name',  sa.Text, primary_key=True),
    sa.Column('data_type',   sa.Text, nullable=False),
    sa.Column('identifier',  sa.Text, unique=True),
    sa.Column('description', sa.Text, server_default=''),
    # ISO-8601 with a 'T' separator and 'Z' suffix, kept as text
    sa.Column(
        'last_change',
        sa.Text,
        nullable=False,
        server_default=sa.text("(strftime('%Y-%m-%dT%H:%M:%fZ','now'))"),
    ),
    sa.Column('min_x',  sa.Float),
    sa.Column('min_y',  sa.Float),
    sa.Column('max_x',  sa.Float),
    sa.Column('max_y',  sa.Float),
    sa.Column('srs_id', sa.Integer),
)
extensions_table = sa.Table(
    EXTENSIONS_TABLE_NAME,
    metadata,
    sa.Column('table_name',     sa.Text),
    sa.Column('column_name',    sa.Text),
    sa.Column('extension_name', sa.Text, nullable=False),
    sa.Column('definition',     sa.Text, nullable=False),
    sa.Column('scope',          sa.Text, nullable=False),
    sa.UniqueConstraint('table_name', 'column_name', 'extension_name', name='ge_tce'),
)
relations_table = sa.Table(
    RELATIONS_TABLE_NAME,
    metadata,
    sa.Column('id',                     sa.Integer, primary_key=True, autoincrement=True),
    sa.Column('base_table_name',        sa.Text, nullable=False),
    sa.Column('base_primary_column',    sa.Text, nullable=False, server_default='id'),
    sa.Column('related_table_name',     sa.Text, nullable=False),
    sa.Column('related_primary_column', sa.Text, nullable=False, server_default='id'),
    sa.Column('relation_name',          sa.Text, nullable=False),
    sa.Column('mapping_table_name',     sa.Text, nullable=False, unique=True),
    sqlite_autoincrement=True,
)

table_map = {
    CONTENTS_TABLE_NAME:   contents_table,
    EXTENSIONS_TABLE_NAME: extensions_table,
    RELATIONS_TABLE_NAME:  relations_table,
}
