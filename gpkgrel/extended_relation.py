'''
Extended relations

Value types for relationships recorded in the ``gpkgext_relations`` catalog.

Relation kinds form a closed tagged union: one of the five reserved ``RelationType``
members, or a ``CustomRelation`` carrying an ``x-{author}_{name}`` style name. Names read
back from the catalog are parsed into the union with ``parse_relation`` so validation
and resolver dispatch never compare raw strings.
'''
from enum import Enum
from dataclasses import dataclass, asdict

from gpkgrel.schema import ContentsDataType


def build_relation_name(author: str, name: str) -> str:
    return f'x-{author}_{name}'


class RelationType(Enum):
    FEATURES          = 'features'
    TILES             = 'tiles'
    ATTRIBUTES        = 'attributes'
    MEDIA             = 'media'
    SIMPLE_ATTRIBUTES = 'simple_attributes'

    @property
    def relation_name(self) -> str:
        return self.value

    @property
    def data_type(self) -> ContentsDataType:
        '''
        Content data type the related table of this relation type must be registered
        with.
        '''
        return ContentsDataType(self.value)


@dataclass(frozen=True)
class CustomRelation:
    relation_name: str

    @classmethod
    def build(cls, author: str, name: str) -> 'CustomRelation':
        return cls(build_relation_name(author, name))


RelationKind = RelationType | CustomRelation


def parse_relation(relation: 'RelationKind | str') -> RelationKind:
    '''
    Normalize a relation given as a member of the union or as a raw name.
    '''
    if isinstance(relation, RelationKind):
        return relation

    try:
        return RelationType(relation)
    except ValueError:
        return CustomRelation(relation)


@dataclass(frozen=True)
class ExtendedRelation:
    '''
    One row of the relations catalog. Instances are immutable; the ``id`` is assigned
    by the catalog on insert and is ``None`` until then.
    '''
    base_table_name:        str
    related_table_name:     str
    relation_name:          str
    mapping_table_name:     str
    base_primary_column:    str = 'id'
    related_primary_column: str = 'id'
    id:                     int | None = None

    @property
    def relation_type(self) -> RelationKind:
        return parse_relation(self.relation_name)

    def as_row(self) -> dict:
        row = asdict(self)
        if row['id'] is None:
            row.pop('id')
        return row
