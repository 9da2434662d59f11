'''
Relation

Loose wrapper for table-like objects handed to the container. Relations are named data
containers holding tuples of attributes (in the relational algebra sense); here they
serve as *definitions* of tables that may not exist yet in a GeoPackage, e.g. a media
table to be created while adding a relationship, or the join table backing one.

Relations are generic up to a type T, which ultimately serves as the base object for
Relation instances. We aren't attempting a general table abstraction; the heavy lifting
is off-loaded to true relation objects like SQLAlchemy tables, and this type only
exposes what the related tables machinery needs: a name, the attribute names, and a way
to materialize the definition over a connection.
'''

class Relation[T]:
    def __init__(self, name, obj: T):
        self.name = name
        self.obj  = obj

    def get_attributes(self):
        raise NotImplementedError

    def materialize(self, connection):
        '''
        Materialize the definition over the provided connection.
        '''
        raise NotImplementedError

    def __repr__(self):
        return f'{self.__class__.__name__}({self.name!r})'
