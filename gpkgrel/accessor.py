'''
Accessor

Provides access to one kind of table in a container through a supported set of
operations. Methods are either general, high-level SQL wrappers, or convenience
functions for queries specific to the accessor's table.

Accessors never open connections on their own; the active connection is passed as the
first argument so a Manager can run several accessor calls inside one transaction.
'''
from abc import ABCMeta


class Accessor[D: 'Database'](metaclass=ABCMeta):
    '''
    Access wrapper class for table-specific queries.

    Parameters:
        database: container the accessed tables live in; consulted for write
                  capability and table existence
    '''
    def __init__(self, database: D):
        self.database = database
