'''
Manager

Coordinates mutating operations over a database's tables. Where Accessors expose
operations on a single kind of table, Managers sequence calls across several of them
and own the transaction scope those calls run in.
'''
from abc import ABCMeta


class Manager[D: 'Database'](metaclass=ABCMeta):
    '''
    Parameters:
        database: container the managed tables live in
    '''
    def __init__(self, database: D):
        self.database = database
