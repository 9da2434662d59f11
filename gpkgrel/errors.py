'''
Errors

Exception taxonomy for the related tables extension. Every error carries the name of the
operation that raised it along with whatever table names and ids were involved, rendered
into the message so a failure can be diagnosed from the traceback alone.

Raw SQLAlchemy errors are translated at the Manager boundary with ``store_operation``:

.. code-block:: python

    with store_operation('remove_relationships', table=table):
        ...

Anything raised by the underlying store inside the block surfaces as a
``StoreFailure`` chained to the original exception.
'''
from contextlib import contextmanager

import sqlalchemy as sa


class RelatedTablesError(Exception):
    '''
    Base error for related tables operations.

    Parameters:
        message:   human readable description
        operation: name of the operation that failed
        context:   table names, ids, etc involved in the failure
    '''
    def __init__(self, message, operation=None, **context):
        self.operation = operation
        self.context   = context

        detail = ', '.join(f'{k}={v!r}' for k, v in context.items())
        if operation is not None:
            message = f'[{operation}] {message}'
        if detail:
            message = f'{message} ({detail})'

        super().__init__(message)


class TableNotFound(RelatedTablesError):
    pass


class NoPrimaryKey(RelatedTablesError):
    pass


class RelationTypeMismatch(RelatedTablesError):
    pass


class DuplicateMapping(RelatedTablesError):
    '''
    Raised when a catalog insert collides on ``mapping_table_name``.
    '''
    pass


class UnresolvableRelationType(RelatedTablesError):
    pass


class ReadOnlyViolation(RelatedTablesError):
    pass


class StoreFailure(RelatedTablesError):
    '''
    Opaque failure from the underlying store, wrapped with operation context. The
    original exception is always available as ``__cause__``.
    '''
    pass


@contextmanager
def store_operation(operation, message=None, **context):
    '''
    Re-raise store errors inside the block as ``StoreFailure``. Errors already in the
    related tables taxonomy pass through untouched.
    '''
    try:
        yield
    except sa.exc.SQLAlchemyError as e:
        raise StoreFailure(
            message or f'Store failure: {e.__class__.__name__}',
            operation=operation,
            **context,
        ) from e
