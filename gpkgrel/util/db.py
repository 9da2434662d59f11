'''
Example usage for this file's utilities:

# get SA engine, creating folder hierarchy to provided DB path
engine = db.get_engine(<path>)

# iterate a SELECT with a forward-only cursor, closed on every exit path
with engine.connect() as connection:
    with db.cursor(connection, sa.select(<table>)) as res:
        for row in res.mappings():
            ...

# convert raw results to dictionaries, keys corresponding to col names
select_dicts = db.result_dicts(connection.execute(sa.select(<table>)))

# schema introspection against sqlite_master
db.table_or_view_exists(connection, 'parcels')
db.primary_key_column_names(connection, 'parcels')
'''
import logging
from pathlib import Path
from contextlib import contextmanager

import sqlalchemy as sa


logger = logging.getLogger(__name__)

def get_engine(db_path, echo=False, read_only=False):
    '''
    Create a SQLite engine for the provided path (or full ``sqlite:`` URL).

    Transactional DDL: pysqlite neither begins a transaction before CREATE/DROP nor
    holds one across them by default. The listeners below hand transaction control to
    SQLAlchemy entirely, so ``engine.begin()`` blocks cover DDL and DML alike and roll
    back as a unit.

    Parameters:
        db_path:   file path, or URL starting with ``sqlite:``
        echo:      echo emitted SQL
        read_only: open file databases with ``mode=ro``
    '''
    db_path = str(db_path)

    if db_path.startswith('sqlite:'):
        url = db_path
    elif read_only:
        url = f'sqlite:///file:{Path(db_path).resolve()}?mode=ro&uri=true'
    else:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        url = f'sqlite:///{db_path}'

    engine = sa.create_engine(url, echo=echo)

    @sa.event.listens_for(engine, 'connect')
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @sa.event.listens_for(engine, 'begin')
    def _emit_begin(connection):
        connection.exec_driver_sql('BEGIN')

    return engine

def result_dicts(results):
    '''
    Parse SQLAlchemy results into Python dicts. Leverages mappings to associate full
    column name context.
    '''
    return [dict(r) for r in results.mappings().all()]

@contextmanager
def cursor(connection, stmt, bind_params=None):
    '''
    Execute a statement and yield its result as a forward-only cursor. The cursor is
    closed when the block exits, including on errors raised mid-iteration.
    '''
    res = connection.execute(stmt, bind_params)
    try:
        yield res
    finally:
        res.close()

def quote(connection, identifier):
    return connection.dialect.identifier_preparer.quote(identifier)

def _master_exists(connection, name, types):
    stmt = sa.text(
        'SELECT COUNT(*) FROM sqlite_master WHERE name = :name AND type IN :types'
    ).bindparams(sa.bindparam('types', expanding=True))

    return connection.execute(stmt, {'name': name, 'types': list(types)}).scalar() > 0

def table_exists(connection, name):
    return _master_exists(connection, name, ('table',))

def table_or_view_exists(connection, name):
    return _master_exists(connection, name, ('table', 'view'))

def primary_key_column_names(connection, table: str) -> list[str]:
    '''
    Primary key columns declared on a table, in declaration order. Views and tables
    without a declared key yield an empty list.
    '''
    pk = sa.inspect(connection).get_pk_constraint(table)
    return list(pk.get('constrained_columns') or [])

def drop_table(connection, table: str):
    connection.exec_driver_sql(f'DROP TABLE IF EXISTS {quote(connection, table)}')

def drop_table_quietly(connection, table: str):
    '''
    Best-effort drop used during cleanup; failures are logged rather than raised so the
    error that triggered the cleanup is the one that propagates.
    '''
    try:
        drop_table(connection, table)
    except sa.exc.SQLAlchemyError as e:
        logger.warning(f'Cleanup drop of table "{table}" failed: {e}')
        return False

    return True
