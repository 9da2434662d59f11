'''
Database

Central object for defining storage protocol-specific interfaces. The database wraps up
central items for interacting with a container, namely its engine and the Accessor and
Manager objects built over it.

All interaction happens inside connection scopes:

.. code-block:: python

    with db.connect() as connection:   # read scope, rolled back on exit
        ...

    with db.begin() as connection:     # write scope, committed on success
        ...

Scopes must not be nested: a single-writer embedded store may hand the same underlying
connection to both, so open one scope and pass its connection down.
'''
import logging
from contextlib import contextmanager

from gpkgrel.accessor import Accessor
from gpkgrel.manager import Manager
from gpkgrel.config import Settings, settings as default_settings
from gpkgrel.errors import ReadOnlyViolation


logger = logging.getLogger(__name__)


class Database:
    accessor: type[Accessor] = Accessor
    manager:  type[Manager]  = Manager

    def __init__(self, resource, read_only=False, settings: Settings | None = None):
        '''
        Parameters:
            resource:  location of the container (file path or URL)
            read_only: open without write capability; mutating calls raise
                       ``ReadOnlyViolation``
            settings:  overrides the environment-derived defaults
        '''
        self.resource  = resource
        self.read_only = read_only
        self.settings  = settings or default_settings

        self._engine = None

        self._access = self.accessor(self)
        self._manage = self.manager(self)

    @property
    def engine(self):
        '''
        Database property to provide a singleton engine for DB interaction, created on
        first use.
        '''
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self):
        raise NotImplementedError

    @contextmanager
    def connect(self):
        with self.engine.connect() as connection:
            yield connection

    @contextmanager
    def begin(self):
        self.verify_writable()

        with self.engine.begin() as connection:
            yield connection

    @property
    def writable(self) -> bool:
        return not self.read_only

    def verify_writable(self):
        if not self.writable:
            raise ReadOnlyViolation(
                'Container was opened without write capability',
                resource=str(self.resource),
            )

    @property
    def access(self):
        return self._access

    @property
    def manage(self):
        return self._manage

    def dispose(self):
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
