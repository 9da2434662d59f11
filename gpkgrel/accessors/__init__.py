from gpkgrel.accessors.sql import SQLAccessor
from gpkgrel.accessors.mapping import MappingAccessor, MappingRow
from gpkgrel.accessors.relations import RelationsAccessor
from gpkgrel.accessors.extensions import ExtensionsAccessor, ExtensionRecord
