from gpkgrel.managers.related import (
    RelatedTablesManager,
    RelationshipOptions,
    EXTENSION_NAME,
)
