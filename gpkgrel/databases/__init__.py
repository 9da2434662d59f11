from gpkgrel.databases.sql import SQLDatabase, GeoPackage
