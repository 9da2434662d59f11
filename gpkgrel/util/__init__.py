from gpkgrel.util import db
