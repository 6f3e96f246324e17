# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Thin wrapper around a DB-API 2.0 connection.

Configuration example::

    database:
        driver: sqlite3          # module name, default: sqlite3
        database: data/app.db    # passed to sqlite3.connect()

The connection is opened on first use. Applications register one
`DatabaseConnection` per request scope, so it is closed when the request
is finished.
"""

import importlib
from contextlib import contextmanager

from appwire import util

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

DEFAULT_DRIVER = "sqlite3"


# ========================================================================
# DatabaseConnection
# ========================================================================
class DatabaseConnection:
    def __init__(self, params=None):
        params = dict(params or {})
        self.driver_name = params.pop("driver", None) or DEFAULT_DRIVER
        self.connect_args = params
        self._driver = None
        self._conn = None

    def __repr__(self):
        state = "open" if self._conn is not None else "closed"
        return f"DatabaseConnection({self.driver_name!r}, {state})"

    @property
    def driver(self):
        """The DB-API module, e.g. `sqlite3`."""
        if self._driver is None:
            self._driver = importlib.import_module(self.driver_name)
        return self._driver

    @property
    def connection(self):
        """The DB-API connection (opened on first access)."""
        if self._conn is None:
            args = util.purge_passwords(self.connect_args)
            _logger.debug(f"Connecting {self.driver_name} {args}")
            self._conn = self.driver.connect(**self.connect_args)
        return self._conn

    @property
    def is_open(self):
        return self._conn is not None

    def execute(self, sql, params=()):
        """Execute a statement and return the cursor."""
        cursor = self.connection.cursor()
        cursor.execute(sql, params)
        return cursor

    def fetch_all(self, sql, params=()):
        """Return all result rows as list of dicts."""
        cursor = self.execute(sql, params)
        try:
            return [self._row_to_dict(cursor, row) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def fetch_one(self, sql, params=()):
        """Return the first result row as dict (None if there is no result)."""
        cursor = self.execute(sql, params)
        try:
            row = cursor.fetchone()
            return None if row is None else self._row_to_dict(cursor, row)
        finally:
            cursor.close()

    @staticmethod
    def _row_to_dict(cursor, row):
        names = [d[0] for d in cursor.description]
        return dict(zip(names, row))

    def commit(self):
        if self._conn is not None:
            self._conn.commit()

    def rollback(self):
        if self._conn is not None:
            self._conn.rollback()

    @contextmanager
    def transaction(self):
        """Commit on success, roll back if the block raises."""
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    def close(self):
        if self._conn is not None:
            _logger.debug(f"Closing {self}")
            conn, self._conn = self._conn, None
            conn.close()
