# (c) 2024 AppWire contributors
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""Unit tests for appwire.database (using sqlite3)"""

import os
import shutil
import tempfile
import unittest

from appwire.database import DatabaseConnection


class DatabaseTest(unittest.TestCase):
    def setUp(self):
        self.folder = tempfile.mkdtemp(prefix="appwire-db-")
        self.db_path = os.path.join(self.folder, "test.db")
        self.db = DatabaseConnection({"driver": "sqlite3", "database": self.db_path})
        self.db.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
        self.db.commit()

    def tearDown(self):
        self.db.close()
        shutil.rmtree(self.folder, ignore_errors=True)

    def testPreconditions(self):
        """Environment must be set."""
        self.assertTrue(
            __debug__, "__debug__ must be True, otherwise asserts are ignored"
        )

    def testLazyConnect(self):
        db = DatabaseConnection({"database": ":memory:"})
        assert db.driver_name == "sqlite3"
        assert not db.is_open
        # commit/rollback/close do not connect
        db.commit()
        db.rollback()
        db.close()
        assert not db.is_open
        assert db.fetch_one("SELECT 1 AS one") == {"one": 1}
        assert db.is_open
        db.close()
        assert not db.is_open

    def testFetch(self):
        db = self.db
        db.execute("INSERT INTO users (name) VALUES (?)", ("joe",))
        db.execute("INSERT INTO users (name) VALUES (?)", ("ann",))
        assert db.fetch_all("SELECT id, name FROM users ORDER BY id") == [
            {"id": 1, "name": "joe"},
            {"id": 2, "name": "ann"},
        ]
        assert db.fetch_one("SELECT name FROM users WHERE id = ?", (2,)) == {
            "name": "ann"
        }
        assert db.fetch_one("SELECT name FROM users WHERE id = ?", (3,)) is None

    def testTransaction(self):
        db = self.db
        with db.transaction():
            db.execute("INSERT INTO users (name) VALUES (?)", ("joe",))

        with self.assertRaises(RuntimeError):
            with db.transaction():
                db.execute("INSERT INTO users (name) VALUES (?)", ("ann",))
                raise RuntimeError("abort")

        # A second connection only sees committed data
        other = DatabaseConnection({"database": self.db_path})
        try:
            rows = other.fetch_all("SELECT name FROM users")
        finally:
            other.close()
        assert rows == [{"name": "joe"}]

    def testUnknownDriver(self):
        db = DatabaseConnection({"driver": "no_such_db_driver"})
        self.assertRaises(ImportError, db.execute, "SELECT 1")


if __name__ == "__main__":
    unittest.main()
