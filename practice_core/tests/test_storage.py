"""
Tests for the key-value storage adapters.
"""

import os
import shutil
import tempfile
import unittest
from unittest import mock

from sqlalchemy import create_engine

from practice_core.common.exceptions import StorageError
from practice_core.common.storage import FileStorage, InMemoryStorage, KeyValueStorage, SQLStorage
from practice_core.database.models import KeyValueEntry


class StorageContract:
    """Behaviour every storage adapter must share."""

    storage: KeyValueStorage

    def test_missing_key(self):
        self.assertIsNone(self.storage.get("missing"))
        self.assertFalse(self.storage.contains("missing"))

    def test_set_and_get(self):
        self.storage.set("progression:record", '{"level": 2}')
        self.assertEqual(self.storage.get("progression:record"), '{"level": 2}')
        self.assertTrue(self.storage.contains("progression:record"))

    def test_last_write_wins(self):
        self.storage.set("key", "first")
        self.storage.set("key", "second")
        self.assertEqual(self.storage.get("key"), "second")

    def test_remove(self):
        self.storage.set("key", "value")
        self.storage.remove("key")
        self.assertIsNone(self.storage.get("key"))
        # Removing again is not an error
        self.storage.remove("key")

    def test_unicode_value(self):
        self.storage.set("key", "时间 dictation")
        self.assertEqual(self.storage.get("key"), "时间 dictation")

    def test_rejects_non_string(self):
        with self.assertRaises(StorageError):
            self.storage.set("key", {"level": 1})


class TestInMemoryStorage(StorageContract, unittest.TestCase):

    def setUp(self):
        self.storage = InMemoryStorage()

    def test_initial_contents(self):
        storage = InMemoryStorage({"a": "1"})
        self.assertEqual(storage.get("a"), "1")
        self.assertEqual(storage.keys(), ["a"])
        storage.clear()
        self.assertEqual(storage.keys(), [])

    def test_name(self):
        self.assertEqual(self.storage.name, "memory")


class TestFileStorage(StorageContract, unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.mkdtemp()
        self.directory = os.path.join(self._tmp, "store")
        self.storage = FileStorage(self.directory)

    def tearDown(self):
        shutil.rmtree(self._tmp, ignore_errors=True)

    def test_one_file_per_key(self):
        self.storage.set("a:backup", "1")
        self.storage.set("a:migration_log", "[]")
        files = sorted(os.listdir(self.directory))
        self.assertEqual(len(files), 2)
        self.assertTrue(all(name.endswith(".json") for name in files))

    def test_persists_across_instances(self):
        self.storage.set("key", "value")
        self.assertEqual(FileStorage(self.directory).get("key"), "value")

    def test_failed_write_leaves_no_temp_file(self):
        self.storage.set("key", "old")
        with mock.patch("practice_core.common.storage.file.os.replace", side_effect=OSError("disk full")):
            with self.assertRaises(StorageError) as ctx:
                self.storage.set("key", "new")

        self.assertEqual(ctx.exception.key, "key")
        self.assertEqual(self.storage.get("key"), "old")
        self.assertEqual([name for name in os.listdir(self.directory) if name.endswith(".tmp")], [])


class TestSQLStorage(StorageContract, unittest.TestCase):

    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:")
        self.storage = SQLStorage(self.engine)

    def tearDown(self):
        self.engine.dispose()

    def test_rows_in_table(self):
        self.storage.set("key", "value")
        self.assertEqual(KeyValueEntry.__tablename__, "key_value_entries")
        with self.engine.connect() as connection:
            rows = connection.execute(KeyValueEntry.__table__.select()).fetchall()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].key, "key")

    def test_accepts_url(self):
        storage = SQLStorage("sqlite://")
        storage.set("key", "value")
        self.assertEqual(storage.get("key"), "value")

    def test_backend_failure_is_wrapped(self):
        storage = SQLStorage(create_engine("sqlite://"), create_tables=False)
        with self.assertRaises(StorageError) as context:
            storage.get("key")
        self.assertEqual(context.exception.key, "key")
        self.assertIsNotNone(context.exception.original_exception)
