#!/usr/bin/env python
# tests/test_db.py

import time
import unittest

from tests.mocks.config_mock import reset_database

from sqlalchemy import event
from sqlmodel import select
from database.db import engine, get_session
from database.models import Device


class TestSessions(unittest.TestCase):
    """Test cases for SQLite session locking."""

    def setUp(self):
        reset_database()
        self.statements = []
        event.listen(engine, "before_cursor_execute", self.record)

    def tearDown(self):
        event.remove(engine, "before_cursor_execute", self.record)

    def record(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    def test_write_session_takes_lock_at_begin(self):
        with get_session(immediate=True) as session:
            session.exec(select(Device)).all()

        self.assertIn("BEGIN IMMEDIATE", self.statements)

    def test_read_session_uses_deferred_begin(self):
        with get_session() as session:
            session.exec(select(Device)).all()

        self.assertIn("BEGIN", self.statements)
        self.assertNotIn("BEGIN IMMEDIATE", self.statements)

    def test_reads_do_not_wait_for_open_writer(self):
        with get_session(immediate=True) as writer:
            writer.add(Device(device_id="ESP32-W", name="writer", location="lab"))
            writer.flush()

            started = time.monotonic()
            with get_session() as reader:
                self.assertEqual(reader.exec(select(Device)).all(), [])
            self.assertLess(time.monotonic() - started, 1.0)

            writer.commit()

        with get_session() as reader:
            self.assertEqual([device.device_id for device in reader.exec(select(Device)).all()], ["ESP32-W"])


if __name__ == "__main__":
    unittest.main()
