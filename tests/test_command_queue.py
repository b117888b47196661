#!/usr/bin/env python
# tests/test_command_queue.py

import unittest
from concurrent.futures import ThreadPoolExecutor

from tests.mocks.config_mock import reset_database

from sqlmodel import select
from database.db import get_session
from database.models import Command, CommandType
from app.command_queue import CommandQueue, build_parameters
from app.errors import ValidationError


def all_commands():
    with get_session() as session:
        return session.exec(select(Command).order_by(Command.id)).all()


class TestBuildParameters(unittest.TestCase):
    """Test cases for per-command-type parameters."""

    def test_irrigate(self):
        self.assertEqual(build_parameters(CommandType.irrigate, {"duration": "120", "newThreshold": 5}),
                         {"duration": 120, "force": False})
        self.assertEqual(build_parameters(CommandType.irrigate, None), {"duration": 0, "force": False})

    def test_config_update(self):
        self.assertEqual(build_parameters(CommandType.config_update, {"newThreshold": 42, "duration": 9}),
                         {"newThreshold": 42})

    def test_stop_carries_nothing(self):
        self.assertEqual(build_parameters(CommandType.stop, {"duration": 60}), {})
        self.assertEqual(build_parameters(CommandType.emergency_stop, {}), {})

    def test_invalid(self):
        with self.assertRaises(ValidationError):
            build_parameters(CommandType.irrigate, {"duration": "long"})


class TestCommandQueue(unittest.TestCase):
    """Test cases for CommandQueue."""

    def setUp(self):
        reset_database()
        self.queue = CommandQueue()

    def test_enqueue_if_absent_creates_once(self):
        self.assertTrue(self.queue.enqueue_if_absent("ESP32-001", 1, parameters={"duration": 300}))
        self.assertFalse(self.queue.enqueue_if_absent("ESP32-001", 1, parameters={"duration": 300}))

        commands = all_commands()
        self.assertEqual(len(commands), 1)
        self.assertEqual(commands[0].command_type, "irrigate")
        self.assertEqual(commands[0].status, "pending")
        self.assertEqual(commands[0].created_by, "system")
        self.assertEqual(commands[0].parameters, {"duration": 300, "force": False})

    def test_enqueue_if_absent_is_scoped_per_zone(self):
        self.assertTrue(self.queue.enqueue_if_absent("ESP32-001", 1))
        self.assertTrue(self.queue.enqueue_if_absent("ESP32-001", 2))
        self.assertTrue(self.queue.enqueue_if_absent("ESP32-002", 1))

    def test_delivered_command_still_blocks(self):
        self.queue.enqueue_if_absent("ESP32-001", 1)
        self.queue.drain_pending("ESP32-001")

        self.assertFalse(self.queue.enqueue_if_absent("ESP32-001", 1))

    def test_manual_command_blocks_automatic(self):
        self.queue.enqueue_manual("ESP32-001", 1, "stop")

        self.assertFalse(self.queue.enqueue_if_absent("ESP32-001", 1))

    def test_closed_command_does_not_block(self):
        self.queue.enqueue_if_absent("ESP32-001", 1)
        with get_session() as session:
            command = session.exec(select(Command)).one()
            command.status = "executed"
            session.add(command)
            session.commit()

        self.assertTrue(self.queue.enqueue_if_absent("ESP32-001", 1))

    def test_concurrent_enqueue_creates_exactly_one(self):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(
                lambda _: self.queue.enqueue_if_absent("ESP32-001", 1, parameters={"duration": 300}),
                range(16),
            ))

        self.assertEqual(results.count(True), 1)
        self.assertEqual(len(all_commands()), 1)

    def test_enqueue_manual_always_inserts(self):
        first = self.queue.enqueue_manual("ESP32-001", "1", "stop")
        second = self.queue.enqueue_manual("ESP32-001", 1, "stop")

        self.assertNotEqual(first.id, second.id)
        self.assertEqual(first.zone_id, 1)
        self.assertEqual(first.created_by, "user")
        self.assertEqual(first.parameters, {})

    def test_enqueue_manual_rejects_unknown_type(self):
        with self.assertRaises(ValidationError):
            self.queue.enqueue_manual("ESP32-001", 1, "water_everything")
        with self.assertRaises(ValidationError):
            self.queue.enqueue_manual("ESP32-001", "first", "stop")
        self.assertEqual(all_commands(), [])

    def test_enqueue_manual_rejects_unstorable_values(self):
        for zone_id in (2 ** 63, -2 ** 63 - 1, float("inf"), float("nan")):
            with self.assertRaises(ValidationError):
                self.queue.enqueue_manual("ESP32-001", zone_id, "stop")
        with self.assertRaises(ValidationError):
            self.queue.enqueue_manual("ESP32-001", 1, "config_update", {"newThreshold": float("nan")})
        self.assertEqual(all_commands(), [])

    def test_drain_oldest_first_and_marks_delivered(self):
        a = self.queue.enqueue_manual("ESP32-001", 1, "irrigate", {"duration": 60, "force": True})
        b = self.queue.enqueue_manual("ESP32-001", 2, "stop")
        self.queue.enqueue_manual("ESP32-002", 1, "stop")

        drained = self.queue.drain_pending("ESP32-001")

        self.assertEqual([command.id for command in drained], [a.id, b.id])
        self.assertTrue(all(command.status == "delivered" for command in drained))
        self.assertTrue(all(command.delivered_at is not None for command in drained))
        self.assertEqual(self.queue.drain_pending("ESP32-001"), [])

        stored = {command.id: command for command in all_commands()}
        self.assertEqual(stored[a.id].status, "delivered")
        self.assertEqual(len(self.queue.list_commands("ESP32-002", status="pending")), 1)

    def test_concurrent_drains_are_disjoint(self):
        created = {self.queue.enqueue_manual("ESP32-001", zone, "stop").id for zone in range(1, 21)}

        with ThreadPoolExecutor(max_workers=4) as pool:
            batches = list(pool.map(lambda _: self.queue.drain_pending("ESP32-001"), range(4)))

        delivered_ids = [command.id for batch in batches for command in batch]
        self.assertEqual(len(delivered_ids), len(set(delivered_ids)))
        self.assertEqual(set(delivered_ids), created)

    def test_list_commands(self):
        for zone in (1, 2, 3):
            self.queue.enqueue_manual("ESP32-001", zone, "stop")
        self.queue.drain_pending("ESP32-001")
        newest = self.queue.enqueue_manual("ESP32-001", 1, "emergency_stop")

        listed = self.queue.list_commands("ESP32-001", limit=2)
        self.assertEqual(len(listed), 2)
        self.assertEqual(listed[0].id, newest.id)
        self.assertEqual(len(self.queue.list_commands("ESP32-001", status="delivered")), 3)
        self.assertEqual(len(self.queue.list_commands("ESP32-001", status="pending")), 1)


if __name__ == "__main__":
    unittest.main()
