#!/usr/bin/env python
# tests/test_sync_handler.py

import unittest
from unittest.mock import patch
from concurrent.futures import ThreadPoolExecutor

from tests.mocks.config_mock import reset_database, TEST_SECRET

from app.auth import CredentialIssuer
from app.command_queue import CommandQueue
from app.errors import ValidationError
from app.readings import ReadingStore
from app.registry import DeviceRegistry
from app.sync import SyncHandler


def reading(zone_id, moisture, **overrides):
    payload = {"zoneId": zone_id, "soilMoisture": moisture, "temperature": 21, "humidity": 55, "pressure": 1012}
    payload.update(overrides)
    return payload


class TestSyncHandler(unittest.TestCase):
    """Test cases for SyncHandler."""

    def setUp(self):
        reset_database()
        self.registry = DeviceRegistry()
        self.readings = ReadingStore()
        self.queue = CommandQueue()
        self.issuer = CredentialIssuer(TEST_SECRET)
        self.handler = SyncHandler(self.issuer, self.registry, self.readings, self.queue)
        self.device, self.token = self.handler.bootstrap("ESP32-001")

    def test_bootstrap(self):
        self.assertEqual(self.issuer.verify(self.token), "ESP32-001")
        self.assertTrue(self.registry.get("ESP32-001").is_online)

    def test_bootstrap_requires_device_id(self):
        with self.assertRaises(ValidationError):
            self.handler.bootstrap("")
        with self.assertRaises(ValidationError):
            self.handler.bootstrap(None)

    def test_low_moisture_delivers_irrigation(self):
        commands = self.handler.sync(self.device, [reading(1, 20)])

        self.assertEqual(len(commands), 1)
        self.assertEqual(commands[0].zone_id, 1)
        self.assertEqual(commands[0].command_type, "irrigate")
        self.assertEqual(commands[0].parameters, {"duration": 300, "force": False})
        self.assertEqual(commands[0].status, "delivered")

    def test_second_sync_does_not_duplicate(self):
        self.handler.sync(self.device, [reading(1, 20)])
        self.assertEqual(self.handler.sync(self.device, [reading(1, 18)]), [])
        self.assertEqual(len(self.queue.list_commands("ESP32-001")), 1)

    def test_threshold_boundary(self):
        """Moisture equal to the threshold does not trigger, one below does."""
        self.assertEqual(self.handler.sync(self.device, [reading(1, 30)]), [])
        commands = self.handler.sync(self.device, [reading(1, 29)])
        self.assertEqual([command.zone_id for command in commands], [1])

    def test_inactive_zone_is_ignored(self):
        self.registry.get_zone(self.device, 2).is_active = False

        self.assertEqual(self.handler.sync(self.device, [reading(2, 1)]), [])

    def test_unknown_zone_tolerated(self):
        commands = self.handler.sync(self.device, [reading(7, 0)])

        self.assertEqual(commands, [])
        self.assertEqual(len(self.readings.history("ESP32-001", zone_id=7)), 1)
        self.assertEqual(self.queue.list_commands("ESP32-001"), [])

    def test_malformed_zone_does_not_abort_batch(self):
        batch = [
            {"zoneId": 1, "temperature": 21},
            "garbage",
            reading(3, 10),
        ]
        commands = self.handler.sync(self.device, batch)

        self.assertEqual([command.zone_id for command in commands], [3])
        self.assertEqual(len(self.readings.history("ESP32-001")), 1)

    def test_non_finite_reading_skips_only_its_zone(self):
        batch = [reading(1, 20), reading(2, 10, temperature=float("nan")), reading(3, float("inf"))]

        commands = self.handler.sync(self.device, batch)

        self.assertEqual([command.zone_id for command in commands], [1])
        self.assertEqual([r.zone_id for r in self.readings.history("ESP32-001")], [1])

    def test_out_of_range_zone_id_skips_only_its_zone(self):
        batch = [reading(10 ** 23, 5), reading(1, 20)]

        commands = self.handler.sync(self.device, batch)

        self.assertEqual([command.zone_id for command in commands], [1])
        self.assertEqual(len(self.readings.history("ESP32-001")), 1)

    def test_unusable_irrigation_status_keeps_reading(self):
        status = {"1": {"isIrrigating": True, "duration": 12.5, "reason": "because"}}

        commands = self.handler.sync(self.device, [reading(1, 20)], irrigation_status=status)

        self.assertEqual([command.zone_id for command in commands], [1])
        stored = self.readings.latest("ESP32-001", 1)
        self.assertEqual(stored.soil_moisture, 20)
        self.assertEqual(stored.irrigation_reason, "none")

    def test_sensor_data_must_be_a_list(self):
        with self.assertRaises(ValidationError):
            self.handler.sync(self.device, {"zoneId": 1})
        with self.assertRaises(ValidationError):
            self.handler.sync(self.device, [], irrigation_status=["nope"])

    def test_missing_sensor_data_still_drains(self):
        self.queue.enqueue_manual("ESP32-001", 2, "stop")

        commands = self.handler.sync(self.device)
        self.assertEqual([command.command_type for command in commands], ["stop"])

    def test_readings_processed_in_order(self):
        with patch.object(self.queue, "enqueue_if_absent", wraps=self.queue.enqueue_if_absent) as enqueue:
            self.handler.sync(self.device, [reading(3, 5), reading(1, 5), reading(2, 5)])

        self.assertEqual([call.args[1] for call in enqueue.call_args_list], [3, 1, 2])

    def test_concurrent_syncs_create_one_command(self):
        with ThreadPoolExecutor(max_workers=6) as pool:
            batches = list(pool.map(lambda _: self.handler.sync(self.device, [reading(1, 10)]), range(6)))

        delivered = [command for batch in batches for command in batch]
        self.assertEqual(len(delivered), 1)
        self.assertEqual(len(self.queue.list_commands("ESP32-001")), 1)


if __name__ == "__main__":
    unittest.main()
