#!/usr/bin/env python3
"""
ESP32 Device Simulator for Smart Irrigation Testing
Simulates an ESP32 irrigation node with three zones that syncs over HTTP
"""

import os
import sys
import time
import random
import requests
from datetime import datetime
from dataclasses import dataclass
from typing import Optional

# Configuration
DEVICE_ID = os.getenv("SIMULATOR_DEVICE_ID", "ESP32-001")
SERVER_URL = os.getenv("SIMULATOR_SERVER_URL", "http://localhost:5000/api")
SYNC_INTERVAL = int(os.getenv("SIMULATOR_SYNC_INTERVAL", "10000"))      # milliseconds
API_TIMEOUT = int(os.getenv("API_TIMEOUT", "10000"))                    # milliseconds
RETRY_ATTEMPTS = int(os.getenv("API_RETRY_ATTEMPTS", "3"))
ZONE_IDS = (1, 2, 3)
DEFAULT_IRRIGATION_DURATION = 300                                       # seconds


def random_between(low, high):
    return round(random.uniform(low, high), 2)


@dataclass
class ZoneState:
    soil_moisture: float
    temperature: float
    humidity: float
    pressure: float
    light_level: float
    is_irrigating: bool = False
    duration: int = 0
    reason: str = "none"
    started_at: Optional[float] = None

    @classmethod
    def random(cls):
        return cls(
            soil_moisture=random_between(20, 80),
            temperature=random_between(18, 35),
            humidity=random_between(40, 90),
            pressure=random_between(1000, 1030),
            light_level=random_between(0, 1000),
        )

    def start_irrigation(self, duration, reason, now):
        self.is_irrigating = True
        self.duration = duration
        self.reason = reason
        self.started_at = now

    def stop_irrigation(self):
        self.is_irrigating = False
        self.duration = 0
        self.reason = "none"
        self.started_at = None


class ESP32Simulator:
    def __init__(self, device_id=DEVICE_ID, server_url=SERVER_URL, clock=time.time):
        self.device_id = device_id
        self.server_url = server_url.rstrip("/")
        self.clock = clock
        self.token = None
        self.configuration = None
        self.sync_interval = SYNC_INTERVAL
        self.timeout = API_TIMEOUT / 1000
        self.zones = {zone_id: ZoneState.random() for zone_id in ZONE_IDS}
        self.is_running = False

    def post(self, path, payload, headers=None):
        """POST with bounded retries; returns the decoded body or raises the last error."""
        last_error = None
        for attempt in range(1, RETRY_ATTEMPTS + 1):
            try:
                response = requests.post(f"{self.server_url}{path}", json=payload, headers=headers, timeout=self.timeout)
                response.raise_for_status()
                return response.json()
            except requests.HTTPError:
                raise
            except requests.RequestException as e:
                last_error = e
                print(f"⚠️  {path} attempt {attempt}/{RETRY_ATTEMPTS} failed: {e}")
        raise last_error

    def authenticate(self):
        print(f"🔐 Authenticating ESP32 device: {self.device_id}")
        try:
            data = self.post("/devices/authenticate", {
                "deviceId": self.device_id,
                "name": f"Smart Irrigation ESP32 - {self.device_id}",
                "location": "Garden Area A",
            })
        except requests.RequestException as e:
            print(f"❌ Authentication failed: {e}")
            return False

        if not data.get("success"):
            return False

        self.token = data["token"]
        self.configuration = data["configuration"]
        self.sync_interval = self.configuration.get("syncInterval") or self.sync_interval
        print("✅ Authentication successful")
        print(f"📡 Sync interval: {self.sync_interval}ms")
        print(f"🌱 Zones configured: {len(self.configuration.get('zones', []))}")
        return True

    def update_sensor_data(self):
        """Drift every zone: irrigation raises moisture, evaporation lowers it."""
        hour = datetime.now().hour
        for zone in self.zones.values():
            if zone.is_irrigating:
                zone.soil_moisture = min(100, zone.soil_moisture + random_between(2, 8))
            else:
                zone.soil_moisture = max(0, zone.soil_moisture - random_between(0.1, 1.5))

            zone.temperature = max(10, min(45, zone.temperature + random_between(-2, 2)))
            zone.humidity = max(20, min(100, zone.humidity + random_between(-5, 5)))
            zone.pressure = max(980, min(1050, zone.pressure + random_between(-3, 3)))
            zone.light_level = random_between(200, 1000) if 6 <= hour <= 18 else random_between(0, 50)

    def process_irrigation_state(self):
        now = self.clock()
        for zone_id, zone in self.zones.items():
            if zone.is_irrigating and zone.started_at is not None and now - zone.started_at >= zone.duration:
                zone.stop_irrigation()
                print(f"Zone {zone_id}: Irrigation completed")

    def build_payload(self):
        return {
            "sensorData": [
                {
                    "zoneId": zone_id,
                    "soilMoisture": zone.soil_moisture,
                    "temperature": zone.temperature,
                    "humidity": zone.humidity,
                    "pressure": zone.pressure,
                    "lightLevel": zone.light_level,
                }
                for zone_id, zone in self.zones.items()
            ],
            "irrigationStatus": {
                str(zone_id): {"isIrrigating": zone.is_irrigating, "duration": zone.duration, "reason": zone.reason}
                for zone_id, zone in self.zones.items()
            },
        }

    def sync_with_server(self):
        if not self.token:
            print("No token available, re-authenticating...")
            if not self.authenticate():
                return

        self.update_sensor_data()
        self.process_irrigation_state()

        try:
            data = self.post("/devices/sync", self.build_payload(), headers={"Authorization": f"Bearer {self.token}"})
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 401:
                print("🔑 Token rejected, re-authenticating on next cycle...")
                self.token = None
            else:
                print(f"❌ Sync failed: {e}")
            return
        except requests.RequestException as e:
            print(f"❌ Sync failed: {e}")
            return

        if not data.get("success"):
            return
        commands = data.get("commands") or []
        if commands:
            print(f"📨 Received {len(commands)} command(s)")
            self.process_commands(commands)
        if data.get("configuration"):
            self.configuration = data["configuration"]
            self.sync_interval = self.configuration.get("syncInterval") or self.sync_interval
        self.log_status()

    def process_commands(self, commands):
        now = self.clock()
        for command in commands:
            command_type = command.get("commandType")
            zone_id = command.get("zoneId")
            parameters = command.get("parameters") or {}
            zone = self.zones.get(zone_id)
            print(f"🎛️  Processing command: {command_type} for Zone {zone_id}")

            if command_type == "emergency_stop":
                for state in self.zones.values():
                    state.stop_irrigation()
                print("🚨 Emergency stop: All irrigation stopped")
            elif zone is None:
                print(f"❌ Unknown zone {zone_id}, command ignored")
            elif command_type == "irrigate":
                duration = parameters.get("duration") or DEFAULT_IRRIGATION_DURATION
                zone.start_irrigation(duration, "manual" if parameters.get("force") else "threshold", now)
                print(f"💧 Zone {zone_id}: Starting irrigation for {duration}s")
            elif command_type == "stop":
                zone.stop_irrigation()
                print(f"🛑 Zone {zone_id}: Irrigation stopped")
            elif command_type == "config_update":
                if parameters.get("newThreshold") is not None:
                    print(f"⚙️  Zone {zone_id}: Threshold updated to {parameters['newThreshold']}%")
            else:
                print(f"❌ Unknown command type: {command_type}")

    def log_status(self):
        print(f"\n📊 Status Update [{datetime.now().strftime('%H:%M:%S')}]")
        print("-" * 50)
        now = self.clock()
        for zone_id, zone in self.zones.items():
            print(f"Zone {zone_id}:")
            print(f"  💧 Moisture: {zone.soil_moisture:.1f}%")
            print(f"  🌡️  Temp: {zone.temperature:.1f}°C")
            print(f"  💨 Humidity: {zone.humidity:.1f}%")
            print(f"  📊 Pressure: {zone.pressure:.1f} hPa")
            print(f"  ☀️  Light: {zone.light_level:.0f} lux")
            if zone.is_irrigating:
                elapsed = now - zone.started_at if zone.started_at is not None else 0
                print(f"  🚿 Irrigating: {elapsed:.0f}s / {zone.duration}s ({zone.reason})")
            else:
                print("  🚿 Irrigation: OFF")
            print("")

    def run(self):
        """Main run loop"""
        print("🚀 Starting ESP32 Irrigation Simulator")
        print(f"📱 Device ID: {self.device_id}")
        print(f"🌐 Server: {self.server_url}")
        print("-" * 50)

        if not self.authenticate():
            print("❌ Failed to authenticate. Exiting...")
            return

        self.is_running = True
        print("✅ Simulator started. Press Ctrl+C to stop.\n")
        try:
            while self.is_running:
                self.sync_with_server()
                time.sleep(self.sync_interval / 1000)
        except KeyboardInterrupt:
            print("\n🛑 Stopping ESP32 simulator...")
            self.is_running = False

if __name__ == "__main__":
    device_id = sys.argv[1] if len(sys.argv) > 1 else DEVICE_ID
    server_url = sys.argv[2] if len(sys.argv) > 2 else SERVER_URL
    simulator = ESP32Simulator(device_id, server_url)
    simulator.run()
