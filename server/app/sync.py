# server/app/sync.py

from    typing              import Any, List, Optional, Tuple
from    utils.logger        import getLogger
from    database.models     import Command, CommandType, Device
from    .auth               import CredentialIssuer
from    .command_queue      import CommandQueue
from    .errors             import ValidationError
from    .readings           import ReadingStore, build_reading
from    .registry           import DeviceRegistry

logger = getLogger("SyncHandler")


class SyncHandler:
    """
    Runs the device side of the protocol.

    ``bootstrap`` answers the unauthenticated first call of a device with a
    token. ``sync`` handles one round: store the readings, queue automatic
    irrigation for dry zones, then hand over everything pending.
    """

    def __init__(self, issuer: CredentialIssuer, registry: DeviceRegistry,
                 readings: ReadingStore, queue: CommandQueue):
        self.issuer     = issuer
        self.registry   = registry
        self.readings   = readings
        self.queue      = queue

    def bootstrap(self, device_id: Optional[str], name: Optional[str] = None,
                  location: Optional[str] = None) -> Tuple[Device, str]:
        if not device_id:
            raise ValidationError("Device ID is required")

        device = self.registry.find_or_create(device_id, name, location)
        self.registry.mark_online(device)
        token = self.issuer.issue(device.device_id)
        logger.info(f"Device {device.device_id} authenticated")
        return device, token

    def sync(self, device: Device, sensor_data: Any = None, irrigation_status: Any = None) -> List[Command]:
        self.registry.mark_online(device)

        if sensor_data is None:
            sensor_data = []
        if not isinstance(sensor_data, list):
            raise ValidationError("sensorData must be an array")
        if irrigation_status is not None and not isinstance(irrigation_status, dict):
            raise ValidationError("irrigationStatus must be an object")

        for zone_data in sensor_data:
            try:
                self.process_zone(device, zone_data, irrigation_status)
            except ValidationError as e:
                logger.warning(f"Skipping reading from device {device.device_id}: {e.message}")

        return self.queue.drain_pending(device.device_id)

    def process_zone(self, device: Device, zone_data: Any, irrigation_status: Optional[dict]) -> bool:
        """Store one zone reading; returns True if it queued an irrigation."""
        reading = self.readings.append(build_reading(device.device_id, zone_data, irrigation_status))

        zone = self.registry.get_zone(device, reading.zone_id)
        if zone is None:
            logger.debug(f"Device {device.device_id} reported unknown zone {reading.zone_id}")
            return False

        if not zone.is_active or reading.soil_moisture >= zone.moisture_threshold:
            return False

        logger.info(
            f"Zone {zone.zone_id} on {device.device_id} below threshold "
            f"({reading.soil_moisture}% < {zone.moisture_threshold}%)"
        )
        return self.queue.enqueue_if_absent(
            device.device_id,
            zone.zone_id,
            CommandType.irrigate,
            {"duration": zone.irrigation_duration, "force": False},
        )
