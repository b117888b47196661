# server/app/registry.py

from    typing              import List, Optional
from    sqlmodel            import select
from    sqlalchemy          import update
from    sqlalchemy.exc      import IntegrityError
from    config              import constants
from    utils.logger        import getLogger
from    database.db         import get_session
from    database.models     import Device, Zone, utcnow

logger = getLogger("DeviceRegistry")


def default_zones() -> List[Zone]:
    return [
        Zone(
            zone_id=zone_id,
            name=f"Zone {zone_id}",
            moisture_threshold=threshold,
            is_active=True,
            irrigation_duration=constants.DEFAULT_IRRIGATION_DURATION,
        )
        for zone_id, threshold in constants.DEFAULT_ZONES
    ]


class DeviceRegistry:
    def __init__(self, session_factory=get_session):
        self.session_factory = session_factory

    def get(self, device_id: str) -> Optional[Device]:
        with self.session_factory() as session:
            return session.get(Device, device_id)

    def find_or_create(self, device_id: str, name: Optional[str] = None, location: Optional[str] = None) -> Device:
        """Return the device, registering it with the default zones on first sight."""
        device = self.get(device_id)
        if device is not None:
            return device

        device = Device(
            device_id=device_id,
            name=name or f"{constants.DEVICE_NAME_PREFIX}{device_id}",
            location=location or constants.DEVICE_DEFAULT_LOCATION,
            zones=default_zones(),
        )
        with self.session_factory(immediate=True) as session:
            session.add(device)
            try:
                session.commit()
            except IntegrityError:
                # Another request registered the same id first; its record wins.
                session.rollback()
                logger.info(f"Device {device_id} registered concurrently, using existing record")
                return self.get(device_id)

        logger.info(f"New device registered: {device_id}")
        return self.get(device_id)

    def mark_online(self, device: Device) -> Device:
        now = utcnow()
        with self.session_factory(immediate=True) as session:
            session.exec(
                update(Device)
                .where(Device.device_id == device.device_id)
                .values(is_online=True, last_seen=now, updated_at=now)
            )
            session.commit()
        device.is_online = True
        device.last_seen = now
        device.updated_at = now
        return device

    def get_zone(self, device: Device, zone_id: int) -> Optional[Zone]:
        for zone in device.zones:
            if zone.zone_id == zone_id:
                return zone
        return None

    def list_all(self) -> List[Device]:
        with self.session_factory() as session:
            return list(session.exec(select(Device).order_by(Device.last_seen.desc())).all())
