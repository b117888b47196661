# server/app/readings.py

import  math
from    numbers             import Number
from    typing              import Any, Dict, Iterable, List, Optional
from    pydantic            import ValidationError as SchemaError
from    sqlmodel            import select
from    config              import constants
from    utils.logger        import getLogger
from    database.db         import get_session
from    database.models     import Reading, IrrigationStatus
from    .errors             import ValidationError

logger = getLogger("ReadingStore")

REQUIRED_FIELDS = {
    "soil_moisture":    "soilMoisture",
    "temperature":      "temperature",
    "humidity":         "humidity",
    "pressure":         "pressure",
}

ZONE_ID_MIN = -2 ** 63
ZONE_ID_MAX = 2 ** 63 - 1


def _is_number(value) -> bool:
    if not isinstance(value, Number) or isinstance(value, bool):
        return False
    return isinstance(value, int) or math.isfinite(value)


def is_zone_id(value) -> bool:
    """Integral and within the signed 64-bit range the store can hold."""
    return _is_number(value) and int(value) == value and ZONE_ID_MIN <= int(value) <= ZONE_ID_MAX


def build_reading(device_id: str, zone_data: Any, irrigation_status: Optional[Dict] = None) -> Reading:
    """Turn one ``sensorData`` entry of a sync payload into an unsaved Reading."""
    if not isinstance(zone_data, dict):
        raise ValidationError("Sensor data entry must be an object")

    zone_id = zone_data.get("zoneId")
    if not is_zone_id(zone_id):
        raise ValidationError(f"Invalid zoneId: {zone_id!r}")
    zone_id = int(zone_id)

    statuses = irrigation_status or {}
    raw_status = statuses.get(str(zone_id), statuses.get(zone_id))            # JSON object keys arrive as strings
    try:
        status = IrrigationStatus.model_validate(raw_status or {})
    except SchemaError as e:
        logger.warning(f"Ignoring irrigation status for device {device_id} zone {zone_id}: {e.errors()[0]['msg']}")
        status = IrrigationStatus()

    light_level = zone_data.get("lightLevel")
    return Reading(
        device_id=device_id,
        zone_id=zone_id,
        soil_moisture=zone_data.get("soilMoisture"),
        temperature=zone_data.get("temperature"),
        humidity=zone_data.get("humidity"),
        pressure=zone_data.get("pressure"),
        light_level=light_level if _is_number(light_level) else 0,
        is_irrigating=status.isIrrigating,
        irrigation_duration=status.duration,
        irrigation_reason=status.reason.value,
    )


class ReadingStore:
    def __init__(self, session_factory=get_session):
        self.session_factory = session_factory

    def append(self, reading: Reading) -> Reading:
        missing = [name for attr, name in REQUIRED_FIELDS.items() if not _is_number(getattr(reading, attr))]
        if missing:
            raise ValidationError(f"Missing or non-numeric sensor fields: {', '.join(missing)}")

        with self.session_factory(immediate=True) as session:
            session.add(reading)
            session.commit()
            session.refresh(reading)
        logger.debug(f"Stored reading #{reading.id} for device {reading.device_id} zone {reading.zone_id}")
        return reading

    def latest(self, device_id: str, zone_id: int) -> Optional[Reading]:
        with self.session_factory() as session:
            return session.exec(
                select(Reading)
                .where(Reading.device_id == device_id, Reading.zone_id == zone_id)
                .order_by(Reading.timestamp.desc(), Reading.id.desc())
            ).first()

    def latest_per_zone(self, device_id: str, zone_ids: Iterable[int]) -> Dict[int, Optional[Reading]]:
        return {zone_id: self.latest(device_id, zone_id) for zone_id in zone_ids}

    def history(self, device_id: str, zone_id: Optional[int] = None,
                limit: int = constants.DEFAULT_LOG_LIMIT) -> List[Reading]:
        query = select(Reading).where(Reading.device_id == device_id)
        if zone_id is not None:
            query = query.where(Reading.zone_id == zone_id)
        query = query.order_by(Reading.timestamp.desc(), Reading.id.desc()).limit(limit)

        with self.session_factory() as session:
            return list(session.exec(query).all())
