# server/database/models.py

from    enum        import Enum
from    typing      import Any, Dict, List, Optional
from    pydantic    import FiniteFloat
from    datetime    import datetime, timezone
from    sqlmodel    import SQLModel, Field, Column, JSON, Relationship
from    config      import constants


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Some backends hand stored timestamps back without tzinfo; they are UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class CommandType(str, Enum):
    irrigate = "irrigate"
    stop = "stop"
    config_update = "config_update"
    emergency_stop = "emergency_stop"


class CommandStatus(str, Enum):
    pending = "pending"
    delivered = "delivered"
    executed = "executed"
    failed = "failed"


class CommandOrigin(str, Enum):
    system = "system"
    user = "user"


class IrrigationReason(str, Enum):
    threshold = "threshold"
    manual = "manual"
    schedule = "schedule"
    none = "none"


OPEN_COMMAND_STATUSES = (CommandStatus.pending.value, CommandStatus.delivered.value)


class Device(SQLModel, table=True):
    device_id:                      str = Field(primary_key=True)
    name:                           str = Field(nullable=False)
    location:                       str = Field(default="")
    is_online:                      bool = Field(default=False)
    last_seen: datetime =           Field(default_factory=utcnow, index=True)
    sync_interval:                  int = Field(default=constants.DEFAULT_SYNC_INTERVAL)          # milliseconds
    max_irrigation_time:            int = Field(default=constants.DEFAULT_MAX_IRRIGATION_TIME)    # seconds
    emergency_shutoff:              bool = Field(default=False)
    created_at: datetime =          Field(default_factory=utcnow)
    updated_at: datetime =          Field(default_factory=utcnow)

    zones: List["Zone"] = Relationship(
        back_populates="device",
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "Zone.zone_id", "cascade": "all, delete-orphan"},
    )


class Zone(SQLModel, table=True):
    device_id:                      str = Field(foreign_key="device.device_id", primary_key=True)
    zone_id:                        int = Field(primary_key=True)
    name:                           str = Field(nullable=False)
    moisture_threshold:             float = Field(default=30)                                     # percent
    is_active:                      bool = Field(default=True)
    irrigation_duration:            int = Field(default=constants.DEFAULT_IRRIGATION_DURATION)   # seconds
    last_irrigation:                Optional[datetime] = None

    device: Optional[Device] = Relationship(back_populates="zones")


class Reading(SQLModel, table=True):
    id:                             Optional[int] = Field(default=None, primary_key=True)
    device_id:                      str = Field(index=True)
    zone_id:                        int = Field(index=True)
    soil_moisture:                  float                                                          # percent
    temperature:                    float                                                          # celsius
    humidity:                       float                                                          # percent
    pressure:                       float                                                          # hPa
    light_level:                    float = Field(default=0)                                      # lux
    is_irrigating:                  bool = Field(default=False)
    irrigation_duration:            int = Field(default=0)
    irrigation_reason:              str = Field(default=IrrigationReason.none.value)
    timestamp: datetime =           Field(default_factory=utcnow, index=True)


class Command(SQLModel, table=True):
    id:                             Optional[int] = Field(default=None, primary_key=True)
    device_id:                      str = Field(index=True)
    zone_id:                        int = Field(index=True)
    command_type:                   str = Field(nullable=False)
    parameters: Dict[str, Any] =    Field(default_factory=dict, sa_column=Column(JSON))
    status:                         str = Field(default=CommandStatus.pending.value, index=True)
    created_at: datetime =          Field(default_factory=utcnow, index=True)
    delivered_at:                   Optional[datetime] = None
    executed_at:                    Optional[datetime] = None
    created_by:                     str = Field(default=CommandOrigin.system.value)


# Command parameters, one shape per command type

class IrrigateParameters(SQLModel):
    duration: int = 0                                                   # seconds
    force: bool = False


class ConfigUpdateParameters(SQLModel):
    newThreshold: Optional[FiniteFloat] = None


class NoParameters(SQLModel):
    pass


COMMAND_PARAMETERS = {
    CommandType.irrigate:           IrrigateParameters,
    CommandType.stop:               NoParameters,
    CommandType.emergency_stop:     NoParameters,
    CommandType.config_update:      ConfigUpdateParameters,
}


# Pydantic Schemas (used in routes)

class AuthenticateRequest(SQLModel):
    deviceId: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = None


class SyncRequest(SQLModel):
    sensorData: Any = None
    irrigationStatus: Any = None


class ManualCommandRequest(SQLModel):
    zoneId: Any = None
    commandType: Any = None
    parameters: Optional[Dict[str, Any]] = None


class IrrigationStatus(SQLModel):
    isIrrigating: bool = False
    duration: int = 0
    reason: IrrigationReason = IrrigationReason.none


class SensorValues(SQLModel):
    soilMoisture: float
    temperature: float
    humidity: float
    pressure: float
    lightLevel: float = 0


class ZoneRead(SQLModel):
    zoneId: int
    name: str
    moistureThreshold: float
    isActive: bool
    irrigationDuration: int
    lastIrrigation: Optional[datetime]

    @classmethod
    def from_zone(cls, zone: Zone) -> "ZoneRead":
        return cls(
            zoneId=zone.zone_id,
            name=zone.name,
            moistureThreshold=zone.moisture_threshold,
            isActive=zone.is_active,
            irrigationDuration=zone.irrigation_duration,
            lastIrrigation=as_utc(zone.last_irrigation),
        )


class DeviceConfiguration(SQLModel):
    syncInterval: int
    maxIrrigationTime: int
    emergencyShutoff: bool

    @classmethod
    def from_device(cls, device: Device) -> "DeviceConfiguration":
        return cls(
            syncInterval=device.sync_interval,
            maxIrrigationTime=device.max_irrigation_time,
            emergencyShutoff=device.emergency_shutoff,
        )


class BootstrapConfiguration(DeviceConfiguration):
    zones: List[ZoneRead]

    @classmethod
    def from_device(cls, device: Device) -> "BootstrapConfiguration":
        return cls(
            zones=[ZoneRead.from_zone(zone) for zone in device.zones],
            **DeviceConfiguration.from_device(device).model_dump(),
        )


class DeviceRead(SQLModel):
    deviceId: str
    name: str
    location: str
    zones: List[ZoneRead]
    isOnline: bool
    lastSeen: datetime
    configuration: DeviceConfiguration
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_device(cls, device: Device) -> "DeviceRead":
        return cls(
            deviceId=device.device_id,
            name=device.name,
            location=device.location,
            zones=[ZoneRead.from_zone(zone) for zone in device.zones],
            isOnline=device.is_online,
            lastSeen=as_utc(device.last_seen),
            configuration=DeviceConfiguration.from_device(device),
            createdAt=as_utc(device.created_at),
            updatedAt=as_utc(device.updated_at),
        )


class ReadingRead(SQLModel):
    id: int
    deviceId: str
    zoneId: int
    sensorData: SensorValues
    irrigationStatus: IrrigationStatus
    timestamp: datetime

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingRead":
        return cls(
            id=reading.id,
            deviceId=reading.device_id,
            zoneId=reading.zone_id,
            sensorData=SensorValues(
                soilMoisture=reading.soil_moisture,
                temperature=reading.temperature,
                humidity=reading.humidity,
                pressure=reading.pressure,
                lightLevel=reading.light_level,
            ),
            irrigationStatus=IrrigationStatus(
                isIrrigating=reading.is_irrigating,
                duration=reading.irrigation_duration,
                reason=reading.irrigation_reason,
            ),
            timestamp=as_utc(reading.timestamp),
        )


class ZoneLatest(SQLModel):
    zoneId: int
    zoneName: str
    threshold: float
    isActive: bool
    latestData: Optional[ReadingRead]


class DeliveredCommand(SQLModel):
    commandId: int
    zoneId: int
    commandType: str
    parameters: Dict[str, Any]

    @classmethod
    def from_command(cls, command: Command) -> "DeliveredCommand":
        return cls(
            commandId=command.id,
            zoneId=command.zone_id,
            commandType=command.command_type,
            parameters=command.parameters or {},
        )


class CommandRead(DeliveredCommand):
    deviceId: str
    status: str
    createdAt: datetime
    deliveredAt: Optional[datetime]
    executedAt: Optional[datetime]
    createdBy: str

    @classmethod
    def from_command(cls, command: Command) -> "CommandRead":
        return cls(
            commandId=command.id,
            deviceId=command.device_id,
            zoneId=command.zone_id,
            commandType=command.command_type,
            parameters=command.parameters or {},
            status=command.status,
            createdAt=as_utc(command.created_at),
            deliveredAt=as_utc(command.delivered_at),
            executedAt=as_utc(command.executed_at),
            createdBy=command.created_by,
        )
