# server/app/routes.py

from    typing             import List, Optional
from    datetime           import datetime, timezone
from    fastapi            import APIRouter, Depends, Query
from    config             import constants, credentials
from    utils.logger       import getLogger
from    database.db        import check_connection
from    database.models    import (
    AuthenticateRequest, SyncRequest, ManualCommandRequest, CommandStatus, Device,
    BootstrapConfiguration, DeviceConfiguration, DeviceRead, DeliveredCommand,
    CommandRead, ReadingRead, ZoneLatest,
)
from    .dependencies      import (
    authenticate_device, command_queue, device_registry, reading_store, sync_handler,
)
from    .errors            import NotFoundError

logger          = getLogger("Routes")
router          = APIRouter(prefix=constants.DEVICES_API_PREFIX, tags=["devices"])
system_router   = APIRouter(tags=["health"])


def get_device_or_404(device_id: str) -> Device:
    device = device_registry.get(device_id)
    if device is None:
        raise NotFoundError("Device not found")
    return device

# Device Endpoints

# Authenticate (device bootstrap, no token required)
@router.post(constants.AUTHENTICATE_API_ENDPOINT)
def authenticate(payload: AuthenticateRequest):
    device, token = sync_handler.bootstrap(payload.deviceId, payload.name, payload.location)
    return {
        "success": True,
        "token": token,
        "configuration": BootstrapConfiguration.from_device(device),
    }

# Sync
@router.post(constants.SYNC_API_ENDPOINT)
def sync(payload: SyncRequest, device: Device = Depends(authenticate_device)):
    commands = sync_handler.sync(device, payload.sensorData, payload.irrigationStatus)
    return {
        "success": True,
        "commands": [DeliveredCommand.from_command(command) for command in commands],
        "configuration": DeviceConfiguration.from_device(device),
    }

# Dashboard Endpoints

# List Devices
@router.get("", response_model=List[DeviceRead])
def list_devices():
    return [DeviceRead.from_device(device) for device in device_registry.list_all()]

# Latest Reading per Zone
@router.get(constants.LATEST_API_ENDPOINT, response_model=List[ZoneLatest])
def latest_readings(device_id: str):
    device = get_device_or_404(device_id)
    latest = reading_store.latest_per_zone(device_id, [zone.zone_id for zone in device.zones])
    return [
        ZoneLatest(
            zoneId=zone.zone_id,
            zoneName=zone.name,
            threshold=zone.moisture_threshold,
            isActive=zone.is_active,
            latestData=ReadingRead.from_reading(latest[zone.zone_id]) if latest[zone.zone_id] else None,
        )
        for zone in device.zones
    ]

# Reading History
@router.get(constants.LOGS_API_ENDPOINT, response_model=List[ReadingRead])
def reading_logs(
    device_id: str,
    limit: int = Query(constants.DEFAULT_LOG_LIMIT, ge=1, le=constants.MAX_QUERY_LIMIT),
    zoneId: Optional[int] = None,
):
    get_device_or_404(device_id)
    return [ReadingRead.from_reading(reading) for reading in reading_store.history(device_id, zoneId, limit)]

# Manual Command
@router.post(constants.COMMAND_API_ENDPOINT)
def send_command(device_id: str, payload: ManualCommandRequest):
    get_device_or_404(device_id)
    command = command_queue.enqueue_manual(device_id, payload.zoneId, payload.commandType, payload.parameters)
    return {"success": True, "commandId": command.id}

# Command History
@router.get(constants.COMMANDS_API_ENDPOINT, response_model=List[CommandRead])
def list_commands(
    device_id: str,
    status: Optional[CommandStatus] = None,
    limit: int = Query(constants.DEFAULT_COMMAND_LIMIT, ge=1, le=constants.MAX_QUERY_LIMIT),
):
    get_device_or_404(device_id)
    commands = command_queue.list_commands(device_id, status.value if status else None, limit)
    return [CommandRead.from_command(command) for command in commands]

# Health
@system_router.get(constants.HEALTH_API_ENDPOINT)
def health_check():
    database_ok = check_connection()
    if not database_ok:
        logger.warning("Health check: database unreachable")
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": credentials.ENVIRONMENT,
        "database": "connected" if database_ok else "disconnected",
    }
