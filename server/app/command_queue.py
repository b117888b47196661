# server/app/command_queue.py

from    typing              import Any, Dict, List, Optional
from    pydantic            import ValidationError as SchemaError
from    sqlmodel            import select
from    sqlalchemy          import JSON, insert, literal, update
from    config              import constants
from    utils.logger        import getLogger
from    database.db         import get_session
from    database.models     import (
    Command, CommandType, CommandStatus, CommandOrigin,
    COMMAND_PARAMETERS, OPEN_COMMAND_STATUSES, utcnow,
)
from    .errors             import ValidationError
from    .readings           import ZONE_ID_MIN, ZONE_ID_MAX

logger = getLogger("CommandQueue")


def parse_command_type(value: Any) -> CommandType:
    try:
        return CommandType(value)
    except ValueError:
        raise ValidationError(f"Invalid commandType: {value!r}")


def parse_zone_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid zoneId: {value!r}")
    try:
        zone_id = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"Invalid zoneId: {value!r}")
    if not ZONE_ID_MIN <= zone_id <= ZONE_ID_MAX:
        raise ValidationError(f"Invalid zoneId: {value!r}")
    return zone_id


def build_parameters(command_type: CommandType, raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Keep only the parameters meaningful for ``command_type``."""
    schema = COMMAND_PARAMETERS[command_type]
    try:
        return schema.model_validate(raw or {}).model_dump()
    except SchemaError as e:
        raise ValidationError(f"Invalid parameters for {command_type.value}: {e.errors()[0]['msg']}")


class CommandQueue:
    """
    Per device/zone command queue.

    Commands move ``pending -> delivered`` when a sync drains them. The later
    ``executed``/``failed`` states are never set here since devices do not
    acknowledge execution.
    """

    def __init__(self, session_factory=get_session):
        self.session_factory = session_factory

    def enqueue_if_absent(self, device_id: str, zone_id: int,
                          command_type: CommandType = CommandType.irrigate,
                          parameters: Optional[Dict[str, Any]] = None) -> bool:
        """
        Queue a system command unless the zone already has one open.

        The existence check and the insert are one ``INSERT ... SELECT ... WHERE
        NOT EXISTS`` statement, so overlapping syncs cannot both insert.
        Returns True when a command was created.
        """
        params = build_parameters(command_type, parameters)

        open_command = select(Command.id).where(
            Command.device_id == device_id,
            Command.zone_id == zone_id,
            Command.status.in_(OPEN_COMMAND_STATUSES),
        )
        candidate = select(
            literal(device_id),
            literal(zone_id),
            literal(command_type.value),
            literal(params, type_=JSON),
            literal(CommandStatus.pending.value),
            literal(utcnow(), type_=Command.__table__.c.created_at.type),
            literal(CommandOrigin.system.value),
        ).where(~open_command.exists())
        statement = insert(Command).from_select(
            ["device_id", "zone_id", "command_type", "parameters", "status", "created_at", "created_by"],
            candidate,
        )

        with self.session_factory(immediate=True) as session:
            result = session.exec(statement)
            session.commit()

        created = result.rowcount == 1
        if created:
            logger.info(f"Queued {command_type.value} for device {device_id} zone {zone_id}: {params}")
        else:
            logger.debug(f"Skipped {command_type.value} for device {device_id} zone {zone_id}, command already open")
        return created

    def enqueue_manual(self, device_id: str, zone_id: Any, command_type: Any,
                       parameters: Optional[Dict[str, Any]] = None) -> Command:
        command_type = parse_command_type(command_type)
        command = Command(
            device_id=device_id,
            zone_id=parse_zone_id(zone_id),
            command_type=command_type.value,
            parameters=build_parameters(command_type, parameters),
            created_by=CommandOrigin.user.value,
        )
        with self.session_factory(immediate=True) as session:
            session.add(command)
            session.commit()
            session.refresh(command)

        logger.info(f"Manual {command.command_type} #{command.id} queued for device {device_id} zone {command.zone_id}")
        return command

    def drain_pending(self, device_id: str) -> List[Command]:
        """
        Hand over every pending command of the device, oldest first.

        Each command is claimed with a conditional update on ``status = pending``;
        a command another drain already claimed is left out.
        """
        delivered = []
        with self.session_factory(immediate=True) as session:
            pending = session.exec(
                select(Command)
                .where(Command.device_id == device_id, Command.status == CommandStatus.pending.value)
                .order_by(Command.created_at, Command.id)
            ).all()

            for command in pending:
                now = utcnow()
                result = session.exec(
                    update(Command)
                    .where(Command.id == command.id, Command.status == CommandStatus.pending.value)
                    .values(status=CommandStatus.delivered.value, delivered_at=now)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    delivered.append((command, now))
            session.commit()

        for command, now in delivered:
            command.status = CommandStatus.delivered.value
            command.delivered_at = now

        if delivered:
            logger.info(f"Delivered {len(delivered)} command(s) to device {device_id}")
        return [command for command, _ in delivered]

    def list_commands(self, device_id: str, status: Optional[str] = None,
                      limit: int = constants.DEFAULT_COMMAND_LIMIT) -> List[Command]:
        query = select(Command).where(Command.device_id == device_id)
        if status is not None:
            query = query.where(Command.status == status)
        query = query.order_by(Command.created_at.desc(), Command.id.desc()).limit(limit)

        with self.session_factory() as session:
            return list(session.exec(query).all())
