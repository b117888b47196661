# server/app/dependencies.py

from    typing              import Optional
from    fastapi             import Header
from    config              import credentials
from    database.models     import Device
from    .auth               import CredentialIssuer, parse_duration
from    .command_queue      import CommandQueue
from    .errors             import AuthError, AuthErrorKind
from    .readings           import ReadingStore
from    .registry           import DeviceRegistry
from    .sync               import SyncHandler

# Shared instances. The issuer refuses to build without JWT_SECRET, which stops the server at import.
credential_issuer   = CredentialIssuer(credentials.JWT_SECRET, parse_duration(credentials.JWT_EXPIRES_IN))
device_registry     = DeviceRegistry()
reading_store       = ReadingStore()
command_queue       = CommandQueue()
sync_handler        = SyncHandler(credential_issuer, device_registry, reading_store, command_queue)


def authenticate_device(authorization: Optional[str] = Header(default=None)) -> Device:
    """Resolve the bearer token to a registered device."""
    token = (authorization or "").strip()
    if token == "Bearer" or token.startswith("Bearer "):                 # trailing space may be trimmed in transit
        token = token[len("Bearer"):].strip()
    if not token:
        raise AuthError(AuthErrorKind.missing, "Authorization header absent or empty")

    device_id = credential_issuer.verify(token)

    device = device_registry.get(device_id)
    if device is None:
        raise AuthError(AuthErrorKind.unknown_device, f"Token for unregistered device {device_id}")
    return device
