# server/app/auth.py

import  re
import  jwt

from    typing              import Callable, Dict, Optional
from    datetime            import datetime, timedelta, timezone
from    config              import constants
from    .errors             import AuthError, AuthErrorKind, ConfigurationError

DURATION_PATTERN    = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
DURATION_UNITS      = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str) -> timedelta:
    """Parse a lifetime like ``"24h"``, ``"30m"`` or ``"3600"`` (seconds)."""
    match = DURATION_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * DURATION_UNITS[unit])


class CredentialIssuer:
    """
    Issues and verifies signed device tokens.

    Tokens carry ``deviceId``, ``iat``, ``exp``, ``iss`` and ``aud`` claims and are
    signed with the server secret. The issuer holds no state beyond the secret
    and the clock.
    """

    def __init__(self, secret: Optional[str], lifetime: Optional[timedelta] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        if not secret:
            raise ConfigurationError("JWT_SECRET environment variable is required")
        self.secret = secret
        self.lifetime = lifetime or parse_duration(constants.TOKEN_DEFAULT_LIFETIME)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def issue(self, device_id: str, lifetime: Optional[timedelta] = None) -> str:
        issued_at = self.clock()
        payload = {
            "deviceId": device_id,
            "iat": issued_at,
            "exp": issued_at + (lifetime or self.lifetime),
            "iss": constants.TOKEN_ISSUER,
            "aud": constants.TOKEN_AUDIENCE,
        }
        return jwt.encode(payload, self.secret, algorithm=constants.TOKEN_ALGORITHM)

    def decode(self, token: str) -> Dict:
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[constants.TOKEN_ALGORITHM],
                audience=constants.TOKEN_AUDIENCE,
                issuer=constants.TOKEN_ISSUER,
                options={"require": ["exp", "iat", "deviceId"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthError(AuthErrorKind.expired, str(e))
        except jwt.InvalidSignatureError as e:
            raise AuthError(AuthErrorKind.bad_signature, str(e))
        except jwt.InvalidTokenError as e:
            raise AuthError(AuthErrorKind.malformed, str(e))

        if not isinstance(claims["deviceId"], str) or not claims["deviceId"]:
            raise AuthError(AuthErrorKind.malformed, "deviceId claim must be a non-empty string")
        return claims

    def verify(self, token: str) -> str:
        return self.decode(token)["deviceId"]
