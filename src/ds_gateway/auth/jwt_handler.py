"""JWT verification for caller identity.

Tokens are issued by the external auth service, which shares JWT_SECRET with
this core (HS256). The `sub` claim is the caller's account id; the core does
not hold user records of its own.

`create_access_token` exists for local tooling and tests that need to mint a
token the same way the auth service does.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.ds_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(account: str) -> str:
    """Issue a short-lived access token (default: 30 min)."""
    now = datetime.now(UTC)
    payload = {
        "sub": account,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_access_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: signature, expiry or token type is wrong.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access":
        raise InvalidCredentialsError()
    return payload
