"""FastAPI dependency: get_current_account.

Usage in any protected router:
    from src.ds_gateway.auth.dependencies import get_current_account

    @router.post("/protected")
    async def protected(account: Annotated[str, Depends(get_current_account)]):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from config.settings import settings
from src.ds_common.errors import InvalidCredentialsError, InvalidIdentifierError
from src.ds_common.identifiers import validate_account
from src.ds_gateway.auth.jwt_handler import decode_access_token

# tokenUrl points at the external auth service; used by Swagger's "Authorize" button
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)

_CUSTODY_ACCOUNTS = frozenset(
    {
        settings.ESCROW_CUSTODY_ACCOUNT,
        settings.SAVINGS_CUSTODY_ACCOUNT,
        settings.VAULT_CUSTODY_ACCOUNT,
    }
)


async def get_current_account(token: str = Depends(oauth2_scheme)) -> str:
    """Extract and validate the Bearer token, return the caller's account id.

    Raises HTTP 401 if the token is missing, invalid, expired, names a
    malformed account, or names one of the engines' custody accounts.
    """
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    account = payload.get("sub")
    if not account or account in _CUSTODY_ACCOUNTS:
        raise _CREDENTIALS_EXCEPTION
    try:
        return validate_account(account)
    except InvalidIdentifierError:
        raise _CREDENTIALS_EXCEPTION from None
