"""FastAPI dependencies: get_current_user_id, require_scheduler.

Usage in any protected router:
    from src.qb_gateway.auth.dependencies import get_current_user_id

    @router.get("/protected")
    async def protected(user_id: str = Depends(get_current_user_id)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.settings import settings
from src.qb_common.errors import AdminOnlyError, InvalidCredentialsError, SchedulerOnlyError
from src.qb_gateway.auth.jwt_handler import decode_token

_bearer_scheme = HTTPBearer(auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> str:
    """Validate the Bearer token and return its subject.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    """
    if credentials is None:
        raise _CREDENTIALS_EXCEPTION
    try:
        payload = decode_token(credentials.credentials)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    subject: str | None = payload.get("sub")
    if not subject:
        raise _CREDENTIALS_EXCEPTION
    return subject


async def require_scheduler(
    subject: str = Depends(get_current_user_id),
) -> str:
    """Allow only the periodic scheduler (settlement and repair endpoints)."""
    if subject != settings.SCHEDULER_SUBJECT:
        raise SchedulerOnlyError()
    return subject


async def require_admin(
    subject: str = Depends(get_current_user_id),
) -> str:
    """Allow the operator (and the scheduler, which runs invariant checks)."""
    if subject not in (settings.ADMIN_SUBJECT, settings.SCHEDULER_SUBJECT):
        raise AdminOnlyError()
    return subject
