"""
Operator authentication using a Bearer token.
"""

import secrets

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from calendar_intake.api.dependencies import get_app_settings
from calendar_intake.config.settings import Settings

bearer_scheme = HTTPBearer(auto_error=False)


async def verify_admin_token(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """
    Verify the Authorization: Bearer header against ADMIN_TOKEN.

    Operator endpoints are closed when no token is configured.

    Raises:
        HTTPException: 401 if the token is missing, wrong, or unconfigured
    """
    if not settings.admin_configured:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    expected = settings.admin_token.get_secret_value()
    if not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return credentials.credentials
