from typing import Any, Dict, List

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core import jwt_auth
from app.core.exceptions import AuthenticationError, AuthorizationError

security = HTTPBearer(
    scheme_name="JWT Token",
    description="Access token issued by the auth service",
    auto_error=False,
)

ROLE_ADMIN = "ADMIN"
ROLE_STAFF = "STAFF"


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Dict[str, Any]:
    """
    Dependency для аутентификации пользователя по bearer-токену.

    Returns ``{"id": int, "role": str}``; ``id`` is what the booking core
    records as ``created_by``.
    """
    if credentials is None or not credentials.credentials.strip():
        raise AuthenticationError("Authentication data is required")

    payload = jwt_auth.jwt_verifier.decode_token(credentials.credentials)

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise AuthenticationError("Token subject must be a user id")

    return {"id": user_id, "role": str(payload["role"]).upper()}


def require_roles(allowed_roles: List[str]):
    """
    Dependency factory to require specific roles.

    Usage:
    @router.post("/")
    async def create(user: Dict = Depends(require_roles(["ADMIN"]))):
        ...
    """

    async def role_dependency(
        user: Dict[str, Any] = Depends(get_current_user),
    ) -> Dict[str, Any]:
        if user["role"] not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {allowed_roles}",
                {"role": user["role"]},
            )
        return user

    return role_dependency


require_admin = require_roles([ROLE_ADMIN])
require_staff = require_roles([ROLE_ADMIN, ROLE_STAFF])
