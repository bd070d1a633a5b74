"""
Core dependencies for route protection and capability checking
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from functools import lru_cache
from typing import Optional
from uuid import UUID
import logging

from app.config import settings
from app.core.capabilities import Capability
from app.core.exceptions import AuthForbidden, AuthInvalid, ValidationError
from app.core.tokens import TokenCodec
from app.modules.auth.schemas import GroupAuth
from app.modules.auth.service import AuthService

logger = logging.getLogger(__name__)

# auto_error is off so a missing header and a malformed one can be told apart
security = HTTPBearer(auto_error=False)


@lru_cache
def get_token_codec() -> TokenCodec:
    return TokenCodec(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl_days=settings.token_ttl_days,
    )


def get_auth_service(codec: TokenCodec = Depends(get_token_codec)) -> AuthService:
    return AuthService(codec)


def get_group_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> GroupAuth:
    """Resolve the bearer token into its group and effective capabilities"""
    if credentials is None:
        if request.headers.get("Authorization"):
            # Present but not "Bearer <token>"
            raise AuthInvalid()
        return auth_service.authenticate(None)
    return auth_service.authenticate(credentials.credentials)


def require_capability(capability: Capability):
    """Factory function to create capability check dependency"""
    def check_capability(auth: GroupAuth = Depends(get_group_auth)) -> GroupAuth:
        """Dependency to check the token grants the capability"""
        if not auth.capabilities.has(capability):
            logger.info("Group %s token lacks %s", auth.group_id, capability.value)
            raise AuthForbidden(capability.value)
        return auth
    return check_capability


def parse_uuid(value: str, field: str) -> UUID:
    """Parse a path identifier, raising ValidationError rather than a 500"""
    try:
        return UUID(value)
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(f"Invalid {field}: {value!r}")
