"""Authentication dependencies for FastAPI routes.

Public interface:
    ``require_auth``  - returns AuthContext or raises 401.
    ``optional_auth`` - never raises; returns an unauthenticated reader
                        context when no valid token is present.
    ``require_admin`` - returns AuthContext, raises 403 if not admin.

When ``settings.auth_enabled`` is False every dependency returns an
anonymous admin so local development needs no tokens.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import TokenPayload, decode_token
from ..database import get_db
from ..exceptions import AuthenticationError, ForbiddenError
from ..models.enums import UserRole

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Who is calling. ``authenticated`` is False only for anonymous readers."""

    user_id: str
    role: str
    authenticated: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


# Auth disabled: everything is allowed.
_ANONYMOUS_ADMIN = AuthContext(user_id="anonymous", role=UserRole.ADMIN.value)

# Auth enabled, no valid token: may read previews only.
_ANONYMOUS_READER = AuthContext(user_id="anonymous", role=UserRole.USER.value, authenticated=False)


def _decode(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[TokenPayload]:
    if credentials is None:
        return None
    return decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Require a valid token and an active user."""
    if not settings.auth_enabled:
        return _ANONYMOUS_ADMIN

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = _decode(credentials)
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return _load_auth_context(payload, db)


def optional_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    """Resolve the caller if a valid token is present. Never raises."""
    if not settings.auth_enabled:
        return _ANONYMOUS_ADMIN

    payload = _decode(credentials)
    if payload is None:
        return _ANONYMOUS_READER

    try:
        return _load_auth_context(payload, db)
    except AuthenticationError as e:
        logger.info("Ignoring token for optional auth: %s", e.message)
        return _ANONYMOUS_READER


def require_admin(auth: AuthContext = Depends(require_auth)) -> AuthContext:
    """Require the authenticated user to be an admin. Raises 403 otherwise."""
    if not auth.is_admin:
        raise ForbiddenError("Admin access required")
    return auth


def _load_auth_context(payload: TokenPayload, db: Session) -> AuthContext:
    from ..models.user import User

    user = db.query(User).filter(User.user_id == payload.sub).first()
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    return AuthContext(user_id=user.user_id, role=user.role)
