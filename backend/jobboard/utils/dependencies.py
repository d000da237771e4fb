import logging

from fastapi import Depends, Header, HTTPException

from .. import config
from ..models.user import User
from ..storage import FlatFileStore, get_store
from .error_handlers import get_error_message
from .jwt import verify_access_token

logger = logging.getLogger(__name__)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(
    authorization: str | None = Header(default=None),
    legacy_user_id: str | None = Header(default=None, alias="user-id"),
    store: FlatFileStore = Depends(get_store),
) -> User:
    """
    Resolve the caller to a stored user.

    A bearer access token always wins. The raw `user-id` header is only consulted when
    no token is sent and ALLOW_LEGACY_USER_HEADER is on; it carries no signature, so it
    is logged on every use.
    """
    token = _bearer_token(authorization)
    if token:
        claims = verify_access_token(token)
        if not claims:
            raise HTTPException(status_code=401, detail=get_error_message("invalid_token"))
        user = store.get_user(claims["userId"])
        if not user:
            raise HTTPException(status_code=401, detail=get_error_message("user_not_found"))
        return user

    if legacy_user_id and config.ALLOW_LEGACY_USER_HEADER:
        user = store.get_user(legacy_user_id.strip())
        if user:
            logger.warning("Request authenticated by legacy user-id header for user %s", user.id)
            return user

    raise HTTPException(status_code=401, detail=get_error_message("auth_required"))
