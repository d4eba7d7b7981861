"""
FastAPI Authentication Dependencies
This module provides FastAPI dependency functions that can be injected into route handlers
to build the authentication services and to validate the session token of a request.
Usage in endpoints:
    @router.get("/protected")
    def protected_route(claims: SessionClaims = Depends(get_current_claims)):
        # claims are validated against the token and the current identity record
        return {"identity": claims.identity_id}

    @router.get("/admin", dependencies=[Depends(require_role(IdentityRole.ADMIN))])
    def admin_route(): ...
Flow:
1. Client sends request with Authorization: Bearer <token> header (or the access_token cookie)
2. FastAPI calls get_current_claims() dependency
3. _extract_token() extracts the token from the header or cookie
4. SessionValidator.validate() checks the JWT and re-loads the identity
5. Returns SessionClaims to the route handler
"""

from typing import Callable, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from walletgate.core.clock import Clock, SystemClock
from walletgate.core.config import settings
from walletgate.core.errors import AuthErrorKind, AuthFailure
from walletgate.core.jwt_utils import TokenConfig
from walletgate.db.session import get_db
from walletgate.services.authenticator import WalletAuthenticator
from walletgate.services.record_store import RecordStore
from walletgate.services.session import SessionClaims, SessionValidator, authorize
from walletgate.services.sql_store import SqlRecordStore


def get_clock() -> Clock:
    return SystemClock()


def get_token_config(request: Request) -> TokenConfig:
    """Key material built once in the app lifespan."""
    return request.app.state.token_config


def get_record_store(request: Request, db: Session = Depends(get_db)) -> RecordStore:
    """The process-wide store when one was built in the lifespan, otherwise SQL on this request's session."""
    shared = getattr(request.app.state, "record_store", None)
    if shared is not None:
        return shared
    return SqlRecordStore(db)


def get_authenticator(
    store: RecordStore = Depends(get_record_store),
    token_config: TokenConfig = Depends(get_token_config),
    clock: Clock = Depends(get_clock),
) -> WalletAuthenticator:
    return WalletAuthenticator.build(store, token_config, settings, clock=clock)


def get_session_validator(
    store: RecordStore = Depends(get_record_store),
    token_config: TokenConfig = Depends(get_token_config),
    clock: Clock = Depends(get_clock),
) -> SessionValidator:
    return SessionValidator(token_config, store, clock=clock)


def _extract_token(authorization: Optional[str], cookie_token: Optional[str]) -> Optional[str]:
    """
    Extract JWT token from the Authorization header, falling back to the auth cookie.
    Supports both "Bearer <token>" and plain token formats.
    """
    if authorization and authorization.strip():
        authorization = authorization.strip()
        if authorization.lower().startswith("bearer "):
            token = authorization[7:].strip()
        else:
            token = authorization
        return token or None
    if cookie_token and cookie_token.strip():
        return cookie_token.strip()
    return None


def get_current_claims(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
    validator: SessionValidator = Depends(get_session_validator),
) -> SessionClaims:
    token = _extract_token(authorization, request.cookies.get(settings.AUTH_COOKIE_NAME))
    result = validator.validate(token)
    if isinstance(result, AuthFailure):
        raise result.to_http()
    return result


def require_role(*allowed_roles: str) -> Callable[..., SessionClaims]:
    """Dependency factory: 403 unless the caller's current role is in ``allowed_roles``."""

    def checker(claims: SessionClaims = Depends(get_current_claims)) -> SessionClaims:
        if not authorize(claims, allowed_roles):
            raise AuthFailure(AuthErrorKind.FORBIDDEN).to_http()
        return claims

    return checker
