# medcamp/core/auth.py
"""
Request authentication pipeline, as FastAPI dependencies.

    get_principal        bearer token  -> Principal        (401)
    get_scoped_session   Principal     -> Session as caller
    get_current_user     Principal     -> CurrentUser      (401)
    require_roles(...)   CurrentUser   -> CurrentUser      (403)

FastAPI caches dependencies per request, so a route and its guards share
one verified principal and one scoped session.
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.engine import Engine
from sqlmodel import Session

from medcamp.core.access import ROLE_ADMIN, ROLE_USER, authorize
from medcamp.core.config import Settings, get_settings
from medcamp.core.errors import Unauthenticated
from medcamp.core.identity import IdentityVerifier, Principal, build_identity_verifier
from medcamp.database import get_engine, open_session
from medcamp.repositories.user_repo import UserRepository
from medcamp.schemas.user import CurrentUser
from medcamp.services.profile_resolver import ProfileResolver

# HTTP Bearer scheme:
# - auto_error=False => a missing/malformed Authorization header yields None,
#   so we can answer with our own 401 payload.
bearer_scheme = HTTPBearer(auto_error=False)

resolver = ProfileResolver(UserRepository())


def get_identity_verifier(
    settings: Settings = Depends(get_settings),
) -> IdentityVerifier:
    """Verifier selected by AUTH_VERIFY_MODE. Override in tests."""
    return build_identity_verifier(settings)


def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Principal:
    """
    Verify the bearer token.

    Raises:
        Unauthenticated(401): no token, or the provider rejects it.
    """
    if credentials is None:
        raise Unauthenticated("Not authorized, no token")
    return verifier.verify(credentials.credentials)


def get_scoped_session(
    principal: Principal = Depends(get_principal),
    engine: Engine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
):
    """
    Yield a Session whose queries run as the caller, so Supabase RLS
    policies apply on top of the service checks.
    """
    claims = {**principal.claims, "sub": str(principal.subject_id)}
    rls_role = settings.DB_RLS_ROLE if settings.DB_APPLY_RLS else None
    with open_session(engine, claims=claims, rls_role=rls_role) as session:
        yield session


def get_current_user(
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_scoped_session),
) -> CurrentUser:
    """
    Resolve the caller's profile, auto-provisioning it on first use.

    Raises:
        ProfileUnavailable(401): no profile and none could be created.
    """
    return resolver.resolve(session, principal)


def require_roles(*roles: str):
    """
    Build a dependency admitting only callers whose role is in `roles`.

    Raises:
        Forbidden(403): role missing or not allowed.
    """
    allowed = frozenset(roles)

    def _require(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        authorize(user.role, allowed)
        return user

    return _require


# Patients: booking endpoints. Admins are rejected with 403.
require_user = require_roles(ROLE_USER)

# Administrators: camp-wide views and status changes.
require_admin = require_roles(ROLE_ADMIN)
