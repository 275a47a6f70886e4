# medcamp/core/identity.py
"""
Bearer token verification.

Two verifiers share one contract, `verify(token) -> Principal`:

  - SupabaseIdentityVerifier: asks Supabase Auth (`auth.get_user`) whether
    the token is valid. Revoked sessions are rejected too.
  - JWTIdentityVerifier: checks signature + expiry locally with the project
    JWT secret. No network round-trip.

Both raise `Unauthenticated` on any failure.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel
from supabase import AuthError, Client

from medcamp.core.config import Settings
from medcamp.core.errors import Unauthenticated
from medcamp.core.supabase_client import supabase_public

logger = logging.getLogger(__name__)


class Principal(BaseModel):
    """
    Authenticated caller as attested by the identity provider.

    `claims` is forwarded to Postgres so RLS policies see the same identity.
    """

    subject_id: uuid.UUID
    email: str
    claims: dict[str, Any] = {}


def _principal_from(sub: Any, email: Any, claims: dict[str, Any]) -> Principal:
    if not sub or not email:
        raise Unauthenticated("Token missing sub/email")

    # Supabase provides sub as a string; enforce UUID
    try:
        sub_uuid = uuid.UUID(str(sub))
    except ValueError:
        raise Unauthenticated("Invalid sub in token")

    return Principal(subject_id=sub_uuid, email=email, claims=claims)


class IdentityVerifier(ABC):
    @abstractmethod
    def verify(self, token: str) -> Principal:
        """Return the caller behind `token` or raise Unauthenticated."""


class JWTIdentityVerifier(IdentityVerifier):
    """
    Decode and verify a Supabase access token (JWT) locally.

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)
    """

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def verify(self, token: str) -> Principal:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_aud": False},
            )
        except JWTError as exc:
            logger.info("Rejected bearer token: %s", exc)
            raise Unauthenticated("Invalid or expired token")

        return _principal_from(payload.get("sub"), payload.get("email"), payload)


class SupabaseIdentityVerifier(IdentityVerifier):
    """Verify tokens against the Supabase Auth `/user` endpoint."""

    def __init__(self, client: Client):
        self.client = client

    def verify(self, token: str) -> Principal:
        try:
            response = self.client.auth.get_user(token)
        except AuthError as exc:
            logger.info("Supabase auth.get_user rejected token: %s", exc)
            raise Unauthenticated("Not authorized, token failed or user not found")

        user = response.user if response is not None else None
        if user is None:
            raise Unauthenticated("Not authorized, token failed or user not found")

        # Minimal claim set understood by Supabase RLS helpers (auth.uid()).
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "role": getattr(user, "role", None) or "authenticated",
        }
        return _principal_from(user.id, user.email, claims)


def build_identity_verifier(settings: Settings) -> IdentityVerifier:
    """
    Construct the verifier selected by AUTH_VERIFY_MODE.

    Raises:
        RuntimeError: jwt mode without SUPABASE_JWT_SECRET.
    """
    if settings.AUTH_VERIFY_MODE == "jwt":
        if not settings.SUPABASE_JWT_SECRET:
            raise RuntimeError("Missing SUPABASE_JWT_SECRET in .env")
        return JWTIdentityVerifier(
            settings.SUPABASE_JWT_SECRET,
            settings.SUPABASE_JWT_ALG,
        )

    return SupabaseIdentityVerifier(
        supabase_public(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    )
