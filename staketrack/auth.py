"""
Request authentication.

Firebase ID tokens are verified with ``firebase_admin``. When
``AUTH_DISABLED`` is set, a development verifier accepts tokens of the form
``dev:<uid>`` or ``dev:<uid>:<role>`` so the API can be exercised locally.
Requests without credentials run as guests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from firebase_admin import auth as firebase_auth

from staketrack_shared.errors import AuthError

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "user"
ADMIN_ROLE = "admin"
DEFAULT_GUEST_ID = "local"


@dataclass(frozen=True)
class CurrentUser:
    uid: str
    email: Optional[str] = None
    role: str = DEFAULT_ROLE
    is_guest: bool = False

    @classmethod
    def guest(cls, guest_id: Optional[str] = None) -> "CurrentUser":
        return cls(uid=guest_id or DEFAULT_GUEST_ID, role="guest", is_guest=True)


class AuthVerifier(Protocol):
    def verify(self, token: str) -> CurrentUser:
        ...


class FirebaseAuthVerifier:
    """Verifies Firebase ID tokens; the role comes from the ``role`` claim."""

    def __init__(self, app=None, check_revoked: bool = False):
        self.app = app
        self.check_revoked = check_revoked

    def verify(self, token: str) -> CurrentUser:
        try:
            claims = firebase_auth.verify_id_token(
                token, app=self.app, check_revoked=self.check_revoked
            )
        except (ValueError, firebase_auth.InvalidIdTokenError) as exc:
            logger.info("Rejected ID token: %s", exc)
            raise AuthError("Invalid authentication token") from exc
        except firebase_auth.CertificateFetchError as exc:
            logger.exception("Could not fetch token signing certificates")
            raise AuthError("Authentication unavailable") from exc
        return CurrentUser(
            uid=claims["uid"],
            email=claims.get("email"),
            role=claims.get("role", DEFAULT_ROLE),
        )


class DevAuthVerifier:
    """Accepts ``dev:<uid>[:<role>]`` tokens. Never enable in production."""

    def verify(self, token: str) -> CurrentUser:
        parts = token.split(":")
        if len(parts) not in (2, 3) or parts[0] != "dev" or not parts[1]:
            raise AuthError("Invalid development token")
        role = parts[2] if len(parts) == 3 and parts[2] else DEFAULT_ROLE
        return CurrentUser(uid=parts[1], email=f"{parts[1]}@local", role=role)


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Malformed Authorization header")
    return token.strip()
