"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT
- TokenService: access/refresh token pairs with refresh-token rotation

The refresh token currently valid for a user is mirrored on the user row.
Issuing a pair overwrites it, which is what invalidates the previous one;
a refresh token that no longer matches the stored value is rejected even if
its signature and expiry are still fine.
"""
from __future__ import annotations

import hmac
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from sqlalchemy.exc import SQLAlchemyError

from models.partial_update import PartialUpdate
from models.user import User
from utils.exceptions import InternalError, Unauthorized

logger = logging.getLogger(__name__)

ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    if not password or not password_hash:
        return False
    try:
        return ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False
    except (VerificationError, InvalidHashError):
        logger.warning("Stored password hash could not be verified")
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    def __init__(self, storage, settings):
        self.storage = storage
        self.settings = settings

    def _encode(self, claims: Dict[str, Any], token_type: str, secret: str, expires) -> str:
        now = _now()
        payload = {
            **claims,
            "iss": self.settings.jwt_issuer,
            "iat": int(now.timestamp()),
            "exp": int((now + expires).timestamp()),
            "type": token_type,
            "jti": generate_jti(),
        }
        return jwt.encode(payload, secret, algorithm=self.settings.jwt_algorithm)

    def create_access_token(self, user: User) -> str:
        claims = {
            "_id": user.id,
            "email": user.email,
            "username": user.username,
            "fullName": user.full_name,
        }
        return self._encode(
            claims, "access", self.settings.access_token_secret, self.settings.access_token_expires
        )

    def create_refresh_token(self, user_id: str) -> str:
        return self._encode(
            {"_id": user_id}, "refresh", self.settings.refresh_token_secret, self.settings.refresh_token_expires
        )

    def decode_token(self, token: str, expected_type: str = "access") -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises Unauthorized on invalid signature,
        expiry or wrong token type.
        """
        secret = (
            self.settings.refresh_token_secret if expected_type == "refresh"
            else self.settings.access_token_secret
        )
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.jwt_algorithm],
                issuer=self.settings.jwt_issuer,
            )
        except jwt.ExpiredSignatureError:
            raise Unauthorized(f"{expected_type.capitalize()} token expired")
        except jwt.InvalidTokenError:
            raise Unauthorized(f"Invalid {expected_type} token")

        if decoded.get("type") != expected_type or not decoded.get("_id"):
            raise Unauthorized(f"Invalid {expected_type} token")
        return decoded

    def verify_access(self, token: str) -> Dict[str, Any]:
        if not token:
            raise Unauthorized("Unauthorized request")
        return self.decode_token(token, expected_type="access")

    async def issue_pair(self, user_id: str) -> TokenPair:
        """Sign a new access/refresh pair and store the refresh token on the user."""
        try:
            user = await self.storage.get(User, user_id)
            if user is None:
                raise InternalError("Something went wrong while generating refresh and access token")
            pair = TokenPair(self.create_access_token(user), self.create_refresh_token(user.id))
            saved = await self.storage.update_fields(User, user.id, PartialUpdate.of(refresh_token=pair.refresh_token))
        except SQLAlchemyError as exc:
            logger.exception("Token issuance failed for user %s", user_id)
            raise InternalError("Something went wrong while generating refresh and access token") from exc
        if saved is None:
            raise InternalError("Something went wrong while generating refresh and access token")
        return pair

    async def verify_refresh(self, token: str) -> str:
        """Return the user id bound to a currently valid refresh token."""
        if not token:
            raise Unauthorized("Unauthorized request")
        decoded = self.decode_token(token, expected_type="refresh")

        user = await self.storage.get(User, decoded["_id"])
        if user is None:
            raise Unauthorized("Invalid refresh token")
        if not user.refresh_token or not hmac.compare_digest(user.refresh_token, token):
            logger.info("Rejected stale refresh token for user %s", user.id)
            raise Unauthorized("Refresh token is expired or used")
        return user.id

    async def revoke(self, user_id: str) -> None:
        """Forget the stored refresh token. Safe to call repeatedly."""
        await self.storage.update_fields(User, user_id, PartialUpdate.of(refresh_token=None))
