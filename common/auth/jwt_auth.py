"""
JWT + bcrypt authentication helpers.

A token and password toolkit using:
- JWT tokens for stateless access and refresh credentials
- bcrypt for secure password hashing
- SHA-256 digests for one-time tokens (email verification, password reset)

User storage is not handled here; callers persist the refresh token and
token digests on their own documents.

Example:
    auth = JWTAuth(
        secret="your-secret-key",
        access_token_expire_minutes=15,
    )

    access = auth.create_access_token(user_id)
    claims = auth.verify_access_token(access)
    print(claims["sub"])  # user_id
"""

import base64
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, Tuple

import bcrypt as bcrypt_lib
from jose import jwt, JWTError, ExpiredSignatureError


ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenError(ValueError):
    """Raised when a token cannot be decoded or has the wrong type."""

    def __init__(self, message: str, expired: bool = False):
        super().__init__(message)
        self.expired = expired


class JWTAuth:
    """
    JWT + bcrypt authentication helper.

    Access and refresh tokens are signed with separate secrets when a refresh
    secret is configured, and carry a "type" claim so one cannot be used in
    place of the other.
    """

    def __init__(
        self,
        secret: str,
        refresh_secret: Optional[str] = None,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 15,
        refresh_token_expire_days: int = 30,
    ):
        """
        Initialize JWT auth helper.

        Args:
            secret: Secret key for access token signing
            refresh_secret: Secret key for refresh tokens (defaults to secret)
            algorithm: JWT algorithm (default: HS256)
            access_token_expire_minutes: Access token lifetime
            refresh_token_expire_days: Refresh token lifetime
        """
        self.secret = secret
        self.refresh_secret = refresh_secret or secret
        self.algorithm = algorithm
        self.access_token_expire = timedelta(minutes=access_token_expire_minutes)
        self.refresh_token_expire = timedelta(days=refresh_token_expire_days)

    # ─────────────────────────────────────────────────────────────────
    # Passwords
    # ─────────────────────────────────────────────────────────────────

    def _prehash_password(self, password: str) -> str:
        """
        Pre-hash password with SHA-256 before bcrypt.

        This handles bcrypt's 72-byte limit and ensures consistent
        behavior across all password lengths.
        """
        sha256_hash = hashlib.sha256(password.encode("utf-8")).digest()
        return base64.b64encode(sha256_hash).decode("utf-8")

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt with SHA-256 pre-hashing."""
        prehashed = self._prehash_password(password)
        salt = bcrypt_lib.gensalt()
        return bcrypt_lib.hashpw(prehashed.encode("utf-8"), salt).decode("utf-8")

    def verify_password(self, password: str, hashed: Optional[str]) -> bool:
        """Verify a password against its hash."""
        if not hashed:
            return False

        prehashed = self._prehash_password(password)
        try:
            return bcrypt_lib.checkpw(prehashed.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Malformed hash stored on the document
            return False

    # ─────────────────────────────────────────────────────────────────
    # JWT
    # ─────────────────────────────────────────────────────────────────

    def _encode(self, user_id: str, token_type: str, lifetime: timedelta, secret: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "type": token_type,
            "iat": now,
            "exp": now + lifetime,
            # Two tokens minted in the same second must still differ
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def _decode(self, token: str, token_type: str, secret: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenError("Token has expired", expired=True)
        except JWTError as e:
            raise TokenError(f"Invalid token: {e}")

        if payload.get("type") != token_type:
            raise TokenError(f"Expected a {token_type} token")
        if not payload.get("sub"):
            raise TokenError("Token has no subject")

        return payload

    def create_access_token(self, user_id: str) -> str:
        """Create a short-lived access token for the user."""
        return self._encode(user_id, ACCESS_TOKEN_TYPE, self.access_token_expire, self.secret)

    def create_refresh_token(self, user_id: str) -> str:
        """Create a long-lived refresh token for the user."""
        return self._encode(
            user_id, REFRESH_TOKEN_TYPE, self.refresh_token_expire, self.refresh_secret
        )

    def create_token_pair(self, user_id: str) -> Tuple[str, str]:
        """Create (access_token, refresh_token)."""
        return self.create_access_token(user_id), self.create_refresh_token(user_id)

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode an access token.

        Raises:
            TokenError: Invalid, expired, or not an access token
        """
        return self._decode(token, ACCESS_TOKEN_TYPE, self.secret)

    def verify_refresh_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a refresh token.

        Raises:
            TokenError: Invalid, expired, or not a refresh token
        """
        return self._decode(token, REFRESH_TOKEN_TYPE, self.refresh_secret)

    # ─────────────────────────────────────────────────────────────────
    # One-time tokens
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def generate_one_time_token() -> Tuple[str, str]:
        """
        Generate a random one-time token.

        Returns:
            (raw_token, sha256_hex). Send the raw token, store the digest.
        """
        raw = secrets.token_hex(32)
        return raw, JWTAuth.hash_token(raw)

    @staticmethod
    def hash_token(token: str) -> str:
        """SHA-256 hex digest of a one-time token."""
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
