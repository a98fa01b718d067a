"""
Auth module - JWT tokens, bcrypt password hashing, one-time token digests.
"""

from common.auth.jwt_auth import JWTAuth, TokenError

__all__ = ["JWTAuth", "TokenError"]
