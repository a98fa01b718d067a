"""
User service for account lifecycle and profile management.

Handles registration, profile reads and edits, passwords, one-time tokens
and the stored refresh token.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional, List, Dict, Any, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import JWTAuth
from common.database import to_object_id
from common.utils.dates import age_on
from common.utils.exceptions import (
    BadRequestException,
    ConflictException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from common.utils.password import validate_password
from common.utils.serialization import without_fields
from tripmates.catalog.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


# Never leave the service in an API response
PRIVATE_FIELDS = (
    "passwordHash",
    "refreshToken",
    "emailVerificationToken",
    "emailVerificationExpires",
    "resetPasswordToken",
    "resetPasswordExpires",
)

# Visible to any authenticated user
PUBLIC_FIELDS = (
    "_id",
    "firstName",
    "lastName",
    "profilePictureUrl",
    "description",
    "languages",
    "interests",
)


class UserService:
    """
    Manages user accounts.
    """

    EDITABLE_FIELDS = (
        "firstName",
        "lastName",
        "birthDate",
        "profilePictureUrl",
        "description",
        "languages",
        "interests",
    )

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        jwt_auth: JWTAuth,
        catalog_service: CatalogService,
        min_age: int = 16,
        verification_expire_hours: int = 1,
        reset_expire_hours: int = 1,
    ):
        """
        Initialize UserService.

        Args:
            db: MongoDB database connection
            jwt_auth: Password hashing and one-time tokens
            catalog_service: Validates language and interest ids
            min_age: Minimum age at registration
            verification_expire_hours: Lifetime of the email verification token
            reset_expire_hours: Lifetime of the password reset token
        """
        self._jwt_auth = jwt_auth
        self._catalog_service = catalog_service
        self._min_age = min_age
        self._verification_lifetime = timedelta(hours=verification_expire_hours)
        self._reset_lifetime = timedelta(hours=reset_expire_hours)
        self._users_collection = db["users"]

    # ─────────────────────────────────────────────────────────────────
    # Formatting
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def format_user(user: dict) -> Dict[str, Any]:
        """The owner's view of their account."""
        return without_fields(user, PRIVATE_FIELDS)

    @staticmethod
    def format_public(user: dict) -> Dict[str, Any]:
        """What other users see of an account."""
        return {field: user.get(field) for field in PUBLIC_FIELDS}

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    async def get_user(self, user_id) -> Dict[str, Any]:
        user = await self._users_collection.find_one({"_id": to_object_id(user_id, "userId")})
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")
        return user

    async def get_user_by_id_or_none(self, user_id) -> Optional[dict]:
        """Lookup by id that returns None for missing users and malformed ids."""
        if isinstance(user_id, str) and not ObjectId.is_valid(user_id):
            return None
        if not isinstance(user_id, (str, ObjectId)):
            return None
        return await self._users_collection.find_one({"_id": ObjectId(user_id)})

    async def get_user_by_email(self, email: str) -> Optional[dict]:
        return await self._users_collection.find_one({"email": email.strip().lower()})

    async def get_public_profile(self, user_id) -> Dict[str, Any]:
        return self.format_public(await self.get_user(user_id))

    # ─────────────────────────────────────────────────────────────────
    # Validation
    # ─────────────────────────────────────────────────────────────────

    def _check_new_password(self, password: str, confirm_password: str) -> None:
        if password != confirm_password:
            raise BadRequestException(message="Passwords do not match", code="PASSWORD_MISMATCH")

        is_valid, errors = validate_password(password)
        if not is_valid:
            raise ValidationException(
                message="Password is too weak",
                code="WEAK_PASSWORD",
                details={"errors": errors},
            )

    def _check_age(self, birth_date: date, today: Optional[date] = None) -> None:
        today = today or datetime.now(timezone.utc).date()
        if age_on(birth_date, today) < self._min_age:
            raise ValidationException(
                message=f"You must be at least {self._min_age} years old",
                code="USER_TOO_YOUNG",
                details={"minAge": self._min_age},
            )

    # ─────────────────────────────────────────────────────────────────
    # Registration
    # ─────────────────────────────────────────────────────────────────

    async def create_user(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        confirm_password: str,
        birth_date: date,
        languages: Optional[List[str]] = None,
        interests: Optional[List[str]] = None,
        description: Optional[str] = None,
        profile_picture_url: Optional[str] = None,
    ) -> Tuple[Dict[str, Any], str]:
        """
        Create a new, unverified user.

        Returns:
            (user document, raw email verification token)

        Raises:
            ConflictException: Email already registered
            BadRequestException: Passwords differ or unknown catalog ids
            ValidationException: Weak password or user too young
        """
        email = email.strip().lower()
        if await self._users_collection.find_one({"email": email}, {"_id": 1}):
            raise ConflictException(message="Email is already registered", code="EMAIL_ALREADY_EXISTS")

        self._check_new_password(password, confirm_password)
        self._check_age(birth_date)

        language_ids = await self._catalog_service.ensure_exists("languages", languages or [])
        interest_ids = await self._catalog_service.ensure_exists("interests", interests or [])

        raw_token, token_hash = self._jwt_auth.generate_one_time_token()
        now = datetime.now(timezone.utc)

        user_doc = {
            "firstName": first_name.strip(),
            "lastName": last_name.strip(),
            "birthDate": datetime(birth_date.year, birth_date.month, birth_date.day, tzinfo=timezone.utc),
            "email": email,
            "passwordHash": self._jwt_auth.hash_password(password),
            "profilePictureUrl": profile_picture_url,
            "description": description,
            "languages": language_ids,
            "interests": interest_ids,
            "refreshToken": None,
            "emailVerified": False,
            "emailVerificationToken": token_hash,
            "emailVerificationExpires": now + self._verification_lifetime,
            "resetPasswordToken": None,
            "resetPasswordExpires": None,
            "reportCount": 0,
            "isBanned": False,
            "banTimeLapse": None,
            "createdAt": now,
            "updatedAt": now,
        }

        result = await self._users_collection.insert_one(user_doc)
        user_doc["_id"] = result.inserted_id

        logger.info(f"User created: {result.inserted_id}")
        return user_doc, raw_token

    async def verify_email(self, token: str) -> Dict[str, Any]:
        """
        Mark the account owning an unexpired verification token as verified.

        Raises:
            BadRequestException: Unknown or expired token
        """
        now = datetime.now(timezone.utc)
        user = await self._users_collection.find_one({
            "emailVerificationToken": self._jwt_auth.hash_token(token),
            "emailVerificationExpires": {"$gte": now},
        })
        if not user:
            raise BadRequestException(
                message="Invalid or expired token",
                code="INVALID_OR_EXPIRED_TOKEN",
            )

        await self._users_collection.update_one(
            {"_id": user["_id"]},
            {"$set": {
                "emailVerified": True,
                "emailVerificationToken": None,
                "emailVerificationExpires": None,
                "updatedAt": now,
            }}
        )
        logger.info(f"Email verified for user {user['_id']}")
        return {**user, "emailVerified": True}

    # ─────────────────────────────────────────────────────────────────
    # Profile
    # ─────────────────────────────────────────────────────────────────

    async def update_profile(self, user_id, updates: dict) -> Tuple[Dict[str, Any], bool]:
        """
        Update whitelisted profile fields.

        Returns:
            (updated user, whether the spoken languages changed)
        """
        user = await self.get_user(user_id)
        changes = {key: value for key, value in updates.items() if key in self.EDITABLE_FIELDS and value is not None}

        if "birthDate" in changes:
            birth_date = changes["birthDate"]
            self._check_age(birth_date)
            if not isinstance(birth_date, datetime):
                changes["birthDate"] = datetime(
                    birth_date.year, birth_date.month, birth_date.day, tzinfo=timezone.utc
                )
        if "languages" in changes:
            changes["languages"] = await self._catalog_service.ensure_exists("languages", changes["languages"])
        if "interests" in changes:
            changes["interests"] = await self._catalog_service.ensure_exists("interests", changes["interests"])

        languages_changed = "languages" in changes and changes["languages"] != user.get("languages", [])

        if not changes:
            return user, False

        changes["updatedAt"] = datetime.now(timezone.utc)
        await self._users_collection.update_one({"_id": user["_id"]}, {"$set": changes})

        logger.info(f"Profile updated for user {user['_id']}: {sorted(changes)}")
        return {**user, **changes}, languages_changed

    # ─────────────────────────────────────────────────────────────────
    # Passwords
    # ─────────────────────────────────────────────────────────────────

    async def change_password(
        self,
        user_id,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """
        Replace the password after checking the current one.

        The stored refresh token is cleared so other sessions must log in again.
        """
        user = await self.get_user(user_id)
        if not self._jwt_auth.verify_password(current_password, user.get("passwordHash")):
            raise UnauthorizedException(message="Current password is incorrect", code="INVALID_PASSWORD")

        self._check_new_password(new_password, confirm_password)

        await self._users_collection.update_one(
            {"_id": user["_id"]},
            {"$set": {
                "passwordHash": self._jwt_auth.hash_password(new_password),
                "refreshToken": None,
                "updatedAt": datetime.now(timezone.utc),
            }}
        )
        logger.info(f"Password changed for user {user['_id']}")

    async def create_password_reset(self, user: dict) -> str:
        """Store a reset token digest and return the raw token."""
        raw_token, token_hash = self._jwt_auth.generate_one_time_token()
        await self._users_collection.update_one(
            {"_id": user["_id"]},
            {"$set": {
                "resetPasswordToken": token_hash,
                "resetPasswordExpires": datetime.now(timezone.utc) + self._reset_lifetime,
            }}
        )
        return raw_token

    async def reset_password(self, token: str, new_password: str, confirm_password: str) -> Dict[str, Any]:
        """
        Set a new password from a reset token.

        Raises:
            BadRequestException: Unknown or expired token, or passwords differ
            ValidationException: Weak password
        """
        now = datetime.now(timezone.utc)
        user = await self._users_collection.find_one({
            "resetPasswordToken": self._jwt_auth.hash_token(token),
            "resetPasswordExpires": {"$gte": now},
        })
        if not user:
            raise BadRequestException(
                message="Invalid or expired token",
                code="INVALID_OR_EXPIRED_TOKEN",
            )

        self._check_new_password(new_password, confirm_password)

        await self._users_collection.update_one(
            {"_id": user["_id"]},
            {"$set": {
                "passwordHash": self._jwt_auth.hash_password(new_password),
                "resetPasswordToken": None,
                "resetPasswordExpires": None,
                "refreshToken": None,
                "updatedAt": now,
            }}
        )
        logger.info(f"Password reset for user {user['_id']}")
        return user

    # ─────────────────────────────────────────────────────────────────
    # Session state
    # ─────────────────────────────────────────────────────────────────

    async def set_refresh_token(self, user_id, refresh_token: Optional[str]) -> None:
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id, "userId")},
            {"$set": {"refreshToken": refresh_token}}
        )

    async def lift_ban(self, user_id) -> None:
        """Clear a user's ban flag and expiry."""
        await self._users_collection.update_one(
            {"_id": to_object_id(user_id, "userId")},
            {"$set": {"isBanned": False, "banTimeLapse": None}}
        )
        logger.info(f"Ban lifted for user {user_id}")
