"""
FastAPI dependencies for the Tripmates application.

Provides dependency injection for all services.
"""

from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import JWTAuth
from common.utils.exceptions import ForbiddenException
from tripmates.config import settings

# Auth
from tripmates.middleware.auth import AuthMiddleware
from tripmates.services.email.email_service import EmailService

# Users
from tripmates.users.services.user_service import UserService
from tripmates.users.services.account_deletion import AccountDeletionService

# Catalog
from tripmates.catalog.services.catalog_service import CatalogService

# Groups
from tripmates.groups.services.membership_service import MembershipService
from tripmates.groups.services.join_request_service import JoinRequestService

# Trips
from tripmates.trips.services.trip_service import TripService

# Moderation
from tripmates.moderation.services.block_service import BlockService
from tripmates.moderation.services.report_service import ReportService
from tripmates.moderation.services.moderator_service import ModeratorService

# Messaging
from tripmates.messaging.services.private_message_service import PrivateMessageService
from tripmates.messaging.services.group_message_service import GroupMessageService


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

# Auth
_jwt_auth: Optional[JWTAuth] = None
_auth_middleware: Optional[AuthMiddleware] = None
_email_service: Optional[EmailService] = None

# Catalog
_catalog_service: Optional[CatalogService] = None

# Groups
_membership_service: Optional[MembershipService] = None
_join_request_service: Optional[JoinRequestService] = None

# Trips
_trip_service: Optional[TripService] = None

# Moderation
_block_service: Optional[BlockService] = None
_report_service: Optional[ReportService] = None
_moderator_service: Optional[ModeratorService] = None

# Messaging
_private_message_service: Optional[PrivateMessageService] = None
_group_message_service: Optional[GroupMessageService] = None

# Users
_user_service: Optional[UserService] = None
_account_deletion_service: Optional[AccountDeletionService] = None


# ─────────────────────────────────────────────────────────────────
# Initialization functions
# ─────────────────────────────────────────────────────────────────

def init_catalog_services(db: AsyncIOMotorDatabase) -> None:
    """Initialize catalog services."""
    global _catalog_service
    _catalog_service = CatalogService(db=db, default_language=settings.DEFAULT_LANGUAGE)


def init_group_services(db: AsyncIOMotorDatabase) -> None:
    """Initialize group services."""
    global _membership_service, _join_request_service

    _membership_service = MembershipService(db=db)
    _join_request_service = JoinRequestService(db=db, membership_service=_membership_service)


def init_trip_services(db: AsyncIOMotorDatabase) -> None:
    """Initialize trip services."""
    global _trip_service

    _trip_service = TripService(
        db=db,
        membership_service=_membership_service,
        catalog_service=_catalog_service,
    )


def init_messaging_services(db: AsyncIOMotorDatabase) -> None:
    """Initialize messaging and blocking services."""
    global _block_service, _private_message_service, _group_message_service

    _block_service = BlockService(db=db)
    _private_message_service = PrivateMessageService(db=db, block_service=_block_service)
    _group_message_service = GroupMessageService(db=db, membership_service=_membership_service)


def init_user_services(db: AsyncIOMotorDatabase) -> None:
    """Initialize user, auth and account deletion services."""
    global _jwt_auth, _user_service, _account_deletion_service
    global _auth_middleware, _email_service

    _jwt_auth = JWTAuth(
        secret=settings.JWT_SECRET,
        refresh_secret=settings.get_refresh_secret(),
        algorithm=settings.JWT_ALGORITHM,
        access_token_expire_minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
        refresh_token_expire_days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS,
    )
    _user_service = UserService(
        db=db,
        jwt_auth=_jwt_auth,
        catalog_service=_catalog_service,
        min_age=settings.MIN_USER_AGE,
        verification_expire_hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS,
        reset_expire_hours=settings.PASSWORD_RESET_EXPIRE_HOURS,
    )
    _account_deletion_service = AccountDeletionService(
        db=db,
        membership_service=_membership_service,
        private_message_service=_private_message_service,
        group_message_service=_group_message_service,
    )
    _auth_middleware = AuthMiddleware(jwt_auth=_jwt_auth, user_service=_user_service)
    _email_service = EmailService(
        mode=settings.EMAIL_MODE,
        resend_api_key=settings.RESEND_API_KEY,
        from_email=settings.SMTP_FROM_EMAIL,
        from_name=settings.SMTP_FROM_NAME,
        app_url=settings.FRONTEND_URL,
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_user=settings.SMTP_USER,
        smtp_password=settings.SMTP_PASSWORD,
    )


def init_moderation_services(db: AsyncIOMotorDatabase) -> None:
    """Initialize report and moderator services."""
    global _report_service, _moderator_service

    _moderator_service = ModeratorService(db=db)
    _report_service = ReportService(
        db=db,
        account_deletion_service=_account_deletion_service,
        catalog_service=_catalog_service,
        first_ban=timedelta(hours=settings.FIRST_BAN_HOURS),
        second_ban=timedelta(days=settings.SECOND_BAN_DAYS),
        permanent_at=settings.PERMANENT_BAN_REPORT_COUNT,
    )


def init_all_services(db: AsyncIOMotorDatabase) -> None:
    """
    Initialize all services at application startup.

    Order matters: later services receive earlier ones.

    Args:
        db: Main MongoDB database connection
    """
    init_catalog_services(db)
    init_group_services(db)
    init_trip_services(db)
    init_messaging_services(db)
    init_user_services(db)
    init_moderation_services(db)


# ─────────────────────────────────────────────────────────────────
# Auth getters
# ─────────────────────────────────────────────────────────────────

def get_jwt_auth() -> JWTAuth:
    """Get JWT helper."""
    if _jwt_auth is None:
        raise RuntimeError("Auth services not initialized.")
    return _jwt_auth


def get_auth_middleware() -> AuthMiddleware:
    """Get auth middleware instance."""
    if _auth_middleware is None:
        raise RuntimeError("Auth services not initialized.")
    return _auth_middleware


def get_email_service() -> EmailService:
    """Get email service instance."""
    if _email_service is None:
        raise RuntimeError("Auth services not initialized.")
    return _email_service


async def require_auth(
    request: Request,
    auth_middleware: Annotated[AuthMiddleware, Depends(get_auth_middleware)]
) -> dict:
    """Dependency that requires authentication."""
    return await auth_middleware.require_auth(request)


# ─────────────────────────────────────────────────────────────────
# Request language
# ─────────────────────────────────────────────────────────────────

def get_language(request: Request) -> str:
    """Language negotiated for the request by the i18n middleware."""
    return getattr(request.state, "language", None) or settings.DEFAULT_LANGUAGE


# ─────────────────────────────────────────────────────────────────
# User getters
# ─────────────────────────────────────────────────────────────────

def get_user_service() -> UserService:
    """Get user service instance."""
    if _user_service is None:
        raise RuntimeError("User services not initialized.")
    return _user_service


def get_account_deletion_service() -> AccountDeletionService:
    """Get account deletion service instance."""
    if _account_deletion_service is None:
        raise RuntimeError("User services not initialized.")
    return _account_deletion_service


# ─────────────────────────────────────────────────────────────────
# Catalog getters
# ─────────────────────────────────────────────────────────────────

def get_catalog_service() -> CatalogService:
    """Get catalog service instance."""
    if _catalog_service is None:
        raise RuntimeError("Catalog services not initialized.")
    return _catalog_service


# ─────────────────────────────────────────────────────────────────
# Group getters
# ─────────────────────────────────────────────────────────────────

def get_membership_service() -> MembershipService:
    """Get membership service instance."""
    if _membership_service is None:
        raise RuntimeError("Group services not initialized.")
    return _membership_service


def get_join_request_service() -> JoinRequestService:
    """Get join request service instance."""
    if _join_request_service is None:
        raise RuntimeError("Group services not initialized.")
    return _join_request_service


# ─────────────────────────────────────────────────────────────────
# Trip getters
# ─────────────────────────────────────────────────────────────────

def get_trip_service() -> TripService:
    """Get trip service instance."""
    if _trip_service is None:
        raise RuntimeError("Trip services not initialized.")
    return _trip_service


# ─────────────────────────────────────────────────────────────────
# Messaging getters
# ─────────────────────────────────────────────────────────────────

def get_private_message_service() -> PrivateMessageService:
    """Get private message service instance."""
    if _private_message_service is None:
        raise RuntimeError("Messaging services not initialized.")
    return _private_message_service


def get_group_message_service() -> GroupMessageService:
    """Get group message service instance."""
    if _group_message_service is None:
        raise RuntimeError("Messaging services not initialized.")
    return _group_message_service


# ─────────────────────────────────────────────────────────────────
# Moderation getters
# ─────────────────────────────────────────────────────────────────

def get_block_service() -> BlockService:
    """Get block service instance."""
    if _block_service is None:
        raise RuntimeError("Messaging services not initialized.")
    return _block_service


def get_report_service() -> ReportService:
    """Get report service instance."""
    if _report_service is None:
        raise RuntimeError("Moderation services not initialized.")
    return _report_service


def get_moderator_service() -> ModeratorService:
    """Get moderator service instance."""
    if _moderator_service is None:
        raise RuntimeError("Moderation services not initialized.")
    return _moderator_service


async def require_moderator(
    user: dict = Depends(require_auth),
    moderator_service: ModeratorService = Depends(get_moderator_service)
) -> dict:
    """Dependency that requires the user to be a site moderator."""
    if not await moderator_service.is_moderator(user["_id"]):
        raise ForbiddenException(
            message="Moderator access required",
            code="MODERATOR_REQUIRED"
        )

    return user

