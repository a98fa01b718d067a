"""
Abuse reports and the ban cascade.

A verified report increments the reported user's reportCount, which only
ever grows, and applies the escalating ban from ban_policy. The ban that
reaches the permanent threshold also deletes the account.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any, TYPE_CHECKING

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from common.database import to_object_id
from common.utils.exceptions import (
    NotFoundException,
    ConflictException,
    BadRequestException,
)
from tripmates.catalog.services.catalog_service import CatalogService
from tripmates.moderation.services.ban_policy import ban_for_report_count

if TYPE_CHECKING:
    from tripmates.users.services.account_deletion import AccountDeletionService

logger = logging.getLogger(__name__)


class ReportService:
    """
    Manages user reports and ban escalation.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        account_deletion_service: Optional["AccountDeletionService"] = None,
        catalog_service: Optional[CatalogService] = None,
        first_ban: timedelta = timedelta(hours=24),
        second_ban: timedelta = timedelta(days=7),
        permanent_at: int = 3,
    ):
        """
        Initialize ReportService.

        Args:
            db: MongoDB database connection
            account_deletion_service: Runs on a permanent ban; needed by verify_report
            catalog_service: Validates report reasons; needed by create_report
            first_ban: Ban length after one verified report
            second_ban: Ban length after two verified reports
            permanent_at: Verified report count that bans permanently
        """
        self._account_deletion_service = account_deletion_service
        self._catalog_service = catalog_service
        self._first_ban = first_ban
        self._second_ban = second_ban
        self._permanent_at = permanent_at
        self._reports_collection = db["reportedUsers"]
        self._users_collection = db["users"]

    async def create_report(
        self,
        reporting_user_id,
        reported_user_id,
        reason_id,
        description: Optional[str] = None,
        evidence: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        File a report against a user.

        Raises:
            BadRequestException: Reporting oneself or unknown reason
            NotFoundException: Reported user missing
            ConflictException: This user already reported that user
        """
        reporting_oid = to_object_id(reporting_user_id, "reportingUserId")
        reported_oid = to_object_id(reported_user_id, "reportedUserId")

        if reporting_oid == reported_oid:
            raise BadRequestException(message="You cannot report yourself", code="CANNOT_REPORT_SELF")

        if not await self._users_collection.find_one({"_id": reported_oid}, {"_id": 1}):
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        reason_oid = (await self._catalog_service.ensure_exists("reportReasons", [reason_id], "reasonId"))[0]

        existing = await self._reports_collection.find_one({
            "reportingUserId": reporting_oid,
            "reportedUserId": reported_oid,
        })
        if existing:
            raise ConflictException(
                message="You have already reported this user",
                code="REPORT_ALREADY_EXISTS",
            )

        report_doc = {
            "reportingUserId": reporting_oid,
            "reportedUserId": reported_oid,
            "reasonId": reason_oid,
            "description": description,
            "evidence": evidence or [],
            "isVerified": False,
            "verifiedAt": None,
            "verifiedBy": None,
            "createdAt": datetime.now(timezone.utc),
        }
        result = await self._reports_collection.insert_one(report_doc)
        report_doc["_id"] = result.inserted_id

        logger.info(f"Report {result.inserted_id}: {reporting_oid} reported {reported_oid}")
        return report_doc

    async def get_report(self, report_id) -> Dict[str, Any]:
        report = await self._reports_collection.find_one({"_id": to_object_id(report_id, "reportId")})
        if not report:
            raise NotFoundException(message="Report not found", code="REPORT_NOT_FOUND")
        return report

    async def get_reports(self, unverified_only: bool = False) -> List[Dict[str, Any]]:
        query = {"isVerified": False} if unverified_only else {}
        cursor = self._reports_collection.find(query).sort("createdAt", -1)
        return await cursor.to_list(length=None)

    async def delete_report(self, report_id) -> None:
        report = await self.get_report(report_id)
        await self._reports_collection.delete_one({"_id": report["_id"]})
        logger.info(f"Report {report['_id']} deleted")

    async def verify_report(self, report_id, moderator_id, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Verify a report and ban the reported user.

        Returns:
            dict with reportCount, banUntil, permanent and accountDeleted

        Raises:
            NotFoundException: Report or reported user missing
            ConflictException: Report already verified
        """
        now = now or datetime.now(timezone.utc)
        report = await self.get_report(report_id)
        if report.get("isVerified"):
            raise ConflictException(message="Report is already verified", code="REPORT_ALREADY_VERIFIED")

        reported_oid = report["reportedUserId"]
        if not await self._users_collection.find_one({"_id": reported_oid}, {"_id": 1}):
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        marked = await self._reports_collection.update_one(
            {"_id": report["_id"], "isVerified": False},
            {"$set": {
                "isVerified": True,
                "verifiedAt": now,
                "verifiedBy": to_object_id(moderator_id, "moderatorId"),
            }}
        )
        if marked.modified_count == 0:
            raise ConflictException(message="Report is already verified", code="REPORT_ALREADY_VERIFIED")

        user = await self._users_collection.find_one_and_update(
            {"_id": reported_oid},
            {"$inc": {"reportCount": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if not user:
            raise NotFoundException(message="User not found", code="USER_NOT_FOUND")

        decision = ban_for_report_count(
            user["reportCount"],
            now,
            first_ban=self._first_ban,
            second_ban=self._second_ban,
            permanent_at=self._permanent_at,
        )

        await self._users_collection.update_one(
            {"_id": reported_oid},
            {"$set": {
                "isBanned": True,
                "banTimeLapse": decision.ban_until,
                "refreshToken": None,
                "updatedAt": now,
            }}
        )

        if decision.permanent:
            logger.info(f"User {reported_oid} banned permanently after {decision.report_count} reports")
        else:
            logger.info(f"User {reported_oid} banned until {decision.ban_until.isoformat()}")

        outcome: Dict[str, Any] = {
            "reportId": report["_id"],
            "reportedUserId": reported_oid,
            "reportCount": decision.report_count,
            "banUntil": decision.ban_until,
            "permanent": decision.permanent,
            "accountDeleted": False,
        }

        if decision.delete_account:
            await self._account_deletion_service.delete_account(reported_oid)
            outcome["accountDeleted"] = True

        return outcome

    async def lift_expired_bans(self, now: Optional[datetime] = None) -> int:
        """
        Lift every temporary ban whose expiry has passed.

        Returns:
            Number of users unbanned
        """
        now = now or datetime.now(timezone.utc)
        result = await self._users_collection.update_many(
            {"isBanned": True, "banTimeLapse": {"$ne": None, "$lte": now}},
            {"$set": {"isBanned": False, "banTimeLapse": None}}
        )
        return result.modified_count
