"""
Ban expiry background job.

Lifts temporary bans whose end date has passed and clears one-time email
tokens that expired unused. Login and token refresh already lift an expired
ban on the spot; this job keeps the stored flags honest for users who do
not come back.

Usage:
    Run via CRON:
        */15 * * * * cd /path/to/project && python -m jobs.lift_expired_bans

    Or run directly:
        python -m jobs.lift_expired_bans
"""

import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Dict, Any

from motor.motor_asyncio import AsyncIOMotorClient

from tripmates.config import settings
from tripmates.moderation.services.report_service import ReportService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


class BanExpiryJob:
    """
    Housekeeping for user moderation state.

    Actions performed:
    1. Unbans users whose banTimeLapse is in the past
    2. Clears expired email verification tokens
    3. Clears expired password reset tokens
    """

    def __init__(self, db_uri: str, db_name: str = "tripmates"):
        self._client = AsyncIOMotorClient(db_uri, tz_aware=True)
        self._db = self._client[db_name]
        self._users = self._db["users"]
        self._report_service = ReportService(self._db)

    async def run(self, now: datetime = None) -> Dict[str, Any]:
        """
        Execute the job.

        Returns:
            Dict with job results including counts and any errors
        """
        logger.info("Starting ban expiry job")
        start_time = datetime.now(timezone.utc)
        now = now or start_time

        results = {
            "startTime": start_time.isoformat(),
            "bansLifted": 0,
            "verificationTokensCleared": 0,
            "resetTokensCleared": 0,
            "errors": [],
        }

        try:
            results["bansLifted"] = await self._report_service.lift_expired_bans(now)
        except Exception as e:
            error_msg = f"Failed to lift expired bans: {str(e)}"
            logger.error(error_msg)
            results["errors"].append(error_msg)

        try:
            results["verificationTokensCleared"] = await self._clear_expired(
                "emailVerificationToken", "emailVerificationExpires", now
            )
            results["resetTokensCleared"] = await self._clear_expired(
                "resetPasswordToken", "resetPasswordExpires", now
            )
        except Exception as e:
            error_msg = f"Failed to clear expired tokens: {str(e)}"
            logger.error(error_msg)
            results["errors"].append(error_msg)

        results["endTime"] = datetime.now(timezone.utc).isoformat()
        results["durationSeconds"] = (
            datetime.now(timezone.utc) - start_time
        ).total_seconds()

        logger.info(
            f"Ban expiry job completed. "
            f"Lifted: {results['bansLifted']} bans, "
            f"Errors: {len(results['errors'])}"
        )

        return results

    async def _clear_expired(self, token_field: str, expires_field: str, now: datetime) -> int:
        result = await self._users.update_many(
            {token_field: {"$ne": None}, expires_field: {"$lt": now}},
            {"$set": {token_field: None, expires_field: None}}
        )
        logger.debug(f"Cleared {result.modified_count} expired {token_field} values")
        return result.modified_count

    async def close(self):
        """Close database connection."""
        self._client.close()


async def main():
    """Main entry point for the ban expiry job."""
    job = BanExpiryJob(
        db_uri=settings.MONGODB_URI,
        db_name=settings.MONGODB_DATABASE,
    )

    try:
        results = await job.run()

        logger.info(f"Duration: {results['durationSeconds']:.2f} seconds")
        logger.info(f"Bans lifted: {results['bansLifted']}")
        logger.info(f"Verification tokens cleared: {results['verificationTokensCleared']}")
        logger.info(f"Reset tokens cleared: {results['resetTokensCleared']}")

        for error in results["errors"]:
            logger.error(f"  - {error}")

        exit_code = 1 if results["errors"] else 0
        sys.exit(exit_code)

    finally:
        await job.close()


if __name__ == "__main__":
    asyncio.run(main())
