"""Unit tests for ReportService (reports, verification and ban escalation)."""

import pytest
from datetime import timedelta
from bson import ObjectId

from common.utils.exceptions import BadRequestException, ConflictException, NotFoundException
from tripmates.catalog.services.catalog_service import CatalogService
from tripmates.groups.services.membership_service import MembershipService
from tripmates.messaging.services.group_message_service import GroupMessageService
from tripmates.messaging.services.private_message_service import PrivateMessageService
from tripmates.moderation.services.block_service import BlockService
from tripmates.moderation.services.report_service import ReportService
from tripmates.users.services.account_deletion import AccountDeletionService


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def service(fake_db, seed_catalog):
    membership = MembershipService(fake_db)
    account_deletion = AccountDeletionService(
        fake_db,
        membership_service=membership,
        private_message_service=PrivateMessageService(fake_db, BlockService(fake_db)),
        group_message_service=GroupMessageService(fake_db, membership),
    )
    return ReportService(
        fake_db,
        account_deletion_service=account_deletion,
        catalog_service=CatalogService(fake_db),
    )


@pytest.fixture
def spam(seed_catalog):
    return seed_catalog.spam


@pytest.fixture
def moderator(make_user):
    return make_user()


# ─────────────────────────────────────────────────────────────────
# Filing reports
# ─────────────────────────────────────────────────────────────────


class TestCreateReport:

    @pytest.mark.asyncio
    async def test_creates_unverified_report(self, service, make_user, spam):
        reporter = make_user()
        reported = make_user()

        report = await service.create_report(reporter, reported, spam, description="Spams links")

        assert report["isVerified"] is False
        assert report["reasonId"] == spam
        assert report["evidence"] == []

    @pytest.mark.asyncio
    async def test_cannot_report_self(self, service, make_user, spam):
        user = make_user()

        with pytest.raises(BadRequestException) as exc_info:
            await service.create_report(user, user, spam)

        assert exc_info.value.code == "CANNOT_REPORT_SELF"

    @pytest.mark.asyncio
    async def test_unknown_reason(self, service, make_user):
        with pytest.raises(BadRequestException) as exc_info:
            await service.create_report(make_user(), make_user(), ObjectId())

        assert exc_info.value.code == "UNKNOWN_REFERENCE"

    @pytest.mark.asyncio
    async def test_same_pair_reported_twice(self, service, make_user, spam):
        reporter = make_user()
        reported = make_user()
        await service.create_report(reporter, reported, spam)

        with pytest.raises(ConflictException) as exc_info:
            await service.create_report(reporter, reported, spam)

        assert exc_info.value.code == "REPORT_ALREADY_EXISTS"

    @pytest.mark.asyncio
    async def test_unverified_filter(self, service, make_user, spam, moderator, now):
        reported = make_user()
        first = await service.create_report(make_user(), reported, spam)
        await service.create_report(make_user(), reported, spam)
        await service.verify_report(first["_id"], moderator, now=now)

        assert len(await service.get_reports()) == 2
        assert len(await service.get_reports(unverified_only=True)) == 1


# ─────────────────────────────────────────────────────────────────
# Verification and escalation
# ─────────────────────────────────────────────────────────────────


class TestVerifyReport:

    @pytest.mark.asyncio
    async def test_escalates_to_permanent_ban_and_deletion(self, service, fake_db, make_user, spam, moderator, now):
        reported = make_user(refreshToken="stored-refresh")
        reports = [await service.create_report(make_user(), reported, spam) for _ in range(3)]

        first = await service.verify_report(reports[0]["_id"], moderator, now=now)
        user = await fake_db["users"].find_one({"_id": reported})
        assert first["reportCount"] == 1
        assert first["banUntil"] == now + timedelta(hours=24)
        assert user["isBanned"] is True
        assert user["banTimeLapse"] == now + timedelta(hours=24)
        assert user["refreshToken"] is None

        second = await service.verify_report(reports[1]["_id"], moderator, now=now)
        assert second["reportCount"] == 2
        assert second["banUntil"] == now + timedelta(days=7)
        assert second["accountDeleted"] is False

        third = await service.verify_report(reports[2]["_id"], moderator, now=now)
        assert third["reportCount"] == 3
        assert third["permanent"] is True
        assert third["banUntil"] is None
        assert third["accountDeleted"] is True
        assert await fake_db["users"].find_one({"_id": reported}) is None
        assert await fake_db["reportedUsers"].count_documents({"reportedUserId": reported}) == 0

    @pytest.mark.asyncio
    async def test_report_count_survives_ban_expiry(self, service, fake_db, make_user, spam, moderator, now):
        reported = make_user()
        first = await service.create_report(make_user(), reported, spam)
        second = await service.create_report(make_user(), reported, spam)

        await service.verify_report(first["_id"], moderator, now=now)
        await service.lift_expired_bans(now + timedelta(days=2))
        outcome = await service.verify_report(second["_id"], moderator, now=now + timedelta(days=3))

        assert outcome["reportCount"] == 2
        assert outcome["banUntil"] == now + timedelta(days=10)

    @pytest.mark.asyncio
    async def test_already_verified(self, service, make_user, spam, moderator, now):
        report = await service.create_report(make_user(), make_user(), spam)
        await service.verify_report(report["_id"], moderator, now=now)

        with pytest.raises(ConflictException) as exc_info:
            await service.verify_report(report["_id"], moderator, now=now)

        assert exc_info.value.code == "REPORT_ALREADY_VERIFIED"

    @pytest.mark.asyncio
    async def test_unknown_report(self, service, moderator):
        with pytest.raises(NotFoundException) as exc_info:
            await service.verify_report(ObjectId(), moderator)

        assert exc_info.value.code == "REPORT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_verification_records_moderator(self, service, fake_db, make_user, spam, moderator, now):
        report = await service.create_report(make_user(), make_user(), spam)

        await service.verify_report(report["_id"], moderator, now=now)

        stored = await fake_db["reportedUsers"].find_one({"_id": report["_id"]})
        assert stored["isVerified"] is True
        assert stored["verifiedBy"] == moderator
        assert stored["verifiedAt"] == now


class TestLiftExpiredBans:

    @pytest.mark.asyncio
    async def test_lifts_only_expired_temporary_bans(self, service, fake_db, make_user, now):
        expired = make_user(isBanned=True, banTimeLapse=now - timedelta(minutes=1))
        running = make_user(isBanned=True, banTimeLapse=now + timedelta(hours=1))
        permanent = make_user(isBanned=True, banTimeLapse=None)

        lifted = await service.lift_expired_bans(now)

        assert lifted == 1
        assert (await fake_db["users"].find_one({"_id": expired}))["isBanned"] is False
        assert (await fake_db["users"].find_one({"_id": running}))["isBanned"] is True
        assert (await fake_db["users"].find_one({"_id": permanent}))["isBanned"] is True

    @pytest.mark.asyncio
    async def test_runs_without_deletion_or_catalog_services(self, fake_db, make_user, now):
        expired = make_user(isBanned=True, banTimeLapse=now - timedelta(minutes=1))

        lifted = await ReportService(fake_db).lift_expired_bans(now)

        assert lifted == 1
        assert (await fake_db["users"].find_one({"_id": expired}))["isBanned"] is False
