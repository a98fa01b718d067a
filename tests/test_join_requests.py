"""Unit tests for JoinRequestService (ask, approve, reject/withdraw)."""

import pytest
from unittest.mock import patch
from bson import ObjectId

from common.utils.exceptions import ConflictException, ForbiddenException, NotFoundException
from tripmates.groups.services.membership_service import MembershipService
from tripmates.groups.services.join_request_service import JoinRequestService


@pytest.fixture
def membership(fake_db):
    return MembershipService(fake_db)


@pytest.fixture
def service(fake_db, membership):
    return JoinRequestService(fake_db, membership)


@pytest.fixture
def langs(seed_catalog):
    return seed_catalog


class TestAskJoin:

    @pytest.mark.asyncio
    async def test_records_primary_administrator(self, service, membership, make_user):
        owner = make_user()
        requester = make_user()
        group = await membership.create_group("Porto", owner)

        request = await service.ask_join(group["_id"], requester, message="Can I come?")

        assert request["adminId"] == owner
        assert request["userId"] == requester
        assert request["message"] == "Can I come?"

    @pytest.mark.asyncio
    async def test_second_pending_request_conflicts(self, service, membership, make_user):
        group = await membership.create_group("Porto", make_user())
        requester = make_user()
        await service.ask_join(group["_id"], requester)

        with pytest.raises(ConflictException) as exc_info:
            await service.ask_join(group["_id"], requester)

        assert exc_info.value.code == "JOIN_REQUEST_ALREADY_EXISTS"

    @pytest.mark.asyncio
    async def test_member_cannot_ask(self, service, membership, make_user):
        owner = make_user()
        group = await membership.create_group("Porto", owner)

        with pytest.raises(ConflictException) as exc_info:
            await service.ask_join(group["_id"], owner)

        assert exc_info.value.code == "ALREADY_MEMBER"


class TestApprove:

    @pytest.mark.asyncio
    async def test_grants_membership_and_deletes_request(self, service, membership, fake_db, make_user, langs):
        owner = make_user(languages=[langs.english])
        requester = make_user(languages=[langs.french, langs.english])
        group = await membership.create_group("Porto", owner)
        request = await service.ask_join(group["_id"], requester)

        updated = await service.approve(request["_id"], owner)

        assert updated["members"] == [owner, requester]
        assert updated["languages"] == [langs.english, langs.french]
        assert await fake_db["groupJoinRequests"].find_one({"_id": request["_id"]}) is None
        conversation = await fake_db["groupConversations"].find_one({"groupId": group["_id"]})
        assert requester in conversation["participants"]

    @pytest.mark.asyncio
    async def test_approving_existing_member_changes_nothing(self, service, membership, fake_db, make_user, langs):
        owner = make_user(languages=[langs.english])
        requester = make_user(languages=[langs.spanish])
        group = await membership.create_group("Porto", owner)
        request = await service.ask_join(group["_id"], requester)
        await membership.add_member(group["_id"], requester)

        updated = await service.approve(request["_id"], owner)

        assert updated["members"] == [owner, requester]
        assert updated["languages"] == [langs.english, langs.spanish]

    @pytest.mark.asyncio
    async def test_membership_granted_through_add_member(self, service, membership, make_user):
        owner = make_user()
        requester = make_user()
        group = await membership.create_group("Porto", owner)
        request = await service.ask_join(group["_id"], requester)

        with patch.object(membership, "add_member", wraps=membership.add_member) as add_member:
            await service.approve(request["_id"], owner)

        add_member.assert_awaited_once_with(group["_id"], requester, exists_ok=True)

    @pytest.mark.asyncio
    async def test_only_administrators_approve(self, service, membership, make_user):
        owner = make_user()
        member = make_user()
        requester = make_user()
        group = await membership.create_group("Porto", owner)
        await membership.add_member(group["_id"], member)
        request = await service.ask_join(group["_id"], requester)

        with pytest.raises(ForbiddenException):
            await service.approve(request["_id"], member)

    @pytest.mark.asyncio
    async def test_unknown_request(self, service, make_user):
        with pytest.raises(NotFoundException) as exc_info:
            await service.approve(ObjectId(), make_user())

        assert exc_info.value.code == "JOIN_REQUEST_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_requester_deleted_meanwhile(self, service, membership, fake_db, make_user):
        owner = make_user()
        requester = make_user()
        group = await membership.create_group("Porto", owner)
        request = await service.ask_join(group["_id"], requester)
        await fake_db["users"].delete_one({"_id": requester})

        with pytest.raises(NotFoundException):
            await service.approve(request["_id"], owner)

        assert await fake_db["groupJoinRequests"].find_one({"_id": request["_id"]}) is None


class TestDeleteRequest:

    @pytest.mark.asyncio
    async def test_author_withdraws(self, service, membership, fake_db, make_user):
        group = await membership.create_group("Porto", make_user())
        requester = make_user()
        request = await service.ask_join(group["_id"], requester)

        await service.delete_request(request["_id"], requester)

        assert await fake_db["groupJoinRequests"].count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_administrator_rejects(self, service, membership, fake_db, make_user):
        owner = make_user()
        group = await membership.create_group("Porto", owner)
        request = await service.ask_join(group["_id"], make_user())

        await service.delete_request(request["_id"], owner)

        assert await fake_db["groupJoinRequests"].count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_stranger_forbidden(self, service, membership, make_user):
        group = await membership.create_group("Porto", make_user())
        request = await service.ask_join(group["_id"], make_user())

        with pytest.raises(ForbiddenException) as exc_info:
            await service.delete_request(request["_id"], make_user())

        assert exc_info.value.code == "NOT_REQUEST_OWNER_OR_ADMIN"


class TestListing:

    @pytest.mark.asyncio
    async def test_group_requests_visible_to_administrators_only(self, service, membership, make_user):
        owner = make_user()
        member = make_user()
        group = await membership.create_group("Porto", owner)
        await membership.add_member(group["_id"], member)
        await service.ask_join(group["_id"], make_user())

        assert len(await service.get_requests_for_group(group["_id"], owner)) == 1
        with pytest.raises(ForbiddenException):
            await service.get_requests_for_group(group["_id"], member)

    @pytest.mark.asyncio
    async def test_user_requests(self, service, membership, make_user):
        requester = make_user()
        first = await membership.create_group("Porto", make_user())
        second = await membership.create_group("Faro", make_user())
        await service.ask_join(first["_id"], requester)
        await service.ask_join(second["_id"], requester)

        requests = await service.get_requests_for_user(requester)

        assert {request["groupId"] for request in requests} == {first["_id"], second["_id"]}
