"""Unit tests for PrivateMessageService (conversations and the lastMessage cache)."""

import pytest
from datetime import timedelta
from bson import ObjectId

from common.utils.exceptions import BadRequestException, ForbiddenException, NotFoundException
from tripmates.messaging.services.private_message_service import PrivateMessageService
from tripmates.moderation.services.block_service import BlockService


@pytest.fixture
def block_service(fake_db):
    return BlockService(fake_db)


@pytest.fixture
def service(fake_db, block_service):
    return PrivateMessageService(fake_db, block_service)


@pytest.fixture
def pair(make_user):
    return make_user(firstName="Ines"), make_user(firstName="Jon")


async def _conversation(fake_db, message):
    return await fake_db["privateConversations"].find_one({"_id": message["conversationId"]})


class TestSendMessage:

    @pytest.mark.asyncio
    async def test_first_message_creates_conversation(self, service, fake_db, pair):
        ines, jon = pair

        message = await service.send_message(ines, jon, "  Hello!  ")

        conversation = await _conversation(fake_db, message)
        assert message["content"] == "Hello!"
        assert conversation["participants"] == [ines, jon]
        assert conversation["messages"] == [message["_id"]]
        assert conversation["lastMessage"]["messageId"] == message["_id"]

    @pytest.mark.asyncio
    async def test_reply_reuses_conversation(self, service, fake_db, pair):
        ines, jon = pair

        first = await service.send_message(ines, jon, "Hello")
        reply = await service.send_message(jon, ines, "Hi!")

        assert reply["conversationId"] == first["conversationId"]
        conversation = await _conversation(fake_db, reply)
        assert conversation["lastMessage"]["content"] == "Hi!"
        assert await fake_db["privateConversations"].count_documents({}) == 1

    @pytest.mark.asyncio
    async def test_blocked_either_way(self, service, block_service, pair):
        ines, jon = pair
        await block_service.block_user(jon, ines)

        with pytest.raises(ForbiddenException) as exc_info:
            await service.send_message(ines, jon, "Hello")

        assert exc_info.value.code == "USER_BLOCKED"

    @pytest.mark.asyncio
    async def test_cannot_message_self(self, service, pair):
        ines, _ = pair

        with pytest.raises(BadRequestException) as exc_info:
            await service.send_message(ines, ines, "Hello")

        assert exc_info.value.code == "CANNOT_MESSAGE_SELF"

    @pytest.mark.asyncio
    async def test_empty_content(self, service, pair):
        ines, jon = pair

        with pytest.raises(BadRequestException) as exc_info:
            await service.send_message(ines, jon, "   ")

        assert exc_info.value.code == "MESSAGE_REQUIRED"

    @pytest.mark.asyncio
    async def test_unknown_recipient(self, service, pair):
        ines, _ = pair

        with pytest.raises(NotFoundException):
            await service.send_message(ines, ObjectId(), "Hello")


class TestCacheMaintenance:

    @pytest.mark.asyncio
    async def test_editing_last_message_updates_cache(self, service, fake_db, pair):
        ines, jon = pair
        message = await service.send_message(ines, jon, "See you at 8")

        await service.update_message(message["_id"], ines, "See you at 9")

        conversation = await _conversation(fake_db, message)
        assert conversation["lastMessage"]["content"] == "See you at 9"

    @pytest.mark.asyncio
    async def test_editing_older_message_keeps_cache(self, service, fake_db, pair):
        ines, jon = pair
        older = await service.send_message(ines, jon, "First")
        await service.send_message(jon, ines, "Second")

        await service.update_message(older["_id"], ines, "First, edited")

        conversation = await _conversation(fake_db, older)
        assert conversation["lastMessage"]["content"] == "Second"

    @pytest.mark.asyncio
    async def test_only_sender_edits(self, service, pair):
        ines, jon = pair
        message = await service.send_message(ines, jon, "Hello")

        with pytest.raises(ForbiddenException) as exc_info:
            await service.update_message(message["_id"], jon, "Hijacked")

        assert exc_info.value.code == "NOT_MESSAGE_SENDER"

    @pytest.mark.asyncio
    async def test_deleting_last_message_falls_back_to_previous(self, service, fake_db, pair):
        ines, jon = pair
        first = await service.send_message(ines, jon, "First")
        second = await service.send_message(jon, ines, "Second")

        outcome = await service.delete_message(second["_id"], jon)

        conversation = await _conversation(fake_db, first)
        assert outcome == {"conversationDeleted": False}
        assert conversation["messages"] == [first["_id"]]
        assert conversation["lastMessage"]["messageId"] == first["_id"]

    @pytest.mark.asyncio
    async def test_deleting_only_message_deletes_conversation(self, service, fake_db, pair):
        ines, jon = pair
        message = await service.send_message(ines, jon, "Lonely")

        outcome = await service.delete_message(message["_id"], ines)

        assert outcome == {"conversationDeleted": True}
        assert await fake_db["privateConversations"].count_documents({}) == 0


class TestReading:

    @pytest.mark.asyncio
    async def test_messages_oldest_first_with_limit(self, service, fake_db, pair, now):
        ines, jon = pair
        sent = [await service.send_message(ines, jon, f"message {index}") for index in range(4)]
        for index, message in enumerate(sent):
            await fake_db["privateMessages"].update_one(
                {"_id": message["_id"]},
                {"$set": {"timestamp": now + timedelta(minutes=index)}}
            )

        messages = await service.get_messages(sent[0]["conversationId"], jon, limit=2)

        assert [message["_id"] for message in messages] == [sent[2]["_id"], sent[3]["_id"]]

    @pytest.mark.asyncio
    async def test_outsider_cannot_read(self, service, make_user, pair):
        ines, jon = pair
        message = await service.send_message(ines, jon, "Private")

        with pytest.raises(ForbiddenException) as exc_info:
            await service.get_messages(message["conversationId"], make_user())

        assert exc_info.value.code == "NOT_CONVERSATION_PARTICIPANT"

    @pytest.mark.asyncio
    async def test_mark_read(self, service, fake_db, pair):
        ines, jon = pair
        await service.send_message(ines, jon, "One")
        message = await service.send_message(ines, jon, "Two")

        updated = await service.mark_read(message["conversationId"], jon)

        assert updated == 2
        assert await service.mark_read(message["conversationId"], jon) == 0

    @pytest.mark.asyncio
    async def test_conversation_list_hides_message_ids(self, service, pair):
        ines, jon = pair
        await service.send_message(ines, jon, "Hello")

        conversations = await service.get_conversations(jon)

        assert len(conversations) == 1
        assert "messages" not in conversations[0]


class TestRemoveUser:

    @pytest.mark.asyncio
    async def test_conversation_with_one_remaining_participant_is_kept(self, service, fake_db, pair):
        ines, jon = pair
        await service.send_message(jon, ines, "Lisbon or Porto?")
        await service.send_message(ines, jon, "Porto")
        await service.send_message(jon, ines, "Deal")
        await service.send_message(ines, jon, "Booking now")

        summary = await service.remove_user(ines)

        conversations = fake_db["privateConversations"].docs
        assert summary == {"conversationsUpdated": 1, "conversationsDeleted": 0}
        assert len(conversations) == 1
        assert conversations[0]["participants"] == [jon]
        assert len(conversations[0]["messages"]) == 2
        assert conversations[0]["lastMessage"]["senderId"] == jon

    @pytest.mark.asyncio
    async def test_conversation_without_remaining_messages_is_deleted(self, service, fake_db, pair):
        ines, jon = pair
        await service.send_message(ines, jon, "Anyone up for Iceland?")

        summary = await service.remove_user(ines)

        assert summary["conversationsDeleted"] == 1
        assert fake_db["privateConversations"].docs == []
        assert fake_db["privateMessages"].docs == []
