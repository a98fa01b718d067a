"""
lastMessage cache helpers shared by private and group conversations.

A conversation's lastMessage is a copy of its newest message, kept so that
conversation lists render without loading messages.
"""

from typing import Iterable, Optional

from bson import ObjectId


def message_summary(message: Optional[dict]) -> Optional[dict]:
    """The cached form of a message, or None."""
    if not message:
        return None
    return {
        "messageId": message["_id"],
        "senderId": message["senderId"],
        "content": message["content"],
        "timestamp": message["timestamp"],
    }


def is_cached(conversation: dict, message_id: ObjectId) -> bool:
    """True if the message is the conversation's cached lastMessage."""
    last = conversation.get("lastMessage") or {}
    return last.get("messageId") == message_id


def latest_message(
    messages: Iterable[dict],
    exclude_sender: Optional[ObjectId] = None,
) -> Optional[dict]:
    """Newest message, optionally ignoring one sender's messages."""
    candidates = [
        message for message in messages
        if exclude_sender is None or message.get("senderId") != exclude_sender
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda message: (message["timestamp"], message["_id"]))
