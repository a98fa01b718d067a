"""
Index definitions for the Tripmates collections.

Applied at startup through MongoDB.ensure_indexes().
"""

from typing import Dict, List

from pymongo import ASCENDING, DESCENDING, IndexModel

from tripmates.catalog.services.catalog_service import CATALOG_KINDS


def _catalog_indexes() -> Dict[str, List[IndexModel]]:
    # code is optional; uniqueness only applies to entries that have one
    return {
        collection: [
            IndexModel(
                [("code", ASCENDING)],
                unique=True,
                partialFilterExpression={"code": {"$type": "string"}},
            ),
        ]
        for collection in CATALOG_KINDS.values()
    }


COLLECTION_INDEXES: Dict[str, List[IndexModel]] = {
    "users": [
        IndexModel([("email", ASCENDING)], unique=True),
        IndexModel([("emailVerificationToken", ASCENDING)], sparse=True),
        IndexModel([("resetPasswordToken", ASCENDING)], sparse=True),
        IndexModel([("isBanned", ASCENDING), ("banTimeLapse", ASCENDING)]),
    ],
    "administrators": [
        IndexModel([("userId", ASCENDING)], unique=True),
    ],
    "groups": [
        IndexModel([("members", ASCENDING)]),
    ],
    "groupJoinRequests": [
        IndexModel([("groupId", ASCENDING), ("userId", ASCENDING)], unique=True),
        IndexModel([("adminId", ASCENDING)]),
    ],
    "groupConversations": [
        IndexModel([("groupId", ASCENDING)], unique=True),
    ],
    "groupMessages": [
        IndexModel([("groupId", ASCENDING), ("timestamp", DESCENDING)]),
        IndexModel([("senderId", ASCENDING)]),
    ],
    "privateConversations": [
        IndexModel([("participants", ASCENDING)]),
    ],
    "privateMessages": [
        IndexModel([("conversationId", ASCENDING), ("timestamp", DESCENDING)]),
        IndexModel([("senderId", ASCENDING)]),
    ],
    "trips": [
        IndexModel([("groupId", ASCENDING)]),
        IndexModel([("startDate", ASCENDING)]),
        IndexModel([("userId", ASCENDING)]),
    ],
    "reportedUsers": [
        IndexModel([("reportingUserId", ASCENDING), ("reportedUserId", ASCENDING)], unique=True),
        IndexModel([("isVerified", ASCENDING)]),
    ],
    "blockedUsers": [
        IndexModel([("blockingUserId", ASCENDING), ("blockedUserId", ASCENDING)], unique=True),
        IndexModel([("blockedUserId", ASCENDING)]),
    ],
    **_catalog_indexes(),
}
