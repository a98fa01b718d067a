"""
Tripmates API Routers.

All routers are imported here for easy access.
"""

from tripmates.auth.router import router as auth_router
from tripmates.users.router import router as user_router
from tripmates.groups.router import router as group_router
from tripmates.groups.router import join_router as group_join_router
from tripmates.trips.router import router as trip_router
from tripmates.messaging.router import private_router as private_message_router
from tripmates.messaging.router import group_router as group_message_router
from tripmates.moderation.router import report_router
from tripmates.moderation.router import block_router
from tripmates.catalog.router import router as catalog_router

__all__ = [
    "auth_router",
    "user_router",
    "group_router",
    "group_join_router",
    "trip_router",
    "private_message_router",
    "group_message_router",
    "report_router",
    "block_router",
    "catalog_router",
]
