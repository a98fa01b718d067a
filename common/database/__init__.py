"""
Database module - Generic async MongoDB connection using Motor.

Usage:
    from common.database import MongoDB, set_main_database, get_main_database

    # Set up singleton
    db = MongoDB()
    await db.connect(uri, database_name)
    set_main_database(db)

    # Access anywhere
    main_db = get_main_database()
    collection = main_db.get_collection("users")
"""

from common.database.mongodb import (
    MongoDB,
    # Singleton management
    set_main_database,
    get_main_database,
)
from common.database.object_ids import to_object_id, to_object_ids

__all__ = [
    "MongoDB",
    # Singleton management
    "set_main_database",
    "get_main_database",
    # Id helpers
    "to_object_id",
    "to_object_ids",
]
