"""
Tripmates collection indexes.
"""

from tripmates.database.indexes import COLLECTION_INDEXES

__all__ = ["COLLECTION_INDEXES"]
