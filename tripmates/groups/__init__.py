"""
Travel groups

Membership, administrators, derived group languages and join requests.
"""

from tripmates.groups.services.membership_service import MembershipService
from tripmates.groups.services.join_request_service import JoinRequestService

__all__ = [
    "MembershipService",
    "JoinRequestService",
]
