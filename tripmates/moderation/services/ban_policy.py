"""
Ban escalation policy.

Pure functions mapping a verified report count to a ban, and a user's
stored ban fields to a login decision. No database access here.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from common.utils.dates import ensure_utc


BAN_NONE = "none"
BAN_EXPIRED = "expired"
BAN_TEMPORARY = "temporary"
BAN_PERMANENT = "permanent"


@dataclass(frozen=True)
class BanDecision:
    """Ban to apply after a report is verified."""

    report_count: int
    ban_until: Optional[datetime]
    permanent: bool

    @property
    def delete_account(self) -> bool:
        return self.permanent


@dataclass(frozen=True)
class BanStatus:
    """Ban state of a user at a given instant."""

    state: str
    ban_until: Optional[datetime] = None

    @property
    def blocks_access(self) -> bool:
        return self.state in (BAN_TEMPORARY, BAN_PERMANENT)


def ban_for_report_count(
    report_count: int,
    now: datetime,
    first_ban: timedelta = timedelta(hours=24),
    second_ban: timedelta = timedelta(days=7),
    permanent_at: int = 3,
) -> BanDecision:
    """
    Ban for the given number of verified reports.

    1 verified report -> first_ban, 2 -> second_ban,
    permanent_at or more -> permanent ban and account deletion.
    """
    if report_count < 1:
        raise ValueError("A ban needs at least one verified report")

    if report_count >= permanent_at:
        return BanDecision(report_count=report_count, ban_until=None, permanent=True)

    duration = first_ban if report_count == 1 else second_ban
    return BanDecision(report_count=report_count, ban_until=now + duration, permanent=False)


def evaluate_ban(user: dict, now: datetime) -> BanStatus:
    """
    Ban state of a user document at instant now.

    isBanned with a future banTimeLapse is temporary, with a past one is
    expired (to be lifted), and without one is permanent.
    """
    if not user.get("isBanned"):
        return BanStatus(BAN_NONE)

    ban_until = ensure_utc(user.get("banTimeLapse"))
    if ban_until is None:
        return BanStatus(BAN_PERMANENT)

    if ban_until <= ensure_utc(now):
        return BanStatus(BAN_EXPIRED, ban_until)

    return BanStatus(BAN_TEMPORARY, ban_until)
