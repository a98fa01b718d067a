"""Unit tests for the ban escalation policy."""

import pytest
from datetime import datetime, timedelta, timezone

from tripmates.moderation.services.ban_policy import (
    ban_for_report_count,
    evaluate_ban,
    BAN_NONE,
    BAN_EXPIRED,
    BAN_TEMPORARY,
    BAN_PERMANENT,
)


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestBanForReportCount:

    def test_first_report_bans_for_a_day(self):
        decision = ban_for_report_count(1, NOW)

        assert decision.ban_until == NOW + timedelta(hours=24)
        assert decision.permanent is False
        assert decision.delete_account is False

    def test_second_report_bans_for_a_week(self):
        decision = ban_for_report_count(2, NOW)

        assert decision.ban_until == NOW + timedelta(days=7)
        assert decision.permanent is False

    @pytest.mark.parametrize("count", [3, 4, 10])
    def test_third_report_and_beyond_is_permanent(self, count):
        decision = ban_for_report_count(count, NOW)

        assert decision.ban_until is None
        assert decision.permanent is True
        assert decision.delete_account is True

    def test_custom_durations(self):
        decision = ban_for_report_count(1, NOW, first_ban=timedelta(hours=1), permanent_at=5)

        assert decision.ban_until == NOW + timedelta(hours=1)

    def test_zero_reports_is_an_error(self):
        with pytest.raises(ValueError):
            ban_for_report_count(0, NOW)


class TestEvaluateBan:

    def test_not_banned(self):
        status = evaluate_ban({"isBanned": False, "banTimeLapse": None}, NOW)

        assert status.state == BAN_NONE
        assert status.blocks_access is False

    def test_running_temporary_ban(self):
        until = NOW + timedelta(hours=3)

        status = evaluate_ban({"isBanned": True, "banTimeLapse": until}, NOW)

        assert status.state == BAN_TEMPORARY
        assert status.ban_until == until
        assert status.blocks_access is True

    def test_expired_ban(self):
        status = evaluate_ban({"isBanned": True, "banTimeLapse": NOW - timedelta(seconds=1)}, NOW)

        assert status.state == BAN_EXPIRED
        assert status.blocks_access is False

    def test_ban_ending_now_is_expired(self):
        status = evaluate_ban({"isBanned": True, "banTimeLapse": NOW}, NOW)

        assert status.state == BAN_EXPIRED

    def test_no_expiry_is_permanent(self):
        status = evaluate_ban({"isBanned": True, "banTimeLapse": None}, NOW)

        assert status.state == BAN_PERMANENT
        assert status.blocks_access is True

    def test_naive_stored_datetime_is_treated_as_utc(self):
        naive_until = (NOW + timedelta(hours=1)).replace(tzinfo=None)

        status = evaluate_ban({"isBanned": True, "banTimeLapse": naive_until}, NOW)

        assert status.state == BAN_TEMPORARY
