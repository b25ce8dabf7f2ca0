"""
Permission predicate and BS calendar tests.
"""

from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from starweb import bs_calendar
from starweb.bs_calendar import BSCalendarError
from starweb.permissions import normalize_permissions
from starweb.services import auth_service, permission_service
from starweb.services.permission_service import PermissionDeniedError


# =============================================================================
# PERMISSIONS
# =============================================================================


class TestHasPermission:

    CLERK = SimpleNamespace(is_admin=False, permissions={"fleet": ["view", "create"], "hr": []})
    ADMIN = SimpleNamespace(is_admin=True, permissions={})

    @pytest.mark.parametrize("module,action,expected", [
        ("fleet", "view", True),
        ("fleet", "create", True),
        ("fleet", "delete", False),
        ("hr", "view", False),
        ("finance", "view", False),
    ])
    def test_listed_actions_only(self, module, action, expected):
        assert permission_service.has_permission(self.CLERK, module, action) is expected

    def test_admin_passes_known_checks(self):
        assert permission_service.has_permission(self.ADMIN, "settings", "delete") is True

    @pytest.mark.parametrize("module,action", [("payroll", "view"), ("fleet", "approve")])
    def test_unknown_module_or_action_fails_closed(self, module, action):
        assert permission_service.has_permission(self.ADMIN, module, action) is False
        assert permission_service.has_permission(self.CLERK, module, action) is False

    def test_no_user(self):
        assert permission_service.has_permission(None, "fleet", "view") is False

    def test_missing_permission_map(self):
        user = SimpleNamespace(is_admin=False, permissions=None)
        assert permission_service.has_permission(user, "fleet", "view") is False


class TestNormalizePermissions:

    def test_drops_unknown_and_orders_actions(self):
        raw = {
            "fleet": ["delete", "view", "view", "fly"],
            "payroll": ["view"],
            "hr": [],
            "finance": "view",
        }
        assert normalize_permissions(raw) == {"fleet": ["view", "delete"]}

    def test_non_dict(self):
        assert normalize_permissions(["fleet"]) == {}


class TestGrantRevoke:

    def test_grant_and_revoke(self, db_session):
        user = auth_service.create_user(username="hr_clerk", password="Password123")

        permission_service.grant(user, "hr", "view")
        assert permission_service.has_permission(user, "hr", "view")

        permission_service.revoke(user, "hr", "view")
        assert not permission_service.has_permission(user, "hr", "view")

        events = [e.event_type for e in permission_service.list_security_events()]
        assert "PERMISSION_GRANTED" in events
        assert "PERMISSION_REVOKED" in events

    def test_grant_rejects_unknown(self, db_session):
        user = auth_service.create_user(username="hr_clerk", password="Password123")
        with pytest.raises(ValueError):
            permission_service.grant(user, "payroll", "view")

    def test_denial_is_logged(self, db_session):
        user = auth_service.create_user(username="hr_clerk", password="Password123")

        with pytest.raises(PermissionDeniedError):
            permission_service.require_permission(user, "finance", "view", resource="/api/finance/tds")

        event = permission_service.list_security_events()[0]
        assert event.event_type == "PERMISSION_DENIED"
        assert event.success is False
        assert event.action == "finance:view"


# =============================================================================
# BS CALENDAR
# =============================================================================


class TestBsCalendar:

    def test_new_year_2082(self):
        assert bs_calendar.bs_to_ad(2082, 1, 1) == date(2025, 4, 14)
        assert bs_calendar.to_bs_string(date(2025, 4, 14)) == "2082-01-01"
        assert bs_calendar.parse_bs_string("2082-01-01") == date(2025, 4, 14)

    def test_month_of_a_date(self):
        new_year = bs_calendar.to_bs(date(2025, 4, 14))
        assert (new_year.year, new_year.month) == (2082, 1)
        assert bs_calendar.to_bs(date(2025, 4, 13)).month == 12

    def test_month_bounds_are_contiguous(self):
        first, last = bs_calendar.month_bounds(2082, 1)
        next_first, _ = bs_calendar.month_bounds(2082, 2)

        assert first == date(2025, 4, 14)
        assert last + timedelta(days=1) == next_first
        assert 29 <= bs_calendar.days_in_month(2082, 1) <= 32

    def test_year_end_rolls_over(self):
        _, last = bs_calendar.month_bounds(2081, 12)
        assert last == date(2025, 4, 13)

    def test_rule_change_boundary(self):
        shrawan_first, _ = bs_calendar.month_bounds(2082, 4)

        assert bs_calendar.is_on_or_after(shrawan_first, 2082, 4) is True
        assert bs_calendar.is_on_or_after(shrawan_first - timedelta(days=1), 2082, 4) is False

    def test_current_period(self):
        assert bs_calendar.current_bs_period(date(2025, 4, 14)) == (2082, 1)

    @pytest.mark.parametrize("month", [0, 13])
    def test_month_out_of_range(self, month):
        with pytest.raises(BSCalendarError):
            bs_calendar.month_bounds(2082, month)

    def test_bad_strings(self):
        with pytest.raises(BSCalendarError):
            bs_calendar.parse_bs_string("2082/01/01")
        assert bs_calendar.to_bs_string(None) == ""
